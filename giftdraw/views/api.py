from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request
from flask.views import MethodView
from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from ..errors import DrawError, SantaError
from ..extensions import db
from ..forms import CheckResultForm


api_bp = Blueprint("api", __name__, url_prefix="/api")


def get_draw_service():
    return current_app.extensions["giftdraw"]["draw_service"]


def _invalid(errors) -> tuple:
    return jsonify({"message": "Invalid request data", "errors": errors}), 400


class ParticipantsView(MethodView):
    def get(self):
        return jsonify(get_draw_service().participant_names())


class CheckResultView(MethodView):
    def post(self):
        if not request.is_json or not isinstance(request.get_json(silent=True), dict):
            return _invalid({"body": ["Expected a JSON object."]})

        # The raw body, not a MultiDict, so a list-valued name is seen as a list.
        form = CheckResultForm(formdata=None, data=request.get_json())
        if not form.validate():
            return _invalid(form.errors)

        draws_for = get_draw_service().check_result(form.name.data)
        return jsonify({"drawsFor": draws_for})


@api_bp.errorhandler(SantaError)
def handle_santa_error(e: SantaError):
    if isinstance(e, DrawError):
        logger.error("Draw could not be performed: {}", e.message)
    elif e.status_code >= 500:
        logger.error("Internal fault on {}: {}", request.path, e.message)
    return jsonify({"message": e.message}), e.status_code


@api_bp.errorhandler(SQLAlchemyError)
def handle_db_error(e: SQLAlchemyError):
    db.session.rollback()
    logger.exception("Database error on {}", request.path)
    return jsonify({"message": "Internal server error"}), 500


@api_bp.errorhandler(Exception)
def handle_unexpected_error(e: Exception):
    if isinstance(e, HTTPException):
        return jsonify({"message": e.description}), e.code
    logger.exception("Unexpected error on {}", request.path)
    return jsonify({"message": "Internal server error"}), 500


api_bp.add_url_rule("/participants", view_func=ParticipantsView.as_view("participants"), methods=["GET"])
api_bp.add_url_rule("/check-result", view_func=CheckResultView.as_view("check_result"), methods=["POST"])
