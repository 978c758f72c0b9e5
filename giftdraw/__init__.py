from __future__ import annotations

import os
from flask import Flask
from loguru import logger

from .extensions import db, migrate
from .logging import setup_logging
from .repository import SantaRepository
from .services.draw import DEFAULT_MAX_ATTEMPTS
from .services.results import DrawService
from .views.api import api_bp
from .views.public import public_bp
from .cli import santa_cli


def _positive_int(value, name: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    if number < 1:
        raise ValueError(f"{name} must be at least 1, got {number}")
    return number


def create_app(test_config: dict | None = None) -> Flask:
    app = Flask(__name__)

    app.config["SECRET_KEY"] = os.environ.get("SECRET_KEY", "dev-secret-change-me")
    app.config["SQLALCHEMY_DATABASE_URI"] = os.environ.get("DATABASE_URL", "sqlite:///giftdraw.db")
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False

    # Shuffles tried before a draw is declared infeasible
    app.config["DRAW_MAX_ATTEMPTS"] = os.environ.get("DRAW_MAX_ATTEMPTS", DEFAULT_MAX_ATTEMPTS)
    app.config["LOG_LEVEL"] = os.environ.get("LOG_LEVEL", "INFO")
    app.config["LOG_PATH"] = os.environ.get("LOG_PATH") or None

    if test_config:
        app.config.update(test_config)

    app.config["DRAW_MAX_ATTEMPTS"] = _positive_int(app.config["DRAW_MAX_ATTEMPTS"], "DRAW_MAX_ATTEMPTS")
    setup_logging(app.config["LOG_LEVEL"], app.config["LOG_PATH"])

    db.init_app(app)
    migrate.init_app(app, db)

    # One repository and draw service per app; views reach them via app.extensions.
    repository = SantaRepository(db.session)
    app.extensions["giftdraw"] = {
        "repository": repository,
        "draw_service": DrawService(
            repository,
            max_attempts=app.config["DRAW_MAX_ATTEMPTS"],
            rng=app.config.get("DRAW_RNG"),
        ),
    }

    # Blueprints
    app.register_blueprint(public_bp)
    app.register_blueprint(api_bp)

    app.cli.add_command(santa_cli)

    logger.debug("giftdraw app created (database {})", app.config["SQLALCHEMY_DATABASE_URI"])
    return app
