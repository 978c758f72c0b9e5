from __future__ import annotations

from flask_wtf import FlaskForm
from wtforms import StringField
from wtforms.validators import DataRequired, Length


def _clean_name(value):
    # JSON bodies can carry numbers, lists or null; only strings are names.
    if not isinstance(value, str):
        return None
    return value.strip()


class CheckResultForm(FlaskForm):
    """Body of ``POST /api/check-result``: ``{"name": "..."}``."""

    class Meta:
        csrf = False

    name = StringField(
        "name",
        filters=[_clean_name],
        validators=[DataRequired(message="Name is required"), Length(max=255)],
    )
