import random

import pytest

from giftdraw import create_app
from giftdraw.extensions import db
from giftdraw.services import roster

FIVE = ["Anna", "Marek", "Kasia", "Piotr", "Zofia"]


@pytest.fixture
def app():
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite://",
        "LOG_LEVEL": "WARNING",
        "DRAW_RNG": random.Random(2025),
    })
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def runner(app):
    return app.test_cli_runner()


@pytest.fixture
def five(app):
    """Active event with the five default participants; Anna answers to 'Ania' too."""
    roster.create_event("Wigilia", 2025)
    people = {name: roster.add_participant(name) for name in FIVE}
    people["Anna"].alternative_names = ["Ania"]
    db.session.commit()
    return people
