"""
Shared fixtures.

Every test gets a fresh app on an in-memory SQLite database. No app context
stays pushed while requests run, so flask-login never reuses a user across
requests; factories open their own context and return ids.
"""

import itertools
from datetime import datetime, timedelta, timezone

import pytest

from fantaschedina import create_app, db
from fantaschedina.models import Match, Prediction, User

PIN = "1234"


def utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


@pytest.fixture
def app():
    app = create_app("testing")
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    def _make(username, pin=PIN, is_admin=False):
        with app.app_context():
            return User.create(username, pin, is_admin=is_admin).id

    return _make


@pytest.fixture
def make_match(app):
    counter = itertools.count(1)

    def _make(match_day=1, starts_in=timedelta(days=2), home=None, away=None):
        n = next(counter)
        with app.app_context():
            match = Match.create(
                home or f"Casa {n}",
                away or f"Ospite {n}",
                utcnow() + starts_in,
                match_day,
            )
            db.session.commit()
            return match.id

    return _make


@pytest.fixture
def make_prediction(app):
    """Insert a prediction directly, skipping lock and match day rules"""

    def _make(user_id, match_id, outcome, credits=1):
        with app.app_context():
            prediction = Prediction(
                user_id=user_id, match_id=match_id, prediction=outcome, credits=credits
            )
            db.session.add(prediction)
            db.session.commit()
            return prediction.id

    return _make


@pytest.fixture
def set_result(app):
    def _set(match_id, result):
        with app.app_context():
            db.session.get(Match, match_id).set_result(result)
            db.session.commit()

    return _set


@pytest.fixture
def login():
    def _login(client, username, pin=PIN):
        response = client.post("/api/login", json={"username": username, "pin": pin})
        assert response.status_code == 200, response.get_json()
        return client

    return _login


@pytest.fixture
def player(make_user):
    return make_user("alpha")


@pytest.fixture
def admin(make_user):
    return make_user("admin", pin="9999", is_admin=True)


@pytest.fixture
def player_client(app, player, login):
    return login(app.test_client(), "alpha")


@pytest.fixture
def admin_client(app, admin, login):
    return login(app.test_client(), "admin", pin="9999")
