"""
Shared fixtures for the ImpactLink test suite.

Every test gets a fresh application on an in-memory SQLite database with
CSRF disabled and outgoing mail suppressed. Users are created through the
public API so sessions behave exactly as they do for real clients.

Fixtures:
- `app`: the Flask application built by `create_app`.
- `client`: an anonymous test client.
- `make_user`: factory returning `(client, profile)` for a freshly
  registered, logged-in user (pass `profile_type=None` to skip the profile).
- `make_admin`: like `make_user`, with the `admin` role granted.
- `make_event`, `make_resource`, `make_topic`: insert rows directly.

Run all tests with:
    pytest -v
"""

import itertools
from datetime import timedelta

import pytest

from app import create_app
from extensions import db
from models import UserRole, Event, Resource, ForumTopic, utcnow


PROFILE_PAYLOADS = {
    "student": {
        "profile_type": "student",
        "name": "Maya Chen",
        "university": "University of Toronto",
        "major": "Social Work",
        "year": "Junior",
        "location": "Toronto, Canada",
        "bio": "Studying outcomes for youth aging out of foster care.",
        "interests": ["Foster Care", "Youth Homelessness"],
    },
    "researcher": {
        "profile_type": "researcher",
        "name": "Dr. Samuel Okafor",
        "title": "Associate Professor",
        "institution": "Boston University",
        "department": "School of Social Work",
        "location": "Boston, USA",
        "bio": "Longitudinal research on kinship care placements.",
        "interests": ["Kinship Care", "Foster Care"],
        "publications": 12,
    },
    "agency": {
        "profile_type": "agency",
        "name": "Child First International",
        "agency_type": "Nonprofit",
        "location": "Geneva, Switzerland",
        "bio": "Cross-border programmes for unaccompanied minors.",
        "focus_areas": ["Child Protection", "Foster Care"],
        "employees": "50-100",
        "founded": "1998",
        "website": "https://www.childfirst.org",
    },
}


@pytest.fixture
def app(tmp_path):
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
        "SQLALCHEMY_ENGINE_OPTIONS": {},
        "WTF_CSRF_ENABLED": False,
        "MAIL_SUPPRESS_SEND": True,
        "MAIL_DEFAULT_SENDER": "noreply@impactlink.org",
        "SUBMISSION_UPLOAD_FOLDER": str(tmp_path / "uploads"),
    })
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    counter = itertools.count(1)

    def _make(profile_type="student", email=None, **fields):
        n = next(counter)
        email = email or f"member{n}@impactlink.org"
        user_client = app.test_client()
        resp = user_client.post("/auth/register", json={
            "email": email,
            "password": "safe-password-1",
            "confirm_password": "safe-password-1",
        })
        assert resp.status_code == 201, resp.get_json()

        profile = None
        if profile_type:
            payload = dict(PROFILE_PAYLOADS[profile_type], email=email)
            payload.update(fields)
            resp = user_client.post("/profiles", json=payload)
            assert resp.status_code == 201, resp.get_json()
            profile = resp.get_json()["profile"]
        return user_client, profile

    return _make


@pytest.fixture
def make_admin(app, make_user):
    def _make(profile_type=None, **fields):
        admin_client, profile = make_user(profile_type, **fields)
        user_id = admin_client.get("/auth/me").get_json()["user"]["id"]
        with app.app_context():
            db.session.add(UserRole(user_id=user_id, role="admin"))
            db.session.commit()
        return admin_client, profile

    return _make


@pytest.fixture
def make_event(app):
    def _make(**fields):
        start = fields.pop("start_date", utcnow() + timedelta(days=30))
        data = {
            "title": "Trauma-Informed Practice",
            "description": "A half-day workshop for caseworkers.",
            "event_type": "workshop",
            "start_date": start,
            "end_date": start + timedelta(hours=3),
        }
        data.update(fields)
        with app.app_context():
            event = Event(**data)
            db.session.add(event)
            db.session.commit()
            return event.id

    return _make


@pytest.fixture
def make_resource(app):
    def _make(**fields):
        data = {
            "title": "Permanency Planning Toolkit",
            "description": "Templates and checklists for permanency planning.",
            "resource_type": "toolkit",
            "format": "pdf",
            "category": "Permanency",
        }
        data.update(fields)
        with app.app_context():
            resource = Resource(**data)
            db.session.add(resource)
            db.session.commit()
            return resource.id

    return _make


@pytest.fixture
def make_topic(app):
    def _make(name="Foster Care Research", **fields):
        with app.app_context():
            topic = ForumTopic(name=name, **fields)
            db.session.add(topic)
            db.session.commit()
            return topic.id

    return _make
