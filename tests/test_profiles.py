"""
Tests for registration, login and the profile store.
"""

from extensions import db, mail
from models import Profile, Collaboration, ContactMessage


def test_register_login_and_session(client):
    resp = client.post("/auth/register", json={
        "email": "Ana@Uni.edu",
        "password": "safe-password-1",
        "confirm_password": "safe-password-1",
    })
    assert resp.status_code == 201
    assert resp.get_json()["user"]["email"] == "ana@uni.edu"

    client.post("/auth/logout")
    assert client.get("/auth/me").status_code == 401

    bad = client.post("/auth/login", json={"email": "ana@uni.edu", "password": "wrong-password"})
    assert bad.status_code == 401
    assert bad.get_json()["success"] is False

    ok = client.post("/auth/login", json={"email": "ana@uni.edu", "password": "safe-password-1"})
    assert ok.status_code == 200
    me = client.get("/auth/me").get_json()
    assert me["profile"] is None
    assert me["is_admin"] is False


def test_duplicate_email_is_rejected(client, make_user):
    make_user(profile_type=None, email="taken@uni.edu")
    resp = client.post("/auth/register", json={
        "email": "taken@uni.edu",
        "password": "safe-password-1",
        "confirm_password": "safe-password-1",
    })
    assert resp.status_code == 400
    assert "email" in resp.get_json()["errors"]


def test_create_profile_requires_login(client):
    resp = client.post("/profiles", json={"profile_type": "student"})
    assert resp.status_code == 401
    assert resp.get_json() == {"success": False, "message": "Please log in to access this page."}


def test_each_profile_type_can_be_created(make_user):
    for profile_type in ("student", "researcher", "agency"):
        _, profile = make_user(profile_type)
        assert profile["profile_type"] == profile_type

    _, researcher = make_user("researcher")
    assert researcher["publications"] == 12
    _, agency = make_user("agency")
    assert agency["focus_areas"] == ["Child Protection", "Foster Care"]


def test_second_profile_is_refused_with_redirect(app, make_user):
    user, profile = make_user("student")
    resp = user.post("/profiles", json={"profile_type": "researcher", "name": "Again"})

    assert resp.status_code == 409
    data = resp.get_json()
    assert data["redirect"] == "/directory"
    assert data["profile_id"] == profile["id"]
    with app.app_context():
        assert Profile.query.count() == 1


def test_invalid_fields_are_reported_per_field(make_user):
    user, _ = make_user(profile_type=None)
    resp = user.post("/profiles", json={
        "profile_type": "student",
        "name": "A",
        "email": "not-an-email",
        "bio": "short",
        "interests": [],
    })
    assert resp.status_code == 400
    errors = resp.get_json()["errors"]
    for field in ("name", "email", "university", "bio", "interests"):
        assert field in errors


def test_unknown_profile_type_is_rejected(make_user):
    user, _ = make_user(profile_type=None)
    resp = user.post("/profiles", json={"profile_type": "volunteer"})
    assert resp.status_code == 400
    assert "profile_type" in resp.get_json()["errors"]


def test_agency_founded_must_be_a_year(make_user):
    user, _ = make_user(profile_type=None)
    payload = {
        "profile_type": "agency", "name": "Kids Org", "email": "k@impactlink.org",
        "agency_type": "Government", "location": "Ottawa, Canada",
        "bio": "Provincial child services.", "focus_areas": "Adoption",
        "employees": "10", "founded": "nineteen",
    }
    resp = user.post("/profiles", json=payload)
    assert resp.status_code == 400
    assert "founded" in resp.get_json()["errors"]


def test_update_keeps_profile_type(make_user):
    user, profile = make_user("student")
    payload = {
        "name": "Maya Chen-Li", "email": profile["email"], "university": "McGill University",
        "major": "Social Work", "year": "Senior", "location": "Montreal, Canada",
        "bio": "Studying outcomes for youth aging out of foster care.",
        "interests": "Foster Care, Education",
    }
    resp = user.put(f"/profiles/{profile['id']}", json=payload)
    assert resp.status_code == 200
    assert resp.get_json()["profile"]["interests"] == ["Foster Care", "Education"]

    changed = user.put(f"/profiles/{profile['id']}", json=dict(payload, profile_type="agency"))
    assert changed.status_code == 400
    assert user.get("/profiles/me").get_json()["profile"]["profile_type"] == "student"


def test_only_owner_can_edit_or_delete(make_user):
    _, profile = make_user("student")
    other, _ = make_user("researcher")

    assert other.put(f"/profiles/{profile['id']}", json={}).status_code == 403
    assert other.delete(f"/profiles/{profile['id']}").status_code == 403


def test_delete_profile_cascades(app, make_user):
    user, profile = make_user("student")
    other, other_profile = make_user("researcher")
    other.post("/collaborations", json={"recipient_id": profile["id"]})

    resp = user.delete(f"/profiles/{profile['id']}")
    assert resp.status_code == 200

    with app.app_context():
        assert db.session.get(Profile, profile["id"]) is None
        assert Collaboration.query.count() == 0
        assert db.session.get(Profile, other_profile["id"]) is not None


def test_profile_listing_and_lookup(client, make_user):
    _, first = make_user("student")
    _, second = make_user("agency")

    listing = client.get("/profiles").get_json()["profiles"]
    assert {p["id"] for p in listing} == {first["id"], second["id"]}
    assert client.get(f"/profiles/{first['id']}").get_json()["profile"]["name"] == "Maya Chen"
    assert client.get("/profiles/4040").status_code == 404


def test_contact_message_is_stored_and_mailed(app, client, make_user):
    _, profile = make_user("researcher")

    with mail.record_messages() as outbox:
        resp = client.post(f"/profiles/{profile['id']}/contact", json={
            "name": "Jordan Reyes",
            "email": "jordan@agency.org",
            "subject": "Data partnership",
            "message": "We would like to share anonymised placement data with you.",
        })

    assert resp.status_code == 200
    assert resp.get_json()["email_sent"] is True
    assert len(outbox) == 1
    assert outbox[0].recipients == [profile["email"]]
    with app.app_context():
        assert ContactMessage.query.filter_by(recipient_profile_id=profile["id"]).count() == 1


def test_contact_message_too_short(client, make_user):
    _, profile = make_user("researcher")
    resp = client.post(f"/profiles/{profile['id']}/contact", json={
        "name": "Jordan", "email": "jordan@agency.org", "subject": "Hi", "message": "Hi",
    })
    assert resp.status_code == 400
    assert "message" in resp.get_json()["errors"]


def test_admin_can_edit_another_users_profile(client, make_user, make_admin):
    _, profile = make_user("researcher")
    admin, _ = make_admin()
    payload = {
        "name": "Dr. Samuel Okafor", "email": profile["email"], "title": "Professor",
        "institution": "Boston University", "department": "School of Social Work",
        "location": "Boston, USA", "bio": "Longitudinal research on kinship care placements.",
        "interests": "Kinship Care",
    }

    resp = admin.put(f"/profiles/{profile['id']}", json=payload)
    assert resp.status_code == 200
    assert client.get(f"/profiles/{profile['id']}").get_json()["profile"]["title"] == "Professor"


def test_admin_deletes_profiles_through_admin_route(make_user, make_admin):
    _, profile = make_user("student")
    admin, _ = make_admin()

    assert admin.delete(f"/profiles/{profile['id']}").status_code == 403
    assert admin.delete(f"/admin/profiles/{profile['id']}?confirm=true").status_code == 200
