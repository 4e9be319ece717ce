"""
Tests for event listing and the registration rules.
"""

from datetime import datetime, timedelta

from models import EventRegistration, utcnow


def test_registration_after_deadline_is_closed(app, make_user, make_event):
    user, _ = make_user("student")
    event_id = make_event(registration_deadline=datetime(2020, 1, 1))

    resp = user.post(f"/events/{event_id}/register")
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Registration Closed"
    with app.app_context():
        assert EventRegistration.query.count() == 0


def test_started_event_without_deadline_is_closed(make_user, make_event):
    user, _ = make_user("student")
    event_id = make_event(start_date=utcnow() - timedelta(hours=1))

    assert user.post(f"/events/{event_id}/register").status_code == 400


def test_register_once_then_duplicate_conflicts(make_user, make_event):
    user, _ = make_user("student")
    event_id = make_event()

    first = user.post(f"/events/{event_id}/register")
    assert first.status_code == 201
    assert first.get_json()["registration"]["event"]["is_registered"] is True
    assert user.post(f"/events/{event_id}/register").status_code == 409


def test_capacity_is_enforced(make_user, make_event):
    first, _ = make_user("student")
    second, _ = make_user("researcher")
    event_id = make_event(max_attendees=1)

    assert first.post(f"/events/{event_id}/register").status_code == 201
    full = second.post(f"/events/{event_id}/register")
    assert full.status_code == 409
    assert full.get_json()["message"] == "Event is full"

    event = second.get(f"/events/{event_id}").get_json()["event"]
    assert event["registration_status"] == "full"
    assert event["spots_left"] == 0
    assert event["is_registered"] is False


def test_cancel_registration_only_before_start(app, make_user, make_event):
    user, _ = make_user("student")
    event_id = make_event()
    user.post(f"/events/{event_id}/register")

    assert user.delete(f"/events/{event_id}/register").status_code == 200
    assert user.get("/events/my-registrations").get_json()["registrations"] == []
    assert user.delete(f"/events/{event_id}/register").status_code == 404


def test_listing_filters_and_counts(client, make_user, make_event):
    soon = utcnow() + timedelta(days=2)
    workshop = make_event(start_date=soon + timedelta(days=1), featured=True)
    webinar = make_event(title="Data Ethics Webinar", event_type="webinar", start_date=soon)
    make_event(title="Past Conference", event_type="conference", start_date=utcnow() - timedelta(days=30))

    user, _ = make_user("student")
    user.post(f"/events/{workshop}/register")

    events = client.get("/events?upcoming=true").get_json()["events"]
    assert [e["id"] for e in events] == [webinar, workshop]
    assert events[1]["registration_count"] == 1

    assert [e["id"] for e in client.get("/events?type=webinar").get_json()["events"]] == [webinar]
    assert [e["id"] for e in client.get("/events?featured=true").get_json()["events"]] == [workshop]
    assert len(client.get("/events?type=all").get_json()["events"]) == 3


def test_calendar_month(client, make_event):
    march = make_event(start_date=datetime(2031, 3, 15, 10, 0))
    make_event(start_date=datetime(2031, 4, 1, 10, 0))

    data = client.get("/events/calendar/2031/3").get_json()
    assert [e["id"] for e in data["events"]] == [march]
    assert client.get("/events/calendar/2031/13").status_code == 400


def test_registration_requires_login(client, make_event):
    event_id = make_event()
    assert client.post(f"/events/{event_id}/register").status_code == 401
    assert client.post("/events/999/register").status_code == 401


def test_calendar_rejects_out_of_range_years(client):
    assert client.get("/events/calendar/0/1").status_code == 400
    assert client.get("/events/calendar/9999/12").status_code == 400
    assert client.get("/events/calendar/9998/12").status_code == 200
