"""
Tests for the resource library and bookmarks.
"""

from datetime import timedelta

from models import utcnow


def test_bookmark_toggle_round_trip(make_user, make_resource):
    user, _ = make_user("student")
    resource_id = make_resource()

    before = user.get("/bookmarks").get_json()["bookmarks"]

    on = user.post(f"/bookmarks/{resource_id}").get_json()
    assert on["bookmarked"] is True
    assert user.get(f"/bookmarks/status/{resource_id}").get_json()["bookmarked"] is True
    assert user.get("/bookmarks/count").get_json()["count"] == 1

    off = user.post(f"/bookmarks/{resource_id}").get_json()
    assert off["bookmarked"] is False
    assert user.get("/bookmarks").get_json()["bookmarks"] == before


def test_bookmarks_are_per_user(make_user, make_resource):
    first, _ = make_user("student")
    second, _ = make_user("agency")
    resource_id = make_resource()

    first.post(f"/bookmarks/{resource_id}")
    assert second.get(f"/bookmarks/status/{resource_id}").get_json()["bookmarked"] is False


def test_clear_bookmarks(make_user, make_resource):
    user, _ = make_user("student")
    for title in ("One", "Two"):
        user.post(f"/bookmarks/{make_resource(title=title)}")

    cleared = user.post("/bookmarks/clear").get_json()
    assert cleared["count"] == 2
    assert user.get("/bookmarks/count").get_json()["count"] == 0


def test_bookmark_missing_resource(make_user):
    user, _ = make_user("student")
    assert user.post("/bookmarks/404").status_code == 404


def test_listing_puts_featured_first(app, client, make_resource):
    older_featured = make_resource(title="Featured Guide", featured=True, created_at=utcnow() - timedelta(days=5))
    newest = make_resource(title="New Reading", resource_type="reading", format="article", category="Policy")
    middle = make_resource(title="Middle Toolkit", created_at=utcnow() - timedelta(days=1))

    ids = [r["id"] for r in client.get("/resources").get_json()["resources"]]
    assert ids == [older_featured, newest, middle]

    readings = client.get("/resources?type=reading").get_json()["resources"]
    assert [r["id"] for r in readings] == [newest]
    assert [r["id"] for r in client.get("/resources?category=Policy").get_json()["resources"]] == [newest]


def test_view_counter_and_categories(client, make_resource):
    resource_id = make_resource()
    make_resource(title="Second", category="Permanency")
    make_resource(title="Third", category="Trauma")

    assert client.post(f"/resources/{resource_id}/view").get_json()["view_count"] == 1
    assert client.post(f"/resources/{resource_id}/view").get_json()["view_count"] == 2

    categories = client.get("/resources/categories/toolkit").get_json()["categories"]
    assert categories == [{"name": "Permanency", "count": 2}, {"name": "Trauma", "count": 1}]
    assert client.get("/resources/categories/podcast").status_code == 404
