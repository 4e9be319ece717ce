"""
Tests for forum topics, posts and replies.
"""


POST = {
    "title": "Finding kinship care datasets",
    "content": "Does anyone know of open datasets on kinship placements?",
}


def test_post_and_reply_counters_follow_the_rows(client, make_user, make_topic):
    topic_id = make_topic()
    author, _ = make_user("researcher")
    replier, _ = make_user("student")

    post = author.post("/forums/posts", json=dict(POST, topic_id=topic_id)).get_json()["post"]
    assert post["reply_count"] == 0
    assert post["topic"]["post_count"] == 1

    for text in ("First reply here", "Second reply here"):
        assert replier.post(f"/forums/posts/{post['id']}/replies", json={"content": text}).status_code == 201

    replies = client.get(f"/forums/posts/{post['id']}/replies").get_json()["replies"]
    assert [r["content"] for r in replies] == ["First reply here", "Second reply here"]
    assert client.get(f"/forums/posts/{post['id']}").get_json()["post"]["reply_count"] == 2

    topics = client.get("/forums/topics").get_json()["topics"]
    assert topics[0]["post_count"] == 1


def test_posts_filter_by_topic(client, make_user, make_topic):
    first = make_topic("Adoption")
    second = make_topic("Policy")
    author, _ = make_user("researcher")
    author.post("/forums/posts", json=dict(POST, topic_id=first))
    author.post("/forums/posts", json=dict(POST, topic_id=second, title="Policy changes in 2025"))

    posts = client.get(f"/forums/posts?topic_id={second}").get_json()["posts"]
    assert [p["title"] for p in posts] == ["Policy changes in 2025"]
    assert len(client.get("/forums/posts").get_json()["posts"]) == 2

    names = [t["name"] for t in client.get("/forums/topics").get_json()["topics"]]
    assert names == ["Adoption", "Policy"]


def test_posting_needs_an_existing_topic_and_a_profile(make_user):
    author, _ = make_user("researcher")
    resp = author.post("/forums/posts", json=dict(POST, topic_id=31))
    assert resp.status_code == 400
    assert "topic_id" in resp.get_json()["errors"]

    no_profile, _ = make_user(profile_type=None)
    assert no_profile.post("/forums/posts", json=dict(POST, topic_id=1)).status_code == 403


def test_reply_to_missing_post(make_user):
    author, _ = make_user("researcher")
    assert author.post("/forums/posts/77/replies", json={"content": "hello"}).status_code == 404
