"""
Tests for collaboration requests and research questions.
"""


def test_request_then_accept_moves_to_connections(make_user):
    alice, alice_profile = make_user("student")
    bob, bob_profile = make_user("researcher")

    sent = alice.post("/collaborations", json={"recipient_id": bob_profile["id"], "message": "Let's talk"})
    assert sent.status_code == 201
    collab = sent.get_json()["collaboration"]
    assert collab["status"] == "pending"
    assert collab["requester"]["name"] == alice_profile["name"]

    incoming = bob.get("/collaborations").get_json()
    assert [c["id"] for c in incoming["incoming"]] == [collab["id"]]
    assert incoming["outgoing"] == []
    assert [c["id"] for c in alice.get("/collaborations").get_json()["outgoing"]] == [collab["id"]]

    accepted = bob.patch(f"/collaborations/{collab['id']}", json={"status": "accepted"})
    assert accepted.status_code == 200

    connections = alice.get("/collaborations").get_json()["connections"]
    assert [c["profile"]["id"] for c in connections] == [bob_profile["id"]]
    connections = bob.get("/collaborations").get_json()["connections"]
    assert [c["profile"]["id"] for c in connections] == [alice_profile["id"]]


def test_terminal_states_cannot_change(make_user):
    alice, _ = make_user("student")
    bob, bob_profile = make_user("researcher")
    collab_id = alice.post("/collaborations", json={"recipient_id": bob_profile["id"]}).get_json()["collaboration"]["id"]

    assert bob.patch(f"/collaborations/{collab_id}", json={"status": "declined"}).status_code == 200
    again = bob.patch(f"/collaborations/{collab_id}", json={"status": "accepted"})
    assert again.status_code == 409
    assert again.get_json()["collaboration"]["status"] == "declined"


def test_only_recipient_may_respond(make_user):
    alice, _ = make_user("student")
    _, bob_profile = make_user("researcher")
    carol, _ = make_user("agency")
    collab_id = alice.post("/collaborations", json={"recipient_id": bob_profile["id"]}).get_json()["collaboration"]["id"]

    assert alice.patch(f"/collaborations/{collab_id}", json={"status": "accepted"}).status_code == 403
    assert carol.patch(f"/collaborations/{collab_id}", json={"status": "accepted"}).status_code == 403


def test_duplicate_requests_are_refused_in_either_direction(make_user):
    alice, alice_profile = make_user("student")
    bob, bob_profile = make_user("researcher")

    assert alice.post("/collaborations", json={"recipient_id": bob_profile["id"]}).status_code == 201
    dup = alice.post("/collaborations", json={"recipient_id": bob_profile["id"]})
    assert dup.status_code == 409
    assert dup.get_json()["message"] == "You have already sent a request to this profile"
    assert bob.post("/collaborations", json={"recipient_id": alice_profile["id"]}).status_code == 409


def test_declined_pair_may_ask_again(make_user):
    alice, _ = make_user("student")
    bob, bob_profile = make_user("researcher")
    collab_id = alice.post("/collaborations", json={"recipient_id": bob_profile["id"]}).get_json()["collaboration"]["id"]
    bob.patch(f"/collaborations/{collab_id}", json={"status": "declined"})

    assert alice.post("/collaborations", json={"recipient_id": bob_profile["id"]}).status_code == 201


def test_self_and_missing_recipients(make_user):
    alice, alice_profile = make_user("student")
    assert alice.post("/collaborations", json={"recipient_id": alice_profile["id"]}).status_code == 400
    assert alice.post("/collaborations", json={"recipient_id": 987}).status_code == 404
    assert alice.post("/collaborations", json={}).status_code == 400


def test_collaborations_need_a_profile(make_user):
    no_profile, _ = make_user(profile_type=None)
    resp = no_profile.get("/collaborations")
    assert resp.status_code == 403
    assert resp.get_json()["redirect"] == "/create-profile"


QUESTION = {
    "title": "Placement stability and school outcomes",
    "description": "How does placement stability affect school attendance in kinship care?",
    "topics": "Kinship Care, Education",
    "regions": "Canada",
    "populations": "Adolescents",
}


def test_post_and_filter_research_questions(client, make_user):
    researcher, profile = make_user("researcher")
    resp = researcher.post("/research-questions", json=QUESTION)
    assert resp.status_code == 201
    question = resp.get_json()["research_question"]
    assert question["status"] == "open"
    assert question["author"]["institution"] == "Boston University"

    researcher.post("/research-questions", json=dict(QUESTION, topics="Adoption", title="Open adoption contact"))

    by_topic = client.get("/research-questions", query_string={"topic": "Education"}).get_json()
    assert [q["id"] for q in by_topic["research_questions"]] == [question["id"]]
    # an invalid status value is ignored
    assert client.get("/research-questions?status=bogus").get_json()["count"] == 2
    assert client.get("/research-questions?status=closed").get_json()["count"] == 0


def test_research_question_validation(make_user):
    researcher, _ = make_user("researcher")
    resp = researcher.post("/research-questions", json={"title": "Why", "description": "too short", "topics": ""})
    assert resp.status_code == 400
    assert set(resp.get_json()["errors"]) >= {"title", "description", "topics"}


def test_status_update_is_limited_to_author_or_admin(make_user, make_admin):
    author, _ = make_user("researcher")
    stranger, _ = make_user("student")
    admin, _ = make_admin()
    question_id = author.post("/research-questions", json=QUESTION).get_json()["research_question"]["id"]

    url = f"/research-questions/{question_id}/status"
    assert stranger.patch(url, json={"status": "closed"}).status_code == 403
    assert author.patch(url, json={"status": "in_progress"}).get_json()["research_question"]["status"] == "in_progress"
    assert admin.patch(url, json={"status": "completed"}).status_code == 200
    assert author.patch(url, json={"status": "finished"}).status_code == 400
