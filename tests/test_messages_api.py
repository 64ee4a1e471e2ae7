import pytest
from starlette.websockets import WebSocketDisconnect

from sportlink.core.realtime import message_feed


@pytest.fixture
def people(seed_user):
    seed_user("u1", "athlete", firstName="Ava", lastName="Reed")
    seed_user("c1", "coach", firstName="John", lastName="Smith", coachProfile={"sports": ["soccer"]})
    seed_user("t1", "team", teamProfile={"teamName": "Rays"})


def _send(client, headers, receiver_id, content, **extra):
    return client.post("/api/messages", headers=headers, json={"receiverId": receiver_id, "content": content, **extra})


# -------- Sending --------


def test_send_message_denormalizes_names_and_roles(client, auth_headers, people):
    response = _send(client, auth_headers("u1"), "c1", "  Hi coach  ")

    assert response.status_code == 201
    body = response.json()
    assert body["content"] == "Hi coach"
    assert body["conversationId"] == "c1_u1"
    assert body["participants"] == ["u1", "c1"]
    assert body["senderName"] == "Ava Reed"
    assert body["senderRole"] == "athlete"
    assert body["receiverName"] == "John Smith"
    assert body["receiverRole"] == "coach"
    assert body["timestamp"] is not None


def test_sender_role_defaults_to_athlete_without_document(client, auth_headers, people):
    body = _send(client, auth_headers("new-user", name="Nia"), "c1", "hello").json()

    assert body["senderRole"] == "athlete"
    assert body["senderName"] == "Nia"


def test_cannot_message_yourself(client, auth_headers, people):
    response = _send(client, auth_headers("u1"), "u1", "hi me")

    assert response.status_code == 400


def test_unknown_recipient_is_404(client, auth_headers, people):
    response = _send(client, auth_headers("u1"), "nobody", "hello?")

    assert response.status_code == 404
    assert response.json()["detail"] == "Recipient not found"


def test_explicit_receiver_role_allows_missing_document(client, auth_headers, people):
    response = _send(client, auth_headers("u1"), "l9", "hi", receiverRole="league", receiverName="Metro League")

    assert response.status_code == 201
    assert response.json()["receiverName"] == "Metro League"


def test_blank_content_is_rejected(client, auth_headers, people):
    response = _send(client, auth_headers("u1"), "c1", "   ")

    assert response.status_code == 422


# -------- Inbox --------


def test_conversations_listed_newest_first(client, auth_headers, people):
    _send(client, auth_headers("u1"), "c1", "first")
    _send(client, auth_headers("t1", "team"), "u1", "tryouts friday")

    response = client.get("/api/messages/conversations", headers=auth_headers("u1"))

    assert response.status_code == 200
    conversations = response.json()
    assert [c["id"] for c in conversations] == ["t1_u1", "c1_u1"]
    assert conversations[0]["otherParty"] == {"id": "t1", "name": "Rays", "role": "team"}
    assert conversations[0]["latestMessage"]["content"] == "tryouts friday"
    assert conversations[1]["otherParty"]["name"] == "John Smith"


def test_both_sides_share_one_conversation(client, auth_headers, people):
    _send(client, auth_headers("u1"), "c1", "hello")
    _send(client, auth_headers("c1", "coach"), "u1", "welcome")

    coach_view = client.get("/api/messages/conversations", headers=auth_headers("c1", "coach")).json()

    assert len(coach_view) == 1
    assert [m["content"] for m in coach_view[0]["messages"]] == ["hello", "welcome"]
    assert coach_view[0]["otherParty"]["name"] == "Ava Reed"


def test_reply_goes_to_other_party_in_same_conversation(client, auth_headers, people):
    _send(client, auth_headers("c1", "coach"), "u1", "practice moved")

    response = client.post(
        "/api/messages/conversations/c1_u1/messages",
        headers=auth_headers("u1"),
        json={"content": "thanks!"},
    )

    assert response.status_code == 201
    assert response.json()["receiverId"] == "c1"
    assert response.json()["conversationId"] == "c1_u1"

    conversation = client.get("/api/messages/conversations/c1_u1", headers=auth_headers("u1")).json()
    assert [m["content"] for m in conversation["messages"]] == ["practice moved", "thanks!"]


def test_outsider_cannot_read_or_reply(client, auth_headers, people):
    _send(client, auth_headers("u1"), "c1", "private")

    assert client.get("/api/messages/conversations/c1_u1", headers=auth_headers("t1", "team")).status_code == 404
    reply = client.post(
        "/api/messages/conversations/c1_u1/messages",
        headers=auth_headers("t1", "team"),
        json={"content": "let me in"},
    )
    assert reply.status_code == 404


# -------- Live inbox --------


def test_socket_pushes_snapshot_then_updates(client, auth_headers, token_for, people):
    _send(client, auth_headers("c1", "coach"), "u1", "welcome")

    with client.websocket_connect(f"/api/messages/ws?token={token_for('u1')}") as websocket:
        initial = websocket.receive_json()
        assert [c["id"] for c in initial] == ["c1_u1"]

        _send(client, auth_headers("t1", "team"), "u1", "tryouts")

        updated = websocket.receive_json()
        assert [c["id"] for c in updated] == ["t1_u1", "c1_u1"]

    assert message_feed.subscriber_count("u1") == 0


@pytest.mark.parametrize("query", ["", "?token=garbage"])
def test_socket_rejects_missing_or_invalid_token(client, query):
    with pytest.raises(WebSocketDisconnect) as excinfo:
        with client.websocket_connect(f"/api/messages/ws{query}"):
            pass

    assert excinfo.value.code == 1008
