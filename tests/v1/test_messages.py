# tests/v1/test_messages.py
"""Tests for direct message endpoints."""

from fastapi import status
from sqlalchemy import select

from threadline.core.settings import settings
from threadline.models import Message, MessageStatus


def test_send_message(client, alice, bob, auth_headers, transport) -> None:
    """Sending a message returns it and pushes it to the receiver."""
    response = client.post(
        "/api/v1/messages/",
        json={"receiver_id": bob.id, "message": "hi bob"},
        headers={**auth_headers(alice), "X-Socket-ID": "111.222"},
    )

    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["sender_id"] == alice.id
    assert data["receiver_id"] == bob.id
    assert data["message"] == "hi bob"
    assert data["status"] == "sent"
    assert data["shared_post"] is None

    [event] = transport.named("message.created")
    assert event.channel == f"chat.{bob.id}"
    assert event.socket_id == "111.222"
    assert event.payload["message"]["id"] == data["id"]


def test_send_message_to_self(client, alice, auth_headers) -> None:
    """Messaging yourself is forbidden."""
    response = client.post(
        "/api/v1/messages/",
        json={"receiver_id": alice.id, "message": "me"},
        headers=auth_headers(alice),
    )

    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["detail"] == "Cannot send message to yourself"


def test_send_message_to_nonexistent_user(client, alice, auth_headers) -> None:
    """Unknown receivers are not found."""
    response = client.post(
        "/api/v1/messages/",
        json={"receiver_id": 999_999, "message": "hello?"},
        headers=auth_headers(alice),
    )

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert "Recipient not found" in response.json()["detail"]


def test_send_empty_message(client, alice, bob, auth_headers) -> None:
    """A message needs a body or an attachment."""
    response = client.post(
        "/api/v1/messages/",
        json={"receiver_id": bob.id, "message": ""},
        headers=auth_headers(alice),
    )

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_send_message_with_media(client, alice, bob, auth_headers) -> None:
    """Media-only messages are accepted."""
    response = client.post(
        "/api/v1/messages/",
        json={
            "receiver_id": bob.id,
            "images": ["https://cdn.example.com/a.png"],
            "videos": ["https://cdn.example.com/b.mp4"],
        },
        headers=auth_headers(alice),
    )

    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["message"] == ""
    assert data["images"] == ["https://cdn.example.com/a.png"]
    assert data["videos"] == ["https://cdn.example.com/b.mp4"]


def test_send_message_with_shared_post(client, alice, bob, carol, shared_post, auth_headers) -> None:
    """The response embeds the post snapshot."""
    response = client.post(
        "/api/v1/messages/",
        json={"receiver_id": bob.id, "shared_post_id": shared_post.id},
        headers=auth_headers(alice),
    )

    assert response.status_code == status.HTTP_201_CREATED
    snapshot = response.json()["shared_post"]
    assert snapshot["id"] == shared_post.id
    assert snapshot["user_name"] == carol.name
    assert snapshot["comments_count"] == 3


def test_send_requires_authentication(client, bob) -> None:
    """Anonymous callers are rejected."""
    response = client.post("/api/v1/messages/", json={"receiver_id": bob.id, "message": "x"})

    assert response.status_code in {status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN}


def test_invalid_token_is_rejected(client, bob) -> None:
    """Tokens that do not verify are rejected."""
    response = client.get(
        "/api/v1/messages/conversations",
        headers={"Authorization": "Bearer not-a-real-token"},
    )

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json()["detail"] == "Could not validate credentials"


def test_get_conversations(client, ledger, alice, bob, carol, auth_headers) -> None:
    """Conversations are listed most recent first with unread counts."""
    ledger.send(bob.id, alice.id, "from bob")
    ledger.send(carol.id, alice.id, "from carol 1")
    ledger.send(carol.id, alice.id, "from carol 2")

    response = client.get("/api/v1/messages/conversations", headers=auth_headers(alice))

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert [row["user"]["id"] for row in data] == [carol.id, bob.id]
    assert data[0]["last_message"] == "from carol 2"
    assert data[0]["unread_count"] == 2
    assert data[0]["is_read"] is False
    assert data[1]["unread_count"] == 1


def test_get_contacts(client, alice, bob, carol, auth_headers) -> None:
    """Contacts list everyone but the caller."""
    response = client.get("/api/v1/messages/contacts", headers=auth_headers(bob))

    assert response.status_code == status.HTTP_200_OK
    assert [row["id"] for row in response.json()] == [alice.id, carol.id]


def test_get_thread_marks_read_without_receipts(
    client, ledger, db_session, transport, alice, bob, auth_headers
) -> None:
    """Opening a thread reads it silently."""
    first = ledger.send(bob.id, alice.id, "one")
    second = ledger.send(alice.id, bob.id, "two")
    transport.published.clear()

    response = client.get(f"/api/v1/messages/thread/{bob.id}", headers=auth_headers(alice))

    assert response.status_code == status.HTTP_200_OK
    assert [row["id"] for row in response.json()] == [first.id, second.id]
    status_of_first = db_session.scalar(select(Message.status).where(Message.id == first.id))
    assert status_of_first == MessageStatus.READ
    assert transport.named("message.read") == []


def test_get_thread_with_self(client, alice, auth_headers) -> None:
    """There is no thread with yourself."""
    response = client.get(f"/api/v1/messages/thread/{alice.id}", headers=auth_headers(alice))

    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["detail"] == "Cannot chat with yourself"


def test_get_thread_with_unknown_user(client, alice, auth_headers) -> None:
    """Unknown partners are not found."""
    response = client.get("/api/v1/messages/thread/424242", headers=auth_headers(alice))

    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_mark_thread_read(client, ledger, transport, alice, bob, auth_headers) -> None:
    """Explicit reads send one receipt per message to the sender."""
    sent = [ledger.send(bob.id, alice.id, text) for text in ("a", "b")]
    transport.published.clear()

    response = client.post(f"/api/v1/messages/thread/{bob.id}/read", headers=auth_headers(alice))

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"updated": 2}
    receipts = transport.named("message.read")
    assert [receipt.payload["message_id"] for receipt in receipts] == [m.id for m in sent]
    assert {receipt.channel for receipt in receipts} == {f"chat.{bob.id}"}

    again = client.post(f"/api/v1/messages/thread/{bob.id}/read", headers=auth_headers(alice))

    assert again.json() == {"updated": 0}
    assert len(transport.named("message.read")) == 2


def test_share_post(client, alice, bob, carol, shared_post, auth_headers) -> None:
    """Sharing sends one message per target and skips the sharer."""
    response = client.post(
        "/api/v1/messages/share",
        json={"post_id": shared_post.id, "user_ids": [bob.id, carol.id, alice.id]},
        headers=auth_headers(alice),
    )

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["success"] is True
    assert data["shared_count"] == 2
    assert data["message"] == "Post shared successfully with 2 users!"
    assert [row["receiver_id"] for row in data["messages"]] == [bob.id, carol.id]
    assert data["failures"] == []


def test_share_post_only_with_self(client, alice, shared_post, auth_headers) -> None:
    """Sharing with nobody but yourself succeeds without writing anything."""
    response = client.post(
        "/api/v1/messages/share",
        json={"post_id": shared_post.id, "user_ids": [alice.id]},
        headers=auth_headers(alice),
    )

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["success"] is True
    assert data["shared_count"] == 0
    assert data["message"] == "No posts were shared."


def test_share_post_reports_failures(client, alice, bob, shared_post, auth_headers) -> None:
    """Unknown targets are reported while the others still receive the post."""
    response = client.post(
        "/api/v1/messages/share",
        json={"post_id": shared_post.id, "user_ids": [bob.id, 888_888]},
        headers=auth_headers(alice),
    )

    data = response.json()
    assert data["shared_count"] == 1
    assert data["failures"] == [{"user_id": 888_888, "error": "Recipient not found"}]


def test_share_unknown_post(client, alice, bob, auth_headers) -> None:
    """Sharing a missing post is not found."""
    response = client.post(
        "/api/v1/messages/share",
        json={"post_id": 31_337, "user_ids": [bob.id]},
        headers=auth_headers(alice),
    )

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["detail"] == "Post not found"


def test_share_post_with_oversized_note(
    client, ledger, transport, alice, bob, shared_post, auth_headers
) -> None:
    """A note over the length limit is malformed and nothing is sent."""
    response = client.post(
        "/api/v1/messages/share",
        json={
            "post_id": shared_post.id,
            "user_ids": [bob.id],
            "message": "x" * (settings.message_max_length + 1),
        },
        headers=auth_headers(alice),
    )

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert "exceeds" in response.json()["detail"]
    assert ledger.read_thread(alice.id, bob.id) == []
    assert transport.published == []


def test_share_requires_targets(client, alice, shared_post, auth_headers) -> None:
    """An empty target list is malformed."""
    response = client.post(
        "/api/v1/messages/share",
        json={"post_id": shared_post.id, "user_ids": []},
        headers=auth_headers(alice),
    )

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_delete_own_message(client, ledger, alice, bob, auth_headers) -> None:
    """Senders can delete their messages."""
    message = ledger.send(alice.id, bob.id, "delete me")

    response = client.delete(f"/api/v1/messages/{message.id}", headers=auth_headers(alice))

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"deleted": True}
    assert ledger.read_thread(alice.id, bob.id) == []


def test_delete_received_message_is_forbidden(client, ledger, alice, bob, auth_headers) -> None:
    """Receivers cannot delete messages."""
    message = ledger.send(alice.id, bob.id, "mine")

    response = client.delete(f"/api/v1/messages/{message.id}", headers=auth_headers(bob))

    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["detail"] == "Unauthorized"


def test_delete_missing_message(client, alice, auth_headers) -> None:
    """Deleting an unknown message is not found."""
    response = client.delete("/api/v1/messages/99999", headers=auth_headers(alice))

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["detail"] == "Message not found"
