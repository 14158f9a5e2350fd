"""
Tests for the /ws channel: token-bound registration and newMail pushes.
"""

import pytest
from starlette.websockets import WebSocketDisconnect

from tests.conftest import folder, send_mail
from xmail.services.presence import presence


def register_socket(ws, user):
    ws.send_json({"type": "registerUser", "token": user["accessToken"]})
    message = ws.receive_json()
    assert message["type"] == "registered"
    return message


class TestRegistration:

    def test_register_with_token(self, client, bob):
        with client.websocket_connect("/ws") as ws:
            message = register_socket(ws, bob)

            assert message["userId"] == "bob@xmail.com"
            assert message["connectionId"]
            assert "bob@xmail.com" in presence

        assert "bob@xmail.com" not in presence

    def test_token_in_query_string(self, client, bob):
        with client.websocket_connect(f"/ws?token={bob['accessToken']}") as ws:
            ws.send_json({"type": "registerUser"})
            assert ws.receive_json()["userId"] == "bob@xmail.com"

    def test_user_id_in_message_is_ignored(self, client, alice, bob):
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"type": "registerUser", "token": alice["accessToken"], "userId": "bob@xmail.com"})
            assert ws.receive_json()["userId"] == "alice@xmail.com"
            assert "bob@xmail.com" not in presence

    @pytest.mark.parametrize("message", [
        {"type": "registerUser", "userId": "bob@xmail.com"},
        {"type": "registerUser", "userId": "bob@xmail.com", "token": "junk"},
    ])
    def test_registration_without_valid_token_closes_socket(self, client, bob, message):
        with client.websocket_connect("/ws") as ws:
            ws.send_json(message)
            with pytest.raises(WebSocketDisconnect) as exc:
                ws.receive_json()

        assert exc.value.code == 1008
        assert len(presence) == 0

    def test_refresh_token_is_not_accepted(self, client, bob):
        with client.websocket_connect("/ws") as ws:
            ws.send_json({"type": "registerUser", "token": bob["refreshToken"]})
            with pytest.raises(WebSocketDisconnect):
                ws.receive_json()

        assert "bob@xmail.com" not in presence

    def test_ping_and_garbage(self, client):
        with client.websocket_connect("/ws") as ws:
            ws.send_text("not json")
            ws.send_json({"type": "ping"})
            assert ws.receive_json() == {"type": "pong"}


class TestNewMailPush:

    def test_compose_pushes_to_online_recipient(self, client, alice, bob):
        with client.websocket_connect("/ws") as ws:
            register_socket(ws, bob)

            response = send_mail(client, alice, "bob@xmail.com", "Payroll", "your salary is ready")
            assert response.status_code == 201

            event = ws.receive_json()

        inbox_copy = folder(client, bob, "inbox")[0]
        assert event["type"] == "newMail"
        assert event["mail"]["id"] == inbox_copy["id"]
        assert event["mail"]["from"] == "alice@xmail.com"
        assert event["mail"]["subject"] == "Payroll"
        assert event["mail"]["preview"] == "your salary is ready"

    def test_reply_pushes_to_original_sender(self, client, alice, bob):
        send_mail(client, alice, "bob@xmail.com", "Plan", "Friday?")
        original_id = folder(client, bob, "inbox")[0]["id"]

        with client.websocket_connect("/ws") as ws:
            register_socket(ws, alice)

            response = client.post(
                f"/api/v1/mail/reply/{original_id}",
                data={"replyText": "Works for me"},
                headers=bob["headers"],
            )
            assert response.status_code == 200

            event = ws.receive_json()

        assert event["mail"]["subject"] == "Re: Plan"
        assert event["mail"]["from"] == "bob@xmail.com"

    def test_draft_send_pushes_to_recipient(self, client, alice, bob):
        draft = client.post(
            "/api/v1/drafts",
            json={"to": "bob@xmail.com", "subject": "Finally", "body": "Done"},
            headers=alice["headers"],
        ).json()

        with client.websocket_connect("/ws") as ws:
            register_socket(ws, bob)

            response = client.post(f"/api/v1/drafts/send/{draft['id']}", headers=alice["headers"])
            assert response.status_code == 200

            event = ws.receive_json()

        assert event["type"] == "newMail"
        assert event["mail"]["subject"] == "Finally"

    def test_offline_recipient_still_gets_mail(self, client, alice, bob):
        with client.websocket_connect("/ws") as ws:
            register_socket(ws, alice)

            response = send_mail(client, alice, "bob@xmail.com", "Later", "Read when back")
            assert response.status_code == 201

            # Only the recipient is pushed to; the sender's socket stays quiet
            ws.send_json({"type": "ping"})
            assert ws.receive_json() == {"type": "pong"}

        assert [m["subject"] for m in folder(client, bob, "inbox")] == ["Later"]
