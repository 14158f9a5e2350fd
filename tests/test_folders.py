"""
Tests for the folder state machine: trash, save and restore.
"""

import pytest

from tests.conftest import folder, send_mail


@pytest.fixture
def inbox_mail_id(client, alice, bob):
    send_mail(client, alice, "bob@xmail.com", "Keep me", "body")
    return folder(client, bob, "inbox")[0]["id"]


def test_trash_then_restore_returns_to_inbox(client, bob, inbox_mail_id):
    response = client.put(f"/api/v1/mail/trash/{inbox_mail_id}", headers=bob["headers"])
    assert response.status_code == 200
    assert response.json()["mail"]["originalFolder"] == "inbox"
    assert folder(client, bob, "inbox") == []
    assert len(folder(client, bob, "deleted")) == 1

    response = client.put(f"/api/v1/mail/restore/{inbox_mail_id}", headers=bob["headers"])
    assert response.status_code == 200
    assert response.json()["message"] == "Mail restored to inbox"
    assert response.json()["mail"]["originalFolder"] is None
    assert len(folder(client, bob, "inbox")) == 1
    assert folder(client, bob, "deleted") == []


def test_save_then_restore(client, bob, inbox_mail_id):
    client.put(f"/api/v1/mail/save/{inbox_mail_id}", headers=bob["headers"])
    assert len(folder(client, bob, "saved")) == 1

    response = client.put(f"/api/v1/mail/restore/{inbox_mail_id}", headers=bob["headers"])
    assert response.json()["message"] == "Mail restored to inbox"


def test_saved_then_trashed_keeps_first_origin(client, bob, inbox_mail_id):
    client.put(f"/api/v1/mail/save/{inbox_mail_id}", headers=bob["headers"])
    response = client.put(f"/api/v1/mail/trash/{inbox_mail_id}", headers=bob["headers"])
    assert response.json()["mail"]["originalFolder"] == "inbox"

    response = client.put(f"/api/v1/mail/restore/{inbox_mail_id}", headers=bob["headers"])
    assert response.json()["message"] == "Mail restored to inbox"


def test_sent_copy_restores_to_sent(client, alice, bob, inbox_mail_id):
    sent_id = folder(client, alice, "sent")[0]["id"]

    client.put(f"/api/v1/mail/trash/{sent_id}", headers=alice["headers"])
    assert folder(client, alice, "sent") == []

    response = client.put(f"/api/v1/mail/restore/{sent_id}", headers=alice["headers"])
    assert response.json()["message"] == "Mail restored to sent"
    assert len(folder(client, alice, "sent")) == 1


def test_trashing_one_copy_leaves_the_other(client, alice, bob, inbox_mail_id):
    client.put(f"/api/v1/mail/trash/{inbox_mail_id}", headers=bob["headers"])
    assert len(folder(client, alice, "sent")) == 1


def test_restore_from_inbox_is_rejected(client, bob, inbox_mail_id):
    response = client.put(f"/api/v1/mail/restore/{inbox_mail_id}", headers=bob["headers"])
    assert response.status_code == 400
    assert response.json()["detail"] == "Mail is not in a restorable folder"


def test_other_user_cannot_move_mail(client, alice, inbox_mail_id):
    for action in ("trash", "save", "restore"):
        response = client.put(f"/api/v1/mail/{action}/{inbox_mail_id}", headers=alice["headers"])
        assert response.status_code == 404


def test_missing_mail(client, bob):
    response = client.put("/api/v1/mail/trash/12345", headers=bob["headers"])
    assert response.status_code == 404
