"""
Tests for draft auto-save and sending drafts.
"""

from tests.conftest import folder


def create_draft(client, user, **fields):
    response = client.post("/api/v1/drafts", json=fields, headers=user["headers"])
    assert response.status_code == 201, response.text
    return response.json()


def test_empty_draft_is_not_stored(client, alice):
    response = client.post("/api/v1/drafts", json={"to": "", "subject": " ", "body": ""}, headers=alice["headers"])
    assert response.status_code == 204
    assert client.get("/api/v1/drafts", headers=alice["headers"]).json() == []


def test_create_and_get_draft(client, alice):
    draft = create_draft(client, alice, to="Bob@xmail.com", subject="Half done")

    assert draft["folder"] == "draft"
    assert draft["isDraft"] is True
    assert draft["to"] == "bob@xmail.com"

    fetched = client.get(f"/api/v1/drafts/{draft['id']}", headers=alice["headers"]).json()
    assert fetched["subject"] == "Half done"


def test_update_only_touches_sent_fields(client, alice):
    draft = create_draft(client, alice, to="bob@xmail.com", subject="Subject", body="Old body")

    response = client.put(f"/api/v1/drafts/{draft['id']}", json={"body": "New body"}, headers=alice["headers"])
    assert response.status_code == 200
    assert response.json()["body"] == "New body"
    assert response.json()["subject"] == "Subject"
    assert response.json()["to"] == "bob@xmail.com"


def test_drafts_listed_in_both_places(client, alice):
    create_draft(client, alice, subject="One")
    create_draft(client, alice, subject="Two")

    listed = client.get("/api/v1/drafts", headers=alice["headers"]).json()
    assert [d["subject"] for d in listed] == ["Two", "One"]
    assert len(folder(client, alice, "drafts")) == 2


def test_legacy_draft_endpoint(client, alice):
    response = client.post(
        "/api/v1/mail/draft",
        json={"to": "bob@xmail.com", "subject": "s", "body": "b"},
        headers=alice["headers"],
    )
    assert response.status_code == 200
    assert response.json()["draft"]["folder"] == "draft"


def test_delete_draft(client, alice):
    draft = create_draft(client, alice, subject="Bin me")

    response = client.delete(f"/api/v1/drafts/{draft['id']}", headers=alice["headers"])
    assert response.status_code == 200
    assert client.get(f"/api/v1/drafts/{draft['id']}", headers=alice["headers"]).status_code == 404


def test_drafts_are_private(client, alice, bob):
    draft = create_draft(client, alice, subject="Secret")

    assert client.get(f"/api/v1/drafts/{draft['id']}", headers=bob["headers"]).status_code == 404
    assert client.put(f"/api/v1/drafts/{draft['id']}", json={"body": "x"}, headers=bob["headers"]).status_code == 404
    assert client.delete(f"/api/v1/drafts/{draft['id']}", headers=bob["headers"]).status_code == 404


def test_send_draft_delivers(client, alice, bob):
    draft = create_draft(client, alice, to="bob@xmail.com", subject="Finally", body="Done")

    response = client.post(f"/api/v1/drafts/send/{draft['id']}", headers=alice["headers"])
    assert response.status_code == 200
    sent = response.json()
    assert sent["id"] == draft["id"]
    assert sent["folder"] == "sent"
    assert sent["isDraft"] is False
    assert sent["isSent"] is True
    assert sent["sentAt"] is not None

    assert client.get("/api/v1/drafts", headers=alice["headers"]).json() == []
    assert [m["subject"] for m in folder(client, bob, "inbox")] == ["Finally"]

    # No longer a draft
    again = client.post(f"/api/v1/drafts/send/{draft['id']}", headers=alice["headers"])
    assert again.status_code == 404


def test_send_draft_without_recipient(client, alice):
    draft = create_draft(client, alice, subject="No one")

    response = client.post(f"/api/v1/drafts/send/{draft['id']}", headers=alice["headers"])
    assert response.status_code == 400
    assert response.json()["detail"] == "Recipient email required"


def test_send_draft_to_unknown_recipient(client, alice):
    draft = create_draft(client, alice, to="ghost@xmail.com", subject="Hello?")

    response = client.post(f"/api/v1/drafts/send/{draft['id']}", headers=alice["headers"])
    assert response.status_code == 404
    assert client.get(f"/api/v1/drafts/{draft['id']}", headers=alice["headers"]).status_code == 200


def test_trashed_draft_is_out_of_reach(client, alice, bob):
    draft = create_draft(client, alice, to="bob@xmail.com", subject="Scrapped", body="Never mind")
    client.put(f"/api/v1/mail/trash/{draft['id']}", headers=alice["headers"])

    assert client.get(f"/api/v1/drafts/{draft['id']}", headers=alice["headers"]).status_code == 404
    assert client.put(f"/api/v1/drafts/{draft['id']}", json={"body": "x"}, headers=alice["headers"]).status_code == 404
    assert client.post(f"/api/v1/drafts/send/{draft['id']}", headers=alice["headers"]).status_code == 404
    assert folder(client, bob, "inbox") == []

    # Restored drafts are editable again
    client.put(f"/api/v1/mail/restore/{draft['id']}", headers=alice["headers"])
    assert client.get(f"/api/v1/drafts/{draft['id']}", headers=alice["headers"]).status_code == 200
