"""
Pytest configuration for the Xmail API tests.

Runs the real app against an in-memory SQLite database and a temporary
upload directory. The environment is set before anything from xmail is
imported, because xmail.config reads it at import time.
"""

import os
import tempfile

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="xmail-uploads-")
os.environ.pop("GOOGLE_API_KEY", None)
os.environ.pop("ASSEMBLYAI_API_KEY", None)

import pytest
from fastapi.testclient import TestClient

from main import app
from xmail import config
from xmail.database import Base, engine
from xmail.services.presence import presence

PASSWORD = "secret123"


@pytest.fixture(autouse=True)
def fresh_database():
    """Every test starts with empty tables."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def upload_dir(tmp_path, monkeypatch):
    directory = tmp_path / "uploads"
    directory.mkdir()
    monkeypatch.setattr(config, "UPLOAD_DIR", str(directory))
    return directory


@pytest.fixture(autouse=True)
def clear_presence():
    presence._online.clear()
    yield
    presence._online.clear()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def register(client, name, user_id, password=PASSWORD):
    response = client.post("/api/v1/auth/register", json={
        "name": name,
        "userId": user_id,
        "password": password,
    })
    assert response.status_code == 201, response.text
    data = response.json()
    data["headers"] = {"Authorization": f"Bearer {data['accessToken']}"}
    return data


@pytest.fixture
def alice(client):
    return register(client, "Alice", "alice@xmail.com")


@pytest.fixture
def bob(client):
    return register(client, "Bob", "bob@xmail.com")


def send_mail(client, sender, to, subject="Hello", body="Hi there", files=None):
    """Compose through the API as multipart, like the compose view does."""
    response = client.post(
        "/api/v1/mail/compose",
        data={"to": to, "subject": subject, "body": body},
        files=files,
        headers=sender["headers"],
    )
    return response


def folder(client, user, name):
    response = client.get(f"/api/v1/mail/home/{name}", headers=user["headers"])
    assert response.status_code == 200, response.text
    return response.json()["mails"]
