from __future__ import annotations

import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Makes the accounts_api package importable when running tests locally
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from accounts_api.app import create_app  # noqa: E402
from accounts_api.core.config import Settings  # noqa: E402
from accounts_api.repositories.file_store import FileStore  # noqa: E402

PHONE = "5551234"
NEW_USER = {
    "firstName": "Ada",
    "lastName": "Lovelace",
    "phone": PHONE,
    "password": "abc123",
    "tosAgreement": True,
}


@pytest.fixture()
def client(tmp_path):
    settings = Settings(app_env="test", data_dir=tmp_path, log_level="WARNING")
    app = create_app(settings=settings, store=FileStore(tmp_path))
    return TestClient(app)


def test_user_lifecycle(client):
    response = client.post("/users", json=NEW_USER)
    assert response.status_code == 200
    assert "hashedPassword" not in response.json()

    duplicate = client.post("/users", json=NEW_USER)
    assert duplicate.status_code == 400
    assert "already exists" in duplicate.json()["error"]

    fetched = client.get("/users", params={"phone": PHONE})
    assert fetched.status_code == 200
    body = fetched.json()
    assert body == {"firstName": "Ada", "lastName": "Lovelace", "phone": PHONE, "tosAgreement": True}

    updated = client.put("/users", json={"phone": PHONE, "lastName": "NewName"})
    assert updated.status_code == 200
    assert updated.json()["lastName"] == "NewName"
    assert updated.json()["firstName"] == "Ada"
    assert "hashedPassword" not in updated.json()

    deleted = client.delete("/users", params={"phone": PHONE})
    assert deleted.status_code == 200
    assert "message" in deleted.json()

    gone = client.get("/users", params={"phone": PHONE})
    assert gone.status_code == 404
    assert "error" in gone.json()


def test_unsupported_method_returns_405(client):
    response = client.patch("/users", json=NEW_USER)
    assert response.status_code == 405
    assert "error" in response.json()
    assert client.patch("/users").status_code == 405


def test_malformed_body_is_invalid_input(client):
    response = client.post("/users", content=b"{not json", headers={"Content-Type": "application/json"})
    assert response.status_code == 400
    assert client.post("/users", json=["not", "an", "object"]).status_code == 400


def test_invalid_phone_query(client):
    assert client.get("/users", params={"phone": "abc"}).status_code == 400
    assert client.delete("/users").status_code == 400


def test_security_headers_present(client):
    response = client.get("/users", params={"phone": PHONE})
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"
    assert "Strict-Transport-Security" not in response.headers
