"""
Tests for registration, login, token refresh and the auth dependency.
"""

from tests.conftest import PASSWORD, register


class TestRegister:

    def test_register_returns_profile_and_tokens(self, client):
        data = register(client, "Alice", "Alice@Xmail.com ")

        assert data["success"] is True
        assert data["user"]["userId"] == "alice@xmail.com"
        assert data["user"]["name"] == "Alice"
        assert data["user"]["profilePic"] is None
        assert data["accessToken"]
        assert data["refreshToken"]

    def test_missing_fields(self, client):
        response = client.post("/api/v1/auth/register", json={"userId": "a@xmail.com"})
        assert response.status_code == 400
        assert response.json()["detail"] == "All fields required"

    def test_wrong_domain(self, client):
        response = client.post("/api/v1/auth/register", json={
            "name": "Eve", "userId": "eve@gmail.com", "password": PASSWORD
        })
        assert response.status_code == 400
        assert "@xmail.com" in response.json()["detail"]

    def test_short_password(self, client):
        response = client.post("/api/v1/auth/register", json={
            "name": "Eve", "userId": "eve@xmail.com", "password": "123"
        })
        assert response.status_code == 400

    def test_duplicate_is_case_insensitive(self, client, alice):
        response = client.post("/api/v1/auth/register", json={
            "name": "Other", "userId": "ALICE@xmail.com", "password": PASSWORD
        })
        assert response.status_code == 409
        assert response.json()["detail"] == "User already exists"


class TestLogin:

    def test_login_success(self, client, alice):
        response = client.post("/api/v1/auth/login", json={
            "userId": "alice@xmail.com", "password": PASSWORD
        })
        assert response.status_code == 200
        body = response.json()
        assert body["user"]["userId"] == "alice@xmail.com"
        assert body["accessToken"]

    def test_wrong_password(self, client, alice):
        response = client.post("/api/v1/auth/login", json={
            "userId": "alice@xmail.com", "password": "nope-nope"
        })
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid credentials"

    def test_unknown_user(self, client):
        response = client.post("/api/v1/auth/login", json={
            "userId": "ghost@xmail.com", "password": PASSWORD
        })
        assert response.status_code == 400

    def test_missing_credentials(self, client):
        response = client.post("/api/v1/auth/login", json={"userId": "alice@xmail.com"})
        assert response.status_code == 400


class TestRefresh:

    def test_refresh_issues_usable_access_token(self, client, alice):
        response = client.post("/api/v1/auth/refresh", json={"refreshToken": alice["refreshToken"]})
        assert response.status_code == 200

        token = response.json()["accessToken"]
        me = client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["user"]["userId"] == "alice@xmail.com"

    def test_refresh_requires_token(self, client):
        response = client.post("/api/v1/auth/refresh", json={})
        assert response.status_code == 400

    def test_access_token_is_not_a_refresh_token(self, client, alice):
        response = client.post("/api/v1/auth/refresh", json={"refreshToken": alice["accessToken"]})
        assert response.status_code == 401

    def test_garbage_refresh_token(self, client):
        response = client.post("/api/v1/auth/refresh", json={"refreshToken": "not-a-jwt"})
        assert response.status_code == 401


class TestAuthDependency:

    def test_auto_login(self, client, alice):
        response = client.get("/api/v1/auth/auto-login", headers=alice["headers"])
        assert response.status_code == 200
        assert response.json()["user"]["name"] == "Alice"

    def test_no_token(self, client):
        response = client.get("/api/v1/auth/auto-login")
        assert response.status_code == 401
        assert response.json()["detail"] == "Unauthorized: No token provided"

    def test_invalid_token(self, client):
        response = client.get("/api/v1/auth/auto-login", headers={"Authorization": "Bearer junk"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Unauthorized: Invalid token"

    def test_refresh_header_fallback(self, client, alice):
        response = client.get("/api/v1/auth/auto-login", headers={
            "Authorization": "Bearer junk",
            "X-Refresh-Token": alice["refreshToken"],
        })
        assert response.status_code == 200
        assert response.json()["user"]["userId"] == "alice@xmail.com"

    def test_bad_refresh_header(self, client):
        response = client.get("/api/v1/auth/auto-login", headers={
            "Authorization": "Bearer junk",
            "X-Refresh-Token": "also-junk",
        })
        assert response.status_code == 401
        assert response.json()["detail"] == "Unauthorized: Invalid refresh token"


class TestFieldLengths:

    def test_long_name_is_rejected(self, client):
        response = client.post("/api/v1/auth/register", json={
            "name": "N" * 256, "userId": "long@xmail.com", "password": PASSWORD
        })
        assert response.status_code == 400

    def test_long_user_id_is_rejected(self, client):
        response = client.post("/api/v1/auth/register", json={
            "name": "Long", "userId": "x" * 250 + "@xmail.com", "password": PASSWORD
        })
        assert response.status_code == 400
