import logging

from jose import jwt

from conftest import create_account
from school_directory.utils.auth import password_fingerprint
from school_directory.utils.jwt_auth import (
    COOKIE_NAME,
    RESET_TOKEN_TYPE,
    create_access_token,
    create_reset_token,
)


class TestSignupAndLogin:
    async def test_signup_returns_token(self, client):
        response = await client.post(
            "/api/auth/signup",
            json={"email": " New.Parent@Example.com ", "password": "secret123", "display_name": "Asha"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["token_type"] == "bearer"
        assert body["user"]["email"] == "new.parent@example.com"
        assert body["user"]["role"] == "user"
        assert COOKIE_NAME in response.headers["set-cookie"]
        assert "httponly" in response.headers["set-cookie"].lower()

    async def test_duplicate_signup(self, client):
        payload = {"email": "parent@example.com", "password": "secret123"}
        await client.post("/api/auth/signup", json=payload)
        response = await client.post("/api/auth/signup", json=payload)
        assert response.status_code == 400

    async def test_short_password(self, client):
        response = await client.post("/api/auth/signup", json={"email": "a@example.com", "password": "123"})
        assert response.status_code == 400

    async def test_login_and_me(self, client):
        await create_account("parent@example.com", "secret123")

        response = await client.post(
            "/api/auth/login", json={"email": "Parent@example.com", "password": "secret123"}
        )
        assert response.status_code == 200
        token = response.json()["access_token"]

        me = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.json()["email"] == "parent@example.com"
        assert me.json()["last_sign_in_at"] is not None

    async def test_wrong_password(self, client):
        await create_account("parent@example.com", "secret123")

        response = await client.post(
            "/api/auth/login", json={"email": "parent@example.com", "password": "wrong-password"}
        )
        assert response.status_code == 401
        assert response.json()["error"] == "Invalid credentials"

    async def test_me_without_token(self, client):
        response = await client.get("/api/auth/me")
        assert response.status_code == 401

    async def test_me_with_garbage_token(self, client):
        response = await client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401
        assert response.json()["error"] == "Invalid token"


class TestPasswordReset:
    async def test_request_is_generic(self, client):
        await create_account("parent@example.com")

        known = await client.post("/api/auth/password-reset", json={"email": "parent@example.com"})
        unknown = await client.post("/api/auth/password-reset", json={"email": "nobody@example.com"})

        assert known.status_code == unknown.status_code == 202
        assert known.json() == unknown.json()

    async def test_reset_flow(self, client):
        user = await create_account("parent@example.com", "secret123")
        token = create_reset_token(user)

        response = await client.post(
            "/api/auth/password-reset/confirm", json={"token": token, "new_password": "newsecret"}
        )
        assert response.status_code == 200

        login = await client.post("/api/auth/login", json={"email": "parent@example.com", "password": "newsecret"})
        assert login.status_code == 200

        # The token is bound to the old password hash
        reused = await client.post(
            "/api/auth/password-reset/confirm", json={"token": token, "new_password": "another1"}
        )
        assert reused.status_code == 400

    async def test_access_token_cannot_reset(self, client):
        await create_account("parent@example.com", "secret123")
        login = await client.post("/api/auth/login", json={"email": "parent@example.com", "password": "secret123"})

        response = await client.post(
            "/api/auth/password-reset/confirm",
            json={"token": login.json()["access_token"], "new_password": "newsecret"},
        )
        assert response.status_code == 401

    async def test_token_is_single_use(self, client):
        user = await create_account("parent@example.com", "secret123")
        token = create_reset_token(user)

        first = await client.post(
            "/api/auth/password-reset/confirm", json={"token": token, "new_password": "newsecret"}
        )
        second = await client.post(
            "/api/auth/password-reset/confirm", json={"token": token, "new_password": "newsecret"}
        )

        assert first.status_code == 200
        assert second.status_code == 400
        assert second.json()["detail"] == "Reset link is invalid or has already been used"

    async def test_token_does_not_expose_password_hash(self, db):
        user = await create_account("parent@example.com", "secret123")

        claims = jwt.get_unverified_claims(create_reset_token(user))

        assert claims["pwd"] == password_fingerprint(user.password_hash)
        assert claims["pwd"] not in user.password_hash
        assert user.password_hash[-12:] not in claims["pwd"]

    async def test_forged_fingerprint_is_rejected(self, client):
        user = await create_account("parent@example.com", "secret123")
        forged = create_access_token(
            {"sub": str(user.id), "pwd": user.password_hash[-12:]},
            token_type=RESET_TOKEN_TYPE,
        )

        response = await client.post(
            "/api/auth/password-reset/confirm", json={"token": forged, "new_password": "newsecret"}
        )
        assert response.status_code == 400

    async def test_reset_token_is_not_logged(self, client, caplog):
        await create_account("parent@example.com")

        with caplog.at_level(logging.DEBUG):
            response = await client.post("/api/auth/password-reset", json={"email": "parent@example.com"})

        assert response.status_code == 202
        assert "Password reset requested" in caplog.text
        assert "eyJ" not in caplog.text
