"""
Tests for sign-up, sign-in, sign-out and password flows.
"""

import pytest

from cooperloc.core.config import settings
from cooperloc.core.email import email_service
from cooperloc.models import UserRole, UserStatus

from .conftest import PASSWORD


def sign_up_payload(email="novo@cooperloc.com.br", **overrides):
    data = {
        "full_name": "Maria Souza",
        "email": email,
        "password": "senha123",
        "confirm_password": "senha123",
    }
    data.update(overrides)
    return data


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


class TestSignUp:
    """Tests for POST /api/auth/sign-up."""

    async def test_creates_pending_franchisee(self, client):
        """Test new accounts wait for approval with no franchise."""
        response = await client.post("/api/auth/sign-up", json=sign_up_payload())
        assert response.status_code == 201

        data = response.json()
        assert data["access_token"]
        assert data["profile"]["role"] == "franqueado"
        assert data["profile"]["status"] == "pending"
        assert data["profile"]["franchise_id"] is None
        assert data["redirect_to"] == "/pending-approval"
        assert "install_tracker" in data["capabilities"]

    async def test_pending_account_can_read_session_only(self, client):
        """Test pending token works on /me but is redirected elsewhere."""
        token = (await client.post("/api/auth/sign-up", json=sign_up_payload())).json()["access_token"]

        me = await client.get("/api/auth/me", headers=bearer(token))
        assert me.status_code == 200
        assert me.json()["profile"]["status"] == "pending"

        dashboard = await client.get("/api/stats/dashboard", headers=bearer(token))
        assert dashboard.status_code == 403
        assert dashboard.json()["redirect_to"] == "/pending-approval"
        assert dashboard.json()["status"] == "pending"

    async def test_duplicate_email(self, client):
        await client.post("/api/auth/sign-up", json=sign_up_payload())
        response = await client.post("/api/auth/sign-up", json=sign_up_payload(email="NOVO@cooperloc.com.br"))
        assert response.status_code == 400

    @pytest.mark.parametrize("overrides", [
        {"confirm_password": "outra123"},
        {"password": "123", "confirm_password": "123"},
        {"full_name": "Jo"},
        {"email": "not-an-email"},
    ])
    async def test_invalid_payload(self, client, overrides):
        response = await client.post("/api/auth/sign-up", json=sign_up_payload(**overrides))
        assert response.status_code == 422


class TestSignIn:
    """Tests for POST /api/auth/sign-in."""

    async def test_success(self, client, make_user):
        user = await make_user(UserRole.MATRIZ)
        response = await client.post("/api/auth/sign-in", json={"email": user["email"], "password": PASSWORD})

        assert response.status_code == 200
        data = response.json()
        assert data["role"] == "matriz"
        assert data["role_label"] == "Matriz"
        assert data["redirect_to"] is None
        assert {"label": "Envios", "href": "/shipments"} in data["menu"]
        assert data["user"]["last_sign_in_at"] is not None

    async def test_wrong_password(self, client, make_user):
        user = await make_user()
        response = await client.post("/api/auth/sign-in", json={"email": user["email"], "password": "errada"})
        assert response.status_code == 401

    async def test_unknown_email(self, client):
        response = await client.post(
            "/api/auth/sign-in", json={"email": "ninguem@cooperloc.com.br", "password": PASSWORD}
        )
        assert response.status_code == 401

    async def test_blocked_account_gets_redirect(self, client, make_user):
        """Test blocked accounts sign in but are sent to the blocked page."""
        user = await make_user(UserRole.FRANQUEADO, UserStatus.BLOCKED)
        response = await client.post("/api/auth/sign-in", json={"email": user["email"], "password": PASSWORD})
        assert response.status_code == 200
        assert response.json()["redirect_to"] == "/blocked"


class TestSessionTokens:
    """Tests for token invalidation."""

    async def test_missing_token(self, client):
        response = await client.get("/api/auth/me")
        assert response.status_code == 401

    async def test_garbage_token(self, client):
        response = await client.get("/api/auth/me", headers=bearer("not-a-jwt"))
        assert response.status_code == 401

    async def test_sign_out_invalidates_token(self, client, make_user):
        """Test tokens issued before sign-out stop working."""
        user = await make_user()
        response = await client.post("/api/auth/sign-out", headers=user["headers"])
        assert response.status_code == 200

        response = await client.get("/api/auth/me", headers=user["headers"])
        assert response.status_code == 401

    async def test_update_password(self, client, make_user):
        """Test password change returns a fresh token and revokes the old one."""
        user = await make_user()
        response = await client.put(
            "/api/auth/password", json={"new_password": "nova-senha"}, headers=user["headers"]
        )
        assert response.status_code == 200
        new_token = response.json()["access_token"]

        assert (await client.get("/api/auth/me", headers=user["headers"])).status_code == 401
        assert (await client.get("/api/auth/me", headers=bearer(new_token))).status_code == 200

        sign_in = await client.post("/api/auth/sign-in", json={"email": user["email"], "password": "nova-senha"})
        assert sign_in.status_code == 200


class TestPasswordRecovery:
    """Tests for forgot/reset password."""

    async def test_unknown_email_gets_same_answer(self, client, monkeypatch):
        sent = []
        monkeypatch.setattr(email_service, "send_password_reset_email", lambda *args: sent.append(args))

        response = await client.post("/api/auth/forgot-password", json={"email": "x@cooperloc.com.br"})
        assert response.status_code == 200
        assert sent == []

    async def test_reset_flow(self, client, make_user, monkeypatch):
        """Test emailed token resets the password once."""
        user = await make_user()
        sent = []
        monkeypatch.setattr(
            email_service, "send_password_reset_email",
            lambda to_email, name, token: sent.append((to_email, token)) or True
        )

        response = await client.post("/api/auth/forgot-password", json={"email": user["email"]})
        assert response.status_code == 200
        assert len(sent) == 1
        to_email, token = sent[0]
        assert to_email == user["email"]

        response = await client.post(
            "/api/auth/reset-password", json={"token": token, "new_password": "trocada1"}
        )
        assert response.status_code == 200

        # Token já usado e sessões antigas não valem mais
        again = await client.post("/api/auth/reset-password", json={"token": token, "new_password": "outra123"})
        assert again.status_code == 400
        assert (await client.get("/api/auth/me", headers=user["headers"])).status_code == 401

        sign_in = await client.post("/api/auth/sign-in", json={"email": user["email"], "password": "trocada1"})
        assert sign_in.status_code == 200

    async def test_session_token_cannot_reset(self, client, make_user):
        """Test a sign-in token is not accepted as a recovery token."""
        user = await make_user()
        response = await client.post(
            "/api/auth/reset-password", json={"token": user["token"], "new_password": "trocada1"}
        )
        assert response.status_code == 400


class TestSetup:
    """Tests for POST /api/auth/setup."""

    async def test_creates_admin_once(self, client):
        response = await client.post("/api/auth/setup")
        assert response.status_code == 200
        assert response.json()["email"] == settings.ADMIN_EMAIL.lower()

        sign_in = await client.post(
            "/api/auth/sign-in", json={"email": settings.ADMIN_EMAIL, "password": settings.ADMIN_PASSWORD}
        )
        assert sign_in.status_code == 200
        assert sign_in.json()["role"] == "admin"
        assert sign_in.json()["profile"]["status"] == "active"

        assert (await client.post("/api/auth/setup")).status_code == 400
