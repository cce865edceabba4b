"""Tests for authentication endpoints and flows."""

from datetime import datetime, timedelta
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.errors import ConflictError
from app.models.session_token import SessionToken
from app.models.user import User
from app.services.auth import AuthService
from app.services.otp import OTPService

AUTH = "/api/v1/auth"


def _login(client: TestClient, mailer, email: str) -> str:
    assert client.post(f"{AUTH}/request-code", json={"email": email}).status_code == 200
    response = client.post(f"{AUTH}/verify-code", json={"code": mailer.last_code(email)})
    assert response.status_code == 200
    return response.json()["token"]


class TestRequestCode:
    """Tests for requesting a one-time code."""

    def test_request_code_creates_user_and_sends_code(self, client: TestClient, mailer, db_session: Session):
        """First request for an email creates the account and emails a 6-digit code."""
        response = client.post(f"{AUTH}/request-code", json={"email": "A@X.com"})
        assert response.status_code == 200
        assert response.json() == {
            "status": "success",
            "message": "A one-time code has been sent to your email address.",
        }

        assert len(mailer.sent) == 1
        assert mailer.sent[0]["to"] == "a@x.com"
        code = mailer.sent[0]["code"]
        assert len(code) == 6 and code.isdigit()

        user = db_session.query(User).filter(User.email == "a@x.com").first()
        assert user is not None
        assert user.otp_used is False
        assert user.otp_code_hash != code

    def test_request_code_existing_user(self, client: TestClient, mailer, test_user: dict, db_session: Session):
        """Requesting a code for a known email does not create a second account."""
        response = client.post(f"{AUTH}/request-code", json={"email": "test@example.com"})
        assert response.status_code == 200
        assert db_session.query(User).filter(User.email == "test@example.com").count() == 1

    def test_request_code_invalid_email(self, client: TestClient, mailer):
        """Malformed email is rejected with a 400 envelope and no mail is sent."""
        response = client.post(f"{AUTH}/request-code", json={"email": "not-an-email"})
        assert response.status_code == 400
        data = response.json()
        assert data["status"] == "fail"
        assert data["code"] == "VALIDATION_ERROR"
        assert "email" in data["message"]
        assert mailer.sent == []

    def test_request_code_missing_body(self, client: TestClient):
        """Missing email is a validation error."""
        response = client.post(f"{AUTH}/request-code", json={})
        assert response.status_code == 400

    def test_request_code_mail_failure(self, client: TestClient, mailer):
        """Transport failure is reported distinctly from a bad email."""
        mailer.fail = True
        response = client.post(f"{AUTH}/request-code", json={"email": "a@x.com"})
        assert response.status_code == 502
        data = response.json()
        assert data["status"] == "error"
        assert data["code"] == "MAIL_DELIVERY_FAILED"


class TestVerifyCode:
    """Tests for exchanging a one-time code for a token."""

    def test_verify_success(self, client: TestClient, mailer, db_session: Session):
        """The emailed code logs the user in for an hour."""
        client.post(f"{AUTH}/request-code", json={"email": "a@x.com"})
        response = client.post(f"{AUTH}/verify-code", json={"code": mailer.last_code()})
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "success"
        assert data["message"] == "Authentication successful. You are now logged in."
        assert data["expires_in"] == 3600
        assert data["token"]

        user = db_session.query(User).filter(User.email == "a@x.com").first()
        assert user.otp_used is True
        assert user.last_login_at is not None
        assert [t.token for t in user.tokens] == [data["token"]]

    def test_verify_twice_fails(self, client: TestClient, mailer):
        """A code works exactly once."""
        client.post(f"{AUTH}/request-code", json={"email": "a@x.com"})
        code = mailer.last_code()
        assert client.post(f"{AUTH}/verify-code", json={"code": code}).status_code == 200

        response = client.post(f"{AUTH}/verify-code", json={"code": code})
        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    def test_verify_unknown_code(self, client: TestClient):
        """A code nobody was sent is not found."""
        response = client.post(f"{AUTH}/verify-code", json={"code": "000000"})
        assert response.status_code == 404
        assert response.json()["status"] == "fail"

    def test_verify_expired_code(self, client: TestClient, mailer, db_session: Session):
        """A correct code past its expiry always fails with CODE_EXPIRED."""
        client.post(f"{AUTH}/request-code", json={"email": "a@x.com"})
        code = mailer.last_code()

        user = db_session.query(User).filter(User.email == "a@x.com").first()
        user.otp_expires_at = datetime.utcnow() - timedelta(seconds=1)
        db_session.commit()

        response = client.post(f"{AUTH}/verify-code", json={"code": code})
        assert response.status_code == 400
        assert response.json()["code"] == "CODE_EXPIRED"
        assert db_session.query(SessionToken).count() == 0

    def test_new_code_supersedes_old(self, client: TestClient, mailer):
        """Requesting again invalidates the previous code."""
        with patch.object(OTPService, "_draw_code", side_effect=["111111", "222222"]):
            client.post(f"{AUTH}/request-code", json={"email": "a@x.com"})
            old_code = mailer.last_code()
            client.post(f"{AUTH}/request-code", json={"email": "a@x.com"})
            new_code = mailer.last_code()

        assert old_code == "111111" and new_code == "222222"
        assert client.post(f"{AUTH}/verify-code", json={"code": old_code}).status_code == 404
        assert client.post(f"{AUTH}/verify-code", json={"code": new_code}).status_code == 200

    def test_verify_requires_code(self, client: TestClient):
        response = client.post(f"{AUTH}/verify-code", json={"code": ""})
        assert response.status_code == 400


class TestSignup:
    """Tests for direct sign-up."""

    def test_signup_sends_code(self, client: TestClient, mailer, db_session: Session):
        """Sign-up creates the account and emails its first code."""
        response = client.post(f"{AUTH}/", json={"email": "new@example.com", "name": "New User"})
        assert response.status_code == 201
        assert mailer.last_code("new@example.com")

        user = db_session.query(User).filter(User.email == "new@example.com").first()
        assert user.name == "New User"
        assert user.is_recruiter is False

    def test_signup_duplicate(self, client: TestClient, test_user: dict):
        response = client.post(f"{AUTH}/", json={"email": "TEST@example.com"})
        assert response.status_code == 409
        assert "already registered" in response.json()["message"]

    def test_signup_retry_after_mail_failure(self, client: TestClient, mailer, db_session: Session):
        """A sign-up whose code never arrived can be submitted again."""
        body = {"email": "new@example.com", "name": "New User"}
        mailer.fail = True
        first = client.post(f"{AUTH}/", json=body)
        assert first.status_code == 502
        assert first.json()["code"] == "MAIL_DELIVERY_FAILED"

        mailer.fail = False
        retry = client.post(f"{AUTH}/", json=body)
        assert retry.status_code == 201
        assert mailer.last_code("new@example.com")
        assert db_session.query(User).filter(User.email == "new@example.com").count() == 1

    def test_signup_conflicts_once_logged_in(self, client: TestClient, mailer):
        """Only accounts that never completed a login are resumable."""
        _login(client, mailer, "new@example.com")
        response = client.post(f"{AUTH}/", json={"email": "new@example.com"})
        assert response.status_code == 409

    def test_signup_conflicts_with_recruiter(self, client: TestClient, recruiter: dict):
        response = client.post(f"{AUTH}/", json={"email": recruiter["email"]})
        assert response.status_code == 409


class TestRecruiter:
    """Tests for recruiter creation."""

    def test_create_recruiter(self, client: TestClient, mailer):
        """Recruiters get a token straight away, without a code."""
        response = client.post(f"{AUTH}/recruiter", json={"name": "R", "email": "r@x.com"})
        assert response.status_code == 201
        data = response.json()
        assert data["recruiter"]["email"] == "r@x.com"
        assert data["recruiter"]["is_recruiter"] is True
        assert data["expires_in"] == 3600
        assert mailer.sent == []

        me = client.get(f"{AUTH}/me", headers={"Authorization": f"Bearer {data['token']}"})
        assert me.status_code == 200
        assert me.json()["user"]["email"] == "r@x.com"

    def test_create_recruiter_twice(self, client: TestClient, db_session: Session):
        """Second creation with the same email always conflicts."""
        assert client.post(f"{AUTH}/recruiter", json={"name": "R", "email": "r@x.com"}).status_code == 201
        response = client.post(f"{AUTH}/recruiter", json={"name": "R", "email": "r@x.com"})
        assert response.status_code == 409
        assert response.json()["code"] == "CONFLICT"
        assert db_session.query(User).filter(User.email == "r@x.com").count() == 1

    def test_create_recruiter_requires_name(self, client: TestClient):
        response = client.post(f"{AUTH}/recruiter", json={"email": "r@x.com"})
        assert response.status_code == 400


class TestConcurrentAccountCreation:
    """Another request inserting the same email between lookup and commit."""

    def test_create_recruiter_lost_race_conflicts(self, db_session: Session, test_user: dict):
        existing = db_session.get(User, test_user["user_id"])
        with patch.object(AuthService, "get_by_email", return_value=None):
            with pytest.raises(ConflictError):
                AuthService().create_recruiter(db_session, "R", "test@example.com")

        assert db_session.query(User).filter(User.email == "test@example.com").count() == 1
        assert existing.is_recruiter is False

    def test_create_recruiter_lost_race_returns_409(self, client: TestClient, test_user: dict):
        with patch.object(AuthService, "get_by_email", return_value=None):
            response = client.post(f"{AUTH}/recruiter", json={"name": "R", "email": "test@example.com"})
        assert response.status_code == 409
        assert response.json()["code"] == "CONFLICT"

    def test_get_or_create_lost_race_returns_winner(self, db_session: Session, test_user: dict):
        existing = db_session.get(User, test_user["user_id"])
        with patch.object(AuthService, "get_by_email", side_effect=[None, existing]):
            user = AuthService().get_or_create(db_session, "test@example.com")
        assert user.id == existing.id
        assert db_session.query(User).count() == 1


class TestSessions:
    """Tests for bearer authentication and logout."""

    def test_me_with_verified_token(self, client: TestClient, mailer):
        token = _login(client, mailer, "a@x.com")
        response = client.get(f"{AUTH}/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200
        assert response.json()["user"]["email"] == "a@x.com"

    def test_me_requires_auth(self, client: TestClient):
        response = client.get(f"{AUTH}/me")
        assert response.status_code == 401
        assert response.json()["code"] == "UNAUTHORIZED"

    def test_me_rejects_garbage_token(self, client: TestClient):
        response = client.get(f"{AUTH}/me", headers={"Authorization": "Bearer invalid.token.here"})
        assert response.status_code == 401

    def test_me_rejects_wrong_scheme(self, client: TestClient, test_user: dict):
        response = client.get(f"{AUTH}/me", headers={"Authorization": f"Basic {test_user['token']}"})
        assert response.status_code == 401

    def test_logout_revokes_token(self, client: TestClient, test_user: dict):
        """After logout the token no longer authenticates."""
        response = client.post(f"{AUTH}/logout", headers=test_user["headers"])
        assert response.status_code == 200
        assert response.json()["message"] == "You have been logged out successfully."

        assert client.get(f"{AUTH}/me", headers=test_user["headers"]).status_code == 401

    def test_logout_keeps_other_sessions(self, client: TestClient, mailer):
        """Logging out one device leaves the others signed in."""
        first = _login(client, mailer, "a@x.com")
        second = _login(client, mailer, "a@x.com")

        client.post(f"{AUTH}/logout", headers={"Authorization": f"Bearer {first}"})
        assert client.get(f"{AUTH}/me", headers={"Authorization": f"Bearer {first}"}).status_code == 401
        assert client.get(f"{AUTH}/me", headers={"Authorization": f"Bearer {second}"}).status_code == 200

    def test_logout_all(self, client: TestClient, mailer):
        first = _login(client, mailer, "a@x.com")
        second = _login(client, mailer, "a@x.com")

        response = client.post(f"{AUTH}/logout-all", headers={"Authorization": f"Bearer {second}"})
        assert response.status_code == 200
        for token in (first, second):
            assert client.get(f"{AUTH}/me", headers={"Authorization": f"Bearer {token}"}).status_code == 401

    def test_logout_requires_auth(self, client: TestClient):
        assert client.post(f"{AUTH}/logout").status_code == 401


class TestListUsers:
    """Tests for the recruiter-only user listing."""

    def test_list_users_anonymous(self, client: TestClient):
        assert client.get(f"{AUTH}/").status_code == 401

    def test_list_users_regular_user(self, client: TestClient, test_user: dict):
        response = client.get(f"{AUTH}/", headers=test_user["headers"])
        assert response.status_code == 403
        assert response.json()["code"] == "FORBIDDEN"

    def test_list_users_recruiter(self, client: TestClient, test_user: dict, recruiter: dict):
        response = client.get(f"{AUTH}/", headers=recruiter["headers"])
        assert response.status_code == 200
        emails = {u["email"] for u in response.json()["users"]}
        assert emails == {"test@example.com", "rita@example.com"}


class TestHealthCheck:
    """Tests for health check endpoint."""

    def test_health_check(self, client: TestClient):
        response = client.get("/api/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["app"] == "eventpass"

    def test_unknown_route_envelope(self, client: TestClient):
        response = client.get("/api/v1/nowhere")
        assert response.status_code == 404
        assert response.json()["status"] == "fail"
