"""Pytest configuration and fixtures."""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db, init_db
from app.errors import MailDeliveryError
from app.services.auth import AuthService
from app.services.mailer import get_mailer
from app.services.session import get_session_service


class RecordingMailer:
    """Stands in for the SMTP mailer and keeps every code it was asked to send."""

    def __init__(self) -> None:
        self.sent: list[dict] = []
        self.fail = False

    async def send_otp(self, to_email: str, code: str, expire_minutes: int) -> None:
        if self.fail:
            raise MailDeliveryError()
        self.sent.append({"to": to_email, "code": code, "expire_minutes": expire_minutes})

    def last_code(self, to_email: str | None = None) -> str:
        for message in reversed(self.sent):
            if to_email is None or message["to"] == to_email:
                return message["code"]
        raise AssertionError(f"no code sent to {to_email}")


@pytest.fixture(name="db_session")
def db_session_fixture():
    """Create an in-memory SQLite database for tests."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    testing_session_local = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(name="mailer")
def mailer_fixture() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture(name="client")
def client_fixture(db_session: Session, mailer: RecordingMailer):
    """Create a test client with the DB session and mailer swapped out."""
    from main import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mailer] = lambda: mailer
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def _auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(name="test_user")
def test_user_fixture(db_session: Session):
    """Create a regular user and return its data and an active token."""
    user = AuthService().register(db_session, "test@example.com", "Test User")
    issued = get_session_service().issue(db_session, user)
    return {
        "user_id": user.id,
        "email": user.email,
        "token": issued.token,
        "headers": _auth_headers(issued.token),
    }


@pytest.fixture(name="recruiter")
def recruiter_fixture(db_session: Session):
    """Create a recruiter and return its data and an active token."""
    user = AuthService().create_recruiter(db_session, "Rita Recruiter", "rita@example.com")
    issued = get_session_service().issue(db_session, user)
    return {
        "user_id": user.id,
        "email": user.email,
        "token": issued.token,
        "headers": _auth_headers(issued.token),
    }
