"""One-time code generation and verification."""

import hashlib
import logging
import secrets
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from app.config import get_settings
from app.errors import AlreadyUsedError, ExpiredCodeError, InternalError, InvalidCodeError, NotFoundError
from app.models.user import User

logger = logging.getLogger("eventpass")

MAX_GENERATION_ATTEMPTS = 10


def hash_code(code: str) -> str:
    """SHA-256 hex digest of a code. Only the digest is stored."""
    return hashlib.sha256(code.strip().encode("utf-8")).hexdigest()


class OTPService:
    """Issues and checks the one-time codes used for passwordless login.

    Codes are looked up on their own (the client does not resend its email),
    so a freshly drawn code must not match another user's pending code.
    """

    def __init__(self) -> None:
        settings = get_settings()
        self.length = settings.OTP_LENGTH
        self.expire_minutes = settings.OTP_EXPIRE_MINUTES

    def _draw_code(self) -> str:
        return f"{secrets.randbelow(10**self.length):0{self.length}d}"

    def _is_pending_elsewhere(self, db: Session, code_hash: str, user: User, now: datetime) -> bool:
        return (
            db.query(User.id)
            .filter(
                User.otp_code_hash == code_hash,
                User.otp_used.is_(False),
                User.otp_expires_at > now,
                User.id != user.id,
            )
            .first()
            is not None
        )

    def generate(self, db: Session, user: User) -> str:
        """Write a new code onto the user, replacing any previous one. Returns the plaintext code."""
        now = datetime.utcnow()
        for _ in range(MAX_GENERATION_ATTEMPTS):
            code = self._draw_code()
            code_hash = hash_code(code)
            if not self._is_pending_elsewhere(db, code_hash, user, now):
                break
        else:
            raise InternalError("Could not allocate a one-time code. Please try again.")

        user.otp_code_hash = code_hash
        user.otp_expires_at = now + timedelta(minutes=self.expire_minutes)
        user.otp_used = False
        db.commit()

        logger.info("Generated one-time code for user %s (expires %s)", user.id, user.otp_expires_at.isoformat())
        return code

    def verify(self, db: Session, code: str) -> User:
        """Consume a code and return its owner.

        Checks run in order and the first failure is raised: no pending code
        (NotFoundError), mismatch (InvalidCodeError), expiry (ExpiredCodeError),
        reuse (AlreadyUsedError).
        """
        code_hash = hash_code(code)
        user = (
            db.query(User)
            .filter(User.otp_code_hash == code_hash, User.otp_used.is_(False))
            .order_by(User.otp_expires_at.desc())
            .first()
        )
        if not user:
            raise NotFoundError("One-time code")

        if not secrets.compare_digest(user.otp_code_hash, code_hash):
            raise InvalidCodeError()

        now = datetime.utcnow()
        if not user.otp_expires_at or user.otp_expires_at < now:
            raise ExpiredCodeError()

        if user.otp_used:
            raise AlreadyUsedError()

        user.otp_used = True
        user.last_login_at = now
        db.commit()
        db.refresh(user)
        return user


_otp_service: OTPService | None = None


def get_otp_service() -> OTPService:
    """Get singleton OTP service instance."""
    global _otp_service
    if _otp_service is None:
        _otp_service = OTPService()
    return _otp_service
