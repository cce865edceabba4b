"""Session token service: issuing, resolving and revoking bearer tokens."""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from jose import JWTError, jwt
from sqlalchemy.orm import Session

from app.config import get_settings
from app.models.session_token import SessionToken
from app.models.user import User

logger = logging.getLogger("eventpass")


@dataclass
class IssuedToken:
    """A freshly minted session token and its lifetime hint in seconds."""

    token: str
    expires_in: int


class SessionService:
    """Handles session token creation, lookup and revocation.

    Tokens are signed JWTs, but a valid signature is not enough: the token
    must also still be present in the owner's active token list.
    """

    def __init__(self) -> None:
        settings = get_settings()
        self.secret_key = settings.JWT_SECRET_KEY
        self.algorithm = settings.JWT_ALGORITHM
        self.ttl_seconds = settings.SESSION_TOKEN_TTL_SECONDS

    def _encode(self, user_id: int, expire: datetime) -> str:
        payload = {
            "sub": str(user_id),
            "jti": secrets.token_urlsafe(16),
            "exp": expire,
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def decode_token(self, token: str) -> dict[str, Any] | None:
        """Decode and validate a token signature and expiry. Returns None if invalid."""
        try:
            return jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError:
            return None

    def issue(self, db: Session, user: User) -> IssuedToken:
        """Mint a token for the user and append it to the user's active sessions."""
        now = datetime.utcnow()
        expire = now + timedelta(seconds=self.ttl_seconds)

        # Drop sessions that can no longer authenticate anyway
        db.query(SessionToken).filter(SessionToken.user_id == user.id, SessionToken.expires_at < now).delete(
            synchronize_session="fetch"
        )

        token = self._encode(user.id, expire)
        user.last_login_at = now
        db.add(SessionToken(user_id=user.id, token=token, created_at=now, expires_at=expire))
        db.commit()
        db.refresh(user)

        logger.info("Issued session token for user %s", user.id)
        return IssuedToken(token=token, expires_in=self.ttl_seconds)

    def resolve(self, db: Session, token: str) -> User | None:
        """Return the user owning an active token, or None."""
        payload = self.decode_token(token)
        if not payload:
            return None

        record = db.query(SessionToken).filter(SessionToken.token == token).first()
        if not record or str(record.user_id) != payload.get("sub"):
            return None
        return record.user

    def revoke(self, db: Session, user: User, token: str) -> bool:
        """Remove one token from the user's active sessions. Returns True if it was active."""
        deleted = (
            db.query(SessionToken)
            .filter(SessionToken.user_id == user.id, SessionToken.token == token)
            .delete(synchronize_session="fetch")
        )
        db.commit()
        return deleted > 0

    def revoke_all(self, db: Session, user: User) -> int:
        """Remove every active session of the user. Returns how many were removed."""
        deleted = db.query(SessionToken).filter(SessionToken.user_id == user.id).delete(synchronize_session="fetch")
        db.commit()
        logger.info("Revoked %d session(s) for user %s", deleted, user.id)
        return deleted


_session_service: SessionService | None = None


def get_session_service() -> SessionService:
    """Get singleton session service instance."""
    global _session_service
    if _session_service is None:
        _session_service = SessionService()
    return _session_service
