"""Authentication dependencies for FastAPI routes."""

from dataclasses import dataclass

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.database import get_db
from app.errors import ForbiddenError, UnauthorizedError
from app.models.user import User
from app.services.session import get_session_service


@dataclass
class CurrentUser:
    """Authenticated user context, with the token that authenticated the request."""

    user: User
    token: str

    @property
    def user_id(self) -> int:
        return self.user.id


def get_bearer_token(request: Request) -> str:
    """Extract the bearer token from the Authorization header. Raises 401 if absent."""
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        raise UnauthorizedError("Not authenticated")

    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise UnauthorizedError("Not authenticated")
    return token.strip()


def get_current_user(
    token: str = Depends(get_bearer_token),
    db: Session = Depends(get_db),
) -> CurrentUser:
    """Resolve the bearer token to its owner. Raises 401 if it is invalid, expired or revoked."""
    user = get_session_service().resolve(db, token)
    if not user:
        raise UnauthorizedError("Invalid or expired token")
    return CurrentUser(user=user, token=token)


def require_recruiter(current: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """Require an authenticated recruiter. Raises 403 for everyone else."""
    if not current.user.is_recruiter:
        raise ForbiddenError("Recruiter access required")
    return current
