"""Authentication service: account lookup and creation."""

import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.errors import ConflictError
from app.models.user import User

logger = logging.getLogger("eventpass")


def normalize_email(email: str) -> str:
    return email.strip().lower()


class AuthService:
    """Handles user accounts for the passwordless and recruiter flows."""

    def get_by_email(self, db: Session, email: str) -> User | None:
        return db.query(User).filter(User.email == normalize_email(email)).first()

    def _insert(self, db: Session, user: User) -> bool:
        """Commit a new user. Returns False if the email was taken concurrently."""
        db.add(user)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            return False
        db.refresh(user)
        return True

    def get_or_create(self, db: Session, email: str) -> User:
        """Return the user for an email, creating a plain account on first contact."""
        user = self.get_by_email(db, email)
        if user:
            return user

        user = User(email=normalize_email(email), is_recruiter=False)
        if not self._insert(db, user):
            return self.get_by_email(db, email)
        logger.info("Created user %s on first code request", user.id)
        return user

    def _create(self, db: Session, email: str, name: str | None, is_recruiter: bool) -> User:
        if self.get_by_email(db, email):
            raise ConflictError("Email already registered")

        user = User(
            email=normalize_email(email),
            name=name.strip() if name else None,
            is_recruiter=is_recruiter,
        )
        if not self._insert(db, user):
            raise ConflictError("Email already registered")
        return user

    def register(self, db: Session, email: str, name: str | None = None) -> User:
        """Register a regular user. Raises ConflictError if the email is taken.

        An account that has never logged in is handed back instead, so a
        sign-up whose code email failed can simply be retried.
        """
        existing = self.get_by_email(db, email)
        if existing and not existing.is_recruiter and existing.last_login_at is None:
            if name:
                existing.name = name.strip()
                db.commit()
            logger.info("Resuming pending sign-up for user %s", existing.id)
            return existing

        user = self._create(db, email, name, is_recruiter=False)
        logger.info("Registered user %s", user.id)
        return user

    def create_recruiter(self, db: Session, name: str, email: str) -> User:
        """Register a recruiter. Recruiters skip the one-time code flow."""
        user = self._create(db, email, name, is_recruiter=True)
        logger.info("Registered recruiter %s", user.id)
        return user

    def list_users(self, db: Session) -> list[User]:
        return db.query(User).order_by(User.created_at, User.id).all()


_auth_service: AuthService | None = None


def get_auth_service() -> AuthService:
    """Get singleton auth service instance."""
    global _auth_service
    if _auth_service is None:
        _auth_service = AuthService()
    return _auth_service
