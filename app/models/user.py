"""User model."""

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy.orm import relationship

from app.database import Base


class User(Base):
    """Application user.

    The current one-time code lives on the user row itself: a new code
    overwrites the previous one, so there is at most one pending code per user.
    """

    __tablename__ = "user"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(256), unique=True, nullable=False, index=True)
    name = Column(String(256), nullable=True)
    is_recruiter = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    last_login_at = Column(DateTime, nullable=True)

    # One-time code (SHA-256 of the plaintext code)
    otp_code_hash = Column(String(64), nullable=True, index=True)
    otp_expires_at = Column(DateTime, nullable=True)
    otp_used = Column(Boolean, nullable=False, default=False)

    tokens = relationship(
        "SessionToken",
        back_populates="user",
        order_by="SessionToken.id",
        cascade="all, delete-orphan",
    )
