"""User model."""

from calendar import timegm
from datetime import timedelta

import bcrypt
from sqlalchemy import Boolean, Column, DateTime, Integer, String

from infographic_api.database import Base, utcnow
from infographic_api.services.tokens import (
    RESET_TOKEN_LIFETIME,
    VERIFICATION_TOKEN_LIFETIME,
    generate_one_time_secret,
)

ROLES = ("user", "admin")
GENDERS = ("male", "female", "other", "prefer-not-to-say")


def hash_password(plaintext: str, rounds: int = 12) -> str:
    """bcrypt hash with the given work factor."""
    return bcrypt.hashpw(plaintext.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


class User(Base):
    """Application user."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), nullable=False)
    email = Column(String(256), unique=True, nullable=False, index=True)
    phone = Column(String(32), nullable=True)
    gender = Column(String(32), nullable=False, default="prefer-not-to-say")
    photo = Column(String(256), nullable=False, default="default.jpg")
    role = Column(String(16), nullable=False, default="user")
    password_hash = Column(String(256), nullable=False)
    password_changed_at = Column(DateTime, nullable=True)
    password_reset_token = Column(String(64), nullable=True, index=True)
    password_reset_expires_at = Column(DateTime, nullable=True)
    email_verified = Column(Boolean, nullable=False, default=False)
    email_verification_token = Column(String(64), nullable=True, index=True)
    email_verification_expires_at = Column(DateTime, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def set_password(self, plaintext: str, rounds: int = 12) -> None:
        """Hash and store a new password.

        Replacing an existing hash stamps ``password_changed_at`` one second in
        the past so a token issued in the same second as the change stays valid.
        """
        replacing = self.password_hash is not None
        self.password_hash = hash_password(plaintext, rounds)
        if replacing:
            self.password_changed_at = utcnow() - timedelta(seconds=1)

    def verify_password(self, candidate: str) -> bool:
        if not self.password_hash:
            return False
        return bcrypt.checkpw(candidate.encode("utf-8"), self.password_hash.encode("utf-8"))

    def changed_password_after(self, issued_at: int) -> bool:
        """True if the password changed after a token issued at ``issued_at`` (epoch seconds)."""
        if self.password_changed_at is None:
            return False
        return timegm(self.password_changed_at.timetuple()) > issued_at

    def create_password_reset_token(self) -> str:
        """Store the hash of a fresh reset token and return the raw value."""
        raw, hashed = generate_one_time_secret()
        self.password_reset_token = hashed
        self.password_reset_expires_at = utcnow() + RESET_TOKEN_LIFETIME
        return raw

    def clear_password_reset_token(self) -> None:
        self.password_reset_token = None
        self.password_reset_expires_at = None

    def create_email_verification_token(self) -> str:
        """Store the hash of a fresh verification token and return the raw value."""
        raw, hashed = generate_one_time_secret()
        self.email_verification_token = hashed
        self.email_verification_expires_at = utcnow() + VERIFICATION_TOKEN_LIFETIME
        return raw
