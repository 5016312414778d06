"""Authentication service."""

import logging

from sqlalchemy.orm import Session

from infographic_api.config import Settings
from infographic_api.errors import (
    ConflictError,
    NotFoundError,
    UnauthenticatedError,
    ValidationError,
)
from infographic_api.models.user import User, hash_password
from infographic_api.repositories import UserRepository
from infographic_api.services.email import EmailDeliveryError, EmailService
from infographic_api.services.tokens import hash_one_time_secret

logger = logging.getLogger("infographic_api")

INVALID_TOKEN_MESSAGE = "Token is invalid or has expired"


class AuthService:
    """Handles registration, login, and password/email token flows."""

    def __init__(self, settings: Settings, email_service: EmailService) -> None:
        self.bcrypt_rounds = settings.BCRYPT_ROUNDS
        self.email_service = email_service

    def register(
        self,
        db: Session,
        name: str,
        email: str,
        password: str,
        base_url: str,
        phone: str | None = None,
        gender: str | None = None,
    ) -> User:
        """Create a user and send an email verification link."""
        users = UserRepository(db)
        if users.email_taken(email):
            raise ConflictError("Email already in use")

        user = User(
            name=name.strip(),
            email=email.strip().lower(),
            phone=phone,
            gender=gender or "prefer-not-to-say",
            role="user",
            is_active=True,
            email_verified=False,
        )
        user.set_password(password, rounds=self.bcrypt_rounds)
        raw_token = user.create_email_verification_token()
        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info("Registered user %s", user.id)

        try:
            self.email_service.send_email_verification(
                user.email, user.name, f"{base_url}/api/v1/auth/verify-email/{raw_token}"
            )
        except EmailDeliveryError:
            logger.warning("Verification email for user %s was not delivered", user.id)
        return user

    def authenticate(self, db: Session, email: str, password: str) -> User:
        """Return the active user matching the credentials."""
        user = UserRepository(db).find_active_by_email(email)
        if not user or not user.verify_password(password):
            logger.info("Failed login attempt for %s", email)
            raise UnauthenticatedError("Incorrect email or password")
        return user

    def request_password_reset(self, db: Session, email: str, base_url: str) -> str:
        """Generate a reset token and hand the link to the email service.

        Returns the client-facing message.
        """
        user = UserRepository(db).find_active_by_email(email)
        if not user:
            raise NotFoundError("There is no user with that email address.")

        raw_token = user.create_password_reset_token()
        db.commit()

        try:
            self.email_service.send_password_reset(
                user.email, user.name, f"{base_url}/api/v1/auth/reset-password/{raw_token}"
            )
        except EmailDeliveryError:
            user.clear_password_reset_token()
            db.commit()
            return "Password reset token generated successfully!"
        logger.info("Password reset requested for user %s", user.id)
        return "Token sent to email!"

    def reset_password(self, db: Session, raw_token: str, new_password: str) -> User:
        """Consume a reset token and set the new password."""
        users = UserRepository(db)
        token_hash = hash_one_time_secret(raw_token)
        user = users.find_by_valid_reset_token(token_hash)
        if not user:
            raise ValidationError(INVALID_TOKEN_MESSAGE)

        if not users.consume_password_reset(user, token_hash, hash_password(new_password, self.bcrypt_rounds)):
            raise ValidationError(INVALID_TOKEN_MESSAGE)
        logger.info("Password reset completed for user %s", user.id)
        return user

    def update_password(self, db: Session, user: User, current_password: str, new_password: str) -> User:
        if not user.verify_password(current_password):
            raise UnauthenticatedError("Your current password is wrong.")
        user.set_password(new_password, rounds=self.bcrypt_rounds)
        db.commit()
        db.refresh(user)
        logger.info("Password changed for user %s", user.id)
        return user

    def update_profile(self, db: Session, user: User, name: str | None, email: str | None) -> User:
        """Update name and/or email; other fields are never touched here."""
        if email is not None:
            email = email.strip().lower()
            if UserRepository(db).email_taken(email, exclude_user_id=user.id):
                raise ConflictError("Email already in use")
            user.email = email
        if name is not None:
            user.name = name.strip()
        db.commit()
        db.refresh(user)
        return user

    def deactivate(self, db: Session, user: User) -> None:
        user.is_active = False
        db.commit()
        logger.info("Deactivated user %s", user.id)

    def verify_email(self, db: Session, raw_token: str) -> User:
        user = UserRepository(db).find_by_valid_verification_token(hash_one_time_secret(raw_token))
        if not user:
            raise ValidationError(INVALID_TOKEN_MESSAGE)
        user.email_verified = True
        user.email_verification_token = None
        user.email_verification_expires_at = None
        db.commit()
        db.refresh(user)
        return user
