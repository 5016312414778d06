"""Admin user management."""

import logging

from sqlalchemy.orm import Session

from infographic_api.errors import ConflictError, NotFoundError
from infographic_api.models.user import User
from infographic_api.repositories import UserRepository

logger = logging.getLogger("infographic_api")


class UserAdminService:
    """Admin-only operations over user accounts."""

    def list_users(self, db: Session) -> list[User]:
        return UserRepository(db).find_active()

    def get_user(self, db: Session, user_id: int) -> User:
        user = UserRepository(db).get_by_id(user_id)
        if not user:
            raise NotFoundError("No user found with that ID")
        return user

    def update_user(self, db: Session, user_id: int, changes: dict) -> User:
        """Apply admin changes; ``changes`` holds only name/email/role/is_active."""
        users = UserRepository(db)
        user = self.get_user(db, user_id)
        if "email" in changes:
            changes["email"] = changes["email"].strip().lower()
            if users.email_taken(changes["email"], exclude_user_id=user.id):
                raise ConflictError("Email already in use")
        if "name" in changes:
            changes["name"] = changes["name"].strip()
        for field, value in changes.items():
            setattr(user, field, value)
        db.commit()
        db.refresh(user)
        logger.info("Admin updated user %s: %s", user.id, ", ".join(sorted(changes)))
        return user

    def delete_user(self, db: Session, user_id: int) -> None:
        """Soft delete; the row stays for audit and can be reactivated."""
        user = self.get_user(db, user_id)
        user.is_active = False
        db.commit()
        logger.info("Admin deactivated user %s", user.id)

    def registration_stats(self, db: Session) -> list[dict]:
        return UserRepository(db).registrations_by_month()
