"""Infographic service for CRUD, visibility, likes, and the export quota."""

import logging

from sqlalchemy.orm import Session

from infographic_api.errors import ForbiddenError, NotFoundError
from infographic_api.models.infographic import Infographic
from infographic_api.models.user import User
from infographic_api.repositories import InfographicRepository

logger = logging.getLogger("infographic_api")

NOT_FOUND_MESSAGE = "No infographic found with that ID"
EXPORT_LIMIT_MESSAGE = (
    "You have reached the export limit for this infographic. "
    "Please upgrade to a paid plan to continue exporting."
)


def _can_manage(infographic: Infographic, user: User) -> bool:
    return infographic.user_id == user.id or user.role == "admin"


class InfographicService:
    """Handles infographic persistence and per-user access rules."""

    def create(self, db: Session, owner: User, fields: dict) -> Infographic:
        infographic = Infographic(user_id=owner.id, **fields)
        db.add(infographic)
        db.commit()
        db.refresh(infographic)
        logger.info("User %s created infographic %s", owner.id, infographic.id)
        return infographic

    def list_visible(
        self,
        db: Session,
        viewer: User | None,
        category: str | None = None,
        tags: list[str] | None = None,
    ) -> list[Infographic]:
        return InfographicRepository(db).find_visible(
            viewer.id if viewer else None,
            category=category,
            tags=tags,
            include_private=bool(viewer and viewer.role == "admin"),
        )

    def list_for_owner(self, db: Session, owner_id: int, viewer: User | None) -> list[Infographic]:
        include_private = bool(viewer and (viewer.id == owner_id or viewer.role == "admin"))
        return InfographicRepository(db).find_visible(
            viewer.id if viewer else None,
            owner_id=owner_id,
            include_private=include_private,
        )

    def get_visible(self, db: Session, infographic_id: int, viewer: User | None) -> Infographic:
        """Public infographics are visible to anyone; private ones only to their owner or an admin.

        Private infographics report 404 to everyone else so their existence is not revealed.
        """
        infographic = InfographicRepository(db).find_with_owner(infographic_id)
        if not infographic:
            raise NotFoundError(NOT_FOUND_MESSAGE)
        if not infographic.is_public and not (viewer and _can_manage(infographic, viewer)):
            raise NotFoundError(NOT_FOUND_MESSAGE)
        infographic.views += 1
        db.commit()
        db.refresh(infographic)
        return infographic

    def get_managed(self, db: Session, infographic_id: int, user: User) -> Infographic:
        infographic = InfographicRepository(db).find_with_owner(infographic_id)
        if not infographic:
            raise NotFoundError(NOT_FOUND_MESSAGE)
        if not _can_manage(infographic, user):
            raise ForbiddenError("You do not have permission to modify this infographic")
        return infographic

    def update(self, db: Session, infographic_id: int, user: User, changes: dict) -> Infographic:
        infographic = self.get_managed(db, infographic_id, user)
        for field, value in changes.items():
            setattr(infographic, field, value)
        db.commit()
        db.refresh(infographic)
        return infographic

    def delete(self, db: Session, infographic_id: int, user: User) -> None:
        infographic = self.get_managed(db, infographic_id, user)
        db.delete(infographic)
        db.commit()
        logger.info("User %s deleted infographic %s", user.id, infographic_id)

    def check_export(self, db: Session, infographic_id: int, user: User) -> Infographic:
        infographic = self.get_managed(db, infographic_id, user)
        if not infographic.can_export():
            raise ForbiddenError(EXPORT_LIMIT_MESSAGE)
        return infographic

    def export(self, db: Session, infographic_id: int, user: User) -> Infographic:
        """Count one export against the quota; rejected exports leave the counter alone."""
        infographic = self.check_export(db, infographic_id, user)
        if not InfographicRepository(db).consume_export(infographic):
            raise ForbiddenError(EXPORT_LIMIT_MESSAGE)
        logger.info("Infographic %s exported (%s used)", infographic.id, infographic.export_count)
        return infographic

    def set_like(self, db: Session, infographic_id: int, user: User, liked: bool) -> Infographic:
        infographic = InfographicRepository(db).find_with_owner(infographic_id)
        if not infographic or not (infographic.is_public or _can_manage(infographic, user)):
            raise NotFoundError(NOT_FOUND_MESSAGE)
        already = any(liker.id == user.id for liker in infographic.liked_by)
        if liked and not already:
            infographic.liked_by.append(user)
        elif not liked and already:
            infographic.liked_by = [liker for liker in infographic.liked_by if liker.id != user.id]
        db.commit()
        db.refresh(infographic)
        return infographic
