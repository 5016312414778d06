"""Named query methods over the user and infographic tables.

Soft-delete filtering and owner loading happen here, at the call site's
request, rather than through implicit query hooks.
"""

from collections import Counter
from datetime import timedelta

from sqlalchemy import or_, update
from sqlalchemy.orm import Session

from infographic_api.database import utcnow
from infographic_api.models.infographic import EXPORT_QUOTA, Infographic
from infographic_api.models.user import User


class UserRepository:
    """User lookups. Every ``find_active*`` method excludes soft-deleted users."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def find_active_by_id(self, user_id: int) -> User | None:
        return self.db.query(User).filter(User.id == user_id, User.is_active.is_(True)).first()

    def find_active_by_email(self, email: str) -> User | None:
        return (
            self.db.query(User)
            .filter(User.email == email.strip().lower(), User.is_active.is_(True))
            .first()
        )

    def find_active(self) -> list[User]:
        return self.db.query(User).filter(User.is_active.is_(True)).order_by(User.id).all()

    def get_by_id(self, user_id: int) -> User | None:
        """Admin lookup; includes soft-deleted users."""
        return self.db.get(User, user_id)

    def email_taken(self, email: str, exclude_user_id: int | None = None) -> bool:
        """Uniqueness spans inactive users too, matching the table constraint."""
        query = self.db.query(User.id).filter(User.email == email.strip().lower())
        if exclude_user_id is not None:
            query = query.filter(User.id != exclude_user_id)
        return query.first() is not None

    def find_by_valid_reset_token(self, token_hash: str) -> User | None:
        return (
            self.db.query(User)
            .filter(
                User.password_reset_token == token_hash,
                User.password_reset_expires_at > utcnow(),
                User.is_active.is_(True),
            )
            .first()
        )

    def find_by_valid_verification_token(self, token_hash: str) -> User | None:
        return (
            self.db.query(User)
            .filter(
                User.email_verification_token == token_hash,
                User.email_verification_expires_at > utcnow(),
                User.is_active.is_(True),
            )
            .first()
        )

    def consume_password_reset(self, user: User, token_hash: str, password_hash: str) -> bool:
        """Set a new password only if ``token_hash`` is still the stored reset token.

        Returns False when a concurrent request consumed the token first.
        """
        now = utcnow()
        result = self.db.execute(
            update(User)
            .where(User.id == user.id, User.password_reset_token == token_hash)
            .values(
                password_hash=password_hash,
                password_changed_at=now - timedelta(seconds=1),
                password_reset_token=None,
                password_reset_expires_at=None,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        if result.rowcount != 1:
            return False
        self.db.refresh(user)
        return True

    def registrations_by_month(self) -> list[dict]:
        """Count registrations per calendar month over the last year."""
        since = utcnow() - timedelta(days=365)
        rows = self.db.query(User.created_at).filter(User.created_at >= since).all()
        counts = Counter(created_at.month for (created_at,) in rows)
        return [{"month": month, "total": counts[month]} for month in sorted(counts)]


class InfographicRepository:
    """Infographic lookups. Owners are loaded eagerly by the model's relationship."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def find_with_owner(self, infographic_id: int) -> Infographic | None:
        return self.db.get(Infographic, infographic_id)

    def find_visible(
        self,
        viewer_id: int | None,
        category: str | None = None,
        tags: list[str] | None = None,
        owner_id: int | None = None,
        include_private: bool = False,
    ) -> list[Infographic]:
        """Public infographics plus, when ``viewer_id`` is given, the viewer's own."""
        query = self.db.query(Infographic)
        if owner_id is not None:
            query = query.filter(Infographic.user_id == owner_id)
        if not include_private:
            if viewer_id is None:
                query = query.filter(Infographic.is_public.is_(True))
            else:
                query = query.filter(or_(Infographic.is_public.is_(True), Infographic.user_id == viewer_id))
        if category:
            query = query.filter(Infographic.category == category)
        items = query.order_by(Infographic.created_at.desc(), Infographic.id.desc()).all()
        if tags:
            wanted = {tag.strip().lower() for tag in tags}
            items = [item for item in items if wanted.intersection(item.tags or [])]
        return items

    def consume_export(self, infographic: Infographic) -> bool:
        """Increment ``export_count`` unless the quota is used up. Returns False when rejected."""
        result = self.db.execute(
            update(Infographic)
            .where(Infographic.id == infographic.id, Infographic.export_count < EXPORT_QUOTA)
            .values(export_count=Infographic.export_count + 1, downloads=Infographic.downloads + 1)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        self.db.refresh(infographic)
        return result.rowcount == 1
