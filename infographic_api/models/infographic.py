"""Infographic and like models."""

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String, Table, Text
from sqlalchemy.orm import relationship

from infographic_api.database import Base, utcnow

EXPORT_QUOTA = 5
CATEGORIES = ("business", "education", "health", "technology", "marketing", "other")

infographic_likes = Table(
    "infographic_likes",
    Base.metadata,
    Column("infographic_id", Integer, ForeignKey("infographics.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class Infographic(Base):
    """Saved editor design owned by a user."""

    __tablename__ = "infographics"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(100), nullable=False)
    description = Column(String(500), nullable=True)
    design_state = Column(Text, nullable=False)
    thumbnail = Column(String(256), nullable=False, default="default-infographic.jpg")
    is_public = Column(Boolean, nullable=False, default=False, index=True)
    tags = Column(JSON, nullable=False, default=list)
    category = Column(String(32), nullable=False, default="other")
    template = Column(String(64), nullable=False, default="default")
    style = Column(JSON, nullable=False, default=dict)
    views = Column(Integer, nullable=False, default=0)
    downloads = Column(Integer, nullable=False, default=0)
    export_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    owner = relationship("User", lazy="joined")
    liked_by = relationship("User", secondary=infographic_likes, lazy="selectin")

    def can_export(self) -> bool:
        return self.export_count < EXPORT_QUOTA
