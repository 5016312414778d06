"""Pydantic schemas for infographic endpoints."""

import json
from datetime import datetime
from typing import Any, Literal

from pydantic import Field, field_validator

from infographic_api.models.infographic import Infographic
from infographic_api.schemas.base import CamelModel

Category = Literal["business", "education", "health", "technology", "marketing", "other"]


def parse_design_state(value: Any) -> str:
    """Accept a JSON string or structure; return canonical JSON text.

    The design state must decode to a non-empty object or array.
    """
    if isinstance(value, str):
        if not value.strip():
            raise ValueError("Design state cannot be empty")
        try:
            value = json.loads(value)
        except json.JSONDecodeError as exc:
            raise ValueError("Design state must be valid JSON") from exc
    if not isinstance(value, (dict, list)) or not value:
        raise ValueError("Design state must be a non-empty JSON object or array")
    return json.dumps(value, separators=(",", ":"))


def normalize_tags(tags: list[str]) -> list[str]:
    seen: list[str] = []
    for tag in tags:
        tag = tag.strip().lower()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


class InfographicCreate(CamelModel):
    title: str = Field(min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    design_state: Any
    is_public: bool = False
    tags: list[str] = Field(default_factory=list)
    category: Category = "other"
    template: str = Field(default="default", max_length=64)
    style: dict[str, Any] = Field(default_factory=dict)

    @field_validator("title")
    @classmethod
    def strip_title(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Please provide a title")
        return value

    @field_validator("design_state")
    @classmethod
    def check_design_state(cls, value: Any) -> str:
        return parse_design_state(value)

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, value: list[str]) -> list[str]:
        return normalize_tags(value)


class InfographicUpdate(CamelModel):
    """Partial update. Ownership and the export counter are not writable."""

    title: str | None = Field(default=None, min_length=1, max_length=100)
    description: str | None = Field(default=None, max_length=500)
    design_state: Any = None
    is_public: bool | None = None
    tags: list[str] | None = None
    category: Category | None = None
    template: str | None = Field(default=None, max_length=64)
    style: dict[str, Any] | None = None

    @field_validator("design_state")
    @classmethod
    def check_design_state(cls, value: Any) -> str | None:
        return parse_design_state(value) if value is not None else None

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, value: list[str] | None) -> list[str] | None:
        return normalize_tags(value) if value is not None else None


class OwnerOut(CamelModel):
    id: int
    name: str
    photo: str


class InfographicOut(CamelModel):
    id: int
    owner: OwnerOut
    title: str
    description: str | None
    design_state: Any
    thumbnail: str
    is_public: bool
    tags: list[str]
    category: str
    template: str
    style: dict[str, Any]
    views: int
    downloads: int
    export_count: int
    likes_count: int
    created_at: datetime
    updated_at: datetime


def serialize_infographic(infographic: Infographic) -> InfographicOut:
    """Build the response view; ``likes_count`` is derived here, never stored."""
    return InfographicOut(
        id=infographic.id,
        owner=OwnerOut.model_validate(infographic.owner),
        title=infographic.title,
        description=infographic.description,
        design_state=json.loads(infographic.design_state),
        thumbnail=infographic.thumbnail,
        is_public=infographic.is_public,
        tags=infographic.tags or [],
        category=infographic.category,
        template=infographic.template,
        style=infographic.style or {},
        views=infographic.views,
        downloads=infographic.downloads,
        export_count=infographic.export_count,
        likes_count=len(infographic.liked_by),
        created_at=infographic.created_at,
        updated_at=infographic.updated_at,
    )


class InfographicData(CamelModel):
    infographic: InfographicOut


class InfographicResponse(CamelModel):
    status: str = "success"
    message: str | None = None
    data: InfographicData


class InfographicListData(CamelModel):
    infographics: list[InfographicOut]


class InfographicListResponse(CamelModel):
    status: str = "success"
    results: int
    data: InfographicListData
