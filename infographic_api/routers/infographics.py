"""Infographic API endpoints."""

from fastapi import APIRouter, Depends, Query, Request, Response
from sqlalchemy.orm import Session

from infographic_api.database import get_db
from infographic_api.dependencies import get_current_user, get_optional_user, restrict_to
from infographic_api.models.user import User
from infographic_api.schemas.auth import MessageResponse
from infographic_api.schemas.infographic import (
    InfographicCreate,
    InfographicData,
    InfographicListData,
    InfographicListResponse,
    InfographicResponse,
    InfographicUpdate,
    serialize_infographic,
)
from infographic_api.services.infographic import InfographicService

router = APIRouter(prefix="/api/v1/infographics", tags=["Infographics"])

editor = restrict_to("user", "admin")


def get_infographic_service(request: Request) -> InfographicService:
    return request.app.state.infographic_service


def _list_response(items) -> InfographicListResponse:
    return InfographicListResponse(
        results=len(items),
        data=InfographicListData(infographics=[serialize_infographic(item) for item in items]),
    )


def _single_response(infographic, message: str | None = None) -> InfographicResponse:
    return InfographicResponse(message=message, data=InfographicData(infographic=serialize_infographic(infographic)))


@router.get("", response_model=InfographicListResponse)
def list_infographics(
    category: str | None = None,
    tags: list[str] | None = Query(default=None),
    viewer: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
    service: InfographicService = Depends(get_infographic_service),
) -> InfographicListResponse:
    """Public infographics, plus the caller's own when authenticated."""
    return _list_response(service.list_visible(db, viewer, category=category, tags=tags))


@router.post("", response_model=InfographicResponse, status_code=201)
def create_infographic(
    body: InfographicCreate,
    user: User = Depends(editor),
    db: Session = Depends(get_db),
    service: InfographicService = Depends(get_infographic_service),
) -> InfographicResponse:
    infographic = service.create(db, user, body.model_dump())
    return _single_response(infographic)


@router.get("/user/{user_id}", response_model=InfographicListResponse)
def list_user_infographics(
    user_id: int,
    viewer: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
    service: InfographicService = Depends(get_infographic_service),
) -> InfographicListResponse:
    return _list_response(service.list_for_owner(db, user_id, viewer))


@router.get("/export-check/{infographic_id}", response_model=MessageResponse)
def check_export_limit(
    infographic_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    service: InfographicService = Depends(get_infographic_service),
) -> MessageResponse:
    service.check_export(db, infographic_id, user)
    return MessageResponse(message="You can export your infographic.")


@router.post("/export/{infographic_id}", response_model=InfographicResponse)
def export_infographic(
    infographic_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    service: InfographicService = Depends(get_infographic_service),
) -> InfographicResponse:
    infographic = service.export(db, infographic_id, user)
    return _single_response(infographic, "Infographic exported successfully.")


@router.get("/{infographic_id}", response_model=InfographicResponse)
def get_infographic(
    infographic_id: int,
    viewer: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
    service: InfographicService = Depends(get_infographic_service),
) -> InfographicResponse:
    return _single_response(service.get_visible(db, infographic_id, viewer))


@router.patch("/{infographic_id}", response_model=InfographicResponse)
def update_infographic(
    infographic_id: int,
    body: InfographicUpdate,
    user: User = Depends(editor),
    db: Session = Depends(get_db),
    service: InfographicService = Depends(get_infographic_service),
) -> InfographicResponse:
    changes = body.model_dump(exclude_unset=True)
    changes = {field: value for field, value in changes.items() if value is not None or field == "description"}
    return _single_response(service.update(db, infographic_id, user, changes))


@router.delete("/{infographic_id}", status_code=204, response_class=Response)
def delete_infographic(
    infographic_id: int,
    user: User = Depends(editor),
    db: Session = Depends(get_db),
    service: InfographicService = Depends(get_infographic_service),
) -> Response:
    service.delete(db, infographic_id, user)
    return Response(status_code=204)


@router.post("/{infographic_id}/like", response_model=InfographicResponse)
def like_infographic(
    infographic_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    service: InfographicService = Depends(get_infographic_service),
) -> InfographicResponse:
    return _single_response(service.set_like(db, infographic_id, user, liked=True))


@router.delete("/{infographic_id}/like", response_model=InfographicResponse)
def unlike_infographic(
    infographic_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    service: InfographicService = Depends(get_infographic_service),
) -> InfographicResponse:
    return _single_response(service.set_like(db, infographic_id, user, liked=False))
