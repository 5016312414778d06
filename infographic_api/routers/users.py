"""Admin user management endpoints."""

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from infographic_api.database import get_db
from infographic_api.dependencies import restrict_to
from infographic_api.schemas.user import (
    AdminUpdateUserRequest,
    AdminUserData,
    AdminUserOut,
    AdminUserResponse,
    MonthStat,
    StatsData,
    StatsResponse,
    UserListData,
    UserListResponse,
)
from infographic_api.services.users import UserAdminService

router = APIRouter(
    prefix="/api/v1/users",
    tags=["Users"],
    dependencies=[Depends(restrict_to("admin"))],
)


def get_user_admin_service(request: Request) -> UserAdminService:
    return request.app.state.user_admin_service


@router.get("", response_model=UserListResponse)
def list_users(
    db: Session = Depends(get_db),
    service: UserAdminService = Depends(get_user_admin_service),
) -> UserListResponse:
    users = service.list_users(db)
    return UserListResponse(
        results=len(users),
        data=UserListData(users=[AdminUserOut.model_validate(u) for u in users]),
    )


@router.get("/stats", response_model=StatsResponse)
def user_stats(
    db: Session = Depends(get_db),
    service: UserAdminService = Depends(get_user_admin_service),
) -> StatsResponse:
    """Registrations per month over the last year."""
    stats = service.registration_stats(db)
    return StatsResponse(data=StatsData(stats=[MonthStat(**row) for row in stats]))


@router.get("/{user_id}", response_model=AdminUserResponse)
def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    service: UserAdminService = Depends(get_user_admin_service),
) -> AdminUserResponse:
    user = service.get_user(db, user_id)
    return AdminUserResponse(data=AdminUserData(user=AdminUserOut.model_validate(user)))


@router.patch("/{user_id}", response_model=AdminUserResponse)
def update_user(
    user_id: int,
    body: AdminUpdateUserRequest,
    db: Session = Depends(get_db),
    service: UserAdminService = Depends(get_user_admin_service),
) -> AdminUserResponse:
    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    if "active" in changes:
        changes["is_active"] = changes.pop("active")
    user = service.update_user(db, user_id, changes)
    return AdminUserResponse(data=AdminUserData(user=AdminUserOut.model_validate(user)))


@router.delete("/{user_id}", status_code=204, response_class=Response)
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    service: UserAdminService = Depends(get_user_admin_service),
) -> Response:
    service.delete_user(db, user_id)
    return Response(status_code=204)
