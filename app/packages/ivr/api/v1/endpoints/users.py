"""用户管理路由，仅管理员可用。"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.packages.ivr.api.v1.schemas.users import (
    UserCreateRequest,
    UserDeletionResponse,
    UserListResponse,
    UserResponse,
    UserUpdateRequest,
)
from app.packages.ivr.core.dependencies import get_db, require_admin
from app.packages.ivr.models.user import User
from app.packages.ivr.services.user_service import user_service

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=UserListResponse)
def list_users(
    keyword: Optional[str] = Query(None, description="用户名或显示名称模糊匹配"),
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> UserListResponse:
    return user_service.list_users(db, keyword=keyword)


@router.get("/{username}", response_model=UserResponse)
def get_user(username: str, db: Session = Depends(get_db), _: User = Depends(require_admin)) -> UserResponse:
    return user_service.get_user(db, username=username)


@router.post("", response_model=UserResponse)
def create_user(
    payload: UserCreateRequest,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> UserResponse:
    return user_service.create_user(db, **payload.model_dump())


@router.put("/{username}", response_model=UserResponse)
def update_user(
    username: str,
    payload: UserUpdateRequest,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> UserResponse:
    return user_service.update_user(db, username=username, **payload.model_dump())


@router.delete("/{username}", response_model=UserDeletionResponse)
def delete_user(username: str, db: Session = Depends(get_db), _: User = Depends(require_admin)) -> UserDeletionResponse:
    return user_service.delete_user(db, username=username)
