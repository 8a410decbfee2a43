"""认证相关路由定义。"""

from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.packages.ivr.api.v1.schemas.auth import LoginRequest, LogoutResponse, ProfileResponse, TokenResponse
from app.packages.ivr.core.dependencies import get_current_active_user, get_db, security_scheme
from app.packages.ivr.core.security import read_token
from app.packages.ivr.models.user import User
from app.packages.ivr.services.auth_service import auth_service

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)) -> TokenResponse:
    """校验凭证并签发访问令牌。"""
    return auth_service.login(db, username=payload.username, password=payload.password)


@router.post("/logout", response_model=LogoutResponse)
def logout(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_scheme),
    current_user: User = Depends(get_current_active_user),
) -> LogoutResponse:
    """退出登录：删除令牌对应的服务端会话，前端需同时删除本地缓存的令牌。"""
    claims = read_token(credentials.credentials) if credentials else None
    return auth_service.logout(claims.session_id if claims else None)


@router.get("/me", response_model=ProfileResponse)
def read_profile(current_user: User = Depends(get_current_active_user)) -> ProfileResponse:
    return auth_service.build_profile(current_user)
