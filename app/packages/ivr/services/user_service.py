"""用户服务：管理员对登录账号、角色、目录授权与操作权限的维护。"""

from __future__ import annotations

from typing import Iterable, Optional

from sqlalchemy.orm import Session

from app.packages.ivr.core.config import get_settings
from app.packages.ivr.core.constants import (
    HTTP_STATUS_BAD_REQUEST,
    HTTP_STATUS_CONFLICT,
    HTTP_STATUS_NOT_FOUND,
    HTTP_STATUS_OK,
)
from app.packages.ivr.core.enums import RoleEnum
from app.packages.ivr.core.exceptions import AppException
from app.packages.ivr.core.logger import logger
from app.packages.ivr.core.responses import create_response
from app.packages.ivr.core.security import hash_password
from app.packages.ivr.core.session import close_user_sessions
from app.packages.ivr.crud.users import user_crud
from app.packages.ivr.models.user import User
from app.packages.ivr.services.access_policy import normalize_grants


class UserService:
    # ------------------------------------------------------------------
    # 查询
    # ------------------------------------------------------------------

    def list_users(self, db: Session, *, keyword: Optional[str] = None) -> dict:
        items = user_crud.list_all(db, keyword=keyword)
        payload = {"total": len(items), "items": [self._serialize_user(item) for item in items]}
        return create_response("获取用户列表成功", payload, HTTP_STATUS_OK)

    def get_user(self, db: Session, *, username: str) -> dict:
        user = self._get_or_404(db, username)
        return create_response("获取用户详情成功", self._serialize_user(user), HTTP_STATUS_OK)

    # ------------------------------------------------------------------
    # 增删改
    # ------------------------------------------------------------------

    def create_user(
        self,
        db: Session,
        *,
        username: str,
        password: str,
        display_name: Optional[str] = None,
        role: str = RoleEnum.STANDARD.value,
        granted_paths: Optional[Iterable[str]] = None,
        can_upload: bool = False,
        can_delete: bool = False,
        can_download: bool = False,
    ) -> dict:
        trimmed_username = (username or "").strip()
        if not trimmed_username:
            raise AppException("用户名不能为空", HTTP_STATUS_BAD_REQUEST)
        if not (password or "").strip():
            raise AppException("密码不能为空", HTTP_STATUS_BAD_REQUEST)
        if user_crud.get_by_username(db, trimmed_username):
            raise AppException("用户名已存在", HTTP_STATUS_CONFLICT)

        user = User(
            username=trimmed_username,
            display_name=self._normalize_display_name(display_name) or trimmed_username,
            hashed_password=hash_password(password),
            role=self._normalize_role(role),
            can_upload=bool(can_upload),
            can_delete=bool(can_delete),
            can_download=bool(can_download),
        )
        user.granted_paths = list(normalize_grants(granted_paths or ()))
        user = user_crud.save(db, user)
        logger.info("User %s created", user.username)
        return create_response("创建用户成功", self._serialize_user(user), HTTP_STATUS_OK)

    def update_user(
        self,
        db: Session,
        *,
        username: str,
        password: Optional[str] = None,
        display_name: Optional[str] = None,
        role: Optional[str] = None,
        granted_paths: Optional[Iterable[str]] = None,
        can_upload: Optional[bool] = None,
        can_delete: Optional[bool] = None,
        can_download: Optional[bool] = None,
        is_active: Optional[bool] = None,
    ) -> dict:
        """只更新传入的字段；``granted_paths`` 为整体替换。"""
        user = self._get_or_404(db, username)
        builtin = self._is_builtin_admin(user)

        if role is not None:
            normalized_role = self._normalize_role(role)
            if builtin and normalized_role != RoleEnum.ADMIN.value:
                raise AppException("系统内置管理员不允许降级", HTTP_STATUS_BAD_REQUEST)
            user.role = normalized_role
        if display_name is not None:
            user.display_name = self._normalize_display_name(display_name) or user.username
        if granted_paths is not None:
            user.granted_paths = list(normalize_grants(granted_paths))
        if can_upload is not None:
            user.can_upload = can_upload
        if can_delete is not None:
            user.can_delete = can_delete
        if can_download is not None:
            user.can_download = can_download
        if is_active is not None:
            if builtin and not is_active:
                raise AppException("系统内置管理员不允许停用", HTTP_STATUS_BAD_REQUEST)
            user.is_active = is_active

        password_changed = bool(password and password.strip())
        if password_changed:
            user.hashed_password = hash_password(password)

        user = user_crud.save(db, user)
        # 修改密码或停用账号后强制重新登录
        if password_changed or is_active is False:
            close_user_sessions(user.id)
        return create_response("更新用户成功", self._serialize_user(user), HTTP_STATUS_OK)

    def delete_user(self, db: Session, *, username: str) -> dict:
        user = self._get_or_404(db, username)
        if self._is_builtin_admin(user):
            raise AppException("系统内置管理员不允许删除", HTTP_STATUS_BAD_REQUEST)

        user_id = user.id
        user_crud.hard_delete(db, user)
        close_user_sessions(user_id)
        logger.info("User %s deleted", username)
        return create_response("删除用户成功", {"username": username}, HTTP_STATUS_OK)

    # ------------------------------------------------------------------
    # 辅助方法
    # ------------------------------------------------------------------

    def _get_or_404(self, db: Session, username: str) -> User:
        user = user_crud.get_by_username(db, (username or "").strip())
        if user is None:
            raise AppException("用户不存在或已删除", HTTP_STATUS_NOT_FOUND)
        return user

    @staticmethod
    def _is_builtin_admin(user: User) -> bool:
        return user.username == get_settings().default_admin_username

    @staticmethod
    def _normalize_role(role: Optional[str]) -> str:
        token = (role or "").strip().lower()
        try:
            return RoleEnum(token).value
        except ValueError:
            raise AppException("未知的角色", HTTP_STATUS_BAD_REQUEST) from None

    @staticmethod
    def _normalize_display_name(value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip() or None

    @staticmethod
    def _serialize_user(user: User) -> dict:
        return {
            "username": user.username,
            "display_name": user.display_name,
            "role": user.role,
            "granted_paths": user.granted_paths,
            "can_upload": bool(user.can_upload),
            "can_delete": bool(user.can_delete),
            "can_download": bool(user.can_download),
            "is_active": bool(user.is_active),
        }


user_service = UserService()
