"""用户模型：登录账号、角色以及目录授权范围。"""

from __future__ import annotations

import json
from typing import Optional

from sqlalchemy import Boolean, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import expression

from app.packages.ivr.core.enums import RoleEnum
from app.packages.ivr.models.base import Base, TimestampMixin


class User(TimestampMixin, Base):
    """系统用户。

    ``username`` 即 IVR 系统中的登录编号（通常是电话号码）；
    ``granted_paths_raw`` 以 JSON 数组保存授权的目录前缀，管理员忽略该字段。
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    username: Mapped[str] = mapped_column(String(50), unique=True, index=True, nullable=False)
    display_name: Mapped[str] = mapped_column(String(100), nullable=False)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(16), default=RoleEnum.STANDARD.value, nullable=False)
    granted_paths_raw: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    can_upload: Mapped[bool] = mapped_column(Boolean, server_default=expression.false(), default=False, nullable=False)
    can_delete: Mapped[bool] = mapped_column(Boolean, server_default=expression.false(), default=False, nullable=False)
    can_download: Mapped[bool] = mapped_column(Boolean, server_default=expression.false(), default=False, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, server_default=expression.true(), default=True, nullable=False)

    @property
    def granted_paths(self) -> list[str]:
        if not self.granted_paths_raw:
            return []
        try:
            value = json.loads(self.granted_paths_raw)
        except ValueError:
            return []
        return [str(item) for item in value] if isinstance(value, list) else []

    @granted_paths.setter
    def granted_paths(self, paths: list[str]) -> None:
        self.granted_paths_raw = json.dumps(list(paths), ensure_ascii=False)

    @property
    def is_admin(self) -> bool:
        return self.role == RoleEnum.ADMIN.value
