"""用户管理相关的请求与响应模型。"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from app.packages.ivr.api.v1.schemas.common import ResponseEnvelope
from app.packages.ivr.core.enums import RoleEnum


class UserPermissionFields(BaseModel):
    can_upload: Optional[bool] = Field(default=None, description="是否允许上传")
    can_delete: Optional[bool] = Field(default=None, description="是否允许删除")
    can_download: Optional[bool] = Field(default=None, description="是否允许下载")


class UserCreateRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=50, description="登录编号（电话号码）")
    password: str = Field(..., min_length=1, max_length=128)
    display_name: Optional[str] = Field(default=None, max_length=100, description="显示名称")
    role: str = Field(default=RoleEnum.STANDARD.value, description="角色：admin / standard")
    granted_paths: List[str] = Field(default_factory=list, description="授权的目录前缀")
    can_upload: bool = False
    can_delete: bool = False
    can_download: bool = False

    @model_validator(mode="after")
    def _trim_fields(self) -> "UserCreateRequest":
        self.username = self.username.strip()
        if not self.username:
            raise ValueError("用户名不能为空")
        return self


class UserUpdateRequest(UserPermissionFields):
    """只更新显式传入的字段；``granted_paths`` 传入时整体替换。"""

    password: Optional[str] = Field(default=None, max_length=128)
    display_name: Optional[str] = Field(default=None, max_length=100)
    role: Optional[str] = None
    granted_paths: Optional[List[str]] = None
    is_active: Optional[bool] = None


class UserData(BaseModel):
    username: str
    display_name: str
    role: str
    granted_paths: List[str]
    can_upload: bool
    can_delete: bool
    can_download: bool
    is_active: bool


class UserListData(BaseModel):
    total: int
    items: List[UserData]


UserResponse = ResponseEnvelope[UserData]
UserListResponse = ResponseEnvelope[UserListData]
UserDeletionResponse = ResponseEnvelope[dict]
