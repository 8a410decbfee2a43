"""认证相关的请求与响应模型。"""

from typing import Literal

from pydantic import BaseModel, Field

from app.packages.ivr.api.v1.schemas.common import ResponseEnvelope


class LoginRequest(BaseModel):
    """登录请求：用户名通常是电话号码，IVR 系统的密码可以是短数字串。"""

    username: str = Field(..., min_length=1, max_length=50)
    password: str = Field(..., min_length=1, max_length=128)


class TokenResponseData(BaseModel):
    """登录成功后签发的令牌信息。"""

    access_token: str
    token_type: Literal["bearer"]


class ProfileData(BaseModel):
    username: str
    display_name: str
    role: str
    granted_paths: list[str]
    can_upload: bool
    can_delete: bool
    can_download: bool


TokenResponse = ResponseEnvelope[TokenResponseData]
LogoutResponse = ResponseEnvelope[None]
ProfileResponse = ResponseEnvelope[ProfileData]
