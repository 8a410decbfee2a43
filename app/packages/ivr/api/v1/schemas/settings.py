"""远端凭证设置的请求与响应模型。"""

from typing import Optional

from pydantic import BaseModel, Field

from app.packages.ivr.api.v1.schemas.common import ResponseEnvelope


class CredentialUpdateBody(BaseModel):
    # 空字符串表示清除凭证，之后只使用基线数据
    token: str = Field(default="", max_length=512)


class CredentialData(BaseModel):
    configured: bool
    token: Optional[str] = None


class CredentialValidationData(BaseModel):
    connected: bool


CredentialResponse = ResponseEnvelope[CredentialData]
CredentialValidationResponse = ResponseEnvelope[CredentialValidationData]
