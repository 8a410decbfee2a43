"""目录浏览与文件操作的请求/响应模型。"""

from typing import Any, Optional

from pydantic import BaseModel, Field

from app.packages.ivr.api.v1.schemas.common import ResponseEnvelope


class MetadataUpdateBody(BaseModel):
    path: str = Field(..., min_length=1)
    # 空字符串表示移除自定义描述
    text: Optional[str] = None


FilesListResponse = ResponseEnvelope[dict]
FilesSearchResponse = ResponseEnvelope[dict]
FilesMutationResponse = ResponseEnvelope[Any]
