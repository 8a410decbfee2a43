"""活动日志相关的响应模型。"""

from typing import List, Optional

from pydantic import BaseModel

from app.packages.ivr.api.v1.schemas.common import ResponseEnvelope


class ActivityLogItem(BaseModel):
    id: int
    file_name: str
    path: Optional[str] = None
    username: str
    user_display_name: str
    action: str
    action_label: str
    timestamp: Optional[str] = None


class ActivityLogListData(BaseModel):
    total: int
    items: List[ActivityLogItem]
    page: int
    page_size: int


ActivityLogListResponse = ResponseEnvelope[ActivityLogListData]
ActivityLogClearResponse = ResponseEnvelope[dict]
