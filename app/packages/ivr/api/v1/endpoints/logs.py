"""活动日志路由，仅管理员可用。"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.packages.ivr.api.v1.schemas.logs import ActivityLogClearResponse, ActivityLogListResponse
from app.packages.ivr.core.dependencies import get_db, require_admin
from app.packages.ivr.models.user import User
from app.packages.ivr.services.activity_log_service import activity_log_service

router = APIRouter(prefix="/logs", tags=["logs"])


@router.get("", response_model=ActivityLogListResponse)
def list_activity_logs(
    keyword: Optional[str] = Query(None, description="用户显示名称、用户名或文件名模糊匹配"),
    actions: Optional[list[str]] = Query(None, description="动作过滤：download/upload/delete，可多选"),
    page: int = Query(1, ge=1, description="页码，从 1 开始"),
    page_size: int = Query(50, ge=1, le=500, description="每页数量"),
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
) -> ActivityLogListResponse:
    return activity_log_service.list_logs(db, keyword=keyword, actions=actions, page=page, page_size=page_size)


@router.delete("", response_model=ActivityLogClearResponse)
def clear_activity_logs(db: Session = Depends(get_db), _: User = Depends(require_admin)) -> ActivityLogClearResponse:
    return activity_log_service.clear_logs(db)


@router.get("/export")
def export_activity_logs(
    keyword: Optional[str] = Query(None),
    actions: Optional[list[str]] = Query(None),
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
):
    return activity_log_service.export_logs(db, keyword=keyword, actions=actions)
