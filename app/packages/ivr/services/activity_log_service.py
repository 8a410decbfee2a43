"""活动日志服务：记录文件下载/上传/删除，并提供查询、清空与导出。"""

from __future__ import annotations

import io
from typing import Iterable, Optional

from fastapi.responses import StreamingResponse
from openpyxl import Workbook
from sqlalchemy.orm import Session

from app.packages.ivr.core.constants import HTTP_STATUS_BAD_REQUEST, HTTP_STATUS_OK
from app.packages.ivr.core.enums import ActivityActionEnum
from app.packages.ivr.core.exceptions import AppException
from app.packages.ivr.core.logger import logger
from app.packages.ivr.core.responses import create_response
from app.packages.ivr.core.timezone import format_datetime, now as tz_now
from app.packages.ivr.crud.activity_logs import activity_log_crud
from app.packages.ivr.crud.users import user_crud
from app.packages.ivr.models.activity_log import ActivityLog
from app.packages.ivr.models.user import User


class ActivityLogService:
    _ACTION_LABELS = {
        ActivityActionEnum.DOWNLOAD.value: "下载",
        ActivityActionEnum.UPLOAD.value: "上传",
        ActivityActionEnum.DELETE.value: "删除",
    }

    def record(
        self,
        db: Session,
        *,
        username: str,
        action: ActivityActionEnum,
        file_name: str,
        path: Optional[str] = None,
    ) -> None:
        """写入一条活动记录；失败只记日志，不影响已经完成的文件操作。"""
        try:
            activity_log_crud.create(
                db,
                {
                    "username": username,
                    "action": ActivityActionEnum(action).value,
                    "file_name": file_name,
                    "path": path,
                    "timestamp": tz_now(),
                },
            )
        except Exception as exc:  # pragma: no cover - 审计失败不影响主流程
            logger.warning("Failed to record %s activity for %s: %s", action, username, exc)
            db.rollback()

    def list_logs(
        self,
        db: Session,
        *,
        keyword: Optional[str] = None,
        actions: Optional[Iterable[str]] = None,
        page: int = 1,
        page_size: int = 50,
    ) -> dict:
        page = max(page, 1)
        page_size = max(page_size, 1)
        items, total = activity_log_crud.list_with_filters(
            db,
            keyword=keyword,
            usernames=self._usernames_by_display_name(db, keyword),
            actions=self._normalize_actions(actions),
            skip=(page - 1) * page_size,
            limit=page_size,
        )
        names = self._display_names(db)
        payload = {
            "total": total,
            "items": [self._serialize(item, names) for item in items],
            "page": page,
            "page_size": page_size,
        }
        return create_response("获取活动日志成功", payload, HTTP_STATUS_OK)

    def clear_logs(self, db: Session) -> dict:
        removed = activity_log_crud.clear_all(db)
        db.commit()
        logger.info("Activity log cleared (%s rows)", removed)
        return create_response("清空活动日志成功", {"removed": removed}, HTTP_STATUS_OK)

    def export_logs(
        self,
        db: Session,
        *,
        keyword: Optional[str] = None,
        actions: Optional[Iterable[str]] = None,
    ) -> StreamingResponse:
        items, _ = activity_log_crud.list_with_filters(
            db,
            keyword=keyword,
            usernames=self._usernames_by_display_name(db, keyword),
            actions=self._normalize_actions(actions),
            skip=0,
            limit=10_000,
        )
        names = self._display_names(db)

        workbook = Workbook()
        sheet = workbook.active
        sheet.title = "活动日志"
        sheet.append(["时间", "用户", "用户名", "动作", "文件", "路径"])
        for item in items:
            sheet.append(
                [
                    format_datetime(item.timestamp) or "",
                    names.get(item.username, item.username),
                    item.username,
                    self._ACTION_LABELS.get(item.action, item.action),
                    item.file_name,
                    item.path or "",
                ]
            )

        buffer = io.BytesIO()
        workbook.save(buffer)
        buffer.seek(0)

        filename = f"activity-logs-{tz_now().strftime('%Y%m%d%H%M%S')}.xlsx"
        response = StreamingResponse(
            buffer,
            media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        )
        response.headers["Content-Disposition"] = f"attachment; filename={filename}"
        return response

    # ------------------------------------------------------------------
    # 辅助方法
    # ------------------------------------------------------------------

    @staticmethod
    def _usernames_by_display_name(db: Session, keyword: Optional[str]) -> list[str]:
        if not keyword or not keyword.strip():
            return []
        pattern = f"%{keyword.strip()}%"
        rows = db.query(User.username).filter(User.display_name.ilike(pattern)).all()
        return [row[0] for row in rows]

    @staticmethod
    def _display_names(db: Session) -> dict[str, str]:
        return {user.username: user.display_name for user in user_crud.list_all(db)}

    @classmethod
    def _normalize_actions(cls, actions: Optional[Iterable[str]]) -> Optional[list[str]]:
        if not actions:
            return None
        normalized: list[str] = []
        for item in actions:
            if not item:
                continue
            token = item.strip().lower()
            try:
                normalized.append(ActivityActionEnum(token).value)
            except ValueError:
                raise AppException("未知的动作类型", HTTP_STATUS_BAD_REQUEST) from None
        return normalized or None

    def _serialize(self, item: ActivityLog, names: dict[str, str]) -> dict:
        return {
            "id": item.id,
            "file_name": item.file_name,
            "path": item.path,
            "username": item.username,
            "user_display_name": names.get(item.username, item.username),
            "action": item.action,
            "action_label": self._ACTION_LABELS.get(item.action, item.action),
            "timestamp": format_datetime(item.timestamp),
        }


activity_log_service = ActivityLogService()
