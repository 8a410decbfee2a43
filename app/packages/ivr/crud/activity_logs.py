"""活动日志相关的 CRUD 操作封装。"""

from __future__ import annotations

from typing import Iterable, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.packages.ivr.crud.base import CRUDBase
from app.packages.ivr.models.activity_log import ActivityLog


class ActivityLogCRUD(CRUDBase[ActivityLog]):
    """提供活动日志的查询与维护能力。"""

    def list_with_filters(
        self,
        db: Session,
        *,
        keyword: Optional[str] = None,
        usernames: Optional[Iterable[str]] = None,
        actions: Optional[Iterable[str]] = None,
        skip: int = 0,
        limit: int = 50,
    ) -> Tuple[list[ActivityLog], int]:
        """按关键字（文件名/用户名）与动作过滤，最新记录在前。

        ``usernames`` 用于把“按显示名称匹配到的用户”一并纳入关键字检索。
        """
        query = self.query(db)

        if keyword:
            pattern = f"%{keyword.strip()}%"
            clauses = [self.model.file_name.ilike(pattern), self.model.username.ilike(pattern)]
            names = {name for name in (usernames or ()) if name}
            if names:
                clauses.append(self.model.username.in_(names))
            query = query.filter(or_(*clauses))
        if actions:
            query = query.filter(self.model.action.in_(set(actions)))

        total = query.count()
        items = (
            query.order_by(self.model.timestamp.desc(), self.model.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )
        return items, total

    def clear_all(self, db: Session) -> int:
        return db.query(self.model).delete(synchronize_session=False)


activity_log_crud = ActivityLogCRUD(ActivityLog)
