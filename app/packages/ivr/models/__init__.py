"""ORM 模型集合，导入即完成表注册。"""

from app.packages.ivr.models.activity_log import ActivityLog
from app.packages.ivr.models.base import Base
from app.packages.ivr.models.blob import KeyValueBlob
from app.packages.ivr.models.user import User

__all__ = ["ActivityLog", "Base", "KeyValueBlob", "User"]
