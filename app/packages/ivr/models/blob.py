"""键值存储模型：以文本形式保存叠加层与凭证等独立可加载的数据块。"""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.packages.ivr.models.base import Base, TimestampMixin


class KeyValueBlob(TimestampMixin, Base):
    __tablename__ = "kv_blobs"

    key: Mapped[str] = mapped_column(String(191), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False, default="")
