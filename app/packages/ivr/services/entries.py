"""目录条目数据结构：远端映射、基线数据与本地新增条目共用同一形态。"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field, fields, replace
from typing import Any, Optional

from app.packages.ivr.core.enums import EntryKind
from app.packages.ivr.utils import path_utils


@dataclass
class Entry:
    id: str
    name: str
    path: str
    kind: EntryKind
    modified_at: str
    size_bytes: Optional[int] = None
    full_timestamp: Optional[str] = None
    content_url: Optional[str] = None
    metadata_text: Optional[str] = None
    created_by: Optional[str] = None
    extension: Optional[str] = None
    child_folder_count: Optional[int] = None
    child_file_count: Optional[int] = None
    duration: Optional[str] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        self.kind = EntryKind(self.kind)
        self.path = path_utils.normalize(self.path)
        # 文件夹不携带大小与内容地址
        if self.kind is EntryKind.FOLDER:
            self.size_bytes = None
            self.content_url = None

    @property
    def is_folder(self) -> bool:
        return self.kind is EntryKind.FOLDER

    @property
    def parent_path(self) -> str:
        return path_utils.parent(self.path)

    def evolve(self, **changes: Any) -> "Entry":
        return replace(self, **changes)

    # ------------------------------------------------------------------
    # 序列化：to_record/from_record 用于持久化，to_payload 用于接口输出
    # ------------------------------------------------------------------

    def to_record(self) -> dict[str, Any]:
        data = asdict(self)
        data["kind"] = self.kind.value
        return data

    @classmethod
    def from_record(cls, data: dict[str, Any]) -> "Entry":
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "path": self.path,
            "kind": self.kind.value,
            "sizeBytes": self.size_bytes,
            "sizeLabel": format_bytes(self.size_bytes) if self.size_bytes is not None else None,
            "modifiedAt": self.modified_at,
            "fullTimestamp": self.full_timestamp,
            "contentUrl": self.content_url,
            "metadataText": self.metadata_text,
            "createdBy": self.created_by,
            "extension": self.extension,
            "duration": self.duration,
            "childFolderCount": self.child_folder_count,
            "childFileCount": self.child_file_count,
        }


def split_extension(file_name: str) -> Optional[str]:
    """``"a.b.wav"`` -> ``"wav"``；没有点号时返回 ``None``。"""
    parts = file_name.rsplit(".", 1)
    if len(parts) < 2 or not parts[1]:
        return None
    return parts[1]


def format_bytes(size: Optional[int], decimals: int = 2) -> str:
    """把字节数渲染为 ``"2.5 MB"`` 风格的文本。"""
    if not size:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB", "TB"]
    index = min(int(math.floor(math.log(size, 1024))), len(units) - 1)
    value = round(size / (1024 ** index), max(decimals, 0))
    return f"{value:g} {units[index]}"
