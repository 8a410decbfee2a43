"""本地变更叠加层：记录删除、新增条目与自定义描述，并写穿到键值存储。

三类数据分别保存为独立的数据块（``<namespace>:deleted_paths`` 等），任一数据块
缺失或损坏时按空值加载，不影响启动。持久化失败只记录日志，内存中的叠加层在
进程生命周期内依然有效。删除集合只增不减。
"""

from __future__ import annotations

import json
import threading
from typing import Any, Callable, Optional

from app.packages.ivr.core.constants import (
    BLOB_CREATED_ENTRIES,
    BLOB_DELETED_PATHS,
    BLOB_METADATA_OVERRIDES,
)
from app.packages.ivr.core.logger import logger
from app.packages.ivr.services.blob_store import BlobStore
from app.packages.ivr.services.entries import Entry
from app.packages.ivr.utils import path_utils


class OverlayStore:
    def __init__(self, blob_store: BlobStore, *, namespace: str = "default") -> None:
        self._blob_store = blob_store
        self._namespace = namespace
        self._lock = threading.RLock()
        self._deleted_paths: set[str] = set()
        self._created_entries: list[Entry] = []
        self._metadata_overrides: dict[str, str] = {}

    @property
    def namespace(self) -> str:
        return self._namespace

    def _key(self, suffix: str) -> str:
        return f"{self._namespace}:{suffix}"

    # ------------------------------------------------------------------
    # 加载与落盘
    # ------------------------------------------------------------------

    def load(self) -> "OverlayStore":
        deleted = self._read_blob(BLOB_DELETED_PATHS, list)
        created = self._read_blob(BLOB_CREATED_ENTRIES, list)
        overrides = self._read_blob(BLOB_METADATA_OVERRIDES, dict)

        entries: list[Entry] = []
        for record in created:
            try:
                entries.append(Entry.from_record(record))
            except (TypeError, ValueError) as exc:
                logger.warning("Skipping malformed overlay entry %r: %s", record, exc)

        with self._lock:
            self._deleted_paths = {path_utils.normalize(str(p)) for p in deleted}
            self._created_entries = entries
            self._metadata_overrides = {
                path_utils.normalize(str(k)): str(v) for k, v in overrides.items() if str(v).strip()
            }
        logger.info(
            "Overlay '%s' loaded: %s deleted, %s created, %s metadata overrides",
            self._namespace,
            len(self._deleted_paths),
            len(self._created_entries),
            len(self._metadata_overrides),
        )
        return self

    def flush(self) -> None:
        """把三类数据全部写回存储，通常在进程退出时调用。"""
        with self._lock:
            self._persist_deleted()
            self._persist_created()
            self._persist_metadata()

    def _read_blob(self, suffix: str, expected: Callable[[], Any]) -> Any:
        key = self._key(suffix)
        try:
            raw = self._blob_store.get(key)
        except Exception:
            logger.exception("Failed to read overlay blob %s", key)
            return expected()
        if not raw:
            return expected()
        try:
            value = json.loads(raw)
        except ValueError:
            logger.warning("Overlay blob %s is corrupt, starting empty", key)
            return expected()
        if not isinstance(value, expected):
            logger.warning("Overlay blob %s has unexpected shape %s, starting empty", key, type(value).__name__)
            return expected()
        return value

    def _write_blob(self, suffix: str, value: Any) -> None:
        key = self._key(suffix)
        try:
            self._blob_store.put(key, json.dumps(value, ensure_ascii=False))
        except Exception:
            logger.exception("Failed to persist overlay blob %s", key)

    def _persist_deleted(self) -> None:
        self._write_blob(BLOB_DELETED_PATHS, sorted(self._deleted_paths))

    def _persist_created(self) -> None:
        self._write_blob(BLOB_CREATED_ENTRIES, [entry.to_record() for entry in self._created_entries])

    def _persist_metadata(self) -> None:
        self._write_blob(BLOB_METADATA_OVERRIDES, dict(self._metadata_overrides))

    # ------------------------------------------------------------------
    # 写操作
    # ------------------------------------------------------------------

    def record_deletion(self, path: str) -> None:
        path = path_utils.normalize(path)
        with self._lock:
            if path in self._deleted_paths:
                return
            self._deleted_paths.add(path)
            self._persist_deleted()

    def record_creation(self, entry: Entry) -> None:
        with self._lock:
            self._created_entries.append(entry)
            self._persist_created()

    def set_metadata(self, path: str, text: Optional[str]) -> None:
        """覆盖某路径的描述文本；空白文本表示移除覆盖。"""
        path = path_utils.normalize(path)
        with self._lock:
            if text is None or not text.strip():
                self._metadata_overrides.pop(path, None)
            else:
                self._metadata_overrides[path] = text
            self._persist_metadata()

    # ------------------------------------------------------------------
    # 读操作
    # ------------------------------------------------------------------

    def is_deleted(self, path: str) -> bool:
        with self._lock:
            return path_utils.normalize(path) in self._deleted_paths

    def creations_under(self, parent_path: str) -> list[Entry]:
        parent_path = path_utils.normalize(parent_path)
        with self._lock:
            return [e for e in self._created_entries if path_utils.is_direct_child(parent_path, e.path)]

    def all_creations(self) -> list[Entry]:
        with self._lock:
            return list(self._created_entries)

    def metadata_for(self, path: str) -> Optional[str]:
        with self._lock:
            return self._metadata_overrides.get(path_utils.normalize(path))

    def deleted_paths(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._deleted_paths)
