"""键值存储抽象与实现：叠加层与凭证按键独立读写。"""

from __future__ import annotations

import threading
from typing import Callable, Optional

from sqlalchemy.orm import Session

from app.packages.ivr.crud.blobs import blob_crud


class BlobStore:
    """键值存储接口。"""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def put(self, key: str, value: str) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError


class InMemoryBlobStore(BlobStore):
    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        self._data: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def put(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)


class SqlBlobStore(BlobStore):
    """基于 ``kv_blobs`` 表的实现，每次调用使用独立的短会话。

    ``session_factory`` 在调用时才解析，测试中替换全局 SessionLocal 后同样生效。
    """

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def get(self, key: str) -> Optional[str]:
        with self._session_factory() as db:
            return blob_crud.read(db, key)

    def put(self, key: str, value: str) -> None:
        with self._session_factory() as db:
            blob_crud.upsert(db, key, value)

    def delete(self, key: str) -> None:
        with self._session_factory() as db:
            blob_crud.remove(db, key)
