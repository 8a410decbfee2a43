"""登录会话：服务端保存、滑动过期，令牌只是会话的引用。

会话优先保存在 Redis 中，连接失败时退回进程内存（多进程部署下各进程互不共享）。
每次通过认证的请求都会把会话有效期重新延长一个 TTL；退出登录、修改密码、
停用或删除账号都会直接删除会话，之后携带旧令牌的请求一律按未登录处理。
"""

from __future__ import annotations

import threading
import time
import uuid
from typing import Optional

import redis

from app.packages.ivr.core.config import get_settings
from app.packages.ivr.core.logger import logger


def session_ttl_seconds() -> int:
    return max(get_settings().access_token_expire_minutes, 1) * 60


class SessionBackend:
    def open(self, user_id: int) -> str:  # pragma: no cover - interface definition
        raise NotImplementedError

    def refresh(self, session_id: str, user_id: int) -> bool:  # pragma: no cover
        raise NotImplementedError

    def close(self, session_id: str) -> None:  # pragma: no cover
        raise NotImplementedError

    def close_all(self, user_id: int) -> None:  # pragma: no cover
        raise NotImplementedError


class RedisSessionBackend(SessionBackend):
    """``ivr:session:<sid>`` 保存会话所属用户，``ivr:user-sessions:<uid>`` 是该用户的会话集合。"""

    def __init__(self, url: str, ttl_seconds: int) -> None:
        self._client = redis.Redis.from_url(url, decode_responses=True)
        self._client.ping()
        self._ttl = ttl_seconds

    @staticmethod
    def _session_key(session_id: str) -> str:
        return f"ivr:session:{session_id}"

    @staticmethod
    def _user_key(user_id) -> str:
        return f"ivr:user-sessions:{user_id}"

    def open(self, user_id: int) -> str:
        session_id = uuid.uuid4().hex
        pipe = self._client.pipeline()
        pipe.set(self._session_key(session_id), str(user_id), ex=self._ttl)
        pipe.sadd(self._user_key(user_id), session_id)
        pipe.execute()
        return session_id

    def refresh(self, session_id: str, user_id: int) -> bool:
        key = self._session_key(session_id)
        if self._client.get(key) != str(user_id):
            return False
        return bool(self._client.expire(key, self._ttl))

    def close(self, session_id: str) -> None:
        key = self._session_key(session_id)
        owner = self._client.getdel(key)
        if owner is not None:
            self._client.srem(self._user_key(owner), session_id)

    def close_all(self, user_id: int) -> None:
        user_key = self._user_key(user_id)
        session_ids = self._client.smembers(user_key)
        if session_ids:
            self._client.delete(*(self._session_key(sid) for sid in session_ids))
        self._client.delete(user_key)


class InMemorySessionBackend(SessionBackend):
    """会话 ID -> (用户 ID, 过期时刻)，过期时刻使用单调时钟。"""

    def __init__(self, ttl_seconds: Optional[int] = None) -> None:
        self._ttl = ttl_seconds
        self._sessions: dict[str, tuple[int, float]] = {}
        self._lock = threading.Lock()

    def _deadline(self) -> float:
        return time.monotonic() + (self._ttl if self._ttl is not None else session_ttl_seconds())

    def open(self, user_id: int) -> str:
        session_id = uuid.uuid4().hex
        with self._lock:
            self._sessions[session_id] = (user_id, self._deadline())
        return session_id

    def refresh(self, session_id: str, user_id: int) -> bool:
        with self._lock:
            owner, deadline = self._sessions.get(session_id, (None, 0.0))
            if owner != user_id or deadline < time.monotonic():
                self._sessions.pop(session_id, None)
                return False
            self._sessions[session_id] = (owner, self._deadline())
            return True

    def close(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)

    def close_all(self, user_id: int) -> None:
        with self._lock:
            self._sessions = {sid: rec for sid, rec in self._sessions.items() if rec[0] != user_id}


_backend: Optional[SessionBackend] = None
_backend_lock = threading.Lock()


def use_backend(backend: Optional[SessionBackend]) -> None:
    """替换当前会话后端；传入 ``None`` 时下次使用会重新探测 Redis。"""
    global _backend
    with _backend_lock:
        _backend = backend


def _get_backend() -> SessionBackend:
    global _backend
    with _backend_lock:
        if _backend is None:
            settings = get_settings()
            try:
                _backend = RedisSessionBackend(settings.redis_url, session_ttl_seconds())
                logger.info("Session store initialized with Redis at %s", settings.redis_url)
            except redis.RedisError as exc:  # pragma: no cover - fallback path
                logger.warning("Redis unavailable (%s), falling back to in-memory session store", exc)
                _backend = InMemorySessionBackend()
        return _backend


def open_session(user_id: int) -> str:
    return _get_backend().open(user_id)


def refresh_session(session_id: str, user_id: int) -> bool:
    """延长会话有效期；会话不存在、已过期或不属于该用户时返回 ``False``。"""
    return _get_backend().refresh(session_id, user_id)


def close_session(session_id: str) -> None:
    _get_backend().close(session_id)


def close_user_sessions(user_id: int) -> None:
    _get_backend().close_all(user_id)
