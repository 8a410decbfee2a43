"""安全模块：bcrypt 密码哈希，以及绑定服务端会话的 JWT 访问令牌。

令牌只携带用户 ID、用户名与会话 ID。令牌本身的 ``exp`` 只用于客户端提示，
会话是否有效以会话存储中的滑动 TTL 为准，因此解析时不校验过期时间。
"""

from contextvars import ContextVar
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from jose import JWTError, jwt

from .config import get_settings
from .logger import logger

_refreshed_token_ctx: ContextVar[Optional[str]] = ContextVar("refreshed_token", default=None)


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    username: str
    session_id: str


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """校验明文密码；存储的哈希格式损坏时视为不匹配。"""
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is malformed")
        return False


def issue_token(user_id: int, username: str, session_id: str, *, expires_delta: Optional[timedelta] = None) -> str:
    settings = get_settings()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    claims = {"user_id": user_id, "username": username, "sid": session_id, "exp": expire}
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def read_token(token: str) -> Optional[TokenClaims]:
    """校验签名并取出会话信息；签名无效或缺少字段时返回 ``None``。"""
    settings = get_settings()
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            options={"verify_exp": False},
        )
    except JWTError as exc:
        logger.warning("Failed to decode JWT: %s", exc)
        return None

    user_id, session_id = payload.get("user_id"), payload.get("sid")
    if user_id is None or not session_id:
        return None
    return TokenClaims(user_id=user_id, username=payload.get("username") or "", session_id=session_id)


def store_refreshed_token(token: Optional[str]) -> None:
    """记录本次请求新签发的令牌，由响应封装放入 ``meta.access_token``。"""
    _refreshed_token_ctx.set(token)


def consume_refreshed_token() -> Optional[str]:
    return _refreshed_token_ctx.get()
