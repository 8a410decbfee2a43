"""依赖注入模块：封装 FastAPI 中复用度高的依赖函数。"""

import threading
from collections.abc import Generator
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.packages.ivr.core.config import get_settings
from app.packages.ivr.core.constants import ACCESS_TOKEN_TYPE, HTTP_STATUS_FORBIDDEN
from app.packages.ivr.core.exceptions import AppException
from app.packages.ivr.core.security import issue_token, read_token, store_refreshed_token
from app.packages.ivr.core.session import refresh_session
from app.packages.ivr.crud.users import user_crud
from app.packages.ivr.db import session as db_session
from app.packages.ivr.models.user import User
from app.packages.ivr.services.access_policy import Principal
from app.packages.ivr.services.baseline import default_baseline
from app.packages.ivr.services.blob_store import BlobStore, SqlBlobStore
from app.packages.ivr.services.credential_service import CredentialService, CredentialStore
from app.packages.ivr.services.directory_service import DirectoryService
from app.packages.ivr.services.directory_sources import BaselineSource
from app.packages.ivr.services.overlay_store import OverlayStore

security_scheme = HTTPBearer(auto_error=False)
settings = get_settings()


def get_db() -> Generator[Session, None, None]:
    """生成一个数据库会话，并在请求结束后自动关闭。"""
    db = db_session.SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_scheme),
    db: Session = Depends(get_db),
) -> User:
    """解析 ``Authorization`` 头部并返回当前认证用户，不存在或非法时抛出 401。"""
    if not credentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="缺少认证信息")

    if credentials.scheme.lower() != ACCESS_TOKEN_TYPE:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="认证类型无效")

    claims = read_token(credentials.credentials)
    if claims is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token 无效")

    user = user_crud.get(db, claims.user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="用户不存在")

    if not refresh_session(claims.session_id, user.id):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token 无效或已过期")

    # 滑动续期：会话 TTL 已刷新，同时签发新令牌供客户端替换
    store_refreshed_token(issue_token(user.id, user.username, claims.session_id))

    return user


def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    """确保已认证用户仍处于激活状态，否则拒绝访问。"""
    if not current_user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="用户未激活")
    return current_user


def get_current_principal(current_user: User = Depends(get_current_active_user)) -> Principal:
    """把 ORM 用户转换为访问策略使用的纯数据对象。"""
    return Principal.from_user(current_user)


def require_admin(current_user: User = Depends(get_current_active_user)) -> User:
    if not current_user.is_admin:
        raise AppException("需要管理员权限", HTTP_STATUS_FORBIDDEN)
    return current_user


# ------------------------------------------------------------------
# 目录服务：进程内单例，叠加层与凭证共享 kv_blobs 表
# ------------------------------------------------------------------

_directory_service: Optional[DirectoryService] = None
_directory_service_lock = threading.Lock()


def get_blob_store() -> BlobStore:
    # SessionLocal 在调用时解析，测试替换全局会话工厂后同样生效
    return SqlBlobStore(lambda: db_session.SessionLocal())


def get_credential_store() -> CredentialStore:
    return CredentialStore(get_blob_store(), namespace=settings.overlay_namespace)


def get_directory_service() -> DirectoryService:
    global _directory_service
    with _directory_service_lock:
        if _directory_service is None:
            blob_store = get_blob_store()
            overlay = OverlayStore(blob_store, namespace=settings.overlay_namespace).load()
            service = DirectoryService(overlay, baseline=BaselineSource(default_baseline()), settings=settings)
            service.set_credential(get_credential_store().get())
            _directory_service = service
        return _directory_service


def reset_directory_service() -> None:
    """落盘并丢弃当前目录服务实例，下次请求时重新构建。"""
    global _directory_service
    with _directory_service_lock:
        service, _directory_service = _directory_service, None
    if service is not None:
        service.close()


def get_credential_service(
    store: CredentialStore = Depends(get_credential_store),
    directory_service: DirectoryService = Depends(get_directory_service),
) -> CredentialService:
    return CredentialService(store, directory_service)
