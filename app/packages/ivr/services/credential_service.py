"""远端凭证服务：持久化当前生效的 IVR 令牌，并负责切换目录服务的数据源。"""

from __future__ import annotations

from typing import Optional

from app.packages.ivr.core.config import Settings, get_settings
from app.packages.ivr.core.constants import BLOB_CREDENTIAL, HTTP_STATUS_OK
from app.packages.ivr.core.logger import logger
from app.packages.ivr.core.responses import create_response
from app.packages.ivr.services.blob_store import BlobStore
from app.packages.ivr.services.directory_service import DirectoryService


def mask_token(token: Optional[str]) -> Optional[str]:
    """只保留首尾各 2 个字符，避免在接口中回显完整凭证。"""
    if not token:
        return None
    if len(token) <= 4:
        return "*" * len(token)
    return f"{token[:2]}{'*' * (len(token) - 4)}{token[-2:]}"


class CredentialStore:
    """凭证与叠加层共享同一键值存储，键为 ``<namespace>:credential``。"""

    def __init__(self, blob_store: BlobStore, *, namespace: str = "default", settings: Optional[Settings] = None):
        self._blob_store = blob_store
        self._key = f"{namespace}:{BLOB_CREDENTIAL}"
        self._settings = settings or get_settings()

    def get(self) -> str:
        """已保存的凭证优先，其次使用 ``IVR_API_TOKEN``；读取失败按未配置处理。

        管理员清除凭证时保存空字符串，此后不再回退到 ``IVR_API_TOKEN``。
        """
        try:
            stored = self._blob_store.get(self._key)
        except Exception:
            logger.exception("Failed to read stored credential")
            stored = None
        if stored is not None:
            return stored.strip()
        return (self._settings.ivr_api_token or "").strip()

    def set(self, token: Optional[str]) -> None:
        self._blob_store.put(self._key, (token or "").strip())


class CredentialService:
    def __init__(self, store: CredentialStore, directory_service: DirectoryService) -> None:
        self.store = store
        self.directory_service = directory_service

    def describe(self) -> dict:
        token = self.store.get()
        data = {"configured": bool(token), "token": mask_token(token)}
        return create_response("获取凭证成功", data, HTTP_STATUS_OK)

    def save(self, token: Optional[str]) -> dict:
        self.store.set(token)
        # 以存储中实际生效的凭证为准，保证接口回显与目录数据源一致
        token = self.store.get()
        self.directory_service.set_credential(token)
        logger.info("IVR credential %s", "updated" if token else "cleared")
        data = {"configured": bool(token), "token": mask_token(token)}
        return create_response("保存凭证成功", data, HTTP_STATUS_OK)

    def validate(self) -> dict:
        """连通性检查：失败只体现在 ``connected`` 字段中，不作为错误返回。"""
        connected = self.directory_service.validate_credential()
        if not connected:
            logger.info("IVR credential validation failed")
        return create_response("凭证校验完成", {"connected": connected}, HTTP_STATUS_OK)
