"""目录数据源抽象与实现：统一封装远端 IVR 接口与本地基线数据的列表/增删操作。"""

from __future__ import annotations

from typing import Any, Iterable, Optional
from urllib.parse import quote

import httpx

from app.packages.ivr.core.config import Settings, get_settings
from app.packages.ivr.core.constants import MISSING_TIMESTAMP, REMOTE_STATUS_OK
from app.packages.ivr.core.enums import EntryKind
from app.packages.ivr.core.exceptions import RemoteRejected, RemoteUnavailable
from app.packages.ivr.core.timezone import format_date, format_datetime, from_epoch
from app.packages.ivr.services.entries import Entry, split_extension
from app.packages.ivr.utils import path_utils


class DirectorySource:
    """目录数据源接口。

    ``list`` 返回某路径下的直接子条目；``create_remote``/``delete_remote`` 失败时抛出
    ``RemoteUnavailable``（或其子类 ``RemoteRejected``），成功时无返回值。
    """

    def list(self, path: str) -> list[Entry]:
        raise NotImplementedError

    def create_remote(self, path: str, name: str, content: bytes, content_type: Optional[str] = None) -> None:
        raise NotImplementedError

    def delete_remote(self, path: str) -> None:
        raise NotImplementedError


# ------------------------------------------
# 基线数据实现
# ------------------------------------------


class BaselineSource(DirectorySource):
    """基于内存种子数据的数据源：纯结构过滤，不访问网络，也不会失败。"""

    def __init__(self, seed: Iterable[Entry]):
        self._seed = list(seed)

    @property
    def entries(self) -> list[Entry]:
        return list(self._seed)

    def list(self, path: str) -> list[Entry]:
        path = path_utils.normalize(path)
        return [entry for entry in self._seed if entry.parent_path == path]

    def create_remote(self, path: str, name: str, content: bytes, content_type: Optional[str] = None) -> None:
        raise RemoteUnavailable("no remote backend configured")

    def delete_remote(self, path: str) -> None:
        # 基线数据只会被叠加层遮蔽，这里无需任何动作
        return None


# ------------------------------------------
# 远端 IVR 接口实现（httpx）
# ------------------------------------------


class RemoteSource(DirectorySource):
    def __init__(
        self,
        *,
        token: str,
        settings: Optional[Settings] = None,
        client: Optional[httpx.Client] = None,
    ):
        if not token:
            raise ValueError("RemoteSource requires a non-empty token")
        self.settings = settings or get_settings()
        self.token = token
        self.base_url = self.settings.ivr_api_base_url
        self.namespace = self.settings.ivr_namespace
        self.audio_extensions = self.settings.ivr_audio_extensions
        self._client = client or httpx.Client(timeout=self.settings.ivr_request_timeout)

    def close(self) -> None:
        self._client.close()

    # 查询串由调用方逐段编码，保证路径中的 "/" 原样保留
    def _url(self, endpoint: str, params: list[tuple[str, str]]) -> str:
        query = "&".join(f"{key}={value}" for key, value in params)
        return f"{self.base_url}/{endpoint}?{query}"

    def _token_param(self) -> tuple[str, str]:
        return ("token", quote(self.token, safe=""))

    def _namespaced(self, path: str) -> str:
        return f"{self.namespace}:{path_utils.encode_path(path)}"

    def content_url(self, path: str) -> str:
        return self._url("DownloadFile", [self._token_param(), ("path", self._namespaced(path))])

    def _request(self, method: str, url: str, **kwargs: Any) -> dict:
        try:
            response = self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise RemoteUnavailable(f"{type(exc).__name__}: {exc}") from exc
        except RuntimeError as exc:
            # 切换凭证时旧客户端已关闭，正在进行的请求按远端不可用处理
            raise RemoteUnavailable(f"{type(exc).__name__}: {exc}") from exc
        if not response.is_success:
            raise RemoteUnavailable(f"HTTP {response.status_code}")
        try:
            data = response.json()
        except ValueError as exc:
            raise RemoteUnavailable("response body is not JSON") from exc
        if not isinstance(data, dict):
            raise RemoteUnavailable("unexpected response body")
        status_text = data.get("responseStatus")
        if status_text != REMOTE_STATUS_OK:
            raise RemoteRejected(str(data.get("message") or status_text or ""), status_text=status_text)
        return data

    # ----------------------------
    # 查询
    # ----------------------------

    def list(self, path: str) -> list[Entry]:
        path = path_utils.normalize(path)
        url = self._url("GetIVR2Dir", [self._token_param(), ("path", path_utils.encode_path(path))])
        data = self._request("GET", url)

        entries: list[Entry] = []
        for row in data.get("dirs") or []:
            name = str(row.get("name") or "")
            if not name:
                continue
            entries.append(
                Entry(
                    id=f"dir-{name}",
                    name=name,
                    path=path_utils.join(path, name),
                    kind=EntryKind.FOLDER,
                    modified_at=MISSING_TIMESTAMP,
                    metadata_text=row.get("what") or None,
                    created_by=self.settings.ivr_provider_label,
                )
            )
        for row in data.get("files") or []:
            entry = self._map_file(path, row)
            if entry is not None:
                entries.append(entry)
        return entries

    def _map_file(self, parent_path: str, row: dict) -> Optional[Entry]:
        file_name = str(row.get("name") or "")
        if not file_name:
            return None
        extension = split_extension(file_name)
        is_audio = (extension or "").lower() in self.audio_extensions
        full_path = path_utils.join(parent_path, file_name)
        moment = from_epoch(row.get("time"))
        try:
            size = int(row.get("size") or 0)
        except (TypeError, ValueError):
            size = 0
        return Entry(
            id=f"file-{file_name}-{row.get('time')}" if row.get("time") else f"file-{file_name}",
            name=row.get("what") or file_name,
            path=full_path,
            kind=EntryKind.MEDIA if is_audio else EntryKind.OTHER,
            size_bytes=size,
            modified_at=format_date(moment) if moment else MISSING_TIMESTAMP,
            full_timestamp=format_datetime(moment) if moment else MISSING_TIMESTAMP,
            content_url=self.content_url(full_path),
            created_by=self.settings.ivr_system_label,
            extension=extension,
        )

    def validate(self) -> bool:
        """凭证连通性检查：根目录列表成功即视为有效，从不抛出异常。"""
        try:
            self.list(path_utils.ROOT)
        except RemoteUnavailable:
            return False
        return True

    # ----------------------------
    # 变更
    # ----------------------------

    def create_remote(self, path: str, name: str, content: bytes, content_type: Optional[str] = None) -> None:
        target = path_utils.join(path, name)
        params = [self._token_param(), ("path", self._namespaced(target))]
        if self.settings.ivr_convert_audio:
            params.append(("convertAudio", "1"))
        files = {"file": (name, content, content_type or "application/octet-stream")}
        self._request("POST", self._url("UploadFile", params), files=files)

    def delete_remote(self, path: str) -> None:
        params = [self._token_param(), ("action", "delete"), ("what", self._namespaced(path))]
        self._request("GET", self._url("FileAction", params))
