"""虚拟目录服务：组合数据源、本地叠加层与访问策略，回答列表/搜索并执行上传删除。

列表流程：
1. 配置了远端凭证时优先调用远端，失败（``RemoteUnavailable``）则本次回退到基线数据；
2. 去掉叠加层中已删除的路径；
3. 若结果来自基线：追加本目录下尚未删除的本地新增条目，并为文件夹统计子目录/子文件数、
   为文件补齐默认创建人与完整时间（远端结果本身已带这些信息，不做补齐）；
4. 套用自定义描述覆盖；
5. 按访问策略过滤。

上传与删除先同步写叠加层，再尽力调用远端；远端失败不回滚本地状态。
"""

from __future__ import annotations

import re
import threading
import uuid
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from app.packages.ivr.core.config import Settings, get_settings
from app.packages.ivr.core.constants import BASELINE_DEFAULT_TIME, HTTP_STATUS_BAD_REQUEST
from app.packages.ivr.core.enums import EntryKind, ListingSourceEnum
from app.packages.ivr.core.exceptions import AppException, RemoteUnavailable, Unauthorized
from app.packages.ivr.core.logger import logger
from app.packages.ivr.core.timezone import format_date, format_datetime, now as tz_now
from app.packages.ivr.services.access_policy import Principal, visible
from app.packages.ivr.services.directory_sources import BaselineSource, DirectorySource, RemoteSource
from app.packages.ivr.services.entries import Entry, split_extension
from app.packages.ivr.services.overlay_store import OverlayStore
from app.packages.ivr.utils import path_utils

_NUMERIC_PREFIX = re.compile(r"^(\d+)\.")


@dataclass
class Listing:
    path: str
    source: ListingSourceEnum
    entries: list[Entry] = field(default_factory=list)


def next_upload_name(file_name: str, existing_siblings: Iterable[Entry]) -> str:
    """按同目录下文件名的数字前缀取最大值加一，格式化为三位补零并保留原扩展名。

    ``000.wav, 001.wav, 005.mp3`` -> ``006.<ext>``；没有数字前缀的文件时为 ``000.<ext>``。
    """
    numbers = []
    for sibling in existing_siblings:
        if sibling.is_folder:
            continue
        match = _NUMERIC_PREFIX.match(path_utils.basename(sibling.path) or sibling.name)
        if match:
            numbers.append(int(match.group(1)))
    next_number = max(numbers, default=-1) + 1
    extension = split_extension(file_name)
    return f"{next_number:03d}" + (f".{extension}" if extension else "")


class DirectoryService:
    def __init__(
        self,
        overlay: OverlayStore,
        *,
        baseline: BaselineSource,
        remote: Optional[RemoteSource] = None,
        settings: Optional[Settings] = None,
        remote_factory: Optional[Callable[[str], RemoteSource]] = None,
    ) -> None:
        self._overlay = overlay
        self._baseline = baseline
        self._remote = remote
        self._settings = settings or get_settings()
        self._remote_factory = remote_factory or (lambda token: RemoteSource(token=token, settings=self._settings))
        self._remote_lock = threading.Lock()

    @property
    def overlay(self) -> OverlayStore:
        return self._overlay

    @property
    def remote(self) -> Optional[RemoteSource]:
        return self._remote

    def _active_source(self) -> DirectorySource:
        return self._remote if self._remote is not None else self._baseline

    @staticmethod
    def _require_user(user: Optional[Principal]) -> Principal:
        if user is None:
            raise Unauthorized()
        return user

    # ------------------------------------------------------------------
    # 凭证
    # ------------------------------------------------------------------

    def set_credential(self, token: Optional[str]) -> None:
        """切换远端凭证；空值表示只使用基线数据。"""
        token = (token or "").strip()
        with self._remote_lock:
            previous = self._remote
            self._remote = self._remote_factory(token) if token else None
        if previous is not None:
            previous.close()
        logger.info("Directory source switched to %s", "remote" if token else "baseline")

    def validate_credential(self) -> bool:
        remote = self._remote
        return remote.validate() if remote is not None else False

    def close(self) -> None:
        if self._remote is not None:
            self._remote.close()
        self._overlay.flush()

    # ------------------------------------------------------------------
    # 查询
    # ------------------------------------------------------------------

    def _raw_listing(self, path: str) -> tuple[list[Entry], ListingSourceEnum]:
        remote = self._remote
        if remote is not None:
            try:
                return remote.list(path), ListingSourceEnum.REMOTE
            except RemoteUnavailable as exc:
                logger.warning("Remote listing of '%s' unavailable, falling back to baseline: %s", path, exc)
        return self._baseline.list(path), ListingSourceEnum.BASELINE

    def _merged_baseline(self) -> list[Entry]:
        """基线数据与本地新增条目的并集，去掉已删除路径。"""
        merged = self._baseline.entries + self._overlay.all_creations()
        return [entry for entry in merged if not self._overlay.is_deleted(entry.path)]

    def _enrich(self, entry: Entry, universe: list[Entry]) -> Entry:
        if entry.is_folder:
            children = [c for c in universe if path_utils.is_direct_child(entry.path, c.path)]
            return entry.evolve(
                child_folder_count=sum(1 for c in children if c.is_folder),
                child_file_count=sum(1 for c in children if not c.is_folder),
            )
        return entry.evolve(
            created_by=entry.created_by or self._settings.ivr_system_label,
            full_timestamp=entry.full_timestamp or f"{entry.modified_at} {BASELINE_DEFAULT_TIME}",
        )

    def _apply_metadata(self, entry: Entry) -> Entry:
        override = self._overlay.metadata_for(entry.path)
        return entry.evolve(metadata_text=override) if override else entry

    def list(self, path: str, user: Optional[Principal]) -> Listing:
        user = self._require_user(user)
        path = path_utils.normalize(path)
        raw, source = self._raw_listing(path)

        entries = [entry for entry in raw if not self._overlay.is_deleted(entry.path)]
        if source is ListingSourceEnum.BASELINE:
            entries.extend(e for e in self._overlay.creations_under(path) if not self._overlay.is_deleted(e.path))
            universe = self._merged_baseline()
            entries = [self._enrich(entry, universe) for entry in entries]

        entries = [self._apply_metadata(entry) for entry in entries]
        return Listing(path=path, source=source, entries=[e for e in entries if visible(e, user)])

    def folders(self, user: Optional[Principal]) -> list[Entry]:
        """根目录下的可见文件夹，用于导航树预取。"""
        return [entry for entry in self.list(path_utils.ROOT, user).entries if entry.is_folder]

    def find(self, path: str, user: Optional[Principal]) -> Optional[Entry]:
        path = path_utils.normalize(path)
        if not path:
            return None
        for entry in self.list(path_utils.parent(path), user).entries:
            if entry.path == path:
                return entry
        return None

    def search(self, query: str, user: Optional[Principal]) -> list[Entry]:
        """线性扫描基线数据与本地新增条目（不查询远端），匹配名称、原描述或覆盖描述。"""
        user = self._require_user(user)
        needle = (query or "").strip().lower()
        if not needle:
            return []

        results: list[Entry] = []
        for entry in self._merged_baseline():
            override = self._overlay.metadata_for(entry.path) or ""
            haystacks = (entry.name, entry.metadata_text or "", override)
            if not any(needle in text.lower() for text in haystacks):
                continue
            entry = self._apply_metadata(entry)
            if visible(entry, user):
                results.append(entry)
        return results

    # ------------------------------------------------------------------
    # 变更
    # ------------------------------------------------------------------

    def upload(
        self,
        path: str,
        content: bytes,
        file_name: str,
        existing_siblings: Iterable[Entry],
        *,
        user: Optional[Principal],
        content_type: Optional[str] = None,
    ) -> Entry:
        """上传文件并返回代表该文件的条目。

        远端未确认成功时，立即在叠加层记录一条本地条目，保证界面可见（乐观写入，之后不与远端对账）。
        """
        user = self._require_user(user)
        path = path_utils.normalize(path)
        new_name = next_upload_name(file_name, existing_siblings)
        target = path_utils.join(path, new_name)
        extension = split_extension(new_name)
        moment = tz_now()

        source = self._active_source()
        try:
            source.create_remote(path, new_name, content, content_type)
        except RemoteUnavailable as exc:
            logger.warning("Upload of '%s' not confirmed by remote, recording locally: %s", target, exc)
        else:
            logger.info("Uploaded '%s' to remote as %s", file_name, target)
            return Entry(
                id=f"file-{new_name}",
                name=new_name,
                path=target,
                kind=self._upload_kind(extension, content_type),
                size_bytes=len(content),
                modified_at=format_date(moment),
                full_timestamp=format_datetime(moment),
                content_url=self._remote.content_url(target) if self._remote is not None else None,
                created_by=user.display_name,
                extension=extension,
            )

        entry = Entry(
            id=f"local-upload-{uuid.uuid4().hex}",
            name=new_name,
            path=target,
            kind=self._upload_kind(extension, content_type),
            size_bytes=len(content),
            modified_at=format_date(moment),
            full_timestamp=format_datetime(moment),
            created_by=user.display_name,
            extension=extension,
        )
        self._overlay.record_creation(entry)
        return entry

    def _upload_kind(self, extension: Optional[str], content_type: Optional[str]) -> EntryKind:
        if (content_type or "").lower().startswith("audio/"):
            return EntryKind.MEDIA
        if (extension or "").lower() in self._settings.ivr_audio_extensions:
            return EntryKind.MEDIA
        return EntryKind.OTHER

    def delete(self, path: str, *, user: Optional[Principal]) -> None:
        """本地遮蔽无条件生效，随后尽力删除远端；远端失败只记录日志。"""
        self._require_user(user)
        path = path_utils.normalize(path)
        if not path:
            raise AppException("不能删除根目录", HTTP_STATUS_BAD_REQUEST)

        self._overlay.record_deletion(path)
        try:
            self._active_source().delete_remote(path)
        except RemoteUnavailable as exc:
            logger.warning("Remote delete of '%s' failed, local deletion kept: %s", path, exc)

    def set_metadata(self, path: str, text: Optional[str], *, user: Optional[Principal]) -> None:
        self._require_user(user)
        self._overlay.set_metadata(path, text)
