"""目录浏览与文件操作路由。

权限判定在此层完成：上传/删除/修改描述需要对应操作权限且目标路径位于授权范围内，
下载需要下载权限且目标条目对当前用户可见。成功的下载、上传、删除写入活动日志。
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from app.packages.ivr.api.v1.schemas.files import (
    FilesListResponse,
    FilesMutationResponse,
    FilesSearchResponse,
    MetadataUpdateBody,
)
from app.packages.ivr.core.constants import (
    HTTP_STATUS_BAD_REQUEST,
    HTTP_STATUS_FORBIDDEN,
    HTTP_STATUS_NOT_FOUND,
    HTTP_STATUS_OK,
)
from app.packages.ivr.core.dependencies import get_current_principal, get_db, get_directory_service
from app.packages.ivr.core.enums import ActivityActionEnum
from app.packages.ivr.core.exceptions import AppException
from app.packages.ivr.core.logger import logger
from app.packages.ivr.core.responses import create_response
from app.packages.ivr.services import access_policy
from app.packages.ivr.services.access_policy import Principal
from app.packages.ivr.services.activity_log_service import activity_log_service
from app.packages.ivr.services.directory_service import DirectoryService
from app.packages.ivr.utils import path_utils

router = APIRouter(prefix="/files", tags=["files"])


def _ensure_path_access(principal: Principal, path: str) -> None:
    if not access_policy.can_access_path(principal, path):
        raise AppException("无权访问该目录", HTTP_STATUS_FORBIDDEN)


@router.get("", response_model=FilesListResponse)
def list_entries(
    path: Optional[str] = Query("", description="目录路径，根目录为空"),
    principal: Principal = Depends(get_current_principal),
    service: DirectoryService = Depends(get_directory_service),
):
    listing = service.list(path or "", principal)
    data = {
        "currentPath": listing.path,
        "breadcrumbs": path_utils.breadcrumbs(listing.path),
        "source": listing.source.value,
        "items": [entry.to_payload() for entry in listing.entries],
    }
    return create_response("获取目录成功", data, HTTP_STATUS_OK)


@router.get("/folders", response_model=FilesListResponse)
def list_root_folders(
    principal: Principal = Depends(get_current_principal),
    service: DirectoryService = Depends(get_directory_service),
):
    """导航树预取：根目录下当前用户可见的文件夹。"""
    folders = service.folders(principal)
    return create_response("获取文件夹成功", {"items": [entry.to_payload() for entry in folders]}, HTTP_STATUS_OK)


@router.get("/search", response_model=FilesSearchResponse)
def search_entries(
    q: str = Query("", description="名称或描述关键字"),
    principal: Principal = Depends(get_current_principal),
    service: DirectoryService = Depends(get_directory_service),
):
    results = service.search(q, principal)
    data = {"query": q, "total": len(results), "items": [entry.to_payload() for entry in results]}
    return create_response("搜索完成", data, HTTP_STATUS_OK)


@router.post("", response_model=FilesMutationResponse)
def upload_file(
    path: str = Query("", description="上传到的目录"),
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    service: DirectoryService = Depends(get_directory_service),
):
    if not access_policy.can_upload(principal):
        raise AppException("没有上传权限", HTTP_STATUS_FORBIDDEN)
    _ensure_path_access(principal, path)

    content = file.file.read()
    if not content:
        raise AppException("上传文件不能为空", HTTP_STATUS_BAD_REQUEST)

    siblings = service.list(path, principal).entries
    entry = service.upload(
        path,
        content,
        file.filename or "upload",
        siblings,
        user=principal,
        content_type=file.content_type,
    )
    activity_log_service.record(
        db,
        username=principal.id,
        action=ActivityActionEnum.UPLOAD,
        file_name=file.filename or entry.name,
        path=entry.path,
    )
    return create_response("上传成功", entry.to_payload(), HTTP_STATUS_OK)


@router.delete("", response_model=FilesMutationResponse)
def delete_entry(
    path: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    service: DirectoryService = Depends(get_directory_service),
):
    if not access_policy.can_delete(principal):
        raise AppException("没有删除权限", HTTP_STATUS_FORBIDDEN)
    _ensure_path_access(principal, path)

    entry = service.find(path, principal)
    if entry is None:
        normalized = path_utils.normalize(path)
        # 重复删除同一路径视为成功，不再重复记录活动日志
        if normalized and service.overlay.is_deleted(normalized):
            return create_response("删除成功", {"path": normalized}, HTTP_STATUS_OK)
        raise AppException("文件或目录不存在", HTTP_STATUS_NOT_FOUND)

    service.delete(entry.path, user=principal)
    activity_log_service.record(
        db,
        username=principal.id,
        action=ActivityActionEnum.DELETE,
        file_name=entry.name,
        path=entry.path,
    )
    return create_response("删除成功", {"path": entry.path}, HTTP_STATUS_OK)


@router.put("/metadata", response_model=FilesMutationResponse)
def update_metadata(
    payload: MetadataUpdateBody,
    principal: Principal = Depends(get_current_principal),
    service: DirectoryService = Depends(get_directory_service),
):
    if not access_policy.can_upload(principal):
        raise AppException("没有编辑权限", HTTP_STATUS_FORBIDDEN)
    _ensure_path_access(principal, payload.path)

    service.set_metadata(payload.path, payload.text, user=principal)
    cleared = not (payload.text or "").strip()
    data = {"path": path_utils.normalize(payload.path), "metadataText": None if cleared else payload.text}
    return create_response("清除描述成功" if cleared else "更新描述成功", data, HTTP_STATUS_OK)


@router.get("/download")
def download_file(
    path: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
    service: DirectoryService = Depends(get_directory_service),
):
    """记录下载后重定向到内容地址（远端 DownloadFile 或基线示例音频）。"""
    if not access_policy.can_download(principal):
        raise AppException("没有下载权限", HTTP_STATUS_FORBIDDEN)

    entry = service.find(path, principal)
    if entry is None:
        raise AppException("文件不存在", HTTP_STATUS_NOT_FOUND)
    if entry.is_folder:
        raise AppException("不能下载文件夹", HTTP_STATUS_BAD_REQUEST)
    if not entry.content_url:
        logger.info("Entry %s has no content url, download refused", entry.path)
        raise AppException("该文件暂无可下载内容", HTTP_STATUS_NOT_FOUND)

    activity_log_service.record(
        db,
        username=principal.id,
        action=ActivityActionEnum.DOWNLOAD,
        file_name=entry.name,
        path=entry.path,
    )
    return RedirectResponse(entry.content_url)
