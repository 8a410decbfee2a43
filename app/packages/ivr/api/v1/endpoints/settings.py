"""远端凭证设置路由，仅管理员可用。"""

from fastapi import APIRouter, Depends

from app.packages.ivr.api.v1.schemas.settings import (
    CredentialResponse,
    CredentialUpdateBody,
    CredentialValidationResponse,
)
from app.packages.ivr.core.dependencies import get_credential_service, require_admin
from app.packages.ivr.models.user import User
from app.packages.ivr.services.credential_service import CredentialService

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("/credential", response_model=CredentialResponse)
def read_credential(
    service: CredentialService = Depends(get_credential_service),
    _: User = Depends(require_admin),
) -> CredentialResponse:
    return service.describe()


@router.put("/credential", response_model=CredentialResponse)
def update_credential(
    payload: CredentialUpdateBody,
    service: CredentialService = Depends(get_credential_service),
    _: User = Depends(require_admin),
) -> CredentialResponse:
    """保存凭证并立即切换目录数据源；空值表示回到基线数据。"""
    return service.save(payload.token)


@router.post("/credential/validate", response_model=CredentialValidationResponse)
def validate_credential(
    service: CredentialService = Depends(get_credential_service),
    _: User = Depends(require_admin),
) -> CredentialValidationResponse:
    return service.validate()
