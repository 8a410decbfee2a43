"""异常处理模块：定义统一的业务异常、远端目录异常与响应格式。"""

from typing import Any

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.packages.ivr.core.security import consume_refreshed_token


class AppException(HTTPException):
    """携带统一响应结构的业务异常，方便在全局处理中转换响应体。"""

    def __init__(self, msg: str, code: int = status.HTTP_400_BAD_REQUEST, data=None) -> None:
        super().__init__(status_code=code, detail=msg)
        self.data = data


class Unauthorized(AppException):
    """当前没有有效会话，调用方必须重新登录后再重试。"""

    def __init__(self, msg: str = "未登录或会话已失效") -> None:
        super().__init__(msg, status.HTTP_401_UNAUTHORIZED)


class RemoteUnavailable(Exception):
    """远端目录接口不可用：网络错误、超时或非 2xx 响应。"""


class RemoteRejected(RemoteUnavailable):
    """远端接口可达，但响应体中的状态字段不是 ``OK``。"""

    def __init__(self, message: str = "", *, status_text: str | None = None) -> None:
        super().__init__(message or "remote rejected the request")
        self.status_text = status_text


def _envelope(msg, data, code: int) -> dict:
    payload = {"msg": msg, "data": data, "code": code}
    token = consume_refreshed_token()
    if token:
        payload["meta"] = {"access_token": token}
    return payload


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:  # pragma: no cover - framework glue
    """将 FastAPI 的 ``HTTPException`` 转换为统一响应格式。"""
    payload = _envelope(exc.detail, getattr(exc, "data", None), exc.status_code)
    return JSONResponse(status_code=exc.status_code, content=payload, headers=getattr(exc, "headers", None))


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:  # pragma: no cover - framework glue
    """兜底处理：将未捕获异常转换为标准的 500 响应结构。"""
    payload = _envelope("服务器内部错误", None, status.HTTP_500_INTERNAL_SERVER_ERROR)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=payload)


def _jsonable_errors(obj: Any) -> Any:
    if isinstance(obj, Exception):
        return str(obj)
    if isinstance(obj, dict):
        return {key: _jsonable_errors(value) for key, value in obj.items()}
    if isinstance(obj, list):
        return [_jsonable_errors(item) for item in obj]
    return obj


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:  # pragma: no cover - framework glue
    """请求参数校验失败时返回 422，``data`` 中带上 pydantic 的错误明细。"""
    payload = _envelope("请求参数验证失败", _jsonable_errors(exc.errors()), status.HTTP_422_UNPROCESSABLE_ENTITY)
    return JSONResponse(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, content=payload)
