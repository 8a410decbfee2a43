"""ASGI 入口：装配当前启用的业务包，挂载中间件、异常处理与路由。"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from app.middleware.access_token import AccessTokenHeaderMiddleware
from app.middleware.request_id import RequestIdMiddleware
from app.packages import get_active_package

package = get_active_package()
package.setup_logging()
settings = package.get_settings()
logger = package.logger


@asynccontextmanager
async def lifespan(_: FastAPI):
    package.init_db()
    logger.info("SUCCESS - %s running at http://127.0.0.1:%s", settings.project_name, settings.app_port)
    yield
    # 退出前把本地叠加层完整落盘
    package.shutdown()
    logger.info("Application shutdown complete")


app = FastAPI(title=settings.project_name, debug=settings.debug, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Access-Token", "X-Request-ID"],
)
app.add_middleware(AccessTokenHeaderMiddleware)
app.add_middleware(RequestIdMiddleware)

app.add_exception_handler(HTTPException, package.http_exception_handler)
app.add_exception_handler(RequestValidationError, package.validation_exception_handler)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request, exc):  # pragma: no cover - framework glue
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return await package.generic_exception_handler(request, exc)


@app.get("/health")
async def health_check() -> dict:
    """探活接口，不需要登录。"""
    return package.create_response("OK", {"status": "healthy"})


app.include_router(package.api_router, prefix=settings.api_v1_str)
