"""测试夹具：为 pytest 提供数据库、目录服务与客户端的共享配置。"""

import os
from typing import Callable, Generator

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from app.main import app
from app.packages.ivr.core import session as session_module
from app.packages.ivr.core.dependencies import get_credential_store, get_db, get_directory_service
from app.packages.ivr.db import session as db_session
from app.packages.ivr.db.init_db import init_db
from app.packages.ivr.models.base import Base
from app.packages.ivr.services.access_policy import Principal
from app.packages.ivr.services.baseline import default_baseline
from app.packages.ivr.services.blob_store import InMemoryBlobStore
from app.packages.ivr.services.credential_service import CredentialStore
from app.packages.ivr.services.directory_service import DirectoryService
from app.packages.ivr.services.directory_sources import BaselineSource, RemoteSource
from app.packages.ivr.services.overlay_store import OverlayStore

TEST_DB_PATH = os.path.join(os.path.dirname(__file__), "test.db")
TEST_DATABASE_URL = f"sqlite:///{TEST_DB_PATH}"


@pytest.fixture(scope="session", autouse=True)
def setup_test_database() -> Generator[None, None, None]:
    """创建隔离的 SQLite 测试数据库，并在会话结束后清理。"""
    if os.path.exists(TEST_DB_PATH):
        os.remove(TEST_DB_PATH)

    engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    db_session.engine = engine
    db_session.SessionLocal = TestingSessionLocal
    # 测试中不依赖 Redis
    session_module.use_backend(session_module.InMemorySessionBackend())

    Base.metadata.create_all(bind=engine)
    init_db()
    yield

    engine.dispose()
    if os.path.exists(TEST_DB_PATH):
        os.remove(TEST_DB_PATH)


@pytest.fixture()
def db_session_fixture() -> Generator[Session, None, None]:
    """提供给测试用例使用的数据库会话。"""
    session = db_session.SessionLocal()
    try:
        yield session
    finally:
        session.close()


# ----------------------------------------------------------------------
# 目录服务
# ----------------------------------------------------------------------


def unavailable_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(503, json={"responseStatus": "ERROR"})


@pytest.fixture()
def remote_handler() -> dict:
    """可在用例中替换的远端响应处理函数，默认模拟远端不可用。"""
    return {"handler": unavailable_handler}


@pytest.fixture()
def make_remote(remote_handler) -> Callable[..., RemoteSource]:
    def factory(token: str = "test-token") -> RemoteSource:
        transport = httpx.MockTransport(lambda request: remote_handler["handler"](request))
        return RemoteSource(token=token, client=httpx.Client(transport=transport))

    return factory


@pytest.fixture()
def blob_store() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture()
def directory_service(blob_store, make_remote) -> DirectoryService:
    overlay = OverlayStore(blob_store, namespace="test").load()
    return DirectoryService(overlay, baseline=BaselineSource(default_baseline()), remote_factory=make_remote)


@pytest.fixture()
def admin_user() -> Principal:
    return Principal(id="admin", display_name="מנהל ראשי", role="admin")


@pytest.fixture()
def client(db_session_fixture, directory_service, blob_store):
    """构建 FastAPI TestClient，并注入测试专用的数据库与目录服务依赖。"""
    def override_get_db() -> Generator[Session, None, None]:
        session = db_session.SessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_directory_service] = lambda: directory_service
    app.dependency_overrides[get_credential_store] = lambda: CredentialStore(blob_store, namespace="test")

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
