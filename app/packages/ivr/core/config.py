"""配置模块：从环境变量与 ``.env`` 文件加载 IVR 浏览服务的运行设置。"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _detect_base_dir() -> Path:
    """以包含 ``pyproject.toml`` 的最近上级目录作为项目根路径。"""
    current = Path(__file__).resolve()
    for candidate in current.parents:
        if (candidate / "pyproject.toml").is_file():
            return candidate
    return current.parents[-1]


BASE_DIR = _detect_base_dir()


def _load_environment() -> None:
    """``ENV_FILE`` 指定时只加载该文件；否则先加载 ``.env``，再用 ``.env.<ENVIRONMENT>`` 覆盖。"""
    explicit = os.getenv("ENV_FILE")
    if explicit:
        candidate = BASE_DIR / explicit
        if candidate.exists():
            load_dotenv(candidate, override=True, encoding="utf-8")
        return

    load_dotenv(BASE_DIR / ".env", override=False, encoding="utf-8")
    environment = (os.getenv("ENVIRONMENT") or "").strip()
    if environment:
        load_dotenv(BASE_DIR / f".env.{environment}", override=True, encoding="utf-8")


_load_environment()


class Settings(BaseSettings):
    """
    服务运行所需的全部配置项，每个字段都可以通过同名环境变量重写。

    远端目录接口相关的配置统一使用 ``IVR_`` 前缀。``IVR_API_TOKEN`` 只是启动时的默认凭证，
    管理员在设置页保存的凭证优先。
    """

    project_name: str = Field(default="IVR Browser API", alias="PROJECT_NAME")
    api_v1_str: str = Field(default="/api/v1", alias="API_V1_STR")
    debug: bool = Field(default=False, alias="DEBUG")
    app_port: int = Field(default=8000, alias="APP_PORT")
    timezone: str = Field(default="Asia/Jerusalem", alias="TIMEZONE")

    # 数据库：设置 DATABASE_URL 时直接使用，否则按下列字段拼接 PostgreSQL 连接串
    database_url: Optional[str] = Field(default=None, alias="DATABASE_URL")
    database_host: str = Field(default="localhost", alias="DATABASE_HOST")
    database_port: int = Field(default=5432, alias="DATABASE_PORT")
    database_user: str = Field(default="postgres", alias="DATABASE_USER")
    database_password: str = Field(default="postgres", alias="DATABASE_PASSWORD")
    database_name: str = Field(default="ivr_browser", alias="DATABASE_NAME")
    database_echo: bool = Field(default=False, alias="DATABASE_ECHO")

    # 会话存储，连接失败时退回进程内存
    redis_host: str = Field(default="localhost", alias="REDIS_HOST")
    redis_port: int = Field(default=6379, alias="REDIS_PORT")
    redis_db: int = Field(default=0, alias="REDIS_DB")

    jwt_secret_key: str = Field(default="changeme", alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(default=60, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_dir: str = Field(default="log", alias="LOG_DIR")
    log_file_name: str = Field(default="ivr-browser.log", alias="LOG_FILE_NAME")

    # 远端 IVR 目录接口
    ivr_api_base_url: str = Field(default="https://www.call2all.co.il/ym/api", alias="IVR_API_BASE_URL")
    ivr_api_token: str = Field(default="", alias="IVR_API_TOKEN")
    ivr_namespace: str = Field(default="ivr2", alias="IVR_NAMESPACE")
    ivr_request_timeout: float = Field(default=10.0, alias="IVR_REQUEST_TIMEOUT")
    ivr_audio_extensions_raw: str = Field(default="wav,mp3,wma", alias="IVR_AUDIO_EXTENSIONS")
    ivr_convert_audio: bool = Field(default=True, alias="IVR_CONVERT_AUDIO")
    ivr_provider_label: str = Field(default="ימות המשיח", alias="IVR_PROVIDER_LABEL")
    ivr_system_label: str = Field(default="מערכת ימות המשיח", alias="IVR_SYSTEM_LABEL")

    # 本地变更叠加层在键值存储中的命名空间（按部署区分）
    overlay_namespace: str = Field(default="default", alias="OVERLAY_NAMESPACE")

    default_admin_username: str = Field(default="admin", alias="DEFAULT_ADMIN_USERNAME")
    default_admin_password: str = Field(default="admin123", alias="DEFAULT_ADMIN_PASSWORD")
    seed_demo_users: bool = Field(default=True, alias="SEED_DEMO_USERS")

    model_config = SettingsConfigDict(extra="ignore")

    @field_validator("ivr_api_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.strip().rstrip("/")

    @field_validator("overlay_namespace")
    @classmethod
    def _require_namespace(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("OVERLAY_NAMESPACE must not be empty")
        return value

    @property
    def sql_database_url(self) -> str:
        if self.database_url:
            return self.database_url
        return (
            f"postgresql+psycopg2://{self.database_user}:{self.database_password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}"
        )

    @property
    def redis_url(self) -> str:
        return f"redis://{self.redis_host}:{self.redis_port}/{self.redis_db}"

    @property
    def log_file_path(self) -> Path:
        """日志文件的绝对路径；``LOG_DIR`` 为相对路径时以项目根目录为基准。"""
        directory = Path(self.log_dir)
        if not directory.is_absolute():
            directory = BASE_DIR / directory
        return directory / self.log_file_name

    @property
    def timezone_info(self) -> ZoneInfo:
        """当前配置对应的时区，无法解析时回退到 UTC。"""
        try:
            return ZoneInfo(self.timezone)
        except ZoneInfoNotFoundError:
            return ZoneInfo("UTC")

    @property
    def ivr_audio_extensions(self) -> frozenset[str]:
        raw = (self.ivr_audio_extensions_raw or "").strip()
        return frozenset(item.strip().lower().lstrip(".") for item in raw.split(",") if item.strip())


@lru_cache
def get_settings() -> Settings:
    """返回缓存的配置对象。"""
    return Settings()
