"""日志配置：控制台彩色输出 + 按天轮转的文件日志，每条记录附带请求 ID。"""

import logging
import logging.config
import sys
from contextvars import ContextVar
from datetime import datetime
from typing import Optional

from .config import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s"

_request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


def set_request_id(request_id: Optional[str]) -> None:
    _request_id_ctx.set(request_id)


class RequestIdFilter(logging.Filter):
    """把上下文中的请求 ID 写入日志记录，请求之外的日志显示为 ``-``。"""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401
        record.request_id = _request_id_ctx.get() or "-"
        return True


class ConsoleFormatter(logging.Formatter):
    """按配置的时区渲染时间，终端中再按级别着色。"""

    RESET = "\033[0m"
    COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[41m",
    }

    def __init__(self, fmt: str = LOG_FORMAT, datefmt: Optional[str] = None, use_colors: Optional[bool] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.use_colors = sys.stderr.isatty() if use_colors is None else use_colors

    def formatTime(self, record: logging.LogRecord, datefmt: Optional[str] = None) -> str:  # noqa: N802
        moment = datetime.fromtimestamp(record.created, get_settings().timezone_info)
        if datefmt:
            return moment.strftime(datefmt)
        return moment.isoformat(sep=" ", timespec="milliseconds")

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        color = self.COLORS.get(record.levelno) if self.use_colors else None
        return f"{color}{message}{self.RESET}" if color else message


def setup_logging() -> None:
    """初始化日志系统，应用、uvicorn 与 httpx 的输出统一走同一组处理器。"""
    settings = get_settings()
    log_file = settings.log_file_path
    log_file.parent.mkdir(parents=True, exist_ok=True)

    handlers = ["console", "file"]
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "console": {"()": "app.packages.ivr.core.logger.ConsoleFormatter"},
                "file": {"()": "app.packages.ivr.core.logger.ConsoleFormatter", "use_colors": False},
            },
            "filters": {"request_id": {"()": "app.packages.ivr.core.logger.RequestIdFilter"}},
            "handlers": {
                "console": {
                    "level": settings.log_level,
                    "class": "logging.StreamHandler",
                    "formatter": "console",
                    "filters": ["request_id"],
                },
                "file": {
                    "level": settings.log_level,
                    "class": "logging.handlers.TimedRotatingFileHandler",
                    "formatter": "file",
                    "filename": str(log_file),
                    "when": "midnight",
                    "backupCount": 14,
                    "encoding": "utf-8",
                    "delay": True,
                    "filters": ["request_id"],
                },
            },
            "loggers": {
                **{
                    name: {"handlers": handlers, "level": settings.log_level, "propagate": False}
                    for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "app")
                },
                # httpx 会为每次远端调用输出一条 INFO 日志
                "httpx": {"handlers": handlers, "level": "WARNING", "propagate": False},
            },
            "root": {"handlers": handlers, "level": settings.log_level},
        }
    )


logger = logging.getLogger("app.ivr")
