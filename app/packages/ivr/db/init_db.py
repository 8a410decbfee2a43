"""Database bootstrapping utilities."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from app.packages.ivr.core.config import get_settings
from app.packages.ivr.core.enums import RoleEnum
from app.packages.ivr.core.security import hash_password
from app.packages.ivr.db import session as db_session
from app.packages.ivr.models import Base, User

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_DISPLAY_NAME = "מנהל ראשי"

# 演示账号：授权目录与权限组合覆盖“只可下载”与“只可上传”两种典型场景
DEMO_USERS = (
    {
        "username": "0509999999",
        "display_name": "יוסי כהן",
        "password": "1234",
        "granted_paths": ["1", "1/1"],
        "can_upload": False,
        "can_delete": False,
        "can_download": True,
    },
    {
        "username": "0508888888",
        "display_name": "דוד לוי",
        "password": "1234",
        "granted_paths": ["2", "3"],
        "can_upload": True,
        "can_delete": False,
        "can_download": False,
    },
)


def init_db() -> None:
    """Create all database tables if they do not exist and seed the default accounts."""
    Base.metadata.create_all(bind=db_session.engine)

    session = db_session.SessionLocal()
    try:
        _seed_admin(session)
        if get_settings().seed_demo_users:
            _seed_demo_users(session)
        session.commit()
    except Exception:  # pragma: no cover - initialization failures should not crash gracefully
        session.rollback()
        logger.exception("Failed to seed default data during database initialization")
        raise
    finally:
        session.close()


def _seed_admin(db: Session) -> None:
    settings = get_settings()
    admin = db.query(User).filter(User.username == settings.default_admin_username).first()
    if admin is None:
        admin = User(
            username=settings.default_admin_username,
            display_name=DEFAULT_ADMIN_DISPLAY_NAME,
            hashed_password=hash_password(settings.default_admin_password),
            role=RoleEnum.ADMIN.value,
            can_upload=True,
            can_delete=True,
            can_download=True,
            is_active=True,
        )
        admin.granted_paths = []
        db.add(admin)
        db.flush()
        logger.info("Default administrator %s created", admin.username)
    elif admin.role != RoleEnum.ADMIN.value:
        # 内置管理员的角色不可被降级
        admin.role = RoleEnum.ADMIN.value
        db.add(admin)


def _seed_demo_users(db: Session) -> None:
    for demo in DEMO_USERS:
        if db.query(User).filter(User.username == demo["username"]).first() is not None:
            continue
        user = User(
            username=demo["username"],
            display_name=demo["display_name"],
            hashed_password=hash_password(demo["password"]),
            role=RoleEnum.STANDARD.value,
            can_upload=demo["can_upload"],
            can_delete=demo["can_delete"],
            can_download=demo["can_download"],
            is_active=True,
        )
        user.granted_paths = demo["granted_paths"]
        db.add(user)
    db.flush()
