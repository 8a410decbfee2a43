"""认证服务：登录签发令牌、退出登录以及当前用户信息。"""

from sqlalchemy.orm import Session

from app.packages.ivr.core.constants import ACCESS_TOKEN_TYPE, HTTP_STATUS_OK, HTTP_STATUS_UNAUTHORIZED
from app.packages.ivr.core.exceptions import AppException
from app.packages.ivr.core.logger import logger
from app.packages.ivr.core.responses import create_response
from app.packages.ivr.core.security import issue_token, store_refreshed_token, verify_password
from app.packages.ivr.core.session import close_session, open_session
from app.packages.ivr.crud.users import user_crud
from app.packages.ivr.models.user import User
from app.packages.ivr.services import access_policy
from app.packages.ivr.services.access_policy import Principal


class AuthService:
    def login(self, db: Session, *, username: str, password: str) -> dict:
        """校验用户凭证并签发访问令牌，停用账号与密码错误返回相同提示。"""
        user = user_crud.get_by_username(db, (username or "").strip())
        if user is None or not user.is_active or not verify_password(password, user.hashed_password):
            logger.info("Login failed for %s", username)
            raise AppException(msg="用户名或密码错误", code=HTTP_STATUS_UNAUTHORIZED)

        session_id = open_session(user.id)
        access_token = issue_token(user.id, user.username, session_id)
        logger.info("User %s logged in", user.username)

        store_refreshed_token(access_token)
        return create_response(
            "登录成功",
            {"access_token": access_token, "token_type": ACCESS_TOKEN_TYPE},
            HTTP_STATUS_OK,
        )

    def logout(self, session_id: str | None) -> dict:
        if session_id:
            close_session(session_id)
        return create_response("退出登录成功", None, HTTP_STATUS_OK)

    def build_profile(self, user: User) -> dict:
        """返回用户资料以及按角色计算后的有效权限（管理员恒为 True）。"""
        principal = Principal.from_user(user)
        data = {
            "username": user.username,
            "display_name": principal.display_name,
            "role": principal.role.value,
            "granted_paths": list(principal.granted_paths),
            "can_upload": access_policy.can_upload(principal),
            "can_delete": access_policy.can_delete(principal),
            "can_download": access_policy.can_download(principal),
        }
        return create_response("获取用户信息成功", data, HTTP_STATUS_OK)


auth_service = AuthService()
