"""认证接口的集成测试用例。"""

from fastapi.testclient import TestClient


def _get_token(client: TestClient, username: str = "admin", password: str = "admin123") -> str:
    """获取访问令牌的辅助方法。"""
    response = client.post(
        "/api/v1/auth/login",
        json={"username": username, "password": password},
    )
    return response.json()["data"]["access_token"]


def test_login_success(client: TestClient):
    """登录流程：正确凭证应返回访问令牌，并在 meta 中附带同一令牌。"""
    response = client.post(
        "/api/v1/auth/login",
        json={"username": "admin", "password": "admin123"},
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["code"] == 200
    assert payload["data"]["token_type"] == "bearer"
    assert payload["data"]["access_token"]
    assert payload["meta"]["access_token"] == payload["data"]["access_token"]


def test_login_with_short_numeric_password(client: TestClient):
    """演示账号使用电话号码与 4 位数字密码登录。"""
    response = client.post(
        "/api/v1/auth/login",
        json={"username": "0509999999", "password": "1234"},
    )
    assert response.status_code == 200
    assert response.json()["data"]["access_token"]


def test_login_invalid_credentials(client: TestClient):
    """登录流程：错误密码应提示认证失败。"""
    response = client.post(
        "/api/v1/auth/login",
        json={"username": "admin", "password": "wrongpassword"},
    )
    assert response.status_code == 401
    payload = response.json()
    assert payload["code"] == 401
    assert payload["msg"] == "用户名或密码错误"


def test_me_returns_effective_permissions(client: TestClient):
    """管理员的权限恒为 True；普通用户按存储的开关返回。"""
    admin_token = _get_token(client)
    response = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {admin_token}"})
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["role"] == "admin"
    assert data["can_upload"] and data["can_delete"] and data["can_download"]

    user_token = _get_token(client, "0509999999", "1234")
    response = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {user_token}"})
    data = response.json()["data"]
    assert data["display_name"] == "יוסי כהן"
    assert data["granted_paths"] == ["1", "1/1"]
    assert data["can_download"] is True
    assert data["can_upload"] is False
    assert data["can_delete"] is False


def test_me_without_token(client: TestClient):
    response = client.get("/api/v1/auth/me")
    assert response.status_code == 401
    payload = response.json()
    assert payload["code"] == 401
    assert payload["msg"] == "缺少认证信息"


def test_logout_invalidates_session(client: TestClient):
    """退出登录后，旧令牌不能继续使用。"""
    token = _get_token(client)
    headers = {"Authorization": f"Bearer {token}"}

    response = client.post("/api/v1/auth/logout", headers=headers)
    assert response.status_code == 200
    assert response.json()["msg"] == "退出登录成功"

    response = client.get("/api/v1/auth/me", headers=headers)
    assert response.status_code == 401


def test_health_check(client: TestClient):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["data"] == {"status": "healthy"}
    assert response.headers.get("X-Request-ID")
