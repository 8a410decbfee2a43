"""用户管理接口的集成测试用例。"""

from fastapi.testclient import TestClient


def _get_token(client: TestClient, username: str = "admin", password: str = "admin123") -> str:
    """获取访问令牌的辅助方法。"""
    response = client.post(
        "/api/v1/auth/login",
        json={"username": username, "password": password},
    )
    return response.json()["data"]["access_token"]


def _admin_headers(client: TestClient) -> dict:
    return {"Authorization": f"Bearer {_get_token(client)}"}


def _create_user(client: TestClient, headers: dict, username: str, **overrides):
    payload = {
        "username": username,
        "password": "4321",
        "display_name": "משה פרץ",
        "granted_paths": ["/2/1/", "2/1", "", "3"],
        "can_download": True,
    }
    payload.update(overrides)
    return client.post("/api/v1/users", json=payload, headers=headers)


def test_list_users_contains_seeded_accounts(client: TestClient):
    response = client.get("/api/v1/users", headers=_admin_headers(client))

    assert response.status_code == 200
    usernames = [item["username"] for item in response.json()["data"]["items"]]
    assert {"admin", "0509999999", "0508888888"} <= set(usernames)


def test_list_users_by_display_name_keyword(client: TestClient):
    response = client.get("/api/v1/users", params={"keyword": "כהן"}, headers=_admin_headers(client))

    items = response.json()["data"]["items"]
    assert [item["username"] for item in items] == ["0509999999"]


def test_create_user_normalizes_grants(client: TestClient):
    headers = _admin_headers(client)

    response = _create_user(client, headers, "0521000001")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["role"] == "standard"
    assert data["granted_paths"] == ["2/1", "3"]
    assert data["can_download"] is True
    assert data["can_upload"] is False
    assert data["is_active"] is True

    response = client.get("/api/v1/users/0521000001", headers=headers)
    assert response.json()["data"]["display_name"] == "משה פרץ"


def test_create_duplicate_user_conflicts(client: TestClient):
    headers = _admin_headers(client)
    _create_user(client, headers, "0521000002")

    response = _create_user(client, headers, "0521000002")

    assert response.status_code == 409
    assert response.json()["msg"] == "用户名已存在"


def test_create_user_with_unknown_role(client: TestClient):
    response = _create_user(client, _admin_headers(client), "0521000003", role="owner")
    assert response.status_code == 400


def test_new_user_can_login_and_sees_grants(client: TestClient):
    _create_user(client, _admin_headers(client), "0521000004")

    token = _get_token(client, "0521000004", "4321")
    response = client.get("/api/v1/files", headers={"Authorization": f"Bearer {token}"})

    assert [item["path"] for item in response.json()["data"]["items"]] == ["2", "3"]


def test_update_password_invalidates_sessions(client: TestClient):
    headers = _admin_headers(client)
    _create_user(client, headers, "0521000005")
    old_token = _get_token(client, "0521000005", "4321")

    response = client.put("/api/v1/users/0521000005", json={"password": "9999"}, headers=headers)
    assert response.status_code == 200

    response = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {old_token}"})
    assert response.status_code == 401

    response = client.post("/api/v1/auth/login", json={"username": "0521000005", "password": "4321"})
    assert response.status_code == 401
    assert _get_token(client, "0521000005", "9999")


def test_partial_update_keeps_other_fields(client: TestClient):
    headers = _admin_headers(client)
    _create_user(client, headers, "0521000006")

    response = client.put(
        "/api/v1/users/0521000006",
        json={"can_upload": True, "granted_paths": ["1"]},
        headers=headers,
    )

    data = response.json()["data"]
    assert data["can_upload"] is True
    assert data["can_download"] is True
    assert data["granted_paths"] == ["1"]
    assert data["display_name"] == "משה פרץ"


def test_deactivated_user_cannot_login(client: TestClient):
    headers = _admin_headers(client)
    _create_user(client, headers, "0521000007")

    client.put("/api/v1/users/0521000007", json={"is_active": False}, headers=headers)

    response = client.post("/api/v1/auth/login", json={"username": "0521000007", "password": "4321"})
    assert response.status_code == 401


def test_delete_user(client: TestClient):
    headers = _admin_headers(client)
    _create_user(client, headers, "0521000008")

    response = client.delete("/api/v1/users/0521000008", headers=headers)
    assert response.status_code == 200
    assert response.json()["data"] == {"username": "0521000008"}

    response = client.get("/api/v1/users/0521000008", headers=headers)
    assert response.status_code == 404


def test_builtin_admin_is_protected(client: TestClient):
    headers = _admin_headers(client)

    assert client.delete("/api/v1/users/admin", headers=headers).status_code == 400
    assert client.put("/api/v1/users/admin", json={"role": "standard"}, headers=headers).status_code == 400
    assert client.put("/api/v1/users/admin", json={"is_active": False}, headers=headers).status_code == 400


def test_standard_user_cannot_manage_users(client: TestClient):
    token = _get_token(client, "0509999999", "1234")
    response = client.get("/api/v1/users", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 403
    assert response.json()["msg"] == "需要管理员权限"
