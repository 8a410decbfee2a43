"""活动日志接口的集成测试用例。"""

import io

from fastapi.testclient import TestClient
from openpyxl import load_workbook


def _get_token(client: TestClient, username: str = "admin", password: str = "admin123") -> str:
    """获取访问令牌的辅助方法。"""
    response = client.post(
        "/api/v1/auth/login",
        json={"username": username, "password": password},
    )
    return response.json()["data"]["access_token"]


def _headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def _generate_activity(client: TestClient) -> dict:
    """清空日志后产生一条下载与一条上传记录，返回管理员请求头。"""
    admin_headers = _headers(_get_token(client))
    client.delete("/api/v1/logs", headers=admin_headers)

    client.get(
        "/api/v1/files/download",
        params={"path": "1/1/001.wav"},
        headers=_headers(_get_token(client, "0509999999", "1234")),
        follow_redirects=False,
    )
    client.post(
        "/api/v1/files",
        params={"path": "3"},
        files={"file": ("nigun.wav", b"RIFF", "audio/wav")},
        headers=_headers(_get_token(client, "0508888888", "1234")),
    )
    return admin_headers


def test_file_operations_are_logged(client: TestClient):
    headers = _generate_activity(client)

    response = client.get("/api/v1/logs", headers=headers)

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["total"] == 2
    actions = {item["action"]: item for item in data["items"]}
    assert actions["download"]["username"] == "0509999999"
    assert actions["download"]["user_display_name"] == "יוסי כהן"
    assert actions["download"]["file_name"] == "עדכון בוקר.wav"
    assert actions["download"]["action_label"] == "下载"
    assert actions["upload"]["file_name"] == "nigun.wav"
    assert actions["upload"]["path"] == "3/002.wav"
    assert all(item["timestamp"] for item in data["items"])


def test_filter_logs_by_display_name_and_action(client: TestClient):
    headers = _generate_activity(client)

    response = client.get("/api/v1/logs", params={"keyword": "דוד"}, headers=headers)
    assert [item["username"] for item in response.json()["data"]["items"]] == ["0508888888"]

    response = client.get("/api/v1/logs", params={"actions": ["download"]}, headers=headers)
    assert [item["action"] for item in response.json()["data"]["items"]] == ["download"]

    response = client.get("/api/v1/logs", params={"actions": ["rename"]}, headers=headers)
    assert response.status_code == 400


def test_export_logs_as_xlsx(client: TestClient):
    headers = _generate_activity(client)

    response = client.get("/api/v1/logs/export", headers=headers)

    assert response.status_code == 200
    assert "spreadsheetml" in response.headers["content-type"]
    assert "attachment" in response.headers["content-disposition"]

    sheet = load_workbook(io.BytesIO(response.content)).active
    rows = list(sheet.iter_rows(values_only=True))
    assert rows[0] == ("时间", "用户", "用户名", "动作", "文件", "路径")
    assert len(rows) == 3
    assert {row[3] for row in rows[1:]} == {"下载", "上传"}


def test_clear_logs(client: TestClient):
    headers = _generate_activity(client)

    response = client.delete("/api/v1/logs", headers=headers)
    assert response.status_code == 200
    assert response.json()["data"] == {"removed": 2}

    response = client.get("/api/v1/logs", headers=headers)
    assert response.json()["data"]["total"] == 0


def test_standard_user_cannot_read_logs(client: TestClient):
    token = _get_token(client, "0508888888", "1234")
    response = client.get("/api/v1/logs", headers=_headers(token))
    assert response.status_code == 403
