"""API tests for the activity log."""

from collections.abc import Callable

from fastapi.testclient import TestClient

from hisab.auth.validation import FORBIDDEN

Headers = dict[str, str]

PROJECT = {"name": "مجمع النخيل", "start_date": "2024-02-01"}
TRANSACTION = {
    "date": "2024-02-03",
    "amount": 1200,
    "type": "expense",
    "description": "حديد",
}


def _activity(client: TestClient, headers: Headers, **params: object) -> list[dict]:
    response = client.get("/api/activity-logs", params=params, headers=headers)
    assert response.status_code == 200, response.text  # noqa: PLR2004
    return response.json()


def _summary(entries: list[dict]) -> list[tuple[str, str, str]]:
    return [(e["action"], e["entity_type"], e["details"]) for e in entries]


class TestActivityLog:
    """Test suite for recording and listing activity."""

    def test_ledger_changes_are_recorded(
        self,
        client: TestClient,
        admin_headers: Headers,
    ) -> None:
        """Test that project and transaction writes are logged newest first."""
        project = client.post("/api/projects", json=PROJECT, headers=admin_headers)
        project_id = project.json()["id"]
        client.put(
            f"/api/projects/{project_id}",
            json={**PROJECT, "name": "مجمع الزيتون"},
            headers=admin_headers,
        )
        transaction = client.post(
            "/api/transactions",
            json=TRANSACTION,
            headers=admin_headers,
        )
        client.delete(
            f"/api/transactions/{transaction.json()['id']}",
            headers=admin_headers,
        )
        client.delete(f"/api/projects/{project_id}", headers=admin_headers)

        entries = _activity(client, admin_headers)

        assert _summary(entries)[:5] == [
            ("delete", "project", "حذف مشروع: مجمع الزيتون"),
            ("delete", "transaction", "حذف معاملة: حديد"),
            ("create", "transaction", "إضافة معاملة جديدة: حديد (expense)"),
            ("update", "project", "تحديث مشروع: مجمع الزيتون"),
            ("create", "project", "إضافة مشروع جديد: مجمع النخيل"),
        ]
        assert {e["user_id"] for e in entries} == {1}
        assert entries[0]["entity_id"] == project_id

    def test_entity_type_filter(
        self,
        client: TestClient,
        admin_headers: Headers,
    ) -> None:
        """Test listing only the entries about one kind of record."""
        client.post("/api/projects", json=PROJECT, headers=admin_headers)
        client.post("/api/transactions", json=TRANSACTION, headers=admin_headers)

        projects = _activity(client, admin_headers, entity_type="project")

        assert [e["entity_type"] for e in projects] == ["project"]

    def test_account_changes_and_user_filter(
        self,
        client: TestClient,
        admin_headers: Headers,
        create_member: Callable[..., Headers],
    ) -> None:
        """Test that account administration and member logins are logged."""
        member_headers = create_member("huda", "user")
        session = client.get("/api/auth/session", headers=member_headers)
        member_id = session.json()["id"]
        client.put(
            f"/api/users/{member_id}",
            json={"name": "هدى", "role": "viewer"},
            headers=admin_headers,
        )
        client.delete(f"/api/users/{member_id}", headers=admin_headers)

        by_admin = _activity(client, admin_headers, user_id=1, entity_type="user")
        by_member = _activity(client, admin_headers, user_id=member_id)

        assert _summary(by_admin)[:3] == [
            ("delete", "user", "حذف المستخدم: هدى"),
            ("update", "user", "تحديث بيانات المستخدم: هدى"),
            ("create", "user", "إضافة مستخدم جديد: huda"),
        ]
        assert _summary(by_member) == [("login", "user", "تسجيل دخول")]

    def test_logout_is_recorded(
        self,
        client: TestClient,
        admin_headers: Headers,
    ) -> None:
        """Test that logging out leaves an entry."""
        client.post("/api/auth/logout", headers=admin_headers)

        latest = _activity(client, admin_headers)[0]

        assert (latest["action"], latest["details"]) == ("logout", "تسجيل خروج")

    def test_requires_view_activity_logs(
        self,
        client: TestClient,
        create_member: Callable[..., Headers],
    ) -> None:
        """Test that only holders of view_activity_logs may read the log."""
        manager_headers = create_member("karim", "manager")
        auditor_headers = create_member(
            "nour",
            "viewer",
            ["view_activity_logs"],
        )

        denied = client.get("/api/activity-logs", headers=manager_headers)

        assert denied.status_code == 403  # noqa: PLR2004
        assert denied.json()["detail"] == FORBIDDEN
        assert _activity(client, auditor_headers)
        assert client.get("/api/activity-logs").status_code == 401  # noqa: PLR2004
