"""Fixtures running the ledger service against a temporary database."""

from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from hisab.app import configure_fastapi_app
from hisab.config import AppConfig

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "admin-password-123"  # noqa: S105
MEMBER_PASSWORD = "member-password-123"  # noqa: S105


@pytest.fixture
def app_config(tmp_path: Path) -> AppConfig:
    return AppConfig(
        database_path=str(tmp_path / "db" / "ledger.db"),
        logging_level=None,
        root_path="",
        secret_key="s" * 64,
        algorithm="HS512",
        access_token_expire_minutes=60,
        password_min_length=8,
        admin_username=ADMIN_USERNAME,
        admin_password=ADMIN_PASSWORD,
        admin_name="مدير النظام",
    )


@pytest.fixture
def client(app_config: AppConfig) -> Iterator[TestClient]:
    with TestClient(configure_fastapi_app(app_config)) as test_client:
        yield test_client


@pytest.fixture
def login_as(client: TestClient) -> Callable[[str, str], dict[str, str]]:
    """Return a function logging in and building the bearer header."""

    def login(username: str, password: str) -> dict[str, str]:
        response = client.post(
            "/api/auth/login",
            json={"username": username, "password": password},
        )
        assert response.status_code == 200, response.text  # noqa: PLR2004
        return {"Authorization": f"Bearer {response.json()['access_token']}"}

    return login


@pytest.fixture
def admin_headers(login_as: Callable[[str, str], dict[str, str]]) -> dict[str, str]:
    return login_as(ADMIN_USERNAME, ADMIN_PASSWORD)


@pytest.fixture
def create_member(
    client: TestClient,
    admin_headers: dict[str, str],
    login_as: Callable[[str, str], dict[str, str]],
) -> Callable[..., dict[str, str]]:
    """Return a function creating an account with a role and logging it in."""

    def create(
        username: str,
        role: str,
        permissions: list[str] | None = None,
    ) -> dict[str, str]:
        response = client.post(
            "/api/users",
            json={
                "username": username,
                "password": MEMBER_PASSWORD,
                "name": username,
                "role": role,
                "permissions": permissions or [],
            },
            headers=admin_headers,
        )
        assert response.status_code == 201, response.text  # noqa: PLR2004
        return login_as(username, MEMBER_PASSWORD)

    return create
