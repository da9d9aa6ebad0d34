"""Tests for the application context against a mocked server."""

import json
from pathlib import Path

import httpx
import pytest

from hisab.access import ADMIN_ONLY, AccessDenied
from hisab.client import PROJECTS, ApiError, AppContext
from hisab.common import InvalidIdentityError, Role
from hisab.config import ClientConfig

ADMIN_PAYLOAD = {
    "id": 1,
    "username": "admin",
    "name": "مدير النظام",
    "role": "admin",
    "permissions": ["manage_users", "view_projects"],
}


class FakeServer:
    """Minimal stand-in for the ledger API."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.session_status = 200
        self.login_user = dict(ADMIN_PAYLOAD)
        self.login_body: object = None
        self.session_user: object = {**ADMIN_PAYLOAD, "role": "manager"}
        self.project_version = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == "/api/auth/login":
            credentials = json.loads(request.content)
            if credentials["password"] != "correct-horse":
                return httpx.Response(401, json={"detail": "bad credentials"})
            if self.login_body is not None:
                return httpx.Response(200, json=self.login_body)
            return httpx.Response(
                200,
                json={
                    "access_token": "jwt-token",
                    "token_type": "bearer",
                    "user": self.login_user,
                },
            )
        if path == "/api/auth/session":
            if self.session_status != 200:  # noqa: PLR2004
                return httpx.Response(self.session_status, json={"detail": "no"})
            return httpx.Response(200, json=self.session_user)
        if path == "/api/auth/logout":
            return httpx.Response(200, json={"message": "bye"})
        if path == PROJECTS:
            self.project_version += 1
            return httpx.Response(200, json=[{"id": self.project_version}])
        return httpx.Response(404, json={"detail": "not found"})


@pytest.fixture
def server() -> FakeServer:
    return FakeServer()


@pytest.fixture
def config(tmp_path: Path) -> ClientConfig:
    return ClientConfig(
        api_base_url="http://ledger.test",
        session_file=str(tmp_path / "session.json"),
        stale_time=None,
        request_timeout=5,
    )


def _context(config: ClientConfig, server: FakeServer) -> AppContext:
    return AppContext(config, transport=httpx.MockTransport(server))


@pytest.mark.asyncio
async def test_login_stores_identity_and_token(
    config: ClientConfig,
    server: FakeServer,
) -> None:
    """Test that login remembers the user and authenticates later requests."""
    async with _context(config, server) as context:
        user = await context.login("admin", "correct-horse")
        await context.cache.get(PROJECTS)

    assert user.role is Role.ADMIN
    assert context.user == user
    assert server.requests[-1].headers["authorization"] == "Bearer jwt-token"
    assert Path(config.session_file).exists()


@pytest.mark.asyncio
async def test_login_failure_keeps_logged_out(
    config: ClientConfig,
    server: FakeServer,
) -> None:
    """Test that rejected credentials leave no identity behind."""
    async with _context(config, server) as context:
        with pytest.raises(ApiError) as error:
            await context.login("admin", "wrong")

    assert error.value.status_code == 401  # noqa: PLR2004
    assert context.user is None
    assert not Path(config.session_file).exists()


@pytest.mark.asyncio
async def test_login_rejects_unknown_role(
    config: ClientConfig,
    server: FakeServer,
) -> None:
    """Test that a malformed identity from the server is refused."""
    server.login_user["role"] = "root"

    async with _context(config, server) as context:
        with pytest.raises(InvalidIdentityError):
            await context.login("admin", "correct-horse")

    assert context.user is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        {"token_type": "bearer", "user": ADMIN_PAYLOAD},
        {"access_token": "jwt-token"},
        ["jwt-token", ADMIN_PAYLOAD],
    ],
)
async def test_login_rejects_incomplete_response(
    config: ClientConfig,
    server: FakeServer,
    body: object,
) -> None:
    """Test that a response without token or user is an identity error."""
    server.login_body = body

    async with _context(config, server) as context:
        with pytest.raises(InvalidIdentityError):
            await context.login("admin", "correct-horse")

    assert context.user is None
    assert context.api.token is None
    assert not Path(config.session_file).exists()


@pytest.mark.asyncio
async def test_login_clears_previous_cache(
    config: ClientConfig,
    server: FakeServer,
) -> None:
    """Test that data read before login is not served afterwards."""
    async with _context(config, server) as context:
        before = await context.cache.get(PROJECTS)
        await context.login("admin", "correct-horse")
        after = await context.cache.get(PROJECTS)

    assert before != after


@pytest.mark.asyncio
async def test_session_survives_restart(
    config: ClientConfig,
    server: FakeServer,
) -> None:
    """Test that a new context restores the saved identity."""
    async with _context(config, server) as context:
        await context.login("admin", "correct-horse")

    async with _context(config, server) as restarted:
        assert restarted.user is not None
        assert restarted.user.username == "admin"
        assert restarted.api.token == "jwt-token"


@pytest.mark.asyncio
async def test_check_session_refreshes_identity(
    config: ClientConfig,
    server: FakeServer,
) -> None:
    """Test that a role change on the server reaches the client."""
    async with _context(config, server) as context:
        await context.login("admin", "correct-horse")
        user = await context.check_session()

    assert user is not None
    assert user.role is Role.MANAGER
    assert context.user == user


@pytest.mark.asyncio
async def test_check_session_clears_expired_session(
    config: ClientConfig,
    server: FakeServer,
) -> None:
    """Test that a 401 from the server logs the client out."""
    async with _context(config, server) as context:
        await context.login("admin", "correct-horse")
        server.session_status = 401

        assert await context.check_session() is None
        assert context.user is None
        assert context.api.token is None


@pytest.mark.asyncio
async def test_check_session_propagates_other_errors(
    config: ClientConfig,
    server: FakeServer,
) -> None:
    """Test that a server error does not discard the session."""
    async with _context(config, server) as context:
        await context.login("admin", "correct-horse")
        server.session_status = 500

        with pytest.raises(ApiError):
            await context.check_session()
        assert context.user is not None


@pytest.mark.asyncio
async def test_check_session_clears_malformed_identity(
    config: ClientConfig,
    server: FakeServer,
) -> None:
    """Test that a malformed session payload logs the client out."""
    async with _context(config, server) as context:
        await context.login("admin", "correct-horse")
        server.session_user = {"id": 1, "username": "admin", "role": "root"}

        with pytest.raises(InvalidIdentityError):
            await context.check_session()
        assert context.user is None
        assert context.api.token is None

    assert not Path(config.session_file).exists()


@pytest.mark.asyncio
async def test_check_session_without_token(
    config: ClientConfig,
    server: FakeServer,
) -> None:
    """Test that nothing is requested when logged out."""
    async with _context(config, server) as context:
        assert await context.check_session() is None

    assert server.requests == []


@pytest.mark.asyncio
async def test_logout_forgets_everything(
    config: ClientConfig,
    server: FakeServer,
) -> None:
    """Test that logout clears identity, token and cached data."""
    async with _context(config, server) as context:
        await context.login("admin", "correct-horse")
        await context.cache.get(PROJECTS)

        await context.logout()

        assert context.user is None
        assert context.api.token is None
        assert context.cache.peek(PROJECTS) is None
        assert not Path(config.session_file).exists()


@pytest.mark.asyncio
async def test_render_uses_current_user(
    config: ClientConfig,
    server: FakeServer,
) -> None:
    """Test guarded rendering before and after login."""
    async with _context(config, server) as context:
        assert context.render(ADMIN_ONLY, "panel") == AccessDenied()
        assert not context.allows(ADMIN_ONLY)

        await context.login("admin", "correct-horse")

        assert context.render(ADMIN_ONLY, "panel") == "panel"
        assert context.allows(ADMIN_ONLY)
