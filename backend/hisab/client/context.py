"""Application context wiring identity, network, cache and mutations.

One context is created at the application root and passed by reference to
anything that needs to read resources, issue writes or check access. There is
no module-level cache or session.

**Example Usage:**

.. code-block:: python

    config = load_client_config_from_env(".env")
    async with AppContext(config) as context:
        await context.login("admin", "secret-password")
        projects = await context.cache.get(PROJECTS)
        await context.mutations.mutate(
            Mutation.create(TRANSACTIONS, dependent_keys(TRANSACTIONS)),
            {"amount": 250, "type": "expense", "description": "إسمنت"},
        )
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Self

from hisab.access import AccessGuard, AccessRequirement
from hisab.access.guard import UNSET
from hisab.common import InvalidIdentityError, User

from .cache import QueryCache
from .http import ApiClient, ApiError
from .mutations import MutationDispatcher
from .session import SessionStore

if TYPE_CHECKING:
    from types import TracebackType

    import httpx

    from hisab.config import ClientConfig

LOGGER = logging.getLogger(__name__)

LOGIN_PATH = "/api/auth/login"
LOGOUT_PATH = "/api/auth/logout"
SESSION_PATH = "/api/auth/session"

_UNAUTHORIZED = 401


class AppContext:
    """Owns the single cache, dispatcher and session of a running client."""

    def __init__(
        self,
        config: ClientConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Create the context and its collaborators.

        :param config: Client configuration
        :param transport: Optional HTTP transport, used to substitute the network
            in tests
        """
        self.config = config
        self.api = ApiClient(
            config.api_base_url,
            timeout=config.request_timeout,
            transport=transport,
        )
        self.cache = QueryCache(self.api.request, stale_time=config.stale_time)
        self.mutations = MutationDispatcher(self.api.request, self.cache)
        self.session = SessionStore(config.session_file)

    async def __aenter__(self) -> Self:
        self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.api.aclose()

    @property
    def user(self) -> User | None:
        return self.session.user

    def start(self) -> User | None:
        """Restore the persisted session, if any."""
        user = self.session.load()
        self.api.token = self.session.access_token
        return user

    async def login(self, username: str, password: str) -> User:
        """Authenticate and remember the returned identity.

        :param username: Login name
        :param password: Plaintext password
        :return: The logged-in user
        :raises ApiError: If the server rejects the credentials
        :raises InvalidIdentityError: If the returned identity is malformed
        """
        response = await self.api.request(
            "POST",
            LOGIN_PATH,
            {"username": username, "password": password},
        )
        try:
            access_token = response["access_token"]
            user_data = response["user"]
        except (KeyError, TypeError) as e:
            msg = "Login response lacks an access token or user"
            raise InvalidIdentityError(msg) from e
        user = User.from_payload(user_data)

        self.cache.clear()
        self.session.save(user, access_token)
        self.api.token = access_token
        LOGGER.info("Logged in as %s (%s)", user.username, user.role)
        return user

    async def check_session(self) -> User | None:
        """Re-read the current identity from the server.

        An expired or revoked session is cleared locally.

        :return: The current user, or None if the session is no longer valid
        :raises InvalidIdentityError: If the server returns a malformed identity;
            the local session is cleared first
        """
        if self.session.access_token is None:
            return None

        try:
            payload = await self.api.request("GET", SESSION_PATH)
        except ApiError as e:
            if e.status_code != _UNAUTHORIZED:
                raise
            LOGGER.info("Session expired, clearing local identity")
            self._forget()
            return None

        try:
            user = User.from_payload(payload)
        except InvalidIdentityError:
            LOGGER.warning("Server returned a malformed identity, clearing session")
            self._forget()
            raise
        self.session.replace_user(user)
        return user

    async def logout(self) -> None:
        """Log out on the server, then forget the session and cached data.

        Local state is cleared even when the server call fails; the failure is
        still raised.
        """
        try:
            if self.session.access_token is not None:
                await self.api.request("POST", LOGOUT_PATH)
        finally:
            self._forget()

    def _forget(self) -> None:
        self.session.clear()
        self.cache.clear()
        self.api.token = None

    def allows(self, requirement: AccessRequirement) -> bool:
        return requirement.allows(self.user)

    def render(
        self,
        requirement: AccessRequirement,
        content: Any,
        fallback: Any = UNSET,
    ) -> Any:
        """Render guarded content for the current user."""
        return AccessGuard(requirement).render(self.user, content, fallback)
