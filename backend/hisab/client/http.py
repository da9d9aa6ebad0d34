"""Network request function used by the query cache and mutation dispatcher."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Protocol, Self

import httpx

if TYPE_CHECKING:
    from types import TracebackType

LOGGER = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = "حدث خطأ غير متوقع"


class RequestFunction(Protocol):
    """``request(method, path, body=None)`` returning decoded JSON."""

    async def __call__(
        self,
        method: str,
        path: str,
        body: Any | None = None,
    ) -> Any: ...


class ApiError(Exception):
    """Raised when the server answers with a non-success status.

    :param status_code: HTTP status code, or None if no response was received
    :param message: Error message extracted from the response body
    """

    def __init__(self, status_code: int | None, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class ApiConnectionError(ApiError):
    """Raised when the request could not be completed at the transport level."""

    def __init__(self, message: str) -> None:
        super().__init__(None, message)


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text or DEFAULT_ERROR_MESSAGE

    if isinstance(data, dict):
        detail = data.get("detail") or data.get("message")
        if isinstance(detail, str):
            return detail
        if detail is not None:
            return str(detail)
    return DEFAULT_ERROR_MESSAGE


class ApiClient:
    """Thin async JSON client for the ledger API.

    The bearer token, when set, is attached to every request.

    **Example Usage:**

    .. code-block:: python

        async with ApiClient("http://127.0.0.1:8000") as api:
            projects = await api.request("GET", "/api/projects")
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Create a client.

        :param base_url: Root URL of the API server
        :param timeout: Request timeout in seconds, None for no timeout
        :param transport: Optional transport, used to substitute the network in
            tests
        """
        self.token: str | None = None
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(
        self,
        method: str,
        path: str,
        body: Any | None = None,
    ) -> Any:
        """Send a request and decode the JSON response.

        :param method: HTTP method
        :param path: Path relative to the base URL
        :param body: JSON-serializable request body
        :return: Decoded JSON, or None for an empty response body
        :raises ApiError: If the server answers with a non-2xx status
        :raises ApiConnectionError: If the server could not be reached
        """
        headers = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        LOGGER.debug("%s %s", method, path)
        try:
            response = await self._client.request(
                method,
                path,
                json=body,
                headers=headers,
            )
        except httpx.TransportError as e:
            msg = f"Could not reach server: {e}"
            raise ApiConnectionError(msg) from e

        if response.is_error:
            raise ApiError(response.status_code, _error_message(response))

        if not response.content:
            return None
        return response.json()
