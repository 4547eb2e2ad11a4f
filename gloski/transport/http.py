"""
Authenticated request/response client.

Responsibilities:
- One attempt per call (no retries)
- Attach credentials (X-API-Key or Authorization: Bearer)
- Per-request timeout
- Classify 401 as "unauthorized" and transport failures as "offline",
  reporting "online" on the first success after an offline period

Non-responsibilities:
- Resource semantics (files, jobs, ...)
- Streaming (see connection.manager)
"""

from __future__ import annotations

from typing import Any, Callable, Mapping

import httpx

from gloski.constants import DEFAULT_API_PREFIX, DEFAULT_HEALTH_TIMEOUT_S, DEFAULT_REQUEST_TIMEOUT_S
from gloski.errors import GloskiError, get_error_message
from gloski.observability.logger import log_event, now_ms
from gloski.transport.urls import AuthenticatedURLBuilder


Callback = Callable[[], None]


def _error_message_for(response: httpx.Response) -> str:
    """
    Build a readable error message for a non-2xx response.
    """
    status = response.status_code

    if status == 404:
        return "Endpoint not found (404). Make sure you're connecting to a Gloski server."
    if status == 403:
        return "Access denied"
    if status >= 500:
        return f"Server error ({status}). The server may be experiencing issues."

    message = f"HTTP {status}"
    try:
        data = response.json()
    except ValueError:
        if response.reason_phrase:
            message = f"{status} {response.reason_phrase}"
        return message

    if isinstance(data, dict):
        message = data.get("error") or data.get("message") or message
    return message


def _parse_body(response: httpx.Response) -> Any:
    """
    Return the parsed JSON body unchanged (None for an empty body).
    """
    if not response.content:
        return None
    return response.json()


class HttpClient:
    """
    Async HTTP client for the Gloski REST API.

    Wraps one httpx.AsyncClient; call aclose() when done.
    """

    def __init__(
        self,
        urls: AuthenticatedURLBuilder,
        *,
        timeout_s: float = DEFAULT_REQUEST_TIMEOUT_S,
        on_unauthorized: Callback | None = None,
        on_offline: Callback | None = None,
        on_online: Callback | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._urls = urls
        self._timeout_s = timeout_s
        self._on_unauthorized = on_unauthorized
        self._on_offline = on_offline
        self._on_online = on_online
        self._was_offline = False

        self._client = httpx.AsyncClient(
            headers={
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            timeout=timeout_s,
            transport=transport,
        )

    @property
    def urls(self) -> AuthenticatedURLBuilder:
        return self._urls

    @property
    def is_offline(self) -> bool:
        return self._was_offline

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Verbs
    # ------------------------------------------------------------------

    async def get(self, path: str, *, params: Mapping[str, str] | None = None) -> Any:
        return await self.request(path, method="GET", params=params)

    async def post(self, path: str, body: Any = None) -> Any:
        return await self.request(path, method="POST", body=body)

    async def put(self, path: str, body: Any = None) -> Any:
        return await self.request(path, method="PUT", body=body)

    async def delete(self, path: str) -> Any:
        return await self.request(path, method="DELETE")

    async def request(
        self,
        path: str,
        *,
        method: str = "GET",
        body: Any = None,
        params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
        timeout_s: float | None = None,
    ) -> Any:
        """
        Make an authenticated API request.

        Raises:
            GloskiError(401) after calling on_unauthorized
            GloskiError(status) for other non-2xx responses
            GloskiError(0) for transport failures (after on_offline)
        """
        merged = {**(headers or {}), **self._urls.auth_headers()}
        return await self._do_request(
            method,
            self._urls.http_url(path),
            body=body,
            params=params,
            headers=merged,
            timeout_s=timeout_s,
            handle_auth_errors=True,
        )

    async def request_no_auth(
        self,
        path: str,
        *,
        method: str = "GET",
        body: Any = None,
        timeout_s: float | None = None,
    ) -> Any:
        """Make an unauthenticated API request (health check, login)."""
        return await self._do_request(
            method,
            self._urls.http_url(path),
            body=body,
            params=None,
            headers={},
            timeout_s=timeout_s,
            handle_auth_errors=False,
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _do_request(
        self,
        method: str,
        url: str,
        *,
        body: Any,
        params: Mapping[str, str] | None,
        headers: Mapping[str, str],
        timeout_s: float | None,
        handle_auth_errors: bool,
    ) -> Any:
        try:
            response = await self._client.request(
                method,
                url,
                json=body,
                params=params,
                headers=headers,
                timeout=timeout_s if timeout_s is not None else self._timeout_s,
            )
        except httpx.TransportError as e:
            self._handle_offline(e)
            raise GloskiError(0, get_error_message(e)) from e

        self._handle_online()

        if response.status_code == 401 and handle_auth_errors:
            if self._on_unauthorized is not None:
                self._on_unauthorized()
            raise GloskiError(401, "Unauthorized")

        if response.is_error:
            raise GloskiError(response.status_code, _error_message_for(response))

        try:
            return _parse_body(response)
        except ValueError as e:
            raise GloskiError(response.status_code, f"Invalid JSON response: {e}") from e

    def _handle_online(self) -> None:
        if self._was_offline:
            self._was_offline = False
            log_event({"ts_ms": now_ms(), "event_type": "SERVER_ONLINE"})
            if self._on_online is not None:
                self._on_online()

    def _handle_offline(self, error: Exception) -> None:
        if not self._was_offline:
            self._was_offline = True
            log_event({
                "ts_ms": now_ms(),
                "event_type": "SERVER_OFFLINE",
                "error": repr(error),
            })
            if self._on_offline is not None:
                self._on_offline()


async def check_health(
    url: str,
    *,
    timeout_s: float = DEFAULT_HEALTH_TIMEOUT_S,
    api_prefix: str = DEFAULT_API_PREFIX,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict[str, Any]:
    """
    Standalone health check (no client, no credentials needed).
    """
    endpoint = f"{url.rstrip('/')}{api_prefix}/health"
    async with httpx.AsyncClient(timeout=timeout_s, transport=transport) as client:
        try:
            response = await client.get(endpoint)
        except httpx.TransportError as e:
            raise GloskiError(0, get_error_message(e)) from e

    if response.is_error:
        raise GloskiError(response.status_code, f"HTTP {response.status_code}")

    try:
        return response.json()
    except ValueError as e:
        raise GloskiError(response.status_code, f"Invalid JSON response: {e}") from e
