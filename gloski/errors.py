"""
SDK-level exceptions for request/response calls.

Streaming failures are never raised; they surface as `error` events
(see connection.manager). This module covers the HTTP collaborator.
"""

from __future__ import annotations

import httpx


class GloskiError(Exception):
    """
    Error raised by the HTTP client for API and transport failures.

    status is the HTTP status code, or 0 for network-level failures
    (DNS, refused connection, timeout).
    """

    def __init__(self, status: int, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.status = status
        self.message = message
        self.code = code

    def __repr__(self) -> str:
        return f"GloskiError(status={self.status}, message={self.message!r})"

    @property
    def is_unauthorized(self) -> bool:
        return self.status == 401

    @property
    def is_forbidden(self) -> bool:
        return self.status == 403

    @property
    def is_not_found(self) -> bool:
        return self.status == 404

    @property
    def is_network_error(self) -> bool:
        return self.status == 0

    @property
    def is_server_error(self) -> bool:
        return 500 <= self.status < 600

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.status < 500


def get_error_message(error: BaseException) -> str:
    """
    Return a user-facing message for a transport-level exception.
    """
    if isinstance(error, httpx.TimeoutException):
        return "Request timed out. The server may be slow or unreachable."

    if isinstance(error, httpx.ConnectError):
        return (
            "Cannot connect to server. Please check that the server is "
            "running and the URL is correct."
        )

    if isinstance(error, httpx.NetworkError):
        return "Network error. Check your internet connection."

    if isinstance(error, httpx.TransportError):
        return f"Network error: {error}"

    return str(error) or "An unexpected error occurred"
