"""
Authenticated URL building for REST calls, downloads and WebSockets.

REST calls carry credentials as headers. WebSocket URLs carry them as
query parameters because a browser-native socket handshake cannot set
custom headers; the server accepts the same parameters from any client.
"""

from __future__ import annotations

import urllib.parse
from typing import Mapping

from gloski.constants import (
    API_KEY_HEADER,
    API_KEY_QUERY_PARAM,
    AUTHORIZATION_HEADER,
    DEFAULT_API_PREFIX,
    TOKEN_QUERY_PARAM,
)

_SECRET_PARAMS = frozenset({API_KEY_QUERY_PARAM, TOKEN_QUERY_PARAM})
_WS_SCHEMES = {"http": "ws", "https": "wss"}


class AuthenticatedURLBuilder:
    """
    Turns logical endpoint paths into absolute URLs.

    Pure: same inputs always produce byte-identical URLs.
    api_key wins over token when both are configured.
    """

    def __init__(
        self,
        base_url: str,
        *,
        api_key: str | None = None,
        token: str | None = None,
        api_prefix: str = DEFAULT_API_PREFIX,
    ) -> None:
        parsed = urllib.parse.urlsplit(base_url)
        if parsed.scheme not in _WS_SCHEMES or not parsed.netloc:
            raise ValueError(f"base_url must be an absolute http(s) URL: {base_url!r}")

        self._base_url = base_url.rstrip("/")
        self._api_key = api_key or None
        self._token = token or None
        self._api_prefix = api_prefix

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def api_prefix(self) -> str:
        return self._api_prefix

    def build_endpoint(self, path: str) -> str:
        """
        Prefix `path` with the API prefix unless it already carries it.
        """
        if not path.startswith("/"):
            path = "/" + path
        if self._api_prefix and (
            path == self._api_prefix or path.startswith(self._api_prefix + "/")
        ):
            return path
        return f"{self._api_prefix}{path}"

    def http_url(self, path: str) -> str:
        """Absolute REST URL (credentials go in auth_headers())."""
        return f"{self._base_url}{self.build_endpoint(path)}"

    def auth_headers(self) -> dict[str, str]:
        if self._api_key:
            return {API_KEY_HEADER: self._api_key}
        if self._token:
            return {AUTHORIZATION_HEADER: f"Bearer {self._token}"}
        return {}

    def auth_params(self) -> dict[str, str]:
        if self._api_key:
            return {API_KEY_QUERY_PARAM: self._api_key}
        if self._token:
            return {TOKEN_QUERY_PARAM: self._token}
        return {}

    def auth_url(self, path: str, params: Mapping[str, str] | None = None) -> str:
        """
        Absolute HTTP URL with credentials in the query string.

        Used for downloads and as the base of websocket_url().
        Credential parameter first, then `params` in the given order.
        """
        query: dict[str, str] = self.auth_params()
        for key, value in (params or {}).items():
            query[key] = value

        url = self.http_url(path)
        if not query:
            return url
        return f"{url}?{urllib.parse.urlencode(query)}"

    def websocket_url(self, path: str, params: Mapping[str, str] | None = None) -> str:
        """
        Absolute WebSocket URL: http -> ws, https -> wss.
        """
        http = self.auth_url(path, params)
        scheme, rest = http.split("://", 1)
        return f"{_WS_SCHEMES[scheme.lower()]}://{rest}"


def redact_url(url: str) -> str:
    """
    Replace credential query values with "***" (for log lines).
    """
    parts = urllib.parse.urlsplit(url)
    if not parts.query:
        return url

    pairs = urllib.parse.parse_qsl(parts.query, keep_blank_values=True)
    redacted = [
        (key, "***" if key in _SECRET_PARAMS else value)
        for key, value in pairs
    ]
    return urllib.parse.urlunsplit(
        parts._replace(query=urllib.parse.urlencode(redacted))
    )
