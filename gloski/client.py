"""
Gloski SDK client.

Main entry point for talking to a Gloski server:

    client = GloskiClient(ClientConfig(url="https://server.example.com", api_key="..."))

    stats = await client.system.get_stats()

    term = client.terminal.connect(TerminalOptions(cwd="/srv"))
    term.on("data", print)
    term.write("ls -la\\n")

    await client.aclose()
"""

from __future__ import annotations

from typing import Any, Callable

import httpx

from gloski.config import ClientConfig
from gloski.connection.manager import Connector, websockets_connector
from gloski.constants import DEFAULT_API_PREFIX, STATS_WS_PATH, TERMINAL_WS_PATH
from gloski.observability import logger
from gloski.streams.stats import StatsStreamClient, StatsStreamOptions
from gloski.streams.terminal import TerminalOptions, TerminalStreamClient
from gloski.transport.http import HttpClient, check_health
from gloski.transport.urls import AuthenticatedURLBuilder


class TerminalResource:
    """Terminal WebSocket connections."""

    def __init__(self, urls: AuthenticatedURLBuilder, connector: Connector) -> None:
        self._urls = urls
        self._connector = connector

    def websocket_url(self, cwd: str | None = None) -> str:
        params = {"cwd": cwd} if cwd else {}
        return self._urls.websocket_url(TERMINAL_WS_PATH, params)

    def connect(self, options: TerminalOptions | None = None) -> TerminalStreamClient:
        """
        Open a managed terminal connection with auto-reconnect.

        Must be called from a running event loop.
        """
        options = options or TerminalOptions()
        return TerminalStreamClient(
            self.websocket_url(options.cwd),
            policy=options.to_policy(),
            initial_size=options.initial_size,
            connector=self._connector,
        )


class SystemResource:
    """System information and live stats."""

    def __init__(
        self,
        http: HttpClient,
        urls: AuthenticatedURLBuilder,
        connector: Connector,
    ) -> None:
        self._http = http
        self._urls = urls
        self._connector = connector

    async def get_stats(self) -> dict[str, Any]:
        """One stats snapshot over REST."""
        return await self._http.get("/system/stats")

    def stats_websocket_url(self) -> str:
        return self._urls.websocket_url(STATS_WS_PATH)

    def stats_stream(self, options: StatsStreamOptions | None = None) -> StatsStreamClient:
        """
        Open a managed stats stream with auto-reconnect.

        Must be called from a running event loop.
        """
        options = options or StatsStreamOptions()
        return StatsStreamClient(
            self.stats_websocket_url(),
            policy=options.to_policy(),
            connector=self._connector,
        )


class GloskiClient:
    """
    Gloski SDK client.

    Owns one HttpClient; streams are independent managers that each own
    their own socket.
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        on_unauthorized: Callable[[], None] | None = None,
        on_offline: Callable[[], None] | None = None,
        on_online: Callable[[], None] | None = None,
        http_transport: httpx.AsyncBaseTransport | None = None,
        connector: Connector | None = None,
    ) -> None:
        logger.configure(enabled=config.enable_json_logs)

        self.config = config
        self.urls = AuthenticatedURLBuilder(
            config.normalized_url,
            api_key=config.api_key,
            token=config.token,
            api_prefix=config.api_prefix,
        )
        self.http = HttpClient(
            self.urls,
            timeout_s=config.timeout_s,
            on_unauthorized=on_unauthorized,
            on_offline=on_offline,
            on_online=on_online,
            transport=http_transport,
        )

        connector = connector or websockets_connector(
            handshake_timeout_s=config.handshake_timeout_s,
        )
        self.terminal = TerminalResource(self.urls, connector)
        self.system = SystemResource(self.http, self.urls, connector)

    async def aclose(self) -> None:
        await self.http.aclose()

    async def __aenter__(self) -> GloskiClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    @staticmethod
    async def check_health(
        url: str,
        timeout_s: float | None = None,
        api_prefix: str = DEFAULT_API_PREFIX,
    ) -> dict[str, Any]:
        """Check server health (no authentication required)."""
        if timeout_s is None:
            return await check_health(url, api_prefix=api_prefix)
        return await check_health(url, timeout_s=timeout_s, api_prefix=api_prefix)
