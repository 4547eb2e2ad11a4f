# pylint: disable=missing-module-docstring,missing-function-docstring
import asyncio

import httpx
import pytest

from fake_socket import FakeConnector, FakeSocket, settle, wait_until
from gloski import (
    ClientConfig,
    GloskiClient,
    StatsStreamClient,
    TerminalOptions,
    TerminalSize,
    TerminalStreamClient,
)
from gloski.observability import logger
from gloski.transport.http import check_health


@pytest.fixture(autouse=True)
def quiet_logs(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(logger, "_print", lambda line: None)


def make_client(connector: FakeConnector, **config) -> GloskiClient:
    config.setdefault("url", "https://gloski.example.com/")
    config.setdefault("token", "t1")

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/system/stats":
            return httpx.Response(200, json={"cpu": {"usage_percent": 3}})
        return httpx.Response(404)

    return GloskiClient(
        ClientConfig(**config),
        http_transport=httpx.MockTransport(handler),
        connector=connector,
    )


def test_stream_urls_carry_credentials():
    client = make_client(FakeConnector())

    assert client.terminal.websocket_url() == (
        "wss://gloski.example.com/api/terminal?token=t1"
    )
    assert client.terminal.websocket_url("/srv") == (
        "wss://gloski.example.com/api/terminal?token=t1&cwd=%2Fsrv"
    )
    assert client.system.stats_websocket_url() == (
        "wss://gloski.example.com/api/system/stats/ws?token=t1"
    )


def test_get_stats_over_rest():
    async def scenario():
        async with make_client(FakeConnector()) as client:
            return await client.system.get_stats()

    assert asyncio.run(scenario()) == {"cpu": {"usage_percent": 3}}


def test_terminal_connect_uses_options():
    async def scenario():
        socket = FakeSocket()
        connector = FakeConnector(socket)
        client = make_client(connector)

        term = client.terminal.connect(
            TerminalOptions(cwd="/srv", initial_size=TerminalSize(80, 24))
        )
        assert isinstance(term, TerminalStreamClient)

        await wait_until(lambda: term.is_open)
        await settle()

        assert connector.calls == [
            "wss://gloski.example.com/api/terminal?token=t1&cwd=%2Fsrv"
        ]
        assert socket.sent == [b"\x01\x00\x50\x00\x18"]

        await term.aclose()
        await client.aclose()

    asyncio.run(scenario())


def test_stats_stream_is_independent_of_terminal():
    async def scenario():
        term_socket, stats_socket = FakeSocket(), FakeSocket()
        client = make_client(FakeConnector(term_socket, stats_socket))

        term = client.terminal.connect()
        await wait_until(lambda: term.is_open)
        stats = client.system.stats_stream()
        assert isinstance(stats, StatsStreamClient)
        await wait_until(lambda: stats.is_open)

        term.close()
        await settle()

        assert stats.is_open
        assert term_socket.closed_by_client
        assert not stats_socket.closed_by_client

        await stats.aclose()
        await client.aclose()

    asyncio.run(scenario())


def test_check_health_is_static(monkeypatch: pytest.MonkeyPatch):
    seen: list[tuple[str, dict]] = []

    async def fake_check_health(url: str, **kwargs):
        seen.append((url, kwargs))
        return {"status": "ok"}

    monkeypatch.setattr("gloski.client.check_health", fake_check_health)

    assert asyncio.run(GloskiClient.check_health("https://h", timeout_s=1.0)) == {
        "status": "ok"
    }
    assert seen == [("https://h", {"timeout_s": 1.0, "api_prefix": "/api"})]


def test_check_health_honours_custom_prefix():
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(200, json={"status": "ok"})

    async def scenario():
        return await check_health(
            "https://h",
            api_prefix="/v2",
            transport=httpx.MockTransport(handler),
        )

    assert asyncio.run(scenario()) == {"status": "ok"}
    assert seen == ["https://h/v2/health"]


def test_static_check_health_passes_prefix_through(monkeypatch: pytest.MonkeyPatch):
    seen: list[dict] = []

    async def fake_check_health(url: str, **kwargs):
        seen.append(kwargs)
        return {"status": "ok"}

    monkeypatch.setattr("gloski.client.check_health", fake_check_health)

    asyncio.run(GloskiClient.check_health("https://h", api_prefix="/v2"))

    assert seen == [{"api_prefix": "/v2"}]
