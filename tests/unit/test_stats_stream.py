# pylint: disable=missing-module-docstring,missing-function-docstring
import asyncio
import json
from typing import Any

import pytest

from fake_socket import FakeConnector, FakeSocket, settle, wait_until
from gloski.connection.backoff import ReconnectPolicy
from gloski.connection.enums.state import ConnectionState
from gloski.observability import logger
from gloski.streams.stats import (
    StatsDecodeError,
    StatsStreamClient,
    StatsStreamOptions,
    decode_snapshot,
)


URL = "ws://gloski.test/api/system/stats/ws?api_key=k"
SNAPSHOT = {"cpu": {"usage_percent": 12.5}, "memory": {"used": 1024, "total": 4096}}


@pytest.fixture(autouse=True)
def captured_logs(monkeypatch: pytest.MonkeyPatch) -> list[str]:
    lines: list[str] = []
    monkeypatch.setattr(logger, "_print", lines.append)
    return lines


def open_stream(socket: FakeSocket) -> StatsStreamClient:
    return StatsStreamClient(
        URL,
        policy=ReconnectPolicy(max_attempts=3, base_delay_ms=10),
        connector=FakeConnector(socket),
    )


# ---------------------------------------------------------------------
# decode_snapshot
# ---------------------------------------------------------------------

def test_decode_snapshot_accepts_text_and_bytes():
    assert decode_snapshot(json.dumps(SNAPSHOT)) == SNAPSHOT
    assert decode_snapshot(json.dumps(SNAPSHOT).encode()) == SNAPSHOT


@pytest.mark.parametrize("message", ["{not json", b"\xc3\x28", ""])
def test_decode_snapshot_rejects_malformed_messages(message):
    with pytest.raises(StatsDecodeError) as info:
        decode_snapshot(message)
    assert info.value.payload == message[:256]


@pytest.mark.parametrize(
    "message,expected",
    [("[1, 2]", [1, 2]), ("42", 42), ("null", None), ('"text"', "text")],
)
def test_decode_snapshot_passes_through_non_object_json(message, expected):
    assert decode_snapshot(message) == expected


def test_decode_error_is_a_value_error():
    with pytest.raises(ValueError):
        decode_snapshot("{")


# ---------------------------------------------------------------------
# Stream behavior
# ---------------------------------------------------------------------

def test_valid_snapshot_is_delivered():
    async def scenario():
        socket = FakeSocket()
        stream = open_stream(socket)
        received: list[dict[str, Any]] = []
        stream.on("stats", received.append)

        await wait_until(lambda: stream.is_open)
        socket.feed(json.dumps(SNAPSHOT))
        await wait_until(lambda: bool(received))

        assert received == [SNAPSHOT]
        await stream.aclose()

    asyncio.run(scenario())


def test_malformed_message_reports_one_error_and_keeps_stream_open(
    captured_logs: list[str],
):
    async def scenario():
        socket = FakeSocket()
        stream = open_stream(socket)
        received: list[dict[str, Any]] = []
        errors: list[Exception] = []
        closes: list[Any] = []
        stream.on("stats", received.append)
        stream.on("error", errors.append)
        stream.on("close", closes.append)

        await wait_until(lambda: stream.is_open)
        socket.feed("{garbage")
        socket.feed(json.dumps(SNAPSHOT))
        await wait_until(lambda: bool(received))
        await settle()

        assert len(errors) == 1
        assert isinstance(errors[0], StatsDecodeError)
        assert received == [SNAPSHOT]
        assert closes == []
        assert stream.state is ConnectionState.OPEN
        assert stream.reconnect_attempts == 0

        await stream.aclose()

    asyncio.run(scenario())

    assert any("STATS_DECODE_ERROR" in line for line in captured_logs)


def test_non_object_document_is_delivered_as_stats():
    async def scenario():
        socket = FakeSocket()
        stream = open_stream(socket)
        received: list[Any] = []
        errors: list[Exception] = []
        stream.on("stats", received.append)
        stream.on("error", errors.append)

        await wait_until(lambda: stream.is_open)
        socket.feed("[]")
        socket.feed("[1, 2, 3]")
        await wait_until(lambda: len(received) == 2)
        await settle()

        assert received == [[], [1, 2, 3]]
        assert errors == []
        assert stream.is_open
        await stream.aclose()

    asyncio.run(scenario())


def test_stats_stream_does_not_accept_data_listeners():
    async def scenario():
        stream = open_stream(FakeSocket())
        with pytest.raises(ValueError):
            stream.on("data", lambda _: None)
        await stream.aclose()

    asyncio.run(scenario())


# ---------------------------------------------------------------------
# Options
# ---------------------------------------------------------------------

def test_stats_options_defaults():
    result = StatsStreamOptions().to_policy()

    assert result.auto_reconnect is True
    assert result.max_attempts == 10
    assert result.base_delay_ms == 1000
    assert result.max_delay_ms == 30000


def test_stats_options_override_policy():
    result = StatsStreamOptions(
        auto_reconnect=False, max_reconnect_attempts=1, max_reconnect_delay_ms=None
    ).to_policy()

    assert result.auto_reconnect is False
    assert result.max_attempts == 1
    assert result.max_delay_ms is None
