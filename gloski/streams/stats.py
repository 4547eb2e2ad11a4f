"""
Stats stream: read-only feed of system metric snapshots.

Each inbound message is one JSON document (an object from the server).
A message that is not valid JSON produces one ERROR event and is
dropped; the connection stays open and no reconnect is triggered.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, ClassVar

from gloski.connection.backoff import ReconnectPolicy, stats_policy
from gloski.connection.manager import ConnectionManager, Connector
from gloski.constants import (
    STATS_MAX_RECONNECT_ATTEMPTS,
    STATS_MAX_RECONNECT_DELAY_MS,
    STATS_RECONNECT_DELAY_MS,
)
from gloski.events.types import StreamEvent
from gloski.observability.logger import log_event, now_ms


class StatsDecodeError(ValueError):
    """
    A stats message could not be decoded into a snapshot.

    payload holds the raw message (truncated) for diagnostics.
    """

    def __init__(self, message: str, payload: str | bytes) -> None:
        super().__init__(message)
        self.payload = payload


@dataclass(frozen=True)
class StatsStreamOptions:
    """Caller-facing options for SystemResource.stats_stream()."""
    auto_reconnect: bool = True
    max_reconnect_attempts: int = STATS_MAX_RECONNECT_ATTEMPTS
    reconnect_delay_ms: int = STATS_RECONNECT_DELAY_MS
    max_reconnect_delay_ms: int | None = STATS_MAX_RECONNECT_DELAY_MS

    def to_policy(self) -> ReconnectPolicy:
        return stats_policy(
            auto_reconnect=self.auto_reconnect,
            max_attempts=self.max_reconnect_attempts,
            base_delay_ms=self.reconnect_delay_ms,
            max_delay_ms=self.max_reconnect_delay_ms,
        )


def decode_snapshot(message: str | bytes) -> Any:
    """
    Decode one stats message.

    Any well-formed JSON document is returned as parsed; the server
    sends objects. Raises StatsDecodeError for invalid UTF-8 or JSON.
    """
    try:
        return json.loads(message)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise StatsDecodeError(f"Malformed stats message: {e}", message[:256]) from e


class StatsStreamClient(ConnectionManager):
    """
    Managed stats connection with auto-reconnect (no outbound API).
    """

    EVENTS: ClassVar[frozenset[StreamEvent]] = (
        ConnectionManager.EVENTS | {StreamEvent.STATS}
    )
    STREAM_NAME: ClassVar[str] = "stats"

    def __init__(
        self,
        url: str,
        *,
        policy: ReconnectPolicy | None = None,
        connector: Connector | None = None,
    ) -> None:
        super().__init__(
            url,
            policy=policy or stats_policy(),
            connector=connector,
        )

    def _handle_message(self, message: str | bytes) -> None:
        try:
            snapshot = decode_snapshot(message)
        except StatsDecodeError as e:
            log_event({
                "ts_ms": now_ms(),
                "event_type": "STATS_DECODE_ERROR",
                "connection_id": self.connection_id,
                "error": str(e),
            })
            self.emit(StreamEvent.ERROR, e)
            return

        self.emit(StreamEvent.STATS, snapshot)
