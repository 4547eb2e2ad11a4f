"""
Terminal stream: bidirectional PTY channel over one managed WebSocket.

Event behavior:
- Inbound binary and text frames are both emitted as DATA(text).
- write() sends keystrokes as raw UTF-8 binary frames.
- resize() sends the 5-byte resize frame and caches the size; the cached
  size is replayed after every successful (re)connection, including the
  first one when an initial size was supplied.
- Writes and resizes while not OPEN are dropped (resize still updates
  the cache).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from gloski.connection.backoff import ReconnectPolicy, terminal_policy
from gloski.connection.manager import ConnectionManager, Connector
from gloski.constants import (
    TERMINAL_MAX_RECONNECT_ATTEMPTS,
    TERMINAL_RECONNECT_DELAY_MS,
)
from gloski.events.types import StreamEvent
from gloski.observability.logger import log_event, now_ms
from gloski.protocol.binary import (
    TerminalSize,
    decode_inbound_payload,
    encode_input_frame,
    encode_resize_frame,
)


@dataclass(frozen=True)
class TerminalOptions:
    """Caller-facing options for TerminalResource.connect()."""
    cwd: str | None = None
    auto_reconnect: bool = True
    max_reconnect_attempts: int = TERMINAL_MAX_RECONNECT_ATTEMPTS
    reconnect_delay_ms: int = TERMINAL_RECONNECT_DELAY_MS
    initial_size: TerminalSize | None = None

    def to_policy(self) -> ReconnectPolicy:
        return terminal_policy(
            auto_reconnect=self.auto_reconnect,
            max_attempts=self.max_reconnect_attempts,
            base_delay_ms=self.reconnect_delay_ms,
        )


class TerminalStreamClient(ConnectionManager):
    """
    Managed terminal connection with auto-reconnect.

    Usage:

        term = TerminalStreamClient(url, initial_size=TerminalSize(80, 24))
        term.on("data", sys.stdout.write)
        term.write("ls -la\\n")
        term.resize(120, 40)
        term.close()
    """

    EVENTS: ClassVar[frozenset[StreamEvent]] = (
        ConnectionManager.EVENTS | {StreamEvent.DATA}
    )
    STREAM_NAME: ClassVar[str] = "terminal"

    def __init__(
        self,
        url: str,
        *,
        policy: ReconnectPolicy | None = None,
        initial_size: TerminalSize | None = None,
        connector: Connector | None = None,
    ) -> None:
        self._last_size: TerminalSize | None = initial_size
        super().__init__(
            url,
            policy=policy or terminal_policy(),
            connector=connector,
        )

    @property
    def last_size(self) -> TerminalSize | None:
        return self._last_size

    def write(self, data: str) -> bool:
        """
        Send user input. Returns False (dropped) unless the socket is open.
        """
        return self._send_frame(encode_input_frame(data))

    def resize(self, cols: int, rows: int) -> bool:
        """
        Update the remote PTY size.

        Always caches the size; returns True only if a frame was queued.
        Raises ValueError if cols/rows do not fit in u16.
        """
        size = TerminalSize(cols=cols, rows=rows)
        self._last_size = size
        return self._send_frame(encode_resize_frame(size))

    # ------------------------------------------------------------------
    # ConnectionManager hooks
    # ------------------------------------------------------------------

    def _handle_message(self, message: str | bytes) -> None:
        self.emit(StreamEvent.DATA, decode_inbound_payload(message))

    def _restore_session(self) -> None:
        size = self._last_size
        if size is None:
            return
        if self._send_frame(encode_resize_frame(size)):
            log_event({
                "ts_ms": now_ms(),
                "event_type": "TERMINAL_SIZE_RESTORED",
                "connection_id": self.connection_id,
                "cols": size.cols,
                "rows": size.rows,
            })
