"""
Runtime execution shell for a single managed WebSocket.

Responsibilities:
- Own the connection snapshot
- Call the pure reducer
- Execute commands with side effects (socket, timers, caller events)
- Own exactly one socket at a time and a single writer task for it
- Convert socket callbacks and timer expiry into reducer events

Non-responsibilities:
- Payload decoding (subclasses: streams.terminal, streams.stats)
- URL building / credentials (transport.urls)
"""

from __future__ import annotations

import asyncio
from typing import (
    Any,
    AsyncIterator,
    Awaitable,
    Callable,
    ClassVar,
    Protocol,
    runtime_checkable,
)
from uuid import uuid4

from websockets.asyncio.client import connect as ws_connect
from websockets.exceptions import ConnectionClosed, InvalidURI

from gloski.connection.backoff import ReconnectPolicy
from gloski.connection.commands import (
    CancelReconnectTimer,
    CloseSocket,
    Command,
    EmitEvent,
    LogEvent,
    OpenSocket,
    RestoreSession,
    StartReconnectTimer,
)
from gloski.connection.enums.state import ConnectionState
from gloski.connection.events import (
    CloseRequested,
    ConnectRequested,
    Event,
    ReconnectRequested,
    ReconnectTimerFired,
    SocketClosed,
    SocketConstructionFailed,
    SocketFailed,
    SocketOpened,
)
from gloski.connection.reducer import reduce
from gloski.connection.state_dataclass import ConnectionSnapshot
from gloski.constants import DEFAULT_HANDSHAKE_TIMEOUT_S, WS_MAX_MESSAGE_BYTES
from gloski.events.emitter import EventEmitter
from gloski.events.types import StreamEvent
from gloski.observability.logger import log_event, now_ms
from gloski.transport.urls import redact_url


# ---------------------------------------------------------------------
# Transport seam
# ---------------------------------------------------------------------

@runtime_checkable
class Transport(Protocol):
    """
    The subset of websockets.asyncio.client.ClientConnection the manager uses.
    """

    close_code: int | None
    close_reason: str | None

    async def send(self, message: str | bytes) -> None: ...

    async def close(self, code: int = 1000, reason: str = "") -> None: ...

    def __aiter__(self) -> AsyncIterator[str | bytes]: ...


Connector = Callable[[str], Awaitable[Transport]]


def websockets_connector(
    *,
    handshake_timeout_s: float | None = DEFAULT_HANDSHAKE_TIMEOUT_S,
    max_size: int | None = WS_MAX_MESSAGE_BYTES,
) -> Connector:
    """
    Build the default connector backed by the `websockets` asyncio client.

    Credentials travel in the URL query; no handshake headers are added.
    """
    async def _connect(url: str) -> Transport:
        return await ws_connect(
            url,
            open_timeout=handshake_timeout_s,
            max_size=max_size,
        )

    return _connect


# Raised before any network activity: never retried
_CONSTRUCTION_ERRORS = (InvalidURI, ValueError, TypeError)


class HandshakeError(ConnectionError):
    """
    The WebSocket handshake failed.

    The underlying exception (OSError, TimeoutError, InvalidStatus, ...)
    is available as __cause__.
    """


# ---------------------------------------------------------------------
# Manager
# ---------------------------------------------------------------------

class ConnectionManager(EventEmitter):
    """
    Owns one WebSocket's lifecycle and reconnect behavior.

    Architectural role:
    Bridge between the pure connection reducer (snapshot + events ->
    commands) and the imperative world (sockets, timers, listeners).

    Guarantees:
    - Reducer is called exactly once per incoming event
    - Events are processed one at a time, in arrival order; events raised
      while commands execute (e.g. a listener calling close()) are queued
      and processed before control returns to the event loop
    - State is updated before any side effects execute
    - At most one live socket, written to by a single sender task
    - close() synchronously cancels any pending reconnect timer

    Must be constructed while an asyncio event loop is running.
    """

    EVENTS: ClassVar[frozenset[StreamEvent]] = frozenset({
        StreamEvent.OPEN,
        StreamEvent.RECONNECTED,
        StreamEvent.CLOSE,
        StreamEvent.ERROR,
        StreamEvent.RECONNECTING,
    })

    # Used in log lines to tell streams apart
    STREAM_NAME: ClassVar[str] = "websocket"

    def __init__(
        self,
        url: str,
        *,
        policy: ReconnectPolicy,
        connector: Connector | None = None,
    ) -> None:
        super().__init__()

        # Raises RuntimeError outside a running loop (programmer error)
        self._loop = asyncio.get_running_loop()

        self._url = url
        self._connector = connector or websockets_connector()
        self._snapshot = ConnectionSnapshot(policy=policy)
        self._connection_id = uuid4().hex[:12]

        # Socket-owned resources; bumped generation invalidates stale tasks
        self._generation = 0
        self._socket: Transport | None = None
        self._socket_task: asyncio.Task[None] | None = None
        self._outbox: asyncio.Queue[str | bytes] | None = None
        self._reconnect_timer: asyncio.Task[None] | None = None
        self._background: set[asyncio.Task[Any]] = set()

        self._pending: list[Event] = []
        self._dispatching = False

        self._handle_event(ConnectRequested(ts_ms=now_ms()))

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def state(self) -> ConnectionState:
        return self._snapshot.state

    @property
    def snapshot(self) -> ConnectionSnapshot:
        """
        Current immutable reducer state (read-only; for observability).
        """
        return self._snapshot

    @property
    def policy(self) -> ReconnectPolicy:
        return self._snapshot.policy

    @property
    def reconnect_attempts(self) -> int:
        return self._snapshot.reconnect_attempts

    @property
    def is_open(self) -> bool:
        return self._snapshot.state is ConnectionState.OPEN

    @property
    def is_connecting(self) -> bool:
        return self._snapshot.state in (
            ConnectionState.CONNECTING,
            ConnectionState.RECONNECTING,
        )

    @property
    def connection_id(self) -> str:
        return self._connection_id

    def close(self) -> None:
        """
        Close the connection and disable auto-reconnect.

        Idempotent. Leaves the manager in CLOSED regardless of prior state.
        """
        self._handle_event(CloseRequested(ts_ms=now_ms()))

    def reconnect(self) -> None:
        """
        Start a fresh connection cycle.

        No-op unless the manager is CLOSED or CLOSING.
        """
        self._handle_event(ReconnectRequested(ts_ms=now_ms()))

    async def aclose(self) -> None:
        """
        close() and wait until socket tasks have finished tearing down.
        """
        self.close()
        tasks = [t for t in self._background if not t.done()]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def __aenter__(self) -> ConnectionManager:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Hooks for stream subclasses
    # ------------------------------------------------------------------

    def _handle_message(self, message: str | bytes) -> None:
        """Called for every inbound frame while the socket is open."""

    def _restore_session(self) -> None:
        """Called after every successful open, after open/reconnected."""

    def _send_frame(self, frame: str | bytes) -> bool:
        """
        Queue one outbound frame for the single sender task.

        Returns False (frame dropped) unless the socket is open.
        """
        if self._snapshot.state is not ConnectionState.OPEN or self._outbox is None:
            return False
        self._outbox.put_nowait(frame)
        return True

    # ------------------------------------------------------------------
    # Event entry point
    # ------------------------------------------------------------------

    def _handle_event(self, event: Event) -> None:
        """
        Process a single event through the reducer and execute commands.

        This method is the *only* entry point for events affecting
        connection state: caller requests, socket task, reconnect timer.
        """
        self._pending.append(event)
        if self._dispatching:
            return

        self._dispatching = True
        try:
            while self._pending:
                current = self._pending.pop(0)
                new_snapshot, commands = reduce(self._snapshot, current)
                self._snapshot = new_snapshot
                for cmd in commands:
                    self._execute_command(cmd)
        finally:
            self._dispatching = False

    # ------------------------------------------------------------------
    # Command execution (side effects)
    # ------------------------------------------------------------------

    def _execute_command(self, cmd: Command) -> None:
        """Execute a single command with side effects."""

        if isinstance(cmd, LogEvent):
            log_event({
                **cmd.event,
                "connection_id": self._connection_id,
                "stream": self.STREAM_NAME,
                "url": redact_url(self._url),
            })

        elif isinstance(cmd, EmitEvent):
            self.emit(cmd.event, *cmd.args)

        elif isinstance(cmd, OpenSocket):
            self._open_socket()

        elif isinstance(cmd, CloseSocket):
            self._teardown_socket(cmd.reason)

        elif isinstance(cmd, StartReconnectTimer):
            self._start_reconnect_timer(cmd.delay_ms)

        elif isinstance(cmd, CancelReconnectTimer):
            self._cancel_reconnect_timer()

        elif isinstance(cmd, RestoreSession):
            self._restore_session()

        else:
            raise TypeError(f"Unknown command: {cmd!r}")

    # ------------------------------------------------------------------
    # Socket management
    # ------------------------------------------------------------------

    def _open_socket(self) -> None:
        # Any leftover socket from a previous cycle is discarded first
        self._teardown_socket("superseded")
        self._generation += 1
        self._socket_task = self._loop.create_task(
            self._run_socket(self._generation)
        )
        self._track(self._socket_task)

    def _teardown_socket(self, reason: str) -> None:
        """
        Drop the current socket without reporting a drop to the reducer.

        Must not await: cancels tasks and schedules the close handshake.
        """
        self._generation += 1

        task = self._socket_task
        self._socket_task = None
        if task is not None and not task.done():
            task.cancel()

        socket = self._socket
        self._socket = None
        self._outbox = None

        if socket is not None:
            self._track(self._loop.create_task(self._close_quietly(socket, reason)))

    def _track(self, task: asyncio.Task[Any]) -> None:
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    @staticmethod
    async def _close_quietly(socket: Transport, reason: str) -> None:
        try:
            await socket.close(1000, reason)
        except Exception:  # pylint: disable=broad-exception-caught
            pass

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    async def _run_socket(self, generation: int) -> None:
        """
        Handshake, then receive until the socket closes.

        One task per connection attempt. All state changes go through
        _handle_event; a superseded generation reports nothing.
        """
        try:
            socket = await self._connector(self._url)
        except asyncio.CancelledError:
            raise
        except _CONSTRUCTION_ERRORS as e:
            if self._is_current(generation):
                self._socket_task = None
                self._handle_event(SocketConstructionFailed(ts_ms=now_ms(), error=e))
            return
        except Exception as e:  # pylint: disable=broad-exception-caught
            if self._is_current(generation):
                self._socket_task = None
                error = HandshakeError(f"WebSocket handshake failed: {e!r}")
                error.__cause__ = e
                self._handle_event(SocketFailed(ts_ms=now_ms(), error=error))
            return

        if not self._is_current(generation):
            await self._close_quietly(socket, "superseded")
            return

        outbox: asyncio.Queue[str | bytes] = asyncio.Queue()
        self._socket = socket
        self._outbox = outbox
        sender = self._loop.create_task(self._send_loop(socket, outbox))

        code: int | None = None
        reason = ""
        try:
            self._handle_event(SocketOpened(ts_ms=now_ms()))

            async for message in socket:
                if not self._is_current(generation):
                    break
                self._handle_message(message)

            code = socket.close_code
            reason = socket.close_reason or ""
        except ConnectionClosed as e:
            if e.rcvd is not None:
                code, reason = e.rcvd.code, e.rcvd.reason
        except asyncio.CancelledError:
            raise
        except Exception as e:  # pylint: disable=broad-exception-caught
            reason = f"receive failed: {e!r}"
        finally:
            sender.cancel()

        if self._is_current(generation):
            self._socket = None
            self._outbox = None
            self._socket_task = None
            self._handle_event(SocketClosed(ts_ms=now_ms(), code=code, reason=reason))

    async def _send_loop(
        self, socket: Transport, outbox: asyncio.Queue[str | bytes]
    ) -> None:
        """
        Single writer for one socket. Frames are sent in queue order.
        """
        while True:
            frame = await outbox.get()
            try:
                await socket.send(frame)
            except ConnectionClosed:
                # Receive side reports the drop
                return
            except Exception as e:  # pylint: disable=broad-exception-caught
                self.emit(StreamEvent.ERROR, e)
                await self._close_quietly(socket, "send failed")
                return

    # ------------------------------------------------------------------
    # Reconnect timer
    # ------------------------------------------------------------------

    def _start_reconnect_timer(self, delay_ms: int) -> None:
        """
        Start or replace the reconnect timer.

        Expiry re-enters _handle_event() with ReconnectTimerFired.
        """
        self._cancel_reconnect_timer()

        async def _timer_task() -> None:
            try:
                await asyncio.sleep(delay_ms / 1000.0)
            except asyncio.CancelledError:
                # Timer was cancelled - this is normal
                return
            self._reconnect_timer = None
            self._handle_event(ReconnectTimerFired(ts_ms=now_ms()))

        self._reconnect_timer = self._loop.create_task(_timer_task())

    def _cancel_reconnect_timer(self) -> None:
        """
        Cancel the pending reconnect timer if it exists.

        Idempotent: safe to call even if no timer is pending.
        """
        task = self._reconnect_timer
        self._reconnect_timer = None
        if task is not None and not task.done():
            task.cancel()
