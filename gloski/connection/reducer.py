"""
Pure connection reducer.

(snapshot, event) -> (new_snapshot, commands)

Rules:
- Pure: no side effects, no IO, no clocks.
- Deterministic: output depends only on inputs.
- Total: every (state, event) pair is handled or explicitly ignored (logged).
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any

from gloski.connection.backoff import get_reconnect_delay_ms, should_reconnect
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
from gloski.connection.state_dataclass import ConnectionSnapshot
from gloski.events.types import CloseInfo, StreamEvent


# Close code reported when the caller closes an open socket
CLIENT_CLOSE_CODE = 1000
CLIENT_CLOSE_REASON = "client closed"
HANDSHAKE_FAILED_REASON = "handshake failed"


# =============================================================================
# Helpers
# =============================================================================

def _log(
    snapshot: ConnectionSnapshot,
    event: Event,
    decision: str,
    details: dict[str, Any] | None = None,
) -> LogEvent:
    return LogEvent(
        event={
            "ts_ms": event.ts_ms,
            "state": snapshot.state.value,
            "event_type": event.event_type.value,
            "decision": decision,
            "reconnect_attempts": snapshot.reconnect_attempts,
            "manual_close": snapshot.manual_close,
            "details": details or {},
        }
    )


def _ignore(
    snapshot: ConnectionSnapshot, event: Event, reason: str
) -> tuple[ConnectionSnapshot, tuple[Command, ...]]:
    return snapshot, (_log(snapshot, event, "ignore", {"reason": reason}),)


def _state_changed(
    old: ConnectionSnapshot,
    new: ConnectionSnapshot,
    event: Event,
    source: str,
) -> LogEvent:
    return _log(
        new,
        event,
        "state_changed",
        {
            "from_state": old.state.value,
            "to_state": new.state.value,
            "source": source,
        },
    )


def _after_drop(
    snapshot: ConnectionSnapshot,
    event: Event,
    emitted: tuple[Command, ...],
) -> tuple[ConnectionSnapshot, tuple[Command, ...]]:
    """
    Decide between reconnecting and closing once a socket is gone.

    `emitted` holds the caller-facing events for the drop itself
    (error/close); they always precede the reconnecting event.
    """
    policy = snapshot.policy

    if snapshot.manual_close or not policy.auto_reconnect:
        closed = replace(snapshot, state=ConnectionState.CLOSED)
        return closed, emitted + (
            _state_changed(snapshot, closed, event, "drop_no_reconnect"),
        )

    if not should_reconnect(policy, snapshot.reconnect_attempts):
        closed = replace(snapshot, state=ConnectionState.CLOSED)
        return closed, emitted + (
            _log(
                closed,
                event,
                "reconnect_exhausted",
                {"max_attempts": policy.max_attempts},
            ),
            _state_changed(snapshot, closed, event, "reconnect_exhausted"),
        )

    attempt = snapshot.reconnect_attempts + 1
    delay_ms = get_reconnect_delay_ms(policy, attempt)
    reconnecting = replace(
        snapshot,
        state=ConnectionState.RECONNECTING,
        reconnect_attempts=attempt,
    )
    return reconnecting, emitted + (
        EmitEvent(event=StreamEvent.RECONNECTING, args=(attempt,)),
        StartReconnectTimer(delay_ms=delay_ms, attempt=attempt),
        _log(
            reconnecting,
            event,
            "reconnect_scheduled",
            {"attempt": attempt, "delay_ms": delay_ms},
        ),
        _state_changed(snapshot, reconnecting, event, "drop"),
    )


# =============================================================================
# Reducer
# =============================================================================

def reduce(  # pylint: disable=too-many-return-statements
    snapshot: ConnectionSnapshot, event: Event
) -> tuple[ConnectionSnapshot, tuple[Command, ...]]:
    """
    Pure reducer for the connection state machine.

    Given the current snapshot and a single event, returns:
    - the next snapshot
    - a tuple of commands describing required side effects

    Properties:
    - Deterministic: no IO, clocks, or randomness
    - Total: every (state, event) pair is handled or explicitly ignored
    """
    state = snapshot.state

    # ------------------------------------------------------------------
    # Explicit close: valid from any state, idempotent
    # ------------------------------------------------------------------
    if isinstance(event, CloseRequested):
        if snapshot.manual_close and state is ConnectionState.CLOSED:
            return _ignore(snapshot, event, "already_closed")

        closed = replace(
            snapshot,
            state=ConnectionState.CLOSED,
            manual_close=True,
        )
        cmds: list[Command] = [
            CancelReconnectTimer(),
            CloseSocket(reason=CLIENT_CLOSE_REASON),
        ]
        if state is ConnectionState.OPEN:
            cmds.append(
                EmitEvent(
                    event=StreamEvent.CLOSE,
                    args=(CloseInfo(code=CLIENT_CLOSE_CODE, reason=CLIENT_CLOSE_REASON),),
                )
            )
        cmds.append(_state_changed(snapshot, closed, event, "close_requested"))
        return closed, tuple(cmds)

    # ------------------------------------------------------------------
    # Manual reconnect: only from closed/closing
    # ------------------------------------------------------------------
    if isinstance(event, ReconnectRequested):
        if state not in (ConnectionState.CLOSED, ConnectionState.CLOSING):
            return _ignore(snapshot, event, f"reconnect_not_allowed_in_{state.value}")

        connecting = replace(
            snapshot,
            state=ConnectionState.CONNECTING,
            manual_close=False,
            reconnect_attempts=0,
            was_reconnect=True,
        )
        return connecting, (
            CancelReconnectTimer(),
            OpenSocket(),
            _state_changed(snapshot, connecting, event, "reconnect_requested"),
        )

    # ------------------------------------------------------------------
    # Initial connect
    # ------------------------------------------------------------------
    if isinstance(event, ConnectRequested):
        if state is not ConnectionState.CONNECTING:
            return _ignore(snapshot, event, f"connect_in_{state.value}")
        return snapshot, (
            OpenSocket(),
            _log(snapshot, event, "connect_started"),
        )

    # ------------------------------------------------------------------
    # Socket could not be constructed: terminal, never retried
    # ------------------------------------------------------------------
    if isinstance(event, SocketConstructionFailed):
        if state is not ConnectionState.CONNECTING:
            return _ignore(snapshot, event, f"construction_failure_in_{state.value}")

        closed = replace(snapshot, state=ConnectionState.CLOSED)
        return closed, (
            EmitEvent(event=StreamEvent.ERROR, args=(event.error,)),
            _log(closed, event, "construction_failed", {"error": repr(event.error)}),
            _state_changed(snapshot, closed, event, "construction_failed"),
        )

    # ------------------------------------------------------------------
    # Handshake success
    # ------------------------------------------------------------------
    if isinstance(event, SocketOpened):
        if state is not ConnectionState.CONNECTING or snapshot.manual_close:
            new_snapshot, cmds_ = _ignore(snapshot, event, f"open_in_{state.value}")
            return new_snapshot, (CloseSocket(reason="stale_open"),) + cmds_

        opened = replace(
            snapshot,
            state=ConnectionState.OPEN,
            reconnect_attempts=0,
            was_reconnect=False,
        )
        public_event = (
            StreamEvent.RECONNECTED if snapshot.was_reconnect else StreamEvent.OPEN
        )
        return opened, (
            CancelReconnectTimer(),
            EmitEvent(event=public_event),
            RestoreSession(),
            _state_changed(snapshot, opened, event, "socket_opened"),
        )

    # ------------------------------------------------------------------
    # Handshake failure: treated like a drop
    # ------------------------------------------------------------------
    if isinstance(event, SocketFailed):
        if state is not ConnectionState.CONNECTING:
            return _ignore(snapshot, event, f"handshake_failure_in_{state.value}")

        return _after_drop(
            snapshot,
            event,
            (
                EmitEvent(event=StreamEvent.ERROR, args=(event.error,)),
                EmitEvent(
                    event=StreamEvent.CLOSE,
                    args=(CloseInfo(code=None, reason=HANDSHAKE_FAILED_REASON),),
                ),
                _log(snapshot, event, "handshake_failed", {"error": repr(event.error)}),
            ),
        )

    # ------------------------------------------------------------------
    # Drop of an open socket
    # ------------------------------------------------------------------
    if isinstance(event, SocketClosed):
        if state is not ConnectionState.OPEN:
            return _ignore(snapshot, event, f"socket_closed_in_{state.value}")

        return _after_drop(
            snapshot,
            event,
            (
                EmitEvent(
                    event=StreamEvent.CLOSE,
                    args=(CloseInfo(code=event.code, reason=event.reason),),
                ),
                _log(
                    snapshot,
                    event,
                    "socket_closed",
                    {"code": event.code, "reason": event.reason},
                ),
            ),
        )

    # ------------------------------------------------------------------
    # Backoff elapsed
    # ------------------------------------------------------------------
    if isinstance(event, ReconnectTimerFired):
        if state is not ConnectionState.RECONNECTING or snapshot.manual_close:
            return _ignore(snapshot, event, f"timer_in_{state.value}")

        connecting = replace(
            snapshot,
            state=ConnectionState.CONNECTING,
            was_reconnect=True,
        )
        return connecting, (
            OpenSocket(),
            _state_changed(snapshot, connecting, event, "reconnect_timer"),
        )

    return _ignore(snapshot, event, "unhandled_event")
