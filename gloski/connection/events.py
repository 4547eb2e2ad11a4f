"""
Input event definitions for the connection reducer.

Rules:
- Events describe facts that have occurred (socket callbacks, caller
  requests, timer expiry).
- Events carry data only (no behavior).
- All reducer decisions are based on these events.
- No clocks, no timers, no async, no side effects.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


# =============================================================================
# Event Type Enumeration
# =============================================================================

class EventType(str, Enum):
    """
    Canonical event types understood by the reducer.

    Every (state, event_type) pair must be explicitly handled
    or explicitly ignored by the reducer.
    """

    # ------------------------------------------------------------------
    # Caller requests
    # ------------------------------------------------------------------
    CONNECT_REQUESTED = "CONNECT_REQUESTED"
    CLOSE_REQUESTED = "CLOSE_REQUESTED"
    RECONNECT_REQUESTED = "RECONNECT_REQUESTED"

    # ------------------------------------------------------------------
    # Socket lifecycle
    # ------------------------------------------------------------------
    SOCKET_OPENED = "SOCKET_OPENED"
    SOCKET_CLOSED = "SOCKET_CLOSED"
    SOCKET_FAILED = "SOCKET_FAILED"
    SOCKET_CONSTRUCTION_FAILED = "SOCKET_CONSTRUCTION_FAILED"

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------
    RECONNECT_TIMER_FIRED = "RECONNECT_TIMER_FIRED"


# =============================================================================
# Base Event
# =============================================================================

@dataclass(frozen=True)
class Event:
    """
    Base event type.

    All events must specify:
    - event_type: discriminant
    - ts_ms: timestamp provided by the source (or fake in tests)
    """

    event_type: EventType
    ts_ms: int


# =============================================================================
# Caller Requests
# =============================================================================

@dataclass(frozen=True)
class ConnectRequested(Event):
    """Manager constructed; first connection attempt should start."""
    event_type: EventType = EventType.CONNECT_REQUESTED
    ts_ms: int = 0


@dataclass(frozen=True)
class CloseRequested(Event):
    """Caller called close()."""
    event_type: EventType = EventType.CLOSE_REQUESTED
    ts_ms: int = 0


@dataclass(frozen=True)
class ReconnectRequested(Event):
    """Caller called reconnect()."""
    event_type: EventType = EventType.RECONNECT_REQUESTED
    ts_ms: int = 0


# =============================================================================
# Socket Events
# =============================================================================

@dataclass(frozen=True)
class SocketOpened(Event):
    """Handshake completed; the socket is usable."""
    event_type: EventType = EventType.SOCKET_OPENED
    ts_ms: int = 0


@dataclass(frozen=True)
class SocketClosed(Event):
    """
    An open socket closed (peer close frame, network loss, local close).
    """
    code: int | None = None
    reason: str = ""
    event_type: EventType = EventType.SOCKET_CLOSED
    ts_ms: int = 0


@dataclass(frozen=True)
class SocketFailed(Event):
    """
    Handshake failed (refused, DNS, HTTP rejection, timeout).

    Treated like a post-open drop for reconnect purposes.
    """
    error: Exception | None = None
    event_type: EventType = EventType.SOCKET_FAILED
    ts_ms: int = 0


@dataclass(frozen=True)
class SocketConstructionFailed(Event):
    """
    The socket could not even be constructed (e.g. malformed URL).

    Never retried.
    """
    error: Exception | None = None
    event_type: EventType = EventType.SOCKET_CONSTRUCTION_FAILED
    ts_ms: int = 0


# =============================================================================
# Timer Events
# =============================================================================

@dataclass(frozen=True)
class ReconnectTimerFired(Event):
    """Backoff delay elapsed."""
    event_type: EventType = EventType.RECONNECT_TIMER_FIRED
    ts_ms: int = 0
