"""
Side-effect command definitions for the connection manager.

Rules:
- Commands are declarative requests for side effects.
- Commands are emitted by the reducer and executed by the manager.
- No behavior, no async, no I/O, no clocks.
Invariant:
    - All concrete Command subclasses MUST be frozen dataclasses.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from gloski.events.types import StreamEvent


# =============================================================================
# Command Type Enumeration
# =============================================================================

class CommandType(str, Enum):
    """
    Canonical command types emitted by the reducer.
    """

    # Socket
    OPEN_SOCKET = "OPEN_SOCKET"
    CLOSE_SOCKET = "CLOSE_SOCKET"

    # Timers
    START_RECONNECT_TIMER = "START_RECONNECT_TIMER"
    CANCEL_RECONNECT_TIMER = "CANCEL_RECONNECT_TIMER"

    # Caller-facing
    EMIT_EVENT = "EMIT_EVENT"
    RESTORE_SESSION = "RESTORE_SESSION"

    # Observability
    LOG_EVENT = "LOG_EVENT"


# =============================================================================
# Base Command
# =============================================================================

class Command:
    """
    Base command type.

    command_type is an explicit discriminant and must never be inferred
    from Python type identity.
    """

    command_type: CommandType


# =============================================================================
# Socket Commands
# =============================================================================

@dataclass(frozen=True)
class OpenSocket(Command):
    """Start a new handshake. Any previous socket must already be gone."""
    command_type: CommandType = CommandType.OPEN_SOCKET


@dataclass(frozen=True)
class CloseSocket(Command):
    """Tear down the current socket (if any) without reporting a drop."""
    reason: str = ""
    command_type: CommandType = CommandType.CLOSE_SOCKET


# =============================================================================
# Timer Commands
# =============================================================================

@dataclass(frozen=True)
class StartReconnectTimer(Command):
    """
    Start (or replace) the reconnect timer.

    On expiry the manager must inject ReconnectTimerFired.
    """
    delay_ms: int
    attempt: int
    command_type: CommandType = CommandType.START_RECONNECT_TIMER


@dataclass(frozen=True)
class CancelReconnectTimer(Command):
    """Cancel the reconnect timer if one is pending."""
    command_type: CommandType = CommandType.CANCEL_RECONNECT_TIMER


# =============================================================================
# Caller-facing Commands
# =============================================================================

@dataclass(frozen=True)
class EmitEvent(Command):
    """Emit a public stream event to the caller's listeners."""
    event: StreamEvent
    args: tuple[Any, ...] = ()
    command_type: CommandType = CommandType.EMIT_EVENT


@dataclass(frozen=True)
class RestoreSession(Command):
    """
    Re-apply per-stream session state after a successful open
    (terminal: replay last known size).
    """
    command_type: CommandType = CommandType.RESTORE_SESSION


# =============================================================================
# Observability Commands
# =============================================================================

@dataclass(frozen=True)
class LogEvent(Command):
    """Request to emit a structured log line."""
    event: dict[str, Any]
    command_type: CommandType = CommandType.LOG_EVENT
