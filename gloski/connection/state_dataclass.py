"""
Authoritative connection state container.

Rules:
- This dataclass is a pure data model.
- It contains ALL state the reducer may ever need.
- No behavior, no helpers, no derived logic.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from gloski.connection.backoff import ReconnectPolicy
from gloski.connection.enums.state import ConnectionState


@dataclass(frozen=True)
class ConnectionSnapshot:
    """Immutable snapshot of all reducer-owned connection state."""

    state: ConnectionState = ConnectionState.CONNECTING
    policy: ReconnectPolicy = field(default_factory=ReconnectPolicy)

    # Consecutive reconnect attempts in the current cycle; 0 after open
    reconnect_attempts: int = 0

    # Set by close(); suppresses reconnection until reconnect()
    manual_close: bool = False

    # Next successful open is reported as RECONNECTED instead of OPEN
    was_reconnect: bool = False
