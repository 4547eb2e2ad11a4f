"""
Connection state enumeration.

Rules:
- This enum defines ONLY the lifecycle states of one managed socket.
- No behavior, no helper methods, no side effects.
- Transitions are defined exclusively in the reducer.
"""

from __future__ import annotations

from enum import Enum


class ConnectionState(str, Enum):
    """
    Lifecycle of a single ConnectionManager.

    Exactly one state is active per manager at any time.
    CLOSING is part of the public vocabulary; the reducer treats it
    like CLOSED (reconnect() is accepted from both).
    """

    CONNECTING = "connecting"
    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"
    RECONNECTING = "reconnecting"
