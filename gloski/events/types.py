"""
Public stream event definitions.

Rules:
- Events describe facts delivered to SDK callers.
- Payloads carry data only (no behavior).
- Listener signatures per event are listed on StreamEvent.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class StreamEvent(str, Enum):
    """
    Event names emitted by stream connections.

    Listener signatures:
    - OPEN          ()                        first successful connection
    - RECONNECTED   ()                        connection recovered after a drop
    - DATA          (text: str)               terminal output
    - STATS         (snapshot: dict)          one system stats sample
    - CLOSE         (info: CloseInfo)         socket closed (any cause)
    - ERROR         (cause: Exception)        handshake/decode/transport error
    - RECONNECTING  (attempt: int)            reconnect attempt scheduled
    """

    OPEN = "open"
    RECONNECTED = "reconnected"
    DATA = "data"
    STATS = "stats"
    CLOSE = "close"
    ERROR = "error"
    RECONNECTING = "reconnecting"


@dataclass(frozen=True)
class CloseInfo:
    """
    Close details.

    code is the WebSocket close code, or None when no close frame was
    exchanged (handshake failure, abrupt network loss).
    """
    code: int | None
    reason: str = ""
