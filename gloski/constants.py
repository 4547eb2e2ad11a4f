"""
CONSTANTS
---------
Single source of truth for all behavioral constants of the SDK.

Rules:
- If changing a value changes runtime behavior, it belongs here.
- No magic numbers elsewhere in the codebase.
- Other modules MUST import from this file.
"""

from __future__ import annotations

from typing import Final

# =============================================================================
# HTTP / URL building
# =============================================================================

DEFAULT_API_PREFIX: Final[str] = "/api"
DEFAULT_REQUEST_TIMEOUT_S: Final[float] = 30.0
DEFAULT_HEALTH_TIMEOUT_S: Final[float] = 5.0

API_KEY_HEADER: Final[str] = "X-API-Key"
AUTHORIZATION_HEADER: Final[str] = "Authorization"
API_KEY_QUERY_PARAM: Final[str] = "api_key"
TOKEN_QUERY_PARAM: Final[str] = "token"

# =============================================================================
# WebSocket endpoints
# =============================================================================

TERMINAL_WS_PATH: Final[str] = "/terminal"
STATS_WS_PATH: Final[str] = "/system/stats/ws"

# No bound exists in the browser; this caps a stalled TCP/TLS handshake.
DEFAULT_HANDSHAKE_TIMEOUT_S: Final[float] = 10.0

# Terminal output can be large (e.g. `cat` of a big file)
WS_MAX_MESSAGE_BYTES: Final[int] = 2**22

# =============================================================================
# Reconnect policy defaults
# =============================================================================

TERMINAL_MAX_RECONNECT_ATTEMPTS: Final[int] = 5
TERMINAL_RECONNECT_DELAY_MS: Final[int] = 1000
TERMINAL_MAX_RECONNECT_DELAY_MS: Final[int | None] = None  # uncapped

STATS_MAX_RECONNECT_ATTEMPTS: Final[int] = 10
STATS_RECONNECT_DELAY_MS: Final[int] = 1000
STATS_MAX_RECONNECT_DELAY_MS: Final[int | None] = 30_000

# =============================================================================
# Terminal binary control protocol
# =============================================================================
# Client -> Server resize: [0x01, cols_hi, cols_lo, rows_hi, rows_lo]

OPCODE_RESIZE: Final[int] = 0x01
RESIZE_FRAME_BYTES: Final[int] = 5

TERMINAL_DIMENSION_MIN: Final[int] = 0
TERMINAL_DIMENSION_MAX: Final[int] = 0xFFFF  # u16
