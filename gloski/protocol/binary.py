# gloski/protocol/binary.py
"""
Binary framing helpers for the terminal channel.

- Client → Server (resize):
    1 byte   opcode 0x01
    2 bytes  cols (u16, big-endian)
    2 bytes  rows (u16, big-endian)

- Client → Server (keystrokes):
    raw UTF-8 bytes, no opcode, sent as one binary frame

- Server → Client (output):
    binary (UTF-8 bytes) or text frames, both normalized to str

Usage example:

    ws.send(encode_resize_frame(TerminalSize(cols=80, rows=24)))
    ws.send(encode_input_frame("ls -la\\n"))

    text = decode_inbound_payload(message)
"""

from __future__ import annotations

import struct
from dataclasses import dataclass

from gloski.constants import (
    OPCODE_RESIZE,
    RESIZE_FRAME_BYTES,
    TERMINAL_DIMENSION_MAX,
    TERMINAL_DIMENSION_MIN,
)


# -------------------------
# Exceptions
# -------------------------

class BinaryProtocolError(Exception):
    """Base class for binary protocol errors."""


class InvalidFrameLength(BinaryProtocolError):
    """
    Raised when a control frame does not match the expected byte length.
    """


class InvalidOpcode(BinaryProtocolError):
    """
    Raised when a control frame carries an unknown leading opcode byte.
    """


class InvalidTerminalSize(BinaryProtocolError, ValueError):
    """
    Raised when cols/rows cannot be represented as u16.

    Also a ValueError: passing such a size is a caller bug.
    """


# -------------------------
# Types
# -------------------------

@dataclass(frozen=True)
class TerminalSize:
    """Terminal geometry in character cells."""
    cols: int
    rows: int

    def __post_init__(self) -> None:
        for name in ("cols", "rows"):
            value = getattr(self, name)
            if (
                not isinstance(value, int)
                or isinstance(value, bool)
                or value < TERMINAL_DIMENSION_MIN
                or value > TERMINAL_DIMENSION_MAX
            ):
                raise InvalidTerminalSize(f"Invalid {name}: {value!r}")


# -------------------------
# Low-level helpers
# -------------------------

_RESIZE_STRUCT = struct.Struct(">BHH")


def is_resize_frame(payload: bytes) -> bool:
    """
    Return True if `payload` has the shape of a resize control frame.

    Mirrors the server convention: exactly 5 bytes with a leading 0x01.
    Keystroke frames that happen to match are indistinguishable on the wire.
    """
    return len(payload) == RESIZE_FRAME_BYTES and payload[0] == OPCODE_RESIZE


# -------------------------
# Client → Server
# -------------------------

def encode_resize_frame(size: TerminalSize) -> bytes:
    """
    Encode a resize command.

    80x24 -> b"\\x01\\x00\\x50\\x00\\x18"
    """
    return _RESIZE_STRUCT.pack(OPCODE_RESIZE, size.cols, size.rows)


def decode_resize_frame(payload: bytes) -> TerminalSize:
    """
    Decode a resize command (server-side view of the frame).
    """
    if len(payload) != RESIZE_FRAME_BYTES:
        raise InvalidFrameLength(
            f"Resize frame length {len(payload)} != {RESIZE_FRAME_BYTES}"
        )

    opcode, cols, rows = _RESIZE_STRUCT.unpack(payload)

    if opcode != OPCODE_RESIZE:
        raise InvalidOpcode(f"Unexpected opcode: 0x{opcode:02x}")

    return TerminalSize(cols=cols, rows=rows)


def encode_input_frame(data: str) -> bytes:
    """
    Encode user keystrokes as raw UTF-8 bytes (no opcode prefix).
    """
    return data.encode("utf-8")


# -------------------------
# Server → Client
# -------------------------

def decode_inbound_payload(payload: bytes | bytearray | memoryview | str) -> str:
    """
    Normalize a terminal output frame to text.

    Binary frames are decoded as UTF-8; invalid sequences (e.g. a multibyte
    character split across frames) are replaced rather than raising.

    Pure function; never raises for bytes or str input.
    """
    if isinstance(payload, str):
        return payload
    return bytes(payload).decode("utf-8", errors="replace")
