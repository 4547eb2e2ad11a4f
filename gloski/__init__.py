"""
Gloski Python SDK

Client for a Gloski server: authenticated REST calls plus resilient
terminal and stats WebSocket streams with automatic reconnection.
"""

from gloski.client import GloskiClient, SystemResource, TerminalResource
from gloski.config import ClientConfig
from gloski.connection.backoff import ReconnectPolicy
from gloski.connection.enums.state import ConnectionState
from gloski.connection.manager import ConnectionManager, HandshakeError
from gloski.errors import GloskiError
from gloski.events.emitter import EventEmitter, Subscription
from gloski.events.types import CloseInfo, StreamEvent
from gloski.protocol.binary import TerminalSize
from gloski.streams.stats import StatsDecodeError, StatsStreamClient, StatsStreamOptions
from gloski.streams.terminal import TerminalOptions, TerminalStreamClient
from gloski.transport.http import HttpClient, check_health
from gloski.transport.urls import AuthenticatedURLBuilder

__version__ = "0.1.0"

__all__ = [
    # Client
    "GloskiClient",
    "ClientConfig",
    "SystemResource",
    "TerminalResource",
    "HttpClient",
    "check_health",
    "AuthenticatedURLBuilder",
    # Streams
    "ConnectionManager",
    "ConnectionState",
    "ReconnectPolicy",
    "TerminalStreamClient",
    "TerminalOptions",
    "TerminalSize",
    "StatsStreamClient",
    "StatsStreamOptions",
    # Events
    "EventEmitter",
    "Subscription",
    "StreamEvent",
    "CloseInfo",
    # Errors
    "GloskiError",
    "HandshakeError",
    "StatsDecodeError",
]
