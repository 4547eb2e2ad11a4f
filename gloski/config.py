"""
Client configuration.

Responsibilities:
- Load deployment-specific configuration
- Read environment variables
- Provide a typed, immutable config object

Non-responsibilities:
- No connection logic
- No protocol constants
- No runtime mutation
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from gloski.constants import (
    DEFAULT_API_PREFIX,
    DEFAULT_HANDSHAKE_TIMEOUT_S,
    DEFAULT_REQUEST_TIMEOUT_S,
)


@dataclass(frozen=True)
class ClientConfig:
    """
    Immutable client configuration.

    Constructed once per GloskiClient and passed downward to the
    HTTP client, the URL builder and every stream it creates.
    """

    # ------------------------------------------------------------------
    # Server
    # ------------------------------------------------------------------

    url: str
    api_prefix: str = DEFAULT_API_PREFIX

    # ------------------------------------------------------------------
    # Credentials (api_key wins when both are set)
    # ------------------------------------------------------------------

    api_key: str | None = None
    token: str | None = None

    # ------------------------------------------------------------------
    # Timeouts
    # ------------------------------------------------------------------

    timeout_s: float = DEFAULT_REQUEST_TIMEOUT_S
    handshake_timeout_s: float = DEFAULT_HANDSHAKE_TIMEOUT_S

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    enable_json_logs: bool = True

    @property
    def normalized_url(self) -> str:
        """Server URL without trailing slashes."""
        return self.url.rstrip("/")

    # ------------------------------------------------------------------
    # Factory
    # ------------------------------------------------------------------

    @staticmethod
    def load_from_env() -> ClientConfig:
        """
        Load configuration from environment variables.

        Raises:
            KeyError if GLOSKI_URL is missing.
        """
        return ClientConfig(
            url=os.environ["GLOSKI_URL"],
            api_prefix=os.environ.get("GLOSKI_API_PREFIX", DEFAULT_API_PREFIX),

            api_key=os.environ.get("GLOSKI_API_KEY"),
            token=os.environ.get("GLOSKI_TOKEN"),

            timeout_s=float(
                os.environ.get("GLOSKI_TIMEOUT_S", DEFAULT_REQUEST_TIMEOUT_S)
            ),
            handshake_timeout_s=float(
                os.environ.get("GLOSKI_HANDSHAKE_TIMEOUT_S", DEFAULT_HANDSHAKE_TIMEOUT_S)
            ),

            enable_json_logs=os.environ.get("ENABLE_JSON_LOGS", "1") == "1",
        )
