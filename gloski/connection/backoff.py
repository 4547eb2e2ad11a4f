"""
Reconnect policy helpers.

Purpose:
- Centralize reconnect/backoff rules
- Keep reducer pure
- Allow the manager to make deterministic reconnect decisions

This module contains NO timers, NO async, NO side effects.
"""
from __future__ import annotations

from dataclasses import dataclass

from gloski.constants import (
    STATS_MAX_RECONNECT_ATTEMPTS,
    STATS_MAX_RECONNECT_DELAY_MS,
    STATS_RECONNECT_DELAY_MS,
    TERMINAL_MAX_RECONNECT_ATTEMPTS,
    TERMINAL_MAX_RECONNECT_DELAY_MS,
    TERMINAL_RECONNECT_DELAY_MS,
)


# =============================================================================
# Policy
# =============================================================================

@dataclass(frozen=True)
class ReconnectPolicy:
    """
    Immutable reconnect policy for one manager.

    Semantics:
    - auto_reconnect=False: any drop is terminal (state -> closed).
    - max_attempts: consecutive reconnect attempts before giving up.
      The counter resets on every successful open.
    - base_delay_ms: delay before the first reconnect attempt.
    - max_delay_ms: cap on the exponential delay (None = uncapped).
    """
    auto_reconnect: bool = True
    max_attempts: int = TERMINAL_MAX_RECONNECT_ATTEMPTS
    base_delay_ms: int = TERMINAL_RECONNECT_DELAY_MS
    max_delay_ms: int | None = TERMINAL_MAX_RECONNECT_DELAY_MS

    def __post_init__(self) -> None:
        if self.max_attempts < 0:
            raise ValueError(f"max_attempts must be >= 0, got {self.max_attempts}")
        if self.base_delay_ms < 0:
            raise ValueError(f"base_delay_ms must be >= 0, got {self.base_delay_ms}")
        if self.max_delay_ms is not None and self.max_delay_ms < 0:
            raise ValueError(f"max_delay_ms must be >= 0, got {self.max_delay_ms}")


def terminal_policy(
    *,
    auto_reconnect: bool = True,
    max_attempts: int = TERMINAL_MAX_RECONNECT_ATTEMPTS,
    base_delay_ms: int = TERMINAL_RECONNECT_DELAY_MS,
) -> ReconnectPolicy:
    """Default policy for terminal streams: 5 attempts, 1s base, no cap."""
    return ReconnectPolicy(
        auto_reconnect=auto_reconnect,
        max_attempts=max_attempts,
        base_delay_ms=base_delay_ms,
        max_delay_ms=TERMINAL_MAX_RECONNECT_DELAY_MS,
    )


def stats_policy(
    *,
    auto_reconnect: bool = True,
    max_attempts: int = STATS_MAX_RECONNECT_ATTEMPTS,
    base_delay_ms: int = STATS_RECONNECT_DELAY_MS,
    max_delay_ms: int | None = STATS_MAX_RECONNECT_DELAY_MS,
) -> ReconnectPolicy:
    """Default policy for stats streams: 10 attempts, 1s base, 30s cap."""
    return ReconnectPolicy(
        auto_reconnect=auto_reconnect,
        max_attempts=max_attempts,
        base_delay_ms=base_delay_ms,
        max_delay_ms=max_delay_ms,
    )


# =============================================================================
# Decisions
# =============================================================================

def should_reconnect(policy: ReconnectPolicy, attempts: int) -> bool:
    """
    Returns True if another reconnect attempt is allowed.

    attempts = number of reconnect attempts already made in this cycle
    """
    return attempts < policy.max_attempts


def get_reconnect_delay_ms(policy: ReconnectPolicy, attempt: int) -> int:
    """
    Returns delay before reconnect attempt N (N >= 1).

    delay = min(base * 2**(N-1), max_delay_ms); no jitter.
    """
    if attempt < 1:
        raise ValueError(f"attempt must be >= 1, got {attempt}")

    delay = policy.base_delay_ms * (2 ** (attempt - 1))
    if policy.max_delay_ms is not None:
        delay = min(delay, policy.max_delay_ms)
    return delay
