"""
Reconnect backoff: delay(attempt) = min(2 ** min(attempt, 5), cap) seconds.
"""

from __future__ import annotations

DEFAULT_BACKOFF_CAP_SEC = 30
MAX_BACKOFF_EXPONENT = 5
# Attempt counter wraps to 0 after this many reconnects
BACKOFF_RESET_EVERY = 10


def backoff_delay(attempt: int, cap_seconds: int = DEFAULT_BACKOFF_CAP_SEC) -> float:
    """Seconds to wait before reconnect number attempt (0-based)."""
    if attempt < 0:
        raise ValueError("attempt must be non-negative")
    if cap_seconds <= 0:
        raise ValueError("cap_seconds must be positive")
    return float(min(1 << min(attempt, MAX_BACKOFF_EXPONENT), cap_seconds))


class BackoffPolicy:
    """Attempt counter for the supervisor; wraps every BACKOFF_RESET_EVERY uses."""

    def __init__(
        self,
        cap_seconds: int = DEFAULT_BACKOFF_CAP_SEC,
        reset_every: int = BACKOFF_RESET_EVERY,
    ) -> None:
        if reset_every <= 0:
            raise ValueError("reset_every must be positive")
        self.cap_seconds = cap_seconds
        self.reset_every = reset_every
        self.attempt = 0

    def next_delay(self) -> float:
        """Delay for the current attempt, then advance the counter."""
        delay = backoff_delay(self.attempt, self.cap_seconds)
        self.attempt += 1
        if self.attempt >= self.reset_every:
            self.attempt = 0
        return delay
