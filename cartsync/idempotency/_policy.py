"""
Idempotency policy — how long results live, what to do with a busy key.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import timedelta
from enum import Enum, auto


class OnPending(Enum):
    """
    A request arrives while the same key is still running.

    WAIT: poll until the first one finishes, return its result.
    FAIL: reject immediately with CONFLICT (double-click on "Place order").
    """

    WAIT = auto()
    FAIL = auto()


WAIT = OnPending.WAIT
FAIL = OnPending.FAIL


@dataclass(frozen=True, slots=True)
class Policy:
    """
    Fluent, immutable configuration.

    Example:
        policy = (
            Policy()
            .with_ttl(hours=24)
            .with_on_pending(FAIL)
        )

    Failed executions are forgotten by default so the customer can retry.
    """

    result_ttl: timedelta | None = None
    on_pending: OnPending = OnPending.FAIL
    wait_timeout: timedelta = timedelta(seconds=30)
    poll_interval: timedelta = timedelta(milliseconds=50)
    persist_failed: bool = False
    failed_ttl: timedelta | None = None

    def with_ttl(
        self,
        *,
        seconds: float = 0,
        minutes: float = 0,
        hours: float = 0,
        delta: timedelta | None = None,
    ) -> Policy:
        """
        Keep completed records this long; no TTL keeps them forever.

            .with_ttl(hours=24)
            .with_ttl(delta=timedelta(days=7))
        """
        if delta is None:
            total = seconds + minutes * 60 + hours * 3600
            delta = timedelta(seconds=total) if total > 0 else None
        return replace(self, result_ttl=delta)

    def with_on_pending(self, strategy: OnPending) -> Policy:
        return replace(self, on_pending=strategy)

    def with_wait_timeout(self, *, seconds: float = 30, poll_every: float | None = None) -> Policy:
        """Only used with WAIT."""
        poll = timedelta(seconds=poll_every) if poll_every else self.poll_interval
        return replace(self, wait_timeout=timedelta(seconds=seconds), poll_interval=poll)

    def with_store_failed(self, store: bool = True, *, ttl_seconds: float = 0) -> Policy:
        """
        Remember failures too, so a repeat returns the same error.

            .with_store_failed(True, ttl_seconds=60)
        """
        ttl = timedelta(seconds=ttl_seconds) if ttl_seconds > 0 else None
        return replace(self, persist_failed=store, failed_ttl=ttl)


__all__ = ("OnPending", "WAIT", "FAIL", "Policy")
