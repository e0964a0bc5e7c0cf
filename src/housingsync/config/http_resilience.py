"""Retry and rate-limit settings for the HTTP store adapters."""

from __future__ import annotations

from dataclasses import dataclass, field

import httpx

# Airtable locks a base out for 30 seconds after a 429
AIRTABLE_LOCKOUT_SECONDS = 30.0


def _read_methods() -> frozenset[str]:
    return frozenset({"GET", "HEAD", "OPTIONS"})


def _transient_statuses() -> frozenset[int]:
    return frozenset({429, 500, 502, 503, 504})


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    """Which requests are retried, and how long to back off between attempts.

    Only reads are listed in ``allowed_methods``: a create that timed out may
    still have landed, and sending it again would duplicate the record.
    """

    total: int = 3
    backoff_factor: float = 1.0
    max_backoff_wait: float = AIRTABLE_LOCKOUT_SECONDS
    respect_retry_after_header: bool = True
    allowed_methods: frozenset[str] = field(default_factory=_read_methods)
    status_forcelist: frozenset[int] = field(default_factory=_transient_statuses)
    retry_on_exceptions: tuple[type[httpx.HTTPError], ...] = (
        httpx.TimeoutException,
        httpx.NetworkError,
        httpx.RemoteProtocolError,
    )
    backoff_jitter: float = 1.0


@dataclass(slots=True, frozen=True)
class RateLimit:
    max_calls: int
    per_seconds: float


@dataclass(slots=True, frozen=True)
class ResilienceConfig:
    name: str
    base_url: str | None = None
    timeout_seconds: float = 30.0
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    ratelimit: RateLimit | None = None
    user_agent: str = "housingsync"
