"""Transport settings shared by the backend API clients."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

ShouldCacheHook = Callable[[object], bool]

ALL_METHODS = frozenset({"DELETE", "GET", "HEAD", "OPTIONS", "PATCH", "POST", "PUT"})
READ_ONLY_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})
RETRY_STATUSES = frozenset({429, 500, 502, 503, 504})


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    total: int = 3
    backoff_factor: float = 0.5
    max_backoff_wait: float = 30.0
    allowed_methods: frozenset[str] = ALL_METHODS

    @classmethod
    def reads_only(cls, total: int) -> RetryPolicy:
        """Retry safe reads; a write is sent at most once."""

        return cls(total=total, allowed_methods=READ_ONLY_METHODS)


@dataclass(slots=True, frozen=True)
class RateLimit:
    max_calls: int
    per_seconds: float


@dataclass(slots=True, frozen=True)
class ResponseCache:
    """On-disk cache of JSON responses that pass ``should_cache``."""

    ttl_seconds: float
    should_cache: ShouldCacheHook | None = None
    path: Path | None = None


@dataclass(slots=True, frozen=True)
class ResilienceConfig:
    name: str
    timeout_seconds: float = 30.0
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    ratelimit: RateLimit | None = None
    cache: ResponseCache | None = None
    headers: Mapping[str, str] | None = None
