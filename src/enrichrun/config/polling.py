"""Polling and commit defaults for enrichment runs."""

from __future__ import annotations

from dataclasses import dataclass

from .env import float_env_var

DEFAULT_POLL_INTERVAL_SECONDS = 8.0
DEFAULT_HEARTBEAT_INTERVAL_SECONDS = 10.0
# Above the extraction engine's own 90s per-domain limit.
DEFAULT_DOMAIN_TIMEOUT_SECONDS = 120.0
DEFAULT_REGISTRY_SNAPSHOT_LIMIT = 1000


@dataclass(frozen=True, slots=True)
class PollingConfig:
    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS
    heartbeat_interval_seconds: float = DEFAULT_HEARTBEAT_INTERVAL_SECONDS
    domain_timeout_seconds: float = DEFAULT_DOMAIN_TIMEOUT_SECONDS
    registry_snapshot_limit: int = DEFAULT_REGISTRY_SNAPSHOT_LIMIT


def get_polling_config() -> PollingConfig:
    return PollingConfig(
        poll_interval_seconds=float_env_var(
            "ENRICHRUN_POLL_INTERVAL", DEFAULT_POLL_INTERVAL_SECONDS
        ),
        heartbeat_interval_seconds=float_env_var(
            "ENRICHRUN_HEARTBEAT_INTERVAL", DEFAULT_HEARTBEAT_INTERVAL_SECONDS
        ),
        domain_timeout_seconds=float_env_var(
            "ENRICHRUN_DOMAIN_TIMEOUT", DEFAULT_DOMAIN_TIMEOUT_SECONDS
        ),
    )
