"""Backend API configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env_var, require_env_vars
from .http_resilience import RateLimit, ResilienceConfig, ResponseCache, RetryPolicy

JOBS_TIMEOUT_SECONDS = 15.0
REGISTRY_TIMEOUT_SECONDS = 30.0
PROFILE_TIMEOUT_SECONDS = 30.0
PROFILE_CACHE_TTL_SECONDS = 7 * 24 * 3600.0


@dataclass(frozen=True, slots=True)
class BackendConfig:
    """Holds the admin backend base URL and per-API transport settings."""

    api_url: str
    jobs: ResilienceConfig
    registry: ResilienceConfig
    profiles: ResilienceConfig
    api_token: str | None = None

    def url(self, path: str) -> str:
        return f"{self.api_url}/{path.lstrip('/')}"


def _should_cache_profile(payload: object) -> bool:
    # only responses carrying profile data are cached
    return isinstance(payload, dict) and bool(payload.get("checkoData"))


def build_backend_config(api_url: str, *, api_token: str | None = None) -> BackendConfig:
    headers = {"Authorization": f"Bearer {api_token}"} if api_token else None
    return BackendConfig(
        api_url=api_url.rstrip("/"),
        api_token=api_token,
        jobs=ResilienceConfig(
            name="domain-parser",
            timeout_seconds=JOBS_TIMEOUT_SECONDS,
            retry=RetryPolicy.reads_only(total=2),
            headers=headers,
        ),
        registry=ResilienceConfig(
            name="registry",
            timeout_seconds=REGISTRY_TIMEOUT_SECONDS,
            retry=RetryPolicy.reads_only(total=3),
            ratelimit=RateLimit(max_calls=2, per_seconds=1.0),
            headers=headers,
        ),
        profiles=ResilienceConfig(
            name="company-profiles",
            timeout_seconds=PROFILE_TIMEOUT_SECONDS,
            retry=RetryPolicy(total=3),
            ratelimit=RateLimit(max_calls=1, per_seconds=1.0),
            cache=ResponseCache(
                ttl_seconds=PROFILE_CACHE_TTL_SECONDS,
                should_cache=_should_cache_profile,
            ),
            headers=headers,
        ),
    )


def get_backend_config() -> BackendConfig:
    values = require_env_vars(("ENRICHRUN_API_URL",))
    return build_backend_config(
        values["ENRICHRUN_API_URL"],
        api_token=optional_env_var("ENRICHRUN_API_TOKEN"),
    )
