from __future__ import annotations

from typing import TYPE_CHECKING

from enrichrun.adapters.http_resilience import _build_cache_components, build_retry  # type: ignore[reportPrivateUsage]
from enrichrun.config.http_resilience import ResponseCache, RetryPolicy

if TYPE_CHECKING:
    from pathlib import Path


def test_reads_only_retry_never_repeats_writes() -> None:
    retry = build_retry(RetryPolicy.reads_only(total=2))

    assert retry.total == 2
    assert retry.is_retryable_method("GET")
    assert not retry.is_retryable_method("POST")
    assert retry.is_retryable_status_code(503)
    assert not retry.is_retryable_status_code(404)


def test_no_cache_without_settings() -> None:
    assert _build_cache_components(None) == (None, None)


def test_cache_uses_configured_path_and_filter(tmp_path: Path) -> None:
    storage, policy = _build_cache_components(
        ResponseCache(ttl_seconds=60.0, should_cache=bool, path=tmp_path / "http.db")
    )

    assert storage is not None
    assert policy is not None


def test_cache_without_filter_has_no_policy(tmp_path: Path) -> None:
    storage, policy = _build_cache_components(
        ResponseCache(ttl_seconds=60.0, path=tmp_path / "http.db")
    )

    assert storage is not None
    assert policy is None
