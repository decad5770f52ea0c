"""Fold incoming enrichment results into the run's result map."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from enrichrun.domain.normalization import normalize_domain

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from datetime import datetime

    from enrichrun.domain.errors import ExtractionFailure
    from enrichrun.domain.model import EnrichmentResult, ResultMap

log = getLogger(__name__)


def _keys_for(domain: str) -> tuple[str, ...]:
    raw = domain.strip()
    normalized = normalize_domain(raw)
    if not normalized or normalized == raw:
        return (raw,) if raw else ()
    return (raw, normalized)


def merge_results(
    current: Mapping[str, EnrichmentResult],
    incoming: Iterable[EnrichmentResult],
) -> ResultMap:
    """Return a new map with ``incoming`` written over ``current``.

    Every result is stored under its raw domain and under its normalized root domain,
    so lookups succeed with either form. The newest result for a key replaces the old
    one wholesale, including results that carry an error.
    """

    merged = dict(current)
    dropped = 0
    for result in incoming:
        keys = _keys_for(result.domain)
        if not keys:
            dropped += 1
            continue
        for key in keys:
            merged[key] = result
    if dropped:
        log.warning("Dropped %d enrichment result(s) without a domain", dropped)
    return merged


def touch_timestamps(
    current: Mapping[str, str],
    incoming: Iterable[EnrichmentResult],
    now: datetime,
) -> dict[str, str]:
    """Stamp each incoming result's normalized domain with ``now``."""

    stamped = dict(current)
    moment = now.isoformat()
    for result in incoming:
        key = normalize_domain(result.domain)
        if key:
            stamped[key] = moment
    return stamped


def distinct_results(results: Mapping[str, EnrichmentResult]) -> list[EnrichmentResult]:
    """Return one result per normalized domain, preferring the entry stored under the root key."""

    seen: dict[str, EnrichmentResult] = {}
    for result in results.values():
        key = normalize_domain(result.domain)
        if not key or key in seen:
            continue
        seen[key] = results.get(key, result)
    return list(seen.values())


def lookup(results: Mapping[str, EnrichmentResult], domain: str) -> EnrichmentResult | None:
    """Find the result for ``domain`` by exact, normalized, then lowercase key."""

    candidate = domain.strip()
    for key in (candidate, normalize_domain(candidate), candidate.lower()):
        if key and key in results:
            return results[key]
    return None


def collect_failures(results: Mapping[str, EnrichmentResult]) -> list[ExtractionFailure]:
    failures: list[ExtractionFailure] = []
    for result in distinct_results(results):
        failure = result.failure()
        if failure is not None:
            failures.append(failure)
    return failures
