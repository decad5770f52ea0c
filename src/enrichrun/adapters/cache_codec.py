"""Text encoding of cached run records shared by the cache adapters."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Final

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from enrichrun.domain.model import EnrichmentResult
from enrichrun.domain.ports import CachedRun

if TYPE_CHECKING:
    from collections.abc import Mapping

log = getLogger(__name__)

RESULTS: Final[str] = "results"
JOB_HANDLE: Final[str] = "job_handle"
UPDATED_AT: Final[str] = "updated_at"
RECORD_KINDS: Final[tuple[str, ...]] = (RESULTS, JOB_HANDLE, UPDATED_AT)

_results_adapter = TypeAdapter(dict[str, EnrichmentResult])
_timestamps_adapter = TypeAdapter(dict[str, str])


def encode_records(cached: CachedRun) -> dict[str, str]:
    """Encode the non-empty records of ``cached``; empty ones are left out."""

    records: dict[str, str] = {}
    if cached.results:
        records[RESULTS] = _results_adapter.dump_json(cached.results).decode("utf-8")
    if cached.job_handle and cached.job_handle.strip():
        records[JOB_HANDLE] = cached.job_handle.strip()
    if cached.updated_at:
        records[UPDATED_AT] = _timestamps_adapter.dump_json(cached.updated_at).decode("utf-8")
    return records


def decode_records(run_id: str, records: Mapping[str, str | None]) -> CachedRun:
    """Decode whatever records are readable. Each bad record loads as empty on its own."""

    results: dict[str, EnrichmentResult] = {}
    raw_results = records.get(RESULTS)
    if raw_results:
        try:
            results = _results_adapter.validate_json(raw_results)
        except PydanticValidationError:
            log.warning("Ignoring unreadable cached results for run %s", run_id)

    updated_at: dict[str, str] = {}
    raw_updated = records.get(UPDATED_AT)
    if raw_updated:
        try:
            updated_at = _timestamps_adapter.validate_json(raw_updated)
        except PydanticValidationError:
            log.warning("Ignoring unreadable cached timestamps for run %s", run_id)

    job_handle = (records.get(JOB_HANDLE) or "").strip() or None
    return CachedRun(results=results, job_handle=job_handle, updated_at=updated_at)
