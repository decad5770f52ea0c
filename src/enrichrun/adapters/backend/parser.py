"""Adapters for the domain parser batch jobs, its worker and the parsing runs feeding it."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import ValidationError as PydanticValidationError

from enrichrun.domain.errors import BackendAPIError

from .client import BackendClient, default_client_factory
from .schema import (
    JobStatusResponse,
    ParsingRunListResponse,
    ParsingRunPayload,
    StartBatchRequest,
    StartBatchResponse,
    WorkerStatusResponse,
    WorkerToggleResponse,
)
from .translator import (
    translate_job_status,
    translate_pending_run,
    translate_process_log,
    translate_worker_status,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from pydantic import BaseModel

    from enrichrun.config.backend import BackendConfig
    from enrichrun.domain.model import PendingRun, RunProcessLog, RunSnapshot, WorkerState
    from enrichrun.domain.ports import BatchJobGateway, ParsingRunSource, WorkerControl

    from .client import ClientFactory

log = getLogger(__name__)

PENDING_RUNS_PAGE_SIZE = 100


def _validate[TModel: BaseModel](model: type[TModel], payload: object, what: str) -> TModel:
    try:
        return model.model_validate(payload)
    except PydanticValidationError as exc:
        log.error(f"Unexpected {what} payload: {exc}")
        raise BackendAPIError(f"Unexpected {what} payload") from exc


class HttpDomainParser(BackendClient):
    """Talks to ``/domain-parser`` and ``/parsing/runs`` on the admin backend."""

    def __init__(
        self,
        config: BackendConfig,
        *,
        client_factory: ClientFactory = default_client_factory,
    ) -> None:
        super().__init__(config, config.jobs, client_factory=client_factory)

    def start_batch(self, run_id: str, domains: Sequence[str], *, force: bool = False) -> str:
        request = StartBatchRequest(run_id=run_id, domains=list(domains), force=force)
        payload = self._call(
            "POST",
            "/domain-parser/extract-batch",
            json=request.model_dump(by_alias=True),
        )
        return _validate(StartBatchResponse, payload, "batch start").parser_run_id

    def fetch_status(self, job_handle: str) -> RunSnapshot:
        payload = self._call("GET", f"/domain-parser/status/{job_handle}")
        return translate_job_status(_validate(JobStatusResponse, payload, "job status"))

    def worker_status(self) -> WorkerState:
        payload = self._call("GET", "/domain-parser/worker-status")
        return translate_worker_status(_validate(WorkerStatusResponse, payload, "worker status"))

    def pause(self) -> bool:
        payload = self._call("POST", "/domain-parser/pause")
        return _validate(WorkerToggleResponse, payload, "worker pause").paused

    def resume(self) -> bool:
        payload = self._call("POST", "/domain-parser/resume")
        return not _validate(WorkerToggleResponse, payload, "worker resume").paused

    def fetch_process_log(self, run_id: str) -> RunProcessLog:
        payload = self._call("GET", f"/parsing/runs/{run_id}")
        return translate_process_log(_validate(ParsingRunPayload, payload, "parsing run"))

    def list_pending_runs(self) -> list[PendingRun]:
        payload = self._call(
            "GET",
            "/parsing/runs",
            params={"limit": PENDING_RUNS_PAGE_SIZE, "sort": "created_at", "order": "asc"},
        )
        listing = _validate(ParsingRunListResponse, payload, "parsing run list")
        pending: list[PendingRun] = []
        for run in listing.runs:
            translated = translate_pending_run(run)
            if translated is not None:
                pending.append(translated)
        return pending


if TYPE_CHECKING:
    _jobs_check: BatchJobGateway = HttpDomainParser.__new__(HttpDomainParser)
    _worker_check: WorkerControl = HttpDomainParser.__new__(HttpDomainParser)
    _runs_check: ParsingRunSource = HttpDomainParser.__new__(HttpDomainParser)
