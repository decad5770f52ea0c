"""Port guarding the bulk commit against running twice."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class CommitLedger(Protocol):
    """Test-and-set store of (run id, job handle) commit tokens."""

    def claim(self, run_id: str, job_handle: str) -> bool:
        """Record the token; return False when it was already present."""
        ...

    def release(self, run_id: str, job_handle: str) -> None: ...


__all__ = ["CommitLedger"]
