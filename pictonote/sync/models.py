from __future__ import annotations

from enum import Enum

from pydantic import BaseModel


class SyncPhase(str, Enum):
    """Stages of a sync run, always executed in this order."""

    upload = "upload"
    download = "download"
    verify = "verify"


class SyncError(BaseModel):
    """One failure recorded during a sync run.

    ``partial`` marks an image transfer that failed while the entry text
    itself was still synchronized. ``entry_id`` is None for run-level
    failures such as the connectivity probe.
    """

    entry_id: str | None = None
    phase: SyncPhase | None = None
    kind: str
    error: str
    partial: bool = False


class SyncReport(BaseModel):
    processed: int = 0
    succeeded: int = 0
    uploaded: int = 0
    downloaded: int = 0
    cancelled: bool = False
    errors: list[SyncError] = []
    duration: float = 0.0

    @property
    def failed(self) -> int:
        return self.processed - self.succeeded

    @property
    def aborted(self) -> bool:
        """True when the run stopped before any phase executed."""
        return any(e.entry_id is None and e.phase is None for e in self.errors)
