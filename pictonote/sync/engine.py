"""SyncEngine: reconciles the local journal with a user's remote collection."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Coroutine
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Any, TypeVar

from pictonote.config.models import SyncConfig
from pictonote.errors import (
    ConnectivityError,
    DownloadError,
    NotFound,
    ParseError,
    SyncInProgressError,
    UploadError,
)
from pictonote.journal.codec import decode
from pictonote.journal.entry_ids import validate_entry_id
from pictonote.journal.local_store import LocalEntryStore
from pictonote.remote.base import RemoteEntry, RemoteEntryStore
from pictonote.sync.models import SyncError, SyncPhase, SyncReport

logger = logging.getLogger(__name__)

T = TypeVar("T")

PhaseCallback = Callable[[SyncPhase], None]
ProgressCallback = Callable[[SyncPhase, int, int], None]

_ERROR_KINDS: list[tuple[type[BaseException], str]] = [
    (NotFound, "not_found"),
    (ParseError, "parse"),
    (UploadError, "upload"),
    (DownloadError, "download"),
    (ConnectivityError, "connectivity"),
    (TimeoutError, "timeout"),
]


def _error_kind(exc: BaseException) -> str:
    for cls, kind in _ERROR_KINDS:
        if isinstance(exc, cls):
            return kind
    return "error"


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


@dataclass
class _SyncRun:
    """Mutable state for one synchronize call."""

    user_id: str
    report: SyncReport = field(default_factory=SyncReport)
    touched: set[str] = field(default_factory=set)
    failed: set[str] = field(default_factory=set)
    on_phase_change: PhaseCallback | None = None
    on_progress: ProgressCallback | None = None

    def fail(
        self,
        entry_id: str | None,
        phase: SyncPhase | None,
        exc: BaseException,
        partial: bool = False,
    ) -> None:
        if entry_id is not None:
            self.failed.add(entry_id)
        self.report.errors.append(
            SyncError(
                entry_id=entry_id,
                phase=phase,
                kind=_error_kind(exc),
                error=str(exc) or type(exc).__name__,
                partial=partial,
            )
        )


class SyncEngine:
    """Three-phase sync between a LocalEntryStore and a RemoteEntryStore.

    1. Upload: local entries that are newer than their remote document (or
       have none) are pushed, images first.
    2. Download: remote documents that are newer than the local file (or
       have none) are written locally with the remote timestamp.
    3. Verify: every id touched above counts as succeeded when both sides
       exist, differ by less than ``tolerance_ms``, and no error was recorded.

    Equal timestamps mean "already in sync". Entries are handled one at a
    time, in id order; a failure on one entry is recorded on the report and
    never stops the batch. Only a failed connectivity probe aborts a run.
    """

    def __init__(
        self,
        local: LocalEntryStore,
        remote: RemoteEntryStore,
        config: SyncConfig | None = None,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self.local = local
        self.remote = remote
        self.config = config or SyncConfig()
        self._clock = clock
        self._running: set[str] = set()
        self._cancel_requested: set[str] = set()

    # -- Public API ----------------------------------------------------------

    def is_running(self, user_id: str) -> bool:
        return user_id in self._running

    def cancel(self, user_id: str) -> bool:
        """Ask a running sync to stop after its current entry."""
        if user_id not in self._running:
            return False
        self._cancel_requested.add(user_id)
        return True

    async def synchronize(
        self,
        user_id: str,
        on_phase_change: PhaseCallback | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> SyncReport:
        """Run upload, download and verification for one user."""
        run = _SyncRun(user_id, on_phase_change=on_phase_change, on_progress=on_progress)
        if not user_id:
            logger.error("Sync requested without a signed-in user")
            run.report.errors.append(SyncError(kind="unauthenticated", error="no authenticated user"))
            return run.report

        self._acquire(user_id)
        start = time.monotonic()
        try:
            try:
                await self._remote_call(self.remote.ping())
            except Exception as e:
                err = e
                if not isinstance(e, (ConnectivityError, TimeoutError)):
                    err = ConnectivityError(f"Remote store unreachable: {e}")
                    err.__cause__ = e
                logger.error("Remote store unavailable, sync aborted: %s", err)
                run.fail(None, None, err)
                return run.report

            for phase in (self._upload_phase, self._download_phase, self._verify_phase):
                if self._stop_requested(run):
                    break
                await phase(run)

            run.report.processed = len(run.touched)
            logger.info(
                "Sync for %s complete: processed=%d succeeded=%d uploaded=%d downloaded=%d errors=%d",
                user_id,
                run.report.processed,
                run.report.succeeded,
                run.report.uploaded,
                run.report.downloaded,
                len(run.report.errors),
            )
            return run.report
        finally:
            run.report.processed = len(run.touched)
            run.report.duration = time.monotonic() - start
            self._release(user_id)

    async def push_entry(self, user_id: str, entry_id: str) -> SyncReport:
        """Upload one local entry unconditionally (auto-sync after a save)."""
        run = _SyncRun(user_id)
        self._acquire(user_id)
        try:
            run.touched.add(entry_id)
            await self._isolated(run, SyncPhase.upload, entry_id, self._push_current(run, entry_id))
            run.report.processed = 1
            if entry_id not in run.failed:
                run.report.succeeded = 1
            return run.report
        finally:
            self._release(user_id)

    # -- Phases ----------------------------------------------------------------

    async def _upload_phase(self, run: _SyncRun) -> None:
        phase = SyncPhase.upload
        self._enter_phase(run, phase)
        rejects: list[tuple[str, ParseError]] = []
        entry_ids = await asyncio.to_thread(
            self.local.list, on_reject=lambda name, e: rejects.append((name, e))
        )
        self._record_rejects(run, phase, rejects)
        for index, entry_id in enumerate(entry_ids, 1):
            if self._stop_requested(run):
                return
            run.touched.add(entry_id)
            await self._isolated(run, phase, entry_id, self._upload_entry(run, entry_id))
            self._report_progress(run, phase, index, len(entry_ids))
        logger.info("Upload phase attempted for %d local entries", len(entry_ids))

    async def _download_phase(self, run: _SyncRun) -> None:
        phase = SyncPhase.download
        self._enter_phase(run, phase)
        rejects: list[tuple[str, ParseError]] = []
        try:
            remote_entries = await self._remote_call(
                self.remote.list(run.user_id, on_reject=lambda key, e: rejects.append((key, e)))
            )
        except Exception as e:
            logger.error("Could not list remote entries for %s: %s", run.user_id, e)
            run.fail(None, phase, e)
            return
        self._record_rejects(run, phase, rejects)
        for index, remote in enumerate(remote_entries, 1):
            if self._stop_requested(run):
                return
            run.touched.add(remote.entry_id)
            await self._isolated(run, phase, remote.entry_id, self._download_entry(run, remote))
            self._report_progress(run, phase, index, len(remote_entries))
        logger.info("Download phase attempted for %d remote documents", len(remote_entries))

    async def _verify_phase(self, run: _SyncRun) -> None:
        phase = SyncPhase.verify
        self._enter_phase(run, phase)
        entry_ids = sorted(run.touched)
        for index, entry_id in enumerate(entry_ids, 1):
            if self._stop_requested(run):
                return
            if entry_id not in run.failed:
                await self._isolated(run, phase, entry_id, self._verify_entry(run, entry_id))
            self._report_progress(run, phase, index, len(entry_ids))

    # -- Per-entry work --------------------------------------------------------

    async def _upload_entry(self, run: _SyncRun, entry_id: str) -> None:
        local_mtime = await asyncio.to_thread(self.local.mtime, entry_id)
        if local_mtime is None:
            raise NotFound("local entry", entry_id)
        remote = await self._remote_call(self.remote.get(run.user_id, entry_id))
        if remote is not None and local_mtime <= remote.last_modified:
            logger.debug("Upload skip %s: remote is current", entry_id)
            return
        await self._push(run, entry_id, remote)

    async def _push_current(self, run: _SyncRun, entry_id: str) -> None:
        remote = await self._remote_call(self.remote.get(run.user_id, entry_id))
        await self._push(run, entry_id, remote)

    async def _push(self, run: _SyncRun, entry_id: str, remote: RemoteEntry | None) -> None:
        blob = await asyncio.to_thread(self.local.read, entry_id)
        local_mtime = await asyncio.to_thread(self.local.mtime, entry_id)
        _text, image_path = decode(blob)

        image_url = None
        if image_path:
            image_url = remote.remote_image_url if remote is not None else None
            try:
                image_url = await self._push_image(run.user_id, entry_id, image_path, remote)
            except (UploadError, NotFound, ParseError, TimeoutError) as e:
                logger.warning("Image upload failed for %s, syncing text only: %s", entry_id, e)
                run.fail(entry_id, SyncPhase.upload, e, partial=True)

        last_modified = max(local_mtime or 0, self._clock())
        await self._remote_call(
            self.remote.put(run.user_id, entry_id, blob, image_url, last_modified)
        )
        # Both sides now carry the same timestamp, so the next run sees them in sync.
        await asyncio.to_thread(self.local.set_mtime, entry_id, last_modified)
        run.report.uploaded += 1
        logger.info("Uploaded %s (lastModified=%d)", entry_id, last_modified)

    async def _push_image(
        self,
        user_id: str,
        entry_id: str,
        image_path: str,
        remote: RemoteEntry | None,
    ) -> str | None:
        """Upload the entry's image and return its URL.

        Images never change once uploaded, so a remote document that already
        points at the same image path keeps its URL.
        """
        if remote is not None and remote.remote_image_url:
            if decode(remote.content)[1] == image_path:
                return remote.remote_image_url
        if not await asyncio.to_thread(self.local.image_exists, image_path):
            logger.warning("Local image missing for %s: %s", entry_id, image_path)
            return remote.remote_image_url if remote is not None else None
        data = await asyncio.to_thread(self.local.read_image, image_path)
        filename = PurePosixPath(image_path).name
        return await self._remote_call(
            self.remote.upload_image(user_id, entry_id, filename, data)
        )

    async def _download_entry(self, run: _SyncRun, remote: RemoteEntry) -> None:
        entry_id = validate_entry_id(remote.entry_id)
        local_mtime = await asyncio.to_thread(self.local.mtime, entry_id)
        if local_mtime is not None and local_mtime >= remote.last_modified:
            logger.debug("Download skip %s: local is current", entry_id)
            return

        _text, image_path = decode(remote.content)
        if remote.remote_image_url and image_path:
            try:
                await self._pull_image(remote.remote_image_url, image_path)
            except (DownloadError, ParseError, TimeoutError) as e:
                logger.warning("Image download failed for %s, syncing text only: %s", entry_id, e)
                run.fail(entry_id, SyncPhase.download, e, partial=True)

        await asyncio.to_thread(self.local.write, entry_id, remote.content, remote.last_modified)
        run.report.downloaded += 1
        logger.info("Downloaded %s (lastModified=%d)", entry_id, remote.last_modified)

    async def _pull_image(self, url: str, image_path: str) -> None:
        if await asyncio.to_thread(self.local.is_valid_image, image_path):
            logger.debug("Image %s already present and valid", image_path)
            return
        data = await self._remote_call(self.remote.download_image(url))
        await asyncio.to_thread(self.local.write_image, image_path, data)

    async def _verify_entry(self, run: _SyncRun, entry_id: str) -> None:
        local_mtime = await asyncio.to_thread(self.local.mtime, entry_id)
        remote = await self._remote_call(self.remote.get(run.user_id, entry_id))
        if local_mtime is None or remote is None:
            logger.warning(
                "Verify %s: present only %s", entry_id, "remotely" if local_mtime is None else "locally"
            )
            return
        drift = abs(local_mtime - remote.last_modified)
        if drift >= self.config.tolerance_ms:
            logger.warning("Verify %s: timestamps differ by %d ms", entry_id, drift)
            return
        run.report.succeeded += 1

    # -- Internals -------------------------------------------------------------

    def _acquire(self, user_id: str) -> None:
        if user_id in self._running:
            raise SyncInProgressError(user_id)
        self._running.add(user_id)

    def _release(self, user_id: str) -> None:
        self._running.discard(user_id)
        self._cancel_requested.discard(user_id)

    @staticmethod
    def _record_rejects(
        run: _SyncRun, phase: SyncPhase, rejects: list[tuple[str, ParseError]]
    ) -> None:
        """Count unreadable files or documents as processed and failed."""
        for key, err in rejects:
            run.touched.add(key)
            run.fail(key, phase, err)

    def _stop_requested(self, run: _SyncRun) -> bool:
        if run.user_id in self._cancel_requested:
            if not run.report.cancelled:
                logger.info("Sync for %s cancelled", run.user_id)
            run.report.cancelled = True
        return run.report.cancelled

    async def _remote_call(self, awaitable: Awaitable[T]) -> T:
        return await asyncio.wait_for(awaitable, timeout=self.config.timeout_seconds)

    async def _isolated(
        self,
        run: _SyncRun,
        phase: SyncPhase,
        entry_id: str,
        work: Coroutine[Any, Any, None],
    ) -> None:
        """Run one entry's work, turning any failure into a report record."""
        try:
            await self._finish_before_cancel(work)
        except Exception as e:
            logger.error("%s failed for %s: %s", phase.value, entry_id, e)
            run.fail(entry_id, phase, e)

    @staticmethod
    async def _finish_before_cancel(work: Coroutine[Any, Any, None]) -> None:
        """Await ``work``; if the caller is cancelled meanwhile, let it finish first."""
        task = asyncio.ensure_future(work)
        try:
            await asyncio.shield(task)
        except asyncio.CancelledError:
            await asyncio.wait({task})
            if not task.cancelled() and task.exception() is not None:
                logger.warning("Entry interrupted by cancellation failed: %s", task.exception())
            raise

    @staticmethod
    def _enter_phase(run: _SyncRun, phase: SyncPhase) -> None:
        logger.debug("Entering %s phase", phase.value)
        if run.on_phase_change is None:
            return
        try:
            run.on_phase_change(phase)
        except Exception:
            logger.exception("Phase callback failed for %s", phase.value)

    @staticmethod
    def _report_progress(run: _SyncRun, phase: SyncPhase, current: int, total: int) -> None:
        if run.on_progress is None:
            return
        try:
            run.on_progress(phase, current, total)
        except Exception:
            logger.exception("Progress callback failed for %s", phase.value)
