"""Offline-first point store with best-effort remote sync.

Local writes happen synchronously on the caller; every remote call is
queued on a per-store background worker and never blocks the caller. The
remote copy wins whenever both sides hold the same point id, and merged
results are written back to the local file as a cache for the next read.
Reads are therefore eventually consistent.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Protocol, Set

from ..exceptions import RemoteStoreError
from ..schemas import PointRecord
from ..time_utils import utc_now
from .local import LocalPointStore

logger = logging.getLogger(__name__)


class RemotePointStore(Protocol):
    async def insert(self, record: PointRecord) -> None: ...

    async def select_all(self, match_id: Optional[str] = None) -> List[PointRecord]: ...

    async def delete_by_id(self, point_id: str) -> None: ...

    async def delete_all(self, match_id: Optional[str] = None) -> None: ...


@dataclass(frozen=True)
class SyncStatus:
    operation: str
    ok: bool
    detail: Optional[str] = None
    finished_at: datetime = field(default_factory=utc_now)


StatusListener = Callable[[SyncStatus], None]
Job = Callable[[], Awaitable[None]]


def merge_points(
    local: Iterable[PointRecord], remote: Iterable[PointRecord]
) -> List[PointRecord]:
    """Merge two snapshots of the same log, newest first.

    Every id from either side is kept. When both sides hold an id the
    remote record replaces the local one regardless of timestamps.
    """

    merged: Dict[str, PointRecord] = {}
    for record in local:
        merged[record.id] = record
    for record in remote:
        merged[record.id] = record
    return sorted(merged.values(), key=lambda r: r.timestamp, reverse=True)


class RemoteSyncWorker:
    """Single consumer draining a bounded queue of remote jobs.

    Best effort only: jobs are never retried, a full queue drops the new
    job, and a job submitted outside a running event loop is dropped too.
    The consumer task is created lazily on the loop that submits first.
    """

    def __init__(self, maxsize: int = 100) -> None:
        self.maxsize = maxsize
        self.last_status: Optional[SyncStatus] = None
        self._listeners: List[StatusListener] = []
        self._queue: Optional[asyncio.Queue] = None
        self._task: Optional[asyncio.Task] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def subscribe(self, listener: StatusListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def submit(self, operation: str, job: Job) -> bool:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop; dropping remote %s", operation)
            self._publish(SyncStatus(operation, False, "no running event loop"))
            return False

        self._ensure_started(loop)
        assert self._queue is not None  # for type checkers
        try:
            self._queue.put_nowait((operation, job))
        except asyncio.QueueFull:
            logger.warning("Remote sync queue is full; dropping remote %s", operation)
            self._publish(SyncStatus(operation, False, "sync queue full"))
            return False
        return True

    async def drain(self) -> None:
        """Wait until every queued job has finished."""

        if self._queue is not None and self._loop is asyncio.get_running_loop():
            await self._queue.join()

    async def aclose(self) -> None:
        task, self._task = self._task, None
        self._queue = None
        self._loop = None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    def _ensure_started(self, loop: asyncio.AbstractEventLoop) -> None:
        if self._loop is loop and self._task is not None and not self._task.done():
            return
        self._loop = loop
        self._queue = asyncio.Queue(maxsize=self.maxsize)
        self._task = loop.create_task(self._run(self._queue))

    async def _run(self, queue: asyncio.Queue) -> None:
        while True:
            operation, job = await queue.get()
            try:
                await job()
            except RemoteStoreError as exc:
                logger.warning("Remote %s failed: %s", operation, exc)
                self._publish(SyncStatus(operation, False, str(exc)))
            except Exception as exc:
                logger.error(
                    "Unexpected error during remote %s",
                    operation,
                    exc_info=(type(exc), exc, exc.__traceback__),
                )
                self._publish(SyncStatus(operation, False, str(exc)))
            else:
                self._publish(SyncStatus(operation, True))
            finally:
                queue.task_done()

    def _publish(self, status: SyncStatus) -> None:
        self.last_status = status
        for listener in list(self._listeners):
            try:
                listener(status)
            except Exception as exc:
                logger.error(
                    "Sync status listener failed",
                    exc_info=(type(exc), exc, exc.__traceback__),
                )


class SyncingPointStore:
    """Point store used by the tracker.

    Without a remote this is exactly the local store. With one, local
    behaviour is unchanged and remote writes, deletes and merges are queued
    on ``worker``. Merges only ever pull the rows of the active match, set
    with :meth:`use_match`; without an active match nothing is pulled.
    """

    def __init__(
        self,
        local: LocalPointStore,
        remote: Optional[RemotePointStore] = None,
        worker: Optional[RemoteSyncWorker] = None,
    ) -> None:
        self.local = local
        self.remote = remote
        self.worker = worker or RemoteSyncWorker()
        self.match_id: Optional[str] = None
        # Ids deleted locally whose remote delete has not finished yet.
        self._pending_deletes: Set[str] = set()

    @property
    def remote_enabled(self) -> bool:
        return self.remote is not None

    def use_match(self, match_id: Optional[str]) -> None:
        self.match_id = match_id

    def save(self, record: PointRecord) -> None:
        self.local.append(record)
        if self.remote is not None:
            remote = self.remote
            self.worker.submit("insert", lambda: remote.insert(record))

    def load_all(self) -> List[PointRecord]:
        snapshot = self.local.load_all()
        self.schedule_merge()
        return snapshot

    def schedule_merge(self) -> bool:
        """Queue a background merge of the active match's remote rows."""

        if self.remote is None or self.match_id is None:
            return False
        match_id = self.match_id
        return self.worker.submit("merge", lambda: self._merge_from_remote(match_id))

    def remove(self, point_id: str) -> None:
        self.local.delete_by_id(point_id)
        self._delete_remote(point_id)

    def remove_last(self) -> Optional[PointRecord]:
        last = self.local.delete_last()
        if last is not None:
            self._delete_remote(last.id)
        return last

    def clear(self, *, remote: bool = True) -> None:
        """Empty the log.

        The remote rows of the active match are deleted too (every row when
        no match is active); ``remote=False`` keeps the remote copy untouched.
        """

        if remote and self.remote is not None:
            client, match_id = self.remote, self.match_id
            self.worker.submit("clear", lambda: client.delete_all(match_id))
        self.local.clear()

    async def refresh(self) -> List[PointRecord]:
        """Merge the active match's remote rows into the local log now.

        Returns the merged log, newest first. Falls back to the local log
        when there is no remote or no active match, or the remote fails.
        """

        if self.remote is None or self.match_id is None:
            return self.local.load_all()
        try:
            return await self._merge_from_remote(self.match_id)
        except RemoteStoreError as exc:
            logger.warning("Error loading remote points, using local: %s", exc)
            return self.local.load_all()

    def _delete_remote(self, point_id: str) -> None:
        if self.remote is None:
            return
        remote = self.remote
        self._pending_deletes.add(point_id)

        async def job() -> None:
            try:
                await remote.delete_by_id(point_id)
            finally:
                self._pending_deletes.discard(point_id)

        if not self.worker.submit("delete", job):
            self._pending_deletes.discard(point_id)

    async def _merge_from_remote(self, match_id: str) -> List[PointRecord]:
        assert self.remote is not None  # for type checkers
        fetched = await self.remote.select_all(match_id)
        if self.match_id != match_id:
            logger.info("Active match changed; discarding merge for %s", match_id)
            return self.local.load_all()
        remote_records = [
            r
            for r in fetched
            if r.match_id == match_id and r.id not in self._pending_deletes
        ]
        merged = merge_points(self.local.load_all(), remote_records)
        self._write_cache(merged)
        return merged

    def _write_cache(self, records: List[PointRecord]) -> None:
        # The file stays in logging order so delete_last keeps removing the newest point.
        self.local.replace_all(sorted(records, key=lambda r: r.timestamp))
