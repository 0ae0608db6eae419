"""Batching scheduler: coalesce stale references of one resource type into one load call."""

from __future__ import annotations

import asyncio
from typing import Dict, List, Optional, Set

import structlog

from resource_kit.config import ResourceKitSettings, get_settings
from resource_kit.exceptions import ResourceTypeConfigError, SchedulerClosedError
from resource_kit.model import ResourceReference, ResourceType
from resource_kit.store import Store
from resource_kit.transaction import StateSelector, run_load_transaction


logger = structlog.get_logger(__name__)


class _Batch:
    """Keys of one resource type waiting for their flush timer."""

    __slots__ = ("resource_type", "keys", "timer", "flushed")

    def __init__(self, resource_type: ResourceType) -> None:
        self.resource_type = resource_type
        # dict as an insertion-ordered set
        self.keys: Dict[str, None] = {}
        self.timer: Optional[asyncio.TimerHandle] = None
        self.flushed = False

    def is_full(self, limit: Optional[int]) -> bool:
        return limit is not None and len(self.keys) >= limit


class BatchScheduler:
    """Groups load requests per resource type and hands each group to the transaction runner.

    Open batches are keyed by resource type instance. A batch is flushed
    ``window_seconds`` after its first key arrived; once it holds
    ``max_batch_size`` keys, the next key opens a new batch with its own timer.

    Args:
        store: Store holding the resources slice.
        select_state: Selects the resources slice from the store state.
        window_seconds: Flush delay, defaults to ``batch_window_seconds`` from settings.
        settings: Settings override, mostly for tests.
    """

    def __init__(
        self,
        store: Store,
        select_state: StateSelector,
        *,
        window_seconds: float | None = None,
        settings: ResourceKitSettings | None = None,
    ) -> None:
        settings = settings or get_settings()
        if window_seconds is None:
            window_seconds = settings.batch_window_seconds
        if window_seconds <= 0:
            raise ResourceTypeConfigError("Batch window must be a positive number of seconds")
        self._store = store
        self._select_state = select_state
        self._window_seconds = window_seconds
        self._default_max_batch_size = settings.default_max_batch_size
        self._pending: Dict[ResourceType, _Batch] = {}
        self._open: List[_Batch] = []
        self._tasks: Set[asyncio.Task[None]] = set()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def window_seconds(self) -> float:
        return self._window_seconds

    def _ensure_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None or self._loop.is_closed():
            self._loop = asyncio.get_running_loop()
        return self._loop

    def max_batch_size(self, resource_type: ResourceType) -> Optional[int]:
        return resource_type.max_batch_size or self._default_max_batch_size

    def request(self, reference: ResourceReference) -> None:
        """Queue ``reference`` for loading. Must be called from the event loop thread."""
        if self._closed:
            raise SchedulerClosedError(f"Scheduler is closed; cannot load {reference}")
        resource_type = reference.type
        if resource_type.load is None:
            logger.debug("scheduler.request_ignored", reference=str(reference), reason="no_loader")
            return
        if not resource_type.batch:
            self._start(resource_type, [reference.key])
            return

        batch = self._pending.get(resource_type)
        if batch is not None and (
            reference.key in batch.keys or not batch.is_full(self.max_batch_size(resource_type))
        ):
            batch.keys[reference.key] = None
            return

        batch = _Batch(resource_type)
        batch.keys[reference.key] = None
        self._pending[resource_type] = batch
        self._open.append(batch)
        batch.timer = self._ensure_loop().call_later(self._window_seconds, self._flush_batch, batch)

    def _flush_batch(self, batch: _Batch) -> None:
        if batch.flushed:
            return
        batch.flushed = True
        if batch.timer is not None:
            batch.timer.cancel()
        # A full batch may already have been replaced by a newer one.
        if self._pending.get(batch.resource_type) is batch:
            del self._pending[batch.resource_type]
        self._open.remove(batch)
        logger.debug(
            "scheduler.flush",
            type_name=batch.resource_type.type_name,
            keys=len(batch.keys),
        )
        self._start(batch.resource_type, list(batch.keys))

    def _start(self, resource_type: ResourceType, keys: List[str]) -> None:
        task = self._ensure_loop().create_task(
            run_load_transaction(self._store, self._select_state, resource_type, keys)
        )
        self._tasks.add(task)
        task.add_done_callback(self._on_transaction_done)

    def _on_transaction_done(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            # Already committed as entry errors; surface it for logging only.
            logger.error("transaction.failed", error=str(exc), exc_info=exc)

    def flush(self) -> None:
        """Flush every open batch now instead of waiting for its timer."""
        for batch in list(self._open):
            self._flush_batch(batch)

    @property
    def pending_keys(self) -> Dict[str, List[str]]:
        """Keys per type name that are waiting for a flush."""
        pending: Dict[str, List[str]] = {}
        for batch in self._open:
            pending.setdefault(batch.resource_type.type_name, []).extend(batch.keys)
        return pending

    async def wait_idle(self) -> None:
        """Wait until no batch is open and no transaction is in flight."""
        while True:
            # Let callbacks queued with call_soon enqueue their requests first.
            await asyncio.sleep(0)
            if self._tasks:
                await asyncio.gather(*list(self._tasks), return_exceptions=True)
                continue
            if self._open:
                await asyncio.sleep(self._window_seconds)
                continue
            return

    async def aclose(self) -> None:
        self._closed = True
        self.flush()
        await self.wait_idle()


__all__ = ["BatchScheduler"]
