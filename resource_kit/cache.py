"""Composition root and subscription surface of the resource cache."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Iterable, Optional

import structlog

from resource_kit.config import ResourceKitSettings
from resource_kit.exceptions import SchedulerClosedError
from resource_kit.model import ResourceEntry, ResourceReference, ResourceType, ResourceView, should_fetch
from resource_kit.reducer import get_resource_entry, resources_reducer
from resource_kit.scheduler import BatchScheduler
from resource_kit.store import InMemoryStore, Reducer, Store, combine_reducers
from resource_kit.transaction import StateSelector, TransactionHandler, run_load_transaction, run_transaction


logger = structlog.get_logger(__name__)


ViewListener = Callable[[ResourceView], None]


def _identity(state: Any) -> Any:
    return state


class ResourceSubscription:
    """Interest in one reference.

    While open, every store change re-reads the entry. When the entry turns
    stale and idle the reference is queued with the scheduler on the next loop
    iteration, never from inside the read or the store notification.
    """

    def __init__(
        self,
        cache: "ResourceCache",
        reference: ResourceReference,
        listener: Optional[ViewListener] = None,
    ) -> None:
        self._cache = cache
        self._reference = reference
        self._listener = listener
        self._loop = asyncio.get_running_loop()
        self._entry = cache.get_entry(reference)
        self._flags: Optional[tuple[bool, bool]] = None
        self._closed = False
        self._unsubscribe = cache.store.subscribe(self._on_store_change)
        self._check_staleness()

    @property
    def reference(self) -> ResourceReference:
        return self._reference

    @property
    def current(self) -> ResourceView:
        return ResourceView.from_entry(self._reference, self._entry)

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._unsubscribe()

    def _on_store_change(self) -> None:
        if self._closed:
            return
        entry = self._cache.get_entry(self._reference)
        if entry is self._entry:
            return
        self._entry = entry
        self._check_staleness()
        if self._listener is not None:
            self._listener(self.current)

    def _check_staleness(self) -> None:
        flags = (self._entry.loading, self._entry.outdated)
        if flags == self._flags:
            return
        self._flags = flags
        if should_fetch(self._entry) and self._reference.type.load is not None:
            self._loop.call_soon(self._trigger)

    def _trigger(self) -> None:
        if self._closed or self._cache.scheduler.closed:
            return
        # The entry may have been refreshed since the check was queued.
        if should_fetch(self._cache.get_entry(self._reference)):
            self._cache.scheduler.request(self._reference)

    def __enter__(self) -> "ResourceSubscription":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


class ResourceCache:
    """Ties a store, its resources slice and a batch scheduler together.

    Args:
        store: Any object with ``get_state``, ``dispatch`` and ``subscribe``.
        select_state: Selects the resources slice from the store state.
            Defaults to the whole state.
        settings: Settings override for the default scheduler.
        scheduler: Pre-built scheduler; must share ``store`` and ``select_state``.
    """

    def __init__(
        self,
        store: Store,
        select_state: Optional[StateSelector] = None,
        *,
        settings: Optional[ResourceKitSettings] = None,
        scheduler: Optional[BatchScheduler] = None,
    ) -> None:
        self.store = store
        self.select_state: StateSelector = select_state or _identity
        self.scheduler = scheduler or BatchScheduler(store, self.select_state, settings=settings)

    def get_entry(self, reference: ResourceReference) -> ResourceEntry:
        return get_resource_entry(self.select_state(self.store.get_state()), reference)

    def get_view(self, reference: ResourceReference) -> ResourceView:
        return ResourceView.from_entry(reference, self.get_entry(reference))

    def subscribe(
        self,
        reference: ResourceReference,
        listener: Optional[ViewListener] = None,
    ) -> ResourceSubscription:
        return ResourceSubscription(self, reference, listener)

    async def fetch(self, reference: ResourceReference) -> ResourceView:
        """Wait until ``reference`` is neither loading nor outdated and return its view.

        A failed load also settles the entry; inspect ``view.error``. References
        whose type has no load function are returned as they are.

        Raises:
            SchedulerClosedError: The entry still needs a load and the scheduler
                has been closed.
        """
        if self.scheduler.closed and reference.type.load is not None and should_fetch(self.get_entry(reference)):
            raise SchedulerClosedError(f"Scheduler is closed; cannot fetch {reference}")
        settled: asyncio.Future[ResourceView] = asyncio.get_running_loop().create_future()

        def on_change(view: ResourceView) -> None:
            if not view.loading and not view.outdated and not settled.done():
                settled.set_result(view)

        with self.subscribe(reference, on_change) as subscription:
            view = subscription.current
            if (not view.loading and not view.outdated) or reference.type.load is None:
                return view
            return await settled

    async def load(self, resource_type: ResourceType, keys: Iterable[str]) -> None:
        """Load the stale subset of ``keys`` right away, bypassing the batch window."""
        await run_load_transaction(self.store, self.select_state, resource_type, keys)

    async def transaction(
        self,
        references: Iterable[ResourceReference],
        handler: TransactionHandler,
    ) -> None:
        """Run ``handler`` as a load transaction for ``references``, stale or not."""
        await run_transaction(self.store, references, handler)

    async def wait_idle(self) -> None:
        await self.scheduler.wait_idle()

    async def aclose(self) -> None:
        await self.scheduler.aclose()


def create_cache(
    *,
    settings: Optional[ResourceKitSettings] = None,
    **extra_reducers: Reducer,
) -> ResourceCache:
    """Build a cache over a fresh :class:`InMemoryStore`.

    The store state is a dict with the resources slice under ``"resources"``
    plus one slice per extra reducer.
    """
    reducer = combine_reducers(resources=resources_reducer, **extra_reducers)
    store = InMemoryStore(reducer)
    return ResourceCache(store, lambda state: state["resources"], settings=settings)


__all__ = ["ResourceCache", "ResourceSubscription", "ViewListener", "create_cache"]
