"""Load transactions: run a load function and commit everything it produced at once.

A transaction collects results for any number of references, including ones
nobody asked for, and commits them with a single ``ResourceReceived`` dispatch.
Readers therefore never see half of a transaction applied.
"""

from __future__ import annotations

import time
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional, Sequence

import structlog

from resource_kit.actions import (
    Completed,
    Failed,
    FetchResult,
    ResourceLoadingStarted,
    ResourceReceived,
    ResultEntry,
)
from resource_kit.exceptions import MissingResultError, ResourceKitError
from resource_kit.model import LoadFunction, ResourceReference, ResourceType, should_fetch
from resource_kit.monitoring import timed, transaction_scope
from resource_kit.reducer import ResourcesState, get_resource_entry
from resource_kit.store import Store


logger = structlog.get_logger(__name__)


StateSelector = Callable[[Any], ResourcesState]
TransactionHandler = Callable[["LoadTransaction"], Awaitable[None]]


class LoadTransaction:
    """Result accumulator handed to load functions.

    ``receive`` and ``error`` accept any reference. The last call for a
    reference wins. Both raise once the transaction has been committed.
    """

    def __init__(self) -> None:
        self._results: Dict[ResourceReference, FetchResult] = {}
        self._committed = False

    def receive(self, reference: ResourceReference, data: Any) -> None:
        self._put(reference, Completed(data))

    def error(self, reference: ResourceReference, error: BaseException) -> None:
        self._put(reference, Failed(error))

    def has_result(self, reference: ResourceReference) -> bool:
        return reference in self._results

    @property
    def committed(self) -> bool:
        return self._committed

    def _put(self, reference: ResourceReference, result: FetchResult) -> None:
        if self._committed:
            raise ResourceKitError(f"Transaction already committed; cannot record a result for {reference}")
        # Re-insert so the commit order follows the last write.
        self._results.pop(reference, None)
        self._results[reference] = result

    def _commit(self) -> tuple[ResultEntry, ...]:
        self._committed = True
        return tuple(ResultEntry(reference, result) for reference, result in self._results.items())


async def run_transaction(
    store: Store,
    references: Iterable[ResourceReference],
    handler: TransactionHandler,
) -> None:
    """Mark ``references`` as loading, run ``handler`` and commit its results.

    Every reference in ``references`` ends the transaction with a result: one
    recorded by the handler, the exception the handler raised, or a
    :class:`MissingResultError`. The commit happens even when the handler
    raises; the exception is re-raised afterwards.
    """
    requested = tuple(dict.fromkeys(references))
    transaction = LoadTransaction()
    start_time = time.time()

    with transaction_scope():
        failure: Optional[BaseException] = None
        try:
            # Synchronous with the caller's staleness check: no suspension point
            # between deciding to load and flagging the entries as loading.
            store.dispatch(ResourceLoadingStarted(start_time=start_time, references=requested))
            logger.debug("transaction.started", references=[str(ref) for ref in requested])
            await handler(transaction)
        except BaseException as exc:
            failure = exc
            raise
        finally:
            missing = [ref for ref in requested if not transaction.has_result(ref)]
            for reference in missing:
                transaction.error(reference, failure if failure is not None else MissingResultError(reference))
            if missing and failure is None:
                logger.warning("transaction.missing_results", references=[str(ref) for ref in missing])

            result_entries = transaction._commit()
            finish_time = time.time()
            store.dispatch(
                ResourceReceived(
                    start_time=start_time,
                    finish_time=finish_time,
                    result_entries=result_entries,
                )
            )
            logger.info(
                "transaction.committed",
                requested=len(requested),
                results=len(result_entries),
                failed=failure is not None,
                duration_seconds=finish_time - start_time,
            )


async def run_load_transaction(
    store: Store,
    select_state: StateSelector,
    resource_type: ResourceType,
    keys: Iterable[str],
    load: Optional[LoadFunction] = None,
) -> None:
    """Load the still-stale subset of ``keys`` for ``resource_type`` in one transaction.

    ``load`` defaults to the resource type's own load function. It is called
    with the surviving keys and the transaction, and may return a sequence
    aligned with those keys. Values recorded through ``receive``/``error`` take
    precedence over the returned sequence.
    """
    load = load or resource_type.load
    if load is None:
        logger.debug("transaction.skipped", type_name=resource_type.type_name, reason="no_loader")
        return

    state = select_state(store.get_state())
    pending = [
        key for key in dict.fromkeys(keys) if should_fetch(get_resource_entry(state, resource_type.ref(key)))
    ]
    if not pending:
        logger.debug("transaction.skipped", type_name=resource_type.type_name, reason="nothing_stale")
        return
    references = [resource_type.ref(key) for key in pending]

    async def handler(transaction: LoadTransaction) -> None:
        results: Optional[Sequence[Any]] = await timed(load)(list(pending), transaction)
        if results is None:
            return
        results = list(results)
        if len(results) > len(references):
            logger.warning(
                "transaction.extra_results",
                type_name=resource_type.type_name,
                expected=len(references),
                received=len(results),
            )
        for reference, value in zip(references, results):
            if not transaction.has_result(reference):
                transaction.receive(reference, value)

    await run_transaction(store, references, handler)


__all__ = [
    "LoadTransaction",
    "StateSelector",
    "TransactionHandler",
    "run_transaction",
    "run_load_transaction",
]
