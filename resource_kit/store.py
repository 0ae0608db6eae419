"""Minimal observable state container.

The cache only needs ``get_state``, ``dispatch`` and ``subscribe``; any object
with those three methods can stand in for :class:`InMemoryStore`.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Protocol

import structlog

from resource_kit.exceptions import StoreDispatchError


logger = structlog.get_logger(__name__)


Reducer = Callable[[Any, Any], Any]
Listener = Callable[[], None]
Unsubscribe = Callable[[], None]


class Store(Protocol):
    def get_state(self) -> Any: ...

    def dispatch(self, action: Any) -> Any: ...

    def subscribe(self, listener: Listener) -> Unsubscribe: ...


class _InitAction:
    type = "@@resource_kit/INIT"


class InMemoryStore:
    """Applies dispatched actions one at a time, in submission order.

    Listeners run after every dispatch, outside of the reducer. A listener may
    dispatch again; a reducer may not. A listener that raises is logged and
    skipped so the remaining listeners and the dispatcher are unaffected.
    """

    def __init__(self, reducer: Reducer, initial_state: Any = None) -> None:
        self._reducer = reducer
        self._listeners: List[Listener] = []
        self._reducing = False
        self._state = self._reduce(initial_state, _InitAction())

    def _reduce(self, state: Any, action: Any) -> Any:
        if self._reducing:
            raise StoreDispatchError(f"Cannot dispatch {type(action).__name__} while a reducer is running")
        self._reducing = True
        try:
            return self._reducer(state, action)
        finally:
            self._reducing = False

    def get_state(self) -> Any:
        return self._state

    def dispatch(self, action: Any) -> Any:
        self._state = self._reduce(self._state, action)
        # Snapshot so listeners can unsubscribe while being notified.
        for listener in list(self._listeners):
            try:
                listener()
            except Exception:
                logger.exception(
                    "store.listener_failed",
                    listener=getattr(listener, "__qualname__", type(listener).__name__),
                    action=type(action).__name__,
                )
        return action

    def subscribe(self, listener: Listener) -> Unsubscribe:
        self._listeners.append(listener)
        subscribed = True

        def unsubscribe() -> None:
            nonlocal subscribed
            if not subscribed:
                return
            subscribed = False
            self._listeners.remove(listener)

        return unsubscribe


def combine_reducers(**reducers: Reducer) -> Reducer:
    """Build a root reducer whose state is a dict with one slice per keyword."""

    def combined(state: Optional[Dict[str, Any]], action: Any) -> Dict[str, Any]:
        previous = state or {}
        changed = state is None
        next_state: Dict[str, Any] = {}
        for name, reducer in reducers.items():
            before = previous.get(name)
            after = reducer(before, action)
            next_state[name] = after
            if after is not before:
                changed = True
        return next_state if changed else previous

    return combined


__all__ = ["Store", "InMemoryStore", "Reducer", "Listener", "Unsubscribe", "combine_reducers"]
