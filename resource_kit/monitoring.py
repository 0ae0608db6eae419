"""Monitoring helpers for structured logging and timing."""

from __future__ import annotations

import time
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from functools import wraps
from typing import Any, Awaitable, Callable, Iterator, TypeVar

import structlog


transaction_id: ContextVar[str] = ContextVar("transaction_id", default="")


FuncType = TypeVar("FuncType", bound=Callable[..., Awaitable[Any]])


def new_transaction_id() -> str:
    return f"tx_{time.time_ns()}_{uuid.uuid4().hex[:6]}"


@contextmanager
def transaction_scope(tx_id: str | None = None) -> Iterator[str]:
    """Bind a transaction id to the context so every log line inside carries it."""
    tx_id = tx_id or new_transaction_id()
    token = transaction_id.set(tx_id)
    try:
        with structlog.contextvars.bound_contextvars(transaction_id=tx_id):
            yield tx_id
    finally:
        transaction_id.reset(token)


def timed(func: FuncType) -> FuncType:
    @wraps(func)
    async def wrapper(*args, **kwargs):
        logger = structlog.get_logger(getattr(func, "__module__", None) or __name__)
        name = getattr(func, "__qualname__", type(func).__name__)
        started = time.perf_counter()
        try:
            result = await func(*args, **kwargs)
            duration = time.perf_counter() - started
            logger.debug("function.complete", function=name, duration_seconds=duration)
            return result
        except Exception as exc:
            duration = time.perf_counter() - started
            logger.warning(
                "function.error",
                function=name,
                duration_seconds=duration,
                error=str(exc),
            )
            raise

    return wrapper  # type: ignore[return-value]
