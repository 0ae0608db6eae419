"""Store actions and fetch results exchanged between the cache and its store."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Union

from resource_kit.model import ResourceReference


@dataclass(frozen=True)
class Completed:
    data: Any
    status: Literal["completed"] = field(default="completed", init=False)


@dataclass(frozen=True)
class Failed:
    error: BaseException
    status: Literal["error"] = field(default="error", init=False)


FetchResult = Union[Completed, Failed]


@dataclass(frozen=True)
class ResultEntry:
    reference: ResourceReference
    result: FetchResult


@dataclass(frozen=True)
class ResourceLoadingStarted:
    """Marks every reference as loading and no longer outdated."""

    start_time: float
    references: tuple[ResourceReference, ...]
    type: Literal["Resource loading started"] = field(default="Resource loading started", init=False)


@dataclass(frozen=True)
class ResourceReceived:
    """Commits the results of one load transaction."""

    start_time: float
    finish_time: float
    result_entries: tuple[ResultEntry, ...]
    type: Literal["Resource received"] = field(default="Resource received", init=False)


ResourceAction = Union[ResourceLoadingStarted, ResourceReceived]


__all__ = [
    "Completed",
    "Failed",
    "FetchResult",
    "ResultEntry",
    "ResourceLoadingStarted",
    "ResourceReceived",
    "ResourceAction",
]
