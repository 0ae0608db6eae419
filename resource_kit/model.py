"""Resource types, references and per-reference entry state."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Sequence

from pydantic import BaseModel, Field, ValidationError

from resource_kit.exceptions import ResourceTypeConfigError


LoadFunction = Callable[[list[str], Any], Awaitable[Optional[Sequence[Any]]]]


class ResourceOptions(BaseModel):
    """Load configuration attached to a resource type.

    A type without ``load`` is never fetched; it can only be populated as side
    data from another type's transaction.
    """

    load: Optional[LoadFunction] = None
    batch: bool = True
    max_batch_size: Optional[int] = Field(default=None, ge=1)

    model_config = {"frozen": True, "arbitrary_types_allowed": True}


class ResourceType:
    """A kind of resource managed by the cache, e.g. ``Task`` or ``Project``.

    Create one instance per kind at import time and share it. Two types with the
    same ``type_name`` are still different types; references compare by the
    type instance.
    """

    __slots__ = ("_type_name", "_options")

    def __init__(
        self,
        type_name: str,
        load: Optional[LoadFunction] = None,
        *,
        batch: bool = True,
        max_batch_size: Optional[int] = None,
    ) -> None:
        if not type_name:
            raise ResourceTypeConfigError("Resource type name must not be empty")
        try:
            options = ResourceOptions(load=load, batch=batch, max_batch_size=max_batch_size)
        except ValidationError as exc:
            raise ResourceTypeConfigError(f"Invalid options for resource type {type_name!r}: {exc}") from exc
        self._type_name = type_name
        self._options = options

    @property
    def type_name(self) -> str:
        return self._type_name

    @property
    def options(self) -> ResourceOptions:
        return self._options

    @property
    def load(self) -> Optional[LoadFunction]:
        return self._options.load

    @property
    def batch(self) -> bool:
        return self._options.batch

    @property
    def max_batch_size(self) -> Optional[int]:
        return self._options.max_batch_size

    def ref(self, key: str) -> ResourceReference:
        return ResourceReference(self, key)

    def __repr__(self) -> str:
        return f"ResourceType({self._type_name!r})"


@dataclass(frozen=True)
class ResourceReference:
    """Identifies one resource: a type instance plus a string key."""

    type: ResourceType
    key: str

    @property
    def type_name(self) -> str:
        return self.type.type_name

    @property
    def map_key(self) -> tuple[str, str]:
        return (self.type.type_name, self.key)

    def __str__(self) -> str:
        return f"{self.type.type_name}:{self.key}"


@dataclass(frozen=True)
class ResourceEntry:
    loading: bool = False
    outdated: bool = True
    error: Optional[BaseException] = None
    data: Any = None


# Never fetched.
NULL_RESOURCE = ResourceEntry(loading=False, outdated=True)

# Received for the first time without being fetched, e.g. as side data of
# another resource's transaction.
FRESH_RESOURCE = ResourceEntry(loading=False, outdated=False)


@dataclass(frozen=True)
class ResourceView:
    """Entry state handed to subscribers, together with the reference it belongs to."""

    reference: ResourceReference
    loading: bool
    outdated: bool
    error: Optional[BaseException]
    data: Any

    @classmethod
    def from_entry(cls, reference: ResourceReference, entry: ResourceEntry) -> "ResourceView":
        return cls(
            reference=reference,
            loading=entry.loading,
            outdated=entry.outdated,
            error=entry.error,
            data=entry.data,
        )

    @property
    def entry(self) -> ResourceEntry:
        return ResourceEntry(loading=self.loading, outdated=self.outdated, error=self.error, data=self.data)


def should_fetch(entry: ResourceEntry | ResourceView) -> bool:
    """Return True if the entry needs new data and no fetch is in flight."""
    return entry.outdated and not entry.loading


__all__ = [
    "LoadFunction",
    "ResourceOptions",
    "ResourceType",
    "ResourceReference",
    "ResourceEntry",
    "ResourceView",
    "NULL_RESOURCE",
    "FRESH_RESOURCE",
    "should_fetch",
]
