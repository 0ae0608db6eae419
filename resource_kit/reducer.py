"""Store backend for resource entries.

The resources slice is a two-level mapping ``type_name -> key -> ResourceEntry``.
Mappings are never mutated in place: each action copies only the type maps it
touches, so untouched entries and slices keep their identity.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any, Mapping, Optional

from resource_kit.actions import Completed, ResourceLoadingStarted, ResourceReceived
from resource_kit.model import FRESH_RESOURCE, NULL_RESOURCE, ResourceEntry, ResourceReference


ResourcesState = Mapping[str, Mapping[str, ResourceEntry]]

EMPTY_STATE: ResourcesState = {}


class _StateWriter:
    """Copy-on-write helper over a resources state mapping."""

    def __init__(self, state: ResourcesState) -> None:
        self._base = state
        self._types: dict[str, dict[str, ResourceEntry]] = {}

    def get(self, reference: ResourceReference) -> Optional[ResourceEntry]:
        type_name, key = reference.map_key
        if type_name in self._types:
            return self._types[type_name].get(key)
        return self._base.get(type_name, {}).get(key)

    def set(self, reference: ResourceReference, entry: ResourceEntry) -> None:
        type_name, key = reference.map_key
        if type_name not in self._types:
            self._types[type_name] = dict(self._base.get(type_name, {}))
        self._types[type_name][key] = entry

    def result(self) -> ResourcesState:
        if not self._types:
            return self._base
        merged = dict(self._base)
        merged.update(self._types)
        return merged


def resources_reducer(state: Optional[ResourcesState], action: Any) -> ResourcesState:
    if state is None:
        state = EMPTY_STATE
    if isinstance(action, ResourceLoadingStarted):
        writer = _StateWriter(state)
        for reference in action.references:
            current = writer.get(reference) or NULL_RESOURCE
            writer.set(reference, replace(current, loading=True, outdated=False))
        return writer.result()
    if isinstance(action, ResourceReceived):
        writer = _StateWriter(state)
        for result_entry in action.result_entries:
            current = writer.get(result_entry.reference) or FRESH_RESOURCE
            result = result_entry.result
            if isinstance(result, Completed):
                entry = replace(current, loading=False, error=None, data=result.data)
            else:
                entry = replace(current, loading=False, error=result.error)
            writer.set(result_entry.reference, entry)
        return writer.result()
    return state


def get_resource_entry(state: Optional[ResourcesState], reference: ResourceReference) -> ResourceEntry:
    """Select the entry for ``reference``; unknown references read as NULL_RESOURCE."""
    if not state:
        return NULL_RESOURCE
    type_name, key = reference.map_key
    return state.get(type_name, {}).get(key) or NULL_RESOURCE


__all__ = ["ResourcesState", "EMPTY_STATE", "resources_reducer", "get_resource_entry"]
