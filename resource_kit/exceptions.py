"""Common exceptions for resource-kit."""

from __future__ import annotations

from typing import Any


class ResourceKitError(RuntimeError):
    """Custom resource-kit error for clearer exception handling."""


class MissingResultError(ResourceKitError):
    """Recorded when a load function finishes without a result for a requested reference."""

    def __init__(self, reference: Any):
        super().__init__(f"The load function did not return a result for {reference}.")
        self.reference = reference


class ResourceTypeConfigError(ResourceKitError, ValueError):
    """Error raised when a resource type is constructed with invalid load options."""

    pass


class SchedulerClosedError(ResourceKitError):
    """Error raised when a closed scheduler is asked to load more resources."""

    pass


class StoreDispatchError(ResourceKitError):
    """Error raised when an action is dispatched while a reducer is running."""

    pass
