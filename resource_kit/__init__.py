"""resource-kit package exports."""

from resource_kit.actions import (
    Completed,
    Failed,
    ResourceLoadingStarted,
    ResourceReceived,
    ResultEntry,
)
from resource_kit.cache import ResourceCache, ResourceSubscription, create_cache
from resource_kit.config import get_settings
from resource_kit.exceptions import (
    MissingResultError,
    ResourceKitError,
    ResourceTypeConfigError,
    SchedulerClosedError,
    StoreDispatchError,
)
from resource_kit.logging import configure_logging
from resource_kit.model import (
    FRESH_RESOURCE,
    NULL_RESOURCE,
    ResourceEntry,
    ResourceReference,
    ResourceType,
    ResourceView,
    should_fetch,
)
from resource_kit.reducer import get_resource_entry, resources_reducer
from resource_kit.scheduler import BatchScheduler
from resource_kit.store import InMemoryStore, combine_reducers
from resource_kit.transaction import LoadTransaction, run_load_transaction, run_transaction

__all__ = [
    "get_settings",
    "configure_logging",
    "ResourceType",
    "ResourceReference",
    "ResourceEntry",
    "ResourceView",
    "NULL_RESOURCE",
    "FRESH_RESOURCE",
    "should_fetch",
    "Completed",
    "Failed",
    "ResultEntry",
    "ResourceLoadingStarted",
    "ResourceReceived",
    "resources_reducer",
    "get_resource_entry",
    "InMemoryStore",
    "combine_reducers",
    "LoadTransaction",
    "run_transaction",
    "run_load_transaction",
    "BatchScheduler",
    "ResourceCache",
    "ResourceSubscription",
    "create_cache",
    "ResourceKitError",
    "MissingResultError",
    "ResourceTypeConfigError",
    "SchedulerClosedError",
    "StoreDispatchError",
]
