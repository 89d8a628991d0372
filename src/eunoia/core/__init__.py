"""Records, storage and time for 4Eunoia."""

from eunoia.core.clock import Clock, FixedClock, SystemClock
from eunoia.core.storage import (
    KeyValueStore,
    StorageContext,
    clear_user_data,
    load_list,
    save_list,
)

__all__ = [
    "Clock",
    "FixedClock",
    "KeyValueStore",
    "StorageContext",
    "SystemClock",
    "clear_user_data",
    "load_list",
    "save_list",
]
