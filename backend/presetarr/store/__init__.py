"""
Live configuration stores.
"""
from presetarr.store.base import ConfigChange, ConfigStore, split_component
from presetarr.store.memory import InMemoryConfigStore
from presetarr.store.sql import SqlConfigStore

__all__ = [
    "ConfigChange",
    "ConfigStore",
    "split_component",
    "InMemoryConfigStore",
    "SqlConfigStore",
]
