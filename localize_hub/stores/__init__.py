"""外部协作方协议的内存与 SQLite 实现。"""

from localize_hub.stores.memory import (
    InMemoryEntityStore,
    InMemorySchemaRegistry,
    InMemorySettingsStore,
    StaticLocaleRegistry,
    load_registries,
)
from localize_hub.stores.sqlite import SQLiteDatabase, SQLiteEntityStore, SQLiteSettingsStore

__all__ = [
    "InMemoryEntityStore",
    "InMemorySchemaRegistry",
    "InMemorySettingsStore",
    "SQLiteDatabase",
    "SQLiteEntityStore",
    "SQLiteSettingsStore",
    "StaticLocaleRegistry",
    "load_registries",
]
