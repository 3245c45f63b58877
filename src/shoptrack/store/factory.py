from __future__ import annotations

from ..config import AppConfig, ConfigError
from .base import RecordStore
from .json_file import JsonFileStore
from .memory import MemoryStore


def open_store(cfg: AppConfig) -> RecordStore:
    backend = cfg.store.backend
    if backend == "memory":
        return MemoryStore()
    if backend == "json":
        return JsonFileStore(cfg.store.path)
    if backend == "postgres":
        # psycopg is only imported when the postgres backend is selected
        from ..db import Db
        from .postgres import PostgresStore

        if cfg.db is None:
            raise ConfigError("Store backend 'postgres' needs a [db] section.")
        store = PostgresStore(Db(cfg.db))
        store.ensure_schema()
        return store
    raise ConfigError(f"Unknown store backend: {backend}")
