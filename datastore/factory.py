from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from datastore.base import ReadingStore
from datastore.memory import InMemoryReadingStore
from datastore.sqlite import SqliteReadingStore
from settings import get_settings


@lru_cache
def build_default_store(
    backend: Optional[str] = None,
    path: Optional[str] = None,
) -> ReadingStore:
    settings = get_settings()
    store_backend = settings.store_backend if backend is None else backend
    db_path = settings.db_path if path is None else path
    if store_backend == "memory" or not db_path:
        return InMemoryReadingStore()
    return SqliteReadingStore(path=Path(db_path))
