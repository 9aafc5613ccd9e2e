from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from typing import Any, Callable

logger = logging.getLogger(__name__)


class ContentCache:
    """Per-table cache of the public read views.

    Every invalidation bumps the table's generation. A load that started
    before an invalidation is returned to its caller but never stored.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: dict[str, list[dict[str, Any]]] = {}
        self._generations: dict[str, int] = {}
        self._epoch = 0

    def get_or_load(self, table: str, loader: Callable[[], list[dict[str, Any]]]) -> list[dict[str, Any]]:
        with self._lock:
            cached = self._entries.get(table)
            if cached is not None:
                return cached
            started = (self._epoch, self._generations.get(table, 0))
        loaded = loader()
        with self._lock:
            if (self._epoch, self._generations.get(table, 0)) == started:
                self._entries[table] = loaded
            else:
                logger.debug("Discarded stale load of %s", table)
        return loaded

    def invalidate(self, tables: Iterable[str]) -> None:
        names = list(tables)
        with self._lock:
            for name in names:
                self._entries.pop(name, None)
                self._generations[name] = self._generations.get(name, 0) + 1
        logger.debug("Invalidated cached views: %s", ", ".join(names))

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._epoch += 1

    def cached_tables(self) -> list[str]:
        with self._lock:
            return sorted(self._entries)
