# studio_attendance/core/cache.py
import logging
import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)


class SimpleCache:
    """Per-process TTL cache for spreadsheet reads."""

    def __init__(self, ttl_seconds: float = 600, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._items: Dict[str, Tuple[float, Any]] = {}
        self._lock = threading.Lock()

    @staticmethod
    def key(operation: str, *params: Any) -> str:
        return f"{operation}:" + ":".join(str(p) for p in params)

    def get(self, key: str, max_age: Optional[float] = None) -> Optional[Any]:
        max_age = self.ttl_seconds if max_age is None else max_age
        with self._lock:
            item = self._items.get(key)
            if item is None:
                return None
            stored_at, value = item
            if self._clock() - stored_at < max_age:
                return value
            del self._items[key]
        return None

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            now = self._clock()
            # keys that are never read again are only dropped here
            expired = [k for k, (stored_at, _) in self._items.items() if now - stored_at >= self.ttl_seconds]
            for k in expired:
                del self._items[k]
            self._items[key] = (now, value)

    def clear(self, pattern: Optional[str] = None) -> int:
        with self._lock:
            if pattern is None:
                cleared = len(self._items)
                self._items.clear()
            else:
                keys = [k for k in self._items if pattern in k]
                for k in keys:
                    del self._items[k]
                cleared = len(keys)
        logger.debug(f"Cache cleared: pattern={pattern!r}, entries={cleared}")
        return cleared

    def __len__(self) -> int:
        return len(self._items)
