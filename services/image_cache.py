from __future__ import annotations

import threading
from concurrent.futures import Future
from typing import Callable, Dict, Generic, Optional, Tuple, TypeVar


V = TypeVar("V")


class ImageCache(Generic[V]):
    """Per-run URL -> image handle cache.

    Bounded: once ``capacity`` entries exist, new URLs are still loaded but no
    longer stored. Concurrent first use of one URL shares a single load.
    """

    def __init__(self, capacity: int = 100) -> None:
        self.capacity = capacity
        self._entries: Dict[str, V] = {}
        self._inflight: Dict[str, Future] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.loads = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, url: str) -> bool:
        with self._lock:
            return url in self._entries

    def get(self, url: str) -> Optional[V]:
        with self._lock:
            return self._entries.get(url)

    def get_or_load(self, url: str, loader: Callable[[], V]) -> Tuple[V, bool]:
        """Return ``(value, reused)``; ``reused`` is False only for the caller that loaded."""
        with self._lock:
            if url in self._entries:
                self.hits += 1
                return self._entries[url], True
            pending = self._inflight.get(url)
            if pending is None:
                pending = Future()
                self._inflight[url] = pending
                owner = True
            else:
                self.hits += 1
                owner = False

        if not owner:
            return pending.result(), True

        try:
            with self._lock:
                self.loads += 1
            value = loader()
        except BaseException as e:
            with self._lock:
                self._inflight.pop(url, None)
            pending.set_exception(e)
            raise

        with self._lock:
            if len(self._entries) < self.capacity:
                self._entries[url] = value
            self._inflight.pop(url, None)
        pending.set_result(value)
        return value, False
