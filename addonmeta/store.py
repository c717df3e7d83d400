"""Key/value object storage used by the extraction caches."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections.abc import Hashable
from typing import Any


class Store(ABC):
    """Object storage for arbitrary hashable keys."""

    @abstractmethod
    def read(self, key: Hashable) -> Any:
        """Return the data stored under ``key``; raise KeyError if there is none."""

    @abstractmethod
    def write(self, key: Hashable, data: Any) -> None:
        """Store ``data`` under ``key``, replacing what was there."""


class ThreadSafeStore(Store):
    """An in-memory store that is safe to use from several threads."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._data: dict[Hashable, Any] = {}

    def read(self, key: Hashable) -> Any:
        with self._lock:
            return self._data[key]

    def write(self, key: Hashable, data: Any) -> None:
        with self._lock:
            self._data[key] = data