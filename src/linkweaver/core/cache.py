"""Time-bounded key/value cache."""

import time
from typing import Callable, Generic, Hashable, TypeVar

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class TimedCache(Generic[K, V]):
    """Map whose entries expire a fixed time after insertion.

    Expiry is checked lazily on read; there is no background sweep.
    """

    def __init__(
        self,
        max_age_ms: int = 60_000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_age_ms = max_age_ms
        self._clock = clock
        self._entries: dict[K, tuple[V, float]] = {}

    def _now_ms(self) -> float:
        return self._clock() * 1000

    def get(self, key: K) -> V | None:
        """Return the cached value, evicting it first if expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None

        value, timestamp = entry
        if self._now_ms() - timestamp > self.max_age_ms:
            del self._entries[key]
            return None
        return value

    def set(self, key: K, value: V) -> None:
        self._entries[key] = (value, self._now_ms())

    def has(self, key: K) -> bool:
        return self.get(key) is not None

    def delete(self, key: K) -> bool:
        """Remove an entry. Returns True if it was present."""
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def keys(self) -> list[K]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
