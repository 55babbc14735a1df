from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Callable, Dict, Hashable, Optional, Tuple

if TYPE_CHECKING:
    from photonfield.calculation.illuminance import LightSource

CacheKey = Tuple[Hashable, ...]


def contribution_key(point: Tuple[float, float, float], source: "LightSource") -> CacheKey:
    """
    Key for one (point, fixture) contribution: the point, the fixture's
    position and radiometric signature, and the photometric file's content
    hash when one is attached.
    """
    file_id = source.photometry.content_hash if source.photometry is not None else None
    return (
        tuple(float(c) for c in point),
        source.position,
        source.signature,
        file_id,
    )


class ContributionCache:
    """
    Read-through memo of per-point, per-fixture PPFD contributions.

    Entries never expire. Moving a single fixture is safe without clearing
    because its position is part of the key; call `clear()` after bulk
    geometry changes. Access is serialised with a lock so one cache may be
    shared by evaluations running on several threads.
    """

    def __init__(self) -> None:
        self._entries: Dict[CacheKey, float] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, key: CacheKey) -> Optional[float]:
        with self._lock:
            return self._entries.get(key)

    def put(self, key: CacheKey, value: float) -> None:
        with self._lock:
            self._entries[key] = float(value)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def get_or_compute(self, key: CacheKey, compute: Callable[[], float]) -> float:
        with self._lock:
            cached = self._entries.get(key)
            if cached is not None:
                self.hits += 1
                return cached
            self.misses += 1
        value = float(compute())
        self.put(key, value)
        return value
