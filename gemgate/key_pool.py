from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KeySelection:
    key: str
    index: int
    pool_size: int

    @property
    def marker(self) -> str:
        """Value for the X-API-Key-Used header, 1-based."""
        return f"{self.index}/{self.pool_size}"


class KeyPool:
    """Immutable pool of upstream API keys with uniform random selection."""

    def __init__(self, keys: Sequence[str], rng: Optional[random.Random] = None) -> None:
        self._keys: Tuple[str, ...] = tuple(keys)
        self._rng = rng or random.Random()

    def __len__(self) -> int:
        return len(self._keys)

    def __bool__(self) -> bool:
        return bool(self._keys)

    def select(self) -> KeySelection:
        if not self._keys:
            raise RuntimeError("KeyPool.select() called on an empty pool")
        position = self._rng.randrange(len(self._keys))
        key = self._keys[position]
        # Duplicate keys report the first occurrence.
        index = self._keys.index(key) + 1
        return KeySelection(key=key, index=index, pool_size=len(self._keys))
