"""Bounded history buffers.

The simulation is meant to run indefinitely, so every history it keeps
(decisions, learning events, resolved conflicts, failures, published events)
is a ring buffer that drops its oldest entries once full.
"""

from __future__ import annotations

from collections import deque
from typing import Callable, Deque, Generic, Iterable, Iterator, List, TypeVar

T = TypeVar("T")


class BoundedHistory(Generic[T]):
    """Append-only ring buffer with a fixed capacity."""

    def __init__(self, maxlen: int) -> None:
        if maxlen < 1:
            maxlen = 1
        self._items: Deque[T] = deque(maxlen=maxlen)

    @property
    def maxlen(self) -> int:
        return self._items.maxlen or 0

    def append(self, item: T) -> None:
        self._items.append(item)

    def extend(self, items: Iterable[T]) -> None:
        self._items.extend(items)

    def last(self, n: int) -> List[T]:
        """Return up to ``n`` most recent items, oldest first."""
        if n <= 0:
            return []
        return list(self._items)[-n:]

    def remove_where(self, predicate: Callable[[T], bool]) -> None:
        kept = [item for item in self._items if not predicate(item)]
        self._items.clear()
        self._items.extend(kept)

    def to_list(self) -> List[T]:
        return list(self._items)

    def clear(self) -> None:
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._items))

    def __bool__(self) -> bool:
        return bool(self._items)
