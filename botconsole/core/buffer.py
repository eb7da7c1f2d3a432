from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import Generic, TypeVar

from botconsole.core.errors import InvalidArgument

T = TypeVar("T")


class CircularBuffer(Generic[T]):
    """Fixed-capacity ring; once full each push overwrites the oldest entry."""

    def __init__(self, capacity: int) -> None:
        if isinstance(capacity, bool) or not isinstance(capacity, int):
            raise InvalidArgument(f"capacity must be an int, got {capacity!r}")
        if capacity < 1:
            raise InvalidArgument(f"capacity must be >= 1, got {capacity}")
        self._capacity = capacity
        self._items: list[T | None] = [None] * capacity
        self._head = 0  # index of the oldest item
        self._size = 0

    def push(self, item: T) -> None:
        if self._size < self._capacity:
            self._items[(self._head + self._size) % self._capacity] = item
            self._size += 1
        else:
            self._items[self._head] = item
            self._head = (self._head + 1) % self._capacity

    def extend(self, items: Iterable[T]) -> None:
        for item in items:
            self.push(item)

    def clear(self) -> None:
        self._items = [None] * self._capacity
        self._head = 0
        self._size = 0

    def to_ordered_sequence(self) -> Iterator[T]:
        """Oldest-to-newest view of the contents as of this call."""
        items, head, size, cap = list(self._items), self._head, self._size, self._capacity

        def _gen() -> Iterator[T]:
            for i in range(size):
                yield items[(head + i) % cap]  # type: ignore[misc]

        return _gen()

    def newest(self) -> T | None:
        if self._size == 0:
            return None
        return self._items[(self._head + self._size - 1) % self._capacity]

    def size(self) -> int:
        return self._size

    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return self._size

    def __iter__(self) -> Iterator[T]:
        return self.to_ordered_sequence()

    def __repr__(self) -> str:
        return f"CircularBuffer(capacity={self._capacity}, size={self._size})"
