"""Growable vectors of values."""

from __future__ import annotations

from typing import Iterable, Iterator

from .values import Val


class Vector:
    """An ordered sequence of values, indexed from zero."""

    def __init__(self, items: Iterable[Val] = ()) -> None:
        self._items: list[Val] = []
        for item in items:
            self.append(item)

    def append(self, val: Val) -> None:
        """Add ``val`` at the end; the vector takes it without copying."""
        if not isinstance(val, Val):
            raise TypeError("vector elements must be Val instances")
        self._items.append(val)

    def _check_index(self, index: int) -> None:
        if not isinstance(index, int) or not 0 <= index < len(self._items):
            raise IndexError(f"vector index out of range: {index!r}")

    def get(self, index: int) -> Val:
        """The element at ``index``."""
        self._check_index(index)
        return self._items[index]

    def set(self, index: int, val: Val) -> None:
        """Replace the element at ``index`` with ``val``."""
        self._check_index(index)
        if not isinstance(val, Val):
            raise TypeError("vector elements must be Val instances")
        self._items[index] = val

    def copy(self) -> Vector:
        """A vector holding independent copies of every element."""
        return Vector(item.copy() for item in self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Val]:
        return iter(self._items)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Vector):
            return NotImplemented
        return self._items == other._items

    def __hash__(self) -> int:
        return hash((len(self._items), tuple(self._items)))

    def __repr__(self) -> str:
        return f"Vector({self._items!r})"