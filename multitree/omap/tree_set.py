"""Defines the ordered set, stored in a TreeMap where every element is both the key and the value."""
from __future__ import annotations

import copy
from typing import Any, Iterable, Iterator as PyIterator, Optional

from multitree.dependency import ConstIterator, Iterator
from multitree.omap.tree_map import TreeMap


class TreeSet:
    def __init__(self, values: Optional[Iterable[Any]] = None):
        """Create the set, optionally filled with the provided values."""
        self._map: TreeMap = TreeMap()
        for value in values or ():
            self.insert(value)

    def __len__(self) -> int:
        return self._map.size

    def __contains__(self, value: Any) -> bool:
        return self.contains(value)

    def __iter__(self) -> PyIterator[Any]:
        return self._map.keys()

    def __reversed__(self) -> PyIterator[Any]:
        return (key for key, _ in reversed(self._map))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({list(self)!r})"

    def __copy__(self) -> TreeSet:
        return self.copy()

    def __deepcopy__(self, memo: dict) -> TreeSet:
        other = self.__class__()
        other._map = copy.deepcopy(self._map, memo)
        return other

    @property
    def size(self) -> int:
        """Returns the number of elements in the set."""
        return self._map.size

    def insert(self, value: Any) -> None:
        self._map.insert(key=value, value=value)

    def erase(self, value: Any) -> int:
        return self._map.erase(value)

    def find(self, value: Any) -> Iterator:
        return self._map.find(value)

    def contains(self, value: Any) -> bool:
        """Check whether the value is in the set."""
        return self.find(value) != self.end()

    def begin(self) -> Iterator:
        return self._map.begin()

    def end(self) -> Iterator:
        return self._map.end()

    def cbegin(self) -> ConstIterator:
        return self._map.cbegin()

    def cend(self) -> ConstIterator:
        return self._map.cend()

    def copy(self) -> TreeSet:
        other = self.__class__()
        other._map = self._map.copy()
        return other

    def take(self) -> TreeSet:
        """Move the elements into a new set and leave this one empty."""
        other = self.__class__()
        other._map = self._map.take()
        return other

    def clear(self) -> None:
        self._map.clear()
