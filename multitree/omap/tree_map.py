"""Defines the ordered map: a binary search tree that holds at most one node per key."""
from __future__ import annotations

import copy
import logging
from typing import Any, Callable, Iterable, Iterator as PyIterator, Optional, Tuple

from multitree.dependency import BinarySearchTree, ConstIterator, Iterator
from multitree.dependency.binary_search_tree import KV_INPUT

logger = logging.getLogger(__name__)


class TreeMap:
    def __init__(self,
                 kv_pairs: Optional[Iterable[KV_INPUT]] = None,
                 default_factory: Optional[Callable[[], Any]] = None):
        """
        Create the map, optionally filled with key-value pairs; a later pair overwrites an earlier one with the same key.

        :param kv_pairs: An iterable of (key, value) tuples or KVPair objects.
        :param default_factory: Called without arguments to create the value stored by map[key] for an absent key;
            when None, the stored default is None.
        """
        self._tree: BinarySearchTree = BinarySearchTree()
        self._default_factory: Optional[Callable[[], Any]] = default_factory

        for kv_pair in kv_pairs or ():
            key, value = BinarySearchTree._unpack(kv_pair)
            self.insert(key=key, value=value)

    def __len__(self) -> int:
        return self._tree.size

    def __contains__(self, key: Any) -> bool:
        return key in self._tree

    def __iter__(self) -> PyIterator[Tuple[Any, Any]]:
        return iter(self._tree)

    def __reversed__(self) -> PyIterator[Tuple[Any, Any]]:
        return reversed(self._tree)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({list(self)!r})"

    def __getitem__(self, key: Any) -> Any:
        """map[key] => the value stored for key, inserting the default value first when the key is absent."""
        return self.entry(key).value

    def __setitem__(self, key: Any, value: Any) -> None:
        """map[key] = value => insert or overwrite."""
        self.insert(key=key, value=value)

    def __copy__(self) -> TreeMap:
        return self.copy()

    def __deepcopy__(self, memo: dict) -> TreeMap:
        other = self.__class__(default_factory=self._default_factory)
        other._tree = copy.deepcopy(self._tree, memo)
        return other

    @property
    def size(self) -> int:
        """Returns the number of keys in the map."""
        return self._tree.size

    @property
    def default_factory(self) -> Optional[Callable[[], Any]]:
        """Return the factory used to create missing values."""
        return self._default_factory

    def insert(self, key: Any, value: Any) -> None:
        """
        Insert the key-value pair; if the key is already present, replace its value instead.

        :param key: The key of interest.
        :param value: The value to store.
        """
        it = self._tree.find(key)
        if it.is_end():
            self._tree.insert(key=key, value=value)
            return
        it.value = value

    def erase(self, key: Any) -> int:
        """Remove the key; return 1 if it was present and 0 otherwise."""
        return self._tree.erase(key)

    def find(self, key: Any) -> Iterator:
        """Return an iterator to the node of the key, or end() when absent."""
        return self._tree.find(key)

    def contains(self, key: Any) -> bool:
        """Check whether the key is present."""
        return not self.find(key).is_end()

    def get(self, key: Any, default: Any = None) -> Any:
        """Return the value of key, or default when absent; nothing is inserted."""
        it = self.find(key)
        return default if it.is_end() else it.value

    def entry(self, key: Any) -> Iterator:
        """
        Get a writable iterator to the node of the key, creating the node with the default value when absent.

        Assigning to the value of the returned iterator updates the map in place.
        :param key: The key of interest.
        :return: An iterator pointing to the node that stores the key.
        """
        it = self._tree.find(key)
        if it.is_end():
            default = self._default_factory() if self._default_factory is not None else None
            it = self._tree.insert(key=key, value=default)
        return it

    def begin(self) -> Iterator:
        return self._tree.begin()

    def end(self) -> Iterator:
        return self._tree.end()

    def cbegin(self) -> ConstIterator:
        return self._tree.cbegin()

    def cend(self) -> ConstIterator:
        return self._tree.cend()

    def keys(self) -> PyIterator[Any]:
        return self._tree.keys()

    def values(self) -> PyIterator[Any]:
        return self._tree.values()

    def items(self) -> PyIterator[Tuple[Any, Any]]:
        return self._tree.items()

    def copy(self) -> TreeMap:
        """Return an independent map; the values are shared, as in dict.copy."""
        other = self.__class__(default_factory=self._default_factory)
        other._tree = self._tree.copy()
        return other

    def take(self) -> TreeMap:
        """Move the content into a new map and leave this one empty."""
        other = self.__class__(default_factory=self._default_factory)
        other._tree = self._tree.take()
        logger.debug("Moved a map of %d key(s).", other.size)
        return other

    def clear(self) -> None:
        """Remove every key."""
        self._tree.clear()
