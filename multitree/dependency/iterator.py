"""
This module implements the in-order cursors over the binary search tree.

The cursors do not keep an auxiliary stack; they walk the parent links stored in the nodes. The end position (which
is also the position before the first element) is represented by a None handle.
"""
from __future__ import annotations

import copy
from typing import Any

from multitree.dependency.storage import Node, NodeStorage
from multitree.dependency.types import KVPair, Link


class ConstIterator:
    """A read-only bidirectional cursor over the tree nodes, in ascending key order."""

    def __init__(self, storage: NodeStorage, handle: Link = None):
        """
        Create a cursor positioned at the given handle.

        :param storage: The node storage of the tree being traversed.
        :param handle: The handle of the node to point at; None means the end position.
        """
        self._storage = storage
        self._handle: Link = None
        self._generation: int = 0
        self._move_to(handle)

    def __eq__(self, other: Any) -> bool:
        # Two cursors are equal when they point at the same node of the same tree, not when the keys are equal.
        # The generation tells an erased node apart from a later node reusing its slot.
        if not isinstance(other, ConstIterator):
            return NotImplemented
        return (
            self._storage is other._storage
            and self._handle == other._handle
            and self._generation == other._generation
        )

    def __hash__(self) -> int:
        return hash((id(self._storage), self._handle, self._generation))

    def __repr__(self) -> str:
        if self._handle is None:
            return f"{self.__class__.__name__}(<end>)"
        return f"{self.__class__.__name__}(handle={self._handle})"

    @property
    def handle(self) -> Link:
        """Return the handle the cursor points at, None for the end position."""
        return self._handle

    def is_end(self) -> bool:
        """Check whether the cursor is at the end position."""
        return self._handle is None

    def _move_to(self, handle: Link) -> None:
        """Point the cursor at a new handle and remember the generation of its slot."""
        self._handle = handle
        self._generation = self._storage.generation(handle) if handle is not None else 0

    def _node(self) -> Node:
        """Get the node the cursor points at, enforcing that it is a valid position."""
        if self._handle is None:
            raise ValueError("Cannot dereference or advance the end iterator.")
        if not self._storage.is_live(self._handle, self._generation):
            raise ValueError("The iterator points to a node that has been erased.")
        return self._storage[self._handle]

    @property
    def key(self) -> Any:
        """Return the key of the current node."""
        return self._node().key

    @property
    def value(self) -> Any:
        """Return the value of the current node."""
        return self._node().value

    @property
    def pair(self) -> KVPair:
        """Return a snapshot of the current node as a KVPair."""
        node = self._node()
        return KVPair(key=node.key, value=node.value)

    def increment(self) -> ConstIterator:
        """
        Move the cursor to the in-order successor.

        :return: The cursor itself, which may now be at the end position.
        """
        node = self._node()

        # With a right subtree, the successor is its leftmost node.
        if node.right is not None:
            handle = node.right
            while self._storage[handle].left is not None:
                handle = self._storage[handle].left
        # Otherwise go up while we are coming from a right child.
        else:
            child, handle = self._handle, node.parent
            while handle is not None and self._storage[handle].right == child:
                child, handle = handle, self._storage[handle].parent

        self._move_to(handle)
        return self

    def decrement(self) -> ConstIterator:
        """
        Move the cursor to the in-order predecessor.

        :return: The cursor itself; moving before the first element reaches the end position.
        """
        node = self._node()

        # With a left subtree, the predecessor is its rightmost node.
        if node.left is not None:
            handle = node.left
            while self._storage[handle].right is not None:
                handle = self._storage[handle].right
        # Otherwise go up while we are coming from a left child.
        else:
            child, handle = self._handle, node.parent
            while handle is not None and self._storage[handle].left == child:
                child, handle = handle, self._storage[handle].parent

        self._move_to(handle)
        return self

    def next(self) -> ConstIterator:
        """Return a new cursor at the successor, leaving this one in place."""
        return copy.copy(self).increment()

    def prev(self) -> ConstIterator:
        """Return a new cursor at the predecessor, leaving this one in place."""
        return copy.copy(self).decrement()


class Iterator(ConstIterator):
    """A cursor that can also overwrite the value stored in the current node."""

    @ConstIterator.value.setter
    def value(self, value: Any) -> None:
        # Keys are never writable, otherwise the ordering would break.
        self._node().value = value

    def as_const(self) -> ConstIterator:
        """Return a read-only cursor at the same position."""
        const = ConstIterator(self._storage)
        const._handle, const._generation = self._handle, self._generation
        return const
