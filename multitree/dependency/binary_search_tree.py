"""
This module implements an unbalanced binary search tree that allows repeated keys (multimap semantics).

For any node, every key in its left subtree is smaller than or equal to its key, and every key in its right subtree is
strictly larger. A repeated key is always routed to the left of an equal key, so within one key the in-order sequence
lists the most recently inserted value first. No rotation is ever performed; the height is not bounded.
"""
from __future__ import annotations

import copy
import logging
from collections import deque
from typing import Any, Iterable, Iterator as PyIterator, Optional, Tuple, Union

from multitree.dependency.iterator import ConstIterator, Iterator
from multitree.dependency.storage import NodeStorage
from multitree.dependency.types import Handle, KVPair, Link

logger = logging.getLogger(__name__)

# The input may be given either as tuples or as KVPair objects.
KV_INPUT = Union[KVPair, Tuple[Any, Any]]


class BinarySearchTree:
    def __init__(self, kv_pairs: Optional[Iterable[KV_INPUT]] = None):
        """
        Create a tree, optionally filled with the provided key-value pairs in the given order.

        :param kv_pairs: An iterable of (key, value) tuples or KVPair objects.
        """
        self._storage: NodeStorage = NodeStorage()
        self._root: Link = None
        self._size: int = 0

        for kv_pair in kv_pairs or ():
            key, value = self._unpack(kv_pair)
            self.insert(key=key, value=value)

    def __len__(self) -> int:
        return self._size

    def __contains__(self, key: Any) -> bool:
        return self._first_occurrence(key) is not None

    def __iter__(self) -> PyIterator[Tuple[Any, Any]]:
        """Yield (key, value) tuples in ascending key order."""
        it = self.cbegin()
        while not it.is_end():
            yield it.key, it.value
            it.increment()

    def __reversed__(self) -> PyIterator[Tuple[Any, Any]]:
        """Yield (key, value) tuples in descending key order."""
        if self._root is None:
            return
        it = ConstIterator(self._storage, self.__rightmost(self._root))
        while not it.is_end():
            yield it.key, it.value
            it.decrement()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({list(self)!r})"

    def __copy__(self) -> BinarySearchTree:
        return self.copy()

    def __deepcopy__(self, memo: dict) -> BinarySearchTree:
        return self.__copy_nodes(lambda obj: copy.deepcopy(obj, memo))

    @property
    def size(self) -> int:
        """Returns the number of nodes in the tree."""
        return self._size

    @property
    def root(self) -> Link:
        """Returns the handle of the root node, None when the tree is empty."""
        return self._root

    @property
    def storage(self) -> NodeStorage:
        """Return the node storage."""
        return self._storage

    @staticmethod
    def _unpack(kv_pair: KV_INPUT) -> Tuple[Any, Any]:
        """Accept a KVPair or a two element tuple."""
        if isinstance(kv_pair, KVPair):
            return kv_pair.to_tuple()
        try:
            key, value = kv_pair
        except (TypeError, ValueError):
            raise ValueError(f"Expected a (key, value) pair or a KVPair, got {kv_pair!r}.")
        return key, value

    def __leftmost(self, handle: Handle) -> Handle:
        """Get the handle of the leftmost node of the subtree rooted at handle."""
        while self._storage[handle].left is not None:
            handle = self._storage[handle].left
        return handle

    def __rightmost(self, handle: Handle) -> Handle:
        """Get the handle of the rightmost node of the subtree rooted at handle."""
        while self._storage[handle].right is not None:
            handle = self._storage[handle].right
        return handle

    def insert(self, key: Any, value: Any) -> Iterator:
        """
        Insert a new node; repeated keys are never rejected.

        :param key: The key of the new node.
        :param value: The value of the new node.
        :return: An iterator pointing to the new node.
        """
        # If the tree is empty, the new node becomes the root.
        if self._root is None:
            self._root = self._storage.allocate(key=key, value=value)
            self._size += 1
            return Iterator(self._storage, self._root)

        # Descend from the root to find the missing child where the node belongs.
        handle = self._root
        while True:
            node = self._storage[handle]
            # An equal key goes left as well.
            if node.key >= key:
                if node.left is None:
                    node.left = self._storage.allocate(key=key, value=value, parent=handle)
                    new_handle = node.left
                    break
                handle = node.left
            else:
                if node.right is None:
                    node.right = self._storage.allocate(key=key, value=value, parent=handle)
                    new_handle = node.right
                    break
                handle = node.right

        self._size += 1
        return Iterator(self._storage, new_handle)

    def _first_occurrence(self, key: Any) -> Link:
        """
        Binary descent from the root for the given key.

        :param key: The key to search for.
        :return: The handle of the shallowest node carrying the key, or None.
        """
        handle = self._root
        while handle is not None:
            node = self._storage[handle]
            if node.key > key:
                handle = node.left
            elif node.key < key:
                handle = node.right
            else:
                return handle

        # If never found, return None.
        return None

    def _last_occurrence(self, key: Any) -> Link:
        """
        Walk down the left children that still carry the key, starting from its first occurrence.

        :param key: The key to search for.
        :return: The handle of the deepest node of that chain, or None if the key is absent.
        """
        handle = self._first_occurrence(key)
        if handle is None:
            return None

        while True:
            left = self._storage[handle].left
            if left is None or self._storage[left].key != key:
                return handle
            handle = left

    def __lower_bound(self, key: Any, strict: bool) -> Link:
        """Get the first in-order node whose key is >= key (or > key when strict)."""
        handle, found = self._root, None
        while handle is not None:
            node = self._storage[handle]
            # This node qualifies; anything earlier that also qualifies is on its left.
            if node.key > key or (not strict and node.key == key):
                found, handle = handle, node.left
            else:
                handle = node.right
        return found

    def lower_bound(self, key: Any) -> Iterator:
        """Return an iterator to the first node whose key is not less than key."""
        return Iterator(self._storage, self.__lower_bound(key, strict=False))

    def upper_bound(self, key: Any) -> Iterator:
        """Return an iterator to the first node whose key is greater than key."""
        return Iterator(self._storage, self.__lower_bound(key, strict=True))

    def find(self, key: Any) -> Iterator:
        """
        Find the first in-order node whose key equals the given key.

        This is the same node a scan from begin() would stop at, located by a lower-bound descent.
        :param key: The key to search for.
        :return: An iterator to that node, or end() if the key is absent.
        """
        handle = self.__lower_bound(key, strict=False)
        if handle is not None and self._storage[handle].key == key:
            return Iterator(self._storage, handle)
        return self.end()

    def equal_range(self, key: Any) -> Tuple[Iterator, Iterator]:
        """
        Find every node carrying the key.

        :param key: The key to search for.
        :return: A pair of iterators [first, past-last); both are end() if the key is absent.
        """
        start = self.find(key)
        finish = copy.copy(start)
        while not finish.is_end() and finish.key == key:
            finish.increment()
        return start, finish

    def count(self, key: Any) -> int:
        """Return the number of nodes carrying the key."""
        start, finish = self.equal_range(key)
        total = 0
        while start != finish:
            total += 1
            start.increment()
        return total

    def min(self, key: Any) -> ConstIterator:
        """Return an iterator to the occurrence of key holding the smallest value; ties go to the first one."""
        start, finish = self.equal_range(key)
        best = start.as_const()
        while start != finish:
            if start.value < best.value:
                best = start.as_const()
            start.increment()
        return best

    def max(self, key: Any) -> ConstIterator:
        """Return an iterator to the occurrence of key holding the largest value; ties go to the first one."""
        start, finish = self.equal_range(key)
        best = start.as_const()
        while start != finish:
            if start.value > best.value:
                best = start.as_const()
            start.increment()
        return best

    def __replace_child(self, parent: Link, old: Handle, new: Link) -> None:
        """Make the parent (or the root slot) point to new where it used to point to old."""
        if new is not None:
            self._storage[new].parent = parent
        if parent is None:
            self._root = new
        elif self._storage[parent].left == old:
            self._storage[parent].left = new
        else:
            self._storage[parent].right = new

    def __unlink(self, handle: Handle) -> None:
        """
        Remove a single node from the tree by relinking its neighbours, then free its slot.

        Surviving nodes keep their handles, so only cursors to this node become stale.
        :param handle: The handle of the node to remove.
        """
        node = self._storage[handle]

        # With at most one child, the child (maybe None) takes the place of the node.
        if node.left is None or node.right is None:
            child = node.left if node.left is not None else node.right
            self.__replace_child(parent=node.parent, old=handle, new=child)
        # With two children, the in-order predecessor takes the place of the node.
        else:
            # The predecessor is the maximum of the left subtree, so the left keys stay <= and the right keys stay >.
            pred = self.__rightmost(node.left)
            pred_node = self._storage[pred]

            # Detach the predecessor; it has no right child, so its left child replaces it.
            if pred != node.left:
                self.__replace_child(parent=pred_node.parent, old=pred, new=pred_node.left)
                pred_node.left = node.left
                self._storage[node.left].parent = pred

            # The predecessor adopts the right subtree and takes the removed node's position.
            pred_node.right = node.right
            self._storage[node.right].parent = pred
            self.__replace_child(parent=node.parent, old=handle, new=pred)

        self._storage.free(handle)
        self._size -= 1

    def erase(self, key: Any) -> int:
        """
        Remove every node carrying the key.

        One occurrence is unlinked per pass until none is left.
        :param key: The key to remove.
        :return: The number of nodes removed, 0 when the key was absent.
        """
        removed = 0
        handle = self._last_occurrence(key)
        while handle is not None:
            self.__unlink(handle)
            removed += 1
            handle = self._last_occurrence(key)

        logger.debug("Erased %d node(s) with key %r; %d node(s) left.", removed, key, self._size)
        return removed

    def erase_at(self, position: ConstIterator) -> Iterator:
        """
        Remove the single node the iterator points at.

        :param position: An iterator of this tree, not at the end position.
        :return: An iterator to the in-order successor of the removed node.
        """
        if position.is_end():
            raise ValueError("Cannot erase the end iterator.")
        if position._storage is not self._storage:
            raise ValueError("The iterator does not belong to this tree.")

        # Compute the successor before unlinking; its handle survives the removal.
        successor = Iterator(self._storage, position.next().handle)
        self.__unlink(position.handle)
        return successor

    def begin(self) -> Iterator:
        """Return an iterator to the node with the smallest key."""
        if self._root is None:
            return self.end()
        return Iterator(self._storage, self.__leftmost(self._root))

    def end(self) -> Iterator:
        """Return the end iterator."""
        return Iterator(self._storage)

    def cbegin(self) -> ConstIterator:
        """Return a read-only iterator to the node with the smallest key."""
        return self.begin().as_const()

    def cend(self) -> ConstIterator:
        """Return the read-only end iterator."""
        return ConstIterator(self._storage)

    def keys(self) -> PyIterator[Any]:
        """Yield the keys in ascending order."""
        return (key for key, _ in self)

    def values(self) -> PyIterator[Any]:
        """Yield the values in ascending key order."""
        return (value for _, value in self)

    def items(self) -> PyIterator[Tuple[Any, Any]]:
        """Yield (key, value) tuples in ascending key order."""
        return iter(self)

    def __copy_nodes(self, clone: Any) -> BinarySearchTree:
        """
        Build an independent tree with the same shape, walking this one breadth first.

        :param clone: A function applied to every key and value before storing it in the new tree.
        :return: The new tree.
        """
        other = self.__class__()
        if self._root is None:
            return other

        # Each entry holds a handle of this tree and the handle of the parent already created in the new tree.
        queue = deque([(self._root, None, False)])
        while queue:
            handle, new_parent, is_right = queue.popleft()
            node = self._storage[handle]
            new_handle = other._storage.allocate(key=clone(node.key), value=clone(node.value), parent=new_parent)

            # Hook the new node under its parent, in the same direction.
            if new_parent is None:
                other._root = new_handle
            elif is_right:
                other._storage[new_parent].right = new_handle
            else:
                other._storage[new_parent].left = new_handle

            if node.left is not None:
                queue.append((node.left, new_handle, False))
            if node.right is not None:
                queue.append((node.right, new_handle, True))

        other._size = self._size
        logger.debug("Copied a tree of %d node(s).", other._size)
        return other

    def copy(self) -> BinarySearchTree:
        """Return an independent tree with new nodes; keys and values are shared, as in dict.copy."""
        return self.__copy_nodes(lambda obj: obj)

    def take(self) -> BinarySearchTree:
        """
        Move the content of this tree into a new one.

        :return: A new tree owning the root, size and nodes; this tree is left empty.
        """
        other = self.__class__()
        other._storage, other._root, other._size = self._storage, self._root, self._size
        self._storage, self._root, self._size = NodeStorage(), None, 0

        logger.debug("Moved a tree of %d node(s).", other._size)
        return other

    def clear(self) -> None:
        """Remove every node, releasing each one after reading its children."""
        released = 0
        queue = deque([self._root] if self._root is not None else [])
        while queue:
            handle = queue.popleft()
            node = self._storage[handle]
            if node.left is not None:
                queue.append(node.left)
            if node.right is not None:
                queue.append(node.right)
            self._storage.free(handle)
            released += 1

        self._root, self._size = None, 0
        logger.debug("Cleared a tree, released %d node(s).", released)
