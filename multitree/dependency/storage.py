from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional

from multitree.dependency.types import Handle, Link


@dataclass
class Node:
    """
    Create the data structure to hold one tree node.

    It has five fields: key and value could be anything, while parent, left and right are links (optional handles)
    into the same storage. The parent link is only a back-reference for traversal; a node owns its children.
    """
    key: Any
    value: Any
    parent: Link = None
    left: Link = None
    right: Link = None


class NodeStorage:
    """
    A class that manages the tree nodes as an arena of slots addressed by integer handles.

    Freed slots are recycled by later allocations. Each slot keeps a generation counter that grows whenever the slot
    is freed, so that a cursor holding (handle, generation) can tell whether its node is still alive.
    """

    def __init__(self) -> None:
        # The slots hold either a live node or None when freed.
        self.__slots: List[Optional[Node]] = []
        # One generation counter per slot.
        self.__generations: List[int] = []
        # Stack of freed handles that can be reused.
        self.__free: List[Handle] = []

    def __len__(self) -> int:
        """Return the number of live nodes."""
        return len(self.__slots) - len(self.__free)

    def __getitem__(self, handle: Handle) -> Node:
        """storage[h] => returns the live node stored at handle h."""
        if handle is None or not 0 <= handle < len(self.__slots) or self.__slots[handle] is None:
            raise KeyError(f"Handle {handle} does not refer to a live node.")
        return self.__slots[handle]

    def allocate(self, key: Any, value: Any, parent: Link = None) -> Handle:
        """
        Store a new node and return its handle.

        :param key: The key of the new node.
        :param value: The value of the new node.
        :param parent: The handle of the parent node, None for a root.
        :return: The handle of the new node.
        """
        node = Node(key=key, value=value, parent=parent)

        # Reuse a freed slot when possible.
        if self.__free:
            handle = self.__free.pop()
            self.__slots[handle] = node
            return handle

        # Otherwise grow the arena by one slot.
        self.__slots.append(node)
        self.__generations.append(0)
        return len(self.__slots) - 1

    def free(self, handle: Handle) -> None:
        """Release the slot at handle; the node must be alive."""
        # Raises KeyError for a bad or already freed handle.
        self[handle]
        self.__slots[handle] = None
        self.__generations[handle] += 1
        self.__free.append(handle)

    def generation(self, handle: Handle) -> int:
        """Get the current generation of the slot at handle."""
        return self.__generations[handle]

    def is_live(self, handle: Handle, generation: int) -> bool:
        """Check whether handle still holds the node that was there at the given generation."""
        return (
            0 <= handle < len(self.__slots)
            and self.__slots[handle] is not None
            and self.__generations[handle] == generation
        )

