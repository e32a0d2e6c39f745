from multitree.dependency.types import Handle, KVPair, Link
from multitree.dependency.storage import Node, NodeStorage
from multitree.dependency.iterator import ConstIterator, Iterator
from multitree.dependency.binary_search_tree import BinarySearchTree
