import logging

from multitree.dependency import BinarySearchTree, ConstIterator, Iterator, KVPair
from multitree.omap import TreeMap, TreeSet

logging.getLogger(__name__).addHandler(logging.NullHandler())
