from multitree.omap.tree_map import TreeMap
from multitree.omap.tree_set import TreeSet
