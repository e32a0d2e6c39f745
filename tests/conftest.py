import pytest

from multitree.dependency import BinarySearchTree

SCENARIO = [(5, "a"), (3, "b"), (5, "c"), (7, "d"), (5, "e")]


@pytest.fixture
def scenario_tree():
    """Provide the tree built from (5, a), (3, b), (5, c), (7, d), (5, e), inserted in that order."""
    return BinarySearchTree(SCENARIO)
