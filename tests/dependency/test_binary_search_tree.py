import copy
import random

import pytest

from multitree.dependency import BinarySearchTree, KVPair


def check_tree(tree: BinarySearchTree) -> None:
    """Walk the whole tree and check the parent links, the ordering invariant and the size."""
    storage, count = tree.storage, 0
    # Each entry holds a handle, its expected parent, an exclusive lower bound and an inclusive upper bound.
    stack = [(tree.root, None, None, None)] if tree.root is not None else []
    while stack:
        handle, parent, low, high = stack.pop()
        node = storage[handle]
        count += 1
        assert node.parent == parent
        assert low is None or node.key > low
        assert high is None or node.key <= high
        if node.left is not None:
            stack.append((node.left, handle, low, node.key))
        if node.right is not None:
            stack.append((node.right, handle, node.key, high))
    assert count == tree.size == len(tree) == len(storage)


def range_values(tree: BinarySearchTree, key) -> list:
    """Collect the values of every node in the equal range of key."""
    start, finish = tree.equal_range(key)
    values = []
    while start != finish:
        values.append(start.value)
        start.increment()
    return values


class TestInsert:
    def test_empty(self):
        tree = BinarySearchTree()
        assert tree.size == 0
        assert tree.root is None
        assert tree.begin() == tree.end()
        assert tree.cbegin() == tree.cend()
        assert list(tree) == []

    def test_scenario(self, scenario_tree):
        assert scenario_tree.size == 5
        assert list(scenario_tree.keys()) == [3, 5, 5, 5, 7]
        # A repeated key goes left, so the newest value comes first.
        assert list(scenario_tree) == [(3, "b"), (5, "e"), (5, "c"), (5, "a"), (7, "d")]
        check_tree(scenario_tree)

    def test_shape(self, scenario_tree):
        storage = scenario_tree.storage
        root = storage[scenario_tree.root]
        # The first node stays the root; the second 5 lands on the right of 3 and the third on its left.
        assert (root.key, root.value) == (5, "a")
        assert storage[root.left].key == 3
        assert storage[root.right].key == 7
        assert storage[storage[root.left].right].value == "c"
        assert storage[storage[storage[root.left].right].left].value == "e"

    def test_insert_returns_iterator(self):
        tree = BinarySearchTree()
        it = tree.insert(key=1, value="one")
        assert it.pair == KVPair(key=1, value="one")
        assert it == tree.begin()

    def test_kv_pair_input(self):
        tree = BinarySearchTree([KVPair(key=2, value="two"), (1, "one")])
        assert list(tree) == [(1, "one"), (2, "two")]

    def test_bad_input(self):
        with pytest.raises(ValueError):
            BinarySearchTree([1, 2, 3])

    def test_str_keys(self):
        tree = BinarySearchTree([(f"{i}", i) for i in range(100)])
        assert list(tree.keys()) == sorted(f"{i}" for i in range(100))
        check_tree(tree)

    def test_random_insert(self):
        keys = [random.randint(0, 50) for _ in range(500)]
        tree = BinarySearchTree([(key, index) for index, key in enumerate(keys)])
        # Traversal is sorted both ways.
        assert list(tree.keys()) == sorted(keys)
        assert [key for key, _ in reversed(tree)] == sorted(keys, reverse=True)
        check_tree(tree)


class TestLookup:
    def test_find(self, scenario_tree):
        # The first occurrence in order is the newest one.
        assert scenario_tree.find(5).pair == KVPair(key=5, value="e")
        assert scenario_tree.find(7).value == "d"
        assert scenario_tree.find(4) == scenario_tree.end()
        assert scenario_tree.find(100).is_end()

    def test_find_matches_scan(self):
        tree = BinarySearchTree([(random.randint(0, 30), i) for i in range(300)])
        for key in range(-1, 32):
            # Scan from the beginning for the first node with the key.
            it = tree.begin()
            while not it.is_end() and it.key != key:
                it.increment()
            assert tree.find(key) == it
            if not it.is_end():
                assert tree.find(key).key == key

    def test_contains_and_count(self, scenario_tree):
        assert 5 in scenario_tree
        assert 6 not in scenario_tree
        assert scenario_tree.count(5) == 3
        assert scenario_tree.count(3) == 1
        assert scenario_tree.count(6) == 0

    def test_equal_range(self, scenario_tree):
        start, finish = scenario_tree.equal_range(5)
        assert range_values(scenario_tree, 5) == ["e", "c", "a"]
        # The range stops at the first larger key.
        assert finish.key == 7
        assert start.prev().key == 3

    def test_equal_range_absent(self, scenario_tree):
        start, finish = scenario_tree.equal_range(4)
        assert start == finish == scenario_tree.end()

    def test_three_equal_keys(self):
        tree = BinarySearchTree([("k", 1), ("k", 2), ("k", 3)])
        assert range_values(tree, "k") == [3, 2, 1]

    def test_bounds(self, scenario_tree):
        assert scenario_tree.lower_bound(5).value == "e"
        assert scenario_tree.lower_bound(4).value == "e"
        assert scenario_tree.upper_bound(5).key == 7
        assert scenario_tree.lower_bound(0).key == 3
        assert scenario_tree.upper_bound(7).is_end()

    def test_min_max(self):
        tree = BinarySearchTree([(1, 20), (0, 100), (1, 10), (2, -5), (1, 30)])
        assert tree.min(1).value == 10
        assert tree.max(1).value == 30
        assert tree.min(3) == tree.cend()
        assert tree.max(3).is_end()

    def test_min_max_ties(self):
        first, second = [1], [1]
        tree = BinarySearchTree([("k", first), ("k", second)])
        # Equal values: the first one in order (the newest) wins.
        assert tree.min("k").value is second
        assert tree.max("k").value is second


class TestErase:
    def test_scenario(self, scenario_tree):
        assert scenario_tree.erase(5) == 3
        assert scenario_tree.size == 2
        assert list(scenario_tree.keys()) == [3, 7]
        assert scenario_tree.find(5) == scenario_tree.end()
        check_tree(scenario_tree)

    def test_absent(self, scenario_tree):
        assert scenario_tree.erase(4) == 0
        assert scenario_tree.size == 5
        assert BinarySearchTree().erase(4) == 0

    def test_multiplicity(self):
        tree = BinarySearchTree([(i, i) for i in [8, 4, 12, 2, 6, 10, 14]])
        for value in range(20):
            tree.insert(key=6, value=value)
        assert tree.erase(6) == 21
        assert tree.find(6).is_end()
        assert list(tree.keys()) == [2, 4, 8, 10, 12, 14]
        check_tree(tree)

    def test_erase_root_with_equal_key_in_right_subtree(self):
        # The successor of 5 is an 8 whose equal-keyed parent is in the same right subtree.
        tree = BinarySearchTree([(5, "a"), (3, "b"), (8, "c"), (8, "d")])
        assert tree.erase(5) == 1
        check_tree(tree)
        assert list(tree) == [(3, "b"), (8, "d"), (8, "c")]
        tree.insert(key=8, value="e")
        assert range_values(tree, 8) == ["e", "d", "c"]

    def test_erase_everything(self):
        keys = [random.randint(0, 20) for _ in range(200)]
        tree = BinarySearchTree([(key, key) for key in keys])
        for key in set(keys):
            assert tree.erase(key) == keys.count(key)
            check_tree(tree)
        assert tree.size == 0
        assert tree.root is None

    def test_random_erase(self):
        keys = [random.randint(0, 40) for _ in range(400)]
        tree = BinarySearchTree([(key, index) for index, key in enumerate(keys)])
        remaining = list(keys)

        # Erase half the distinct keys, interleaved with some inserts.
        for key in random.sample(sorted(set(keys)), len(set(keys)) // 2):
            size = tree.size
            assert tree.erase(key) == remaining.count(key)
            assert tree.size == size - remaining.count(key)
            remaining = [k for k in remaining if k != key]
            new_key = random.randint(0, 40)
            tree.insert(key=new_key, value=-1)
            remaining.append(new_key)

            assert list(tree.keys()) == sorted(remaining)
            check_tree(tree)

    def test_iterators_survive(self, scenario_tree):
        # Keep iterators to the nodes that are not erased.
        three = scenario_tree.find(3)
        seven = scenario_tree.find(7)
        scenario_tree.erase(5)
        assert three.pair == KVPair(key=3, value="b")
        assert seven.value == "d"
        assert three.next() == seven
        assert seven.prev() == three

    def test_iterators_survive_random(self):
        tree = BinarySearchTree([(random.randint(0, 30), i) for i in range(300)])
        # Remember every node as an iterator.
        nodes = []
        it = tree.begin()
        while not it.is_end():
            nodes.append((copy.copy(it), it.key, it.value))
            it.increment()

        tree.erase(15)
        tree.erase(3)
        survivors = [(it, key, value) for it, key, value in nodes if key not in (3, 15)]

        # Every surviving iterator still reads its node and walks to the next survivor.
        for index, (it, key, value) in enumerate(survivors):
            assert (it.key, it.value) == (key, value)
            expected = survivors[index + 1][0] if index + 1 < len(survivors) else tree.end()
            assert it.next() == expected

    def test_stale_iterator(self, scenario_tree):
        five = scenario_tree.find(5)
        scenario_tree.erase(5)
        with pytest.raises(ValueError):
            five.key
        with pytest.raises(ValueError):
            five.increment()
        # Reusing the freed slot does not revive the old iterator.
        scenario_tree.insert(key=6, value="f")
        with pytest.raises(ValueError):
            five.value

    def test_stale_iterator_not_equal_to_reused_slot(self, scenario_tree):
        five = scenario_tree.find(5)
        scenario_tree.erase(5)
        # The new node takes the slot freed by the erased one.
        six = scenario_tree.insert(key=6, value="f")
        assert six.handle == five.handle
        assert five != six
        assert six == scenario_tree.find(6)
        assert len({six, scenario_tree.find(6), five}) == 2

    def test_erase_at(self, scenario_tree):
        # Remove only the middle duplicate.
        start, _ = scenario_tree.equal_range(5)
        successor = scenario_tree.erase_at(start.next())
        assert successor.value == "a"
        assert range_values(scenario_tree, 5) == ["e", "a"]
        assert scenario_tree.size == 4
        check_tree(scenario_tree)

    def test_erase_at_last(self, scenario_tree):
        last = scenario_tree.find(7)
        assert scenario_tree.erase_at(last).is_end()
        assert list(scenario_tree.keys()) == [3, 5, 5, 5]

    def test_erase_at_errors(self, scenario_tree):
        with pytest.raises(ValueError):
            scenario_tree.erase_at(scenario_tree.end())
        with pytest.raises(ValueError):
            scenario_tree.erase_at(BinarySearchTree([(5, "x")]).begin())


class TestCopyMove:
    def test_copy_independent(self, scenario_tree):
        other = scenario_tree.copy()
        assert list(other) == list(scenario_tree)
        check_tree(other)

        # Mutating the copy leaves the original alone.
        other.insert(key=1, value="z")
        other.erase(5)
        assert scenario_tree.size == 5
        assert list(scenario_tree.keys()) == [3, 5, 5, 5, 7]
        assert list(other.keys()) == [1, 3, 7]

    def test_copy_module(self, scenario_tree):
        shallow = copy.copy(scenario_tree)
        assert list(shallow) == list(scenario_tree)
        assert shallow.storage is not scenario_tree.storage

    def test_deepcopy(self):
        tree = BinarySearchTree([(1, [1]), (2, [2])])
        shallow, deep = tree.copy(), copy.deepcopy(tree)
        tree.find(1).value.append(10)
        assert shallow.find(1).value == [1, 10]
        assert deep.find(1).value == [1]

    def test_take(self, scenario_tree):
        it = scenario_tree.find(7)
        other = scenario_tree.take()

        # The source is left empty and still usable.
        assert scenario_tree.size == 0
        assert scenario_tree.root is None
        assert list(scenario_tree) == []
        scenario_tree.insert(key=0, value="new")
        assert scenario_tree.size == 1

        # The new owner holds the nodes; old iterators follow them.
        assert other.size == 5
        assert list(other.keys()) == [3, 5, 5, 5, 7]
        assert it == other.find(7)

    def test_clear(self, scenario_tree):
        it = scenario_tree.begin()
        scenario_tree.clear()
        assert scenario_tree.size == 0
        assert scenario_tree.begin() == scenario_tree.end()
        with pytest.raises(ValueError):
            it.key
        check_tree(scenario_tree)

    def test_degenerate_chain(self):
        # Sorted input makes a right-leaning chain deeper than the default recursion limit.
        tree = BinarySearchTree([(i, i) for i in range(2000)])
        other = tree.copy()
        assert list(other.keys()) == list(range(2000))
        tree.clear()
        assert tree.size == 0
        assert other.size == 2000
        assert other.erase(1999) == 1
        assert list(reversed(other))[0] == (1998, 1998)
