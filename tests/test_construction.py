"""Construction, capacity management and iteration."""

from collections import deque

import numpy as np
import pytest

from FlatTree.FlatTreeArray import (
    ConstructionError,
    FlatTree,
    InvalidRootError,
    LengthMismatchError,
    build_tree,
)

from conftest import FAMILY_PARENTS, FAMILY_VALUES

NAMES = ["coco", "moly", "acra", "cricket"]
INDEX = [0, 0, 0, 2]


# =============================================================================
# Construction
# =============================================================================


class TestConstruction:
    def test_root_only(self):
        tree = FlatTree("root")
        assert len(tree) == 1
        assert tree.is_trivial()
        assert tree[0] == "root"
        assert tree.parent_index(0) == 0

    def test_from_sequences(self):
        tree = FlatTree.from_sequences(NAMES, INDEX)
        assert len(tree) == 4
        assert not tree.is_trivial()
        assert list(tree) == NAMES

    @pytest.mark.parametrize(
        "values,parents",
        [
            (list(NAMES), list(INDEX)),
            (tuple(NAMES), tuple(INDEX)),
            (deque(NAMES), np.array(INDEX, dtype=np.uint64)),
            ((name for name in NAMES), iter(INDEX)),
            (np.array(NAMES, dtype=object), deque(INDEX)),
        ],
        ids=["lists", "tuples", "deque-and-array", "generators", "array-and-deque"],
    )
    def test_heterogeneous_collections(self, values, parents):
        tree = FlatTree.from_sequences(values, parents)
        assert list(tree) == NAMES
        assert tree.parent_of.tolist() == INDEX

    def test_length_mismatch(self):
        with pytest.raises(LengthMismatchError, match="same length"):
            FlatTree.from_sequences(["a", "b"], [0])

    @pytest.mark.parametrize("parents", [[1, 0], [5, 0]])
    def test_invalid_root(self, parents):
        with pytest.raises(InvalidRootError):
            FlatTree.from_sequences(["a", "b"], parents)

    def test_empty_sequences(self):
        with pytest.raises(InvalidRootError):
            FlatTree.from_sequences([], [])

    def test_construction_errors_are_value_errors(self):
        assert issubclass(LengthMismatchError, ConstructionError)
        assert issubclass(InvalidRootError, ConstructionError)
        with pytest.raises(ValueError):
            FlatTree.from_sequences(["a"], [0, 0])

    def test_input_is_copied(self):
        values = ["r", "a"]
        parents = np.array([0, 0])
        tree = FlatTree.from_sequences(values, parents)
        values[1] = "changed"
        parents[1] = 7
        assert tree[1] == "a"
        assert tree.parent_index(1) == 0

    def test_build_tree(self):
        tree = build_tree(FAMILY_VALUES, FAMILY_PARENTS, capacity=64)
        assert list(tree) == FAMILY_VALUES
        assert tree.capacity == 64

    @pytest.mark.parametrize("capacity", [0, -3])
    def test_invalid_capacity(self, capacity):
        with pytest.raises(ValueError, match="capacity"):
            FlatTree("root", capacity=capacity)

    def test_invalid_threshold(self):
        with pytest.raises(ValueError, match="threshold"):
            FlatTree("root", parallel_threshold=0)


# =============================================================================
# Configuration
# =============================================================================


class TestThresholdConfiguration:
    def test_default(self):
        assert FlatTree("root").parallel_threshold == 2_000

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("FLATTREE_PARALLEL_THRESHOLD", "5")
        assert FlatTree("root").parallel_threshold == 5

    def test_argument_wins_over_environment(self, monkeypatch):
        monkeypatch.setenv("FLATTREE_PARALLEL_THRESHOLD", "5")
        assert FlatTree("root", parallel_threshold=7).parallel_threshold == 7

    @pytest.mark.parametrize("raw", ["abc", "0", "-4"])
    def test_invalid_environment(self, monkeypatch, raw):
        monkeypatch.setenv("FLATTREE_PARALLEL_THRESHOLD", raw)
        with pytest.raises(ValueError, match="FLATTREE_PARALLEL_THRESHOLD"):
            FlatTree("root")


# =============================================================================
# Capacity
# =============================================================================


class TestCapacity:
    def test_reserve_and_shrink(self):
        tree = FlatTree("root")
        tree.reserve(100)
        assert tree.capacity == 100
        tree.insert_many(0, ["a", "b", "c"])
        tree.shrink_to_fit()
        assert tree.capacity == 4
        assert list(tree) == ["root", "a", "b", "c"]

    def test_reserve_never_shrinks(self):
        tree = FlatTree("root", capacity=32)
        tree.reserve(4)
        assert tree.capacity == 32

    def test_growth_on_insert(self):
        tree = FlatTree("root", capacity=1)
        for i in range(50):
            assert tree.insert(0, i)
        assert len(tree) == 51
        assert tree.capacity >= 51

    def test_max_size(self):
        assert FlatTree("root").max_size() == np.iinfo(np.int64).max

    def test_clear_keeps_root(self, family):
        family[0] = "new root"
        family.clear()
        assert len(family) == 1
        assert family[0] == "new root"
        assert family.is_trivial()
        assert family.insert(0, "again")
        assert list(family) == ["new root", "again"]

    def test_resize_extends_with_defaults(self):
        tree = FlatTree("root")
        tree.resize(3)
        assert list(tree) == ["root", None, None]
        assert tree.parent_of.tolist() == [0, 0, 0]

    def test_resize_numeric_dtype(self):
        tree = FlatTree(1.5, dtype=np.float64)
        tree.resize(3)
        assert tree.values.tolist() == [1.5, 0.0, 0.0]

    def test_resize_truncates(self, family):
        family.resize(3)
        assert list(family) == ["root", "child1", "child2"]
        family.resize(5)
        assert list(family) == ["root", "child1", "child2", None, None]
        assert family.parent_of.tolist() == [0, 0, 0, 0, 0]

    @pytest.mark.parametrize("size", [0, -1])
    def test_resize_rejects_removing_root(self, family, size):
        with pytest.raises(ValueError):
            family.resize(size)
        assert len(family) == 8


# =============================================================================
# Iteration and access
# =============================================================================


class TestIteration:
    def test_storage_order(self, family):
        assert list(family) == FAMILY_VALUES

    def test_reverse(self, family):
        assert list(reversed(family)) == FAMILY_VALUES[::-1]

    def test_restartable(self, family):
        assert list(family) == list(family)

    def test_views_are_read_only(self, family):
        with pytest.raises(ValueError):
            family.values[0] = "x"
        with pytest.raises(ValueError):
            family.parent_of[1] = 2
        assert len(family.values) == len(family.parent_of) == len(family)

    def test_get_and_set(self, family):
        assert family[1] == "child1"
        family[1] = "changed_name"
        assert family[1] == "changed_name"

    @pytest.mark.parametrize("index", [8, 100, -1])
    def test_out_of_range_access(self, family, index):
        with pytest.raises(IndexError):
            family[index]
        with pytest.raises(IndexError):
            family[index] = "x"
