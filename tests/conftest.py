import numpy as np
import pytest

from FlatTree.FlatTreeArray import FlatTree

FAMILY_VALUES  = ["root", "child1", "child2", "grand0", "grand1", "grand2", "grand3", "grand4"]
FAMILY_PARENTS = [0, 0, 0, 1, 1, 1, 2, 2]


@pytest.fixture(autouse=True)
def _no_threshold_env(monkeypatch):
    monkeypatch.delenv("FLATTREE_PARALLEL_THRESHOLD", raising=False)


@pytest.fixture
def family():
    """
    root
    ├── child1 (1)
    │   ├── grand0 (3)
    │   ├── grand1 (4)
    │   └── grand2 (5)
    └── child2 (2)
        ├── grand3 (6)
        └── grand4 (7)
    """
    return FlatTree.from_sequences(FAMILY_VALUES, FAMILY_PARENTS)


@pytest.fixture
def random_parents():
    """Parent array of a random 5000 node tree, each node hanging off an earlier one."""
    rng = np.random.default_rng(2024)
    size = 5_000
    parents = np.zeros(size, dtype=np.int64)
    parents[1:] = rng.integers(0, np.arange(1, size))
    return parents
