import copy
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from typing import Any, Callable, Iterable, List, Tuple

import numpy as np
from numba import get_num_threads, njit, prange



# Storage layout:
#     values[capacity]    : node payloads (dtype=object unless asked otherwise)
#     parent_of[capacity] : int64 parent index per node, parent_of[0] == 0
#     Only the first `count` slots are live. Slots in [count, capacity) always
#     hold the fill value and parent index 0.

logger = logging.getLogger(__name__)

SIZE_FOR_PARALLELIZATION = 2_000 # at or above this many nodes, scans run in parallel
DEFAULT_CAPACITY         = 16
INDEX_DTYPE              = np.int64
MAX_SIZE                 = int(np.iinfo(INDEX_DTYPE).max)
THRESHOLD_ENV_VAR        = "FLATTREE_PARALLEL_THRESHOLD"



# ---------- Errors ----------
class FlatTreeError(Exception):
    """Base class for every error raised by FlatTree."""


class ConstructionError(FlatTreeError, ValueError):
    """Value and parent sequences cannot form a tree."""


class LengthMismatchError(ConstructionError):
    pass


class InvalidRootError(ConstructionError):
    pass


class InsertionError(FlatTreeError):
    pass


class RemovalError(FlatTreeError):
    pass


class Execution(Enum):
    """Execution policy for `FlatTree.traverse`."""

    SEQUENTIAL = "sequential"
    PARALLEL   = "parallel"
    AUTO       = "auto"



# ---------- Configuration ----------
def parallel_threshold_from_env(default: int = SIZE_FOR_PARALLELIZATION) -> int:
    """
    Read the parallelization threshold from FLATTREE_PARALLEL_THRESHOLD.

    Falls back to `default` when the variable is unset or empty.
    """

    raw = os.environ.get(THRESHOLD_ENV_VAR, "").strip()
    if not raw:
        return default

    try:
        value = int(raw)
    except ValueError:
        raise ValueError(
            f"{THRESHOLD_ENV_VAR} must be an integer, not {raw!r}"
        ) from None

    if value < 1:
        raise ValueError(
            f"{THRESHOLD_ENV_VAR} must be at least 1, not {value}"
        )

    return value



# ---------- JIT-Compiled Scans ----------
@njit(inline="always", boundscheck=False)
def _has_child_sequential(
    parent_of: np.ndarray,
    count:     np.int64,
    index:     np.int64

) -> bool:

    """
    Linear scan over the live non-root slots, stopping at the first node whose
    parent is `index`.
    """

    for i in range(1, count):
        if parent_of[i] == index:
            return True

    return False

@njit(parallel=True)
def _has_child_parallel(
    parent_of: np.ndarray,
    count:     np.int64,
    index:     np.int64

) -> bool:

    """
    Parallel OR-reduction over the live non-root slots using Numba's 'prange'.

    Each thread accumulates its hits into `found`, the partial results are
    summed when the threads join, and any hit means `index` has a child.
    """

    found = 0
    for i in prange(1, count):
        if parent_of[i] == index:
            found += 1

    return found > 0

@njit(inline="always", boundscheck=False)
def _count_children_sequential(
    parent_of: np.ndarray,
    count:     np.int64,
    parent:    np.int64

) -> np.int64:

    n = 0
    for i in range(1, count):
        if parent_of[i] == parent:
            n += 1

    return n

@njit(parallel=True)
def _count_children_parallel(
    parent_of: np.ndarray,
    count:     np.int64,
    parent:    np.int64

) -> np.int64:

    """
    Count the first generation descendants of `parent` using Numba's 'prange'.

    The count is a sum reduction, so the result does not depend on how the
    index range is split between threads.
    """

    n = 0
    for i in prange(1, count):
        if parent_of[i] == parent:
            n += 1

    return n



# ---------- JIT-Compiled Structural Operations ----------
@njit(boundscheck=False)
def _collect_children(
    parent_of: np.ndarray,
    count:     np.int64,
    parent:    np.int64

) -> np.ndarray:

    """
    Return the indices of every node whose parent is `parent`, in ascending
    storage order. The root slot is never reported.
    """

    out = np.empty(count, dtype=np.int64)
    n   = 0
    for i in range(1, count):
        if parent_of[i] == parent:
            out[n] = i
            n += 1

    return out[:n]

@njit(boundscheck=False)
def _children_index(
    parent_of: np.ndarray,
    count:     np.int64

) -> Tuple[np.ndarray, np.ndarray]:

    """
    Group the live non-root slots by parent with a counting sort.

    The children of node p are children[offsets[p]:offsets[p + 1]], in
    ascending storage order. Slots whose parent index is out of range are
    left out.

    Args:
        parent_of (np.ndarray): 1D int64 array of parent indices.
        count (np.int64): Number of live nodes.

    Returns:
        Tuple[np.ndarray, np.ndarray]:
            - offsets: [count + 1] start of each node's child run.
            - children: child indices grouped by parent.
    """

    offsets = np.zeros(count + 1, dtype=np.int64)
    for i in range(1, count):
        p = parent_of[i]
        if 0 <= p < count:
            offsets[p + 1] += 1

    for p in range(count):
        offsets[p + 1] += offsets[p]

    children = np.empty(offsets[count], dtype=np.int64)
    cursor   = offsets[:count].copy()
    for i in range(1, count):
        p = parent_of[i]
        if 0 <= p < count:
            children[cursor[p]] = i
            cursor[p] += 1

    return offsets, children

@njit(boundscheck=False)
def _collect_descendants(
    parent_of: np.ndarray,
    count:     np.int64,
    parent:    np.int64

) -> np.ndarray:

    """
    Collect every descendant of `parent` (excluding `parent` itself).

    Works as a worklist over the children index: the immediate children are
    written first, then the children of each written index are appended in
    the order the indices were discovered. The output order is therefore
    "first-discovered": a node always comes after its parent, but generations
    are not grouped by depth. Linear in the number of nodes.

    Args:
        parent_of (np.ndarray): 1D int64 array of parent indices.
        count (np.int64): Number of live nodes.
        parent (np.int64): Index whose subtree is collected, 0 <= parent < count.

    Returns:
        np.ndarray: 1D int64 array of descendant indices, each exactly once.
    """

    offsets, children = _children_index(parent_of, count)

    out  = np.empty(count, dtype=np.int64)
    seen = np.zeros(count, dtype=np.bool_)
    n    = 0
    head = 0

    # `seen` keeps a corrupted (cyclic) parent array from looping
    seen[parent] = True
    current      = parent
    while True:
        for k in range(offsets[current], offsets[current + 1]):
            child = children[k]
            if not seen[child]:
                seen[child] = True
                out[n]      = child
                n += 1

        if head == n:
            break

        current = out[head]
        head += 1

    return out[:n]

@njit(boundscheck=False)
def _swap_remove(
    parent_of: np.ndarray,
    count:     np.int64,
    victims:   np.ndarray

) -> Tuple[np.ndarray, np.int64]:

    """
    Remove nodes by swap-with-last-and-pop.

    `victims` must be sorted in descending order, so that every node still
    waiting to be removed keeps its index while the nodes above it are popped.
    Pops only move slots around and record where each moved node ends up;
    once every victim is gone, the surviving parent indices are re-pointed
    in a single pass. Linear in the number of nodes.

    Args:
        parent_of (np.ndarray): 1D int64 array of parent indices, updated in place.
        count (np.int64): Number of live nodes before removal.
        victims (np.ndarray): 1D int64 array of indices to remove, descending.

    Returns:
        Tuple[np.ndarray, np.int64]:
            - moves: [k, 2] array of (freed_index, moved_from_index) pairs,
              in the order they happened, for replaying on the value array.
            - count: Number of live nodes after removal.
    """

    moves     = np.empty((victims.size, 2), dtype=np.int64)
    origin    = np.arange(count) # original index of the node held by each slot
    new_index = np.arange(count) # original index -> index after removal
    total     = count

    for v in range(victims.size):
        index = victims[v]
        last  = count - 1

        if index != last:
            parent_of[index]         = parent_of[last]
            origin[index]            = origin[last]
            new_index[origin[index]] = index

        parent_of[last] = 0
        moves[v, 0]     = index
        moves[v, 1]     = last
        count -= 1

    for i in range(1, count):
        p = parent_of[i]
        if 0 <= p < total:
            parent_of[i] = new_index[p]

    return moves, count



# --------- Utils ---------
def warmup(tree_size: int = 100) -> bool:
    """
    Minimally triggers JIT compilation for the core kernels, both the
    sequential and the parallel scans.
    """

    tree = FlatTree("root", capacity=tree_size)
    tree.insert_many(0, ["a", "b"])
    tree.insert_many(1, ["c", "d"])

    parents = tree._parent_of
    count   = len(tree)

    _has_child_sequential(parents, count, 1)
    _has_child_parallel(parents, count, 1)
    _count_children_sequential(parents, count, 1)
    _count_children_parallel(parents, count, 1)
    _collect_children(parents, count, 1)

    tree.remove(1)

    return True

def build_tree(
    values:    Iterable[Any],
    parent_of: Iterable[int],
    **kwargs

) -> "FlatTree":

    """
    Builds a FlatTree from a value sequence and a matching parent index sequence.

    Args:
        values (Iterable): Node values in storage order, root first.
        parent_of (Iterable[int]): Parent index of each node, parent_of[0] == 0.
        **kwargs: Forwarded to `FlatTree.from_sequences`.

    Returns:
        FlatTree: The constructed tree.
    """

    return FlatTree.from_sequences(values, parent_of, **kwargs)

def fill_tree(
    tree:    "FlatTree",
    parents: Iterable[int],
    values:  Iterable[Any]

) -> int:

    """
    Insert (parent, value) pairs one after the other.

    Pairs are inserted in order, so a parent may be a node created by an
    earlier pair. Pairs whose parent does not exist yet are skipped.

    Returns:
        int: Number of nodes actually inserted.
    """

    inserted = 0
    for parent, value in zip(parents, values):
        inserted += tree.insert(parent, value)

    return inserted

def remove_tree(
    tree:    "FlatTree",
    indices: Iterable[int]

) -> int:

    """
    Perform batch removal of multiple subtrees.

    Each index is removed against the tree as it is at that moment; earlier
    removals move nodes around, so later indices may no longer refer to the
    nodes they referred to before the call. Indices that cannot be removed
    are silently ignored.

    Returns:
        int: Number of successful removals.
    """

    removed = 0
    for index in indices:
        removed += tree.remove(index)

    return removed



def _is_index(value: Any) -> bool:
    """True for Python and numpy integers, booleans excluded."""

    return (
        isinstance(value, (int, np.integer)) and
        not isinstance(value, (bool, np.bool_))
    )



# --------- FlatTree API ---------
class FlatTree:
    """
    General purpose flat tree.

    Every node has exactly one parent. Nodes are stored contiguously in two
    parallel numpy arrays (values and parent indices), so all values can be
    iterated as a plain sequence. The root is the node at index 0 and a tree
    always has a root.

    Node indices are ephemeral handles: removal swaps the last node into the
    freed slot, so any index held across a `remove` may point to another
    node afterwards. `version` is incremented on every structural mutation
    and can be used to detect stale indices.

    Attributes:
        count (int): Current number of nodes, root included.
        version (int): Structural mutation counter.
        dtype (np.dtype): dtype of the value array.
        parallel_threshold (int): Node count at or above which scans run in parallel.
    """

    def __init__(
        self,
        root_value:         Any,
        capacity:           int = DEFAULT_CAPACITY,
        dtype:              Any = object,
        parallel_threshold: int = None

    ) -> None:

        if not (1 <= capacity <= MAX_SIZE):
            raise ValueError(
                f"The capacity value must be between 1 and {MAX_SIZE}, not {capacity}"
            )

        if parallel_threshold is None:
            parallel_threshold = parallel_threshold_from_env()
        elif parallel_threshold < 1:
            raise ValueError(
                f"The parallel threshold must be at least 1, not {parallel_threshold}"
            )

        self.dtype              = np.dtype(dtype)
        self.parallel_threshold = int(parallel_threshold)
        self.count              = 1
        self.version            = 0
        self._fill              = None if self.dtype == np.dtype(object) else self.dtype.type()
        self._values            = self._allocate_values(capacity)
        self._parent_of         = np.zeros(capacity, dtype=INDEX_DTYPE)

        self._values[0] = root_value

    @classmethod
    def from_sequences(
        cls,
        values:             Iterable[Any],
        parent_of:          Iterable[int],
        capacity:           int = None,
        dtype:              Any = object,
        parallel_threshold: int = None

    ) -> "FlatTree":

        """
        Construct a tree from a value collection and a parent index collection.

        Any iterables are accepted (lists, tuples, deques, numpy arrays,
        generators). The input is copied; the caller keeps ownership of it.

        Raises:
            LengthMismatchError: The two collections differ in length.
            InvalidRootError: The collections are empty or parent_of[0] != 0.
        """

        values  = list(values)
        parents = np.fromiter(parent_of, dtype=INDEX_DTYPE)

        if len(values) != parents.size:
            raise LengthMismatchError(
                f"values and parent indices must have the same length, not {len(values)} and {parents.size}"
            )

        if parents.size == 0 or parents[0] != 0:
            raise InvalidRootError(
                "the root node must be the first node in the tree and be its own parent"
            )

        size = parents.size
        tree = cls(
            values[0],
            capacity=max(size, capacity or size),
            dtype=dtype,
            parallel_threshold=parallel_threshold
        )

        tree._parent_of[:size] = parents
        for i in range(1, size):
            tree._values[i] = values[i]
        tree.count = size

        logger.debug("built tree with %d nodes", size)
        return tree

    # ---------- storage ----------
    def _allocate_values(self, capacity: int) -> np.ndarray:
        return np.full(capacity, self._fill, dtype=self.dtype)

    def _reallocate(self, capacity: int) -> None:
        values    = self._allocate_values(capacity)
        parent_of = np.zeros(capacity, dtype=INDEX_DTYPE)

        values[:self.count]    = self._values[:self.count]
        parent_of[:self.count] = self._parent_of[:self.count]

        self._values    = values
        self._parent_of = parent_of

    def _grow(self, min_capacity: int) -> None:
        if min_capacity > MAX_SIZE:
            raise ValueError(f"a FlatTree can hold at most {MAX_SIZE} nodes")

        self._reallocate(min(MAX_SIZE, max(min_capacity, 2 * self.capacity)))

    def _is_valid(self) -> bool:
        return (
            self.count >= 1 and
            self._values.size == self._parent_of.size and
            self._parent_of[0] == 0
        )

    def _check_index(self, index: int) -> int:
        if not _is_index(index):
            raise TypeError(
                f"node indices must be integers, not {type(index).__name__}"
            )

        if not (0 <= index < self.count):
            raise IndexError(
                f"The node index must be between 0 and {self.count - 1}, not {index}"
            )

        return int(index)

    def _contains(self, index: int) -> bool:
        return _is_index(index) and 0 <= index < self.count

    # ---------- capacity ----------
    @property
    def capacity(self) -> int:
        return int(self._parent_of.size)

    @property
    def values(self) -> np.ndarray:
        """Read-only view of the live node values, in storage order."""

        view = self._values[:self.count]
        view.flags.writeable = False
        return view

    @property
    def parent_of(self) -> np.ndarray:
        """Read-only view of the live parent indices, in storage order."""

        view = self._parent_of[:self.count]
        view.flags.writeable = False
        return view

    def max_size(self) -> int:
        return MAX_SIZE

    def is_trivial(self) -> bool:
        """True if the tree holds only its root."""

        return self.count == 1

    def reserve(self, capacity: int) -> None:
        if capacity > self.capacity:
            self._grow(capacity)

    def shrink_to_fit(self) -> None:
        if self.capacity > self.count:
            self._reallocate(self.count)

    def clear(self) -> None:
        """Drop every node except the root, keeping the root value."""

        self._values[1:self.count]    = self._fill
        self._parent_of[1:self.count] = 0
        self.count = 1
        self.version += 1

    def resize(self, count: int) -> None:
        """
        Extend or truncate the tree to exactly `count` nodes.

        Low-level escape hatch: new nodes get the dtype's default value and
        parent index 0, and truncation may leave surviving nodes pointing to
        parents that no longer exist. Restoring a consistent structure is up
        to the caller.
        """

        if not (1 <= count <= MAX_SIZE):
            raise ValueError(
                f"The tree size must be between 1 and {MAX_SIZE}, not {count}"
            )

        if count > self.capacity:
            self._grow(count)

        if count < self.count:
            self._values[count:self.count]    = self._fill
            self._parent_of[count:self.count] = 0

        previous   = self.count
        self.count = int(count)
        self.version += 1

        if count < previous and np.any(self._parent_of[1:count] >= count):
            logger.warning(
                "resize from %d to %d nodes left parent indices out of range",
                previous, count
            )

    # ---------- queries ----------
    def index_exists(self, index: int) -> bool:
        """
        True if some node has `index` as its parent.

        Note that this answers "does node `index` have a child", not "is
        `index` a node of the tree".
        """

        if not self._contains(index):
            return False

        if self.count < self.parallel_threshold:
            return bool(_has_child_sequential(self._parent_of, self.count, int(index)))

        logger.debug("parallel child lookup over %d nodes", self.count)
        return bool(_has_child_parallel(self._parent_of, self.count, int(index)))

    def descendant_count(self, parent: int) -> int:
        """Number of first generation descendants of `parent`."""

        if not self._contains(parent):
            return 0

        if self.count < self.parallel_threshold:
            return int(_count_children_sequential(self._parent_of, self.count, int(parent)))

        logger.debug("parallel child count over %d nodes", self.count)
        return int(_count_children_parallel(self._parent_of, self.count, int(parent)))

    def is_leaf(self, index: int) -> bool:
        index = self._check_index(index)
        return self.descendant_count(index) == 0

    def parent_index(self, index: int) -> int:
        """
        Return the parent index of a node. The root is its own parent.

        Raises:
            IndexError: `index` is not a node of the tree.
        """

        index = self._check_index(index)
        return int(self._parent_of[index]) if index > 0 else 0

    def children_of(
        self,
        parent: int,
        out:    List[int]

    ) -> bool:

        """
        Append the indices of the first generation descendants of `parent` to `out`.

        Children are reported in ascending storage order. The root is not
        accepted as `parent`.

        Args:
            parent (int): Index of the parent node.
            out (List[int]): Collection extended with the child indices.

        Returns:
            bool: True if at least one child was found, False otherwise
                  (`out` is left untouched).
        """

        if not self._is_valid() or parent == 0 or not self._contains(parent):
            return False

        children = _collect_children(self._parent_of, self.count, int(parent))
        if children.size == 0:
            return False

        out.extend(children.tolist())
        return True

    def all_descendants(
        self,
        parent: int,
        out:    List[int]

    ) -> bool:

        """
        Append the indices of every descendant of `parent` to `out`.

        For the root this is every other node in storage order. For any other
        node the immediate children come first, followed by the children of
        each discovered node in discovery order ("first-discovered", depth
        unspecified). `parent` itself is never included.

        Args:
            parent (int): Index of the subtree root.
            out (List[int]): Collection extended with the descendant indices.

        Returns:
            bool: True if at least one descendant was found, False otherwise.
        """

        if not self._is_valid() or not self._contains(parent):
            return False

        if parent == 0:
            if self.count == 1:
                return False

            out.extend(range(1, self.count))
            return True

        descendants = _collect_descendants(self._parent_of, self.count, int(parent))
        if descendants.size == 0:
            return False

        out.extend(descendants.tolist())
        return True

    # ---------- mutation ----------
    def insert(
        self,
        parent: int,
        value:  Any

    ) -> bool:

        """Append `value` under `parent`. Returns True on success, False if the parent does not exist."""

        if not self._contains(parent) or not self._is_valid():
            return False

        if self.count == self.capacity:
            self._grow(self.count + 1)

        self._values[self.count]    = value
        self._parent_of[self.count] = parent
        self.count += 1
        self.version += 1

        return True

    def insert_many(
        self,
        parent: int,
        values: Iterable[Any]

    ) -> bool:

        """Append every value in `values` under `parent`, preserving their order."""

        if not self._contains(parent) or not self._is_valid():
            return False

        values = list(values)
        total  = self.count + len(values)
        if total > self.capacity:
            self._grow(total)

        for offset, value in enumerate(values):
            self._values[self.count + offset] = value

        self._parent_of[self.count:total] = parent
        self.count = total
        self.version += 1

        logger.debug("inserted %d nodes under index %d", len(values), parent)
        return True

    def remove(self, target: int) -> bool:
        """
        Remove a node and all of its descendants.

        Nodes are removed one by one with swap-with-last-and-pop, from the
        highest index down, and the surviving parent indices are re-pointed
        in a single pass afterwards. Nodes that were stored after the removed
        ones may end up at different indices. The root cannot be removed.

        Returns:
            bool: True if the subtree was removed, False otherwise.
        """

        if target == 0 or not self._contains(target) or not self._is_valid():
            return False

        descendants = _collect_descendants(self._parent_of, self.count, int(target))
        victims     = np.sort(np.append(descendants, np.int64(target)))[::-1]
        victims     = np.ascontiguousarray(victims, dtype=INDEX_DTYPE)

        moves, count = _swap_remove(self._parent_of, self.count, victims)

        for index, last in moves.tolist():
            if index != last:
                self._values[index] = self._values[last]
            self._values[last] = self._fill

        self.count = int(count)
        self.version += 1

        logger.debug("removed %d nodes rooted at index %d", victims.size, target)
        return True

    # ---------- traversal ----------
    def traverse(
        self,
        start:     int,
        visit:     Callable[[Any], Any],
        execution: Execution = Execution.SEQUENTIAL

    ) -> None:

        """
        Replace the value of every descendant of `start` with `visit(value)`.

        `start` itself is not visited. Sequential execution visits nodes one
        at a time in discovery order (see `all_descendants`). Parallel
        execution splits the descendants between worker threads and returns
        once all of them are done; the order is unspecified and `visit` must
        not rely on state shared between calls. Each descendant is visited
        exactly once in both modes.

        Args:
            start (int): Index of the subtree root.
            visit (Callable): Function mapping a node value to its new value.
            execution (Execution): SEQUENTIAL, PARALLEL or AUTO (parallel at
                or above `parallel_threshold` nodes).
        """

        execution   = Execution(execution)
        descendants = []
        if not self.all_descendants(start, descendants):
            return

        if execution is Execution.AUTO:
            parallel  = self.count >= self.parallel_threshold
            execution = Execution.PARALLEL if parallel else Execution.SEQUENTIAL

        values = self._values

        if execution is Execution.SEQUENTIAL:
            for index in descendants:
                values[index] = visit(values[index])
            return

        def apply(chunk: np.ndarray) -> None:
            for index in chunk.tolist():
                values[index] = visit(values[index])

        workers = max(1, min(get_num_threads(), len(descendants)))
        chunks  = np.array_split(np.asarray(descendants, dtype=INDEX_DTYPE), workers)

        logger.debug("parallel traversal of %d nodes on %d workers", len(descendants), workers)
        with ThreadPoolExecutor(max_workers=workers) as pool:
            # consuming the results re-raises the first exception from a worker
            list(pool.map(apply, chunks))

    # ---------- output ----------
    def dump_simple(self) -> str:
        """Tree as comma separated `value {parent index}` pairs, in storage order."""

        return ", ".join(
            f"{self._values[i]} {{{self._parent_of[i]}}}" for i in range(self.count)
        )

    def dump_multimap(self) -> str:
        """
        Tree as one `parent: child0,child1,...` line per distinct parent index.

        Lines follow ascending parent index. Children of the root are not
        listed, since `children_of` does not accept the root.
        """

        lines = []
        for parent in np.unique(self._parent_of[:self.count]).tolist():
            children = []
            line     = f"{self._values[parent]}: "
            if self.children_of(parent, children):
                line += ",".join(str(self._values[child]) for child in children)
            lines.append(line + "\n")

        return "".join(lines)

    # ---------- copy ----------
    def copy(self) -> "FlatTree":
        """
        Shallow copy: independent structure, values shared by reference.

        The copy continues the version history of the original.
        """

        other = type(self)(
            self._values[0],
            capacity=self.capacity,
            dtype=self.dtype,
            parallel_threshold=self.parallel_threshold
        )
        other._values[:]    = self._values
        other._parent_of[:] = self._parent_of
        other.count         = self.count
        other.version       = self.version

        return other

    def __copy__(self) -> "FlatTree":
        return self.copy()

    def __deepcopy__(self, memo: dict) -> "FlatTree":
        other          = self.copy()
        memo[id(self)] = other
        other._values  = copy.deepcopy(self._values, memo)
        return other

    # ---------- operators ----------
    def __lshift__(self, node: Tuple[int, Any]) -> "FlatTree":
        """
        tree << (parent, value) inserts one node,
        tree << (parent, [value, ...]) inserts one node per list item.
        """

        parent, payload = node
        if isinstance(payload, list):
            succeed = self.insert_many(parent, payload)
        else:
            succeed = self.insert(parent, payload)

        if not succeed:
            raise InsertionError(f"failed to insert a node under index {parent}")

        return self

    def __rshift__(self, nodes: Any) -> "FlatTree":
        """
        tree >> index removes one subtree,
        tree >> [index, ...] removes several, one after the other.
        """

        if _is_index(nodes) or not hasattr(nodes, "__iter__"):
            nodes = [nodes]

        failed = []
        for index in nodes:
            if not self.remove(index):
                failed.append(index)

        if failed:
            raise RemovalError(f"failed to remove nodes {failed} from tree")

        return self

    def __getitem__(self, index: int) -> Any:
        return self._values[self._check_index(index)]

    def __setitem__(self, index: int, value: Any) -> None:
        self._values[self._check_index(index)] = value

    def __iter__(self):
        return iter(self._values[:self.count])

    def __reversed__(self):
        return iter(self._values[:self.count][::-1])

    def __len__(self) -> int:
        return int(self.count)

    def __str__(self) -> str:
        return "FlatTree(size=" + str(self.count) + ", capacity=" + str(self.capacity) + ", version=" + str(self.version) + ")"

    __repr__ = __str__
