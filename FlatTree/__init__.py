from FlatTree.FlatTreeArray import (
    SIZE_FOR_PARALLELIZATION,
    ConstructionError,
    Execution,
    FlatTree,
    FlatTreeError,
    InsertionError,
    InvalidRootError,
    LengthMismatchError,
    RemovalError,
    build_tree,
    fill_tree,
    remove_tree,
    warmup,
)

__all__ = [
    "SIZE_FOR_PARALLELIZATION",
    "ConstructionError",
    "Execution",
    "FlatTree",
    "FlatTreeError",
    "InsertionError",
    "InvalidRootError",
    "LengthMismatchError",
    "RemovalError",
    "build_tree",
    "fill_tree",
    "remove_tree",
    "warmup",
]
