"""
Dotted path navigation over maps, tree documents and records.
"""

from typing import Any, List, Tuple

from .values import (
    get_property,
    is_map,
    is_record,
    is_sequence,
    is_tree,
    to_int,
    unwrap,
)


def split_path(path: str) -> List[str]:
    """Split "a.b.c" into segments; an empty path has no segments."""
    if not path:
        return []
    return path.split(".")


def step(value: Any, segment: str) -> Any:
    """Resolve one path segment against the current value, or None."""
    if is_map(value):
        return value.get(segment)
    if is_tree(value):
        if value.is_array():
            index = to_int(segment)
            return value.get_element(index) if index is not None else None
        return value.get_child(segment)
    if is_record(value):
        return get_property(value, segment)
    if is_sequence(value):
        index = to_int(segment)
        if index is not None and -len(value) <= index < len(value):
            return value[index]
    return None


def navigate(root: Any, path: str) -> Any:
    """
    Resolve a dotted path against root.

    Missing segments short-circuit to None rather than raising. Tree scalar
    nodes found at the end of the path are returned as host values.
    """
    return PathExpr(path).call(root)


class PathExpr:
    """A pre-split path that can be called against many roots."""

    def __init__(self, path: str):
        self.path = path
        self.segments: Tuple[str, ...] = tuple(split_path(path))

    def call(self, root: Any) -> Any:
        value = root
        for segment in self.segments:
            if value is None:
                return None
            value = step(value, segment)
        return unwrap(value)

    def __repr__(self) -> str:
        return f"PathExpr({self.path!r})"
