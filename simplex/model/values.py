"""
Value coercion between host representations.

Values reaching the engine are one of: None (absence), bool, int/float, str,
ordered sequences (list/tuple), unordered collections (sets and key views),
mappings, tree nodes (parsed documents) or records (dataclasses, named
tuples and plain objects). This module classifies them and converts them to
the shapes pipes and the path navigator work with.
"""

import dataclasses
import json
import re
from abc import ABC, abstractmethod
from collections.abc import Mapping, Set
from typing import Any, Iterator, List, Optional


class TreeNode(ABC):
    """Read-only view over one node of a tree-structured document."""

    @abstractmethod
    def get_child(self, name: str) -> Any:
        """Return the named child, or None."""

    @abstractmethod
    def get_element(self, index: int) -> Any:
        """Return the array element at index, or None."""

    @abstractmethod
    def is_array(self) -> bool:
        ...

    @abstractmethod
    def is_object(self) -> bool:
        ...

    @abstractmethod
    def scalar_value(self) -> Any:
        """Return the host scalar for a leaf node."""

    @abstractmethod
    def size(self) -> int:
        ...

    def elements(self) -> Iterator[Any]:
        for index in range(self.size()):
            yield self.get_element(index)


class JsonNode(TreeNode):
    """TreeNode over the output of json.loads."""

    __slots__ = ("_raw",)

    def __init__(self, raw: Any):
        self._raw = raw

    @classmethod
    def parse(cls, text: str) -> "JsonNode":
        return cls(json.loads(text))

    @property
    def raw(self) -> Any:
        return self._raw

    def get_child(self, name: str) -> Any:
        if isinstance(self._raw, dict) and name in self._raw:
            return JsonNode(self._raw[name])
        return None

    def get_element(self, index: int) -> Any:
        if isinstance(self._raw, list) and -len(self._raw) <= index < len(self._raw):
            return JsonNode(self._raw[index])
        return None

    def is_array(self) -> bool:
        return isinstance(self._raw, list)

    def is_object(self) -> bool:
        return isinstance(self._raw, dict)

    def scalar_value(self) -> Any:
        if self.is_array() or self.is_object():
            return None
        return self._raw

    def size(self) -> int:
        if isinstance(self._raw, (list, dict)):
            return len(self._raw)
        return 0

    def __eq__(self, other: Any) -> bool:
        return isinstance(other, JsonNode) and other._raw == self._raw

    def __hash__(self) -> int:
        return hash(json.dumps(self._raw, sort_keys=True))

    def __repr__(self) -> str:
        return f"JsonNode({json.dumps(self._raw)})"


_SCALARS = (str, bytes, bool, int, float, complex)

# Optional sign, digits with at most one decimal point
_NUMBER_PATTERN = re.compile(r'^[+-]?(\d+\.?\d*|\.\d+)$')


def is_map(value: Any) -> bool:
    return isinstance(value, Mapping)


def is_tree(value: Any) -> bool:
    return isinstance(value, TreeNode)


def is_named_tuple(value: Any) -> bool:
    return isinstance(value, tuple) and hasattr(value, "_fields")


def is_record(value: Any) -> bool:
    """Structured records: dataclass instances, named tuples, plain objects."""
    if value is None or isinstance(value, _SCALARS):
        return False
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return True
    if is_named_tuple(value):
        return True
    if isinstance(value, (Mapping, Set, list, tuple, TreeNode, type)):
        return False
    return hasattr(value, "__dict__") or hasattr(type(value), "__slots__")


def is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple)) and not is_named_tuple(value)


def is_unordered(value: Any) -> bool:
    return isinstance(value, Set)


def unwrap(value: Any) -> Any:
    """Replace tree scalar nodes by their host value; other values pass."""
    if is_tree(value) and not (value.is_array() or value.is_object()):
        return value.scalar_value()
    return value


def to_sequence(value: Any) -> Optional[List[Any]]:
    """
    Canonical ordered view of a collection.

    Lists and tuples keep their order, sets keep their iteration order and
    tree arrays become the list of their elements. Text and scalars are not
    collections and yield None.
    """
    if is_sequence(value) or is_unordered(value):
        return list(value)
    if is_tree(value) and value.is_array():
        return [unwrap(element) for element in value.elements()]
    return None


def get_property(value: Any, name: str) -> Any:
    """Read a public attribute of a record, or None."""
    if not name or name.startswith("_"):
        return None
    if is_named_tuple(value):
        return getattr(value, name) if name in value._fields else None
    try:
        return getattr(value, name)
    except AttributeError:
        return None


def to_text(value: Any) -> str:
    """Render a value as text; absence renders empty."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if is_tree(value):
        if value.is_array() or value.is_object():
            return json.dumps(value.raw) if isinstance(value, JsonNode) else repr(value)
        return to_text(value.scalar_value())
    if is_map(value):
        inner = ", ".join(f"{to_text(k)}={to_text(v)}" for k, v in value.items())
        return "{" + inner + "}"
    if is_sequence(value) or is_unordered(value):
        return "[" + ", ".join(to_text(item) for item in value) + "]"
    return str(value)


def parse_number(text: Any) -> Optional[float]:
    """
    Lenient numeric parse shared by the numeric pipes.

    Thousands separators are dropped and leading zeros accepted. Anything
    else outside digits, one decimal point and a leading sign gives None.
    """
    if not isinstance(text, str):
        return None
    cleaned = text.strip().replace(",", "")
    if not _NUMBER_PATTERN.match(cleaned):
        return None
    return float(cleaned)


def to_number(value: Any) -> Optional[float]:
    value = unwrap(value)
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    return parse_number(value)


def to_int(value: Any) -> Optional[int]:
    """Integer pipe arguments; None when the argument is not an integer."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and re.match(r'^\s*[+-]?\d+\s*$', value):
        return int(value)
    return None
