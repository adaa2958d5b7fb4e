"""
Pipe registry and the default pipes.

A pipe is a pure function of (value, args) where args are the raw strings
written after the pipe name: ${ns:items | slice:1:2}. Default pipes form a
closed enumeration; embedder pipes live in a separate extension table and
never shadow a default.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from ..errors import UnknownPipeError
from ..model.path import navigate
from ..model.values import (
    is_map,
    is_record,
    is_tree,
    to_int,
    to_number,
    to_sequence,
    to_text,
    unwrap,
)

PipeFn = Callable[[Any, Sequence[str]], Any]


class DefaultPipe(Enum):
    SIZE = "size"
    FIRST = "first"
    LAST = "last"
    REVERSED = "reversed"
    SLICE = "slice"
    TAKE = "take"
    TAKE_LAST = "takeLast"
    FILTER = "filter"
    MAP = "map"
    MAX_NUM = "maxNum"


def _arg(args: Sequence[str], index: int) -> Optional[str]:
    return args[index] if len(args) > index else None


def _rest(args: Sequence[str], index: int) -> Optional[str]:
    """Arguments from index on, rejoined; arguments may themselves contain ':'."""
    if len(args) <= index:
        return None
    return ":".join(args[index:])


def collect_numbers(value: Any) -> List[float]:
    """
    Parse every element of value as a number, skipping failures.

    Text input is treated as a comma-delimited list of elements.
    """
    value = unwrap(value)
    if value is None:
        return []
    if isinstance(value, str):
        elements = value.split(",")
    else:
        elements = to_sequence(value)
        if elements is None:
            elements = [value]
    numbers = []
    for element in elements:
        number = to_number(element)
        if number is not None:
            numbers.append(number)
    return numbers


def size(value: Any, args: Sequence[str]) -> Any:
    value = unwrap(value)
    if isinstance(value, str) or is_map(value):
        return len(value)
    if is_tree(value):
        return value.size()
    items = to_sequence(value)
    return len(items) if items is not None else None


def first(value: Any, args: Sequence[str]) -> Any:
    value = unwrap(value)
    items = value if isinstance(value, str) else to_sequence(value)
    return items[0] if items else None


def last(value: Any, args: Sequence[str]) -> Any:
    value = unwrap(value)
    items = value if isinstance(value, str) else to_sequence(value)
    return items[-1] if items else None


def reversed_(value: Any, args: Sequence[str]) -> Any:
    value = unwrap(value)
    if isinstance(value, str):
        return value[::-1]
    items = to_sequence(value)
    return items[::-1] if items is not None else None


def slice_(value: Any, args: Sequence[str]) -> Any:
    """Elements from start to end, both inclusive: slice:0:0 keeps one element."""
    value = unwrap(value)
    items = value if isinstance(value, str) else to_sequence(value)
    start = to_int(_arg(args, 0))
    if items is None or start is None:
        return None
    end = to_int(_arg(args, 1)) if len(args) > 1 else len(items) - 1
    if end is None:
        return None
    start = max(start, 0)
    stop = max(end + 1, start)
    return items[start:stop]


def take(value: Any, args: Sequence[str]) -> Any:
    value = unwrap(value)
    items = value if isinstance(value, str) else to_sequence(value)
    count = to_int(_arg(args, 0))
    if items is None or count is None:
        return None
    return items[:max(count, 0)]


def take_last(value: Any, args: Sequence[str]) -> Any:
    value = unwrap(value)
    items = value if isinstance(value, str) else to_sequence(value)
    count = to_int(_arg(args, 0))
    if items is None or count is None:
        return None
    return items[max(len(items) - max(count, 0), 0):]


def _is_fielded(value: Any) -> bool:
    return is_map(value) or is_record(value) or (is_tree(value) and value.is_object())


def filter_(value: Any, args: Sequence[str]) -> Any:
    """
    Keep the records whose field, rendered as text, equals the expected text.

    Comparison is textual, so a boolean True and the string "true" both match
    filter:field:true.
    """
    items = to_sequence(unwrap(value))
    field_name = _arg(args, 0)
    expected = _rest(args, 1)
    if items is None or field_name is None or expected is None:
        return None
    kept = []
    for item in items:
        if not _is_fielded(item):
            continue
        actual = navigate(item, field_name)
        if actual is not None and to_text(actual) == expected:
            kept.append(item)
    return kept


def map_(value: Any, args: Sequence[str]) -> Any:
    """Project each element to its field value, keeping value types."""
    items = to_sequence(unwrap(value))
    field_name = _arg(args, 0)
    if items is None or field_name is None:
        return None
    return [navigate(item, field_name) for item in items]


def max_num(value: Any, args: Sequence[str]) -> Any:
    numbers = collect_numbers(value)
    if not numbers:
        return None
    result = max(numbers)
    places = to_int(_arg(args, 0))
    return round(result, places) if places is not None else result


DEFAULT_PIPES: Mapping[DefaultPipe, PipeFn] = MappingProxyType({
    DefaultPipe.SIZE: size,
    DefaultPipe.FIRST: first,
    DefaultPipe.LAST: last,
    DefaultPipe.REVERSED: reversed_,
    DefaultPipe.SLICE: slice_,
    DefaultPipe.TAKE: take,
    DefaultPipe.TAKE_LAST: take_last,
    DefaultPipe.FILTER: filter_,
    DefaultPipe.MAP: map_,
    DefaultPipe.MAX_NUM: max_num,
})


def _passes_absence(fn: PipeFn) -> PipeFn:
    def pipe(value: Any, args: Sequence[str]) -> Any:
        if value is None:
            return None
        return fn(value, args)
    pipe.__name__ = getattr(fn, "__name__", "pipe")
    pipe.__doc__ = fn.__doc__
    return pipe


@dataclass(frozen=True)
class PipeSet:
    """A named group of extension pipes, registered as "<namespace>.<name>"."""

    namespace: str
    pipes: Mapping[str, PipeFn] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "pipes", MappingProxyType(dict(self.pipes)))

    def qualified(self) -> Dict[str, PipeFn]:
        return {f"{self.namespace}.{name}": fn for name, fn in self.pipes.items()}


class PipeRegistry:
    """
    Immutable lookup table from pipe names to pipe functions.

    Pipes added through with_pipe and with_set never see None: absence flows
    past them untouched unless with_pipe is called with passes_absence=False.
    """

    def __init__(self, extensions: Optional[Mapping[str, PipeFn]] = None):
        for name in extensions or {}:
            if self.default_pipe(name) is not None:
                raise ValueError(f"Pipe '{name}' is a default pipe and cannot be replaced")
        self._extensions = MappingProxyType(dict(extensions or {}))

    @staticmethod
    def default_pipe(name: str) -> Optional[DefaultPipe]:
        try:
            return DefaultPipe(name)
        except ValueError:
            return None

    @property
    def extensions(self) -> Mapping[str, PipeFn]:
        return self._extensions

    def with_pipe(self, name: str, fn: PipeFn, passes_absence: bool = True) -> "PipeRegistry":
        """Return a copy with one more extension pipe."""
        extensions = dict(self._extensions)
        extensions[name] = _passes_absence(fn) if passes_absence else fn
        return PipeRegistry(extensions)

    def with_set(self, pipe_set: PipeSet) -> "PipeRegistry":
        """Return a copy with every pipe of pipe_set under its namespace."""
        extensions = dict(self._extensions)
        for name, fn in pipe_set.qualified().items():
            extensions[name] = _passes_absence(fn)
        return PipeRegistry(extensions)

    def lookup(self, name: str) -> Optional[PipeFn]:
        default = self.default_pipe(name)
        if default is not None:
            return _DEFAULT_WRAPPED[default]
        return self._extensions.get(name)

    def has(self, name: str) -> bool:
        return self.lookup(name) is not None

    def apply(self, name: str, args: Sequence[str], value: Any) -> Any:
        """
        Run one pipe.

        Raises:
            UnknownPipeError: if name is neither a default nor an extension pipe
        """
        fn = self.lookup(name)
        if fn is None:
            raise UnknownPipeError(name)
        return fn(value, tuple(args))

    def __repr__(self) -> str:
        return f"PipeRegistry({len(DefaultPipe)} default, {len(self._extensions)} extension pipes)"


_DEFAULT_WRAPPED: Mapping[DefaultPipe, PipeFn] = MappingProxyType(
    {pipe: _passes_absence(fn) for pipe, fn in DEFAULT_PIPES.items()}
)
