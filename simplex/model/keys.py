"""
Key registry: binds namespaced keys to the handlers that produce their values.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping, Optional, Tuple

from ..errors import CyclicDelegationError
from .path import navigate

WILDCARD = "*"
DEFAULT_NAMESPACE = "field"


@dataclass(frozen=True)
class Key:
    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.namespace}:{self.name}"


class KeyHandler(ABC):
    """Produces the value of a key for one evaluation context."""

    @abstractmethod
    def call(self, key: Key, context: Any) -> Any:
        ...


class ConstKeyHandler(KeyHandler):
    """Always yields the same value, whatever the context."""

    def __init__(self, value: Any):
        self.value = value

    def call(self, key: Key, context: Any) -> Any:
        return self.value

    def __repr__(self) -> str:
        return f"ConstKeyHandler({self.value!r})"


class PathKeyHandler(KeyHandler):
    """
    Navigates the context by the key name.

    Bound to a wildcard key such as Key("field", "*") this makes ${user.name}
    read context["user"]; the evaluator applies the ".name" suffix afterwards.
    """

    def call(self, key: Key, context: Any) -> Any:
        return navigate(context, key.name)

    def __repr__(self) -> str:
        return "PathKeyHandler()"


class FunctionKeyHandler(KeyHandler):
    """Adapts a plain callable taking (key, context)."""

    def __init__(self, fn: Callable[[Key, Any], Any]):
        self.fn = fn

    def call(self, key: Key, context: Any) -> Any:
        return self.fn(key, context)


class KeyResolver(ABC):
    """Finds the handler bound to a key, or None when nothing is bound."""

    default_namespace: str = DEFAULT_NAMESPACE

    @abstractmethod
    def resolve(self, key: Key) -> Optional[KeyHandler]:
        ...

    @property
    def delegates(self) -> Tuple["KeyResolver", ...]:
        return ()


class BasicKeyResolver(KeyResolver):
    """
    Immutable Key -> KeyHandler bindings with fallback resolvers.

    Lookup tries the exact local binding, then the local wildcard binding for
    the key's namespace, then every delegate in registration order.
    """

    def __init__(
        self,
        bindings: Optional[Mapping[Key, KeyHandler]] = None,
        delegates: Iterable[KeyResolver] = (),
        default_namespace: str = DEFAULT_NAMESPACE
    ):
        self._bindings = MappingProxyType(dict(bindings or {}))
        self._delegates = tuple(delegates)
        self.default_namespace = default_namespace
        check_delegation(self)

    @property
    def bindings(self) -> Mapping[Key, KeyHandler]:
        return self._bindings

    @property
    def delegates(self) -> Tuple[KeyResolver, ...]:
        return self._delegates

    def resolve(self, key: Key) -> Optional[KeyHandler]:
        handler = self._bindings.get(key)
        if handler is None:
            handler = self._bindings.get(Key(key.namespace, WILDCARD))
        if handler is not None:
            return handler
        for delegate in self._delegates:
            handler = delegate.resolve(key)
            if handler is not None:
                return handler
        return None

    def key(self, key: Key, handler: KeyHandler) -> "BasicKeyResolver":
        """Return a copy with one more binding."""
        bindings = dict(self._bindings)
        bindings[key] = handler
        return BasicKeyResolver(bindings, self._delegates, self.default_namespace)

    def delegate(self, other: KeyResolver) -> "BasicKeyResolver":
        """Return a copy that falls back to other after existing delegates."""
        return BasicKeyResolver(self._bindings, self._delegates + (other,), self.default_namespace)

    def __repr__(self) -> str:
        return f"BasicKeyResolver({len(self._bindings)} keys, {len(self._delegates)} delegates)"


def check_delegation(resolver: KeyResolver) -> None:
    """Raise CyclicDelegationError if resolver reaches itself via delegates."""
    path = []
    done = set()

    def visit(current: KeyResolver) -> None:
        if id(current) in done:
            return
        if any(current is seen for seen in path):
            chain = " -> ".join(repr(r) for r in path + [current])
            raise CyclicDelegationError(f"Cyclic key delegation: {chain}")
        path.append(current)
        for delegate in current.delegates:
            visit(delegate)
        path.pop()
        done.add(id(current))

    visit(resolver)
