"""Keys, path navigation and value coercion."""

from .keys import (
    BasicKeyResolver,
    ConstKeyHandler,
    FunctionKeyHandler,
    Key,
    KeyHandler,
    KeyResolver,
    PathKeyHandler,
)
from .path import PathExpr, navigate
from .values import JsonNode, TreeNode

__all__ = [
    "BasicKeyResolver",
    "ConstKeyHandler",
    "FunctionKeyHandler",
    "Key",
    "KeyHandler",
    "KeyResolver",
    "PathKeyHandler",
    "PathExpr",
    "navigate",
    "JsonNode",
    "TreeNode",
]
