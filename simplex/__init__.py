"""Simplex: ${...} template expressions over maps, records and JSON trees."""

from .errors import CyclicDelegationError, SimplexError, TemplateSyntaxError, UnknownPipeError
from .model import (
    BasicKeyResolver,
    ConstKeyHandler,
    FunctionKeyHandler,
    JsonNode,
    Key,
    KeyHandler,
    KeyResolver,
    PathExpr,
    PathKeyHandler,
    TreeNode,
    navigate,
)
from .template import PipeRegistry, PipeSet, Simplex, parse

__version__ = "1.0.0"

__all__ = [
    "CyclicDelegationError",
    "SimplexError",
    "TemplateSyntaxError",
    "UnknownPipeError",
    "BasicKeyResolver",
    "ConstKeyHandler",
    "FunctionKeyHandler",
    "JsonNode",
    "Key",
    "KeyHandler",
    "KeyResolver",
    "PathExpr",
    "PathKeyHandler",
    "TreeNode",
    "navigate",
    "PipeRegistry",
    "PipeSet",
    "Simplex",
    "parse",
]
