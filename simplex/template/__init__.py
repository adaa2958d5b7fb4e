"""Template parsing, pipes and evaluation."""

from .engine import JSONPathEngine, Simplex, default_keys, default_pipes
from .functions import DATE_PIPES, NUMBER_KEYS, NUMBER_PIPES, STRING_PIPES, Dates, Numbers, Strings
from .parser import Expression, KeyExpr, Literal, Parser, PipeExpr, Template, parse
from .pipes import DefaultPipe, PipeRegistry, PipeSet

__all__ = [
    "JSONPathEngine",
    "Simplex",
    "default_keys",
    "default_pipes",
    "DATE_PIPES",
    "NUMBER_KEYS",
    "NUMBER_PIPES",
    "STRING_PIPES",
    "Dates",
    "Numbers",
    "Strings",
    "Expression",
    "KeyExpr",
    "Literal",
    "Parser",
    "PipeExpr",
    "Template",
    "parse",
    "DefaultPipe",
    "PipeRegistry",
    "PipeSet",
]
