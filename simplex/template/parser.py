"""
Template parsing.

Splits template strings into literal text and ${...} expressions, and parses
each expression into a key reference followed by a chain of pipes:

    ${ns:name.path | pipe:arg1:arg2 | other}
"""

import logging
from dataclasses import dataclass, field
from typing import Iterator, Optional, Tuple, Union

from ..errors import TemplateSyntaxError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Literal:
    text: str

    def to_source(self) -> str:
        return self.text


@dataclass(frozen=True)
class KeyExpr:
    namespace: Optional[str]
    name: str
    path: Optional[str] = None

    def __str__(self) -> str:
        text = f"{self.namespace}:{self.name}" if self.namespace is not None else self.name
        if self.path:
            text += "." + self.path
        return text


@dataclass(frozen=True)
class PipeExpr:
    name: str
    args: Tuple[str, ...] = ()

    def __str__(self) -> str:
        return ":".join((self.name,) + self.args)


@dataclass(frozen=True)
class Expression:
    key: KeyExpr
    pipes: Tuple[PipeExpr, ...] = ()
    # Raw text between ${ and }, kept for lossless re-serialization
    source: str = field(default="", compare=False)

    def __str__(self) -> str:
        return "${" + "|".join([str(self.key)] + [str(p) for p in self.pipes]) + "}"

    def to_source(self) -> str:
        return "${" + self.source + "}" if self.source else str(self)


Node = Union[Literal, Expression]


@dataclass(frozen=True)
class Template:
    nodes: Tuple[Node, ...] = ()

    @property
    def is_single_expression(self) -> bool:
        return len(self.nodes) == 1 and isinstance(self.nodes[0], Expression)

    def expressions(self) -> Iterator[Expression]:
        for node in self.nodes:
            if isinstance(node, Expression):
                yield node

    def to_source(self) -> str:
        return "".join(node.to_source() for node in self.nodes)


class Parser:
    """Parses template strings into Template trees."""

    OPEN = "${"
    CLOSE = "}"
    PIPE = "|"
    ARG = ":"

    def parse(self, template: str) -> Template:
        """
        Parse a template string.

        Args:
            template: Text with embedded ${...} expressions

        Returns:
            Template of Literal and Expression nodes, in source order

        Raises:
            TemplateSyntaxError: on an unterminated ${, a key reference
                without a name, an empty pipe or a dangling argument separator
        """
        nodes = []
        pos = 0
        while pos < len(template):
            start = template.find(self.OPEN, pos)
            if start < 0:
                nodes.append(Literal(template[pos:]))
                break
            if start > pos:
                nodes.append(Literal(template[pos:start]))
            body_start = start + len(self.OPEN)
            end = template.find(self.CLOSE, body_start)
            nested = template.find(self.OPEN, body_start)
            if end < 0 or 0 <= nested < end:
                raise TemplateSyntaxError("Unterminated expression", template, start)
            nodes.append(self.parse_expression(template, body_start, end))
            pos = end + len(self.CLOSE)

        logger.debug("Parsed template %r into %d nodes", template, len(nodes))
        return Template(tuple(nodes))

    def parse_expression(self, template: str, start: int, end: int) -> Expression:
        """Parse the body template[start:end] of one ${...} expression."""
        body = template[start:end]
        segments = body.split(self.PIPE)

        offset = start
        key = self.parse_key(segments[0], template, offset)
        offset += len(segments[0]) + 1

        pipes = []
        for segment in segments[1:]:
            pipes.append(self.parse_pipe(segment, template, offset))
            offset += len(segment) + 1

        return Expression(key, tuple(pipes), body)

    def parse_key(self, text: str, template: str, offset: int) -> KeyExpr:
        text = text.strip()
        if not text:
            raise TemplateSyntaxError("Missing key reference", template, offset)

        namespace = None
        if self.ARG in text:
            namespace, text = text.split(self.ARG, 1)
            namespace = namespace.strip()
            text = text.strip()
            if not namespace:
                raise TemplateSyntaxError("Empty key namespace", template, offset)

        name, _, path = text.partition(".")
        if not name:
            raise TemplateSyntaxError("Missing key name", template, offset)
        return KeyExpr(namespace, name, path or None)

    def parse_pipe(self, text: str, template: str, offset: int) -> PipeExpr:
        parts = text.strip().split(self.ARG)
        name = parts[0].strip()
        if not name:
            raise TemplateSyntaxError("Missing pipe name", template, offset)
        args = tuple(parts[1:])
        if args and args[-1] == "":
            raise TemplateSyntaxError(f"Unterminated argument list for pipe '{name}'", template, offset)
        return PipeExpr(name, args)


_parser = Parser()


def parse(template: str) -> Template:
    """Parse template with a shared Parser."""
    return _parser.parse(template)
