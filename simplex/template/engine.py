"""
Template evaluation.

Simplex parses template strings, resolves each key reference through a key
resolver, applies the key's path suffix and threads the result through the
expression's pipes. JSONPath lookups ($.items[0].name) go through
JSONPathEngine.
"""

import logging
from typing import Any, List, Optional

from jsonpath_ng import parse as jsonpath_parse
from jsonpath_ng.exceptions import JsonPathLexerError, JsonPathParserError

from ..errors import TemplateSyntaxError, UnknownPipeError
from ..model.keys import BasicKeyResolver, Key, KeyResolver, PathKeyHandler, DEFAULT_NAMESPACE, WILDCARD
from ..model.path import navigate
from ..model.values import JsonNode, to_text, unwrap
from .functions import DATE_PIPES, NUMBER_PIPES, STRING_PIPES
from .parser import Expression, Literal, Parser, Template
from .pipes import PipeRegistry

logger = logging.getLogger(__name__)


class JSONPathEngine:
    """Evaluates JSONPath expressions against plain or JsonNode documents."""

    @staticmethod
    def evaluate(expression: str, data: Any) -> List[Any]:
        """
        Evaluate a JSONPath expression against data.

        Args:
            expression: JSONPath expression
            data: Data to query; a JsonNode is queried through its raw value

        Returns:
            List of matching values

        Raises:
            TemplateSyntaxError: if the expression is not valid JSONPath
        """
        if isinstance(data, JsonNode):
            data = data.raw
        try:
            jsonpath_expr = jsonpath_parse(expression)
        except (JsonPathLexerError, JsonPathParserError) as e:
            raise TemplateSyntaxError(f"Invalid JSONPath {expression!r}: {e}") from e
        matches = jsonpath_expr.find(data)
        return [match.value for match in matches]


def default_keys() -> BasicKeyResolver:
    """Keys without a namespace read straight from the context."""
    return BasicKeyResolver({Key(DEFAULT_NAMESPACE, WILDCARD): PathKeyHandler()})


def default_pipes() -> PipeRegistry:
    return PipeRegistry().with_set(NUMBER_PIPES).with_set(STRING_PIPES).with_set(DATE_PIPES)


class Simplex:
    """Evaluates templates with one key resolver and one pipe registry."""

    def __init__(
        self,
        keys: Optional[KeyResolver] = None,
        pipes: Optional[PipeRegistry] = None,
        parser: Optional[Parser] = None
    ):
        self.keys = keys if keys is not None else default_keys()
        self.pipes = pipes if pipes is not None else default_pipes()
        self.parser = parser or Parser()

    def with_keys(self, keys: KeyResolver) -> "Simplex":
        return Simplex(keys, self.pipes, self.parser)

    def with_pipes(self, pipes: PipeRegistry) -> "Simplex":
        return Simplex(self.keys, pipes, self.parser)

    def parse(self, template: str) -> Template:
        """
        Parse a template and check that every pipe it uses is registered.

        Raises:
            TemplateSyntaxError: if the template is malformed
            UnknownPipeError: if an expression names an unregistered pipe
        """
        parsed = self.parser.parse(template)
        for expression in parsed.expressions():
            for pipe in expression.pipes:
                if not self.pipes.has(pipe.name):
                    raise UnknownPipeError(pipe.name)
        return parsed

    def eval(self, template: str, context: Any = None) -> Any:
        """
        Evaluate a template string against a context value.

        A template made of exactly one expression returns that expression's
        value as is; anything else returns text, with absent values rendered
        as empty strings.
        """
        return self.execute(self.parse(template), context)

    def execute(self, template: Template, context: Any = None) -> Any:
        """Evaluate an already parsed template."""
        if template.is_single_expression:
            return self.evaluate_expression(template.nodes[0], context)

        parts = []
        for node in template.nodes:
            if isinstance(node, Literal):
                parts.append(node.text)
            else:
                parts.append(to_text(self.evaluate_expression(node, context)))
        return "".join(parts)

    def evaluate_expression(self, expression: Expression, context: Any) -> Any:
        key_expr = expression.key
        namespace = key_expr.namespace if key_expr.namespace is not None else self.keys.default_namespace
        key = Key(namespace, key_expr.name)

        handler = self.keys.resolve(key)
        if handler is None:
            logger.debug("Unresolved key %s", key)
            value = None
        else:
            value = handler.call(key, context)

        if key_expr.path:
            value = navigate(value, key_expr.path)

        for pipe in expression.pipes:
            value = self.pipes.apply(pipe.name, pipe.args, value)
        return unwrap(value)

    def get_path(self, path: str, context: Any) -> Any:
        """
        Look up a path in context without the template grammar.

        Paths starting with '$' are JSONPath and yield their first match;
        anything else is a dotted path.
        """
        if path.startswith("$"):
            results = JSONPathEngine.evaluate(path, context)
            return results[0] if results else None
        return navigate(context, path)
