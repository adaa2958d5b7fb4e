"""Exceptions raised by the Simplex engine."""

from typing import Optional


class SimplexError(Exception):
    """Base class for all Simplex errors."""


class TemplateSyntaxError(SimplexError):
    """Raised when a template string cannot be parsed."""

    def __init__(self, message: str, template: str = "", position: Optional[int] = None):
        self.template = template
        self.position = position
        if position is not None:
            message = f"{message} at position {position} in {template!r}"
        super().__init__(message)


class UnknownPipeError(SimplexError):
    """Raised when an expression refers to a pipe that is not registered."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown pipe: {name}")


class CyclicDelegationError(SimplexError):
    """Raised when key resolvers delegate to each other in a cycle."""
