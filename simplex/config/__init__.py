"""Configuration loading modules."""

from .loaders import ConfigLoader

__all__ = ["ConfigLoader"]
