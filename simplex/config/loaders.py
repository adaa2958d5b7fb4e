"""
Configuration loaders.

Handles loading of key resolver definitions and template sets from JSON files:

    configs/keys/<name>.json        key bindings and delegation
    configs/templates/<name>.json   named templates rendered together
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..errors import CyclicDelegationError
from ..model.keys import DEFAULT_NAMESPACE, BasicKeyResolver, ConstKeyHandler, Key, KeyHandler, KeyResolver, PathKeyHandler
from ..template.functions import NUMBER_KEYS

logger = logging.getLogger(__name__)

BUILTIN_RESOLVERS: Dict[str, KeyResolver] = {
    "numbers": NUMBER_KEYS,
}


class ConfigLoader:
    """Loads key resolver and template set configuration files."""

    def __init__(self, config_dir: str = "configs"):
        self.config_dir = Path(config_dir)
        self.keys_dir = self.config_dir / "keys"
        self.templates_dir = self.config_dir / "templates"

    def _load_json(self, path: Path, kind: str, name: str) -> Dict[str, Any]:
        if not path.exists():
            raise FileNotFoundError(f"{kind} config not found: {name}")

        with open(path) as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{kind} config '{name}' must be a JSON object")
        logger.info("Loaded %s config %s", kind.lower(), path)
        return data

    def load_keys(self, name: str) -> Dict[str, Any]:
        """Load a key resolver definition by name."""
        return self._load_json(self.keys_dir / f"{name}.json", "Keys", name)

    def load_template_set(self, name: str) -> Dict[str, Any]:
        """Load a template set by name."""
        return self._load_json(self.templates_dir / f"{name}.json", "Template set", name)

    def build_resolver(self, name: str) -> BasicKeyResolver:
        """
        Build a key resolver from keys/<name>.json and its delegates.

        Definition format:
            {
              "namespace": "app",
              "default_namespace": "field",
              "constants": {"title": "Dashboard"},
              "paths": ["*"],
              "delegates": ["common"],
              "builtin": ["numbers"]
            }

        Raises:
            FileNotFoundError: if a definition file is missing
            CyclicDelegationError: if definitions delegate to each other in a cycle
        """
        return self._build(name, [], {})

    def _build(self, name: str, building: List[str], built: Dict[str, BasicKeyResolver]) -> BasicKeyResolver:
        if name in building:
            chain = " -> ".join(building + [name])
            raise CyclicDelegationError(f"Cyclic key delegation: {chain}")
        if name in built:
            return built[name]

        definition = self.load_keys(name)
        namespace = definition.get("namespace", DEFAULT_NAMESPACE)

        bindings: Dict[Key, KeyHandler] = {}
        for key_name, value in definition.get("constants", {}).items():
            bindings[Key(namespace, key_name)] = ConstKeyHandler(value)
        for key_name in definition.get("paths", []):
            bindings[Key(namespace, key_name)] = PathKeyHandler()

        building.append(name)
        delegates: List[KeyResolver] = [
            self._build(delegate_name, building, built)
            for delegate_name in definition.get("delegates", [])
        ]
        building.pop()

        for builtin_name in definition.get("builtin", []):
            builtin = BUILTIN_RESOLVERS.get(builtin_name)
            if builtin is None:
                logger.warning("Skipping unknown builtin resolver '%s' in keys config '%s'", builtin_name, name)
                continue
            delegates.append(builtin)

        resolver = BasicKeyResolver(
            bindings,
            delegates,
            definition.get("default_namespace", DEFAULT_NAMESPACE)
        )
        built[name] = resolver
        return resolver

    def template_set(self, name: str) -> tuple[Dict[str, str], Optional[str]]:
        """
        Load a template set.

        Returns:
            Tuple of (templates by field name, key resolver name or None)
        """
        config = self.load_template_set(name)
        templates = config.get("templates")
        if not isinstance(templates, dict):
            raise ValueError(f"Template set '{name}' missing required 'templates' field")
        return templates, config.get("keys")
