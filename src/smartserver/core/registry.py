"""Ordered plugin registry (source of truth).

``PluginRegistry`` owns an ordered, append-only sequence of ``PluginEntry``.
Insertion order is the order used for init hooks and for command assembly.

Registration
------------
``register(plugin, **config)`` accepts a ``BasePlugin`` subclass (instantiated
with ``config``) or an already-built instance (``config`` must then be empty).
Plugins without ``plugin_code`` raise ``ValueError``. Registering a different
plugin under an existing code raises ``ValueError``; registering the same class
or the same instance again is idempotent and returns the existing entry. After
``seal()`` any registration raises ``RegistryError``.

Command assembly
----------------
``flags()`` and ``commands()`` concatenate what each plugin contributes, in
registration order, without deduplication: two plugins declaring the same flag
name is left to click to reject.

Initialisation
--------------
``init_all(context)`` calls ``plugin.init(context)`` exactly once per entry, in
registration order. Exceptions propagate unchanged; there is no timeout.

Process-wide registry
---------------------
``default_registry()`` returns the registry built-in plugins add themselves to
on import; ``register_plugin`` and ``plugins`` are shortcuts on it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, FrozenSet, List, Optional, Tuple, Type, Union

import click
from smartseeds.typeutils import safe_is_instance

from smartserver.core.errors import RegistryError
from smartserver.plugins._base_plugin import BasePlugin, PluginContext

__all__ = [
    "PluginEntry",
    "PluginRegistry",
    "default_registry",
    "register_plugin",
    "plugins",
]

logger = logging.getLogger("smartserver")

_BASE_PLUGIN_PATH = "smartserver.plugins._base_plugin.BasePlugin"


@dataclass(frozen=True)
class PluginEntry:
    """Plugin identity paired with its capability set."""

    name: str
    plugin: BasePlugin
    capabilities: FrozenSet[str]

    def has(self, capability: str) -> bool:
        return capability in self.capabilities


class PluginRegistry:
    """Append-only ordered collection of plugins."""

    def __init__(self) -> None:
        self._entries: List[PluginEntry] = []
        self._sealed = False

    @property
    def sealed(self) -> bool:
        return self._sealed

    def register(
        self, plugin: Union[BasePlugin, Type[BasePlugin]], **config: Any
    ) -> PluginEntry:
        if self._sealed:
            raise RegistryError("Plugin registry is sealed; register plugins at process start")
        instance = self._instantiate(plugin, config)
        if not instance.plugin_code:
            raise ValueError(
                f"Plugin {type(instance).__name__} not following standards: missing plugin_code"
            )
        existing = self.get(instance.plugin_code)
        if existing is not None:
            if existing.plugin is instance:
                return existing
            if type(existing.plugin) is type(instance) and isinstance(plugin, type):
                return existing
            raise ValueError(f"Plugin '{instance.plugin_code}' already registered")
        entry = PluginEntry(
            name=instance.plugin_code,
            plugin=instance,
            capabilities=instance.capabilities(),
        )
        self._entries.append(entry)
        logger.debug("registered plugin %s (%s)", entry.name, ", ".join(sorted(entry.capabilities)))
        return entry

    def _instantiate(self, plugin: Any, config: dict) -> BasePlugin:
        if isinstance(plugin, type):
            if not issubclass(plugin, BasePlugin):
                raise TypeError("plugin must be a BasePlugin subclass or instance")
            return plugin(**config)
        if not safe_is_instance(plugin, _BASE_PLUGIN_PATH):
            raise TypeError("plugin must be a BasePlugin subclass or instance")
        if config:
            raise TypeError("config can only be supplied when registering a plugin class")
        return plugin

    def seal(self) -> "PluginRegistry":
        self._sealed = True
        return self

    def get(self, name: str) -> Optional[PluginEntry]:
        for entry in self._entries:
            if entry.name == name:
                return entry
        return None

    def entries(self) -> Tuple[PluginEntry, ...]:
        return tuple(self._entries)

    def __iter__(self):
        return iter(self.entries())

    def __len__(self) -> int:
        return len(self._entries)

    def flags(self) -> List[click.Option]:
        collected: List[click.Option] = []
        for entry in self._entries:
            if entry.has("flags"):
                collected.extend(entry.plugin.flags())
        return collected

    def commands(self) -> List[click.Command]:
        collected: List[click.Command] = []
        for entry in self._entries:
            if entry.has("commands"):
                collected.extend(entry.plugin.commands())
        return collected

    def init_all(self, context: PluginContext) -> None:
        for entry in self._entries:
            if entry.has("init"):
                logger.debug("initialising plugin %s", entry.name)
                entry.plugin.init(context)


_DEFAULT_REGISTRY = PluginRegistry()


def default_registry() -> PluginRegistry:
    return _DEFAULT_REGISTRY


def register_plugin(plugin: Union[BasePlugin, Type[BasePlugin]], **config: Any) -> PluginEntry:
    """Register a plugin on the process-wide registry."""
    return _DEFAULT_REGISTRY.register(plugin, **config)


def plugins() -> Tuple[BasePlugin, ...]:
    """Return the process-wide plugins in registration order."""
    return tuple(entry.plugin for entry in _DEFAULT_REGISTRY.entries())
