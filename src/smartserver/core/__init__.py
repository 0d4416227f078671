"""Core runtime aggregator (source of truth).

Purpose: expose the runtime building blocks from a single module. No extra
logic beyond imports/exports.

Guarantees
----------
- Importing this module performs only imports; it does not register plugins or
  build components.
- Public API mirrors underlying modules 1:1:
  * ``config`` -> ``ServerConfig``, ``ConfigDefaults``, ``TeardownPolicy``,
    ``resolve_config``
  * ``registry`` -> ``PluginRegistry``, ``PluginEntry`` and the process-wide
    registry helpers
  * ``components`` -> ``ComponentFactory`` and collaborator protocols
  * ``lifecycle`` -> ``Lifecycle``, ``LifecycleState``
  * ``errors`` -> exception hierarchy
"""

from smartserver.plugins._base_plugin import BasePlugin, PluginContext

from .components import ComponentFactory, Registry, Router, Server, Service, Transport
from .config import ConfigDefaults, ServerConfig, TeardownPolicy, resolve_config
from .errors import (
    ConfigError,
    LifecycleError,
    RegistryError,
    RouterStartError,
    RouterStopError,
    RunLoopError,
    SmartServerError,
)
from .lifecycle import Lifecycle, LifecycleState
from .registry import PluginEntry, PluginRegistry, default_registry, plugins, register_plugin

__all__ = [
    "BasePlugin",
    "ComponentFactory",
    "ConfigDefaults",
    "ConfigError",
    "Lifecycle",
    "LifecycleError",
    "LifecycleState",
    "PluginContext",
    "PluginEntry",
    "PluginRegistry",
    "Registry",
    "RegistryError",
    "Router",
    "RouterStartError",
    "RouterStopError",
    "RunLoopError",
    "Server",
    "ServerConfig",
    "Service",
    "SmartServerError",
    "TeardownPolicy",
    "Transport",
    "default_registry",
    "plugins",
    "register_plugin",
    "resolve_config",
]
