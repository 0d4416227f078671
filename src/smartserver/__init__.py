"""SmartServer public API surface (source of truth).

Recreate the module with these rules:
- Public exports: ``ServerConfig``, ``resolve_config``, ``PluginRegistry``,
  ``BasePlugin``, ``PluginContext``, ``ComponentFactory``, ``Lifecycle``,
  ``register_plugin``.
- Plugin registration: import built-in plugins (``logging``) for their side
  effect of calling ``register_plugin(<class>)`` on the process-wide registry.
  Imports are done lazily via ``import_module`` to avoid cycles.

Constraints
-----------
- Import must stay lightweight: no component construction and no CLI assembly
  (the command surface lives in ``smartserver.cli`` and seals the registry when
  built).
- Version string lives here as ``__version__`` and must remain available for
  packaging tools.
"""

from importlib import import_module

__version__ = "0.1.0"

from .core import (
    BasePlugin,
    ComponentFactory,
    Lifecycle,
    PluginContext,
    PluginRegistry,
    ServerConfig,
    register_plugin,
    resolve_config,
)

# Import plugins to trigger auto-registration (lazy to avoid cycles)
for _plugin in ("logging",):
    import_module(f"{__name__}.plugins.{_plugin}")
del _plugin

__all__ = [
    "BasePlugin",
    "ComponentFactory",
    "Lifecycle",
    "PluginContext",
    "PluginRegistry",
    "ServerConfig",
    "register_plugin",
    "resolve_config",
]
