"""Plugin contract used by the plugin registry and the command surface.

Objects
~~~~~~~
``PluginContext``
    Frozen dataclass handed to ``BasePlugin.init``. Fields:

    - ``command`` - name of the invoked command (``"server"``)
    - ``values`` - read-only mapping of every command-line/environment lookup,
      plugin flags included

``BasePlugin``
    Base class that every plugin *must* subclass. Responsibilities:

    - contribute ``click.Option`` objects via ``flags()``
    - contribute ``click.Command`` objects via ``commands()``
    - run process-wide setup in ``init(context)`` before any component is
      constructed (e.g. configure logging, register extra transports)
    - offer config helpers (``configure`` / ``configuration``)

    Required class attributes:

    - ``plugin_code`` - unique identifier used for registration (e.g. "logging")
    - ``plugin_description`` - human-readable description of the plugin

    Constructor signature: ``BasePlugin(**config)``; ``config`` is passed to
    ``configure()``.

``configure(**config)``
    Subclasses define accepted parameters via the method signature. The method
    is wrapped by ``__init_subclass__`` so that arguments are validated with
    Pydantic's ``validate_call`` and then stored on the plugin. Invalid values
    raise ``pydantic.ValidationError``.

``capabilities()``
    Frozenset drawn from ``{"flags", "commands", "init"}``: a capability is
    present when the subclass overrides the corresponding hook.

Design constraints
~~~~~~~~~~~~~~~~~~
* Hooks must not block indefinitely; no timeout is enforced by the runtime.
* Plugins never see the resolved ``ServerConfig``: it is built after init
  and is immutable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, FrozenSet, List, Mapping

import click
from pydantic import validate_call

__all__ = ["BasePlugin", "PluginContext", "CAPABILITIES"]

CAPABILITIES = ("flags", "commands", "init")


@dataclass(frozen=True)
class PluginContext:
    """Data available to plugin init hooks."""

    command: str
    values: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))


def _wrap_configure(original_configure: Callable) -> Callable:
    """Wrap a plugin's configure() method to validate and store its arguments."""
    validated = validate_call(original_configure)

    def wrapper(self: "BasePlugin", **kwargs: Any) -> None:
        validated(self, **kwargs)
        self._config.update(kwargs)

    wrapper.__doc__ = original_configure.__doc__
    return wrapper


class BasePlugin:
    """Capability interface + configuration helpers for server plugins."""

    __slots__ = ("name", "_config")

    # Subclasses MUST define these class attributes
    plugin_code: str = ""
    plugin_description: str = ""

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if "configure" in cls.__dict__:
            cls.configure = _wrap_configure(cls.__dict__["configure"])

    def __init__(self, **config: Any):
        self.name = self.plugin_code
        self._config: Dict[str, Any] = {}
        self.configure(**config)

    def configure(self, **config: Any) -> None:
        """Override in subclasses to define accepted configuration parameters.

        Base implementation accepts no parameters.
        """
        if config:
            raise TypeError(
                f"Plugin '{self.name}' accepts no configuration, got {sorted(config)}"
            )

    def configuration(self) -> Dict[str, Any]:
        return dict(self._config)

    def capabilities(self) -> FrozenSet[str]:
        cls = type(self)
        return frozenset(
            hook for hook in CAPABILITIES if getattr(cls, hook) is not getattr(BasePlugin, hook)
        )

    def flags(self) -> List[click.Option]:
        """Options appended to the server command; default none."""
        return []

    def commands(self) -> List[click.Command]:
        """Sub-commands added to the server command; default none."""
        return []

    def init(self, context: PluginContext) -> None:  # pragma: no cover - default no-op
        """Hook run once before components are constructed."""
