"""Configuration resolution for the server process.

``resolve_config(values, defaults=None)`` turns a mapping of named lookups into
an immutable :class:`ServerConfig`. ``values`` holds command-line values that
click has already merged with their environment variables.

Precedence
----------
- String settings (``name``, ``address``, ``router_address``, ``network_id``):
  a non-empty lookup replaces the default, anything else keeps it.
- ``register_ttl`` / ``register_interval``: integer seconds, used as-is with no
  precedence check (unset means ``0``); non-numeric values raise
  :class:`ConfigError`.
- ``teardown_policy``: empty keeps ``always``; unknown values raise
  :class:`ConfigError`.

Lookup keys are the names the flags declare (``OVERRIDE_KEYS``), so
``router_address`` and ``network_address`` overrides do apply.
"""

from __future__ import annotations

from datetime import timedelta
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict
from smartseeds import SmartOptions

from smartserver.core.errors import ConfigError

__all__ = [
    "ConfigDefaults",
    "OVERRIDE_KEYS",
    "ServerConfig",
    "TeardownPolicy",
    "resolve_config",
]

# config field -> lookup key
OVERRIDE_KEYS: Dict[str, str] = {
    "name": "server_name",
    "address": "address",
    "router_address": "router_address",
    "network_id": "network_address",
}


class TeardownPolicy(str, Enum):
    """Whether the router is stopped after the service run loop raises."""

    ALWAYS = "always"
    SKIP_ON_ERROR = "skip_on_error"


class ConfigDefaults(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = "go.micro.server"
    address: str = ":8087"
    router_address: str = ":9093"
    network_id: str = "local"


class ServerConfig(BaseModel):
    """Resolved process configuration; immutable once built."""

    model_config = ConfigDict(frozen=True)

    name: str
    address: str
    router_address: str
    network_id: str
    register_ttl: timedelta = timedelta(0)
    register_interval: timedelta = timedelta(0)
    teardown_policy: TeardownPolicy = TeardownPolicy.ALWAYS


def _lookup_string(values: Mapping[str, Any], key: str) -> str:
    value = values.get(key)
    if value is None:
        return ""
    return str(value)


def _lookup_seconds(values: Mapping[str, Any], key: str) -> timedelta:
    value = values.get(key)
    try:
        return timedelta(seconds=int(value or 0))
    except (TypeError, ValueError) as exc:
        raise ConfigError(
            f"Invalid {key} '{value}': expected whole seconds", original_error=exc
        ) from exc


def _lookup_policy(values: Mapping[str, Any]) -> TeardownPolicy:
    raw = _lookup_string(values, "teardown_policy").strip().lower()
    if not raw:
        return TeardownPolicy.ALWAYS
    try:
        return TeardownPolicy(raw)
    except ValueError as exc:
        allowed = ", ".join(policy.value for policy in TeardownPolicy)
        raise ConfigError(
            f"Unknown teardown policy '{raw}'. Allowed: {allowed}", original_error=exc
        ) from exc


def resolve_config(
    values: Optional[Mapping[str, Any]] = None,
    defaults: Optional[ConfigDefaults] = None,
) -> ServerConfig:
    """Merge defaults with non-empty overrides and return the final config."""
    values = values or {}
    defaults = defaults or ConfigDefaults()
    overrides = {}
    for field_name, key in OVERRIDE_KEYS.items():
        value = _lookup_string(values, key)
        if value:
            overrides[field_name] = value
    opts = SmartOptions(overrides, defaults=defaults.model_dump())
    return ServerConfig(
        name=opts.name,
        address=opts.address,
        router_address=opts.router_address,
        network_id=opts.network_id,
        register_ttl=_lookup_seconds(values, "register_ttl"),
        register_interval=_lookup_seconds(values, "register_interval"),
        teardown_policy=_lookup_policy(values),
    )
