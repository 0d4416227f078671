"""Exception hierarchy for the server runtime.

Every error raised by ``smartserver`` derives from :class:`SmartServerError`
and keeps the underlying exception (when any) in ``original_error`` so the
command surface can log the full context before exiting.

Lifecycle errors map to the terminal ``FAILED`` state:

- :class:`RouterStartError` - router failed to start; nothing was stopped.
- :class:`RunLoopError` - the service run loop raised; ``teardown_error`` holds
  the router stop failure when teardown was attempted and also failed.
- :class:`RouterStopError` - router stop failed after a clean run.
"""

from __future__ import annotations

from typing import Optional

__all__ = [
    "SmartServerError",
    "ConfigError",
    "RegistryError",
    "LifecycleError",
    "RouterStartError",
    "RunLoopError",
    "RouterStopError",
]


class SmartServerError(Exception):
    """Base error carrying the exception that caused it."""

    def __init__(self, message: str, original_error: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.original_error = original_error


class ConfigError(SmartServerError):
    """Invalid configuration value."""


class RegistryError(SmartServerError):
    """Plugin registry misuse (e.g. registering after the registry was sealed)."""


class LifecycleError(SmartServerError):
    """Lifecycle misuse or fatal lifecycle transition."""


class RouterStartError(LifecycleError):
    pass


class RunLoopError(LifecycleError):
    def __init__(
        self,
        message: str,
        original_error: Optional[BaseException] = None,
        *,
        teardown_error: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message, original_error)
        self.teardown_error = teardown_error


class RouterStopError(LifecycleError):
    pass
