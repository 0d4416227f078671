"""Start/run/stop state machine for the router and the service run loop.

States
------
``IDLE -> STARTING -> RUNNING -> STOPPING -> STOPPED``; ``FAILED`` is terminal
and reachable from ``STARTING``, ``RUNNING`` and ``STOPPING``.

Transitions
-----------
- ``start()``: ``IDLE -> STARTING``, start the router, then ``RUNNING``. A
  router failure moves to ``FAILED`` and raises ``RouterStartError``; nothing
  is stopped.
- ``run()``: ``start()``, then block in ``service.run()``. A clean return goes
  through ``stop()``. When the run loop raises, ``TeardownPolicy.ALWAYS``
  still goes ``RUNNING -> STOPPING`` and stops the router before ``FAILED``;
  ``TeardownPolicy.SKIP_ON_ERROR`` goes ``RUNNING -> FAILED`` directly. Either
  way ``RunLoopError`` is raised. Non-``Exception`` interrupts
  (``KeyboardInterrupt``, ``SystemExit``) follow the same teardown policy and
  are re-raised unchanged.
- ``stop()``: ``RUNNING -> STOPPING``, stop the router, then ``STOPPED``; a
  router failure moves to ``FAILED`` and raises ``RouterStopError``.

One lifecycle drives one router for the life of the process; ``start`` and
``stop`` are not reentrant and raise ``LifecycleError`` when called from the
wrong state.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, List, Optional

from smartserver.core.components import Router, Server, Service
from smartserver.core.config import TeardownPolicy
from smartserver.core.errors import (
    LifecycleError,
    RouterStartError,
    RouterStopError,
    RunLoopError,
)

__all__ = ["Lifecycle", "LifecycleState"]

logger = logging.getLogger("smartserver")


class LifecycleState(str, Enum):
    IDLE = "idle"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"
    FAILED = "failed"


_ALLOWED = {
    LifecycleState.IDLE: {LifecycleState.STARTING},
    LifecycleState.STARTING: {LifecycleState.RUNNING, LifecycleState.FAILED},
    LifecycleState.RUNNING: {LifecycleState.STOPPING, LifecycleState.FAILED},
    LifecycleState.STOPPING: {LifecycleState.STOPPED, LifecycleState.FAILED},
    LifecycleState.STOPPED: set(),
    LifecycleState.FAILED: set(),
}


class Lifecycle:
    """Owns the router/server handles and sequences their lifetime."""

    def __init__(
        self,
        router: Router,
        service: Service,
        *,
        server: Optional[Server] = None,
        teardown_policy: TeardownPolicy = TeardownPolicy.ALWAYS,
        log: Optional[Any] = None,
    ) -> None:
        self.router = router
        self.service = service
        self.server = server
        self.teardown_policy = TeardownPolicy(teardown_policy)
        self._log = log or logger
        self._state = LifecycleState.IDLE
        self.history: List[LifecycleState] = [self._state]

    @property
    def state(self) -> LifecycleState:
        return self._state

    def _transition(self, target: LifecycleState) -> None:
        if target not in _ALLOWED[self._state]:
            raise LifecycleError(
                f"invalid lifecycle transition {self._state.value} -> {target.value}"
            )
        logger.debug("lifecycle %s -> %s", self._state.value, target.value)
        self._state = target
        self.history.append(target)

    def start(self) -> None:
        if self._state is not LifecycleState.IDLE:
            raise LifecycleError(f"cannot start from state '{self._state.value}'")
        self._log.info("starting micro server")
        self._transition(LifecycleState.STARTING)
        try:
            self.router.start()
        except Exception as exc:
            self._transition(LifecycleState.FAILED)
            raise RouterStartError(str(exc), original_error=exc) from exc
        self._transition(LifecycleState.RUNNING)

    def stop(self) -> None:
        if self._state is LifecycleState.RUNNING:
            self._transition(LifecycleState.STOPPING)
        elif self._state is not LifecycleState.STOPPING:
            raise LifecycleError(f"cannot stop from state '{self._state.value}'")
        self._log.info("stopping server")
        try:
            self.router.stop()
        except Exception as exc:
            self._transition(LifecycleState.FAILED)
            raise RouterStopError(f"failed to stop router: {exc}", original_error=exc) from exc
        self._transition(LifecycleState.STOPPED)

    def run(self) -> None:
        """Start, block in the service run loop, then stop."""
        self.start()
        self._log.info("successfully started")
        try:
            self.service.run()
        except Exception as exc:
            self._fail_run_loop(exc)
        except BaseException:
            # interrupts and exits still tear down, then propagate unchanged
            self._teardown_after_failure()
            raise
        self.stop()
        self._log.info("successfully stopped")

    def _teardown_after_failure(self) -> Optional[BaseException]:
        teardown_error: Optional[BaseException] = None
        if self.teardown_policy is TeardownPolicy.ALWAYS:
            self._transition(LifecycleState.STOPPING)
            self._log.info("stopping server")
            try:
                self.router.stop()
            except Exception as stop_exc:
                teardown_error = stop_exc
                self._log.error("failed to stop: %s", stop_exc)
        self._transition(LifecycleState.FAILED)
        return teardown_error

    def _fail_run_loop(self, exc: Exception) -> None:
        teardown_error = self._teardown_after_failure()
        raise RunLoopError(str(exc), original_error=exc, teardown_error=teardown_error) from exc
