"""In-process stand-ins for the external collaborators.

They make the ``server`` command runnable without a real routing/RPC stack and
implement only the collaborator surface the runtime relies on: no gossip, no
wire protocol.

- ``LocalRegistry`` - thread-safe service directory with optional TTL expiry.
- ``LocalTransport`` / ``LocalServer`` - plain holders for addresses/transport.
- ``LocalRouter`` - registers a node for itself on ``start`` and removes it on
  ``stop``; double start / stop without start raise ``RuntimeError``.
- ``LocalService`` - blocks in ``run()`` until ``shutdown()`` or SIGINT/SIGTERM,
  re-registering every ``register_interval``.
"""

from __future__ import annotations

import logging
import signal
import threading
import uuid
from datetime import timedelta
from time import monotonic
from typing import Any, Dict, List, Optional, Sequence

__all__ = [
    "LocalRegistry",
    "LocalRouter",
    "LocalServer",
    "LocalService",
    "LocalTransport",
]

logger = logging.getLogger("smartserver")


class LocalRegistry:
    """Service name -> node id -> node record."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._services: Dict[str, Dict[str, Dict[str, Any]]] = {}

    def register(self, name: str, node: dict, ttl: Optional[timedelta] = None) -> None:
        record = dict(node)
        seconds = ttl.total_seconds() if ttl else 0
        record["expires"] = monotonic() + seconds if seconds > 0 else None
        with self._lock:
            self._services.setdefault(name, {})[node["id"]] = record

    def deregister(self, name: str, node_id: str) -> None:
        with self._lock:
            nodes = self._services.get(name, {})
            nodes.pop(node_id, None)
            if not nodes:
                self._services.pop(name, None)

    def get_service(self, name: str) -> List[Dict[str, Any]]:
        now = monotonic()
        with self._lock:
            nodes = list(self._services.get(name, {}).values())
        return [
            {k: v for k, v in node.items() if k != "expires"}
            for node in nodes
            if node["expires"] is None or node["expires"] > now
        ]

    def list_services(self) -> List[str]:
        with self._lock:
            return sorted(self._services)


class LocalTransport:
    def __init__(self, addrs: Optional[Sequence[str]] = None) -> None:
        self.addrs = list(addrs or [])


class LocalServer:
    def __init__(self, transport: Optional[LocalTransport] = None) -> None:
        self.transport = transport or LocalTransport()


class LocalRouter:
    """Router stand-in announcing itself in the registry while started."""

    service_name = "go.micro.router"

    def __init__(self, id: str, address: str, network: str, registry: Any) -> None:  # noqa: A002
        self.id = id
        self.address = address
        self.network = network
        self.registry = registry
        self.started = False

    def start(self) -> None:
        if self.started:
            raise RuntimeError(f"router {self.id} already started")
        self.registry.register(
            self.service_name,
            {"id": self.id, "address": self.address, "network": self.network},
        )
        self.started = True

    def stop(self) -> None:
        if not self.started:
            raise RuntimeError(f"router {self.id} not started")
        self.registry.deregister(self.service_name, self.id)
        self.started = False


class LocalService:
    """Blocking service runtime registered under ``name`` while running."""

    def __init__(
        self,
        name: str,
        address: str,
        *,
        register_ttl: timedelta = timedelta(0),
        register_interval: timedelta = timedelta(0),
        registry: Optional[LocalRegistry] = None,
    ) -> None:
        self.name = name
        self.address = address
        self.register_ttl = register_ttl
        self.register_interval = register_interval
        self._registry = registry or LocalRegistry()
        self._server_id = f"{name}-{uuid.uuid4()}"
        self._stop = threading.Event()

    @property
    def server_id(self) -> str:
        return self._server_id

    @property
    def registry(self) -> LocalRegistry:
        return self._registry

    def shutdown(self, *_: Any) -> None:
        self._stop.set()

    def run(self) -> None:
        restore = self._install_signal_handlers()
        logger.debug("service %s listening on %s", self._server_id, self.address)
        try:
            self._register()
            interval = self.register_interval.total_seconds() or None
            while not self._stop.wait(interval):
                self._register()
        finally:
            self._registry.deregister(self.name, self._server_id)
            logger.debug("service %s deregistered", self._server_id)
            for signum, handler in restore.items():
                signal.signal(signum, handler)

    def _register(self) -> None:
        self._registry.register(
            self.name,
            {"id": self._server_id, "address": self.address},
            ttl=self.register_ttl,
        )

    def _install_signal_handlers(self) -> Dict[int, Any]:
        if threading.current_thread() is not threading.main_thread():
            return {}
        previous = {}
        for signum in (signal.SIGINT, signal.SIGTERM):
            previous[signum] = signal.signal(signum, self.shutdown)
        return previous
