"""Collaborator protocols and the router/server factory.

The router, network server, transport, registry and service are external
collaborators; this module pins down only the surface the runtime uses and
builds router + server from a resolved :class:`ServerConfig`.

``ComponentFactory.build(config, registry, server_id)``:

- transport = ``transport_factory(addrs=[config.network_id])``
- server = ``server_factory(transport=transport)``
- router = ``router_factory(id=server_id, address=config.router_address,
  network=config.network_id, registry=registry)``

Nothing is started or validated here; unreachable addresses surface when the
lifecycle starts the router.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Protocol, Sequence, Tuple

from smartserver.core.config import ServerConfig
from smartserver.local import LocalRouter, LocalServer, LocalTransport

__all__ = [
    "ComponentFactory",
    "Registry",
    "Router",
    "Server",
    "Service",
    "Transport",
]

logger = logging.getLogger("smartserver")


class Registry(Protocol):
    def register(self, name: str, node: dict) -> Any: ...

    def deregister(self, name: str, node_id: str) -> Any: ...


class Transport(Protocol):
    addrs: Sequence[str]


class Server(Protocol):
    transport: Transport


class Router(Protocol):
    def start(self) -> Any: ...

    def stop(self) -> Any: ...


class Service(Protocol):
    @property
    def server_id(self) -> str: ...

    @property
    def registry(self) -> Registry: ...

    def run(self) -> Any: ...


class ComponentFactory:
    """Builds the router and network server for one process."""

    def __init__(
        self,
        *,
        transport_factory: Optional[Callable[..., Transport]] = None,
        server_factory: Optional[Callable[..., Server]] = None,
        router_factory: Optional[Callable[..., Router]] = None,
    ) -> None:
        self.transport_factory = transport_factory or LocalTransport
        self.server_factory = server_factory or LocalServer
        self.router_factory = router_factory or LocalRouter

    def build(
        self, config: ServerConfig, registry: Registry, server_id: str
    ) -> Tuple[Router, Server]:
        transport = self.transport_factory(addrs=[config.network_id])
        server = self.server_factory(transport=transport)
        router = self.router_factory(
            id=server_id,
            address=config.router_address,
            network=config.network_id,
            registry=registry,
        )
        logger.debug(
            "built router %s on %s (network %s)", server_id, config.router_address, config.network_id
        )
        return router, server
