"""Command surface: the ``server`` command and the ``micro`` entry group.

``server_command`` declares the base flags, appends every plugin flag and adds
every plugin sub-command (registration order, no deduplication), then seals the
registry. Invoking ``server`` without a sub-command calls ``run_server``:

resolve configuration -> init plugins -> build service -> build router/server
-> ``Lifecycle.run()``

``run_server`` returns the process exit status: ``0`` on success, ``1`` after
logging any fatal lifecycle failure.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

import click

from smartserver import __version__
from smartserver.core import (
    ComponentFactory,
    ConfigError,
    Lifecycle,
    PluginContext,
    PluginRegistry,
    RouterStartError,
    RouterStopError,
    RunLoopError,
    ServerConfig,
    Service,
    TeardownPolicy,
    default_registry,
    resolve_config,
)
from smartserver.local import LocalService

__all__ = ["build_cli", "commands", "main", "run_server", "server_command"]

logger = logging.getLogger("smartserver")

ServiceFactory = Callable[[ServerConfig], Service]


def _default_service(config: ServerConfig) -> LocalService:
    return LocalService(
        config.name,
        config.address,
        register_ttl=config.register_ttl,
        register_interval=config.register_interval,
    )


def run_server(
    values: Mapping[str, Any],
    *,
    registry: Optional[PluginRegistry] = None,
    service_factory: Optional[ServiceFactory] = None,
    factory: Optional[ComponentFactory] = None,
    command: str = "server",
) -> int:
    """Run the full server sequence and return the exit status."""
    registry = registry if registry is not None else default_registry()
    log = logging.LoggerAdapter(logger, {"service": "server"})

    try:
        config = resolve_config(values)
    except ConfigError as exc:
        log.error("invalid configuration: %s", exc)
        return 1

    registry.init_all(PluginContext(command=command, values=values))

    service = (service_factory or _default_service)(config)
    router, server = (factory or ComponentFactory()).build(
        config, service.registry, service.server_id
    )
    lifecycle = Lifecycle(
        router,
        service,
        server=server,
        teardown_policy=config.teardown_policy,
        log=log,
    )

    try:
        lifecycle.run()
    except RouterStartError as exc:
        log.error("failed to start: %s", exc)
        return 1
    except RunLoopError as exc:
        log.error("failed with error %s", exc)
        return 1
    except RouterStopError as exc:
        log.error("failed to stop: %s", exc)
        return 1
    return 0


def _base_flags() -> List[click.Option]:
    return [
        click.Option(
            ["--address"],
            envvar="MICRO_SERVER_ADDRESS",
            help="Set the micro server address :8087",
        ),
        click.Option(
            ["--router_address"],
            envvar="MICRO_ROUTER_ADDRESS",
            help="Set the micro router address :9093",
        ),
        click.Option(
            ["--network_address"],
            envvar="MICRO_NETWORK_ADDRESS",
            help="Set the micro network id :local",
        ),
    ]


def _collect_values(ctx: click.Context) -> Dict[str, Any]:
    """Merge params from the root context down to ``ctx`` (inner wins)."""
    chain = []
    node: Optional[click.Context] = ctx
    while node is not None:
        chain.append(node.params)
        node = node.parent
    values: Dict[str, Any] = {}
    for params in reversed(chain):
        values.update(params)
    return values


def server_command(
    registry: Optional[PluginRegistry] = None,
    *,
    service_factory: Optional[ServiceFactory] = None,
    factory: Optional[ComponentFactory] = None,
) -> click.Group:
    """Build the ``server`` command with plugin flags and sub-commands merged in."""
    registry = registry if registry is not None else default_registry()

    @click.pass_context
    def callback(ctx: click.Context, **_: Any) -> None:
        if ctx.invoked_subcommand is not None:
            return
        status = run_server(
            _collect_values(ctx),
            registry=registry,
            service_factory=service_factory,
            factory=factory,
            command=ctx.info_name or "server",
        )
        ctx.exit(status)

    command = click.Group(
        name="server",
        callback=callback,
        params=_base_flags(),
        help="Run the micro network server",
        invoke_without_command=True,
    )
    command.params.extend(registry.flags())
    for subcommand in registry.commands():
        command.add_command(subcommand)
    registry.seal()
    return command


def commands(
    registry: Optional[PluginRegistry] = None,
    *,
    service_factory: Optional[ServiceFactory] = None,
    factory: Optional[ComponentFactory] = None,
) -> List[click.Command]:
    return [server_command(registry, service_factory=service_factory, factory=factory)]


def build_cli(
    registry: Optional[PluginRegistry] = None,
    *,
    service_factory: Optional[ServiceFactory] = None,
    factory: Optional[ComponentFactory] = None,
) -> click.Group:
    """Return the ``micro`` group carrying the process-wide flags."""

    @click.group(name="micro")
    @click.version_option(version=__version__, prog_name="smartserver")
    @click.option("--server_name", envvar="MICRO_SERVER_NAME", help="Name of the server")
    @click.option(
        "--register_ttl",
        envvar="MICRO_REGISTER_TTL",
        type=int,
        help="Registration TTL in seconds",
    )
    @click.option(
        "--register_interval",
        envvar="MICRO_REGISTER_INTERVAL",
        type=int,
        help="Re-registration interval in seconds",
    )
    @click.option(
        "--teardown_policy",
        envvar="MICRO_TEARDOWN_POLICY",
        type=click.Choice([policy.value for policy in TeardownPolicy]),
        help="Stop the router after a run loop failure (always) or exit at once",
    )
    def cli(**_: Any) -> None:
        """Micro network server."""

    for command in commands(registry, service_factory=service_factory, factory=factory):
        cli.add_command(command)
    return cli


def main() -> None:
    build_cli()()
