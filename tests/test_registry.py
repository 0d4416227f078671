"""Tests for the ordered plugin registry."""

import click
import pytest

import smartserver  # noqa: F401 - registers built-in plugins
from smartserver.core.errors import RegistryError
from smartserver.core.registry import PluginRegistry, default_registry, plugins
from smartserver.plugins._base_plugin import BasePlugin, PluginContext
from smartserver.plugins.logging import LoggingPlugin


def make_plugin(code, ledger=None, flag=None, command=None):
    """Build a plugin class contributing the given flag/command."""

    class _Plugin(BasePlugin):
        plugin_code = code
        plugin_description = f"{code} test plugin"

        def flags(self):
            return [click.Option([flag])] if flag else []

        def commands(self):
            return [click.Command(command, callback=lambda: None)] if command else []

        def init(self, context):
            if ledger is not None:
                ledger.append(f"{code}.init")

    return _Plugin


def test_entries_follow_registration_order():
    registry = PluginRegistry()
    registry.register(make_plugin("first"))
    registry.register(make_plugin("second"))
    assert [entry.name for entry in registry.entries()] == ["first", "second"]
    assert len(registry) == 2


def test_capabilities_detected_from_overridden_hooks():
    class InitOnly(BasePlugin):
        plugin_code = "init_only"

        def init(self, context):
            pass

    class Nothing(BasePlugin):
        plugin_code = "nothing"

    registry = PluginRegistry()
    assert registry.register(InitOnly).capabilities == frozenset({"init"})
    assert registry.register(Nothing).capabilities == frozenset()
    assert registry.register(make_plugin("full")).capabilities == frozenset(
        {"flags", "commands", "init"}
    )


def test_register_instance():
    registry = PluginRegistry()
    plugin = LoggingPlugin(level="debug")
    entry = registry.register(plugin)
    assert entry.plugin is plugin
    assert registry.get("logging") is entry


def test_register_instance_rejects_config():
    registry = PluginRegistry()
    with pytest.raises(TypeError, match="config can only be supplied"):
        registry.register(LoggingPlugin(), level="debug")


def test_register_rejects_non_plugins():
    registry = PluginRegistry()
    with pytest.raises(TypeError):
        registry.register(object)
    with pytest.raises(TypeError):
        registry.register(object())


def test_register_missing_code_raises():
    class NoCode(BasePlugin):
        plugin_description = "No code"

    with pytest.raises(ValueError, match="missing plugin_code"):
        PluginRegistry().register(NoCode)


def test_same_class_is_idempotent_and_collision_raises():
    registry = PluginRegistry()
    plugin_cls = make_plugin("dup")
    first = registry.register(plugin_cls)
    assert registry.register(plugin_cls) is first
    assert len(registry) == 1
    with pytest.raises(ValueError, match="already registered"):
        registry.register(make_plugin("dup"))


def test_same_instance_is_idempotent():
    registry = PluginRegistry()
    plugin = make_plugin("dup")()
    first = registry.register(plugin)
    assert registry.register(plugin) is first
    assert len(registry) == 1
    with pytest.raises(ValueError, match="already registered"):
        registry.register(make_plugin("dup")())


def test_sealed_registry_rejects_registration():
    registry = PluginRegistry()
    registry.register(make_plugin("early"))
    registry.seal()
    assert registry.sealed
    with pytest.raises(RegistryError, match="sealed"):
        registry.register(make_plugin("late"))
    assert [entry.name for entry in registry] == ["early"]


def test_init_all_runs_each_plugin_once_in_order():
    ledger = []
    registry = PluginRegistry()
    for code in ("a", "b", "c"):
        registry.register(make_plugin(code, ledger=ledger))
    registry.init_all(PluginContext(command="server"))
    assert ledger == ["a.init", "b.init", "c.init"]


def test_init_errors_propagate():
    class Broken(BasePlugin):
        plugin_code = "broken"

        def init(self, context):
            raise RuntimeError("boom")

    registry = PluginRegistry()
    registry.register(Broken)
    with pytest.raises(RuntimeError, match="boom"):
        registry.init_all(PluginContext(command="server"))


def test_flags_and_commands_concatenate_without_dedup():
    registry = PluginRegistry()
    registry.register(make_plugin("one", flag="--one", command="one-cmd"))
    registry.register(make_plugin("two", flag="--two", command="two-cmd"))
    registry.register(make_plugin("again", flag="--one"))
    assert [option.name for option in registry.flags()] == ["one", "two", "one"]
    assert [command.name for command in registry.commands()] == ["one-cmd", "two-cmd"]


def test_plugin_context_values_are_read_only():
    context = PluginContext(command="server", values={"address": ":1"})
    with pytest.raises(TypeError):
        context.values["address"] = ":2"  # type: ignore[index]


def test_default_registry_holds_builtin_plugins():
    assert default_registry().get("logging") is not None
    assert any(isinstance(plugin, LoggingPlugin) for plugin in plugins())
