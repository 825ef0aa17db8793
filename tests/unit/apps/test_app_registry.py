"""
Unit tests for the app registry.
"""

from unittest.mock import Mock

import pytest

from cli_plugin_host.apps.builder import create_cli_app
from cli_plugin_host.apps.registry import AppRegistry
from cli_plugin_host.errors import AppNotFoundError, RegistrationError


def component(**props):
    return None


def build_app(name, entry=None, **kwargs):
    builder = (
        create_cli_app()
        .name(name)
        .description(kwargs.pop("description", f"The {name} app"))
        .component(component)
    )
    if entry:
        builder.entry_command(entry)
    for keyword in kwargs.pop("keywords", ()):
        builder.keywords(keyword)
    if kwargs.pop("pastel", False):
        builder.for_pastel()
    for command, aliases in kwargs.pop("commands", {}).items():
        builder.add_command(command, f"Run {command}", aliases=aliases)
    on_register = kwargs.pop("on_register", None)
    if on_register:
        builder.on_register(on_register)
    return builder.build()


@pytest.fixture
def registry():
    return AppRegistry()


class TestRegistration:
    def test_register_and_get(self, registry):
        app = build_app("todo")
        registry.register(app)

        assert registry.get("todo") is app
        assert registry.require("todo") is app
        assert "todo" in registry
        assert len(registry) == registry.count() == 1
        assert list(registry) == [app]

    def test_duplicate_name_rejected(self, registry):
        registry.register(build_app("todo"))

        with pytest.raises(RegistrationError, match="already registered"):
            registry.register(build_app("todo"))

    def test_unknown_app(self, registry):
        assert registry.get("missing") is None
        assert not registry.has("missing")
        with pytest.raises(AppNotFoundError) as exc_info:
            registry.require("missing")
        assert exc_info.value.key == "missing"

    def test_entry_command_is_an_alias(self, registry):
        app = build_app("todo", entry="todos")
        registry.register(app)

        assert registry.get("todos") is app
        assert registry.resolve_alias("todos") == "todo"

    def test_entry_command_clash(self, registry):
        registry.register(build_app("todo", entry="t"))

        with pytest.raises(RegistrationError, match="clashes"):
            registry.register(build_app("timer", entry="t"))
        with pytest.raises(RegistrationError):
            registry.register(build_app("other", entry="todo"))
        assert registry.names() == ["todo"]

    def test_on_register_receives_registry(self, registry):
        hook = Mock()
        registry.register(build_app("todo", on_register=hook))

        hook.assert_called_once_with(registry)

    def test_failing_on_register_rolls_back(self, registry):
        hook = Mock(side_effect=RuntimeError("nope"))

        with pytest.raises(RegistrationError, match="on_register hook"):
            registry.register(build_app("todo", entry="todos", on_register=hook))

        assert not registry.has("todo")
        assert registry.resolve_alias("todos") is None

    def test_unregister_drops_aliases(self, registry):
        registry.register(build_app("todo", entry="todos", commands={"list": ["ls"]}))

        assert registry.unregister("todo") is True
        assert registry.unregister("todo") is False
        assert registry.resolve_alias("todos") is None
        assert registry.resolve_alias("todo:ls") is None

    def test_clear(self, registry):
        registry.register(build_app("a", entry="aa"))
        registry.clear()

        assert len(registry) == 0
        assert registry.resolve_alias("aa") is None


class TestQueries:
    def test_resolve_command_by_alias(self, registry):
        app = build_app("todo", commands={"list": ["ls"], "add": []})
        registry.register(app)

        resolved = registry.resolve_command("todo", "ls")
        assert resolved is not None
        assert resolved[0] is app
        assert resolved[1].name == "list"
        assert registry.resolve_alias("todo:ls") == "todo:list"
        assert registry.resolve_command("todo", "rm") is None
        assert registry.resolve_command("nope", "ls") is None

    def test_by_library(self, registry):
        registry.register(build_app("inky"))
        registry.register(build_app("pale", pastel=True))

        assert [a.name for a in registry.by_library("pastel")] == ["pale"]
        assert [a.name for a in registry.by_library("ink")] == ["inky"]

    @pytest.mark.parametrize(
        "query,expected",
        [
            ("TODO", ["todo"]),
            ("groceries", ["todo"]),
            ("countdown", ["timer"]),
            ("run add", ["todo"]),
            ("app", ["todo", "timer"]),
            ("zzz", []),
        ],
    )
    def test_search(self, registry, query, expected):
        registry.register(
            build_app("todo", keywords=["groceries"], commands={"add": []})
        )
        registry.register(build_app("timer", description="A countdown app"))

        assert [a.name for a in registry.search(query)] == expected

    def test_export(self, registry):
        registry.register(build_app("todo"))

        exported = registry.export()

        assert exported[0]["name"] == "todo"
        assert exported[0]["library"] == "ink"
        assert exported[0]["version"] == "1.0.0"
