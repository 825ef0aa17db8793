"""
Unit tests for the fluent app and command builders.
"""

import pytest

from cli_plugin_host.apps.builder import create_cli_app, create_command
from cli_plugin_host.apps.models import CommandArg, FlagType
from cli_plugin_host.errors import ConfigurationError


def component(**props):
    return None


class TestCLIAppBuilder:
    def test_minimal_app_gets_ink_defaults(self):
        app = create_cli_app().name("hello").component(component).build()

        assert app.name == "hello"
        assert app.manifest.version == "1.0.0"
        assert app.manifest.library == "ink"
        assert app.manifest.library_version == ">=6.6.0"
        assert app.manifest.capabilities is None
        assert app.commands == ()

    def test_full_manifest(self):
        app = (
            create_cli_app()
            .name("weather")
            .version("2.1.0")
            .description("Forecasts")
            .author("Jo")
            .repository("https://example.com/weather")
            .keywords("weather", "forecast")
            .license("MIT")
            .metadata(refresh=30)
            .for_pastel("^4.1.0")
            .requires_network()
            .requires_input()
            .entry_command("wx")
            .component(component)
            .build()
        )
        manifest = app.manifest

        assert manifest.library == "pastel"
        assert manifest.library_version == "^4.1.0"
        assert manifest.keywords == ("weather", "forecast")
        assert manifest.metadata == {"refresh": 30}
        assert manifest.entry_command == "wx"
        assert manifest.capabilities.enabled() == ["stdin", "networking"]

    def test_with_capabilities(self):
        app = (
            create_cli_app()
            .name("editor")
            .with_capabilities(fullscreen=True, file_system=True)
            .requires_focus_management()
            .component(component)
            .build()
        )

        assert set(app.manifest.capabilities.enabled()) == {
            "fullscreen",
            "file_system",
            "focus_management",
        }

    def test_missing_name(self):
        with pytest.raises(ConfigurationError, match="name is required"):
            create_cli_app().component(component).build()

    def test_missing_component(self):
        with pytest.raises(ConfigurationError, match="component is required"):
            create_cli_app().name("x").build()

    @pytest.mark.parametrize(
        "configure",
        [
            lambda b: b.name("has space"),
            lambda b: b.name("ok").version("one"),
            lambda b: b.name("ok").for_ink(">=nope"),
        ],
    )
    def test_invalid_manifest(self, configure):
        builder = configure(create_cli_app()).component(component)

        with pytest.raises(ConfigurationError):
            builder.build()

    def test_duplicate_command_names(self):
        builder = (
            create_cli_app()
            .name("dup")
            .add_command("go", "first")
            .add_command("go", "second")
            .component(component)
        )

        with pytest.raises(ConfigurationError, match="Duplicate command"):
            builder.build()

    def test_add_command_and_lookup_by_alias(self):
        def handler(args, flags, context):
            return None

        app = (
            create_cli_app()
            .name("files")
            .add_command(
                "list",
                "List files",
                handler,
                aliases=["ls"],
                args=[CommandArg("path")],
                examples=["list /tmp"],
                hidden=False,
            )
            .component(component)
            .build()
        )

        command = app.find_command("ls")
        assert command is app.find_command("list")
        assert command.handler is handler
        assert command.examples == ("list /tmp",)
        assert command.extra == {"hidden": False}
        assert app.command_names() == ["list"]
        assert app.find_command("rm") is None

    def test_lifecycle_hooks(self):
        def on_exit(code):
            return None

        app = (
            create_cli_app()
            .name("hooks")
            .on_exit(on_exit)
            .component(component)
            .build()
        )

        assert app.lifecycle.on_exit is on_exit
        assert app.lifecycle.on_suspend is None


class TestCommandBuilder:
    def test_build_command(self):
        def handler(args, flags, context):
            return None

        command = (
            create_command("deploy")
            .description("Deploy the app")
            .alias("d")
            .aliases("ship", "push")
            .arg("target", required=True, description="Where to")
            .boolean_flag("force", char="f")
            .string_flag("region", choices=["eu", "us"], default="eu")
            .number_flag("replicas", default=1)
            .example("deploy prod --force")
            .extra(dangerous=True)
            .handler(handler)
            .build()
        )

        assert command.name == "deploy"
        assert command.aliases == ("d", "ship", "push")
        assert command.matches("ship")
        assert command.args[0].required
        assert [f.type for f in command.flags] == [
            FlagType.BOOLEAN,
            FlagType.STRING,
            FlagType.NUMBER,
        ]
        assert command.flags[1].choices == ("eu", "us")
        assert command.extra == {"dangerous": True}
        assert command.handler is handler

    def test_built_mappings_are_read_only(self):
        builder = create_cli_app().name("frozen").metadata(refresh=30)
        app = builder.component(component).build()
        command_builder = create_command("x").extra(hidden=True)
        command = command_builder.build()

        with pytest.raises(TypeError):
            app.manifest.metadata["refresh"] = 0
        with pytest.raises(TypeError):
            command.extra["hidden"] = False

        builder.metadata(refresh=60)
        command_builder.extra(hidden=False)
        assert app.manifest.metadata == {"refresh": 30}
        assert command.extra == {"hidden": True}
        assert app.manifest.model_dump(mode="json")["metadata"] == {"refresh": 30}

    def test_flag_type_from_string(self):
        command = create_command("x").flag("level", "number").build()

        assert command.flags[0].type is FlagType.NUMBER

    def test_subcommands(self):
        status = create_command("status").alias("st").build()
        command = create_command("remote").subcommand(status).build()

        assert command.find_subcommand("st") is status
        assert command.find_subcommand("nope") is None
