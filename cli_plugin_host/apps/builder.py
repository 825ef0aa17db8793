"""Fluent builders for app definitions and commands.

    app = (
        create_cli_app()
        .name("todo")
        .for_ink(">=6.6.0")
        .requires_input()
        .add_command("add", "Add a task", add_task, args=[CommandArg("title")])
        .component(TodoApp)
        .build()
    )

Nothing is validated until ``build()``.
"""

from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from pydantic import ValidationError

from ..errors import ConfigurationError
from .models import (
    CLIAppCapabilities,
    CLIAppDefinition,
    CLIAppLifecycle,
    CLIAppManifest,
    CLICommand,
    CommandArg,
    CommandFlag,
    CommandHandler,
    FlagType,
)


class CLIAppBuilder:
    def __init__(self) -> None:
        self._manifest: Dict[str, Any] = {
            "library": "ink",
            "library_version": ">=6.6.0",
        }
        self._keywords: List[str] = []
        self._metadata: Dict[str, Any] = {}
        self._capabilities: Dict[str, bool] = {}
        self._commands: List[CLICommand] = []
        self._lifecycle: Dict[str, Callable[..., Any]] = {}
        self._component: Optional[Callable[..., Any]] = None

    # manifest

    def name(self, name: str) -> "CLIAppBuilder":
        self._manifest["name"] = name
        return self

    def version(self, version: str) -> "CLIAppBuilder":
        self._manifest["version"] = version
        return self

    def description(self, description: str) -> "CLIAppBuilder":
        self._manifest["description"] = description
        return self

    def author(self, author: str) -> "CLIAppBuilder":
        self._manifest["author"] = author
        return self

    def repository(self, url: str) -> "CLIAppBuilder":
        self._manifest["repository"] = url
        return self

    def keywords(self, *keywords: str) -> "CLIAppBuilder":
        self._keywords.extend(keywords)
        return self

    def license(self, license: str) -> "CLIAppBuilder":
        self._manifest["license"] = license
        return self

    def metadata(self, **data: Any) -> "CLIAppBuilder":
        self._metadata.update(data)
        return self

    # library targeting

    def for_library(self, library: str, version_range: str) -> "CLIAppBuilder":
        self._manifest["library"] = library
        self._manifest["library_version"] = version_range
        return self

    def for_ink(self, version_range: str = ">=6.6.0") -> "CLIAppBuilder":
        return self.for_library("ink", version_range)

    def for_pastel(self, version_range: str = ">=4.0.0") -> "CLIAppBuilder":
        return self.for_library("pastel", version_range)

    # capabilities

    def requires_input(self) -> "CLIAppBuilder":
        return self.with_capabilities(stdin=True)

    def requires_fullscreen(self) -> "CLIAppBuilder":
        return self.with_capabilities(fullscreen=True)

    def requires_network(self) -> "CLIAppBuilder":
        return self.with_capabilities(networking=True)

    def requires_file_system(self) -> "CLIAppBuilder":
        return self.with_capabilities(file_system=True)

    def requires_persistent_state(self) -> "CLIAppBuilder":
        return self.with_capabilities(persistent_state=True)

    def requires_focus_management(self) -> "CLIAppBuilder":
        return self.with_capabilities(focus_management=True)

    def with_capabilities(self, **capabilities: bool) -> "CLIAppBuilder":
        self._capabilities.update(capabilities)
        return self

    # commands

    def command(self, command: CLICommand) -> "CLIAppBuilder":
        self._commands.append(command)
        return self

    def add_command(
        self,
        name: str,
        description: str,
        handler: Optional[CommandHandler] = None,
        *,
        aliases: Iterable[str] = (),
        args: Iterable[CommandArg] = (),
        flags: Iterable[CommandFlag] = (),
        subcommands: Iterable[CLICommand] = (),
        examples: Iterable[str] = (),
        **extra: Any,
    ) -> "CLIAppBuilder":
        return self.command(
            CLICommand(
                name=name,
                description=description,
                handler=handler,
                aliases=tuple(aliases),
                args=tuple(args),
                flags=tuple(flags),
                subcommands=tuple(subcommands),
                examples=tuple(examples),
                extra=dict(extra),
            )
        )

    def entry_command(self, name: str) -> "CLIAppBuilder":
        self._manifest["entry_command"] = name
        return self

    def component(self, component: Callable[..., Any]) -> "CLIAppBuilder":
        self._component = component
        return self

    # lifecycle

    def on_register(self, fn: Callable[..., None]) -> "CLIAppBuilder":
        self._lifecycle["on_register"] = fn
        return self

    def on_before_start(self, fn: Callable[..., Any]) -> "CLIAppBuilder":
        self._lifecycle["on_before_start"] = fn
        return self

    def on_exit(self, fn: Callable[[int], None]) -> "CLIAppBuilder":
        self._lifecycle["on_exit"] = fn
        return self

    def on_error(self, fn: Callable[[Exception], None]) -> "CLIAppBuilder":
        self._lifecycle["on_error"] = fn
        return self

    def on_suspend(self, fn: Callable[[], None]) -> "CLIAppBuilder":
        self._lifecycle["on_suspend"] = fn
        return self

    def on_resume(self, fn: Callable[[], None]) -> "CLIAppBuilder":
        self._lifecycle["on_resume"] = fn
        return self

    def build(self) -> CLIAppDefinition:
        if not self._manifest.get("name"):
            raise ConfigurationError("App name is required. Use .name() to set it.")
        if self._component is None:
            raise ConfigurationError(
                "App component is required. Use .component() to set it."
            )

        try:
            capabilities = (
                CLIAppCapabilities(**self._capabilities) if self._capabilities else None
            )
            manifest = CLIAppManifest(
                **self._manifest,
                keywords=tuple(self._keywords),
                metadata=dict(self._metadata),
                capabilities=capabilities,
            )
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid app {self._manifest['name']!r}: {e}"
            ) from e

        names = [c.name for c in self._commands]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ConfigurationError(
                f"Duplicate command names in {manifest.name}: {', '.join(duplicates)}"
            )

        return CLIAppDefinition(
            manifest=manifest,
            component=self._component,
            commands=tuple(self._commands),
            lifecycle=CLIAppLifecycle(**self._lifecycle),
        )


def create_cli_app() -> CLIAppBuilder:
    return CLIAppBuilder()


class CommandBuilder:
    def __init__(self, name: str):
        self._name = name
        self._description = ""
        self._aliases: List[str] = []
        self._args: List[CommandArg] = []
        self._flags: List[CommandFlag] = []
        self._subcommands: List[CLICommand] = []
        self._examples: List[str] = []
        self._handler: Optional[CommandHandler] = None
        self._extra: Dict[str, Any] = {}

    def description(self, description: str) -> "CommandBuilder":
        self._description = description
        return self

    def alias(self, alias: str) -> "CommandBuilder":
        self._aliases.append(alias)
        return self

    def aliases(self, *aliases: str) -> "CommandBuilder":
        self._aliases.extend(aliases)
        return self

    def arg(self, name: str, **options: Any) -> "CommandBuilder":
        self._args.append(CommandArg(name=name, **options))
        return self

    def flag(
        self,
        name: str,
        type: Union[FlagType, str] = FlagType.BOOLEAN,
        **options: Any,
    ) -> "CommandBuilder":
        choices = tuple(options.pop("choices", ()))
        self._flags.append(
            CommandFlag(name=name, type=FlagType(type), choices=choices, **options)
        )
        return self

    def boolean_flag(self, name: str, **options: Any) -> "CommandBuilder":
        return self.flag(name, FlagType.BOOLEAN, **options)

    def string_flag(self, name: str, **options: Any) -> "CommandBuilder":
        return self.flag(name, FlagType.STRING, **options)

    def number_flag(self, name: str, **options: Any) -> "CommandBuilder":
        return self.flag(name, FlagType.NUMBER, **options)

    def subcommand(self, command: CLICommand) -> "CommandBuilder":
        self._subcommands.append(command)
        return self

    def example(self, example: str) -> "CommandBuilder":
        self._examples.append(example)
        return self

    def handler(self, fn: CommandHandler) -> "CommandBuilder":
        self._handler = fn
        return self

    def extra(self, **data: Any) -> "CommandBuilder":
        self._extra.update(data)
        return self

    def build(self) -> CLICommand:
        return CLICommand(
            name=self._name,
            description=self._description,
            handler=self._handler,
            aliases=tuple(self._aliases),
            args=tuple(self._args),
            flags=tuple(self._flags),
            subcommands=tuple(self._subcommands),
            examples=tuple(self._examples),
            extra=dict(self._extra),
        )


def create_command(name: str) -> CommandBuilder:
    return CommandBuilder(name)
