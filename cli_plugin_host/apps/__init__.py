"""App definitions: data model, builders, registry and loading."""

from .arguments import ParsedArgs, parse_command_args
from .builder import CLIAppBuilder, CommandBuilder, create_cli_app, create_command
from .loader import load_app_definition
from .models import (
    CLIAppCapabilities,
    CLIAppDefinition,
    CLIAppLifecycle,
    CLIAppManifest,
    CLICommand,
    CommandArg,
    CommandFlag,
    FlagType,
)
from .registry import AppRegistry

__all__ = [
    "AppRegistry",
    "CLIAppBuilder",
    "CLIAppCapabilities",
    "CLIAppDefinition",
    "CLIAppLifecycle",
    "CLIAppManifest",
    "CLICommand",
    "CommandArg",
    "CommandBuilder",
    "CommandFlag",
    "FlagType",
    "ParsedArgs",
    "create_cli_app",
    "create_command",
    "load_app_definition",
    "parse_command_args",
]
