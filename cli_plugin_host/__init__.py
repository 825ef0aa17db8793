"""Host terminal-UI apps written against Ink or Pastel inside one terminal."""

from .adapters import (
    AdapterRegistry,
    CLIAdapter,
    CLIFeature,
    VersionCompatibility,
    VersionNegotiator,
)
from .adapters.ink import InkAdapter
from .adapters.pastel import PastelAdapter
from .apps import (
    AppRegistry,
    CLIAppDefinition,
    CLIAppManifest,
    CLICommand,
    create_cli_app,
    create_command,
)
from .config import Settings, get_settings
from .host import AppStatus, CLIAppContext, CLIAppInstance, CLISignal, PluginHost
from .integration import CLIIntegration
from .terminal import LineKind, StyledContent, TerminalBridge, TerminalBuffer

__version__ = "0.1.0"

__all__ = [
    "AdapterRegistry",
    "AppRegistry",
    "AppStatus",
    "CLIAdapter",
    "CLIAppContext",
    "CLIAppDefinition",
    "CLIAppInstance",
    "CLIAppManifest",
    "CLICommand",
    "CLIFeature",
    "CLIIntegration",
    "CLISignal",
    "InkAdapter",
    "LineKind",
    "PastelAdapter",
    "PluginHost",
    "Settings",
    "StyledContent",
    "TerminalBridge",
    "TerminalBuffer",
    "VersionCompatibility",
    "VersionNegotiator",
    "create_cli_app",
    "create_command",
    "get_settings",
]
