from .instance import (
    SIGNAL_EXIT_CODES,
    AppStatus,
    CLIAppContext,
    CLIAppInstance,
    CLISignal,
)
from .plugin_host import PluginHost

__all__ = [
    "AppStatus",
    "CLIAppContext",
    "CLIAppInstance",
    "CLISignal",
    "PluginHost",
    "SIGNAL_EXIT_CODES",
]
