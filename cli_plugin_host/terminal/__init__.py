from .bridge import (
    BACKSPACE,
    ENTER,
    KeyModifiers,
    TerminalBridge,
    TerminalDimensions,
)
from .styles import StyledContent, strip_ansi
from .surface import HostRuntime, LineKind, TerminalBuffer, TerminalLine

__all__ = [
    "BACKSPACE",
    "ENTER",
    "HostRuntime",
    "KeyModifiers",
    "LineKind",
    "StyledContent",
    "TerminalBridge",
    "TerminalBuffer",
    "TerminalDimensions",
    "TerminalLine",
    "strip_ansi",
]
