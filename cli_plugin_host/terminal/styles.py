"""Structured styling converted to ANSI SGR sequences."""

import re
from dataclasses import dataclass
from typing import Dict, List, Optional

ANSI_SGR_RE = re.compile(r"\x1b\[[0-9;]*m")

RESET = "\x1b[0m"

FOREGROUND_CODES: Dict[str, int] = {
    "black": 30,
    "red": 31,
    "green": 32,
    "yellow": 33,
    "blue": 34,
    "magenta": 35,
    "cyan": 36,
    "white": 37,
    "brightBlack": 90,
    "brightRed": 91,
    "brightGreen": 92,
    "brightYellow": 93,
    "brightBlue": 94,
    "brightMagenta": 95,
    "brightCyan": 96,
    "brightWhite": 97,
}

BACKGROUND_CODES: Dict[str, int] = {
    name: code + 10 for name, code in FOREGROUND_CODES.items()
}


def _normalize_color(name: str) -> str:
    # bright_red / bright-red -> brightRed
    parts = [p for p in re.split(r"[_\-\s]+", name.strip()) if p]
    if not parts:
        return ""
    head = parts[0][:1].lower() + parts[0][1:]
    return head + "".join(p.capitalize() for p in parts[1:])


@dataclass(frozen=True)
class StyledContent:
    text: str
    bold: bool = False
    dim: bool = False
    italic: bool = False
    underline: bool = False
    inverse: bool = False
    strikethrough: bool = False
    color: Optional[str] = None
    background_color: Optional[str] = None

    def sgr_codes(self) -> List[int]:
        codes: List[int] = []
        for flag, code in (
            (self.bold, 1),
            (self.dim, 2),
            (self.italic, 3),
            (self.underline, 4),
            (self.inverse, 7),
            (self.strikethrough, 9),
        ):
            if flag:
                codes.append(code)

        # Unknown colour names are ignored rather than rejected
        if self.color:
            fg = FOREGROUND_CODES.get(_normalize_color(self.color))
            if fg is not None:
                codes.append(fg)
        if self.background_color:
            bg = BACKGROUND_CODES.get(_normalize_color(self.background_color))
            if bg is not None:
                codes.append(bg)
        return codes

    def to_ansi(self) -> str:
        codes = self.sgr_codes()
        if not codes:
            return self.text
        return f"\x1b[{';'.join(str(c) for c in codes)}m{self.text}{RESET}"


def strip_ansi(text: str) -> str:
    return ANSI_SGR_RE.sub("", text)
