"""The shared terminal surface all instance bridges write to."""

import itertools
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Protocol, runtime_checkable

from ..events import Listeners, Unsubscribe

logger = logging.getLogger(__name__)


ChangeCallback = Callable[[List["TerminalLine"]], None]


class LineKind(str, Enum):
    INPUT = "input"
    OUTPUT = "output"
    ERROR = "error"
    SUCCESS = "success"
    SYSTEM = "system"


@dataclass
class TerminalLine:
    id: int
    text: str
    kind: LineKind = LineKind.OUTPUT
    timestamp: float = field(default_factory=time.time)


@runtime_checkable
class HostRuntime(Protocol):
    """What the presentation layer must provide to the host.

    Bridges append, replace and clear lines through this interface; how they
    are drawn is up to the implementation.
    """

    def add_line(self, text: str, kind: LineKind = LineKind.OUTPUT) -> None:
        ...

    def clear_lines(self) -> None:
        ...

    def update_last_line(self, text: str) -> None:
        ...


class TerminalBuffer:
    """In-memory HostRuntime keeping a bounded scrollback of lines.

    Used by the command-line tool and by tests; a real presentation layer can
    subscribe with ``on_change`` to redraw.
    """

    def __init__(self, max_lines: Optional[int] = 1000):
        self.max_lines = max_lines
        self._lines: List[TerminalLine] = []
        self._ids = itertools.count(1)
        self._change = Listeners[ChangeCallback]("terminal change")

    @property
    def lines(self) -> List[TerminalLine]:
        return list(self._lines)

    def texts(self) -> List[str]:
        return [line.text for line in self._lines]

    def render(self) -> str:
        return "\n".join(self.texts())

    def on_change(self, callback: ChangeCallback) -> Unsubscribe:
        return self._change.add(callback)

    def add_line(self, text: str, kind: LineKind = LineKind.OUTPUT) -> None:
        self._lines.append(TerminalLine(next(self._ids), text, LineKind(kind)))
        if self.max_lines is not None and len(self._lines) > self.max_lines:
            del self._lines[: len(self._lines) - self.max_lines]
        self._notify()

    def clear_lines(self) -> None:
        self._lines.clear()
        self._notify()

    def update_last_line(self, text: str) -> None:
        if not self._lines:
            self.add_line(text)
            return
        self._lines[-1].text = text
        self._notify()

    def _notify(self) -> None:
        if self._change:
            self._change.emit(self.lines)
