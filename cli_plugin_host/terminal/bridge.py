"""Per-instance terminal I/O bridge.

Each running app instance gets exactly one TerminalBridge. The app writes
output and awaits input through it; the host feeds it key presses and resize
events. Output lines are forwarded to the shared HostRuntime surface and also
kept in the bridge's own history.
"""

import asyncio
import logging
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, List, Optional, Tuple

from ..config import TerminalConfig
from ..errors import InputCancelledError, InputPendingError
from ..events import Listeners, Unsubscribe
from .styles import StyledContent, strip_ansi
from .surface import HostRuntime, LineKind

logger = logging.getLogger(__name__)

ENTER = "Enter"
BACKSPACE = "Backspace"


@dataclass(frozen=True)
class TerminalDimensions:
    columns: int = 80
    rows: int = 24


@dataclass(frozen=True)
class KeyModifiers:
    ctrl: bool = False
    alt: bool = False
    shift: bool = False
    meta: bool = False


NO_MODIFIERS = KeyModifiers()

KeyPressCallback = Callable[[str, KeyModifiers], None]
ResizeCallback = Callable[[TerminalDimensions], None]
OutputCallback = Callable[[str, LineKind], None]


class TerminalBridge:
    def __init__(
        self,
        runtime: HostRuntime,
        *,
        dimensions: Optional[TerminalDimensions] = None,
        default_prompt: str = "> ",
        process_ansi_codes: bool = True,
        history_limit: Optional[int] = 1000,
    ):
        self._runtime = runtime
        self._dimensions = dimensions or TerminalDimensions()
        self._prompt = default_prompt
        self.process_ansi_codes = process_ansi_codes

        self._cursor: Tuple[int, int] = (0, 0)
        self._cursor_visible = True

        self._input_buffer = ""
        self._pending_input: Optional["asyncio.Future[str]"] = None

        self._history: Deque[Tuple[LineKind, str]] = deque(maxlen=history_limit)

        self._resize_listeners = Listeners[ResizeCallback]("resize")
        self._key_listeners = Listeners[KeyPressCallback]("keypress")
        self._output_listeners = Listeners[OutputCallback]("output")
        self._listener_error_handler: Optional[Callable[[Exception], None]] = None

    @classmethod
    def from_config(
        cls, runtime: HostRuntime, config: TerminalConfig
    ) -> "TerminalBridge":
        return cls(
            runtime,
            dimensions=TerminalDimensions(config.columns, config.rows),
            default_prompt=config.default_prompt,
            process_ansi_codes=config.process_ansi_codes,
        )

    # ------------------------------------------------------------------ output

    def write(self, text: str) -> None:
        self._emit(self._process(text), LineKind.OUTPUT)

    def write_line(self, text: str, kind: LineKind = LineKind.OUTPUT) -> None:
        self._emit(self._process(text), LineKind(kind))

    def update_line(self, text: str) -> None:
        """Replace the most recently written line in place."""
        processed = self._process(text)
        if self._history:
            kind, _ = self._history[-1]
            self._history[-1] = (kind, processed)
        else:
            self._history.append((LineKind.OUTPUT, processed))
        self._runtime.update_last_line(processed)

    def clear(self) -> None:
        self._history.clear()
        self._runtime.clear_lines()
        self._cursor = (0, 0)

    def render_styled(self, content: StyledContent) -> None:
        # Styled output carries its own escapes, so it skips ANSI stripping
        self._emit(content.to_ansi(), LineKind.OUTPUT)

    @property
    def history(self) -> List[str]:
        return [text for _, text in self._history]

    def history_lines(self) -> List[Tuple[LineKind, str]]:
        return list(self._history)

    def on_output(self, callback: OutputCallback) -> Unsubscribe:
        return self._output_listeners.add(callback)

    def _process(self, text: str) -> str:
        text = str(text)
        return strip_ansi(text) if self.process_ansi_codes else text

    def _emit(self, text: str, kind: LineKind) -> None:
        self._history.append((kind, text))
        self._runtime.add_line(text, kind)
        self._output_listeners.emit(text, kind)

    # ------------------------------------------------------------------ prompt

    @property
    def prompt(self) -> str:
        return self._prompt

    def set_prompt(self, prompt: str) -> None:
        self._prompt = prompt

    def get_prompt(self) -> str:
        return self._prompt

    # ------------------------------------------------------------------- input

    async def request_input(self, prompt: Optional[str] = None) -> str:
        """Wait for the next line of input.

        Only one request may be pending per bridge; a second concurrent call
        raises InputPendingError. Resolves on Enter with the buffered text.
        """
        if self.is_waiting_for_input:
            raise InputPendingError()

        if prompt:
            self._emit(prompt, LineKind.OUTPUT)

        future: "asyncio.Future[str]" = asyncio.get_running_loop().create_future()
        self._pending_input = future
        self._input_buffer = ""
        try:
            return await future
        finally:
            if self._pending_input is future:
                self._pending_input = None
                self._input_buffer = ""

    @property
    def is_waiting_for_input(self) -> bool:
        return self._pending_input is not None and not self._pending_input.done()

    @property
    def input_buffer(self) -> str:
        return self._input_buffer

    def cancel_input(self, reason: str = "Input request cancelled") -> bool:
        """Fail a pending request_input with InputCancelledError."""
        future = self._pending_input
        if future is None or future.done():
            return False
        self._pending_input = None
        self._input_buffer = ""
        future.set_exception(InputCancelledError(reason))
        return True

    def dispatch_key_press(
        self, key: str, modifiers: KeyModifiers = NO_MODIFIERS
    ) -> None:
        """Deliver a key press: listeners first, then the pending input."""
        self._key_listeners.emit(key, modifiers, on_error=self._listener_error)

        future = self._pending_input
        if future is None or future.done():
            return

        if key == ENTER:
            value = self._input_buffer
            self._input_buffer = ""
            self._pending_input = None
            future.set_result(value)
        elif key == BACKSPACE:
            self._input_buffer = self._input_buffer[:-1]
        elif len(key) == 1:
            self._input_buffer += key

    def on_key_press(self, callback: KeyPressCallback) -> Unsubscribe:
        return self._key_listeners.add(callback)

    # -------------------------------------------------------------- dimensions

    @property
    def dimensions(self) -> TerminalDimensions:
        return self._dimensions

    def set_dimensions(self, dimensions: TerminalDimensions) -> None:
        self._dimensions = dimensions
        self._resize_listeners.emit(dimensions, on_error=self._listener_error)

    def on_resize(self, callback: ResizeCallback) -> Unsubscribe:
        return self._resize_listeners.add(callback)

    # ------------------------------------------------------------------ cursor

    def get_cursor_position(self) -> Tuple[int, int]:
        return self._cursor

    def set_cursor_position(self, x: int, y: int) -> None:
        self._cursor = (max(0, int(x)), max(0, int(y)))

    @property
    def cursor_visible(self) -> bool:
        return self._cursor_visible

    def set_cursor_visible(self, visible: bool) -> None:
        self._cursor_visible = bool(visible)

    # ----------------------------------------------------------------- control

    def set_listener_error_handler(
        self, handler: Optional[Callable[[Exception], None]]
    ) -> None:
        """Route exceptions from key/resize listeners to ``handler``."""
        self._listener_error_handler = handler

    def _listener_error(self, error: Exception) -> None:
        if self._listener_error_handler is not None:
            self._listener_error_handler(error)
        else:
            logger.exception(f"Terminal listener failed: {error}", exc_info=error)

    def close(self) -> None:
        """Cancel pending input and drop all listeners."""
        self.cancel_input("Terminal closed")
        self._resize_listeners.clear()
        self._key_listeners.clear()
        self._output_listeners.clear()
