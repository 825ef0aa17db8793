"""
Unit tests for the per-instance terminal bridge.
"""

import asyncio
from unittest.mock import Mock

import pytest

from cli_plugin_host.config import TerminalConfig
from cli_plugin_host.errors import InputCancelledError, InputPendingError
from cli_plugin_host.terminal.bridge import (
    BACKSPACE,
    ENTER,
    KeyModifiers,
    TerminalBridge,
    TerminalDimensions,
)
from cli_plugin_host.terminal.styles import StyledContent
from cli_plugin_host.terminal.surface import LineKind


async def start_input(bridge, prompt=None):
    task = asyncio.ensure_future(bridge.request_input(prompt))
    await asyncio.sleep(0)
    return task


class TestOutput:
    def test_write_line_reaches_runtime_and_history(self, buffer, bridge):
        bridge.write_line("hello")
        bridge.write_line("oops", LineKind.ERROR)

        assert buffer.texts() == ["hello", "oops"]
        assert buffer.lines[1].kind is LineKind.ERROR
        assert bridge.history == ["hello", "oops"]
        assert bridge.history_lines()[1] == (LineKind.ERROR, "oops")

    def test_ansi_codes_stripped_by_default(self, buffer, bridge):
        bridge.write("\x1b[31mred\x1b[0m")

        assert buffer.texts() == ["red"]

    def test_ansi_codes_kept_when_processing_disabled(self, buffer):
        bridge = TerminalBridge(buffer, process_ansi_codes=False)
        bridge.write("\x1b[31mred\x1b[0m")

        assert buffer.texts() == ["\x1b[31mred\x1b[0m"]

    def test_render_styled_keeps_escapes(self, buffer, bridge):
        bridge.render_styled(StyledContent("hi", bold=True, color="red"))

        assert buffer.texts() == ["\x1b[1;31mhi\x1b[0m"]

    def test_update_line_replaces_last_line(self, buffer, bridge):
        bridge.update_line("first")
        bridge.write_line("loading 10%")
        bridge.update_line("loading 90%")

        assert buffer.texts() == ["first", "loading 90%"]
        assert bridge.history == ["first", "loading 90%"]

    def test_clear(self, buffer, bridge):
        bridge.write_line("x")
        bridge.set_cursor_position(3, 4)

        bridge.clear()

        assert buffer.texts() == []
        assert bridge.history == []
        assert bridge.get_cursor_position() == (0, 0)

    def test_output_listeners(self, bridge, events):
        unsubscribe = bridge.on_output(lambda text, kind: events.append((text, kind)))
        bridge.write_line("one", LineKind.SUCCESS)
        unsubscribe()
        bridge.write_line("two")

        assert events == [("one", LineKind.SUCCESS)]

    def test_history_is_bounded(self, buffer):
        bridge = TerminalBridge(buffer, history_limit=2)
        for text in ("a", "b", "c"):
            bridge.write_line(text)

        assert bridge.history == ["b", "c"]
        assert buffer.texts() == ["a", "b", "c"]

    def test_from_config(self, buffer):
        config = TerminalConfig(columns=120, rows=40, default_prompt="$ ")
        bridge = TerminalBridge.from_config(buffer, config)

        assert bridge.dimensions == TerminalDimensions(120, 40)
        assert bridge.get_prompt() == "$ "


class TestInput:
    @pytest.mark.asyncio
    async def test_keys_build_the_input_line(self, bridge):
        task = await start_input(bridge)
        assert bridge.is_waiting_for_input

        for key in ("h", "i", BACKSPACE, "o"):
            bridge.dispatch_key_press(key)
        assert bridge.input_buffer == "ho"
        bridge.dispatch_key_press(ENTER)

        assert await task == "ho"
        assert not bridge.is_waiting_for_input
        assert bridge.input_buffer == ""

    @pytest.mark.asyncio
    async def test_prompt_is_written(self, buffer, bridge):
        task = await start_input(bridge, "name? ")
        bridge.dispatch_key_press(ENTER)

        assert await task == ""
        assert buffer.texts() == ["name? "]

    @pytest.mark.asyncio
    async def test_named_keys_are_not_typed(self, bridge):
        task = await start_input(bridge)
        bridge.dispatch_key_press("ArrowUp")
        bridge.dispatch_key_press("a")
        bridge.dispatch_key_press(ENTER)

        assert await task == "a"

    @pytest.mark.asyncio
    async def test_second_request_is_rejected(self, bridge):
        task = await start_input(bridge)

        with pytest.raises(InputPendingError):
            await bridge.request_input()

        bridge.dispatch_key_press(ENTER)
        assert await task == ""

    @pytest.mark.asyncio
    async def test_cancel_input(self, bridge):
        task = await start_input(bridge)

        assert bridge.cancel_input("going away") is True
        with pytest.raises(InputCancelledError, match="going away"):
            await task
        assert bridge.cancel_input() is False

    @pytest.mark.asyncio
    async def test_close_cancels_pending_input(self, bridge):
        task = await start_input(bridge)

        bridge.close()

        with pytest.raises(InputCancelledError):
            await task

    def test_keys_without_pending_input_only_reach_listeners(self, bridge, events):
        bridge.on_key_press(lambda key, mods: events.append((key, mods.ctrl)))

        bridge.dispatch_key_press("c", KeyModifiers(ctrl=True))

        assert events == [("c", True)]
        assert bridge.input_buffer == ""


class TestListeners:
    def test_resize_notifies_listeners(self, bridge, events):
        bridge.on_resize(events.append)

        bridge.set_dimensions(TerminalDimensions(100, 30))

        assert bridge.dimensions.columns == 100
        assert events == [TerminalDimensions(100, 30)]

    def test_listener_errors_go_to_handler(self, bridge):
        handler = Mock()
        bridge.set_listener_error_handler(handler)
        bridge.on_key_press(Mock(side_effect=RuntimeError("listener failed")))
        later = Mock()
        bridge.on_key_press(later)

        bridge.dispatch_key_press("x")

        handler.assert_called_once()
        assert isinstance(handler.call_args.args[0], RuntimeError)
        later.assert_called_once()

    def test_listener_errors_without_handler_are_logged(self, bridge):
        bridge.on_resize(Mock(side_effect=RuntimeError("boom")))

        bridge.set_dimensions(TerminalDimensions(10, 10))

        assert bridge.dimensions == TerminalDimensions(10, 10)

    def test_close_drops_listeners(self, bridge, events):
        bridge.on_key_press(lambda key, mods: events.append(key))
        bridge.close()

        bridge.dispatch_key_press("a")

        assert events == []


class TestCursor:
    def test_position_is_clamped(self, bridge):
        bridge.set_cursor_position(-5, 3)

        assert bridge.get_cursor_position() == (0, 3)

    def test_visibility(self, bridge):
        assert bridge.cursor_visible
        bridge.set_cursor_visible(False)
        assert not bridge.cursor_visible
