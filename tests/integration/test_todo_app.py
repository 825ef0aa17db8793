"""
End-to-end run of the bundled todo app through a host.
"""

import asyncio

import pytest

from cli_plugin_host.examples import todo
from cli_plugin_host.host import AppStatus
from cli_plugin_host.terminal.surface import LineKind

pytestmark = pytest.mark.integration


async def type_line(instance, line):
    for _ in range(20):
        if instance.terminal.is_waiting_for_input:
            break
        await asyncio.sleep(0)
    instance.send_input(line + "\n")
    await asyncio.sleep(0)


async def settle():
    for _ in range(5):
        await asyncio.sleep(0)


class TestTodoList:
    def test_complete_out_of_range(self):
        todos = todo.TodoList()
        todos.add("milk")

        with pytest.raises(IndexError):
            todos.complete(2)
        assert todos.complete(1).done
        assert todos.pending() == []


class TestTodoApp:
    @pytest.mark.asyncio
    async def test_session(self, host, buffer):
        host.register_app(todo.app)
        instance = await host.launch("todo")

        await type_line(instance, "add milk")
        await type_line(instance, "add eggs")
        await type_line(instance, "done 1")
        await type_line(instance, "list")
        await type_line(instance, "list --all")
        await type_line(instance, "fly")
        await type_line(instance, "quit")
        await settle()

        texts = buffer.texts()
        assert "Added #1: milk" in texts
        assert "Added #2: eggs" in texts
        assert "Done: milk" in texts
        assert texts.count("[ ] 2. eggs") == 2
        assert texts.count("\x1b[2m[x] 1. milk\x1b[0m") == 1
        assert "Unknown command: fly" in texts
        assert instance.status is AppStatus.TERMINATED
        assert instance.exit_code == 0
        assert instance.id not in todo._lists

    @pytest.mark.asyncio
    async def test_bad_done(self, host, buffer):
        host.register_app(todo.app)
        instance = await host.launch("todo")

        await type_line(instance, "done 9")

        assert buffer.lines[-2].text == "No such todo: 9"
        assert buffer.lines[-2].kind is LineKind.ERROR
        instance.terminate()

    @pytest.mark.asyncio
    async def test_lines_follow_declared_commands(self, host, buffer):
        host.register_app(todo.app)
        instance = await host.launch("todo")

        await type_line(instance, 'add "oat milk"')
        await type_line(instance, "done 1")
        await type_line(instance, "ls -a")
        assert buffer.lines[-2].text == "\x1b[2m[x] 1. oat milk\x1b[0m"

        await type_line(instance, "add")
        assert buffer.lines[-2].kind is LineKind.ERROR
        assert buffer.lines[-2].text.startswith("add:")
        assert "TEXT" in buffer.lines[-2].text

        await type_line(instance, "list --bogus")
        assert buffer.lines[-2].kind is LineKind.ERROR
        assert instance.status is AppStatus.RUNNING
        instance.terminate()

    @pytest.mark.asyncio
    async def test_launch_args_run_first(self, host, buffer):
        host.register_app(todo.app)

        instance = await host.launch("todo", ["add", "bread"])
        await asyncio.sleep(0)

        assert "Added #1: bread" in buffer.texts()
        assert instance.status is AppStatus.RUNNING

    @pytest.mark.asyncio
    async def test_terminate_ends_session(self, host, buffer):
        host.register_app(todo.app)
        instance = await host.launch("todo")
        await type_line(instance, "add tea")

        host.terminate(instance.id, 130)
        await settle()

        assert instance.exit_code == 130
        assert instance.id not in todo._lists
