"""A small Ink todo list.

Run it with ``cli-host demo cli_plugin_host.examples.todo:app --input "add milk"``
or register ``cli_plugin_host.examples.todo:app`` under ``host.apps``.
"""

import shlex
from dataclasses import dataclass, field
from typing import Any, Dict, List

from ..apps.arguments import parse_command_args
from ..apps.builder import create_cli_app, create_command
from ..errors import CommandUsageError, InputCancelledError
from ..terminal.styles import StyledContent
from ..terminal.surface import LineKind


@dataclass
class TodoItem:
    text: str
    done: bool = False


@dataclass
class TodoList:
    items: List[TodoItem] = field(default_factory=list)

    def add(self, text: str) -> TodoItem:
        item = TodoItem(text)
        self.items.append(item)
        return item

    def complete(self, number: int) -> TodoItem:
        if number < 1 or number > len(self.items):
            raise IndexError(f"No todo #{number}")
        item = self.items[number - 1]
        item.done = True
        return item

    def pending(self) -> List[TodoItem]:
        return [item for item in self.items if not item.done]


# One list per running instance
_lists: Dict[str, TodoList] = {}


def _todos(context) -> TodoList:
    return _lists.setdefault(context.instance_id, TodoList())


def _add(args: List[str], flags: Dict[str, Any], context) -> None:
    text = " ".join(args).strip()
    if not text:
        context.terminal.write_line("Nothing to add", LineKind.ERROR)
        return
    item = _todos(context).add(text)
    number = len(_todos(context).items)
    context.terminal.write_line(f"Added #{number}: {item.text}", LineKind.SUCCESS)


def _list(args: List[str], flags: Dict[str, Any], context) -> None:
    todos = _todos(context)
    items = todos.items if flags.get("all") else todos.pending()
    if not items:
        context.terminal.write_line("Nothing to do")
        return
    for number, item in enumerate(todos.items, start=1):
        if item not in items:
            continue
        mark = "x" if item.done else " "
        context.terminal.render_styled(
            StyledContent(f"[{mark}] {number}. {item.text}", dim=item.done)
        )


def _done(args: List[str], flags: Dict[str, Any], context) -> None:
    try:
        item = _todos(context).complete(int(args[0]))
    except (IndexError, ValueError):
        wanted = " ".join(args)
        context.terminal.write_line(f"No such todo: {wanted}", LineKind.ERROR)
        return
    context.terminal.write_line(f"Done: {item.text}", LineKind.SUCCESS)


async def todo_main(context, **props: Any) -> int:
    """Read commands until ``quit`` or the instance is terminated."""
    terminal = context.terminal
    terminal.render_styled(StyledContent("Todo", bold=True, color="cyan"))
    if context.args:
        _dispatch(list(context.args), context)

    try:
        while True:
            line = (await terminal.request_input(terminal.prompt)).strip()
            if line in ("quit", "exit"):
                return 0
            if not line:
                continue
            try:
                tokens = shlex.split(line)
            except ValueError as e:
                terminal.write_line(f"Parse error: {e}", LineKind.ERROR)
                continue
            _dispatch(tokens, context)
    except InputCancelledError:
        return 0
    finally:
        _lists.pop(context.instance_id, None)


def _dispatch(tokens: List[str], context) -> None:
    """Run one line through the app's declared commands."""
    name, argv = tokens[0], tokens[1:]
    command = app.find_command(name)
    if command is None or command.handler is None:
        context.terminal.write_line(f"Unknown command: {name}", LineKind.ERROR)
        return
    try:
        parsed = parse_command_args(command, argv)
    except CommandUsageError as e:
        context.terminal.write_line(e.message, LineKind.ERROR)
        return
    command.handler(parsed.args, parsed.flags, context)


app = (
    create_cli_app()
    .name("todo")
    .version("1.0.0")
    .description("Keep a todo list in the terminal")
    .author("cli-plugin-host")
    .keywords("todo", "example")
    .for_ink(">=6.6.0")
    .requires_input()
    .entry_command("todos")
    .command(
        create_command("add")
        .description("Add a todo")
        .arg("text", description="What to do", required=True)
        .example("add buy milk")
        .handler(_add)
        .build()
    )
    .command(
        create_command("list")
        .description("Show todos")
        .alias("ls")
        .boolean_flag("all", char="a", description="Include finished todos")
        .handler(_list)
        .build()
    )
    .command(
        create_command("done")
        .description("Mark a todo as finished")
        .arg("number", required=True)
        .handler(_done)
        .build()
    )
    .component(todo_main)
    .build()
)
