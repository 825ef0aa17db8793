"""Parse an argv list against a CLICommand declaration using click."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import click

from ..errors import CommandUsageError
from .models import CLICommand, CommandArg, CommandFlag, FlagType


class _Number(click.ParamType):
    """Integers stay integers, everything else numeric becomes a float."""

    name = "number"

    def convert(
        self,
        value: Any,
        param: Optional[click.Parameter],
        ctx: Optional[click.Context],
    ) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return value
        try:
            return int(value)
        except (TypeError, ValueError):
            pass
        try:
            return float(value)
        except (TypeError, ValueError):
            self.fail(f"{value!r} is not a number", param, ctx)


NUMBER = _Number()


@dataclass
class ParsedArgs:
    command: str
    args: List[str] = field(default_factory=list)
    flags: Dict[str, Any] = field(default_factory=dict)
    params: Dict[str, Any] = field(default_factory=dict)
    subcommand: Optional[str] = None


def _identifier(name: str) -> str:
    return name.replace("-", "_")


def _flag_option(flag: CommandFlag) -> click.Option:
    decls = [f"--{flag.name}"]
    if flag.char:
        decls.append(f"-{flag.char}")
    decls.append(_identifier(flag.name))

    if flag.type == FlagType.BOOLEAN:
        return click.Option(
            decls,
            is_flag=True,
            default=bool(flag.default),
            help=flag.description,
        )

    if flag.choices:
        param_type: click.ParamType = click.Choice([str(c) for c in flag.choices])
    elif flag.type == FlagType.NUMBER:
        param_type = NUMBER
    else:
        param_type = click.STRING

    options: Dict[str, Any] = {
        "type": param_type,
        "required": flag.required,
        "help": flag.description,
    }
    # An explicit default of None disables click's missing-parameter check
    if flag.default is not None:
        options["default"] = flag.default
    return click.Option(decls, **options)


def _argument(arg: CommandArg) -> click.Argument:
    if arg.default is None:
        return click.Argument([_identifier(arg.name)], required=arg.required)
    return click.Argument(
        [_identifier(arg.name)], required=False, default=arg.default
    )


def build_click_command(command: CLICommand) -> click.Command:
    params: List[click.Parameter] = [_argument(arg) for arg in command.args]
    for flag in command.flags:
        params.append(_flag_option(flag))

    return click.Command(
        command.name,
        params=params,
        help=command.description,
        add_help_option=False,
        context_settings={"allow_extra_args": True},
    )


def _restore_choice(flag: CommandFlag, value: Any) -> Any:
    # click.Choice hands back strings; map them to the declared choice values
    if value is None or not flag.choices:
        return value
    for choice in flag.choices:
        if str(choice) == str(value):
            return choice
    return value


def parse_command_args(command: CLICommand, argv: Sequence[str]) -> ParsedArgs:
    """Parse ``argv`` for ``command``.

    A leading token naming a subcommand dispatches to it. Positional values
    come back in ``args`` (declared arguments first, then extras), flags in
    ``flags`` keyed by their declared names. Raises CommandUsageError.
    """
    argv = list(argv)
    if argv and command.subcommands:
        sub = command.find_subcommand(argv[0])
        if sub is not None:
            parsed = parse_command_args(sub, argv[1:])
            parsed.subcommand = sub.name
            parsed.command = command.name
            return parsed

    click_command = build_click_command(command)
    try:
        ctx = click_command.make_context(command.name, argv)
    except click.ClickException as e:
        raise CommandUsageError(command.name, e.format_message()) from e

    params: Dict[str, Any] = {}
    args: List[str] = []
    for arg in command.args:
        value = ctx.params.get(_identifier(arg.name))
        if value is not None and arg.validate is not None:
            verdict = arg.validate(value)
            if verdict is not True:
                message = verdict if isinstance(verdict, str) else "invalid value"
                raise CommandUsageError(command.name, f"{arg.name}: {message}")
        params[arg.name] = value
        if value is not None:
            args.append(value)
    args.extend(ctx.args)

    flags: Dict[str, Any] = {}
    for flag in command.flags:
        flags[flag.name] = _restore_choice(flag, ctx.params.get(_identifier(flag.name)))

    return ParsedArgs(command=command.name, args=args, flags=flags, params=params)
