"""Expose a PluginHost as a plugin of a hosting terminal.

The hosting terminal calls ``on_init`` with its line surface, then routes
``<prefix>:<command>`` lines to ``execute``. All output goes back to the
surface as lines.
"""

import logging
import shlex
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from .errors import PluginHostError
from .host.instance import CLIAppInstance
from .host.plugin_host import PluginHost
from .terminal.surface import HostRuntime, LineKind

logger = logging.getLogger(__name__)

ShellCommand = Callable[[List[str]], Awaitable[None]]


def _parse_run_tokens(tokens: List[str]) -> Tuple[List[str], Dict[str, Any]]:
    """Split ``--key=value`` and bare ``--key`` tokens into flags."""
    args: List[str] = []
    flags: Dict[str, Any] = {}
    for token in tokens:
        if token.startswith("--") and len(token) > 2:
            key, sep, value = token[2:].partition("=")
            flags[key] = value if sep else True
        else:
            args.append(token)
    return args, flags


class CLIIntegration:
    def __init__(
        self, host: Optional[PluginHost] = None, prefix: Optional[str] = None
    ):
        self.host = host or PluginHost()
        self.prefix = prefix or self.host.settings.host.command_prefix
        self._runtime: Optional[HostRuntime] = None
        self._unsubscribe: List[Callable[[], None]] = []
        self.commands: Dict[str, ShellCommand] = {
            f"{self.prefix}:list": self._list,
            f"{self.prefix}:run": self._run,
            f"{self.prefix}:stop": self._stop,
            f"{self.prefix}:ps": self._ps,
            f"{self.prefix}:fg": self._fg,
            f"{self.prefix}:info": self._info,
        }

    async def on_init(self, runtime: HostRuntime) -> None:
        self._runtime = runtime
        await self.host.initialize(runtime)
        self._unsubscribe = [
            self.host.on_app_terminated(self._announce_exit),
            self.host.on_app_error(self._announce_error),
        ]

    async def on_destroy(self) -> None:
        for unsubscribe in self._unsubscribe:
            unsubscribe()
        self._unsubscribe = []
        await self.host.destroy()
        self._runtime = None

    def handles(self, line: str) -> bool:
        name = line.strip().split(" ", 1)[0]
        return name in self.commands

    async def execute(self, line: str) -> bool:
        """Run one shell line; returns False if it is not one of ours."""
        try:
            tokens = shlex.split(line)
        except ValueError as e:
            self._write(f"Parse error: {e}", LineKind.ERROR)
            return True
        if not tokens or tokens[0] not in self.commands:
            return False

        try:
            await self.commands[tokens[0]](tokens[1:])
        except PluginHostError as e:
            self._write(e.message, LineKind.ERROR)
        return True

    # --------------------------------------------------------------- commands

    async def _list(self, argv: List[str]) -> None:
        apps = self.host.search_apps(argv[0]) if argv else self.host.list_apps()
        if not apps:
            self._write("No apps registered", LineKind.SYSTEM)
            return
        for app in apps:
            manifest = app.manifest
            line = f"{manifest.name} {manifest.version} ({manifest.library})"
            if manifest.description:
                line += f" - {manifest.description}"
            self._write(line)

    async def _run(self, argv: List[str]) -> None:
        if not argv:
            self._write(f"Usage: {self.prefix}:run <app> [args...]", LineKind.ERROR)
            return
        args, flags = _parse_run_tokens(argv[1:])
        instance = await self.host.launch(argv[0], args, flags)
        self._write(
            f"Started {instance.name} (pid {instance.pid})", LineKind.SUCCESS
        )

    async def _stop(self, argv: List[str]) -> None:
        if not argv:
            self._write(f"Usage: {self.prefix}:stop <id|pid> [code]", LineKind.ERROR)
            return
        instance = self._find(argv[0])
        if instance is None:
            return
        code = 0
        if len(argv) > 1 and argv[1].lstrip("-").isdigit():
            code = int(argv[1])
        self.host.terminate(instance.id, code)
        self._write(f"Stopped {instance.name} (pid {instance.pid})", LineKind.SUCCESS)

    async def _ps(self, argv: List[str]) -> None:
        instances = self.host.list_running_instances()
        if not instances:
            self._write("No running apps", LineKind.SYSTEM)
            return
        foreground = self.host.foreground_id
        self._write("PID   APP                  STATUS     UPTIME")
        for instance in instances:
            marker = "*" if instance.id == foreground else " "
            self._write(
                f"{instance.pid:<5}{marker}{instance.name:<20} "
                f"{instance.status.value:<10} {instance.uptime:.1f}s"
            )

    async def _fg(self, argv: List[str]) -> None:
        if not argv:
            current = self.host.get_foreground_instance()
            if current is None:
                self._write("No foreground app", LineKind.SYSTEM)
            else:
                self._write(f"Foreground: {current.name} (pid {current.pid})")
            return
        instance = self._find(argv[0])
        if instance is None:
            return
        self.host.bring_to_foreground(instance.id)
        self._write(f"{instance.name} (pid {instance.pid}) in foreground")

    async def _info(self, argv: List[str]) -> None:
        if not argv:
            self._write(f"Usage: {self.prefix}:info <app>", LineKind.ERROR)
            return
        app = self.host.apps.require(argv[0])
        manifest = app.manifest
        self._write(f"{manifest.name} {manifest.version}")
        if manifest.description:
            self._write(manifest.description)
        self._write(f"Library: {manifest.library} {manifest.library_version}")
        if manifest.author:
            self._write(f"Author: {manifest.author}")
        if manifest.entry_command:
            self._write(f"Entry command: {manifest.entry_command}")
        for command in app.commands:
            aliases = f" ({', '.join(command.aliases)})" if command.aliases else ""
            self._write(f"  {command.name}{aliases} - {command.description}")

    # ---------------------------------------------------------------- helpers

    def _find(self, ref: str) -> Optional[CLIAppInstance]:
        instance = self.host.find_instance(ref)
        if instance is None:
            self._write(f"No running app matches {ref}", LineKind.ERROR)
        return instance

    def _write(self, text: str, kind: LineKind = LineKind.OUTPUT) -> None:
        if self._runtime is None:
            logger.debug(f"Dropping shell output before init: {text}")
            return
        self._runtime.add_line(text, kind)

    def _announce_exit(self, instance: CLIAppInstance, code: int) -> None:
        self._write(
            f"{instance.name} (pid {instance.pid}) exited with code {code}",
            LineKind.SYSTEM,
        )

    def _announce_error(self, instance: CLIAppInstance, error: Exception) -> None:
        self._write(f"{instance.name} (pid {instance.pid}): {error}", LineKind.ERROR)
