"""App instances: the per-launch lifecycle state machine.

    starting  -> running | exiting
    running   -> suspended | exiting | error
    suspended -> running | exiting
    error     -> exiting
    exiting   -> terminated

Any other requested transition is ignored.
"""

import asyncio
import inspect
import logging
import time
from datetime import datetime
from enum import Enum
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Dict,
    FrozenSet,
    List,
    Mapping,
    Optional,
    Sequence,
    Union,
)

from ..adapters.negotiator import VersionCompatibility
from ..adapters.protocol import RenderInstance
from ..apps.arguments import ParsedArgs, parse_command_args
from ..apps.models import CLIAppDefinition, CLIAppManifest
from ..errors import AppRuntimeError
from ..events import Listeners, Unsubscribe
from ..terminal.bridge import (
    BACKSPACE,
    ENTER,
    NO_MODIFIERS,
    KeyModifiers,
    TerminalBridge,
)
from ..terminal.surface import HostRuntime, LineKind

if TYPE_CHECKING:
    from .plugin_host import PluginHost

logger = logging.getLogger(__name__)


class AppStatus(str, Enum):
    STARTING = "starting"
    RUNNING = "running"
    SUSPENDED = "suspended"
    EXITING = "exiting"
    TERMINATED = "terminated"
    ERROR = "error"


_TRANSITIONS: Dict[AppStatus, FrozenSet[AppStatus]] = {
    AppStatus.STARTING: frozenset({AppStatus.RUNNING, AppStatus.EXITING}),
    AppStatus.RUNNING: frozenset(
        {AppStatus.SUSPENDED, AppStatus.EXITING, AppStatus.ERROR}
    ),
    AppStatus.SUSPENDED: frozenset({AppStatus.RUNNING, AppStatus.EXITING}),
    AppStatus.ERROR: frozenset({AppStatus.EXITING}),
    AppStatus.EXITING: frozenset({AppStatus.TERMINATED}),
    AppStatus.TERMINATED: frozenset(),
}


class CLISignal(str, Enum):
    SIGINT = "SIGINT"
    SIGTERM = "SIGTERM"
    SIGKILL = "SIGKILL"
    SIGHUP = "SIGHUP"
    SIGUSR1 = "SIGUSR1"
    SIGUSR2 = "SIGUSR2"


SIGNAL_EXIT_CODES: Dict[CLISignal, int] = {
    CLISignal.SIGINT: 130,
    CLISignal.SIGTERM: 130,
    CLISignal.SIGKILL: 137,
    CLISignal.SIGHUP: 129,
}

_CONTROL_KEYS = {"\n": ENTER, "\r": ENTER, "\b": BACKSPACE, "\x7f": BACKSPACE}


class CLIAppContext:
    """Everything a running app gets from its host.

    Passed to the component as the ``context`` prop, to ``on_before_start``
    and to command handlers.
    """

    def __init__(
        self,
        host: "PluginHost",
        instance_id: str,
        *,
        terminal: TerminalBridge,
        runtime: HostRuntime,
        manifest: CLIAppManifest,
        args: Sequence[str] = (),
        flags: Optional[Mapping[str, Any]] = None,
        compatibility: Optional[VersionCompatibility] = None,
    ):
        self._host = host
        self.instance_id = instance_id
        self.terminal = terminal
        self.runtime = runtime
        self.manifest = manifest
        self.args: List[str] = list(args)
        self.flags: Dict[str, Any] = dict(flags or {})
        self.compatibility = compatibility

    def exit(self, code: int = 0) -> None:
        self._host.terminate(self.instance_id, code)

    def suspend(self) -> None:
        instance = self._host.get_instance(self.instance_id)
        if instance is not None:
            instance.suspend()

    def is_foreground(self) -> bool:
        return self._host.foreground_id == self.instance_id

    @property
    def instance(self) -> Optional["CLIAppInstance"]:
        return self._host.get_instance(self.instance_id)

    def __repr__(self) -> str:
        return f"CLIAppContext({self.manifest.name!r}, {self.instance_id!r})"


class CLIAppInstance:
    def __init__(
        self,
        instance_id: str,
        app: CLIAppDefinition,
        pid: int,
        render: RenderInstance,
        bridge: TerminalBridge,
        context: CLIAppContext,
    ):
        self.id = instance_id
        self.app = app
        self.pid = pid
        self.render = render
        self.terminal = bridge
        self.context = context
        self.start_time = datetime.now()
        self._started_at = time.monotonic()

        self._status = AppStatus.STARTING
        self.exit_code: Optional[int] = None
        self.error: Optional[AppRuntimeError] = None
        self._exit_waiters: List["asyncio.Future[int]"] = []

        self._status_listeners = Listeners[Callable[[AppStatus], None]]("status")
        self._exit_listeners = Listeners[Callable[[int], None]]("exit")
        self._error_listeners = Listeners[Callable[[AppRuntimeError], None]]("error")

    @property
    def name(self) -> str:
        return self.app.manifest.name

    @property
    def status(self) -> AppStatus:
        return self._status

    @property
    def uptime(self) -> float:
        return time.monotonic() - self._started_at

    def is_alive(self) -> bool:
        return self._status not in (AppStatus.EXITING, AppStatus.TERMINATED)

    def _set_status(self, status: AppStatus) -> bool:
        if status not in _TRANSITIONS[self._status]:
            return False
        previous, self._status = self._status, status
        logger.debug(f"{self.name}[{self.pid}] {previous.value} -> {status.value}")
        self._status_listeners.emit(status)
        return True

    def _call_hook(self, name: str, *args: Any, fail_on_error: bool = True) -> None:
        hook = getattr(self.app.lifecycle, name)
        if hook is None:
            return
        try:
            hook(*args)
        except Exception as e:
            if fail_on_error:
                self.fail(e)
            else:
                logger.exception(f"{name} hook of {self.name}[{self.pid}] failed: {e}")

    # -------------------------------------------------------------- lifecycle

    def start(self) -> bool:
        return self._set_status(AppStatus.RUNNING)

    def suspend(self) -> bool:
        if self._status is not AppStatus.RUNNING:
            return False
        self._set_status(AppStatus.SUSPENDED)
        self.render.pause()
        self._call_hook("on_suspend")
        return True

    def resume(self) -> bool:
        if self._status is not AppStatus.SUSPENDED:
            return False
        self._set_status(AppStatus.RUNNING)
        self.render.resume()
        self._call_hook("on_resume")
        return True

    def terminate(self, code: int = 0) -> bool:
        """Stop the instance; only the first call has any effect."""
        if not self._set_status(AppStatus.EXITING):
            return False

        self.terminal.cancel_input("App terminated")
        try:
            self.render.unmount()
        except Exception as e:
            logger.warning(f"Ignoring unmount error for {self.name}[{self.pid}]: {e}")

        self._set_status(AppStatus.TERMINATED)
        self.exit_code = code
        logger.info(f"{self.name}[{self.pid}] terminated with code {code}")

        self._call_hook("on_exit", code, fail_on_error=False)
        self._exit_listeners.emit(code)

        for waiter in self._exit_waiters:
            if not waiter.done():
                waiter.set_result(code)
        self._exit_waiters.clear()
        self.terminal.close()
        return True

    def fail(self, error: BaseException) -> bool:
        """Record a runtime error raised by this instance's logic.

        Only a running instance moves to ``error`` and notifies listeners;
        otherwise the error is recorded and logged.
        """
        if isinstance(error, AppRuntimeError):
            wrapped = error
        else:
            wrapped = AppRuntimeError(self.id, self.name, error)

        if self._status is not AppStatus.RUNNING:
            logger.warning(
                f"Error in {self.name}[{self.pid}] while {self._status.value}: "
                f"{wrapped.original_error!r}"
            )
            if self.error is None:
                self.error = wrapped
            return False

        self.error = wrapped
        self._set_status(AppStatus.ERROR)
        logger.error(f"{self.name}[{self.pid}] failed: {wrapped.original_error!r}")
        self._call_hook("on_error", wrapped, fail_on_error=False)
        self._error_listeners.emit(wrapped)
        return True

    def send_signal(self, signal: Union[CLISignal, str]) -> bool:
        try:
            sig = CLISignal(signal)
        except ValueError:
            logger.debug(f"Ignoring unknown signal {signal!r} for {self.name}")
            return False
        code = SIGNAL_EXIT_CODES.get(sig)
        if code is None:
            return False
        logger.info(f"Delivering {sig.value} to {self.name}[{self.pid}]")
        return self.terminate(code)

    async def wait_until_exit(self) -> int:
        if self._status is AppStatus.TERMINATED:
            return self.exit_code if self.exit_code is not None else 0
        waiter: "asyncio.Future[int]" = asyncio.get_running_loop().create_future()
        self._exit_waiters.append(waiter)
        return await waiter

    # ------------------------------------------------------------------ input

    def send_key(self, key: str, modifiers: KeyModifiers = NO_MODIFIERS) -> bool:
        if self._status is not AppStatus.RUNNING:
            return False
        self.terminal.dispatch_key_press(key, modifiers)
        return True

    def send_input(self, text: str) -> bool:
        """Type ``text`` into the instance, one key press per character."""
        if self._status is not AppStatus.RUNNING:
            return False
        for char in text:
            self.terminal.dispatch_key_press(_CONTROL_KEYS.get(char, char))
            if self._status is not AppStatus.RUNNING:
                break
        return True

    async def run_command(
        self, command: str, argv: Sequence[str] = ()
    ) -> Optional[ParsedArgs]:
        """Parse ``argv`` for one of the app's commands and run its handler.

        Usage errors propagate to the caller; exceptions raised by the
        handler put the instance into ``error``.
        """
        if self._status is not AppStatus.RUNNING:
            return None

        found = self.app.find_command(command)
        if found is None:
            self.terminal.write_line(
                f"{self.name}: unknown command {command}", LineKind.ERROR
            )
            return None

        parsed = parse_command_args(found, argv)
        target = found
        if parsed.subcommand:
            target = found.find_subcommand(parsed.subcommand) or found
        if target.handler is None:
            return parsed

        try:
            result = target.handler(parsed.args, parsed.flags, self.context)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            self.fail(e)
        return parsed

    # ---------------------------------------------------------- subscriptions

    def on_status_change(self, callback: Callable[[AppStatus], None]) -> Unsubscribe:
        return self._status_listeners.add(callback)

    def on_exit(self, callback: Callable[[int], None]) -> Unsubscribe:
        return self._exit_listeners.add(callback)

    def on_error(self, callback: Callable[[AppRuntimeError], None]) -> Unsubscribe:
        return self._error_listeners.add(callback)

    def on_output(self, callback: Callable[[str, LineKind], None]) -> Unsubscribe:
        return self.terminal.on_output(callback)

    def describe(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "pid": self.pid,
            "app": self.name,
            "status": self._status.value,
            "start_time": self.start_time.isoformat(),
            "uptime": round(self.uptime, 3),
            "exit_code": self.exit_code,
            "error": str(self.error) if self.error else None,
        }

    def __repr__(self) -> str:
        return (
            f"CLIAppInstance({self.name!r}, pid={self.pid}, "
            f"status={self._status.value!r})"
        )
