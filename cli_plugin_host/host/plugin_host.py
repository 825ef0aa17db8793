"""The plugin host: registries, launch/terminate and foreground scheduling.

All instances share one asyncio event loop. ``launch`` is the only place the
host awaits (adapter initialization and the ``on_before_start`` hook); a
launch in flight holds a slot against the concurrency cap while it waits.
"""

import inspect
import itertools
import logging
import uuid
from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    Sequence,
    Union,
)

from ..adapters.negotiator import VersionNegotiator
from ..adapters.protocol import CLIAdapter
from ..adapters.registry import AdapterRegistry, create_adapter
from ..apps.arguments import ParsedArgs
from ..apps.loader import load_app_definition
from ..apps.models import CLIAppDefinition
from ..apps.registry import AppRegistry
from ..config import Settings, get_settings
from ..errors import (
    AppRuntimeError,
    CompatibilityError,
    ConcurrencyLimitError,
    HostNotInitializedError,
)
from ..events import Listeners, Unsubscribe
from ..terminal.bridge import (
    NO_MODIFIERS,
    KeyModifiers,
    TerminalBridge,
    TerminalDimensions,
)
from ..terminal.surface import HostRuntime
from .instance import AppStatus, CLIAppContext, CLIAppInstance, CLISignal

logger = logging.getLogger(__name__)

LaunchedCallback = Callable[[CLIAppInstance], None]
TerminatedCallback = Callable[[CLIAppInstance, int], None]
ErrorCallback = Callable[[CLIAppInstance, AppRuntimeError], None]


class PluginHost:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        max_concurrent_apps: Optional[int] = None,
        default_library: Optional[str] = None,
        default_library_version: Optional[str] = None,
        adapters: Iterable[CLIAdapter] = (),
        negotiator: Optional[VersionNegotiator] = None,
    ):
        self.settings = settings or get_settings()
        host_config = self.settings.host

        self.max_concurrent_apps = (
            max_concurrent_apps or host_config.max_concurrent_apps
        )
        self.default_library = default_library or host_config.default_library
        self.default_library_version = (
            default_library_version or host_config.default_library_version
        )

        self.negotiator = negotiator or VersionNegotiator()
        self.apps = AppRegistry()
        self.adapters = AdapterRegistry()
        self._extra_adapters: List[CLIAdapter] = list(adapters)

        self._instances: Dict[str, CLIAppInstance] = {}
        self._foreground_id: Optional[str] = None
        self._runtime: Optional[HostRuntime] = None
        self._initialized = False
        self._pending_launches = 0
        self._pids = itertools.count(1000)

        self._launched = Listeners[LaunchedCallback]("app launched")
        self._terminated = Listeners[TerminatedCallback]("app terminated")
        self._errored = Listeners[ErrorCallback]("app error")

    # -------------------------------------------------------------- lifecycle

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def runtime(self) -> Optional[HostRuntime]:
        return self._runtime

    async def initialize(self, runtime: HostRuntime) -> None:
        """Attach to a terminal surface and bring up adapters and configured apps."""
        if self._initialized:
            return

        self._runtime = runtime

        for library in self.settings.host.default_adapters:
            if self.adapters.supports_library(library):
                continue
            adapter = create_adapter(library, self.negotiator, self.settings)
            await adapter.initialize()
            self.adapters.register(adapter)

        for adapter in self._extra_adapters:
            await adapter.initialize()
            self.adapters.register(adapter)

        for spec in self.settings.host.apps:
            app = load_app_definition(spec)
            if not self.apps.has(app.name):
                self.apps.register(app)

        self._initialized = True
        logger.info(
            f"Plugin host initialized with adapters {self.adapters.libraries()} "
            f"and {self.apps.count()} apps"
        )

    async def destroy(self) -> None:
        if not self._initialized:
            return

        self.terminate_all()

        for adapter in self.adapters.list():
            try:
                await adapter.destroy()
            except Exception as e:
                logger.warning(
                    f"Ignoring error destroying {adapter.library} adapter: {e}"
                )

        self._initialized = False
        self._runtime = None
        logger.info("Plugin host destroyed")

    # ------------------------------------------------------------------- apps

    def register_app(self, app: CLIAppDefinition) -> None:
        self.apps.register(app)

    def unregister_app(self, name: str) -> bool:
        app = self.apps.get(name)
        if app is None:
            return False
        for instance in list(self._instances.values()):
            if instance.app.manifest.name == app.name:
                instance.terminate(0)
        return self.apps.unregister(app.name)

    def get_app(self, name: str) -> Optional[CLIAppDefinition]:
        return self.apps.get(name)

    def list_apps(self) -> List[CLIAppDefinition]:
        return self.apps.list()

    def search_apps(self, query: str) -> List[CLIAppDefinition]:
        return self.apps.search(query)

    # --------------------------------------------------------------- adapters

    def register_adapter(self, adapter: CLIAdapter) -> None:
        self.adapters.register(adapter)

    def get_adapter(self, library: str) -> Optional[CLIAdapter]:
        return self.adapters.get(library)

    def supports_library(self, library: str) -> bool:
        return self.adapters.supports_library(library)

    def list_supported_libraries(self) -> List[str]:
        return self.adapters.libraries()

    # ----------------------------------------------------------------- launch

    async def launch(
        self,
        name: str,
        args: Sequence[str] = (),
        flags: Optional[Mapping[str, Any]] = None,
    ) -> CLIAppInstance:
        """Start a new instance of ``name``.

        Every check runs before anything is created, so a failed launch
        leaves the host untouched.
        """
        if not self._initialized or self._runtime is None:
            raise HostNotInitializedError()

        if len(self._instances) + self._pending_launches >= self.max_concurrent_apps:
            raise ConcurrencyLimitError(self.max_concurrent_apps)

        app = self.apps.require(name)
        manifest = app.manifest
        adapter = self.adapters.require(manifest.library)

        compatibility = adapter.check_compatibility(manifest.library_version)
        if not compatibility.compatible:
            raise CompatibilityError(
                manifest.name,
                manifest.library,
                manifest.library_version,
                adapter.library_version,
                warnings=compatibility.warnings,
                missing_features=[f.value for f in compatibility.missing_features],
                required_shims=compatibility.required_shims,
            )
        for warning in compatibility.warnings:
            logger.warning(f"{manifest.name}: {warning}")

        instance_id = uuid.uuid4().hex
        runtime = self._runtime
        bridge = TerminalBridge.from_config(runtime, self.settings.terminal)
        context = CLIAppContext(
            self,
            instance_id,
            terminal=bridge,
            runtime=runtime,
            manifest=manifest,
            args=args,
            flags=flags,
            compatibility=compatibility,
        )

        self._pending_launches += 1
        try:
            await adapter.initialize()
            if app.lifecycle.on_before_start is not None:
                try:
                    result = app.lifecycle.on_before_start(context)
                    if inspect.isawaitable(result):
                        await result
                except Exception as e:
                    bridge.close()
                    raise AppRuntimeError(instance_id, manifest.name, e) from e
        finally:
            self._pending_launches -= 1

        if not self._initialized:
            bridge.close()
            raise HostNotInitializedError("Plugin host was destroyed during launch")

        props: Dict[str, Any] = {"context": context}
        try:
            props = adapter.transform_props(props, compatibility.negotiated_version)
            render = adapter.create_render_instance(app.component, props, bridge)
        except Exception:
            bridge.close()
            raise

        instance = CLIAppInstance(
            instance_id, app, next(self._pids), render, bridge, context
        )
        self._instances[instance_id] = instance
        instance.start()

        if self._foreground_id is None:
            self._foreground_id = instance_id

        bridge.set_listener_error_handler(instance.fail)
        render.on_error(instance.fail)
        render.on_exit(instance.terminate)
        instance.on_exit(lambda code: self._handle_exit(instance, code))
        instance.on_error(lambda error: self._errored.emit(instance, error))

        logger.info(
            f"Launched {manifest.name}[{instance.pid}] on "
            f"{adapter.library} {compatibility.negotiated_version}"
        )
        self._launched.emit(instance)

        render.mount()
        return instance

    def _handle_exit(self, instance: CLIAppInstance, code: int) -> None:
        self._instances.pop(instance.id, None)
        if self._foreground_id == instance.id:
            self._foreground_id = None
        self._terminated.emit(instance, code)

    # -------------------------------------------------------------- instances

    def get_instance(self, instance_id: str) -> Optional[CLIAppInstance]:
        return self._instances.get(instance_id)

    def find_instance(self, ref: Union[str, int]) -> Optional[CLIAppInstance]:
        """Look an instance up by id, id prefix or pid."""
        if isinstance(ref, int) or (isinstance(ref, str) and ref.isdigit()):
            pid = int(ref)
            for instance in self._instances.values():
                if instance.pid == pid:
                    return instance
            if isinstance(ref, int):
                return None

        ref = str(ref)
        if ref in self._instances:
            return self._instances[ref]
        matches = [i for i in self._instances.values() if i.id.startswith(ref)]
        return matches[0] if len(matches) == 1 else None

    def list_running_instances(self) -> List[CLIAppInstance]:
        return list(self._instances.values())

    def terminate(self, instance_id: str, code: int = 0) -> bool:
        instance = self._instances.get(instance_id)
        if instance is None:
            return False
        return instance.terminate(code)

    def terminate_all(self, code: int = 0) -> None:
        for instance in list(self._instances.values()):
            instance.terminate(code)

    def send_signal(self, instance_id: str, signal: Union[CLISignal, str]) -> bool:
        instance = self._instances.get(instance_id)
        if instance is None:
            return False
        return instance.send_signal(signal)

    async def run_command(
        self, instance_id: str, command: str, argv: Sequence[str] = ()
    ) -> Optional[ParsedArgs]:
        instance = self._instances.get(instance_id)
        if instance is None:
            return None
        return await instance.run_command(command, argv)

    # ------------------------------------------------------------- foreground

    @property
    def foreground_id(self) -> Optional[str]:
        return self._foreground_id

    def get_foreground_instance(self) -> Optional[CLIAppInstance]:
        if self._foreground_id is None:
            return None
        return self._instances.get(self._foreground_id)

    def bring_to_foreground(self, instance_id: str) -> bool:
        instance = self._instances.get(instance_id)
        if instance is None:
            return False

        if self._foreground_id is not None and self._foreground_id != instance_id:
            current = self._instances.get(self._foreground_id)
            if current is not None:
                current.suspend()

        instance.resume()
        self._foreground_id = instance_id
        logger.debug(f"{instance.name}[{instance.pid}] is now foreground")
        return True

    def send_key(self, key: str, modifiers: KeyModifiers = NO_MODIFIERS) -> bool:
        instance = self.get_foreground_instance()
        if instance is None:
            return False
        return instance.send_key(key, modifiers)

    def send_input(self, text: str) -> bool:
        instance = self.get_foreground_instance()
        if instance is None:
            return False
        return instance.send_input(text)

    def resize(self, columns: int, rows: int) -> None:
        dimensions = TerminalDimensions(columns, rows)
        for instance in list(self._instances.values()):
            if instance.status is not AppStatus.TERMINATED:
                instance.terminal.set_dimensions(dimensions)

    # ----------------------------------------------------------------- events

    def on_app_launched(self, callback: LaunchedCallback) -> Unsubscribe:
        return self._launched.add(callback)

    def on_app_terminated(self, callback: TerminatedCallback) -> Unsubscribe:
        return self._terminated.add(callback)

    def on_app_error(self, callback: ErrorCallback) -> Unsubscribe:
        return self._errored.add(callback)
