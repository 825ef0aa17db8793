"""Reusable adapter and render-instance implementations.

Concrete adapters only declare their library id, supported range, default
library version and feature table, and say how to build their render
instance. Everything else (initialization state, instance tracking,
negotiation, feature queries) lives here.
"""

import asyncio
import inspect
import logging
import uuid
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from ..config import AdapterConfig
from ..errors import (
    AdapterNotInitializedError,
    ConfigurationError,
    InputCancelledError,
    VersionParseError,
)
from ..events import Listeners, Unsubscribe
from ..terminal.bridge import TerminalBridge
from ..terminal.styles import StyledContent
from .features import (
    CLIFeature,
    FeatureLike,
    FeatureTable,
    coerce_feature,
    coerce_features,
)
from .negotiator import (
    VersionCompatibility,
    VersionNegotiator,
    parse_version,
    satisfies_range,
)
from .protocol import Component, Props

logger = logging.getLogger(__name__)


class BaseRenderInstance:
    """Drives one mounted component.

    A component is any callable taking the props as keyword arguments. What
    it returns decides how it runs:

    * a coroutine is scheduled as a task; when it finishes the instance exits
      (an ``int`` result becomes the exit code) and an exception is reported
      to the ``on_error`` listeners;
    * a string, a StyledContent or an iterable of those is written to the
      bridge, and re-written on every rerender;
    * ``None`` means the component wrote to the bridge itself.

    Synchronous components stay mounted until ``exit``/``unmount``.
    """

    def __init__(
        self,
        instance_id: str,
        component: Component,
        props: Props,
        bridge: TerminalBridge,
    ):
        self.id = instance_id
        self.component = component
        self.props: Props = dict(props)
        self.bridge = bridge

        self._active = True
        self._paused = False
        self._mounted = False
        self._dirty = False
        self._exit_code: Optional[int] = None
        self._task: Optional["asyncio.Task[Any]"] = None
        self._exit_waiters: List["asyncio.Future[int]"] = []
        self._unmount_hooks: List[Callable[[], None]] = []

        self._exit_listeners = Listeners[Callable[[int], None]]("render exit")
        self._error_listeners = Listeners[Callable[[Exception], None]]("render error")

    @property
    def active(self) -> bool:
        return self._active

    def is_active(self) -> bool:
        return self._active

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def exit_code(self) -> int:
        return self._exit_code if self._exit_code is not None else 0

    @property
    def task(self) -> Optional["asyncio.Task[Any]"]:
        return self._task

    def on_exit(self, callback: Callable[[int], None]) -> Unsubscribe:
        return self._exit_listeners.add(callback)

    def on_error(self, callback: Callable[[Exception], None]) -> Unsubscribe:
        return self._error_listeners.add(callback)

    def add_unmount_hook(self, hook: Callable[[], None]) -> None:
        self._unmount_hooks.append(hook)

    # ----------------------------------------------------------------- render

    def mount(self) -> None:
        if self._mounted or not self._active:
            return
        self._mounted = True
        self._render()

    def rerender(self, props: Optional[Mapping[str, Any]] = None) -> None:
        if not self._active:
            return
        if props:
            self.props.update(props)
        if self._task is not None:
            # Long-running components read their props themselves
            return
        if self._paused:
            self._dirty = True
            return
        self._render()

    def _render(self) -> None:
        self.do_before_render()
        try:
            result = self.component(**self.props)
        except Exception as e:
            self._report_error(e)
            return

        if inspect.isawaitable(result):
            self._task = asyncio.ensure_future(result)
            self._task.add_done_callback(self._on_task_done)
            return

        self._write_result(result)

    def _write_result(self, result: Any) -> None:
        if result is None:
            return
        if isinstance(result, (str, StyledContent)):
            result = [result]
        for item in result:
            if isinstance(item, StyledContent):
                self.bridge.render_styled(item)
            else:
                self.bridge.write_line(str(item))

    def _on_task_done(self, task: "asyncio.Task[Any]") -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            if isinstance(error, InputCancelledError) and not self._active:
                return
            if isinstance(error, Exception):
                self._report_error(error)
            else:
                logger.error(f"Render task {self.id} aborted: {error!r}")
            return
        result = task.result()
        if self._active:
            self.exit(result if isinstance(result, int) else 0)

    def _report_error(self, error: Exception) -> None:
        logger.debug(f"Render instance {self.id} raised {type(error).__name__}")
        if not self._error_listeners:
            logger.error(f"Unhandled error in render instance {self.id}: {error}")
        self._error_listeners.emit(error)

    # -------------------------------------------------------------- lifecycle

    def clear(self) -> None:
        self.bridge.clear()

    def pause(self) -> None:
        if not self._active:
            return
        self._paused = True
        self.do_pause()

    def resume(self) -> None:
        if not self._active:
            return
        self._paused = False
        self.do_resume()
        if self._dirty:
            self._dirty = False
            self._render()

    def set_exit_code(self, code: int) -> None:
        self._exit_code = code

    def exit(self, code: int = 0) -> None:
        """Finish the render with ``code`` and unmount."""
        if not self._active:
            return
        self._exit_code = code
        self.unmount()

    def unmount(self) -> None:
        if not self._active:
            return
        self._active = False

        for hook in self._unmount_hooks:
            hook()

        task = self._task
        if task is not None and not task.done():
            try:
                current = asyncio.current_task()
            except RuntimeError:
                current = None
            if task is not current:
                # Next loop turn, so a cancelled input request reaches the task first
                task.get_loop().call_soon(task.cancel)

        try:
            self.do_unmount()
        finally:
            code = self.exit_code
            for waiter in self._exit_waiters:
                if not waiter.done():
                    waiter.set_result(code)
            self._exit_waiters.clear()
            self._exit_listeners.emit(code)

    async def wait_until_exit(self) -> int:
        if not self._active:
            return self.exit_code
        waiter: "asyncio.Future[int]" = asyncio.get_running_loop().create_future()
        self._exit_waiters.append(waiter)
        return await waiter

    # -------------------------------------------------- library-specific hooks

    def do_before_render(self) -> None:
        pass

    def do_pause(self) -> None:
        pass

    def do_resume(self) -> None:
        pass

    def do_unmount(self) -> None:
        pass


class BaseCLIAdapter(ABC):
    """Common adapter behaviour shared by every library."""

    library: str = ""
    adapter_version: str = "1.0.0"
    supported_versions: str = ""
    default_library_version: str = ""
    feature_table: FeatureTable = {}

    def __init__(
        self,
        negotiator: Optional[VersionNegotiator] = None,
        *,
        library_version: Optional[str] = None,
        config: Optional[AdapterConfig] = None,
    ):
        self.config = config or AdapterConfig()
        self.negotiator = negotiator or VersionNegotiator()

        version = (
            library_version
            or self.config.library_version
            or self.default_library_version
        )
        try:
            parse_version(version)
        except VersionParseError as e:
            raise ConfigurationError(
                f"Invalid {self.library} library version: {version!r}"
            ) from e
        self._library_version = version

        if not satisfies_range(version, self.supported_versions):
            logger.warning(
                f"{self.library} {version} is outside the adapter's supported "
                f"range {self.supported_versions}"
            )

        self._features = self._build_feature_table(self.config.features)
        for table_version, features in self._features.items():
            self.negotiator.register_version(self.library, table_version, features)

        self._initialized = False
        self._instances: Dict[str, BaseRenderInstance] = {}

    def _build_feature_table(
        self, overrides: Mapping[str, Iterable[str]]
    ) -> FeatureTable:
        table = dict(self.feature_table)
        for version, features in overrides.items():
            try:
                parse_version(version)
                table[version] = coerce_features(features)
            except (VersionParseError, ValueError) as e:
                raise ConfigurationError(
                    f"Invalid {self.library} feature table entry {version!r}: {e}"
                ) from e
        return table

    @property
    def library_version(self) -> str:
        return self._library_version

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def active_instances(self) -> Dict[str, BaseRenderInstance]:
        return dict(self._instances)

    async def initialize(self) -> None:
        if self._initialized:
            return
        await self.do_initialize()
        self._initialized = True
        logger.debug(f"Initialized {self.library} adapter ({self.library_version})")

    async def destroy(self) -> None:
        if not self._initialized:
            return

        for instance in list(self._instances.values()):
            try:
                instance.unmount()
            except Exception as e:
                logger.warning(
                    f"Ignoring error unmounting {instance.id} during "
                    f"{self.library} adapter shutdown: {e}"
                )
        self._instances.clear()

        await self.do_destroy()
        self._initialized = False
        logger.debug(f"Destroyed {self.library} adapter")

    def check_compatibility(self, requested_range: str) -> VersionCompatibility:
        return self.negotiator.negotiate(
            self.library, requested_range, self.library_version
        )

    def create_render_instance(
        self, component: Component, props: Props, bridge: TerminalBridge
    ) -> BaseRenderInstance:
        if not self._initialized:
            raise AdapterNotInitializedError(self.library)

        instance_id = f"{self.library}-{uuid.uuid4().hex[:12]}"
        instance = self.do_create_render_instance(
            instance_id, component, props, bridge
        )
        self._instances[instance_id] = instance
        instance.add_unmount_hook(lambda: self._instances.pop(instance_id, None))
        return instance

    def supports_feature(self, feature: FeatureLike) -> bool:
        try:
            wanted = coerce_feature(feature)
        except ValueError:
            return False
        return wanted in self.get_features_for_version(self.library_version)

    def get_features_for_version(self, version: str) -> List[CLIFeature]:
        if not satisfies_range(version, self.supported_versions):
            return []
        return self.negotiator.get_features_for_version(self.library, version)

    @property
    def supported_features(self) -> List[CLIFeature]:
        return self.get_features_for_version(self.library_version)

    def transform_props(self, props: Props, target_version: str) -> Props:
        return dict(props)

    def describe(self) -> Dict[str, Any]:
        return {
            "library": self.library,
            "adapter_version": self.adapter_version,
            "library_version": self.library_version,
            "supported_versions": self.supported_versions,
            "initialized": self._initialized,
            "features": [f.value for f in self.supported_features],
        }

    async def do_initialize(self) -> None:
        pass

    async def do_destroy(self) -> None:
        pass

    @abstractmethod
    def do_create_render_instance(
        self,
        instance_id: str,
        component: Component,
        props: Props,
        bridge: TerminalBridge,
    ) -> BaseRenderInstance:
        ...
