"""Adapter protocol definition."""

from typing import Any, Callable, Dict, List, Mapping, Protocol, runtime_checkable

from ..events import Unsubscribe
from ..terminal.bridge import TerminalBridge
from .features import CLIFeature, FeatureLike
from .negotiator import VersionCompatibility

Props = Dict[str, Any]
Component = Callable[..., Any]


@runtime_checkable
class RenderInstance(Protocol):
    """A mounted component driven by an adapter."""

    id: str

    @property
    def active(self) -> bool:
        ...

    @property
    def paused(self) -> bool:
        ...

    @property
    def exit_code(self) -> int:
        ...

    def mount(self) -> None:
        """Perform the first render."""
        ...

    def rerender(self, props: Mapping[str, Any]) -> None:
        ...

    def unmount(self) -> None:
        ...

    def exit(self, code: int = 0) -> None:
        ...

    async def wait_until_exit(self) -> int:
        ...

    def clear(self) -> None:
        ...

    def pause(self) -> None:
        ...

    def resume(self) -> None:
        ...

    def on_exit(self, callback: Callable[[int], None]) -> Unsubscribe:
        ...

    def on_error(self, callback: Callable[[Exception], None]) -> Unsubscribe:
        ...


@runtime_checkable
class CLIAdapter(Protocol):
    """Interface that all rendering-library adapters must satisfy.

    This is a Protocol (structural typing) - adapters don't need to
    inherit from this, they just need to have these attributes/methods.
    BaseCLIAdapter provides a reusable implementation.
    """

    library: str
    adapter_version: str
    supported_versions: str

    @property
    def library_version(self) -> str:
        """Version of the rendering library this adapter drives."""
        ...

    @property
    def is_initialized(self) -> bool:
        ...

    async def initialize(self) -> None:
        ...

    async def destroy(self) -> None:
        ...

    def check_compatibility(self, requested_range: str) -> VersionCompatibility:
        ...

    def create_render_instance(
        self, component: Component, props: Props, bridge: TerminalBridge
    ) -> RenderInstance:
        ...

    def supports_feature(self, feature: FeatureLike) -> bool:
        ...

    def get_features_for_version(self, version: str) -> List[CLIFeature]:
        ...

    def transform_props(self, props: Props, target_version: str) -> Props:
        ...
