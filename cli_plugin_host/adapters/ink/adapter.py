"""Adapter for Ink-style component apps."""

import logging
from typing import Any, Dict, Optional

from ...config import AdapterConfig
from ...terminal.bridge import TerminalBridge
from ...terminal.surface import LineKind
from ..base import BaseCLIAdapter, BaseRenderInstance
from ..features import INK_FEATURES
from ..negotiator import VersionNegotiator, compare_versions
from ..protocol import Component, Props

logger = logging.getLogger(__name__)

# Ink 6.8 enables mouse reporting by default; apps written for 6.6/6.7 expect it off
MOUSE_DEFAULT_CHANGED_IN = "6.8.0"


class InkRenderInstance(BaseRenderInstance):
    def __init__(
        self,
        instance_id: str,
        component: Component,
        props: Props,
        bridge: TerminalBridge,
        *,
        debug: bool = False,
    ):
        super().__init__(instance_id, component, props, bridge)
        self.debug = debug

    def do_before_render(self) -> None:
        if self.debug:
            name = getattr(self.component, "__name__", "Anonymous")
            self.bridge.write_line(
                f"[Ink] Rendering component: {name}", LineKind.SYSTEM
            )


class InkAdapter(BaseCLIAdapter):
    library = "ink"
    adapter_version = "1.0.0"
    supported_versions = ">=6.6.0 <7.0.0"
    default_library_version = "6.6.0"
    feature_table = INK_FEATURES

    def __init__(
        self,
        negotiator: Optional[VersionNegotiator] = None,
        *,
        library_version: Optional[str] = None,
        config: Optional[AdapterConfig] = None,
    ):
        super().__init__(negotiator, library_version=library_version, config=config)
        self.debug = self.config.debug

    async def do_initialize(self) -> None:
        if self.debug:
            logger.info(f"Ink adapter initialized for Ink {self.library_version}")

    async def do_destroy(self) -> None:
        if self.debug:
            logger.info("Ink adapter destroyed")

    def do_create_render_instance(
        self,
        instance_id: str,
        component: Component,
        props: Props,
        bridge: TerminalBridge,
    ) -> InkRenderInstance:
        return InkRenderInstance(
            instance_id, component, props, bridge, debug=self.debug
        )

    def transform_props(self, props: Props, target_version: str) -> Props:
        transformed: Dict[str, Any] = dict(props)
        if (
            compare_versions(target_version, MOUSE_DEFAULT_CHANGED_IN) >= 0
            and "enable_mouse" not in transformed
        ):
            transformed["enable_mouse"] = False
        return transformed
