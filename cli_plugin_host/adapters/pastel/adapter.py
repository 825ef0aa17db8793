"""Adapter for Pastel-style command apps."""

import logging
from typing import Optional

from ...config import PastelAdapterConfig, PastelTheme
from ...terminal.bridge import TerminalBridge
from ..base import BaseCLIAdapter, BaseRenderInstance
from ..features import PASTEL_FEATURES
from ..negotiator import VersionNegotiator
from ..protocol import Component, Props

logger = logging.getLogger(__name__)


class PastelRenderInstance(BaseRenderInstance):
    """Pastel components receive the adapter theme as a ``theme`` prop."""

    def __init__(
        self,
        instance_id: str,
        component: Component,
        props: Props,
        bridge: TerminalBridge,
        *,
        theme: PastelTheme,
    ):
        props = dict(props)
        props.setdefault("theme", theme)
        super().__init__(instance_id, component, props, bridge)
        self.theme = theme


class PastelAdapter(BaseCLIAdapter):
    library = "pastel"
    adapter_version = "1.0.0"
    supported_versions = ">=4.0.0 <5.0.0"
    default_library_version = "4.0.0"
    feature_table = PASTEL_FEATURES

    def __init__(
        self,
        negotiator: Optional[VersionNegotiator] = None,
        *,
        library_version: Optional[str] = None,
        config: Optional[PastelAdapterConfig] = None,
        theme: Optional[PastelTheme] = None,
    ):
        config = config or PastelAdapterConfig()
        super().__init__(negotiator, library_version=library_version, config=config)
        self.debug = config.debug
        self.theme = theme or getattr(config, "theme", None) or PastelTheme()

    async def do_initialize(self) -> None:
        if self.debug:
            logger.info(f"Pastel adapter initialized for Pastel {self.library_version}")

    async def do_destroy(self) -> None:
        if self.debug:
            logger.info("Pastel adapter destroyed")

    def do_create_render_instance(
        self,
        instance_id: str,
        component: Component,
        props: Props,
        bridge: TerminalBridge,
    ) -> PastelRenderInstance:
        return PastelRenderInstance(
            instance_id, component, props, bridge, theme=self.theme
        )
