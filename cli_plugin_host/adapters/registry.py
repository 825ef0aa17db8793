"""Adapter registry plus the table of built-in adapters for dynamic loading."""

import importlib
import logging
from typing import Any, Dict, List, Optional, Tuple, Type

from ..config import Settings, get_settings
from ..errors import AdapterNotFoundError
from .negotiator import VersionNegotiator
from .protocol import CLIAdapter

logger = logging.getLogger(__name__)

_ADAPTER_REGISTRY: Dict[str, Tuple[str, str]] = {
    "ink": ("cli_plugin_host.adapters.ink.adapter", "InkAdapter"),
    "pastel": ("cli_plugin_host.adapters.pastel.adapter", "PastelAdapter"),
}


def get_adapter_class(key: str) -> Type[Any]:
    """Dynamically import and return a built-in adapter class."""
    if key not in _ADAPTER_REGISTRY:
        raise AdapterNotFoundError(key)

    module_path, class_name = _ADAPTER_REGISTRY[key]
    module = importlib.import_module(module_path)
    return getattr(module, class_name)  # type: ignore[no-any-return]


def list_builtin_adapters() -> List[str]:
    """List all built-in adapter keys."""
    return list(_ADAPTER_REGISTRY.keys())


def create_adapter(
    key: str,
    negotiator: Optional[VersionNegotiator] = None,
    settings: Optional[Settings] = None,
    library_version: Optional[str] = None,
) -> CLIAdapter:
    """Instantiate a built-in adapter configured from settings.

    ``library_version`` overrides the configured library version only.
    """
    settings = settings or get_settings()
    adapter_class = get_adapter_class(key)
    config = settings.adapters.for_library(key)
    return adapter_class(  # type: ignore[no-any-return]
        negotiator, library_version=library_version, config=config
    )


class AdapterRegistry:
    """Library id -> adapter instance, owned by one host."""

    def __init__(self) -> None:
        self._adapters: Dict[str, CLIAdapter] = {}

    def register(self, adapter: CLIAdapter) -> None:
        if adapter.library in self._adapters:
            logger.warning(
                f"Adapter for {adapter.library} already registered, overwriting"
            )
        self._adapters[adapter.library] = adapter
        logger.debug(
            f"Registered {adapter.library} adapter {adapter.adapter_version} "
            f"(library {adapter.library_version})"
        )

    def unregister(self, library: str) -> bool:
        return self._adapters.pop(library, None) is not None

    def get(self, library: str) -> Optional[CLIAdapter]:
        return self._adapters.get(library)

    def require(self, library: str) -> CLIAdapter:
        adapter = self._adapters.get(library)
        if adapter is None:
            raise AdapterNotFoundError(library)
        return adapter

    def list(self) -> List[CLIAdapter]:
        return list(self._adapters.values())

    def libraries(self) -> List[str]:
        return list(self._adapters.keys())

    def supports_library(self, library: str) -> bool:
        return library in self._adapters

    def supported_versions(self, library: str) -> Optional[str]:
        adapter = self._adapters.get(library)
        return adapter.supported_versions if adapter is not None else None

    def count(self) -> int:
        return len(self._adapters)

    def clear(self) -> None:
        self._adapters.clear()

    def __len__(self) -> int:
        return len(self._adapters)

    def __contains__(self, library: object) -> bool:
        return library in self._adapters
