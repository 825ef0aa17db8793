"""
Unit tests for adapter lookup and the per-host adapter registry.
"""

import pytest

from cli_plugin_host.adapters.ink import InkAdapter
from cli_plugin_host.adapters.negotiator import VersionNegotiator
from cli_plugin_host.adapters.pastel import PastelAdapter
from cli_plugin_host.adapters.registry import (
    AdapterRegistry,
    create_adapter,
    get_adapter_class,
    list_builtin_adapters,
)
from cli_plugin_host.config import Settings
from cli_plugin_host.errors import AdapterNotFoundError, HostLookupError


class TestBuiltinAdapters:
    def test_list_builtin_adapters(self):
        assert list_builtin_adapters() == ["ink", "pastel"]

    def test_get_adapter_class(self):
        assert get_adapter_class("ink") is InkAdapter
        assert get_adapter_class("pastel") is PastelAdapter

    def test_unknown_adapter(self):
        with pytest.raises(AdapterNotFoundError) as exc_info:
            get_adapter_class("blessed")
        assert isinstance(exc_info.value, LookupError)
        assert exc_info.value.key == "blessed"

    def test_create_adapter_uses_settings(self):
        settings = Settings(
            adapters={"pastel": {"library_version": "4.1.0", "debug": True}}
        )
        negotiator = VersionNegotiator()

        adapter = create_adapter("pastel", negotiator, settings)

        assert isinstance(adapter, PastelAdapter)
        assert adapter.library_version == "4.1.0"
        assert adapter.debug is True
        assert adapter.negotiator is negotiator
        assert negotiator.has_library("pastel")


class TestAdapterRegistry:
    def test_register_and_lookup(self):
        registry = AdapterRegistry()
        ink = InkAdapter()

        registry.register(ink)

        assert registry.get("ink") is ink
        assert registry.require("ink") is ink
        assert registry.supports_library("ink")
        assert "ink" in registry
        assert registry.supported_versions("ink") == ">=6.6.0 <7.0.0"
        assert registry.libraries() == ["ink"]
        assert len(registry) == registry.count() == 1

    def test_missing_library(self):
        registry = AdapterRegistry()

        assert registry.get("pastel") is None
        assert registry.supported_versions("pastel") is None
        with pytest.raises(HostLookupError):
            registry.require("pastel")

    def test_register_overwrites_same_library(self):
        registry = AdapterRegistry()
        first, second = InkAdapter(), InkAdapter(library_version="6.8.0")

        registry.register(first)
        registry.register(second)

        assert registry.get("ink") is second
        assert registry.count() == 1

    def test_unregister_and_clear(self):
        registry = AdapterRegistry()
        registry.register(InkAdapter())
        registry.register(PastelAdapter())

        assert registry.unregister("ink") is True
        assert registry.unregister("ink") is False
        assert registry.libraries() == ["pastel"]

        registry.clear()
        assert registry.list() == []
