"""
Shared test fixtures for the CLI plugin host tests.
"""

# Note: config.py skips cli_host.yaml while pytest is running unless
# CLI_HOST_CONFIG_FILE is set, so a developer's config never leaks in.
import logging
import sys
from pathlib import Path
from typing import Any, Callable, List, Optional

import pytest
import pytest_asyncio

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from cli_plugin_host.apps.builder import create_cli_app  # noqa: E402
from cli_plugin_host.apps.models import CLIAppDefinition  # noqa: E402
from cli_plugin_host.config import Settings, get_settings  # noqa: E402
from cli_plugin_host.host.plugin_host import PluginHost  # noqa: E402
from cli_plugin_host.logging.setup import (  # noqa: E402
    LOGGER_NAME,
    shutdown_logging,
)
from cli_plugin_host.terminal.bridge import TerminalBridge  # noqa: E402
from cli_plugin_host.terminal.surface import TerminalBuffer  # noqa: E402

# Environment variables the settings layer reads; any of them set in the
# developer's shell would change defaults under test
SETTINGS_ENV_VARS = [
    "HOST",
    "TERMINAL",
    "ADAPTERS",
    "LOGGING",
    "CLI_HOST_CONFIG_FILE",
    "CLI_HOST_LOG_LEVEL",
    "CLI_HOST_MAX_APPS",
    "CLI_HOST_DEFAULT_LIBRARY",
    "CLI_HOST_INK_VERSION",
    "CLI_HOST_PASTEL_VERSION",
]


@pytest.fixture(autouse=True)
def isolate_settings(monkeypatch):
    """Start every test from default settings and an untouched package logger."""
    for name in SETTINGS_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()

    yield

    get_settings.cache_clear()
    shutdown_logging()
    package_logger = logging.getLogger(LOGGER_NAME)
    package_logger.handlers.clear()
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def buffer() -> TerminalBuffer:
    return TerminalBuffer()


@pytest.fixture
def bridge(buffer) -> TerminalBridge:
    return TerminalBridge(buffer)


def idle_component(context, **props: Any) -> None:
    """A component that stays mounted until terminated."""
    context.terminal.write_line(f"{context.manifest.name} started")


@pytest.fixture
def make_app() -> Callable[..., CLIAppDefinition]:
    """Factory for small app definitions."""

    def _make(
        name: str = "demo",
        library: str = "ink",
        version_range: str = ">=6.6.0",
        component: Optional[Callable[..., Any]] = None,
        **hooks: Callable[..., Any],
    ) -> CLIAppDefinition:
        builder = (
            create_cli_app()
            .name(name)
            .for_library(library, version_range)
            .component(component or idle_component)
        )
        for hook, fn in hooks.items():
            getattr(builder, hook)(fn)
        return builder.build()

    return _make


@pytest_asyncio.fixture
async def host(settings, buffer):
    """An initialized host with the default Ink adapter."""
    plugin_host = PluginHost(settings)
    await plugin_host.initialize(buffer)
    yield plugin_host
    await plugin_host.destroy()


@pytest.fixture
def events() -> List[Any]:
    """A list tests can append callback arguments to."""
    return []
