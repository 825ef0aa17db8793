"""Command-line tool for cli-plugin-host."""

import asyncio
import json
from typing import List, Optional

import typer
import yaml

from ..adapters.registry import create_adapter, list_builtin_adapters
from ..apps.loader import load_app_definition
from ..config import CONFIG_FILE, get_settings
from ..errors import PluginHostError
from ..host.instance import CLIAppInstance
from ..host.plugin_host import PluginHost
from ..logging.setup import setup_logging, shutdown_logging
from ..terminal.surface import TerminalBuffer

app = typer.Typer(help="CLI plugin host tools")

INIT_CONFIG_TEMPLATE = """# CLI plugin host configuration

host:
  max_concurrent_apps: 10
  default_library: ink
  default_library_version: ">=6.6.0"
  default_adapters:
    - ink
  # Apps registered on startup, as module:attribute import strings
  apps:
    - cli_plugin_host.examples.todo:app
  command_prefix: cli

terminal:
  columns: 80
  rows: 24
  default_prompt: "> "
  process_ansi_codes: true

adapters:
  ink:
    library_version: 6.6.0
    debug: false
  pastel:
    library_version: 4.0.0
    theme:
      primary: cyan
      secondary: magenta

logging:
  level: INFO
"""

# Event-loop turns to wait for an app to ask for input
INPUT_WAIT_TICKS = 100


@app.command()
def init(
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite existing file"),
):
    """Write a starter cli_host.yaml."""
    try:
        if CONFIG_FILE.exists() and not force:
            typer.echo(f"[SKIP] Skipping {CONFIG_FILE.name} (already exists)")
            return
        CONFIG_FILE.write_text(INIT_CONFIG_TEMPLATE)
        typer.echo(f"[OK] Created {CONFIG_FILE.name}")
    except PermissionError as e:
        typer.echo(f"[ERROR] Permission denied: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def show(
    format: str = typer.Option(
        "yaml", "--format", "-f", help="Output format (yaml/json)"
    ),
):
    """Show the effective configuration."""
    try:
        settings = get_settings()
    except Exception as e:
        typer.echo(f"[ERROR] Failed to load configuration: {e}", err=True)
        raise typer.Exit(1)

    if format == "json":
        typer.echo(json.dumps(settings.model_dump(mode="json"), indent=2))
    else:
        typer.echo(settings.export_yaml())


@app.command()
def libraries():
    """List the built-in rendering-library adapters."""
    for key in list_builtin_adapters():
        try:
            info = create_adapter(key).describe()
        except PluginHostError as e:
            typer.echo(f"[ERROR] {key}: {e.message}", err=True)
            continue
        typer.echo(
            f"{info['library']} {info['library_version']} "
            f"(supports {info['supported_versions']})"
        )
        typer.echo(f"    features: {', '.join(info['features'])}")


@app.command()
def negotiate(
    library: str = typer.Argument(..., help="Library id, e.g. ink"),
    version_range: str = typer.Argument(..., help="Requested range, e.g. '>=6.6.0'"),
    available: Optional[str] = typer.Option(
        None, "--available", "-a", help="Available library version"
    ),
):
    """Check a version range against an adapter and print the result as JSON."""
    try:
        adapter = create_adapter(library, library_version=available)
        result = adapter.check_compatibility(version_range)
    except PluginHostError as e:
        typer.echo(f"[ERROR] {e.message}", err=True)
        raise typer.Exit(1)

    typer.echo(json.dumps(result.to_dict(), indent=2))
    if not result.compatible:
        raise typer.Exit(1)


@app.command()
def demo(
    app_spec: str = typer.Argument(..., help="App import string, module:attribute"),
    args: Optional[List[str]] = typer.Argument(None, help="Arguments for the app"),
    input_lines: Optional[List[str]] = typer.Option(
        None, "--input", "-i", help="Line of input to type into the app"
    ),
    raw: bool = typer.Option(False, "--raw", help="Print output lines as YAML"),
):
    """Run an app against an in-memory terminal and print what it wrote."""
    settings = get_settings()
    setup_logging(settings)
    try:
        buffer, code = asyncio.run(
            _run_demo(settings, app_spec, args or [], input_lines or [])
        )
    except PluginHostError as e:
        typer.echo(f"[ERROR] {e.message}", err=True)
        raise typer.Exit(1)
    finally:
        shutdown_logging()

    if raw:
        rows = [{"kind": line.kind.value, "text": line.text} for line in buffer.lines]
        typer.echo(yaml.safe_dump(rows, sort_keys=False))
    else:
        for line in buffer.lines:
            typer.echo(line.text)
    typer.echo(f"[OK] Exited with code {code}")


async def _wait_for_input(instance: CLIAppInstance) -> bool:
    for _ in range(INPUT_WAIT_TICKS):
        if not instance.is_alive():
            return False
        if instance.terminal.is_waiting_for_input:
            return True
        await asyncio.sleep(0)
    return False


async def _run_demo(settings, app_spec: str, args: List[str], inputs: List[str]):
    definition = load_app_definition(app_spec)
    buffer = TerminalBuffer()
    host = PluginHost(settings)
    await host.initialize(buffer)
    try:
        if not host.apps.has(definition.name):
            host.register_app(definition)
        instance = await host.launch(definition.name, args)

        for line in inputs:
            if not await _wait_for_input(instance):
                break
            host.send_input(line + "\n")

        await _wait_for_input(instance)
        if instance.is_alive():
            instance.terminate(0)
        return buffer, instance.exit_code
    finally:
        await host.destroy()
