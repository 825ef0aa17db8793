"""
Unit tests for the cli-host command-line tool.
"""

import json

import pytest
import yaml
from typer.testing import CliRunner

from cli_plugin_host.cli.host_cli import INIT_CONFIG_TEMPLATE, app


@pytest.fixture
def runner():
    return CliRunner()


class TestInit:
    def test_creates_config(self, runner, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        result = runner.invoke(app, ["init"])

        assert result.exit_code == 0
        assert "[OK] Created cli_host.yaml" in result.output
        assert (tmp_path / "cli_host.yaml").read_text() == INIT_CONFIG_TEMPLATE

    def test_does_not_overwrite(self, runner, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "cli_host.yaml").write_text("host: {}\n")

        result = runner.invoke(app, ["init"])

        assert result.exit_code == 0
        assert "[SKIP]" in result.output
        assert (tmp_path / "cli_host.yaml").read_text() == "host: {}\n"

    def test_force_overwrites(self, runner, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "cli_host.yaml").write_text("host: {}\n")

        result = runner.invoke(app, ["init", "--force"])

        assert result.exit_code == 0
        assert "[OK]" in result.output

    def test_template_is_valid_config(self):
        data = yaml.safe_load(INIT_CONFIG_TEMPLATE)

        assert data["host"]["apps"] == ["cli_plugin_host.examples.todo:app"]
        assert data["adapters"]["ink"]["library_version"] == "6.6.0"


class TestShow:
    def test_yaml(self, runner):
        result = runner.invoke(app, ["show"])

        assert result.exit_code == 0
        data = yaml.safe_load(result.stdout)
        assert data["host"]["max_concurrent_apps"] == 10

    def test_json_reflects_env(self, runner, monkeypatch):
        monkeypatch.setenv("CLI_HOST_MAX_APPS", "3")

        result = runner.invoke(app, ["show", "--format", "json"])

        assert result.exit_code == 0
        assert json.loads(result.stdout)["host"]["max_concurrent_apps"] == 3


class TestLibraries:
    def test_lists_builtin_adapters(self, runner):
        result = runner.invoke(app, ["libraries"])

        assert result.exit_code == 0
        assert "ink 6.6.0 (supports >=6.6.0 <7.0.0)" in result.stdout
        assert "pastel 4.0.0 (supports >=4.0.0 <5.0.0)" in result.stdout
        assert "useInput" in result.stdout


class TestNegotiate:
    def test_compatible(self, runner):
        result = runner.invoke(
            app, ["negotiate", "ink", ">=6.6.0", "--available", "6.8.0"]
        )

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["compatible"] is True
        assert data["negotiated_version"] == "6.8.0"
        assert data["missing_features"] == []

    def test_missing_features_reported(self, runner):
        result = runner.invoke(
            app, ["negotiate", "ink", ">=6.8.0", "--available", "6.6.0"]
        )

        data = json.loads(result.stdout)
        assert data["compatible"] is False
        assert result.exit_code == 1
        assert data["missing_features"] == [
            "useFocusManager",
            "measureElement",
            "staticOutput",
            "trueColor",
            "mouse",
        ]

    def test_available_version_keeps_configured_features(
        self, runner, tmp_path, monkeypatch
    ):
        config_file = tmp_path / "cli_host.yaml"
        features = {"6.8.0": ["useInput", "hyperlinks"]}
        config_file.write_text(
            yaml.safe_dump({"adapters": {"ink": {"features": features}}})
        )
        monkeypatch.setenv("CLI_HOST_CONFIG_FILE", str(config_file))

        result = runner.invoke(
            app, ["negotiate", "ink", ">=6.8.0", "--available", "6.6.0"]
        )

        data = json.loads(result.stdout)
        assert data["negotiated_version"] == "6.6.0"
        assert data["missing_features"] == ["hyperlinks"]

    def test_incompatible(self, runner):
        result = runner.invoke(app, ["negotiate", "ink", ">=7.0.0"])

        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["compatible"] is False
        assert data["warnings"]

    def test_unknown_library(self, runner):
        result = runner.invoke(app, ["negotiate", "blessed", ">=1.0.0"])

        assert result.exit_code == 1
        assert "[ERROR]" in result.output


class TestDemo:
    def test_runs_todo_app(self, runner):
        result = runner.invoke(
            app,
            [
                "demo",
                "cli_plugin_host.examples.todo:app",
                "--input",
                "add milk",
                "--input",
                "list",
                "--input",
                "quit",
            ],
        )

        assert result.exit_code == 0, result.output
        assert "Added #1: milk" in result.stdout
        assert "[ ] 1. milk" in result.stdout
        assert "[OK] Exited with code 0" in result.stdout

    def test_initial_args_are_dispatched(self, runner):
        result = runner.invoke(
            app, ["demo", "cli_plugin_host.examples.todo:app", "add", "eggs", "--raw"]
        )

        assert result.exit_code == 0, result.output
        assert "kind: success" in result.stdout
        assert "Added #1: eggs" in result.stdout

    def test_bad_app_spec(self, runner):
        result = runner.invoke(app, ["demo", "nowhere"])

        assert result.exit_code == 1
        assert "module:attribute" in result.output
