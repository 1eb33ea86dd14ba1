"""End-to-end tests for ``shapecli build`` and ``shapecli inspect``."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from shapecli.app import app
from shapecli.exit_codes import (
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_OUTPUT_ERROR,
    EXIT_SCHEMA_ERROR,
)

runner = CliRunner()

FIXTURES_DIR = Path(__file__).parent.parent / "fixtures"
MODEL = str(FIXTURES_DIR / "widget_model.json")
BUILD_CONFIG = str(FIXTURES_DIR / "smithy-build.json")


def _build(*extra: str):
    return runner.invoke(app, ["build", "-m", MODEL, "-b", BUILD_CONFIG, *extra])


# ---------------------------------------------------------------------------
# build --help
# ---------------------------------------------------------------------------


class TestBuildHelp:
    """Verify the build sub-command is registered and shows help."""

    def test_root_help_lists_commands(self) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "build" in result.output
        assert "inspect" in result.output

    def test_build_help(self) -> None:
        result = runner.invoke(app, ["build", "--help"])
        assert result.exit_code == 0
        assert "--model" in result.output
        assert "--dry-run" in result.output

    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert result.output.startswith("shapecli ")


# ---------------------------------------------------------------------------
# build
# ---------------------------------------------------------------------------


class TestBuild:
    def test_writes_package(self, isolated_config: Path) -> None:
        result = _build("-n", "widget-cli", "-o", str(isolated_config / "out"))
        assert result.exit_code == 0, result.output
        root = isolated_config / "out" / "widget-cli"
        assert (root / "pyproject.toml").is_file()
        assert (root / "src" / "widget_cli" / "__init__.py").is_file()
        assert (root / "src" / "widget_cli" / "__main__.py").is_file()
        cli = (root / "src" / "widget_cli" / "cli.py").read_text(encoding="utf-8")
        assert "@app.command('CreateWidget'" in cli
        assert "Generated widget-cli with 5 command(s)" in result.output

    def test_default_name_and_output_dir(self, isolated_config: Path) -> None:
        result = _build()
        assert result.exit_code == 0, result.output
        assert (isolated_config / "widget-service" / "src" / "widget_service" / "cli.py").is_file()

    def test_rebuild_is_identical(self, isolated_config: Path) -> None:
        _build("-o", "first")
        _build("-o", "second")
        for relative in ["pyproject.toml", "src/widget_service/cli.py"]:
            first = (isolated_config / "first" / "widget-service" / relative).read_bytes()
            second = (isolated_config / "second" / "widget-service" / relative).read_bytes()
            assert first == second

    def test_dry_run_writes_nothing(self, isolated_config: Path) -> None:
        result = _build("--dry-run", "-n", "widget-cli")
        assert result.exit_code == 0, result.output
        assert "# --- widget-cli/pyproject.toml ---" in result.output
        assert "# --- widget-cli/src/widget_cli/cli.py ---" in result.output
        assert not (isolated_config / "widget-cli").exists()

    def test_settings_from_project_file(self, isolated_config: Path) -> None:
        (isolated_config / "shapecli.json").write_text(
            json.dumps({"model": MODEL, "build_config": BUILD_CONFIG, "cli_name": "from-file"}),
            encoding="utf-8",
        )
        result = runner.invoke(app, ["build"])
        assert result.exit_code == 0, result.output
        assert (isolated_config / "from-file" / "pyproject.toml").is_file()

    def test_client_directory_becomes_direct_reference(self, isolated_config: Path) -> None:
        client_dir = isolated_config / "widget-client"
        client_dir.mkdir()
        result = _build("--client", str(client_dir), "--cli-version", "1.0.0")
        assert result.exit_code == 0, result.output
        pyproject = (isolated_config / "widget-service" / "pyproject.toml").read_text()
        assert f'"widget-client @ {client_dir.resolve().as_uri()}",' in pyproject
        assert 'version = "1.0.0"' in pyproject

    def test_model_from_stdin(self, isolated_config: Path) -> None:
        result = runner.invoke(
            app,
            ["build", "-m", "-", "-b", BUILD_CONFIG, "--dry-run"],
            input=Path(MODEL).read_text(encoding="utf-8"),
        )
        assert result.exit_code == 0, result.output
        assert "widget-service/pyproject.toml" in result.output


class TestBuildErrors:
    def test_missing_model(self, isolated_config: Path) -> None:
        result = runner.invoke(app, ["build"])
        assert result.exit_code == EXIT_INVALID_USAGE
        assert "Missing --model" in result.output

    def test_invalid_cli_name(self, isolated_config: Path) -> None:
        result = _build("-n", "9lives")
        assert result.exit_code == EXIT_INVALID_USAGE
        assert "Invalid CLI name" in result.output

    def test_cyclic_model(self, isolated_config: Path) -> None:
        result = runner.invoke(
            app, ["build", "-m", str(FIXTURES_DIR / "cyclic_model.json"), "-b", BUILD_CONFIG]
        )
        assert result.exit_code == EXIT_SCHEMA_ERROR
        assert not any(isolated_config.iterdir())

    def test_missing_model_file(self, isolated_config: Path) -> None:
        result = runner.invoke(app, ["build", "-m", "nope.json", "-b", BUILD_CONFIG])
        assert result.exit_code == EXIT_SCHEMA_ERROR

    def test_unknown_plugin(self, isolated_config: Path) -> None:
        result = _build("--plugin", "typescript-codegen")
        assert result.exit_code == EXIT_GENERIC_FAILURE

    def test_unwritable_output(self, isolated_config: Path) -> None:
        blocker = isolated_config / "blocker"
        blocker.write_text("not a directory")
        result = _build("-o", str(blocker))
        assert result.exit_code == EXIT_OUTPUT_ERROR
        assert "Cannot write" in result.output


# ---------------------------------------------------------------------------
# inspect
# ---------------------------------------------------------------------------


class TestInspect:
    def test_operations_plain(self, isolated_config: Path) -> None:
        result = runner.invoke(app, ["--plain", "inspect", "operations", "-m", MODEL])
        assert result.exit_code == 0, result.output
        lines = result.stdout.strip().split("\n")
        assert lines[0] == "Operation\tMethod\tRoute\tInput\tAuth"
        assert lines[1] == "CreateWidget\tPOST\t/widgets\tCreateWidgetInput\ttoken"
        assert lines[2] == "Login\tPOST\t/login\tLoginInput\t"
        assert lines[5] == "GetStatus\tGET\t/status\t-\ttoken"

    def test_params_json(self, isolated_config: Path) -> None:
        result = runner.invoke(app, ["--json", "inspect", "params", "CreateWidget", "-m", MODEL])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["operation"] == "CreateWidget"
        assert data["required"] == ["name", "parts[].sku", "dimensions.width", "token"]
        flags = {f["flag"]: f for f in data["flags"]}
        assert flags["--tags"]["multiple"] is True
        assert flags["--count"]["parser"] == "integer"
        assert flags["--name"]["parser"] == "string"

    def test_params_plain(self, isolated_config: Path) -> None:
        result = runner.invoke(app, ["--plain", "inspect", "params", "ConfigureWidget", "-m", MODEL])
        assert result.exit_code == 0, result.output
        assert (
            "Required: settings.display, settings.display.theme, "
            "settings.display.theme.name, token"
        ) in result.stdout
        assert "    --settings (optional)" in result.stdout

    def test_unknown_operation(self, isolated_config: Path) -> None:
        result = runner.invoke(app, ["inspect", "params", "DeleteWidget", "-m", MODEL])
        assert result.exit_code == EXIT_INVALID_USAGE
        assert "Unknown operation" in result.output

    def test_missing_model(self, isolated_config: Path) -> None:
        result = runner.invoke(app, ["inspect", "operations"])
        assert result.exit_code == EXIT_INVALID_USAGE

    def test_model_from_env(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SHAPECLI_MODEL", MODEL)
        result = runner.invoke(app, ["--plain", "inspect", "operations"])
        assert result.exit_code == 0, result.output
        assert "UploadManifest" in result.stdout
