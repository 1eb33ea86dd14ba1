"""Shared test fixtures for shapecli.

Provides reusable fixtures for loading model fixtures, building descriptors,
creating isolated settings environments, managing output state, and running
CLI commands. These fixtures are automatically discovered by pytest and
available to all test modules without explicit imports.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import pytest

from shapecli.models import (
    ClientPackage,
    GeneratorSettings,
    OperationDescriptor,
    ServiceDescriptor,
)
from shapecli.output import OutputFormat, OutputManager, reset_output, set_output


FIXTURES_DIR = Path(__file__).parent / "fixtures"

WIDGET_SERVICE = "example.widgets#WidgetService"


# ---------------------------------------------------------------------------
# Auto-reset global output and logging state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager and the shapecli log handlers after every test.

    Both cache references to sys.stdout/sys.stderr at creation time. When
    Typer's CliRunner redirects those streams during a test and the test
    finishes, the cached references become stale.
    """
    yield
    reset_output()
    logger = logging.getLogger("shapecli")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


# ---------------------------------------------------------------------------
# Raw model fixtures (plain dicts loaded from JSON files)
# ---------------------------------------------------------------------------


@pytest.fixture
def widget_model() -> dict[str, Any]:
    """Load the widget service model (nesting, blobs, documents, auth)."""
    with open(FIXTURES_DIR / "widget_model.json") as f:
        return json.load(f)


@pytest.fixture
def widget_shapes(widget_model: dict[str, Any]) -> dict[str, Any]:
    """The ``shapes`` map of the widget model."""
    return widget_model["shapes"]


@pytest.fixture
def cyclic_model() -> dict[str, Any]:
    """Load a model whose input tree refers back to itself."""
    with open(FIXTURES_DIR / "cyclic_model.json") as f:
        return json.load(f)


# ---------------------------------------------------------------------------
# Extracted descriptors
# ---------------------------------------------------------------------------


@pytest.fixture
def widget_service(widget_model: dict[str, Any]) -> ServiceDescriptor:
    """The extracted widget service."""
    from shapecli.parser.extractor import extract_service

    return extract_service(widget_model, WIDGET_SERVICE)


@pytest.fixture
def create_widget(widget_service: ServiceDescriptor) -> OperationDescriptor:
    return _operation(widget_service, "CreateWidget")


@pytest.fixture
def upload_manifest(widget_service: ServiceDescriptor) -> OperationDescriptor:
    return _operation(widget_service, "UploadManifest")


@pytest.fixture
def configure_widget(widget_service: ServiceDescriptor) -> OperationDescriptor:
    return _operation(widget_service, "ConfigureWidget")


def _operation(service: ServiceDescriptor, name: str) -> OperationDescriptor:
    for op in service.operations:
        if op.name == name:
            return op
    raise AssertionError(f"fixture model has no operation {name}")


# ---------------------------------------------------------------------------
# Build inputs
# ---------------------------------------------------------------------------


@pytest.fixture
def widget_client() -> ClientPackage:
    return ClientPackage(module="widget_client", version="0.3.0")


@pytest.fixture
def widget_settings() -> GeneratorSettings:
    return GeneratorSettings(
        service=WIDGET_SERVICE,
        cli_name="widget-cli",
        cli_description="Widget command line",
    )


# ---------------------------------------------------------------------------
# Environment isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate settings and data directories to a temporary directory.

    Sets XDG_DATA_HOME below tmp_path, clears all SHAPECLI_* environment
    variables and changes the working directory to tmp_path so that a
    stray ``shapecli.json`` is never picked up.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    for var in [
        "SHAPECLI_MODEL",
        "SHAPECLI_BUILD_CONFIG",
        "SHAPECLI_SERVICE",
        "SHAPECLI_OUTPUT",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
