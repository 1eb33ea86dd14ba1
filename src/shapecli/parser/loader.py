"""Load Smithy JSON AST models and ``smithy-build.json`` files.

This module handles all I/O for fetching raw model documents and converting
them into Python dictionaries. Models are normally JSON (the output of
``smithy build``'s ``model`` projection), but YAML is accepted as well since
valid JSON is valid YAML.

The public functions are:

* :func:`load_model` -- Load and parse a model from a file, URL or stdin.
* :func:`validate_model` -- Check the ``smithy`` version and the ``shapes``
  map, returning the version string.
* :func:`load_build_config` -- Read the client module name and version from
  a plugin entry of ``smithy-build.json``.

After loading, the raw dict is handed to
:func:`~shapecli.parser.extractor.extract_service`.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import httpx
import yaml

from shapecli.exceptions import ConfigError, ModelLoadError
from shapecli.models import ClientPackage

_SUPPORTED_VERSIONS = ("1.0", "2.0")


def load_model(source: str) -> dict[str, Any]:
    """Load a Smithy JSON AST model from URL, file path, or stdin ('-').

    Args:
        source: A URL (http/https), file path, or '-' for stdin.

    Returns:
        The parsed model as a dictionary.

    Raises:
        ModelLoadError: If the source cannot be loaded or parsed.
    """
    if source == "-":
        return _load_from_stdin()
    elif source.startswith(("http://", "https://")):
        return _load_from_url(source)
    else:
        return _load_from_file(source)


def _load_from_stdin() -> dict[str, Any]:
    try:
        content = sys.stdin.read()
    except Exception as exc:
        raise ModelLoadError(f"Failed to read from stdin: {exc}") from exc

    if not content.strip():
        raise ModelLoadError("No input received from stdin")

    return _parse_content(content, hint="stdin")


def _load_from_url(url: str) -> dict[str, Any]:
    """Fetch a model from URL. Supports JSON and YAML responses.

    Raises:
        ModelLoadError: If the URL cannot be fetched or content cannot be parsed.
    """
    try:
        response = httpx.get(url, timeout=30.0, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise ModelLoadError(
            f"HTTP {exc.response.status_code} fetching model from {url}"
        ) from exc
    except httpx.RequestError as exc:
        raise ModelLoadError(f"Failed to fetch model from {url}: {exc}") from exc

    content_type = response.headers.get("content-type", "")
    hint = ""
    if "json" in content_type:
        hint = "json"
    elif "yaml" in content_type or "yml" in content_type:
        hint = "yaml"

    return _parse_content(response.text, hint=hint)


def _load_from_file(path: str) -> dict[str, Any]:
    """Load a document from a local file, using the extension as a format hint.

    Raises:
        ModelLoadError: If the file cannot be read or content cannot be parsed.
    """
    file_path = Path(path)
    if not file_path.is_file():
        raise ModelLoadError(f"Model file not found: {path}")

    try:
        content = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ModelLoadError(f"Failed to read model file {path}: {exc}") from exc

    if not content.strip():
        raise ModelLoadError(f"Model file is empty: {path}")

    suffix = file_path.suffix.lower()
    hint = ""
    if suffix == ".json":
        hint = "json"
    elif suffix in (".yaml", ".yml"):
        hint = "yaml"

    return _parse_content(content, hint=hint)


def _parse_content(content: str, hint: str = "") -> dict[str, Any]:
    """Parse content as JSON or YAML.

    Tries JSON first (unless hint is 'yaml'), then falls back to YAML.

    Args:
        content: The raw string content.
        hint: Optional format hint ('json' or 'yaml').

    Raises:
        ModelLoadError: If the content cannot be parsed as either format.
    """
    json_error: Exception | None = None
    yaml_error: Exception | None = None

    if hint != "yaml":
        try:
            result = json.loads(content)
            if not isinstance(result, dict):
                raise ModelLoadError(
                    "Model must be a JSON/YAML object (got "
                    f"{type(result).__name__})"
                )
            return result
        except json.JSONDecodeError as exc:
            json_error = exc
            if hint == "json":
                raise ModelLoadError(f"Invalid JSON: {exc}") from exc

    try:
        result = yaml.safe_load(content)
        if not isinstance(result, dict):
            raise ModelLoadError(
                "Model must be a JSON/YAML object (got "
                f"{type(result).__name__ if result is not None else 'empty document'})"
            )
        return result
    except yaml.YAMLError as exc:
        yaml_error = exc

    msg = "Failed to parse model as JSON or YAML"
    if json_error:
        msg += f"\n  JSON error: {json_error}"
    if yaml_error:
        msg += f"\n  YAML error: {yaml_error}"
    raise ModelLoadError(msg)


def validate_model(model: dict[str, Any]) -> str:
    """Validate and return the Smithy IDL version of a JSON AST document.

    Args:
        model: The parsed model dictionary.

    Returns:
        The ``smithy`` version string (``"1.0"`` or ``"2.0"``).

    Raises:
        ModelLoadError: If the version is missing or unsupported, or the
            document has no ``shapes`` object.
    """
    version = model.get("smithy")
    if version is None:
        raise ModelLoadError(
            "Missing 'smithy' field. Is this a Smithy JSON AST document?"
        )

    version_str = str(version)
    if version_str not in _SUPPORTED_VERSIONS:
        raise ModelLoadError(
            f"Unsupported Smithy version: {version_str}. "
            f"Supported versions: {', '.join(_SUPPORTED_VERSIONS)}."
        )

    if not isinstance(model.get("shapes"), dict):
        raise ModelLoadError("Model has no 'shapes' object")

    return version_str


def load_build_config(path: str, plugin: str) -> ClientPackage:
    """Read the client module settings for *plugin* from ``smithy-build.json``.

    The Python client generator stores its settings as ``module`` and
    ``moduleVersion``; ``package`` and ``packageVersion`` are accepted as
    fallbacks so that build files shared with other generators also work.

    Args:
        path: Path to ``smithy-build.json``.
        plugin: Name of the plugin entry under ``plugins``.

    Returns:
        A :class:`~shapecli.models.ClientPackage` without a requirement
        override.

    Raises:
        ModelLoadError: If the file cannot be read or parsed.
        ConfigError: If the plugin entry or its module/version are missing.
    """
    config = _load_from_file(path)
    plugins = config.get("plugins") or {}
    settings = plugins.get(plugin)
    if not isinstance(settings, dict):
        raise ConfigError(f"Plugin '{plugin}' not found in {path}")

    module = settings.get("module") or settings.get("package")
    version = settings.get("moduleVersion") or settings.get("packageVersion")
    if not module or not version:
        raise ConfigError(
            f"Could not find module or moduleVersion for plugin '{plugin}' in {path}"
        )
    return ClientPackage(module=str(module), version=str(version))
