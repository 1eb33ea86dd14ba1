"""Settings resolution with a project-local config file and env overrides.

This module decides the effective :class:`~shapecli.models.GeneratorSettings`
for one ``shapecli build`` (or ``inspect``) invocation:

* **Project config** -- an optional ``./shapecli.json`` holding any of the
  settings fields, so a repository can pin its model, build config and
  service. See :func:`load_project_config`.
* **Precedence resolution** -- :func:`resolve_settings` merges CLI flags,
  environment variables and the project file over the model defaults.
* **Data directory** -- :func:`get_data_dir` locates where crash logs go,
  XDG compliant on Linux/BSD and ``~/.shapecli/`` elsewhere.
"""

from __future__ import annotations

import json
import os
import platform
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from shapecli.exceptions import ConfigError
from shapecli.models import GeneratorSettings

_APP_NAME = "shapecli"
_PROJECT_CONFIG_FILENAME = "shapecli.json"

ENV_VARS: dict[str, str] = {
    "model": "SHAPECLI_MODEL",
    "build_config": "SHAPECLI_BUILD_CONFIG",
    "service": "SHAPECLI_SERVICE",
    "output_dir": "SHAPECLI_OUTPUT",
}
"""Settings fields that may be overridden from the environment."""


# --- Data directory ---


def _is_xdg_platform() -> bool:
    """Return True if the platform follows the XDG Base Directory layout (Linux/BSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/shapecli/`` (default ``~/.local/share/shapecli/``).
    On macOS/Windows: ``~/.shapecli/logs/``.

    Returns:
        Absolute path to the data directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_DATA_HOME", "")
        base = Path(env_value) if env_value else Path.home() / ".local" / "share"
        path = base / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}" / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Project-local config ---


def load_project_config(directory: Optional[Path] = None) -> Optional[dict[str, Any]]:
    """Load project-local configuration from ``shapecli.json``.

    Args:
        directory: Where to look; defaults to the current working directory.

    Returns:
        The parsed JSON object, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file exists but is not a valid JSON object.
    """
    path = (directory or Path.cwd()) / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid project config at {path}: expected a JSON object")
    return data


# --- Precedence resolution ---


def resolve_settings(
    cli_values: Optional[dict[str, Any]] = None,
    directory: Optional[Path] = None,
) -> GeneratorSettings:
    """Resolve settings with the full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_values``; ``None`` entries are ignored)
        2. Environment variables (see :data:`ENV_VARS`)
        3. Project config (``./shapecli.json``)
        4. Defaults

    Raises:
        ConfigError: If the project file is invalid or the merged values do
            not validate.
    """
    merged: dict[str, Any] = {}

    # 3. Project-local config
    project = load_project_config(directory)
    if project is not None:
        merged.update(project)

    # 2. Environment variables
    for field, env_var in ENV_VARS.items():
        value = os.environ.get(env_var)
        if value:
            merged[field] = value

    # 1. CLI flags
    for field, value in (cli_values or {}).items():
        if value is not None:
            merged[field] = value

    try:
        return GeneratorSettings.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid settings: {exc}") from exc
