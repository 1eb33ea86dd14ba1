"""Helpers imported by generated command-line programs.

Generated ``cli.py`` modules do ``from shapecli import runtime as rt`` and
keep only the operation-specific code themselves. This module provides:

* **Flag parsers** -- :func:`integer_parser`, :func:`float_parser`,
  :func:`boolean_parser`, :func:`file_parser`, :func:`document_parser` and
  :func:`json_parser` return Typer ``parser=`` callables bound to a flag
  name, so every conversion error names the flag it came from.
* **Parameter merging** -- :func:`load_params_file` and
  :func:`merge_options`.
* **Field handling** -- :func:`read_blob`, :func:`stream_blob` and
  :func:`serialize_document`, called from the generated handling code, and
  :func:`close_streams` once the client call returns.
* **Validation** -- :func:`validate_required` checks required-field paths
  such as ``parts[].sku`` or ``tags{value}.icon`` against the merged
  parameters.
* **Invocation** -- :func:`build_input`, :func:`run_client_call` and
  :func:`print_result`.
"""

from __future__ import annotations

import asyncio
import dataclasses
import inspect
import io
import json
import logging
import re
from pathlib import Path
from typing import Any, BinaryIO, Callable, Iterable, Optional

import typer
from rich.console import Console

logger = logging.getLogger(__name__)

_TRUE_VALUES = frozenset({"true", "1", "yes", "y", "on"})
_FALSE_VALUES = frozenset({"false", "0", "no", "n", "off"})


# --- Errors ---


class InvalidArgumentError(typer.BadParameter):
    """A flag value could not be converted to its declared type."""

    def __init__(self, flag: str, message: str) -> None:
        self.flag = flag
        super().__init__(f"{flag}: {message}")


class InvalidJsonError(InvalidArgumentError):
    """A JSON-valued flag (or its ``@file``) did not contain valid JSON."""

    def __init__(self, flag: str, detail: str) -> None:
        super().__init__(flag, f"invalid JSON ({detail})")


class MissingRequiredError(typer.BadParameter):
    """One or more required fields are absent after merging all sources."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__("Missing required parameter(s): " + ", ".join(missing))


# --- Flag parsers ---


def integer_parser(flag: str) -> Callable[[str], int]:
    """Parser accepting base-10 integers."""

    def _parse(value: str) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            raise InvalidArgumentError(flag, f"expected an integer, got {value!r}") from None

    return _parse


def float_parser(flag: str) -> Callable[[str], float]:
    """Parser accepting any float literal."""

    def _parse(value: str) -> float:
        try:
            return float(value)
        except (TypeError, ValueError):
            raise InvalidArgumentError(flag, f"expected a number, got {value!r}") from None

    return _parse


def boolean_parser(flag: str) -> Callable[[str], bool]:
    """Parser accepting ``true/false``, ``1/0``, ``yes/no`` and ``on/off``."""

    def _parse(value: str) -> bool:
        lowered = str(value).strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        raise InvalidArgumentError(flag, f"expected true or false, got {value!r}")

    return _parse


def file_parser(flag: str) -> Callable[[str], str]:
    """Parser requiring an existing file path; the path itself is kept."""

    def _parse(value: str) -> str:
        if not Path(value).is_file():
            raise InvalidArgumentError(flag, f"file not found: {value}")
        return value

    return _parse


def json_parser(flag: str) -> Callable[[str], Any]:
    """Parser for inline JSON text or ``@path`` to a JSON file."""

    def _parse(value: str) -> Any:
        return _load_json_value(flag, value)

    return _parse


def document_parser(flag: str) -> Callable[[str], Any]:
    """Like :func:`json_parser`; the value is re-serialised before the call."""
    return json_parser(flag)


def _load_json_value(flag: str, value: str) -> Any:
    text = value
    if value.startswith("@"):
        path = Path(value[1:])
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise InvalidArgumentError(flag, f"cannot read {path}: {exc.strerror or exc}") from None
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise InvalidJsonError(flag, exc.msg) from None


# --- Parameter merging ---


def load_params_file(argument: Optional[str]) -> dict[str, Any]:
    """Load the optional positional ``@params.json`` argument.

    Args:
        argument: The raw positional value, ``None`` when omitted. The
            leading ``@`` is optional.

    Returns:
        The decoded JSON object (empty when *argument* is ``None``).

    Raises:
        typer.BadParameter: If the file is missing, unreadable, not JSON, or
            not a JSON object.
    """
    if argument is None:
        return {}
    path = Path(argument[1:] if argument.startswith("@") else argument)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise typer.BadParameter(f"cannot read parameter file {path}: {exc.strerror or exc}")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"parameter file {path} is not valid JSON: {exc.msg}")
    if not isinstance(data, dict):
        raise typer.BadParameter(f"parameter file {path} must contain a JSON object")
    logger.debug("Loaded %d parameter(s) from %s", len(data), path)
    return data


def merge_options(file_params: dict[str, Any], options: dict[str, Any]) -> dict[str, Any]:
    """Overlay flag values on the parameter file.

    Flags that were not given (``None``, or an empty repeated flag) leave the
    file value in place.
    """
    merged = dict(file_params)
    for name, value in options.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            if not value:
                continue
            value = list(value)
        merged[name] = value
    return merged


# --- Field handling ---


def read_blob(path: Any, label: str) -> bytes:
    """Return the contents of the file at *path* for the blob field *label*.

    Raises:
        FileNotFoundError: If *path* does not name an existing file.
    """
    file_path = _blob_path(path, label)
    return file_path.read_bytes()


def stream_blob(path: Any, label: str) -> BinaryIO:
    """Open the file at *path* for a streaming blob field.

    Generated programs close it with :func:`close_streams` after the call.

    Raises:
        FileNotFoundError: If *path* does not name an existing file.
    """
    file_path = _blob_path(path, label)
    return file_path.open("rb")


def close_streams(value: Any) -> None:
    """Close every file opened by :func:`stream_blob` found in *value*."""
    if isinstance(value, io.IOBase):
        value.close()
    elif isinstance(value, dict):
        for item in value.values():
            close_streams(item)
    elif isinstance(value, list):
        for item in value:
            close_streams(item)


def _blob_path(path: Any, label: str) -> Path:
    file_path = Path(str(path))
    if not file_path.is_file():
        raise FileNotFoundError(f"File not found for {label}: {path}")
    return file_path


def serialize_document(value: Any) -> str:
    """Serialise a document value to JSON text."""
    return json.dumps(value)


# --- Validation ---

_PATH_TOKEN_RE = re.compile(r"\[\]|\{value\}|[^.\[\]{}]+")


def parse_path(path: str) -> list[str]:
    """Split a required-field path into steps.

    Example::

        >>> parse_path("spec.parts[].sku")
        ['spec', 'parts', '[]', 'sku']
    """
    return _PATH_TOKEN_RE.findall(path)


def validate_required(params: dict[str, Any], paths: Iterable[str]) -> None:
    """Check every required path against *params*.

    A path is satisfied vacuously when one of its optional ancestors is
    absent; list and map steps apply to every existing element or value.

    Raises:
        MissingRequiredError: Listing each missing location, with concrete
            indices and keys (``parts[1].sku``).
    """
    missing: list[str] = []
    for path in paths:
        _check(params, parse_path(path), "", missing)
    if missing:
        raise MissingRequiredError(missing)


def _check(node: Any, steps: list[str], prefix: str, missing: list[str]) -> None:
    step, rest = steps[0], steps[1:]

    if step == "[]":
        if not isinstance(node, list):
            return
        for index, item in enumerate(node):
            _continue(item, rest, f"{prefix}[{index}]", missing)
        return

    if step == "{value}":
        if not isinstance(node, dict):
            return
        for key, item in node.items():
            _continue(item, rest, f"{prefix}{{{key}}}", missing)
        return

    if not isinstance(node, dict):
        return
    location = f"{prefix}.{step}" if prefix else step
    value = node.get(step)
    if not rest:
        if value is None:
            missing.append(location)
        return
    if value is not None:
        _check(value, rest, location, missing)


def _continue(node: Any, rest: list[str], location: str, missing: list[str]) -> None:
    if not rest:
        if node is None:
            missing.append(location)
        return
    _check(node, rest, location, missing)


# --- Invocation ---


def build_input(model: type, params: dict[str, Any]) -> Any:
    """Construct the client's input shape from the merged parameters.

    Uses ``model.from_dict`` when the client provides it, keyword arguments
    otherwise.
    """
    from_dict = getattr(model, "from_dict", None)
    if callable(from_dict):
        return from_dict(params)
    return model(**params)


def run_client_call(result: Any) -> Any:
    """Return *result*, awaiting it first when the client method is async."""
    if inspect.isawaitable(result):
        return asyncio.run(_await(result))
    return result


async def _await(awaitable: Any) -> Any:
    return await awaitable


def print_result(result: Any, console: Optional[Console] = None) -> None:
    """Print an operation's output as JSON on stdout.

    Dataclasses, objects with ``as_dict``, bytes and ``None`` are handled;
    anything else falls back to ``str``.
    """
    console = console or Console()
    if result is None:
        return
    data = to_jsonable(result)
    if isinstance(data, str):
        console.print(data, markup=False, highlight=False)
        return
    console.print_json(json.dumps(data, default=str))


def to_jsonable(value: Any) -> Any:
    """Convert client output objects into plain JSON-compatible values."""
    as_dict = getattr(value, "as_dict", None)
    if callable(as_dict):
        return to_jsonable(as_dict())
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return to_jsonable(dataclasses.asdict(value))
    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value
