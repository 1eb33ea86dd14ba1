"""Exception hierarchy for shapecli.

All exceptions inherit from :class:`ShapecliError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`shapecli.exit_codes`.
The top-level error handler in :func:`shapecli.app.main` catches
``ShapecliError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Compilation is all-or-nothing: any of the schema errors below aborts the
run before a single file is written.

Subclass hierarchy::

    ShapecliError (exit 1)
    +-- InvalidUsageError      (exit 2)
    +-- SchemaError            (exit 7)
    |   +-- UnsupportedTypeError
    |   +-- CyclicShapeError
    +-- ModelLoadError         (exit 7)
    +-- ConfigError            (exit 1)
    +-- OutputError            (exit 8)

Errors raised by *generated* programs at their own runtime live in
:mod:`shapecli.runtime`, because they must be Click parameter errors.
"""

from __future__ import annotations

from shapecli.exit_codes import (
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_OUTPUT_ERROR,
    EXIT_SCHEMA_ERROR,
)


class ShapecliError(Exception):
    """Base exception for all shapecli errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`shapecli.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(ShapecliError):
    """Raised for invalid CLI arguments or missing required settings."""

    exit_code = EXIT_INVALID_USAGE


class SchemaError(ShapecliError):
    """Raised when the model references a missing shape or lacks a mandatory trait."""

    exit_code = EXIT_SCHEMA_ERROR


class UnsupportedTypeError(SchemaError):
    """Raised when a shape's ``type`` is outside the supported vocabulary.

    Args:
        kind: The offending shape type (e.g. ``"union"``).
        ref: Optional shape id, included in the message when known.
    """

    def __init__(self, kind: str, ref: str | None = None):
        where = f" (shape {ref})" if ref else ""
        super().__init__(f"Unsupported type: {kind}{where}")
        self.kind = kind


class CyclicShapeError(SchemaError):
    """Raised when a chain of shape references revisits a shape already on the chain.

    Args:
        chain: The shape ids from the first visit of the repeated shape to
            its second visit, in resolution order.
    """

    def __init__(self, chain: list[str]):
        super().__init__("Cyclic shape reference: " + " -> ".join(chain))
        self.chain = chain


class ModelLoadError(ShapecliError):
    """Raised when the model or build-config document cannot be read or parsed."""

    exit_code = EXIT_SCHEMA_ERROR


class ConfigError(ShapecliError):
    """Raised for configuration problems (invalid project config, missing plugin settings)."""

    exit_code = EXIT_GENERIC_FAILURE


class OutputError(ShapecliError):
    """Raised when the generated package cannot be written to disk."""

    exit_code = EXIT_OUTPUT_ERROR
