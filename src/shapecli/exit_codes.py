"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~shapecli.exceptions.ShapecliError` subclass.
Build scripts can inspect the exit code to tell a broken model apart from a
bad invocation without parsing stderr.

Example::

    $ shapecli build --model model.json --service example.widgets#WidgetService
    $ echo $?
    7   # EXIT_SCHEMA_ERROR -- the model references a missing shape
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required options."""

EXIT_SCHEMA_ERROR = 7
"""The Smithy model could not be loaded, or it cannot be compiled into a CLI."""

EXIT_OUTPUT_ERROR = 8
"""The generated package could not be written to the output directory."""
