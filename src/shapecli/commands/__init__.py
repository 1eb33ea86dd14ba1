"""Built-in CLI sub-commands for shapecli.

* :mod:`~shapecli.commands.build` -- compile a model and write the generated
  package (registered directly on the root app).
* :mod:`~shapecli.commands.inspect` -- list the operations of a model and
  show the flags a generated command would have.

Commands report :class:`~shapecli.exceptions.ShapecliError` failures through
:func:`reporting_errors`, which prints the message and exits with the
error's exit code.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

import typer

from shapecli.exceptions import ShapecliError


@contextmanager
def reporting_errors() -> Iterator[None]:
    """Turn a :class:`ShapecliError` into an error message and ``typer.Exit``."""
    from shapecli.output import error

    try:
        yield
    except ShapecliError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
