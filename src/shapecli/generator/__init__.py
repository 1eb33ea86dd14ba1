"""CLI generator -- turn resolved operations into the source of a Typer program.

This sub-package is responsible for the second half of the shapecli
pipeline: taking the :class:`~shapecli.models.OperationDescriptor` objects
produced by the parser and rendering a standalone command-line package that
calls the service's generated client library.

Typical usage::

    from shapecli.generator import handling, params, render

    specs = [
        params.build_command_spec(op, "widget-cli", requires_auth=True,
                                  handling_lines=handling.generate(op.input_fields))
        for op in service.operations
    ]
    rendered = render(specs, meta)

Sub-modules:

* :mod:`~shapecli.generator.paths` -- :class:`FieldPath` and
  :class:`AccessPath` value types for nested locations.
* :mod:`~shapecli.generator.params` -- flags, required-field paths, parameter
  docs and usage examples.
* :mod:`~shapecli.generator.handling` -- generated conversion code for blob
  and document fields at any depth.
* :mod:`~shapecli.generator.auth` -- auth requirement policies.
* :mod:`~shapecli.generator.renderer` -- Jinja2 rendering of the package.
"""

from shapecli.generator.paths import AccessPath, FieldPath
from shapecli.generator.renderer import render

__all__ = ["AccessPath", "FieldPath", "render"]
