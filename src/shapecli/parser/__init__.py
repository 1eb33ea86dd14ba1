"""Smithy model parser -- load, resolve shape references, and extract operations.

This sub-package is responsible for the first half of the shapecli pipeline:
turning a Smithy JSON AST document (local file, remote URL or stdin) into a
:class:`~shapecli.models.ServiceDescriptor` that the generator can consume.

Typical usage::

    from shapecli.parser import load_model, validate_model, extract_service

    raw = load_model("build/smithy/source/model/model.json")
    validate_model(raw)
    service = extract_service(raw, "example.widgets#WidgetService")

Sub-modules:

* :mod:`~shapecli.parser.loader` -- I/O layer (URL, file, stdin) plus format
  detection, version validation and ``smithy-build.json`` reading.
* :mod:`~shapecli.parser.resolver` -- Recursive shape resolution with
  cycle detection.
* :mod:`~shapecli.parser.extractor` -- Walks the service's operations and
  produces :class:`~shapecli.models.OperationDescriptor` objects.
"""

from shapecli.parser.extractor import extract_service
from shapecli.parser.loader import load_build_config, load_model, validate_model

__all__ = ["load_model", "validate_model", "load_build_config", "extract_service"]
