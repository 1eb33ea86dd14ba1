"""Extract the service and its operations from a Smithy JSON AST model.

This module walks a service shape's ``operations`` list and builds a
:class:`~shapecli.models.ServiceDescriptor` whose operations carry their
route, documentation, auth exemption and fully resolved input/output trees.

The single public entry point is :func:`extract_service`.

Operation order is the order in which the service declares its operations;
that order is what the generated CLI registers its subcommands in.

Auth follows two traits:

* ``smithy.api#httpBearerAuth`` on the service makes every operation require
  a bearer token;
* ``smithy.api#auth`` with an empty list on an operation exempts it. That is
  the convention for operations that issue credentials (a ``Login`` cannot
  itself require a token).
"""

from __future__ import annotations

import logging
from typing import Any

from shapecli.exceptions import SchemaError
from shapecli.models import OperationDescriptor, ServiceDescriptor, ShapeRef
from shapecli.parser.resolver import TRAIT_DOCUMENTATION, resolve_structure

logger = logging.getLogger(__name__)

TRAIT_HTTP = "smithy.api#http"
TRAIT_AUTH = "smithy.api#auth"
TRAIT_HTTP_BEARER_AUTH = "smithy.api#httpBearerAuth"


def extract_service(model: dict[str, Any], service_id: str) -> ServiceDescriptor:
    """Extract a :class:`~shapecli.models.ServiceDescriptor` from a raw model dict.

    Args:
        model: The JSON AST as returned by
            :func:`~shapecli.parser.loader.load_model`.
        service_id: Absolute shape id of the service (``namespace#Name``).

    Returns:
        The service with one :class:`~shapecli.models.OperationDescriptor`
        per declared operation, in declared order.

    Raises:
        SchemaError: If the service or one of its operations is missing, an
            operation lacks an ``@http`` route, or any shape fails to resolve.

    Example::

        model = load_model("build/model.json")
        service = extract_service(model, "example.widgets#WidgetService")
        for op in service.operations:
            print(op.method, op.route, op.name)
    """
    graph = model.get("shapes") or {}
    ref = ShapeRef.parse(service_id)
    shape = graph.get(service_id)
    if not isinstance(shape, dict):
        raise SchemaError(f"shape not found: {service_id}")
    if shape.get("type") != "service":
        raise SchemaError(
            f"{service_id} is not a service (got {shape.get('type')!r})"
        )

    traits = shape.get("traits") or {}
    requires_auth = is_auth_required(shape)

    operations = []
    for entry in shape.get("operations") or []:
        target = entry.get("target") if isinstance(entry, dict) else None
        if not target:
            raise SchemaError(f"{service_id} lists an operation without a target")
        operations.append(_extract_operation(ShapeRef.parse(target), graph))

    logger.debug(
        "Extracted %d operations from %s (bearer auth: %s)",
        len(operations),
        service_id,
        requires_auth,
    )
    return ServiceDescriptor(
        ref=ref,
        version=shape.get("version"),
        documentation=traits.get(TRAIT_DOCUMENTATION) or "",
        requires_auth=requires_auth,
        operations=tuple(operations),
    )


def is_auth_required(service_shape: dict[str, Any]) -> bool:
    """Return ``True`` when the service declares ``@httpBearerAuth``."""
    traits = service_shape.get("traits") or {}
    return TRAIT_HTTP_BEARER_AUTH in traits


def is_auth_exempt(traits: dict[str, Any]) -> bool:
    """Return ``True`` when an operation's ``@auth`` trait allows no schemes."""
    auth = traits.get(TRAIT_AUTH)
    return isinstance(auth, list) and len(auth) == 0


def _extract_operation(ref: ShapeRef, graph: dict[str, Any]) -> OperationDescriptor:
    """Build one :class:`OperationDescriptor`, resolving its input and output.

    Raises:
        SchemaError: If the operation is missing or has no ``@http`` ``uri``.
    """
    op_id = str(ref)
    shape = graph.get(op_id)
    if not isinstance(shape, dict):
        raise SchemaError(f"shape not found: {op_id}")

    traits = shape.get("traits") or {}
    http = traits.get(TRAIT_HTTP)
    if not isinstance(http, dict) or not http.get("uri"):
        raise SchemaError(
            f"Operation {op_id} has no {TRAIT_HTTP} trait with a 'uri'; "
            "every operation needs a route"
        )

    input_ref = _io_ref(shape, "input")
    output_ref = _io_ref(shape, "output")

    return OperationDescriptor(
        name=ref.name,
        route=http["uri"],
        method=str(http.get("method") or "POST").upper(),
        documentation=traits.get(TRAIT_DOCUMENTATION) or "",
        traits=traits,
        input=resolve_structure(input_ref, graph) if input_ref else None,
        input_shape=input_ref.name if input_ref else None,
        output=resolve_structure(output_ref, graph) if output_ref else None,
        output_shape=output_ref.name if output_ref else None,
        auth_exempt=is_auth_exempt(traits),
    )


def _io_ref(shape: dict[str, Any], key: str) -> ShapeRef | None:
    """Return the ref of an operation's input/output, or ``None`` when absent.

    ``smithy.api#Unit`` is Smithy 2.0's explicit "no input/output".
    """
    entry = shape.get(key)
    target = entry.get("target") if isinstance(entry, dict) else None
    if not target or target == "smithy.api#Unit":
        return None
    return ShapeRef.parse(target)
