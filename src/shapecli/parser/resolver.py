"""Resolve Smithy shape references into :data:`~shapecli.models.TypeDescriptor` trees.

Members in a Smithy JSON AST point at their type through a ``target`` shape
id. This module follows those ids recursively and returns an immutable
descriptor tree in which every nested member has been expanded and its
traits (``@required``, ``@documentation``, ``@httpPayload``, ``@streaming``)
applied.

Prelude references (namespace ``smithy.api``) resolve directly to a
primitive, except ``Blob`` and ``Document`` which have their own variants.

Cycles are detected with the chain of shape refs currently being resolved,
threaded through every recursive call. A ref that reappears on its own chain
raises :class:`~shapecli.exceptions.CyclicShapeError`; the same shape reached
through two sibling branches is fine. A CLI flag tree has to be finite, so a
cycle is an error here rather than something to leave unresolved.

The public functions are :func:`resolve` and :func:`resolve_structure`.
"""

from __future__ import annotations

from typing import Any

from shapecli.exceptions import CyclicShapeError, SchemaError, UnsupportedTypeError
from shapecli.models import (
    BlobType,
    DocumentType,
    FieldDescriptor,
    ListType,
    MapType,
    PrimitiveType,
    ShapeRef,
    StructureType,
    TypeDescriptor,
)

PRELUDE_NAMESPACE = "smithy.api"

TRAIT_DOCUMENTATION = "smithy.api#documentation"
TRAIT_REQUIRED = "smithy.api#required"
TRAIT_STREAMING = "smithy.api#streaming"
TRAIT_HTTP_PAYLOAD = "smithy.api#httpPayload"


def resolve(
    ref: ShapeRef,
    graph: dict[str, Any],
    visiting: tuple[ShapeRef, ...] = (),
) -> TypeDescriptor:
    """Resolve *ref* against the model's shape map.

    Args:
        ref: The shape to resolve.
        graph: The ``shapes`` object of the JSON AST, keyed by absolute
            shape id.
        visiting: Refs already on the current resolution chain, outermost
            first. Empty on the initial call.

    Returns:
        The fully expanded descriptor for *ref*.

    Raises:
        SchemaError: If *ref* (or anything it references) is not in *graph*.
        UnsupportedTypeError: If a shape's ``type`` is not one of ``blob``,
            ``list``, ``set``, ``map``, ``structure`` or ``document``.
        CyclicShapeError: If *ref* is already on the resolution chain.

    Example::

        graph = model["shapes"]
        descriptor = resolve(ShapeRef.parse("example.widgets#Widget"), graph)
        [m.name for m in descriptor.members]   # declaration order
    """
    if ref.namespace == PRELUDE_NAMESPACE:
        return _resolve_prelude(ref)

    shape_id = str(ref)
    shape = graph.get(shape_id)
    if not isinstance(shape, dict):
        raise SchemaError(f"shape not found: {shape_id}")

    if ref in visiting:
        start = visiting.index(ref)
        raise CyclicShapeError([str(r) for r in visiting[start:]] + [shape_id])
    chain = visiting + (ref,)

    kind = shape.get("type")
    traits = shape.get("traits") or {}

    if kind == "blob":
        return BlobType(streaming=TRAIT_STREAMING in traits)

    if kind in ("list", "set"):
        member = _require_member(shape, "member", shape_id)
        return ListType(member=resolve(_target(member, shape_id), graph, chain))

    if kind == "map":
        key = _require_member(shape, "key", shape_id)
        value = _require_member(shape, "value", shape_id)
        return MapType(
            key=_member_field("key", key, graph, chain, shape_id),
            value=_member_field("value", value, graph, chain, shape_id),
        )

    if kind == "structure":
        members = shape.get("members") or {}
        return StructureType(
            members=tuple(
                _member_field(name, member, graph, chain, shape_id)
                for name, member in members.items()
            )
        )

    if kind == "document":
        return DocumentType()

    raise UnsupportedTypeError(str(kind), shape_id)


def resolve_structure(ref: ShapeRef, graph: dict[str, Any]) -> StructureType:
    """Resolve a shape that must be a ``structure``.

    Used by the extractor for operation input and output shapes.

    Raises:
        SchemaError: If the shape is missing or is not a structure.
        CyclicShapeError: If a member chain leads back to a shape on the chain.
    """
    shape = graph.get(str(ref))
    if isinstance(shape, dict) and shape.get("type") != "structure":
        raise SchemaError(f"{ref} must be a structure (got {shape.get('type')!r})")
    descriptor = resolve(ref, graph)
    if not isinstance(descriptor, StructureType):
        raise SchemaError(f"{ref} must be a structure (got {descriptor.kind!r})")
    return descriptor


def _resolve_prelude(ref: ShapeRef) -> TypeDescriptor:
    name = ref.name.lower()
    if name == "blob":
        return BlobType()
    if name == "document":
        return DocumentType()
    return PrimitiveType(name=name)


def _member_field(
    name: str,
    member: dict[str, Any],
    graph: dict[str, Any],
    visiting: tuple[ShapeRef, ...],
    owner: str,
) -> FieldDescriptor:
    """Build a :class:`FieldDescriptor` for a structure member or map key/value."""
    traits = member.get("traits") or {}
    return FieldDescriptor(
        name=name,
        type=resolve(_target(member, owner), graph, visiting),
        required=TRAIT_REQUIRED in traits,
        documentation=traits.get(TRAIT_DOCUMENTATION) or "",
        is_payload=TRAIT_HTTP_PAYLOAD in traits,
    )


def _require_member(shape: dict[str, Any], key: str, shape_id: str) -> dict[str, Any]:
    member = shape.get(key)
    if not isinstance(member, dict):
        raise SchemaError(f"{shape_id} has no '{key}' member")
    return member


def _target(member: Any, owner: str) -> ShapeRef:
    target = member.get("target") if isinstance(member, dict) else None
    if not target:
        raise SchemaError(f"Member of {owner} has no target")
    return ShapeRef.parse(target)
