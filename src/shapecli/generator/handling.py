"""Generate the value-conversion statements of a command body.

Flags and parameter files deliver plain JSON-ish values. Two kinds of member
need converting before the input shape is built:

* **blobs** -- the value is a file path; it is replaced by the file's bytes,
  or by an open binary file for streaming blobs;
* **documents** -- any non-string value is re-serialised to JSON text.

:func:`generate` walks the input tree and emits Python source
lines that do this at every depth, through structures, list elements and
map values. Subtrees without a blob or document produce no lines at all.

Every emitted statement assigns back into the ``params`` dictionary through
an :class:`~shapecli.generator.paths.AccessPath`, and every container step is
guarded with an ``isinstance`` check so a malformed parameter file is left
for the client to reject instead of raising here.
"""

from __future__ import annotations

from typing import Sequence

from shapecli.generator.paths import AccessPath
from shapecli.models import (
    BlobType,
    DocumentType,
    FieldDescriptor,
    ListType,
    MapType,
    PrimitiveType,
    StructureType,
    TypeDescriptor,
)

INDENT = "    "


def contains_special(descriptor: TypeDescriptor) -> bool:
    """Return ``True`` if a blob or document is reachable from *descriptor*."""
    if isinstance(descriptor, (BlobType, DocumentType)):
        return True
    if isinstance(descriptor, StructureType):
        return any(contains_special(m.type) for m in descriptor.members)
    if isinstance(descriptor, ListType):
        return contains_special(descriptor.member)
    if isinstance(descriptor, MapType):
        return contains_special(descriptor.value.type)
    if isinstance(descriptor, PrimitiveType):
        return False
    raise TypeError(f"Unknown type descriptor: {descriptor!r}")


def contains_stream(descriptor: TypeDescriptor) -> bool:
    """Return ``True`` if a streaming blob is reachable from *descriptor*."""
    if isinstance(descriptor, BlobType):
        return descriptor.streaming
    if isinstance(descriptor, StructureType):
        return any(contains_stream(m.type) for m in descriptor.members)
    if isinstance(descriptor, ListType):
        return contains_stream(descriptor.member)
    if isinstance(descriptor, MapType):
        return contains_stream(descriptor.value.type)
    return False


def generate(
    fields: Sequence[FieldDescriptor],
    root: AccessPath = AccessPath("params"),
) -> list[str]:
    """Emit conversion statements for *fields*, members of the dict at *root*.

    Args:
        fields: Members in declaration order.
        root: Path of the dictionary holding the members.

    Returns:
        Source lines indented relative to the command body (no base indent).

    Example::

        >>> generate(create_widget.input_fields)
        ['if params.get("icon") is not None:',
         '    params["icon"] = rt.read_blob(params["icon"], "icon")']
    """
    lines: list[str] = []
    for field in fields:
        if not contains_special(field.type):
            continue
        lines.extend(_value_lines(field.type, root.key(field.name), root.lookup(field.name)))
    return lines


def _value_lines(descriptor: TypeDescriptor, target: AccessPath, probe: str) -> list[str]:
    """Lines converting the value at *target*; *probe* reads it without raising."""
    expr = target.expression
    label = str(target.label)

    if isinstance(descriptor, BlobType):
        reader = "rt.stream_blob" if descriptor.streaming else "rt.read_blob"
        return [
            f"if {probe} is not None:",
            f"{INDENT}{expr} = {reader}({expr}, {_quote(label)})",
        ]

    if isinstance(descriptor, DocumentType):
        return [
            f"if {probe} is not None and not isinstance({expr}, str):",
            f"{INDENT}{expr} = rt.serialize_document({expr})",
        ]

    if isinstance(descriptor, StructureType):
        body = generate(descriptor.members, target)
        return [f"if isinstance({probe}, dict):"] + _indent(body)

    if isinstance(descriptor, ListType):
        element = target.element()
        body = _value_lines(descriptor.member, element, element.expression)
        return [
            f"if isinstance({probe}, list):",
            f"{INDENT}for {target.loop_var} in range(len({expr})):",
        ] + _indent(_indent(body))

    if isinstance(descriptor, MapType):
        value = target.map_value()
        body = _value_lines(descriptor.value.type, value, value.expression)
        return [
            f"if isinstance({probe}, dict):",
            f"{INDENT}for {target.key_var} in list({expr}):",
        ] + _indent(_indent(body))

    raise TypeError(f"Unknown type descriptor: {descriptor!r}")


def _indent(lines: list[str]) -> list[str]:
    return [INDENT + line for line in lines]


def _quote(text: str) -> str:
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'
