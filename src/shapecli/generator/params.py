"""Project an operation's input tree onto a command-line surface.

This module turns the resolved input members of an
:class:`~shapecli.models.OperationDescriptor` into everything the generated
subcommand needs besides its handling code:

* :func:`build_flags` -- one :class:`~shapecli.models.FlagSpec` per
  top-level member, plus ``--token`` when the operation needs auth.
* :func:`required_paths` -- every required member reachable from the root,
  flattened into :class:`~shapecli.generator.paths.FieldPath` strings.
* :func:`param_doc_lines` -- indented parameter documentation for ``--help``.
* :func:`cli_usage_example`, :func:`mixed_usage_example` and
  :func:`json_file_example` -- illustrative invocations.

All projections keep the model's declaration order at every level.
:func:`build_command_spec` bundles them into a
:class:`~shapecli.models.CommandSpec` for the renderer.

**Flag parsers** (see :mod:`shapecli.runtime` for their runtime side):

* integer kinds -> ``integer``; float kinds -> ``float``; ``boolean`` ->
  ``boolean``;
* blobs -> ``file``; documents -> ``document``;
* structures, maps and lists of compound members -> ``json``;
* lists of scalars or blobs are repeatable flags whose elements use the
  member's parser.
"""

from __future__ import annotations

import builtins
import json
import keyword
import re
from typing import Any, Iterable, Sequence

from shapecli.exceptions import SchemaError
from shapecli.generator.handling import contains_stream
from shapecli.generator.paths import FieldPath
from shapecli.models import (
    BlobType,
    CommandSpec,
    DocumentType,
    FieldDescriptor,
    FlagSpec,
    ListType,
    MapType,
    OperationDescriptor,
    PrimitiveType,
    StructureType,
    TypeDescriptor,
)

INTEGER_KINDS = frozenset({"byte", "short", "integer", "long", "biginteger", "intenum"})
FLOAT_KINDS = frozenset({"float", "double", "bigdecimal"})

TOKEN_FLAG = FlagSpec(
    name="token",
    python_name="auth_token",
    placeholder="<token>",
    required=True,
    description="Bearer token for authentication",
)

# Names the generated command function uses, builtins included.
_RESERVED_NAMES = frozenset(
    {"params_file", "auth_token", "params", "rt", "typer", "models", "os", "client", "request", "result", "exc"}
) | frozenset(name for name in dir(builtins) if not name.startswith("_"))

BLOB_EXAMPLE_PATH = "./path/to/file.bin"
DOCUMENT_EXAMPLE = {"example_key": "example_value", "version": "1.0.0"}


# ---------------------------------------------------------------------------
# Type helpers
# ---------------------------------------------------------------------------


def is_compound(descriptor: TypeDescriptor) -> bool:
    """Structures, lists, maps and blobs get their own documentation lines."""
    return isinstance(descriptor, (StructureType, ListType, MapType, BlobType))


def type_label(descriptor: TypeDescriptor) -> str:
    """Short type name used in ``<...>`` placeholders of the parameter docs."""
    if isinstance(descriptor, PrimitiveType):
        return descriptor.name
    return descriptor.kind


def scalar_parser(descriptor: TypeDescriptor) -> str:
    """The parser contract for a single (non-repeated) value of *descriptor*."""
    if isinstance(descriptor, PrimitiveType):
        if descriptor.name in INTEGER_KINDS:
            return "integer"
        if descriptor.name in FLOAT_KINDS:
            return "float"
        if descriptor.name == "boolean":
            return "boolean"
        return ""
    if isinstance(descriptor, BlobType):
        return "file"
    if isinstance(descriptor, DocumentType):
        return "document"
    if isinstance(descriptor, (StructureType, MapType, ListType)):
        return "json"
    raise TypeError(f"Unknown type descriptor: {descriptor!r}")


# ---------------------------------------------------------------------------
# Name sanitisation
# ---------------------------------------------------------------------------

_INVALID_IDENT_RE = re.compile(r"[^a-zA-Z0-9_]")


def sanitize_param_name(name: str) -> str:
    """Convert a Smithy member name to a valid Python identifier.

    CamelCase boundaries become underscores, the result is lowercased,
    separators and invalid characters become underscores, a leading digit
    gets an underscore prefix and Python keywords get a trailing underscore.

    Example::

        >>> sanitize_param_name("widgetId")
        'widget_id'
        >>> sanitize_param_name("class")
        'class_'
    """
    result = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", name)
    result = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", result)
    result = result.lower()
    result = result.replace("-", "_").replace(".", "_")
    result = _INVALID_IDENT_RE.sub("_", result)
    result = re.sub(r"_+", "_", result).strip("_")
    if not result:
        result = "param"
    if result[0].isdigit():
        result = f"_{result}"
    if keyword.iskeyword(result):
        result = f"{result}_"
    return result


def operation_method_name(operation_name: str) -> str:
    """The snake_case client method for an operation (``CreateWidget`` -> ``create_widget``)."""
    return sanitize_param_name(operation_name)


# ---------------------------------------------------------------------------
# Flags
# ---------------------------------------------------------------------------


def build_flags(fields: Sequence[FieldDescriptor], requires_auth: bool) -> list[FlagSpec]:
    """Build one flag per top-level field, in declaration order.

    Args:
        fields: The operation's top-level input members.
        requires_auth: Append the ``--token`` flag.

    Returns:
        The flags; ``--token`` (if any) is last.
    """
    flags: list[FlagSpec] = []
    used: set[str] = set(_RESERVED_NAMES)

    for field in fields:
        python_name = sanitize_param_name(field.name)
        while python_name in used:
            python_name = f"{python_name}_"
        used.add(python_name)

        descriptor = field.type
        if isinstance(descriptor, ListType) and _is_repeatable(descriptor.member):
            multiple = True
            parser = scalar_parser(descriptor.member)
        else:
            multiple = False
            parser = scalar_parser(descriptor)

        flags.append(
            FlagSpec(
                name=field.name,
                python_name=python_name,
                placeholder=_placeholder(field),
                required=field.required,
                parser=parser,
                multiple=multiple,
                description=_flag_description(field),
            )
        )

    if requires_auth:
        flags.append(TOKEN_FLAG)
    return flags


def _is_repeatable(member: TypeDescriptor) -> bool:
    """Scalars and file paths can be given one per repeated flag."""
    return isinstance(member, BlobType) or not is_compound(member)


def _placeholder(field: FieldDescriptor) -> str:
    if isinstance(field.type, BlobType):
        return "<file-path>"
    if isinstance(field.type, ListType):
        return f"<{field.name}...>"
    return f"<{field.name}>"


def _flag_description(field: FieldDescriptor) -> str:
    text = field.documentation or f"{field.name} parameter"
    if isinstance(field.type, BlobType):
        text += " (file path, supports streaming)" if field.type.streaming else " (file path)"
    elif isinstance(field.type, DocumentType):
        text += " (JSON or @file.json)"
    elif isinstance(field.type, ListType) and isinstance(field.type.member, BlobType):
        text += " (file paths, repeat the flag)"
    elif scalar_parser(field.type) == "json":
        text += " (JSON or @file.json)"
    if field.required:
        text += " [required]"
    return text


# ---------------------------------------------------------------------------
# Required paths
# ---------------------------------------------------------------------------


def required_paths(fields: Sequence[FieldDescriptor], requires_auth: bool) -> list[str]:
    """Flatten every required field reachable from the root into path strings.

    Depth-first, declaration order at each level. A structure member
    contributes ``parent.name``; members reached through a list element sit
    under ``parent.name[]`` and those reached through a map value under
    ``parent.name{value}``.

    Example::

        >>> required_paths(create_widget.input_fields, requires_auth=True)
        ['name', 'parts[].sku', 'token']
    """
    paths: list[str] = []
    for field in fields:
        _collect_required(field, FieldPath(), paths)
    if requires_auth:
        paths.append("token")
    return paths


def _collect_required(field: FieldDescriptor, parent: FieldPath, out: list[str]) -> None:
    path = parent.member(field.name)
    if field.required:
        out.append(str(path))
    _collect_nested(field.type, path, out)


def _collect_nested(descriptor: TypeDescriptor, path: FieldPath, out: list[str]) -> None:
    if isinstance(descriptor, StructureType):
        for member in descriptor.members:
            _collect_required(member, path, out)
    elif isinstance(descriptor, ListType):
        _collect_nested(descriptor.member, path.element(), out)
    elif isinstance(descriptor, MapType):
        _collect_nested(descriptor.value.type, path.value(), out)


# ---------------------------------------------------------------------------
# Parameter documentation
# ---------------------------------------------------------------------------


def param_doc_lines(
    fields: Sequence[FieldDescriptor],
    requires_auth: bool,
    indent: int = 4,
) -> list[str]:
    """Render indented documentation lines for every field at every depth.

    Top-level lines are prefixed with ``--``; nested lines are indented by
    four more spaces per level. Each line reads
    ``name <type> (required|optional) : documentation``.

    Example output::

        --name <string> (required) : Display name
        --parts (optional) : Components
            sku <string> (required)
            quantity <integer> (optional)
        --token <string> (required) : Bearer token for authentication
    """
    lines: list[str] = []
    for field in fields:
        lines.extend(_field_lines(field, indent, top_level=True))
    if requires_auth:
        lines.append(
            f"{' ' * indent}--token <string> (required) : Bearer token for authentication"
        )
    return lines


def _field_lines(field: FieldDescriptor, indent: int, top_level: bool = False) -> list[str]:
    prefix = "--" if top_level else ""
    req = "(required)" if field.required else "(optional)"
    descriptor = field.type

    if isinstance(descriptor, BlobType):
        streaming = " (streaming)" if descriptor.streaming else ""
        head = f"{field.name} <file-path>{streaming} {req}"
    elif isinstance(descriptor, ListType) and not is_compound(descriptor.member):
        head = f"{field.name} [<{type_label(descriptor.member)}>] {req}"
    elif isinstance(descriptor, (StructureType, ListType, MapType)):
        head = f"{field.name} {req}"
    else:
        head = f"{field.name} <{type_label(descriptor)}> {req}"

    lines = [_doc_line(indent, prefix + head, field.documentation)]
    lines.extend(_child_lines(descriptor, indent + 4))
    return lines


def _child_lines(descriptor: TypeDescriptor, indent: int) -> list[str]:
    if isinstance(descriptor, StructureType):
        lines: list[str] = []
        for member in descriptor.members:
            lines.extend(_field_lines(member, indent))
        return lines

    if isinstance(descriptor, ListType):
        member = descriptor.member
        if isinstance(member, StructureType):
            return _child_lines(member, indent)
        if is_compound(member):
            return _item_lines("item", member, "", indent)
        return []

    if isinstance(descriptor, MapType):
        key, value = descriptor.key, descriptor.value
        lines = [_doc_line(indent, f"key <{type_label(key.type)}>", key.documentation)]
        if is_compound(value.type):
            req = "(required)" if value.required else "(optional)"
            lines.append(_doc_line(indent, f"value {req}", value.documentation))
            lines.extend(_child_lines(value.type, indent + 4))
        else:
            lines.append(
                _doc_line(indent, f"value <{type_label(value.type)}>", value.documentation)
            )
        return lines

    return []


def _item_lines(name: str, descriptor: TypeDescriptor, doc: str, indent: int) -> list[str]:
    """Document an unnamed list element that is itself a blob, list or map."""
    if isinstance(descriptor, BlobType):
        streaming = " (streaming)" if descriptor.streaming else ""
        return [_doc_line(indent, f"{name} <file-path>{streaming}", doc)]
    if isinstance(descriptor, ListType) and not is_compound(descriptor.member):
        return [_doc_line(indent, f"{name} [<{type_label(descriptor.member)}>]", doc)]
    return [_doc_line(indent, name, doc)] + _child_lines(descriptor, indent + 4)


def _doc_line(indent: int, head: str, documentation: str) -> str:
    line = f"{' ' * indent}{head}"
    if documentation:
        line += f" : {documentation}"
    return line


# ---------------------------------------------------------------------------
# Usage examples
# ---------------------------------------------------------------------------

_CONTINUATION = " \\\n     "


def cli_usage_example(
    operation_name: str,
    fields: Sequence[FieldDescriptor],
    cli_name: str,
    requires_auth: bool,
) -> str:
    """Example using flags only: every required flag, then the first optional one."""
    required = [f for f in fields if f.required]
    optional = [f for f in fields if not f.required]

    example = f"$ {cli_name} {operation_name}"
    for field in required:
        example += f"{_CONTINUATION}--{field.name} {_example_placeholder(field)}"
    if requires_auth:
        example += f"{_CONTINUATION}--token <string>"
    if optional:
        field = optional[0]
        example += f"{_CONTINUATION}[--{field.name} {_example_placeholder(field)}]"
    return example


def mixed_usage_example(
    operation_name: str,
    fields: Sequence[FieldDescriptor],
    cli_name: str,
    requires_auth: bool,
) -> str:
    """Example combining a ``@params.json`` file with the first two flags."""
    example = f"$ {cli_name} {operation_name} @params.json"
    for field in list(fields)[:2]:
        if isinstance(field.type, BlobType):
            placeholder = "<file-path>"
        elif isinstance(field.type, DocumentType):
            placeholder = "<json|@file.json>"
        else:
            placeholder = "<value>"
        example += f" --{field.name} {placeholder}"
    if requires_auth:
        example += " --token <value>"
    return example


def json_file_example(fields: Sequence[FieldDescriptor], requires_auth: bool) -> str:
    """Example parameter file with a representative value for every top-level field."""
    data = example_values(fields, requires_auth)
    return "JSON file format (params.json):\n" + json.dumps(data, indent=2)


def example_values(fields: Iterable[FieldDescriptor], requires_auth: bool) -> dict[str, Any]:
    """The object shown by :func:`json_file_example`, in declaration order."""
    data: dict[str, Any] = {}
    for field in fields:
        descriptor = field.type
        if isinstance(descriptor, BlobType):
            data[field.name] = BLOB_EXAMPLE_PATH
        elif isinstance(descriptor, DocumentType):
            data[field.name] = dict(DOCUMENT_EXAMPLE)
        elif isinstance(descriptor, PrimitiveType) and descriptor.name in INTEGER_KINDS:
            data[field.name] = 123
        elif isinstance(descriptor, ListType):
            data[field.name] = ["item1", "item2"]
        else:
            data[field.name] = f"example_{field.name}"
    if requires_auth:
        data["token"] = "your_bearer_token_here"
    return data


def _example_placeholder(field: FieldDescriptor) -> str:
    if isinstance(field.type, BlobType):
        return "<file-path>"
    if isinstance(field.type, ListType):
        return f"<{field.name}...>"
    if isinstance(field.type, DocumentType):
        return "<json|@file.json>"
    return f"<{field.name}>"


# ---------------------------------------------------------------------------
# Bundle
# ---------------------------------------------------------------------------


def build_command_spec(
    operation: OperationDescriptor,
    cli_name: str,
    requires_auth: bool,
    handling_lines: Sequence[str] = (),
) -> CommandSpec:
    """Compute every projection of *operation* for the renderer.

    Args:
        operation: The operation to project.
        cli_name: Command prefix used in the usage examples.
        requires_auth: Result of the auth policy for this operation.
        handling_lines: Output of
            :func:`~shapecli.generator.handling.generate`.

    Raises:
        SchemaError: If an authenticated operation has an input member
            named like the credential flag.
    """
    fields = operation.input_fields
    if requires_auth and any(f.name == TOKEN_FLAG.name for f in fields):
        raise SchemaError(
            f"Operation {operation.name} has an input member named '{TOKEN_FLAG.name}', "
            f"which collides with the {TOKEN_FLAG.flag} authentication flag"
        )
    return CommandSpec(
        operation=operation,
        requires_auth=requires_auth,
        flags=tuple(build_flags(fields, requires_auth)),
        required_paths=tuple(required_paths(fields, requires_auth)),
        doc_lines=tuple(param_doc_lines(fields, requires_auth)),
        cli_example=cli_usage_example(operation.name, fields, cli_name, requires_auth),
        mixed_example=mixed_usage_example(operation.name, fields, cli_name, requires_auth),
        json_example=json_file_example(fields, requires_auth),
        handling_lines=tuple(handling_lines),
        closes_streams=any(contains_stream(f.type) for f in fields),
    )
