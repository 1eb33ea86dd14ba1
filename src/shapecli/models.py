"""Canonical Pydantic models shared across all shapecli modules.

This is the single source of truth for data shapes in the project. Every other
module imports from here rather than defining its own models. The models fall
into four groups:

**Shape-graph models** -- produced by the resolver and extractor, consumed by
the generators:
    :class:`ShapeRef`, the :data:`TypeDescriptor` variants
    (:class:`PrimitiveType`, :class:`BlobType`, :class:`ListType`,
    :class:`MapType`, :class:`StructureType`, :class:`DocumentType`),
    :class:`FieldDescriptor`, :class:`OperationDescriptor` and
    :class:`ServiceDescriptor`.

**Build inputs** -- :class:`ClientPackage` (read from ``smithy-build.json``)
and :class:`GeneratorSettings` (the merged invocation settings).

**Command surface** -- :class:`FlagSpec` and :class:`CommandSpec`, the
flattened projections of one operation.

**Build outputs** -- :class:`CliMeta`, :class:`RenderedCli`,
:class:`GeneratedFile` and :class:`CompiledCli`.

Shape-graph models are frozen: they are built once per compilation from the
immutable model document and never mutated afterwards.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from shapecli.exceptions import SchemaError


# --- Shape references ---


class ShapeRef(BaseModel):
    """A ``namespace#Name`` shape identifier.

    Equality and hashing are structural, so refs can be stored in sets
    (the resolver's cycle guard relies on this).

    Example::

        >>> ref = ShapeRef.parse("example.widgets#CreateWidget")
        >>> ref.namespace, ref.name
        ('example.widgets', 'CreateWidget')
        >>> str(ref)
        'example.widgets#CreateWidget'
    """

    model_config = ConfigDict(frozen=True)

    namespace: str
    name: str

    @classmethod
    def parse(cls, shape_id: str) -> ShapeRef:
        """Split an absolute shape id into a :class:`ShapeRef`.

        Member suffixes (``ns#Shape$member``) are not shape references and
        are rejected along with ids that lack a namespace.

        Raises:
            SchemaError: If *shape_id* is not of the form ``namespace#Name``.
        """
        namespace, sep, name = shape_id.partition("#")
        if not sep or not namespace or not name or "$" in name:
            raise SchemaError(f"Invalid shape id: {shape_id!r}")
        return cls(namespace=namespace, name=name)

    def __str__(self) -> str:
        return f"{self.namespace}#{self.name}"


# --- Type descriptors ---


class PrimitiveType(BaseModel):
    """A scalar prelude type; ``name`` is the lower-cased prelude shape name."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["primitive"] = "primitive"
    name: str


class BlobType(BaseModel):
    """Binary payload. Streaming blobs are handed to the client as open files."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["blob"] = "blob"
    streaming: bool = False


class ListType(BaseModel):
    """A list whose elements all share one member type."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["list"] = "list"
    member: TypeDescriptor


class MapType(BaseModel):
    """A string-keyed map. Key and value are fields so they keep their documentation."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["map"] = "map"
    key: FieldDescriptor
    value: FieldDescriptor


class StructureType(BaseModel):
    """A structure; ``members`` keeps the declaration order of the model."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["structure"] = "structure"
    members: tuple[FieldDescriptor, ...] = ()

    def member(self, name: str) -> FieldDescriptor:
        """Return the member called *name*.

        Raises:
            KeyError: If the structure has no such member.
        """
        for field in self.members:
            if field.name == name:
                return field
        raise KeyError(name)


class DocumentType(BaseModel):
    """An untyped JSON value."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["document"] = "document"


TypeDescriptor = Annotated[
    Union[PrimitiveType, BlobType, ListType, MapType, StructureType, DocumentType],
    Field(discriminator="kind"),
]
"""Closed tagged union over every type a member can resolve to."""


class FieldDescriptor(BaseModel):
    """A named slot in a structure (or a map's key/value) with its traits applied.

    ``is_payload`` marks a member bound to the HTTP body (``@httpPayload``),
    which is where streaming blobs normally live.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    type: TypeDescriptor
    required: bool = False
    documentation: str = ""
    is_payload: bool = False


ListType.model_rebuild()
MapType.model_rebuild()
StructureType.model_rebuild()
FieldDescriptor.model_rebuild()


# --- Operations ---


class OperationDescriptor(BaseModel):
    """One operation of the service, with its input/output trees resolved.

    Each operation becomes exactly one subcommand of the generated CLI.
    ``input`` and ``output`` are ``None`` when the operation declares no
    input or output shape.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    route: str
    method: str = "POST"
    documentation: str = ""
    traits: dict[str, Any] = Field(default_factory=dict)
    input: Optional[StructureType] = None
    input_shape: Optional[str] = None
    output: Optional[StructureType] = None
    output_shape: Optional[str] = None
    auth_exempt: bool = False

    @property
    def input_fields(self) -> tuple[FieldDescriptor, ...]:
        """Top-level input members in declaration order (empty without input)."""
        return self.input.members if self.input is not None else ()


class ServiceDescriptor(BaseModel):
    """The root service shape with its operations in declared order."""

    model_config = ConfigDict(frozen=True)

    ref: ShapeRef
    version: Optional[str] = None
    documentation: str = ""
    requires_auth: bool = False
    operations: tuple[OperationDescriptor, ...] = ()

    @property
    def name(self) -> str:
        return self.ref.name


# --- Command surface ---


class FlagSpec(BaseModel):
    """One ``--flag`` of a generated subcommand.

    ``parser`` names the value contract enforced when the flag is parsed
    (see :mod:`shapecli.runtime`): ``integer``, ``float``, ``boolean``,
    ``file`` (an existing path), ``document`` (JSON text or ``@file``, later
    re-serialised), ``json`` (JSON text or ``@file``) or ``""`` for plain
    strings. ``multiple`` flags may be repeated and collect a list.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    python_name: str
    placeholder: str
    required: bool = False
    parser: str = ""
    multiple: bool = False
    description: str = ""

    @property
    def flag(self) -> str:
        return f"--{self.name}"

    @property
    def usage(self) -> str:
        """``--name <name>`` for required flags, ``[--name <name>]`` otherwise."""
        text = f"{self.flag} {self.placeholder}"
        return text if self.required else f"[{text}]"


class CommandSpec(BaseModel):
    """Every flattened projection of one operation's input tree.

    Built by :func:`~shapecli.generator.params.build_command_spec`; the
    renderer substitutes these values into templates without recomputing
    any of them.
    """

    model_config = ConfigDict(frozen=True)

    operation: OperationDescriptor
    requires_auth: bool = False
    flags: tuple[FlagSpec, ...] = ()
    required_paths: tuple[str, ...] = ()
    doc_lines: tuple[str, ...] = ()
    cli_example: str = ""
    mixed_example: str = ""
    json_example: str = ""
    handling_lines: tuple[str, ...] = ()
    closes_streams: bool = False


# --- Build inputs ---


class ClientPackage(BaseModel):
    """The generated client library the CLI will call.

    ``module`` and ``version`` come from the selected plugin entry in
    ``smithy-build.json``. ``requirement`` is what goes into the generated
    package's dependencies: a local path is turned into a PEP 508 direct
    reference, anything else is used verbatim.
    """

    module: str
    version: str
    requirement: Optional[str] = None

    def dependency(self) -> str:
        """Return the PEP 508 dependency string for the generated ``pyproject.toml``."""
        if self.requirement:
            return self.requirement
        return f"{self.module.replace('_', '-')}=={self.version}"


class GeneratorSettings(BaseModel):
    """Effective settings for one ``shapecli build`` invocation.

    Produced by :func:`~shapecli.config.resolve_settings` from CLI flags,
    environment variables and the project-local ``shapecli.json``. Unknown
    keys in the project file are ignored.
    """

    model_config = ConfigDict(extra="ignore")

    model: Optional[str] = Field(
        default=None, description="Path, URL or '-' for the Smithy JSON AST model"
    )
    build_config: Optional[str] = Field(
        default=None, description="Path to smithy-build.json"
    )
    plugin: str = Field(
        default="python-client-codegen",
        description="Plugin entry in smithy-build.json describing the client",
    )
    service: Optional[str] = Field(
        default=None, description="Absolute shape id of the service, e.g. ns#Service"
    )
    client: Optional[str] = Field(
        default=None,
        description="Client requirement: local path or PEP 508 string",
    )
    cli_name: Optional[str] = None
    cli_description: Optional[str] = None
    cli_version: Optional[str] = Field(
        default=None, description="Defaults to the client module version"
    )
    output_dir: str = "."
    default_endpoint: str = "http://localhost:8080"


# --- Build outputs ---


class CliMeta(BaseModel):
    """Program-level values substituted into the generated package."""

    model_config = ConfigDict(frozen=True)

    cli_name: str
    package_name: str
    description: str
    version: str
    service_id: str
    client_module: str
    client_class: str
    client_dependency: str
    default_endpoint: str = "http://localhost:8080"
    generator_version: str = ""

    @property
    def endpoint_env(self) -> str:
        """Environment variable overriding the endpoint, e.g. ``WIDGET_CLI_ENDPOINT``."""
        return self.cli_name.upper().replace("-", "_") + "_ENDPOINT"


class RenderedCli(BaseModel):
    """Rendered fragments of a generated program, in output order."""

    model_config = ConfigDict(frozen=True)

    package_name: str
    header: str
    commands: tuple[str, ...] = ()
    footer: str
    pyproject: str
    init: str
    main: str

    @property
    def cli_source(self) -> str:
        return self.header + "".join(self.commands) + self.footer

    def files(self) -> tuple[GeneratedFile, ...]:
        """The package files, relative to the package root."""
        src = f"src/{self.package_name}"
        return (
            GeneratedFile(path="pyproject.toml", content=self.pyproject),
            GeneratedFile(path=f"{src}/__init__.py", content=self.init),
            GeneratedFile(path=f"{src}/__main__.py", content=self.main),
            GeneratedFile(path=f"{src}/cli.py", content=self.cli_source),
        )


class GeneratedFile(BaseModel):
    """A file of the generated package, relative to the package root."""

    model_config = ConfigDict(frozen=True)

    path: str
    content: str


class CompiledCli(BaseModel):
    """Everything a compilation produces, held in memory until written."""

    model_config = ConfigDict(frozen=True)

    cli_name: str
    package_name: str
    service: ServiceDescriptor
    files: tuple[GeneratedFile, ...]

    def file(self, path: str) -> GeneratedFile:
        """Return the generated file at *path*.

        Raises:
            KeyError: If no file was generated at that path.
        """
        for generated in self.files:
            if generated.path == path:
                return generated
        raise KeyError(path)
