"""Compile a Smithy model into a generated CLI package, entirely in memory.

The pipeline is a single synchronous pass:

1. :func:`~shapecli.parser.extractor.extract_service` resolves the service
   and its operations (cycles and unsupported shapes abort here).
2. The auth policy decides which operations need ``--token``.
3. For each operation, in declared order,
   :func:`~shapecli.generator.params.build_command_spec` computes the flags,
   required paths, docs and examples, and
   :func:`~shapecli.generator.handling.generate` the blob and document
   conversion code.
4. :func:`~shapecli.generator.renderer.render` substitutes everything into
   the templates.

Nothing touches the filesystem; :mod:`shapecli.writer` writes the result.
The same model and settings always produce byte-identical output.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Optional

from shapecli import __version__
from shapecli.exceptions import InvalidUsageError
from shapecli.generator import auth, handling, params, renderer
from shapecli.models import (
    CliMeta,
    ClientPackage,
    CompiledCli,
    GeneratorSettings,
    ServiceDescriptor,
)
from shapecli.parser.extractor import extract_service

logger = logging.getLogger(__name__)

_CLI_NAME_RE = re.compile(r"^[a-z][a-z0-9_-]*$")


def compile_service(
    model: dict[str, Any],
    settings: GeneratorSettings,
    client: ClientPackage,
    auth_policy: Optional[auth.AuthPolicy] = None,
) -> CompiledCli:
    """Compile *model* into the files of a generated CLI package.

    Args:
        model: A validated Smithy JSON AST document.
        settings: Effective settings; ``service`` may be omitted when the
            model defines exactly one service.
        client: The client library the generated program calls.
        auth_policy: Decides per operation whether a token is required.
            Defaults to the service's bearer-auth trait.

    Returns:
        The compiled package, not yet written.

    Raises:
        SchemaError: If the model cannot be resolved (missing shapes,
            cycles, unsupported types, operations without ``@http``).
        InvalidUsageError: If the service cannot be chosen or the CLI name
            is invalid.
    """
    service_id = settings.service or find_service_id(model)
    service = extract_service(model, service_id)
    logger.info("Compiling %s (%d operations)", service.ref, len(service.operations))

    cli_name = normalize_cli_name(settings.cli_name or default_cli_name(service))
    meta = CliMeta(
        cli_name=cli_name,
        package_name=cli_name.replace("-", "_"),
        description=settings.cli_description
        or service.documentation
        or f"Command-line interface for {service.name}",
        version=settings.cli_version or client.version,
        service_id=str(service.ref),
        client_module=client.module,
        client_class=f"{service.name}Client",
        client_dependency=client.dependency(),
        default_endpoint=settings.default_endpoint,
        generator_version=__version__,
    )

    policy = auth_policy or auth.bearer_auth_policy(service)
    commands = []
    for operation in service.operations:
        requires_auth = policy(operation)
        lines = handling.generate(operation.input_fields)
        commands.append(
            params.build_command_spec(operation, cli_name, requires_auth, handling_lines=lines)
        )
        logger.debug(
            "Operation %s: %d flag(s), auth=%s",
            operation.name,
            len(commands[-1].flags),
            requires_auth,
        )

    rendered = renderer.render(commands, meta)
    return CompiledCli(
        cli_name=cli_name,
        package_name=meta.package_name,
        service=service,
        files=rendered.files(),
    )


def find_service_id(model: dict[str, Any]) -> str:
    """Return the id of the model's only service shape.

    Raises:
        InvalidUsageError: If the model has no service or more than one.
    """
    services = sorted(
        shape_id
        for shape_id, shape in model.get("shapes", {}).items()
        if isinstance(shape, dict) and shape.get("type") == "service"
    )
    if len(services) == 1:
        return services[0]
    if not services:
        raise InvalidUsageError("The model defines no service shape.")
    raise InvalidUsageError(
        "The model defines several services; choose one with --service: "
        + ", ".join(services)
    )


def default_cli_name(service: ServiceDescriptor) -> str:
    """``WidgetService`` -> ``widget-service``."""
    return params.sanitize_param_name(service.name).replace("_", "-")


def normalize_cli_name(name: str) -> str:
    """Lower-case *name* and turn spaces into dashes.

    Raises:
        InvalidUsageError: If the result is not usable as both a command
            name and (with dashes as underscores) a Python package name.
    """
    normalized = "-".join(name.strip().lower().split())
    if not _CLI_NAME_RE.match(normalized):
        raise InvalidUsageError(
            f"Invalid CLI name {name!r}: use letters, digits, '-' and '_', "
            "starting with a letter."
        )
    return normalized


def client_package(
    build: ClientPackage,
    requirement: Optional[str] = None,
) -> ClientPackage:
    """Attach the ``--client`` requirement to the build-config client.

    A path to an existing directory becomes a PEP 508 direct reference
    (``name @ file:///...``); any other value is used verbatim.
    """
    if not requirement:
        return build
    path = Path(requirement)
    if path.is_dir():
        distribution = build.module.replace("_", "-")
        requirement = f"{distribution} @ {path.resolve().as_uri()}"
    return build.model_copy(update={"requirement": requirement})
