"""Build command -- compile a Smithy model into a pip-installable CLI package.

``shapecli build`` loads the model and ``smithy-build.json``, compiles the
whole package in memory, and only then writes it under
``<output>/<cli-name>/``::

    <cli-name>/
        pyproject.toml
        src/<pkg_name>/
            __init__.py
            __main__.py
            cli.py          # one Typer command per operation

``--dry-run`` prints the files instead of writing them.
"""

from __future__ import annotations

from typing import Optional

import typer

from shapecli.commands import reporting_errors
from shapecli.exceptions import InvalidUsageError
from shapecli.models import CompiledCli, GeneratorSettings


def build_command(
    model: Optional[str] = typer.Option(
        None, "--model", "-m",
        help="Smithy JSON AST model: file path, URL, or '-' for stdin.",
    ),
    build_config: Optional[str] = typer.Option(
        None, "--build-config", "-b",
        help="Path to the smithy-build.json that generated the client.",
    ),
    plugin: Optional[str] = typer.Option(
        None, "--plugin",
        help="Plugin entry in smithy-build.json. [default: python-client-codegen]",
    ),
    service: Optional[str] = typer.Option(
        None, "--service", "-s",
        help="Service shape id (namespace#Service). Optional for single-service models.",
    ),
    client: Optional[str] = typer.Option(
        None, "--client",
        help="Client requirement for the generated package: a local path or a PEP 508 string.",
    ),
    cli_name: Optional[str] = typer.Option(
        None, "--cli-name", "-n",
        help="Name of the generated CLI (lower-cased, spaces become dashes).",
    ),
    cli_description: Optional[str] = typer.Option(
        None, "--cli-description",
        help="Help text of the generated CLI. [default: service documentation]",
    ),
    cli_version: Optional[str] = typer.Option(
        None, "--cli-version",
        help="Version of the generated package. [default: client version]",
    ),
    output_dir: Optional[str] = typer.Option(
        None, "--output", "-o",
        help="Directory to create the package in. [default: .]",
    ),
    endpoint: Optional[str] = typer.Option(
        None, "--endpoint",
        help="Default service endpoint baked into the CLI. [default: http://localhost:8080]",
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run",
        help="Print the generated files instead of writing them.",
    ),
) -> None:
    """Generate a CLI package from a Smithy model.

    Settings not given on the command line are read from the
    ``SHAPECLI_*`` environment variables and then from ``./shapecli.json``.

    Example:
        ::

            shapecli build -m model.json -b smithy-build.json -n widget-cli
            pip install ./widget-cli
    """
    from shapecli.compiler import client_package, compile_service
    from shapecli.config import resolve_settings
    from shapecli.output import get_output, info, success, suggest
    from shapecli.parser import load_build_config, load_model, validate_model
    from shapecli.writer import package_root, write_package

    with reporting_errors():
        settings = resolve_settings({
            "model": model,
            "build_config": build_config,
            "plugin": plugin,
            "service": service,
            "client": client,
            "cli_name": cli_name,
            "cli_description": cli_description,
            "cli_version": cli_version,
            "output_dir": output_dir,
            "default_endpoint": endpoint,
        })
        model, build_config = _require(settings)
        get_output().debug(f"settings: {settings.model_dump(exclude_none=True)}")

        raw = load_model(model)
        validate_model(raw)
        package = client_package(
            load_build_config(build_config, settings.plugin),
            settings.client,
        )
        compiled = compile_service(raw, settings, package)

        if dry_run:
            _preview(compiled)
            info(f"Dry run: {len(compiled.files)} file(s) not written.")
            return

        written = write_package(compiled, settings.output_dir)

    root = package_root(compiled, settings.output_dir)
    output = get_output()
    for path in written:
        output.debug(f"wrote {path}")
    success(
        f"Generated {compiled.cli_name} with "
        f"{len(compiled.service.operations)} command(s) in {root}"
    )
    suggest(f"pip install {root}")


def _require(settings: GeneratorSettings) -> tuple[str, str]:
    """Return the model and build-config locations, which must both be set."""
    model, build_config = settings.model, settings.build_config
    if not model or not build_config:
        missing = [
            flag
            for flag, value in (("--model", model), ("--build-config", build_config))
            if not value
        ]
        raise InvalidUsageError(
            "Missing " + " and ".join(missing)
            + " (or set them in shapecli.json / SHAPECLI_* environment variables)."
        )
    return model, build_config


def _preview(compiled: CompiledCli) -> None:
    from shapecli.output import get_output

    output = get_output()
    for generated in compiled.files:
        output.print_source(f"{compiled.cli_name}/{generated.path}", generated.content)

