"""Inspect commands -- examine what a model would compile to.

Provides the ``shapecli inspect`` sub-command group with read-only
commands:

* ``inspect operations`` -- every operation with its HTTP binding, input
  shape and whether the generated command needs ``--token``.
* ``inspect params <Operation>`` -- the flags, required-field paths and
  parameter documentation of one generated command.

Both resolve the model and service through the same settings chain as
``shapecli build``. Nothing is generated or written.
"""

from __future__ import annotations

from typing import Optional

import typer

from shapecli.commands import reporting_errors
from shapecli.exceptions import InvalidUsageError
from shapecli.models import ServiceDescriptor

inspect_app = typer.Typer(no_args_is_help=True)


def _load_service(model: Optional[str], service: Optional[str]) -> ServiceDescriptor:
    """Load, validate and extract the service named by flags or settings.

    Raises:
        InvalidUsageError: When no model is configured.
    """
    from shapecli.compiler import find_service_id
    from shapecli.config import resolve_settings
    from shapecli.parser import extract_service, load_model, validate_model

    settings = resolve_settings({"model": model, "service": service})
    if not settings.model:
        raise InvalidUsageError("Missing --model (or set it in shapecli.json / SHAPECLI_MODEL).")

    raw = load_model(settings.model)
    validate_model(raw)
    return extract_service(raw, settings.service or find_service_id(raw))


@inspect_app.command("operations")
def inspect_operations(
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Smithy JSON AST model."),
    service: Optional[str] = typer.Option(None, "--service", "-s", help="Service shape id."),
) -> None:
    """List the operations of the service.

    Example::

        shapecli inspect operations -m model.json
    """
    from shapecli.generator.auth import bearer_auth_policy
    from shapecli.output import get_output

    with reporting_errors():
        descriptor = _load_service(model, service)

    policy = bearer_auth_policy(descriptor)
    headers = ["Operation", "Method", "Route", "Input", "Auth"]
    rows = [
        [
            op.name,
            op.method,
            op.route,
            op.input_shape or "-",
            "token" if policy(op) else "",
        ]
        for op in descriptor.operations
    ]
    get_output().print_table(
        headers, rows, title=f"{descriptor.name} -- Operations ({len(rows)})"
    )


@inspect_app.command("params")
def inspect_params(
    operation: str = typer.Argument(..., help="Operation name, e.g. CreateWidget."),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Smithy JSON AST model."),
    service: Optional[str] = typer.Option(None, "--service", "-s", help="Service shape id."),
) -> None:
    """Show the flags and required fields of one generated command.

    With ``--json`` the same information is printed as a single object.

    Example::

        shapecli inspect params CreateWidget -m model.json
    """
    from shapecli.generator.auth import bearer_auth_policy
    from shapecli.generator.params import build_command_spec
    from shapecli.output import OutputFormat, get_output

    with reporting_errors():
        descriptor = _load_service(model, service)
        matches = [op for op in descriptor.operations if op.name == operation]
        if not matches:
            names = ", ".join(op.name for op in descriptor.operations) or "none"
            raise InvalidUsageError(f"Unknown operation {operation!r}. Available: {names}")

    op = matches[0]
    spec = build_command_spec(op, "<cli>", bearer_auth_policy(descriptor)(op))
    output = get_output()

    if output.format == OutputFormat.JSON:
        output.print_json({
            "operation": op.name,
            "flags": [
                {
                    "flag": flag.flag,
                    "placeholder": flag.placeholder,
                    "required": flag.required,
                    "parser": flag.parser or "string",
                    "multiple": flag.multiple,
                }
                for flag in spec.flags
            ],
            "required": list(spec.required_paths),
        })
        return

    output.print_table(
        ["Flag", "Placeholder", "Required", "Parser"],
        [
            [
                flag.flag,
                flag.placeholder,
                "yes" if flag.required else "",
                flag.parser or "string",
            ]
            for flag in spec.flags
        ],
        title=f"{op.name} -- Flags",
    )
    output.print_data("")
    output.print_data("Required: " + (", ".join(spec.required_paths) or "-"))
    if spec.doc_lines:
        output.print_data("")
        output.print_data("Parameters:")
        for line in spec.doc_lines:
            output.print_data(line)
