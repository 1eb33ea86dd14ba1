"""Render the generated program from its projections.

Rendering is substitution and concatenation only: every value placed into
a template was computed earlier by :mod:`~shapecli.generator.params` or
:mod:`~shapecli.generator.handling`. The templates live in
``generator/templates/``:

* ``header.py.j2`` -- imports, program metadata, the command list and the
  client factory;
* ``command.py.j2`` -- one Typer command per operation, with
  ``help.txt.j2`` providing its help text;
* ``footer.py.j2`` -- the ``main()`` entry point;
* ``pyproject.toml.j2``, ``init.py.j2`` and ``main.py.j2`` -- package
  metadata and entry-point modules.

Values embedded in Python source always pass through the ``pyrepr`` filter,
and values embedded in TOML through ``tomlstr``, so documentation text can
never break the generated syntax.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Sequence

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from shapecli.generator.params import operation_method_name
from shapecli.models import CliMeta, CommandSpec, RenderedCli

TEMPLATE_DIR = Path(__file__).parent / "templates"
"""Path to the Jinja2 template directory (``generator/templates/``)."""

NOWRAP = "\b"
"""Click marker that keeps the following paragraph's line breaks."""


def render(commands: Sequence[CommandSpec], meta: CliMeta) -> RenderedCli:
    """Render every fragment of the generated package.

    Args:
        commands: One entry per operation, in declared order.
        meta: Program-level metadata.

    Returns:
        The rendered fragments; commands appear in the order given.
    """
    env = create_jinja_env()
    context: dict[str, Any] = {"meta": meta}

    function_names = _function_names(commands)
    fragments = tuple(
        _render_command(env, meta, command, function_name)
        for command, function_name in zip(commands, function_names)
    )

    header = env.get_template("header.py.j2").render(
        context,
        module_doc=_module_doc(meta),
        command_names=[command.operation.name for command in commands],
    )
    return RenderedCli(
        package_name=meta.package_name,
        header=header,
        commands=fragments,
        footer=env.get_template("footer.py.j2").render(context),
        pyproject=env.get_template("pyproject.toml.j2").render(context),
        init=env.get_template("init.py.j2").render(context),
        main=env.get_template("main.py.j2").render(context),
    )


def create_jinja_env() -> Environment:
    """Create the Jinja2 environment for the program templates.

    Block trimming and lstrip are enabled so control tags never leave blank
    lines in the generated source, and undefined variables raise instead of
    rendering as empty strings.
    """
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )
    env.filters["pyrepr"] = pyrepr
    env.filters["tomlstr"] = tomlstr
    return env


def pyrepr(value: Any) -> str:
    """Render *value* as a Python literal."""
    if isinstance(value, tuple):
        value = list(value)
    return repr(value)


def tomlstr(value: str) -> str:
    """Render *value* as a TOML basic string."""
    return json.dumps(value)


def _render_command(
    env: Environment,
    meta: CliMeta,
    command: CommandSpec,
    function_name: str,
) -> str:
    operation = command.operation
    context = {
        "meta": meta,
        "cmd": command,
        "op": operation,
        "nowrap": NOWRAP,
        "summary": operation.documentation or f"Invoke the {operation.name} operation.",
        "usage": " ".join(flag.usage for flag in command.flags),
    }
    help_text = env.get_template("help.txt.j2").render(context).rstrip("\n")

    input_class = operation.input_shape if operation.input is not None else None

    return env.get_template("command.py.j2").render(
        context,
        help_text=help_text,
        function_name=function_name,
        method_name=operation_method_name(operation.name),
        input_class=input_class,
    )


def _function_names(commands: Sequence[CommandSpec]) -> list[str]:
    names: list[str] = []
    for command in commands:
        name = f"{operation_method_name(command.operation.name)}_command"
        while name in names:
            name = f"{name}_"
        names.append(name)
    return names


def _module_doc(meta: CliMeta) -> str:
    generated_by = "shapecli"
    if meta.generator_version:
        generated_by += f" {meta.generator_version}"
    return (
        f"{meta.description}\n\n"
        f"Generated by {generated_by} from {meta.service_id}.\n"
        "Regenerate instead of editing by hand.\n"
    )
