"""shapecli -- Compile Smithy service models into standalone Typer CLIs.

This package reads a Smithy JSON AST model plus the ``smithy-build.json``
that produced the service's Python client, and generates a pip-installable
command-line package with one subcommand per operation. Nested structures,
lists, maps, blobs (including streaming blobs) and documents are supported
at any depth.

Typical workflow::

    shapecli build --model build/smithy/source/model/model.json \\
        --build-config smithy-build.json --cli-name widget-cli
    pip install ./widget-cli
    widget-cli CreateWidget --name gear --icon ./gear.png

Modules:
    app: Typer application and console-script entry point.
    compiler: In-memory compilation pipeline.
    models: Pydantic models shared across the entire package.
    config: Settings precedence and the project-local config file.
    runtime: Helpers imported by generated programs.
    writer: Atomic writing of the compiled package.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
