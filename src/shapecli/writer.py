"""Write a compiled package to disk.

Nothing is written until compilation has finished in memory. Each file is
written with a temp-file-then-rename strategy (:func:`atomic_write`) so an
interrupted build never leaves a truncated module behind.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from shapecli.exceptions import OutputError
from shapecli.models import CompiledCli

logger = logging.getLogger(__name__)


def package_root(compiled: CompiledCli, output_dir: str | Path) -> Path:
    """Directory the package is written to: ``<output_dir>/<cli-name>``."""
    return Path(output_dir) / compiled.cli_name


def write_package(compiled: CompiledCli, output_dir: str | Path) -> list[Path]:
    """Write every generated file under :func:`package_root`.

    Existing files are replaced; files from an earlier build that the new
    build no longer produces are left alone.

    Returns:
        The written paths, in generation order.

    Raises:
        OutputError: If a directory cannot be created or a file cannot be
            written.
    """
    root = package_root(compiled, output_dir)
    written: list[Path] = []
    for generated in compiled.files:
        target = root / generated.path
        try:
            atomic_write(target, generated.content)
        except OSError as exc:
            raise OutputError(f"Cannot write {target}: {exc.strerror or exc}") from exc
        logger.debug("Wrote %s (%d bytes)", target, len(generated.content))
        written.append(target)
    return written


def atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure the
    temp file is cleaned up.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
            newline="\n",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise
