"""Filesystem helpers shared by staging and output preparation."""

from __future__ import annotations

import shutil
from pathlib import Path

from thriftgen.errors import ConfigurationError, FilesystemError


def clean_directory(directory: Path, *, option: str) -> None:
    """Create *directory* if needed and remove everything inside it."""
    if directory.is_file():
        raise ConfigurationError(
            f"{option} is a file, not a directory",
            context={"operation": "clean", "path": str(directory)},
        )
    try:
        if directory.exists():
            for child in directory.iterdir():
                if child.is_dir() and not child.is_symlink():
                    shutil.rmtree(child)
                else:
                    child.unlink()
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise FilesystemError(
            f"Unable to clean {option}.",
            hint=str(exc),
            context={"operation": "clean", "path": str(directory)},
        ) from exc
