"""Resolution and local caching of a compiler binary named by artifact coordinate."""

from __future__ import annotations

import os
import shutil
import stat
import sys
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from thriftgen.errors import ConfigurationError, FilesystemError, ResolutionError
from thriftgen.models import DEFAULT_ARTIFACT_TYPE, ArtifactCoordinate
from thriftgen.observability import StructuredLogger

WINDOWS_EXECUTABLE_SUFFIX = ".exe"


class BinaryArtifactResolver(Protocol):
    def resolve(self, coordinate: ArtifactCoordinate) -> Sequence[Path]:
        """Return local files for the coordinate; empty when nothing was found."""


@dataclass(frozen=True, slots=True)
class LocalRepositoryResolver:
    """Looks coordinates up in a Maven-layout repository on disk."""

    root: Path

    def resolve(self, coordinate: ArtifactCoordinate) -> Sequence[Path]:
        file_name = f"{coordinate.artifact_id}-{coordinate.version}"
        if coordinate.classifier:
            file_name += f"-{coordinate.classifier}"
        file_name += f".{coordinate.type}"
        candidate = (
            self.root.joinpath(*coordinate.group_id.split("."))
            / coordinate.artifact_id
            / coordinate.version
            / file_name
        )
        return (candidate,) if candidate.is_file() else ()


def parse_coordinate(spec: str) -> ArtifactCoordinate:
    parts = spec.split(":")
    if len(parts) < 3 or len(parts) > 5 or not all(parts[:3]):
        raise ConfigurationError(
            "Invalid artifact specification format, "
            "expected: groupId:artifactId:version[:type[:classifier]], "
            f"actual: {spec}",
            context={"operation": "resolve_binary", "artifact": spec},
        )
    artifact_type = parts[3] if len(parts) >= 4 and parts[3] else DEFAULT_ARTIFACT_TYPE
    classifier = parts[4] if len(parts) == 5 and parts[4] else None
    return ArtifactCoordinate(
        group_id=parts[0],
        artifact_id=parts[1],
        version=parts[2],
        type=artifact_type,
        classifier=classifier,
    )


def is_windows(platform: str | None = None) -> bool:
    return (platform or sys.platform).startswith(("win", "cygwin"))


def executable_name(file_name: str, *, platform: str | None = None) -> str:
    """Append ``.exe`` on Windows hosts when the name lacks it."""
    if is_windows(platform) and not file_name.endswith(WINDOWS_EXECUTABLE_SUFFIX):
        return file_name + WINDOWS_EXECUTABLE_SUFFIX
    return file_name


def resolve_compiler_binary(
    spec: str,
    *,
    resolver: BinaryArtifactResolver,
    plugin_directory: Path,
    logger: StructuredLogger | None = None,
    platform: str | None = None,
) -> Path:
    """Resolve *spec* and return an executable copy inside *plugin_directory*.

    The resolver is always consulted because the cached name derives from the
    resolved file. The copy itself is skipped when that name is already cached.
    New copies are written to a temporary sibling and renamed into place, so an
    interrupted copy never leaves a truncated binary under the cached name.
    """
    coordinate = parse_coordinate(spec)
    try:
        resolved = list(resolver.resolve(coordinate))
    except ResolutionError:
        raise
    except Exception as exc:
        raise ResolutionError(
            str(exc) or "Artifact resolution failed.",
            context={"operation": "resolve_binary", "artifact": str(coordinate)},
        ) from exc
    if not resolved:
        raise ResolutionError(
            "Unable to resolve plugin artifact",
            hint="Check the thriftArtifact coordinate and repository contents.",
            context={"operation": "resolve_binary", "artifact": str(coordinate)},
        )

    source = resolved[0]
    _debug(logger, f"Resolved artifact: {coordinate} -> {source}")
    target = plugin_directory / executable_name(source.name, platform=platform)
    if target.exists():
        _debug(logger, f"Executable file already exists: {target.absolute()}")
        return target

    try:
        plugin_directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise FilesystemError(
            f"Unable to create directory {plugin_directory}",
            hint=str(exc),
            context={"operation": "resolve_binary", "path": str(plugin_directory)},
        ) from exc
    partial = target.with_name(target.name + ".tmp")
    try:
        shutil.copyfile(source, partial)
        if not is_windows(platform):
            mode = partial.stat().st_mode
            partial.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        os.replace(partial, target)
    except OSError as exc:
        partial.unlink(missing_ok=True)
        raise FilesystemError(
            f"Unable to copy the file to {plugin_directory}",
            hint=str(exc),
            context={"operation": "resolve_binary", "source": str(source)},
        ) from exc

    _debug(logger, f"Executable file: {target.absolute()}")
    return target


def _debug(logger: StructuredLogger | None, message: str) -> None:
    if logger is not None:
        logger.log(
            operation="resolve_binary",
            scope=None,
            phase="resolve",
            message=message,
            level="debug",
        )
