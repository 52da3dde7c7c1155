"""Extraction of IDL files embedded in dependency archives.

The external compiler can only search plain directories, so every ``.thrift``
entry found inside a dependency archive is copied into a per-archive staging
subdirectory. Dependencies that are already directories are used in place.
"""

from __future__ import annotations

import os
import shutil
import zipfile
import zlib
from collections.abc import Callable, Iterable, Iterator
from contextlib import AbstractContextManager, contextmanager
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import IO, Protocol

from thriftgen.errors import ExtractionError, FilesystemError
from thriftgen.layout import StagingLayout
from thriftgen.models import THRIFT_FILE_SUFFIX

# Raised by zipfile while decompressing a damaged or unsupported entry.
ENTRY_READ_ERRORS = (zipfile.BadZipFile, NotImplementedError, zlib.error, EOFError)

# Project descriptors that show up among resolved dependency files but are not archives.
DESCRIPTOR_SUFFIXES = (".xml", ".pom")


class ArchiveReader(Protocol):
    def entries(self) -> Iterable[str]:
        """Return slash-separated entry names in archive order."""

    def open(self, entry: str) -> IO[bytes]:
        """Open a binary read stream for one entry."""


@dataclass(slots=True)
class ZipArchive:
    archive: zipfile.ZipFile

    def entries(self) -> Iterable[str]:
        return [info.filename for info in self.archive.infolist() if not info.is_dir()]

    def open(self, entry: str) -> IO[bytes]:
        return self.archive.open(entry)


ArchiveOpener = Callable[[Path], AbstractContextManager[ArchiveReader]]


@contextmanager
def open_zip_archive(path: Path) -> Iterator[ArchiveReader]:
    try:
        archive = zipfile.ZipFile(path)
    except (zipfile.BadZipFile, OSError) as exc:
        raise ExtractionError(
            f"{path} was not a readable artifact",
            hint="Only zip-based archives (jar, zip, war) and directories can carry thrift files.",
            context={"operation": "extract", "artifact": str(path)},
        ) from exc
    with archive:
        yield ZipArchive(archive)


def extract_dependency_thrift(
    layout: StagingLayout,
    artifact_files: Iterable[Path],
    *,
    opener: ArchiveOpener = open_zip_archive,
) -> frozenset[Path]:
    """Stage dependency IDL files and return the directories to add to the include path."""
    layout.reset()
    directories: set[Path] = set()
    for artifact in artifact_files:
        if artifact.name.endswith(DESCRIPTOR_SUFFIXES):
            continue
        if artifact.is_file():
            if not os.access(artifact, os.R_OK):
                continue
            staged = _extract_archive(layout, artifact, opener=opener)
            if staged is not None:
                directories.add(staged)
        elif artifact.is_dir():
            if _contains_thrift_files(artifact):
                directories.add(artifact.absolute())
    return frozenset(directories)


def _extract_archive(
    layout: StagingLayout,
    artifact: Path,
    *,
    opener: ArchiveOpener,
) -> Path | None:
    target_root: Path | None = None
    with opener(artifact) as archive:
        for entry in archive.entries():
            if not entry.endswith(THRIFT_FILE_SUFFIX):
                continue
            if target_root is None:
                target_root = layout.directory_for(artifact)
            destination = _destination(target_root, entry, artifact=artifact)
            try:
                destination.parent.mkdir(parents=True, exist_ok=True)
                with archive.open(entry) as source, destination.open("wb") as sink:
                    shutil.copyfileobj(source, sink)
            except ENTRY_READ_ERRORS as exc:
                raise ExtractionError(
                    f"{artifact} has an unreadable entry {entry}",
                    hint=str(exc),
                    context={"operation": "extract", "artifact": str(artifact), "entry": entry},
                ) from exc
            except OSError as exc:
                raise FilesystemError(
                    "Unable to copy thrift file out of dependency archive.",
                    hint=str(exc),
                    context={
                        "operation": "extract",
                        "artifact": str(artifact),
                        "entry": entry,
                        "destination": str(destination),
                    },
                ) from exc
    return target_root


def _destination(target_root: Path, entry: str, *, artifact: Path) -> Path:
    relative = PurePosixPath(entry)
    if relative.is_absolute() or ".." in relative.parts:
        raise ExtractionError(
            "Archive entry escapes the staging directory.",
            hint="Rebuild the dependency without absolute or parent-relative entry names.",
            context={"operation": "extract", "artifact": str(artifact), "entry": entry},
        )
    return target_root.joinpath(*relative.parts)


def _contains_thrift_files(directory: Path) -> bool:
    try:
        return any(
            child.is_file() and child.name.endswith(THRIFT_FILE_SUFFIX)
            for child in directory.iterdir()
        )
    except OSError as exc:
        raise ExtractionError(
            f"{directory} was not a readable artifact",
            hint=str(exc),
            context={"operation": "extract", "artifact": str(directory)},
        ) from exc
