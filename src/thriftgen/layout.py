"""Staging-directory naming for IDL files extracted from dependency archives."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from pathlib import Path

from thriftgen.errors import ConfigurationError
from thriftgen.fs import clean_directory


def truncate_path(
    archive_path: str,
    *,
    hash_dependent_paths: bool = True,
    local_repository: str | Path | None = None,
) -> str:
    """Return the layout key naming the staging subdirectory of an archive.

    With hashing enabled the key is the lowercase hex MD5 of the path string,
    which keeps staging paths short on filesystems with path length limits.
    Otherwise the path is made relative to the local repository and any drive
    prefix such as ``C:/`` is removed.
    """
    if hash_dependent_paths:
        return hashlib.md5(archive_path.encode("utf-8"), usedforsecurity=False).hexdigest()

    path = archive_path.replace("\\", "/")
    if local_repository is not None:
        repository = str(local_repository).replace("\\", "/")
        if not repository.endswith("/"):
            repository += "/"
        index = path.find(repository)
        if index != -1:
            path = path[index + len(repository) :]

    colon = path.find(":")
    if colon != -1:
        # skip the ":/" of "C:/"
        path = path[colon + 2 :]
    return path


@dataclass(frozen=True, slots=True)
class StagingLayout:
    """Maps dependency archives onto subdirectories of the staging root."""

    root: Path
    hash_dependent_paths: bool = True
    local_repository: Path | None = None

    def key_for(self, archive: Path) -> str:
        return truncate_path(
            str(archive.resolve()),
            hash_dependent_paths=self.hash_dependent_paths,
            local_repository=self.local_repository,
        )

    def directory_for(self, archive: Path) -> Path:
        key = self.key_for(archive).strip("/")
        if not key:
            raise ConfigurationError(
                "Dependency archive maps to an empty staging directory name.",
                hint="Enable hashDependentPaths or check the localRepository setting.",
                context={"operation": "layout", "archive": str(archive)},
            )
        return self.root / key

    def reset(self) -> None:
        """Remove everything below the staging root, leaving it empty."""
        clean_directory(self.root, option="temporaryThriftFileDirectory")
