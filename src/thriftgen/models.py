"""Core typed dataclasses for compilation requests, results, and run outcomes."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

import cbor2

THRIFT_FILE_SUFFIX = ".thrift"
DEFAULT_INCLUDES = ("**/*" + THRIFT_FILE_SUFFIX,)
DEFAULT_GENERATOR = "java:hashcode"
DEFAULT_EXECUTABLE = "thrift"
DEFAULT_ARTIFACT_TYPE = "exe"

ScopeName = Literal["main", "test"]
OutcomeStatus = Literal["missing_source_root", "no_sources", "up_to_date", "compiled"]


@dataclass(frozen=True, slots=True)
class ArtifactCoordinate:
    """A ``group:artifact:version[:type[:classifier]]`` reference."""

    group_id: str
    artifact_id: str
    version: str
    type: str = DEFAULT_ARTIFACT_TYPE
    classifier: str | None = None

    def __str__(self) -> str:
        parts = [self.group_id, self.artifact_id, self.version, self.type]
        if self.classifier:
            parts.append(self.classifier)
        return ":".join(parts)


@dataclass(frozen=True, slots=True)
class CompilationRequest:
    executable: str
    generator: str
    include_path: tuple[Path, ...]
    output_directory: Path
    thrift_files: tuple[Path, ...]


@dataclass(frozen=True, slots=True)
class CompilationResult:
    exit_code: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


@dataclass(frozen=True, slots=True)
class GenerationOutcome:
    """Result of one pipeline run, exportable as a build report."""

    status: OutcomeStatus
    scope: ScopeName
    source_root: Path
    output_directory: Path
    thrift_files: tuple[Path, ...] = ()
    include_path: tuple[Path, ...] = ()
    command: tuple[str, ...] = ()
    result: CompilationResult | None = None

    @property
    def compiled(self) -> bool:
        return self.status == "compiled"

    def to_json(self, path: str | Path | None = None) -> str:
        encoded = json.dumps(self._payload(), indent=2, sort_keys=True) + "\n"
        if path is not None:
            Path(path).write_text(encoded, encoding="utf-8")
        return encoded

    def to_cbor(self, path: str | Path | None = None) -> bytes:
        encoded = cbor2.dumps(self._payload(), canonical=True)
        if path is not None:
            Path(path).write_bytes(encoded)
        return encoded

    def _payload(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "status": self.status,
            "scope": self.scope,
            "source_root": str(self.source_root),
            "output_directory": str(self.output_directory),
            "thrift_files": [str(path) for path in self.thrift_files],
            "include_path": [str(path) for path in self.include_path],
            "command": list(self.command),
        }
        if self.result is not None:
            payload["exit_code"] = self.result.exit_code
        return payload
