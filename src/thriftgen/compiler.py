"""Thrift compiler invocation: request builder, command line, and process execution."""

from __future__ import annotations

import subprocess
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Self

from thriftgen.errors import CompilerExecutionError, ConfigurationError
from thriftgen.models import DEFAULT_GENERATOR, CompilationRequest, CompilationResult


@dataclass(slots=True)
class CompilationRequestBuilder:
    """Accumulates compiler inputs and produces an immutable :class:`CompilationRequest`.

    Every thrift file must live below one of the include directories registered
    before it, so the compiler can resolve the file's includes against a ``-I``
    root. Paths are canonicalised before that comparison, which makes symlinked
    and relative spellings of the same location equivalent.
    """

    executable: str
    output_directory: Path
    generator: str = DEFAULT_GENERATOR
    _include_path: list[Path] = field(init=False, default_factory=list)
    _thrift_files: list[Path] = field(init=False, default_factory=list)

    def __post_init__(self) -> None:
        if not self.executable:
            raise ConfigurationError("thriftExecutable must not be empty.")
        if not self.output_directory.is_dir():
            raise ConfigurationError(
                "the outputDirectory is not a directory",
                hint="Create the output directory before building the request.",
                context={"path": str(self.output_directory)},
            )
        self.output_directory = self.output_directory.absolute()

    def set_generator(self, generator: str) -> Self:
        self.generator = generator
        return self

    def add_include_directory(self, directory: Path) -> Self:
        if not directory.is_dir():
            raise ConfigurationError(
                f"{directory} is not a directory",
                hint="Every thrift path element must be an existing directory.",
                context={"operation": "add_include_directory", "path": str(directory)},
            )
        absolute = directory.absolute()
        if absolute not in self._include_path:
            self._include_path.append(absolute)
        return self

    def add_include_directories(self, directories: Iterable[Path]) -> Self:
        for directory in directories:
            self.add_include_directory(directory)
        return self

    def add_thrift_file(self, thrift_file: Path) -> Self:
        if not thrift_file.exists():
            raise ConfigurationError(
                f"{thrift_file} does not exist",
                context={"operation": "add_thrift_file", "path": str(thrift_file)},
            )
        if not thrift_file.is_file():
            raise ConfigurationError(
                f"{thrift_file} is not a file",
                context={"operation": "add_thrift_file", "path": str(thrift_file)},
            )
        if not self._is_on_include_path(thrift_file):
            raise ConfigurationError(
                f"{thrift_file} is not contained within the thrift path",
                hint="Register the directory holding the file with add_include_directory() first.",
                context={
                    "operation": "add_thrift_file",
                    "path": str(thrift_file),
                    "include_path": ", ".join(str(path) for path in self._include_path),
                },
            )
        absolute = thrift_file.absolute()
        if absolute not in self._thrift_files:
            self._thrift_files.append(absolute)
        return self

    def add_thrift_files(self, thrift_files: Iterable[Path]) -> Self:
        for thrift_file in thrift_files:
            self.add_thrift_file(thrift_file)
        return self

    def build(self) -> CompilationRequest:
        if not self.generator:
            raise ConfigurationError("generator must not be empty.")
        if not self._thrift_files:
            raise ConfigurationError(
                "No thrift files were added to the compilation request.",
                context={"operation": "build_request"},
            )
        return CompilationRequest(
            executable=self.executable,
            generator=self.generator,
            include_path=tuple(self._include_path),
            output_directory=self.output_directory,
            thrift_files=tuple(self._thrift_files),
        )

    def _is_on_include_path(self, thrift_file: Path) -> bool:
        canonical = thrift_file.resolve()
        return any(canonical.is_relative_to(directory.resolve()) for directory in self._include_path)


def build_command(request: CompilationRequest) -> tuple[str, ...]:
    command: list[str] = [request.executable, "--gen", request.generator]
    for directory in request.include_path:
        command.extend(["-I", str(directory)])
    command.extend(["-out", str(request.output_directory)])
    command.extend(str(path) for path in request.thrift_files)
    return tuple(command)


def compile_thrift(
    request: CompilationRequest,
    *,
    timeout: float | None = None,
) -> CompilationResult:
    """Run the compiler to completion and capture its exit code and streams."""
    command = build_command(request)
    try:
        completed = subprocess.run(
            command,
            capture_output=True,
            text=True,
            errors="replace",
            check=False,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as exc:
        raise CompilerExecutionError(
            "thrift did not finish before the configured timeout.",
            hint="Raise compilerTimeout or investigate a hung compiler process.",
            context={
                "operation": "compile",
                "timeout": str(timeout),
                "command": " ".join(command),
            },
        ) from exc
    except OSError as exc:
        raise CompilerExecutionError(
            "An error occurred while invoking thrift.",
            hint="Ensure thriftExecutable points at an executable thrift compiler.",
            context={
                "operation": "compile",
                "executable": request.executable,
                "error": str(exc),
            },
        ) from exc
    return CompilationResult(
        exit_code=completed.returncode,
        stdout=completed.stdout or "",
        stderr=completed.stderr or "",
    )
