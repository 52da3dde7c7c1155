"""Typed error model with stable, machine-readable error codes."""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from thriftgen.models import CompilationResult


class ErrorCode(StrEnum):
    """Stable error identifiers surfaced to the host build."""

    CONFIGURATION = "E_CONFIGURATION"
    EXTRACTION = "E_EXTRACTION"
    RESOLUTION = "E_RESOLUTION"
    IO = "E_IO"
    COMPILER_EXECUTION = "E_COMPILER_EXECUTION"
    COMPILATION_FAILED = "E_COMPILATION_FAILED"


class ThriftGenError(Exception):
    """Base error class that carries code, optional hint, and context."""

    code: str
    hint: str | None
    context: Mapping[str, str]

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code.value
        self.hint = hint
        self.context = dict(context or {})

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.hint:
            parts.append(f"Hint: {self.hint}")
        if self.context:
            for k, v in self.context.items():
                if v:
                    parts.append(f"  {k}: {v}")
        return "\n".join(parts)

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "code": self.code,
            "message": str(self),
            "context": dict(self.context),
        }
        if self.hint is not None:
            payload["hint"] = self.hint
        return payload


class ConfigurationError(ThriftGenError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
        code: ErrorCode = ErrorCode.CONFIGURATION,
    ) -> None:
        super().__init__(message, code=code, hint=hint, context=context)


class ExtractionError(ConfigurationError):
    """An artifact on the dependency path could not be read as an archive."""

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, hint=hint, context=context, code=ErrorCode.EXTRACTION)


class ResolutionError(ThriftGenError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.RESOLUTION, hint=hint, context=context)


class FilesystemError(ThriftGenError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.IO, hint=hint, context=context)


class CompilerExecutionError(ThriftGenError):
    """The compiler process could not be spawned or did not finish in time."""

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.COMPILER_EXECUTION, hint=hint, context=context)


class CompilationFailedError(ThriftGenError):
    """The compiler ran and reported an error through a nonzero exit code."""

    result: CompilationResult

    def __init__(
        self,
        message: str,
        *,
        result: CompilationResult,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.COMPILATION_FAILED, hint=hint, context=context)
        self.result = result


__all__ = [
    "CompilationFailedError",
    "CompilerExecutionError",
    "ConfigurationError",
    "ErrorCode",
    "ExtractionError",
    "FilesystemError",
    "ResolutionError",
    "ThriftGenError",
]
