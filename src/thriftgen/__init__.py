"""Public package entrypoint for thrift code generation."""

from .compiler import CompilationRequestBuilder, build_command, compile_thrift
from .config import GeneratorConfig, resolve_executable
from .errors import (
    CompilationFailedError,
    CompilerExecutionError,
    ConfigurationError,
    ErrorCode,
    ExtractionError,
    FilesystemError,
    ResolutionError,
    ThriftGenError,
)
from .models import (
    ArtifactCoordinate,
    CompilationRequest,
    CompilationResult,
    GenerationOutcome,
)
from .observability import StructuredLogger
from .pipeline import ThriftGenerator
from .resolver import LocalRepositoryResolver
from .scopes import GenerationScope, MainScope, ProjectModel, TestScope

__all__ = [
    "ArtifactCoordinate",
    "CompilationFailedError",
    "CompilationRequest",
    "CompilationRequestBuilder",
    "CompilationResult",
    "CompilerExecutionError",
    "ConfigurationError",
    "ErrorCode",
    "ExtractionError",
    "FilesystemError",
    "GenerationOutcome",
    "GenerationScope",
    "GeneratorConfig",
    "LocalRepositoryResolver",
    "MainScope",
    "ProjectModel",
    "ResolutionError",
    "StructuredLogger",
    "TestScope",
    "ThriftGenError",
    "ThriftGenerator",
    "build_command",
    "compile_thrift",
    "resolve_executable",
]
