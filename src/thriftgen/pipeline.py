"""The generation pipeline: discover, check freshness, stage dependencies, compile, attach."""

from __future__ import annotations

from dataclasses import dataclass, field

from thriftgen.compiler import CompilationRequestBuilder, build_command, compile_thrift
from thriftgen.config import GeneratorConfig, resolve_executable
from thriftgen.discovery import find_generated_files, find_thrift_files
from thriftgen.errors import CompilationFailedError, ConfigurationError
from thriftgen.extraction import ArchiveOpener, extract_dependency_thrift, open_zip_archive
from thriftgen.fs import clean_directory
from thriftgen.layout import StagingLayout
from thriftgen.models import GenerationOutcome
from thriftgen.observability import Level, StructuredLogger
from thriftgen.resolver import BinaryArtifactResolver
from thriftgen.scopes import GenerationScope
from thriftgen.staleness import outputs_are_fresh

STREAM_CONTEXT_LIMIT = 2000


@dataclass(slots=True)
class ThriftGenerator:
    """Runs one generation pass for a scope.

    A run is strictly sequential. The staging directory is wiped at the start
    of every compiling run, so two runs must never share one concurrently.
    The compiler executable is resolved before anything on disk is removed.
    """

    config: GeneratorConfig = field(default_factory=GeneratorConfig)
    resolver: BinaryArtifactResolver | None = None
    logger: StructuredLogger = field(default_factory=StructuredLogger)
    archive_opener: ArchiveOpener = open_zip_archive

    def run(self, scope: GenerationScope) -> GenerationOutcome:
        config = self.config.with_build_directory(scope.build_directory)
        self._check_parameters(config, scope)

        source_root = scope.source_root
        output_directory = scope.output_directory
        if not source_root.exists():
            self._log(
                scope,
                "discover",
                f"{source_root} does not exist. "
                "Review the configuration or consider disabling the plugin.",
            )
            return GenerationOutcome(
                status="missing_source_root",
                scope=scope.name,
                source_root=source_root,
                output_directory=output_directory,
            )

        thrift_files = find_thrift_files(
            source_root,
            includes=config.includes,
            excludes=config.excludes,
        )
        generated_files = find_generated_files(output_directory)
        ordered_files = tuple(sorted(thrift_files))

        if not thrift_files:
            self._log(scope, "discover", "No thrift files to compile.")
            return GenerationOutcome(
                status="no_sources",
                scope=scope.name,
                source_root=source_root,
                output_directory=output_directory,
            )

        if config.check_staleness and outputs_are_fresh(
            thrift_files, generated_files, stale_millis=config.stale_millis
        ):
            self._log(
                scope,
                "staleness",
                "Skipping compilation because target directory newer than sources.",
            )
            scope.attach_outputs()
            return GenerationOutcome(
                status="up_to_date",
                scope=scope.name,
                source_root=source_root,
                output_directory=output_directory,
                thrift_files=ordered_files,
            )

        config = resolve_executable(
            config,
            resolver=self.resolver,
            logger=self.logger,
            scope=scope.name,
        )
        executable = config.thrift_executable
        staging_root = config.temporary_thrift_file_directory
        if not executable or staging_root is None:
            raise ConfigurationError(
                "thriftExecutable and temporaryThriftFileDirectory must be set before compiling.",
                context={"operation": "generate", "scope": scope.name},
            )

        layout = StagingLayout(
            root=staging_root,
            hash_dependent_paths=config.hash_dependent_paths,
            local_repository=config.local_repository,
        )
        derived_directories = extract_dependency_thrift(
            layout,
            scope.dependency_artifacts(),
            opener=self.archive_opener,
        )
        self._log(
            scope,
            "extract",
            f"Staged thrift files from {len(derived_directories)} dependency location(s).",
            level="debug",
            extra={"directories": [str(path) for path in sorted(derived_directories)]},
        )

        clean_directory(output_directory, option="outputDirectory")

        request = (
            CompilationRequestBuilder(
                executable=executable,
                output_directory=output_directory,
            )
            .set_generator(config.generator)
            .add_include_directory(source_root)
            .add_include_directories(sorted(derived_directories))
            .add_include_directories(config.additional_thrift_path_elements)
            .add_thrift_files(ordered_files)
            .build()
        )
        command = build_command(request)
        self._log(
            scope,
            "compile",
            f"Compiling {len(request.thrift_files)} thrift file(s).",
            extra={"command": list(command)},
        )

        result = compile_thrift(request, timeout=config.compiler_timeout)
        if not result.ok:
            self._log(scope, "compile", f"thrift failed output: {result.stdout}", level="error")
            self._log(scope, "compile", f"thrift failed error: {result.stderr}", level="error")
            raise CompilationFailedError(
                "thrift did not exit cleanly. Review output for more information.",
                result=result,
                context={
                    "operation": "compile",
                    "scope": scope.name,
                    "exit_code": str(result.exit_code),
                    "stdout": result.stdout[:STREAM_CONTEXT_LIMIT],
                    "stderr": result.stderr[:STREAM_CONTEXT_LIMIT],
                },
            )

        scope.attach_outputs()
        self._log(
            scope,
            "compile",
            "thrift generation complete.",
            extra={"exit_code": result.exit_code, "output_directory": str(output_directory)},
        )
        return GenerationOutcome(
            status="compiled",
            scope=scope.name,
            source_root=source_root,
            output_directory=output_directory,
            thrift_files=request.thrift_files,
            include_path=request.include_path,
            command=command,
            result=result,
        )

    def _check_parameters(self, config: GeneratorConfig, scope: GenerationScope) -> None:
        config.validate()
        if scope.source_root.is_file():
            raise ConfigurationError(
                "thriftSourceRoot is a file, not a directory",
                context={"scope": scope.name, "path": str(scope.source_root)},
            )
        if scope.output_directory.is_file():
            raise ConfigurationError(
                "the outputDirectory is a file, not a directory",
                context={"scope": scope.name, "path": str(scope.output_directory)},
            )

    def _log(
        self,
        scope: GenerationScope,
        phase: str,
        message: str,
        *,
        level: Level = "info",
        extra: dict[str, object] | None = None,
    ) -> None:
        self.logger.log(
            operation="generate",
            scope=scope.name,
            phase=phase,
            message=message,
            level=level,
            extra=extra,
        )
