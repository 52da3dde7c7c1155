"""Generator configuration and the executable resolution step."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from thriftgen.errors import ConfigurationError
from thriftgen.models import DEFAULT_EXECUTABLE, DEFAULT_GENERATOR, DEFAULT_INCLUDES
from thriftgen.observability import StructuredLogger
from thriftgen.resolver import BinaryArtifactResolver, parse_coordinate, resolve_compiler_binary


@dataclass(frozen=True, slots=True)
class GeneratorConfig:
    thrift_executable: str | None = None
    thrift_artifact: str | None = None
    generator: str = DEFAULT_GENERATOR
    additional_thrift_path_elements: tuple[Path, ...] = ()
    temporary_thrift_file_directory: Path | None = None
    thrift_plugin_directory: Path | None = None
    local_repository: Path | None = None
    includes: tuple[str, ...] = DEFAULT_INCLUDES
    excludes: tuple[str, ...] = ()
    stale_millis: int = 0
    check_staleness: bool = False
    hash_dependent_paths: bool = True
    compiler_timeout: float | None = None

    @classmethod
    def from_options(
        cls,
        options: Mapping[str, Any],
        *,
        base_dir: Path | None = None,
    ) -> GeneratorConfig:
        """Build a config from camelCase option names as a host build would pass them."""
        unknown = sorted(set(options) - set(_OPTION_PARSERS))
        if unknown:
            raise ConfigurationError(
                f"Unknown option(s): {', '.join(unknown)}",
                hint=f"Recognized options: {', '.join(sorted(_OPTION_PARSERS))}",
                context={"operation": "configure"},
            )
        root = base_dir or Path.cwd()
        values: dict[str, Any] = {}
        for key, raw in options.items():
            attribute, parser = _OPTION_PARSERS[key]
            if raw is None:
                continue
            try:
                values[attribute] = parser(raw, root)
            except (TypeError, ValueError) as exc:
                raise ConfigurationError(
                    f"Invalid value for option `{key}`: {raw!r}",
                    hint=str(exc),
                    context={"operation": "configure", "option": key},
                ) from exc
        return cls(**values)

    def with_build_directory(self, build_directory: Path) -> GeneratorConfig:
        """Fill unset scratch directories with their defaults under *build_directory*."""
        return replace(
            self,
            temporary_thrift_file_directory=(
                self.temporary_thrift_file_directory or build_directory / "thrift-dependencies"
            ),
            thrift_plugin_directory=(
                self.thrift_plugin_directory or build_directory / "thrift-plugins"
            ),
        )

    def validate(self) -> None:
        if not self.generator:
            raise ConfigurationError("generator must not be empty.")
        if self.thrift_executable is not None and not self.thrift_executable:
            raise ConfigurationError("thriftExecutable must not be empty when set.")
        if (
            self.temporary_thrift_file_directory is not None
            and self.temporary_thrift_file_directory.is_file()
        ):
            raise ConfigurationError(
                "temporaryThriftFileDirectory is a file, not a directory",
                context={"path": str(self.temporary_thrift_file_directory)},
            )
        if self.thrift_plugin_directory is not None and self.thrift_plugin_directory.is_file():
            raise ConfigurationError(
                "thriftPluginDirectory is a file, not a directory",
                context={"path": str(self.thrift_plugin_directory)},
            )
        if self.stale_millis < 0:
            raise ConfigurationError("staleMillis must not be negative.")
        if self.compiler_timeout is not None and self.compiler_timeout <= 0:
            raise ConfigurationError("compilerTimeout must be a positive number of seconds.")
        if self.thrift_artifact and not self.thrift_executable:
            parse_coordinate(self.thrift_artifact)


def resolve_executable(
    config: GeneratorConfig,
    *,
    resolver: BinaryArtifactResolver | None = None,
    logger: StructuredLogger | None = None,
    scope: str | None = None,
) -> GeneratorConfig:
    """Return a copy of *config* whose ``thrift_executable`` is final."""
    if config.thrift_executable:
        return config
    if config.thrift_artifact:
        if resolver is None:
            raise ConfigurationError(
                "thriftArtifact is set but no artifact resolver is available.",
                hint="Provide a resolver or configure thriftExecutable directly.",
                context={"operation": "resolve_executable", "artifact": config.thrift_artifact},
            )
        if config.thrift_plugin_directory is None:
            raise ConfigurationError(
                "thriftPluginDirectory is required to cache a resolved thrift binary.",
                context={"operation": "resolve_executable", "artifact": config.thrift_artifact},
            )
        binary = resolve_compiler_binary(
            config.thrift_artifact,
            resolver=resolver,
            plugin_directory=config.thrift_plugin_directory,
            logger=logger,
        )
        return replace(config, thrift_executable=str(binary.absolute()))
    if logger is not None:
        logger.log(
            operation="resolve_executable",
            scope=scope,
            phase="resolve",
            message=(
                "No 'thriftExecutable' parameter is configured, "
                f"using the default: '{DEFAULT_EXECUTABLE}'"
            ),
            level="warning",
        )
    return replace(config, thrift_executable=DEFAULT_EXECUTABLE)


def split_patterns(value: str | Iterable[str]) -> tuple[str, ...]:
    """Accept comma-joined pattern strings as well as sequences."""
    items = value.split(",") if isinstance(value, str) else list(value)
    return tuple(item.strip() for item in items if str(item).strip())


def _parse_bool(value: Any, _root: Path) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in {"true", "false"}:
        return value.strip().lower() == "true"
    raise ValueError("expected true or false")


def _parse_str(value: Any, _root: Path) -> str:
    if not isinstance(value, str):
        raise TypeError("expected a string")
    return value


def _parse_path(value: Any, root: Path) -> Path:
    path = Path(value)
    return path if path.is_absolute() else root / path


def _parse_paths(value: Any, root: Path) -> tuple[Path, ...]:
    items = value.split(",") if isinstance(value, str) else list(value)
    return tuple(_parse_path(str(item).strip(), root) for item in items if str(item).strip())


def _parse_patterns(value: Any, _root: Path) -> tuple[str, ...]:
    return split_patterns(value)


def _parse_int(value: Any, _root: Path) -> int:
    if isinstance(value, bool):
        raise TypeError("expected an integer")
    return int(value)


def _parse_float(value: Any, _root: Path) -> float:
    if isinstance(value, bool):
        raise TypeError("expected a number")
    return float(value)


_OPTION_PARSERS: dict[str, tuple[str, Callable[[Any, Path], Any]]] = {
    "thriftExecutable": ("thrift_executable", _parse_str),
    "thriftArtifact": ("thrift_artifact", _parse_str),
    "generator": ("generator", _parse_str),
    "additionalThriftPathElements": ("additional_thrift_path_elements", _parse_paths),
    "temporaryThriftFileDirectory": ("temporary_thrift_file_directory", _parse_path),
    "thriftPluginDirectory": ("thrift_plugin_directory", _parse_path),
    "localRepository": ("local_repository", _parse_path),
    "includes": ("includes", _parse_patterns),
    "excludes": ("excludes", _parse_patterns),
    "staleMillis": ("stale_millis", _parse_int),
    "checkStaleness": ("check_staleness", _parse_bool),
    "hashDependentPaths": ("hash_dependent_paths", _parse_bool),
    "compilerTimeout": ("compiler_timeout", _parse_float),
}
