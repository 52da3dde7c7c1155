"""Generation scopes: the hooks a host build supplies for main and test generation."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from thriftgen.models import DEFAULT_INCLUDES, ScopeName


@dataclass(frozen=True, slots=True)
class ResourceSpec:
    directory: Path
    includes: tuple[str, ...] = DEFAULT_INCLUDES
    excludes: tuple[str, ...] = ()


@dataclass(slots=True)
class ProjectModel:
    """In-memory stand-in for the host build's project model."""

    base_dir: Path
    build_dir: Path | None = None
    compile_artifacts: list[Path] = field(default_factory=list)
    test_artifacts: list[Path] = field(default_factory=list)
    compile_source_roots: list[Path] = field(default_factory=list)
    test_compile_source_roots: list[Path] = field(default_factory=list)
    resources: list[ResourceSpec] = field(default_factory=list)
    test_resources: list[ResourceSpec] = field(default_factory=list)

    @property
    def target_dir(self) -> Path:
        return self.build_dir if self.build_dir is not None else self.base_dir / "build"

    def add_compile_source_root(self, path: Path) -> None:
        _append_unique(self.compile_source_roots, path.absolute())

    def add_test_compile_source_root(self, path: Path) -> None:
        _append_unique(self.test_compile_source_roots, path.absolute())

    def add_resource(self, resource: ResourceSpec) -> None:
        _append_unique(self.resources, resource)

    def add_test_resource(self, resource: ResourceSpec) -> None:
        _append_unique(self.test_resources, resource)


class GenerationScope(Protocol):
    name: ScopeName

    @property
    def source_root(self) -> Path:
        """Directory scanned for thrift sources."""

    @property
    def output_directory(self) -> Path:
        """Directory the compiler writes generated code into."""

    @property
    def build_directory(self) -> Path:
        """Root for scratch directories such as dependency staging."""

    def dependency_artifacts(self) -> Sequence[Path]:
        """Resolved dependency files that may carry thrift IDL."""

    def attach_outputs(self) -> None:
        """Register generated code and thrift sources with the host build."""


@dataclass(slots=True)
class MainScope:
    """Generation for production sources.

    ``source_dir`` and ``output_dir`` override the conventional
    ``src/main/thrift`` and ``<build>/generated-sources/thrift`` locations.
    """

    project: ProjectModel
    source_dir: Path | None = None
    output_dir: Path | None = None
    name: ScopeName = "main"

    @property
    def source_root(self) -> Path:
        if self.source_dir is not None:
            return self.source_dir
        return self.project.base_dir / "src" / "main" / "thrift"

    @property
    def output_directory(self) -> Path:
        if self.output_dir is not None:
            return self.output_dir
        return self.project.target_dir / "generated-sources" / "thrift"

    @property
    def build_directory(self) -> Path:
        return self.project.target_dir

    def dependency_artifacts(self) -> Sequence[Path]:
        return tuple(self.project.compile_artifacts)

    def attach_outputs(self) -> None:
        self.project.add_compile_source_root(self.output_directory)
        self.project.add_resource(ResourceSpec(directory=self.source_root.absolute()))


@dataclass(slots=True)
class TestScope:
    """Generation for test sources; sees compile and test dependencies."""

    __test__ = False

    project: ProjectModel
    source_dir: Path | None = None
    output_dir: Path | None = None
    name: ScopeName = "test"

    @property
    def source_root(self) -> Path:
        if self.source_dir is not None:
            return self.source_dir
        return self.project.base_dir / "src" / "test" / "thrift"

    @property
    def output_directory(self) -> Path:
        if self.output_dir is not None:
            return self.output_dir
        return self.project.target_dir / "generated-test-sources" / "thrift"

    @property
    def build_directory(self) -> Path:
        return self.project.target_dir

    def dependency_artifacts(self) -> Sequence[Path]:
        artifacts: list[Path] = []
        for path in (*self.project.compile_artifacts, *self.project.test_artifacts):
            _append_unique(artifacts, path)
        return tuple(artifacts)

    def attach_outputs(self) -> None:
        self.project.add_test_compile_source_root(self.output_directory)
        self.project.add_test_resource(ResourceSpec(directory=self.source_root.absolute()))


def _append_unique(items: list, item: object) -> None:
    if item not in items:
        items.append(item)
