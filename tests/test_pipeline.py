import os
import zipfile
from pathlib import Path

import pytest
from conftest import FakeThrift, write_fake_thrift

from thriftgen.config import GeneratorConfig
from thriftgen.errors import CompilationFailedError, ConfigurationError
from thriftgen.observability import StructuredLogger
from thriftgen.pipeline import ThriftGenerator
from thriftgen.resolver import LocalRepositoryResolver
from thriftgen.scopes import MainScope, ProjectModel, ResourceSpec, TestScope

PAST_NS = 1_600_000_000 * 1_000_000_000


def test_missing_source_root_is_reported_and_skipped(
    project: ProjectModel,
    fake_thrift: FakeThrift,
) -> None:
    generator = _generator(fake_thrift)

    outcome = generator.run(MainScope(project))

    assert outcome.status == "missing_source_root"
    assert "does not exist" in generator.logger.messages("info")[0]
    assert fake_thrift.invocations() == []
    assert project.compile_source_roots == []


def test_empty_source_root_does_not_invoke_compiler(
    project: ProjectModel,
    fake_thrift: FakeThrift,
) -> None:
    scope = MainScope(project)
    scope.source_root.mkdir(parents=True)
    (scope.source_root / "notes.txt").write_text("", encoding="utf-8")
    generator = _generator(fake_thrift)

    outcome = generator.run(scope)

    assert outcome.status == "no_sources"
    assert generator.logger.messages("info") == ["No thrift files to compile."]
    assert fake_thrift.invocations() == []
    assert not scope.output_directory.exists()


def test_compiles_sources_with_dependency_idl_on_the_include_path(
    tmp_path: Path,
    project: ProjectModel,
    fake_thrift: FakeThrift,
) -> None:
    scope = MainScope(project)
    service = _source(scope.source_root / "api" / "service.thrift")
    types = _source(scope.source_root / "types.thrift")
    jar = _jar(tmp_path / "libs" / "common-1.0.jar", {"common/base.thrift": "namespace java base"})
    extra = tmp_path / "extra-idl"
    extra.mkdir()
    project.compile_artifacts.append(jar)
    config = GeneratorConfig(
        thrift_executable=str(fake_thrift.path),
        additional_thrift_path_elements=(extra,),
    )
    generator = ThriftGenerator(config=config)

    outcome = generator.run(scope)

    staging = project.target_dir / "thrift-dependencies"
    staged = [path for path in staging.iterdir()]
    assert outcome.status == "compiled"
    assert outcome.result is not None and outcome.result.exit_code == 0
    assert outcome.include_path == (
        scope.source_root.absolute(),
        staged[0].absolute(),
        extra.absolute(),
    )
    assert (staged[0] / "common" / "base.thrift").exists()
    assert outcome.command[:3] == (str(fake_thrift.path), "--gen", "java:hashcode")
    assert outcome.command[-3:] == (
        str(scope.output_directory.absolute()),
        str(service.absolute()),
        str(types.absolute()),
    )
    assert (scope.output_directory / "service.java").exists()
    assert (scope.output_directory / "types.java").exists()
    assert project.compile_source_roots == [scope.output_directory.absolute()]
    assert project.resources == [ResourceSpec(directory=scope.source_root.absolute())]
    assert len(fake_thrift.invocations()) == 1


def test_output_directory_is_cleaned_before_compiling(
    project: ProjectModel,
    fake_thrift: FakeThrift,
) -> None:
    scope = MainScope(project)
    _source(scope.source_root / "service.thrift")
    stale = scope.output_directory / "old" / "Removed.java"
    stale.parent.mkdir(parents=True)
    stale.write_text("// stale\n", encoding="utf-8")

    _generator(fake_thrift).run(scope)

    assert not stale.exists()
    assert (scope.output_directory / "service.java").exists()


def test_fresh_outputs_skip_the_second_run(
    project: ProjectModel,
    fake_thrift: FakeThrift,
) -> None:
    scope = MainScope(project)
    source = _source(scope.source_root / "service.thrift")
    os.utime(source, ns=(PAST_NS, PAST_NS))
    generator = _generator(fake_thrift, check_staleness=True)

    first = generator.run(scope)
    second = generator.run(scope)

    assert first.status == "compiled"
    assert second.status == "up_to_date"
    assert len(fake_thrift.invocations()) == 1
    assert "Skipping compilation because target directory newer than sources." in (
        generator.logger.messages("info")
    )
    assert project.compile_source_roots == [scope.output_directory.absolute()]


def test_staleness_is_disabled_by_default(
    project: ProjectModel,
    fake_thrift: FakeThrift,
) -> None:
    scope = MainScope(project)
    source = _source(scope.source_root / "service.thrift")
    os.utime(source, ns=(PAST_NS, PAST_NS))
    generator = _generator(fake_thrift)

    generator.run(scope)
    generator.run(scope)

    assert len(fake_thrift.invocations()) == 2


def test_nonzero_exit_is_a_build_failure_without_attaching(
    project: ProjectModel,
    fake_thrift: FakeThrift,
) -> None:
    scope = MainScope(project)
    _source(scope.source_root / "broken.thrift", "struct { syntax-error }\n")
    generator = _generator(fake_thrift)

    with pytest.raises(CompilationFailedError) as excinfo:
        generator.run(scope)

    assert excinfo.value.result.exit_code == 1
    assert "syntax error" in excinfo.value.result.stderr
    assert "syntax error" in excinfo.value.context["stderr"]
    assert project.compile_source_roots == []
    errors = generator.logger.messages("error")
    assert errors[0].startswith("thrift failed output:")
    assert errors[1].startswith("thrift failed error:")


def test_source_root_that_is_a_file_fails_before_touching_disk(
    project: ProjectModel,
    fake_thrift: FakeThrift,
) -> None:
    scope = MainScope(project)
    scope.source_root.parent.mkdir(parents=True)
    scope.source_root.write_text("", encoding="utf-8")

    with pytest.raises(ConfigurationError) as excinfo:
        _generator(fake_thrift).run(scope)

    assert "thriftSourceRoot is a file" in str(excinfo.value)
    assert not project.target_dir.exists()


def test_output_directory_that_is_a_file_is_rejected(
    project: ProjectModel,
    fake_thrift: FakeThrift,
) -> None:
    scope = MainScope(project)
    _source(scope.source_root / "service.thrift")
    scope.output_directory.parent.mkdir(parents=True)
    scope.output_directory.write_text("", encoding="utf-8")

    with pytest.raises(ConfigurationError) as excinfo:
        _generator(fake_thrift).run(scope)

    assert "outputDirectory is a file" in str(excinfo.value)


def test_removed_dependency_leaves_no_staged_directory(
    tmp_path: Path,
    project: ProjectModel,
    fake_thrift: FakeThrift,
) -> None:
    scope = MainScope(project)
    _source(scope.source_root / "service.thrift")
    kept = _jar(tmp_path / "libs" / "kept.jar", {"kept.thrift": ""})
    removed = _jar(tmp_path / "libs" / "removed.jar", {"removed.thrift": ""})
    project.compile_artifacts.extend([kept, removed])
    generator = _generator(fake_thrift)

    generator.run(scope)
    staging = project.target_dir / "thrift-dependencies"
    assert len(list(staging.iterdir())) == 2

    project.compile_artifacts.remove(removed)
    outcome = generator.run(scope)

    remaining = list(staging.iterdir())
    assert len(remaining) == 1
    assert (remaining[0] / "kept.thrift").exists()
    assert len(outcome.include_path) == 2


def test_test_scope_uses_test_roots_and_both_artifact_lists(
    tmp_path: Path,
    project: ProjectModel,
    fake_thrift: FakeThrift,
) -> None:
    scope = TestScope(project)
    _source(scope.source_root / "fixture.thrift")
    compile_jar = _jar(tmp_path / "libs" / "main.jar", {"main.thrift": ""})
    test_jar = _jar(tmp_path / "libs" / "test.jar", {"test.thrift": ""})
    project.compile_artifacts.append(compile_jar)
    project.test_artifacts.append(test_jar)

    outcome = _generator(fake_thrift).run(scope)

    assert outcome.scope == "test"
    assert scope.source_root == project.base_dir / "src" / "test" / "thrift"
    assert scope.output_directory == project.target_dir / "generated-test-sources" / "thrift"
    assert len(outcome.include_path) == 3
    assert project.test_compile_source_roots == [scope.output_directory.absolute()]
    assert project.test_resources == [ResourceSpec(directory=scope.source_root.absolute())]
    assert project.compile_source_roots == []


def test_excluded_sources_are_not_compiled(
    project: ProjectModel,
    fake_thrift: FakeThrift,
) -> None:
    scope = MainScope(project)
    kept = _source(scope.source_root / "service.thrift")
    _source(scope.source_root / "drafts" / "wip.thrift")

    outcome = _generator(fake_thrift, excludes=("drafts/**",)).run(scope)

    assert outcome.thrift_files == (kept.absolute(),)


def test_compiler_resolved_from_artifact_coordinate(
    tmp_path: Path,
    project: ProjectModel,
) -> None:
    if os.name != "posix":
        pytest.skip("Fake thrift compiler is a POSIX shell script.")
    repository = tmp_path / "repository"
    write_fake_thrift(
        repository / "org" / "apache" / "thrift" / "thrift" / "0.19.0" / "thrift-0.19.0-linux.exe"
    )
    scope = MainScope(project)
    _source(scope.source_root / "service.thrift")
    config = GeneratorConfig(
        thrift_artifact="org.apache.thrift:thrift:0.19.0:exe:linux",
        local_repository=repository,
    )
    generator = ThriftGenerator(config=config, resolver=LocalRepositoryResolver(repository))

    outcome = generator.run(scope)

    cached = project.target_dir / "thrift-plugins" / "thrift-0.19.0-linux.exe"
    assert outcome.status == "compiled"
    assert outcome.command[0] == str(cached.absolute())
    assert os.access(cached, os.X_OK)


def test_missing_compiler_falls_back_to_thrift_with_warning(
    project: ProjectModel,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    scope = MainScope(project)
    _source(scope.source_root / "service.thrift")
    bin_dir = project.base_dir / "bin"
    if os.name != "posix":
        pytest.skip("Fake thrift compiler is a POSIX shell script.")
    write_fake_thrift(bin_dir / "thrift")
    monkeypatch.setenv("PATH", f"{bin_dir}{os.pathsep}{os.environ.get('PATH', '')}")
    logger = StructuredLogger()

    outcome = ThriftGenerator(logger=logger).run(scope)

    assert outcome.command[0] == "thrift"
    assert outcome.status == "compiled"
    assert any("using the default: 'thrift'" in message for message in logger.messages("warning"))


@pytest.mark.parametrize(
    "config",
    [
        GeneratorConfig(thrift_artifact="not-a-coordinate"),
        GeneratorConfig(thrift_artifact="org.apache.thrift:thrift:0.19.0"),
    ],
)
def test_unresolvable_compiler_leaves_previous_outputs_in_place(
    tmp_path: Path,
    project: ProjectModel,
    config: GeneratorConfig,
) -> None:
    scope = MainScope(project)
    _source(scope.source_root / "service.thrift")
    previous = _source(scope.output_directory / "Prev.java", "// previous\n")
    project.compile_artifacts.append(_jar(tmp_path / "libs" / "api.jar", {"api.thrift": ""}))
    staged = project.target_dir / "thrift-dependencies" / "kept" / "old.thrift"
    _source(staged, "")

    with pytest.raises(ConfigurationError):
        ThriftGenerator(config=config).run(scope)

    assert previous.read_text(encoding="utf-8") == "// previous\n"
    assert staged.exists()


def test_scope_locations_default_from_project_and_accept_overrides(tmp_path: Path) -> None:
    project = ProjectModel(base_dir=tmp_path / "project")
    custom = ProjectModel(base_dir=tmp_path / "project", build_dir=tmp_path / "out")

    assert MainScope(project).build_directory == tmp_path / "project" / "build"
    assert MainScope(custom).output_directory == tmp_path / "out" / "generated-sources" / "thrift"
    overridden = TestScope(project, source_dir=tmp_path / "idl", output_dir=tmp_path / "gen")
    assert overridden.source_root == tmp_path / "idl"
    assert overridden.output_directory == tmp_path / "gen"
    assert overridden.build_directory == tmp_path / "project" / "build"


def _generator(fake_thrift: FakeThrift, **overrides: object) -> ThriftGenerator:
    config = GeneratorConfig(thrift_executable=str(fake_thrift.path), **overrides)  # type: ignore[arg-type]
    return ThriftGenerator(config=config)


def _source(path: Path, content: str = "namespace java example\n") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def _jar(path: Path, entries: dict[str, str]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as archive:
        for name, content in entries.items():
            archive.writestr(name, content)
    return path
