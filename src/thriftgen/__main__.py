"""Command-line host for running one generation scope.

Usage:
    python -m thriftgen --project-dir . --dependency libs/api.jar
    python -m thriftgen --scope test --option checkStaleness=true
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from pathlib import Path

from thriftgen.config import GeneratorConfig
from thriftgen.errors import ConfigurationError, ThriftGenError
from thriftgen.observability import StructuredLogger
from thriftgen.pipeline import ThriftGenerator
from thriftgen.resolver import LocalRepositoryResolver
from thriftgen.scopes import GenerationScope, MainScope, ProjectModel, TestScope

EXIT_OK = 0
EXIT_BUILD_FAILURE = 1
EXIT_CONFIGURATION = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="thriftgen",
        description="Generate code from .thrift files, including IDL shipped in dependencies.",
    )
    parser.add_argument("--scope", choices=("main", "test"), default="main")
    parser.add_argument("--project-dir", type=Path, default=Path.cwd())
    parser.add_argument("--build-dir", type=Path, default=None)
    parser.add_argument("--source-root", type=Path, default=None)
    parser.add_argument("--output-dir", type=Path, default=None)
    parser.add_argument(
        "--dependency",
        action="append",
        type=Path,
        default=[],
        help="Dependency archive or directory to search for thrift files (repeatable).",
    )
    parser.add_argument(
        "--option",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Generator option such as generator=java or checkStaleness=true (repeatable).",
    )
    parser.add_argument("--report", type=Path, default=None, help="Write a .json or .cbor report.")
    parser.add_argument(
        "--log-level",
        choices=("debug", "info", "warning", "error"),
        default="info",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    project_dir = args.project_dir.absolute()
    logger = StructuredLogger()
    try:
        options = _parse_options(args.option)
        config = GeneratorConfig.from_options(options, base_dir=project_dir)
        project = ProjectModel(
            base_dir=project_dir,
            build_dir=args.build_dir.absolute() if args.build_dir else None,
        )
        dependencies = [path.absolute() for path in args.dependency]
        if args.scope == "test":
            project.test_artifacts.extend(dependencies)
        else:
            project.compile_artifacts.extend(dependencies)
        scope = _make_scope(args, project)
        resolver = (
            LocalRepositoryResolver(config.local_repository)
            if config.local_repository is not None
            else None
        )
        generator = ThriftGenerator(config=config, resolver=resolver, logger=logger)
        outcome = generator.run(scope)
    except ConfigurationError as exc:
        _flush(logger, args.log_level)
        print(f"error[{exc.code}]: {exc}", file=sys.stderr)
        return EXIT_CONFIGURATION
    except ThriftGenError as exc:
        _flush(logger, args.log_level)
        print(f"error[{exc.code}]: {exc}", file=sys.stderr)
        return EXIT_BUILD_FAILURE

    _flush(logger, args.log_level)
    if args.report is not None:
        if args.report.suffix == ".cbor":
            outcome.to_cbor(args.report)
        else:
            outcome.to_json(args.report)
    return EXIT_OK


def _make_scope(args: argparse.Namespace, project: ProjectModel) -> GenerationScope:
    scope_type = TestScope if args.scope == "test" else MainScope
    return scope_type(
        project=project,
        source_dir=args.source_root.absolute() if args.source_root else None,
        output_dir=args.output_dir.absolute() if args.output_dir else None,
    )


def _parse_options(raw: Sequence[str]) -> dict[str, str]:
    options: dict[str, str] = {}
    for item in raw:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise ConfigurationError(
                f"Malformed option `{item}`; expected KEY=VALUE.",
                context={"operation": "configure"},
            )
        options[key.strip()] = value
    return options


def _flush(logger: StructuredLogger, level: str) -> None:
    for record in logger.records_at_least(level):  # type: ignore[arg-type]
        print(f"[{record['level']}] {record['message']}", file=sys.stderr)


if __name__ == "__main__":
    sys.exit(main())
