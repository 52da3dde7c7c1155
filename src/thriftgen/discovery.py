"""Source discovery with Ant-style include/exclude patterns.

Patterns are matched against the slash-separated path of each file relative
to the scanned root. ``**`` spans any number of directories (including none),
``*`` matches within a single path segment and ``?`` matches one character.
A pattern ending in ``/`` matches everything below that directory.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from functools import lru_cache
from pathlib import Path

from thriftgen.errors import ConfigurationError
from thriftgen.models import DEFAULT_INCLUDES


def find_thrift_files(
    directory: Path,
    *,
    includes: Iterable[str] = DEFAULT_INCLUDES,
    excludes: Iterable[str] = (),
) -> frozenset[Path]:
    """Return every regular file under *directory* selected by the patterns."""
    if not directory.is_dir():
        raise ConfigurationError(
            f"{directory} is not a directory",
            hint="Point the thrift source root at a directory of .thrift files.",
            context={"operation": "discover", "path": str(directory)},
        )
    include_patterns = [_compile(pattern) for pattern in includes]
    exclude_patterns = [_compile(pattern) for pattern in excludes]
    root = directory.absolute()

    selected: set[Path] = set()
    for candidate in root.rglob("*"):
        if not candidate.is_file():
            continue
        relative = candidate.relative_to(root).as_posix()
        if not any(pattern.fullmatch(relative) for pattern in include_patterns):
            continue
        if any(pattern.fullmatch(relative) for pattern in exclude_patterns):
            continue
        selected.add(candidate)
    return frozenset(selected)


def find_thrift_files_in_directories(
    directories: Iterable[Path],
    *,
    includes: Iterable[str] = DEFAULT_INCLUDES,
    excludes: Iterable[str] = (),
) -> frozenset[Path]:
    include_patterns = tuple(includes)
    exclude_patterns = tuple(excludes)
    found: set[Path] = set()
    for directory in directories:
        found |= find_thrift_files(directory, includes=include_patterns, excludes=exclude_patterns)
    return frozenset(found)


def find_generated_files(directory: Path | None) -> frozenset[Path]:
    """List previously generated outputs; a missing directory yields nothing."""
    if directory is None or not directory.is_dir():
        return frozenset()
    return frozenset(path for path in directory.absolute().rglob("*") if path.is_file())


def pattern_matches(pattern: str, relative_path: str) -> bool:
    return _compile(pattern).fullmatch(relative_path.replace("\\", "/")) is not None


@lru_cache(maxsize=128)
def _compile(pattern: str) -> re.Pattern[str]:
    normalized = pattern.strip().replace("\\", "/")
    if normalized.endswith("/"):
        normalized += "**"
    return re.compile(_translate(normalized))


def _translate(pattern: str) -> str:
    parts: list[str] = []
    i = 0
    while i < len(pattern):
        if pattern.startswith("**/", i):
            parts.append("(?:.*/)?")
            i += 3
        elif pattern.startswith("/**", i) and i + 3 == len(pattern):
            parts.append("(?:/.*)?")
            i += 3
        elif pattern.startswith("**", i):
            parts.append(".*")
            i += 2
        elif pattern[i] == "*":
            parts.append("[^/]*")
            i += 1
        elif pattern[i] == "?":
            parts.append("[^/]")
            i += 1
        else:
            parts.append(re.escape(pattern[i]))
            i += 1
    return "".join(parts)
