"""Skip-if-fresh check comparing source and output modification times."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path


def last_modified_millis(files: Iterable[Path]) -> int:
    """Newest modification time in milliseconds; ``0`` for an empty set."""
    newest = 0
    for path in files:
        modified = path.stat().st_mtime_ns // 1_000_000
        if modified > newest:
            newest = modified
    return newest


def outputs_are_fresh(
    sources: Iterable[Path],
    outputs: Iterable[Path],
    *,
    stale_millis: int = 0,
) -> bool:
    """True when the generated outputs are newer than every source plus the slack."""
    return last_modified_millis(sources) + stale_millis < last_modified_millis(outputs)
