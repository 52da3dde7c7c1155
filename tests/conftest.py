"""Shared test fixtures."""

from __future__ import annotations

import os
import textwrap
from dataclasses import dataclass
from pathlib import Path

import pytest

from thriftgen.scopes import ProjectModel

RESOURCES = Path(__file__).parent / "resources"

FAKE_THRIFT_SCRIPT = textwrap.dedent("""\
    #!/bin/sh
    log="$(dirname "$0")/invocations.log"
    printf '%s\\n' "$*" >> "$log"
    out=""
    while [ "$#" -gt 0 ]; do
        case "$1" in
            --gen|-I)
                shift 2
                ;;
            -out)
                out="$2"
                shift 2
                ;;
            *)
                if [ ! -f "$1" ]; then
                    echo "[FAILURE:arguments] Could not open input file with realpath: $1" >&2
                    exit 1
                fi
                if grep -q "syntax-error" "$1"; then
                    echo "[ERROR:$1] syntax error" >&2
                    exit 1
                fi
                name=$(basename "$1" .thrift)
                echo "// generated from $1" > "$out/$name.java"
                shift
                ;;
        esac
    done
    echo "generated into $out"
""")


@dataclass(frozen=True, slots=True)
class FakeThrift:
    path: Path

    @property
    def log(self) -> Path:
        return self.path.parent / "invocations.log"

    def invocations(self) -> list[str]:
        if not self.log.exists():
            return []
        return self.log.read_text(encoding="utf-8").splitlines()


def write_fake_thrift(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(FAKE_THRIFT_SCRIPT, encoding="utf-8")
    path.chmod(0o755)
    return path


@pytest.fixture
def fake_thrift(tmp_path: Path) -> FakeThrift:
    """A shell stand-in for the thrift compiler that records its argv."""
    if os.name != "posix":
        pytest.skip("Fake thrift compiler is a POSIX shell script.")
    return FakeThrift(path=write_fake_thrift(tmp_path / "fake-bin" / "thrift"))


@pytest.fixture
def idl_dir() -> Path:
    return RESOURCES / "idl"


@pytest.fixture
def project(tmp_path: Path) -> ProjectModel:
    base_dir = tmp_path / "project"
    base_dir.mkdir()
    return ProjectModel(base_dir=base_dir)
