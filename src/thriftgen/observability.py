"""Structured logging helpers."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

Level = Literal["debug", "info", "warning", "error"]

LEVEL_ORDER: dict[str, int] = {"debug": 10, "info": 20, "warning": 30, "error": 40}


@dataclass(slots=True)
class StructuredLogger:
    records: list[dict[str, Any]] = field(default_factory=list)

    def log(
        self,
        *,
        operation: str,
        scope: str | None,
        phase: str | None,
        message: str,
        level: Level = "info",
        extra: dict[str, Any] | None = None,
    ) -> None:
        record: dict[str, Any] = {
            "level": level,
            "operation": operation,
            "scope": scope,
            "phase": phase,
            "message": message,
        }
        if extra is not None:
            record["extra"] = extra
        self.records.append(record)

    def records_for_scope(self, scope: str) -> list[dict[str, Any]]:
        return [record for record in self.records if record.get("scope") == scope]

    def messages(self, level: Level | None = None) -> list[str]:
        return [
            record["message"]
            for record in self.records
            if level is None or record["level"] == level
        ]

    def records_at_least(self, level: Level) -> list[dict[str, Any]]:
        threshold = LEVEL_ORDER[level]
        return [record for record in self.records if LEVEL_ORDER[record["level"]] >= threshold]

    def to_json_lines(self, path: str | Path) -> Path:
        output_path = Path(path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        lines = [json.dumps(record, sort_keys=True, default=str) for record in self.records]
        output_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return output_path
