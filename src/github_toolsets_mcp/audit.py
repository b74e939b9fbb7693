"""Per-call audit trail.

Every tool call produces exactly one JSON line on stderr (and optionally in a
rotating file). Lines record which tool ran, the toolset it belongs to, whether
it is a read or write operation and how it ended. Tokens and request bodies are
never recorded.
"""

from __future__ import annotations

import json
import sys
import time
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any


def new_correlation_id() -> str:
    """Random id tying a tool result to its audit line."""
    return uuid.uuid4().hex


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True, slots=True)
class AuditEvent:
    correlation_id: str
    tool: str
    repo: str
    outcome: str
    toolset: str | None = None
    kind: str | None = None
    reason: str | None = None
    duration_ms: int | None = None
    timestamp: str = field(default_factory=_utc_timestamp)

    def to_json(self) -> str:
        payload: dict[str, Any] = {k: v for k, v in asdict(self).items() if v is not None}
        return json.dumps(payload, sort_keys=True, separators=(",", ":"))


class RotatingJsonlSink:
    """Append-only JSONL file that rolls over to `<path>.1 .. <path>.N` past `max_bytes`."""

    def __init__(self, path: Path, *, max_bytes: int, max_backups: int) -> None:
        self.path = path
        self.max_bytes = max_bytes
        self.max_backups = max_backups

    def _backup(self, i: int) -> Path:
        return Path(f"{self.path}.{i}")

    def _roll_over(self) -> None:
        if not self.path.exists() or self.path.stat().st_size < self.max_bytes:
            return
        if self.max_backups <= 0:
            self.path.write_text("", encoding="utf-8")
            return
        self._backup(self.max_backups).unlink(missing_ok=True)
        for i in range(self.max_backups - 1, 0, -1):
            if self._backup(i).exists():
                self._backup(i).replace(self._backup(i + 1))
        self.path.replace(self._backup(1))

    def append(self, line: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._roll_over()
        with self.path.open("a", encoding="utf-8") as f:
            f.write(line + "\n")


class AuditLogger:
    """Writes audit events to stderr and, when configured, to a rotating file."""

    def __init__(
        self,
        *,
        sink_path: Path | None,
        max_bytes: int = 5 * 1024 * 1024,
        max_backups: int = 2,
    ) -> None:
        self._sink = (
            RotatingJsonlSink(sink_path, max_bytes=max_bytes, max_backups=max_backups)
            if sink_path is not None
            else None
        )

    def write_event(self, event: AuditEvent) -> None:
        line = event.to_json()
        print(line, file=sys.stderr)
        if self._sink is None:
            return
        try:
            self._sink.append(line)
        except OSError:  # pragma: no cover
            # The stderr line already went out; a broken file sink must not fail the call.
            return

    def start_timer(self) -> float:
        return time.monotonic()

    def elapsed_ms(self, start: float) -> int:
        return int((time.monotonic() - start) * 1000)
