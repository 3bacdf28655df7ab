"""Build event log shared by every task, with an optional JSONL sink."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import TextIO

SEVERITIES = ("error", "warning", "message")
IMPORTANCES = ("low", "normal", "high")


@dataclass(slots=True, frozen=True)
class BuildEvent:
    """One logged build event."""

    timestamp: str
    task: str
    severity: str
    importance: str
    message: str


def utc_timestamp() -> str:
    """Return an ISO-8601 UTC timestamp."""
    return datetime.now(tz=UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class JsonlEventLog:
    """Append-only JSONL event writer."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        """Return on-disk JSONL path."""
        return self._path

    def append(self, event: BuildEvent) -> None:
        """Append an event as one JSON object per line."""
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(asdict(event), sort_keys=True))
            handle.write("\n")


class BuildLog:
    """Collects (severity, message) events for one task invocation.

    Errors never stop the caller; they are counted so a task can walk every
    input and decide success from ``has_logged_errors`` at the end.
    """

    def __init__(
        self,
        task: str,
        sink: JsonlEventLog | None = None,
        stream: TextIO | None = None,
        verbosity: str = "normal",
    ) -> None:
        if verbosity not in IMPORTANCES:
            raise ValueError(f"verbosity must be one of {', '.join(IMPORTANCES)}")
        self._task = task
        self._sink = sink
        self._stream = stream
        self._threshold = IMPORTANCES.index(verbosity)
        self._events: list[BuildEvent] = []
        self._error_count = 0

    @property
    def task(self) -> str:
        return self._task

    @property
    def events(self) -> tuple[BuildEvent, ...]:
        return tuple(self._events)

    @property
    def error_count(self) -> int:
        return self._error_count

    @property
    def has_logged_errors(self) -> bool:
        return self._error_count > 0

    def error(self, message: str) -> None:
        self._error_count += 1
        self._record("error", "high", message)

    def error_from_exception(self, exc: BaseException) -> None:
        """Log an exception as an error without its traceback."""
        detail = str(exc) or type(exc).__name__
        self.error(f"{type(exc).__name__}: {detail}")

    def warning(self, message: str) -> None:
        self._record("warning", "high", message)

    def message(self, message: str, importance: str = "normal") -> None:
        if importance not in IMPORTANCES:
            raise ValueError(f"importance must be one of {', '.join(IMPORTANCES)}")
        self._record("message", importance, message)

    def messages(self, severity: str) -> list[str]:
        """Return logged messages of one severity in order."""
        return [event.message for event in self._events if event.severity == severity]

    def _record(self, severity: str, importance: str, message: str) -> None:
        event = BuildEvent(
            timestamp=utc_timestamp(),
            task=self._task,
            severity=severity,
            importance=importance,
            message=message,
        )
        self._events.append(event)
        if self._sink is not None:
            self._sink.append(event)
        if self._stream is not None and IMPORTANCES.index(importance) >= self._threshold:
            prefix = "" if severity == "message" else f"{severity}: "
            self._stream.write(f"{prefix}{message}\n")
