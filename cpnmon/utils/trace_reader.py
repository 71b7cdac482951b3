"""
Event trace reader for replaying recorded executions.

Two formats are supported, chosen by file suffix:

* ``.trace`` / ``.txt`` -- the text notation, one event per line::

      # two threads, one mutex
      LockAcquire(tid=1, lock_id=7) @ src/main.rs:12:9
      LockRelease(tid=1, lock_id=7)

* anything else -- newline-delimited JSON, one event object per line::

      {"type": "LockAcquire", "tid": 1, "lock_id": 7, "location": "src/main.rs:12:9"}

  Execution log records (``{"event": {...}, "marking_hash": ...}``) are
  accepted as well, so a log written by the runtime can be replayed.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator, List, Optional, Tuple

from cpnmon.core.diagnostic import SourceLocation
from cpnmon.core.event import MonitorEvent, event_from_dict
from cpnmon.parser.grammar import ParseError
from cpnmon.parser.lexer import LexerError
from cpnmon.parser.notation import parse_event_line

_TEXT_SUFFIXES = frozenset({".trace", ".txt"})


class TraceError(ValueError):
    """
    A malformed trace line.

    Attributes:
        lineno: 1-based line number of the offending line.
    """

    def __init__(self, filepath: Path, lineno: int, message: str) -> None:
        self.lineno: int = lineno
        super().__init__(f"{filepath}:{lineno}: {message}")


@dataclass(frozen=True)
class TraceEntry:
    """
    One event of a trace.

    Attributes:
        event: The event.
        location: Source location, if recorded.
        lineno: Line of the trace file the event came from.
    """

    event: MonitorEvent
    location: Optional[SourceLocation]
    lineno: int


class TraceReader:
    """
    Parses trace files into :class:`TraceEntry` objects.

    Attributes:
        filepath: Path to the trace file.
    """

    def __init__(self, filepath: Path) -> None:
        self.filepath: Path = Path(filepath)

    @property
    def is_text(self) -> bool:
        """True if the file uses the text notation."""
        return self.filepath.suffix.lower() in _TEXT_SUFFIXES

    def read_all(self) -> List[TraceEntry]:
        """
        Read all events in file order.

        Raises:
            FileNotFoundError: If the trace file does not exist.
            TraceError: On the first malformed line.
        """
        return list(self.iter_entries())

    def iter_entries(self) -> Iterator[TraceEntry]:
        """Yield events lazily in file order."""
        if not self.filepath.exists():
            raise FileNotFoundError(f"Trace file not found: {self.filepath}")

        with open(self.filepath, encoding="utf-8") as f:
            for lineno, line in enumerate(f, start=1):
                stripped = line.strip()
                if not stripped or stripped.startswith("#"):
                    continue
                yield self._parse_line(stripped, lineno)

    def validate(self) -> List[str]:
        """
        Validate every line and return a list of error strings.

        Returns:
            List of error messages (empty if valid).
        """
        errors: List[str] = []
        if not self.filepath.exists():
            errors.append(f"File not found: {self.filepath}")
            return errors

        with open(self.filepath, encoding="utf-8") as f:
            for lineno, line in enumerate(f, start=1):
                stripped = line.strip()
                if not stripped or stripped.startswith("#"):
                    continue
                try:
                    self._parse_line(stripped, lineno)
                except TraceError as exc:
                    errors.append(str(exc))
        return errors

    # ------------------------------------------------------------------ #
    # Static helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def parse_json_record(data: Any) -> Tuple[MonitorEvent, Optional[SourceLocation]]:
        """
        Decode one JSON trace record.

        Accepts a bare event object (with optional ``location``) or an
        execution log record whose ``event`` field holds the event.

        Raises:
            ValueError: If the record is not a valid event.
        """
        if isinstance(data, dict) and isinstance(data.get("event"), dict):
            data = data["event"]
        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object, got {data!r}")

        fields = dict(data)
        raw_location = fields.pop("location", None)
        location = TraceReader.parse_location(raw_location)
        return event_from_dict(fields), location

    @staticmethod
    def parse_location(data: Any) -> Optional[SourceLocation]:
        """Decode ``"file:line:col"`` or ``{"file", "line", "column"}``."""
        if data is None:
            return None
        if isinstance(data, str):
            return SourceLocation.from_string(data)
        if isinstance(data, dict):
            try:
                return SourceLocation(
                    file=str(data["file"]),
                    line=int(data["line"]),
                    column=int(data.get("column", 0)),
                )
            except (KeyError, TypeError, ValueError) as exc:
                raise ValueError(f"Malformed location object: {data!r}") from exc
        raise ValueError(f"Malformed location: {data!r}")

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    def _parse_line(self, line: str, lineno: int) -> TraceEntry:
        try:
            if self.is_text:
                event, location = parse_event_line(line)
            else:
                event, location = self.parse_json_record(json.loads(line))
        except (LexerError, ParseError, ValueError) as exc:
            raise TraceError(self.filepath, lineno, str(exc)) from exc
        return TraceEntry(event=event, location=location, lineno=lineno)
