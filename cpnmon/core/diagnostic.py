"""
Protocol violation records and their human-readable rendering.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from cpnmon.core.event import MonitorEvent
from cpnmon.core.marking import Marking, PlaceId
from cpnmon.core.token import Token


@dataclass(frozen=True)
class SourceLocation:
    """Position in the host program's source that produced an event."""

    file: str
    line: int
    column: int

    @classmethod
    def from_string(cls, text: str) -> SourceLocation:
        """
        Parse ``file:line:column``.  The file part may itself contain colons.

        Raises:
            ValueError: If line or column is not an integer.
        """
        try:
            file, line, column = text.strip().rsplit(":", 2)
            return cls(file=file, line=int(line), column=int(column))
        except ValueError as exc:
            raise ValueError(f"Malformed source location: '{text}'") from exc

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.column}"


@dataclass(frozen=True)
class Violation:
    """
    A rejected event together with the state it was rejected in.

    Attributes:
        event: The event whose transition was not enabled.
        tid: Thread id derived from the event.
        object_id: Lock, location or region id, if the event has one.
        location: Source location supplied by the caller, if any.
        transition: Id of the transition that failed to fire.
        missing_tokens: ``(place, token)`` pairs that were not available.
        marking: Snapshot of the full marking at failure time.
    """

    event: MonitorEvent
    tid: int
    object_id: Optional[int]
    location: Optional[SourceLocation]
    transition: str
    missing_tokens: Tuple[Tuple[PlaceId, Token], ...] = field(default_factory=tuple)
    marking: Marking = field(default_factory=Marking, compare=False)


def format_violation(violation: Violation) -> str:
    """
    Render a violation as a multi-line report.

    Places and tokens are listed in sorted order, and places without
    tokens are omitted, so the output depends only on the record.
    """
    lines: List[str] = ["Petri net protocol violation: transition not enabled"]
    lines.append(f"  Event: {violation.event!r}")
    lines.append(f"  Thread ID: {violation.tid}")
    if violation.object_id is not None:
        lines.append(f"  Object ID: {violation.object_id}")
    if violation.location is not None:
        lines.append(f"  Location: {violation.location}")
    lines.append(f"  Transition: {violation.transition}")
    lines.append("  Missing tokens:")
    for place, token in violation.missing_tokens:
        lines.append(f"    - {token} in place '{place}'")
    lines.append("  Current marking (key places):")
    for place, multiset in violation.marking.items():
        tokens = ", ".join(f"{token} x{count}" for token, count in multiset.items())
        lines.append(f"    {place}: [{tokens}]")
    return "\n".join(lines) + "\n"
