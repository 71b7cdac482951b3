"""
Convenience functions for the CPNMON text notation.

Module-level entry points share a single :class:`NotationParser`
instance, and :func:`format_event` writes events back in the notation.
"""

from __future__ import annotations

from typing import Optional, Tuple

from cpnmon.core.diagnostic import SourceLocation
from cpnmon.core.event import MonitorEvent
from cpnmon.core.token import Token
from cpnmon.parser.grammar import NotationParser


_parser = NotationParser()


def parse_token(text: str) -> Token:
    """
    Parse a token literal (``Lock(42)``, ``Tid(1)``, ``Unit``).

    Raises:
        LexerError: On characters outside the notation.
        ParseError: If the text is not a valid token literal.
    """
    return _parser.parse_token(text)


def parse_event_line(text: str) -> Tuple[MonitorEvent, Optional[SourceLocation]]:
    """
    Parse one event trace line.

    Raises:
        LexerError: On characters outside the notation.
        ParseError: If the line is not a valid event.
    """
    return _parser.parse_event_line(text)


def format_event(event: MonitorEvent, location: Optional[SourceLocation] = None) -> str:
    """
    Render an event in the text notation.

    String values are always quoted, so the output parses back to the
    same event.
    """
    parts = []
    for name, value in event.to_dict().items():
        if name == "type":
            continue
        if isinstance(value, str):
            escaped = value.replace("\\", "\\\\").replace('"', '\\"')
            parts.append(f'{name}="{escaped}"')
        else:
            parts.append(f"{name}={value}")
    text = f"{event.type_name}({', '.join(parts)})"
    if location is not None:
        text += f" @ {location}"
    return text
