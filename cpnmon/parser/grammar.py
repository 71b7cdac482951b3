"""
Parser for the CPNMON text notation.

One grammar covers both forms of the notation:

    line   : event LOCATION | event | token
    event  : NAME ( fields ) | NAME ( )
    fields : fields , NAME = value | NAME = value
    value  : NUMBER | STRING | NAME
    token  : NAME ( NUMBER ) | NAME

Event lines become ``(MonitorEvent, Optional[SourceLocation])`` pairs;
token literals become :class:`~cpnmon.core.token.Token` values.
"""

from __future__ import annotations

from typing import Any, List, Optional, Tuple

import sly

from cpnmon.core.diagnostic import SourceLocation
from cpnmon.core.event import MonitorEvent, make_event
from cpnmon.core.token import Token, make_token
from cpnmon.parser.lexer import NotationLexer


class ParseError(Exception):
    """Exception raised for parsing errors."""

    pass


class _RawEvent:
    """Unvalidated event: type name plus ordered fields."""

    __slots__ = ("name", "fields")

    def __init__(self, name: str, fields: List[Tuple[str, Any]]) -> None:
        self.name = name
        self.fields = fields


class _SLYParser(sly.Parser):
    """SLY-based parser for the text notation."""

    tokens = NotationLexer.tokens

    # --- Lines ---

    @_("event LOCATION")
    def line(self, p):
        return (p.event, p.LOCATION)

    @_("event")
    def line(self, p):
        return (p.event, None)

    @_("token")
    def line(self, p):
        return p.token

    # --- Events ---

    @_("NAME LPAREN fields RPAREN")
    def event(self, p):
        return _RawEvent(p.NAME, p.fields)

    @_("NAME LPAREN RPAREN")
    def event(self, p):
        return _RawEvent(p.NAME, [])

    @_("fields COMMA field")
    def fields(self, p):
        return p.fields + [p.field]

    @_("field")
    def fields(self, p):
        return [p.field]

    @_("NAME EQUALS value")
    def field(self, p):
        return (p.NAME, p.value)

    @_("NUMBER")
    def value(self, p):
        return p.NUMBER

    @_("STRING")
    def value(self, p):
        return p.STRING

    @_("NAME")
    def value(self, p):
        return p.NAME

    # --- Token literals ---

    @_("NAME LPAREN NUMBER RPAREN")
    def token(self, p):
        return (p.NAME, p.NUMBER)

    @_("NAME")
    def token(self, p):
        return (p.NAME, None)

    def error(self, token):
        if token:
            raise ParseError(
                f"Syntax error at '{token.value}' " f"(type: {token.type}, index: {token.index})"
            )
        raise ParseError("Syntax error: unexpected end of input")


class NotationParser:
    """
    Parser for the text notation.

    Wraps the SLY-based parser and turns its raw results into tokens
    and events, reporting semantic problems as :class:`ParseError`.
    """

    def __init__(self) -> None:
        self._lexer = NotationLexer()
        self._parser = _SLYParser()

    def _parse(self, text: str) -> Any:
        text = text.strip()
        if not text:
            raise ParseError("Syntax error: empty input")

        result = self._parser.parse(self._lexer.tokenize(text))
        if result is None:
            raise ParseError("Syntax error: could not parse input")
        return result

    def parse_token(self, text: str) -> Token:
        """
        Parse a token literal such as ``Lock(42)`` or ``Unit``.

        Unrecognized kinds map to ``Unit``.

        Raises:
            ParseError: If the text is not a token literal, or a known
                kind is written without a value.
        """
        result = self._parse(text)
        if not isinstance(result, tuple) or isinstance(result[0], _RawEvent):
            raise ParseError(f"Expected a token literal, got '{text.strip()}'")
        kind, value = result
        try:
            return make_token(kind, value)
        except ValueError as exc:
            raise ParseError(f"Invalid token literal '{text.strip()}': {exc}") from exc

    def parse_event_line(self, text: str) -> Tuple[MonitorEvent, Optional[SourceLocation]]:
        """
        Parse an event line such as ``LockAcquire(tid=1, lock_id=7) @ main.rs:4:9``.

        Returns:
            The event and its source location (None if absent).

        Raises:
            ParseError: On syntax errors, unknown event types, duplicate,
                missing or mistyped fields.
        """
        result = self._parse(text)
        if not isinstance(result, tuple) or not isinstance(result[0], _RawEvent):
            raise ParseError(f"Expected an event, got '{text.strip()}'")
        raw, location_text = result

        values = {}
        for name, value in raw.fields:
            if name in values:
                raise ParseError(f"{raw.name}: duplicate field '{name}'")
            values[name] = value

        try:
            event = make_event(raw.name, values)
            location = (
                SourceLocation.from_string(location_text)
                if location_text is not None
                else None
            )
        except ValueError as exc:
            raise ParseError(str(exc)) from exc
        return event, location
