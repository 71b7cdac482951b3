"""
Lexical analyzer for the CPNMON text notation.

Tokenizes token literals (``Lock(42)``, ``Unit``) and event trace lines
(``LockAcquire(tid=1, lock_id=7) @ src/main.rs:10:5``) into a stream of
lexer tokens consumed by the parser.
"""

from __future__ import annotations

import sly


class LexerError(Exception):
    """Exception raised for lexical analysis errors."""
    pass


class NotationLexer(sly.Lexer):
    """
    Lexical analyzer for the text notation.

    Token Types:
        NAME            - Identifiers (event types, field names, token kinds)
        NUMBER          - Non-negative integer literals
        STRING          - Double-quoted strings
        LOCATION        - ``@ file:line:column`` suffix
        LPAREN, RPAREN  - Delimiters
        COMMA, EQUALS   - Field separators
    """

    tokens = {
        NAME, NUMBER, STRING,
        LOCATION,
        LPAREN, RPAREN,
        COMMA, EQUALS,
    }

    # Ignored characters
    ignore = " \t"

    # Ignore comments (# to end of line)
    ignore_comment = r"\#[^\n]*"

    @_(r"\n+")
    def ignore_newline(self, t):
        self.lineno += len(t.value)

    # The file part of a location may contain '/', '.', '-' and ':'
    @_(r"@[ \t]*[^\s@#]+:\d+:\d+")
    def LOCATION(self, t):
        t.value = t.value[1:].strip()
        return t

    NAME = r"[a-zA-Z_][a-zA-Z0-9_]*"

    @_(r"\d+")
    def NUMBER(self, t):
        t.value = int(t.value)
        return t

    @_(r'"([^"\\\n]|\\.)*"')
    def STRING(self, t):
        t.value = t.value[1:-1].replace('\\"', '"').replace("\\\\", "\\")
        return t

    LPAREN = r"\("
    RPAREN = r"\)"
    COMMA = r","
    EQUALS = r"="

    def error(self, t):
        """Handle invalid characters."""
        raise LexerError(
            f"Invalid character '{t.value[0]}' at index {self.index}"
        )
