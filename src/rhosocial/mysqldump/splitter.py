# src/rhosocial/mysqldump/splitter.py
"""
Statement splitter for multi-statement SQL scripts.

The splitter is a lexical scanner, not a parser: it only tracks enough state
(quotes and comments) to decide which semicolons terminate a statement.
It accepts any text and never raises; malformed input simply ends up in the
final statement, where the server will reject it on execution.

Line comments (``-- ...`` and ``# ...``) are dropped up to, but not including,
the terminating newline. Block comments and quoted literals are kept verbatim.
"""

from enum import Enum
from typing import List, Optional


class LexerState(Enum):
    """Scanner states; exactly one is active at a time."""
    NORMAL = "normal"
    LINE_COMMENT = "line_comment"
    BLOCK_COMMENT = "block_comment"
    QUOTE = "quote"


QUOTE_CHARS = ("'", '"', "`")
STATEMENT_DELIMITER = ";"


class _CharStream:
    """Character iterator with one character of lookahead."""

    def __init__(self, text: str):
        self._text = text
        self._pos = 0

    def next(self) -> Optional[str]:
        if self._pos >= len(self._text):
            return None
        char = self._text[self._pos]
        self._pos += 1
        return char

    def peek(self) -> Optional[str]:
        if self._pos >= len(self._text):
            return None
        return self._text[self._pos]


class StatementSplitter:
    """Finite state machine that splits SQL text into statements.

    Each call to :meth:`split` starts from a clean state, so one instance may
    be reused freely.
    """

    def __init__(self):
        self._reset()

    def _reset(self) -> None:
        self._state = LexerState.NORMAL
        self._quote: Optional[str] = None
        self._buffer: List[str] = []
        self._statements: List[str] = []

    def split(self, text: str) -> List[str]:
        """Split ``text`` into trimmed, non-empty statements in source order.

        Args:
            text: SQL script content

        Returns:
            List[str]: Statements without their trailing delimiter
        """
        self._reset()
        stream = _CharStream(text)
        handlers = {
            LexerState.NORMAL: self._step_normal,
            LexerState.LINE_COMMENT: self._step_line_comment,
            LexerState.BLOCK_COMMENT: self._step_block_comment,
            LexerState.QUOTE: self._step_quote,
        }

        char = stream.next()
        while char is not None:
            handlers[self._state](char, stream)
            char = stream.next()

        # Unterminated quotes and comments close silently at end of input
        self._flush()
        statements = self._statements
        self._reset()
        return statements

    def _flush(self) -> None:
        statement = "".join(self._buffer).strip()
        if statement:
            self._statements.append(statement)
        self._buffer = []

    def _step_normal(self, char: str, stream: _CharStream) -> None:
        if char == "-" and stream.peek() == "-":
            stream.next()
            self._state = LexerState.LINE_COMMENT
        elif char == "#":
            self._state = LexerState.LINE_COMMENT
        elif char == "/" and stream.peek() == "*":
            stream.next()
            self._buffer.append("/*")
            self._state = LexerState.BLOCK_COMMENT
        elif char in QUOTE_CHARS:
            self._buffer.append(char)
            self._quote = char
            self._state = LexerState.QUOTE
        elif char == STATEMENT_DELIMITER:
            self._flush()
        else:
            self._buffer.append(char)

    def _step_line_comment(self, char: str, stream: _CharStream) -> None:
        if char == "\n":
            self._buffer.append(char)
            self._state = LexerState.NORMAL

    def _step_block_comment(self, char: str, stream: _CharStream) -> None:
        self._buffer.append(char)
        if char == "*" and stream.peek() == "/":
            self._buffer.append(stream.next())
            self._state = LexerState.NORMAL

    def _step_quote(self, char: str, stream: _CharStream) -> None:
        self._buffer.append(char)
        if char == "\\":
            escaped = stream.next()
            if escaped is not None:
                self._buffer.append(escaped)
            return
        if char == self._quote:
            if stream.peek() == self._quote:
                self._buffer.append(stream.next())
                return
            self._quote = None
            self._state = LexerState.NORMAL


def split_statements(text: str) -> List[str]:
    """Split a SQL script into individually executable statements.

    Semicolons inside quoted strings, quoted identifiers and comments do not
    split. A trailing statement without a terminating semicolon is kept.

    Args:
        text: SQL script content

    Returns:
        List[str]: Trimmed, non-empty statements in source order
    """
    return StatementSplitter().split(text)

