"""
_diagnostics.py — kontekst błędu parsowania: linia, kolumna, tekst linii, wskaźnik '^'.

Używane przez RecursiveDescentParser przy budowaniu ParseError.
"""
from __future__ import annotations

from contracts import ParseError, ParseErrorKind


def _error_position(text: str, offset: int) -> int:
    """Pozycja przycięta do [0, len-1] — koniec tekstu wskazuje ostatni znak."""
    if not text:
        return 0
    return max(0, min(offset, len(text) - 1))


def _line_and_column(text: str, position: int) -> tuple[int, int]:
    line, column = 1, 1
    for ch in text[:position]:
        if ch == "\n":
            line += 1
            column = 1
        elif ch != "\r":
            column += 1
    return line, column


def _line_text(text: str, position: int) -> str:
    start = max(text.rfind("\n", 0, position), text.rfind("\r", 0, position)) + 1
    end = position
    while end < len(text) and text[end] not in "\r\n":
        end += 1
    return text[start:end]


def _pointer(column: int, line_length: int) -> str:
    max_column = line_length + 1 if line_length > 0 else 1
    safe_column = max(1, min(column, max_column))
    return " " * (safe_column - 1) + "^"


def build_parse_error(
    text: str,
    kind: ParseErrorKind,
    message: str,
    offset: int,
) -> ParseError:
    if not text:
        return ParseError(
            kind=kind, message=message, offset=0, line=1, column=1,
            line_text="", pointer="^", expression=text,
        )
    position = _error_position(text, offset)
    line, column = _line_and_column(text, position)
    line_text = _line_text(text, position)
    return ParseError(
        kind=kind,
        message=message,
        offset=position,
        line=line,
        column=column,
        line_text=line_text,
        pointer=_pointer(column, len(line_text)),
        expression=text,
    )
