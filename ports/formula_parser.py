"""
Port: FormulaParser
Odpowiedzialność: tekst wyrażenia → Formula (AST + zbiór wejść) albo ParseError.
"""
from typing import Protocol, runtime_checkable

from contracts import ParseResult


@runtime_checkable
class FormulaParser(Protocol):
    def parse(self, text: str) -> ParseResult:
        """
        Parses an expression string into a Formula.

        On success ParseResult.formula holds:
          - source_text: the original text
          - root: the AST root node
          - required_inputs: identifiers read before being declared local

        On failure ParseResult.error holds a ParseError with kind, offset,
        1-based line/column and a caret-pointer rendering.
        Never raises for malformed input; never returns a partial Formula.
        """
        ...
