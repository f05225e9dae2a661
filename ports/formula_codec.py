"""
Port: FormulaCodec
Odpowiedzialność: (de)serializacja par (id, wyrażenie) — nigdy AST.
"""
from typing import Protocol, runtime_checkable

from contracts import FormulaDefinition


@runtime_checkable
class FormulaCodec(Protocol):
    def decode(self, text: str) -> list[FormulaDefinition]:
        """
        Parses a document of the form {"formulas": [{"id": ..., "expression": ...}]}.
        Entries with an empty id or expression are skipped.
        Raises ValueError on a malformed document.
        """
        ...

    def encode(self, definitions: list[FormulaDefinition]) -> str:
        """Serializes definitions into the same document shape."""
        ...
