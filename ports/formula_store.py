"""
Port: FormulaStore
Odpowiedzialność: rejestr skompilowanych formuł po identyfikatorze.
"""
from typing import Iterable, Optional, Protocol, runtime_checkable

from contracts import Formula, FormulaDefinition, ParseResult


@runtime_checkable
class FormulaStore(Protocol):
    def register(self, formula_id: str, expression: str) -> bool:
        """
        Parses `expression` and caches it under `formula_id` (replacing any previous one).
        Returns False and reports the parse error if the expression is invalid;
        an invalid expression is never cached.
        """
        ...

    def register_with_result(self, formula_id: str, expression: str) -> ParseResult:
        """
        Same as `register`, but returns the full ParseResult so callers can
        show the diagnostic without parsing the expression a second time.
        """
        ...

    def register_many(self, definitions: Iterable[FormulaDefinition]) -> int:
        """Registers each definition; returns the number registered successfully."""
        ...

    def get(self, formula_id: str) -> Optional[Formula]:
        ...

    def has(self, formula_id: str) -> bool:
        ...

    def required_inputs(self, formula_id: str) -> frozenset[str]:
        """Input variables of the formula; empty set for unknown ids."""
        ...

    def expression(self, formula_id: str) -> Optional[str]:
        ...

    def ids(self) -> list[str]:
        ...

    def count(self) -> int:
        ...

    def remove(self, formula_id: str) -> bool:
        ...

    def clear(self) -> None:
        ...
