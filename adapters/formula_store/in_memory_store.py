"""
Adapter: InMemoryFormulaStore
Implementuje port FormulaStore — rejestr formuł trzymany w pamięci.

Rejestracja parsuje wyrażenie raz; kolejne ewaluacje używają gotowego AST.
Błędna formuła nigdy nie trafia do rejestru — błąd zgłaszany jest przez
callback on_error i logger "formula_kit.store".
"""
from __future__ import annotations

import logging
import threading
from typing import Callable, Iterable, Optional

from adapters.formula_parser import RecursiveDescentParser
from contracts import Formula, FormulaDefinition, ParseResult
from ports.formula_parser import FormulaParser

logger = logging.getLogger("formula_kit.store")


class InMemoryFormulaStore:
    """Słownik id → Formula, bezpieczny dla wielu wątków."""

    def __init__(
        self,
        parser: Optional[FormulaParser] = None,
        on_error: Optional[Callable[[str], None]] = None,
    ) -> None:
        self._parser = parser or RecursiveDescentParser()
        self._on_error = on_error
        self._lock = threading.Lock()
        # formula_id → Formula
        self._formulas: dict[str, Formula] = {}

    # -- FormulaStore protocol ---------------------------------------------

    def register(self, formula_id: str, expression: str) -> bool:
        return self.register_with_result(formula_id, expression).ok

    def register_with_result(self, formula_id: str, expression: str) -> ParseResult:
        result = self._parser.parse(expression)
        if not result.ok:
            assert result.error is not None
            self._report(f"Failed to register formula '{formula_id}': {result.error.render()}")
            return result
        with self._lock:
            self._formulas[formula_id] = result.unwrap()
        return result

    def register_many(self, definitions: Iterable[FormulaDefinition]) -> int:
        return sum(1 for d in definitions if self.register(d.id, d.expression))

    def get(self, formula_id: str) -> Optional[Formula]:
        with self._lock:
            return self._formulas.get(formula_id)

    def has(self, formula_id: str) -> bool:
        with self._lock:
            return formula_id in self._formulas

    def required_inputs(self, formula_id: str) -> frozenset[str]:
        formula = self.get(formula_id)
        return formula.required_inputs if formula is not None else frozenset()

    def expression(self, formula_id: str) -> Optional[str]:
        formula = self.get(formula_id)
        return formula.source_text if formula is not None else None

    def ids(self) -> list[str]:
        with self._lock:
            return list(self._formulas)

    def count(self) -> int:
        with self._lock:
            return len(self._formulas)

    def remove(self, formula_id: str) -> bool:
        with self._lock:
            return self._formulas.pop(formula_id, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._formulas.clear()
        logger.info("All formulas cleared")

    # -- Dodatkowe ---------------------------------------------------------

    def as_dict(self) -> dict[str, str]:
        """id → tekst źródłowy (do eksportu i podglądu)."""
        with self._lock:
            return {fid: f.source_text for fid, f in self._formulas.items()}

    def _report(self, message: str) -> None:
        logger.warning(message)
        if self._on_error is not None:
            self._on_error(message)
