"""
Adapter: FormulaRunner
Fasada ewaluacji: id formuły → wynik float.

Polityka błędów "zgłoś i zwróć domyślne": brak formuły albo błąd ewaluacji
(np. brak zmiennej wejściowej) jest raportowany przez on_error i logger
"formula_kit.runner", a wynikiem jest 0.0. try_evaluate() zwraca flagę sukcesu.

Pooling: dla evaluate_with() słownik wejść formuły jest utrzymywany między
wywołaniami (czyszczony, wymagane wejścia ustawione na 0). Ewaluator i tak
kopiuje wiązania do własnego kontekstu. Lock chroni tylko wypełnienie puli
i jej kopię; ewaluacja i callback on_error działają już bez locka.
"""
from __future__ import annotations

import logging
import threading
from typing import Callable, Iterable, Mapping, Optional

from contracts import Formula, RunnerStats
from ports.formula_store import FormulaStore

logger = logging.getLogger("formula_kit.runner")


class FormulaRunner:
    def __init__(
        self,
        store: FormulaStore,
        on_error: Optional[Callable[[str], None]] = None,
        use_input_pooling: bool = True,
    ) -> None:
        if store is None:
            raise ValueError("store is required")
        self._store = store
        self._on_error = on_error
        self._use_input_pooling = use_input_pooling
        self._lock = threading.Lock()
        # formula_id → słownik wejść wielokrotnego użytku
        self._input_pools: dict[str, dict[str, float]] = {}

    @property
    def use_input_pooling(self) -> bool:
        return self._use_input_pooling

    @use_input_pooling.setter
    def use_input_pooling(self, value: bool) -> None:
        self._use_input_pooling = value

    # -- Ewaluacja ---------------------------------------------------------

    def evaluate(self, formula_id: str, bindings: Mapping[str, float]) -> float:
        formula = self._lookup(formula_id)
        if formula is None:
            return 0.0
        return self._run(formula_id, formula, bindings)

    def evaluate_with(
        self,
        formula_id: str,
        *pairs: tuple[str, float],
        **inputs: float,
    ) -> float:
        """Wejścia jako pary (nazwa, wartość) i/lub argumenty nazwane."""
        formula = self._lookup(formula_id)
        if formula is None:
            return 0.0

        if not self._use_input_pooling:
            bindings = dict(pairs)
            bindings.update(inputs)
            return self._run(formula_id, formula, bindings)

        with self._lock:
            pooled = self._input_pools.get(formula_id)
            if pooled is None:
                pooled = {}
                self._input_pools[formula_id] = pooled
            else:
                pooled.clear()
            for name in formula.required_inputs:
                pooled[name] = 0.0
            pooled.update(pairs)
            pooled.update(inputs)
            bindings = dict(pooled)
        # Ewaluacja i on_error poza lockiem
        return self._run(formula_id, formula, bindings)

    def evaluate_batch(
        self,
        formula_id: str,
        batch: list[Mapping[str, float]],
    ) -> list[float]:
        """Ta sama formuła dla wielu zestawów wejść; pierwszy błąd przerywa partię."""
        results = [0.0] * len(batch)
        formula = self._lookup(formula_id)
        if formula is None:
            return results
        for i, bindings in enumerate(batch):
            outcome = formula.evaluate(bindings)
            if not outcome.ok:
                assert outcome.error is not None
                self._report(
                    f"Error in batch evaluation of '{formula_id}': {outcome.error.message}"
                )
                break
            results[i] = outcome.unwrap()
        return results

    def evaluate_multiple(
        self,
        formula_ids: Iterable[str],
        bindings: Mapping[str, float],
    ) -> dict[str, float]:
        return {fid: self.evaluate(fid, bindings) for fid in formula_ids}

    def try_evaluate(
        self,
        formula_id: str,
        bindings: Mapping[str, float],
    ) -> tuple[bool, float]:
        formula = self._store.get(formula_id)
        if formula is None:
            return False, 0.0
        outcome = formula.evaluate(bindings)
        if not outcome.ok:
            return False, 0.0
        return True, outcome.unwrap()

    # -- Pule --------------------------------------------------------------

    def prepare(self, formula_id: str) -> None:
        """Tworzy z góry pulę wejść dla formuły."""
        formula = self._store.get(formula_id)
        if formula is None:
            self._report(f"Cannot prepare formula '{formula_id}' - not found")
            return
        with self._lock:
            if formula_id in self._input_pools:
                return
            self._input_pools[formula_id] = {name: 0.0 for name in formula.required_inputs}

    def clear_pools(self) -> None:
        with self._lock:
            self._input_pools.clear()

    def stats(self) -> RunnerStats:
        with self._lock:
            return RunnerStats(
                pooled_formula_count=len(self._input_pools),
                pooling_enabled=self._use_input_pooling,
            )

    # -- Prywatne ----------------------------------------------------------

    def _lookup(self, formula_id: str) -> Optional[Formula]:
        formula = self._store.get(formula_id)
        if formula is None:
            self._report(f"Formula '{formula_id}' not found")
        return formula

    def _run(self, formula_id: str, formula: Formula, bindings: Mapping[str, float]) -> float:
        outcome = formula.evaluate(bindings)
        if not outcome.ok:
            assert outcome.error is not None
            self._report(f"Error evaluating formula '{formula_id}': {outcome.error.message}")
            return 0.0
        return outcome.unwrap()

    def _report(self, message: str) -> None:
        logger.warning(message)
        if self._on_error is not None:
            self._on_error(message)
