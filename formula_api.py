"""
formula_api.py — statyczny punkt wejścia do FormulaKit.

Jednorazowe użycie bez ręcznego zarządzania rejestrem:

    import formula_api

    formula_api.run("a + b * 2", {"a": 2, "b": 3})                    # 8.0
    formula_api.request("x * mult").set("x", 4).set("mult", 2).evaluate()
    formula_api.request("hp * 0.1").with_cache("regen").set("hp", 50).evaluate()

Formuły są cache'owane po id — domyślnie skrót SHA-256 wyrażenia, więc to
samo wyrażenie parsowane jest tylko raz. Id podane przez wywołującego,
pod którym zapisano inne wyrażenie, jest rejestrowane ponownie.
"""
from __future__ import annotations

import hashlib
import threading
from typing import Mapping, Optional

from adapters.formula_runner import FormulaRunner
from adapters.formula_store import InMemoryFormulaStore


class FormulaRegistrationError(ValueError):
    """Wyrażenie nie dało się sparsować — nie zostało zarejestrowane."""

    def __init__(self, formula_id: str, errors: list[str]) -> None:
        detail = "\n".join(errors) if errors else "unknown parse error"
        super().__init__(f"Failed to register formula '{formula_id}'.\n{detail}")
        self.formula_id = formula_id
        self.errors = errors


_lock = threading.RLock()
_errors: list[str] = []
_store = InMemoryFormulaStore(on_error=_errors.append)
_runner = FormulaRunner(_store)


def _expression_id(expression: str) -> str:
    return hashlib.sha256(expression.encode("utf-8")).hexdigest()


def _ensure_registered(expression: str, cache_id: Optional[str]) -> str:
    # Pusty lub biały cache_id → id z hasha wyrażenia
    formula_id = cache_id if cache_id and cache_id.strip() else _expression_id(expression)
    with _lock:
        if _store.expression(formula_id) == expression:
            return formula_id
        _errors.clear()
        if not _store.register(formula_id, expression):
            raise FormulaRegistrationError(formula_id, list(_errors))
    return formula_id


def run(
    expression: str,
    inputs: Optional[Mapping[str, float]] = None,
    cache_id: Optional[str] = None,
) -> float:
    """Parsuje (lub bierze z cache) i ewaluuje wyrażenie; brak wejścia → 0.0."""
    if not expression or not expression.strip():
        raise ValueError("Expression is null or empty.")
    formula_id = _ensure_registered(expression, cache_id)
    return _runner.evaluate(formula_id, dict(inputs or {}))


def request(expression: str) -> FormulaRequest:
    if not expression or not expression.strip():
        raise ValueError("Expression is null or empty.")
    return FormulaRequest(expression)


def clear_cache() -> None:
    with _lock:
        _store.clear()
        _runner.clear_pools()


def all_formulas() -> dict[str, str]:
    """Kopia cache: id → wyrażenie."""
    return _store.as_dict()


class FormulaRequest:
    """Płynny builder: wejścia ustawiane krok po kroku, evaluate() na końcu."""

    def __init__(self, expression: str) -> None:
        self._expression = expression
        self._inputs: dict[str, float] = {}
        self._cache_id: Optional[str] = None

    def set(self, key: str, value: float) -> FormulaRequest:
        if not key or not key.strip():
            raise ValueError("Input key is null or empty.")
        self._inputs[key] = value
        return self

    def with_inputs(self, inputs: Mapping[str, float]) -> FormulaRequest:
        """Zastępuje wejścia kopią `inputs` — późniejsze zmiany słownika nie mają wpływu."""
        if inputs is None:
            raise ValueError("Inputs are required.")
        self._inputs = dict(inputs)
        return self

    def with_cache(self, cache_id: str) -> FormulaRequest:
        if not cache_id or not cache_id.strip():
            raise ValueError("Cache id is null or empty.")
        self._cache_id = cache_id
        return self

    def evaluate(self) -> float:
        return run(self._expression, self._inputs, self._cache_id)
