"""
Port: Evaluator
Odpowiedzialność: deterministyczne liczenie AST formuły dla danego zestawu zmiennych.
"""
from typing import Mapping, Optional, Protocol, runtime_checkable

from contracts import EvalResult, FormulaNode
from ports.random_provider import RandomProvider


@runtime_checkable
class Evaluator(Protocol):
    def evaluate(
        self,
        root: FormulaNode,
        bindings: Optional[Mapping[str, float]] = None,
        random_provider: Optional[RandomProvider] = None,
    ) -> EvalResult:
        """
        Evaluates an AST against a fresh binding context seeded from `bindings`.
        `let` and assignments write into that context, never into `bindings`.
        Returns EvalResult with:
          - value: float (NaN/inf are values, not errors)
          - error: EvalError when an input variable is missing
          - variables: final state of the binding context
        `random_provider` overrides the evaluator's provider for this call only.
        """
        ...
