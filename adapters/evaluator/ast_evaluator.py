"""
Adapter: ASTEvaluator
Implementuje port Evaluator — rekurencyjne przejście drzewa formuły.

Stan ewaluacji trzymany jest w jawnym EvaluationContext tworzonym na nowo
dla każdego wywołania (kopia wiązań wywołującego + provider losowości).
`let` i przypisania piszą do kontekstu, nigdy do słownika wywołującego,
więc dwie równoległe ewaluacje nie współdzielą mutowalnego stanu.

Konwencje:
  - 0.0 to fałsz, każda inna wartość to prawda
  - węzły logiczne/porównania zwracają dokładnie 1.0 albo 0.0
  - && i || są leniwe (prawa strona nie jest liczona, gdy lewa przesądza)
  - brak zmiennej wejściowej → EvalError, reszta ewaluacji przerwana
  - łańcuchy + - * / % liczone iteracyjnie; inne zbyt głębokie drzewo
    (np. ręcznie zbudowany łańcuch tysięcy węzłów) → NESTING_TOO_DEEP
"""
from __future__ import annotations

from typing import Mapping, Optional

from adapters.evaluator.builtins import (
    EQUALITY_EPSILON,
    UNARY_FUNCTIONS,
    call_multi,
    ieee_div,
    ieee_mod,
    ieee_pow,
)
from adapters.random_provider import SystemRandomProvider
from contracts import (
    AssignmentNode,
    BinaryOpNode,
    ComparisonNode,
    ConditionalNode,
    ConstantNode,
    DeclarationNode,
    EmptyNode,
    EvalError,
    EvalErrorKind,
    EvalResult,
    FormulaNode,
    FunctionCallNode,
    LogicalNode,
    LogicalNotNode,
    ModuloNode,
    RandomFloatNode,
    RandomIntNode,
    RandomValueNode,
    SequenceNode,
    TernaryNode,
    UnaryOpNode,
    VariableNode,
)
from ports.random_provider import RandomProvider

# Mapowanie operatorów binarnych na operacje float
_BINARY_OPS = {
    "+": lambda a, b: a + b,
    "-": lambda a, b: a - b,
    "*": lambda a, b: a * b,
    "/": ieee_div,
    "^": ieee_pow,
}

# Przypisania złożone: (bieżąca wartość, nowa wartość) → wynik
_COMPOUND_OPS = {
    "+=": lambda cur, new: cur + new,
    "-=": lambda cur, new: cur - new,
    "*=": lambda cur, new: cur * new,
    "/=": ieee_div,
}

_COMPARISONS = {
    "<": lambda a, b: a < b,
    "<=": lambda a, b: a <= b,
    ">": lambda a, b: a > b,
    ">=": lambda a, b: a >= b,
    "==": lambda a, b: abs(a - b) < EQUALITY_EPSILON,
    "!=": lambda a, b: abs(a - b) >= EQUALITY_EPSILON,
}

_SHARED_SYSTEM_RANDOM = SystemRandomProvider()


class MissingVariableError(KeyError):
    """Zmienna wejściowa nie została dostarczona przez wywołującego."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Variable '{self.name}' not found"


class EvaluationContext:
    """Wiązania jednej ewaluacji. Własność wyłączna jednego wywołania."""

    __slots__ = ("variables", "random")

    def __init__(self, variables: dict[str, float], random: RandomProvider) -> None:
        self.variables = variables
        self.random = random


def _truthy(value: float) -> bool:
    return value != 0.0


def _bool(flag: bool) -> float:
    return 1.0 if flag else 0.0


def _to_int_max(value: float) -> int:
    """Obcięcie w stronę zera; inf/NaN traktowane jak 0."""
    try:
        return int(value)
    except (ValueError, OverflowError):
        return 0


def _is_left_chain(node: FormulaNode) -> bool:
    """Lewostronnie łączne + - * / %; potęgowanie łączy w prawo."""
    if isinstance(node, BinaryOpNode):
        return node.op != "^"
    return isinstance(node, ModuloNode)


class ASTEvaluator:
    """Ewaluator drzewa formuły (tree-walk) na liczbach float."""

    def __init__(self, random_provider: Optional[RandomProvider] = None) -> None:
        self._random = random_provider or _SHARED_SYSTEM_RANDOM

    @property
    def random_provider(self) -> RandomProvider:
        return self._random

    # -- Evaluator protocol ------------------------------------------------

    def evaluate(
        self,
        root: FormulaNode,
        bindings: Optional[Mapping[str, float]] = None,
        random_provider: Optional[RandomProvider] = None,
    ) -> EvalResult:
        ctx = EvaluationContext(
            variables={k: float(v) for k, v in (bindings or {}).items()},
            random=random_provider or self._random,
        )
        try:
            value = self._eval(root, ctx)
        except MissingVariableError as exc:
            return EvalResult(
                error=EvalError(
                    kind=EvalErrorKind.MISSING_VARIABLE,
                    message=str(exc),
                    variable=exc.name,
                ),
                variables=ctx.variables,
            )
        except RecursionError:
            return EvalResult(
                error=EvalError(
                    kind=EvalErrorKind.NESTING_TOO_DEEP,
                    message="Expression is nested too deeply to evaluate",
                ),
                variables=ctx.variables,
            )
        return EvalResult(value=value, variables=ctx.variables)

    # -- Prywatne ----------------------------------------------------------

    def _eval(self, node: FormulaNode, ctx: EvaluationContext) -> float:
        if isinstance(node, ConstantNode):
            return node.value

        if isinstance(node, VariableNode):
            try:
                return ctx.variables[node.name]
            except KeyError:
                raise MissingVariableError(node.name) from None

        if _is_left_chain(node):
            return self._eval_left_chain(node, ctx)

        if isinstance(node, BinaryOpNode):
            left = self._eval(node.left, ctx)
            right = self._eval(node.right, ctx)
            return _BINARY_OPS[node.op](left, right)

        if isinstance(node, UnaryOpNode):
            return -self._eval(node.operand, ctx)

        if isinstance(node, ComparisonNode):
            left = self._eval(node.left, ctx)
            right = self._eval(node.right, ctx)
            return _bool(_COMPARISONS[node.op](left, right))

        if isinstance(node, LogicalNode):
            left = self._eval(node.left, ctx)
            if node.op == "&&":
                if not _truthy(left):
                    return 0.0
            elif _truthy(left):
                return 1.0
            return _bool(_truthy(self._eval(node.right, ctx)))

        if isinstance(node, LogicalNotNode):
            return _bool(not _truthy(self._eval(node.operand, ctx)))

        if isinstance(node, TernaryNode):
            if _truthy(self._eval(node.condition, ctx)):
                return self._eval(node.if_true, ctx)
            return self._eval(node.if_false, ctx)

        if isinstance(node, ConditionalNode):
            if _truthy(self._eval(node.condition, ctx)):
                return self._eval(node.then_branch, ctx)
            if node.else_branch is not None:
                return self._eval(node.else_branch, ctx)
            return 0.0

        if isinstance(node, DeclarationNode):
            value = 0.0 if node.initializer is None else self._eval(node.initializer, ctx)
            ctx.variables[node.name] = value
            return value

        if isinstance(node, AssignmentNode):
            value = self._eval(node.value, ctx)
            if node.op != "=":
                current = ctx.variables.get(node.name, 0.0)
                value = _COMPOUND_OPS[node.op](current, value)
            ctx.variables[node.name] = value
            return value

        if isinstance(node, SequenceNode):
            result = 0.0
            for statement in node.statements:
                result = self._eval(statement, ctx)
            return result

        if isinstance(node, EmptyNode):
            return 0.0

        if isinstance(node, FunctionCallNode):
            values = [self._eval(arg, ctx) for arg in node.args]
            if node.kind == "unary":
                return UNARY_FUNCTIONS[node.name](values[0])
            return call_multi(node.name, values)

        if isinstance(node, RandomValueNode):
            return ctx.random.uniform01()

        if isinstance(node, RandomIntNode):
            max_value = _to_int_max(self._eval(node.max, ctx))
            return float(ctx.random.uniform_int_below(max_value))

        if isinstance(node, RandomFloatNode):
            return ctx.random.uniform_below(self._eval(node.max, ctx))

        raise TypeError(f"Unknown AST node type: {type(node)}")

    def _eval_left_chain(self, node: FormulaNode, ctx: EvaluationContext) -> float:
        # a + b + c + ... daje drzewo głębokie w lewo; liczone pętlą, nie rekurencją
        spine = []
        while _is_left_chain(node):
            spine.append(node)
            node = node.left
        value = self._eval(node, ctx)
        for op_node in reversed(spine):
            right = self._eval(op_node.right, ctx)
            if isinstance(op_node, ModuloNode):
                value = ieee_mod(value, right)
            else:
                value = _BINARY_OPS[op_node.op](value, right)
        return value
