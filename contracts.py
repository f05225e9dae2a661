"""
contracts.py — Jedyne źródło prawdy dla wszystkich typów danych w FormulaKit.
Wszystkie moduły importują WYŁĄCZNIE stąd. Nie modyfikować bez versioning.
"""
from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Annotated, Any, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

if TYPE_CHECKING:
    from ports.evaluator import Evaluator
    from ports.random_provider import RandomProvider

CONTRACTS_VERSION = "1.0.0"


# ─────────────────────────── AST ─────────────────────────────────────────
# Każdy węzeł posiada na wyłączność swoje dzieci: drzewo, bez współdzielenia.

class ConstantNode(BaseModel):
    node_type: Literal["constant"] = "constant"
    value: float


class VariableNode(BaseModel):
    node_type: Literal["variable"] = "variable"
    name: str


class UnaryOpNode(BaseModel):
    node_type: Literal["unary"] = "unary"
    op: Literal["-"] = "-"
    operand: "FormulaNode"


class BinaryOpNode(BaseModel):
    node_type: Literal["binary"] = "binary"
    op: Literal["+", "-", "*", "/", "^"]
    left: "FormulaNode"
    right: "FormulaNode"


class ModuloNode(BaseModel):
    node_type: Literal["modulo"] = "modulo"
    left: "FormulaNode"
    right: "FormulaNode"


class ComparisonNode(BaseModel):
    node_type: Literal["comparison"] = "comparison"
    op: Literal["<", "<=", ">", ">=", "==", "!="]
    left: "FormulaNode"
    right: "FormulaNode"


class LogicalNode(BaseModel):
    node_type: Literal["logical"] = "logical"
    op: Literal["&&", "||"]
    left: "FormulaNode"
    right: "FormulaNode"


class LogicalNotNode(BaseModel):
    node_type: Literal["not"] = "not"
    operand: "FormulaNode"


class TernaryNode(BaseModel):
    node_type: Literal["ternary"] = "ternary"
    condition: "FormulaNode"
    if_true: "FormulaNode"
    if_false: "FormulaNode"


class ConditionalNode(BaseModel):
    node_type: Literal["conditional"] = "conditional"
    condition: "FormulaNode"
    then_branch: "FormulaNode"
    else_branch: Optional["FormulaNode"] = None


class DeclarationNode(BaseModel):
    node_type: Literal["declaration"] = "declaration"
    name: str
    initializer: Optional["FormulaNode"] = None  # "let x" bez inicjalizatora → 0


class AssignmentNode(BaseModel):
    node_type: Literal["assignment"] = "assignment"
    name: str
    op: Literal["=", "+=", "-=", "*=", "/="] = "="
    value: "FormulaNode"


class SequenceNode(BaseModel):
    node_type: Literal["sequence"] = "sequence"
    statements: list["FormulaNode"]


class EmptyNode(BaseModel):
    node_type: Literal["empty"] = "empty"


class FunctionCallNode(BaseModel):
    node_type: Literal["call"] = "call"
    name: str
    kind: Literal["unary", "multi"]
    args: list["FormulaNode"] = Field(default_factory=list)


class RandomValueNode(BaseModel):
    node_type: Literal["random"] = "random"


class RandomIntNode(BaseModel):
    node_type: Literal["rand"] = "rand"
    max: "FormulaNode"


class RandomFloatNode(BaseModel):
    node_type: Literal["randf"] = "randf"
    max: "FormulaNode"


FormulaNode = Annotated[
    Union[
        ConstantNode, VariableNode, UnaryOpNode, BinaryOpNode, ModuloNode,
        ComparisonNode, LogicalNode, LogicalNotNode, TernaryNode,
        ConditionalNode, DeclarationNode, AssignmentNode, SequenceNode,
        EmptyNode, FunctionCallNode, RandomValueNode, RandomIntNode,
        RandomFloatNode,
    ],
    Field(discriminator="node_type"),
]

for _model in (
    UnaryOpNode, BinaryOpNode, ModuloNode, ComparisonNode, LogicalNode,
    LogicalNotNode, TernaryNode, ConditionalNode, DeclarationNode,
    AssignmentNode, SequenceNode, FunctionCallNode, RandomIntNode,
    RandomFloatNode,
):
    _model.model_rebuild()


# ─────────────────────────── Parser ──────────────────────────────────────

class ParseErrorKind(str, Enum):
    UNEXPECTED_CHARACTER = "unexpected_character"
    UNEXPECTED_END = "unexpected_end"
    UNTERMINATED_PARENTHESIS = "unterminated_parenthesis"
    UNTERMINATED_TERNARY = "unterminated_ternary"
    UNTERMINATED_FUNCTION_CALL = "unterminated_function_call"
    UNTERMINATED_BLOCK = "unterminated_block"
    UNKNOWN_FUNCTION = "unknown_function"
    EXPECTED_TOKEN = "expected_token"        # np. brak '(' po 'if'
    INVALID_NUMBER = "invalid_number"        # np. "1.2.3"
    NESTING_TOO_DEEP = "nesting_too_deep"    # przekroczony limit rekurencji Pythona


class ParseError(BaseModel):
    kind: ParseErrorKind
    message: str
    offset: int          # indeks znaku w tekście źródłowym
    line: int            # 1-based
    column: int          # 1-based
    line_text: str = ""
    pointer: str = "^"
    expression: str = ""

    def render(self) -> str:
        """Czytelna diagnostyka z linią źródła i wskaźnikiem '^'."""
        parts = [f"Parse error at line {self.line}, column {self.column}: {self.message}"]
        if self.line_text:
            parts.append(self.line_text)
            parts.append(self.pointer)
        parts.append("Expression:")
        parts.append(self.expression)
        return "\n".join(parts)


class FormulaParseError(ValueError):
    """Raised by ParseResult.unwrap() for callers that prefer exceptions."""

    def __init__(self, error: ParseError) -> None:
        super().__init__(error.render())
        self.error = error


class ParseResult(BaseModel):
    formula: Optional[Formula] = None
    error: Optional[ParseError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.formula is not None

    def unwrap(self) -> Formula:
        if self.error is not None:
            raise FormulaParseError(self.error)
        assert self.formula is not None
        return self.formula


# ─────────────────────────── Evaluator ───────────────────────────────────

class EvalErrorKind(str, Enum):
    MISSING_VARIABLE = "missing_variable"
    NESTING_TOO_DEEP = "nesting_too_deep"


class EvalError(BaseModel):
    kind: EvalErrorKind
    message: str
    variable: Optional[str] = None


class FormulaEvalError(KeyError):
    """Raised by EvalResult.unwrap() for callers that prefer exceptions."""

    def __init__(self, error: EvalError) -> None:
        super().__init__(error.message)
        self.error = error

    def __str__(self) -> str:
        return self.error.message


class EvalResult(BaseModel):
    value: Optional[float] = None
    error: Optional[EvalError] = None
    variables: dict[str, float] = Field(default_factory=dict)  # stan kontekstu po ewaluacji

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> float:
        if self.error is not None:
            raise FormulaEvalError(self.error)
        assert self.value is not None
        return self.value


# ─────────────────────────── Formula ─────────────────────────────────────

class Formula(BaseModel):
    """
    Sparsowana formuła: (tekst źródłowy, AST, zbiór wejść).
    Niezmienna; ewaluowana wielokrotnie bez ponownego parsowania.
    """
    model_config = ConfigDict(frozen=True)

    source_text: str
    root: FormulaNode
    required_inputs: frozenset[str] = frozenset()
    local_variables: frozenset[str] = frozenset()

    # Ewaluator związany w czasie parsowania (z providerem losowości parsera)
    _evaluator: Any = PrivateAttr(default=None)

    def bind(self, evaluator: Evaluator) -> Formula:
        self._evaluator = evaluator
        return self

    def evaluate(
        self,
        bindings: Mapping[str, float] | None = None,
        random_provider: RandomProvider | None = None,
    ) -> EvalResult:
        """
        Evaluates the formula against a fresh copy of `bindings`.
        `random_provider` overrides the provider bound at parse time for this call only.
        """
        evaluator = self._evaluator
        if evaluator is None:
            from adapters.evaluator.ast_evaluator import ASTEvaluator
            evaluator = ASTEvaluator()
            self._evaluator = evaluator
        return evaluator.evaluate(self.root, bindings, random_provider=random_provider)


ParseResult.model_rebuild()


# ─────────────────────────── Registry / JSON ─────────────────────────────

class FormulaDefinition(BaseModel):
    id: str
    expression: str


class FormulaLibrary(BaseModel):
    formulas: list[FormulaDefinition] = Field(default_factory=list)


class RunnerStats(BaseModel):
    pooled_formula_count: int
    pooling_enabled: bool

    def __str__(self) -> str:
        return (
            f"Pooled: {self.pooled_formula_count}, "
            f"Pooling: {'Enabled' if self.pooling_enabled else 'Disabled'}"
        )


class FormulaExample(BaseModel):
    category: str    # "Simple", "Advanced", "Complex", "Math"
    name: str
    formula_id: str
    expression: str
    sample_inputs: dict[str, float] = Field(default_factory=dict)
