"""
Adapter: RecursiveDescentParser
Implementuje port FormulaParser.

Jednoprzebiegowy parser zejściowy: tekst → jeden korzeń AST + zbiór wejść.

Gramatyka (od najniższego priorytetu):
  statements     = statement (';' | NEWLINE)*
  statement      = 'let' IDENT ('=' expr)?
                 | 'if' '(' expr ')' statement ('else' statement)?
                 | '{' statements '}'
                 | IDENT ('=' | '+=' | '-=' | '*=' | '/=') expr
                 | expr
  expr           = ternary
  ternary        = or ('?' or ':' ternary)?          # prawostronnie łączny
  or             = and ('||' and)*
  and            = comparison ('&&' comparison)*
  comparison     = additive (CMP additive)?          # nie-łączny
  additive       = multiplicative (('+'|'-') multiplicative)*
  multiplicative = exponent (('*'|'/'|'%') exponent)*
  exponent       = unary ('^' exponent)?             # prawostronnie łączny
  unary          = ('-'|'+'|'!') unary | primary
  primary        = '(' expr ')' | NUMBER | IDENT | IDENT '(' args? ')'

Zmienne: identyfikator czytany zanim stał się lokalny (cel 'let' albo
przypisania) trafia do wejść formuły. Śledzenie jest płaskie dla całej
formuły — bloki nie tworzą zasięgów.

Nowe linie rozdzielają instrukcje; wewnątrz wyrażenia są błędem.
Głębokie zagnieżdżenie (ok. 90 poziomów nawiasów lub wywołań przy domyślnym
limicie rekurencji) kończy się błędem NESTING_TOO_DEEP, nie wyjątkiem.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import NoReturn, Optional

from adapters.evaluator.ast_evaluator import ASTEvaluator
from adapters.evaluator.builtins import MULTI_FUNCTIONS, RANDOM_INTRINSICS, UNARY_FUNCTIONS
from adapters.formula_parser._diagnostics import build_parse_error
from contracts import (
    AssignmentNode,
    BinaryOpNode,
    ComparisonNode,
    ConditionalNode,
    ConstantNode,
    DeclarationNode,
    EmptyNode,
    Formula,
    FormulaNode,
    FunctionCallNode,
    LogicalNode,
    LogicalNotNode,
    ModuloNode,
    ParseErrorKind,
    ParseResult,
    RandomFloatNode,
    RandomIntNode,
    RandomValueNode,
    SequenceNode,
    TernaryNode,
    UnaryOpNode,
    VariableNode,
)
from ports.random_provider import RandomProvider

logger = logging.getLogger("formula_kit.parser")

# ──────────────────────────────────────────────────────────────────────────────
# Tokenizer
# ──────────────────────────────────────────────────────────────────────────────

_TOKEN_RE = re.compile(
    r'(?P<space>[^\S\r\n]+)'                              # pominięte
    r'|(?P<newline>[\r\n])'                              # separator instrukcji
    r'|(?P<number>[\d.]+)'                                # bez notacji wykładniczej
    r'|(?P<ident>[^\W\d]\w*)'
    r'|(?P<op>==|!=|<=|>=|&&|\|\||\+=|-=|\*=|/='
    r'|[-+*/%^<>=!?:;,(){}])'
)

NUMBER, IDENT, OP, NEWLINE, INVALID, EOF = (
    "number", "ident", "op", "newline", "invalid", "eof",
)


@dataclass(frozen=True)
class _Token:
    kind: str
    text: str
    offset: int

    def is_op(self, *ops: str) -> bool:
        return self.kind == OP and self.text in ops

    def is_word(self, word: str) -> bool:
        return self.kind == IDENT and self.text == word


def _tokenize(text: str) -> list[_Token]:
    """Nierozpoznany znak → token INVALID; błąd zgłasza parser, gdy do niego dojdzie."""
    tokens: list[_Token] = []
    pos = 0
    while pos < len(text):
        m = _TOKEN_RE.match(text, pos)
        if m is None:
            tokens.append(_Token(INVALID, text[pos], pos))
            pos += 1
            continue
        kind = m.lastgroup
        if kind != "space":
            tokens.append(_Token(kind, m.group(), pos))
        pos = m.end()
    tokens.append(_Token(EOF, "", len(text)))
    return tokens


# ──────────────────────────────────────────────────────────────────────────────
# Parser
# ──────────────────────────────────────────────────────────────────────────────

_ASSIGNMENT_OPS = ("=", "+=", "-=", "*=", "/=")
_COMPARISON_OPS = ("<", "<=", ">", ">=", "==", "!=")


class _ParseFailure(Exception):
    def __init__(self, kind: ParseErrorKind, message: str, offset: int) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.offset = offset


class _Parser:
    def __init__(self, text: str) -> None:
        self._text = text
        self._tokens = _tokenize(text)
        self._pos = 0
        self.inputs: set[str] = set()
        self.locals: set[str] = set()

    # -- kursor ------------------------------------------------------------

    def _peek(self) -> _Token:
        return self._tokens[self._pos]

    def _advance(self) -> _Token:
        tok = self._tokens[self._pos]
        if tok.kind != EOF:
            self._pos += 1
        return tok

    def _match_op(self, *ops: str) -> Optional[_Token]:
        tok = self._peek()
        if tok.is_op(*ops):
            self._pos += 1
            return tok
        return None

    def _skip_newlines(self) -> None:
        while self._peek().kind == NEWLINE:
            self._pos += 1

    def _fail(self, kind: ParseErrorKind, message: str, tok: Optional[_Token] = None) -> NoReturn:
        tok = tok or self._peek()
        raise _ParseFailure(kind, message, tok.offset)

    # -- instrukcje --------------------------------------------------------

    def parse(self) -> FormulaNode:
        statements = self._statements(closing=None)
        if not statements:
            return ConstantNode(value=0.0)
        if len(statements) == 1:
            return statements[0]
        return SequenceNode(statements=statements)

    def _statements(self, closing: Optional[str]) -> list[FormulaNode]:
        statements: list[FormulaNode] = []
        self._skip_newlines()
        while self._peek().kind != EOF and not (closing and self._peek().is_op(closing)):
            statements.append(self._statement())
            self._skip_newlines()
            if self._match_op(";"):
                self._skip_newlines()
        return statements

    def _statement(self) -> FormulaNode:
        self._skip_newlines()
        tok = self._peek()
        if tok.kind == EOF:
            self._fail(ParseErrorKind.UNEXPECTED_END, "Expected statement but reached end of expression")
        if tok.is_word("let"):
            return self._declaration()
        if tok.is_word("if"):
            return self._if_statement()
        if tok.is_op("{"):
            return self._block()
        return self._assignment_or_expression()

    def _declaration(self) -> FormulaNode:
        self._advance()  # 'let'
        name = self._peek()
        if name.kind != IDENT:
            self._fail(ParseErrorKind.EXPECTED_TOKEN, "Expected identifier after 'let'")
        self._advance()
        initializer = None
        if self._match_op("="):
            initializer = self._expression()
        self.locals.add(name.text)
        return DeclarationNode(name=name.text, initializer=initializer)

    def _if_statement(self) -> FormulaNode:
        self._advance()  # 'if'
        if not self._match_op("("):
            self._fail(ParseErrorKind.EXPECTED_TOKEN, "Expected '(' after 'if'")
        condition = self._expression()
        if not self._match_op(")"):
            self._fail(ParseErrorKind.EXPECTED_TOKEN, "Expected ')' after if condition")
        then_branch = self._statement()

        # 'else' może stać w następnej linii albo po średniku
        saved = self._pos
        self._skip_newlines()
        if self._match_op(";"):
            self._skip_newlines()
        if self._peek().is_word("else"):
            self._advance()
            return ConditionalNode(
                condition=condition,
                then_branch=then_branch,
                else_branch=self._statement(),
            )
        self._pos = saved
        return ConditionalNode(condition=condition, then_branch=then_branch)

    def _block(self) -> FormulaNode:
        self._advance()  # '{'
        statements = self._statements(closing="}")
        if not self._match_op("}"):
            self._fail(ParseErrorKind.UNTERMINATED_BLOCK, "Expected '}'")
        if not statements:
            return EmptyNode()
        if len(statements) == 1:
            return statements[0]
        return SequenceNode(statements=statements)

    def _assignment_or_expression(self) -> FormulaNode:
        target = self._peek()
        if target.kind == IDENT:
            saved = self._pos
            self._advance()
            op = self._match_op(*_ASSIGNMENT_OPS)
            if op is not None:
                value = self._expression()
                self.locals.add(target.text)
                return AssignmentNode(name=target.text, op=op.text, value=value)
            # Nie przypisanie: cofnij i parsuj jako wyrażenie
            self._pos = saved
        return self._expression()

    # -- wyrażenia ---------------------------------------------------------

    def _expression(self) -> FormulaNode:
        return self._ternary()

    def _ternary(self) -> FormulaNode:
        node = self._logical_or()
        if self._match_op("?"):
            if_true = self._logical_or()
            if not self._match_op(":"):
                self._fail(ParseErrorKind.UNTERMINATED_TERNARY, "Expected ':' in ternary operator")
            if_false = self._ternary()
            return TernaryNode(condition=node, if_true=if_true, if_false=if_false)
        return node

    def _logical_or(self) -> FormulaNode:
        node = self._logical_and()
        while self._match_op("||"):
            node = LogicalNode(op="||", left=node, right=self._logical_and())
        return node

    def _logical_and(self) -> FormulaNode:
        node = self._comparison()
        while self._match_op("&&"):
            node = LogicalNode(op="&&", left=node, right=self._comparison())
        return node

    def _comparison(self) -> FormulaNode:
        node = self._additive()
        op = self._match_op(*_COMPARISON_OPS)
        if op is not None:
            return ComparisonNode(op=op.text, left=node, right=self._additive())
        return node

    def _additive(self) -> FormulaNode:
        node = self._multiplicative()
        while True:
            op = self._match_op("+", "-")
            if op is None:
                return node
            node = BinaryOpNode(op=op.text, left=node, right=self._multiplicative())

    def _multiplicative(self) -> FormulaNode:
        node = self._exponent()
        while True:
            op = self._match_op("*", "/", "%")
            if op is None:
                return node
            right = self._exponent()
            if op.text == "%":
                node = ModuloNode(left=node, right=right)
            else:
                node = BinaryOpNode(op=op.text, left=node, right=right)

    def _exponent(self) -> FormulaNode:
        node = self._unary()
        if self._match_op("^"):
            return BinaryOpNode(op="^", left=node, right=self._exponent())
        return node

    def _unary(self) -> FormulaNode:
        if self._match_op("-"):
            return UnaryOpNode(operand=self._unary())
        if self._match_op("+"):
            return self._unary()
        if self._match_op("!"):
            return LogicalNotNode(operand=self._unary())
        return self._primary()

    def _primary(self) -> FormulaNode:
        tok = self._peek()

        if tok.is_op("("):
            self._advance()
            node = self._expression()
            if not self._match_op(")"):
                self._fail(ParseErrorKind.UNTERMINATED_PARENTHESIS, "Expected closing parenthesis")
            return node

        if tok.kind == NUMBER:
            self._advance()
            try:
                return ConstantNode(value=float(tok.text))
            except ValueError:
                self._fail(ParseErrorKind.INVALID_NUMBER, f"Invalid number literal '{tok.text}'", tok)

        if tok.kind == IDENT:
            self._advance()
            if self._peek().is_op("("):
                return self._function_call(tok)
            if tok.text not in self.locals:
                self.inputs.add(tok.text)
            return VariableNode(name=tok.text)

        if tok.kind in (EOF, NEWLINE):
            self._fail(ParseErrorKind.UNEXPECTED_END, "Unexpected end of expression")
        self._fail(
            ParseErrorKind.UNEXPECTED_CHARACTER,
            f"Unexpected character at position {tok.offset}: '{tok.text}'",
        )

    def _function_call(self, name_tok: _Token) -> FormulaNode:
        self._advance()  # '('
        args: list[FormulaNode] = []
        if not self._peek().is_op(")"):
            args.append(self._expression())
            while self._match_op(","):
                args.append(self._expression())
        if not self._match_op(")"):
            self._fail(
                ParseErrorKind.UNTERMINATED_FUNCTION_CALL,
                "Expected closing parenthesis in function call",
            )

        name = name_tok.text
        if len(args) == 1 and name in UNARY_FUNCTIONS:
            return FunctionCallNode(name=name, kind="unary", args=args)
        if name in MULTI_FUNCTIONS:
            return FunctionCallNode(name=name, kind="multi", args=args)
        if RANDOM_INTRINSICS.get(name) == len(args):
            if name == "rand":
                return RandomIntNode(max=args[0])
            if name == "randf":
                return RandomFloatNode(max=args[0])
            return RandomValueNode()
        self._fail(ParseErrorKind.UNKNOWN_FUNCTION, f"Unknown function: {name}", name_tok)


# ──────────────────────────────────────────────────────────────────────────────
# Adapter
# ──────────────────────────────────────────────────────────────────────────────

class RecursiveDescentParser:
    """
    Parsuje tekst formuły do Formula.
    Nigdy nie rzuca wyjątku dla błędnej składni — błąd trafia do ParseResult.error.
    Instancja nie trzyma stanu między wywołaniami parse().
    """

    def __init__(self, random_provider: Optional[RandomProvider] = None) -> None:
        self._evaluator = ASTEvaluator(random_provider=random_provider)

    @property
    def random_provider(self) -> RandomProvider:
        return self._evaluator.random_provider

    # -- FormulaParser protocol ---------------------------------------------

    def parse(self, text: str) -> ParseResult:
        state = _Parser(text)
        try:
            root = state.parse()
        except _ParseFailure as exc:
            error = build_parse_error(text, exc.kind, exc.message, exc.offset)
            logger.warning("[FormulaParser] %s", error.render())
            return ParseResult(error=error)
        except RecursionError:
            # zbyt głębokie zagnieżdżenie nawiasów lub wywołań
            error = build_parse_error(
                text,
                ParseErrorKind.NESTING_TOO_DEEP,
                "Expression is nested too deeply",
                state._peek().offset,
            )
            logger.warning("[FormulaParser] %s", error.render())
            return ParseResult(error=error)
        except Exception as exc:
            pos = state._peek().offset
            logger.error("[FormulaParser] Unexpected error at offset %d: %s\nExpression:\n%s", pos, exc, text)
            raise

        formula = Formula(
            source_text=text,
            root=root,
            required_inputs=frozenset(state.inputs),
            local_variables=frozenset(state.locals),
        ).bind(self._evaluator)
        return ParseResult(formula=formula)


_DEFAULT_PARSER: Optional[RecursiveDescentParser] = None


def parse(text: str, random_provider: Optional[RandomProvider] = None) -> ParseResult:
    """Skrót: parsowanie domyślnym parserem (lub z podanym providerem losowości)."""
    global _DEFAULT_PARSER
    if random_provider is not None:
        return RecursiveDescentParser(random_provider).parse(text)
    if _DEFAULT_PARSER is None:
        _DEFAULT_PARSER = RecursiveDescentParser()
    return _DEFAULT_PARSER.parse(text)
