from __future__ import annotations

import math

import pytest

from adapters.evaluator.ast_evaluator import ASTEvaluator
from adapters.formula_parser import parse
from adapters.random_provider import FixedRandomProvider
from contracts import (
    BinaryOpNode,
    ConstantNode,
    EvalErrorKind,
    FormulaEvalError,
    UnaryOpNode,
    VariableNode,
)


class _CountingRandom:
    def __init__(self) -> None:
        self.calls = 0

    def uniform01(self) -> float:
        self.calls += 1
        return 0.5

    def uniform_below(self, max: float) -> float:
        self.calls += 1
        return 0.0

    def uniform_int_below(self, max: int) -> int:
        self.calls += 1
        return 0


def _value(text: str, **inputs: float) -> float:
    return parse(text).unwrap().evaluate(inputs).unwrap()


def test_missing_variable_aborts_with_named_error():
    outcome = parse("a + b").unwrap().evaluate({"a": 2})

    assert not outcome.ok
    assert outcome.value is None
    assert outcome.error.kind == EvalErrorKind.MISSING_VARIABLE
    assert outcome.error.message == "Variable 'b' not found"
    assert outcome.error.variable == "b"
    with pytest.raises(FormulaEvalError) as exc_info:
        outcome.unwrap()
    assert str(exc_info.value) == "Variable 'b' not found"


def test_evaluation_never_mutates_caller_bindings():
    formula = parse("let t = 1; x = 5; t + x").unwrap()
    bindings = {"x": 1.0}

    outcome = formula.evaluate(bindings)

    assert outcome.unwrap() == 6.0
    assert bindings == {"x": 1.0}
    assert outcome.variables == {"x": 5.0, "t": 1.0}


def test_evaluator_works_on_hand_built_tree():
    root = BinaryOpNode(op="*", left=VariableNode(name="v"), right=ConstantNode(value=3))

    assert ASTEvaluator().evaluate(root, {"v": 2}).unwrap() == 6.0


def test_logical_operators_short_circuit():
    assert _value("0 && missing") == 0.0
    assert _value("1 || missing") == 1.0
    assert _value("0 && (1/0)") == 0.0

    counter = _CountingRandom()
    parse("0 && random()").unwrap().evaluate(random_provider=counter)
    assert counter.calls == 0
    parse("1 && random()").unwrap().evaluate(random_provider=counter)
    assert counter.calls == 1


def test_boolean_nodes_yield_exactly_one_or_zero():
    assert _value("2 && 3") == 1.0
    assert _value("0 || 7") == 1.0
    assert _value("0 || 0") == 0.0
    assert _value("5 > 2") == 1.0
    assert _value("!(-3)") == 0.0


def test_equality_uses_absolute_tolerance():
    assert _value("0.1 + 0.2 == 0.3") == 1.0
    assert _value("1 == 1.001") == 0.0
    assert _value("1 != 1.00001") == 0.0
    assert _value("1 != 1.001") == 1.0


def test_arithmetic_follows_ieee_special_values():
    assert _value("1 / 0") == math.inf
    assert _value("-1 / 0") == -math.inf
    assert math.isnan(_value("0 / 0"))
    assert math.isnan(_value("5 % 0"))
    assert _value("10 ^ 400") == math.inf
    assert _value("x /= 0; x", x=2) == math.inf


def test_modulo_takes_sign_of_dividend():
    assert _value("-7 % 3") == -1.0
    assert _value("7 % -3") == 1.0
    assert _value("5.5 % 2") == 1.5


def test_unary_builtins():
    assert _value("sqrt(16)") == 4.0
    assert math.isnan(_value("sqrt(-1)"))
    assert _value("log(0)") == -math.inf
    assert _value("exp(1000)") == math.inf
    assert _value("abs(-3)") == 3.0
    assert _value("floor(2.7)") == 2.0
    assert _value("ceil(2.1)") == 3.0
    assert _value("negative(4)") == -4.0
    assert _value("clamp01(-1)") == 0.0
    assert _value("clamp01(1.5)") == 1.0
    assert _value("floor(1/0)") == math.inf
    assert math.isnan(_value("acos(2)"))


def test_round_uses_half_to_even():
    assert _value("round(2.5)") == 2.0
    assert _value("round(3.5)") == 4.0
    assert _value("round(-2.5)") == -2.0


def test_sign_of_zero_is_one():
    assert _value("sign(0)") == 1.0
    assert _value("sign(-3)") == -1.0
    assert _value("sign(8)") == 1.0


def test_multi_argument_builtins():
    assert _value("min(3, 7)") == 3.0
    assert _value("max(1, 5, 9)") == 5.0
    assert _value("clamp(15, 0, 10)") == 10.0
    assert _value("clamp(-2, 0, 10)") == 0.0
    assert _value("lerp(0, 10, 0.25)") == 2.5
    assert _value("lerp(0, 10, 2)") == 10.0
    assert _value("pow(2, 10)") == 1024.0


def test_deficient_multi_argument_calls_degrade_to_first_argument():
    assert _value("min(3)") == 3.0
    assert _value("clamp(4, 1)") == 4.0
    assert _value("min()") == 0.0


def test_compound_assignments_default_to_zero():
    assert _value("a += 3; a") == 3.0
    assert _value("a -= 3; a") == -3.0
    assert _value("let a = 4; a *= 2.5") == 10.0
    assert _value("let a = 9; a /= 3") == 3.0


def test_random_intrinsics_use_bound_provider():
    fixed = FixedRandomProvider(0.25)

    assert parse("random()", random_provider=fixed).unwrap().evaluate().unwrap() == 0.25
    assert parse("randf(8)", random_provider=fixed).unwrap().evaluate().unwrap() == 2.0
    assert parse("rand(10)", random_provider=fixed).unwrap().evaluate().unwrap() == 2.0


def test_rand_truncates_max_and_rejects_non_positive():
    fixed = FixedRandomProvider(0.99)

    assert parse("rand(3.9)", random_provider=fixed).unwrap().evaluate().unwrap() == 2.0
    assert parse("rand(0)", random_provider=fixed).unwrap().evaluate().unwrap() == 0.0
    assert parse("rand(-5)", random_provider=fixed).unwrap().evaluate().unwrap() == 0.0
    assert parse("rand(1/0)", random_provider=fixed).unwrap().evaluate().unwrap() == 0.0
    assert parse("randf(-1)", random_provider=fixed).unwrap().evaluate().unwrap() == 0.0


def test_random_provider_can_be_overridden_per_call():
    formula = parse("random()", random_provider=FixedRandomProvider(0.1)).unwrap()

    assert formula.evaluate().unwrap() == 0.1
    assert formula.evaluate(random_provider=FixedRandomProvider(0.7)).unwrap() == 0.7


def test_formula_without_free_variables_is_deterministic_with_fixed_random():
    formula = parse("let r = random(); r * 10 + rand(4)", random_provider=FixedRandomProvider(0.5)).unwrap()

    assert formula.required_inputs == frozenset()
    assert formula.evaluate({}).unwrap() == formula.evaluate({}).unwrap() == 7.0


def test_complex_formula_matches_reference_arithmetic():
    text = (
        "\n"
        "let basePower = pow(strength + weaponBonus * multiplier, 2);\n"
        "let trig = sin(angle) + cos(angle);\n"
        "let clamped = clamp(basePower * trig, minLimit, maxLimit);\n"
        "let adjusted = clamped > threshold ? clamped : threshold - abs(clamped - threshold);\n"
        "let normalized = (adjusted + lerp(minLimit, maxLimit, 0.25)) / max(1, round(magnitude));\n"
        "normalized"
    )
    inputs = {
        "strength": 4.0,
        "weaponBonus": 1.5,
        "multiplier": 2.25,
        "angle": 0.35,
        "minLimit": 10.0,
        "maxLimit": 50.0,
        "threshold": 30.0,
        "magnitude": 3.6,
    }

    base_power = (4.0 + 1.5 * 2.25) ** 2
    trig = math.sin(0.35) + math.cos(0.35)
    clamped = min(max(base_power * trig, 10.0), 50.0)
    adjusted = clamped if clamped > 30.0 else 30.0 - abs(clamped - 30.0)
    expected = (adjusted + 20.0) / max(1.0, round(3.6))

    assert _value(text, **inputs) == pytest.approx(expected, abs=1e-4)


def test_conditional_sequence_matches_reference_arithmetic():
    text = (
        "let normalizedChance = clamp01(criticalChance);\n"
        "let baseValue = (primaryDamage + secondaryDamage * 0.5) / (normalizedChance + 0.1);\n"
        "let penalty = 0;\n"
        "if (resistance > 0.5) { penalty = resistance * 2; } else { penalty = resistance * 0.75; }\n"
        "let total = baseValue;\n"
        "total += min(penalty, 5);\n"
        "total -= sign(total - target) * 1.25;\n"
        "if (total > target) { total - (total - target) * 0.3 } else { total + (target - total) * 0.6 }"
    )
    formula = parse(text).unwrap()

    total = (18.0 + 6.0 * 0.5) / (0.65 + 0.1)
    total += min(0.7 * 2, 5.0)
    total -= 1.25
    expected = total - (total - 12.0) * 0.3

    assert formula.required_inputs == {
        "criticalChance", "primaryDamage", "secondaryDamage", "resistance", "target",
    }
    outcome = formula.evaluate({
        "primaryDamage": 18,
        "secondaryDamage": 6,
        "criticalChance": 0.65,
        "resistance": 0.7,
        "target": 12,
    })
    assert outcome.unwrap() == pytest.approx(expected, abs=1e-4)


def test_long_left_associative_chains_evaluate_without_recursion():
    assert _value("+".join(["1"] * 3000)) == 3000.0
    assert _value("-".join(["1"] * 3000)) == -2998.0
    assert _value("a" + " * 2 / 2" * 1500, a=3) == 3.0
    assert _value("10" + " % 7" * 3000) == 3.0


def test_deep_tree_returns_nesting_error():
    node = ConstantNode(value=1.0)
    for _ in range(5000):
        node = UnaryOpNode(operand=node)

    result = ASTEvaluator().evaluate(node, {"a": 1.0})

    assert result.error.kind == EvalErrorKind.NESTING_TOO_DEEP
    assert result.value is None
    assert result.variables == {"a": 1.0}
