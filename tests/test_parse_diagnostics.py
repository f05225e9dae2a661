from __future__ import annotations

from adapters.formula_parser import parse
from adapters.formula_parser._diagnostics import build_parse_error
from contracts import ParseErrorKind


def test_error_at_end_of_single_line_points_at_last_character():
    error = parse("a +").error

    assert error.kind == ParseErrorKind.UNEXPECTED_END
    assert error.offset == 2
    assert (error.line, error.column) == (1, 3)
    assert error.line_text == "a +"
    assert error.pointer == "  ^"
    assert error.expression == "a +"


def test_multiline_error_reports_line_and_renders_context():
    text = "let a = 1\nlet b = a +\n"
    error = parse(text).error

    assert error.offset == 21
    assert (error.line, error.column) == (2, 12)
    assert error.line_text == "let b = a +"
    assert error.render() == (
        "Parse error at line 2, column 12: Unexpected end of expression\n"
        "let b = a +\n"
        "           ^\n"
        "Expression:\n"
        "let a = 1\nlet b = a +\n"
    )


def test_carriage_return_does_not_advance_column():
    error = parse("x = 1\r\ny = $").error

    assert error.kind == ParseErrorKind.UNEXPECTED_CHARACTER
    assert error.message == "Unexpected character at position 11: '$'"
    assert (error.line, error.column) == (2, 5)
    assert error.line_text == "y = $"
    assert error.pointer == "    ^"


def test_unknown_function_points_at_its_name():
    error = parse("base + bonus(3)").error

    assert error.kind == ParseErrorKind.UNKNOWN_FUNCTION
    assert error.column == 8
    assert error.pointer == "       ^"


def test_offset_past_end_is_clamped_into_text():
    error = build_parse_error("abc", ParseErrorKind.UNEXPECTED_END, "boom", 99)

    assert error.offset == 2
    assert error.column == 3


def test_error_for_empty_text_renders_without_line_context():
    error = build_parse_error("", ParseErrorKind.UNEXPECTED_END, "boom", 0)

    assert (error.line, error.column) == (1, 1)
    assert error.render() == "Parse error at line 1, column 1: boom\nExpression:\n"
