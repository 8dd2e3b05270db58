"""Tests for the proceed condition language."""

import pytest

from sqlproc.commands import BlankValue
from sqlproc.conditions import evaluate_condition, literal, render_condition, to_number, truthy
from sqlproc.parsing.condition_lexer import ConditionLexer
from sqlproc.parsing.condition_parser import BinaryOp, ConditionParser, Literal, UnaryOp


@pytest.fixture
def parser():
    p = ConditionParser()
    p.build(debug=False, write_tables=False)
    return p


class TestConditionLexer:
    def test_tokens(self):
        lexer = ConditionLexer()
        lexer.build()
        types = [t.type for t in lexer.tokenize("1 == 2.5 && 'a' eq x || !NULL")]
        assert types == ["INTEGER", "EQ", "FLOAT", "LAND", "STRING", "STR_EQ", "WORD", "LOR", "BANG", "NULL"]

    def test_string_escapes(self):
        lexer = ConditionLexer()
        lexer.build()
        tokens = lexer.tokenize(r"'it\'s' " + '"say \\"hi\\""')
        assert [t.value for t in tokens] == ["it's", 'say "hi"']

    def test_illegal_character(self):
        lexer = ConditionLexer()
        lexer.build()
        with pytest.raises(SyntaxError, match="Illegal character"):
            lexer.tokenize("1 = 1")


class TestConditionParser:
    def test_precedence(self, parser):
        tree = parser.parse("1 + 2 * 3 == 7")
        assert tree == BinaryOp(
            op="==",
            left=BinaryOp(op="+", left=Literal(1), right=BinaryOp(op="*", left=Literal(2), right=Literal(3))),
            right=Literal(7),
        )

    def test_word_operators_fold_case(self, parser):
        tree = parser.parse("'a' EQ 'a' AND NOT 0")
        assert tree == BinaryOp(
            op="and",
            left=BinaryOp(op="eq", left=Literal("a"), right=Literal("a")),
            right=UnaryOp(op="not", operand=Literal(0)),
        )

    def test_null_and_booleans(self, parser):
        assert parser.parse("null") == Literal(None)
        assert parser.parse("undef") == Literal(None)
        assert parser.parse("true") == Literal(1)
        assert parser.parse("false") == Literal(0)

    def test_syntax_error(self, parser):
        with pytest.raises(SyntaxError):
            parser.parse("1 ==")
        with pytest.raises(SyntaxError):
            parser.parse("(1")


class TestEvaluation:
    @pytest.mark.parametrize("text, expected", [
        ("1", True),
        ("0", False),
        ("1 == 1", True),
        ("1 == 2", False),
        ("2 > 1 && 1 >= 1", True),
        ("1 < 0 || 3 != 3", False),
        ("!0", True),
        ("not 1 or 1", True),
        ("'abc' eq 'abc'", True),
        ("'abc' ne 'abd'", True),
        ("'b' gt 'a'", True),
        ("'a' . 'b' eq 'ab'", True),
        ("'10' == 10.0", True),
        ("'abc' == 0", True),
        ("(1 + 1) * 3 == 6", True),
        ("7 % 4 == 3", True),
        ("-2 + 2", False),
        ("''", False),
        ("'0'", False),
        ("'0.0'", True),
        ("NULL", False),
        ("abc", True),
        ("", False),
        ("   ", False),
    ])
    def test_evaluate(self, text, expected):
        assert evaluate_condition(text) is expected

    def test_division_by_zero(self):
        with pytest.raises(RuntimeError, match="Division by zero"):
            evaluate_condition("1 / 0")

    def test_truthy(self):
        assert not truthy(None)
        assert not truthy(0.0)
        assert not truthy("")
        assert truthy("00")
        assert truthy(-1)

    def test_to_number(self):
        assert to_number("42abc") == 42
        assert to_number(" 3.5") == 3.5
        assert to_number("abc") == 0
        assert to_number(None) == 0


class TestRenderCondition:
    def test_values_become_literals(self):
        text = render_condition("$0 == 5 && $!name eq 'x'", [5, "x"], BlankValue.EMPTY)
        assert text == "5 == 5 && 'x' eq 'x'"

    def test_strings_are_quoted(self):
        assert literal("it's", BlankValue.EMPTY) == r"'it\'s'"
        assert evaluate_condition(render_condition("$0 eq \"it's\"", ["it's"], BlankValue.EMPTY))

    @pytest.mark.parametrize("blank, expected", [
        (BlankValue.EMPTY, "'' == 0"),
        (BlankValue.NULL, "NULL == 0"),
        (BlankValue.ZERO, "0 == 0"),
    ])
    def test_blank_policy(self, blank, expected):
        assert render_condition("$0 == 0", [None], blank) == expected

    def test_missing_arguments_leave_placeholder(self):
        assert render_condition("$0 == $1", [1], BlankValue.EMPTY) == "1 == $1"

    def test_question_marks_in_strings_stay(self):
        text = render_condition("'a?' eq 'a?' && $0 == 1", [1], BlankValue.EMPTY)
        assert text == "'a?' eq 'a?' && 1 == 1"
        assert evaluate_condition(text)
