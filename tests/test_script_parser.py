"""Tests for script parsing and load-time validation."""

from __future__ import annotations

import pytest

from sqlproc.commands import Command
from sqlproc.errors import ValidationError
from sqlproc.parsing.script_parser import ScriptParser, is_select, validate_program


@pytest.fixture
def parser():
    return ScriptParser()


class TestScriptParsing:
    def test_recognized_lines_in_order(self, parser):
        program = parser.parse_program(
            "-- setup\n"
            "! execute create table t (a)\n"
            "some free text\n"
            "! capture select * from t\n"
            "! proceed 1 == 1\n",
            source="setup.sql",
        )
        assert len(program) == 3
        assert [i.command for i in program] == [Command.EXECUTE, Command.CAPTURE, Command.PROCEED]
        assert program[0].statement == "create table t (a)"
        assert program.source == "setup.sql"

    def test_unknown_keywords_are_dropped(self, parser):
        program = parser.parse_program(
            "! execute select 1\n"
            "! frobnicate select 2\n"
            "! capture select 3\n"
        )
        assert len(program) == 2
        assert [i.statement for i in program] == ["select 1", "select 3"]

    def test_malformed_lines_are_inert(self, parser):
        program = parser.parse_program(
            "!execute select 1\n"
            "! execute\n"
            " ! execute select 2\n"
            "# execute select 3\n"
        )
        assert len(program) == 0

    def test_statement_is_rest_of_line_verbatim(self, parser):
        program = parser.parse_program("! execute   update t set a = '!'  where b = $0  \r\n")
        assert program[0].statement == "  update t set a = '!'  where b = $0  "

    def test_synonyms_keep_their_keyword(self, parser):
        program = parser.parse_program("! ifvalid 1\n! validif 0\n! proceed 1\n")
        assert [i.command for i in program] == [Command.IFVALID, Command.VALIDIF, Command.PROCEED]

    def test_line_numbers_recorded(self, parser):
        program = parser.parse_program("text\n\n! execute select 1\n")
        assert program[0].line == 3

    def test_custom_marker(self):
        parser = ScriptParser(marker="#")
        program = parser.parse_program("# execute select 1\n! execute select 2\n")
        assert len(program) == 1
        assert program[0].statement == "select 1"

    def test_every_command_keyword(self, parser):
        text = "\n".join(f"! {c.value} select 1" for c in Command)
        program = parser.parse_program(text)
        assert [i.command for i in program] == list(Command)


class TestValidation:
    def test_is_select(self):
        assert is_select("select 1")
        assert is_select("   SELECT * from t")
        assert is_select("\tSelect x")
        assert not is_select("delete from t")
        assert not is_select("with q as (select 1) select * from q")

    def test_select_required_commands_pass(self, parser):
        program = parser.parse_program(
            "! capture select 1\n"
            "! replace  SELECT 2\n"
            "! declare select 3 as x\n"
            "! execute delete from t\n"
        )
        validate_program(program)

    @pytest.mark.parametrize("command", ["capture", "replace", "declare"])
    def test_non_select_rejected(self, parser, command):
        program = parser.parse_program(
            "! execute create table t (a)\n"
            f"! {command} delete from t where a = 1\n",
            source="bad.sql",
        )
        with pytest.raises(ValidationError) as excinfo:
            validate_program(program)
        err = excinfo.value
        assert err.source == "bad.sql"
        assert err.index == 1
        assert err.command == command
        assert err.line == 2
        assert "bad.sql" in str(err)
        assert "(line 2)" in str(err)
        assert "command #1" in str(err)
        assert "delete from t where " in str(err)
        assert "a = 1" not in str(err)
