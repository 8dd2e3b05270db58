"""Tests for the sqlproc command-line runner."""

from pathlib import Path

from sqlalchemy import create_engine

from sqlproc.cli import main, run_file


def _count(url: str, table: str) -> int:
    engine = create_engine(url)
    try:
        with engine.connect() as conn:
            return conn.exec_driver_sql(f"select count(*) from {table}").scalar()
    finally:
        engine.dispose()


class TestRunFile:
    def test_run_commits(self, tmp_path: Path):
        url = f"sqlite:///{tmp_path / 'db.sqlite'}"
        script = tmp_path / "setup.sql"
        script.write_text(
            "Create and fill a table.\n"
            "! execute create table people (name text)\n"
            "! execute insert into people values ($0)\n"
            "! execute insert into people values ($!who)\n"
        )
        assert run_file(script, url=url, args=["Alice"], custom={"who": "Bob"}) == 0
        assert _count(url, "people") == 2

    def test_failure_rolls_back(self, tmp_path: Path, capsys):
        url = f"sqlite:///{tmp_path / 'db.sqlite'}"
        engine = create_engine(url)
        with engine.begin() as conn:
            conn.exec_driver_sql("create table people (name text)")
        engine.dispose()

        script = tmp_path / "bad.sql"
        script.write_text(
            "! execute insert into people values ('Alice')\n"
            "! execute insert into nowhere values (1)\n"
        )
        assert run_file(script, url=url) == 1
        assert "no such table" in capsys.readouterr().err
        assert _count(url, "people") == 0

    def test_include_resolves_against_root(self, tmp_path: Path, capsys):
        (tmp_path / "lib").mkdir()
        (tmp_path / "lib" / "value.sql").write_text("! execute select 1\n")
        scripts = tmp_path / "scripts"
        scripts.mkdir()
        script = scripts / "main.sql"
        script.write_text("! include lib/value.sql\n! execute select 'done' as status\n")
        assert run_file(script, root=tmp_path) == 0
        assert "done" in capsys.readouterr().out


class TestMain:
    def test_main_prints_result_and_captures(self, tmp_path: Path, capsys):
        script = tmp_path / "report.sql"
        script.write_text(
            "! capture select $0 as first, $!who as second\n"
            "! execute select 'last' as marker\n"
        )
        code = main([str(script), "-a", "x", "-s", "who=me", "--show-captures"])
        assert code == 0
        out = capsys.readouterr().out
        assert "marker" in out
        assert "last" in out
        assert "-- capture 0" in out
        assert "me" in out

    def test_main_missing_file(self, tmp_path: Path, capsys):
        assert main([str(tmp_path / "missing.sql")]) == 1
        assert "File not found" in capsys.readouterr().err

    def test_main_bad_assignment(self, tmp_path: Path, capsys):
        script = tmp_path / "s.sql"
        script.write_text("! execute select 1\n")
        assert main([str(script), "-s", "novalue"]) == 1
        assert "NAME=VALUE" in capsys.readouterr().err

    def test_main_validation_error(self, tmp_path: Path, capsys):
        script = tmp_path / "s.sql"
        script.write_text("! capture delete from t\n")
        assert main([str(script)]) == 1
        assert "select statement" in capsys.readouterr().err

    def test_main_examine(self, tmp_path: Path, capsys):
        script = tmp_path / "s.sql"
        script.write_text("! examine select * from t where a = $0\n")
        assert main([str(script), "-a", "it's"]) == 1
        assert "select * from t where a = 'it''s'" in capsys.readouterr().err
