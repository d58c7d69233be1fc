"""
Tests for the command line checker.

Run with: pytest tests/test_cli.py -v
"""
import pytest
import io
import json
import os
import sys

# Add parent directory to path for imports
PARENT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PARENT_DIR not in sys.path:
    sys.path.insert(0, PARENT_DIR)

from cli import check, main
from config import load_config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ("SQLMIMIC_STRICT", "SQLMIMIC_SQLITE_VERSION", "SQLMIMIC_DEFAULT_DIALECT"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("SQLMIMIC_RULES_PATH", str(tmp_path / "missing.yaml"))
    load_config.cache_clear()
    yield
    load_config.cache_clear()


class TestCli:
    """Exit codes and output."""

    def test_valid_statement(self, capsys):
        assert main(["--dialect", "postgres", "SELECT col FROM T"]) == 0

        out = capsys.readouterr().out
        assert "[postgresql] VALID" in out
        assert "Tables: T" in out

    def test_invalid_statement(self, capsys):
        assert main(["-d", "sqlite", "TRUNCATE TABLE Users"]) == 1

        out = capsys.readouterr().out
        assert "INVALID" in out
        assert "TRUNCATE is not supported" in out

    def test_default_dialect_from_env(self, monkeypatch, capsys):
        monkeypatch.setenv("SQLMIMIC_DEFAULT_DIALECT", "mysql")
        load_config.cache_clear()

        assert main(["SELECT col FROM T"]) == 0
        assert "[mysql]" in capsys.readouterr().out

    def test_json_output(self, capsys):
        assert main(["--dialect", "sqlserver", "--json", "SELECT col FROM T"]) == 0

        report = json.loads(capsys.readouterr().out)
        assert report == {
            "dialect": "sqlserver",
            "is_valid": True,
            "errors": [],
            "warnings": [],
            "statement_type": "SELECT",
            "tables": ["T"],
        }

    def test_strict_flag(self):
        sql = "SELECT price::numeric(10, 2) FROM Products"

        assert main(["--dialect", "postgresql", sql]) == 0
        assert main(["--dialect", "postgresql", "--strict", sql]) == 1

    def test_read_file(self, tmp_path):
        path = tmp_path / "query.sql"
        path.write_text("SELECT Id FROM Users\n", encoding="utf-8")

        assert main(["--dialect", "sqlite", "-f", str(path)]) == 0

    def test_read_stdin(self, monkeypatch):
        monkeypatch.setattr(sys, "stdin", io.StringIO("DELETE FROM Users"))

        assert main(["--dialect", "mysql"]) == 0

    def test_missing_file(self, tmp_path, capsys):
        assert main(["-f", str(tmp_path / "nope.sql")]) == 2
        assert "ERROR" in capsys.readouterr().err

    def test_unsupported_dialect(self, capsys):
        assert main(["--dialect", "oracle", "SELECT 1"]) == 2
        assert "No validator registered" in capsys.readouterr().err

    def test_bad_configuration(self, monkeypatch, capsys):
        monkeypatch.setenv("SQLMIMIC_SQLITE_VERSION", "x.y")
        load_config.cache_clear()

        assert main(["SELECT 1"]) == 2
        assert "SQLMIMIC_SQLITE_VERSION" in capsys.readouterr().err

    def test_list_dialects(self, capsys):
        assert main(["--list-dialects"]) == 0

        out = capsys.readouterr().out.split()
        assert out == ["sqlserver", "postgresql", "mysql", "sqlite"]

    def test_check_report(self):
        report = check("SELECT * FROM dbo.Orders", "mssql")

        assert report["is_valid"] is True
        assert report["tables"] == ["Orders"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
