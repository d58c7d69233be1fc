"""
Integration tests: repository code runs against MimicConnection and the
captured SQL is checked with the validator of the target dialect.

Run with: pytest tests/test_integration.py -v
"""
import pytest
import os
import sys
from typing import List, Optional, Tuple
from dataclasses import dataclass

# Add parent directory to path for imports
PARENT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PARENT_DIR not in sys.path:
    sys.path.insert(0, PARENT_DIR)

from mimic import MimicConnection, clear_executed_commands, executed_commands
from validation import StatementKind, create_validator


# Placeholder style per dialect driver
PLACEHOLDERS = {
    "sqlserver": lambda name: f"@{name}",
    "postgresql": lambda name: "%s",
    "mysql": lambda name: "%s",
    "sqlite": lambda name: "?",
}


@dataclass
class User:
    id: int
    name: str
    email: str
    is_active: bool = True


class UserRepository:
    """Small DB-API repository, the kind of code the test double stands in for."""

    def __init__(self, connection, dialect: str):
        self.connection = connection
        self._p = PLACEHOLDERS[dialect]

    def get_by_id(self, user_id: int) -> Optional[User]:
        cur = self.connection.cursor()
        cur.execute(
            f"SELECT Id, Name, Email, IsActive FROM Users WHERE Id = {self._p('id')}",
            (user_id,)
        )
        row = cur.fetchone()
        return User(*row) if row else None

    def list_active(self) -> List[User]:
        cur = self.connection.cursor()
        cur.execute("SELECT Id, Name, Email, IsActive FROM Users WHERE IsActive = 1 ORDER BY Name")
        return [User(*row) for row in cur.fetchall()]

    def create(self, user: User) -> int:
        cur = self.connection.cursor()
        return cur.execute_non_query(
            f"INSERT INTO Users (Name, Email, IsActive) "
            f"VALUES ({self._p('name')}, {self._p('email')}, {self._p('active')})",
            (user.name, user.email, user.is_active)
        )

    def rename(self, user_id: int, name: str) -> bool:
        cur = self.connection.cursor()
        affected = cur.execute_non_query(
            f"UPDATE Users SET Name = {self._p('name')} WHERE Id = {self._p('id')}",
            (name, user_id)
        )
        return affected > 0

    def delete(self, user_id: int) -> bool:
        with self.connection.begin() as tx:
            cur = self.connection.cursor()
            cur.execute_non_query(f"DELETE FROM Orders WHERE UserId = {self._p('id')}", (user_id,))
            affected = cur.execute_non_query(f"DELETE FROM Users WHERE Id = {self._p('id')}", (user_id,))
            tx.commit()
        return affected > 0

    def count_orders(self) -> List[Tuple[str, int]]:
        cur = self.connection.cursor()
        cur.execute(
            "SELECT u.Name, COUNT(o.Id) FROM Users u "
            "LEFT JOIN Orders o ON o.UserId = u.Id GROUP BY u.Name"
        )
        return cur.fetchall()


@pytest.fixture(autouse=True)
def clean_history():
    clear_executed_commands()
    yield
    clear_executed_commands()


@pytest.fixture(params=["sqlserver", "postgresql", "mysql", "sqlite"])
def dialect(request):
    return request.param


def run_repository(dialect: str) -> MimicConnection:
    conn = MimicConnection()
    conn.setup_mock_data(["Id", "Name", "Email", "IsActive"], (1, "alice", "a@example.com", True))
    conn.setup_mock_data(
        ["Id", "Name", "Email", "IsActive"],
        (1, "alice", "a@example.com", True),
        (2, "bob", "b@example.com", True),
    )
    repo = UserRepository(conn, dialect)

    assert repo.get_by_id(1).name == "alice"
    assert [u.name for u in repo.list_active()] == ["alice", "bob"]
    assert repo.create(User(0, "carol", "c@example.com")) == 1
    assert repo.rename(1, "alicia") is True
    assert repo.delete(2) is True
    repo.count_orders()
    return conn


class TestCapturedSql:
    """SQL produced by repository code is valid for its dialect."""

    def test_every_command_is_valid(self, dialect):
        run_repository(dialect)
        validator = create_validator(dialect)

        assert len(executed_commands) == 7
        for cmd in executed_commands:
            result = validator.validate_syntax(cmd.command_text)
            assert result.is_valid, f"{cmd.command_text}: {result.errors}"

    def test_statement_kinds(self, dialect):
        run_repository(dialect)
        validator = create_validator(dialect)

        kinds = [validator.get_statement_type(c.command_text) for c in executed_commands]
        assert kinds == [
            StatementKind.SELECT,
            StatementKind.SELECT,
            StatementKind.INSERT,
            StatementKind.UPDATE,
            StatementKind.DELETE,
            StatementKind.DELETE,
            StatementKind.SELECT,
        ]

    def test_referenced_tables(self, dialect):
        run_repository(dialect)
        validator = create_validator(dialect)

        assert validator.extract_table_names(executed_commands[-1].command_text) == ["Users", "Orders"]
        assert validator.extract_table_names(executed_commands[4].command_text) == ["Orders"]

    def test_delete_runs_in_transaction(self, dialect):
        conn = run_repository(dialect)

        assert len(conn.transactions) == 1
        assert conn.transactions[0].is_committed is True
        assert executed_commands[4].transaction is conn.transactions[0]
        assert executed_commands[5].transaction is conn.transactions[0]
        assert executed_commands[3].transaction is None

    def test_parameters_captured(self, dialect):
        run_repository(dialect)

        assert executed_commands[0].parameters == (1,)
        assert executed_commands[3].parameters == ("alicia", 1)


class TestDialectMismatch:
    """The validator catches SQL written for the wrong database."""

    def test_truncate_rejected_for_sqlite(self):
        conn = MimicConnection()
        conn.cursor().execute_non_query("TRUNCATE TABLE Users")
        validator = create_validator("sqlite")

        result = validator.validate_syntax(executed_commands[0].command_text)
        assert result.is_valid is False
        assert any("DELETE FROM" in e for e in result.errors)

    def test_sqlserver_types_rejected_for_sqlite(self):
        conn = MimicConnection()
        conn.cursor().execute_non_query("CREATE TABLE Payments (Id INTEGER PRIMARY KEY, Amount MONEY)")

        assert create_validator("sqlite").validate_syntax(executed_commands[0].command_text).is_valid is False
        assert create_validator("sqlserver").validate_syntax(executed_commands[0].command_text).is_valid is True


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
