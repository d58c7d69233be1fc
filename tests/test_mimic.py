"""
Tests for the recording database test double.

Tests cover:
- Command capture (text, parameters, global history)
- Canned results in single-value and multi-row mode
- Transaction lifecycle and cursor binding

Run with: pytest tests/test_mimic.py -v
"""
import pytest
import os
import sys

# Add parent directory to path for imports
PARENT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PARENT_DIR not in sys.path:
    sys.path.insert(0, PARENT_DIR)

from mimic import (
    CursorStateError,
    MimicConnection,
    TransactionStateError,
    clear_executed_commands,
    executed_commands,
)


@pytest.fixture
def conn():
    clear_executed_commands()
    yield MimicConnection()
    clear_executed_commands()


# =============================================================================
# Command Capture
# =============================================================================

class TestCommandCapture:
    """Statements are recorded instead of executed."""

    def test_execute_records_text_and_parameters(self, conn):
        cur = conn.cursor()
        cur.execute("SELECT * FROM Users WHERE Id = ?", (1,))

        assert cur.command_text == "SELECT * FROM Users WHERE Id = ?"
        assert cur.parameters == (1,)
        assert conn.commands == [cur]

    def test_global_history(self, conn):
        conn.cursor().execute("SELECT 1")
        MimicConnection().cursor().execute("SELECT 2")

        assert [c.command_text for c in executed_commands] == ["SELECT 1", "SELECT 2"]

        clear_executed_commands()
        assert executed_commands == []

    def test_reused_cursor_records_each_call(self, conn):
        cur = conn.cursor()
        cur.execute("DELETE FROM Orders WHERE UserId = ?", (1,))
        cur.execute("DELETE FROM Users WHERE Id = ?", (1,))

        assert [c.command_text for c in executed_commands] == [
            "DELETE FROM Orders WHERE UserId = ?",
            "DELETE FROM Users WHERE Id = ?",
        ]
        assert all(c.cursor is cur for c in executed_commands)
        assert cur.command_text == "DELETE FROM Users WHERE Id = ?"

    def test_unexecuted_cursor_not_in_history(self, conn):
        conn.cursor()

        assert len(conn.commands) == 1
        assert executed_commands == []

    def test_executemany_records_parameter_list(self, conn):
        cur = conn.cursor()
        cur.executemany("INSERT INTO Users (Name) VALUES (?)", [("a",), ("b",)])

        assert cur.parameters == [("a",), ("b",)]

    def test_connection_always_open(self, conn):
        conn.open()
        conn.close()

        assert conn.closed is False
        assert conn.database == "TestDb"


# =============================================================================
# Canned Results
# =============================================================================

class TestSingleValueMode:
    """Results from mock_return_value and mock_has_rows."""

    def test_scalar_return_value(self, conn):
        conn.mock_return_value = 42

        assert conn.cursor().scalar("SELECT COUNT(*) FROM Users") == 42

    def test_fetchone_single_row(self, conn):
        conn.mock_return_value = "alice"
        cur = conn.cursor()
        cur.execute("SELECT Name FROM Users WHERE Id = 1")

        assert cur.fetchone() == ("alice",)
        assert cur.fetchone() is None
        assert cur.rowcount == 1

    def test_sequence_return_value_is_a_row(self, conn):
        conn.mock_return_value = (1, "alice")
        cur = conn.cursor().execute("SELECT Id, Name FROM Users")

        assert cur.fetchall() == [(1, "alice")]

    def test_no_rows(self, conn):
        conn.mock_has_rows = False
        cur = conn.cursor().execute("SELECT Name FROM Users WHERE Id = 99")

        assert cur.fetchone() is None

    def test_sequential_values(self, conn):
        conn.setup_sequential_return_values(1, 2)
        conn.setup_sequential_has_rows(True, False)
        conn.mock_return_value = 3

        first, second, third = conn.cursor(), conn.cursor(), conn.cursor()

        assert first.scalar("SELECT 1") == 1
        assert second.execute("SELECT 2").fetchone() is None
        assert third.scalar("SELECT 3") == 3

    def test_execute_non_query(self, conn):
        assert conn.cursor().execute_non_query("DELETE FROM Users") == 1

        conn.mock_return_value = 5
        assert conn.cursor().execute_non_query("DELETE FROM Users") == 5

    def test_boolean_is_not_a_row_count(self, conn):
        conn.mock_return_value = True

        assert conn.cursor().execute_non_query("DELETE FROM Users") == 1


class TestMultiRowMode:
    """Results from setup_mock_data."""

    def test_rows_and_description(self, conn):
        conn.setup_mock_data(["Id", "Name"], (1, "alice"), (2, "bob"))
        cur = conn.cursor().execute("SELECT Id, Name FROM Users")

        assert [d[0] for d in cur.description] == ["Id", "Name"]
        assert cur.rowcount == 2
        assert cur.fetchall() == [(1, "alice"), (2, "bob")]

    def test_fetchmany(self, conn):
        conn.setup_mock_data(["Id"], (1,), (2,), (3,))
        cur = conn.cursor().execute("SELECT Id FROM Users")

        assert cur.fetchmany(2) == [(1,), (2,)]
        assert cur.fetchmany() == [(3,)]
        assert cur.fetchmany() == []

    def test_iteration(self, conn):
        conn.setup_mock_data(["Id"], (1,), (2,))
        cur = conn.cursor().execute("SELECT Id FROM Users")

        assert list(cur) == [(1,), (2,)]

    def test_queued_data_one_per_cursor(self, conn):
        conn.setup_mock_data(["Id"], (1,))
        conn.setup_mock_data(["Name"], ("alice",))

        first = conn.cursor().execute("SELECT Id FROM Users")
        second = conn.cursor().execute("SELECT Name FROM Users")

        assert first.fetchall() == [(1,)]
        assert second.fetchall() == [("alice",)]

    def test_default_data_after_queue(self, conn):
        conn.setup_default_mock_data(["Id"], (7,))
        conn.setup_mock_data(["Id"], (1,))

        assert conn.cursor().scalar("SELECT Id FROM Users") == 1
        assert conn.cursor().scalar("SELECT Id FROM Users") == 7
        assert conn.cursor().scalar("SELECT Id FROM Users") == 7

    def test_clear_mock_data(self, conn):
        conn.setup_default_mock_data(["Id"], (7,))
        conn.clear_mock_data()
        cur = conn.cursor()

        assert cur.is_multi_row is False

    def test_empty_result_set(self, conn):
        conn.setup_mock_data(["Id"])
        cur = conn.cursor().execute("SELECT Id FROM Users")

        assert cur.fetchone() is None
        assert cur.rowcount == 0


class TestCursorState:
    """Cursor usage errors."""

    def test_fetch_before_execute(self, conn):
        cur = conn.cursor()

        assert cur.description is None
        assert cur.rowcount == -1
        with pytest.raises(CursorStateError):
            cur.fetchone()

    def test_execute_after_close(self, conn):
        with conn.cursor() as cur:
            cur.execute("SELECT 1")

        with pytest.raises(CursorStateError):
            cur.execute("SELECT 2")


# =============================================================================
# Transactions
# =============================================================================

class TestTransactions:
    """Transaction lifecycle."""

    def test_begin_records_transaction(self, conn):
        tx = conn.begin()

        assert conn.transactions == [tx]
        assert tx.isolation_level == "READ COMMITTED"
        assert conn.current_transaction is tx

    def test_cursor_bound_to_active_transaction(self, conn):
        before = conn.cursor()
        tx = conn.begin("SERIALIZABLE")
        during = conn.cursor()
        tx.commit()
        after = conn.cursor()

        assert before.transaction is None
        assert during.transaction is tx
        assert after.transaction is None

    def test_commit(self, conn):
        tx = conn.begin()
        tx.commit()

        assert tx.is_committed is True
        assert tx.is_active is False
        assert conn.current_transaction is None

    def test_rollback(self, conn):
        tx = conn.begin()
        tx.rollback()

        assert tx.is_rolled_back is True
        assert tx.is_committed is False

    @pytest.mark.parametrize("first,second", [
        ("commit", "commit"),
        ("commit", "rollback"),
        ("rollback", "commit"),
        ("rollback", "rollback"),
    ])
    def test_completed_transaction_rejects_more(self, conn, first, second):
        tx = conn.begin()
        getattr(tx, first)()

        with pytest.raises(TransactionStateError):
            getattr(tx, second)()

    def test_close_without_commit_rolls_back(self, conn):
        tx = conn.begin()
        tx.close()

        assert tx.is_rolled_back is True
        assert tx.is_closed is True
        with pytest.raises(TransactionStateError):
            tx.commit()

    def test_close_after_commit_keeps_commit(self, conn):
        tx = conn.begin()
        tx.commit()
        tx.close()

        assert tx.is_committed is True
        assert tx.is_rolled_back is False

    def test_context_manager_commit(self, conn):
        with conn.begin() as tx:
            conn.cursor().execute("UPDATE Users SET Name = ? WHERE Id = ?", ("bob", 1))
            tx.commit()

        assert tx.is_committed is True
        assert tx.is_closed is True

    def test_context_manager_auto_rollback(self, conn):
        with conn.begin() as tx:
            conn.cursor().execute("UPDATE Users SET Name = ? WHERE Id = ?", ("bob", 1))

        assert tx.is_rolled_back is True

    def test_context_manager_rolls_back_on_error(self, conn):
        with pytest.raises(RuntimeError):
            with conn.begin() as tx:
                raise RuntimeError("boom")

        assert tx.is_rolled_back is True

    def test_connection_commit_delegates(self, conn):
        tx = conn.begin()
        conn.commit()

        assert tx.is_committed is True

    def test_connection_without_transaction(self, conn):
        conn.commit()
        conn.rollback()

        assert conn.transactions == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
