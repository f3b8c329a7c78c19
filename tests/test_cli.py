"""Tests for the command line interface."""

from financeflow.cli.main import cli


def _invoke(cli_runner, db_path, *args, **kwargs):
    return cli_runner.invoke(cli, ["--db-path", db_path, *args], **kwargs)


def _seed(cli_runner, db_path):
    result = _invoke(
        cli_runner, db_path,
        "add", "--date", "2024-03-01", "--amount", "2500", "--title", "Salary", "--income",
    )
    assert result.exit_code == 0
    result = _invoke(
        cli_runner, db_path,
        "add", "--date", "2024-03-03", "--amount", "-85.75", "--title", "Market", "--category", "Food",
    )
    assert result.exit_code == 0


def test_help_does_not_touch_database(cli_runner, tmp_path):
    """Test that showing help does not create the database."""
    db_path = tmp_path / "never.db"

    result = cli_runner.invoke(cli, ["--db-path", str(db_path), "--help"])

    assert result.exit_code == 0
    assert "carry-forward" in result.output
    assert not db_path.exists()


def test_add_transaction(cli_runner, temp_db_path):
    """Test adding an expense."""
    result = _invoke(
        cli_runner, temp_db_path,
        "add", "--date", "2024-03-03", "--amount", "-85.75", "--title", "Market", "--category", "Food",
    )

    assert result.exit_code == 0
    assert "Added expense 'Market' of $85.75" in result.output


def test_add_transaction_invalid_amount(cli_runner, temp_db_path):
    """Test that an unparseable amount fails."""
    result = _invoke(cli_runner, temp_db_path, "add", "--date", "today", "--amount", "lots")

    assert result.exit_code == 1
    assert "Error" in result.output


def test_add_transaction_paid_above_amount(cli_runner, temp_db_path):
    """Test that a paid amount above the amount fails."""
    result = _invoke(
        cli_runner, temp_db_path, "add", "--date", "today", "--amount", "-10", "--paid", "20"
    )

    assert result.exit_code == 1
    assert "Paid amount" in result.output


def test_list_transactions(cli_runner, temp_db_path):
    """Test listing a month's transactions."""
    _seed(cli_runner, temp_db_path)

    result = _invoke(cli_runner, temp_db_path, "list", "--month", "2024-03")

    assert result.exit_code == 0
    assert "Found 2 transaction(s) in 2024-03" in result.output
    assert "Market" in result.output
    assert "Salary" in result.output


def test_list_by_category(cli_runner, temp_db_path):
    """Test filtering the list by category."""
    _seed(cli_runner, temp_db_path)

    result = _invoke(cli_runner, temp_db_path, "list", "--month", "2024-03", "--category", "Food")

    assert result.exit_code == 0
    assert "Found 1 transaction(s)" in result.output
    assert "Salary" not in result.output


def test_list_empty_month(cli_runner, temp_db_path):
    """Test listing a month without transactions."""
    result = _invoke(cli_runner, temp_db_path, "list", "--month", "2020-01")

    assert result.exit_code == 0
    assert "No transactions found." in result.output


def test_list_invalid_month(cli_runner, temp_db_path):
    """Test that an invalid month fails."""
    result = _invoke(cli_runner, temp_db_path, "list", "--month", "2024-13")

    assert result.exit_code == 1
    assert "Invalid month" in result.output


def test_summary(cli_runner, temp_db_path):
    """Test the monthly summary with a budget."""
    _seed(cli_runner, temp_db_path)

    result = _invoke(cli_runner, temp_db_path, "summary", "--month", "2024-03", "--budget", "1000")

    assert result.exit_code == 0
    assert "$2,500.00" in result.output
    assert "$2,414.25" in result.output
    assert "Food" in result.output
    assert "$914.25" in result.output


def test_pay_transaction(cli_runner, temp_db_path):
    """Test recording payments, clamped to the amount."""
    _invoke(
        cli_runner, temp_db_path,
        "add", "--date", "2024-03-10", "--amount", "-100", "--title", "Power", "--category", "Utilities",
    )

    result = _invoke(cli_runner, temp_db_path, "pay", "1", "40")
    assert result.exit_code == 0
    assert "paid $40.00 of $100.00 (partial)" in result.output

    result = _invoke(cli_runner, temp_db_path, "pay", "1", "80")
    assert result.exit_code == 0
    assert "paid $100.00 of $100.00 (paid)" in result.output


def test_pay_unknown_transaction(cli_runner, temp_db_path):
    """Test paying a transaction that does not exist."""
    result = _invoke(cli_runner, temp_db_path, "pay", "42", "10")

    assert result.exit_code == 1
    assert "not found" in result.output


def test_delete_transaction(cli_runner, temp_db_path):
    """Test deleting a transaction."""
    _seed(cli_runner, temp_db_path)

    result = _invoke(cli_runner, temp_db_path, "delete", "2", "--yes")
    assert result.exit_code == 0

    result = _invoke(cli_runner, temp_db_path, "list", "--month", "2024-03")
    assert "Market" not in result.output


def test_delete_cancelled(cli_runner, temp_db_path):
    """Test declining the delete confirmation."""
    _seed(cli_runner, temp_db_path)

    result = _invoke(cli_runner, temp_db_path, "delete", "2", input="n\n")

    assert "Cancelled." in result.output


def test_carry_forward(cli_runner, temp_db_path):
    """Test carrying forward twice for the same month."""
    _invoke(
        cli_runner, temp_db_path,
        "add", "--date", "2024-03-12", "--amount", "-30", "--title", "Phone", "--category", "Bills",
    )

    result = _invoke(cli_runner, temp_db_path, "carry-forward", "--month", "2024-03")
    assert result.exit_code == 0
    assert "Carried 1 transaction(s) into 2024-04" in result.output

    result = _invoke(cli_runner, temp_db_path, "carry-forward", "--month", "2024-03")
    assert result.exit_code == 0
    assert "Nothing to carry into 2024-04." in result.output
    assert "Skipped 1 already carried." in result.output


def test_forecast(cli_runner, temp_db_path):
    """Test the cash-flow forecast output."""
    _seed(cli_runner, temp_db_path)

    result = _invoke(cli_runner, temp_db_path, "forecast", "--month", "2024-03")

    assert result.exit_code == 0
    assert "2024-03-31" in result.output
    assert "Projected month-end balance: $2,414.25" in result.output
