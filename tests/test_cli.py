"""Tests for the command line interface."""

import pytest

from fintrack.cli.main import cli


@pytest.fixture
def invoke(cli_runner, temp_db):
    """Run a CLI command against the temporary database as owner 'tester'."""

    def run(*args, input=None):
        return cli_runner.invoke(
            cli, ["--db-path", temp_db.database_path, "--owner", "tester", *args], input=input
        )

    return run


def created_id(output, marker):
    for line in output.splitlines():
        if marker in line:
            return line
    raise AssertionError(f"{marker!r} not in output:\n{output}")


def create_wallet(invoke):
    result = invoke("account", "create", "Wallet", "--kind", "cash", "--default")
    assert result.exit_code == 0, result.output
    return created_id(result.output, "ID:").split("ID:")[1].strip().rstrip(")")


def add(invoke, *args):
    result = invoke("add", *args)
    assert result.exit_code == 0, result.output
    return created_id(result.output, "Created transaction").split()[-1]


def upload(invoke, path):
    result = invoke("import", "upload", str(path))
    assert result.exit_code == 0, result.output
    return created_id(result.output, "Created import job").split()[3]


MAP_ARGS = [
    "--date", "Date",
    "--amount", "Amount",
    "--description", "Description",
    "--type", "Type",
    "--account", "Account",
    "--reference", "Ref",
]


class TestAccountCommands:
    """Tests for account commands."""

    def test_create_and_list(self, invoke):
        create_wallet(invoke)

        result = invoke("account", "list")

        assert result.exit_code == 0
        assert "Wallet" in result.output
        assert "0.00 SLL" in result.output

    def test_create_duplicate(self, invoke):
        create_wallet(invoke)

        result = invoke("account", "create", "wallet")

        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_list_empty(self, invoke):
        result = invoke("account", "list")

        assert result.exit_code == 0
        assert "No accounts found." in result.output

    def test_delete(self, invoke):
        create_wallet(invoke)

        result = invoke("account", "delete", "Wallet", input="y\n")

        assert result.exit_code == 0
        assert "Deleted account 'Wallet'" in result.output
        assert "No accounts found." in invoke("account", "list").output

    def test_delete_unknown(self, invoke):
        result = invoke("account", "delete", "Nope")

        assert result.exit_code == 1
        assert "not found" in result.output

    def test_check(self, invoke):
        create_wallet(invoke)
        add(invoke, "--amount", "10", "--type", "income", "--account", "Wallet")

        result = invoke("account", "check", "Wallet")

        assert result.exit_code == 0
        assert "Balance matches transactions" in result.output


class TestTransactionCommands:
    """Tests for add and transaction commands."""

    def test_add_updates_balance(self, invoke):
        create_wallet(invoke)

        result = invoke(
            "add", "--amount", "50", "--type", "expense", "--account", "Wallet",
            "--date", "2024-01-15", "--description", "Groceries",
        )

        assert result.exit_code == 0
        assert "Amount: 50.00" in result.output
        assert "-50.00 SLL" in invoke("account", "list").output

    def test_add_without_account(self, invoke):
        txn_id = add(invoke, "--amount", "5", "--type", "income")

        result = invoke("transaction", "list")

        assert txn_id in result.output

    def test_add_invalid_amount(self, invoke):
        result = invoke("add", "--amount", "lots", "--type", "income")

        assert result.exit_code == 1
        assert "Invalid amount" in result.output

    def test_add_non_positive_amount(self, invoke):
        result = invoke("add", "--amount", "0", "--type", "income")

        assert result.exit_code == 1
        assert "positive" in result.output

    def test_add_unknown_account(self, invoke):
        result = invoke("add", "--amount", "5", "--type", "income", "--account", "Ghost")

        assert result.exit_code == 1
        assert "not found" in result.output

    def test_update_moves_balance(self, invoke):
        create_wallet(invoke)
        invoke("account", "create", "Bank", "--kind", "bank")
        txn_id = add(invoke, "--amount", "100", "--type", "income", "--account", "Wallet")

        result = invoke("transaction", "update", txn_id, "--account", "Bank")

        assert result.exit_code == 0, result.output
        listing = invoke("account", "list").output
        assert "100.00 SLL" in listing
        assert "Wallet" in listing

    def test_update_nothing(self, invoke):
        txn_id = add(invoke, "--amount", "5", "--type", "income")

        result = invoke("transaction", "update", txn_id)

        assert "Nothing to update." in result.output

    def test_update_missing(self, invoke):
        result = invoke("transaction", "update", "missing", "--amount", "5")

        assert result.exit_code == 1
        assert "not found" in result.output

    def test_delete_reverts_balance(self, invoke):
        create_wallet(invoke)
        txn_id = add(invoke, "--amount", "75", "--type", "expense", "--account", "Wallet")

        result = invoke("transaction", "delete", txn_id, input="y\n")

        assert result.exit_code == 0
        assert "Deleted transaction" in result.output
        assert "0.00 SLL" in invoke("account", "list").output

    def test_list_filters(self, invoke):
        add(invoke, "--amount", "5", "--type", "income", "--description", "Tip")
        add(invoke, "--amount", "7", "--type", "expense", "--description", "Bus")

        result = invoke("transaction", "list", "--type", "income")

        assert result.exit_code == 0
        assert "Tip" in result.output
        assert "Bus" not in result.output


class TestImportCommands:
    """Tests for import commands."""

    def test_full_import(self, invoke, sample_csv):
        create_wallet(invoke)
        job_id = upload(invoke, sample_csv)

        result = invoke("import", "map", job_id, *MAP_ARGS)
        assert result.exit_code == 0, result.output

        result = invoke("import", "preview", job_id)
        assert result.exit_code == 0
        assert "4 of 5 preview rows are valid" in result.output

        result = invoke("import", "process", job_id)
        assert result.exit_code == 0, result.output
        assert "completed" in result.output
        assert "Succeeded: 4" in result.output
        assert "Failed: 1" in result.output
        assert "Row 3: Invalid amount" in result.output

        assert "930.00 SLL" in invoke("account", "list").output

        result = invoke("import", "status", job_id)
        assert result.exit_code == 0
        assert "Processed: 5" in result.output

        result = invoke("import", "history")
        assert result.exit_code == 0
        assert "statement.csv" in result.output
        assert "4/5 imported" in result.output

    def test_reimport_counts_duplicates(self, invoke, sample_csv):
        create_wallet(invoke)
        for _ in range(2):
            job_id = upload(invoke, sample_csv)
            invoke("import", "map", job_id, *MAP_ARGS)
            result = invoke("import", "process", job_id)

        assert "Duplicates: 5" in result.output
        assert "Failed: 0" in result.output
        assert "930.00 SLL" in invoke("account", "list").output

    def test_upload_suggests_mapping(self, invoke, sample_csv):
        result = invoke("import", "upload", str(sample_csv))

        assert result.exit_code == 0
        assert '--date "Date"' in result.output
        assert '--reference "Ref"' in result.output

    def test_upload_rejects_non_csv(self, invoke, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("Date,Amount,Description\n", encoding="utf-8")

        result = invoke("import", "upload", str(path))

        assert result.exit_code == 1
        assert "Only CSV files are allowed" in result.output

    def test_map_unknown_column(self, invoke, sample_csv):
        job_id = upload(invoke, sample_csv)

        result = invoke(
            "import", "map", job_id, "--date", "Date", "--amount", "Total", "--description", "Description"
        )

        assert result.exit_code == 1
        assert "Total" in result.output

    def test_process_requires_mapping(self, invoke, sample_csv):
        job_id = upload(invoke, sample_csv)

        result = invoke("import", "process", job_id)

        assert result.exit_code == 1
        assert "pending" in result.output

    def test_process_twice(self, invoke, sample_csv):
        job_id = upload(invoke, sample_csv)
        invoke("import", "map", job_id, *MAP_ARGS)
        invoke("import", "process", job_id)

        result = invoke("import", "process", job_id)

        assert result.exit_code == 1
        assert "completed" in result.output

    def test_status_unknown_job(self, invoke):
        result = invoke("import", "status", "missing")

        assert result.exit_code == 1
        assert "not found" in result.output

    def test_owner_isolation(self, cli_runner, temp_db, invoke, sample_csv):
        job_id = upload(invoke, sample_csv)

        result = cli_runner.invoke(
            cli, ["--db-path", temp_db.database_path, "--owner", "someone-else", "import", "status", job_id]
        )

        assert result.exit_code == 1
        assert "not found" in result.output
