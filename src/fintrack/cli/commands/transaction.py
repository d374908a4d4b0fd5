"""Transaction management commands."""

import click
from fintrack.cli.account_resolution import resolve_account_or_exit
from fintrack.cli.error_handling import handle_domain_error
from fintrack.domain.account import AccountService
from fintrack.domain.entities import PaymentMode, TransactionType
from fintrack.domain.errors import DomainError
from fintrack.domain.transaction import TransactionService
from fintrack.utils.amount_parser import parse_amount
from fintrack.utils.date_parser import parse_datetime


@click.group()
def transaction_group():
    """Manage transactions."""
    pass


def _parse_date_or_exit(ctx, value: str, label: str):
    try:
        return parse_datetime(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


@transaction_group.command("update")
@click.argument("transaction_id")
@click.option("--amount", help="New positive amount")
@click.option("--type", "txn_type", type=click.Choice([t.value for t in TransactionType]), help="income or expense")
@click.option("--account", help="Account name or ID, or empty string to detach")
@click.option("--date", help="When it happened (YYYY-MM-DD or 'today', 'yesterday')")
@click.option("--description", help="Transaction description")
@click.option("--mode", type=click.Choice([m.value for m in PaymentMode]), help="Payment mode")
@click.option("--reference", help="External reference")
@click.option("--category", help="Category reference, or empty string to clear")
@click.option("--notes", help="Notes")
@click.pass_context
def update_transaction(
    ctx,
    transaction_id: str,
    amount: str | None,
    txn_type: str | None,
    account: str | None,
    date: str | None,
    description: str | None,
    mode: str | None,
    reference: str | None,
    category: str | None,
    notes: str | None,
) -> None:
    """Update a transaction.

    Updates only the fields that are provided. Moving a transaction to
    another account moves its balance contribution with it.

    Examples:
        fintrack transaction update <ID> --amount 75.00
        fintrack transaction update <ID> --account "Rokel Savings" --type income
        fintrack transaction update <ID> --account ""  # Detach from its account
    """
    db = ctx.obj["db"]
    transaction_service = TransactionService(db)

    changes = {}
    if amount is not None:
        try:
            changes["amount"] = parse_amount(amount)
        except ValueError as e:
            click.echo(f"Error: Invalid amount format: {e}", err=True)
            ctx.exit(1)
    if txn_type is not None:
        changes["type"] = txn_type
    if account is not None:
        changes["account_id"] = (
            resolve_account_or_exit(ctx, AccountService(db), account) if account else None
        )
    if date is not None:
        changes["occurred_at"] = _parse_date_or_exit(ctx, date, "date")
    if category is not None:
        changes["category_id"] = category or None
    for name, value in (
        ("description", description),
        ("mode", mode),
        ("reference", reference),
        ("notes", notes),
    ):
        if value is not None:
            changes[name] = value

    if not changes:
        click.echo("Nothing to update.")
        return

    try:
        transaction_service.update_transaction(ctx.obj["owner"], transaction_id, **changes)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Updated transaction {transaction_id}")


@transaction_group.command("list")
@click.option("--type", "txn_type", type=click.Choice([t.value for t in TransactionType]), help="Only income or expense")
@click.option("--account", help="Account name or ID")
@click.option("--category", help="Category reference")
@click.option("--start-date", help="Earliest date (inclusive)")
@click.option("--end-date", help="Latest date (inclusive)")
@click.option("--page", type=int, default=1, show_default=True)
@click.option("--limit", type=int, default=50, show_default=True)
@click.option("--sort", type=click.Choice(["asc", "desc"]), default="desc", show_default=True)
@click.pass_context
def list_transactions(
    ctx,
    txn_type: str | None,
    account: str | None,
    category: str | None,
    start_date: str | None,
    end_date: str | None,
    page: int,
    limit: int,
    sort: str,
):
    """View transactions with optional filters."""
    db = ctx.obj["db"]
    owner_id = ctx.obj["owner"]
    service = TransactionService(db)
    account_service = AccountService(db)

    start = _parse_date_or_exit(ctx, start_date, "start date") if start_date else None
    end = _parse_date_or_exit(ctx, end_date, "end date") if end_date else None

    account_id = None
    if account:
        account_id = resolve_account_or_exit(ctx, account_service, account)

    try:
        result = service.list_transactions(
            owner_id,
            type=txn_type,
            account_id=account_id,
            category_id=category,
            start=start,
            end=end,
            page=page,
            limit=limit,
            sort=sort,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    transactions = result["transactions"]
    if not transactions:
        click.echo("No transactions found.")
        return

    accounts = {acc.id: acc.name for acc in account_service.list_accounts(owner_id)}
    pagination = result["pagination"]

    click.echo(f"\nFound {pagination['total']} transaction(s), page {pagination['page']} of {pagination['pages']}:")
    click.echo("-" * 110)
    click.echo(f"{'ID':<36} {'Date':<12} {'Type':<8} {'Amount':>12} {'Account':<18} {'Description':<20}")
    click.echo("-" * 110)
    for txn in transactions:
        account_name = accounts.get(txn.account_id, "-") if txn.account_id else "-"
        description = (txn.description or "")[:20]
        click.echo(
            f"{txn.id:<36} {txn.occurred_at.date()!s:<12} {txn.type.value:<8} "
            f"{txn.amount:>12,.2f} {account_name:<18} {description:<20}"
        )


@transaction_group.command("delete")
@click.argument("transaction_id")
@click.pass_context
def delete_transaction(ctx, transaction_id: str) -> None:
    """Delete a transaction and revert its balance contribution."""
    transaction_service = TransactionService(ctx.obj["db"])
    owner_id = ctx.obj["owner"]

    txn = transaction_service.get_transaction(owner_id, transaction_id)
    if txn is None:
        click.echo(f"Error: Transaction {transaction_id} not found", err=True)
        ctx.exit(1)

    if not click.confirm(f"Are you sure you want to delete transaction {transaction_id}?"):
        click.echo("Deletion cancelled.")
        return

    try:
        transaction_service.delete_transaction(owner_id, transaction_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted transaction {transaction_id}")


def register_commands(cli: click.Group) -> None:
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="transaction")
