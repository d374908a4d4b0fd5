"""Add transaction command."""

import click
from fintrack.cli.account_resolution import resolve_account_or_exit
from fintrack.cli.error_handling import handle_domain_error
from fintrack.domain.account import AccountService
from fintrack.domain.entities import PaymentMode, TransactionType
from fintrack.domain.errors import DomainError
from fintrack.domain.transaction import TransactionService
from fintrack.utils.amount_parser import parse_amount
from fintrack.utils.date_parser import parse_datetime


@click.command("add")
@click.option("--amount", required=True, help="Positive transaction amount (e.g., 123.45)")
@click.option(
    "--type",
    "txn_type",
    required=True,
    type=click.Choice([t.value for t in TransactionType]),
    help="income or expense",
)
@click.option("--account", help="Account name or ID")
@click.option("--date", help="When it happened (defaults to now; accepts 'today', 'yesterday')")
@click.option("--description", help="Transaction description")
@click.option(
    "--mode",
    type=click.Choice([m.value for m in PaymentMode]),
    default=PaymentMode.CASH.value,
    show_default=True,
    help="Payment mode",
)
@click.option("--reference", help="External reference")
@click.option("--category", help="Category reference")
@click.option("--notes", help="Notes")
@click.pass_context
def add_transaction(
    ctx,
    amount: str,
    txn_type: str,
    account: str | None,
    date: str | None,
    description: str | None,
    mode: str,
    reference: str | None,
    category: str | None,
    notes: str | None,
):
    """Add a transaction manually.

    Examples:
        fintrack add --amount 50 --type expense --account Wallet --description "Lunch"
        fintrack add --amount 1000 --type income --account "Rokel Savings" --date 2024-01-15
    """
    db = ctx.obj["db"]
    owner_id = ctx.obj["owner"]
    transaction_service = TransactionService(db)

    account_id = None
    if account is not None:
        account_id = resolve_account_or_exit(ctx, AccountService(db), account)

    try:
        txn_amount = parse_amount(amount)
    except ValueError as e:
        click.echo(f"Error: Invalid amount format: {e}", err=True)
        ctx.exit(1)

    occurred_at = None
    if date is not None:
        try:
            occurred_at = parse_datetime(date)
        except ValueError as e:
            click.echo(f"Error: Invalid date format: {e}", err=True)
            ctx.exit(1)

    try:
        txn = transaction_service.create_transaction(
            owner_id=owner_id,
            amount=txn_amount,
            type=txn_type,
            account_id=account_id,
            category_id=category,
            occurred_at=occurred_at,
            description=description,
            mode=mode,
            reference=reference,
            notes=notes,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Created transaction {txn.id}")
    click.echo(f"  Type: {txn.type.value}")
    click.echo(f"  Amount: {txn.amount:,.2f}")
    click.echo(f"  Date: {txn.occurred_at}")
    if description:
        click.echo(f"  Description: {description}")


def register_commands(cli):
    """Register add command with main CLI."""
    cli.add_command(add_transaction)
