"""Account management commands."""

import click
from fintrack.cli.account_resolution import resolve_account_or_exit
from fintrack.cli.error_handling import handle_domain_error
from fintrack.domain.account import AccountService
from fintrack.domain.entities import AccountKind
from fintrack.domain.errors import DomainError


@click.group()
def account_group():
    """Manage accounts."""
    pass


@account_group.command("create")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option(
    "--kind",
    type=click.Choice([k.value for k in AccountKind]),
    default=AccountKind.CASH.value,
    show_default=True,
    help="Account type",
)
@click.option("--currency", default="SLL", show_default=True, help="Three-letter currency code")
@click.option("--default", "is_default", is_flag=True, help="Make this the default account")
@click.pass_context
def create_account(ctx, name: str, kind: str, currency: str, is_default: bool):
    """Create a new account with a zero balance.

    Examples:
        fintrack account create "Wallet"
        fintrack account create "Rokel Savings" --kind bank --currency SLL --default
    """
    service = AccountService(ctx.obj["db"])

    try:
        account = service.create_account(
            owner_id=ctx.obj["owner"],
            name=name,
            kind=kind,
            currency=currency,
            is_default=is_default,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created account '{account.name}' (ID: {account.id})")


@account_group.command("list")
@click.pass_context
def list_accounts(ctx):
    """List all accounts."""
    service = AccountService(ctx.obj["db"])

    accounts = service.list_accounts(ctx.obj["owner"])
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 90)
    for acc in accounts:
        marker = "*" if acc.is_default else " "
        click.echo(
            f"{marker} {acc.id} | {acc.name:20s} | {acc.kind.value:12s} | "
            f"{acc.balance:>14,.2f} {acc.currency}"
        )


@account_group.command("delete")
@click.argument("account", metavar="ACCOUNT")
@click.pass_context
def delete_account(ctx, account: str) -> None:
    """Delete an account.

    ACCOUNT can be an account name or ID. Its transactions are kept but no
    longer reference any account.

    Examples:
        fintrack account delete "Wallet"
    """
    service = AccountService(ctx.obj["db"])
    owner_id = ctx.obj["owner"]

    account_id = resolve_account_or_exit(ctx, service, account)
    account_obj = service.require_account(owner_id, account_id)

    if not click.confirm(f"Are you sure you want to delete account '{account_obj.name}'?"):
        click.echo("Deletion cancelled.")
        return

    try:
        service.delete_account(owner_id, account_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deleted account '{account_obj.name}'")


@account_group.command("check")
@click.argument("account", metavar="ACCOUNT")
@click.pass_context
def check_account(ctx, account: str) -> None:
    """Verify an account's balance against its transactions.

    Exits with status 1 when the stored balance has drifted.
    """
    service = AccountService(ctx.obj["db"])
    owner_id = ctx.obj["owner"]

    account_id = resolve_account_or_exit(ctx, service, account)
    try:
        drift = service.balance_drift(owner_id, account_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if drift:
        click.echo(f"Balance drift of {drift:,.2f} detected", err=True)
        ctx.exit(1)
    click.echo("Balance matches transactions")


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
