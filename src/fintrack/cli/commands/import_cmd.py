"""CSV import commands."""

import click
from fintrack.cli.error_handling import handle_domain_error
from fintrack.domain.errors import DomainError
from fintrack.domain.import_job import ImportService
from fintrack.domain.notifier import DatabaseNotifier
from fintrack.domain.row_normalizer import LOGICAL_FIELDS


@click.group()
def import_group():
    """Import transactions from CSV files."""
    pass


def _import_service(ctx) -> ImportService:
    db = ctx.obj["db"]
    return ImportService(db, notifier=DatabaseNotifier(db), settings=ctx.obj["settings"])


def _echo_status(status: dict) -> None:
    click.echo(f"Import job {status['job_id']} ({status['filename']}): {status['status']}")
    click.echo(f"  Rows: {status['total_rows']}")
    click.echo(f"  Processed: {status['processed_rows']}")
    click.echo(f"  Succeeded: {status['successful_rows']}")
    click.echo(f"  Failed: {status['failed_rows']}")
    click.echo(f"  Duplicates: {status['duplicate_rows']}")
    if status["error_log"]:
        click.echo(f"  Error: {status['error_log']}")
    for error in status["errors"]:
        click.echo(f"    Row {error['row']}: {error['error']}", err=True)


@import_group.command("upload")
@click.argument("csv_file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def upload(ctx, csv_file: str):
    """Upload a CSV file and create a pending import job."""
    service = _import_service(ctx)

    try:
        result = service.upload_file(ctx.obj["owner"], csv_file)
    except (DomainError, FileNotFoundError) as e:
        handle_domain_error(ctx, e)

    click.echo(f"Created import job {result['job_id']} with {result['total_rows']} rows")
    click.echo(f"  Columns: {', '.join(result['headers'])}")
    if result["suggestions"]:
        click.echo("  Suggested mapping:")
        for field_name, column in result["suggestions"].items():
            click.echo(f"    --{field_name} \"{column}\"")


@import_group.command("map")
@click.argument("job_id")
@click.option("--date", required=True, help="Column holding the transaction date")
@click.option("--amount", required=True, help="Column holding the amount")
@click.option("--description", required=True, help="Column holding the description")
@click.option("--type", "type_", help="Column holding income/expense")
@click.option("--category", help="Column holding the category")
@click.option("--account", help="Column holding the account name or ID")
@click.option("--reference", help="Column holding an external reference")
@click.pass_context
def configure_mapping(ctx, job_id: str, type_: str | None, **columns: str | None):
    """Bind CSV columns to transaction fields for a pending job."""
    service = _import_service(ctx)
    columns["type"] = type_
    mapping = {name: columns[name] for name in LOGICAL_FIELDS if columns.get(name)}

    try:
        service.configure_mapping(job_id, ctx.obj["owner"], mapping)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Configured mapping for import job {job_id}")


@import_group.command("preview")
@click.argument("job_id")
@click.pass_context
def preview(ctx, job_id: str):
    """Show how the first rows of a configured job would be imported."""
    service = _import_service(ctx)

    try:
        result = service.preview(job_id, ctx.obj["owner"])
    except DomainError as e:
        handle_domain_error(ctx, e)

    for row in result["rows"]:
        if row["valid"]:
            normalized = row["normalized"]
            click.echo(
                f"Row {row['row_number']}: {normalized['tx_date']} {normalized['type']} "
                f"{normalized['amount']} {normalized['description']}"
            )
        else:
            click.echo(f"Row {row['row_number']}: invalid ({'; '.join(row['errors'])})")

    summary = result["summary"]
    click.echo(f"\n{summary['valid']} of {summary['total']} preview rows are valid")


@import_group.command("process")
@click.argument("job_id")
@click.option("--no-wait", is_flag=True, help="Return as soon as processing has started")
@click.pass_context
def process(ctx, job_id: str, no_wait: bool):
    """Import every row of a configured job."""
    service = _import_service(ctx)
    owner_id = ctx.obj["owner"]

    try:
        service.process(job_id, owner_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if no_wait:
        click.echo(f"Processing import job {job_id}")
        return

    service.wait(job_id)
    status = service.status(job_id, owner_id)
    _echo_status(status)
    if status["status"] == "failed":
        ctx.exit(1)


@import_group.command("status")
@click.argument("job_id")
@click.pass_context
def status(ctx, job_id: str):
    """Show progress and row errors of an import job."""
    service = _import_service(ctx)

    try:
        result = service.status(job_id, ctx.obj["owner"])
    except DomainError as e:
        handle_domain_error(ctx, e)
    _echo_status(result)


@import_group.command("history")
@click.option("--page", type=int, default=1, show_default=True)
@click.option("--limit", type=int, default=10, show_default=True)
@click.pass_context
def history(ctx, page: int, limit: int):
    """List past import jobs, newest first."""
    service = _import_service(ctx)

    try:
        result = service.history(ctx.obj["owner"], page=page, limit=limit)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not result["imports"]:
        click.echo("No imports found.")
        return

    for job in result["imports"]:
        click.echo(
            f"{job.id} | {job.created_at:%Y-%m-%d %H:%M} | {job.filename:20s} | "
            f"{job.status.value:10s} | {job.successful_rows}/{job.total_rows} imported"
        )
    pagination = result["pagination"]
    click.echo(f"\nPage {pagination['page']} of {pagination['pages']} ({pagination['total']} imports)")


def register_commands(cli):
    """Register import commands with main CLI."""
    cli.add_command(import_group, name="import")
