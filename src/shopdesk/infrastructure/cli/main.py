import click

from shopdesk.domain.exceptions import DomainException
from shopdesk.infrastructure.bootstrap import settings
from shopdesk.infrastructure.cli.inventory_commands import (
    inventory_history,
    inventory_low_stock,
    inventory_show,
)
from shopdesk.infrastructure.cli.invoice_commands import (
    invoice_add_item,
    invoice_approve,
    invoice_create,
    invoice_decline,
    invoice_pay,
    invoice_remove_item,
    invoice_send_estimate,
    invoice_set_qty,
    invoice_show,
)
from shopdesk.infrastructure.cli.job_commands import job_attach, job_detach, job_parts
from shopdesk.infrastructure.logging_config import configure_logging


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log at DEBUG level.")
def cli(verbose: bool) -> None:
    """shopdesk: jobs, invoices and parts inventory"""
    try:
        level = settings().log_level
    except DomainException as exc:
        raise click.ClickException(str(exc))
    configure_logging(level, verbose)


@cli.group()
def job() -> None:
    """Manage parts on jobs."""


@cli.group()
def invoice() -> None:
    """Manage invoices and estimates."""


@cli.group()
def inventory() -> None:
    """Inspect stock levels."""


# Register subcommands
job.add_command(job_attach)
job.add_command(job_detach)
job.add_command(job_parts)
invoice.add_command(invoice_create)
invoice.add_command(invoice_add_item)
invoice.add_command(invoice_set_qty)
invoice.add_command(invoice_remove_item)
invoice.add_command(invoice_show)
invoice.add_command(invoice_send_estimate)
invoice.add_command(invoice_approve)
invoice.add_command(invoice_decline)
invoice.add_command(invoice_pay)
inventory.add_command(inventory_show)
inventory.add_command(inventory_low_stock)
inventory.add_command(inventory_history)
