"""CLI commands for parts on jobs."""

from __future__ import annotations

import click

from shopdesk.application.dto import PartDetails
from shopdesk.application.show_job_parts import ShowJobPartsHandler
from shopdesk.domain.exceptions import DomainException
from shopdesk.domain.model.inventory import StockSource
from shopdesk.infrastructure.bootstrap import (
    attach_part_handler,
    detach_part_handler,
    job_part_repository,
)


@click.command("attach")
@click.option("--job", "job_id", required=True, help="Job ID.")
@click.option("--item", "item_id", required=True, help="Inventory item ID.")
@click.option("--qty", "quantity", required=True, type=int, help="Quantity to take from stock.")
@click.option("--shop", "shop_id", default=None, help="Shop ID recorded on the job part.")
@click.option("--folder", is_flag=True, help="Item lives in a folder inventory.")
@click.option("--sell-price", type=float, default=0.0, help="Price charged per unit.")
@click.option("--cost", "cost_price", type=float, default=0.0, help="Cost per unit.")
@click.option("--markup", "markup_percent", type=float, default=0.0,
              help="Markup in percent; sets the sell price when none is given.")
def job_attach(
    job_id: str,
    item_id: str,
    quantity: int,
    shop_id: str | None,
    folder: bool,
    sell_price: float,
    cost_price: float,
    markup_percent: float,
) -> None:
    """Attach an inventory part to a job (stock is deducted by the store)."""
    source = StockSource.FOLDER if folder else StockSource.INVENTORY
    try:
        result = attach_part_handler().handle(
            job_id, item_id, quantity, shop_id,
            details=PartDetails(
                cost_price=cost_price, sell_price=sell_price, markup_percent=markup_percent,
            ), source=source,
        )
        link = result.unwrap()
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if result.suppressed:
        click.echo("Duplicate request ignored; part is already on the job.")
        if link is None:
            return
    click.echo(f"Job part {link.id}: {link.part_name} x{link.quantity} on job {link.job_id}")


@click.command("detach")
@click.option("--id", "link_id", required=True, help="Job part ID to remove.")
def job_detach(link_id: str) -> None:
    """Remove a part from a job (stock is returned by the store)."""
    try:
        link = detach_part_handler().handle(link_id).unwrap()
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Removed {link.part_name} x{link.quantity} from job {link.job_id}")


@click.command("parts")
@click.option("--job", "job_id", required=True, help="Job ID.")
def job_parts(job_id: str) -> None:
    """List the inventory parts on a job, newest first."""
    handler = ShowJobPartsHandler(job_part_repo=job_part_repository())
    try:
        lines = handler.handle(job_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not lines:
        click.echo(f"No inventory parts on job {job_id}.")
        return

    click.echo(f"{'ID':<34} {'Part':<24} {'Qty':>5} {'Deducted':>9}  Added")
    click.echo("-" * 95)
    for line in lines:
        click.echo(
            f"{line.id:<34} {(line.part_name or '')[:24]:<24} {line.quantity:>5} "
            f"{'yes' if line.deducted else 'no':>9}  {line.created_at or ''}"
        )
