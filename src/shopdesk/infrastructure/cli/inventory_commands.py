"""CLI commands for stock levels."""

from __future__ import annotations

import click

from shopdesk.application.show_inventory import ShowInventoryHandler
from shopdesk.application.show_inventory_transactions import ShowInventoryTransactionsHandler
from shopdesk.domain.exceptions import DomainException
from shopdesk.infrastructure.bootstrap import (
    inventory_repository,
    inventory_transaction_repository,
    settings,
)


def _display(lines) -> None:
    click.echo(f"{'Item':<34} {'Name':<24} {'Source':<10} {'On hand':>8}")
    click.echo("-" * 79)
    for line in lines:
        click.echo(f"{line.item_id:<34} {line.name[:24]:<24} {line.source:<10} {line.on_hand:>8}")


@click.command("show")
@click.option("--shop", "shop_id", required=True, help="Shop ID.")
def inventory_show(shop_id: str) -> None:
    """Show stock levels for a shop."""
    handler = ShowInventoryHandler(inventory_repo=inventory_repository())
    try:
        lines = handler.handle(shop_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not lines:
        click.echo("No inventory records found.")
        return
    _display(lines)


@click.command("low-stock")
@click.option("--shop", "shop_id", required=True, help="Shop ID.")
@click.option("--threshold", type=int, default=None, help="Report items at or below this count.")
def inventory_low_stock(shop_id: str, threshold: int | None) -> None:
    """List items that are running low."""
    handler = ShowInventoryHandler(inventory_repo=inventory_repository())
    try:
        if threshold is None:
            threshold = settings().low_stock_threshold
        lines = handler.low_stock(shop_id, threshold)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not lines:
        click.echo(f"Nothing at or below {threshold}.")
        return
    _display(lines)


@click.command("history")
@click.option("--shop", "shop_id", required=True, help="Shop ID.")
@click.option("--item", "item_id", default=None, help="Only this inventory item.")
@click.option("--job", "job_id", default=None, help="Only movements for this job.")
@click.option("--limit", type=int, default=None, help="Show at most this many entries.")
def inventory_history(
    shop_id: str, item_id: str | None, job_id: str | None, limit: int | None
) -> None:
    """Show stock movements caused by jobs, newest first."""
    handler = ShowInventoryTransactionsHandler(
        transaction_repo=inventory_transaction_repository()
    )
    try:
        entries = handler.handle(shop_id, item_id, job_id, limit)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not entries:
        click.echo("No inventory movements recorded.")
        return

    click.echo(f"{'When':<24} {'Item':<34} {'Change':>7}  Notes")
    click.echo("-" * 95)
    for entry in entries:
        sign = "-" if entry.transaction_type == "quantity_decrease" else "+"
        click.echo(
            f"{entry.created_at or '-':<24} {entry.item_id:<34} "
            f"{sign + str(entry.quantity):>7}  {entry.notes or ''}"
        )
