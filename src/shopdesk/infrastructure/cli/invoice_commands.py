"""CLI commands for the Invoice aggregate and its estimate workflow."""

from __future__ import annotations

import copy
import uuid

import click

from shopdesk.application.create_invoice import CreateInvoiceHandler
from shopdesk.application.pay_invoice import PayInvoiceHandler
from shopdesk.application.send_estimate import SendEstimateHandler
from shopdesk.application.show_invoice import ShowInvoiceHandler
from shopdesk.domain.exceptions import DomainException, EntityNotFoundError
from shopdesk.domain.model.invoice import Invoice
from shopdesk.domain.model.line_item import (
    LaborBasedPricing,
    LaborItem,
    LineItem,
    PartItem,
    ServiceItem,
)
from shopdesk.domain.service.part_pricing import calculate_retail
from shopdesk.infrastructure.bootstrap import (
    add_line_item_handler,
    invoice_repository,
    respond_to_estimate_handler,
    save_invoice_items_handler,
)


def _new_id() -> str:
    return uuid.uuid4().hex[:12]


def _load(invoice_id: str) -> Invoice:
    invoice = invoice_repository().get_by_id(invoice_id)
    if invoice is None:
        raise EntityNotFoundError(f"Invoice '{invoice_id}' not found")
    return invoice


def _display_invoice(dto) -> None:
    """Shared formatting for displaying an invoice."""
    click.echo(f"Invoice {dto.id}  (status={dto.status}, version={dto.version})")
    click.echo(f"Job: {dto.job_id or '-'}")
    click.echo()
    click.echo(
        f"  {'Item':<14} {'Kind':<8} {'Name':<22} {'Qty':>6} {'Price':>10} "
        f"{'Amount':>10}  Estimate"
    )
    click.echo(f"  {'-'*84}")
    for item in dto.items:
        # Unpriced rows carry their cost on another row
        marker = " " if item.priced else "*"
        click.echo(
            f"  {item.id[:14]:<14} {item.kind:<8} {item.name[:22]:<22} {item.quantity:>6g} "
            f"{item.unit_price:>10} {item.amount:>10}{marker} {item.estimate_status}"
        )
    click.echo(f"  {'-'*84}")
    click.echo(f"  {'Subtotal':<64} {dto.subtotal:>10}")
    click.echo(f"  {'Tax':<64} {dto.tax:>10}")
    click.echo(f"  {'Discount':<64} {dto.discount:>10}")
    click.echo(f"  {'Invoice Total':<64} {dto.total:>10}")


def _show(invoice_id: str) -> None:
    _display_invoice(ShowInvoiceHandler(invoice_repo=invoice_repository()).handle(invoice_id))


@click.command("create")
@click.option("--job", "job_id", required=True, help="Job the invoice belongs to.")
@click.option("--shop", "shop_id", default=None, help="Shop ID.")
@click.option("--tax", "tax_rate", type=float, default=0.0, help="Tax rate in percent.")
@click.option("--discount", "discount_rate", type=float, default=0.0, help="Discount in percent.")
def invoice_create(job_id: str, shop_id: str | None, tax_rate: float, discount_rate: float) -> None:
    """Open a new, empty invoice for a job."""
    handler = CreateInvoiceHandler(invoice_repo=invoice_repository())
    try:
        invoice = handler.handle(job_id, shop_id, tax_rate, discount_rate).unwrap()
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Invoice {invoice.id} created for job {invoice.job_id}")


@click.command("add-item")
@click.option("--id", "invoice_id", required=True, help="Invoice ID.")
@click.option(
    "--kind", type=click.Choice(["part", "labor", "service"]), required=True, help="Item type."
)
@click.option("--name", required=True, help="Item description.")
@click.option("--qty", "quantity", type=float, default=1.0, help="Quantity.")
@click.option("--price", "unit_price", type=float, default=None, help="Unit price.")
@click.option("--cost", "cost_price", type=float, default=None, help="Part cost per unit.")
@click.option("--markup", "markup_percent", type=float, default=0.0,
              help="Part markup in percent; prices the part when --price is not given.")
@click.option("--inventory-item", default=None, help="Take a part from inventory.")
@click.option("--folder-item", default=None, help="Take a part from a folder inventory.")
@click.option("--labor-hours", type=float, default=None, help="Price a service by labor.")
@click.option("--labor-rate", type=float, default=0.0, help="Hourly rate for --labor-hours.")
@click.option("--rate-name", default=None, help="Name of the labor rate.")
def invoice_add_item(
    invoice_id: str,
    kind: str,
    name: str,
    quantity: float,
    unit_price: float | None,
    cost_price: float | None,
    markup_percent: float,
    inventory_item: str | None,
    folder_item: str | None,
    labor_hours: float | None,
    labor_rate: float,
    rate_name: str | None,
) -> None:
    """Add a part, labor or service line to an invoice.

    Inventory parts are attached to the invoice's job first, so stock is
    taken before the line appears.  A labor-priced service is added
    together with the labor row that carries its price.
    """
    try:
        items: list[LineItem]
        if kind == "part":
            if unit_price is None:
                unit_price = calculate_retail(cost_price, markup_percent)
            items = [PartItem(
                id=_new_id(), name=name, quantity=quantity, unit_price=unit_price,
                cost_price=cost_price, inventory_item_id=inventory_item,
                folder_item_id=folder_item,
            )]
        elif kind == "labor":
            items = [LaborItem(
                id=_new_id(), name=name, quantity=quantity, unit_price=unit_price or 0.0,
                rate_name=rate_name,
            )]
        elif labor_hours is not None:
            service = ServiceItem(
                id=_new_id(), name=name, quantity=1, unit_price=0.0,
                pricing=LaborBasedPricing(hours=labor_hours, rate_name=rate_name),
            )
            labor = LaborItem(
                id=_new_id(), name=f"{name} labor", quantity=labor_hours,
                unit_price=labor_rate, rate_name=rate_name, linked_item_id=service.id,
            )
            items = [service, labor]
        else:
            items = [ServiceItem(
                id=_new_id(), name=name, quantity=quantity, unit_price=unit_price or 0.0,
            )]

        add_line_item_handler().handle(invoice_id, *items).unwrap()
        _show(invoice_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))


def _save_edited(invoice_id: str, version: int, items: list[LineItem]) -> None:
    saved = save_invoice_items_handler().handle(invoice_id, version, items).unwrap()
    for adjustment in saved.adjustments:
        if adjustment.result.ok:
            click.echo(f"Job part for item {adjustment.item_id}: {adjustment.action}")
        else:
            click.echo(
                f"Job part for item {adjustment.item_id} not updated: {adjustment.result.error}",
                err=True,
            )
    _show(invoice_id)


@click.command("set-qty")
@click.option("--id", "invoice_id", required=True, help="Invoice ID.")
@click.option("--version", type=int, required=True, help="Invoice version you are editing.")
@click.option("--item", "item_id", required=True, help="Line item ID.")
@click.option("--qty", "quantity", type=float, required=True, help="New quantity.")
def invoice_set_qty(invoice_id: str, version: int, item_id: str, quantity: float) -> None:
    """Change a line's quantity; inventory parts are re-linked to match."""
    try:
        invoice = _load(invoice_id)
        items = copy.deepcopy(invoice.items)
        item = next((i for i in items if i.id == item_id), None)
        if item is None:
            raise EntityNotFoundError(f"Line item '{item_id}' not found on this invoice")
        item.quantity = quantity
        _save_edited(invoice_id, version, items)
    except DomainException as exc:
        raise click.ClickException(str(exc))


@click.command("remove-item")
@click.option("--id", "invoice_id", required=True, help="Invoice ID.")
@click.option("--version", type=int, required=True, help="Invoice version you are editing.")
@click.option("--item", "item_id", required=True, help="Line item ID.")
def invoice_remove_item(invoice_id: str, version: int, item_id: str) -> None:
    """Remove a line; an inventory part goes back to stock."""
    try:
        invoice = _load(invoice_id)
        items = [i for i in invoice.items if i.id != item_id]
        if len(items) == len(invoice.items):
            raise EntityNotFoundError(f"Line item '{item_id}' not found on this invoice")
        _save_edited(invoice_id, version, items)
    except DomainException as exc:
        raise click.ClickException(str(exc))


@click.command("show")
@click.option("--id", "invoice_id", required=True, help="Invoice ID to display.")
def invoice_show(invoice_id: str) -> None:
    """Show an invoice with its totals."""
    try:
        _show(invoice_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))


@click.command("send-estimate")
@click.option("--id", "invoice_id", required=True, help="Invoice ID.")
def invoice_send_estimate(invoice_id: str) -> None:
    """Send every unsent service and inventory part for approval."""
    handler = SendEstimateHandler(invoice_repo=invoice_repository())
    try:
        sent = handler.handle(invoice_id).unwrap()
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not sent:
        click.echo("Nothing new to send.")
        return
    click.echo(f"Sent {len(sent)} item(s) for approval:")
    for item in sent:
        click.echo(f"  {item.id}  {item.name}")


@click.command("approve")
@click.option("--id", "invoice_id", required=True, help="Invoice ID.")
@click.option("--item", "item_id", required=True, help="Estimate item ID.")
def invoice_approve(invoice_id: str, item_id: str) -> None:
    """Record the customer's approval of an estimate item."""
    handler = respond_to_estimate_handler()
    try:
        handler.approve(invoice_id, item_id).unwrap()
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Item {item_id} approved.")


@click.command("decline")
@click.option("--id", "invoice_id", required=True, help="Invoice ID.")
@click.option("--item", "item_id", required=True, help="Estimate item ID.")
def invoice_decline(invoice_id: str, item_id: str) -> None:
    """Record the customer's decline; the item leaves the invoice."""
    handler = respond_to_estimate_handler()
    try:
        handler.decline(invoice_id, item_id).unwrap()
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Item {item_id} declined and removed.")


@click.command("pay")
@click.option("--id", "invoice_id", required=True, help="Invoice ID.")
@click.option("--version", type=int, required=True, help="Invoice version you are looking at.")
def invoice_pay(invoice_id: str, version: int) -> None:
    """Mark an invoice as paid."""
    handler = PayInvoiceHandler(invoice_repo=invoice_repository())
    try:
        invoice = handler.handle(invoice_id, version).unwrap()
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Invoice {invoice.id} paid (version {invoice.version}).")
