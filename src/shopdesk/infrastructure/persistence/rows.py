"""Mapping between domain objects and store rows.

Shared by the Supabase and JSON-file adapters, which store identical row
shapes.  Column names follow the hosted schema (``qty``, ``price``,
``inventory_folder_item_id``...).  Rows written by older clients used
camelCase ``linkedItemId`` and ``discount`` for the discount rate; both
are still accepted on read.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from shopdesk.domain.exceptions import ValidationError
from shopdesk.domain.model.inventory import StockLevel, StockSource
from shopdesk.domain.model.invoice import Invoice, InvoiceStatus
from shopdesk.domain.model.job_part import (
    InventoryTransaction,
    JobPartLink,
    TransactionType,
)
from shopdesk.domain.model.line_item import (
    EstimateStatus,
    FlatPricing,
    LaborBasedPricing,
    LaborItem,
    LineItem,
    PartItem,
    ServiceItem,
)

INVOICES = "invoices"
JOB_PARTS = "job_parts"
INVENTORY_TRANSACTIONS = "inventory_transactions"
STOCK_TABLES = {
    StockSource.INVENTORY: "inventory_items",
    StockSource.FOLDER: "inventory_folder_items",
}
STOCK_COLUMNS = {
    StockSource.INVENTORY: "inventory_item_id",
    StockSource.FOLDER: "inventory_folder_item_id",
}


# --- Time ---------------------------------------------------------------------


def format_time(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def parse_time(value: Any) -> datetime | None:
    """Parse a stored timestamp; naive values from older rows are taken as UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value)
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


# --- Line items ---------------------------------------------------------------


def line_item_to_raw(item: LineItem) -> dict:
    raw: dict[str, Any] = {
        "id": item.id,
        "type": item.kind,
        "name": item.name,
        "qty": item.quantity,
        "price": item.unit_price,
        "group_name": item.group_name,
        "linked_item_id": item.linked_item_id,
        "estimate_status": item.estimate_status.value,
        "estimate_sent_at": format_time(item.estimate_sent_at),
        "estimate_approved_at": format_time(item.estimate_approved_at),
    }
    match item:
        case PartItem():
            raw["cost_price"] = item.cost_price
            raw["inventory_item_id"] = item.inventory_item_id
            raw["folder_inventory_item_id"] = item.folder_item_id
        case LaborItem():
            raw["labor_rate_name"] = item.rate_name
        case ServiceItem(pricing=LaborBasedPricing(hours=hours, rate_name=rate_name)):
            raw["pricing_type"] = "labor_based"
            raw["labor_hours"] = hours
            raw["labor_rate_name"] = rate_name
        case ServiceItem():
            raw["pricing_type"] = "flat"
    return raw


def line_item_from_raw(raw: dict) -> LineItem:
    common: dict[str, Any] = {
        "id": str(raw["id"]),
        "name": raw.get("name") or "",
        "quantity": raw["qty"] if raw.get("qty") is not None else 1,
        "unit_price": raw.get("price") or 0.0,
        "group_name": raw.get("group_name"),
        "linked_item_id": raw.get("linked_item_id") or raw.get("linkedItemId"),
        "estimate_status": EstimateStatus(raw.get("estimate_status") or "none"),
        "estimate_sent_at": parse_time(raw.get("estimate_sent_at")),
        "estimate_approved_at": parse_time(raw.get("estimate_approved_at")),
    }
    kind = raw.get("type") or "part"
    if kind == "part":
        return PartItem(
            **common,
            cost_price=raw.get("cost_price"),
            inventory_item_id=raw.get("inventory_item_id"),
            folder_item_id=raw.get("folder_inventory_item_id"),
        )
    if kind == "labor":
        return LaborItem(**common, rate_name=raw.get("labor_rate_name"))
    if kind == "service":
        if raw.get("pricing_type") == "labor_based":
            pricing = LaborBasedPricing(
                hours=raw.get("labor_hours") or 0.0,
                rate_name=raw.get("labor_rate_name"),
            )
        else:
            pricing = FlatPricing()
        return ServiceItem(**common, pricing=pricing)
    raise ValidationError(f"Unknown line item type '{kind}'")


# --- Invoices -----------------------------------------------------------------


def invoice_to_raw(invoice: Invoice) -> dict:
    """Every column except ``id`` and ``version``, which the mutator owns."""
    return {
        "number": invoice.number,
        "shop_id": invoice.shop_id,
        "job_id": invoice.job_id,
        "status": invoice.status.value,
        "tax_rate": invoice.tax_rate,
        "discount_rate": invoice.discount_rate,
        "items": [line_item_to_raw(item) for item in invoice.items],
    }


def invoice_from_raw(raw: dict) -> Invoice:
    discount = raw.get("discount_rate")
    if discount is None:
        discount = raw.get("discount") or 0.0
    return Invoice(
        id=str(raw["id"]),
        job_id=raw.get("job_id"),
        items=[line_item_from_raw(item) for item in raw.get("items") or []],
        tax_rate=raw.get("tax_rate") or 0.0,
        discount_rate=discount,
        status=InvoiceStatus(raw.get("status") or "open"),
        version=raw.get("version", 1),
        shop_id=raw.get("shop_id"),
        number=raw.get("number"),
    )


# --- Job parts ----------------------------------------------------------------


def job_part_to_raw(link: JobPartLink) -> dict:
    raw = {
        "shop_id": link.shop_id,
        "job_id": link.job_id,
        "inventory_item_id": link.inventory_item_id,
        "inventory_folder_item_id": link.folder_item_id,
        "part_name": link.part_name,
        "part_number": link.part_number,
        "quantity": link.quantity,
        "cost_price": link.cost_price,
        "sell_price": link.sell_price,
        "markup_percent": link.markup_percent,
        "deducted": link.deducted,
    }
    if link.id is not None:
        raw["id"] = link.id
    if link.created_at is not None:
        raw["created_at"] = format_time(link.created_at)
    return raw


def job_part_from_raw(raw: dict) -> JobPartLink:
    if raw.get("inventory_item_id"):
        source, item_id = StockSource.INVENTORY, raw["inventory_item_id"]
    elif raw.get("inventory_folder_item_id"):
        source, item_id = StockSource.FOLDER, raw["inventory_folder_item_id"]
    else:
        raise ValidationError(f"Job part {raw.get('id')} is not linked to inventory")
    return JobPartLink(
        id=str(raw["id"]),
        job_id=raw["job_id"],
        item_id=str(item_id),
        quantity=int(raw["quantity"]),
        source=source,
        shop_id=raw.get("shop_id"),
        part_name=raw.get("part_name"),
        part_number=raw.get("part_number"),
        cost_price=raw.get("cost_price") or 0.0,
        sell_price=raw.get("sell_price") or 0.0,
        markup_percent=raw.get("markup_percent") or 0.0,
        deducted=bool(raw.get("deducted", False)),
        created_at=parse_time(raw.get("created_at")),
    )


# --- Inventory transactions ---------------------------------------------------


def transaction_to_raw(transaction: InventoryTransaction) -> dict:
    raw = {
        "shop_id": transaction.shop_id,
        STOCK_COLUMNS[transaction.source]: transaction.item_id,
        "job_id": transaction.job_id,
        "transaction_type": transaction.transaction_type.value,
        "quantity": transaction.quantity,
        "notes": transaction.notes,
    }
    if transaction.id is not None:
        raw["id"] = transaction.id
    if transaction.created_at is not None:
        raw["created_at"] = format_time(transaction.created_at)
    return raw


def transaction_from_raw(raw: dict) -> InventoryTransaction:
    if raw.get("inventory_item_id"):
        source, item_id = StockSource.INVENTORY, raw["inventory_item_id"]
    else:
        source, item_id = StockSource.FOLDER, raw.get("inventory_folder_item_id") or ""
    return InventoryTransaction(
        id=str(raw["id"]),
        item_id=str(item_id),
        source=source,
        transaction_type=TransactionType(raw["transaction_type"]),
        quantity=int(raw.get("quantity") or 0),
        shop_id=raw.get("shop_id"),
        job_id=raw.get("job_id"),
        notes=raw.get("notes"),
        created_at=parse_time(raw.get("created_at")),
    )


# --- Stock --------------------------------------------------------------------


def stock_from_raw(raw: dict, source: StockSource) -> StockLevel:
    return StockLevel(
        item_id=str(raw["id"]),
        name=raw.get("name") or "",
        quantity_on_hand=int(raw.get("qty") or 0),
        source=source,
        shop_id=raw.get("shop_id"),
    )


def is_inventory_linked(raw: dict) -> bool:
    """Manual and catalog parts have job-part rows with no stock column."""
    return bool(raw.get("inventory_item_id") or raw.get("inventory_folder_item_id"))
