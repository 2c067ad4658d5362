"""Composition root: wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.  Factories are cached
so the duplicate guard and change notifier exist once per process.
"""

from __future__ import annotations

from functools import lru_cache

from shopdesk.application.add_line_item import AddLineItemHandler
from shopdesk.application.attach_part import AttachPartHandler
from shopdesk.application.detach_part import DetachPartHandler
from shopdesk.application.record_inventory_transaction import InventoryTransactionRecorder
from shopdesk.application.reconcile_invoice_items import ReconcileInvoiceItemsHandler
from shopdesk.application.respond_to_estimate import RespondToEstimateHandler
from shopdesk.application.save_invoice_items import SaveInvoiceItemsHandler
from shopdesk.domain.repository.inventory_repository import InventoryRepository
from shopdesk.domain.repository.inventory_transaction_repository import (
    InventoryTransactionRepository,
)
from shopdesk.domain.repository.invoice_repository import InvoiceRepository
from shopdesk.domain.repository.job_part_repository import JobPartRepository
from shopdesk.domain.repository.record_store import RecordStore
from shopdesk.domain.service.change_notifier import ChangeNotifier
from shopdesk.domain.service.duplicate_guard import DuplicateSuppressionGuard
from shopdesk.domain.service.record_mutator import RecordMutator
from shopdesk.infrastructure.config import Settings
from shopdesk.infrastructure.persistence.json_job_part_repository import (
    JsonJobPartRepository,
)
from shopdesk.infrastructure.persistence.json_record_store import JsonRecordStore
from shopdesk.infrastructure.persistence.stock_trigger import SimulatedStockTrigger
from shopdesk.infrastructure.persistence.store_inventory_repository import (
    StoreInventoryRepository,
)
from shopdesk.infrastructure.persistence.store_inventory_transaction_repository import (
    StoreInventoryTransactionRepository,
)
from shopdesk.infrastructure.persistence.store_invoice_repository import (
    StoreInvoiceRepository,
)


@lru_cache(maxsize=None)
def settings() -> Settings:
    return Settings.from_env()


@lru_cache(maxsize=None)
def record_store() -> RecordStore:
    config = settings()
    if config.store == "supabase":
        from shopdesk.infrastructure.persistence.supabase_record_store import (
            SupabaseRecordStore,
            connect,
        )

        return SupabaseRecordStore(connect(config.supabase_url, config.supabase_key))
    return JsonRecordStore(config.data_dir)


@lru_cache(maxsize=None)
def job_part_repository() -> JobPartRepository:
    store = record_store()
    if settings().store == "supabase":
        from shopdesk.infrastructure.persistence.supabase_job_part_repository import (
            SupabaseJobPartRepository,
        )

        return SupabaseJobPartRepository(store)  # type: ignore[arg-type]
    return JsonJobPartRepository(store, SimulatedStockTrigger(store))


def inventory_repository() -> InventoryRepository:
    return StoreInventoryRepository(record_store())


def inventory_transaction_repository() -> InventoryTransactionRepository:
    return StoreInventoryTransactionRepository(record_store())


def record_mutator() -> RecordMutator:
    config = settings()
    return RecordMutator(
        record_store(),
        max_retries=config.mutation_max_retries,
        backoff_seconds=config.mutation_backoff_seconds,
    )


def invoice_repository() -> InvoiceRepository:
    return StoreInvoiceRepository(record_store(), record_mutator())


@lru_cache(maxsize=None)
def duplicate_guard() -> DuplicateSuppressionGuard:
    return DuplicateSuppressionGuard(
        job_part_repository(), window_seconds=settings().duplicate_window_seconds
    )


@lru_cache(maxsize=None)
def change_notifier() -> ChangeNotifier:
    notifier = ChangeNotifier()
    notifier.subscribe(InventoryTransactionRecorder(inventory_transaction_repository()))
    return notifier


# --- Handlers that need several collaborators --------------------------------


def attach_part_handler() -> AttachPartHandler:
    return AttachPartHandler(
        job_part_repo=job_part_repository(),
        inventory_repo=inventory_repository(),
        guard=duplicate_guard(),
        notifier=change_notifier(),
    )


def detach_part_handler() -> DetachPartHandler:
    return DetachPartHandler(
        job_part_repo=job_part_repository(),
        guard=duplicate_guard(),
        notifier=change_notifier(),
    )


def reconcile_invoice_items_handler() -> ReconcileInvoiceItemsHandler:
    return ReconcileInvoiceItemsHandler(
        job_part_repo=job_part_repository(),
        inventory_repo=inventory_repository(),
        attach=attach_part_handler(),
        detach=detach_part_handler(),
    )


def save_invoice_items_handler() -> SaveInvoiceItemsHandler:
    return SaveInvoiceItemsHandler(invoice_repository(), reconcile_invoice_items_handler())


def add_line_item_handler() -> AddLineItemHandler:
    return AddLineItemHandler(
        invoice_repo=invoice_repository(),
        attach=attach_part_handler(),
        detach=detach_part_handler(),
    )


def respond_to_estimate_handler() -> RespondToEstimateHandler:
    return RespondToEstimateHandler(
        invoice_repo=invoice_repository(), reconcile=reconcile_invoice_items_handler()
    )
