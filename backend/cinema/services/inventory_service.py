# Overview: Service-layer operations for concession stock.

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, InvalidStateError, NotFoundError
from ..models import InventoryAdjustment, InventoryItem
from ..validation import InventoryAdjustmentInput, InventoryItemInput
from .concurrency import lock_for_update, run_with_retry


def create_item(session, company_id: int, data: InventoryItemInput) -> InventoryItem:
    """Register a sellable item. The sku is unique per company."""
    def _op():
        if session.query(InventoryItem).filter_by(company_id=company_id, sku=data.sku).first():
            raise ConflictError("SKU already exists")

        item = InventoryItem(
            company_id=company_id,
            sku=data.sku,
            name=data.name,
            unit_price_cents=data.unit_price_cents,
            qty_on_hand=data.qty_on_hand,
            reorder_level=data.reorder_level,
            barcode=data.barcode,
            is_active=True,
        )
        session.add(item)
        try:
            session.flush()
        except IntegrityError as exc:
            raise ConflictError("SKU already exists") from exc
        session.commit()
        return item

    return run_with_retry(session, _op)


def _load_locked(session, company_id: int, sku: str) -> InventoryItem:
    item = lock_for_update(
        session.query(InventoryItem).filter_by(company_id=company_id, sku=sku.upper())
    ).first()
    if not item:
        raise NotFoundError("Inventory item not found")
    return item


def set_item_active(session, company_id: int, sku: str, active: bool, *, audit=None) -> InventoryItem:
    """
    Activate or deactivate an item.

    Inactive items cannot be added to sales; lines already on OPEN sales
    are still fulfilled at finalize. Repeating the current state is a no-op.
    """
    def _op():
        item = _load_locked(session, company_id, sku)
        changed = item.is_active != active
        item.is_active = active
        session.commit()
        return item, changed

    item, changed = run_with_retry(session, _op)
    if audit and changed:
        action = "ACTIVATE_INVENTORY_ITEM" if active else "DEACTIVATE_INVENTORY_ITEM"
        audit.record(action, "INVENTORY_ITEM", item.sku)
    return item


def record_adjustment(session, company_id: int, sku: str, data: InventoryAdjustmentInput,
                      *, actor_cpf: str | None = None, audit=None) -> InventoryAdjustment:
    """Apply a signed stock correction and keep a record of it. Stock never goes negative."""
    def _op():
        item = _load_locked(session, company_id, sku)
        new_qty = item.qty_on_hand + data.delta
        if new_qty < 0:
            raise InvalidStateError(
                "Adjustment would result in negative stock",
                details={
                    "current_stock": item.qty_on_hand,
                    "requested_change": data.delta,
                    "resulting_stock": new_qty,
                },
            )

        adjustment = InventoryAdjustment(
            company_id=company_id,
            item_id=item.id,
            sku=item.sku,
            delta=data.delta,
            reason=data.reason,
            notes=data.notes,
            qty_before=item.qty_on_hand,
            qty_after=new_qty,
            actor_cpf=actor_cpf,
        )
        item.qty_on_hand = new_qty
        session.add(adjustment)
        session.commit()
        return adjustment

    adjustment = run_with_retry(session, _op)
    if audit:
        audit.record("ADJUST_INVENTORY", "INVENTORY_ITEM", adjustment.sku, {
            "delta": adjustment.delta,
            "reason": adjustment.reason,
            "qty_after": adjustment.qty_after,
        })
    return adjustment
