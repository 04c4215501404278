from __future__ import annotations

from ..extensions import db
from cinema.time_utils import to_utc_z


ADJUSTMENT_REASONS = ("DAMAGE", "THEFT", "EXPIRY", "RESTOCK", "RETURN", "COUNT_CORRECTION", "OTHER")


class InventoryItem(db.Model):
    """Concession stand / merchandise stock, addressed by sku within a company."""
    __tablename__ = "inventory_items"
    __table_args__ = (
        db.UniqueConstraint("company_id", "sku", name="uq_inventory_items_company_sku"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    sku = db.Column(db.String(50), nullable=False)
    name = db.Column(db.String(200), nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    qty_on_hand = db.Column(db.Integer, nullable=False, default=0)
    reorder_level = db.Column(db.Integer, nullable=False, default=0)
    barcode = db.Column(db.String(50), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    version_id = db.Column(db.Integer, nullable=False, default=1)
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "company_id": self.company_id,
            "sku": self.sku,
            "name": self.name,
            "unit_price_cents": self.unit_price_cents,
            "qty_on_hand": self.qty_on_hand,
            "reorder_level": self.reorder_level,
            "barcode": self.barcode,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }


class InventoryAdjustment(db.Model):
    """Manual stock movement outside of sales. Append-only."""
    __tablename__ = "inventory_adjustments"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    item_id = db.Column(db.Integer, db.ForeignKey("inventory_items.id"), nullable=False, index=True)
    sku = db.Column(db.String(50), nullable=False)

    delta = db.Column(db.Integer, nullable=False)
    reason = db.Column(db.String(32), nullable=False)
    notes = db.Column(db.String(500), nullable=True)
    qty_before = db.Column(db.Integer, nullable=False)
    qty_after = db.Column(db.Integer, nullable=False)
    actor_cpf = db.Column(db.String(11), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "item_id": self.item_id,
            "sku": self.sku,
            "delta": self.delta,
            "reason": self.reason,
            "notes": self.notes,
            "qty_before": self.qty_before,
            "qty_after": self.qty_after,
            "actor_cpf": self.actor_cpf,
            "created_at": to_utc_z(self.created_at),
        }
