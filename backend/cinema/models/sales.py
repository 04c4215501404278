from __future__ import annotations

from ..extensions import db
from cinema.time_utils import to_utc_z


SALE_STATUSES = ("OPEN", "FINALIZED", "CANCELED")
SALE_ITEM_KINDS = ("TICKET", "PRODUCT")
PAYMENT_METHODS = ("CASH", "CARD", "PIX", "OTHER")


class Sale(db.Model):
    """
    Cart-like aggregate that becomes an immutable record once finalized.

    Totals (all in cents) are persisted and recomputed from items and
    applied discounts after every mutation:
    - sub_total_cents = sum(line_total_cents)
    - grand_total_cents = max(0, sub_total_cents - discount_total_cents)

    OPEN -> FINALIZED and OPEN -> CANCELED are the only transitions; both
    targets are terminal. version_id guards against lost updates when two
    requests touch the same sale.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_company_status_created", "company_id", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)

    cashier_cpf = db.Column(db.String(11), nullable=False, index=True)
    buyer_cpf = db.Column(db.String(11), nullable=True, index=True)

    status = db.Column(db.String(16), nullable=False, default="OPEN", index=True)

    sub_total_cents = db.Column(db.Integer, nullable=False, default=0)
    discount_total_cents = db.Column(db.Integer, nullable=False, default=0)
    grand_total_cents = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    finalized_at = db.Column(db.DateTime(timezone=True), nullable=True)
    canceled_at = db.Column(db.DateTime(timezone=True), nullable=True)
    cancel_reason = db.Column(db.String(500), nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "company_id": self.company_id,
            "cashier_cpf": self.cashier_cpf,
            "buyer_cpf": self.buyer_cpf,
            "status": self.status,
            "sub_total_cents": self.sub_total_cents,
            "discount_total_cents": self.discount_total_cents,
            "grand_total_cents": self.grand_total_cents,
            "created_at": to_utc_z(self.created_at),
            "finalized_at": to_utc_z(self.finalized_at) if self.finalized_at else None,
            "canceled_at": to_utc_z(self.canceled_at) if self.canceled_at else None,
            "cancel_reason": self.cancel_reason,
            "version_id": self.version_id,
        }


class SaleItem(db.Model):
    """
    Line on a sale: either a ticket-to-be (session + seat) or an inventory
    product (sku). unit_price_cents and line_total_cents are frozen at add
    time so later catalog price changes never rewrite history.
    """
    __tablename__ = "sale_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)

    kind = db.Column(db.String(16), nullable=False)  # TICKET, PRODUCT
    description = db.Column(db.String(200), nullable=False)

    # PRODUCT lines
    sku = db.Column(db.String(50), nullable=True)

    # TICKET lines
    session_id = db.Column(db.Integer, db.ForeignKey("sessions.id"), nullable=True, index=True)
    seat_map_id = db.Column(db.Integer, db.ForeignKey("seat_maps.id"), nullable=True)
    seat_id = db.Column(db.Integer, db.ForeignKey("seats.id"), nullable=True)
    reservation_token = db.Column(db.String(100), nullable=True)
    ticket_id = db.Column(db.Integer, db.ForeignKey("tickets.id"), nullable=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    line_total_cents = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    sale = db.relationship("Sale", backref=db.backref("items", lazy=True, order_by="SaleItem.id"))
    seat = db.relationship("Seat")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "kind": self.kind,
            "description": self.description,
            "sku": self.sku,
            "session_id": self.session_id,
            "seat_map_id": self.seat_map_id,
            "seat_id": self.seat_id,
            "seat_code": self.seat.code if self.seat else None,
            "reservation_token": self.reservation_token,
            "ticket_id": self.ticket_id,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "line_total_cents": self.line_total_cents,
            "created_at": to_utc_z(self.created_at),
        }


class SaleDiscount(db.Model):
    """A discount code applied to a sale. At most one row per (sale, code)."""
    __tablename__ = "sale_discounts"
    __table_args__ = (
        db.UniqueConstraint("sale_id", "code", name="uq_sale_discounts_sale_code"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    discount_code_id = db.Column(db.Integer, db.ForeignKey("discount_codes.id"), nullable=False, index=True)
    code = db.Column(db.String(50), nullable=False)

    # Refreshed on every recalculation of the sale
    discount_amount_cents = db.Column(db.Integer, nullable=False, default=0)

    applied_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    sale = db.relationship("Sale", backref=db.backref("discounts", lazy=True, order_by="SaleDiscount.id"))
    discount_code = db.relationship("DiscountCode")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "code": self.code,
            "discount_amount_cents": self.discount_amount_cents,
            "applied_at": to_utc_z(self.applied_at),
        }


class Payment(db.Model):
    """
    Payment attached to a sale. A sale may carry several payments (split
    tender); finalization requires their sum to cover the grand total.
    """
    __tablename__ = "payments"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)

    method = db.Column(db.String(16), nullable=False, index=True)  # CASH, CARD, PIX, OTHER
    amount_cents = db.Column(db.Integer, nullable=False)
    auth_code = db.Column(db.String(100), nullable=True)

    paid_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    sale = db.relationship("Sale", backref=db.backref("payments", lazy=True, order_by="Payment.id"))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "method": self.method,
            "amount_cents": self.amount_cents,
            "auth_code": self.auth_code,
            "paid_at": to_utc_z(self.paid_at),
        }
