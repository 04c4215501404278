"""
Sale Finalizer

OPEN -> FINALIZED in a single transaction, or the sale stays OPEN:

1. lock and load the sale (NotFound / Conflict if not OPEN)
2. recompute totals from items and discounts
3. already recorded payments + new payments must cover grand_total
4. persist the new payments
5. turn each ticket line's seat hold into an ISSUED ticket, drop the hold
6. decrement stock for product lines
7. count discount usage (when usage is counted at finalize)
8. mark FINALIZED and commit

Any failure rolls back steps 4-8 together.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass, field

from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, InvalidStateError, NotFoundError
from ..models import DiscountCode, InventoryItem, Payment, SaleDiscount, SaleItem, SeatReservation, Ticket
from ..time_utils import format_cents, utcnow
from ..validation import PaymentInput
from .concurrency import lock_for_update, run_with_retry
from .discount_service import USAGE_AT_FINALIZE, usage_mode
from .sales_service import SaleAggregate


def generate_qr_code() -> str:
    return f"TKT-{secrets.token_hex(12).upper()}"


@dataclass
class FinalizeResult:
    sale: dict
    tickets: list[dict] = field(default_factory=list)
    payments: list[dict] = field(default_factory=list)
    total_paid_cents: int = 0
    change_cents: int = 0

    def to_dict(self) -> dict:
        return {
            "sale": self.sale,
            "tickets": self.tickets,
            "payments": self.payments,
            "total_paid_cents": self.total_paid_cents,
            "change_cents": self.change_cents,
        }


class SaleFinalizer:
    def __init__(self, session, company_id: int, *, usage_counted_at: str = USAGE_AT_FINALIZE, audit=None):
        self.session = session
        self.company_id = company_id
        self.usage_counted_at = usage_mode(usage_counted_at)
        self.audit = audit
        self.sales = SaleAggregate(session, company_id)

    def finalize(self, sale_id: int, payments: list[PaymentInput] | None = None) -> FinalizeResult:
        payments = list(payments or [])

        def _op():
            now = utcnow()
            sale = self.sales.load_locked(sale_id)
            if sale.status != "OPEN":
                raise ConflictError(f"Sale is {sale.status} and cannot be finalized")

            items = self.sales.items(sale.id)
            if not items:
                raise InvalidStateError("Cannot finalize a sale with no items")

            totals = self.sales.apply_totals(sale)

            already_paid = self.sales.total_paid(sale.id)
            total_paid = already_paid + sum(p.amount_cents for p in payments)
            if total_paid < totals.grand_total_cents:
                raise InvalidStateError(
                    f"Insufficient payment. Required: {format_cents(totals.grand_total_cents)}, "
                    f"Received: {format_cents(total_paid)}",
                    details={
                        "required_cents": totals.grand_total_cents,
                        "received_cents": total_paid,
                    },
                )

            new_payments = []
            for p in payments:
                payment = Payment(
                    company_id=self.company_id,
                    sale_id=sale.id,
                    method=p.method,
                    amount_cents=p.amount_cents,
                    auth_code=p.auth_code,
                )
                self.session.add(payment)
                new_payments.append(payment)

            tickets = []
            for item in items:
                if item.kind == "TICKET":
                    tickets.append(self._issue_ticket(sale, item, now))
                else:
                    self._take_stock(item)

            try:
                self.session.flush()
            except IntegrityError as exc:
                raise ConflictError("Seat was sold by another checkout") from exc

            if self.usage_counted_at == USAGE_AT_FINALIZE:
                self._count_discount_usage(sale)

            sale.status = "FINALIZED"
            sale.finalized_at = now
            self.session.commit()

            return FinalizeResult(
                sale=sale.to_dict(),
                tickets=[t.to_dict() for t in tickets],
                payments=[p.to_dict() for p in new_payments],
                total_paid_cents=total_paid,
                change_cents=total_paid - totals.grand_total_cents,
            )

        result = run_with_retry(self.session, _op)
        if self.audit:
            self.audit.record("FINALIZE_SALE", "SALE", sale_id, {
                "grand_total_cents": result.sale["grand_total_cents"],
                "total_paid_cents": result.total_paid_cents,
                "tickets": [t["id"] for t in result.tickets],
            })
        return result

    def _issue_ticket(self, sale, item: SaleItem, now) -> Ticket:
        seat_code = item.seat.code if item.seat else str(item.seat_id)
        hold = None
        if item.reservation_token:
            hold = lock_for_update(
                self.session.query(SeatReservation).filter(
                    SeatReservation.company_id == self.company_id,
                    SeatReservation.session_id == item.session_id,
                    SeatReservation.seat_id == item.seat_id,
                    SeatReservation.reservation_token == item.reservation_token,
                    SeatReservation.expires_at > now,
                )
            ).first()
        if hold is None:
            raise ConflictError(
                f"Seat {seat_code} has no active reservation for this sale",
                details={"conflicts": [seat_code]},
            )

        ticket = Ticket(
            company_id=self.company_id,
            session_id=item.session_id,
            seat_map_id=item.seat_map_id,
            seat_id=item.seat_id,
            sale_id=sale.id,
            price_cents=item.unit_price_cents,
            status="ISSUED",
            qr_code=generate_qr_code(),
            issued_at=now,
        )
        self.session.add(ticket)
        self.session.delete(hold)
        try:
            self.session.flush()
        except IntegrityError as exc:
            raise ConflictError(
                f"Seat {seat_code} is already sold",
                details={"conflicts": [seat_code]},
            ) from exc
        item.ticket_id = ticket.id
        return ticket

    def _take_stock(self, item: SaleItem) -> None:
        stock = lock_for_update(
            self.session.query(InventoryItem).filter_by(company_id=self.company_id, sku=item.sku)
        ).first()
        if not stock:
            raise NotFoundError(f"Inventory item not found: {item.sku}")
        if stock.qty_on_hand < item.quantity:
            raise InvalidStateError(
                f"Insufficient stock for {item.sku}",
                details={"available": stock.qty_on_hand, "requested": item.quantity},
            )
        stock.qty_on_hand -= item.quantity

    def _count_discount_usage(self, sale) -> None:
        applied = self.session.query(SaleDiscount).filter_by(sale_id=sale.id).all()
        for sale_discount in applied:
            discount = lock_for_update(
                self.session.query(DiscountCode).filter_by(id=sale_discount.discount_code_id)
            ).first()
            if discount.max_uses is not None and discount.current_uses >= discount.max_uses:
                raise InvalidStateError(f"Discount code {discount.code} usage limit reached")
            discount.current_uses += 1

    def cancel(self, sale_id: int, reason: str | None = None) -> dict:
        """OPEN -> CANCELED, releasing every seat hold referenced by the sale's ticket lines."""
        def _op():
            sale = self.sales.load_locked(sale_id)
            if sale.status != "OPEN":
                raise InvalidStateError(f"Sale is {sale.status} and cannot be canceled")

            tokens = {
                item.reservation_token
                for item in self.sales.items(sale.id)
                if item.kind == "TICKET" and item.reservation_token
            }
            released = 0
            if tokens:
                released = (
                    self.session.query(SeatReservation)
                    .filter(
                        SeatReservation.company_id == self.company_id,
                        SeatReservation.reservation_token.in_(tokens),
                    )
                    .delete(synchronize_session=False)
                )

            sale.status = "CANCELED"
            sale.canceled_at = utcnow()
            sale.cancel_reason = reason
            self.session.commit()
            return {"sale": sale.to_dict(), "released_reservations": released}

        result = run_with_retry(self.session, _op)
        if self.audit:
            self.audit.record("CANCEL_SALE", "SALE", sale_id, {
                "reason": reason,
                "released_reservations": result["released_reservations"],
            })
        return result
