"""
Sale Aggregate - cart of ticket and product lines plus applied discounts.

Totals are persisted on the sale and recomputed inside the same
transaction as every item or discount mutation:
- sub_total_cents = sum of line_total_cents
- discount_total_cents = sum of each applied code's amount against sub_total,
  capped at sub_total
- grand_total_cents = max(0, sub_total - discount_total)

Line prices are frozen when the line is added.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import func

from ..errors import ConflictError, InvalidStateError, NotFoundError, ValidationError
from ..models import InventoryItem, Payment, Sale, SaleDiscount, SaleItem
from ..models.sales import PAYMENT_METHODS
from ..validation import ProductItemInput, TicketItemInput
from .availability_service import SEAT_RESERVED, SEAT_SOLD, SeatAvailabilityResolver
from .concurrency import lock_for_update, run_with_retry
from .reservation_service import require_sellable


@dataclass(frozen=True)
class SaleTotals:
    sub_total_cents: int
    discount_total_cents: int
    grand_total_cents: int

    def to_dict(self) -> dict:
        return {
            "sub_total_cents": self.sub_total_cents,
            "discount_total_cents": self.discount_total_cents,
            "grand_total_cents": self.grand_total_cents,
        }


def require_open(sale: Sale, action: str = "modified") -> None:
    if sale.status != "OPEN":
        raise InvalidStateError(f"Sale is {sale.status} and cannot be {action}")


class SaleAggregate:
    def __init__(self, session, company_id: int):
        self.session = session
        self.company_id = company_id
        self.resolver = SeatAvailabilityResolver(session, company_id)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def get(self, sale_id: int) -> Sale:
        sale = self.session.query(Sale).filter_by(id=sale_id, company_id=self.company_id).first()
        if not sale:
            raise NotFoundError("Sale not found")
        return sale

    def load_locked(self, sale_id: int) -> Sale:
        sale = lock_for_update(
            self.session.query(Sale).filter_by(id=sale_id, company_id=self.company_id)
        ).first()
        if not sale:
            raise NotFoundError("Sale not found")
        return sale

    def items(self, sale_id: int) -> list[SaleItem]:
        return self.session.query(SaleItem).filter_by(sale_id=sale_id).order_by(SaleItem.id).all()

    def total_paid(self, sale_id: int) -> int:
        paid = (
            self.session.query(func.coalesce(func.sum(Payment.amount_cents), 0))
            .filter(Payment.sale_id == sale_id)
            .scalar()
        )
        return int(paid or 0)

    # ------------------------------------------------------------------
    # Totals
    # ------------------------------------------------------------------

    def apply_totals(self, sale: Sale) -> SaleTotals:
        """Recompute and store totals on a sale already loaded in this transaction."""
        sub_total = sum(item.line_total_cents for item in self.items(sale.id))

        discount_total = 0
        applied = self.session.query(SaleDiscount).filter_by(sale_id=sale.id).order_by(SaleDiscount.id).all()
        for sale_discount in applied:
            amount = sale_discount.discount_code.amount_for(sub_total)
            sale_discount.discount_amount_cents = amount
            discount_total += amount
        discount_total = min(discount_total, sub_total)

        sale.sub_total_cents = sub_total
        sale.discount_total_cents = discount_total
        sale.grand_total_cents = max(0, sub_total - discount_total)
        return SaleTotals(sale.sub_total_cents, sale.discount_total_cents, sale.grand_total_cents)

    def recalculate(self, sale_id: int) -> SaleTotals:
        def _op():
            sale = self.load_locked(sale_id)
            totals = self.apply_totals(sale) if sale.status == "OPEN" else SaleTotals(
                sale.sub_total_cents, sale.discount_total_cents, sale.grand_total_cents
            )
            self.session.commit()
            return totals

        return run_with_retry(self.session, _op)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create(self, cashier_cpf: str, buyer_cpf: str | None = None) -> Sale:
        """Create a new OPEN sale with zero totals."""
        if not cashier_cpf:
            raise ValidationError("cashier_cpf is required")

        def _op():
            sale = Sale(
                company_id=self.company_id,
                cashier_cpf=cashier_cpf,
                buyer_cpf=buyer_cpf,
                status="OPEN",
                sub_total_cents=0,
                discount_total_cents=0,
                grand_total_cents=0,
            )
            self.session.add(sale)
            self.session.commit()
            return sale

        return run_with_retry(self.session, _op)

    def add_item(self, sale_id: int, item: TicketItemInput | ProductItemInput) -> SaleItem:
        """Add a line to an OPEN sale and refresh its totals."""
        def _op():
            sale = self.load_locked(sale_id)
            require_open(sale)

            if isinstance(item, TicketItemInput):
                line = self._ticket_line(sale, item)
            else:
                line = self._product_line(sale, item)

            self.session.add(line)
            self.session.flush()
            self.apply_totals(sale)
            self.session.commit()
            return line

        return run_with_retry(self.session, _op)

    def _ticket_line(self, sale: Sale, item: TicketItemInput) -> SaleItem:
        movie_session = self.resolver.load_session(item.session_id)
        require_sellable(movie_session)
        seat_map_id = self.resolver.seat_map_id_for(movie_session)
        seat = self.resolver.seats_by_code(seat_map_id, [item.seat_code])[item.seat_code]

        duplicate = (
            self.session.query(SaleItem)
            .filter_by(sale_id=sale.id, session_id=movie_session.id, seat_id=seat.id)
            .first()
        )
        if duplicate:
            raise ConflictError(f"Seat {seat.code} is already in this sale")

        state = self.resolver.seat_states(movie_session, [seat])[seat.id]
        if state.status == SEAT_SOLD:
            raise ConflictError(f"Seat {seat.code} is already sold", details={"conflicts": [seat.code]})
        if state.status == SEAT_RESERVED and state.reservation_token != item.reservation_token:
            raise ConflictError(
                f"Seat {seat.code} is held by another checkout",
                details={"conflicts": [seat.code]},
            )

        unit_price = item.unit_price_cents
        if unit_price is None:
            unit_price = movie_session.base_price_cents
        if unit_price is None:
            raise ValidationError("unit_price_cents is required: session has no base price")

        description = item.description or f"Ticket {movie_session.movie.title} - seat {seat.code}"
        return SaleItem(
            sale_id=sale.id,
            company_id=self.company_id,
            kind="TICKET",
            description=description[:200],
            session_id=movie_session.id,
            seat_map_id=seat.seat_map_id,
            seat_id=seat.id,
            reservation_token=item.reservation_token,
            quantity=1,
            unit_price_cents=unit_price,
            line_total_cents=unit_price,
        )

    def _product_line(self, sale: Sale, item: ProductItemInput) -> SaleItem:
        stock = (
            self.session.query(InventoryItem)
            .filter_by(company_id=self.company_id, sku=item.sku, is_active=True)
            .first()
        )
        if not stock:
            raise NotFoundError("Inventory item not found")

        if stock.qty_on_hand < item.quantity:
            raise ConflictError(
                "Insufficient stock",
                details={"available": stock.qty_on_hand, "requested": item.quantity},
            )

        return SaleItem(
            sale_id=sale.id,
            company_id=self.company_id,
            kind="PRODUCT",
            description=(item.description or stock.name)[:200],
            sku=stock.sku,
            quantity=item.quantity,
            unit_price_cents=stock.unit_price_cents,
            line_total_cents=stock.unit_price_cents * item.quantity,
        )

    def remove_item(self, sale_id: int, item_id: int) -> SaleTotals:
        """Remove a line from an OPEN sale and refresh its totals."""
        def _op():
            sale = self.load_locked(sale_id)
            require_open(sale)

            line = self.session.query(SaleItem).filter_by(id=item_id, sale_id=sale.id).first()
            if not line:
                raise NotFoundError("Sale item not found")

            self.session.delete(line)
            self.session.flush()
            totals = self.apply_totals(sale)
            self.session.commit()
            return totals

        return run_with_retry(self.session, _op)

    def add_payment(self, sale_id: int, method: str, amount_cents: int, auth_code: str | None = None) -> dict:
        """Record a payment on an OPEN sale ahead of finalization."""
        if method not in PAYMENT_METHODS:
            raise ValidationError(f"Invalid payment method: {method}. Must be one of {list(PAYMENT_METHODS)}")
        if amount_cents <= 0:
            raise ValidationError("Payment amount must be positive")

        def _op():
            sale = self.load_locked(sale_id)
            if sale.status != "OPEN":
                raise InvalidStateError("Cannot add payment to a closed sale")

            payment = Payment(
                company_id=self.company_id,
                sale_id=sale.id,
                method=method,
                amount_cents=amount_cents,
                auth_code=auth_code,
            )
            self.session.add(payment)
            self.session.flush()

            total_paid = self.total_paid(sale.id)
            self.session.commit()
            return {
                "payment": payment.to_dict(),
                "total_paid_cents": total_paid,
                "remaining_balance_cents": max(0, sale.grand_total_cents - total_paid),
            }

        return run_with_retry(self.session, _op)
