# Overview: Pytest coverage for sale finalization and cancellation.

import pytest

from cinema.errors import ConflictError, InvalidStateError, NotFoundError
from cinema.models import DiscountCode, InventoryItem, Payment, Sale, SeatReservation, Ticket
from cinema.services.availability_service import SeatAvailabilityResolver
from cinema.services.discount_service import DiscountEvaluator
from cinema.services.finalize_service import SaleFinalizer
from cinema.services.reservation_service import SeatReservationManager
from cinema.services.sales_service import SaleAggregate
from cinema.validation import PaymentInput, ProductItemInput, TicketItemInput

from conftest import BUYER_CPF, CASHIER_CPF


@pytest.fixture
def aggregate(db_session, company_a):
    return SaleAggregate(db_session, company_a.id)


@pytest.fixture
def finalizer(db_session, company_a):
    return SaleFinalizer(db_session, company_a.id)


@pytest.fixture
def discounted_sale(db_session, company_a, screening_a, aggregate, make_discount):
    """A1 + A2 at 30.00 with PROMO10 applied: grand total 54.00."""
    SeatReservationManager(db_session, company_a.id).reserve(screening_a.id, ["A1", "A2"], "tok1")
    sale = aggregate.create(CASHIER_CPF, BUYER_CPF)
    aggregate.add_item(sale.id, TicketItemInput(screening_a.id, "A1", reservation_token="tok1"))
    aggregate.add_item(sale.id, TicketItemInput(screening_a.id, "A2", reservation_token="tok1"))
    make_discount("PROMO10", "PERCENT", 1000, max_uses=10)
    DiscountEvaluator(db_session, company_a.id).apply(sale.id, "PROMO10")
    return sale


class TestFinalize:

    def test_full_checkout_issues_tickets(self, db_session, company_a, screening_a, finalizer, discounted_sale):
        result = finalizer.finalize(discounted_sale.id, [PaymentInput("CASH", 5400)])

        assert result.sale["status"] == "FINALIZED"
        assert result.sale["grand_total_cents"] == 5400
        assert result.change_cents == 0
        assert len(result.tickets) == 2
        assert {t["status"] for t in result.tickets} == {"ISSUED"}
        assert {t["seat_code"] for t in result.tickets} == {"A1", "A2"}

        assert db_session.query(SeatReservation).filter_by(reservation_token="tok1").count() == 0
        statuses = SeatAvailabilityResolver(db_session, company_a.id).resolve(screening_a.id)
        assert statuses["A1"] == "SOLD"
        assert statuses["A2"] == "SOLD"

    def test_insufficient_payment_leaves_sale_open(self, db_session, finalizer, discounted_sale):
        with pytest.raises(InvalidStateError) as exc_info:
            finalizer.finalize(discounted_sale.id, [PaymentInput("CASH", 5000)])

        assert exc_info.value.message == "Insufficient payment. Required: 54, Received: 50"
        assert exc_info.value.details == {"required_cents": 5400, "received_cents": 5000}

        sale = db_session.query(Sale).filter_by(id=discounted_sale.id).one()
        assert sale.status == "OPEN"
        assert db_session.query(Payment).filter_by(sale_id=sale.id).count() == 0
        assert db_session.query(Ticket).count() == 0
        assert db_session.query(SeatReservation).filter_by(reservation_token="tok1").count() == 2

    def test_cents_in_shortfall_message(self, finalizer, discounted_sale):
        with pytest.raises(InvalidStateError) as exc_info:
            finalizer.finalize(discounted_sale.id, [PaymentInput("CARD", 5350)])
        assert exc_info.value.message == "Insufficient payment. Required: 54, Received: 53.50"

    def test_earlier_payments_count(self, aggregate, finalizer, discounted_sale):
        aggregate.add_payment(discounted_sale.id, "CARD", 4000)

        result = finalizer.finalize(discounted_sale.id, [PaymentInput("CASH", 2000)])

        assert result.total_paid_cents == 6000
        assert result.change_cents == 600

    def test_usage_counted_at_finalize(self, db_session, finalizer, discounted_sale, company_a):
        code = db_session.query(DiscountCode).filter_by(company_id=company_a.id, code="PROMO10").one()
        assert code.current_uses == 0

        finalizer.finalize(discounted_sale.id, [PaymentInput("PIX", 5400)])

        db_session.refresh(code)
        assert code.current_uses == 1

    def test_usage_cap_rechecked_at_finalize(self, db_session, finalizer, discounted_sale, company_a):
        code = db_session.query(DiscountCode).filter_by(company_id=company_a.id, code="PROMO10").one()
        code.current_uses = code.max_uses
        db_session.commit()

        with pytest.raises(InvalidStateError):
            finalizer.finalize(discounted_sale.id, [PaymentInput("CASH", 5400)])

        assert db_session.query(Ticket).count() == 0
        assert db_session.query(Sale).filter_by(id=discounted_sale.id).one().status == "OPEN"

    def test_finalize_twice_conflicts(self, finalizer, discounted_sale):
        finalizer.finalize(discounted_sale.id, [PaymentInput("CASH", 5400)])
        with pytest.raises(ConflictError):
            finalizer.finalize(discounted_sale.id, [PaymentInput("CASH", 5400)])

    def test_empty_sale(self, aggregate, finalizer):
        sale = aggregate.create(CASHIER_CPF)
        with pytest.raises(InvalidStateError):
            finalizer.finalize(sale.id, [])

    def test_unknown_sale(self, finalizer):
        with pytest.raises(NotFoundError):
            finalizer.finalize(424242, [])

    def test_ticket_without_reservation_conflicts(self, db_session, aggregate, finalizer, screening_a):
        sale = aggregate.create(CASHIER_CPF)
        aggregate.add_item(sale.id, TicketItemInput(screening_a.id, "B1"))

        with pytest.raises(ConflictError) as exc_info:
            finalizer.finalize(sale.id, [PaymentInput("CASH", 3000)])

        assert exc_info.value.details["conflicts"] == ["B1"]
        assert db_session.query(Payment).filter_by(sale_id=sale.id).count() == 0
        assert db_session.query(Sale).filter_by(id=sale.id).one().status == "OPEN"

    def test_released_hold_blocks_finalize(self, db_session, company_a, finalizer, discounted_sale):
        SeatReservationManager(db_session, company_a.id).release("tok1")

        with pytest.raises(ConflictError):
            finalizer.finalize(discounted_sale.id, [PaymentInput("CASH", 5400)])
        assert db_session.query(Ticket).count() == 0

    def test_product_stock_is_decremented(self, db_session, aggregate, finalizer, popcorn_a):
        sale = aggregate.create(CASHIER_CPF)
        aggregate.add_item(sale.id, ProductItemInput(sku="POPCORN-L", quantity=2))

        result = finalizer.finalize(sale.id, [PaymentInput("CASH", 10000)])

        assert result.change_cents == 5000
        assert result.tickets == []
        item = db_session.query(InventoryItem).filter_by(sku="POPCORN-L").one()
        assert item.qty_on_hand == 3

    def test_stock_shortfall_at_finalize(self, db_session, aggregate, finalizer, popcorn_a):
        sale = aggregate.create(CASHIER_CPF)
        aggregate.add_item(sale.id, ProductItemInput(sku="POPCORN-L", quantity=4))

        item = db_session.query(InventoryItem).filter_by(sku="POPCORN-L").one()
        item.qty_on_hand = 1
        db_session.commit()

        with pytest.raises(InvalidStateError):
            finalizer.finalize(sale.id, [PaymentInput("CASH", 10000)])
        assert db_session.query(Payment).count() == 0


class TestCancel:

    def test_cancel_releases_holds(self, db_session, finalizer, discounted_sale):
        result = finalizer.cancel(discounted_sale.id, "Customer gave up")

        assert result["sale"]["status"] == "CANCELED"
        assert result["sale"]["cancel_reason"] == "Customer gave up"
        assert result["released_reservations"] == 2
        assert db_session.query(SeatReservation).count() == 0

    def test_cancel_finalized_sale(self, finalizer, discounted_sale):
        finalizer.finalize(discounted_sale.id, [PaymentInput("CASH", 5400)])
        with pytest.raises(InvalidStateError):
            finalizer.cancel(discounted_sale.id, "too late")

    def test_cancel_twice(self, finalizer, discounted_sale):
        finalizer.cancel(discounted_sale.id, "first")
        with pytest.raises(InvalidStateError):
            finalizer.cancel(discounted_sale.id, "second")


class TestConcurrentFinalize:

    def test_seat_sold_elsewhere_rolls_everything_back(self, db_session, company_a, screening_a, finalizer, discounted_sale):
        resolver = SeatAvailabilityResolver(db_session, company_a.id)
        seat = resolver.seats_by_code(resolver.seat_map_id_for(screening_a), ["A1"])["A1"]
        db_session.add(Ticket(
            company_id=company_a.id,
            session_id=screening_a.id,
            seat_map_id=seat.seat_map_id,
            seat_id=seat.id,
            price_cents=3000,
            status="ISSUED",
            qr_code="TKT-RIVAL",
        ))
        db_session.commit()

        with pytest.raises(ConflictError) as exc_info:
            finalizer.finalize(discounted_sale.id, [PaymentInput("CASH", 5400)])

        assert exc_info.value.details["conflicts"] == ["A1"]
        sale = db_session.query(Sale).filter_by(id=discounted_sale.id).one()
        assert sale.status == "OPEN"
        assert db_session.query(Payment).filter_by(sale_id=sale.id).count() == 0
        assert db_session.query(Ticket).count() == 1
        assert db_session.query(SeatReservation).filter_by(reservation_token="tok1").count() == 2
