"""
Direct ticket operations: counter sale without a cart, refund, check-in.

ISSUED -> USED      (mark_used)
ISSUED -> REFUNDED  (refund, only before the session starts)

A refunded ticket frees its seat: the partial unique index on tickets
ignores REFUNDED rows.
"""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, InvalidStateError, NotFoundError, ValidationError
from ..models import MovieSession, SeatReservation, Ticket
from ..time_utils import utcnow
from ..validation import SellTicketRequest
from .availability_service import SEAT_RESERVED, SEAT_SOLD, SeatAvailabilityResolver
from .concurrency import lock_for_update, run_with_retry
from .finalize_service import generate_qr_code
from .reservation_service import require_sellable


class TicketDesk:
    def __init__(self, session, company_id: int, *, audit=None):
        self.session = session
        self.company_id = company_id
        self.audit = audit
        self.resolver = SeatAvailabilityResolver(session, company_id)

    def _load_locked(self, ticket_id: int) -> Ticket:
        ticket = lock_for_update(
            self.session.query(Ticket).filter_by(id=ticket_id, company_id=self.company_id)
        ).first()
        if not ticket:
            raise NotFoundError("Ticket not found")
        return ticket

    def sell_ticket(self, request: SellTicketRequest) -> Ticket:
        def _op():
            now = utcnow()
            movie_session = self.resolver.load_session(request.session_id)
            require_sellable(movie_session)
            seat_map_id = self.resolver.seat_map_id_for(movie_session)
            seat = self.resolver.seats_by_code(seat_map_id, [request.seat_code])[request.seat_code]

            state = self.resolver.seat_states(movie_session, [seat], now=now)[seat.id]
            if state.status == SEAT_SOLD:
                raise ConflictError(f"Seat {seat.code} is already sold", details={"conflicts": [seat.code]})
            if state.status == SEAT_RESERVED and state.reservation_token != request.reservation_token:
                raise ConflictError(f"Seat {seat.code} is reserved", details={"conflicts": [seat.code]})

            price = request.price_cents
            if price is None:
                price = movie_session.base_price_cents
            if price is None:
                raise ValidationError("price_cents is required: session has no base price")

            if state.status == SEAT_RESERVED:
                self.session.query(SeatReservation).filter_by(
                    session_id=movie_session.id,
                    seat_id=seat.id,
                    reservation_token=request.reservation_token,
                ).delete(synchronize_session=False)

            ticket = Ticket(
                company_id=self.company_id,
                session_id=movie_session.id,
                seat_map_id=seat.seat_map_id,
                seat_id=seat.id,
                price_cents=price,
                status="ISSUED",
                qr_code=generate_qr_code(),
                issued_at=now,
            )
            self.session.add(ticket)
            try:
                self.session.flush()
            except IntegrityError as exc:
                raise ConflictError(f"Seat {seat.code} is already sold", details={"conflicts": [seat.code]}) from exc
            self.session.commit()
            return ticket

        ticket = run_with_retry(self.session, _op)
        if self.audit:
            self.audit.record("SELL_TICKET", "TICKET", ticket.id, {
                "session_id": ticket.session_id,
                "seat_id": ticket.seat_id,
                "price_cents": ticket.price_cents,
            })
        return ticket

    def refund_ticket(self, ticket_id: int, reason: str) -> Ticket:
        def _op():
            now = utcnow()
            ticket = self._load_locked(ticket_id)
            if ticket.status == "REFUNDED":
                raise InvalidStateError("Ticket is already refunded")
            if ticket.status == "USED":
                raise InvalidStateError("Used tickets cannot be refunded")

            movie_session = self.session.query(MovieSession).filter_by(id=ticket.session_id).first()
            if movie_session and movie_session.start_time <= now:
                raise InvalidStateError("Cannot refund a ticket for a session that has already started")

            ticket.status = "REFUNDED"
            ticket.refunded_at = now
            ticket.refund_reason = reason
            self.session.commit()
            return ticket

        ticket = run_with_retry(self.session, _op)
        if self.audit:
            self.audit.record("REFUND_TICKET", "TICKET", ticket.id, {
                "reason": reason,
                "price_cents": ticket.price_cents,
            })
        return ticket

    def mark_used(self, ticket_id: int) -> Ticket:
        def _op():
            ticket = self._load_locked(ticket_id)
            if ticket.status != "ISSUED":
                raise InvalidStateError(f"Ticket is {ticket.status} and cannot be used")
            ticket.status = "USED"
            ticket.used_at = utcnow()
            self.session.commit()
            return ticket

        return run_with_retry(self.session, _op)
