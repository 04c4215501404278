"""
Seat Reservation Manager

Short-lived seat holds taken during checkout, identified by a
client-generated reservation token shared by every seat of the checkout.

- reserve() is all-or-nothing: if any requested seat is sold or held by a
  different token, nothing is written and ConflictError lists the seats.
- Re-reserving under the same token refreshes the expiry.
- Conflict checks and writes happen in one transaction; the unique
  (session, seat) constraint turns a concurrent hold into ConflictError.
- Expiry is passive: readers ignore expired rows, sweep_expired() deletes them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta

from sqlalchemy.exc import IntegrityError

from ..errors import ConflictError, InvalidStateError, ValidationError
from ..models import SeatReservation
from ..models.screenings import SELLABLE_SESSION_STATUSES
from ..time_utils import to_utc_z, utcnow
from .availability_service import SEAT_RESERVED, SEAT_SOLD, SeatAvailabilityResolver
from .concurrency import lock_for_update, run_with_retry


DEFAULT_HOLD_MINUTES = 15


@dataclass
class ReservationResult:
    session_id: int
    reservation_token: str
    reserved: list[str] = field(default_factory=list)
    conflicts: list[str] = field(default_factory=list)
    expires_at: datetime | None = None

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "reservation_token": self.reservation_token,
            "reserved": self.reserved,
            "conflicts": self.conflicts,
            "expires_at": to_utc_z(self.expires_at),
        }


def require_sellable(movie_session) -> None:
    if movie_session.status not in SELLABLE_SESSION_STATUSES:
        raise InvalidStateError(f"Session is {movie_session.status} and not available for sales")


class SeatReservationManager:
    def __init__(self, session, company_id: int | None, *, hold_minutes: int = DEFAULT_HOLD_MINUTES, audit=None):
        self.session = session
        self.company_id = company_id
        self.hold_minutes = hold_minutes
        self.audit = audit
        self.resolver = SeatAvailabilityResolver(session, company_id)

    def reserve(self, session_id: int, seat_codes: list[str], reservation_token: str) -> ReservationResult:
        if not seat_codes:
            raise ValidationError("At least one seat is required")
        if not reservation_token:
            raise ValidationError("reservation_token is required")

        def _op():
            now = utcnow()
            movie_session = self.resolver.load_session(session_id)
            require_sellable(movie_session)

            seat_map_id = self.resolver.seat_map_id_for(movie_session)
            seats = self.resolver.seats_by_code(seat_map_id, seat_codes)
            seat_ids = [seat.id for seat in seats.values()]

            # Lock the rows we may take over before deciding on conflicts
            existing = {
                hold.seat_id: hold
                for hold in lock_for_update(
                    self.session.query(SeatReservation).filter(
                        SeatReservation.session_id == movie_session.id,
                        SeatReservation.seat_id.in_(seat_ids),
                    )
                ).all()
            }

            states = self.resolver.seat_states(movie_session, list(seats.values()), now=now)
            conflicts = []
            for code, seat in seats.items():
                state = states[seat.id]
                if state.status == SEAT_SOLD:
                    conflicts.append(code)
                elif state.status == SEAT_RESERVED and state.reservation_token != reservation_token:
                    conflicts.append(code)

            if conflicts:
                raise ConflictError(
                    f"Seats unavailable: {', '.join(conflicts)}",
                    details={"reserved": [], "conflicts": conflicts},
                )

            expires_at = now + timedelta(minutes=self.hold_minutes)
            for seat in seats.values():
                hold = existing.get(seat.id)
                if hold:
                    hold.reservation_token = reservation_token
                    hold.expires_at = expires_at
                else:
                    self.session.add(SeatReservation(
                        company_id=self.company_id,
                        session_id=movie_session.id,
                        seat_map_id=seat.seat_map_id,
                        seat_id=seat.id,
                        reservation_token=reservation_token,
                        expires_at=expires_at,
                    ))

            try:
                self.session.flush()
            except IntegrityError as exc:
                raise ConflictError(
                    "Seats were reserved by another checkout",
                    details={"reserved": [], "conflicts": list(seats)},
                ) from exc

            self.session.commit()
            return ReservationResult(
                session_id=movie_session.id,
                reservation_token=reservation_token,
                reserved=list(seats),
                expires_at=expires_at,
            )

        result = run_with_retry(self.session, _op)
        if self.audit:
            self.audit.record(
                "RESERVE_SEATS", "SESSION", result.session_id,
                {"seats": result.reserved, "reservation_token": reservation_token},
            )
        return result

    def release(self, reservation_token: str) -> int:
        """Delete every hold carrying the token, across sessions. Idempotent."""
        def _op():
            query = self.session.query(SeatReservation).filter_by(reservation_token=reservation_token)
            if self.company_id is not None:
                query = query.filter_by(company_id=self.company_id)
            count = query.delete(synchronize_session=False)
            self.session.commit()
            return count

        count = run_with_retry(self.session, _op)
        if self.audit:
            self.audit.record(
                "RELEASE_RESERVATION", "SEAT_RESERVATION", reservation_token,
                {"released": count},
            )
        return count

    def sweep_expired(self) -> int:
        """Delete holds whose expiry has passed. company_id=None sweeps every tenant."""
        def _op():
            query = self.session.query(SeatReservation).filter(SeatReservation.expires_at <= utcnow())
            if self.company_id is not None:
                query = query.filter(SeatReservation.company_id == self.company_id)
            count = query.delete(synchronize_session=False)
            self.session.commit()
            return count

        return run_with_retry(self.session, _op)
