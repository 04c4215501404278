"""
Seat availability for a session.

A seat is SOLD when it carries a non-refunded ticket, RESERVED when an
unexpired hold exists and it is not sold, AVAILABLE otherwise. Only
active seats of the room's seat map are considered. Pure read.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ..errors import NotFoundError
from ..models import MovieSession, Room, Seat, SeatReservation, Ticket
from ..time_utils import utcnow


SEAT_AVAILABLE = "AVAILABLE"
SEAT_SOLD = "SOLD"
SEAT_RESERVED = "RESERVED"


@dataclass(frozen=True)
class SeatKey:
    """Seat identity is always scoped by session and seat map, never a bare code."""
    session_id: int
    seat_map_id: int
    seat_id: int


@dataclass(frozen=True)
class SeatState:
    key: SeatKey
    code: str
    status: str
    reservation_token: str | None = None
    expires_at: datetime | None = None
    is_accessible: bool = False

    def to_dict(self) -> dict:
        return {
            "seat_id": self.key.seat_id,
            "seat_map_id": self.key.seat_map_id,
            "code": self.code,
            "status": self.status,
            "is_accessible": self.is_accessible,
        }


class SeatAvailabilityResolver:
    def __init__(self, session, company_id: int):
        self.session = session
        self.company_id = company_id

    def load_session(self, session_id: int) -> MovieSession:
        movie_session = (
            self.session.query(MovieSession)
            .filter_by(id=session_id, company_id=self.company_id)
            .first()
        )
        if not movie_session:
            raise NotFoundError("Session not found")
        return movie_session

    def seat_map_id_for(self, movie_session: MovieSession) -> int:
        room = (
            self.session.query(Room)
            .filter_by(id=movie_session.room_id, company_id=self.company_id)
            .first()
        )
        if not room or room.seat_map_id is None:
            raise NotFoundError("Room has no seat map")
        return room.seat_map_id

    def active_seats(self, seat_map_id: int) -> list[Seat]:
        return (
            self.session.query(Seat)
            .filter_by(seat_map_id=seat_map_id, is_active=True)
            .order_by(Seat.row_label, Seat.number)
            .all()
        )

    def seats_by_code(self, seat_map_id: int, codes: list[str]) -> dict[str, Seat]:
        """Map requested codes to active seats; unknown or inactive codes are NotFound."""
        wanted = list(dict.fromkeys(codes))
        seats = (
            self.session.query(Seat)
            .filter(Seat.seat_map_id == seat_map_id, Seat.code.in_(wanted), Seat.is_active.is_(True))
            .all()
        )
        found = {seat.code: seat for seat in seats}
        missing = [code for code in wanted if code not in found]
        if missing:
            raise NotFoundError(
                f"Seats not found: {', '.join(missing)}",
                details={"missing": missing},
            )
        return {code: found[code] for code in wanted}

    def seat_states(self, movie_session: MovieSession, seats: list[Seat], now: datetime | None = None) -> dict[int, SeatState]:
        """Status of each given seat keyed by seat id. SOLD wins over RESERVED."""
        now = now or utcnow()
        seat_ids = [seat.id for seat in seats]
        if not seat_ids:
            return {}

        sold_ids = {
            row.seat_id
            for row in self.session.query(Ticket.seat_id).filter(
                Ticket.company_id == self.company_id,
                Ticket.session_id == movie_session.id,
                Ticket.seat_id.in_(seat_ids),
                Ticket.status != "REFUNDED",
            )
        }
        holds = {
            hold.seat_id: hold
            for hold in self.session.query(SeatReservation).filter(
                SeatReservation.company_id == self.company_id,
                SeatReservation.session_id == movie_session.id,
                SeatReservation.seat_id.in_(seat_ids),
                SeatReservation.expires_at > now,
            )
        }

        states: dict[int, SeatState] = {}
        for seat in seats:
            key = SeatKey(movie_session.id, seat.seat_map_id, seat.id)
            if seat.id in sold_ids:
                states[seat.id] = SeatState(key, seat.code, SEAT_SOLD, is_accessible=seat.is_accessible)
            elif seat.id in holds:
                hold = holds[seat.id]
                states[seat.id] = SeatState(
                    key,
                    seat.code,
                    SEAT_RESERVED,
                    reservation_token=hold.reservation_token,
                    expires_at=hold.expires_at,
                    is_accessible=seat.is_accessible,
                )
            else:
                states[seat.id] = SeatState(key, seat.code, SEAT_AVAILABLE, is_accessible=seat.is_accessible)
        return states

    def snapshot(self, session_id: int) -> list[SeatState]:
        movie_session = self.load_session(session_id)
        seats = self.active_seats(self.seat_map_id_for(movie_session))
        states = self.seat_states(movie_session, seats)
        return [states[seat.id] for seat in seats]

    def resolve(self, session_id: int) -> dict[str, str]:
        """Seat code -> AVAILABLE | SOLD | RESERVED for every active seat of the session's room."""
        return {state.code: state.status for state in self.snapshot(session_id)}
