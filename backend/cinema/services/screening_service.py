"""
Screening scheduling.

A room shows at most one non-canceled session at a time: a new session
may not overlap [start_time, end_time) of another one in the same room.
The room row is locked while checking so two concurrent creates for the
same room are serialized.

Status transitions:
    SCHEDULED   -> IN_PROGRESS | CANCELED
    IN_PROGRESS -> COMPLETED   | CANCELED
COMPLETED and CANCELED are terminal.
"""

from __future__ import annotations

from ..errors import InvalidStateError, NotFoundError, ConflictError
from ..models import Movie, MovieSession, Room, SeatReservation
from ..validation import SessionInput
from .concurrency import lock_for_update, run_with_retry


ALLOWED_TRANSITIONS = {
    "SCHEDULED": ("IN_PROGRESS", "CANCELED"),
    "IN_PROGRESS": ("COMPLETED", "CANCELED"),
    "COMPLETED": (),
    "CANCELED": (),
}


class ScreeningScheduler:
    def __init__(self, session, company_id: int, *, audit=None):
        self.session = session
        self.company_id = company_id
        self.audit = audit

    def overlapping(self, room_id: int, start_time, end_time, exclude_id: int | None = None) -> list[MovieSession]:
        query = self.session.query(MovieSession).filter(
            MovieSession.company_id == self.company_id,
            MovieSession.room_id == room_id,
            MovieSession.status != "CANCELED",
            MovieSession.start_time < end_time,
            MovieSession.end_time > start_time,
        )
        if exclude_id is not None:
            query = query.filter(MovieSession.id != exclude_id)
        return query.order_by(MovieSession.start_time).all()

    def create_session(self, data: SessionInput) -> MovieSession:
        def _op():
            movie = self.session.query(Movie).filter_by(id=data.movie_id, company_id=self.company_id).first()
            if not movie or not movie.is_active:
                raise NotFoundError("Movie not found")

            room = lock_for_update(
                self.session.query(Room).filter_by(id=data.room_id, company_id=self.company_id)
            ).first()
            if not room or not room.is_active:
                raise NotFoundError("Room not found")

            clashes = self.overlapping(room.id, data.start_time, data.end_time)
            if clashes:
                raise ConflictError(
                    "Room already has a session in this time window",
                    details={"conflicting_session_ids": [s.id for s in clashes]},
                )

            movie_session = MovieSession(
                company_id=self.company_id,
                movie_id=movie.id,
                room_id=room.id,
                start_time=data.start_time,
                end_time=data.end_time,
                base_price_cents=data.base_price_cents,
                status="SCHEDULED",
            )
            self.session.add(movie_session)
            self.session.commit()
            return movie_session

        movie_session = run_with_retry(self.session, _op)
        if self.audit:
            self.audit.record("CREATE_SESSION", "SESSION", movie_session.id, {
                "movie_id": movie_session.movie_id,
                "room_id": movie_session.room_id,
            })
        return movie_session

    def update_status(self, session_id: int, status: str) -> MovieSession:
        def _op():
            movie_session = lock_for_update(
                self.session.query(MovieSession).filter_by(id=session_id, company_id=self.company_id)
            ).first()
            if not movie_session:
                raise NotFoundError("Session not found")

            if status not in ALLOWED_TRANSITIONS.get(movie_session.status, ()):
                raise InvalidStateError(f"Cannot change session from {movie_session.status} to {status}")

            movie_session.status = status
            if status == "CANCELED":
                # Holds on a canceled session can never become tickets
                self.session.query(SeatReservation).filter_by(
                    company_id=self.company_id, session_id=movie_session.id
                ).delete(synchronize_session=False)
            self.session.commit()
            return movie_session

        movie_session = run_with_retry(self.session, _op)
        if self.audit and status == "CANCELED":
            self.audit.record("CANCEL_SESSION", "SESSION", movie_session.id, {})
        return movie_session
