from __future__ import annotations

from ..extensions import db
from cinema.time_utils import to_utc_z


SESSION_STATUSES = ("SCHEDULED", "IN_PROGRESS", "COMPLETED", "CANCELED")

# Sessions in these states accept holds and ticket sales
SELLABLE_SESSION_STATUSES = ("SCHEDULED", "IN_PROGRESS")


class MovieSession(db.Model):
    """
    A scheduled screening of a movie in a room.

    INVARIANTS:
    - end_time > start_time
    - no two non-canceled sessions in the same room overlap on [start_time, end_time)
      (enforced by screening_service at write time)
    """
    __tablename__ = "sessions"
    __table_args__ = (
        db.Index("ix_sessions_room_window", "room_id", "start_time", "end_time"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    movie_id = db.Column(db.Integer, db.ForeignKey("movies.id"), nullable=False, index=True)
    room_id = db.Column(db.Integer, db.ForeignKey("rooms.id"), nullable=False, index=True)

    start_time = db.Column(db.DateTime(timezone=True), nullable=False)
    end_time = db.Column(db.DateTime(timezone=True), nullable=False)
    base_price_cents = db.Column(db.Integer, nullable=True)

    status = db.Column(db.String(16), nullable=False, default="SCHEDULED", index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    movie = db.relationship("Movie")
    room = db.relationship("Room")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "company_id": self.company_id,
            "movie_id": self.movie_id,
            "room_id": self.room_id,
            "start_time": to_utc_z(self.start_time),
            "end_time": to_utc_z(self.end_time),
            "base_price_cents": self.base_price_cents,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
        }
