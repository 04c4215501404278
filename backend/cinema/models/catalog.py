from __future__ import annotations

from ..extensions import db
from cinema.time_utils import to_utc_z


ROOM_TYPES = ("TWO_D", "THREE_D", "IMAX", "EXTREME", "VIP")


class Movie(db.Model):
    __tablename__ = "movies"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    title = db.Column(db.String(200), nullable=False)
    duration_min = db.Column(db.Integer, nullable=False)
    genre = db.Column(db.String(80), nullable=True)
    rating = db.Column(db.String(10), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "company_id": self.company_id,
            "title": self.title,
            "duration_min": self.duration_min,
            "genre": self.genre,
            "rating": self.rating,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }


class SeatMap(db.Model):
    """Physical seat layout shared by one or more rooms."""
    __tablename__ = "seat_maps"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    rows = db.Column(db.Integer, nullable=False)
    cols = db.Column(db.Integer, nullable=False)
    version = db.Column(db.Integer, nullable=False, default=1)


class Seat(db.Model):
    """
    A seat inside a seat map, addressed by its code ("A1").

    Immutable once created except for is_active.
    """
    __tablename__ = "seats"
    __table_args__ = (
        db.UniqueConstraint("seat_map_id", "code", name="uq_seats_map_code"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    seat_map_id = db.Column(db.Integer, db.ForeignKey("seat_maps.id"), nullable=False, index=True)
    code = db.Column(db.String(10), nullable=False)
    row_label = db.Column(db.String(5), nullable=False)
    number = db.Column(db.Integer, nullable=False)
    is_accessible = db.Column(db.Boolean, nullable=False, default=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    seat_map = db.relationship("SeatMap", backref=db.backref("seats", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "seat_map_id": self.seat_map_id,
            "code": self.code,
            "row_label": self.row_label,
            "number": self.number,
            "is_accessible": self.is_accessible,
            "is_active": self.is_active,
        }


class Room(db.Model):
    __tablename__ = "rooms"
    __table_args__ = (
        db.UniqueConstraint("company_id", "name", name="uq_rooms_company_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    name = db.Column(db.String(80), nullable=False)
    capacity = db.Column(db.Integer, nullable=False)
    room_type = db.Column(db.String(16), nullable=False, default="TWO_D")
    seat_map_id = db.Column(db.Integer, db.ForeignKey("seat_maps.id"), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    seat_map = db.relationship("SeatMap")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "company_id": self.company_id,
            "name": self.name,
            "capacity": self.capacity,
            "room_type": self.room_type,
            "seat_map_id": self.seat_map_id,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }
