# Overview: Service-layer operations for movies, rooms and seat maps.

from __future__ import annotations

import string

from ..errors import ConflictError, NotFoundError, ValidationError
from ..models import Company, Movie, Room, Seat, SeatMap
from ..models.catalog import ROOM_TYPES


MAX_ROWS = len(string.ascii_uppercase)


def _require_company(session, company_id: int) -> Company:
    company = session.query(Company).filter_by(id=company_id).first()
    if not company:
        raise NotFoundError("Company not found")
    return company


def add_movie(session, company_id: int, title: str, duration_min: int, genre: str | None = None, rating: str | None = None) -> Movie:
    _require_company(session, company_id)
    if duration_min <= 0:
        raise ValidationError("duration_min must be positive")

    movie = Movie(
        company_id=company_id,
        title=title.strip(),
        duration_min=duration_min,
        genre=genre,
        rating=rating,
        is_active=True,
    )
    session.add(movie)
    session.commit()
    return movie


def seat_codes(rows: int, cols: int) -> list[tuple[str, int, str]]:
    """(row_label, number, code) for a rows x cols grid: A1..A<cols>, B1.."""
    if not 1 <= rows <= MAX_ROWS:
        raise ValidationError(f"rows must be between 1 and {MAX_ROWS}")
    if cols < 1:
        raise ValidationError("cols must be positive")
    return [
        (label, number, f"{label}{number}")
        for label in string.ascii_uppercase[:rows]
        for number in range(1, cols + 1)
    ]


def add_room(session, company_id: int, name: str, rows: int, cols: int, room_type: str = "TWO_D", accessible_rows: int = 0) -> Room:
    """
    Create a room with its own seat map.

    The last accessible_rows rows are flagged is_accessible.
    """
    _require_company(session, company_id)
    if room_type not in ROOM_TYPES:
        raise ValidationError(f"room_type must be one of {', '.join(ROOM_TYPES)}")
    layout = seat_codes(rows, cols)

    if session.query(Room).filter_by(company_id=company_id, name=name).first():
        raise ConflictError(f"Room '{name}' already exists")

    seat_map = SeatMap(company_id=company_id, name=f"{name} layout", rows=rows, cols=cols, version=1)
    session.add(seat_map)
    session.flush()

    accessible_labels = set(string.ascii_uppercase[max(0, rows - accessible_rows):rows]) if accessible_rows else set()
    for label, number, code in layout:
        session.add(Seat(
            seat_map_id=seat_map.id,
            code=code,
            row_label=label,
            number=number,
            is_accessible=label in accessible_labels,
            is_active=True,
        ))

    room = Room(
        company_id=company_id,
        name=name,
        capacity=len(layout),
        room_type=room_type,
        seat_map_id=seat_map.id,
        is_active=True,
    )
    session.add(room)
    session.commit()
    return room
