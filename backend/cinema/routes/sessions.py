# Overview: Flask API routes for screenings and seat availability.

"""Screening scheduling and seat map availability"""

from flask import Blueprint, request, g

from ..errors import CinemaError, error_response
from ..extensions import db
from ..decorators import require_auth
from ..services.availability_service import SEAT_AVAILABLE, SEAT_RESERVED, SEAT_SOLD, SeatAvailabilityResolver
from ..services.screening_service import ScreeningScheduler
from ..validation import SessionInput, SessionStatusRequest
from . import internal_error, request_audit, success


sessions_bp = Blueprint("sessions", __name__, url_prefix="/api/sessions")


@sessions_bp.post("")
@require_auth
def create_session_route():
    """Schedule a screening. Rejects overlaps within the same room (409)."""
    try:
        data = SessionInput.from_payload(request.get_json(silent=True))
        scheduler = ScreeningScheduler(db.session, g.company_id, audit=request_audit())
        movie_session = scheduler.create_session(data)
        return success(movie_session.to_dict(), "Session created", 201)

    except CinemaError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to create session")


@sessions_bp.post("/<int:session_id>/status")
@require_auth
def update_session_status_route(session_id: int):
    try:
        data = SessionStatusRequest.from_payload(request.get_json(silent=True))
        scheduler = ScreeningScheduler(db.session, g.company_id, audit=request_audit())
        movie_session = scheduler.update_status(session_id, data.status)
        return success(movie_session.to_dict(), f"Session is now {movie_session.status}")

    except CinemaError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to update session status")


@sessions_bp.get("/<int:session_id>/seats")
@require_auth
def session_seats_route(session_id: int):
    """Every active seat of the session's room with AVAILABLE / RESERVED / SOLD."""
    try:
        resolver = SeatAvailabilityResolver(db.session, g.company_id)
        states = resolver.snapshot(session_id)

        summary = {SEAT_AVAILABLE: 0, SEAT_RESERVED: 0, SEAT_SOLD: 0}
        for state in states:
            summary[state.status] += 1

        return success({
            "session_id": session_id,
            "seats": [state.to_dict() for state in states],
            "summary": {
                "total": len(states),
                "available": summary[SEAT_AVAILABLE],
                "reserved": summary[SEAT_RESERVED],
                "sold": summary[SEAT_SOLD],
            },
        })

    except CinemaError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to load seat availability")
