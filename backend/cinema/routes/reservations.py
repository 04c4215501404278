# Overview: Flask API routes for checkout seat holds.

from flask import Blueprint, current_app, request, g

from ..errors import CinemaError, error_response
from ..extensions import db
from ..decorators import require_auth
from ..services.reservation_service import SeatReservationManager
from ..validation import ReleaseReservationRequest, ReserveSeatsRequest
from . import internal_error, request_audit, success


reservations_bp = Blueprint("seat_reservations", __name__, url_prefix="/api/seat-reservations")


def _manager(audit=None) -> SeatReservationManager:
    return SeatReservationManager(
        db.session,
        g.company_id,
        hold_minutes=current_app.config["SEAT_HOLD_MINUTES"],
        audit=audit,
    )


@reservations_bp.post("")
@require_auth
def reserve_seats_route():
    """
    Hold seats for a checkout token. All-or-nothing.

    409 with {"reserved": [], "conflicts": [...]} when any seat is taken.
    """
    try:
        data = ReserveSeatsRequest.from_payload(request.get_json(silent=True))
        result = _manager(request_audit()).reserve(data.session_id, list(data.seat_codes), data.reservation_token)
        return success(result.to_dict(), "Seats reserved", 201)

    except CinemaError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to reserve seats")


@reservations_bp.post("/release")
@require_auth
def release_reservation_route():
    try:
        data = ReleaseReservationRequest.from_payload(request.get_json(silent=True))
        released = _manager(request_audit()).release(data.reservation_token)
        return success({"reservation_token": data.reservation_token, "released": released}, "Reservation released")

    except CinemaError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to release reservation")


@reservations_bp.post("/cleanup")
@require_auth
def cleanup_reservations_route():
    """Delete this company's expired holds."""
    try:
        removed = _manager().sweep_expired()
        return success({"removed": removed}, f"Removed {removed} expired reservations")

    except CinemaError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to clean up reservations")
