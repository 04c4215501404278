# Overview: Flask API routes for counter ticket sales, refunds and check-in.

from flask import Blueprint, request, g

from ..errors import CinemaError, error_response
from ..extensions import db
from ..decorators import require_auth, require_role
from ..services.ticket_service import TicketDesk
from ..validation import ReasonRequest, SellTicketRequest
from . import internal_error, request_audit, success


tickets_bp = Blueprint("tickets", __name__, url_prefix="/api/tickets")


@tickets_bp.post("")
@require_auth
def sell_ticket_route():
    try:
        data = SellTicketRequest.from_payload(request.get_json(silent=True))
        ticket = TicketDesk(db.session, g.company_id, audit=request_audit()).sell_ticket(data)
        return success(ticket.to_dict(), "Ticket issued", 201)

    except CinemaError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to sell ticket")


@tickets_bp.post("/<int:ticket_id>/refund")
@require_auth
@require_role("MANAGER", "ADMIN")
def refund_ticket_route(ticket_id: int):
    try:
        data = ReasonRequest.from_payload(request.get_json(silent=True))
        ticket = TicketDesk(db.session, g.company_id, audit=request_audit()).refund_ticket(ticket_id, data.reason)
        return success(ticket.to_dict(), "Ticket refunded")

    except CinemaError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to refund ticket")


@tickets_bp.post("/<int:ticket_id>/use")
@require_auth
def use_ticket_route(ticket_id: int):
    try:
        ticket = TicketDesk(db.session, g.company_id).mark_used(ticket_id)
        return success(ticket.to_dict(), "Ticket checked in")

    except CinemaError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to mark ticket as used")
