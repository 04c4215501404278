# Overview: Flask API routes for discount codes.

from flask import Blueprint, request, g

from ..errors import CinemaError, error_response
from ..extensions import db
from ..decorators import require_auth, require_role
from ..services.discount_service import DiscountEvaluator
from ..validation import DiscountCodeInput, DiscountCodeUpdate, PreviewDiscountRequest
from . import internal_error, request_audit, success


discounts_bp = Blueprint("discounts", __name__, url_prefix="/api/discounts")


@discounts_bp.post("")
@require_auth
@require_role("MANAGER", "ADMIN")
def create_discount_route():
    try:
        data = DiscountCodeInput.from_payload(request.get_json(silent=True))
        evaluator = DiscountEvaluator(db.session, g.company_id, audit=request_audit())
        discount = evaluator.create_code(data)
        return success(discount.to_dict(), "Discount code created", 201)

    except CinemaError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to create discount code")


@discounts_bp.post("/validate")
@require_auth
def validate_discount_route():
    """Preview a code against a sub-total without touching any sale."""
    try:
        data = PreviewDiscountRequest.from_payload(request.get_json(silent=True))
        evaluator = DiscountEvaluator(db.session, g.company_id)
        preview = evaluator.preview(data.code, data.sub_total_cents, data.buyer_cpf)
        return success(preview, "Discount code is valid")

    except CinemaError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to validate discount code")


@discounts_bp.put("/<string:code>")
@require_auth
@require_role("MANAGER", "ADMIN")
def update_discount_route(code: str):
    try:
        data = DiscountCodeUpdate.from_payload(request.get_json(silent=True))
        evaluator = DiscountEvaluator(db.session, g.company_id, audit=request_audit())
        discount = evaluator.update_code(code, data)
        return success(discount.to_dict(), "Discount code updated")

    except CinemaError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to update discount code")


@discounts_bp.patch("/<string:code>/deactivate")
@require_auth
@require_role("MANAGER", "ADMIN")
def deactivate_discount_route(code: str):
    try:
        evaluator = DiscountEvaluator(db.session, g.company_id, audit=request_audit())
        discount = evaluator.deactivate_code(code)
        return success(discount.to_dict(), "Discount code deactivated")

    except CinemaError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to deactivate discount code")
