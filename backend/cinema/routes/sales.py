# Overview: Flask API routes for the sale aggregate and its finalization.

"""Sales: cart lines, discounts, payments, finalize and cancel"""

from flask import Blueprint, current_app, request, g

from ..errors import CinemaError, error_response
from ..extensions import db
from ..decorators import require_auth
from ..models import Payment, SaleDiscount
from ..services.discount_service import DiscountEvaluator
from ..services.finalize_service import SaleFinalizer
from ..services.sales_service import SaleAggregate
from ..validation import (
    ApplyDiscountRequest,
    CreateSaleRequest,
    PaymentInput,
    ReasonRequest,
    parse_payments,
    parse_sale_item,
)
from . import internal_error, request_audit, success


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


def _usage_counted_at() -> str:
    return current_app.config["DISCOUNT_USAGE_COUNTED_AT"]


@sales_bp.post("")
@require_auth
def create_sale_route():
    """Open a new sale for the authenticated cashier."""
    try:
        data = CreateSaleRequest.from_payload(request.get_json(silent=True))
        sale = SaleAggregate(db.session, g.company_id).create(g.current_employee.cpf, data.buyer_cpf)
        return success(sale.to_dict(), "Sale created", 201)

    except CinemaError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to create sale")


@sales_bp.get("/<int:sale_id>")
@require_auth
def get_sale_route(sale_id: int):
    """Sale with items, applied discounts and payments."""
    try:
        aggregate = SaleAggregate(db.session, g.company_id)
        sale = aggregate.get(sale_id)
        discounts = db.session.query(SaleDiscount).filter_by(sale_id=sale.id).order_by(SaleDiscount.id).all()
        payments = db.session.query(Payment).filter_by(sale_id=sale.id).order_by(Payment.id).all()
        total_paid = aggregate.total_paid(sale.id)

        return success({
            "sale": sale.to_dict(),
            "items": [item.to_dict() for item in aggregate.items(sale.id)],
            "discounts": [d.to_dict() for d in discounts],
            "payments": [p.to_dict() for p in payments],
            "total_paid_cents": total_paid,
            "remaining_balance_cents": max(0, sale.grand_total_cents - total_paid),
        })

    except CinemaError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to load sale")


@sales_bp.post("/<int:sale_id>/items")
@require_auth
def add_item_route(sale_id: int):
    """
    Add a TICKET line (session_id, seat_code, reservation_token) or a
    PRODUCT line (sku, quantity).
    """
    try:
        item = parse_sale_item(request.get_json(silent=True))
        aggregate = SaleAggregate(db.session, g.company_id)
        line = aggregate.add_item(sale_id, item)
        sale = aggregate.get(sale_id)
        return success({"item": line.to_dict(), "sale": sale.to_dict()}, "Item added", 201)

    except CinemaError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to add sale item")


@sales_bp.delete("/<int:sale_id>/items/<int:item_id>")
@require_auth
def remove_item_route(sale_id: int, item_id: int):
    try:
        totals = SaleAggregate(db.session, g.company_id).remove_item(sale_id, item_id)
        return success(totals.to_dict(), "Item removed")

    except CinemaError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to remove sale item")


@sales_bp.post("/<int:sale_id>/discounts")
@require_auth
def apply_discount_route(sale_id: int):
    try:
        data = ApplyDiscountRequest.from_payload(request.get_json(silent=True))
        evaluator = DiscountEvaluator(
            db.session,
            g.company_id,
            usage_counted_at=_usage_counted_at(),
            audit=request_audit(),
        )
        application = evaluator.apply(sale_id, data.code)
        return success(application.to_dict(), "Discount applied")

    except CinemaError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to apply discount")


@sales_bp.delete("/<int:sale_id>/discounts/<string:code>")
@require_auth
def remove_discount_route(sale_id: int, code: str):
    try:
        evaluator = DiscountEvaluator(
            db.session,
            g.company_id,
            usage_counted_at=_usage_counted_at(),
            audit=request_audit(),
        )
        totals = evaluator.remove(sale_id, code)
        return success(totals.to_dict(), "Discount removed")

    except CinemaError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to remove discount")


@sales_bp.post("/<int:sale_id>/payments")
@require_auth
def add_payment_route(sale_id: int):
    try:
        data = PaymentInput.from_payload(request.get_json(silent=True))
        result = SaleAggregate(db.session, g.company_id).add_payment(
            sale_id, data.method, data.amount_cents, data.auth_code
        )
        return success(result, "Payment recorded", 201)

    except CinemaError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to record payment")


@sales_bp.post("/<int:sale_id>/finalize")
@require_auth
def finalize_sale_route(sale_id: int):
    """
    Finalize with optional extra payments: {"payments": [{"method", "amount_cents"}]}.

    Issues tickets for every ticket line; nothing is persisted on failure.
    """
    try:
        payments = parse_payments(request.get_json(silent=True))
        finalizer = SaleFinalizer(
            db.session,
            g.company_id,
            usage_counted_at=_usage_counted_at(),
            audit=request_audit(),
        )
        result = finalizer.finalize(sale_id, payments)
        return success(result.to_dict(), "Sale finalized")

    except CinemaError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to finalize sale")


@sales_bp.post("/<int:sale_id>/cancel")
@require_auth
def cancel_sale_route(sale_id: int):
    try:
        data = ReasonRequest.from_payload(request.get_json(silent=True))
        finalizer = SaleFinalizer(db.session, g.company_id, audit=request_audit())
        result = finalizer.cancel(sale_id, data.reason)
        return success(result, "Sale canceled")

    except CinemaError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to cancel sale")
