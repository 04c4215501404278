# Overview: Flask API routes for concession stock.

from flask import Blueprint, request, g

from ..errors import CinemaError, error_response
from ..extensions import db
from ..decorators import require_auth, require_role
from ..services import inventory_service
from ..validation import InventoryAdjustmentInput, InventoryItemInput
from . import internal_error, request_audit, success


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.post("")
@require_auth
@require_role("MANAGER", "ADMIN")
def create_inventory_item_route():
    try:
        data = InventoryItemInput.from_payload(request.get_json(silent=True))
        item = inventory_service.create_item(db.session, g.company_id, data)
        return success(item.to_dict(), "Inventory item created", 201)

    except CinemaError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to create inventory item")


def _set_active(sku: str, active: bool):
    item = inventory_service.set_item_active(db.session, g.company_id, sku, active, audit=request_audit())
    return success(item.to_dict(), "Inventory item activated" if active else "Inventory item deactivated")


@inventory_bp.patch("/<string:sku>/deactivate")
@require_auth
@require_role("MANAGER", "ADMIN")
def deactivate_inventory_item_route(sku: str):
    try:
        return _set_active(sku, False)

    except CinemaError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to deactivate inventory item")


@inventory_bp.patch("/<string:sku>/activate")
@require_auth
@require_role("MANAGER", "ADMIN")
def activate_inventory_item_route(sku: str):
    try:
        return _set_active(sku, True)

    except CinemaError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to activate inventory item")


@inventory_bp.post("/<string:sku>/adjust")
@require_auth
@require_role("MANAGER", "ADMIN")
def adjust_inventory_route(sku: str):
    try:
        data = InventoryAdjustmentInput.from_payload(request.get_json(silent=True))
        adjustment = inventory_service.record_adjustment(
            db.session,
            g.company_id,
            sku,
            data,
            actor_cpf=g.current_employee.cpf,
            audit=request_audit(),
        )
        return success(adjustment.to_dict(), "Inventory adjustment recorded", 201)

    except CinemaError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to record inventory adjustment")
