# Overview: Helpers shared by the API blueprints.

from flask import current_app, g, jsonify, request

from ..extensions import db
from ..services.audit_service import AuditLogger


def success(data=None, message: str = "OK", status: int = 200):
    return jsonify({"success": True, "data": data, "message": message}), status


def internal_error(log_message: str):
    current_app.logger.exception(log_message)
    return jsonify({"success": False, "message": "Internal server error"}), 500


def request_audit() -> AuditLogger:
    """Audit writer bound to the authenticated caller and the current request."""
    return AuditLogger(
        db.session,
        g.company_id,
        actor_cpf=g.current_employee.cpf,
        ip_address=request.remote_addr,
        user_agent=request.headers.get("User-Agent"),
    )
