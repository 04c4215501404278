# Overview: Request decorators establishing caller identity and tenant context.

from functools import wraps
from flask import request, jsonify, g

from .extensions import db
from .services import token_service


def _is_authenticated() -> bool:
    return hasattr(g, 'current_employee') and hasattr(g, 'company_id')


def require_auth(f):
    """
    Require a valid bearer token and establish tenant context.

    Sets:
    - g.current_employee: the authenticated Employee
    - g.company_id: tenant of every core call made by the route
    - g.auth_context: the full AuthContext

    Returns 401 on a missing, unknown, expired or revoked token, or when
    the employee or company has been deactivated.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"success": False, "message": "Authentication required"}), 401

        token = auth_header.split(" ", 1)[1].strip()
        context = token_service.validate_token(db.session, token)

        if not context:
            return jsonify({"success": False, "message": "Invalid or expired token"}), 401

        g.current_employee = context.employee
        g.company_id = context.company_id
        g.auth_context = context

        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles):
    """Allow only employees whose role is one of roles. Use after @require_auth."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"success": False, "message": "Authentication required"}), 401

            if g.current_employee.role not in roles:
                return jsonify({
                    "success": False,
                    "message": "Permission denied",
                    "required_roles": list(roles),
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
