# Overview: Request and role decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .services import session_service


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user') and hasattr(g, 'role')


def require_auth(f):
    """
    Require a valid session token.

    Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.role: admin, warehouse or distributor
    - g.warehouse_id: The warehouse a warehouse login acts for (else None)
    - g.distributor_id: The distributor a distributor login acts for (else None)

    Returns 401 if:
    - No Authorization header
    - Invalid or expired token
    - User deleted or deactivated
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"success": False, "message": "Authentication required"}), 401

        token = auth_header.split(" ", 1)[1]

        context = session_service.validate_session(token)

        if not context:
            return jsonify({"success": False, "message": "Invalid or expired token"}), 401

        g.current_user = context.user
        g.role = context.role
        g.warehouse_id = context.warehouse_id
        g.distributor_id = context.distributor_id
        g.session_context = context

        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles: str):
    """
    Require one of the given roles.

    Must be applied after @require_auth.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"success": False, "message": "Authentication required"}), 401

            if g.role not in roles:
                return jsonify({
                    "success": False,
                    "message": "Permission denied",
                    "required_role": list(roles),
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
