# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes

- POST /login and POST /api/auth/login accept {email|username, password}
- Success returns a signed session token valid for TOKEN_TTL_HOURS
- The token goes in the Authorization: Bearer header of protected routes
"""

from flask import Blueprint, g

from ..errors import ServiceError
from ..services import auth_service
from ..services import session_service
from ..decorators import require_auth
from .common import ok, service_error, internal_error, json_body


auth_bp = Blueprint("auth", __name__)


def _login():
    try:
        data = json_body()
        username = data.get("username") or data.get("email")
        password = data.get("password")

        if not username or not password:
            return {"success": False, "message": "email and password required"}, 400

        user = auth_service.authenticate(username, password)
        if not user:
            return {"success": False, "message": "Invalid credentials"}, 401

        token = session_service.issue_token(user)
        return ok({
            "token": token,
            "role": user.role,
            "user": user.to_dict(),
        }, message="Login successful")

    except ServiceError as e:
        return service_error(e)
    except Exception:
        return internal_error("Failed to login user")


@auth_bp.post("/login")
def login_route():
    return _login()


@auth_bp.post("/api/auth/login")
def api_login_route():
    return _login()


@auth_bp.get("/api/auth/me")
@require_auth
def me_route():
    """Identity behind the presented token."""
    return ok({
        "user": g.current_user.to_dict(),
        "role": g.role,
        "warehouse_id": g.warehouse_id,
        "distributor_id": g.distributor_id,
    })
