# Overview: Service-layer operations for session tokens; issue and validate signed JWTs.

"""
Session Token Service

Tokens are HS256-signed JWTs carrying the user id, the role, and the
warehouse/distributor the login acts for. They expire TOKEN_TTL_HOURS
(2 by default) after issue.

validate_session re-reads the user on every request so a deleted or
deactivated login stops working immediately, even with an unexpired token.
"""

from dataclasses import dataclass

import jwt
from flask import current_app

from ..extensions import db
from ..models import User
from millet.time_utils import token_expiry, utcnow


@dataclass
class SessionContext:
    """Identity established for an authenticated request."""
    user: User
    role: str
    warehouse_id: int | None
    distributor_id: int | None


def issue_token(user: User) -> str:
    """Sign a token for user, valid for TOKEN_TTL_HOURS."""
    now = utcnow()
    payload = {
        "sub": str(user.id),
        "role": user.role,
        "warehouse_id": user.warehouse_id,
        "distributor_id": user.distributor_id,
        "iat": now,
        "exp": token_expiry(current_app.config["TOKEN_TTL_HOURS"], now),
    }
    return jwt.encode(
        payload,
        current_app.config["JWT_SECRET"],
        algorithm=current_app.config["JWT_ALGORITHM"],
    )


def decode_token(token: str) -> dict | None:
    """Verified claims, or None for a bad signature, malformed or expired token."""
    try:
        return jwt.decode(
            token,
            current_app.config["JWT_SECRET"],
            algorithms=[current_app.config["JWT_ALGORITHM"]],
        )
    except jwt.PyJWTError:
        return None


def validate_session(token: str) -> SessionContext | None:
    """
    Validate token and return SessionContext if valid.

    Returns None if:
    - Token is invalid or expired
    - User no longer exists or is deactivated
    - Role in the token no longer matches the stored role
    """
    claims = decode_token(token)
    if not claims:
        return None

    try:
        user_id = int(claims.get("sub"))
    except (TypeError, ValueError):
        return None

    user = db.session.get(User, user_id)
    if user is None or not user.is_active:
        return None
    if user.role != claims.get("role"):
        return None

    return SessionContext(
        user=user,
        role=user.role,
        warehouse_id=user.warehouse_id,
        distributor_id=user.distributor_id,
    )
