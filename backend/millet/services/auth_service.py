# Overview: Service-layer operations for auth; credential storage and verification.

"""
Authentication Service

Every warehouse and distributor has exactly one login row in `users`,
written in the same transaction as the entity it belongs to. Admin logins
are created from the CLI.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor 12)
- Minimum 8 characters, at least one letter and one digit
- Session tokens are issued separately (see session_service.py)
"""

import re

import bcrypt

from ..extensions import db
from ..errors import ConflictError, ValidationError
from ..models import User
from ..models.auth import ROLES, ROLE_ADMIN
from millet.time_utils import utcnow

BCRYPT_ROUNDS = 12


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - Minimum 8 characters
    - At least one letter
    - At least one digit

    Raises PasswordValidationError if requirements not met.
    """
    if not isinstance(password, str) or len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Za-z]', password):
        raise PasswordValidationError("Password must contain at least one letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt with cost factor 12.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    Returns True if password matches hash, False otherwise (including a
    malformed stored hash). bcrypt.checkpw is timing-safe.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def normalize_username(username: str) -> str:
    return (username or "").strip().lower()


def create_credential(
    session,
    *,
    username: str,
    password: str,
    role: str,
    warehouse_id: int | None = None,
    distributor_id: int | None = None,
) -> User:
    """
    Add a login row to the enclosing transaction.

    Raises ConflictError when the username is taken. Never commits; callers
    create the owning warehouse/distributor in the same unit of work.
    """
    if role not in ROLES:
        raise ValidationError(f"role must be one of {', '.join(ROLES)}")

    username = normalize_username(username)
    if session.query(User.id).filter_by(username=username).first():
        raise ConflictError("Email already exists. Please use a different one.")

    user = User(
        username=username,
        password_hash=hash_password(password),
        role=role,
        warehouse_id=warehouse_id,
        distributor_id=distributor_id,
    )
    session.add(user)
    session.flush()
    return user


def rename_credential(session, user: User, new_username: str) -> None:
    """Keep the login in step with an owner's changed email."""
    new_username = normalize_username(new_username)
    if new_username == user.username:
        return
    taken = session.query(User.id).filter(User.username == new_username, User.id != user.id).first()
    if taken:
        raise ConflictError("Email already exists. Please use a different one.")
    user.username = new_username


def create_admin(username: str, password: str) -> User:
    """Create an admin login (CLI bootstrap)."""
    user = create_credential(db.session, username=username, password=password, role=ROLE_ADMIN)
    db.session.commit()
    return user


def authenticate(username: str, password: str) -> User | None:
    """
    Authenticate user with username (email) and password.

    Returns User if credentials valid, None otherwise.
    Updates last_login_at timestamp on successful authentication.
    """
    user = db.session.query(User).filter(
        User.username == normalize_username(username),
        User.is_active.is_(True),
    ).first()

    if user is None or not verify_password(password, user.password_hash):
        return None

    user.last_login_at = utcnow()
    db.session.commit()
    return user
