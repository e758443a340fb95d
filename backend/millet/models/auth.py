from __future__ import annotations

from ..extensions import db
from millet.time_utils import to_utc_z

ROLE_ADMIN = "admin"
ROLE_WAREHOUSE = "warehouse"
ROLE_DISTRIBUTOR = "distributor"
ROLES = (ROLE_ADMIN, ROLE_WAREHOUSE, ROLE_DISTRIBUTOR)


class User(db.Model):
    """
    Login identity.

    One row per login. Warehouse and distributor logins point at the entity
    they act for; the row is created and deleted in the same transaction as
    that entity, so a credential exists if and only if its owner does.
    Admin logins carry neither link.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.CheckConstraint(
            "role IN ('admin', 'warehouse', 'distributor')",
            name="ck_users_role",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Login email
    username = db.Column(db.String(255), nullable=False, unique=True, index=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    role = db.Column(db.String(16), nullable=False)

    warehouse_id = db.Column(db.Integer, db.ForeignKey("warehouses.id"), nullable=True, unique=True)
    distributor_id = db.Column(db.Integer, db.ForeignKey("distributors.id"), nullable=True, unique=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)

    warehouse = db.relationship("Warehouse")
    distributor = db.relationship("Distributor")

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username!r} role={self.role}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "role": self.role,
            "warehouse_id": self.warehouse_id,
            "distributor_id": self.distributor_id,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "last_login_at": to_utc_z(self.last_login_at) if self.last_login_at else None,
        }
