from __future__ import annotations

from ..extensions import db
from millet.time_utils import to_utc_z


class Warehouse(db.Model):
    """
    A stocking location that ships to distributors and sells to customers.

    Every warehouse has exactly one login (User with role='warehouse'),
    created and deleted together with it. Other tables reference the
    warehouse by id; the name is display data only.
    """
    __tablename__ = "warehouses"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, unique=True)
    location = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False, unique=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Warehouse id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "location": self.location,
            "email": self.email,
            "created_at": to_utc_z(self.created_at),
        }


class Distributor(db.Model):
    """
    A downstream seller supplied by one assigned warehouse.

    Orders placed by the distributor are routed to warehouse_id. Like
    warehouses, each distributor has exactly one login (role='distributor').
    """
    __tablename__ = "distributors"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), nullable=False, unique=True)
    city = db.Column(db.String(120), nullable=False)
    warehouse_id = db.Column(db.Integer, db.ForeignKey("warehouses.id"), nullable=False, index=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    warehouse = db.relationship("Warehouse", backref=db.backref("distributors", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Distributor id={self.id} name={self.name!r} warehouse_id={self.warehouse_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "city": self.city,
            "warehouse_id": self.warehouse_id,
            "warehouse": self.warehouse.name if self.warehouse else None,
            "created_at": to_utc_z(self.created_at),
        }
