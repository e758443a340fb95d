from __future__ import annotations

from ..extensions import db
from millet.time_utils import to_utc_z


class ActivityLog(db.Model):
    """
    Append-only operator-facing audit trail.

    source is a human label such as "Central Depot (Admin)"; the optional
    warehouse/distributor ids let each dashboard filter its own entries
    without matching on the label text. Rows are never updated or deleted.
    """
    __tablename__ = "activity_logs"
    __table_args__ = (
        db.Index("ix_activity_logs_warehouse_ts", "warehouse_id", "timestamp"),
        db.Index("ix_activity_logs_distributor_ts", "distributor_id", "timestamp"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    source = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False)

    warehouse_id = db.Column(db.Integer, db.ForeignKey("warehouses.id"), nullable=True)
    distributor_id = db.Column(db.Integer, db.ForeignKey("distributors.id"), nullable=True)

    timestamp = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "source": self.source,
            "description": self.description,
            "warehouse_id": self.warehouse_id,
            "distributor_id": self.distributor_id,
            "timestamp": to_utc_z(self.timestamp),
        }
