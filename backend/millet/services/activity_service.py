# Overview: Service-layer operations for the activity log; append-only audit entries.

from __future__ import annotations

from ..extensions import db
from ..errors import NotFoundError, ValidationError
from ..models import ActivityLog, Warehouse
from .concurrency import run_in_transaction
"""
Activity Log Invariants (authoritative)

- Append-only: rows are never updated or deleted.
- No domain/business logic here; callers decide what to record.
- Entries are written inside the same DB transaction as the domain event
  they describe, so a rolled-back workflow leaves no entry behind.
"""

DEFAULT_LIMIT = 50


def source_label(name: str, actor: str | None = None) -> str:
    """Human label for the originating location, e.g. "Central Depot (Admin)"."""
    if actor:
        return f"{name} ({actor})"
    return name


def append_activity(
    session,
    *,
    source: str,
    description: str,
    warehouse_id: int | None = None,
    distributor_id: int | None = None,
) -> ActivityLog:
    """
    Append one activity entry to the enclosing transaction.

    Flushes so the id is assigned; never commits.
    """
    entry = ActivityLog(
        source=source,
        description=description,
        warehouse_id=warehouse_id,
        distributor_id=distributor_id,
    )
    session.add(entry)
    session.flush()
    return entry


def list_activity(
    *,
    warehouse_id: int | None = None,
    distributor_id: int | None = None,
    limit: int = DEFAULT_LIMIT,
) -> list[ActivityLog]:
    """Latest entries first, optionally scoped to one warehouse or distributor."""
    query = db.session.query(ActivityLog)
    if warehouse_id is not None:
        query = query.filter(ActivityLog.warehouse_id == warehouse_id)
    if distributor_id is not None:
        query = query.filter(ActivityLog.distributor_id == distributor_id)
    return (
        query.order_by(ActivityLog.timestamp.desc(), ActivityLog.id.desc())
        .limit(limit)
        .all()
    )


def record_manual_activity(*, warehouse_id: int, user_name: str, description: str) -> ActivityLog:
    """Free-text entry typed by a warehouse operator."""
    user_name = (user_name or "").strip()
    description = (description or "").strip()
    if not user_name or not description:
        raise ValidationError("user_name and description are required")

    def _op(session):
        warehouse = session.get(Warehouse, warehouse_id)
        if warehouse is None:
            raise NotFoundError(f"Warehouse {warehouse_id} not found")
        return append_activity(
            session,
            source=source_label(warehouse.name, user_name),
            description=description,
            warehouse_id=warehouse.id,
        )

    return run_in_transaction(_op)
