# Overview: Stock ledger primitives; quantity on hand per (location, product).

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import func
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError

from ..errors import InsufficientStockError, ValidationError
from ..models import WarehouseInventory, DistributorStock
"""
Stock Ledger Invariants (authoritative)

- Single source of truth for quantity on hand per (location kind, location id, product id).
- Quantity never goes negative. Every debit is an atomic conditional update
  (qty = qty - n WHERE qty >= n) that must touch exactly one row; a failed
  debit mutates nothing.
- A missing row means "never stocked" and reads as 0. Debiting a missing row
  fails the same way as debiting an empty one.
- Every function takes the caller's session and only flushes. The enclosing
  workflow owns the transaction; the ledger never commits on its own.
"""

WAREHOUSE = "warehouse"
DISTRIBUTOR = "distributor"


@dataclass(frozen=True)
class StockLocation:
    kind: str
    id: int

    @classmethod
    def warehouse(cls, warehouse_id: int) -> "StockLocation":
        return cls(WAREHOUSE, warehouse_id)

    @classmethod
    def distributor(cls, distributor_id: int) -> "StockLocation":
        return cls(DISTRIBUTOR, distributor_id)


_TABLES = {
    WAREHOUSE: (WarehouseInventory, "warehouse_id"),
    DISTRIBUTOR: (DistributorStock, "distributor_id"),
}


def _table(location: StockLocation):
    try:
        return _TABLES[location.kind]
    except KeyError:
        raise ValueError(f"unknown stock location kind: {location.kind}")


def _pair(location: StockLocation, product_id: int):
    model, key = _table(location)
    return model, (getattr(model, key) == location.id, model.product_id == product_id)


def _require_positive(qty) -> int:
    if isinstance(qty, bool) or not isinstance(qty, int) or qty <= 0:
        raise ValidationError("quantity must be a positive integer")
    return qty


def get_quantity(session, location: StockLocation, product_id: int) -> int:
    """Current quantity on hand; 0 when the pair was never stocked."""
    model, criteria = _pair(location, product_id)
    qty = session.query(func.coalesce(func.sum(model.qty), 0)).filter(*criteria).scalar()
    return int(qty or 0)


def _upsert_statement(session, model, values: dict, key: str, qty: int):
    """INSERT ... ON CONFLICT (location, product) DO UPDATE qty = qty + n, or None if unsupported."""
    dialect = session.get_bind().dialect.name
    if dialect == "sqlite":
        stmt = sqlite_insert(model).values(**values)
    elif dialect == "postgresql":
        stmt = pg_insert(model).values(**values)
    else:
        return None
    return stmt.on_conflict_do_update(
        index_elements=[key, "product_id"],
        set_={"qty": model.qty + qty, "updated_at": func.now()},
    )


def credit(session, location: StockLocation, product_id: int, qty: int) -> int:
    """
    Add qty to the pair, creating the row on first receipt.

    The insert-or-add is one statement, so concurrent first receipts for the
    same pair both land. Returns the new quantity on hand.
    """
    _require_positive(qty)
    model, criteria = _pair(location, product_id)
    _, key = _table(location)
    values = {key: location.id, "product_id": product_id, "qty": qty}

    stmt = _upsert_statement(session, model, values, key, qty)
    if stmt is not None:
        session.execute(stmt)
    else:
        try:
            with session.begin_nested():
                session.add(model(**values))
        except IntegrityError:
            session.query(model).filter(*criteria).update(
                {model.qty: model.qty + qty}, synchronize_session="fetch"
            )
    session.flush()
    return get_quantity(session, location, product_id)


def debit(
    session,
    location: StockLocation,
    product_id: int,
    qty: int,
    *,
    product_name: str | None = None,
) -> int:
    """
    Remove qty from the pair.

    Raises InsufficientStockError (naming the product) when fewer than qty
    units are on hand; nothing is changed in that case. Returns the new
    quantity on hand.
    """
    _require_positive(qty)
    model, criteria = _pair(location, product_id)

    updated = (
        session.query(model)
        .filter(*criteria, model.qty >= qty)
        .update({model.qty: model.qty - qty}, synchronize_session="fetch")
    )
    if updated != 1:
        available = get_quantity(session, location, product_id)
        raise InsufficientStockError(
            product_id=product_id,
            requested=qty,
            available=available,
            product_name=product_name,
        )
    session.flush()
    return get_quantity(session, location, product_id)


def check_available(
    session,
    location: StockLocation,
    product_id: int,
    qty: int,
    *,
    product_name: str | None = None,
) -> int:
    """
    Read-only sufficiency check used to validate a whole basket before any
    write. The debit itself re-checks atomically.
    """
    _require_positive(qty)
    available = get_quantity(session, location, product_id)
    if available < qty:
        raise InsufficientStockError(
            product_id=product_id,
            requested=qty,
            available=available,
            product_name=product_name,
        )
    return available
