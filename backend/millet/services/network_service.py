# Overview: Service-layer operations for warehouses and distributors and their logins.

"""
Warehouse and distributor management.

Each warehouse and distributor owns exactly one login (users row). The
login is created, renamed and deleted in the same transaction as its owner,
so a credential exists if and only if the owner does.

Deletes are refused while business records still point at the entity:
- warehouse: orders, distributors, customer orders
- distributor: orders, sales
Stock rows go with the entity; activity entries keep their text and lose
only the filter link.
"""
from __future__ import annotations

import logging

from ..extensions import db
from ..errors import ConflictError, NotFoundError, ValidationError
from ..models import (
    Warehouse,
    Distributor,
    User,
    Order,
    Sale,
    CustomerOrder,
    WarehouseInventory,
    DistributorStock,
    ActivityLog,
)
from ..models.auth import ROLE_WAREHOUSE, ROLE_DISTRIBUTOR
from .auth_service import create_credential, rename_credential
from .concurrency import lock_for_update, run_in_transaction

logger = logging.getLogger(__name__)

WAREHOUSE_MUTABLE_FIELDS = {"name", "location", "email"}
DISTRIBUTOR_MUTABLE_FIELDS = {"name", "city", "email", "warehouse_id"}


def _require_password(password) -> str:
    if not isinstance(password, str) or not password:
        raise ValidationError("password is required")
    return password


def _credential_for(session, **owner) -> User | None:
    return session.query(User).filter_by(**owner).first()


def _check_email_free(session, email: str, *, exclude_warehouse: int | None = None,
                      exclude_distributor: int | None = None) -> None:
    query = session.query(Warehouse.id).filter(Warehouse.email == email)
    if exclude_warehouse is not None:
        query = query.filter(Warehouse.id != exclude_warehouse)
    taken = query.first()
    if not taken:
        query = session.query(Distributor.id).filter(Distributor.email == email)
        if exclude_distributor is not None:
            query = query.filter(Distributor.id != exclude_distributor)
        taken = query.first()
    if taken:
        raise ConflictError("Email already exists. Please use a different one.")


# ---------------------------------------------------------------------------
# Warehouses
# ---------------------------------------------------------------------------

def list_warehouses() -> list[Warehouse]:
    return db.session.query(Warehouse).order_by(Warehouse.name.asc()).all()


def get_warehouse(warehouse_id: int) -> Warehouse:
    warehouse = db.session.get(Warehouse, warehouse_id)
    if warehouse is None:
        raise NotFoundError(f"Warehouse {warehouse_id} not found")
    return warehouse


def find_warehouse_by_email(email: str) -> Warehouse:
    email = (email or "").strip().lower()
    warehouse = db.session.query(Warehouse).filter(Warehouse.email == email).first()
    if warehouse is None:
        raise NotFoundError("Warehouse not found")
    return warehouse


def create_warehouse(*, patch: dict, password: str) -> Warehouse:
    """Create a warehouse and its login in one transaction."""
    password = _require_password(password)

    def _op(session):
        if session.query(Warehouse.id).filter(Warehouse.name == patch["name"]).first():
            raise ConflictError(f"Warehouse {patch['name']} already exists")
        _check_email_free(session, patch["email"])

        warehouse = Warehouse(
            name=patch["name"],
            location=patch["location"],
            email=patch["email"],
        )
        session.add(warehouse)
        session.flush()

        create_credential(
            session,
            username=warehouse.email,
            password=password,
            role=ROLE_WAREHOUSE,
            warehouse_id=warehouse.id,
        )
        return warehouse

    warehouse = run_in_transaction(_op)
    logger.info("Warehouse created: id=%s name=%s", warehouse.id, warehouse.name)
    return warehouse


def update_warehouse(warehouse_id: int, *, patch: dict) -> Warehouse:
    def _op(session):
        warehouse = lock_for_update(session.query(Warehouse).filter_by(id=warehouse_id)).first()
        if warehouse is None:
            raise NotFoundError(f"Warehouse {warehouse_id} not found")

        if "name" in patch and patch["name"] != warehouse.name:
            taken = session.query(Warehouse.id).filter(
                Warehouse.name == patch["name"], Warehouse.id != warehouse.id
            ).first()
            if taken:
                raise ConflictError(f"Warehouse {patch['name']} already exists")

        if "email" in patch and patch["email"] != warehouse.email:
            _check_email_free(session, patch["email"], exclude_warehouse=warehouse.id)
            credential = _credential_for(session, warehouse_id=warehouse.id)
            if credential is not None:
                rename_credential(session, credential, patch["email"])

        for k, v in patch.items():
            if k in WAREHOUSE_MUTABLE_FIELDS:
                setattr(warehouse, k, v)
        session.flush()
        return warehouse

    return run_in_transaction(_op)


def delete_warehouse(warehouse_id: int) -> None:
    """Delete a warehouse and its login; refused while records reference it."""
    def _op(session):
        warehouse = lock_for_update(session.query(Warehouse).filter_by(id=warehouse_id)).first()
        if warehouse is None:
            raise NotFoundError(f"Warehouse {warehouse_id} not found")

        if session.query(Order.id).filter_by(warehouse_id=warehouse.id).first():
            raise ConflictError("Cannot delete this warehouse. There are orders linked to it.")
        if session.query(Distributor.id).filter_by(warehouse_id=warehouse.id).first():
            raise ConflictError("Cannot delete this warehouse. There are distributors assigned to it.")
        if session.query(CustomerOrder.id).filter_by(warehouse_id=warehouse.id).first():
            raise ConflictError("Cannot delete this warehouse. There are customer orders linked to it.")

        session.query(User).filter_by(warehouse_id=warehouse.id).delete(synchronize_session=False)
        session.query(WarehouseInventory).filter_by(warehouse_id=warehouse.id).delete(synchronize_session=False)
        session.query(ActivityLog).filter_by(warehouse_id=warehouse.id).update(
            {ActivityLog.warehouse_id: None}, synchronize_session=False
        )
        session.delete(warehouse)
        session.flush()

    run_in_transaction(_op)
    logger.info("Warehouse deleted: id=%s", warehouse_id)


# ---------------------------------------------------------------------------
# Distributors
# ---------------------------------------------------------------------------

def list_distributors(warehouse_id: int | None = None) -> list[Distributor]:
    query = db.session.query(Distributor)
    if warehouse_id is not None:
        query = query.filter(Distributor.warehouse_id == warehouse_id)
    return query.order_by(Distributor.name.asc(), Distributor.id.asc()).all()


def get_distributor(distributor_id: int) -> Distributor:
    distributor = db.session.get(Distributor, distributor_id)
    if distributor is None:
        raise NotFoundError(f"Distributor {distributor_id} not found")
    return distributor


def find_distributor_by_email(email: str) -> Distributor:
    email = (email or "").strip().lower()
    distributor = db.session.query(Distributor).filter(Distributor.email == email).first()
    if distributor is None:
        raise NotFoundError("Distributor not found")
    return distributor


def _require_warehouse(session, warehouse_id: int) -> Warehouse:
    warehouse = session.get(Warehouse, warehouse_id)
    if warehouse is None:
        raise ValidationError(f"Warehouse {warehouse_id} does not exist")
    return warehouse


def create_distributor(*, patch: dict, password: str) -> Distributor:
    """Create a distributor assigned to an existing warehouse, with its login."""
    password = _require_password(password)

    def _op(session):
        _require_warehouse(session, patch["warehouse_id"])
        _check_email_free(session, patch["email"])

        distributor = Distributor(
            name=patch["name"],
            email=patch["email"],
            city=patch["city"],
            warehouse_id=patch["warehouse_id"],
        )
        session.add(distributor)
        session.flush()

        create_credential(
            session,
            username=distributor.email,
            password=password,
            role=ROLE_DISTRIBUTOR,
            distributor_id=distributor.id,
        )
        return distributor

    distributor = run_in_transaction(_op)
    logger.info(
        "Distributor created: id=%s name=%s warehouse=%s",
        distributor.id, distributor.name, distributor.warehouse_id,
    )
    return distributor


def update_distributor(distributor_id: int, *, patch: dict) -> Distributor:
    def _op(session):
        distributor = lock_for_update(session.query(Distributor).filter_by(id=distributor_id)).first()
        if distributor is None:
            raise NotFoundError(f"Distributor {distributor_id} not found")

        if "warehouse_id" in patch:
            _require_warehouse(session, patch["warehouse_id"])

        if "email" in patch and patch["email"] != distributor.email:
            _check_email_free(session, patch["email"], exclude_distributor=distributor.id)
            credential = _credential_for(session, distributor_id=distributor.id)
            if credential is not None:
                rename_credential(session, credential, patch["email"])

        for k, v in patch.items():
            if k in DISTRIBUTOR_MUTABLE_FIELDS:
                setattr(distributor, k, v)
        session.flush()
        return distributor

    return run_in_transaction(_op)


def delete_distributor(distributor_id: int) -> None:
    """Delete a distributor and its login; refused while orders or sales reference it."""
    def _op(session):
        distributor = lock_for_update(session.query(Distributor).filter_by(id=distributor_id)).first()
        if distributor is None:
            raise NotFoundError(f"Distributor {distributor_id} not found")

        if session.query(Order.id).filter_by(distributor_id=distributor.id).first():
            raise ConflictError("Cannot delete this distributor. There are orders linked to it.")
        if session.query(Sale.id).filter_by(distributor_id=distributor.id).first():
            raise ConflictError("Cannot delete this distributor. There are sales linked to it.")

        session.query(User).filter_by(distributor_id=distributor.id).delete(synchronize_session=False)
        session.query(DistributorStock).filter_by(distributor_id=distributor.id).delete(synchronize_session=False)
        session.query(ActivityLog).filter_by(distributor_id=distributor.id).update(
            {ActivityLog.distributor_id: None}, synchronize_session=False
        )
        session.delete(distributor)
        session.flush()

    run_in_transaction(_op)
    logger.info("Distributor deleted: id=%s", distributor_id)
