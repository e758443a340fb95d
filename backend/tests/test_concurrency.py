# Overview: Threaded tests for the stock ledger and order transitions on a shared database file.

"""
Concurrency Tests

Each worker runs in its own thread with its own app context and session,
against a file-backed SQLite database so the workers really contend.

- concurrent first receipts of a never-stocked pair all land
- concurrent deliveries into a never-stocked distributor pair all land
- N orders racing for the whole stock: exactly one ships
- N dispatches of the same order: exactly one ships, stock debited once
"""

import threading

import pytest

from millet import create_app
from millet.extensions import db
from millet.models import OrderStatusHistory, WarehouseInventory, DistributorStock
from millet.models.orders import ORDER_STATUS_SHIPPED
from millet.services import catalog_service, inventory_service, network_service, order_service, stock_service
from millet.services.stock_service import StockLocation

WORKERS = 8
PASSWORD = "Password123"


@pytest.fixture
def file_app(tmp_path):
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'concurrency.db'}",
        'SQLALCHEMY_ENGINE_OPTIONS': {"connect_args": {"timeout": 30, "check_same_thread": False}},
        'JWT_SECRET': 'test-secret',
        'LOG_LEVEL': 'WARNING',
    })
    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


@pytest.fixture
def seeded(file_app):
    """Ids of one product, one warehouse and one distributor in the shared file."""
    with file_app.app_context():
        product = catalog_service.create_product(patch={
            "sku": "KODO-500G",
            "name": "Kodo Millet 500g",
            "ean": "8901234567891",
            "unit": "pack",
            "mrp_cents": 6000,
            "selling_price_cents": 5500,
        })
        warehouse = network_service.create_warehouse(
            patch={"name": "Race Depot", "location": "Pune", "email": "race@millet.test"},
            password=PASSWORD,
        )
        distributor = network_service.create_distributor(
            patch={"name": "Race Grains", "email": "grains@millet.test", "city": "Pune",
                   "warehouse_id": warehouse.id},
            password=PASSWORD,
        )
        return {
            "product_id": product.id,
            "sku": product.sku,
            "warehouse_id": warehouse.id,
            "distributor_id": distributor.id,
        }


def _run_workers(app, target, args_list):
    """Start one thread per args tuple together; return each worker's outcome."""
    results = []
    lock = threading.Lock()
    barrier = threading.Barrier(len(args_list))

    def worker(*args):
        with app.app_context():
            try:
                barrier.wait()
                target(*args)
                with lock:
                    results.append("ok")
            except Exception as exc:
                with lock:
                    results.append(type(exc).__name__)
            finally:
                db.session.remove()

    threads = [threading.Thread(target=worker, args=args) for args in args_list]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return results


def _place_orders(seeded, count, quantity):
    return [
        order_service.place_order(
            seeded["distributor_id"],
            [{"product_id": seeded["product_id"], "quantity": quantity}],
        ).id
        for _ in range(count)
    ]


def _shipped_rows(order_ids=None):
    query = db.session.query(OrderStatusHistory).filter(OrderStatusHistory.status == ORDER_STATUS_SHIPPED)
    if order_ids is not None:
        query = query.filter(OrderStatusHistory.order_id.in_(order_ids))
    return query.count()


class TestConcurrentCredit:
    def test_first_receipts_of_same_pair_all_land(self, file_app, seeded):
        results = _run_workers(
            file_app,
            inventory_service.add_warehouse_stock,
            [(seeded["warehouse_id"], seeded["sku"], 1)] * WORKERS,
        )

        assert results == ["ok"] * WORKERS
        with file_app.app_context():
            location = StockLocation.warehouse(seeded["warehouse_id"])
            assert stock_service.get_quantity(db.session, location, seeded["product_id"]) == WORKERS
            assert db.session.query(WarehouseInventory).count() == 1

    def test_concurrent_deliveries_into_unstocked_pair(self, file_app, seeded):
        with file_app.app_context():
            inventory_service.add_warehouse_stock(seeded["warehouse_id"], seeded["sku"], WORKERS)
            order_ids = _place_orders(seeded, WORKERS, 1)
            for order_id in order_ids:
                order_service.dispatch_order(order_id)

        results = _run_workers(file_app, order_service.confirm_delivery, [(oid,) for oid in order_ids])

        assert results == ["ok"] * WORKERS
        with file_app.app_context():
            location = StockLocation.distributor(seeded["distributor_id"])
            assert stock_service.get_quantity(db.session, location, seeded["product_id"]) == WORKERS
            assert db.session.query(DistributorStock).count() == 1


class TestConcurrentDispatch:
    def test_orders_racing_for_whole_stock(self, file_app, seeded):
        with file_app.app_context():
            inventory_service.add_warehouse_stock(seeded["warehouse_id"], seeded["sku"], 5)
            order_ids = _place_orders(seeded, WORKERS, 5)

        results = _run_workers(file_app, order_service.dispatch_order, [(oid,) for oid in order_ids])

        assert results.count("ok") == 1
        assert results.count("InsufficientStockError") == WORKERS - 1
        with file_app.app_context():
            location = StockLocation.warehouse(seeded["warehouse_id"])
            assert stock_service.get_quantity(db.session, location, seeded["product_id"]) == 0
            assert _shipped_rows(order_ids) == 1

    def test_same_order_dispatched_once(self, file_app, seeded):
        with file_app.app_context():
            inventory_service.add_warehouse_stock(seeded["warehouse_id"], seeded["sku"], 100)
            order_id = _place_orders(seeded, 1, 3)[0]

        results = _run_workers(file_app, order_service.dispatch_order, [(order_id,)] * WORKERS)

        assert results.count("ok") == 1
        assert results.count("InvalidTransitionError") == WORKERS - 1
        with file_app.app_context():
            location = StockLocation.warehouse(seeded["warehouse_id"])
            assert stock_service.get_quantity(db.session, location, seeded["product_id"]) == 97
            assert _shipped_rows([order_id]) == 1
