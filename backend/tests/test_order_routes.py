# Overview: End-to-end HTTP coverage for stock intake, the order pipeline and sales.

"""
Order Flow API Tests

Drives the full path a distributor order takes over HTTP:
add stock -> place -> dispatch -> confirm delivery -> sell,
and checks that each login can only act on its own warehouse or
distributor.
"""

import pytest


def _json(response):
    return response.get_json()


@pytest.fixture
def wh_headers(login_for, warehouse):
    return login_for(warehouse=warehouse)


@pytest.fixture
def dist_headers(login_for, distributor):
    return login_for(distributor=distributor)


def _place(client, headers, *items):
    return client.post(
        "/api/distributor/orders",
        json={"items": [{"product_id": p.id, "quantity": q} for p, q in items]},
        headers=headers,
    )


class TestOrderFlow:
    def test_full_pipeline(self, client, warehouse, distributor, product_a, wh_headers, dist_headers):
        added = client.post("/api/add-stock", json={"sku": product_a.sku, "qty": 10}, headers=wh_headers)
        assert added.status_code == 200
        assert _json(added)["stock"]["qty"] == 10

        catalogue = _json(client.get("/api/distributor/products", headers=dist_headers))["products"]
        assert [row["sku"] for row in catalogue] == [product_a.sku]

        placed = _place(client, dist_headers, (product_a, 4))
        assert placed.status_code == 201
        order_id = _json(placed)["order_id"]

        stock = _json(client.get("/api/distributor/stock", headers=dist_headers))["stock"]
        assert stock[0]["qty"] == 0
        assert stock[0]["pending_qty"] == 4

        incoming = _json(client.get("/api/warehouse/incoming_orders", headers=wh_headers))
        assert incoming["summary"]["Pending"] == 1
        assert incoming["orders"][0]["order_id"] == order_id

        dispatched = client.post("/api/warehouse/dispatch", json={"order_id": order_id}, headers=wh_headers)
        assert dispatched.status_code == 200
        assert _json(dispatched)["order"]["status"] == "Shipped"

        inventory = _json(client.get("/api/warehouse/inventory", headers=wh_headers))["inventory"]
        assert {row["sku"]: row["qty"] for row in inventory}[product_a.sku] == 6

        confirmed = client.post(
            "/api/distributor/confirm-delivery", json={"order_id": order_id}, headers=dist_headers
        )
        assert confirmed.status_code == 200
        assert _json(confirmed)["order"]["status"] == "Delivered"

        again = client.post(
            "/api/distributor/confirm-delivery", json={"order_id": order_id}, headers=dist_headers
        )
        assert again.status_code == 400
        assert _json(again)["success"] is False

        sale = client.post(
            "/api/distributor/sales",
            json={"items": [{"product_id": product_a.id, "qty": 4, "mrp_cents": 9000,
                             "discount_cents": 4000, "final_value_cents": 32000}]},
            headers=dist_headers,
        )
        assert sale.status_code == 201
        assert _json(sale)["sale_id"]

        stock = _json(client.get("/api/distributor/stock", headers=dist_headers))["stock"]
        assert stock[0]["qty"] == 0

        oversell = client.post(
            "/api/distributor/sales",
            json={"items": [{"product_id": product_a.id, "qty": 1, "final_value_cents": 8000}]},
            headers=dist_headers,
        )
        assert oversell.status_code == 400
        assert product_a.name in _json(oversell)["message"]

    def test_dispatch_without_stock(self, client, product_a, wh_headers, dist_headers):
        order_id = _json(_place(client, dist_headers, (product_a, 2)))["order_id"]

        response = client.post("/api/warehouse/dispatch", json={"order_id": order_id}, headers=wh_headers)

        assert response.status_code == 400
        assert _json(response)["details"]["available"] == 0
        orders = _json(client.get("/api/distributor/orders", headers=dist_headers))["orders"]
        assert orders[0]["status"] == "Pending"

    def test_admin_advances_status(self, client, warehouse, stock_warehouse, product_a, dist_headers, admin_headers):
        stock_warehouse(warehouse.id, product_a, 5)
        order_id = _json(_place(client, dist_headers, (product_a, 5)))["order_id"]

        skipped = client.put(f"/api/admin/orders/{order_id}", json={"status": "Delivered"}, headers=admin_headers)
        assert skipped.status_code == 400

        shipped = client.put(f"/orders/{order_id}", json={"status": "Shipped"}, headers=admin_headers)
        assert shipped.status_code == 200
        assert _json(shipped)["order"]["status"] == "Shipped"

        history = _json(client.get("/api/admin/order-status?limit=5", headers=admin_headers))["history"]
        assert [row["status"] for row in history[:2]] == ["Shipped", "Pending"]

    def test_unknown_order(self, client, wh_headers):
        response = client.post("/api/warehouse/dispatch", json={"order_id": "missing"}, headers=wh_headers)
        assert response.status_code == 404

    def test_bad_items(self, client, dist_headers):
        response = client.post("/api/distributor/orders", json={"items": []}, headers=dist_headers)
        assert response.status_code == 400


class TestScoping:
    def test_other_warehouse_cannot_dispatch(self, client, product_a, other_warehouse, login_for, dist_headers):
        order_id = _json(_place(client, dist_headers, (product_a, 1)))["order_id"]

        response = client.post(
            "/api/warehouse/dispatch",
            json={"order_id": order_id},
            headers=login_for(warehouse=other_warehouse),
        )
        assert response.status_code == 403

    def test_warehouse_cannot_read_other_inventory(self, client, other_warehouse, wh_headers):
        response = client.get(f"/api/warehouse/inventory?warehouseId={other_warehouse.id}", headers=wh_headers)
        assert response.status_code == 403

    def test_warehouse_cannot_stock_other_warehouse(self, client, product_a, other_warehouse, wh_headers):
        response = client.post(
            "/api/add-stock",
            json={"warehouse_id": other_warehouse.id, "sku": product_a.sku, "qty": 1},
            headers=wh_headers,
        )
        assert response.status_code == 403

    def test_admin_must_name_warehouse(self, client, admin_headers, warehouse):
        assert client.get("/api/warehouse/inventory", headers=admin_headers).status_code == 400
        response = client.get(f"/api/warehouse/inventory?warehouseId={warehouse.id}", headers=admin_headers)
        assert response.status_code == 200

    def test_other_distributor_cannot_confirm(
        self, client, warehouse, stock_warehouse, product_a, other_distributor, login_for, dist_headers, wh_headers
    ):
        stock_warehouse(warehouse.id, product_a, 3)
        order_id = _json(_place(client, dist_headers, (product_a, 1)))["order_id"]
        client.post("/api/warehouse/dispatch", json={"order_id": order_id}, headers=wh_headers)

        response = client.post(
            "/api/distributor/confirm-delivery",
            json={"order_id": order_id},
            headers=login_for(distributor=other_distributor),
        )
        assert response.status_code == 403

    def test_distributor_cannot_use_warehouse_routes(self, client, dist_headers):
        assert client.get("/api/warehouse/incoming_orders", headers=dist_headers).status_code == 403


class TestWarehouseCounter:
    def test_customer_order_and_activity(self, client, warehouse, stock_warehouse, product_a, wh_headers):
        stock_warehouse(warehouse.id, product_a, 3)

        saved = client.post(
            "/api/warehouse/orders",
            json={
                "customer_name": "Asha Stores",
                "items": [{"product_id": product_a.id, "quantity": 2, "mrp_cents": 9000,
                           "discount_cents": 0, "selling_price_cents": 16000}],
                "total_cents": 18000,
                "discount_cents": 2000,
                "final_cents": 16000,
            },
            headers=wh_headers,
        )
        assert saved.status_code == 201

        short = client.post(
            "/api/warehouse/orders",
            json={"customer_name": "Asha Stores",
                  "items": [{"product_id": product_a.id, "quantity": 2, "selling_price_cents": 16000}]},
            headers=wh_headers,
        )
        assert short.status_code == 400

        orders = _json(client.get("/api/warehouse/orders", headers=wh_headers))["orders"]
        assert len(orders) == 1

        logged = client.post(
            "/api/activity-logs",
            json={"user_name": "Ravi", "description": "Shelf audit done"},
            headers=wh_headers,
        )
        assert logged.status_code == 201

        logs = _json(client.get("/api/activity-logs", headers=wh_headers))["logs"]
        assert logs[0]["description"] == "Shelf audit done"
        assert len(logs) == 3
