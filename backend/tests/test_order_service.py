# Overview: Pytest coverage for the distributor order pipeline.

"""
Order Pipeline Tests

Pending -> Shipped -> Delivered only. Every rejected transition leaves the
ledger, the status, the history and the activity log untouched; every
successful one writes exactly one history row and one activity entry.
"""

import pytest

from millet.errors import (
    ForbiddenError,
    InsufficientStockError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from millet.models import ActivityLog, Order, OrderLine, OrderStatusHistory
from millet.models.orders import (
    ORDER_STATUS_PENDING,
    ORDER_STATUS_SHIPPED,
    ORDER_STATUS_DELIVERED,
)
from millet.services import order_service, stock_service
from millet.services.stock_service import StockLocation


def _wh_qty(session, warehouse, product):
    return stock_service.get_quantity(session, StockLocation.warehouse(warehouse.id), product.id)


def _dist_qty(session, distributor, product):
    return stock_service.get_quantity(session, StockLocation.distributor(distributor.id), product.id)


def _counts(session):
    return (
        session.query(OrderStatusHistory).count(),
        session.query(ActivityLog).count(),
    )


def _status(session, order_id):
    session.expire_all()
    return session.get(Order, order_id).status


@pytest.fixture
def pending_order(db_session, distributor, product_a, product_b):
    return order_service.place_order(
        distributor.id,
        [{"product_id": product_a.id, "quantity": 5}, {"product_id": product_b.id, "quantity": 3}],
        actor="Distributor",
    )


class TestPlaceOrder:
    def test_routes_to_assigned_warehouse_with_shared_id(self, db_session, warehouse, distributor, pending_order):
        assert pending_order.status == ORDER_STATUS_PENDING
        assert pending_order.warehouse_id == warehouse.id
        assert pending_order.distributor_id == distributor.id
        lines = db_session.query(OrderLine).filter_by(order_id=pending_order.id).all()
        assert sorted(line.quantity for line in lines) == [3, 5]
        assert len(pending_order.id) == 36

    def test_placement_writes_history_and_activity(self, db_session, pending_order):
        history = db_session.query(OrderStatusHistory).filter_by(order_id=pending_order.id).all()
        assert len(history) == 1
        assert history[0].from_status is None
        assert history[0].status == ORDER_STATUS_PENDING
        assert history[0].total_quantity == 8
        assert db_session.query(ActivityLog).filter(
            ActivityLog.description.contains(pending_order.id)
        ).count() == 1

    def test_placement_moves_no_stock(self, db_session, warehouse, stock_warehouse, distributor, product_a):
        stock_warehouse(warehouse.id, product_a, 10)
        order_service.place_order(distributor.id, [{"product_id": product_a.id, "quantity": 4}])
        assert _wh_qty(db_session, warehouse, product_a) == 10

    def test_duplicate_products_are_merged(self, db_session, distributor, product_a):
        order = order_service.place_order(
            distributor.id,
            [{"product_id": product_a.id, "quantity": 2}, {"product_id": product_a.id, "quantity": 3}],
        )
        lines = db_session.query(OrderLine).filter_by(order_id=order.id).all()
        assert [(line.product_id, line.quantity) for line in lines] == [(product_a.id, 5)]

    @pytest.mark.parametrize("items", [
        [],
        None,
        [{"product_id": 1, "quantity": 0}],
        [{"product_id": 1, "quantity": -1}],
        [{"product_id": "x", "quantity": 1}],
    ])
    def test_rejects_malformed_items(self, db_session, distributor, items):
        with pytest.raises(ValidationError):
            order_service.place_order(distributor.id, items)
        assert db_session.query(Order).count() == 0

    def test_rejects_unknown_product(self, db_session, distributor, product_a):
        with pytest.raises(ValidationError):
            order_service.place_order(
                distributor.id,
                [{"product_id": product_a.id, "quantity": 1}, {"product_id": 99999, "quantity": 1}],
            )
        assert db_session.query(Order).count() == 0
        assert db_session.query(OrderStatusHistory).count() == 0

    def test_unknown_distributor(self, db_session, product_a):
        with pytest.raises(NotFoundError):
            order_service.place_order(4242, [{"product_id": product_a.id, "quantity": 1}])


class TestDispatch:
    def test_debits_every_line_and_ships(self, db_session, warehouse, stock_warehouse, product_a, product_b, pending_order):
        stock_warehouse(warehouse.id, product_a, 10)
        stock_warehouse(warehouse.id, product_b, 3)
        before = _counts(db_session)

        order = order_service.dispatch_order(pending_order.id, "Warehouse")

        assert order.status == ORDER_STATUS_SHIPPED
        assert order.shipped_at is not None
        assert _wh_qty(db_session, warehouse, product_a) == 5
        assert _wh_qty(db_session, warehouse, product_b) == 0
        assert _counts(db_session) == (before[0] + 1, before[1] + 1)

        latest = order_service.list_status_history(order_id=pending_order.id, limit=1)[0]
        assert (latest.from_status, latest.status) == (ORDER_STATUS_PENDING, ORDER_STATUS_SHIPPED)

    def test_one_short_line_aborts_everything(self, db_session, warehouse, stock_warehouse, product_a, product_b, pending_order):
        stock_warehouse(warehouse.id, product_a, 10)
        stock_warehouse(warehouse.id, product_b, 2)
        before = _counts(db_session)

        with pytest.raises(InsufficientStockError) as exc:
            order_service.dispatch_order(pending_order.id, "Warehouse")

        assert exc.value.product_id == product_b.id
        assert product_b.name in exc.value.message
        assert _wh_qty(db_session, warehouse, product_a) == 10
        assert _wh_qty(db_session, warehouse, product_b) == 2
        assert _status(db_session, pending_order.id) == ORDER_STATUS_PENDING
        assert _counts(db_session) == before

    def test_second_dispatch_rejected_without_double_debit(self, db_session, warehouse, stock_warehouse, product_a, product_b, pending_order):
        stock_warehouse(warehouse.id, product_a, 20)
        stock_warehouse(warehouse.id, product_b, 20)
        order_service.dispatch_order(pending_order.id)
        before = _counts(db_session)

        with pytest.raises(InvalidTransitionError) as exc:
            order_service.dispatch_order(pending_order.id)

        assert exc.value.current_status == ORDER_STATUS_SHIPPED
        assert _wh_qty(db_session, warehouse, product_a) == 15
        assert _wh_qty(db_session, warehouse, product_b) == 17
        assert _counts(db_session) == before

    def test_other_warehouse_cannot_dispatch(self, db_session, other_warehouse, pending_order):
        with pytest.raises(ForbiddenError):
            order_service.dispatch_order(pending_order.id, warehouse_id=other_warehouse.id)
        assert _status(db_session, pending_order.id) == ORDER_STATUS_PENDING

    def test_unknown_order(self, db_session):
        with pytest.raises(NotFoundError):
            order_service.dispatch_order("no-such-order")


class TestConfirmDelivery:
    def test_confirm_on_pending_is_rejected(self, db_session, distributor, product_a, pending_order):
        before = _counts(db_session)

        with pytest.raises(InvalidTransitionError) as exc:
            order_service.confirm_delivery(pending_order.id)

        assert exc.value.current_status == ORDER_STATUS_PENDING
        assert exc.value.target_status == ORDER_STATUS_DELIVERED
        assert _dist_qty(db_session, distributor, product_a) == 0
        assert _status(db_session, pending_order.id) == ORDER_STATUS_PENDING
        assert _counts(db_session) == before

    def test_credits_once_and_rejects_second_confirmation(
        self, db_session, warehouse, distributor, stock_warehouse, product_a, product_b, pending_order
    ):
        stock_warehouse(warehouse.id, product_a, 5)
        stock_warehouse(warehouse.id, product_b, 3)
        order_service.dispatch_order(pending_order.id)
        before = _counts(db_session)

        order = order_service.confirm_delivery(pending_order.id, "Distributor")

        assert order.status == ORDER_STATUS_DELIVERED
        assert order.delivered_at is not None
        assert _dist_qty(db_session, distributor, product_a) == 5
        assert _dist_qty(db_session, distributor, product_b) == 3
        assert _counts(db_session) == (before[0] + 1, before[1] + 1)

        with pytest.raises(InvalidTransitionError):
            order_service.confirm_delivery(pending_order.id)
        assert _dist_qty(db_session, distributor, product_a) == 5
        assert _counts(db_session) == (before[0] + 1, before[1] + 1)

    def test_delivered_order_cannot_be_dispatched(self, db_session, warehouse, stock_warehouse, product_a, product_b, pending_order):
        stock_warehouse(warehouse.id, product_a, 5)
        stock_warehouse(warehouse.id, product_b, 3)
        order_service.dispatch_order(pending_order.id)
        order_service.confirm_delivery(pending_order.id)

        with pytest.raises(InvalidTransitionError):
            order_service.dispatch_order(pending_order.id)

    def test_other_distributor_cannot_confirm(self, db_session, warehouse, stock_warehouse, product_a, product_b,
                                              other_distributor, pending_order):
        stock_warehouse(warehouse.id, product_a, 5)
        stock_warehouse(warehouse.id, product_b, 3)
        order_service.dispatch_order(pending_order.id)

        with pytest.raises(ForbiddenError):
            order_service.confirm_delivery(pending_order.id, distributor_id=other_distributor.id)
        assert _status(db_session, pending_order.id) == ORDER_STATUS_SHIPPED


class TestAdminStatusUpdate:
    def test_advances_through_full_transitions(self, db_session, warehouse, distributor, stock_warehouse, product_a, product_b, pending_order):
        stock_warehouse(warehouse.id, product_a, 5)
        stock_warehouse(warehouse.id, product_b, 3)

        order_service.update_order_status(pending_order.id, ORDER_STATUS_SHIPPED, "Admin")
        assert _wh_qty(db_session, warehouse, product_a) == 0

        order_service.update_order_status(pending_order.id, ORDER_STATUS_DELIVERED, "Admin")
        assert _dist_qty(db_session, distributor, product_b) == 3

        statuses = [h.status for h in reversed(order_service.list_status_history(order_id=pending_order.id))]
        assert statuses == [ORDER_STATUS_PENDING, ORDER_STATUS_SHIPPED, ORDER_STATUS_DELIVERED]

    def test_skipping_a_status_is_rejected(self, db_session, pending_order):
        with pytest.raises(InvalidTransitionError):
            order_service.update_order_status(pending_order.id, ORDER_STATUS_DELIVERED)

    def test_moving_back_to_pending_is_rejected(self, db_session, pending_order):
        with pytest.raises(InvalidTransitionError):
            order_service.update_order_status(pending_order.id, ORDER_STATUS_PENDING)

    def test_unknown_status(self, db_session, pending_order):
        with pytest.raises(ValidationError):
            order_service.update_order_status(pending_order.id, "Cancelled")


class TestOrderViews:
    def test_warehouse_view_and_summary(self, db_session, warehouse, stock_warehouse, distributor, product_a):
        stock_warehouse(warehouse.id, product_a, 10)
        first = order_service.place_order(distributor.id, [{"product_id": product_a.id, "quantity": 1}])
        order_service.place_order(distributor.id, [{"product_id": product_a.id, "quantity": 2}])
        order_service.dispatch_order(first.id)

        result = order_service.list_warehouse_orders(warehouse.id)
        assert len(result["orders"]) == 2
        assert result["summary"] == {
            ORDER_STATUS_PENDING: 1,
            ORDER_STATUS_SHIPPED: 1,
            ORDER_STATUS_DELIVERED: 0,
        }

        shipped = order_service.list_warehouse_orders(warehouse.id, status=ORDER_STATUS_SHIPPED)
        assert [o.id for o in shipped["orders"]] == [first.id]

    def test_distributor_view_is_scoped(self, db_session, distributor, other_distributor, product_a):
        order_service.place_order(distributor.id, [{"product_id": product_a.id, "quantity": 1}])
        order_service.place_order(other_distributor.id, [{"product_id": product_a.id, "quantity": 1}])

        assert len(order_service.list_distributor_orders(distributor.id)) == 1

    def test_invalid_status_filter(self, db_session, warehouse):
        with pytest.raises(ValidationError):
            order_service.list_warehouse_orders(warehouse.id, status="Lost")


class TestStatusFlip:
    def test_flip_fails_when_order_already_moved(self, db_session, warehouse, stock_warehouse, product_a, product_b, pending_order):
        stock_warehouse(warehouse.id, product_a, 5)
        stock_warehouse(warehouse.id, product_b, 3)
        order_service.dispatch_order(pending_order.id)

        order = db_session.get(Order, pending_order.id)
        with pytest.raises(InvalidTransitionError) as exc:
            order_service._flip_status(db_session, order, ORDER_STATUS_PENDING, ORDER_STATUS_SHIPPED)
        db_session.rollback()

        assert exc.value.current_status == ORDER_STATUS_SHIPPED
        assert _status(db_session, pending_order.id) == ORDER_STATUS_SHIPPED
