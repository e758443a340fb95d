# Overview: Pytest coverage for distributor sales recording.

import pytest

from millet.errors import InsufficientStockError, NotFoundError, ValidationError
from millet.models import ActivityLog, Sale, SaleItem
from millet.services import sales_service, stock_service
from millet.services.concurrency import run_in_transaction
from millet.services.stock_service import StockLocation


@pytest.fixture
def stock_distributor(db_session):
    def _stock(distributor, product, qty):
        location = StockLocation.distributor(distributor.id)
        return run_in_transaction(lambda s: stock_service.credit(s, location, product.id, qty))
    return _stock


def _qty(session, distributor, product):
    return stock_service.get_quantity(session, StockLocation.distributor(distributor.id), product.id)


def _item(product, qty, final_value_cents, mrp_cents=9000, discount_cents=0):
    return {
        "product_id": product.id,
        "qty": qty,
        "mrp_cents": mrp_cents,
        "discount_cents": discount_cents,
        "final_value_cents": final_value_cents,
    }


class TestRecordSale:
    def test_sale_drains_stock_and_totals_items(self, db_session, distributor, product_a, product_b, stock_distributor):
        stock_distributor(distributor, product_a, 4)
        stock_distributor(distributor, product_b, 6)

        sale_id = sales_service.record_sale(
            distributor.id,
            [_item(product_a, 4, 32000, discount_cents=4000), _item(product_b, 2, 13000)],
            actor="Distributor",
        )

        sale = sales_service.get_sale(sale_id)
        assert sale.total_cents == 45000
        assert db_session.query(SaleItem).filter_by(sale_id=sale_id).count() == 2
        assert _qty(db_session, distributor, product_a) == 0
        assert _qty(db_session, distributor, product_b) == 4

    def test_one_activity_entry_per_item(self, db_session, distributor, product_a, product_b, stock_distributor):
        stock_distributor(distributor, product_a, 5)
        stock_distributor(distributor, product_b, 5)
        before = db_session.query(ActivityLog).count()

        sales_service.record_sale(distributor.id, [_item(product_a, 1, 8000), _item(product_b, 1, 6500)])

        entries = db_session.query(ActivityLog).filter(ActivityLog.description.like("Sold %")).all()
        assert db_session.query(ActivityLog).count() == before + 2
        assert {e.distributor_id for e in entries} == {distributor.id}

    def test_sale_beyond_stock_is_rejected_whole(self, db_session, distributor, product_a, product_b, stock_distributor):
        stock_distributor(distributor, product_a, 4)
        stock_distributor(distributor, product_b, 1)

        with pytest.raises(InsufficientStockError) as exc:
            sales_service.record_sale(distributor.id, [_item(product_a, 2, 16000), _item(product_b, 3, 19500)])

        assert exc.value.product_id == product_b.id
        assert db_session.query(Sale).count() == 0
        assert _qty(db_session, distributor, product_a) == 4
        assert _qty(db_session, distributor, product_b) == 1

    def test_sale_after_stock_is_exhausted_fails(self, db_session, distributor, product_a, stock_distributor):
        stock_distributor(distributor, product_a, 4)
        sales_service.record_sale(distributor.id, [_item(product_a, 4, 32000)])

        with pytest.raises(InsufficientStockError):
            sales_service.record_sale(distributor.id, [_item(product_a, 1, 8000)])
        assert db_session.query(Sale).count() == 1

    def test_repeated_product_is_checked_in_total(self, db_session, distributor, product_a, stock_distributor):
        stock_distributor(distributor, product_a, 3)

        with pytest.raises(InsufficientStockError) as exc:
            sales_service.record_sale(distributor.id, [_item(product_a, 2, 16000), _item(product_a, 2, 16000)])

        assert exc.value.requested == 4
        assert _qty(db_session, distributor, product_a) == 3

    @pytest.mark.parametrize("items", [
        [],
        [{"product_id": 1, "qty": 0, "final_value_cents": 0}],
        [{"product_id": 1, "qty": 1}],
        [{"product_id": 1, "qty": 1, "final_value_cents": -5}],
    ])
    def test_malformed_items(self, db_session, distributor, items):
        with pytest.raises(ValidationError):
            sales_service.record_sale(distributor.id, items)

    def test_unknown_product(self, db_session, distributor):
        with pytest.raises(ValidationError):
            sales_service.record_sale(distributor.id, [{"product_id": 777, "qty": 1, "final_value_cents": 100}])


class TestSalesHistory:
    def test_history_is_scoped_to_distributor(self, db_session, distributor, other_distributor, product_a, stock_distributor):
        stock_distributor(distributor, product_a, 2)
        stock_distributor(other_distributor, product_a, 2)
        mine = sales_service.record_sale(distributor.id, [_item(product_a, 1, 8000)])
        sales_service.record_sale(other_distributor.id, [_item(product_a, 1, 8000)])

        assert [s.id for s in sales_service.list_sales(distributor.id)] == [mine]

    def test_unknown_distributor(self, db_session):
        with pytest.raises(NotFoundError):
            sales_service.list_sales(31337)
