"""
Pytest fixtures for Millet backend tests.

Provides an in-memory database, per-test table wipe, entity factories and
auth headers for each role.
"""

import pytest

from millet import create_app
from millet.extensions import db
from millet.models import User
from millet.services import auth_service, catalog_service, inventory_service, network_service
from millet.services.session_service import issue_token

PASSWORD = "Password123"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'JWT_SECRET': 'test-secret',
        'LOG_LEVEL': 'WARNING',
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch):
    """Lowest bcrypt cost keeps the suite quick; hashing logic is unchanged."""
    monkeypatch.setattr(auth_service, "BCRYPT_ROUNDS", 4)


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture
def make_product(db_session):
    def _make(sku="RAGI-1KG", name="Ragi Flour 1kg", mrp_cents=9000, selling_price_cents=8000):
        return catalog_service.create_product(patch={
            "sku": sku,
            "name": name,
            "ean": "8901234567890",
            "unit": "pack",
            "mrp_cents": mrp_cents,
            "selling_price_cents": selling_price_cents,
        })
    return _make


@pytest.fixture
def product_a(make_product):
    return make_product("RAGI-1KG", "Ragi Flour 1kg")


@pytest.fixture
def product_b(make_product):
    return make_product("BAJRA-1KG", "Bajra Flour 1kg", mrp_cents=7000, selling_price_cents=6500)


@pytest.fixture
def make_warehouse(db_session):
    def _make(name="Central Depot", email="central@millet.test", location="Pune"):
        return network_service.create_warehouse(
            patch={"name": name, "location": location, "email": email},
            password=PASSWORD,
        )
    return _make


@pytest.fixture
def warehouse(make_warehouse):
    return make_warehouse()


@pytest.fixture
def other_warehouse(make_warehouse):
    return make_warehouse("North Depot", "north@millet.test", "Nashik")


@pytest.fixture
def make_distributor(db_session):
    def _make(warehouse_id, name="Green Grains", email="green@millet.test", city="Pune"):
        return network_service.create_distributor(
            patch={"name": name, "email": email, "city": city, "warehouse_id": warehouse_id},
            password=PASSWORD,
        )
    return _make


@pytest.fixture
def distributor(make_distributor, warehouse):
    return make_distributor(warehouse.id)


@pytest.fixture
def other_distributor(make_distributor, other_warehouse):
    return make_distributor(other_warehouse.id, "Hill Foods", "hill@millet.test", "Nashik")


@pytest.fixture
def stock_warehouse(db_session):
    """Receive stock into a warehouse through the normal intake path."""
    def _stock(warehouse_id, product, qty):
        return inventory_service.add_warehouse_stock(warehouse_id, product.sku, qty, actor="Test")
    return _stock


@pytest.fixture
def admin_user(db_session):
    return auth_service.create_admin("admin@millet.test", PASSWORD)


def _headers(user):
    return {"Authorization": f"Bearer {issue_token(user)}"}


@pytest.fixture
def admin_headers(admin_user):
    return _headers(admin_user)


@pytest.fixture
def login_for(db_session):
    """Auth headers for the login owned by a warehouse or distributor."""
    def _login(*, warehouse=None, distributor=None):
        query = db_session.query(User)
        if warehouse is not None:
            user = query.filter_by(warehouse_id=warehouse.id).one()
        else:
            user = query.filter_by(distributor_id=distributor.id).one()
        return _headers(user)
    return _login
