"""
Pytest fixtures for autoshop backend tests.

Provides the test app on in-memory SQLite, a per-test table wipe, the test
client and small product factories.
"""

import pytest

from autoshop import create_app
from autoshop.extensions import db
from autoshop.services import products_service


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SHOP_TIMEZONE': 'Asia/Jerusalem',
        'LOW_STOCK_THRESHOLD': 3,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def db_session(app):
    """Fresh data for each test."""
    # Clear all data but keep schema
    meta = db.metadata
    for table in reversed(meta.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()

    yield db.session

    db.session.rollback()


@pytest.fixture(scope='function')
def client(app, db_session):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def make_product(db_session):
    """Factory creating a product through the catalogue service (initial stock goes through the ledger)."""
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        patch = {
            "part_name": f"Brake pad {counter['n']}",
            "category": "Brakes",
            "car_brand": "Toyota",
            "car_model": "Corolla",
            "year_range": "2015-2020",
            "bin_location": f"A-{counter['n']}",
            "stock_quantity": 5,
            "cost_price_cents": 600,
            "selling_price_cents": 1000,
        }
        patch.update(overrides)
        return products_service.create_product(patch=patch)

    return _make


@pytest.fixture
def product(make_product):
    """Product P: stock 5, selling price 10.00."""
    return make_product()
