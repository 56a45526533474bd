"""
Pytest fixtures for caisse backend tests.

Provides test database setup, tenant fixtures (two restaurants), stock rows
and a test client.
"""

import pytest
from caisse import create_app
from caisse.config import TestConfig
from caisse.extensions import db
from caisse.models import Restaurant, InventoryItem
from caisse.services.cash_session_service import open_session
from caisse.services.session_service import create_session


USER_A = "cashier-a"
USER_B = "cashier-b"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TestConfig)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


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


@pytest.fixture(scope='function')
def restaurant_a(db_session):
    """Create Restaurant A (first tenant)."""
    restaurant = Restaurant(name="Restaurant A - Chez Maman", is_active=True)
    db_session.add(restaurant)
    db_session.commit()
    return restaurant


@pytest.fixture(scope='function')
def restaurant_b(db_session):
    """Create Restaurant B (second tenant)."""
    restaurant = Restaurant(name="Restaurant B - Le Maquis", is_active=True)
    db_session.add(restaurant)
    db_session.commit()
    return restaurant


@pytest.fixture(scope='function')
def ctx_a(restaurant_a):
    """Service keyword arguments for a cashier of Restaurant A."""
    return {"restaurant_id": restaurant_a.id, "user_id": USER_A}


@pytest.fixture(scope='function')
def ctx_b(restaurant_b):
    """Service keyword arguments for a cashier of Restaurant B."""
    return {"restaurant_id": restaurant_b.id, "user_id": USER_B}


@pytest.fixture(scope='function')
def token_a(restaurant_a):
    _, token = create_session(USER_A, restaurant_a.id)
    return token


@pytest.fixture(scope='function')
def token_b(restaurant_b):
    _, token = create_session(USER_B, restaurant_b.id)
    return token


@pytest.fixture(scope='function')
def product_a(db_session, restaurant_a):
    """Stock row P1 in Restaurant A, 10 on hand."""
    item = InventoryItem(
        restaurant_id=restaurant_a.id,
        product_ref="P1",
        name="Jus de bissap",
        quantity=10,
    )
    db_session.add(item)
    db_session.commit()
    return item


@pytest.fixture(scope='function')
def product_b(db_session, restaurant_b):
    """Stock row P1 in Restaurant B, 4 on hand (same ref, other tenant)."""
    item = InventoryItem(
        restaurant_id=restaurant_b.id,
        product_ref="P1",
        name="Poulet braise",
        quantity=4,
    )
    db_session.add(item)
    db_session.commit()
    return item


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def session_a(ctx_a):
    """Open cash session for Restaurant A on 2024-01-01, float 10000."""
    return open_session(session_date="2024-01-01", opening_balance="10000", **ctx_a)
