"""
Pytest fixtures for the cinema backend tests.

Provides an in-memory database, two tenants, staff with API tokens, a
room with a 2x5 seat map (A1..A5, B1..B5) and a scheduled screening.
"""

from datetime import timedelta

import pytest

from cinema import create_app
from cinema.extensions import db
from cinema.models import Company, DiscountCode, Employee, InventoryItem, MovieSession
from cinema.services import catalog_service, token_service
from cinema.time_utils import utcnow


CASHIER_CPF = "11111111111"
MANAGER_CPF = "22222222222"
BUYER_CPF = "12345678901"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'DISCOUNT_USAGE_COUNTED_AT': 'FINALIZE',
        'SEAT_HOLD_MINUTES': 15,
    })

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
def company_a(db_session):
    """First tenant."""
    company = Company(name="Cine Centro", code="CENTRO", is_active=True)
    db_session.add(company)
    db_session.commit()
    return company


@pytest.fixture(scope='function')
def company_b(db_session):
    """Second tenant."""
    company = Company(name="Cine Norte", code="NORTE", is_active=True)
    db_session.add(company)
    db_session.commit()
    return company


@pytest.fixture(scope='function')
def cashier_a(db_session, company_a):
    employee = Employee(company_id=company_a.id, cpf=CASHIER_CPF, name="Caixa A", role="CASHIER")
    db_session.add(employee)
    db_session.commit()
    return employee


@pytest.fixture(scope='function')
def manager_a(db_session, company_a):
    employee = Employee(company_id=company_a.id, cpf=MANAGER_CPF, name="Gerente A", role="MANAGER")
    db_session.add(employee)
    db_session.commit()
    return employee


@pytest.fixture(scope='function')
def movie_a(db_session, company_a):
    return catalog_service.add_movie(db_session, company_a.id, "Dune", 155, genre="Sci-Fi", rating="12")


@pytest.fixture(scope='function')
def room_a(db_session, company_a):
    return catalog_service.add_room(db_session, company_a.id, "Sala 1", rows=2, cols=5)


@pytest.fixture(scope='function')
def make_screening(db_session, company_a, movie_a, room_a):
    """Factory for screenings in room_a; start is an offset in hours from now."""
    def _make(start_in_hours=24, length_hours=3, base_price_cents=3000, status="SCHEDULED", room=None):
        start = utcnow() + timedelta(hours=start_in_hours)
        screening = MovieSession(
            company_id=company_a.id,
            movie_id=movie_a.id,
            room_id=(room or room_a).id,
            start_time=start,
            end_time=start + timedelta(hours=length_hours),
            base_price_cents=base_price_cents,
            status=status,
        )
        db_session.add(screening)
        db_session.commit()
        return screening
    return _make


@pytest.fixture(scope='function')
def screening_a(make_screening):
    """Screening tomorrow, 30.00 per seat."""
    return make_screening()


@pytest.fixture(scope='function')
def make_discount(db_session, company_a):
    """Factory for discount codes valid from yesterday to tomorrow unless overridden."""
    def _make(code="PROMO10", discount_type="PERCENT", discount_value=1000, company=None, **overrides):
        now = utcnow()
        discount = DiscountCode(
            company_id=(company or company_a).id,
            code=code,
            discount_type=discount_type,
            discount_value=discount_value,
            valid_from=overrides.pop("valid_from", now - timedelta(days=1)),
            valid_to=overrides.pop("valid_to", now + timedelta(days=1)),
            current_uses=overrides.pop("current_uses", 0),
            is_active=overrides.pop("is_active", True),
            **overrides,
        )
        db_session.add(discount)
        db_session.commit()
        return discount
    return _make


@pytest.fixture(scope='function')
def popcorn_a(db_session, company_a):
    item = InventoryItem(
        company_id=company_a.id,
        sku="POPCORN-L",
        name="Pipoca grande",
        unit_price_cents=2500,
        qty_on_hand=5,
        reorder_level=1,
    )
    db_session.add(item)
    db_session.commit()
    return item


@pytest.fixture(scope='function')
def cashier_headers(db_session, company_a, cashier_a):
    _, token = token_service.issue_token(db_session, company_a.id, cashier_a.cpf)
    return auth_headers(token)


@pytest.fixture(scope='function')
def manager_headers(db_session, company_a, manager_a):
    _, token = token_service.issue_token(db_session, company_a.id, manager_a.cpf)
    return auth_headers(token)


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}
