import os

# przed importem aplikacji: settings czyta env przy imporcie
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ["CELERY_BROKER_URL"] = "memory://"
os.environ["CELERY_RESULT_BACKEND"] = "cache+memory://"
os.environ["SEED_DEMO_DATA"] = "false"

from datetime import date, timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from checkout_core.data import models  # noqa: F401
from checkout_core.data.database import Base, get_db
from checkout_core.data.models import (
    CartItemModel,
    CartModel,
    CustomerModel,
    ItemModel,
    ProductDiscountModel,
)
from checkout_core.main import create_app

COMPLETE_PROFILE = dict(
    customer_name="Acme Trading",
    street="1 Main Street",
    city="Springfield",
    postal_code="12345",
    country="USA",
    telephone1="+1 555 0100",
    email1="orders@acme.example",
)


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def app(session_factory):
    app = create_app()

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield app
    app.dependency_overrides.clear()


@pytest.fixture()
def client(app):
    return TestClient(app)


@pytest.fixture()
def make_customer(db):
    def _make(complete=True, tier=Decimal("0"), **overrides):
        fields = dict(COMPLETE_PROFILE) if complete else {"customer_name": "Incomplete Ltd"}
        fields.update(overrides)
        customer = CustomerModel(tier_discount_percent=tier, **fields)
        db.add(customer)
        db.commit()
        return customer

    return _make


@pytest.fixture()
def make_item(db):
    def _make(name="Widget", price="10.00", quantity=10, discount_percent=None):
        item = ItemModel(
            item_name=name,
            item_code=name.upper()[:8],
            price=Decimal(price),
            quantity=quantity,
        )
        db.add(item)
        db.flush()
        if discount_percent is not None:
            db.add(
                ProductDiscountModel(
                    item_id=item.id,
                    discount_percentage=Decimal(str(discount_percent)),
                    start_date=date.today() - timedelta(days=1),
                    end_date=date.today() + timedelta(days=1),
                    is_active=True,
                )
            )
        db.commit()
        return item

    return _make


@pytest.fixture()
def count_rows(db):
    """Swiezy odczyt liczby wierszy, z pominieciem stanu sesji."""

    def _count(model, **filters):
        db.expire_all()
        return db.query(model).filter_by(**filters).count()

    return _count


@pytest.fixture()
def cart_lines(db):
    def _lines(customer_id):
        db.expire_all()
        cart = db.query(CartModel).filter_by(customer_id=customer_id, status="active").one_or_none()
        if cart is None:
            return []
        return db.query(CartItemModel).filter_by(cart_id=cart.id).order_by(CartItemModel.id).all()

    return _lines


@pytest.fixture()
def auth_headers():
    def _headers(user_id=1, customer_id=None):
        h = {"X-User-Id": str(user_id)}
        if customer_id is not None:
            h["X-Customer-Id"] = str(customer_id)
        return h

    return _headers
