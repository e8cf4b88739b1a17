import os
from datetime import datetime, timedelta, timezone
from decimal import Decimal

# must be set before cart_engine reads its settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["CART_TTL_SECONDS"] = "900"

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import sessionmaker

from cart_engine.api import create_app
from cart_engine.data.database import get_db, init_db
from cart_engine.data.models import CartItemModel, CartModel, CartStatus, ProductModel
from cart_engine.utils.settings import JWT_ALGORITHM, SECRET_KEY


@pytest.fixture
def engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'cart.db'}",
        connect_args={"check_same_thread": False},
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def make_product(session_factory):
    """Inserts a product in its own committed session and returns its id."""

    def _make(name="Widget", price="10.00", stock=5):
        with session_factory() as s:
            product = ProductModel(name=name, price=Decimal(price), stock_quantity=stock)
            s.add(product)
            s.commit()
            return product.id

    return _make


@pytest.fixture
def stock_of(session_factory):
    def _stock(product_id):
        with session_factory() as s:
            return s.execute(
                select(ProductModel.stock_quantity).where(ProductModel.id == product_id)
            ).scalar_one()

    return _stock


@pytest.fixture
def set_product(session_factory):
    def _set(product_id, **values):
        with session_factory() as s:
            product = s.get(ProductModel, product_id)
            for key, value in values.items():
                setattr(product, key, value)
            s.commit()

    return _set


@pytest.fixture
def reserved_in_active_carts(session_factory):
    def _reserved(product_id):
        with session_factory() as s:
            return s.execute(
                select(func.coalesce(func.sum(CartItemModel.quantity), 0))
                .join(CartModel, CartModel.id == CartItemModel.cart_id)
                .where(
                    CartItemModel.product_id == product_id,
                    CartModel.status == CartStatus.ACTIVE,
                )
            ).scalar_one()

    return _reserved


def make_access_token(user_id, expires_in=timedelta(hours=1)):
    now = datetime.now(timezone.utc)
    return jwt.encode(
        {"sub": str(user_id), "iat": now, "exp": now + expires_in},
        SECRET_KEY,
        algorithm=JWT_ALGORITHM,
    )


@pytest.fixture
def client(session_factory):
    app = create_app()

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
