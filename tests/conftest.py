import os

# must be set before anything from ecofinds is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ.setdefault("LOG_LEVEL", "WARNING")

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from ecofinds.data.database import get_db, init_db, make_engine, make_session_factory
from ecofinds.data.models import ProductModel, UserModel
from helpers import FakeNotifier, Marketplace


@pytest.fixture()
def engine(tmp_path):
    eng = make_engine(f"sqlite:///{tmp_path / 'ecofinds-test.db'}")
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def notifier():
    return FakeNotifier()


@pytest.fixture()
def market(db) -> Marketplace:
    """Seller with two listings (10.00 and 5.00) and three other users."""
    db.add_all(
        [
            UserModel(id=1, name="Seller", email="seller@example.com"),
            UserModel(id=2, name="Buyer", email="buyer@example.com"),
            UserModel(id=3, name="Other Buyer", email="other@example.com"),
            UserModel(id=4, name="Stranger", email="stranger@example.com"),
            UserModel(id=5, name="Closed Account", is_active=False),
        ]
    )
    db.flush()
    db.add_all(
        [
            ProductModel(
                id=10,
                seller_id=1,
                title="Vintage lamp",
                description="Brass desk lamp, works fine",
                price=Decimal("10.00"),
                category="Home & Garden",
                image="https://img.example.com/lamp.jpg",
            ),
            ProductModel(
                id=11,
                seller_id=1,
                title="Paperback novel",
                description="Slightly worn cover",
                price=Decimal("5.00"),
                category="Books & Media",
            ),
        ]
    )
    db.commit()
    return Marketplace(
        seller_id=1,
        buyer_id=2,
        other_buyer_id=3,
        stranger_id=4,
        product_a=10,
        product_b=11,
    )


@pytest.fixture()
def app(session_factory, monkeypatch):
    from ecofinds.api import create_app
    from ecofinds.api.routers import orders
    from ecofinds.services.order_service import OrderService

    app = create_app()

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.state.notifier = FakeNotifier()
    monkeypatch.setattr(
        orders, "get_service", lambda db: OrderService(db, notifier=app.state.notifier)
    )
    return app


@pytest.fixture()
def client(app):
    with TestClient(app) as c:
        yield c
