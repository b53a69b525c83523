"""Seeding and lookup helpers shared by the test modules.

Every helper ends its transaction: test databases are SQLite with
BEGIN IMMEDIATE, so a session left inside a transaction would block the
sessions used by the code under test.
"""

from dataclasses import dataclass

from sqlalchemy import func, select

from ecofinds.data.models import (
    CartItemModel,
    OrderItemModel,
    OrderModel,
    ProductModel,
)


class FakeNotifier:
    """Records notifications instead of publishing them to Celery."""

    def __init__(self):
        self.sent = []

    def send_order_notification(self, user_id, order_id, event, status):
        self.sent.append((user_id, order_id, event, status))


@dataclass
class Marketplace:
    seller_id: int
    buyer_id: int
    other_buyer_id: int
    stranger_id: int
    product_a: int
    product_b: int


def add_to_cart(db, user_id, product_id, quantity=1):
    product = db.get(ProductModel, product_id)
    db.add(
        CartItemModel(
            user_id=user_id,
            product_id=product_id,
            quantity=quantity,
            price_at_time=product.price,
        )
    )
    db.commit()


def set_product(db, product_id, **values):
    product = db.get(ProductModel, product_id)
    for key, value in values.items():
        setattr(product, key, value)
    db.commit()


def set_order_status(db, order_id, status):
    order = db.get(OrderModel, order_id)
    order.status = status
    db.commit()


def _scalar(db, stmt):
    value = db.execute(stmt).scalar_one()
    db.commit()
    return value


def product_status(db, product_id):
    return _scalar(db, select(ProductModel.status).where(ProductModel.id == product_id))


def cart_count(db, user_id):
    return _scalar(
        db, select(func.count(CartItemModel.id)).where(CartItemModel.user_id == user_id)
    )


def order_count(db):
    return _scalar(db, select(func.count(OrderModel.id)))


def order_item_count(db):
    return _scalar(db, select(func.count(OrderItemModel.id)))
