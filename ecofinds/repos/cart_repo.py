# ecofinds/repos/cart_repo.py
from sqlalchemy import select, delete
from sqlalchemy.orm import Session, joinedload

from ecofinds.data.models.cart_item import CartItemModel
from ecofinds.data.models.product import ProductModel


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_cart_items(self, user_id: int) -> list[CartItemModel]:
        stmt = (
            select(CartItemModel)
            .where(CartItemModel.user_id == user_id)
            .options(joinedload(CartItemModel.product).joinedload(ProductModel.seller))
            .order_by(CartItemModel.id)
        )
        return list(self.db.execute(stmt).scalars().all())

    def get_cart_item(self, user_id: int, product_id: int) -> CartItemModel | None:
        stmt = select(CartItemModel).where(
            CartItemModel.user_id == user_id,
            CartItemModel.product_id == product_id,
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def add_cart_item(self, item: CartItemModel) -> CartItemModel:
        self.db.add(item)
        self.db.flush()
        return item

    def delete_cart_item(self, user_id: int, product_id: int) -> int:
        res = self.db.execute(
            delete(CartItemModel).where(
                CartItemModel.user_id == user_id,
                CartItemModel.product_id == product_id,
            )
        )
        return res.rowcount

    def delete_cart_items(self, item_ids: list[int]) -> int:
        if not item_ids:
            return 0
        res = self.db.execute(delete(CartItemModel).where(CartItemModel.id.in_(item_ids)))
        return res.rowcount

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
