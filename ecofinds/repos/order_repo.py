# ecofinds/repos/order_repo.py
from sqlalchemy import select, func
from sqlalchemy.orm import Session, selectinload, joinedload

from ecofinds.data.models.order import OrderModel
from ecofinds.data.models.order_item import OrderItemModel
from ecofinds.data.models.product import ProductModel


def _with_items():
    return selectinload(OrderModel.items).joinedload(OrderItemModel.product).joinedload(ProductModel.seller)


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def create_order(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        self.db.flush()
        return order

    def add_order_item(self, item: OrderItemModel) -> OrderItemModel:
        self.db.add(item)
        self.db.flush()
        return item

    def get_order(self, order_id: int) -> OrderModel | None:
        stmt = (
            select(OrderModel)
            .where(OrderModel.id == order_id)
            .options(_with_items())
            .execution_options(populate_existing=True)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def get_order_for_update(self, order_id: int) -> OrderModel | None:
        # row lock on the order header; ignored by sqlite, which is already serialised
        stmt = (
            select(OrderModel)
            .where(OrderModel.id == order_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def list_orders_by_buyer(
        self, buyer_id: int, status: str | None, offset: int, limit: int
    ) -> tuple[list[OrderModel], int]:
        conditions = [OrderModel.buyer_id == buyer_id]
        if status:
            conditions.append(OrderModel.status == status)

        total = self.db.execute(
            select(func.count(OrderModel.id)).where(*conditions)
        ).scalar_one()
        stmt = (
            select(OrderModel)
            .where(*conditions)
            .options(_with_items())
            .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(self.db.execute(stmt).scalars().all()), total

    def list_items_by_seller(
        self, seller_id: int, offset: int, limit: int
    ) -> tuple[list[OrderItemModel], int]:
        total = self.db.execute(
            select(func.count(OrderItemModel.id)).where(OrderItemModel.seller_id == seller_id)
        ).scalar_one()
        stmt = (
            select(OrderItemModel)
            .where(OrderItemModel.seller_id == seller_id)
            .options(joinedload(OrderItemModel.order))
            .order_by(OrderItemModel.created_at.desc(), OrderItemModel.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(self.db.execute(stmt).scalars().all()), total
