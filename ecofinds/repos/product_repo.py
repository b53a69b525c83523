# ecofinds/repos/product_repo.py
from sqlalchemy import select, update
from sqlalchemy.orm import Session, joinedload

from ecofinds.data.models.product import ProductModel


class ProductRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: int) -> ProductModel | None:
        return self.db.get(ProductModel, product_id)

    def get_products(self, product_ids: list[int]) -> dict[int, ProductModel]:
        # populate_existing so prices read after a status update are the committed ones
        stmt = (
            select(ProductModel)
            .where(ProductModel.id.in_(product_ids))
            .options(joinedload(ProductModel.seller))
            .execution_options(populate_existing=True)
        )
        return {p.id: p for p in self.db.execute(stmt).scalars().all()}

    def create_product(self, product: ProductModel) -> ProductModel:
        self.db.add(product)
        self.db.flush()
        return product

    def set_status_if(self, product_id: int, expected: str, new_status: str) -> int:
        """
        Compare-and-set on products.status.
        UPDATE products SET status = :new WHERE id = :id AND status = :expected
        Returns the number of rows changed (0 or 1).
        """
        res = self.db.execute(
            update(ProductModel)
            .where(ProductModel.id == product_id, ProductModel.status == expected)
            .values(status=new_status)
            .execution_options(synchronize_session=False)
        )
        return res.rowcount

    def set_status(self, product_ids: list[int], new_status: str, only_from: str | None = None) -> int:
        if not product_ids:
            return 0
        stmt = update(ProductModel).where(ProductModel.id.in_(product_ids))
        if only_from is not None:
            stmt = stmt.where(ProductModel.status == only_from)
        res = self.db.execute(
            stmt.values(status=new_status).execution_options(synchronize_session=False)
        )
        return res.rowcount
