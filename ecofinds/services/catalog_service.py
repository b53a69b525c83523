# ecofinds/services/catalog_service.py
from typing import Any, Dict

from sqlalchemy.orm import Session

from ecofinds.data.models.product import ProductModel
from ecofinds.domain.errors import ProductNotFoundError, UserNotFoundError
from ecofinds.domain.schemas import ProductCreate
from ecofinds.domain.status import ProductStatus
from ecofinds.repos.product_repo import ProductRepo
from ecofinds.repos.user_repo import UserRepo
from ecofinds.utils.logging import get_logger

logger = get_logger(__name__)


def product_summary(product: ProductModel | None) -> Dict[str, Any] | None:
    """Live view of a listing as embedded in cart and order responses."""
    if product is None:
        return None
    seller = product.seller
    return {
        "id": product.id,
        "title": product.title,
        "price": product.price,
        "image": product.image,
        "category": product.category,
        "status": product.status,
        "seller": {"id": seller.id, "name": seller.name} if seller else None,
    }


class CatalogService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = ProductRepo(db)
        self.users = UserRepo(db)

    def create_product(self, payload: ProductCreate) -> ProductModel:
        if not self.users.get_user(payload.seller_id):
            raise UserNotFoundError(payload.seller_id)

        product = self.repo.create_product(
            ProductModel(
                seller_id=payload.seller_id,
                title=payload.title,
                description=payload.description,
                price=payload.price,
                category=payload.category,
                condition=payload.condition,
                image=payload.image,
                status=ProductStatus.ACTIVE.value,
            )
        )
        self.db.commit()
        logger.info(f"Product {product.id} listed by seller {product.seller_id}")
        return product

    def get_product(self, product_id: int) -> ProductModel:
        product = self.repo.get_product(product_id)
        if not product:
            raise ProductNotFoundError(product_id)
        return product
