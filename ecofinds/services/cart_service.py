from decimal import Decimal
from typing import Dict, Any
from sqlalchemy.orm import Session
from ecofinds.data.models.cart_item import CartItemModel
from ecofinds.domain.errors import (
    CartItemNotFoundError,
    ProductNotFoundError,
    ProductUnavailableError,
)
from ecofinds.domain.status import ProductStatus
from ecofinds.repos.cart_repo import CartRepo
from ecofinds.repos.product_repo import ProductRepo
from ecofinds.services.catalog_service import product_summary
from ecofinds.utils.settings import CART_MAX_QUANTITY
from ecofinds.utils.logging import get_logger

logger = get_logger(__name__)

class CartService:
    """
    Cart use cases, split into
    commands (add, update quantity, remove) which change state
    and a query (get) which only reads.
    Checkout lives in OrderService; this service never creates orders.
    """

    def __init__(self, db: Session):
        self.repo = CartRepo(db)
        self.products = ProductRepo(db)

    #query
    def get_cart(self, user_id: int) -> Dict[str, Any]:
        items = self.repo.get_cart_items(user_id)
        total = sum((i.price_at_time * i.quantity for i in items), Decimal("0.00"))

        result = {
            "user_id": user_id,
            "items": [
                {
                    "id": i.id,
                    "product_id": i.product_id,
                    "quantity": i.quantity,
                    "price_at_time": i.price_at_time,
                    "product": product_summary(i.product),
                }
                for i in items
            ],
            "item_count": sum(i.quantity for i in items),
            "total": total,
        }
        #end the read transaction
        self.repo.commit()
        return result

    #commands
    def add_product(self, user_id: int, product_id: int, quantity: int = 1) -> Dict[str, Any]:
        self._check_quantity(quantity)

        product = self.products.get_product(product_id)
        if not product:
            raise ProductNotFoundError(product_id)

        if product.status != ProductStatus.ACTIVE.value:
            raise ProductUnavailableError(product_id)

        if product.seller_id == user_id:
            raise ValueError("You cannot add your own listing to the cart")

        try:
            existing_item = self.repo.get_cart_item(user_id, product_id)

            if existing_item:
                new_quantity = existing_item.quantity + quantity
                self._check_quantity(new_quantity)
                logger.info(
                    f"Product {product_id} already in cart of user {user_id}, "
                    f"quantity {existing_item.quantity} -> {new_quantity}"
                )
                existing_item.quantity = new_quantity
                existing_item.price_at_time = product.price  # refresh price
            else:
                logger.info(f"Adding product {product_id} to cart of user {user_id}")
                self.repo.add_cart_item(
                    CartItemModel(
                        user_id=user_id,
                        product_id=product_id,
                        quantity=quantity,
                        price_at_time=product.price,
                    )
                )

            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        return self.get_cart(user_id)

    def update_quantity(self, user_id: int, product_id: int, quantity: int) -> Dict[str, Any]:
        self._check_quantity(quantity)

        item = self.repo.get_cart_item(user_id, product_id)
        if not item:
            raise CartItemNotFoundError(product_id)

        item.quantity = quantity
        self.repo.commit()

        logger.info(f"Cart of user {user_id}: product {product_id} quantity set to {quantity}")

        return self.get_cart(user_id)

    def remove_product(self, user_id: int, product_id: int) -> Dict[str, Any]:
        deleted = self.repo.delete_cart_item(user_id, product_id)

        if deleted == 0:
            self.repo.rollback()
            raise CartItemNotFoundError(product_id)

        self.repo.commit()

        logger.info(f"Product {product_id} removed from cart of user {user_id}")

        return self.get_cart(user_id)

    def _check_quantity(self, quantity: int):
        if quantity <= 0:
            raise ValueError("Quantity must be at least 1")
        if quantity > CART_MAX_QUANTITY:
            raise ValueError(f"Quantity cannot exceed {CART_MAX_QUANTITY}")
