# ecofinds/services/order_service.py
import secrets
import time
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from math import ceil
from typing import Any, Dict, Iterable, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ecofinds.data.models.order import OrderModel
from ecofinds.data.models.order_item import OrderItemModel
from ecofinds.domain.errors import (
    EmptyCartError,
    InvalidTransitionError,
    NotAuthorizedError,
    OrderNotFoundError,
    PersistenceError,
    ProductUnavailableError,
)
from ecofinds.domain.status import (
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    ProductStatus,
    can_transition,
)
from ecofinds.repos.cart_repo import CartRepo
from ecofinds.repos.order_repo import OrderRepo
from ecofinds.repos.product_repo import ProductRepo
from ecofinds.services.catalog_service import product_summary
from ecofinds.services.notification_service import NotificationService
from ecofinds.utils.settings import TAX_RATE
from ecofinds.utils.logging import get_logger

logger = get_logger(__name__)

CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_totals(lines: Iterable[Tuple[Decimal, int]], tax_rate: Decimal) -> Dict[str, Decimal]:
    """
    Totals for (unit_price, quantity) pairs.
    Tax is charged on the subtotal and rounded half-up to cents.
    """
    subtotal = sum((to_money(price) * qty for price, qty in lines), Decimal("0.00"))
    subtotal = to_money(subtotal)
    tax_amount = to_money(subtotal * Decimal(tax_rate))
    return {
        "subtotal": subtotal,
        "tax_amount": tax_amount,
        "total_amount": subtotal + tax_amount,
    }


def generate_order_number() -> str:
    return f"ECO{int(time.time() * 1000)}{secrets.token_hex(3).upper()}"


def _snapshot(product) -> Dict[str, Any]:
    return {
        "title": product.title,
        "description": product.description,
        "image": product.image,
        "category": product.category,
        "condition": product.condition,
    }


def _order_to_dict(order: OrderModel) -> Dict[str, Any]:
    return {
        "id": order.id,
        "order_number": order.order_number,
        "buyer_id": order.buyer_id,
        "status": order.status,
        "payment_status": order.payment_status,
        "payment_method": order.payment_method,
        "subtotal": order.subtotal,
        "tax_amount": order.tax_amount,
        "total_amount": order.total_amount,
        "shipping_address": order.shipping_address,
        "tracking_number": order.tracking_number,
        "shipped_at": order.shipped_at,
        "delivered_at": order.delivered_at,
        "cancelled_at": order.cancelled_at,
        "created_at": order.created_at,
        "updated_at": order.updated_at,
        "items": [
            {
                "id": i.id,
                "product_id": i.product_id,
                "seller_id": i.seller_id,
                "quantity": i.quantity,
                "unit_price": i.unit_price,
                "line_total": i.line_total,
                "product_snapshot": i.product_snapshot,
                "product": product_summary(i.product),
            }
            for i in order.items
        ],
    }


def _pagination(page: int, limit: int, total: int) -> Dict[str, int]:
    return {"page": page, "limit": limit, "total": total, "pages": ceil(total / limit) if total else 0}


class OrderService:
    """
    Checkout and order lifecycle.

    checkout turns the buyer's cart into an order inside one transaction:
    products are reserved with a compare-and-set on their status, the order
    and its items are written with prices frozen from the catalog, and the
    cart lines are deleted. Any failure rolls everything back.
    """

    def __init__(
        self,
        db: Session,
        cart_repo: CartRepo | None = None,
        product_repo: ProductRepo | None = None,
        order_repo: OrderRepo | None = None,
        notifier: NotificationService | None = None,
        tax_rate: Decimal = TAX_RATE,
    ):
        self.db = db
        self.cart_repo = cart_repo or CartRepo(db)
        self.product_repo = product_repo or ProductRepo(db)
        self.repo = order_repo or OrderRepo(db)
        self.notifier = notifier or NotificationService()
        self.tax_rate = Decimal(tax_rate)

    # commands
    def checkout(
        self,
        buyer_id: int,
        shipping_address: Dict[str, Any] | None = None,
        payment_method: PaymentMethod | str | None = None,
    ) -> Dict[str, Any]:
        method = PaymentMethod(payment_method).value if payment_method else None

        logger.info(f"Checkout started for buyer {buyer_id}")

        try:
            lines = self.cart_repo.get_cart_items(buyer_id)
            if not lines:
                raise EmptyCartError(buyer_id)

            # reservation happens here, inside the transaction, so two buyers
            # racing for the same listing cannot both see it as active;
            # rows are locked in product id order so overlapping carts never deadlock
            for line in sorted(lines, key=lambda l: l.product_id):
                reserved = self.product_repo.set_status_if(
                    line.product_id,
                    expected=ProductStatus.ACTIVE.value,
                    new_status=ProductStatus.RESERVED.value,
                )
                if reserved == 0:
                    raise ProductUnavailableError(line.product_id)

            products = self.product_repo.get_products([line.product_id for line in lines])
            totals = calculate_totals(
                ((products[line.product_id].price, line.quantity) for line in lines),
                self.tax_rate,
            )

            order = self.repo.create_order(
                OrderModel(
                    order_number=generate_order_number(),
                    buyer_id=buyer_id,
                    status=OrderStatus.CONFIRMED.value,
                    payment_status=PaymentStatus.PAID.value,
                    payment_method=method,
                    shipping_address=shipping_address,
                    **totals,
                )
            )

            for line in lines:
                product = products[line.product_id]
                self.repo.add_order_item(
                    OrderItemModel(
                        order_id=order.id,
                        product_id=product.id,
                        seller_id=product.seller_id,
                        quantity=line.quantity,
                        unit_price=to_money(product.price),
                        line_total=to_money(product.price) * line.quantity,
                        product_snapshot=_snapshot(product),
                    )
                )

            self.cart_repo.delete_cart_items([line.id for line in lines])
            self.db.commit()

        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Checkout for buyer {buyer_id} failed in storage: {e}")
            raise PersistenceError("Checkout could not be saved, please try again") from e
        except Exception as e:
            self.db.rollback()
            logger.warning(f"Checkout for buyer {buyer_id} rejected: {e}")
            raise

        logger.info(
            f"Order {order.id} ({order.order_number}) created for buyer {buyer_id}: "
            f"{len(lines)} items, total {totals['total_amount']}"
        )
        self._notify(buyer_id, order.id, "created", order.status)

        return self._load_order(order.id)

    def update_order_status(
        self,
        order_id: int,
        actor_id: int,
        new_status: OrderStatus | str,
        tracking_number: str | None = None,
    ) -> Dict[str, Any]:
        try:
            target = OrderStatus(new_status)
        except ValueError:
            raise InvalidTransitionError(None, str(new_status)) from None

        try:
            order = self.repo.get_order_for_update(order_id)
            if not order:
                raise OrderNotFoundError(order_id)

            self._assert_participant(order, actor_id)

            current = OrderStatus(order.status)
            changed = current != target

            if changed:
                if not can_transition(current, target):
                    raise InvalidTransitionError(current.value, target.value)
                self._apply_transition(order, target, tracking_number)
            elif target == OrderStatus.SHIPPED and tracking_number and tracking_number != order.tracking_number:
                # carrier re-labelled the parcel
                order.tracking_number = tracking_number

            self.db.commit()

        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Status update of order {order_id} failed in storage: {e}")
            raise PersistenceError("Order status could not be saved, please try again") from e
        except Exception as e:
            self.db.rollback()
            logger.warning(f"Status update of order {order_id} to {target.value} rejected: {e}")
            raise

        if changed:
            logger.info(f"Order {order_id}: {current.value} -> {target.value} by user {actor_id}")
            self._notify(order.buyer_id, order_id, "status_changed", target.value)
        else:
            logger.info(f"Order {order_id} already {target.value}, nothing to do")

        return self._load_order(order_id)

    # queries
    def get_order(self, order_id: int, user_id: int) -> Dict[str, Any]:
        try:
            order = self.repo.get_order(order_id)
            if not order:
                raise OrderNotFoundError(order_id)

            self._assert_participant(order, user_id)
            result = _order_to_dict(order)
        except Exception:
            # release the read transaction before surfacing the error
            self.db.rollback()
            raise

        self.db.commit()
        return result

    def list_orders(
        self, buyer_id: int, status: OrderStatus | str | None = None, page: int = 1, limit: int = 10
    ) -> Dict[str, Any]:
        status_value = OrderStatus(status).value if status else None
        orders, total = self.repo.list_orders_by_buyer(
            buyer_id, status_value, offset=(page - 1) * limit, limit=limit
        )
        result = {
            "orders": [_order_to_dict(o) for o in orders],
            "pagination": _pagination(page, limit, total),
        }
        self.db.commit()
        return result

    def list_sales(self, seller_id: int, page: int = 1, limit: int = 10) -> Dict[str, Any]:
        items, total = self.repo.list_items_by_seller(seller_id, offset=(page - 1) * limit, limit=limit)
        result = {
            "sales": [
                {
                    "id": i.id,
                    "order_id": i.order_id,
                    "order_number": i.order.order_number,
                    "order_status": i.order.status,
                    "buyer_id": i.order.buyer_id,
                    "product_id": i.product_id,
                    "quantity": i.quantity,
                    "unit_price": i.unit_price,
                    "line_total": i.line_total,
                    "product_snapshot": i.product_snapshot,
                    "created_at": i.created_at,
                }
                for i in items
            ],
            "pagination": _pagination(page, limit, total),
        }
        self.db.commit()
        return result

    # helpers
    def _apply_transition(self, order: OrderModel, target: OrderStatus, tracking_number: str | None):
        now = datetime.now(timezone.utc)
        product_ids = [i.product_id for i in order.items]

        order.status = target.value

        if target == OrderStatus.SHIPPED:
            order.shipped_at = now
            if tracking_number:
                order.tracking_number = tracking_number

        elif target == OrderStatus.DELIVERED:
            order.delivered_at = now
            order.payment_status = PaymentStatus.PAID.value
            self.product_repo.set_status(product_ids, ProductStatus.SOLD.value)

        elif target == OrderStatus.CANCELLED:
            order.cancelled_at = now
            # only listings this order was holding go back on sale
            self.product_repo.set_status(
                product_ids, ProductStatus.ACTIVE.value, only_from=ProductStatus.RESERVED.value
            )
            if order.payment_status == PaymentStatus.PAID.value:
                order.payment_status = PaymentStatus.REFUNDED.value

    def _assert_participant(self, order: OrderModel, user_id: int):
        if order.buyer_id == user_id:
            return
        if any(i.seller_id == user_id for i in order.items):
            return
        raise NotAuthorizedError("Not authorized to access this order")

    def _load_order(self, order_id: int) -> Dict[str, Any]:
        # re-read from storage so the response matches GET /orders/{id}
        order = self.repo.get_order(order_id)
        result = _order_to_dict(order)
        # end the read transaction
        self.db.commit()
        return result

    def _notify(self, user_id: int, order_id: int, event: str, status: str):
        try:
            self.notifier.send_order_notification(user_id, order_id, event, status)
        except Exception as e:
            # the order is already committed, a lost notification must not fail the request
            logger.warning(f"Failed to send '{event}' notification for order {order_id}: {e}")
