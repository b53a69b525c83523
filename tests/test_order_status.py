"""Tests for the order status state machine and OrderService.update_order_status."""

import pytest

from ecofinds.domain.errors import (
    InvalidTransitionError,
    NotAuthorizedError,
    OrderNotFoundError,
)
from ecofinds.domain.status import (
    TERMINAL_STATUSES,
    OrderStatus,
    PaymentStatus,
    ProductStatus,
    can_transition,
)
from ecofinds.services.order_service import OrderService
from helpers import add_to_cart, product_status, set_order_status, set_product


def _place_order(db, market, notifier):
    add_to_cart(db, market.buyer_id, market.product_a, quantity=2)
    add_to_cart(db, market.buyer_id, market.product_b)
    svc = OrderService(db, notifier=notifier)
    order = svc.checkout(market.buyer_id)
    notifier.sent.clear()
    return svc, order["id"]


# ---------------------------------------------------------------
# Transition table
# ---------------------------------------------------------------
class TestTransitionTable:
    @pytest.mark.parametrize(
        "current,target",
        [
            (OrderStatus.PENDING, OrderStatus.CONFIRMED),
            (OrderStatus.CONFIRMED, OrderStatus.SHIPPED),
            (OrderStatus.SHIPPED, OrderStatus.DELIVERED),
            (OrderStatus.PENDING, OrderStatus.CANCELLED),
            (OrderStatus.CONFIRMED, OrderStatus.CANCELLED),
            (OrderStatus.SHIPPED, OrderStatus.CANCELLED),
        ],
    )
    def test_legal_edges(self, current, target):
        assert can_transition(current, target)

    @pytest.mark.parametrize(
        "current,target",
        [
            (OrderStatus.PENDING, OrderStatus.SHIPPED),
            (OrderStatus.CONFIRMED, OrderStatus.DELIVERED),
            (OrderStatus.SHIPPED, OrderStatus.CONFIRMED),
            (OrderStatus.CONFIRMED, OrderStatus.PENDING),
        ],
    )
    def test_skipping_or_going_back_is_illegal(self, current, target):
        assert not can_transition(current, target)

    def test_delivered_and_cancelled_are_terminal(self):
        assert TERMINAL_STATUSES == {OrderStatus.DELIVERED, OrderStatus.CANCELLED}
        for terminal in TERMINAL_STATUSES:
            for target in OrderStatus:
                assert not can_transition(terminal, target)


# ---------------------------------------------------------------
# Forward transitions and side effects
# ---------------------------------------------------------------
class TestUpdateOrderStatus:
    def test_pending_to_confirmed(self, db, market, notifier):
        svc, order_id = _place_order(db, market, notifier)
        set_order_status(db, order_id, OrderStatus.PENDING.value)

        order = svc.update_order_status(order_id, market.seller_id, "confirmed")

        assert order["status"] == OrderStatus.CONFIRMED.value

    def test_ship_records_tracking_number(self, db, market, notifier):
        svc, order_id = _place_order(db, market, notifier)

        order = svc.update_order_status(order_id, market.seller_id, OrderStatus.SHIPPED, tracking_number="TRK-1")

        assert order["status"] == OrderStatus.SHIPPED.value
        assert order["tracking_number"] == "TRK-1"
        assert order["shipped_at"] is not None
        assert product_status(db, market.product_a) == ProductStatus.RESERVED.value

    def test_delivery_marks_products_sold(self, db, market, notifier):
        svc, order_id = _place_order(db, market, notifier)
        svc.update_order_status(order_id, market.seller_id, "shipped")

        order = svc.update_order_status(order_id, market.buyer_id, "delivered")

        assert order["status"] == OrderStatus.DELIVERED.value
        assert order["delivered_at"] is not None
        assert order["payment_status"] == PaymentStatus.PAID.value
        assert product_status(db, market.product_a) == ProductStatus.SOLD.value
        assert product_status(db, market.product_b) == ProductStatus.SOLD.value
        assert {i["product"]["status"] for i in order["items"]} == {ProductStatus.SOLD.value}

    def test_cancel_puts_products_back_on_sale(self, db, market, notifier):
        svc, order_id = _place_order(db, market, notifier)

        order = svc.update_order_status(order_id, market.buyer_id, "cancelled")

        assert order["status"] == OrderStatus.CANCELLED.value
        assert order["cancelled_at"] is not None
        assert order["payment_status"] == PaymentStatus.REFUNDED.value
        assert product_status(db, market.product_a) == ProductStatus.ACTIVE.value
        assert product_status(db, market.product_b) == ProductStatus.ACTIVE.value

    def test_cancel_after_shipping(self, db, market, notifier):
        svc, order_id = _place_order(db, market, notifier)
        svc.update_order_status(order_id, market.seller_id, "shipped")

        order = svc.update_order_status(order_id, market.seller_id, "cancelled")

        assert order["status"] == OrderStatus.CANCELLED.value
        assert product_status(db, market.product_a) == ProductStatus.ACTIVE.value

    def test_cancel_leaves_withdrawn_listing_alone(self, db, market, notifier):
        svc, order_id = _place_order(db, market, notifier)
        set_product(db, market.product_b, status=ProductStatus.INACTIVE.value)

        svc.update_order_status(order_id, market.buyer_id, "cancelled")

        assert product_status(db, market.product_a) == ProductStatus.ACTIVE.value
        assert product_status(db, market.product_b) == ProductStatus.INACTIVE.value

    def test_sends_status_notification_to_buyer(self, db, market, notifier):
        svc, order_id = _place_order(db, market, notifier)

        svc.update_order_status(order_id, market.seller_id, "shipped")

        assert notifier.sent == [(market.buyer_id, order_id, "status_changed", "shipped")]


# ---------------------------------------------------------------
# Idempotence
# ---------------------------------------------------------------
class TestIdempotence:
    def test_same_status_twice_is_a_no_op(self, db, market, notifier):
        svc, order_id = _place_order(db, market, notifier)
        svc.update_order_status(order_id, market.seller_id, "shipped")
        first = svc.update_order_status(order_id, market.seller_id, "delivered")

        # a later manual change must not be overwritten by a repeated delivery
        set_product(db, market.product_a, status=ProductStatus.INACTIVE.value)
        second = svc.update_order_status(order_id, market.seller_id, "delivered")

        assert second["status"] == first["status"] == OrderStatus.DELIVERED.value
        assert second["delivered_at"] == first["delivered_at"]
        assert product_status(db, market.product_a) == ProductStatus.INACTIVE.value
        assert [n[3] for n in notifier.sent] == ["shipped", "delivered"]

    def test_cancelling_twice_is_a_no_op(self, db, market, notifier):
        svc, order_id = _place_order(db, market, notifier)
        first = svc.update_order_status(order_id, market.buyer_id, "cancelled")

        second = svc.update_order_status(order_id, market.buyer_id, "cancelled")

        assert second == first
        assert len(notifier.sent) == 1

    def test_reapplying_current_status(self, db, market, notifier):
        svc, order_id = _place_order(db, market, notifier)

        order = svc.update_order_status(order_id, market.buyer_id, "confirmed")

        assert order["status"] == OrderStatus.CONFIRMED.value
        assert notifier.sent == []

    def test_reshipping_with_new_tracking_number_replaces_it(self, db, market, notifier):
        svc, order_id = _place_order(db, market, notifier)
        first = svc.update_order_status(order_id, market.seller_id, "shipped", tracking_number="TRK-1")

        second = svc.update_order_status(order_id, market.seller_id, "shipped", tracking_number="TRK-2")

        assert second["tracking_number"] == "TRK-2"
        assert second["shipped_at"] == first["shipped_at"]
        assert [n[3] for n in notifier.sent] == ["shipped"]

    def test_reshipping_without_tracking_number_keeps_it(self, db, market, notifier):
        svc, order_id = _place_order(db, market, notifier)
        svc.update_order_status(order_id, market.seller_id, "shipped", tracking_number="TRK-1")

        order = svc.update_order_status(order_id, market.seller_id, "shipped")

        assert order["tracking_number"] == "TRK-1"


# ---------------------------------------------------------------
# Rejections
# ---------------------------------------------------------------
class TestRejections:
    @pytest.mark.parametrize("target", ["confirmed", "shipped", "cancelled"])
    def test_delivered_order_cannot_move(self, db, market, notifier, target):
        svc, order_id = _place_order(db, market, notifier)
        svc.update_order_status(order_id, market.seller_id, "shipped")
        svc.update_order_status(order_id, market.seller_id, "delivered")

        with pytest.raises(InvalidTransitionError):
            svc.update_order_status(order_id, market.seller_id, target)

        assert product_status(db, market.product_a) == ProductStatus.SOLD.value

    @pytest.mark.parametrize("target", ["pending", "confirmed", "shipped", "delivered"])
    def test_cancelled_order_cannot_move(self, db, market, notifier, target):
        svc, order_id = _place_order(db, market, notifier)
        svc.update_order_status(order_id, market.buyer_id, "cancelled")

        with pytest.raises(InvalidTransitionError):
            svc.update_order_status(order_id, market.buyer_id, target)

    def test_cannot_skip_shipping(self, db, market, notifier):
        svc, order_id = _place_order(db, market, notifier)

        with pytest.raises(InvalidTransitionError):
            svc.update_order_status(order_id, market.seller_id, "delivered")

        assert product_status(db, market.product_a) == ProductStatus.RESERVED.value

    def test_unknown_status(self, db, market, notifier):
        svc, order_id = _place_order(db, market, notifier)

        with pytest.raises(InvalidTransitionError):
            svc.update_order_status(order_id, market.seller_id, "refunded")

    def test_stranger_is_not_authorized(self, db, market, notifier):
        svc, order_id = _place_order(db, market, notifier)

        with pytest.raises(NotAuthorizedError):
            svc.update_order_status(order_id, market.stranger_id, "cancelled")

        assert product_status(db, market.product_a) == ProductStatus.RESERVED.value
        assert notifier.sent == []

    def test_missing_order(self, db, market, notifier):
        svc = OrderService(db, notifier=notifier)

        with pytest.raises(OrderNotFoundError):
            svc.update_order_status(999, market.buyer_id, "cancelled")


# ---------------------------------------------------------------
# Queries
# ---------------------------------------------------------------
class TestQueries:
    def test_seller_can_view_order(self, db, market, notifier):
        svc, order_id = _place_order(db, market, notifier)

        order = svc.get_order(order_id, market.seller_id)

        assert order["id"] == order_id

    def test_stranger_cannot_view_order(self, db, market, notifier):
        svc, order_id = _place_order(db, market, notifier)

        with pytest.raises(NotAuthorizedError):
            svc.get_order(order_id, market.stranger_id)

    @pytest.mark.parametrize("lookup", ["stranger", "missing"])
    def test_failed_lookup_releases_the_transaction(self, db, market, notifier, lookup):
        svc, order_id = _place_order(db, market, notifier)
        if lookup == "stranger":
            args, error = (order_id, market.stranger_id), NotAuthorizedError
        else:
            args, error = (999, market.buyer_id), OrderNotFoundError

        with pytest.raises(error):
            svc.get_order(*args)

        assert not db.in_transaction()

    def test_list_orders_filters_by_status(self, db, market, notifier):
        svc, first_id = _place_order(db, market, notifier)
        svc.update_order_status(first_id, market.buyer_id, "cancelled")
        _, second_id = _place_order(db, market, notifier)

        everything = svc.list_orders(market.buyer_id)
        cancelled = svc.list_orders(market.buyer_id, status="cancelled")

        assert [o["id"] for o in everything["orders"]] == [second_id, first_id]
        assert everything["pagination"] == {"page": 1, "limit": 10, "total": 2, "pages": 1}
        assert [o["id"] for o in cancelled["orders"]] == [first_id]

    def test_list_orders_paginates(self, db, market, notifier):
        svc, first_id = _place_order(db, market, notifier)
        svc.update_order_status(first_id, market.buyer_id, "cancelled")
        _, second_id = _place_order(db, market, notifier)

        page_two = svc.list_orders(market.buyer_id, page=2, limit=1)

        assert [o["id"] for o in page_two["orders"]] == [first_id]
        assert page_two["pagination"]["pages"] == 2

    def test_list_sales_for_seller(self, db, market, notifier):
        svc, order_id = _place_order(db, market, notifier)

        sales = svc.list_sales(market.seller_id)

        assert sales["pagination"]["total"] == 2
        assert {s["product_id"] for s in sales["sales"]} == {market.product_a, market.product_b}
        assert all(s["order_id"] == order_id for s in sales["sales"])
        assert all(s["buyer_id"] == market.buyer_id for s in sales["sales"])

    def test_buyer_has_no_sales(self, db, market, notifier):
        svc, _ = _place_order(db, market, notifier)

        assert svc.list_sales(market.buyer_id)["sales"] == []
