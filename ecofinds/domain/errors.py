# ecofinds/domain/errors.py
"""
Typed failures raised by the services.

Each one extends the built-in exception the routers already translate
(ValueError -> 400, PermissionError -> 403, LookupError -> 404), so callers
that only know the built-ins keep working.
"""


class EmptyCartError(ValueError):
    def __init__(self, buyer_id: int):
        super().__init__("Cart is empty")
        self.buyer_id = buyer_id


class InvalidTransitionError(ValueError):
    def __init__(self, current: str | None, target: str):
        if current is None:
            msg = f"Invalid order status: {target}"
        else:
            msg = f"Cannot transition order from {current} to {target}"
        super().__init__(msg)
        self.current = current
        self.target = target


class ProductUnavailableError(RuntimeError):
    def __init__(self, product_id: int):
        super().__init__(f"Product {product_id} is no longer available")
        self.product_id = product_id


class NotAuthorizedError(PermissionError):
    pass


class PersistenceError(RuntimeError):
    pass


class OrderNotFoundError(LookupError):
    def __init__(self, order_id: int):
        super().__init__(f"Order {order_id} not found")
        self.order_id = order_id


class ProductNotFoundError(LookupError):
    def __init__(self, product_id: int):
        super().__init__(f"Product {product_id} not found")
        self.product_id = product_id


class CartItemNotFoundError(LookupError):
    def __init__(self, product_id: int):
        super().__init__(f"Product {product_id} is not in the cart")
        self.product_id = product_id


class UserNotFoundError(LookupError):
    def __init__(self, user_id: int):
        super().__init__(f"User {user_id} not found")
        self.user_id = user_id
