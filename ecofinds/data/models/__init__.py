# import all models so SQLAlchemy registers them on Base.metadata

from ecofinds.data.models.user import UserModel
from ecofinds.data.models.product import ProductModel
from ecofinds.data.models.cart_item import CartItemModel
from ecofinds.data.models.order import OrderModel
from ecofinds.data.models.order_item import OrderItemModel

__all__ = ["UserModel", "ProductModel", "CartItemModel", "OrderModel", "OrderItemModel"]
