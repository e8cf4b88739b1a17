#import all models so SQLAlchemy registers them in Base.metadata

from cart_engine.data.models.product import ProductModel
from cart_engine.data.models.cart import CartModel, CartStatus
from cart_engine.data.models.cart_item import CartItemModel
from cart_engine.data.models.order import OrderModel, OrderStatus
from cart_engine.data.models.order_item import OrderItemModel

__all__ = [
    "ProductModel",
    "CartModel",
    "CartStatus",
    "CartItemModel",
    "OrderModel",
    "OrderStatus",
    "OrderItemModel",
]
