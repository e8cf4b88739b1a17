from sqlalchemy import Column, ForeignKey, Integer, Numeric, String

from cart_engine.data.database import Base
from cart_engine.data.models.cart_item import CartItemModel


class OrderItemModel(Base):
    """Immutable copy of a cart line taken at checkout, no foreign key to products."""

    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)

    product_id = Column(Integer, nullable=False)
    product_name = Column(String(255), nullable=False)
    unit_price = Column(Numeric(19, 2), nullable=False)
    quantity = Column(Integer, nullable=False)
    subtotal = Column(Numeric(19, 2), nullable=False)


def snapshot_order_item(order_id: int, item: CartItemModel, product_name: str) -> OrderItemModel:
    return OrderItemModel(
        order_id=order_id,
        product_id=item.product_id,
        product_name=product_name,
        unit_price=item.price,
        quantity=item.quantity,
        subtotal=item.price * item.quantity,
    )
