from decimal import Decimal

from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, Numeric, UniqueConstraint
from sqlalchemy.orm import relationship

from cart_engine.data.database import Base


class CartItemModel(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True)
    cart_id = Column(Integer, ForeignKey("carts.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)

    quantity = Column(Integer, nullable=False)
    price = Column(Numeric(19, 2), nullable=False)  # snapshot taken when added

    product = relationship("ProductModel", lazy="joined", viewonly=True)

    __table_args__ = (
        UniqueConstraint("cart_id", "product_id", name="u_cart_product"),
        CheckConstraint("quantity >= 1", name="ck_cart_items_quantity_positive"),
    )

    @property
    def subtotal(self) -> Decimal:
        return self.price * self.quantity


def new_cart_item(cart_id: int, product_id: int, quantity: int, price: Decimal) -> CartItemModel:
    return CartItemModel(
        cart_id=cart_id,
        product_id=product_id,
        quantity=quantity,
        price=price,
    )
