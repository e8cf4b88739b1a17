from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String

from cart_engine.data.database import Base


class OrderStatus:
    PENDING = "PENDING"
    CANCELLED = "CANCELLED"


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    cart_id = Column(Integer, ForeignKey("carts.id"), nullable=False)
    user_id = Column(Integer, nullable=False, index=True)

    status = Column(String(20), nullable=False, default=OrderStatus.PENDING)
    total_amount = Column(Numeric(19, 2), nullable=False)
    order_date = Column(DateTime(timezone=True), nullable=False)


def new_order(user_id: int, cart_id: int, total_amount: Decimal) -> OrderModel:
    return OrderModel(
        user_id=user_id,
        cart_id=cart_id,
        status=OrderStatus.PENDING,
        total_amount=total_amount,
        order_date=datetime.now(timezone.utc),
    )
