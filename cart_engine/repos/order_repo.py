# cart_engine/repos/order_repo.py
from typing import List, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from cart_engine.data.models.order import OrderModel
from cart_engine.data.models.order_item import OrderItemModel


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def add_order(self, order: OrderModel) -> OrderModel:
        # flush only, the checkout transaction commits
        self.db.add(order)
        self.db.flush()
        return order

    def add_order_items(self, items: List[OrderItemModel]) -> None:
        self.db.add_all(items)
        self.db.flush()

    def update_order_status(self, order_id: int, from_status: str, to_status: str) -> int:
        # conditional on the current status, rowcount 0 means it already moved on
        return self.db.execute(
            update(OrderModel)
            .where(OrderModel.id == order_id, OrderModel.status == from_status)
            .values(status=to_status)
            .execution_options(synchronize_session=False)
        ).rowcount

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.get(OrderModel, order_id)

    def get_order_items(self, order_id: int) -> List[OrderItemModel]:
        return list(
            self.db.execute(
                select(OrderItemModel)
                .where(OrderItemModel.order_id == order_id)
                .order_by(OrderItemModel.id)
            ).scalars()
        )

    def list_orders_for_user(self, user_id: int, page: int, size: int) -> Tuple[List[OrderModel], int]:
        total = self.db.execute(
            select(func.count()).select_from(OrderModel).where(OrderModel.user_id == user_id)
        ).scalar_one()
        orders = list(
            self.db.execute(
                select(OrderModel)
                .where(OrderModel.user_id == user_id)
                .order_by(OrderModel.order_date.desc(), OrderModel.id.desc())
                .offset(page * size)
                .limit(size)
            ).scalars()
        )
        return orders, total
