# cart_engine/services/order_service.py
from decimal import Decimal
from typing import Any, Dict

from sqlalchemy.orm import Session

from cart_engine.data.models.cart import CartStatus
from cart_engine.data.models.order import OrderModel, OrderStatus, new_order
from cart_engine.data.models.order_item import snapshot_order_item
from cart_engine.domain.errors import (
    AuthenticationRequiredError,
    ConcurrentModificationError,
    InvalidArgumentError,
    InvalidStateError,
    NotFoundError,
)
from cart_engine.domain.identity import Owner, UserOwner
from cart_engine.repos.cart_repo import CartRepo
from cart_engine.repos.order_repo import OrderRepo
from cart_engine.services.inventory_ledger import InventoryLedger
from cart_engine.utils.logging import get_logger

logger = get_logger(__name__)


class OrderService:
    """
    Checkout, cancellation and order queries.

    Stock is committed once, when items enter the cart. Checkout copies the
    cart into an order and never adjusts product stock again; cancelling a
    PENDING order returns its quantities to stock.
    """

    def __init__(
        self,
        db: Session,
        cart_repo: CartRepo | None = None,
        ledger: InventoryLedger | None = None,
    ):
        self.db = db
        self.repo = OrderRepo(db)
        self.cart_repo = cart_repo or CartRepo(db)
        self.ledger = ledger or InventoryLedger(db)

    def checkout(self, owner: Owner) -> Dict[str, Any]:
        """
        Use Case: convert the user's ACTIVE cart into a PENDING order.

        1. owner must be an authenticated user, cart must be ACTIVE and non-empty
        2. order + one snapshot per cart item, total = sum of subtotals
        3. cart items deleted, cart flipped to ORDERED
        All in one transaction.
        """
        if not isinstance(owner, UserOwner):
            raise AuthenticationRequiredError("Authenticated user required for checkout")

        cart = self.cart_repo.get_active_cart(owner, for_update=True)
        if cart is None:
            raise InvalidStateError("No active cart for user")

        items = self.cart_repo.get_cart_items(cart.id)
        if not items:
            self.cart_repo.rollback()
            raise InvalidStateError("Cannot checkout an empty cart")

        try:
            #flip status first, a concurrent mutation of this cart now fails its version check
            rowcount = self.cart_repo.update_cart_version(
                cart_id=cart.id,
                old_version=cart.version,
                new_data={"status": CartStatus.ORDERED},
            )
            if rowcount == 0:
                raise ConcurrentModificationError(
                    f"Cart {cart.id} was modified by another operation"
                )

            total = sum((i.subtotal for i in items), Decimal("0.00"))
            order = self.repo.add_order(new_order(owner.user_id, cart.id, total))

            self.repo.add_order_items(
                [
                    snapshot_order_item(
                        order.id,
                        item,
                        item.product.name if item.product is not None else f"Product {item.product_id}",
                    )
                    for item in items
                ]
            )

            self.cart_repo.delete_cart_items(cart.id)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Checkout of cart {cart.id} failed: {e}")
            raise

        logger.info(f"Order {order.id} created from cart {cart.id}, total {total}")
        return self.get_order(order.id, owner.user_id)

    def get_order(self, order_id: int, user_id: int) -> Dict[str, Any]:
        order = self.repo.get_order(order_id)

        #orders of other users are reported as missing
        if not order or order.user_id != user_id:
            raise NotFoundError(f"Order not found: {order_id}")

        return self._to_dict(order)

    def cancel_order(self, order_id: int, user_id: int) -> Dict[str, Any]:
        """
        Cancels a PENDING order of the user and returns every item quantity
        to stock, in one transaction.
        """
        order = self.repo.get_order(order_id)
        if not order or order.user_id != user_id:
            raise NotFoundError(f"Order not found: {order_id}")

        try:
            rowcount = self.repo.update_order_status(
                order_id, OrderStatus.PENDING, OrderStatus.CANCELLED
            )
            if rowcount == 0:
                raise InvalidStateError(
                    f"Order {order_id} cannot be cancelled, status {order.status}"
                )

            for item in self.repo.get_order_items(order_id):
                if self.ledger.find_product(item.product_id) is None:
                    logger.warning(f"Product {item.product_id} no longer exists, not restocked")
                    continue
                self.ledger.release(item.product_id, item.quantity)

            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Cancelling order {order_id} failed: {e}")
            raise

        logger.info(f"Order {order_id} cancelled, items returned to stock")
        return self.get_order(order_id, user_id)

    def list_orders(self, user_id: int, page: int = 0, size: int = 20) -> Dict[str, Any]:
        if page < 0 or size <= 0:
            raise InvalidArgumentError("page must be >= 0 and size > 0")

        orders, total = self.repo.list_orders_for_user(user_id, page, size)
        return {
            "items": [self._to_dict(o) for o in orders],
            "page": page,
            "size": size,
            "total": total,
        }

    def _to_dict(self, order: OrderModel) -> Dict[str, Any]:
        return {
            "id": order.id,
            "cart_id": order.cart_id,
            "user_id": order.user_id,
            "status": order.status,
            "total_amount": order.total_amount,
            "order_date": order.order_date,
            "items": [
                {
                    "product_id": i.product_id,
                    "product_name": i.product_name,
                    "unit_price": i.unit_price,
                    "quantity": i.quantity,
                    "subtotal": i.subtotal,
                }
                for i in self.repo.get_order_items(order.id)
            ],
        }
