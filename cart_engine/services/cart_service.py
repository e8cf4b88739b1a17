from decimal import Decimal
from typing import Any, Dict

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cart_engine.data.models.cart import CartModel
from cart_engine.data.models.cart_item import new_cart_item
from cart_engine.domain.errors import (
    ConcurrentModificationError,
    InvalidArgumentError,
    NotFoundError,
)
from cart_engine.domain.identity import Owner
from cart_engine.repos.cart_repo import CartRepo
from cart_engine.services.inventory_ledger import InventoryLedger
from cart_engine.utils.logging import get_logger

logger = get_logger(__name__)


class CartService:
    """
    Use cases of the cart: one query (get) and the item commands
    (add, update quantity, remove). Every command is one transaction:
    stock adjustment, item write and cart version bump commit together.
    """

    def __init__(self, db: Session, ledger: InventoryLedger | None = None, repo: CartRepo | None = None):
        self.repo = repo or CartRepo(db)
        self.ledger = ledger or InventoryLedger(db)

    #query
    def get_cart(self, owner: Owner) -> Dict[str, Any]:
        cart = self.repo.get_or_create_active_cart(owner)
        return self.build_view(cart)

    def count_items(self, owner: Owner) -> int:
        cart = self.repo.get_or_create_active_cart(owner)
        return sum(i.quantity for i in self.repo.get_cart_items(cart.id))

    def build_view(self, cart: CartModel) -> Dict[str, Any]:
        items = self.repo.get_cart_items(cart.id)
        total = sum((i.subtotal for i in items), Decimal("0.00"))
        owner = cart.owner

        return {
            "id": cart.id,
            "items": [
                {
                    "id": i.id,
                    "product_id": i.product_id,
                    "name": i.product.name if i.product is not None else "",
                    "quantity": i.quantity,
                    "unit_price": i.price,
                    "subtotal": i.subtotal,
                }
                for i in items
            ],
            "total_price": total,
            "total_items": sum(i.quantity for i in items),
            "owner_id": str(owner.user_id if owner.kind == "user" else owner.guest_id),
            "owner_type": owner.kind,
            "status": cart.status,
            "expires_at": cart.expires_at,
        }

    #commands
    def add_item(self, owner: Owner, product_id: int, quantity: int) -> Dict[str, Any]:
        if product_id is None or quantity is None or quantity <= 0:
            raise InvalidArgumentError("Invalid product id or quantity")

        product = self.ledger.get_product(product_id)
        cart = self.repo.get_or_create_active_cart(owner)

        try:
            self._claim(cart)

            #stock is checked against what is left now, not against existing + quantity
            self.ledger.reserve(product_id, quantity)

            existing_item = self.repo.get_cart_item(cart.id, product_id)
            if existing_item:
                logger.info(
                    f"Product {product_id} already in cart {cart.id}, quantity "
                    f"{existing_item.quantity} -> {existing_item.quantity + quantity}"
                )
                existing_item.quantity += quantity
                existing_item.price = product.price
                self.repo.add_cart_item(existing_item)
            else:
                logger.info(f"Adding product {product_id} x {quantity} to cart {cart.id}")
                self.repo.add_cart_item(
                    new_cart_item(cart.id, product_id, quantity, product.price)
                )

            self.repo.commit()
        except IntegrityError as e:
            self.repo.rollback()
            logger.warning(f"Cart {cart.id} item write conflicted: {e.orig}")
            raise ConcurrentModificationError(
                "Cart was modified by another operation"
            ) from e
        except Exception as e:
            self.repo.rollback()
            logger.error(f"Adding product {product_id} to cart {cart.id} failed: {e}")
            raise

        return self.get_cart(owner)

    def update_quantity(self, owner: Owner, product_id: int, quantity: int) -> Dict[str, Any]:
        if quantity is None:
            raise InvalidArgumentError("Quantity is required")

        cart = self.repo.get_or_create_active_cart(owner)
        item = self.repo.get_cart_item(cart.id, product_id)
        if item is None:
            raise NotFoundError(f"Cart item not found: {product_id}")

        old = item.quantity
        diff = quantity - old

        if quantity > 0 and diff == 0:
            return self.build_view(cart)

        try:
            self._claim(cart)

            if quantity <= 0:
                logger.info(f"Quantity {quantity} for product {product_id}, removing from cart {cart.id}")
                self.repo.delete_cart_item(item)
                self.ledger.release(product_id, old)
            else:
                if diff > 0:
                    self.ledger.reserve(product_id, diff)
                else:
                    self.ledger.release(product_id, -diff)

                product = self.ledger.find_product(product_id)
                item.quantity = quantity
                if product is not None:
                    item.price = product.price
                self.repo.add_cart_item(item)
                logger.info(f"Product {product_id} in cart {cart.id}: {old} -> {quantity}")

            self.repo.commit()
        except Exception as e:
            self.repo.rollback()
            logger.error(f"Updating product {product_id} in cart {cart.id} failed: {e}")
            raise

        return self.get_cart(owner)

    def remove_item(self, owner: Owner, product_id: int) -> Dict[str, Any]:
        cart = self.repo.get_or_create_active_cart(owner)
        item = self.repo.get_cart_item(cart.id, product_id)
        if item is None:
            raise NotFoundError(f"Product not in cart: {product_id}")

        quantity = item.quantity
        try:
            self._claim(cart)
            self.repo.delete_cart_item(item)
            self.ledger.release(product_id, quantity)
            self.repo.commit()
        except Exception as e:
            self.repo.rollback()
            logger.error(f"Removing product {product_id} from cart {cart.id} failed: {e}")
            raise

        logger.info(f"Product {product_id} removed from cart {cart.id}, {quantity} returned to stock")
        return self.get_cart(owner)

    def _claim(self, cart: CartModel) -> None:
        # update ... set version = v + 1 where id = :id and version = v and status = 'ACTIVE'
        rowcount = self.repo.touch_cart(cart)
        if rowcount == 0:
            logger.warning(f"Version conflict on cart {cart.id} (version {cart.version})")
            raise ConcurrentModificationError(
                "Cart was modified by another operation"
            )
