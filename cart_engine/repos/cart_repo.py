# cart_engine/repos/cart_repo.py
from datetime import datetime, timedelta, timezone
from typing import List

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cart_engine.data.models.cart import CartModel, CartStatus, new_cart
from cart_engine.data.models.cart_item import CartItemModel
from cart_engine.domain.identity import Owner, UserOwner
from cart_engine.utils.retry import integrity_retry
from cart_engine.utils.settings import CART_TTL_SECONDS
from cart_engine.utils.logging import get_logger

logger = get_logger(__name__)


def _owner_filter(owner: Owner):
    if isinstance(owner, UserOwner):
        return CartModel.user_id == owner.user_id
    return CartModel.guest_id == str(owner.guest_id)


class CartRepo:
    def __init__(self, db: Session, ttl_seconds: int | None = None):
        self.db = db
        self.ttl_seconds = ttl_seconds or CART_TTL_SECONDS

    # carts
    def get_cart(self, cart_id: int) -> CartModel | None:
        return self.db.get(CartModel, cart_id)

    def get_active_cart(self, owner: Owner, for_update: bool = False) -> CartModel | None:
        stmt = select(CartModel).where(
            _owner_filter(owner),
            CartModel.status == CartStatus.ACTIVE,
        )
        if for_update:
            stmt = stmt.with_for_update()
        return self.db.execute(stmt).scalar_one_or_none()

    def create_cart(self, cart: CartModel) -> CartModel:
        self.db.add(cart)
        self.db.commit()
        self.db.refresh(cart)
        return cart

    @integrity_retry()
    def get_or_create_active_cart(self, owner: Owner) -> CartModel:
        existing = self.get_active_cart(owner)
        if existing:
            return existing

        try:
            created = self.create_cart(new_cart(owner, self.ttl_seconds))
        except IntegrityError:
            #someone else created the ACTIVE cart first, the retry reads theirs
            self.db.rollback()
            logger.warning(f"Concurrent creation of active cart for {owner}, retrying lookup")
            raise

        logger.info(f"Created cart {created.id} for {owner}")
        return created

    def update_cart_version(
        self,
        cart_id: int,
        old_version: int,
        new_data: dict,
        expired_before: datetime | None = None,
    ) -> int:
        """
        Optimistic lock on the cart row. Only an ACTIVE cart at the expected
        version is updated; returns the number of rows touched (0 or 1).
        With expired_before the cart must also still be past its expiry.
        """
        values = {"version": old_version + 1, "updated_at": datetime.now(timezone.utc)}
        values.update(new_data)

        conditions = [
            CartModel.id == cart_id,
            CartModel.version == old_version,
            CartModel.status == CartStatus.ACTIVE,
        ]
        if expired_before is not None:
            conditions.append(CartModel.expires_at < expired_before)

        result = self.db.execute(
            update(CartModel)
            .where(*conditions)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def touch_cart(self, cart: CartModel, **new_data) -> int:
        """Version bump plus a fresh sliding expiry."""
        new_data.setdefault(
            "expires_at", datetime.now(timezone.utc) + timedelta(seconds=self.ttl_seconds)
        )
        return self.update_cart_version(cart.id, cart.version, new_data)

    def find_expired_carts(self, now: datetime) -> List[CartModel]:
        return list(
            self.db.execute(
                select(CartModel)
                .where(
                    CartModel.status == CartStatus.ACTIVE,
                    CartModel.expires_at < now,
                )
                .order_by(CartModel.id)
            ).scalars()
        )

    # items
    def get_cart_items(self, cart_id: int) -> List[CartItemModel]:
        return list(
            self.db.execute(
                select(CartItemModel)
                .where(CartItemModel.cart_id == cart_id)
                .order_by(CartItemModel.id)
            ).scalars()
        )

    def get_cart_item(self, cart_id: int, product_id: int) -> CartItemModel | None:
        return self.db.execute(
            select(CartItemModel).where(
                CartItemModel.cart_id == cart_id,
                CartItemModel.product_id == product_id,
            )
        ).scalar_one_or_none()

    def add_cart_item(self, item: CartItemModel) -> CartItemModel:
        self.db.add(item)
        self.db.flush()
        return item

    def delete_cart_item(self, item: CartItemModel) -> None:
        self.db.delete(item)
        self.db.flush()

    def delete_cart_items(self, cart_id: int) -> None:
        for item in self.get_cart_items(cart_id):
            self.db.delete(item)
        self.db.flush()

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
