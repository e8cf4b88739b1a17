# cart_engine/services/merge_service.py
import uuid

from sqlalchemy.orm import Session

from cart_engine.data.models.cart import CartStatus
from cart_engine.domain.errors import ConcurrentModificationError
from cart_engine.domain.identity import GuestOwner, UserOwner
from cart_engine.repos.cart_repo import CartRepo
from cart_engine.services.inventory_ledger import InventoryLedger
from cart_engine.utils.logging import get_logger

logger = get_logger(__name__)


class MergeService:
    """
    Folds the guest cart into the user's cart at login.

    Items are re-parented, not re-reserved: their stock was claimed when the
    guest added them, so stock is neither checked nor decremented here.
    """

    def __init__(self, db: Session, ledger: InventoryLedger | None = None, repo: CartRepo | None = None):
        self.repo = repo or CartRepo(db)
        self.ledger = ledger or InventoryLedger(db)

    def merge_on_login(self, user_id: int, guest_id: uuid.UUID) -> int:
        """Returns the number of guest items moved or folded into the user cart."""
        user_owner = UserOwner(user_id)
        guest_owner = GuestOwner(guest_id)

        # created (and committed) before the merge transaction starts
        user_cart = self.repo.get_or_create_active_cart(user_owner)

        guest_cart = self.repo.get_active_cart(guest_owner, for_update=True)
        if guest_cart is None:
            logger.info(f"No active cart for {guest_owner}, nothing to merge")
            self.repo.rollback()
            return 0

        merged = 0
        try:
            for guest_item in self.repo.get_cart_items(guest_cart.id):
                user_item = self.repo.get_cart_item(user_cart.id, guest_item.product_id)

                if user_item:
                    combined = user_item.quantity + guest_item.quantity
                    product = self.ledger.find_product(guest_item.product_id)
                    logger.info(
                        f"Folding product {guest_item.product_id}: "
                        f"{user_item.quantity} + {guest_item.quantity} = {combined}"
                    )
                    #the guest row goes first, the claim lives on in the user row
                    self.repo.delete_cart_item(guest_item)
                    user_item.quantity = combined
                    if product is not None:
                        user_item.price = product.price
                    self.repo.add_cart_item(user_item)
                else:
                    guest_item.cart_id = user_cart.id
                    self.repo.add_cart_item(guest_item)
                merged += 1

            if self.repo.touch_cart(guest_cart, status=CartStatus.ABANDONED) == 0:
                raise ConcurrentModificationError(f"Guest cart {guest_cart.id} changed during merge")
            if self.repo.touch_cart(user_cart) == 0:
                raise ConcurrentModificationError(f"User cart {user_cart.id} changed during merge")

            self.repo.commit()
        except Exception as e:
            self.repo.rollback()
            logger.error(f"Merging cart {guest_cart.id} into cart {user_cart.id} failed: {e}")
            raise

        logger.info(
            f"Merged {merged} item(s) from guest cart {guest_cart.id} into cart {user_cart.id}, "
            f"guest cart abandoned"
        )
        return merged
