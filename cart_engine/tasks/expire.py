# cart_engine/tasks/expire.py
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from cart_engine.celery_worker import celery_app
from cart_engine.data.database import SessionLocal
from cart_engine.data.models.cart import CartStatus
from cart_engine.repos.cart_repo import CartRepo
from cart_engine.services.inventory_ledger import InventoryLedger
from cart_engine.utils.logging import get_logger

logger = get_logger(__name__)


def abandon_expired_carts(db: Session, now: datetime | None = None) -> int:
    """
    Returns the reservations of stale ACTIVE carts to stock and retires the
    carts as ABANDONED. Each cart is its own transaction; a cart that is
    modified while being swept is left for the next run.
    """
    now = now or datetime.now(timezone.utc)
    repo = CartRepo(db)
    ledger = InventoryLedger(db)

    # commit expires loaded carts, keep the versions seen by the query
    expired = [(cart.id, cart.version) for cart in repo.find_expired_carts(now)]
    logger.info(f"Found {len(expired)} carts to expire")

    abandoned = 0
    for cart_id, version in expired:
        try:
            rowcount = repo.update_cart_version(
                cart_id=cart_id,
                old_version=version,
                new_data={"status": CartStatus.ABANDONED},
                expired_before=now,
            )
            if rowcount == 0:
                repo.rollback()
                logger.warning(f"Cart {cart_id} changed while expiring, skipped")
                continue

            items = repo.get_cart_items(cart_id)
            for item in items:
                ledger.release(item.product_id, item.quantity)
            repo.delete_cart_items(cart_id)

            repo.commit()
            abandoned += 1
            logger.info(f"Cart {cart_id} abandoned, {len(items)} item(s) returned to stock")
        except Exception as e:
            repo.rollback()
            logger.warning(f"Failed to expire cart {cart_id}, left for the next run: {e}")

    return abandoned


@celery_app.task(name="cart_engine.tasks.expire.expire_carts_task")
def expire_carts_task():
    logger.info("Expire carts task started")

    db = SessionLocal()
    try:
        return abandon_expired_carts(db)
    finally:
        db.close()
