# cart_engine/services/inventory_ledger.py
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from cart_engine.data.models.product import ProductModel
from cart_engine.domain.errors import InsufficientStockError, InvalidArgumentError
from cart_engine.utils.logging import get_logger

logger = get_logger(__name__)


class InventoryLedger:
    """
    Check-and-adjust access to products.stock_quantity.

    Every adjustment is one conditional UPDATE, so the check and the write
    happen atomically on the product row (compare-and-swap). Nothing here
    commits: adjustments belong to the caller's transaction.
    """

    def __init__(self, db: Session):
        self.db = db

    def find_product(self, product_id: int) -> Optional[ProductModel]:
        # populate_existing: price/name must be current, not a cached copy
        return self.db.get(ProductModel, product_id, populate_existing=True)

    def get_product(self, product_id: int) -> ProductModel:
        product = self.find_product(product_id)
        if product is None:
            raise InvalidArgumentError(f"Product not found: {product_id}")
        return product

    def available(self, product_id: int) -> int:
        stock = self.db.execute(
            select(ProductModel.stock_quantity).where(ProductModel.id == product_id)
        ).scalar_one_or_none()
        if stock is None:
            raise InvalidArgumentError(f"Product not found: {product_id}")
        return stock

    def reserve(self, product_id: int, quantity: int) -> None:
        """stock -= quantity, only if stock >= quantity at write time."""
        if quantity <= 0:
            raise InvalidArgumentError("Reserved quantity must be greater than 0")

        rowcount = self.db.execute(
            update(ProductModel)
            .where(
                ProductModel.id == product_id,
                ProductModel.stock_quantity >= quantity,
            )
            .values(stock_quantity=ProductModel.stock_quantity - quantity)
            .execution_options(synchronize_session=False)
        ).rowcount

        if rowcount == 0:
            available = self.available(product_id)
            logger.warning(
                f"Reservation of {quantity} x product {product_id} rejected, available {available}"
            )
            raise InsufficientStockError(product_id, quantity, available)

        logger.info(f"Reserved {quantity} x product {product_id}")

    def release(self, product_id: int, quantity: int) -> None:
        """stock += quantity (restock)."""
        if quantity <= 0:
            raise InvalidArgumentError("Released quantity must be greater than 0")

        rowcount = self.db.execute(
            update(ProductModel)
            .where(ProductModel.id == product_id)
            .values(stock_quantity=ProductModel.stock_quantity + quantity)
            .execution_options(synchronize_session=False)
        ).rowcount

        if rowcount == 0:
            raise InvalidArgumentError(f"Product not found: {product_id}")

        logger.info(f"Released {quantity} x product {product_id}")
