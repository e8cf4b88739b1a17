# cart_engine/data/seed.py
from decimal import Decimal

from cart_engine.data.database import SessionLocal
from cart_engine.data.models.product import ProductModel
from cart_engine.utils.logging import get_logger

logger = get_logger(__name__)

PRODUCTS = [
    {"name": "Keyboard", "price": Decimal("199.99"), "stock_quantity": 25},
    {"name": "Mouse", "price": Decimal("49.50"), "stock_quantity": 100},
    {"name": "Monitor", "price": Decimal("899.00"), "stock_quantity": 5},
]


def seed(db=None):
    own_session = db is None
    db = db or SessionLocal()
    try:
        # not forcing: only seed if empty
        if db.query(ProductModel).first():
            return 0
        db.add_all(ProductModel(**p) for p in PRODUCTS)
        db.commit()
        logger.info(f"Seeded {len(PRODUCTS)} products")
        return len(PRODUCTS)
    finally:
        if own_session:
            db.close()


if __name__ == "__main__":
    seed()
