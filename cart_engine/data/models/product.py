from sqlalchemy import CheckConstraint, Column, Integer, Numeric, String

from cart_engine.data.database import Base


class ProductModel(Base):
    """Catalog row. Owned by the catalog, only stock_quantity is written here."""

    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    price = Column(Numeric(19, 2), nullable=False)
    stock_quantity = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint("stock_quantity >= 0", name="ck_products_stock_non_negative"),
    )
