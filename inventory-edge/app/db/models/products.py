# app/db/models/products.py
from sqlalchemy import CheckConstraint, Column, DateTime, Integer, Numeric, String, Text
from sqlalchemy.sql import func

from app.db.base import Base


class ProductRow(Base):
    """A stock-keeping product as stored remotely.

    Holds the bilingual display names, the immutable business key (sku), the
    category it is filed under and the on-hand quantity that every stock
    operation moves. ``last_updated`` is written by the client on each
    mutation rather than by the server.
    """

    __tablename__ = "products"

    id = Column(String(64), primary_key=True)
    name = Column(String, nullable=False)
    name_zh = Column(String, nullable=False, default="")
    sku = Column(String, nullable=False, unique=True)
    category = Column(String, nullable=False, index=True)

    quantity = Column(Integer, nullable=False, default=0)
    price = Column(Numeric(18, 2), nullable=False, default=0)
    min_stock = Column(Integer, nullable=False, default=0)

    description = Column(Text, nullable=True)
    last_updated = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_products_quantity_non_negative"),
        CheckConstraint("price >= 0", name="ck_products_price_non_negative"),
        CheckConstraint("min_stock >= 0", name="ck_products_min_stock_non_negative"),
    )
