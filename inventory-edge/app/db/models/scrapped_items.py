from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from app.db.base import Base


class ScrappedItemRow(Base):
    """A terminal write-off of stock. Rows are never updated or deleted."""

    __tablename__ = "scrapped_items"

    id = Column(String(64), primary_key=True)
    product_id = Column(String(64), nullable=False, index=True)
    product_name = Column(String, nullable=False)
    product_name_zh = Column(String, nullable=False, default="")

    quantity = Column(Integer, nullable=False)
    reason = Column(Text, nullable=False)
    scrapped_date = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), index=True)
    performed_by = Column(String, nullable=False)

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_scrapped_items_quantity_positive"),
    )
