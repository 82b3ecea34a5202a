from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from app.db.base import Base


class StockLogRow(Base):
    """Append-only audit trail of stock-affecting actions.

    ``quantity`` is always a magnitude; ``action`` tells whether it was
    added to or taken from stock.
    """

    __tablename__ = "stock_logs"

    id = Column(String(64), primary_key=True)
    action = Column(String, nullable=False, index=True)  # CREATE, INBOUND, RETURN...
    product_name = Column(String, nullable=False)
    quantity = Column(Integer, nullable=False)
    performed_by = Column(String, nullable=False)
    date = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), index=True)
    details = Column(Text, nullable=True)
