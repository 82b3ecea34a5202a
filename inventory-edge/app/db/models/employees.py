from sqlalchemy import Column, DateTime, String
from sqlalchemy.sql import func

from app.db.base import Base


class EmployeeRow(Base):
    __tablename__ = "employees"

    id = Column(String(64), primary_key=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    department = Column(String, nullable=False, default="General")
    role = Column(String, nullable=False, default="Staff")
    joined_date = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
