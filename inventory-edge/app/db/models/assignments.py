# app/db/models/assignments.py
from sqlalchemy import CheckConstraint, Column, DateTime, Index, Integer, String
from sqlalchemy.sql import func

from app.db.base import Base


class AssignmentRow(Base):
    """An asset handed out to an employee.

    Product and employee names are snapshots taken when the assignment was
    made so that history does not follow later renames. The only mutation a
    row ever sees is the status flip from Active to Returned.
    """

    __tablename__ = "assignments"

    id = Column(String(64), primary_key=True)
    product_id = Column(String(64), nullable=False, index=True)
    product_name = Column(String, nullable=False)
    product_name_zh = Column(String, nullable=False, default="")

    employee_id = Column(String(64), nullable=False)
    employee_name = Column(String, nullable=False)

    quantity = Column(Integer, nullable=False)
    assigned_date = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    status = Column(String, nullable=False, default="Active")
    performed_by = Column(String, nullable=False)

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_assignments_quantity_positive"),
        Index("ix_assignments_employee_status", "employee_id", "status"),
    )
