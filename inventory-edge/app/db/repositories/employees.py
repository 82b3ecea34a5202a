from typing import List

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import select

from app.db.models.employees import EmployeeRow
from app.domain.inventory.schemas import Employee


async def fetch_employees(db: AsyncSession) -> List[Employee]:
    result = await db.execute(select(EmployeeRow).order_by(EmployeeRow.joined_date))
    return [Employee.model_validate(row) for row in result.scalars().all()]


async def insert_employee(db: AsyncSession, employee: Employee) -> None:
    db.add(EmployeeRow(**employee.model_dump()))
    await db.commit()
