# app/db/repositories/assignments.py
from typing import Any, Dict, List

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import select

from app.db.models.assignments import AssignmentRow
from app.db.models.scrapped_items import ScrappedItemRow
from app.domain.inventory.schemas import Assignment, ScrappedItem


async def fetch_assignments(db: AsyncSession) -> List[Assignment]:
    result = await db.execute(select(AssignmentRow).order_by(AssignmentRow.assigned_date))
    return [Assignment.model_validate(row) for row in result.scalars().all()]


async def insert_assignment(db: AsyncSession, assignment: Assignment) -> None:
    db.add(AssignmentRow(**assignment.model_dump()))
    await db.commit()


async def update_assignment(db: AsyncSession, assignment_id: str, fields: Dict[str, Any]) -> None:
    await db.execute(
        update(AssignmentRow).where(AssignmentRow.id == assignment_id).values(**fields)
    )
    await db.commit()


async def fetch_scrapped_items(db: AsyncSession) -> List[ScrappedItem]:
    # newest first, the order the scrap log is shown in
    result = await db.execute(select(ScrappedItemRow).order_by(ScrappedItemRow.scrapped_date.desc()))
    return [ScrappedItem.model_validate(row) for row in result.scalars().all()]


async def insert_scrapped_item(db: AsyncSession, item: ScrappedItem) -> None:
    db.add(ScrappedItemRow(**item.model_dump()))
    await db.commit()
