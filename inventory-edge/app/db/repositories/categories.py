from typing import List

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import select

from app.db.models.categories import CategoryRow


async def fetch_categories(db: AsyncSession) -> List[str]:
    result = await db.execute(select(CategoryRow.name).order_by(CategoryRow.name))
    return list(result.scalars().all())


async def insert_category(db: AsyncSession, name: str) -> None:
    db.add(CategoryRow(name=name))
    await db.commit()


async def delete_category(db: AsyncSession, name: str) -> None:
    await db.execute(delete(CategoryRow).where(CategoryRow.name == name))
    await db.commit()
