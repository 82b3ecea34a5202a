from typing import List

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import select

from app.db.models.stock_logs import StockLogRow
from app.domain.inventory.schemas import StockLog


async def fetch_stock_logs(db: AsyncSession) -> List[StockLog]:
    result = await db.execute(select(StockLogRow).order_by(StockLogRow.date.desc()))
    return [StockLog.model_validate(row) for row in result.scalars().all()]


async def insert_stock_log(db: AsyncSession, log: StockLog) -> None:
    db.add(StockLogRow(**log.model_dump()))
    await db.commit()
