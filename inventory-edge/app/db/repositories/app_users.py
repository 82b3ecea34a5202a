from typing import Any, Dict, List, Optional

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import select

from app.db.models.app_users import AppUserRow
from app.domain.access.schemas import AppUser


async def fetch_app_user(db: AsyncSession, email: str) -> Optional[AppUser]:
    result = await db.execute(select(AppUserRow).where(AppUserRow.email == email))
    row = result.scalar_one_or_none()
    return AppUser.model_validate(row) if row is not None else None


async def fetch_app_users(db: AsyncSession) -> List[AppUser]:
    result = await db.execute(select(AppUserRow).order_by(AppUserRow.created_at.desc()))
    return [AppUser.model_validate(row) for row in result.scalars().all()]


async def insert_app_user(db: AsyncSession, user: AppUser) -> None:
    db.add(AppUserRow(**user.model_dump(exclude_none=True)))
    await db.commit()


async def update_app_user(db: AsyncSession, email: str, fields: Dict[str, Any]) -> None:
    await db.execute(update(AppUserRow).where(AppUserRow.email == email).values(**fields))
    await db.commit()
