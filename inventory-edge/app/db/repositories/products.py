# app/db/repositories/products.py
from typing import List

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import select

from app.db.models.products import ProductRow
from app.domain.inventory.schemas import Product


async def fetch_products(db: AsyncSession) -> List[Product]:
    result = await db.execute(select(ProductRow).order_by(ProductRow.name, ProductRow.id))
    return [Product.model_validate(row) for row in result.scalars().all()]


async def upsert_product(db: AsyncSession, product: Product) -> None:
    await db.merge(ProductRow(**product.model_dump()))
    await db.commit()


async def delete_product(db: AsyncSession, product_id: str) -> None:
    await db.execute(delete(ProductRow).where(ProductRow.id == product_id))
    await db.commit()
