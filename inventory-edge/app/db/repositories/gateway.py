# app/db/repositories/gateway.py
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import sessionmaker

from app.db.models.assignments import AssignmentRow
from app.db.models.categories import CategoryRow
from app.db.models.employees import EmployeeRow
from app.db.models.products import ProductRow
from app.db.models.scrapped_items import ScrappedItemRow
from app.db.repositories import app_users as app_user_repo
from app.db.repositories import assignments as assignment_repo
from app.db.repositories import categories as category_repo
from app.db.repositories import employees as employee_repo
from app.db.repositories import products as product_repo
from app.db.repositories import stock_logs as stock_log_repo
from app.domain.access.schemas import AppUser
from app.domain.inventory.schemas import Assignment, Employee, Product, ScrappedItem, StockLog

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    """A failed request against the remote store.

    ``message`` is the driver's text; callers inspect it for schema-mismatch
    markers such as ``relation ... does not exist``.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


def _error_message(exc: Exception) -> str:
    orig = getattr(exc, "orig", None)
    return str(orig) if orig is not None else str(exc)


class PersistenceGateway:
    """CRUD access to the remote store, one session per request."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        async with self._session_factory() as session:
            try:
                yield session
            except (SQLAlchemyError, OSError) as exc:
                await session.rollback()
                message = _error_message(exc)
                logger.error("Gateway request failed: %s", message)
                raise GatewayError(message) from exc

    # Products

    async def fetch_products(self) -> List[Product]:
        async with self._session() as db:
            return await product_repo.fetch_products(db)

    async def upsert_product(self, product: Product) -> None:
        async with self._session() as db:
            await product_repo.upsert_product(db, product)

    async def delete_product(self, product_id: str) -> None:
        async with self._session() as db:
            await product_repo.delete_product(db, product_id)

    # Employees

    async def fetch_employees(self) -> List[Employee]:
        async with self._session() as db:
            return await employee_repo.fetch_employees(db)

    async def insert_employee(self, employee: Employee) -> None:
        async with self._session() as db:
            await employee_repo.insert_employee(db, employee)

    # Assignments and scrap

    async def fetch_assignments(self) -> List[Assignment]:
        async with self._session() as db:
            return await assignment_repo.fetch_assignments(db)

    async def insert_assignment(self, assignment: Assignment) -> None:
        async with self._session() as db:
            await assignment_repo.insert_assignment(db, assignment)

    async def update_assignment(self, assignment_id: str, fields: Dict[str, Any]) -> None:
        async with self._session() as db:
            await assignment_repo.update_assignment(db, assignment_id, fields)

    async def fetch_scrapped_items(self) -> List[ScrappedItem]:
        async with self._session() as db:
            return await assignment_repo.fetch_scrapped_items(db)

    async def insert_scrapped_item(self, item: ScrappedItem) -> None:
        async with self._session() as db:
            await assignment_repo.insert_scrapped_item(db, item)

    # Categories

    async def fetch_categories(self) -> List[str]:
        async with self._session() as db:
            return await category_repo.fetch_categories(db)

    async def insert_category(self, name: str) -> None:
        async with self._session() as db:
            await category_repo.insert_category(db, name)

    async def delete_category(self, name: str) -> None:
        async with self._session() as db:
            await category_repo.delete_category(db, name)

    # Stock logs

    async def fetch_stock_logs(self) -> List[StockLog]:
        async with self._session() as db:
            return await stock_log_repo.fetch_stock_logs(db)

    async def insert_stock_log(self, log: StockLog) -> None:
        async with self._session() as db:
            await stock_log_repo.insert_stock_log(db, log)

    # App users

    async def fetch_app_user(self, email: str) -> Optional[AppUser]:
        async with self._session() as db:
            return await app_user_repo.fetch_app_user(db, email)

    async def fetch_app_users(self) -> List[AppUser]:
        async with self._session() as db:
            return await app_user_repo.fetch_app_users(db)

    async def insert_app_user(self, user: AppUser) -> None:
        async with self._session() as db:
            await app_user_repo.insert_app_user(db, user)

    async def update_app_user(self, email: str, fields: Dict[str, Any]) -> None:
        async with self._session() as db:
            await app_user_repo.update_app_user(db, email, fields)

    # Backup restore

    async def replace_inventory(
        self,
        products: Sequence[Product],
        categories: Sequence[str],
        employees: Sequence[Employee],
        assignments: Sequence[Assignment],
        scrapped_items: Sequence[ScrappedItem],
    ) -> None:
        """Swap the whole inventory for a backup in one transaction. Stock logs are kept."""
        async with self._session() as db:
            for table in (ScrappedItemRow, AssignmentRow, EmployeeRow, CategoryRow, ProductRow):
                await db.execute(delete(table))
            db.add_all(ProductRow(**p.model_dump()) for p in products)
            db.add_all(CategoryRow(name=name) for name in categories)
            db.add_all(EmployeeRow(**e.model_dump()) for e in employees)
            db.add_all(AssignmentRow(**a.model_dump()) for a in assignments)
            db.add_all(ScrappedItemRow(**s.model_dump()) for s in scrapped_items)
            await db.commit()
