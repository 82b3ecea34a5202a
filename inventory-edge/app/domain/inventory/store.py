# app/domain/inventory/store.py
import asyncio
import logging
from typing import Any, Dict, List, Optional

from app.db.repositories.gateway import GatewayError, PersistenceGateway
from app.domain.inventory.schemas import Assignment, Employee, Product, ScrappedItem, StockLog

logger = logging.getLogger(__name__)

SCHEMA_MISMATCH_MARKERS = ("column", "relation", "does not exist")

SCHEMA_MISMATCH_MESSAGE = (
    "Database Schema Mismatch: Tables or columns are missing. "
    "Please run the database repair script before continuing."
)


def is_schema_mismatch(message: Optional[str]) -> bool:
    if not message:
        return False
    return any(marker in message for marker in SCHEMA_MISMATCH_MARKERS)


class StoreLoadError(Exception):
    """The bulk load failed; the store still holds what it held before."""


class SchemaMismatchError(StoreLoadError):
    """The remote store is missing tables or columns the client expects."""


class EntityStore:
    """In-memory mirror of every inventory collection.

    This is what the presentation layer renders. It is only ever replaced
    wholesale by :meth:`load_all` or edited in place by the stock coordinator;
    there is no eviction and no partial merge.
    """

    def __init__(self, gateway: PersistenceGateway):
        self.gateway = gateway
        self.products: List[Product] = []
        self.assignments: List[Assignment] = []
        self.scrapped_items: List[ScrappedItem] = []
        self.employees: List[Employee] = []
        self.categories: List[str] = []
        self.stock_logs: List[StockLog] = []
        self.schema_error: Optional[str] = None

    async def load_all(self) -> None:
        try:
            products, assignments, scrapped_items, employees, categories, stock_logs = await asyncio.gather(
                self.gateway.fetch_products(),
                self.gateway.fetch_assignments(),
                self.gateway.fetch_scrapped_items(),
                self.gateway.fetch_employees(),
                self.gateway.fetch_categories(),
                self.gateway.fetch_stock_logs(),
            )
        except GatewayError as exc:
            logger.error("Failed to load data: %s", exc.message)
            if is_schema_mismatch(exc.message):
                self.schema_error = SCHEMA_MISMATCH_MESSAGE
                raise SchemaMismatchError(exc.message) from exc
            raise StoreLoadError(exc.message) from exc

        self.products = list(products)
        self.assignments = list(assignments)
        self.scrapped_items = list(scrapped_items)
        self.employees = list(employees)
        self.categories = list(categories)
        self.stock_logs = list(stock_logs)
        self.schema_error = None
        logger.info(
            "Loaded %d products, %d assignments, %d scrapped items, %d employees, %d categories, %d logs",
            len(self.products),
            len(self.assignments),
            len(self.scrapped_items),
            len(self.employees),
            len(self.categories),
            len(self.stock_logs),
        )

    def clear(self) -> None:
        self.products = []
        self.assignments = []
        self.scrapped_items = []
        self.employees = []
        self.categories = []
        self.stock_logs = []
        self.schema_error = None

    def find_product(self, product_id: str) -> Optional[Product]:
        return next((p for p in self.products if p.id == product_id), None)

    def find_employee(self, employee_id: str) -> Optional[Employee]:
        return next((e for e in self.employees if e.id == employee_id), None)

    def find_assignment(self, assignment_id: str) -> Optional[Assignment]:
        return next((a for a in self.assignments if a.id == assignment_id), None)

    def replace_product(self, product: Product) -> None:
        self.products = [product if p.id == product.id else p for p in self.products]

    def replace_assignment(self, assignment: Assignment) -> None:
        self.assignments = [assignment if a.id == assignment.id else a for a in self.assignments]

    def products_in_category(self, category: str) -> List[Product]:
        return [p for p in self.products if p.category == category]

    def snapshot(self) -> Dict[str, Any]:
        return {
            "products": self.products,
            "assignments": self.assignments,
            "scrapped_items": self.scrapped_items,
            "employees": self.employees,
            "categories": self.categories,
            "stock_logs": self.stock_logs,
            "schema_error": self.schema_error,
        }
