# app/domain/inventory/service.py
import logging
from typing import Callable, Optional

from app.core.config import Settings
from app.db.repositories.gateway import GatewayError, PersistenceGateway
from app.domain.inventory.backup import BackupDocument
from app.domain.inventory.schemas import (
    AssignOperation,
    Assignment,
    AssignmentStatus,
    Employee,
    InboundOperation,
    OperationResult,
    OperationStatus,
    Product,
    ScrapOperation,
    ScrappedItem,
    StockAction,
    StockLog,
    StockOperation,
    utcnow,
)
from app.domain.inventory.store import (
    SCHEMA_MISMATCH_MESSAGE,
    EntityStore,
    SchemaMismatchError,
    StoreLoadError,
    is_schema_mismatch,
)

logger = logging.getLogger(__name__)

# Asks the user a yes/no question; False means "do not proceed".
Confirm = Callable[[str], bool]

DELETE_PRODUCT_PROMPT = "Are you sure you want to delete this product?"
IMPORT_PROMPT = "This will overwrite your current data with the backup. Are you sure?"
IMPORT_DISABLED_MESSAGE = (
    "Bulk import is not supported in cloud mode to prevent data conflicts. "
    "Please add items manually."
)


class StockCoordinator:
    """Applies user intents to the entity store and the remote store.

    Every operation mutates the store first, then awaits the remote write.
    When a write fails the optimistic state is thrown away by reloading every
    collection, and the caller gets a failed :class:`OperationResult` naming
    the action. Nothing here raises for remote failures.

    There is no locking or versioning: two overlapping operations on the
    same product both start from the quantity they saw, so the later write
    wins.
    """

    def __init__(self, store: EntityStore, gateway: PersistenceGateway, settings: Settings):
        self.store = store
        self.gateway = gateway
        self.settings = settings

    async def reload(self) -> OperationResult:
        try:
            await self.store.load_all()
        except SchemaMismatchError:
            return OperationResult(
                action="reload",
                status=OperationStatus.FAILED,
                message=SCHEMA_MISMATCH_MESSAGE,
                schema_mismatch=True,
            )
        except StoreLoadError as exc:
            return OperationResult(
                action="reload",
                status=OperationStatus.FAILED,
                message=f"Failed to load data: {exc}",
            )
        return OperationResult(action="reload")

    async def _reconcile(self, action: str, alert: str, exc: GatewayError) -> OperationResult:
        logger.error("%s failed, reloading all data: %s", action, exc.message)
        await self.reload()

        # set after the reload, which clears the banner when it succeeds
        mismatch = is_schema_mismatch(exc.message)
        if mismatch:
            self.store.schema_error = SCHEMA_MISMATCH_MESSAGE

        return OperationResult(
            action=action,
            status=OperationStatus.FAILED,
            message=f"{alert}: {exc.message}",
            schema_mismatch=mismatch,
        )

    # Products

    async def save_product(self, product: Product, actor: str) -> OperationResult:
        action = "save_product"
        existing = self.store.find_product(product.id)
        is_new = existing is None

        if is_new:
            product = product.model_copy(update={"last_updated": utcnow()})
            self.store.products = [*self.store.products, product]
        else:
            # name, Chinese name and sku are fixed once the product exists
            product = product.model_copy(
                update={
                    "name": existing.name,
                    "name_zh": existing.name_zh,
                    "sku": existing.sku,
                    "last_updated": utcnow(),
                }
            )
            self.store.replace_product(product)

        try:
            await self.gateway.upsert_product(product)
            self.store.schema_error = None
            if is_new:
                await self._log_creation(product, actor)
            self.store.products = list(await self.gateway.fetch_products())
        except GatewayError as exc:
            return await self._reconcile(action, "Failed to save product", exc)

        logger.info("%s product %s (%s)", "Created" if is_new else "Updated", product.sku, product.id)
        return OperationResult(action=action)

    async def _log_creation(self, product: Product, actor: str) -> None:
        log = StockLog(
            action=StockAction.CREATE,
            product_name=product.name,
            quantity=product.quantity,
            performed_by=actor,
        )
        try:
            await self.gateway.insert_stock_log(log)
        except GatewayError as exc:
            # the product itself is already saved
            logger.warning("Failed to add stock log for %s: %s", product.sku, exc.message)
            return
        self.store.stock_logs = [log, *self.store.stock_logs]

    async def delete_product(self, product_id: str, confirm: Confirm) -> OperationResult:
        action = "delete_product"
        if not confirm(DELETE_PRODUCT_PROMPT):
            return OperationResult(action=action, status=OperationStatus.DECLINED, message=DELETE_PRODUCT_PROMPT)

        self.store.products = [p for p in self.store.products if p.id != product_id]
        try:
            await self.gateway.delete_product(product_id)
        except GatewayError as exc:
            return await self._reconcile(action, "Failed to delete product", exc)

        logger.info("Deleted product %s", product_id)
        return OperationResult(action=action)

    # Stock movements

    async def perform_stock_operation(self, operation: StockOperation, actor: str) -> OperationResult:
        action = f"stock_{operation.type.lower()}"
        product = self.store.find_product(operation.product_id)
        if product is None:
            logger.debug("Ignoring %s for unknown product %s", operation.type, operation.product_id)
            return OperationResult(action=action, status=OperationStatus.IGNORED)

        employee: Optional[Employee] = None
        match operation:
            case InboundOperation():
                new_quantity = product.quantity + operation.quantity
            case AssignOperation():
                employee = self.store.find_employee(operation.employee_id)
                if employee is None:
                    return OperationResult(
                        action=action,
                        status=OperationStatus.IGNORED,
                        message="Please select a valid employee.",
                    )
                new_quantity = max(0, product.quantity - operation.quantity)
            case ScrapOperation():
                new_quantity = max(0, product.quantity - operation.quantity)
            case _:
                raise TypeError(f"Unsupported stock operation: {operation!r}")

        updated = product.model_copy(update={"quantity": new_quantity, "last_updated": utcnow()})
        self.store.replace_product(updated)

        try:
            await self.gateway.upsert_product(updated)
            await self._record_operation(operation, product, employee, actor)
        except GatewayError as exc:
            return await self._reconcile(action, "Operation failed", exc)

        self.store.schema_error = None
        logger.info(
            "%s %d x %s by %s: %d -> %d",
            operation.type,
            operation.quantity,
            product.sku,
            actor,
            product.quantity,
            new_quantity,
        )
        return OperationResult(action=action)

    async def _record_operation(
        self,
        operation: StockOperation,
        product: Product,
        employee: Optional[Employee],
        actor: str,
    ) -> None:
        match operation:
            case AssignOperation():
                assignment = Assignment(
                    product_id=product.id,
                    product_name=product.name,
                    product_name_zh=product.name_zh,
                    employee_id=employee.id,
                    employee_name=employee.name,
                    quantity=operation.quantity,
                    performed_by=actor,
                )
                self.store.assignments = [*self.store.assignments, assignment]
                await self.gateway.insert_assignment(assignment)
            case ScrapOperation():
                item = ScrappedItem(
                    product_id=product.id,
                    product_name=product.name,
                    product_name_zh=product.name_zh,
                    quantity=operation.quantity,
                    reason=operation.reason,
                    performed_by=actor,
                )
                self.store.scrapped_items = [item, *self.store.scrapped_items]
                await self.gateway.insert_scrapped_item(item)
            case InboundOperation():
                log = StockLog(
                    action=StockAction.INBOUND,
                    product_name=product.name,
                    quantity=operation.quantity,
                    performed_by=actor,
                )
                self.store.stock_logs = [log, *self.store.stock_logs]
                await self.gateway.insert_stock_log(log)

    async def return_asset(self, assignment_id: str, actor: str, confirm: Confirm) -> OperationResult:
        action = "return_asset"
        if not self.settings.ENABLE_ASSET_RETURNS:
            return OperationResult(
                action=action,
                status=OperationStatus.IGNORED,
                message="Asset returns are disabled.",
            )

        assignment = self.store.find_assignment(assignment_id)
        if assignment is None or assignment.status != AssignmentStatus.ACTIVE:
            return OperationResult(action=action, status=OperationStatus.IGNORED)

        prompt = (
            f"Confirm return of {assignment.product_name} from {assignment.employee_name}? "
            f"Stock will increase by {assignment.quantity}."
        )
        if not confirm(prompt):
            return OperationResult(action=action, status=OperationStatus.DECLINED, message=prompt)

        returned = assignment.model_copy(update={"status": AssignmentStatus.RETURNED.value})
        self.store.replace_assignment(returned)

        product = self.store.find_product(assignment.product_id)
        updated = None
        if product is not None:
            updated = product.model_copy(
                update={"quantity": product.quantity + assignment.quantity, "last_updated": utcnow()}
            )
            self.store.replace_product(updated)

        log = StockLog(
            action=StockAction.RETURN,
            product_name=assignment.product_name,
            quantity=assignment.quantity,
            performed_by=actor,
            details=f"Returned by {assignment.employee_name}",
        )
        self.store.stock_logs = [log, *self.store.stock_logs]

        try:
            if updated is not None:
                await self.gateway.upsert_product(updated)
            await self.gateway.update_assignment(assignment.id, {"status": AssignmentStatus.RETURNED.value})
            await self.gateway.insert_stock_log(log)
        except GatewayError as exc:
            return await self._reconcile(action, "Failed to return asset", exc)

        logger.info("Returned assignment %s (%d x %s)", assignment.id, assignment.quantity, assignment.product_name)
        return OperationResult(action=action)

    # Employees and categories

    async def add_employee(self, employee: Employee) -> OperationResult:
        action = "add_employee"
        self.store.employees = [*self.store.employees, employee]
        try:
            await self.gateway.insert_employee(employee)
        except GatewayError as exc:
            return await self._reconcile(action, "Failed to add employee", exc)

        self.store.schema_error = None
        return OperationResult(action=action)

    async def add_category(self, name: str) -> OperationResult:
        action = "add_category"
        if name in self.store.categories:
            return OperationResult(action=action, status=OperationStatus.IGNORED)

        self.store.categories = [*self.store.categories, name]
        try:
            await self.gateway.insert_category(name)
        except GatewayError as exc:
            return await self._reconcile(action, "Failed to add category", exc)
        return OperationResult(action=action)

    async def request_category_delete(self, name: str, confirm: Confirm) -> OperationResult:
        """Delete a category only when no product is filed under it."""
        action = "delete_category"
        count = len(self.store.products_in_category(name))
        if count > 0:
            return OperationResult(
                action=action,
                status=OperationStatus.BLOCKED,
                message=f'Cannot delete category "{name}": it is used by {count} product(s).',
                count=count,
            )

        prompt = f'Are you sure you want to delete the category "{name}"?'
        if not confirm(prompt):
            return OperationResult(action=action, status=OperationStatus.DECLINED, message=prompt)
        return await self.delete_category(name)

    async def delete_category(self, name: str) -> OperationResult:
        # callers go through request_category_delete; referencing products are not re-checked here
        action = "delete_category"
        self.store.categories = [c for c in self.store.categories if c != name]
        try:
            await self.gateway.delete_category(name)
        except GatewayError as exc:
            return await self._reconcile(action, "Failed to delete category", exc)
        return OperationResult(action=action)

    # Backup restore

    async def import_backup(self, document: BackupDocument, confirm: Confirm) -> OperationResult:
        action = "import_backup"
        if not self.settings.ALLOW_BULK_IMPORT:
            return OperationResult(action=action, status=OperationStatus.BLOCKED, message=IMPORT_DISABLED_MESSAGE)
        if not confirm(IMPORT_PROMPT):
            return OperationResult(action=action, status=OperationStatus.DECLINED, message=IMPORT_PROMPT)

        self.store.products = list(document.products)
        self.store.categories = list(document.categories)
        self.store.employees = list(document.employees)
        self.store.assignments = list(document.assignments)
        self.store.scrapped_items = list(document.scrapped_items)

        try:
            await self.gateway.replace_inventory(
                products=document.products,
                categories=document.categories,
                employees=document.employees,
                assignments=document.assignments,
                scrapped_items=document.scrapped_items,
            )
        except GatewayError as exc:
            return await self._reconcile(action, "Failed to import data", exc)

        logger.info("Imported backup with %d products", len(document.products))
        reloaded = await self.reload()
        if not reloaded.ok:
            return reloaded.model_copy(update={"action": action})
        return OperationResult(action=action, count=len(document.products))
