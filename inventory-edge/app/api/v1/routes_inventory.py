# app/api/v1/routes_inventory.py
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from fastapi.responses import Response
from pydantic import BaseModel

from app.api.v1.deps import current_actor, get_workspace, require_approved
from app.domain.inventory.backup import InvalidBackupError, backup_filename, export_backup, parse_backup
from app.domain.inventory.schemas import (
    Assignment,
    Employee,
    InventoryStats,
    OperationResult,
    Product,
    ScrappedItem,
    StockLog,
    StockOperation,
)
from app.domain.inventory.stats import compute_stats, low_stock_products
from app.domain.workspace import Workspace

router = APIRouter(prefix="/api/v1", tags=["inventory"], dependencies=[Depends(require_approved)])


def answer(confirmed: bool):
    # the client asks the user first and sends the answer along
    return lambda _prompt: confirmed


class InventoryOut(BaseModel):
    products: List[Product]
    assignments: List[Assignment]
    scrapped_items: List[ScrappedItem]
    employees: List[Employee]
    categories: List[str]
    stock_logs: List[StockLog]
    schema_error: Optional[str] = None


class CategoryIn(BaseModel):
    name: str


class StockOperationIn(BaseModel):
    operation: StockOperation


@router.get("/inventory", response_model=InventoryOut)
async def read_inventory(workspace: Workspace = Depends(get_workspace)):
    return InventoryOut(**workspace.store.snapshot())


@router.post("/inventory/reload", response_model=OperationResult)
async def reload_inventory(workspace: Workspace = Depends(get_workspace)):
    return await workspace.coordinator.reload()


@router.get("/inventory/stats", response_model=InventoryStats)
async def read_stats(workspace: Workspace = Depends(get_workspace)):
    return compute_stats(workspace.store.products)


@router.get("/inventory/low-stock", response_model=List[Product])
async def read_low_stock(workspace: Workspace = Depends(get_workspace)):
    return low_stock_products(workspace.store.products)


@router.put("/products", response_model=OperationResult)
async def save_product(
    product: Product,
    workspace: Workspace = Depends(get_workspace),
    actor: str = Depends(current_actor),
):
    return await workspace.coordinator.save_product(product, actor)


@router.delete("/products/{product_id}", response_model=OperationResult)
async def delete_product(
    product_id: str,
    confirm: bool = Query(False),
    workspace: Workspace = Depends(get_workspace),
):
    return await workspace.coordinator.delete_product(product_id, answer(confirm))


@router.post("/stock-operations", response_model=OperationResult)
async def perform_stock_operation(
    payload: StockOperationIn,
    workspace: Workspace = Depends(get_workspace),
    actor: str = Depends(current_actor),
):
    return await workspace.coordinator.perform_stock_operation(payload.operation, actor)


@router.post("/assignments/{assignment_id}/return", response_model=OperationResult)
async def return_asset(
    assignment_id: str,
    confirm: bool = Query(False),
    workspace: Workspace = Depends(get_workspace),
    actor: str = Depends(current_actor),
):
    return await workspace.coordinator.return_asset(assignment_id, actor, answer(confirm))


@router.post("/employees", response_model=OperationResult)
async def add_employee(employee: Employee, workspace: Workspace = Depends(get_workspace)):
    return await workspace.coordinator.add_employee(employee)


@router.post("/categories", response_model=OperationResult)
async def add_category(payload: CategoryIn, workspace: Workspace = Depends(get_workspace)):
    name = payload.name.strip()
    if not name:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Category name is required")
    return await workspace.coordinator.add_category(name)


@router.delete("/categories/{name}", response_model=OperationResult)
async def delete_category(
    name: str,
    confirm: bool = Query(False),
    workspace: Workspace = Depends(get_workspace),
):
    return await workspace.coordinator.request_category_delete(name, answer(confirm))


@router.get("/backup")
async def download_backup(workspace: Workspace = Depends(get_workspace)):
    document = export_backup(workspace.store)
    return Response(
        content=document.to_json(),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{backup_filename()}"'},
    )


@router.post("/backup", response_model=OperationResult)
async def restore_backup(
    payload: Dict[str, Any] = Body(...),
    confirm: bool = Query(False),
    workspace: Workspace = Depends(get_workspace),
):
    try:
        document = parse_backup(payload)
    except InvalidBackupError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return await workspace.coordinator.import_backup(document, answer(confirm))
