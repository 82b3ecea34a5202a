import asyncio

import pytest

from app.domain.inventory.schemas import (
    AssignOperation,
    InboundOperation,
    OperationStatus,
    ScrapOperation,
    StockAction,
)

ACTOR = "clerk@example.com"


async def test_assign_decrements_stock_and_creates_assignment(coordinator, gateway):
    result = await coordinator.perform_stock_operation(
        AssignOperation(product_id="p1", quantity=3, employee_id="e1"), ACTOR
    )

    assert result.ok
    assert coordinator.store.find_product("p1").quantity == 7
    assert gateway.products["p1"].quantity == 7

    assert len(coordinator.store.assignments) == 1
    assignment = coordinator.store.assignments[0]
    assert assignment.product_id == "p1"
    assert assignment.employee_id == "e1"
    assert assignment.quantity == 3
    assert assignment.status == "Active"
    assert assignment.performed_by == ACTOR
    assert assignment.employee_name == "Alice Chen"
    assert assignment.product_name_zh == "笔记本电脑"
    assert assignment.id in gateway.assignments


async def test_scrap_beyond_stock_clamps_at_zero(coordinator, gateway):
    result = await coordinator.perform_stock_operation(
        ScrapOperation(product_id="p1", quantity=15, reason="Water damage"), ACTOR
    )

    assert result.ok
    assert coordinator.store.find_product("p1").quantity == 0
    assert gateway.products["p1"].quantity == 0
    assert coordinator.store.scrapped_items[0].reason == "Water damage"
    assert coordinator.store.scrapped_items[0].quantity == 15
    assert coordinator.store.scrapped_items[0].product_name_zh == "笔记本电脑"


async def test_scrap_is_prepended(coordinator):
    await coordinator.perform_stock_operation(ScrapOperation(product_id="p1", quantity=1, reason="first"), ACTOR)
    await coordinator.perform_stock_operation(ScrapOperation(product_id="p1", quantity=1, reason="second"), ACTOR)

    assert [s.reason for s in coordinator.store.scrapped_items] == ["second", "first"]


@pytest.mark.parametrize("start,delta", [(0, 1), (10, 10), (10, 4), (3, 100)])
async def test_outbound_quantity_formula(coordinator, gateway, start, delta):
    coordinator.store.replace_product(coordinator.store.find_product("p1").model_copy(update={"quantity": start}))

    await coordinator.perform_stock_operation(AssignOperation(product_id="p1", quantity=delta, employee_id="e1"), ACTOR)

    assert coordinator.store.find_product("p1").quantity == max(0, start - delta)


async def test_inbound_adds_and_logs(coordinator, gateway):
    result = await coordinator.perform_stock_operation(InboundOperation(product_id="p1", quantity=25), ACTOR)

    assert result.ok
    assert coordinator.store.find_product("p1").quantity == 35
    log = coordinator.store.stock_logs[0]
    assert log.action == StockAction.INBOUND
    assert log.quantity == 25
    assert log.product_name == "Laptop"
    assert len(gateway.stock_logs) == 1


async def test_unknown_product_is_a_silent_no_op(coordinator, gateway):
    gateway.calls.clear()

    result = await coordinator.perform_stock_operation(InboundOperation(product_id="gone", quantity=1), ACTOR)

    assert result.status == OperationStatus.IGNORED
    assert result.message is None
    assert gateway.calls == []


async def test_assign_to_unknown_employee_is_ignored(coordinator, gateway):
    result = await coordinator.perform_stock_operation(
        AssignOperation(product_id="p1", quantity=1, employee_id="nobody"), ACTOR
    )

    assert result.status == OperationStatus.IGNORED
    assert result.message == "Please select a valid employee."
    assert coordinator.store.find_product("p1").quantity == 10


async def test_failed_record_write_reloads_everything(coordinator, gateway):
    gateway.fail("insert_assignment")

    result = await coordinator.perform_stock_operation(
        AssignOperation(product_id="p1", quantity=3, employee_id="e1"), ACTOR
    )

    assert result.status == OperationStatus.FAILED
    assert result.message.startswith("Operation failed:")
    # the product upsert went through before the failure, and the reload shows it
    assert coordinator.store.find_product("p1").quantity == 7
    assert coordinator.store.assignments == []
    assert "fetch_products" in gateway.calls[gateway.calls.index("insert_assignment"):]


async def test_failed_product_write_discards_optimistic_quantity(coordinator, gateway):
    gateway.fail("upsert_product")

    result = await coordinator.perform_stock_operation(
        ScrapOperation(product_id="p1", quantity=4, reason="broken"), ACTOR
    )

    assert result.status == OperationStatus.FAILED
    assert coordinator.store.find_product("p1").quantity == 10
    assert coordinator.store.scrapped_items == []


async def test_schema_mismatch_on_write_sets_banner(coordinator, gateway):
    gateway.fail("insert_stock_log", 'relation "stock_logs" does not exist')

    result = await coordinator.perform_stock_operation(InboundOperation(product_id="p1", quantity=1), ACTOR)

    assert result.schema_mismatch
    assert coordinator.store.schema_error is not None


async def test_optimistic_update_is_visible_before_write_resolves(coordinator, gateway):
    release = asyncio.Event()
    original = gateway.upsert_product

    async def slow_upsert(product):
        await release.wait()
        await original(product)

    gateway.upsert_product = slow_upsert

    task = asyncio.create_task(
        coordinator.perform_stock_operation(InboundOperation(product_id="p1", quantity=5), ACTOR)
    )
    await asyncio.sleep(0)

    assert coordinator.store.find_product("p1").quantity == 15
    assert gateway.products["p1"].quantity == 10

    release.set()
    result = await task
    assert result.ok
    assert gateway.products["p1"].quantity == 15


async def test_new_record_ids_are_unique(coordinator):
    for _ in range(5):
        await coordinator.perform_stock_operation(InboundOperation(product_id="p1", quantity=1), ACTOR)

    ids = [log.id for log in coordinator.store.stock_logs]
    assert len(set(ids)) == 5
