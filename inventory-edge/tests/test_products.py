from decimal import Decimal

from conftest import confirm_no, confirm_yes, make_product

from app.domain.inventory.schemas import OperationStatus, StockAction

ACTOR = "clerk@example.com"


async def test_create_product_logs_initial_quantity(coordinator, gateway):
    product = make_product(id="p2", sku="MON-001", name="Monitor", name_zh="显示器", quantity=20)

    result = await coordinator.save_product(product, ACTOR)

    assert result.ok
    assert gateway.products["p2"].quantity == 20
    create_logs = [log for log in gateway.stock_logs if log.action == StockAction.CREATE]
    assert len(create_logs) == 1
    assert create_logs[0].quantity == 20
    assert create_logs[0].performed_by == ACTOR
    assert coordinator.store.stock_logs[0].action == "CREATE"


async def test_create_product_refetches_collection(coordinator, gateway):
    gateway.calls.clear()

    await coordinator.save_product(make_product(id="p2", sku="MON-001"), ACTOR)

    assert gateway.calls == ["upsert_product", "insert_stock_log", "fetch_products"]
    assert {p.id for p in coordinator.store.products} == {"p1", "p2"}


async def test_edit_does_not_write_a_creation_log(coordinator, gateway):
    edited = make_product(price=Decimal("1200.00"), min_stock=2)

    result = await coordinator.save_product(edited, ACTOR)

    assert result.ok
    assert gateway.products["p1"].price == Decimal("1200.00")
    assert gateway.stock_logs == []


async def test_edit_keeps_identity_fields(coordinator, gateway):
    edited = make_product(name="Renamed", name_zh="改名", sku="OTHER", description="updated")

    await coordinator.save_product(edited, ACTOR)

    saved = gateway.products["p1"]
    assert (saved.name, saved.name_zh, saved.sku) == ("Laptop", "笔记本电脑", "LAP-001")
    assert saved.description == "updated"


async def test_creation_log_failure_keeps_product(coordinator, gateway):
    gateway.fail("insert_stock_log")

    result = await coordinator.save_product(make_product(id="p2", sku="MON-001"), ACTOR)

    assert result.ok
    assert "p2" in gateway.products
    assert coordinator.store.find_product("p2") is not None
    assert coordinator.store.stock_logs == []


async def test_failed_save_reloads_product_collection(coordinator, gateway):
    gateway.fail("upsert_product")
    gateway.calls.clear()

    result = await coordinator.save_product(make_product(quantity=99), ACTOR)

    assert result.status == OperationStatus.FAILED
    assert result.message.startswith("Failed to save product:")
    assert coordinator.store.find_product("p1").quantity == 10
    assert "fetch_products" in gateway.calls
    assert [p.id for p in coordinator.store.products] == ["p1"]


async def test_failed_create_leaves_no_phantom_product(coordinator, gateway):
    gateway.fail("upsert_product")

    await coordinator.save_product(make_product(id="p2", sku="MON-001"), ACTOR)

    assert coordinator.store.find_product("p2") is None


async def test_delete_requires_confirmation(coordinator, gateway):
    result = await coordinator.delete_product("p1", confirm_no)

    assert result.status == OperationStatus.DECLINED
    assert "p1" in gateway.products
    assert coordinator.store.find_product("p1") is not None


async def test_delete_product(coordinator, gateway):
    result = await coordinator.delete_product("p1", confirm_yes)

    assert result.ok
    assert gateway.products == {}
    assert coordinator.store.products == []


async def test_failed_delete_restores_product(coordinator, gateway):
    gateway.fail("delete_product")

    result = await coordinator.delete_product("p1", confirm_yes)

    assert result.status == OperationStatus.FAILED
    assert coordinator.store.find_product("p1") is not None
