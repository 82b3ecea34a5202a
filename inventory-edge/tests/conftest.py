"""
Shared fixtures: an in-memory stand-in for the remote store with per-method
failure injection, a scriptable identity provider, and a seeded coordinator.
"""

import asyncio
from decimal import Decimal
from typing import Any, Dict, List, Optional, Set

import pytest

from app.core.config import Settings
from app.core.identity import SIGNED_IN, SIGNED_OUT, TOKEN_REFRESHED, AuthSession, AuthUser, IdentityError
from app.db.repositories.gateway import GatewayError
from app.domain.access.schemas import AppUser
from app.domain.inventory.schemas import Employee, Product
from app.domain.inventory.service import StockCoordinator
from app.domain.inventory.store import EntityStore

SUPER_ADMIN = "boss@example.com"


class FakeGateway:
    def __init__(self):
        self.products: Dict[str, Product] = {}
        self.employees: List[Employee] = []
        self.assignments: Dict[str, Any] = {}
        self.scrapped_items: List[Any] = []
        self.categories: List[str] = []
        self.stock_logs: List[Any] = []
        self.app_users: Dict[str, AppUser] = {}
        self.failures: Dict[str, str] = {}
        self.calls: List[str] = []

    def fail(self, method: str, message: str = "connection reset by peer") -> None:
        self.failures[method] = message

    def recover(self, method: Optional[str] = None) -> None:
        if method is None:
            self.failures.clear()
        else:
            self.failures.pop(method, None)

    async def _call(self, method: str) -> None:
        self.calls.append(method)
        await asyncio.sleep(0)
        if method in self.failures:
            raise GatewayError(self.failures[method])

    async def fetch_products(self):
        await self._call("fetch_products")
        return list(self.products.values())

    async def upsert_product(self, product):
        await self._call("upsert_product")
        self.products[product.id] = product

    async def delete_product(self, product_id):
        await self._call("delete_product")
        self.products.pop(product_id, None)

    async def fetch_employees(self):
        await self._call("fetch_employees")
        return list(self.employees)

    async def insert_employee(self, employee):
        await self._call("insert_employee")
        self.employees.append(employee)

    async def fetch_assignments(self):
        await self._call("fetch_assignments")
        return list(self.assignments.values())

    async def insert_assignment(self, assignment):
        await self._call("insert_assignment")
        self.assignments[assignment.id] = assignment

    async def update_assignment(self, assignment_id, fields):
        await self._call("update_assignment")
        self.assignments[assignment_id] = self.assignments[assignment_id].model_copy(update=fields)

    async def fetch_scrapped_items(self):
        await self._call("fetch_scrapped_items")
        return sorted(self.scrapped_items, key=lambda s: s.scrapped_date, reverse=True)

    async def insert_scrapped_item(self, item):
        await self._call("insert_scrapped_item")
        self.scrapped_items.append(item)

    async def fetch_categories(self):
        await self._call("fetch_categories")
        return list(self.categories)

    async def insert_category(self, name):
        await self._call("insert_category")
        self.categories.append(name)

    async def delete_category(self, name):
        await self._call("delete_category")
        self.categories.remove(name)

    async def fetch_stock_logs(self):
        await self._call("fetch_stock_logs")
        return sorted(self.stock_logs, key=lambda log: log.date, reverse=True)

    async def insert_stock_log(self, log):
        await self._call("insert_stock_log")
        self.stock_logs.append(log)

    async def fetch_app_user(self, email):
        await self._call("fetch_app_user")
        return self.app_users.get(email)

    async def fetch_app_users(self):
        await self._call("fetch_app_users")
        return list(self.app_users.values())

    async def insert_app_user(self, user):
        await self._call("insert_app_user")
        self.app_users[user.email] = user

    async def update_app_user(self, email, fields):
        await self._call("update_app_user")
        self.app_users[email] = self.app_users[email].model_copy(update=fields)

    async def replace_inventory(self, products, categories, employees, assignments, scrapped_items):
        await self._call("replace_inventory")
        self.products = {p.id: p for p in products}
        self.categories = list(categories)
        self.employees = list(employees)
        self.assignments = {a.id: a for a in assignments}
        self.scrapped_items = list(scrapped_items)


class FakeIdentity:
    """Issues a token pair per sign-in and resolves callers by access token."""

    def __init__(self):
        self.sessions: Dict[str, AuthSession] = {}
        self.expired: Set[str] = set()
        self.listeners = []
        self.events: List[str] = []
        self.passwords: Dict[str, str] = {}
        self.error: Optional[str] = None

    def on_session_change(self, listener):
        self.listeners.append(listener)
        return lambda: self.listeners.remove(listener)

    async def _notify(self, event, session):
        self.events.append(event)
        for listener in list(self.listeners):
            await listener(event, session)

    def _issue(self, email: str) -> AuthSession:
        session = make_session(email)
        self.sessions[session.access_token] = session
        return session

    async def get_current_session(self, access_token, refresh_token=None):
        if not access_token or access_token not in self.sessions:
            return None
        if access_token in self.expired:
            if not refresh_token:
                return None
            return await self.refresh_session(refresh_token)
        return self.sessions[access_token].model_copy(update={"refresh_token": refresh_token})

    async def sign_in_with_password(self, email, password):
        if self.error:
            raise IdentityError(self.error, status_code=400)
        session = self._issue(email)
        await self._notify(SIGNED_IN, session)
        return session

    async def sign_up(self, email, password):
        if self.error:
            raise IdentityError(self.error, status_code=400)
        session = self._issue(email)
        await self._notify(SIGNED_IN, session)
        return session.user, session

    async def refresh_session(self, refresh_token):
        for old in list(self.sessions.values()):
            if old.refresh_token == refresh_token:
                del self.sessions[old.access_token]
                self.expired.discard(old.access_token)
                session = old.model_copy(
                    update={"access_token": old.access_token + "-r", "refresh_token": refresh_token + "-r"}
                )
                self.sessions[session.access_token] = session
                await self._notify(TOKEN_REFRESHED, session)
                return session
        raise IdentityError("Invalid Refresh Token", status_code=400)

    async def sign_out(self, session):
        self.sessions.pop(session.access_token, None)
        await self._notify(SIGNED_OUT, session)

    async def update_password(self, session, new_password):
        if self.error:
            raise IdentityError(self.error, status_code=422)
        self.passwords[session.user.email] = new_password
        return session


def make_session(email: str, user_id: Optional[str] = None) -> AuthSession:
    return AuthSession(
        access_token="token-" + email,
        refresh_token="refresh-" + email,
        user=AuthUser(id=user_id or "uid-" + email, email=email),
    )


def make_product(**overrides) -> Product:
    fields = dict(
        id="p1",
        name="Laptop",
        name_zh="笔记本电脑",
        sku="LAP-001",
        category="Electronics",
        quantity=10,
        price=Decimal("999.00"),
        min_stock=5,
        description="Work laptop",
    )
    fields.update(overrides)
    return Product(**fields)


def make_employee(**overrides) -> Employee:
    fields = dict(id="e1", name="Alice Chen", email="alice@example.com", department="IT", role="Engineer")
    fields.update(overrides)
    return Employee(**fields)


def confirm_yes(_prompt):
    return True


def confirm_no(_prompt):
    return False


@pytest.fixture
def settings():
    return Settings(
        DB_URL="sqlite+aiosqlite://",
        AUTH_URL="http://auth.test/auth/v1",
        AUTH_API_KEY="anon-key",
        SUPER_ADMIN_EMAIL=SUPER_ADMIN,
        ALLOW_BULK_IMPORT=True,
        ENABLE_ASSET_RETURNS=True,
    )


@pytest.fixture
def gateway():
    gw = FakeGateway()
    product = make_product()
    gw.products[product.id] = product
    gw.employees.append(make_employee())
    gw.categories.extend(["Electronics", "Office Supplies"])
    return gw


@pytest.fixture
def store(gateway):
    return EntityStore(gateway)


@pytest.fixture
async def loaded_store(store):
    await store.load_all()
    return store


@pytest.fixture
def coordinator(loaded_store, gateway, settings):
    return StockCoordinator(loaded_store, gateway, settings)
