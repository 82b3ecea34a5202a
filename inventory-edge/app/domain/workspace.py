# app/domain/workspace.py
from typing import Optional

from app.core.config import Settings
from app.core.identity import IdentityProvider
from app.db.base import create_session_factory
from app.db.repositories.gateway import PersistenceGateway
from app.domain.access.gate import AccessGate
from app.domain.access.schemas import GateState
from app.domain.access.service import AccountService
from app.domain.inventory.service import StockCoordinator
from app.domain.inventory.store import EntityStore


class Workspace:
    """Owns the shared application state: one store, one gate, one coordinator.

    Built once per process; the API layer reaches everything through it.
    Who is calling is never stored here; each request brings its own session.
    """

    def __init__(
        self,
        settings: Settings,
        gateway: Optional[PersistenceGateway],
        identity: Optional[IdentityProvider],
    ):
        self.settings = settings
        self.gateway = gateway
        self.identity = identity
        self.store = EntityStore(gateway)
        self.gate = AccessGate(settings, identity, gateway, self.store)
        self.coordinator = StockCoordinator(self.store, gateway, settings)
        self.accounts = AccountService(gateway, identity)

    @classmethod
    def from_settings(cls, settings: Settings) -> "Workspace":
        if not settings.is_configured:
            return cls(settings, gateway=None, identity=None)
        gateway = PersistenceGateway(create_session_factory(settings.DB_URL))
        identity = IdentityProvider(settings.AUTH_URL, settings.AUTH_API_KEY)
        return cls(settings, gateway=gateway, identity=identity)

    async def start(self) -> GateState:
        return await self.gate.start()

    async def stop(self) -> None:
        self.gate.stop()
