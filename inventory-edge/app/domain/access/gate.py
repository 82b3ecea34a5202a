# app/domain/access/gate.py
import logging
from typing import Dict, List, Optional

from app.core.config import Settings
from app.core.identity import SIGNED_OUT, AuthSession, IdentityProvider
from app.db.repositories.gateway import GatewayError, PersistenceGateway
from app.domain.access.schemas import Access, AppUser, GateState, UserRole
from app.domain.inventory.store import EntityStore, StoreLoadError

logger = logging.getLogger(__name__)


class AccessGate:
    """Decides, session by session, whether a caller may see the inventory.

    Approval lives in the ``app_users`` table. The configured super admin is
    always let through; everybody else gets a pending row on first sign-in
    and waits for a super admin to approve it.

    Each caller is judged on its own session and gets back an
    :class:`Access`; nothing about one caller leaks to another. The gate
    only remembers which users it has let in: the first approved user
    populates the entity store, and the store is cleared again once the
    last of them has signed out or lost approval.
    """

    def __init__(
        self,
        settings: Settings,
        identity: Optional[IdentityProvider],
        gateway: Optional[PersistenceGateway],
        store: EntityStore,
    ):
        self.settings = settings
        self.identity = identity
        self.gateway = gateway
        self.store = store

        self._approved: Dict[str, str] = {}  # user id -> email
        self._unsubscribe = None

    @property
    def configured(self) -> bool:
        return self.settings.is_configured

    @property
    def approved_emails(self) -> List[str]:
        return sorted(self._approved.values())

    async def start(self) -> GateState:
        if not self.configured:
            logger.warning("Database or auth service is not configured")
            return GateState.UNCONFIGURED

        self._unsubscribe = self.identity.on_session_change(self.handle_session_change)
        return GateState.UNAUTHENTICATED

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def handle_session_change(self, event: str, session: AuthSession) -> None:
        logger.info("Session change for %s: %s", session.user.email, event)
        if event == SIGNED_OUT:
            self.release(session.user.id)
        else:
            await self.evaluate(session)

    async def evaluate(self, session: Optional[AuthSession]) -> Access:
        if not self.configured:
            return Access(state=GateState.UNCONFIGURED)

        if session is None:
            self._clear_if_idle()
            return Access(state=GateState.UNAUTHENTICATED)

        email = session.user.email
        if email == self.settings.SUPER_ADMIN_EMAIL:
            if session.user.id not in self._approved:
                await self._sync_super_admin(session)
            await self._admit(session)
            user = AppUser(id=session.user.id, email=email, role=UserRole.SUPER_ADMIN, is_approved=True)
            return Access(state=GateState.APPROVED, session=session, user=user, is_super_admin=True)

        try:
            app_user = await self.gateway.fetch_app_user(email)
            if app_user is None:
                app_user = AppUser(id=session.user.id, email=email, role=UserRole.USER, is_approved=False)
                await self.gateway.insert_app_user(app_user)
                logger.info("Registered %s, awaiting approval", email)
        except GatewayError as exc:
            logger.error("Auth flow error for %s: %s", email, exc.message)
            self.release(session.user.id)
            return Access(state=GateState.UNAUTHENTICATED, session=session, last_error=exc.message)

        if not app_user.is_approved:
            self.release(session.user.id)
            return Access(state=GateState.PENDING_APPROVAL, session=session, user=app_user)

        await self._admit(session)
        return Access(
            state=GateState.APPROVED,
            session=session,
            user=app_user,
            is_super_admin=app_user.role == UserRole.SUPER_ADMIN,
        )

    def release(self, user_id: str) -> None:
        email = self._approved.pop(user_id, None)
        if email is not None:
            logger.info("%s no longer has access", email)
        self._clear_if_idle()

    async def _sync_super_admin(self, session: AuthSession) -> None:
        # keeps the super admin visible in user management; login does not depend on it
        try:
            existing = await self.gateway.fetch_app_user(session.user.email)
            if existing is None:
                await self.gateway.insert_app_user(
                    AppUser(
                        id=session.user.id,
                        email=session.user.email,
                        role=UserRole.SUPER_ADMIN,
                        is_approved=True,
                    )
                )
        except GatewayError as exc:
            logger.warning("Could not sync admin to DB (tables might be missing): %s", exc.message)

    async def _admit(self, session: AuthSession) -> None:
        first_visit = session.user.id not in self._approved
        self._approved[session.user.id] = session.user.email
        if not first_visit:
            return

        logger.info("%s approved", session.user.email)
        try:
            await self.store.load_all()
        except StoreLoadError as exc:
            logger.error("Initial load failed for %s: %s", session.user.email, exc)

    def _clear_if_idle(self) -> None:
        if not self._approved:
            self.store.clear()
