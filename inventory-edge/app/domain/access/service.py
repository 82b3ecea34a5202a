# app/domain/access/service.py
import logging
from typing import List

from app.core.identity import AuthSession, IdentityError, IdentityProvider
from app.db.repositories.gateway import GatewayError, PersistenceGateway
from app.domain.access.schemas import AppUser, AuthResult
from app.domain.inventory.schemas import OperationResult, OperationStatus

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def _failed(action: str, message: str) -> AuthResult:
    return AuthResult(action=action, status=OperationStatus.FAILED, message=message)


class AccountService:
    """Account-level actions: sign in/out, token refresh, password changes and user approval."""

    def __init__(self, gateway: PersistenceGateway, identity: IdentityProvider):
        self.gateway = gateway
        self.identity = identity
        self.users: List[AppUser] = []

    async def sign_in(self, email: str, password: str) -> AuthResult:
        try:
            session = await self.identity.sign_in_with_password(email, password)
        except IdentityError as exc:
            return _failed("sign_in", exc.message)
        return AuthResult(action="sign_in", session=session)

    async def sign_up(self, email: str, password: str) -> AuthResult:
        try:
            _, session = await self.identity.sign_up(email, password)
        except IdentityError as exc:
            return _failed("sign_up", exc.message)

        if session is None:
            return AuthResult(action="sign_up", message="Check your email to confirm the account.")
        return AuthResult(action="sign_up", session=session)

    async def refresh(self, refresh_token: str) -> AuthResult:
        try:
            session = await self.identity.refresh_session(refresh_token)
        except IdentityError as exc:
            return _failed("refresh", exc.message)
        return AuthResult(action="refresh", session=session)

    async def sign_out(self, session: AuthSession) -> OperationResult:
        try:
            await self.identity.sign_out(session)
        except IdentityError as exc:
            # the gate has dropped the session either way
            logger.warning("Remote sign-out failed for %s: %s", session.user.email, exc.message)
        return OperationResult(action="sign_out")

    async def change_password(self, session: AuthSession, new_password: str, confirm_password: str) -> AuthResult:
        action = "change_password"
        if new_password != confirm_password:
            return _failed(action, "Passwords do not match")
        if len(new_password) < MIN_PASSWORD_LENGTH:
            return _failed(action, f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

        try:
            session = await self.identity.update_password(session, new_password)
        except IdentityError as exc:
            return _failed(action, exc.message or "Failed to update password")
        return AuthResult(action=action, message="Password updated successfully", session=session)

    async def load_users(self) -> OperationResult:
        try:
            self.users = list(await self.gateway.fetch_app_users())
        except GatewayError as exc:
            logger.error("Failed to load users: %s", exc.message)
            return _failed("load_users", f"Failed to load users: {exc.message}")
        return OperationResult(action="load_users", count=len(self.users))

    async def toggle_approval(self, email: str, approve: bool) -> OperationResult:
        """Approve or revoke an account.

        Who may call this is checked by the caller. The local list is flipped
        first; if the remote update fails the flip is left in place and only
        reported, since app users are not part of the bulk reload. The gate
        reads approval from the store on every request, so the change takes
        effect on the account's next call.
        """
        action = "toggle_approval"
        self.users = [
            u.model_copy(update={"is_approved": approve}) if u.email == email else u for u in self.users
        ]
        try:
            await self.gateway.update_app_user(email, {"is_approved": approve})
        except GatewayError as exc:
            logger.error("Failed to update user status for %s: %s", email, exc.message)
            return _failed(action, "Failed to update user status")

        logger.info("%s %s", "Approved" if approve else "Revoked", email)
        return OperationResult(action=action)
