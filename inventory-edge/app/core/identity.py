# app/core/identity.py
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

import httpx
from pydantic import BaseModel

logger = logging.getLogger(__name__)

SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"
TOKEN_REFRESHED = "TOKEN_REFRESHED"
USER_UPDATED = "USER_UPDATED"


class IdentityError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class AuthUser(BaseModel):
    id: str
    email: str


class AuthSession(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    user: AuthUser


SessionListener = Callable[[str, AuthSession], Awaitable[None]]

# GoTrue answers an expired or revoked access token with one of these
TOKEN_REJECTED = (401, 403)


def _error_text(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        for key in ("error_description", "msg", "message", "error"):
            if body.get(key):
                return str(body[key])
    return f"HTTP {response.status_code}"


class IdentityProvider:
    """Client for a GoTrue-compatible auth API (Supabase auth and friends).

    Holds no session of its own: every caller brings its tokens, and calls
    made on a caller's behalf take that caller's :class:`AuthSession`. An
    access token the provider rejects is exchanged once through the refresh
    token before the call is retried. Listeners hear about every session
    that is created, refreshed, updated or ended. Every call raises
    :class:`IdentityError` on failure.
    """

    def __init__(self, base_url: str, api_key: str, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self._transport = transport
        self._listeners: List[SessionListener] = []

    def on_session_change(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def _notify(self, event: str, session: AuthSession) -> None:
        for listener in list(self._listeners):
            await listener(event, session)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, str]] = None,
        token: Optional[str] = None,
    ) -> Dict[str, Any]:
        headers = {"apikey": self.api_key, "Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        async with httpx.AsyncClient(base_url=self.base_url, transport=self._transport) as client:
            try:
                response = await client.request(method, path, json=json, params=params, headers=headers)
            except httpx.RequestError as e:
                logger.error(f"Identity request {method} {path} failed: {e}")
                raise IdentityError(str(e)) from e

        if response.status_code >= 400:
            message = _error_text(response)
            logger.warning(f"Identity request {method} {path} rejected: {message}")
            raise IdentityError(message, status_code=response.status_code)

        if not response.content:
            return {}
        return response.json()

    async def _authorized(
        self,
        method: str,
        path: str,
        session: AuthSession,
        **kwargs: Any,
    ) -> Tuple[Dict[str, Any], AuthSession]:
        try:
            return await self._request(method, path, token=session.access_token, **kwargs), session
        except IdentityError as exc:
            if exc.status_code not in TOKEN_REJECTED or not session.refresh_token:
                raise

        logger.info("Access token for %s rejected, refreshing", session.user.email)
        session = await self.refresh_session(session.refresh_token)
        return await self._request(method, path, token=session.access_token, **kwargs), session

    @staticmethod
    def _session_from(body: Dict[str, Any]) -> AuthSession:
        return AuthSession(
            access_token=body["access_token"],
            refresh_token=body.get("refresh_token"),
            user=AuthUser(id=body["user"]["id"], email=body["user"]["email"]),
        )

    async def get_user(self, access_token: str) -> AuthUser:
        body = await self._request("GET", "/user", token=access_token)
        return AuthUser(id=body["id"], email=body["email"])

    async def get_current_session(
        self,
        access_token: Optional[str],
        refresh_token: Optional[str] = None,
    ) -> Optional[AuthSession]:
        """Resolve the session a caller presents.

        Returns None when no token was sent or the provider no longer
        accepts it and there is no refresh token to trade in. An accepted
        refresh yields the new session.
        """
        if not access_token:
            return None

        try:
            user = await self.get_user(access_token)
        except IdentityError as exc:
            if exc.status_code not in TOKEN_REJECTED:
                raise
            if not refresh_token:
                return None
        else:
            return AuthSession(access_token=access_token, refresh_token=refresh_token, user=user)

        try:
            return await self.refresh_session(refresh_token)
        except IdentityError as exc:
            if exc.status_code is not None and exc.status_code < 500:
                return None
            raise

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        body = await self._request(
            "POST",
            "/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        session = self._session_from(body)
        await self._notify(SIGNED_IN, session)
        return session

    async def sign_up(self, email: str, password: str) -> Tuple[AuthUser, Optional[AuthSession]]:
        body = await self._request("POST", "/signup", json={"email": email, "password": password})

        # with email confirmation on, only the user comes back
        if "access_token" in body:
            session = self._session_from(body)
            await self._notify(SIGNED_IN, session)
            return session.user, session

        user = AuthUser(id=body["id"], email=body["email"])
        return user, None

    async def refresh_session(self, refresh_token: str) -> AuthSession:
        body = await self._request(
            "POST",
            "/token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": refresh_token},
        )
        session = self._session_from(body)
        await self._notify(TOKEN_REFRESHED, session)
        return session

    async def sign_out(self, session: AuthSession) -> None:
        # listeners drop the session even when the remote logout fails
        try:
            await self._authorized("POST", "/logout", session)
        finally:
            await self._notify(SIGNED_OUT, session)

    async def update_password(self, session: AuthSession, new_password: str) -> AuthSession:
        _, session = await self._authorized("PUT", "/user", session, json={"password": new_password})
        await self._notify(USER_UPDATED, session)
        return session
