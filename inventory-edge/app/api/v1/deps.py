# app/api/v1/deps.py
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, Response, status
from fastapi.security import OAuth2PasswordBearer

from app.core.identity import AuthSession, IdentityError
from app.domain.access.schemas import Access, GateState
from app.domain.workspace import Workspace

# Reads "Authorization: Bearer <access token>"; sign-in hands the tokens out
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/sign-in", auto_error=False)

ACCESS_TOKEN_HEADER = "X-Access-Token"
REFRESH_TOKEN_HEADER = "X-Refresh-Token"


def get_workspace(request: Request) -> Workspace:
    return request.app.state.workspace


def require_configured(workspace: Workspace = Depends(get_workspace)) -> Workspace:
    if not workspace.gate.configured:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database is not configured",
        )
    return workspace


async def get_current_session(
    response: Response,
    token: Optional[str] = Depends(oauth2_scheme),
    refresh_token: Optional[str] = Header(None, alias=REFRESH_TOKEN_HEADER),
    workspace: Workspace = Depends(get_workspace),
) -> Optional[AuthSession]:
    if token is None or not workspace.gate.configured:
        return None

    try:
        session = await workspace.identity.get_current_session(token, refresh_token)
    except IdentityError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Auth service error: {exc.message}",
        )

    # an expired token was traded in; the caller must switch to the new pair
    if session is not None and session.access_token != token:
        response.headers[ACCESS_TOKEN_HEADER] = session.access_token
        if session.refresh_token:
            response.headers[REFRESH_TOKEN_HEADER] = session.refresh_token
    return session


def require_session(
    session: Optional[AuthSession] = Depends(get_current_session),
    workspace: Workspace = Depends(require_configured),
) -> AuthSession:
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not signed in",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return session


async def get_access(
    session: Optional[AuthSession] = Depends(get_current_session),
    workspace: Workspace = Depends(get_workspace),
) -> Access:
    return await workspace.gate.evaluate(session)


def require_approved(access: Access = Depends(get_access)) -> Access:
    if access.state == GateState.UNCONFIGURED:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database is not configured",
        )
    if access.state == GateState.UNAUTHENTICATED:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=access.last_error or "Not signed in",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if access.state == GateState.PENDING_APPROVAL:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account pending approval",
        )
    return access


def require_super_admin(access: Access = Depends(require_approved)) -> Access:
    if not access.is_super_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Super admin privileges required",
        )
    return access


def current_actor(access: Access = Depends(require_approved)) -> str:
    return access.email
