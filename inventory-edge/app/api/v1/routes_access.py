# app/api/v1/routes_access.py
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from app.api.v1.deps import get_access, get_workspace, require_configured, require_session, require_super_admin
from app.core.identity import AuthSession
from app.domain.access.schemas import Access, AppUser, AuthResult, GateState
from app.domain.inventory.schemas import OperationResult
from app.domain.workspace import Workspace

router = APIRouter(prefix="/api/v1", tags=["access"])


class Credentials(BaseModel):
    email: str
    password: str


class RefreshIn(BaseModel):
    refresh_token: str


class PasswordChange(BaseModel):
    new_password: str
    confirm_password: str


class ApprovalChange(BaseModel):
    approve: bool


class SessionOut(BaseModel):
    state: GateState
    email: Optional[str] = None
    user: Optional[AppUser] = None
    is_super_admin: bool = False
    schema_error: Optional[str] = None
    last_error: Optional[str] = None


@router.get("/session", response_model=SessionOut)
async def read_session(access: Access = Depends(get_access), workspace: Workspace = Depends(get_workspace)):
    return SessionOut(
        state=access.state,
        email=access.email,
        user=access.user,
        is_super_admin=access.is_super_admin,
        schema_error=workspace.store.schema_error if access.state == GateState.APPROVED else None,
        last_error=access.last_error,
    )


@router.post("/auth/sign-in", response_model=AuthResult)
async def sign_in(payload: Credentials, workspace: Workspace = Depends(require_configured)):
    return await workspace.accounts.sign_in(payload.email, payload.password)


@router.post("/auth/sign-up", response_model=AuthResult)
async def sign_up(payload: Credentials, workspace: Workspace = Depends(require_configured)):
    return await workspace.accounts.sign_up(payload.email, payload.password)


@router.post("/auth/refresh", response_model=AuthResult)
async def refresh(payload: RefreshIn, workspace: Workspace = Depends(require_configured)):
    return await workspace.accounts.refresh(payload.refresh_token)


@router.post("/auth/sign-out", response_model=OperationResult)
async def sign_out(
    session: AuthSession = Depends(require_session),
    workspace: Workspace = Depends(require_configured),
):
    return await workspace.accounts.sign_out(session)


@router.post("/auth/password", response_model=AuthResult)
async def change_password(
    payload: PasswordChange,
    session: AuthSession = Depends(require_session),
    workspace: Workspace = Depends(require_configured),
):
    return await workspace.accounts.change_password(session, payload.new_password, payload.confirm_password)


@router.get("/users", response_model=List[AppUser], dependencies=[Depends(require_super_admin)])
async def list_users(workspace: Workspace = Depends(get_workspace)):
    await workspace.accounts.load_users()
    return workspace.accounts.users


@router.post(
    "/users/{email}/approval",
    response_model=OperationResult,
    dependencies=[Depends(require_super_admin)],
)
async def set_approval(email: str, payload: ApprovalChange, workspace: Workspace = Depends(get_workspace)):
    return await workspace.accounts.toggle_approval(email, payload.approve)
