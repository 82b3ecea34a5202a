# app/domain/access/schemas.py
import enum
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from app.core.identity import AuthSession
from app.domain.inventory.schemas import OperationResult, utcnow


class UserRole(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


class AppUser(BaseModel):
    id: str
    email: str
    role: UserRole = UserRole.USER
    is_approved: bool = False
    created_at: Optional[datetime] = Field(default_factory=utcnow)

    class Config:
        from_attributes = True
        use_enum_values = True
        validate_default = True


class GateState(str, enum.Enum):
    UNCONFIGURED = "unconfigured"
    UNAUTHENTICATED = "unauthenticated"
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"


class Access(BaseModel):
    """What one caller may do, as decided by the gate for its session."""

    state: GateState
    session: Optional[AuthSession] = None
    user: Optional[AppUser] = None
    is_super_admin: bool = False
    last_error: Optional[str] = None

    @property
    def email(self) -> Optional[str]:
        return self.session.user.email if self.session else None


class AuthResult(OperationResult):
    """An account action's outcome, carrying the caller's tokens when it has any."""

    session: Optional[AuthSession] = None
