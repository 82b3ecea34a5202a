from sqlalchemy import Boolean, Column, DateTime, String
from sqlalchemy.sql import func

from app.db.base import Base


class AppUserRow(Base):
    """Approval record for an identity-provider account.

    A row is created the first time an account signs in; until a super admin
    flips ``is_approved`` the account sees nothing of the inventory.
    """

    __tablename__ = "app_users"

    id = Column(String(64), primary_key=True)
    email = Column(String, nullable=False, unique=True, index=True)
    role = Column(String, nullable=False, default="user")  # user, admin, super_admin
    is_approved = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
