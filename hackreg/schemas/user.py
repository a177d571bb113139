"""Pydantic schemas for accounts and authentication"""
from typing import Optional

from hackreg.models.user import User
from hackreg.schemas.team import CamelModel
from hackreg.services.auth_service import AdminIdentity
from hackreg.utils.datetime_utils import format_for_api


class UserResponse(CamelModel):
    """Participant account; the password hash is never exposed"""
    id: str
    name: str
    email: str
    role: str
    created_at: str
    last_login: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=str(user.id),
            name=user.name,
            email=user.email,
            role=user.role,
            created_at=format_for_api(user.created_at),
            last_login=format_for_api(user.last_login),
        )


class AdminResponse(CamelModel):
    id: str
    name: str
    email: str
    role: str

    @classmethod
    def from_identity(cls, admin: AdminIdentity) -> "AdminResponse":
        return cls(id=admin.id, name=admin.name, email=admin.email, role=admin.role)


class UserData(CamelModel):
    user: UserResponse


class AuthData(CamelModel):
    user: UserResponse
    token: str


class AdminAuthData(CamelModel):
    admin: AdminResponse
    token: str
