"""
FastAPI Dependencies for Hackathon Registration.

Reusable dependencies for database sessions, services and role-scoped
bearer authentication.
"""

import uuid
from typing import Annotated, AsyncGenerator

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from hackreg.core.config import Settings, get_settings
from hackreg.core.database import get_db
from hackreg.core.exceptions import AuthenticationError
from hackreg.models.user import User
from hackreg.services.auth_service import (
    ADMIN,
    PARTICIPANT,
    AdminIdentity,
    CredentialService,
)
from hackreg.services.team_service import TeamService

# Security scheme for API documentation
security = HTTPBearer(auto_error=False)

NO_TOKEN_MESSAGE = "Access denied. No token provided."


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting database sessions."""
    async for session in get_db():
        yield session


DbSession = Annotated[AsyncSession, Depends(get_db_session)]
AppSettings = Annotated[Settings, Depends(get_settings)]


def get_team_service(session: DbSession, settings: AppSettings) -> TeamService:
    return TeamService(session, settings)


def get_credential_service(session: DbSession, settings: AppSettings) -> CredentialService:
    return CredentialService(session, settings)


Teams = Annotated[TeamService, Depends(get_team_service)]
Credentials = Annotated[CredentialService, Depends(get_credential_service)]
BearerToken = Annotated[HTTPAuthorizationCredentials | None, Depends(security)]


def _require_token(authorization: HTTPAuthorizationCredentials | None) -> str:
    # HTTPBearer(auto_error=False) yields None for missing or non-Bearer headers
    if authorization is None or not authorization.credentials:
        raise AuthenticationError(NO_TOKEN_MESSAGE)
    return authorization.credentials


async def _load_participant(credentials: CredentialService, token: str) -> User:
    claims = credentials.verify_token(token, PARTICIPANT)
    try:
        user_id = uuid.UUID(claims["sub"])
    except ValueError as e:
        raise AuthenticationError("Invalid token payload") from e

    user = await credentials.db.get(User, user_id)
    if user is None:
        raise AuthenticationError("User no longer exists.")
    return user


async def get_current_participant(
    credentials: Credentials,
    authorization: BearerToken = None,
) -> User:
    """
    Get the participant behind the bearer token.

    Raises:
        AuthenticationError: Missing, invalid or expired token, or deleted user
        AuthorizationError: Admin token presented on a participant route
    """
    return await _load_participant(credentials, _require_token(authorization))


CurrentParticipant = Annotated[User, Depends(get_current_participant)]


async def get_optional_participant(
    credentials: Credentials,
    authorization: BearerToken = None,
) -> User | None:
    """
    Get the participant if a bearer token was sent, otherwise None.

    A token that is sent but invalid still fails the request.
    """
    if authorization is None or not authorization.credentials:
        return None
    return await _load_participant(credentials, authorization.credentials)


OptionalParticipant = Annotated[User | None, Depends(get_optional_participant)]


async def get_current_admin(
    settings: AppSettings,
    authorization: BearerToken = None,
) -> AdminIdentity:
    """
    Require an admin token.

    Raises:
        AuthenticationError: Missing, invalid or expired token
        AuthorizationError: Participant token presented on an admin route
    """
    token = _require_token(authorization)
    claims = CredentialService(None, settings).verify_token(token, ADMIN)
    return AdminIdentity(
        id=claims["sub"],
        name=settings.admin_name,
        email=settings.admin_email or "",
    )


CurrentAdmin = Annotated[AdminIdentity, Depends(get_current_admin)]
