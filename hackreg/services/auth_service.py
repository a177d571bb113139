"""
Authentication Service for Hackathon Registration.

Handles participant signup/login, the single env-configured admin login,
and role-scoped bearer tokens. Participant and admin tokens are signed
with different secrets and are never accepted in place of each other.
"""

import logging
import re
import uuid
from dataclasses import dataclass
from datetime import timedelta
from functools import lru_cache
from typing import Any, Literal

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hackreg.core.config import Settings
from hackreg.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    InternalError,
    NotFoundError,
    ValidationError,
    conflict_from_integrity_error,
)
from hackreg.models.user import User
from hackreg.services.validation import normalize_email
from hackreg.utils.datetime_utils import now

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

Role = Literal["participant", "admin"]
PARTICIPANT: Role = "participant"
ADMIN: Role = "admin"
ADMIN_SUBJECT = "admin"

PASSWORD_MIN_LENGTH = 8
PASSWORD_RE = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])")


@dataclass(frozen=True)
class AdminIdentity:
    """The configured administrator; not a database record."""

    id: str
    name: str
    email: str
    role: str = ADMIN


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against a hashed password."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a plain password."""
    return pwd_context.hash(password)


@lru_cache(maxsize=4)
def _hash_configured_password(password: str) -> str:
    return get_password_hash(password)


def validate_password_strength(password: str) -> None:
    """
    Require 8+ characters with lower-case, upper-case, digit and one of @$!%*?&.

    Raises:
        ValidationError: If the password is too weak
    """
    if len(password) < PASSWORD_MIN_LENGTH or not PASSWORD_RE.match(password):
        message = (
            f"Password must be at least {PASSWORD_MIN_LENGTH} characters and contain "
            "an uppercase letter, a lowercase letter, a number and a special character"
        )
        raise ValidationError(message, errors=[{"field": "password", "message": message}])


class CredentialService:
    """Service for accounts, admin login and token handling."""

    def __init__(self, db: AsyncSession | None, settings: Settings):
        self.db = db
        self.settings = settings

    # ==================== Tokens ====================

    def _secret_for(self, role: Role) -> str:
        if role == ADMIN:
            return self.settings.jwt_secret_admin
        return self.settings.jwt_secret_user

    def issue_token(self, subject_id: str, role: Role, expires_delta: timedelta | None = None) -> str:
        """Create a JWT signed with the secret of the given role."""
        issued_at = now()
        expire = issued_at + (
            expires_delta or timedelta(minutes=self.settings.jwt_expire_minutes)
        )
        claims = {
            "sub": str(subject_id),
            "role": role,
            "iat": issued_at,
            "exp": expire,
        }
        return jwt.encode(claims, self._secret_for(role), algorithm=self.settings.jwt_algorithm)

    def _signed_by(self, token: str, role: Role) -> bool:
        try:
            jwt.decode(
                token,
                self._secret_for(role),
                algorithms=[self.settings.jwt_algorithm],
                options={"verify_exp": False},
            )
        except JWTError:
            return False
        return True

    def verify_token(self, token: str, expected_role: Role) -> dict[str, Any]:
        """
        Decode and validate a token for the expected role.

        Raises:
            AuthenticationError: Malformed, forged or expired token
            AuthorizationError: Token belongs to the other role
        """
        try:
            claims = jwt.decode(
                token,
                self._secret_for(expected_role),
                algorithms=[self.settings.jwt_algorithm],
            )
        except ExpiredSignatureError as e:
            raise AuthenticationError("Your token has expired! Please log in again.") from e
        except JWTError as e:
            other: Role = PARTICIPANT if expected_role == ADMIN else ADMIN
            if self._signed_by(token, other):
                raise AuthorizationError(self._role_denied_message(expected_role)) from e
            raise AuthenticationError("Invalid token. Please log in again!") from e

        if claims.get("role") != expected_role:
            raise AuthorizationError(self._role_denied_message(expected_role))
        if not claims.get("sub"):
            raise AuthenticationError("Invalid token payload")
        return claims

    @staticmethod
    def _role_denied_message(expected_role: Role) -> str:
        if expected_role == ADMIN:
            return "Access denied. Admin privileges required."
        return "Access denied. Participant account required."

    # ==================== Participants ====================

    async def _find_by_email(self, email: str) -> User | None:
        result = await self.db.execute(
            select(User).where(User.email == normalize_email(email))
        )
        return result.scalar_one_or_none()

    async def signup(self, name: str, email: str, password: str) -> tuple[User, str]:
        """
        Create a participant account.

        Returns:
            The new user and a participant token

        Raises:
            ValidationError: If the email is taken or the password is weak
        """
        if await self._find_by_email(email):
            raise ValidationError(
                "User with this email already exists",
                errors=[{"field": "email", "message": "Email already registered"}],
            )
        validate_password_strength(password)

        user = User(
            name=name.strip(),
            email=normalize_email(email),
            password_hash=get_password_hash(password),
            role=PARTICIPANT,
            last_login=now(),
        )
        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise conflict_from_integrity_error(e) from e

        logger.info(f"Participant signed up: {user.id}")
        return user, self.issue_token(str(user.id), PARTICIPANT)

    async def login(self, email: str, password: str) -> tuple[User, str]:
        """
        Authenticate a participant.

        Unknown email and wrong password fail identically.
        """
        user = await self._find_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            logger.info("Participant login rejected")
            raise AuthenticationError("Invalid email or password")

        user.last_login = now()
        await self.db.commit()
        return user, self.issue_token(str(user.id), user.role)

    async def get_profile(self, user_id: uuid.UUID) -> User:
        user = await self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def update_profile(
        self,
        user_id: uuid.UUID,
        name: str | None = None,
        email: str | None = None,
    ) -> User:
        """Change the caller's name and/or email; email stays globally unique."""
        user = await self.get_profile(user_id)
        if email is not None:
            existing = await self._find_by_email(email)
            if existing is not None and existing.id != user.id:
                raise ValidationError(
                    "Email is already taken",
                    errors=[{"field": "email", "message": "Email is already taken"}],
                )
            user.email = normalize_email(email)
        if name is not None:
            user.name = name.strip()
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise conflict_from_integrity_error(e) from e
        return user

    # ==================== Admin ====================

    def _admin_password_hash(self) -> str:
        if self.settings.admin_password_hash:
            return self.settings.admin_password_hash
        return _hash_configured_password(self.settings.admin_password)

    def admin_login(self, email: str, password: str) -> tuple[AdminIdentity, str]:
        """
        Authenticate the configured administrator.

        The configured password is hashed once and checked with the same
        constant-time verifier used for participants.

        Raises:
            InternalError: If no admin identity is configured
            AuthenticationError: On any credential mismatch
        """
        settings = self.settings
        if not settings.admin_email or not (settings.admin_password or settings.admin_password_hash):
            raise InternalError("Admin credentials not configured")

        email_matches = normalize_email(email) == normalize_email(settings.admin_email)
        password_matches = verify_password(password, self._admin_password_hash())
        if not (email_matches and password_matches):
            logger.warning("Admin login rejected")
            raise AuthenticationError("Invalid admin credentials")

        admin = AdminIdentity(
            id=ADMIN_SUBJECT,
            name=settings.admin_name,
            email=settings.admin_email,
        )
        logger.info("Admin logged in")
        return admin, self.issue_token(ADMIN_SUBJECT, ADMIN)
