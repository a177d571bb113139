"""
Authentication API Endpoints for Hackathon Registration.

Handles participant signup and login, and the admin login.
"""

from fastapi import APIRouter, Request, status
from pydantic import BaseModel, EmailStr, Field

from hackreg.core.dependencies import Credentials
from hackreg.middleware.security import rate_limit_auth
from hackreg.schemas.team import ApiResponse
from hackreg.schemas.user import AdminAuthData, AdminResponse, AuthData, UserResponse

router = APIRouter(prefix="/auth", tags=["Authentication"])


# ============== Request Models ==============

class SignupRequest(BaseModel):
    """Participant signup request."""

    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)

    model_config = {
        "str_strip_whitespace": True,
        "json_schema_extra": {
            "example": {
                "name": "Asha Rao",
                "email": "asha@example.com",
                "password": "Str0ng!Pass",
            }
        },
    }


class LoginRequest(BaseModel):
    """Participant login request."""

    email: EmailStr
    password: str = Field(..., min_length=1)

    model_config = {
        "json_schema_extra": {
            "example": {
                "email": "asha@example.com",
                "password": "Str0ng!Pass",
            }
        }
    }


class AdminLoginRequest(BaseModel):
    """
    Admin login request.

    The email is compared against ADMIN_EMAIL as configured, which may live on
    a domain that deliverability checks reject, so it is a plain string here.
    """

    email: str = Field(..., min_length=1, max_length=254)
    password: str = Field(..., min_length=1)

    model_config = {
        "str_strip_whitespace": True,
        "json_schema_extra": {
            "example": {
                "email": "admin@example.com",
                "password": "Admin@123",
            }
        },
    }


# ============== Endpoints ==============

@router.post(
    "/signup",
    response_model=ApiResponse[AuthData],
    status_code=status.HTTP_201_CREATED,
)
@rate_limit_auth()
async def signup(
    request: Request,
    payload: SignupRequest,
    credentials: Credentials,
) -> ApiResponse[AuthData]:
    """Create a participant account and return a participant token."""
    user, token = await credentials.signup(payload.name, payload.email, payload.password)
    return ApiResponse(
        message="User registered successfully",
        data=AuthData(user=UserResponse.from_user(user), token=token),
    )


@router.post("/login", response_model=ApiResponse[AuthData])
@rate_limit_auth()
async def login(
    request: Request,
    payload: LoginRequest,
    credentials: Credentials,
) -> ApiResponse[AuthData]:
    """Participant login."""
    user, token = await credentials.login(payload.email, payload.password)
    return ApiResponse(
        message="Login successful",
        data=AuthData(user=UserResponse.from_user(user), token=token),
    )


@router.post("/admin/login", response_model=ApiResponse[AdminAuthData])
@rate_limit_auth()
async def admin_login(
    request: Request,
    payload: AdminLoginRequest,
    credentials: Credentials,
) -> ApiResponse[AdminAuthData]:
    """Admin login against the configured admin identity."""
    admin, token = credentials.admin_login(payload.email, payload.password)
    return ApiResponse(
        message="Admin login successful",
        data=AdminAuthData(admin=AdminResponse.from_identity(admin), token=token),
    )
