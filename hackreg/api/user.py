"""
Participant self-service endpoints: own team and own profile.
"""

from typing import Optional

from fastapi import APIRouter
from pydantic import BaseModel, EmailStr, Field

from hackreg.core.dependencies import Credentials, CurrentParticipant, Teams
from hackreg.schemas.team import ApiResponse, TeamData, TeamResponse, TeamUpdate
from hackreg.schemas.user import UserData, UserResponse

router = APIRouter(prefix="/user", tags=["User"])


class ProfileUpdate(BaseModel):
    """Profile changes; omitted fields are left untouched."""

    name: Optional[str] = Field(None, min_length=2, max_length=100)
    email: Optional[EmailStr] = None

    model_config = {"str_strip_whitespace": True}


@router.get("/team", response_model=ApiResponse[TeamData])
async def get_my_team(user: CurrentParticipant, teams: Teams) -> ApiResponse[TeamData]:
    team = await teams.get_user_team(user.id)
    return ApiResponse(data=TeamData(team=TeamResponse.from_team(team)))


@router.put("/team", response_model=ApiResponse[TeamData])
async def update_my_team(
    payload: TeamUpdate,
    user: CurrentParticipant,
    teams: Teams,
) -> ApiResponse[TeamData]:
    """Edit the caller's team while it is still ``registered``."""
    team = await teams.update_user_team(user.id, payload)
    return ApiResponse(
        message="Team updated successfully",
        data=TeamData(team=TeamResponse.from_team(team)),
    )


@router.get("/profile", response_model=ApiResponse[UserData])
async def get_profile(user: CurrentParticipant) -> ApiResponse[UserData]:
    return ApiResponse(data=UserData(user=UserResponse.from_user(user)))


@router.put("/profile", response_model=ApiResponse[UserData])
async def update_profile(
    payload: ProfileUpdate,
    user: CurrentParticipant,
    credentials: Credentials,
) -> ApiResponse[UserData]:
    updated = await credentials.update_profile(user.id, name=payload.name, email=payload.email)
    return ApiResponse(
        message="Profile updated successfully",
        data=UserData(user=UserResponse.from_user(updated)),
    )
