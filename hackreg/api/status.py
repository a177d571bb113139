"""
Public registration status endpoint.
"""

from fastapi import APIRouter

from hackreg.core.dependencies import Teams
from hackreg.schemas.team import ApiResponse, StatusOverview

router = APIRouter(prefix="/status", tags=["Status"])


@router.get("", response_model=ApiResponse[StatusOverview])
async def get_registration_status(teams: Teams) -> ApiResponse[StatusOverview]:
    """Capacity figures, per-status counts and recent registrations."""
    return ApiResponse(data=await teams.get_status_overview())
