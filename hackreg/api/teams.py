"""
Team API Endpoints for Hackathon Registration.

Public team registration plus the admin team management surface:
listing, CSV export, single-team read/update/delete and status changes.
"""

import uuid
from typing import Annotated, Literal, Optional

from fastapi import APIRouter, Query, Response, status

from hackreg.core.dependencies import CurrentAdmin, OptionalParticipant, Teams
from hackreg.models.team import TeamStatus
from hackreg.schemas.team import (
    AdminTeamUpdate,
    ApiResponse,
    StatusUpdate,
    TeamCreate,
    TeamData,
    TeamListQuery,
    TeamPage,
    TeamRegistrationData,
    TeamResponse,
)
from hackreg.services.export_service import EXPORT_FILENAME, export_all_teams_as_csv

router = APIRouter(prefix="/teams", tags=["Teams"])


# ============== Registration ==============

@router.post(
    "",
    response_model=ApiResponse[TeamRegistrationData],
    status_code=status.HTTP_201_CREATED,
)
async def register_team(
    payload: TeamCreate,
    teams: Teams,
    participant: OptionalParticipant,
) -> ApiResponse[TeamRegistrationData]:
    """
    Register a new team.

    Open to anonymous callers; a participant token attaches the team to
    that account so it can be edited later through ``/user/team``.
    """
    team, stats = await teams.register_team(
        payload,
        acting_user_id=participant.id if participant else None,
    )
    return ApiResponse(
        message="Team registered successfully",
        data=TeamRegistrationData(
            team=TeamResponse.from_team(team),
            registration_stats=stats,
        ),
    )


# ============== Admin ==============

@router.get("", response_model=ApiResponse[TeamPage])
async def list_teams(
    admin: CurrentAdmin,
    teams: Teams,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
    search: Annotated[str, Query(max_length=100)] = "",
    status_filter: Annotated[Optional[TeamStatus], Query(alias="status")] = None,
    sort_by: Annotated[
        Literal["teamName", "submittedAt", "status"], Query(alias="sortBy")
    ] = "submittedAt",
    sort_order: Annotated[Literal["asc", "desc"], Query(alias="sortOrder")] = "desc",
) -> ApiResponse[TeamPage]:
    """Paginated team list with search, status filter and sorting."""
    query = TeamListQuery(
        page=page,
        limit=limit,
        search=search,
        status=status_filter,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return ApiResponse(data=await teams.list_teams(query))


@router.get("/export")
async def export_teams(admin: CurrentAdmin, teams: Teams) -> Response:
    """Download every team as CSV, one row per team."""
    csv_text = export_all_teams_as_csv(await teams.list_all_teams())
    return Response(
        content=csv_text,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'},
    )


@router.get("/{team_id}", response_model=ApiResponse[TeamData])
async def get_team(
    team_id: uuid.UUID,
    admin: CurrentAdmin,
    teams: Teams,
) -> ApiResponse[TeamData]:
    team = await teams.get_team(team_id)
    return ApiResponse(data=TeamData(team=TeamResponse.from_team(team)))


@router.put("/{team_id}/status", response_model=ApiResponse[TeamData])
async def update_team_status(
    team_id: uuid.UUID,
    payload: StatusUpdate,
    admin: CurrentAdmin,
    teams: Teams,
) -> ApiResponse[TeamData]:
    """Move a team to any status."""
    team = await teams.update_status(team_id, payload.status)
    return ApiResponse(
        message="Team status updated successfully",
        data=TeamData(team=TeamResponse.from_team(team)),
    )


@router.put("/{team_id}", response_model=ApiResponse[TeamData])
async def update_team(
    team_id: uuid.UUID,
    payload: AdminTeamUpdate,
    admin: CurrentAdmin,
    teams: Teams,
) -> ApiResponse[TeamData]:
    """Admin edit; bypasses ownership and status locks."""
    team = await teams.update_team(team_id, payload, is_admin=True)
    return ApiResponse(
        message="Team updated successfully",
        data=TeamData(team=TeamResponse.from_team(team)),
    )


@router.delete("/{team_id}", response_model=ApiResponse[None])
async def delete_team(
    team_id: uuid.UUID,
    admin: CurrentAdmin,
    teams: Teams,
) -> ApiResponse[None]:
    await teams.delete_team(team_id)
    return ApiResponse(message="Team deleted successfully")
