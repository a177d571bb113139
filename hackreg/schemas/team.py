"""Pydantic schemas for team registration"""
from typing import Generic, List, Literal, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from hackreg.models.team import Team, TeamMember, TeamStatus
from hackreg.utils.datetime_utils import format_for_api

DataT = TypeVar("DataT")


class CamelModel(BaseModel):
    """Base schema speaking camelCase JSON and snake_case Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        coerce_numbers_to_str=True,
    )


# ==================== Request Schemas ====================

class MemberIn(CamelModel):
    """
    Member as submitted by a client.

    Only presence and type are checked here; format rules live in
    ``hackreg.services.validation`` so every entry point shares them.
    """
    name: str
    email: str
    phone: str
    branch: str
    usn: str
    semester: str
    college: str


class TeamCreate(CamelModel):
    """Register a new team"""
    team_name: str
    members: List[MemberIn]
    project_idea: Optional[str] = None


class TeamUpdate(CamelModel):
    """
    Partial team update.

    Only fields present in the request body are applied; use
    ``model_fields_set`` to tell "omitted" from "sent as null".
    """
    team_name: Optional[str] = None
    members: Optional[List[MemberIn]] = None
    project_idea: Optional[str] = None


class AdminTeamUpdate(TeamUpdate):
    """Admins may also move the team between statuses"""
    status: Optional[TeamStatus] = None


class StatusUpdate(CamelModel):
    status: TeamStatus


class TeamListQuery(CamelModel):
    """Filters, sorting and pagination for the admin team list"""
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)
    search: str = Field(default="", max_length=100)
    status: Optional[TeamStatus] = None
    sort_by: Literal["teamName", "submittedAt", "status"] = "submittedAt"
    sort_order: Literal["asc", "desc"] = "desc"


# ==================== Response Schemas ====================

class MemberOut(CamelModel):
    name: str
    email: str
    phone: str
    branch: str
    usn: str
    semester: str
    college: str

    @classmethod
    def from_member(cls, member: TeamMember) -> "MemberOut":
        return cls(
            name=member.name,
            email=member.email,
            phone=member.phone,
            branch=member.branch,
            usn=member.usn,
            semester=member.semester,
            college=member.college,
        )


class TeamResponse(CamelModel):
    """Team resource as returned by the API"""
    id: str
    team_name: str
    registration_number: str
    members: List[MemberOut]
    member_count: int
    project_idea: Optional[str] = None
    status: TeamStatus
    registered_by: Optional[str] = None
    submitted_at: str
    updated_at: str

    @classmethod
    def from_team(cls, team: Team) -> "TeamResponse":
        return cls(
            id=str(team.id),
            team_name=team.team_name,
            registration_number=team.registration_number,
            members=[MemberOut.from_member(m) for m in team.members],
            member_count=len(team.members),
            project_idea=team.project_idea,
            status=team.status,
            registered_by=str(team.registered_by) if team.registered_by else None,
            submitted_at=format_for_api(team.submitted_at),
            updated_at=format_for_api(team.updated_at),
        )


class RegistrationStats(CamelModel):
    total_teams: int
    max_teams: int
    remaining_slots: int
    is_open: bool


class PaginationInfo(CamelModel):
    current_page: int
    total_pages: int
    total_count: int
    limit: int
    has_next_page: bool
    has_prev_page: bool


class TeamPage(CamelModel):
    teams: List[TeamResponse]
    pagination: PaginationInfo
    stats: RegistrationStats


class StatusBreakdown(CamelModel):
    registered: int = 0
    confirmed: int = 0
    cancelled: int = 0


class StatusOverview(CamelModel):
    """Public registration status"""
    registration: RegistrationStats
    status_breakdown: StatusBreakdown
    recent_registrations: int
    last_updated: str


class TeamData(CamelModel):
    team: TeamResponse


class TeamRegistrationData(CamelModel):
    team: TeamResponse
    registration_stats: RegistrationStats


class ApiResponse(CamelModel, Generic[DataT]):
    """Success envelope shared by every JSON endpoint"""
    status: str = "success"
    message: Optional[str] = None
    data: Optional[DataT] = None
