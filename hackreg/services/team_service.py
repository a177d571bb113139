"""
Team Service - Registration workflow for hackathon teams.

Orchestrates create/update/status/delete on teams on top of the
validation engine, and computes capacity statistics.

Capacity and registration-number sequencing are read-then-write without
isolation: concurrent submissions near the limit can admit more than
``max_teams`` teams. Duplicate registration numbers are stopped by the
unique constraint; registration retries with a fresh number a few times
before giving up with a ConflictError.
"""

import logging
import math
import uuid
from collections.abc import Sequence

from sqlalchemy import asc, desc, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hackreg.core.config import Settings
from hackreg.core.exceptions import (
    CapacityError,
    NotFoundError,
    ValidationError,
    conflict_from_integrity_error,
)
from hackreg.models.team import Team, TeamMember, TeamStatus
from hackreg.schemas.team import (
    AdminTeamUpdate,
    MemberIn,
    PaginationInfo,
    RegistrationStats,
    StatusBreakdown,
    StatusOverview,
    TeamCreate,
    TeamListQuery,
    TeamPage,
    TeamResponse,
    TeamUpdate,
)
from hackreg.services.validation import (
    check_cross_team_uniqueness,
    check_intra_team_uniqueness,
    check_team_name_uniqueness,
    normalize_email,
    normalize_usn,
    validate_members,
    validate_project_idea,
    validate_team_name,
    validate_team_shape,
)
from hackreg.utils.datetime_utils import days_ago, format_for_api, now

logger = logging.getLogger(__name__)

REGISTRATION_PREFIX = "HAI"
REGISTRATION_ATTEMPTS = 3
RECENT_REGISTRATION_DAYS = 7

SORT_COLUMNS = {
    "teamName": Team.team_name,
    "submittedAt": Team.submitted_at,
    "status": Team.status,
}


def format_registration_number(year: int, sequence: int) -> str:
    """Build ``HAI-<year>-<sequence>`` with the sequence zero-padded to 4 digits."""
    return f"{REGISTRATION_PREFIX}-{year}-{sequence:04d}"


def compute_registration_stats(total_teams: int, max_teams: int) -> RegistrationStats:
    remaining = max(0, max_teams - total_teams)
    return RegistrationStats(
        total_teams=total_teams,
        max_teams=max_teams,
        remaining_slots=remaining,
        is_open=remaining > 0,
    )


def compute_pagination(total_count: int, page: int, limit: int) -> PaginationInfo:
    total_pages = math.ceil(total_count / limit) if limit else 0
    return PaginationInfo(
        current_page=page,
        total_pages=total_pages,
        total_count=total_count,
        limit=limit,
        has_next_page=page < total_pages,
        has_prev_page=page > 1,
    )


def _is_registration_number_clash(exc: IntegrityError) -> bool:
    detail = str(exc.orig) if exc.orig is not None else str(exc)
    return "registration_number" in detail


def build_members(members: Sequence[MemberIn]) -> list[TeamMember]:
    """Convert submitted members to rows, normalizing as they are stored."""
    return [
        TeamMember(
            position=position,
            name=member.name.strip(),
            email=normalize_email(member.email),
            phone=member.phone.strip(),
            branch=member.branch,
            usn=normalize_usn(member.usn),
            semester=member.semester,
            college=member.college.strip(),
        )
        for position, member in enumerate(members)
    ]


class TeamService:
    """Service for registering and managing hackathon teams."""

    def __init__(self, db: AsyncSession, settings: Settings):
        self.db = db
        self.settings = settings

    # ==================== Stats ====================

    async def count_teams(self) -> int:
        result = await self.db.execute(select(func.count(Team.id)))
        return result.scalar_one()

    async def get_registration_stats(self) -> RegistrationStats:
        """Capacity figures behind both the public status and the capacity gate."""
        return compute_registration_stats(await self.count_teams(), self.settings.max_teams)

    async def get_status_overview(self) -> StatusOverview:
        """Registration stats plus per-status counts and recent activity."""
        stats = await self.get_registration_stats()

        result = await self.db.execute(
            select(Team.status, func.count(Team.id)).group_by(Team.status)
        )
        breakdown = StatusBreakdown()
        for team_status, count in result.all():
            setattr(breakdown, TeamStatus(team_status).value, count)

        result = await self.db.execute(
            select(func.count(Team.id)).where(
                Team.submitted_at >= days_ago(RECENT_REGISTRATION_DAYS)
            )
        )
        recent = result.scalar_one()

        return StatusOverview(
            registration=stats,
            status_breakdown=breakdown,
            recent_registrations=recent,
            last_updated=format_for_api(now()),
        )

    # ==================== Lookup ====================

    async def get_team(self, team_id: uuid.UUID) -> Team:
        team = await self.db.get(Team, team_id)
        if team is None:
            raise NotFoundError("Team not found")
        return team

    async def get_user_team(self, user_id: uuid.UUID) -> Team:
        result = await self.db.execute(
            select(Team)
            .where(Team.registered_by == user_id)
            .order_by(Team.submitted_at)
            .limit(1)
        )
        team = result.scalar_one_or_none()
        if team is None:
            raise NotFoundError("No team found for this user")
        return team

    async def list_teams(self, query: TeamListQuery) -> TeamPage:
        """Search, filter, sort and paginate teams (admin view)."""
        stmt = select(Team)

        if query.search:
            stmt = stmt.where(
                or_(
                    Team.team_name.icontains(query.search, autoescape=True),
                    Team.registration_number.icontains(query.search, autoescape=True),
                    Team.members.any(
                        or_(
                            TeamMember.name.icontains(query.search, autoescape=True),
                            TeamMember.email.icontains(query.search, autoescape=True),
                            TeamMember.usn.icontains(query.search, autoescape=True),
                        )
                    ),
                )
            )
        if query.status:
            stmt = stmt.where(Team.status == query.status)

        count_result = await self.db.execute(
            select(func.count()).select_from(stmt.subquery())
        )
        total_count = count_result.scalar_one()

        column = SORT_COLUMNS[query.sort_by]
        direction = asc if query.sort_order == "asc" else desc
        stmt = (
            stmt.order_by(direction(column), direction(Team.id))
            .offset((query.page - 1) * query.limit)
            .limit(query.limit)
        )
        result = await self.db.execute(stmt)
        teams = result.scalars().all()

        return TeamPage(
            teams=[TeamResponse.from_team(team) for team in teams],
            pagination=compute_pagination(total_count, query.page, query.limit),
            stats=await self.get_registration_stats(),
        )

    async def list_all_teams(self) -> list[Team]:
        """Every team, newest submission first (used by the CSV export)."""
        result = await self.db.execute(select(Team).order_by(desc(Team.submitted_at)))
        return list(result.scalars().all())

    # ==================== Registration ====================

    def _registration_year(self) -> int:
        return self.settings.registration_year or now().year

    async def _next_registration_number(self, total_teams: int) -> str:
        """
        Sequence is the team count plus one. Deleted teams leave the count
        behind the highest issued number, so skip forward past taken ones.
        """
        year = self._registration_year()
        sequence = total_teams + 1
        while True:
            candidate = format_registration_number(year, sequence)
            result = await self.db.execute(
                select(Team.id).where(Team.registration_number == candidate)
            )
            if result.scalar_one_or_none() is None:
                return candidate
            sequence += 1

    async def register_team(
        self,
        payload: TeamCreate,
        acting_user_id: uuid.UUID | None = None,
    ) -> tuple[Team, RegistrationStats]:
        """
        Register a new team.

        Args:
            payload: Team name, members and optional project idea
            acting_user_id: Owner to attach when the caller is signed in

        Returns:
            The created team and the recomputed registration stats

        Raises:
            CapacityError: If the team limit has been reached
            ValidationError: If any shape or uniqueness rule fails
            ConflictError: If a concurrent registration took the same number
        """
        total_teams = await self.count_teams()
        if not compute_registration_stats(total_teams, self.settings.max_teams).is_open:
            raise CapacityError()

        validate_team_shape(payload.team_name, payload.members, payload.project_idea)
        check_intra_team_uniqueness(payload.members)
        await check_team_name_uniqueness(self.db, payload.team_name)
        await check_cross_team_uniqueness(
            self.db,
            [m.email for m in payload.members],
            [m.usn for m in payload.members],
        )

        for attempt in range(1, REGISTRATION_ATTEMPTS + 1):
            timestamp = now()
            registration_number = await self._next_registration_number(total_teams)
            team = Team(
                team_name=payload.team_name.strip(),
                registration_number=registration_number,
                project_idea=payload.project_idea,
                status=TeamStatus.REGISTERED,
                registered_by=acting_user_id,
                submitted_at=timestamp,
                updated_at=timestamp,
                members=build_members(payload.members),
            )
            self.db.add(team)
            try:
                await self.db.commit()
                break
            except IntegrityError as e:
                await self.db.rollback()
                if not _is_registration_number_clash(e) or attempt == REGISTRATION_ATTEMPTS:
                    conflict = conflict_from_integrity_error(e)
                    logger.warning(f"Registration rejected by database constraint: {conflict.message}")
                    raise conflict from e
                logger.info(f"Registration number {registration_number} taken concurrently, retrying")
                total_teams = await self.count_teams()

        logger.info(f"Team registered: {team.registration_number}")
        return team, await self.get_registration_stats()

    # ==================== Updates ====================

    async def update_team(
        self,
        team_id: uuid.UUID,
        patch: TeamUpdate,
        acting_user_id: uuid.UUID | None = None,
        is_admin: bool = False,
    ) -> Team:
        """
        Apply a partial update to a team.

        Participants must own the team and it must still be ``registered``;
        admins bypass both checks and may also change the status.
        """
        team = await self.get_team(team_id)
        if not is_admin:
            if acting_user_id is None or team.registered_by != acting_user_id:
                raise NotFoundError("Team not found")
            if not team.can_be_edited():
                raise ValidationError("Team cannot be edited in its current status")

        return await self._apply_patch(team, patch, allow_status=is_admin)

    async def update_user_team(self, user_id: uuid.UUID, patch: TeamUpdate) -> Team:
        """Owner edit of the caller's own team."""
        team = await self.get_user_team(user_id)
        if not team.can_be_edited():
            raise ValidationError("Team cannot be edited in its current status")
        return await self._apply_patch(team, patch, allow_status=False)

    async def _apply_patch(self, team: Team, patch: TeamUpdate, allow_status: bool) -> Team:
        fields = patch.model_fields_set

        errors = []
        if "team_name" in fields:
            errors.extend(validate_team_name(patch.team_name or ""))
        if "members" in fields:
            errors.extend(validate_members(patch.members or []))
        if "project_idea" in fields:
            errors.extend(validate_project_idea(patch.project_idea))
        if errors:
            message = errors[0]["message"] if len(errors) == 1 else "Invalid input data"
            raise ValidationError(message, errors=errors)

        new_name = patch.team_name.strip() if "team_name" in fields and patch.team_name else None
        if new_name and new_name != team.team_name:
            await check_team_name_uniqueness(self.db, new_name, exclude_team_id=team.id)

        if "members" in fields and patch.members:
            check_intra_team_uniqueness(patch.members)
            await check_cross_team_uniqueness(
                self.db,
                [m.email for m in patch.members],
                [m.usn for m in patch.members],
                exclude_team_id=team.id,
            )

        if new_name:
            team.team_name = new_name
        if "project_idea" in fields:
            team.project_idea = patch.project_idea
        if "members" in fields and patch.members:
            # Old rows must be gone before re-inserting the same emails/USNs
            team.members.clear()
            await self.db.flush()
            team.members.extend(build_members(patch.members))
        if allow_status and isinstance(patch, AdminTeamUpdate) and patch.status is not None:
            team.status = patch.status
        team.updated_at = now()

        await self._commit()
        logger.info(f"Team updated: {team.registration_number}")
        return team

    async def update_status(self, team_id: uuid.UUID, new_status: TeamStatus) -> Team:
        """Admin status transition; any status may follow any other."""
        team = await self.get_team(team_id)
        team.status = TeamStatus(new_status)
        team.updated_at = now()
        await self._commit()
        logger.info(f"Team {team.registration_number} status set to {team.status.value}")
        return team

    async def delete_team(self, team_id: uuid.UUID) -> None:
        team = await self.get_team(team_id)
        registration_number = team.registration_number
        await self.db.delete(team)
        await self._commit()
        logger.info(f"Team deleted: {registration_number}")

    # ==================== Helpers ====================

    async def _commit(self) -> None:
        """Commit, surfacing unique-constraint races as ConflictError."""
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            conflict = conflict_from_integrity_error(e)
            logger.warning(f"Write rejected by database constraint: {conflict.message}")
            raise conflict from e
