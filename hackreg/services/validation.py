"""
Validation Engine for team registrations.

Rejects team payloads that violate shape, format or uniqueness rules
before anything is written. Shape and intra-team checks are pure; the
two uniqueness checks run one query each against every stored team.

All case normalization goes through ``normalize_email`` and
``normalize_usn`` so stored values and query values never diverge.
"""

import re
import uuid
from collections.abc import Iterable, Sequence
from typing import Any, Protocol

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from hackreg.core.exceptions import ValidationError
from hackreg.models.team import Team, TeamMember

# ============== Rules ==============

BRANCHES = (
    "Computer Science",
    "Information Technology",
    "Electronics and Communication",
    "Electrical Engineering",
    "Mechanical Engineering",
    "Civil Engineering",
    "Chemical Engineering",
    "Biotechnology",
    "Other",
)

SEMESTERS = ("1", "2", "3", "4", "5", "6", "7", "8", "Other")

MIN_MEMBERS = 1
MAX_MEMBERS = 4
MAX_PROJECT_IDEA_LENGTH = 1000
MAX_EMAIL_LENGTH = 254

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^[\d\s\-+()]{10,15}$")
USN_RE = re.compile(r"^[A-Z0-9]+$")
PERSON_NAME_RE = re.compile(r"^[a-zA-Z\s]+$")
TEAM_NAME_RE = re.compile(r"^[a-zA-Z0-9\s\-_]+$")

FieldError = dict[str, Any]


class MemberLike(Protocol):
    name: str
    email: str
    phone: str
    branch: str
    usn: str
    semester: str
    college: str


# ============== Normalization ==============

def normalize_email(value: str) -> str:
    """Canonical form of an email: trimmed and lower-cased."""
    return value.strip().lower()


def normalize_usn(value: str) -> str:
    """Canonical form of a USN: trimmed and upper-cased."""
    return value.strip().upper()


# ============== Shape ==============

def _error(field: str, message: str, value: Any = None) -> FieldError:
    entry: FieldError = {"field": field, "message": message}
    if value is not None:
        entry["value"] = value
    return entry


def _member_checks(member: MemberLike) -> Iterable[tuple[str, str, str | None]]:
    """Yield (field, message, offending value) per violated member rule."""
    name = (member.name or "").strip()
    if not 2 <= len(name) <= 100:
        yield "name", "Name must be between 2 and 100 characters", name
    elif not PERSON_NAME_RE.match(name):
        yield "name", "Name can only contain letters and spaces", name

    email = normalize_email(member.email or "")
    if len(email) > MAX_EMAIL_LENGTH:
        yield "email", f"Email cannot exceed {MAX_EMAIL_LENGTH} characters", email
    elif not EMAIL_RE.match(email):
        yield "email", "Please provide a valid email address", email

    phone = (member.phone or "").strip()
    if not PHONE_RE.match(phone):
        yield "phone", "Please provide a valid phone number", phone

    if member.branch not in BRANCHES:
        yield "branch", "Please select a valid branch", member.branch

    usn = normalize_usn(member.usn or "")
    if not 5 <= len(usn) <= 20:
        yield "usn", "USN must be between 5 and 20 characters", usn
    elif not USN_RE.match(usn):
        yield "usn", "USN can only contain letters and numbers", usn

    if member.semester not in SEMESTERS:
        yield "semester", "Please select a valid semester", member.semester

    college = (member.college or "").strip()
    if not 2 <= len(college) <= 200:
        yield "college", "College name must be between 2 and 200 characters", college


def validate_member_shape(
    member: MemberLike,
    index: int | None = None,
    collect: bool = False,
) -> list[FieldError]:
    """
    Check the seven member fields against their format rules.

    Args:
        member: Submitted member
        index: Position in the team, used to build ``members.<i>.<field>`` paths
        collect: Report every violation instead of stopping at the first

    Returns:
        List of field errors, empty when the member is valid
    """
    prefix = f"members.{index}." if index is not None else ""
    errors = []
    for field, message, value in _member_checks(member):
        if index is not None:
            message = f"{message} (member {index + 1})"
        errors.append(_error(prefix + field, message, value))
        if not collect:
            break
    return errors


def validate_team_name(team_name: str) -> list[FieldError]:
    name = (team_name or "").strip()
    if not 2 <= len(name) <= 100:
        return [_error("teamName", "Team name must be between 2 and 100 characters", name)]
    if not TEAM_NAME_RE.match(name):
        return [
            _error(
                "teamName",
                "Team name can only contain letters, numbers, spaces, hyphens, and underscores",
                name,
            )
        ]
    return []


def validate_project_idea(project_idea: str | None) -> list[FieldError]:
    if project_idea is not None and len(project_idea) > MAX_PROJECT_IDEA_LENGTH:
        return [
            _error(
                "projectIdea",
                f"Project idea cannot exceed {MAX_PROJECT_IDEA_LENGTH} characters",
            )
        ]
    return []


def validate_members(members: Sequence[MemberLike]) -> list[FieldError]:
    """Member count bound plus the shape of every member, all violations collected."""
    if not MIN_MEMBERS <= len(members) <= MAX_MEMBERS:
        return [
            _error(
                "members",
                f"Team must have between {MIN_MEMBERS} and {MAX_MEMBERS} members",
            )
        ]
    errors: list[FieldError] = []
    for index, member in enumerate(members):
        errors.extend(validate_member_shape(member, index=index, collect=True))
    return errors


def validate_team_shape(
    team_name: str,
    members: Sequence[MemberLike],
    project_idea: str | None = None,
) -> None:
    """
    Validate a complete team submission.

    Raises:
        ValidationError: With every field violation in ``errors``
    """
    errors = validate_team_name(team_name)
    errors.extend(validate_members(members))
    errors.extend(validate_project_idea(project_idea))
    if errors:
        raise ValidationError(_summarize(errors), errors=errors)


def _summarize(errors: list[FieldError]) -> str:
    if len(errors) == 1:
        return errors[0]["message"]
    return "Invalid input data"


# ============== Uniqueness ==============

def _duplicates(values: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    dupes: list[str] = []
    for value in values:
        if value in seen and value not in dupes:
            dupes.append(value)
        seen.add(value)
    return dupes


def check_intra_team_uniqueness(members: Sequence[MemberLike]) -> None:
    """
    Reject a submission in which two members share an email or USN.

    Raises:
        ValidationError: Listing every duplicated value
    """
    errors: list[FieldError] = []
    dup_emails = _duplicates(normalize_email(m.email) for m in members)
    if dup_emails:
        errors.extend(
            _error("members.email", "All members must have unique email addresses", email)
            for email in dup_emails
        )
    dup_usns = _duplicates(normalize_usn(m.usn) for m in members)
    if dup_usns:
        errors.extend(
            _error("members.usn", "All members must have unique USNs", usn)
            for usn in dup_usns
        )
    if errors:
        raise ValidationError(errors[0]["message"], errors=errors)


async def check_team_name_uniqueness(
    session: AsyncSession,
    team_name: str,
    exclude_team_id: uuid.UUID | None = None,
) -> None:
    """
    Case-insensitive exact-match lookup across all teams.

    Raises:
        ValidationError: If another team already uses the name
    """
    query = select(Team.id).where(
        func.lower(Team.team_name) == team_name.strip().lower()
    )
    if exclude_team_id is not None:
        query = query.where(Team.id != exclude_team_id)

    result = await session.execute(query.limit(1))
    if result.scalar_one_or_none() is not None:
        raise ValidationError(
            "A team with this name already exists",
            errors=[_error("teamName", "A team with this name already exists", team_name)],
        )


async def find_cross_team_conflicts(
    session: AsyncSession,
    emails: Sequence[str],
    usns: Sequence[str],
    exclude_team_id: uuid.UUID | None = None,
) -> tuple[list[str], list[str]]:
    """
    Find candidate emails and USNs already held by members of other teams.

    Returns:
        (colliding emails, colliding USNs) in canonical form
    """
    candidate_emails = sorted({normalize_email(e) for e in emails})
    candidate_usns = sorted({normalize_usn(u) for u in usns})

    async def _collisions(column, candidates: list[str]) -> list[str]:
        if not candidates:
            return []
        query = select(column).where(column.in_(candidates))
        if exclude_team_id is not None:
            query = query.where(TeamMember.team_id != exclude_team_id)
        result = await session.execute(query)
        found = set(result.scalars().all())
        return [value for value in candidates if value in found]

    return (
        await _collisions(TeamMember.email, candidate_emails),
        await _collisions(TeamMember.usn, candidate_usns),
    )


async def check_cross_team_uniqueness(
    session: AsyncSession,
    emails: Sequence[str],
    usns: Sequence[str],
    exclude_team_id: uuid.UUID | None = None,
) -> None:
    """
    Reject emails or USNs that already belong to another team.

    Every colliding value is reported at once so the client can highlight
    all offending members in a single round trip.

    Raises:
        ValidationError: Listing each colliding email and USN
    """
    dup_emails, dup_usns = await find_cross_team_conflicts(
        session, emails, usns, exclude_team_id
    )
    if not dup_emails and not dup_usns:
        return

    errors = [
        _error("members.email", "Email is already registered with another team", email)
        for email in dup_emails
    ]
    errors.extend(
        _error("members.usn", "USN is already registered with another team", usn)
        for usn in dup_usns
    )

    parts = []
    if dup_emails:
        parts.append(f"The following email(s) are already registered: {', '.join(dup_emails)}")
    if dup_usns:
        parts.append(f"The following USN(s) are already registered: {', '.join(dup_usns)}")
    raise ValidationError(". ".join(parts), errors=errors)
