"""
CSV export of registered teams.

One row per team with a fixed 35-column layout: seven team columns, then
four blocks of seven member columns, blank-padded for smaller teams.
"""

import csv
import io
from collections.abc import Iterable

from hackreg.models.team import Team
from hackreg.services.validation import MAX_MEMBERS
from hackreg.utils.datetime_utils import format_for_api

EXPORT_FILENAME = "hackathon-teams.csv"

TEAM_COLUMNS = [
    "Registration Number",
    "Team Name",
    "Status",
    "Project Idea",
    "Submitted At",
    "Updated At",
    "Total Members",
]

MEMBER_FIELDS = [
    ("Name", "name"),
    ("Email", "email"),
    ("Phone", "phone"),
    ("Branch", "branch"),
    ("USN", "usn"),
    ("Semester", "semester"),
    ("College", "college"),
]

CSV_HEADERS = TEAM_COLUMNS + [
    f"Member {slot} {label}"
    for slot in range(1, MAX_MEMBERS + 1)
    for label, _ in MEMBER_FIELDS
]


def team_to_row(team: Team) -> list[str]:
    row = [
        team.registration_number,
        team.team_name,
        team.status.value,
        team.project_idea or "",
        format_for_api(team.submitted_at),
        format_for_api(team.updated_at),
        str(len(team.members)),
    ]
    for slot in range(MAX_MEMBERS):
        if slot < len(team.members):
            member = team.members[slot]
            row.extend(getattr(member, attr) for _, attr in MEMBER_FIELDS)
        else:
            row.extend([""] * len(MEMBER_FIELDS))
    return row


def export_all_teams_as_csv(teams: Iterable[Team]) -> str:
    """
    Render teams as CSV text with every field quoted.

    Embedded quotes are doubled and embedded newlines stay inside their
    quoted field, so free-text columns cannot break the row structure.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for team in teams:
        writer.writerow(team_to_row(team))
    return buffer.getvalue()
