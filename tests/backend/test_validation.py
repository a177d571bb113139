"""
Validation Engine Tests for Hackathon Registration.

Tests for:
- Normalization
- Member, team name and project idea shape rules
- Intra-team and cross-team uniqueness
"""

import pytest

from conftest import make_member_in, make_team_create
from hackreg.core.exceptions import ValidationError
from hackreg.services.team_service import TeamService
from hackreg.services.validation import (
    MAX_PROJECT_IDEA_LENGTH,
    check_cross_team_uniqueness,
    check_intra_team_uniqueness,
    check_team_name_uniqueness,
    find_cross_team_conflicts,
    normalize_email,
    normalize_usn,
    validate_member_shape,
    validate_members,
    validate_project_idea,
    validate_team_name,
    validate_team_shape,
)


# ============== Normalization Tests ==============

class TestNormalization:
    """Both normalizers trim before changing case."""

    def test_normalize_email(self):
        assert normalize_email("  Asha@Example.COM ") == "asha@example.com"

    def test_normalize_usn(self):
        assert normalize_usn(" 1ab20cs001 ") == "1AB20CS001"


# ============== Shape Tests ==============

class TestMemberShape:
    """Tests for per-member format rules."""

    def test_valid_member_has_no_errors(self):
        assert validate_member_shape(make_member_in()) == []

    def test_lowercase_usn_is_accepted(self):
        assert validate_member_shape(make_member_in(usn="1ab20cs001")) == []

    def test_stops_at_first_error_by_default(self):
        member = make_member_in(name="A", phone="123")
        errors = validate_member_shape(member)
        assert len(errors) == 1
        assert errors[0]["field"] == "name"

    def test_collect_reports_every_error_with_member_paths(self):
        member = make_member_in(name="A", phone="123", branch="Astrology")
        errors = validate_member_shape(member, index=2, collect=True)

        assert [e["field"] for e in errors] == [
            "members.2.name",
            "members.2.phone",
            "members.2.branch",
        ]
        assert all(e["message"].endswith("(member 3)") for e in errors)

    @pytest.mark.parametrize(
        "field,value",
        [
            ("name", "Asha R4o"),
            ("email", "not-an-email"),
            ("email", "a" * 250 + "@x.com"),
            ("phone", "98765"),
            ("usn", "1AB-20"),
            ("usn", "1AB2"),
            ("semester", "9"),
            ("college", "X"),
        ],
    )
    def test_invalid_field_is_rejected(self, field, value):
        errors = validate_member_shape(make_member_in(**{field: value}))
        assert errors and errors[0]["field"] == field

    def test_overlong_email_is_a_field_error(self):
        errors = validate_member_shape(make_member_in(email="a" * 300 + "@x.com"), index=0)
        assert errors == [
            {
                "field": "members.0.email",
                "message": "Email cannot exceed 254 characters (member 1)",
                "value": "a" * 300 + "@x.com",
            }
        ]


class TestTeamShape:
    """Tests for team-level shape rules."""

    def test_team_name_rules(self):
        assert validate_team_name("Byte_Busters-2") == []
        assert validate_team_name("B")[0]["field"] == "teamName"
        assert "letters, numbers" in validate_team_name("Byte!")[0]["message"]

    def test_project_idea_length(self):
        assert validate_project_idea(None) == []
        assert validate_project_idea("x" * MAX_PROJECT_IDEA_LENGTH) == []
        assert validate_project_idea("x" * (MAX_PROJECT_IDEA_LENGTH + 1))[0]["field"] == "projectIdea"

    def test_member_count_bounds(self):
        assert validate_members([])[0]["field"] == "members"
        five = [make_member_in(i) for i in range(1, 6)]
        assert "between 1 and 4" in validate_members(five)[0]["message"]

    def test_team_shape_collects_all_errors(self):
        members = [make_member_in(1, phone="1"), make_member_in(2, semester="0")]
        with pytest.raises(ValidationError) as exc_info:
            validate_team_shape("!", members, None)

        fields = [e["field"] for e in exc_info.value.errors]
        assert fields == ["teamName", "members.0.phone", "members.1.semester"]
        assert exc_info.value.message == "Invalid input data"
        assert exc_info.value.status_code == 400

    def test_single_error_uses_its_own_message(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_team_shape("B", [make_member_in()])
        assert exc_info.value.message == "Team name must be between 2 and 100 characters"


# ============== Uniqueness Tests ==============

class TestIntraTeamUniqueness:
    """Duplicates inside one submission."""

    def test_distinct_members_pass(self):
        check_intra_team_uniqueness([make_member_in(1), make_member_in(2)])

    def test_duplicate_email_ignores_case(self):
        members = [make_member_in(1), make_member_in(2, email="MEMBER1@example.com")]
        with pytest.raises(ValidationError) as exc_info:
            check_intra_team_uniqueness(members)
        assert exc_info.value.message == "All members must have unique email addresses"
        assert exc_info.value.errors[0]["value"] == "member1@example.com"

    def test_duplicate_usn_ignores_case(self):
        members = [make_member_in(1), make_member_in(2, usn="1ab20cs001")]
        with pytest.raises(ValidationError) as exc_info:
            check_intra_team_uniqueness(members)
        assert exc_info.value.errors[0]["value"] == "1AB20CS001"


class TestCrossTeamUniqueness:
    """Collisions with members of stored teams."""

    async def test_no_conflicts_on_empty_database(self, db_session):
        emails, usns = await find_cross_team_conflicts(db_session, ["a@x.com"], ["1AB20CS001"])
        assert emails == [] and usns == []

    async def test_reports_every_collision(self, db_session, settings):
        service = TeamService(db_session, settings)
        await service.register_team(make_team_create("Alpha", start=1, size=2))

        with pytest.raises(ValidationError) as exc_info:
            await check_cross_team_uniqueness(
                db_session,
                ["Member1@Example.com", "member2@example.com", "fresh@example.com"],
                ["1ab20cs002"],
            )

        error = exc_info.value
        assert "member1@example.com, member2@example.com" in error.message
        assert "The following USN(s) are already registered: 1AB20CS002" in error.message
        assert [e["value"] for e in error.errors] == [
            "member1@example.com",
            "member2@example.com",
            "1AB20CS002",
        ]

    async def test_excluded_team_is_ignored(self, db_session, settings):
        service = TeamService(db_session, settings)
        team, _ = await service.register_team(make_team_create("Alpha"))

        await check_cross_team_uniqueness(
            db_session, ["member1@example.com"], ["1AB20CS001"], exclude_team_id=team.id
        )

    async def test_team_name_is_case_insensitive(self, db_session, settings):
        service = TeamService(db_session, settings)
        team, _ = await service.register_team(make_team_create("teamalpha"))

        with pytest.raises(ValidationError) as exc_info:
            await check_team_name_uniqueness(db_session, "TeamAlpha")
        assert exc_info.value.message == "A team with this name already exists"

        await check_team_name_uniqueness(db_session, "TeamAlpha", exclude_team_id=team.id)
