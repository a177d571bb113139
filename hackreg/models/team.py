"""
Team model for Hackathon Registration.
"""

import uuid
from datetime import datetime
from enum import Enum as PyEnum
from typing import TYPE_CHECKING

from sqlalchemy import (
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hackreg.models.base import Base
from hackreg.utils.datetime_utils import now

if TYPE_CHECKING:
    from hackreg.models.user import User


class TeamStatus(str, PyEnum):
    """Team status enum."""
    REGISTERED = "registered"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class Team(Base):
    """A registered hackathon team with 1 to 4 embedded members."""

    __tablename__ = "teams"

    # Identity
    team_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        comment="Unique case-insensitively, enforced by the service layer",
    )
    registration_number: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
    )

    project_idea: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    status: Mapped[TeamStatus] = mapped_column(
        Enum(
            TeamStatus,
            native_enum=False,
            length=20,
            values_callable=lambda enum: [member.value for member in enum],
        ),
        default=TeamStatus.REGISTERED,
        nullable=False,
    )

    # Owner (anonymous registration allowed)
    registered_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=now,
        nullable=False,
    )

    # Relationships
    owner: Mapped["User | None"] = relationship(
        "User",
        back_populates="teams",
        foreign_keys=[registered_by],
    )
    members: Mapped[list["TeamMember"]] = relationship(
        "TeamMember",
        back_populates="team",
        cascade="all, delete-orphan",
        order_by="TeamMember.position",
        lazy="selectin",
    )

    # Indexes
    __table_args__ = (
        UniqueConstraint("registration_number", name="uq_teams_registration_number"),
        Index("ix_teams_status", "status"),
        Index("ix_teams_submitted_at", "submitted_at"),
        Index("ix_teams_registered_by", "registered_by"),
    )

    def can_be_edited(self) -> bool:
        """Participants may only edit a team that has not been reviewed yet."""
        return self.status == TeamStatus.REGISTERED

    def __repr__(self) -> str:
        return (
            f"<Team(id={self.id}, name={self.team_name}, "
            f"registration_number={self.registration_number})>"
        )


class TeamMember(Base):
    """
    Member record embedded in a team.

    Members have no lifecycle of their own: they are replaced wholesale
    when a team's member list changes and deleted with the team.
    """

    __tablename__ = "team_members"

    team_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("teams.id", ondelete="CASCADE"),
        nullable=False,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(15), nullable=False)
    branch: Mapped[str] = mapped_column(String(64), nullable=False)
    usn: Mapped[str] = mapped_column(String(20), nullable=False)
    semester: Mapped[str] = mapped_column(String(8), nullable=False)
    college: Mapped[str] = mapped_column(String(200), nullable=False)

    team: Mapped["Team"] = relationship("Team", back_populates="members")

    # An email or USN may belong to at most one team across the system
    __table_args__ = (
        UniqueConstraint("email", name="uq_team_members_email"),
        UniqueConstraint("usn", name="uq_team_members_usn"),
        UniqueConstraint("team_id", "position", name="uq_team_members_team_position"),
        Index("ix_team_members_team_id", "team_id"),
    )

    def __repr__(self) -> str:
        return f"<TeamMember(team_id={self.team_id}, usn={self.usn})>"
