"""
User model for Hackathon Registration.
"""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hackreg.models.base import Base

if TYPE_CHECKING:
    from hackreg.models.team import Team


class User(Base):
    """Participant account created through self-signup."""

    __tablename__ = "users"

    # Authentication & Identity
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
        comment="Stored lower-cased",
    )
    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    # Profile
    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    # Role
    role: Mapped[str] = mapped_column(
        String(20),
        default="participant",
        nullable=False,
    )

    last_login: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Relationships
    teams: Mapped[list["Team"]] = relationship(
        "Team",
        back_populates="owner",
        foreign_keys="Team.registered_by",
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email}, role={self.role})>"
