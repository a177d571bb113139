"""
Hackathon Registration Models Package

All SQLAlchemy models for the registration API.
"""

from hackreg.models.base import Base
from hackreg.models.team import Team, TeamMember, TeamStatus
from hackreg.models.user import User

__all__ = [
    # Base
    "Base",
    # Accounts
    "User",
    # Registrations
    "Team",
    "TeamMember",
    "TeamStatus",
]
