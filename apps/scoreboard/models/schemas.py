"""
Pydantic models for API request/response validation.

Request models accept both snake_case names and the camelCase aliases used by
the dashboard (``scoreboardId``, ``teamId``, ``playerId``, ``publicSlug``,
``userId``).
"""

from datetime import datetime
from typing import Optional, List, Literal
from pydantic import BaseModel, Field, ConfigDict


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    message: str


class MessageResponse(BaseModel):
    """Plain confirmation message."""

    message: str


#
# Auth
#


class RegisterRequest(BaseModel):
    """Request to create an account."""

    email: str
    password: str = Field(min_length=6)
    name: Optional[str] = None
    role: Literal["admin", "scorer"] = "scorer"


class LoginRequest(BaseModel):
    """Request to login with email and password."""

    email: str
    password: str


class UserResponse(BaseModel):
    """Account data without credentials."""

    id: int
    email: str
    name: Optional[str] = None
    role: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class AuthResponse(BaseModel):
    """Response after successful authentication."""

    token: str
    token_type: str = "bearer"
    user: UserResponse


class UpdateUserRequest(BaseModel):
    """Update an account. Only supplied fields change."""

    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = Field(default=None, min_length=6)


#
# Roster
#


class PlayerCreate(BaseModel):
    """Create a player."""

    name: str
    photo: Optional[str] = None


class PlayerUpdate(BaseModel):
    """Update a player. Only supplied fields change."""

    name: Optional[str] = None
    photo: Optional[str] = None


class TeamCreate(BaseModel):
    """Create a team."""

    name: str
    logo: Optional[str] = None


class TeamUpdate(BaseModel):
    """Update a team. Only supplied fields change."""

    name: Optional[str] = None
    logo: Optional[str] = None


class AddPlayerRequest(BaseModel):
    """Add a player to a team's roster."""

    model_config = ConfigDict(populate_by_name=True)
    player_id: int = Field(alias="playerId")


class RemovalApprovalRequest(BaseModel):
    """Admin decision on a pending removal request ("approve" or "reject")."""

    action: str


#
# Scoreboards
#


class ScoreboardCreate(BaseModel):
    """Create a scoreboard. The slug is derived from the name when omitted."""

    model_config = ConfigDict(populate_by_name=True)
    name: str
    description: Optional[str] = None
    public_slug: Optional[str] = Field(default=None, alias="publicSlug", max_length=100)
    status: Literal["active", "inactive"] = "active"


class ScoreboardUpdate(BaseModel):
    """Update a scoreboard. Only supplied fields change."""

    model_config = ConfigDict(populate_by_name=True)
    name: Optional[str] = None
    description: Optional[str] = None
    public_slug: Optional[str] = Field(default=None, alias="publicSlug", max_length=100)
    status: Optional[Literal["active", "inactive"]] = None


class AssignTeamRequest(BaseModel):
    """Assign a team to a scoreboard."""

    model_config = ConfigDict(populate_by_name=True)
    team_id: int = Field(alias="teamId")


class AssignScorerRequest(BaseModel):
    """Assign a scorer to a scoreboard."""

    model_config = ConfigDict(populate_by_name=True)
    user_id: int = Field(alias="userId")


#
# Matches
#


class ParticipantInput(BaseModel):
    """One player's result in a submitted match.

    ``result`` is checked by the match ledger so that rule violations are
    reported in a fixed order.
    """

    model_config = ConfigDict(populate_by_name=True)
    team_id: int = Field(alias="teamId")
    player_id: int = Field(alias="playerId")
    result: Optional[str] = None


class CreateMatchRequest(BaseModel):
    """Record a completed match."""

    model_config = ConfigDict(populate_by_name=True)
    scoreboard_id: Optional[int] = Field(default=None, alias="scoreboardId")
    location: Optional[str] = None
    date: Optional[datetime] = None
    participants: Optional[List[ParticipantInput]] = None


class UpdateMatchRequest(BaseModel):
    """Amend a match. Admin edits require remarks."""

    location: Optional[str] = None
    date: Optional[datetime] = None
    status: Optional[Literal["scheduled", "completed", "cancelled"]] = None
    participants: Optional[List[ParticipantInput]] = None
    remarks: Optional[str] = None


def participants_payload(participants: Optional[List[ParticipantInput]]) -> Optional[List[dict]]:
    """Convert validated participant models to the plain dicts the match ledger takes."""
    if participants is None:
        return None
    return [p.model_dump() for p in participants]
