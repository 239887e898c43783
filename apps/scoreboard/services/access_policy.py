"""
Access policy: the single place that decides who may do what.

Admins can do everything. Scorers are scoped to the scoreboards they are
assigned to (and, for rosters, to the teams playing in those scoreboards).
Routes and services call ``authorize`` instead of comparing role strings.
"""

import enum
import logging
from typing import Optional, Dict

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from scoreboard.database.models import ScorerAssignment, ScoreboardTeam, UserRole
from scoreboard.services.errors import ForbiddenError

logger = logging.getLogger(__name__)


class Action(str, enum.Enum):
    """Operations gated by the access policy."""

    MANAGE_ROSTER = "manage_roster"
    MANAGE_SCOREBOARDS = "manage_scoreboards"
    MANAGE_SCORERS = "manage_scorers"
    MANAGE_USERS = "manage_users"
    RESOLVE_REMOVAL_REQUEST = "resolve_removal_request"
    VIEW_SCOREBOARD = "view_scoreboard"
    RECORD_MATCH = "record_match"
    EDIT_MATCH = "edit_match"
    DELETE_MATCH = "delete_match"
    AUDITED_MATCH_EDIT = "audited_match_edit"
    EDIT_TEAM_ROSTER = "edit_team_roster"


# Actions only an admin may perform
ADMIN_ACTIONS = frozenset(
    {
        Action.MANAGE_ROSTER,
        Action.MANAGE_SCOREBOARDS,
        Action.MANAGE_SCORERS,
        Action.MANAGE_USERS,
        Action.RESOLVE_REMOVAL_REQUEST,
        Action.AUDITED_MATCH_EDIT,
    }
)

# Actions a scorer may perform inside an assigned scoreboard
SCOREBOARD_ACTIONS = frozenset(
    {
        Action.VIEW_SCOREBOARD,
        Action.RECORD_MATCH,
        Action.EDIT_MATCH,
        Action.DELETE_MATCH,
    }
)

DENIAL_MESSAGES = {
    Action.RECORD_MATCH: "You are not assigned to this scoreboard",
    Action.VIEW_SCOREBOARD: "Access denied to this scoreboard",
    Action.EDIT_TEAM_ROSTER: "You are not assigned to a scoreboard with this team",
}


def is_admin(actor: Dict) -> bool:
    """Check whether the actor holds the admin role."""
    return actor.get("role") == UserRole.ADMIN.value


def can(actor: Dict, action: Action) -> bool:
    """
    Role-only check, for actions that do not depend on a scoreboard.

    Returns True for admins. Scorers only pass for actions that are not
    admin-only; those still need ``authorize`` with a scoreboard or team.
    """
    if is_admin(actor):
        return True
    return action not in ADMIN_ACTIONS


async def has_scoreboard_access(session: AsyncSession, actor: Dict, scoreboard_id: int) -> bool:
    """Check if the actor is an admin or is assigned to the scoreboard."""
    if is_admin(actor):
        return True
    result = await session.execute(
        select(ScorerAssignment.id)
        .where(
            ScorerAssignment.user_id == actor["id"],
            ScorerAssignment.scoreboard_id == scoreboard_id,
        )
        .limit(1)
    )
    return result.scalar_one_or_none() is not None


async def has_team_access(session: AsyncSession, actor: Dict, team_id: int) -> bool:
    """Check if the team plays in any scoreboard the actor is assigned to."""
    if is_admin(actor):
        return True
    result = await session.execute(
        select(ScoreboardTeam.id)
        .join(
            ScorerAssignment,
            ScorerAssignment.scoreboard_id == ScoreboardTeam.scoreboard_id,
        )
        .where(ScoreboardTeam.team_id == team_id, ScorerAssignment.user_id == actor["id"])
        .limit(1)
    )
    return result.scalar_one_or_none() is not None


async def authorize(
    session: AsyncSession,
    actor: Dict,
    action: Action,
    scoreboard_id: Optional[int] = None,
    team_id: Optional[int] = None,
) -> None:
    """
    Decide whether the actor may perform the action on the given resource.

    Args:
        session: Database session
        actor: Authenticated user dict (id, role)
        action: Operation being attempted
        scoreboard_id: Scoreboard the action targets, for scoreboard-scoped actions
        team_id: Team the action targets, for roster edits

    Raises:
        ForbiddenError: If the actor is not allowed
    """
    if is_admin(actor):
        return

    if action in ADMIN_ACTIONS:
        raise ForbiddenError("Admin access required")

    if action in SCOREBOARD_ACTIONS:
        if scoreboard_id is None:
            raise ValueError(f"{action.value} requires a scoreboard_id")
        if await has_scoreboard_access(session, actor, scoreboard_id):
            return
    elif action == Action.EDIT_TEAM_ROSTER:
        if team_id is None:
            raise ValueError(f"{action.value} requires a team_id")
        if await has_team_access(session, actor, team_id):
            return

    logger.info(f"Denied {action.value} to user {actor.get('id')}")
    raise ForbiddenError(DENIAL_MESSAGES.get(action, "Access denied"))
