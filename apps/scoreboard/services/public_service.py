"""
Public service functions: no authentication required.

Read-only views of active scoreboards, looked up by public slug. Every
function returns None when no active scoreboard has the slug.
"""

from typing import Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from scoreboard.services import standings_service
from scoreboard.services.roster_service import team_summary
from scoreboard.services.scoreboard_service import get_scoreboard_by_slug
from scoreboard.utils.datetime_utils import to_iso


async def get_public_scoreboard(session: AsyncSession, slug: str) -> Optional[Dict]:
    """
    Get scoreboard metadata and its teams.

    Returns:
        {id, name, description, public_slug, status, created_at, teams} or None
    """
    scoreboard = await get_scoreboard_by_slug(session, slug)
    if not scoreboard:
        return None
    teams = sorted(
        (link.team for link in scoreboard.team_links if link.team is not None),
        key=lambda t: t.name,
    )
    return {
        "id": scoreboard.id,
        "name": scoreboard.name,
        "description": scoreboard.description,
        "public_slug": scoreboard.public_slug,
        "status": scoreboard.status,
        "created_at": to_iso(scoreboard.created_at),
        "teams": [team_summary(t) for t in teams],
    }


async def get_public_standings(session: AsyncSession, slug: str) -> Optional[List[Dict]]:
    """Player standings of an active scoreboard."""
    scoreboard = await get_scoreboard_by_slug(session, slug)
    if not scoreboard:
        return None
    return await standings_service.get_player_standings(session, scoreboard.id)


async def get_public_team_standings(session: AsyncSession, slug: str) -> Optional[List[Dict]]:
    """Team standings of an active scoreboard."""
    scoreboard = await get_scoreboard_by_slug(session, slug)
    if not scoreboard:
        return None
    return await standings_service.get_team_standings(session, scoreboard.id)


async def get_public_matches(session: AsyncSession, slug: str) -> Optional[List[Dict]]:
    """The most recent completed matches of an active scoreboard."""
    scoreboard = await get_scoreboard_by_slug(session, slug)
    if not scoreboard:
        return None
    return await standings_service.get_match_history(session, scoreboard.id)


async def get_public_player(session: AsyncSession, slug: str, player_id: int) -> Optional[Dict]:
    """
    A player's record within an active scoreboard.

    Raises:
        NotFoundError: If the player does not exist
    """
    scoreboard = await get_scoreboard_by_slug(session, slug)
    if not scoreboard:
        return None
    return await standings_service.get_player_stats(session, scoreboard.id, player_id)
