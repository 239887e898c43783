"""
Roster service: players, teams and team membership.

Membership removal is two-phase. A scorer's delete only flags the row
(``removal_requested``); an admin's delete, or an admin approving the
request, removes it. Re-adding a flagged player cancels the request.
"""

import asyncio
import logging
from typing import Dict, List, Optional

from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from scoreboard.database.models import (
    MatchParticipant,
    Player,
    ScoreboardTeam,
    Team,
    TeamMembership,
)
from scoreboard.services import access_policy
from scoreboard.services.access_policy import Action
from scoreboard.services.errors import ConflictError, NotFoundError, ValidationFailedError
from scoreboard.utils.datetime_utils import to_iso

logger = logging.getLogger(__name__)

PLAYER_UPLOAD_TYPE = "players"
TEAM_UPLOAD_TYPE = "teams"


#
# Serializers
#

def player_summary(player: Optional[Player]) -> Optional[Dict]:
    """Compact player representation used inside other payloads."""
    if player is None:
        return None
    return {"id": player.id, "name": player.name, "photo": player.photo}


def team_summary(team: Optional[Team]) -> Optional[Dict]:
    """Compact team representation used inside other payloads."""
    if team is None:
        return None
    return {"id": team.id, "name": team.name, "logo": team.logo}


def _player_detail(player: Player) -> Dict:
    teams = sorted(
        (m.team for m in player.memberships if m.team is not None), key=lambda t: t.name
    )
    return {
        **player_summary(player),
        "created_at": to_iso(player.created_at),
        "teams": [team_summary(t) for t in teams],
    }


def _team_detail(team: Team) -> Dict:
    members = sorted(
        (m for m in team.memberships if m.player is not None), key=lambda m: m.player.name
    )
    return {
        **team_summary(team),
        "created_at": to_iso(team.created_at),
        "players": [
            {**player_summary(m.player), "removal_requested": m.removal_requested}
            for m in members
        ],
    }


async def _in_executor(func, *args):
    """Run a blocking storage call off the event loop."""
    loop = asyncio.get_event_loop()
    return await loop.run_in_executor(None, func, *args)


def _require_name(name: Optional[str], label: str) -> str:
    if not name or not name.strip():
        raise ValidationFailedError(f"{label} name is required")
    return name.strip()


#
# Players
#

async def _load_player(session: AsyncSession, player_id: int) -> Player:
    result = await session.execute(
        select(Player)
        .options(selectinload(Player.memberships).selectinload(TeamMembership.team))
        .where(Player.id == player_id)
        .execution_options(populate_existing=True)
    )
    player = result.scalar_one_or_none()
    if not player:
        raise NotFoundError("Player not found")
    return player


async def list_players(session: AsyncSession) -> List[Dict]:
    """List all players ordered by name."""
    result = await session.execute(select(Player).order_by(Player.name.asc(), Player.id.asc()))
    return [
        {**player_summary(p), "created_at": to_iso(p.created_at)} for p in result.scalars().all()
    ]


async def get_player(session: AsyncSession, player_id: int) -> Dict:
    """Get a player with the teams they currently belong to."""
    return _player_detail(await _load_player(session, player_id))


async def create_player(session: AsyncSession, name: str, photo: Optional[str] = None) -> Dict:
    """
    Create a player.

    Args:
        session: Database session
        name: Display name (required)
        photo: Optional photo URL

    Returns:
        Player dict
    """
    player = Player(name=_require_name(name, "Player"), photo=photo)
    session.add(player)
    await session.flush()
    player_id = player.id
    await session.commit()
    logger.info(f"Created player {player_id}")
    return await get_player(session, player_id)


async def update_player(
    session: AsyncSession,
    player_id: int,
    name: Optional[str] = None,
    photo: Optional[str] = None,
) -> Dict:
    """Update a player's name and/or photo URL. Only supplied fields change."""
    player = await session.get(Player, player_id)
    if not player:
        raise NotFoundError("Player not found")
    if name is not None:
        player.name = _require_name(name, "Player")
    if photo is not None:
        player.photo = photo or None
    await session.commit()
    return await get_player(session, player_id)


async def set_player_photo(
    session: AsyncSession,
    storage,
    player_id: int,
    file_bytes: bytes,
    filename: str,
    content_type: str,
) -> Dict:
    """
    Upload a new photo for a player and drop the previous one from storage.

    Returns:
        Updated player dict
    """
    player = await session.get(Player, player_id)
    if not player:
        raise NotFoundError("Player not found")

    previous = player.photo
    player.photo = await _in_executor(
        storage.upload_image, PLAYER_UPLOAD_TYPE, file_bytes, filename, content_type
    )
    await session.commit()
    if previous:
        await _in_executor(storage.delete_file, previous)
    return await get_player(session, player_id)


async def delete_player(session: AsyncSession, player_id: int, storage=None) -> bool:
    """
    Delete a player along with their memberships and match participations.

    Returns:
        True if deleted

    Raises:
        NotFoundError: If the player does not exist
    """
    player = await session.get(Player, player_id)
    if not player:
        raise NotFoundError("Player not found")
    photo = player.photo

    await session.execute(delete(MatchParticipant).where(MatchParticipant.player_id == player_id))
    await session.execute(delete(TeamMembership).where(TeamMembership.player_id == player_id))
    await session.execute(delete(Player).where(Player.id == player_id))
    await session.commit()

    if photo and storage is not None:
        await _in_executor(storage.delete_file, photo)
    logger.info(f"Deleted player {player_id}")
    return True


#
# Teams
#

async def _load_team(session: AsyncSession, team_id: int) -> Team:
    result = await session.execute(
        select(Team)
        .options(selectinload(Team.memberships).selectinload(TeamMembership.player))
        .where(Team.id == team_id)
        .execution_options(populate_existing=True)
    )
    team = result.scalar_one_or_none()
    if not team:
        raise NotFoundError("Team not found")
    return team


async def list_teams(session: AsyncSession) -> List[Dict]:
    """List all teams with their rosters, ordered by name."""
    result = await session.execute(
        select(Team)
        .options(selectinload(Team.memberships).selectinload(TeamMembership.player))
        .order_by(Team.name.asc(), Team.id.asc())
        .execution_options(populate_existing=True)
    )
    return [_team_detail(team) for team in result.scalars().all()]


async def get_team(session: AsyncSession, team_id: int) -> Dict:
    """Get a team with its roster (each player carries the removal flag)."""
    return _team_detail(await _load_team(session, team_id))


async def create_team(session: AsyncSession, name: str, logo: Optional[str] = None) -> Dict:
    """Create a team."""
    team = Team(name=_require_name(name, "Team"), logo=logo)
    session.add(team)
    await session.flush()
    team_id = team.id
    await session.commit()
    logger.info(f"Created team {team_id}")
    return await get_team(session, team_id)


async def update_team(
    session: AsyncSession,
    team_id: int,
    name: Optional[str] = None,
    logo: Optional[str] = None,
) -> Dict:
    """Update a team's name and/or logo URL. Only supplied fields change."""
    team = await session.get(Team, team_id)
    if not team:
        raise NotFoundError("Team not found")
    if name is not None:
        team.name = _require_name(name, "Team")
    if logo is not None:
        team.logo = logo or None
    await session.commit()
    return await get_team(session, team_id)


async def set_team_logo(
    session: AsyncSession,
    storage,
    team_id: int,
    file_bytes: bytes,
    filename: str,
    content_type: str,
) -> Dict:
    """Upload a new team logo and drop the previous one from storage."""
    team = await session.get(Team, team_id)
    if not team:
        raise NotFoundError("Team not found")

    previous = team.logo
    team.logo = await _in_executor(
        storage.upload_image, TEAM_UPLOAD_TYPE, file_bytes, filename, content_type
    )
    await session.commit()
    if previous:
        await _in_executor(storage.delete_file, previous)
    return await get_team(session, team_id)


async def delete_team(session: AsyncSession, team_id: int, storage=None) -> bool:
    """
    Delete a team, its memberships, its scoreboard assignments and the match
    participant rows recorded for it.
    """
    team = await session.get(Team, team_id)
    if not team:
        raise NotFoundError("Team not found")
    logo = team.logo

    await session.execute(delete(MatchParticipant).where(MatchParticipant.team_id == team_id))
    await session.execute(delete(TeamMembership).where(TeamMembership.team_id == team_id))
    await session.execute(delete(ScoreboardTeam).where(ScoreboardTeam.team_id == team_id))
    await session.execute(delete(Team).where(Team.id == team_id))
    await session.commit()

    if logo and storage is not None:
        await _in_executor(storage.delete_file, logo)
    logger.info(f"Deleted team {team_id}")
    return True


#
# Membership
#

async def get_membership(
    session: AsyncSession, team_id: int, player_id: int
) -> Optional[TeamMembership]:
    """Get the membership row for a (team, player) pair, if any."""
    result = await session.execute(
        select(TeamMembership).where(
            TeamMembership.team_id == team_id, TeamMembership.player_id == player_id
        )
    )
    return result.scalar_one_or_none()


async def add_player_to_team(
    session: AsyncSession, actor: Dict, team_id: int, player_id: int
) -> Dict:
    """
    Add a player to a team's roster.

    A membership that is pending removal is restored instead of duplicated.

    Returns:
        {"message": str, "team": team dict}

    Raises:
        NotFoundError: If the team or player does not exist
        ForbiddenError: If a scorer has no scoreboard with this team
        ConflictError: If the player is already on the team
    """
    if not await session.get(Team, team_id):
        raise NotFoundError("Team not found")
    if not await session.get(Player, player_id):
        raise NotFoundError("Player not found")
    await access_policy.authorize(session, actor, Action.EDIT_TEAM_ROSTER, team_id=team_id)

    existing = await get_membership(session, team_id, player_id)
    if existing:
        if not existing.removal_requested:
            raise ConflictError("Player already assigned to this team")
        existing.removal_requested = False
        await session.commit()
        logger.info(f"Cancelled removal request for player {player_id} on team {team_id}")
        message = "Player removal request cancelled, player is back in team"
    else:
        session.add(TeamMembership(team_id=team_id, player_id=player_id))
        try:
            await session.commit()
        except IntegrityError:
            await session.rollback()
            raise ConflictError("Player already assigned to this team")
        logger.info(f"Added player {player_id} to team {team_id}")
        message = "Player added to team"

    return {"message": message, "team": await get_team(session, team_id)}


async def remove_player_from_team(
    session: AsyncSession, actor: Dict, team_id: int, player_id: int
) -> Dict:
    """
    Remove a player from a team.

    Admins remove immediately; scorers only flag the membership for review.

    Returns:
        {"message": str, "removal_requested": bool}
    """
    membership = await get_membership(session, team_id, player_id)
    if not membership:
        raise NotFoundError("Player not assigned to this team")
    await access_policy.authorize(session, actor, Action.EDIT_TEAM_ROSTER, team_id=team_id)

    if access_policy.can(actor, Action.RESOLVE_REMOVAL_REQUEST):
        await session.delete(membership)
        await session.commit()
        logger.info(f"Removed player {player_id} from team {team_id}")
        return {"message": "Player removed from team successfully", "removal_requested": False}

    membership.removal_requested = True
    await session.commit()
    logger.info(f"User {actor['id']} requested removal of player {player_id} from team {team_id}")
    return {"message": "Removal request sent to admin for approval", "removal_requested": True}


async def resolve_removal_request(
    session: AsyncSession, actor: Dict, team_id: int, player_id: int, action: str
) -> Dict:
    """
    Approve (delete the membership) or reject (clear the flag) a removal request.

    Raises:
        ForbiddenError: If the actor is not an admin
        NotFoundError: If the membership does not exist
        ValidationFailedError: If action is not "approve" or "reject"
    """
    await access_policy.authorize(session, actor, Action.RESOLVE_REMOVAL_REQUEST)
    membership = await get_membership(session, team_id, player_id)
    if not membership:
        raise NotFoundError("Player assignment not found")

    if action == "approve":
        await session.delete(membership)
        await session.commit()
        logger.info(f"Approved removal of player {player_id} from team {team_id}")
        return {"message": "Player removal approved and processed"}
    if action == "reject":
        membership.removal_requested = False
        await session.commit()
        logger.info(f"Rejected removal of player {player_id} from team {team_id}")
        return {"message": "Player removal request rejected"}
    raise ValidationFailedError('Invalid action. Use "approve" or "reject".')


async def list_removal_requests(session: AsyncSession) -> List[Dict]:
    """List memberships with a pending removal request, for the admin review queue."""
    result = await session.execute(
        select(TeamMembership)
        .options(selectinload(TeamMembership.team), selectinload(TeamMembership.player))
        .where(TeamMembership.removal_requested == True)  # noqa: E712
        .order_by(TeamMembership.updated_at.asc(), TeamMembership.id.asc())
    )
    return [
        {
            "team": team_summary(m.team),
            "player": player_summary(m.player),
            "requested_at": to_iso(m.updated_at),
        }
        for m in result.scalars().all()
    ]
