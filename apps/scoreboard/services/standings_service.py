"""
Standings aggregation for a scoreboard.

Everything here is a read projection over the match ledger, recomputed on
each call. Only completed matches of the scoreboard count.

Player rows carry the player's current team, not the team they played for
in each match, so a transferred player's earlier results show under the
new team.
"""

import logging
from typing import Dict, List

from sqlalchemy import select, func, case
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from scoreboard.database.models import (
    Match,
    MatchParticipant,
    MatchResult,
    MatchStatus,
    Player,
    ScoreboardTeam,
    Team,
    TeamMembership,
)
from scoreboard.services.errors import NotFoundError
from scoreboard.services.roster_service import player_summary, team_summary
from scoreboard.utils.datetime_utils import to_iso

logger = logging.getLogger(__name__)

MATCH_HISTORY_LIMIT = 50
UNKNOWN_SCORER = "Unknown"


def win_rate(wins: int, losses: int) -> int:
    """Percentage of games won, rounded; 0 when no games were played."""
    games = wins + losses
    if games == 0:
        return 0
    return round(wins / games * 100)


def _completed_in(scoreboard_id: int):
    return (
        Match.scoreboard_id == scoreboard_id,
        Match.status == MatchStatus.COMPLETED.value,
    )


def _count_result(column, outcome: MatchResult):
    return func.coalesce(func.sum(case((column == outcome.value, 1), else_=0)), 0)


async def get_player_standings(session: AsyncSession, scoreboard_id: int) -> List[Dict]:
    """
    Player standings: one row per membership of a team assigned to the scoreboard.

    Players without matches are included with 0 wins and 0 losses.
    Ordered by wins desc, losses asc, name asc.
    """
    tally = (
        select(
            MatchParticipant.player_id.label("player_id"),
            _count_result(MatchParticipant.result, MatchResult.WIN).label("wins"),
            _count_result(MatchParticipant.result, MatchResult.LOSS).label("losses"),
        )
        .join(Match, Match.id == MatchParticipant.match_id)
        .where(*_completed_in(scoreboard_id))
        .group_by(MatchParticipant.player_id)
        .subquery()
    )

    wins = func.coalesce(tally.c.wins, 0)
    losses = func.coalesce(tally.c.losses, 0)
    result = await session.execute(
        select(
            Player.id,
            Player.name,
            Player.photo,
            Team.id.label("team_id"),
            Team.name.label("team_name"),
            Team.logo.label("team_logo"),
            wins.label("wins"),
            losses.label("losses"),
        )
        .select_from(ScoreboardTeam)
        .join(Team, Team.id == ScoreboardTeam.team_id)
        .join(TeamMembership, TeamMembership.team_id == Team.id)
        .join(Player, Player.id == TeamMembership.player_id)
        .outerjoin(tally, tally.c.player_id == Player.id)
        .where(ScoreboardTeam.scoreboard_id == scoreboard_id)
        .order_by(wins.desc(), losses.asc(), Player.name.asc(), Player.id.asc(), Team.name.asc())
    )
    return [
        {
            "id": row.id,
            "name": row.name,
            "photo": row.photo,
            "team_id": row.team_id,
            "team_name": row.team_name,
            "team_logo": row.team_logo,
            "wins": int(row.wins),
            "losses": int(row.losses),
        }
        for row in result.all()
    ]


async def get_team_standings(session: AsyncSession, scoreboard_id: int) -> List[Dict]:
    """
    Team standings for every team assigned to the scoreboard.

    A team's wins are the number of distinct completed matches in which one of
    its participants won (losses likewise). No assigned teams gives [].
    """
    tally = (
        select(
            MatchParticipant.team_id.label("team_id"),
            func.count(
                case((MatchParticipant.result == MatchResult.WIN.value, Match.id)).distinct()
            ).label("wins"),
            func.count(
                case((MatchParticipant.result == MatchResult.LOSS.value, Match.id)).distinct()
            ).label("losses"),
        )
        .join(Match, Match.id == MatchParticipant.match_id)
        .where(*_completed_in(scoreboard_id))
        .group_by(MatchParticipant.team_id)
        .subquery()
    )

    wins = func.coalesce(tally.c.wins, 0)
    losses = func.coalesce(tally.c.losses, 0)
    result = await session.execute(
        select(Team.id, Team.name, Team.logo, wins.label("wins"), losses.label("losses"))
        .join(ScoreboardTeam, ScoreboardTeam.team_id == Team.id)
        .outerjoin(tally, tally.c.team_id == Team.id)
        .where(ScoreboardTeam.scoreboard_id == scoreboard_id)
        .order_by(wins.desc(), losses.asc(), Team.name.asc(), Team.id.asc())
    )

    standings = []
    for row in result.all():
        team_wins, team_losses = int(row.wins), int(row.losses)
        standings.append(
            {
                "id": row.id,
                "name": row.name,
                "logo": row.logo,
                "wins": team_wins,
                "losses": team_losses,
                "win_rate": win_rate(team_wins, team_losses),
            }
        )
    return standings


async def get_match_history(
    session: AsyncSession, scoreboard_id: int, limit: int = MATCH_HISTORY_LIMIT
) -> List[Dict]:
    """Most recent completed matches, each split into winners and losers."""
    result = await session.execute(
        select(Match)
        .options(
            selectinload(Match.participants).selectinload(MatchParticipant.player),
            selectinload(Match.participants).selectinload(MatchParticipant.team),
            selectinload(Match.creator),
        )
        .where(*_completed_in(scoreboard_id))
        .order_by(Match.date.desc(), Match.id.desc())
        .limit(limit)
        .execution_options(populate_existing=True)
    )

    history = []
    for match in result.scalars().all():
        sides = {MatchResult.WIN.value: [], MatchResult.LOSS.value: []}
        for participant in match.participants:
            sides.setdefault(participant.result, []).append(
                {"player": player_summary(participant.player), "team": team_summary(participant.team)}
            )
        history.append(
            {
                "id": match.id,
                "date": to_iso(match.date),
                "location": match.location,
                "scorer": match.creator.name if match.creator and match.creator.name else UNKNOWN_SCORER,
                "is_edited": match.is_edited,
                "remarks": match.remarks,
                "winners": sides[MatchResult.WIN.value],
                "losers": sides[MatchResult.LOSS.value],
            }
        )
    return history


async def get_player_stats(session: AsyncSession, scoreboard_id: int, player_id: int) -> Dict:
    """
    A player's record in one scoreboard, with per-match history.

    Raises:
        NotFoundError: If the player does not exist
    """
    result = await session.execute(
        select(Player)
        .options(selectinload(Player.memberships).selectinload(TeamMembership.team))
        .where(Player.id == player_id)
        .execution_options(populate_existing=True)
    )
    player = result.scalar_one_or_none()
    if not player:
        raise NotFoundError("Player not found")

    result = await session.execute(
        select(MatchParticipant, Match)
        .join(Match, Match.id == MatchParticipant.match_id)
        .options(selectinload(MatchParticipant.team))
        .where(MatchParticipant.player_id == player_id, *_completed_in(scoreboard_id))
        .order_by(Match.date.desc(), Match.id.desc())
    )
    rows = result.all()

    wins = sum(1 for participant, _ in rows if participant.result == MatchResult.WIN.value)
    losses = sum(1 for participant, _ in rows if participant.result == MatchResult.LOSS.value)
    teams = sorted((m.team for m in player.memberships if m.team is not None), key=lambda t: t.name)

    return {
        "player": {**player_summary(player), "teams": [team_summary(t) for t in teams]},
        "stats": {"wins": wins, "losses": losses, "total_matches": wins + losses},
        "match_history": [
            {
                "match_id": match.id,
                "date": to_iso(match.date),
                "location": match.location,
                "team": team_summary(participant.team),
                "result": participant.result,
            }
            for participant, match in rows
        ],
    }
