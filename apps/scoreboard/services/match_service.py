"""
Match ledger: recording, amending and deleting match results.

A match is written together with its participant rows in one transaction.
Every validation runs before the first write, so a rejected submission
leaves nothing behind.
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from scoreboard.database.models import (
    Match,
    MatchParticipant,
    MatchResult,
    MatchStatus,
    Player,
    Scoreboard,
    ScoreboardTeam,
    TeamMembership,
)
from scoreboard.services import access_policy
from scoreboard.services.access_policy import Action
from scoreboard.services.errors import NotFoundError, ValidationFailedError
from scoreboard.services.roster_service import player_summary, team_summary
from scoreboard.utils.datetime_utils import ensure_utc, to_iso, utcnow

logger = logging.getLogger(__name__)

RESULT_VALUES = frozenset(r.value for r in MatchResult)
STATUS_VALUES = frozenset(s.value for s in MatchStatus)

# (team_id, player_id, result)
ParticipantRow = Tuple[int, int, str]


#
# Serialization
#

def _participant_to_dict(participant: MatchParticipant) -> Dict:
    return {
        "id": participant.id,
        "team_id": participant.team_id,
        "player_id": participant.player_id,
        "result": participant.result,
        "player": player_summary(participant.player),
        "team": team_summary(participant.team),
    }


def match_to_dict(match: Match) -> Dict:
    """Expand a fully loaded match (see ``_match_query``) into a response dict."""
    creator = match.creator
    scoreboard = match.scoreboard
    return {
        "id": match.id,
        "scoreboard_id": match.scoreboard_id,
        "location": match.location,
        "date": to_iso(match.date),
        "status": match.status,
        "created_by": match.created_by,
        "is_edited": match.is_edited,
        "remarks": match.remarks,
        "created_at": to_iso(match.created_at),
        "updated_at": to_iso(match.updated_at),
        "scoreboard": {
            "id": scoreboard.id,
            "name": scoreboard.name,
            "public_slug": scoreboard.public_slug,
        }
        if scoreboard
        else None,
        "creator": {"id": creator.id, "name": creator.name, "email": creator.email}
        if creator
        else None,
        "participants": [_participant_to_dict(p) for p in match.participants],
    }


def _match_query():
    return select(Match).options(
        selectinload(Match.participants).selectinload(MatchParticipant.player),
        selectinload(Match.participants).selectinload(MatchParticipant.team),
        selectinload(Match.creator),
        selectinload(Match.scoreboard),
    ).execution_options(populate_existing=True)


async def _load_match(session: AsyncSession, match_id: int) -> Match:
    result = await session.execute(_match_query().where(Match.id == match_id))
    match = result.scalar_one_or_none()
    if not match:
        raise NotFoundError("Match not found")
    return match


#
# Validation
#

def _normalize_status(status: Optional[str]) -> Optional[str]:
    if status is not None and status not in STATUS_VALUES:
        raise ValidationFailedError('Status must be "scheduled", "completed" or "cancelled"')
    return status


def _coerce_participants(participants: List[Dict]) -> List[ParticipantRow]:
    rows = []
    for participant in participants:
        team_id = participant.get("team_id")
        player_id = participant.get("player_id")
        if team_id is None or player_id is None:
            raise ValidationFailedError("Each participant requires a team_id and a player_id")
        rows.append((team_id, player_id, participant.get("result")))
    return rows


async def _validate_participants(
    session: AsyncSession, scoreboard_id: int, participants: List[Dict]
) -> List[ParticipantRow]:
    """
    Check a participant list against a scoreboard, failing on the first broken rule.

    Order: teams assigned to the scoreboard, players exist and belong to their
    team, results are win/loss, no repeated player, exactly one winner.
    """
    rows = _coerce_participants(participants)

    team_ids = list(dict.fromkeys(team_id for team_id, _, _ in rows))
    result = await session.execute(
        select(ScoreboardTeam.team_id).where(
            ScoreboardTeam.scoreboard_id == scoreboard_id,
            ScoreboardTeam.team_id.in_(team_ids),
        )
    )
    assigned = set(result.scalars().all())
    for team_id in team_ids:
        if team_id not in assigned:
            raise ValidationFailedError(f"Team {team_id} is not in this scoreboard")

    for team_id, player_id, _ in rows:
        if not await session.get(Player, player_id):
            raise NotFoundError(f"Player {player_id} not found")
        # A membership pending removal still counts until an admin approves it
        membership = await session.execute(
            select(TeamMembership.id).where(
                TeamMembership.team_id == team_id, TeamMembership.player_id == player_id
            )
        )
        if membership.scalar_one_or_none() is None:
            raise ValidationFailedError(f"Player {player_id} does not belong to team {team_id}")

    for _, _, outcome in rows:
        if outcome not in RESULT_VALUES:
            raise ValidationFailedError('Result must be "win" or "loss"')

    seen = set()
    for _, player_id, _ in rows:
        if player_id in seen:
            raise ValidationFailedError(f"Player {player_id} appears more than once in this match")
        seen.add(player_id)

    winners = sum(1 for _, _, outcome in rows if outcome == MatchResult.WIN.value)
    if winners != 1:
        raise ValidationFailedError("A match must have exactly one winner")

    return rows


def _participant_models(match_id: int, rows: List[ParticipantRow]) -> List[MatchParticipant]:
    return [
        MatchParticipant(match_id=match_id, team_id=team_id, player_id=player_id, result=outcome)
        for team_id, player_id, outcome in rows
    ]


#
# Ledger operations
#

async def create_match(
    session: AsyncSession,
    actor: Dict,
    scoreboard_id: Optional[int],
    participants: Optional[List[Dict]],
    location: Optional[str] = None,
    date: Optional[datetime] = None,
) -> Dict:
    """
    Record a completed match.

    Args:
        session: Database session
        actor: Authenticated user dict
        scoreboard_id: Scoreboard the match belongs to
        participants: [{"team_id", "player_id", "result"}, ...]
        location: Optional venue
        date: Match date (defaults to now)

    Returns:
        Match dict with participants expanded

    Raises:
        ValidationFailedError: Missing input or a broken participant rule
        NotFoundError: Unknown scoreboard or player
        ForbiddenError: Scorer not assigned to the scoreboard
    """
    if scoreboard_id is None or not participants:
        raise ValidationFailedError("Scoreboard ID and participants are required")

    if not await session.get(Scoreboard, scoreboard_id):
        raise NotFoundError("Scoreboard not found")
    await access_policy.authorize(session, actor, Action.RECORD_MATCH, scoreboard_id=scoreboard_id)

    rows = await _validate_participants(session, scoreboard_id, participants)

    try:
        match = Match(
            scoreboard_id=scoreboard_id,
            location=location,
            date=ensure_utc(date) or utcnow(),
            status=MatchStatus.COMPLETED.value,
            created_by=actor["id"],
        )
        session.add(match)
        await session.flush()
        match_id = match.id
        session.add_all(_participant_models(match_id, rows))
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    logger.info(
        f"User {actor['id']} recorded match {match_id} in scoreboard {scoreboard_id} "
        f"with {len(rows)} participants"
    )
    return match_to_dict(await _load_match(session, match_id))


async def amend_match(
    session: AsyncSession,
    actor: Dict,
    match_id: int,
    location: Optional[str] = None,
    date: Optional[datetime] = None,
    status: Optional[str] = None,
    participants: Optional[List[Dict]] = None,
    remarks: Optional[str] = None,
) -> Dict:
    """
    Amend a recorded match.

    Admin edits are audited: remarks are required, the match is flagged as
    edited, and a supplied participant list replaces the existing one.
    Scorer edits may only change location, date and status.

    Returns:
        Updated match dict
    """
    match = await session.get(Match, match_id)
    if not match:
        raise NotFoundError("Match not found")
    scoreboard_id = match.scoreboard_id
    await access_policy.authorize(session, actor, Action.EDIT_MATCH, scoreboard_id=scoreboard_id)
    status = _normalize_status(status)

    audited = access_policy.can(actor, Action.AUDITED_MATCH_EDIT)
    rows = None
    if audited:
        if not remarks or not remarks.strip():
            raise ValidationFailedError("Remarks are required when an admin edits a match")
        if participants is not None:
            if not participants:
                raise ValidationFailedError("Participants cannot be empty")
            rows = await _validate_participants(session, scoreboard_id, participants)

    try:
        if location is not None:
            match.location = location
        if date is not None:
            match.date = ensure_utc(date)
        if status is not None:
            match.status = status
        if audited:
            match.is_edited = True
            match.remarks = remarks
        if rows is not None:
            await session.execute(delete(MatchParticipant).where(MatchParticipant.match_id == match_id))
            session.add_all(_participant_models(match_id, rows))
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    logger.info(f"User {actor['id']} amended match {match_id} (audited={audited})")
    return match_to_dict(await _load_match(session, match_id))


async def delete_match(session: AsyncSession, actor: Dict, match_id: int) -> Dict:
    """Hard-delete a match and its participants."""
    match = await session.get(Match, match_id)
    if not match:
        raise NotFoundError("Match not found")
    await access_policy.authorize(
        session, actor, Action.DELETE_MATCH, scoreboard_id=match.scoreboard_id
    )

    await session.execute(delete(MatchParticipant).where(MatchParticipant.match_id == match_id))
    await session.execute(delete(Match).where(Match.id == match_id))
    await session.commit()
    logger.info(f"User {actor['id']} deleted match {match_id}")
    return {"message": "Match deleted successfully"}


async def get_match(session: AsyncSession, actor: Dict, match_id: int) -> Dict:
    """Get a single match (admin or scorer assigned to its scoreboard)."""
    match = await _load_match(session, match_id)
    await access_policy.authorize(
        session, actor, Action.VIEW_SCOREBOARD, scoreboard_id=match.scoreboard_id
    )
    return match_to_dict(match)


async def list_my_matches(session: AsyncSession, actor: Dict) -> List[Dict]:
    """Matches recorded by the actor, newest first."""
    result = await session.execute(
        _match_query()
        .where(Match.created_by == actor["id"])
        .order_by(Match.date.desc(), Match.id.desc())
    )
    return [match_to_dict(m) for m in result.scalars().all()]


async def list_scoreboard_matches(
    session: AsyncSession, actor: Dict, scoreboard_id: int
) -> List[Dict]:
    """All matches of a scoreboard, newest first (admin or assigned scorer)."""
    if not await session.get(Scoreboard, scoreboard_id):
        raise NotFoundError("Scoreboard not found")
    await access_policy.authorize(
        session, actor, Action.VIEW_SCOREBOARD, scoreboard_id=scoreboard_id
    )
    result = await session.execute(
        _match_query()
        .where(Match.scoreboard_id == scoreboard_id)
        .order_by(Match.date.desc(), Match.id.desc())
    )
    return [match_to_dict(m) for m in result.scalars().all()]
