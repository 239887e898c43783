"""
Scoreboard service: scoreboards, their team assignments and scorer assignments.
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from scoreboard.database.models import (
    Match,
    MatchParticipant,
    Scoreboard,
    ScoreboardStatus,
    ScoreboardTeam,
    ScorerAssignment,
    Team,
    User,
    UserRole,
)
from scoreboard.services import access_policy
from scoreboard.services.access_policy import Action
from scoreboard.services.errors import ConflictError, NotFoundError, ValidationFailedError
from scoreboard.services.roster_service import team_summary
from scoreboard.utils.datetime_utils import to_iso
from scoreboard.utils.slugify import slugify, is_valid_slug

logger = logging.getLogger(__name__)

INVALID_SLUG_MESSAGE = "Public slug can only contain letters, numbers, and hyphens"


def _scorer_summary(user: Optional[User]) -> Optional[Dict]:
    if user is None:
        return None
    return {"id": user.id, "email": user.email, "name": user.name}


def scoreboard_summary(scoreboard: Scoreboard) -> Dict:
    """Scoreboard fields without related rows."""
    return {
        "id": scoreboard.id,
        "name": scoreboard.name,
        "description": scoreboard.description,
        "public_slug": scoreboard.public_slug,
        "status": scoreboard.status,
        "created_by": scoreboard.created_by,
        "created_at": to_iso(scoreboard.created_at),
        "updated_at": to_iso(scoreboard.updated_at),
    }


def _scoreboard_detail(scoreboard: Scoreboard) -> Dict:
    teams = sorted(
        (link.team for link in scoreboard.team_links if link.team is not None),
        key=lambda t: t.name,
    )
    scorers = [a.user for a in scoreboard.scorers if a.user is not None]
    return {
        **scoreboard_summary(scoreboard),
        "teams": [team_summary(t) for t in teams],
        "scorers": [_scorer_summary(u) for u in scorers],
    }


def _with_links(query):
    return query.options(
        selectinload(Scoreboard.team_links).selectinload(ScoreboardTeam.team),
        selectinload(Scoreboard.scorers).selectinload(ScorerAssignment.user),
    ).execution_options(populate_existing=True)


def _normalize_slug(slug: str) -> str:
    slug = slug.strip().lower()
    if not is_valid_slug(slug):
        raise ValidationFailedError(INVALID_SLUG_MESSAGE)
    return slug


def _normalize_status(status: str) -> str:
    if status not in {s.value for s in ScoreboardStatus}:
        raise ValidationFailedError('Status must be "active" or "inactive"')
    return status


async def _slug_taken(
    session: AsyncSession, slug: str, exclude_id: Optional[int] = None
) -> bool:
    query = select(Scoreboard.id).where(Scoreboard.public_slug == slug)
    if exclude_id is not None:
        query = query.where(Scoreboard.id != exclude_id)
    result = await session.execute(query.limit(1))
    return result.scalar_one_or_none() is not None


async def _load_scoreboard(session: AsyncSession, scoreboard_id: int) -> Scoreboard:
    result = await session.execute(
        _with_links(select(Scoreboard).where(Scoreboard.id == scoreboard_id))
    )
    scoreboard = result.scalar_one_or_none()
    if not scoreboard:
        raise NotFoundError("Scoreboard not found")
    return scoreboard


async def list_scoreboards(session: AsyncSession, actor: Dict) -> List[Dict]:
    """
    List scoreboards visible to the actor.

    Admins see every scoreboard; scorers only the ones they are assigned to.
    Newest first.
    """
    query = select(Scoreboard).order_by(Scoreboard.created_at.desc(), Scoreboard.id.desc())
    if not access_policy.is_admin(actor):
        query = query.join(
            ScorerAssignment, ScorerAssignment.scoreboard_id == Scoreboard.id
        ).where(ScorerAssignment.user_id == actor["id"])
    result = await session.execute(_with_links(query))
    return [_scoreboard_detail(s) for s in result.scalars().unique().all()]


async def get_scoreboard(session: AsyncSession, actor: Dict, scoreboard_id: int) -> Dict:
    """Get a scoreboard with its teams and scorers (admin or assigned scorer)."""
    scoreboard = await _load_scoreboard(session, scoreboard_id)
    await access_policy.authorize(
        session, actor, Action.VIEW_SCOREBOARD, scoreboard_id=scoreboard_id
    )
    return _scoreboard_detail(scoreboard)


async def get_scoreboard_by_slug(
    session: AsyncSession, slug: str, active_only: bool = True
) -> Optional[Scoreboard]:
    """
    Look up a scoreboard by its public slug (case-insensitive).

    Returns:
        Scoreboard ORM instance with teams loaded, or None
    """
    query = select(Scoreboard).where(Scoreboard.public_slug == slug.strip().lower())
    if active_only:
        query = query.where(Scoreboard.status == ScoreboardStatus.ACTIVE.value)
    result = await session.execute(_with_links(query))
    return result.scalar_one_or_none()


async def create_scoreboard(
    session: AsyncSession,
    actor: Dict,
    name: str,
    public_slug: Optional[str] = None,
    description: Optional[str] = None,
    status: str = ScoreboardStatus.ACTIVE.value,
) -> Dict:
    """
    Create a scoreboard.

    When no slug is given it is derived from the name.

    Raises:
        ValidationFailedError: Missing name, malformed slug or unknown status
        ConflictError: Slug already in use
    """
    if not name or not name.strip():
        raise ValidationFailedError("Name is required")
    slug = _normalize_slug(public_slug if public_slug else slugify(name))
    status = _normalize_status(status)

    if await _slug_taken(session, slug):
        raise ConflictError("Public slug already exists")

    scoreboard = Scoreboard(
        name=name.strip(),
        description=description,
        public_slug=slug,
        status=status,
        created_by=actor["id"],
    )
    session.add(scoreboard)
    try:
        await session.flush()
        scoreboard_id = scoreboard.id
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise ConflictError("Public slug already exists")

    logger.info(f"Created scoreboard {scoreboard_id} ({slug})")
    return _scoreboard_detail(await _load_scoreboard(session, scoreboard_id))


async def update_scoreboard(
    session: AsyncSession,
    scoreboard_id: int,
    name: Optional[str] = None,
    description: Optional[str] = None,
    public_slug: Optional[str] = None,
    status: Optional[str] = None,
) -> Dict:
    """Update scoreboard fields. Only supplied fields change; slug uniqueness is rechecked."""
    scoreboard = await session.get(Scoreboard, scoreboard_id)
    if not scoreboard:
        raise NotFoundError("Scoreboard not found")

    if public_slug is not None:
        slug = _normalize_slug(public_slug)
        if slug != scoreboard.public_slug and await _slug_taken(session, slug, scoreboard_id):
            raise ConflictError("Public slug already exists")
        scoreboard.public_slug = slug
    if name is not None:
        if not name.strip():
            raise ValidationFailedError("Name is required")
        scoreboard.name = name.strip()
    if description is not None:
        scoreboard.description = description
    if status is not None:
        scoreboard.status = _normalize_status(status)

    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise ConflictError("Public slug already exists")
    return _scoreboard_detail(await _load_scoreboard(session, scoreboard_id))


async def delete_scoreboard(session: AsyncSession, scoreboard_id: int) -> bool:
    """Delete a scoreboard with its matches, team assignments and scorer assignments."""
    scoreboard = await session.get(Scoreboard, scoreboard_id)
    if not scoreboard:
        raise NotFoundError("Scoreboard not found")

    match_ids = select(Match.id).where(Match.scoreboard_id == scoreboard_id)
    await session.execute(delete(MatchParticipant).where(MatchParticipant.match_id.in_(match_ids)))
    await session.execute(delete(Match).where(Match.scoreboard_id == scoreboard_id))
    await session.execute(delete(ScoreboardTeam).where(ScoreboardTeam.scoreboard_id == scoreboard_id))
    await session.execute(
        delete(ScorerAssignment).where(ScorerAssignment.scoreboard_id == scoreboard_id)
    )
    await session.execute(delete(Scoreboard).where(Scoreboard.id == scoreboard_id))
    await session.commit()
    logger.info(f"Deleted scoreboard {scoreboard_id}")
    return True


async def assign_team(session: AsyncSession, scoreboard_id: int, team_id: int) -> Dict:
    """Add a team to a scoreboard."""
    if not await session.get(Scoreboard, scoreboard_id):
        raise NotFoundError("Scoreboard not found")
    if not await session.get(Team, team_id):
        raise NotFoundError("Team not found")

    existing = await session.execute(
        select(ScoreboardTeam.id).where(
            ScoreboardTeam.scoreboard_id == scoreboard_id, ScoreboardTeam.team_id == team_id
        )
    )
    if existing.scalar_one_or_none():
        raise ConflictError("Team already assigned to this scoreboard")

    session.add(ScoreboardTeam(scoreboard_id=scoreboard_id, team_id=team_id))
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise ConflictError("Team already assigned to this scoreboard")
    logger.info(f"Assigned team {team_id} to scoreboard {scoreboard_id}")
    return _scoreboard_detail(await _load_scoreboard(session, scoreboard_id))


async def unassign_team(session: AsyncSession, scoreboard_id: int, team_id: int) -> Dict:
    """Remove a team from a scoreboard. Recorded matches are kept."""
    result = await session.execute(
        delete(ScoreboardTeam).where(
            ScoreboardTeam.scoreboard_id == scoreboard_id, ScoreboardTeam.team_id == team_id
        )
    )
    if result.rowcount == 0:
        raise NotFoundError("Team not assigned to this scoreboard")
    await session.commit()
    logger.info(f"Removed team {team_id} from scoreboard {scoreboard_id}")
    return _scoreboard_detail(await _load_scoreboard(session, scoreboard_id))


async def assign_scorer(session: AsyncSession, scoreboard_id: int, user_id: int) -> Dict:
    """
    Grant a user scorer access to a scoreboard.

    Raises:
        NotFoundError: Unknown scoreboard or user
        ConflictError: User already assigned
    """
    if not await session.get(Scoreboard, scoreboard_id):
        raise NotFoundError("Scoreboard not found")
    user = await session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")

    existing = await session.execute(
        select(ScorerAssignment.id).where(
            ScorerAssignment.scoreboard_id == scoreboard_id, ScorerAssignment.user_id == user_id
        )
    )
    if existing.scalar_one_or_none():
        raise ConflictError("Scorer already assigned to this scoreboard")

    session.add(
        ScorerAssignment(
            scoreboard_id=scoreboard_id, user_id=user_id, role=UserRole.SCORER.value
        )
    )
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise ConflictError("Scorer already assigned to this scoreboard")
    logger.info(f"Assigned scorer {user_id} to scoreboard {scoreboard_id}")
    return _scoreboard_detail(await _load_scoreboard(session, scoreboard_id))


async def unassign_scorer(session: AsyncSession, scoreboard_id: int, user_id: int) -> Dict:
    """Revoke a user's scorer access to a scoreboard."""
    result = await session.execute(
        delete(ScorerAssignment).where(
            ScorerAssignment.scoreboard_id == scoreboard_id, ScorerAssignment.user_id == user_id
        )
    )
    if result.rowcount == 0:
        raise NotFoundError("Scorer not assigned to this scoreboard")
    await session.commit()
    logger.info(f"Removed scorer {user_id} from scoreboard {scoreboard_id}")
    return _scoreboard_detail(await _load_scoreboard(session, scoreboard_id))
