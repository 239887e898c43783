"""
Public API routes: no authentication required.

Read-only views of active scoreboards for the shareable public page.
All routes are prefixed with /api/public.
"""

import logging
from typing import Dict, List

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from scoreboard.api.routes import PUBLIC_RATE_LIMIT, internal_error, limiter
from scoreboard.database.db import get_db_session
from scoreboard.services import public_service
from scoreboard.services.errors import ScoreboardError

logger = logging.getLogger(__name__)

SCOREBOARD_NOT_FOUND = "Scoreboard not found"


async def _cache_public(response: Response):
    """Set Cache-Control headers on all public API responses (1min TTL)."""
    response.headers["Cache-Control"] = "public, max-age=60, s-maxage=60"


public_router = APIRouter(
    prefix="/api/public", tags=["public"], dependencies=[Depends(_cache_public)]
)


def _found(data):
    if data is None:
        raise HTTPException(status_code=404, detail=SCOREBOARD_NOT_FOUND)
    return data


@public_router.get("/scoreboard/{slug}")
@limiter.limit(PUBLIC_RATE_LIMIT)
async def get_public_scoreboard(
    request: Request, slug: str, session: AsyncSession = Depends(get_db_session)
) -> Dict:
    """
    Get an active scoreboard's metadata and teams.

    No authentication required.
    """
    try:
        return _found(await public_service.get_public_scoreboard(session, slug))
    except HTTPException:
        raise
    except Exception:
        logger.error(f"Error fetching public scoreboard {slug}", exc_info=True)
        raise internal_error("Failed to fetch scoreboard")


@public_router.get("/scoreboard/{slug}/standings")
@limiter.limit(PUBLIC_RATE_LIMIT)
async def get_public_standings(
    request: Request, slug: str, session: AsyncSession = Depends(get_db_session)
) -> List[Dict]:
    """
    Player standings, ranked by wins desc, losses asc, name asc.

    Returns [{id, name, photo, team_id, team_name, team_logo, wins, losses}].
    """
    try:
        return _found(await public_service.get_public_standings(session, slug))
    except HTTPException:
        raise
    except Exception:
        logger.error(f"Error fetching standings for {slug}", exc_info=True)
        raise internal_error("Failed to fetch standings")


@public_router.get("/scoreboard/{slug}/team-standings")
@limiter.limit(PUBLIC_RATE_LIMIT)
async def get_public_team_standings(
    request: Request, slug: str, session: AsyncSession = Depends(get_db_session)
) -> List[Dict]:
    """Team standings with win rate."""
    try:
        return _found(await public_service.get_public_team_standings(session, slug))
    except HTTPException:
        raise
    except Exception:
        logger.error(f"Error fetching team standings for {slug}", exc_info=True)
        raise internal_error("Failed to fetch team standings")


@public_router.get("/scoreboard/{slug}/matches")
@limiter.limit(PUBLIC_RATE_LIMIT)
async def get_public_matches(
    request: Request, slug: str, session: AsyncSession = Depends(get_db_session)
) -> List[Dict]:
    """The 50 most recent completed matches, split into winners and losers."""
    try:
        return _found(await public_service.get_public_matches(session, slug))
    except HTTPException:
        raise
    except Exception:
        logger.error(f"Error fetching matches for {slug}", exc_info=True)
        raise internal_error("Failed to fetch matches")


@public_router.get("/scoreboard/{slug}/player/{player_id}")
@limiter.limit(PUBLIC_RATE_LIMIT)
async def get_public_player(
    request: Request,
    slug: str,
    player_id: int,
    session: AsyncSession = Depends(get_db_session),
) -> Dict:
    """A player's record and match history within the scoreboard."""
    try:
        return _found(await public_service.get_public_player(session, slug, player_id))
    except (HTTPException, ScoreboardError):
        raise
    except Exception:
        logger.error(f"Error fetching player {player_id} stats for {slug}", exc_info=True)
        raise internal_error("Failed to fetch player stats")
