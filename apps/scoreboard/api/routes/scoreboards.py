"""Scoreboard CRUD and team/scorer assignment route handlers."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from scoreboard.api.routes import internal_error
from scoreboard.database.db import get_db_session
from scoreboard.services import scoreboard_service
from scoreboard.services.errors import ScoreboardError
from scoreboard.api.auth_dependencies import (
    get_current_user,
    require_scoreboard_admin,
    require_scorer_admin,
)
from scoreboard.models.schemas import (
    AssignScorerRequest,
    AssignTeamRequest,
    MessageResponse,
    ScoreboardCreate,
    ScoreboardUpdate,
)

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/scoreboards")
async def list_scoreboards(
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """List scoreboards: all for admins, assigned ones for scorers."""
    try:
        return await scoreboard_service.list_scoreboards(session, current_user)
    except Exception:
        logger.error("Error listing scoreboards", exc_info=True)
        raise internal_error("Failed to fetch scoreboards")


@router.get("/api/scoreboards/{scoreboard_id}")
async def get_scoreboard(
    scoreboard_id: int,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Get a scoreboard with its teams and scorers."""
    try:
        return await scoreboard_service.get_scoreboard(session, current_user, scoreboard_id)
    except ScoreboardError:
        raise
    except Exception:
        logger.error(f"Error fetching scoreboard {scoreboard_id}", exc_info=True)
        raise internal_error("Failed to fetch scoreboard")


@router.post("/api/scoreboards", status_code=201)
async def create_scoreboard(
    payload: ScoreboardCreate,
    current_user: dict = Depends(require_scoreboard_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Create a scoreboard (admin only). The slug is derived from the name if omitted."""
    try:
        return await scoreboard_service.create_scoreboard(
            session,
            current_user,
            name=payload.name,
            public_slug=payload.public_slug,
            description=payload.description,
            status=payload.status,
        )
    except ScoreboardError:
        raise
    except Exception:
        logger.error("Error creating scoreboard", exc_info=True)
        raise internal_error("Failed to create scoreboard")


@router.put("/api/scoreboards/{scoreboard_id}")
async def update_scoreboard(
    scoreboard_id: int,
    payload: ScoreboardUpdate,
    current_user: dict = Depends(require_scoreboard_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Update a scoreboard (admin only)."""
    try:
        return await scoreboard_service.update_scoreboard(
            session,
            scoreboard_id,
            name=payload.name,
            description=payload.description,
            public_slug=payload.public_slug,
            status=payload.status,
        )
    except ScoreboardError:
        raise
    except Exception:
        logger.error(f"Error updating scoreboard {scoreboard_id}", exc_info=True)
        raise internal_error("Failed to update scoreboard")


@router.delete("/api/scoreboards/{scoreboard_id}", response_model=MessageResponse)
async def delete_scoreboard(
    scoreboard_id: int,
    current_user: dict = Depends(require_scoreboard_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Delete a scoreboard and everything recorded in it (admin only)."""
    try:
        await scoreboard_service.delete_scoreboard(session, scoreboard_id)
        return {"message": "Scoreboard deleted successfully"}
    except ScoreboardError:
        raise
    except Exception:
        logger.error(f"Error deleting scoreboard {scoreboard_id}", exc_info=True)
        raise internal_error("Failed to delete scoreboard")


@router.post("/api/scoreboards/{scoreboard_id}/teams")
async def assign_team(
    scoreboard_id: int,
    payload: AssignTeamRequest,
    current_user: dict = Depends(require_scoreboard_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Assign a team to a scoreboard (admin only)."""
    try:
        return await scoreboard_service.assign_team(session, scoreboard_id, payload.team_id)
    except ScoreboardError:
        raise
    except Exception:
        logger.error(f"Error assigning team to scoreboard {scoreboard_id}", exc_info=True)
        raise internal_error("Failed to assign team")


@router.delete("/api/scoreboards/{scoreboard_id}/teams/{team_id}")
async def unassign_team(
    scoreboard_id: int,
    team_id: int,
    current_user: dict = Depends(require_scoreboard_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Remove a team from a scoreboard (admin only)."""
    try:
        return await scoreboard_service.unassign_team(session, scoreboard_id, team_id)
    except ScoreboardError:
        raise
    except Exception:
        logger.error(f"Error removing team from scoreboard {scoreboard_id}", exc_info=True)
        raise internal_error("Failed to remove team")


@router.post("/api/scoreboards/{scoreboard_id}/scorers")
async def assign_scorer(
    scoreboard_id: int,
    payload: AssignScorerRequest,
    current_user: dict = Depends(require_scorer_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Assign a scorer to a scoreboard (admin only)."""
    try:
        return await scoreboard_service.assign_scorer(session, scoreboard_id, payload.user_id)
    except ScoreboardError:
        raise
    except Exception:
        logger.error(f"Error assigning scorer to scoreboard {scoreboard_id}", exc_info=True)
        raise internal_error("Failed to assign scorer")


@router.delete("/api/scoreboards/{scoreboard_id}/scorers/{user_id}")
async def unassign_scorer(
    scoreboard_id: int,
    user_id: int,
    current_user: dict = Depends(require_scorer_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Revoke a scorer's access to a scoreboard (admin only)."""
    try:
        return await scoreboard_service.unassign_scorer(session, scoreboard_id, user_id)
    except ScoreboardError:
        raise
    except Exception:
        logger.error(f"Error removing scorer from scoreboard {scoreboard_id}", exc_info=True)
        raise internal_error("Failed to remove scorer")
