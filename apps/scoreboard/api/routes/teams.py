"""Team CRUD, logo upload and roster route handlers."""

import logging

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from scoreboard.api.routes import internal_error
from scoreboard.api.storage import get_storage
from scoreboard.database.db import get_db_session
from scoreboard.services import roster_service
from scoreboard.services.errors import ScoreboardError
from scoreboard.api.auth_dependencies import get_current_user, require_roster_admin
from scoreboard.models.schemas import (
    AddPlayerRequest,
    MessageResponse,
    RemovalApprovalRequest,
    TeamCreate,
    TeamUpdate,
)

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/teams")
async def list_teams(
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """List all teams with their rosters."""
    try:
        return await roster_service.list_teams(session)
    except Exception:
        logger.error("Error listing teams", exc_info=True)
        raise internal_error("Failed to fetch teams")


@router.get("/api/teams/removal-requests")
async def list_removal_requests(
    current_user: dict = Depends(require_roster_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """List memberships waiting for an admin decision on removal (admin only)."""
    try:
        return await roster_service.list_removal_requests(session)
    except Exception:
        logger.error("Error listing removal requests", exc_info=True)
        raise internal_error("Failed to fetch removal requests")


@router.get("/api/teams/{team_id}")
async def get_team(
    team_id: int,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Get a team with its roster."""
    try:
        return await roster_service.get_team(session, team_id)
    except ScoreboardError:
        raise
    except Exception:
        logger.error(f"Error fetching team {team_id}", exc_info=True)
        raise internal_error("Failed to fetch team")


@router.post("/api/teams", status_code=201)
async def create_team(
    payload: TeamCreate,
    current_user: dict = Depends(require_roster_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Create a team (admin only)."""
    try:
        return await roster_service.create_team(session, name=payload.name, logo=payload.logo)
    except ScoreboardError:
        raise
    except Exception:
        logger.error("Error creating team", exc_info=True)
        raise internal_error("Failed to create team")


@router.put("/api/teams/{team_id}")
async def update_team(
    team_id: int,
    payload: TeamUpdate,
    current_user: dict = Depends(require_roster_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Update a team (admin only)."""
    try:
        return await roster_service.update_team(
            session, team_id, name=payload.name, logo=payload.logo
        )
    except ScoreboardError:
        raise
    except Exception:
        logger.error(f"Error updating team {team_id}", exc_info=True)
        raise internal_error("Failed to update team")


@router.post("/api/teams/{team_id}/logo")
async def upload_team_logo(
    team_id: int,
    request: Request,
    file: UploadFile = File(...),
    current_user: dict = Depends(require_roster_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Upload or replace a team's logo (admin only)."""
    try:
        file_bytes = await file.read()
        return await roster_service.set_team_logo(
            session,
            get_storage(request),
            team_id,
            file_bytes,
            file.filename or "",
            file.content_type or "",
        )
    except (HTTPException, ScoreboardError):
        raise
    except Exception:
        logger.error(f"Error uploading logo for team {team_id}", exc_info=True)
        raise internal_error("Failed to upload logo")


@router.delete("/api/teams/{team_id}", response_model=MessageResponse)
async def delete_team(
    team_id: int,
    request: Request,
    current_user: dict = Depends(require_roster_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Delete a team (admin only)."""
    try:
        await roster_service.delete_team(session, team_id, storage=get_storage(request))
        return {"message": "Team deleted successfully"}
    except ScoreboardError:
        raise
    except Exception:
        logger.error(f"Error deleting team {team_id}", exc_info=True)
        raise internal_error("Failed to delete team")


@router.post("/api/teams/{team_id}/players")
async def add_player_to_team(
    team_id: int,
    payload: AddPlayerRequest,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """
    Add a player to a team.

    Admins may edit any roster; scorers only rosters of teams in their
    scoreboards. Re-adding a player with a pending removal cancels it.
    """
    try:
        return await roster_service.add_player_to_team(
            session, current_user, team_id, payload.player_id
        )
    except ScoreboardError:
        raise
    except Exception:
        logger.error(f"Error adding player to team {team_id}", exc_info=True)
        raise internal_error("Failed to add player to team")


@router.delete("/api/teams/{team_id}/players/{player_id}")
async def remove_player_from_team(
    team_id: int,
    player_id: int,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Remove a player from a team (admins) or request the removal (scorers)."""
    try:
        return await roster_service.remove_player_from_team(
            session, current_user, team_id, player_id
        )
    except ScoreboardError:
        raise
    except Exception:
        logger.error(f"Error removing player {player_id} from team {team_id}", exc_info=True)
        raise internal_error("Failed to remove player from team")


@router.post("/api/teams/{team_id}/players/{player_id}/approval", response_model=MessageResponse)
async def resolve_removal_request(
    team_id: int,
    player_id: int,
    payload: RemovalApprovalRequest,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Approve or reject a pending removal request (admin only)."""
    try:
        return await roster_service.resolve_removal_request(
            session, current_user, team_id, player_id, payload.action
        )
    except ScoreboardError:
        raise
    except Exception:
        logger.error(f"Error resolving removal of player {player_id}", exc_info=True)
        raise internal_error("Failed to process removal request")
