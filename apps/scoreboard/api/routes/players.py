"""Player CRUD and photo upload route handlers."""

import logging

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from scoreboard.api.routes import internal_error
from scoreboard.api.storage import get_storage
from scoreboard.database.db import get_db_session
from scoreboard.services import roster_service
from scoreboard.services.errors import ScoreboardError
from scoreboard.api.auth_dependencies import get_current_user, require_roster_admin
from scoreboard.models.schemas import MessageResponse, PlayerCreate, PlayerUpdate

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/players")
async def list_players(
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """List all players."""
    try:
        return await roster_service.list_players(session)
    except Exception:
        logger.error("Error listing players", exc_info=True)
        raise internal_error("Failed to fetch players")


@router.get("/api/players/{player_id}")
async def get_player(
    player_id: int,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Get a player with their teams."""
    try:
        return await roster_service.get_player(session, player_id)
    except ScoreboardError:
        raise
    except Exception:
        logger.error(f"Error fetching player {player_id}", exc_info=True)
        raise internal_error("Failed to fetch player")


@router.post("/api/players", status_code=201)
async def create_player(
    payload: PlayerCreate,
    current_user: dict = Depends(require_roster_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Create a player (admin only)."""
    try:
        return await roster_service.create_player(session, name=payload.name, photo=payload.photo)
    except ScoreboardError:
        raise
    except Exception:
        logger.error("Error creating player", exc_info=True)
        raise internal_error("Failed to create player")


@router.put("/api/players/{player_id}")
async def update_player(
    player_id: int,
    payload: PlayerUpdate,
    current_user: dict = Depends(require_roster_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Update a player (admin only)."""
    try:
        return await roster_service.update_player(
            session, player_id, name=payload.name, photo=payload.photo
        )
    except ScoreboardError:
        raise
    except Exception:
        logger.error(f"Error updating player {player_id}", exc_info=True)
        raise internal_error("Failed to update player")


@router.post("/api/players/{player_id}/photo")
async def upload_player_photo(
    player_id: int,
    request: Request,
    file: UploadFile = File(...),
    current_user: dict = Depends(require_roster_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """
    Upload or replace a player's photo (admin only).

    Accepts image files up to 5MB. The previous photo is removed from storage.
    """
    try:
        file_bytes = await file.read()
        return await roster_service.set_player_photo(
            session,
            get_storage(request),
            player_id,
            file_bytes,
            file.filename or "",
            file.content_type or "",
        )
    except (HTTPException, ScoreboardError):
        raise
    except Exception:
        logger.error(f"Error uploading photo for player {player_id}", exc_info=True)
        raise internal_error("Failed to upload photo")


@router.delete("/api/players/{player_id}", response_model=MessageResponse)
async def delete_player(
    player_id: int,
    request: Request,
    current_user: dict = Depends(require_roster_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """Delete a player with their memberships and match results (admin only)."""
    try:
        await roster_service.delete_player(session, player_id, storage=get_storage(request))
        return {"message": "Player deleted successfully"}
    except ScoreboardError:
        raise
    except Exception:
        logger.error(f"Error deleting player {player_id}", exc_info=True)
        raise internal_error("Failed to delete player")
