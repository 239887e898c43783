"""Match ledger route handlers: record, amend, delete and list matches."""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from scoreboard.api.routes import internal_error
from scoreboard.database.db import get_db_session
from scoreboard.services import match_service
from scoreboard.services.errors import ScoreboardError
from scoreboard.api.auth_dependencies import get_current_user
from scoreboard.models.schemas import (
    CreateMatchRequest,
    MessageResponse,
    UpdateMatchRequest,
    participants_payload,
)

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/api/matches", status_code=201)
async def create_match(
    payload: CreateMatchRequest,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """
    Record a completed match.

    Request body:
        {
            "scoreboardId": 1,
            "location": "Court 3",               // optional
            "date": "2026-03-01T18:00:00Z",      // optional, defaults to now
            "participants": [
                {"teamId": 1, "playerId": 4, "result": "win"},
                {"teamId": 2, "playerId": 7, "result": "loss"}
            ]
        }
    """
    try:
        return await match_service.create_match(
            session,
            current_user,
            scoreboard_id=payload.scoreboard_id,
            participants=participants_payload(payload.participants),
            location=payload.location,
            date=payload.date,
        )
    except ScoreboardError:
        raise
    except Exception:
        logger.error("Error creating match", exc_info=True)
        raise internal_error("Failed to create match")


@router.get("/api/matches/my-matches")
async def list_my_matches(
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Matches recorded by the authenticated user, newest first."""
    try:
        return await match_service.list_my_matches(session, current_user)
    except Exception:
        logger.error("Error fetching user matches", exc_info=True)
        raise internal_error("Failed to fetch matches")


@router.get("/api/matches/scoreboard/{scoreboard_id}")
async def list_scoreboard_matches(
    scoreboard_id: int,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """All matches of a scoreboard (admin or assigned scorer)."""
    try:
        return await match_service.list_scoreboard_matches(session, current_user, scoreboard_id)
    except ScoreboardError:
        raise
    except Exception:
        logger.error(f"Error fetching matches for scoreboard {scoreboard_id}", exc_info=True)
        raise internal_error("Failed to fetch matches")


@router.get("/api/matches/{match_id}")
async def get_match(
    match_id: int,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Get a single match."""
    try:
        return await match_service.get_match(session, current_user, match_id)
    except ScoreboardError:
        raise
    except Exception:
        logger.error(f"Error fetching match {match_id}", exc_info=True)
        raise internal_error("Failed to fetch match")


@router.put("/api/matches/{match_id}")
async def update_match(
    match_id: int,
    payload: UpdateMatchRequest,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """
    Amend a match.

    Admin edits require ``remarks`` and mark the match as edited; a supplied
    participant list replaces the old one. Scorer edits may change location,
    date and status only.
    """
    try:
        return await match_service.amend_match(
            session,
            current_user,
            match_id,
            location=payload.location,
            date=payload.date,
            status=payload.status,
            participants=participants_payload(payload.participants),
            remarks=payload.remarks,
        )
    except ScoreboardError:
        raise
    except Exception:
        logger.error(f"Error updating match {match_id}", exc_info=True)
        raise internal_error("Failed to update match")


@router.delete("/api/matches/{match_id}", response_model=MessageResponse)
async def delete_match(
    match_id: int,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Delete a match and its participants."""
    try:
        return await match_service.delete_match(session, current_user, match_id)
    except ScoreboardError:
        raise
    except Exception:
        logger.error(f"Error deleting match {match_id}", exc_info=True)
        raise internal_error("Failed to delete match")
