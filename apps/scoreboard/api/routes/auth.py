"""Authentication and account route handlers."""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from scoreboard.api.routes import (
    AUTH_RATE_LIMIT,
    INVALID_CREDENTIALS_RESPONSE,
    internal_error,
    limiter,
)
from scoreboard.database.db import get_db_session
from scoreboard.services import access_policy, auth_service, user_service
from scoreboard.services.access_policy import Action
from scoreboard.services.errors import ScoreboardError
from scoreboard.api.auth_dependencies import (
    get_current_user,
    get_current_user_optional,
    require_user_admin,
)
from scoreboard.models.schemas import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    UpdateUserRequest,
    UserResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter()


def _auth_response(user: dict) -> AuthResponse:
    token = auth_service.create_access_token(data={"user_id": user["id"], "role": user["role"]})
    return AuthResponse(token=token, user=UserResponse(**user_service.public_user(user)))


@router.post("/api/auth/register", response_model=AuthResponse, status_code=201)
async def register(
    payload: RegisterRequest,
    current_user: dict = Depends(get_current_user_optional),
    session: AsyncSession = Depends(get_db_session),
):
    """
    Create an account.

    Open while no account exists (bootstraps the first admin); afterwards
    only admins may create accounts.
    """
    try:
        if await user_service.count_users(session) > 0:
            if current_user is None:
                raise HTTPException(status_code=401, detail="Authentication required")
            await access_policy.authorize(session, current_user, Action.MANAGE_USERS)

        user = await user_service.create_user(
            session,
            email=auth_service.normalize_email(payload.email),
            password_hash=auth_service.hash_password(payload.password),
            name=payload.name,
            role=payload.role,
        )
        return _auth_response(user)
    except (HTTPException, ScoreboardError):
        raise
    except Exception:
        logger.error("Error registering user", exc_info=True)
        raise internal_error("Registration failed")


@router.post("/api/auth/login", response_model=AuthResponse)
@limiter.limit(AUTH_RATE_LIMIT)
async def login(
    request: Request, payload: LoginRequest, session: AsyncSession = Depends(get_db_session)
):
    """Login with email and password."""
    try:
        user = await user_service.get_user_by_email(session, payload.email)
        if not user or not auth_service.verify_password(payload.password, user["password_hash"]):
            raise INVALID_CREDENTIALS_RESPONSE
        logger.info(f"User {user['id']} logged in")
        return _auth_response(user)
    except HTTPException:
        raise
    except Exception:
        logger.error("Error during login", exc_info=True)
        raise internal_error("Login failed")


@router.get("/api/auth/me", response_model=UserResponse)
async def get_me(current_user: dict = Depends(get_current_user)):
    """Get the authenticated user."""
    return UserResponse(**current_user)


@router.get("/api/auth/users", response_model=List[UserResponse])
async def list_scorers(
    current_user: dict = Depends(require_user_admin),
    session: AsyncSession = Depends(get_db_session),
):
    """List scorer accounts (admin only)."""
    try:
        return await user_service.list_scorers(session)
    except Exception:
        logger.error("Error listing users", exc_info=True)
        raise internal_error("Failed to fetch users")


@router.put("/api/auth/users/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    payload: UpdateUserRequest,
    current_user: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Update an account. Users may edit themselves; admins may edit anyone."""
    try:
        if user_id != current_user["id"]:
            await access_policy.authorize(session, current_user, Action.MANAGE_USERS)

        user = await user_service.update_user(
            session,
            user_id,
            name=payload.name,
            email=payload.email,
            password_hash=auth_service.hash_password(payload.password) if payload.password else None,
        )
        return UserResponse(**user_service.public_user(user))
    except ScoreboardError:
        raise
    except Exception:
        logger.error(f"Error updating user {user_id}", exc_info=True)
        raise internal_error("Failed to update user")
