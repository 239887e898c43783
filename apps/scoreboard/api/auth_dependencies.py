"""
Authentication dependencies for FastAPI routes.
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from scoreboard.services import access_policy, auth_service, user_service
from scoreboard.services.access_policy import Action
from scoreboard.database.db import get_db_session

security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    session: AsyncSession = Depends(get_db_session),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> dict:
    """
    Dependency to get the current authenticated user from JWT token.

    Args:
        session: Database session
        credentials: HTTP Bearer token credentials

    Returns:
        User dictionary (without password hash)

    Raises:
        HTTPException: 401 if the token is missing or invalid, or the user no longer exists
    """
    if credentials is None:
        raise _unauthorized("Authentication required")

    payload = auth_service.verify_token(credentials.credentials)
    if payload is None:
        raise _unauthorized("Invalid authentication token")

    user_id = payload.get("user_id")
    if user_id is None:
        raise _unauthorized("Invalid token payload")

    user = await user_service.get_user_by_id(session, user_id)
    if user is None:
        raise _unauthorized("User not found")

    return user_service.public_user(user)


async def get_current_user_optional(
    session: AsyncSession = Depends(get_db_session),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Optional[dict]:
    """
    Optional dependency to get the current authenticated user.
    Returns None if no token is provided or token is invalid.
    """
    if credentials is None:
        return None

    try:
        return await get_current_user(session, credentials)
    except HTTPException:
        return None


def make_require(action: Action):
    """Build a dependency that lets the request through only if the policy allows ``action``."""

    async def _dep(
        user: dict = Depends(get_current_user),
        session: AsyncSession = Depends(get_db_session),
    ) -> dict:
        await access_policy.authorize(session, user, action)
        return user

    return _dep


require_roster_admin = make_require(Action.MANAGE_ROSTER)
require_scoreboard_admin = make_require(Action.MANAGE_SCOREBOARDS)
require_scorer_admin = make_require(Action.MANAGE_SCORERS)
require_user_admin = make_require(Action.MANAGE_USERS)
