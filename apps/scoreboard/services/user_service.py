"""
User service layer for account database operations.
"""

from typing import Optional, Dict, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from scoreboard.database.models import User, UserRole
from scoreboard.services.errors import ConflictError, NotFoundError, ValidationFailedError
import logging

logger = logging.getLogger(__name__)


async def create_user(
    session: AsyncSession,
    email: str,
    password_hash: str,
    name: Optional[str] = None,
    role: str = UserRole.SCORER.value,
) -> Dict:
    """
    Create a new user account.

    Args:
        session: Database session
        email: Email address (will be normalized to lowercase)
        password_hash: Required hashed password
        name: Optional display name
        role: "admin" or "scorer"

    Returns:
        User dictionary

    Raises:
        ValidationFailedError: If the role is unknown
        ConflictError: If a user with this email already exists
    """
    if role not in {r.value for r in UserRole}:
        raise ValidationFailedError("Role must be 'admin' or 'scorer'")

    email = email.strip().lower()
    result = await session.execute(select(User.id).where(User.email == email))
    if result.scalar_one_or_none():
        raise ConflictError("User already exists")

    new_user = User(email=email, password_hash=password_hash, name=name, role=role)
    session.add(new_user)
    try:
        await session.flush()
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise ConflictError("User already exists")
    await session.refresh(new_user)

    logger.info(f"Created {role} account {new_user.id}")
    return _user_to_dict(new_user)


async def count_users(session: AsyncSession) -> int:
    """Return the number of registered accounts."""
    result = await session.execute(select(func.count(User.id)))
    return result.scalar() or 0


async def admin_exists(session: AsyncSession) -> bool:
    """Check if at least one admin account exists."""
    result = await session.execute(
        select(User.id).where(User.role == UserRole.ADMIN.value).limit(1)
    )
    return result.scalar_one_or_none() is not None


async def get_user_by_email(session: AsyncSession, email: str) -> Optional[Dict]:
    """
    Get user by email address.

    Args:
        session: Database session
        email: Email address (will be normalized to lowercase)

    Returns:
        User dictionary or None if not found
    """
    email = email.strip().lower() if email else None
    if not email:
        return None

    result = await session.execute(select(User).where(User.email == email).limit(1))
    user = result.scalar_one_or_none()
    return _user_to_dict(user) if user else None


async def get_user_by_id(session: AsyncSession, user_id: int) -> Optional[Dict]:
    """
    Get user by ID.

    Args:
        session: Database session
        user_id: User ID

    Returns:
        User dictionary or None if not found
    """
    user = await session.get(User, user_id)
    return _user_to_dict(user) if user else None


async def list_scorers(session: AsyncSession) -> List[Dict]:
    """List scorer accounts, ordered by name."""
    result = await session.execute(
        select(User).where(User.role == UserRole.SCORER.value).order_by(User.name.asc(), User.id.asc())
    )
    return [public_user(_user_to_dict(user)) for user in result.scalars().all()]


async def update_user(
    session: AsyncSession,
    user_id: int,
    name: Optional[str] = None,
    email: Optional[str] = None,
    password_hash: Optional[str] = None,
) -> Dict:
    """
    Update a user's name, email or password.

    Raises:
        NotFoundError: If the user does not exist
        ConflictError: If the new email belongs to another account
    """
    user = await session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")

    if email is not None:
        email = email.strip().lower()
        if email != user.email:
            existing = await session.execute(select(User.id).where(User.email == email))
            if existing.scalar_one_or_none():
                raise ConflictError("Email already in use")
            user.email = email
    if name is not None:
        user.name = name
    if password_hash is not None:
        user.password_hash = password_hash

    await session.commit()
    await session.refresh(user)
    return _user_to_dict(user)


def public_user(user: Dict) -> Dict:
    """Strip credentials from a user dictionary before returning it to a client."""
    return {key: value for key, value in user.items() if key != "password_hash"}


def _user_to_dict(user: User) -> Dict:
    """
    Convert a User ORM instance to a dictionary.

    Args:
        user: User ORM instance

    Returns:
        User dictionary
    """
    return {
        "id": user.id,
        "email": user.email,
        "password_hash": user.password_hash,
        "name": user.name,
        "role": user.role,
        "created_at": user.created_at.isoformat() if user.created_at else None,
        "updated_at": user.updated_at.isoformat() if user.updated_at else None,
    }
