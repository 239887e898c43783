#!/usr/bin/env python3
"""
Initialize default database values.
This script is run on startup to make sure an admin account exists.
"""

import asyncio
import logging
import os

from scoreboard.database import db
from scoreboard.database.models import UserRole
from scoreboard.services import auth_service, user_service

logger = logging.getLogger(__name__)

DEFAULT_ADMIN_EMAIL = "admin@scoreboard.com"
DEFAULT_ADMIN_PASSWORD = "admin123"


async def init_defaults():
    """Create the default admin account when no admin exists yet."""
    async with db.AsyncSessionLocal() as session:
        if await user_service.admin_exists(session):
            logger.info("Admin account already exists")
            return

        email = auth_service.normalize_email(os.getenv("DEFAULT_ADMIN_EMAIL", DEFAULT_ADMIN_EMAIL))
        password = os.getenv("DEFAULT_ADMIN_PASSWORD", DEFAULT_ADMIN_PASSWORD)
        await user_service.create_user(
            session,
            email=email,
            password_hash=auth_service.hash_password(password),
            name="Admin",
            role=UserRole.ADMIN.value,
        )
        logger.info(f"✓ Created default admin account: {email}")
        if password == DEFAULT_ADMIN_PASSWORD:
            logger.warning("Default admin is using the default password; change it after first login")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(init_defaults())
