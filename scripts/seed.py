#!/usr/bin/env python3
"""
Seed demo data: an admin, a scorer, six players in two teams, and the
"Championship 2026" scoreboard with both teams and the scorer assigned.

Safe to run multiple times; existing rows are reused.

Usage (local, from repo root with venv):
  PYTHONPATH=apps python scripts/seed.py
"""

import asyncio
import os
import sys

project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, os.path.join(project_root, "apps"))

from sqlalchemy import select  # noqa: E402

from scoreboard.database.db import AsyncSessionLocal, init_database  # noqa: E402
from scoreboard.database.models import (  # noqa: E402
    Player,
    Scoreboard,
    ScoreboardTeam,
    ScorerAssignment,
    Team,
    TeamMembership,
    UserRole,
)
from scoreboard.services import auth_service, user_service  # noqa: E402

ADMIN = ("admin@scoreboard.com", "admin123", "Admin User", UserRole.ADMIN.value)
SCORER = ("scorer@scoreboard.com", "scorer123", "Scorer User", UserRole.SCORER.value)
ROSTERS = {
    "Team Alpha": ["John Doe", "Jane Smith", "Mike Johnson"],
    "Team Beta": ["Sarah Williams", "Tom Brown", "Emily Davis"],
}
SCOREBOARD_SLUG = "championship-2026"


async def _get_or_create_user(session, email, password, name, role) -> dict:
    user = await user_service.get_user_by_email(session, email)
    if user:
        print(f"✓ User exists: {email}")
        return user
    user = await user_service.create_user(
        session, email=email, password_hash=auth_service.hash_password(password), name=name, role=role
    )
    print(f"✓ Created {role}: {email} / {password}")
    return user


async def _get_or_create(session, model, defaults=None, **filters):
    result = await session.execute(select(model).filter_by(**filters))
    instance = result.scalars().first()
    if instance:
        return instance, False
    instance = model(**filters, **(defaults or {}))
    session.add(instance)
    await session.flush()
    return instance, True


async def seed() -> None:
    await init_database()

    async with AsyncSessionLocal() as session:
        admin = await _get_or_create_user(session, *ADMIN)
        scorer = await _get_or_create_user(session, *SCORER)

        teams = []
        for team_name, player_names in ROSTERS.items():
            team, created = await _get_or_create(session, Team, name=team_name)
            teams.append(team)
            print(f"{'✓ Created' if created else '✓ Team exists:'} {team_name}")
            for player_name in player_names:
                player, _ = await _get_or_create(session, Player, name=player_name)
                await _get_or_create(session, TeamMembership, team_id=team.id, player_id=player.id)

        scoreboard, created = await _get_or_create(
            session,
            Scoreboard,
            defaults={
                "name": "Championship 2026",
                "description": "Annual championship scoreboard",
                "status": "active",
                "created_by": admin["id"],
            },
            public_slug=SCOREBOARD_SLUG,
        )
        print(f"{'✓ Created' if created else '✓ Scoreboard exists:'} {SCOREBOARD_SLUG}")

        for team in teams:
            await _get_or_create(session, ScoreboardTeam, scoreboard_id=scoreboard.id, team_id=team.id)
        await _get_or_create(
            session,
            ScorerAssignment,
            defaults={"role": UserRole.SCORER.value},
            scoreboard_id=scoreboard.id,
            user_id=scorer["id"],
        )

        await session.commit()

    print("\nSeed data summary:")
    print(f"  Admin:  {ADMIN[0]} / {ADMIN[1]}")
    print(f"  Scorer: {SCORER[0]} / {SCORER[1]}")
    print(f"  Public: /api/public/scoreboard/{SCOREBOARD_SLUG}")


if __name__ == "__main__":
    asyncio.run(seed())
