"""
Tests for scoreboard_service: scoreboard CRUD and team/scorer assignment.
"""

import pytest
from sqlalchemy import select, func

from scoreboard.database.models import Match, MatchParticipant, ScoreboardTeam, ScorerAssignment
from scoreboard.services import match_service, scoreboard_service
from scoreboard.services.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationFailedError,
)


async def _count(session, column, *where):
    result = await session.execute(select(func.count(column)).where(*where))
    return result.scalar()


class TestCreateScoreboard:
    """Tests for create_scoreboard()."""

    @pytest.mark.asyncio
    async def test_slug_derived_from_name(self, db_session, admin):
        scoreboard = await scoreboard_service.create_scoreboard(db_session, admin, "Championship 2026")

        assert scoreboard["public_slug"] == "championship-2026"
        assert scoreboard["status"] == "active"
        assert scoreboard["created_by"] == admin["id"]
        assert scoreboard["teams"] == []
        assert scoreboard["scorers"] == []

    @pytest.mark.asyncio
    async def test_explicit_slug_lowercased(self, db_session, admin):
        scoreboard = await scoreboard_service.create_scoreboard(
            db_session, admin, "Spring", public_slug="Spring-League", description="Weekly games"
        )

        assert scoreboard["public_slug"] == "spring-league"
        assert scoreboard["description"] == "Weekly games"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("slug", ["has space", "under_score", "emoji!"])
    async def test_invalid_slug(self, db_session, admin, slug):
        with pytest.raises(ValidationFailedError, match="letters, numbers, and hyphens"):
            await scoreboard_service.create_scoreboard(db_session, admin, "Spring", public_slug=slug)

    @pytest.mark.asyncio
    async def test_duplicate_slug(self, db_session, admin):
        await scoreboard_service.create_scoreboard(db_session, admin, "Spring", public_slug="spring")

        with pytest.raises(ConflictError, match="Public slug already exists"):
            await scoreboard_service.create_scoreboard(db_session, admin, "Other", public_slug="SPRING")

    @pytest.mark.asyncio
    async def test_name_required(self, db_session, admin):
        with pytest.raises(ValidationFailedError, match="Name is required"):
            await scoreboard_service.create_scoreboard(db_session, admin, "  ")

    @pytest.mark.asyncio
    async def test_invalid_status(self, db_session, admin):
        with pytest.raises(ValidationFailedError):
            await scoreboard_service.create_scoreboard(db_session, admin, "Spring", status="archived")


class TestReadScoreboards:
    """Listing and lookup."""

    @pytest.mark.asyncio
    async def test_admin_sees_all_newest_first(self, db_session, admin, league):
        newer = await scoreboard_service.create_scoreboard(db_session, admin, "Later Cup")

        scoreboards = await scoreboard_service.list_scoreboards(db_session, admin)

        assert [s["id"] for s in scoreboards] == [newer["id"], league["scoreboard_id"]]

    @pytest.mark.asyncio
    async def test_scorer_sees_assigned_only(self, db_session, admin, scorer, outsider, league):
        await scoreboard_service.create_scoreboard(db_session, admin, "Later Cup")

        scoreboards = await scoreboard_service.list_scoreboards(db_session, scorer)

        assert [s["id"] for s in scoreboards] == [league["scoreboard_id"]]
        assert [t["name"] for t in scoreboards[0]["teams"]] == ["Alpha", "Beta"]
        assert scoreboards[0]["scorers"][0]["email"] == "scorer@example.com"
        assert await scoreboard_service.list_scoreboards(db_session, outsider) == []

    @pytest.mark.asyncio
    async def test_get_requires_assignment(self, db_session, scorer, outsider, league):
        scoreboard = await scoreboard_service.get_scoreboard(db_session, scorer, league["scoreboard_id"])
        assert scoreboard["public_slug"] == "champ"

        with pytest.raises(ForbiddenError):
            await scoreboard_service.get_scoreboard(db_session, outsider, league["scoreboard_id"])
        with pytest.raises(NotFoundError):
            await scoreboard_service.get_scoreboard(db_session, scorer, 9999)

    @pytest.mark.asyncio
    async def test_get_by_slug_active_only(self, db_session, league):
        assert (await scoreboard_service.get_scoreboard_by_slug(db_session, "CHAMP")).id == league[
            "scoreboard_id"
        ]

        await scoreboard_service.update_scoreboard(db_session, league["scoreboard_id"], status="inactive")

        assert await scoreboard_service.get_scoreboard_by_slug(db_session, "champ") is None
        found = await scoreboard_service.get_scoreboard_by_slug(db_session, "champ", active_only=False)
        assert found is not None


class TestUpdateAndDelete:
    """Tests for update_scoreboard() and delete_scoreboard()."""

    @pytest.mark.asyncio
    async def test_update_fields(self, db_session, league):
        updated = await scoreboard_service.update_scoreboard(
            db_session, league["scoreboard_id"], name="Champions", public_slug="champions"
        )

        assert updated["name"] == "Champions"
        assert updated["public_slug"] == "champions"
        assert updated["description"] is None

    @pytest.mark.asyncio
    async def test_update_slug_conflict(self, db_session, admin, league):
        await scoreboard_service.create_scoreboard(db_session, admin, "Spring", public_slug="spring")

        with pytest.raises(ConflictError):
            await scoreboard_service.update_scoreboard(
                db_session, league["scoreboard_id"], public_slug="spring"
            )

    @pytest.mark.asyncio
    async def test_update_keeps_own_slug(self, db_session, league):
        updated = await scoreboard_service.update_scoreboard(
            db_session, league["scoreboard_id"], public_slug="champ", description="Finals"
        )
        assert updated["description"] == "Finals"

    @pytest.mark.asyncio
    async def test_delete_cascades(self, db_session, admin, league):
        await match_service.create_match(
            db_session,
            admin,
            league["scoreboard_id"],
            [
                {"team_id": league["alpha"], "player_id": league["p1"], "result": "win"},
                {"team_id": league["beta"], "player_id": league["p3"], "result": "loss"},
            ],
        )

        assert await scoreboard_service.delete_scoreboard(db_session, league["scoreboard_id"]) is True

        assert await _count(db_session, Match.id) == 0
        assert await _count(db_session, MatchParticipant.id) == 0
        assert await _count(db_session, ScoreboardTeam.id) == 0
        assert await _count(db_session, ScorerAssignment.id) == 0
        with pytest.raises(NotFoundError):
            await scoreboard_service.get_scoreboard(db_session, admin, league["scoreboard_id"])

    @pytest.mark.asyncio
    async def test_delete_missing(self, db_session):
        with pytest.raises(NotFoundError):
            await scoreboard_service.delete_scoreboard(db_session, 9999)


class TestAssignments:
    """Team and scorer assignment."""

    @pytest.mark.asyncio
    async def test_assign_and_unassign_team(self, db_session, league):
        scoreboard = await scoreboard_service.assign_team(db_session, league["scoreboard_id"], league["gamma"])
        assert [t["name"] for t in scoreboard["teams"]] == ["Alpha", "Beta", "Gamma"]

        with pytest.raises(ConflictError, match="Team already assigned"):
            await scoreboard_service.assign_team(db_session, league["scoreboard_id"], league["gamma"])

        scoreboard = await scoreboard_service.unassign_team(db_session, league["scoreboard_id"], league["gamma"])
        assert [t["name"] for t in scoreboard["teams"]] == ["Alpha", "Beta"]

        with pytest.raises(NotFoundError, match="Team not assigned"):
            await scoreboard_service.unassign_team(db_session, league["scoreboard_id"], league["gamma"])

    @pytest.mark.asyncio
    async def test_assign_unknown_team(self, db_session, league):
        with pytest.raises(NotFoundError, match="Team not found"):
            await scoreboard_service.assign_team(db_session, league["scoreboard_id"], 9999)

    @pytest.mark.asyncio
    async def test_assign_scorer_grants_access(self, db_session, outsider, league):
        scoreboard = await scoreboard_service.assign_scorer(db_session, league["scoreboard_id"], outsider["id"])

        assert outsider["id"] in [s["id"] for s in scoreboard["scorers"]]
        visible = await scoreboard_service.get_scoreboard(db_session, outsider, league["scoreboard_id"])
        assert visible["id"] == league["scoreboard_id"]

    @pytest.mark.asyncio
    async def test_assign_admin_account(self, db_session, admin, league):
        scoreboard = await scoreboard_service.assign_scorer(db_session, league["scoreboard_id"], admin["id"])

        assert admin["id"] in [s["id"] for s in scoreboard["scorers"]]

    @pytest.mark.asyncio
    async def test_assign_scorer_twice(self, db_session, scorer, league):
        with pytest.raises(ConflictError, match="Scorer already assigned"):
            await scoreboard_service.assign_scorer(db_session, league["scoreboard_id"], scorer["id"])

    @pytest.mark.asyncio
    async def test_assign_unknown_user(self, db_session, league):
        with pytest.raises(NotFoundError, match="User not found"):
            await scoreboard_service.assign_scorer(db_session, league["scoreboard_id"], 9999)

    @pytest.mark.asyncio
    async def test_unassign_scorer_revokes_access(self, db_session, scorer, league):
        await scoreboard_service.unassign_scorer(db_session, league["scoreboard_id"], scorer["id"])

        with pytest.raises(ForbiddenError):
            await scoreboard_service.get_scoreboard(db_session, scorer, league["scoreboard_id"])
        with pytest.raises(NotFoundError):
            await scoreboard_service.unassign_scorer(db_session, league["scoreboard_id"], scorer["id"])
