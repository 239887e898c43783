"""
Tests for the access policy decision point.
"""

import pytest

from scoreboard.services import access_policy
from scoreboard.services.access_policy import Action
from scoreboard.services.errors import ForbiddenError


class TestCan:
    def test_admin_can_everything(self):
        admin = {"id": 1, "role": "admin"}
        assert all(access_policy.can(admin, action) for action in Action)

    def test_scorer_blocked_from_admin_actions(self):
        scorer = {"id": 2, "role": "scorer"}
        assert access_policy.can(scorer, Action.RECORD_MATCH) is True
        assert access_policy.can(scorer, Action.MANAGE_ROSTER) is False
        assert access_policy.can(scorer, Action.RESOLVE_REMOVAL_REQUEST) is False
        assert access_policy.can(scorer, Action.AUDITED_MATCH_EDIT) is False


class TestAuthorize:
    @pytest.mark.asyncio
    async def test_admin_always_allowed(self, db_session, admin, league):
        await access_policy.authorize(db_session, admin, Action.MANAGE_USERS)
        await access_policy.authorize(db_session, admin, Action.RECORD_MATCH, scoreboard_id=9999)

    @pytest.mark.asyncio
    async def test_assigned_scorer_allowed(self, db_session, scorer, league):
        for action in (Action.VIEW_SCOREBOARD, Action.RECORD_MATCH, Action.EDIT_MATCH, Action.DELETE_MATCH):
            await access_policy.authorize(
                db_session, scorer, action, scoreboard_id=league["scoreboard_id"]
            )

    @pytest.mark.asyncio
    async def test_unassigned_scorer_denied(self, db_session, outsider, league):
        with pytest.raises(ForbiddenError, match="You are not assigned to this scoreboard"):
            await access_policy.authorize(
                db_session, outsider, Action.RECORD_MATCH, scoreboard_id=league["scoreboard_id"]
            )
        with pytest.raises(ForbiddenError, match="Access denied to this scoreboard"):
            await access_policy.authorize(
                db_session, outsider, Action.VIEW_SCOREBOARD, scoreboard_id=league["scoreboard_id"]
            )

    @pytest.mark.asyncio
    async def test_scorer_denied_admin_actions(self, db_session, scorer, league):
        with pytest.raises(ForbiddenError, match="Admin access required"):
            await access_policy.authorize(db_session, scorer, Action.MANAGE_SCOREBOARDS)

    @pytest.mark.asyncio
    async def test_team_roster_scope(self, db_session, scorer, league):
        await access_policy.authorize(db_session, scorer, Action.EDIT_TEAM_ROSTER, team_id=league["alpha"])

        with pytest.raises(ForbiddenError):
            await access_policy.authorize(
                db_session, scorer, Action.EDIT_TEAM_ROSTER, team_id=league["gamma"]
            )

    @pytest.mark.asyncio
    async def test_scoped_action_needs_resource(self, db_session, scorer):
        with pytest.raises(ValueError):
            await access_policy.authorize(db_session, scorer, Action.RECORD_MATCH)
