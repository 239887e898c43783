"""
HTTP-level tests for the authenticated API.

Services are mocked; the authenticated user is injected by overriding the
get_current_user dependency.
"""

import pytest
from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient

from scoreboard.api.auth_dependencies import get_current_user
from scoreboard.api.main import app
from scoreboard.services import auth_service
from scoreboard.services.errors import ConflictError, ForbiddenError, ValidationFailedError

ADMIN = {"id": 1, "email": "admin@scoreboard.com", "name": "Admin", "role": "admin"}
SCORER = {"id": 2, "email": "scorer@scoreboard.com", "name": "Scorer", "role": "scorer"}


@pytest.fixture
def client():
    """Unauthenticated client."""
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def as_user(client):
    """Return a function that authenticates the client as the given user."""

    def _login(user):
        app.dependency_overrides[get_current_user] = lambda: user
        return client

    return _login


# ============================================================================
# Health and error shape
# ============================================================================


def test_health(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


@pytest.mark.parametrize(
    "method,path",
    [
        ("get", "/api/players"),
        ("get", "/api/teams"),
        ("get", "/api/scoreboards"),
        ("get", "/api/matches/my-matches"),
        ("get", "/api/auth/me"),
    ],
)
def test_requires_token(client, method, path):
    response = getattr(client, method)(path)

    assert response.status_code == 401
    assert response.json() == {"error": "Authentication required"}


def test_invalid_token(client):
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401
    assert response.json() == {"error": "Invalid authentication token"}


def test_token_without_user_id(client):
    token = auth_service.create_access_token({"role": "admin"})

    response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert response.json() == {"error": "Invalid token payload"}


# ============================================================================
# Auth
# ============================================================================


@patch("scoreboard.services.user_service.get_user_by_email", new_callable=AsyncMock)
def test_login_success(mock_get_user, client):
    mock_get_user.return_value = {
        **ADMIN,
        "password_hash": auth_service.hash_password("admin123"),
        "created_at": None,
        "updated_at": None,
    }

    response = client.post("/api/auth/login", json={"email": ADMIN["email"], "password": "admin123"})

    assert response.status_code == 200
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["user"]["role"] == "admin"
    assert "password_hash" not in data["user"]
    claims = auth_service.verify_token(data["token"])
    assert claims["user_id"] == 1
    assert claims["role"] == "admin"


@patch("scoreboard.services.user_service.get_user_by_email", new_callable=AsyncMock)
def test_login_wrong_password(mock_get_user, client):
    mock_get_user.return_value = {**ADMIN, "password_hash": auth_service.hash_password("admin123")}

    response = client.post("/api/auth/login", json={"email": ADMIN["email"], "password": "nope"})

    assert response.status_code == 401
    assert response.json() == {"error": "Invalid credentials"}


@patch("scoreboard.services.user_service.get_user_by_email", new_callable=AsyncMock)
def test_login_unknown_email(mock_get_user, client):
    mock_get_user.return_value = None

    response = client.post("/api/auth/login", json={"email": "x@y.z", "password": "whatever"})

    assert response.status_code == 401


@patch("scoreboard.services.user_service.create_user", new_callable=AsyncMock)
@patch("scoreboard.services.user_service.count_users", new_callable=AsyncMock)
def test_first_registration_is_open(mock_count, mock_create, client):
    mock_count.return_value = 0
    mock_create.return_value = {**ADMIN, "password_hash": "h", "created_at": None, "updated_at": None}

    response = client.post(
        "/api/auth/register",
        json={"email": "Admin@Scoreboard.com", "password": "admin123", "name": "Admin", "role": "admin"},
    )

    assert response.status_code == 201
    assert response.json()["user"]["email"] == ADMIN["email"]
    assert mock_create.call_args.kwargs["email"] == "admin@scoreboard.com"


@patch("scoreboard.services.user_service.count_users", new_callable=AsyncMock)
def test_registration_closed_without_token(mock_count, client):
    mock_count.return_value = 1

    response = client.post(
        "/api/auth/register", json={"email": "new@x.io", "password": "secret1"}
    )

    assert response.status_code == 401


def test_register_short_password(client):
    response = client.post("/api/auth/register", json={"email": "new@x.io", "password": "123"})

    assert response.status_code == 400
    assert response.json()["error"].startswith("password")


def test_me(as_user):
    response = as_user(SCORER).get("/api/auth/me")

    assert response.status_code == 200
    assert response.json()["email"] == SCORER["email"]


def test_list_users_admin_only(as_user):
    response = as_user(SCORER).get("/api/auth/users")

    assert response.status_code == 403
    assert response.json() == {"error": "Admin access required"}


@patch("scoreboard.services.user_service.update_user", new_callable=AsyncMock)
def test_scorer_cannot_edit_other_user(mock_update, as_user):
    response = as_user(SCORER).put("/api/auth/users/1", json={"name": "Hacker"})

    assert response.status_code == 403
    mock_update.assert_not_called()


# ============================================================================
# Roster
# ============================================================================


@patch("scoreboard.services.roster_service.create_player", new_callable=AsyncMock)
def test_create_player_admin(mock_create, as_user):
    mock_create.return_value = {"id": 5, "name": "Jane", "photo": None, "created_at": None, "teams": []}

    response = as_user(ADMIN).post("/api/players", json={"name": "Jane"})

    assert response.status_code == 201
    assert response.json()["id"] == 5


@patch("scoreboard.services.roster_service.create_player", new_callable=AsyncMock)
def test_create_player_scorer_forbidden(mock_create, as_user):
    response = as_user(SCORER).post("/api/players", json={"name": "Jane"})

    assert response.status_code == 403
    mock_create.assert_not_called()


@patch("scoreboard.services.roster_service.delete_team", new_callable=AsyncMock)
def test_delete_team(mock_delete, as_user):
    mock_delete.return_value = True

    response = as_user(ADMIN).delete("/api/teams/3")

    assert response.status_code == 200
    assert response.json() == {"message": "Team deleted successfully"}


@patch("scoreboard.services.roster_service.add_player_to_team", new_callable=AsyncMock)
def test_add_player_accepts_camel_case(mock_add, as_user):
    mock_add.return_value = {"message": "Player added to team", "team": {"id": 1, "players": []}}

    response = as_user(SCORER).post("/api/teams/1/players", json={"playerId": 4})

    assert response.status_code == 200
    assert mock_add.call_args.args[1:] == (SCORER, 1, 4)


@patch("scoreboard.services.roster_service.add_player_to_team", new_callable=AsyncMock)
def test_add_player_conflict(mock_add, as_user):
    mock_add.side_effect = ConflictError("Player already assigned to this team")

    response = as_user(ADMIN).post("/api/teams/1/players", json={"player_id": 4})

    assert response.status_code == 409
    assert response.json() == {"error": "Player already assigned to this team"}


@patch("scoreboard.services.roster_service.remove_player_from_team", new_callable=AsyncMock)
def test_scorer_removal_becomes_request(mock_remove, as_user):
    mock_remove.return_value = {
        "message": "Removal request sent to admin for approval",
        "removal_requested": True,
    }

    response = as_user(SCORER).delete("/api/teams/1/players/2")

    assert response.status_code == 200
    assert response.json()["removal_requested"] is True


@patch("scoreboard.services.roster_service.resolve_removal_request", new_callable=AsyncMock)
def test_invalid_approval_action(mock_resolve, as_user):
    mock_resolve.side_effect = ValidationFailedError('Invalid action. Use "approve" or "reject".')

    response = as_user(ADMIN).post("/api/teams/1/players/2/approval", json={"action": "maybe"})

    assert response.status_code == 400


@patch("scoreboard.services.roster_service.list_removal_requests", new_callable=AsyncMock)
def test_removal_requests_route_not_shadowed(mock_list, as_user):
    mock_list.return_value = []

    response = as_user(ADMIN).get("/api/teams/removal-requests")

    assert response.status_code == 200
    assert response.json() == []


@patch("scoreboard.services.roster_service.set_player_photo", new_callable=AsyncMock)
def test_upload_player_photo(mock_set_photo, as_user):
    mock_set_photo.return_value = {"id": 5, "name": "Jane", "photo": "/uploads/players/p.png"}

    response = as_user(ADMIN).post(
        "/api/players/5/photo", files={"file": ("p.png", b"\x89PNG", "image/png")}
    )

    assert response.status_code == 200
    args = mock_set_photo.call_args.args
    assert args[2:] == (5, b"\x89PNG", "p.png", "image/png")


# ============================================================================
# Scoreboards
# ============================================================================


@patch("scoreboard.services.scoreboard_service.create_scoreboard", new_callable=AsyncMock)
def test_create_scoreboard(mock_create, as_user):
    mock_create.return_value = {"id": 1, "public_slug": "spring"}

    response = as_user(ADMIN).post("/api/scoreboards", json={"name": "Spring", "publicSlug": "spring"})

    assert response.status_code == 201
    assert mock_create.call_args.kwargs["public_slug"] == "spring"


def test_create_scoreboard_scorer_forbidden(as_user):
    response = as_user(SCORER).post("/api/scoreboards", json={"name": "Spring"})

    assert response.status_code == 403


def test_create_scoreboard_invalid_status(as_user):
    response = as_user(ADMIN).post("/api/scoreboards", json={"name": "Spring", "status": "archived"})

    assert response.status_code == 400


@patch("scoreboard.services.scoreboard_service.get_scoreboard", new_callable=AsyncMock)
def test_get_scoreboard_forbidden(mock_get, as_user):
    mock_get.side_effect = ForbiddenError("Access denied to this scoreboard")

    response = as_user(SCORER).get("/api/scoreboards/9")

    assert response.status_code == 403
    assert response.json() == {"error": "Access denied to this scoreboard"}


@patch("scoreboard.services.scoreboard_service.delete_scoreboard", new_callable=AsyncMock)
def test_delete_scoreboard(mock_delete, as_user):
    mock_delete.return_value = True

    response = as_user(ADMIN).delete("/api/scoreboards/1")

    assert response.status_code == 200
    assert response.json() == {"message": "Scoreboard deleted successfully"}


# ============================================================================
# Matches
# ============================================================================


@patch("scoreboard.services.match_service.create_match", new_callable=AsyncMock)
def test_create_match(mock_create, as_user):
    mock_create.return_value = {"id": 10, "status": "completed", "participants": []}

    response = as_user(SCORER).post(
        "/api/matches",
        json={
            "scoreboardId": 1,
            "location": "Court 3",
            "participants": [
                {"teamId": 1, "playerId": 4, "result": "win"},
                {"teamId": 2, "playerId": 7, "result": "loss"},
            ],
        },
    )

    assert response.status_code == 201
    kwargs = mock_create.call_args.kwargs
    assert kwargs["scoreboard_id"] == 1
    assert kwargs["participants"] == [
        {"team_id": 1, "player_id": 4, "result": "win"},
        {"team_id": 2, "player_id": 7, "result": "loss"},
    ]


@patch("scoreboard.services.match_service.create_match", new_callable=AsyncMock)
def test_create_match_validation_error(mock_create, as_user):
    mock_create.side_effect = ValidationFailedError("A match must have exactly one winner")

    response = as_user(SCORER).post(
        "/api/matches", json={"scoreboardId": 1, "participants": [{"teamId": 1, "playerId": 4}]}
    )

    assert response.status_code == 400
    assert response.json() == {"error": "A match must have exactly one winner"}


@patch("scoreboard.services.match_service.amend_match", new_callable=AsyncMock)
def test_update_match_empty_participants_admin(mock_amend, as_user):
    mock_amend.side_effect = ValidationFailedError("Participants cannot be empty")

    response = as_user(ADMIN).put("/api/matches/1", json={"participants": [], "remarks": "fix"})

    assert response.status_code == 400
    assert response.json() == {"error": "Participants cannot be empty"}
    assert mock_amend.call_args.kwargs["participants"] == []


@patch("scoreboard.services.match_service.amend_match", new_callable=AsyncMock)
def test_update_match_empty_participants_scorer(mock_amend, as_user):
    mock_amend.return_value = {"id": 1, "is_edited": False}

    response = as_user(SCORER).put("/api/matches/1", json={"participants": [], "location": "Court 4"})

    assert response.status_code == 200
    assert mock_amend.call_args.kwargs["participants"] == []


@patch("scoreboard.services.match_service.amend_match", new_callable=AsyncMock)
def test_update_match(mock_amend, as_user):
    mock_amend.return_value = {"id": 1, "is_edited": True}

    response = as_user(ADMIN).put("/api/matches/1", json={"location": "Court 2", "remarks": "typo"})

    assert response.status_code == 200
    kwargs = mock_amend.call_args.kwargs
    assert kwargs["remarks"] == "typo"
    assert kwargs["participants"] is None


@patch("scoreboard.services.match_service.list_my_matches", new_callable=AsyncMock)
def test_my_matches_route_not_shadowed(mock_list, as_user):
    mock_list.return_value = []

    response = as_user(SCORER).get("/api/matches/my-matches")

    assert response.status_code == 200
    mock_list.assert_called_once()


@patch("scoreboard.services.match_service.delete_match", new_callable=AsyncMock)
def test_delete_match(mock_delete, as_user):
    mock_delete.return_value = {"message": "Match deleted successfully"}

    response = as_user(SCORER).delete("/api/matches/1")

    assert response.status_code == 200
    assert response.json() == {"message": "Match deleted successfully"}
