"""001_initial_schema

Revision ID: 001
Revises:
Create Date: 2026-01-12 10:00:00.000000

Initial schema: accounts, roster (players, teams, team_players),
scoreboards with their team and scorer assignments, and the match ledger.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps(with_updated: bool = True):
    columns = [sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now())]
    if with_updated:
        columns.append(
            sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now())
        )
    return columns


def upgrade() -> None:
    """Create all tables."""
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('email', sa.String(), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=True),
        sa.Column('role', sa.String(), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("role IN ('admin', 'scorer')", name='ck_users_role'),
    )
    op.create_index('idx_users_email', 'users', ['email'])

    op.create_table(
        'players',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('photo', sa.String(), nullable=True),
        *_timestamps(),
    )
    op.create_index('idx_players_name', 'players', ['name'])

    op.create_table(
        'teams',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('logo', sa.String(), nullable=True),
        *_timestamps(),
    )
    op.create_index('idx_teams_name', 'teams', ['name'])

    op.create_table(
        'team_players',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('team_id', sa.Integer(), sa.ForeignKey('teams.id', ondelete='CASCADE'), nullable=False),
        sa.Column('player_id', sa.Integer(), sa.ForeignKey('players.id', ondelete='CASCADE'), nullable=False),
        sa.Column('removal_requested', sa.Boolean(), nullable=False, server_default='false'),
        *_timestamps(),
        sa.UniqueConstraint('team_id', 'player_id', name='uq_team_players_team_player'),
    )
    op.create_index('idx_team_players_team', 'team_players', ['team_id'])
    op.create_index('idx_team_players_player', 'team_players', ['player_id'])

    op.create_table(
        'scoreboards',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('public_slug', sa.String(100), nullable=False, unique=True),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("status IN ('active', 'inactive')", name='ck_scoreboards_status'),
    )
    op.create_index('idx_scoreboards_slug', 'scoreboards', ['public_slug'])

    op.create_table(
        'scoreboard_teams',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('scoreboard_id', sa.Integer(), sa.ForeignKey('scoreboards.id', ondelete='CASCADE'), nullable=False),
        sa.Column('team_id', sa.Integer(), sa.ForeignKey('teams.id', ondelete='CASCADE'), nullable=False),
        *_timestamps(with_updated=False),
        sa.UniqueConstraint('scoreboard_id', 'team_id', name='uq_scoreboard_teams_scoreboard_team'),
    )
    op.create_index('idx_scoreboard_teams_scoreboard', 'scoreboard_teams', ['scoreboard_id'])

    op.create_table(
        'scorer_users',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('scoreboard_id', sa.Integer(), sa.ForeignKey('scoreboards.id', ondelete='CASCADE'), nullable=False),
        sa.Column('role', sa.String(), nullable=False),
        *_timestamps(with_updated=False),
        sa.UniqueConstraint('user_id', 'scoreboard_id', name='uq_scorer_users_user_scoreboard'),
    )
    op.create_index('idx_scorer_users_user', 'scorer_users', ['user_id'])

    op.create_table(
        'matches',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('scoreboard_id', sa.Integer(), sa.ForeignKey('scoreboards.id', ondelete='CASCADE'), nullable=False),
        sa.Column('location', sa.String(), nullable=True),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('created_by', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('is_edited', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('remarks', sa.Text(), nullable=True),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('scheduled', 'completed', 'cancelled')", name='ck_matches_status'
        ),
    )
    op.create_index('idx_matches_scoreboard_status', 'matches', ['scoreboard_id', 'status'])
    op.create_index('idx_matches_created_by', 'matches', ['created_by'])
    op.create_index('idx_matches_date', 'matches', ['date'])

    op.create_table(
        'match_participants',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('match_id', sa.Integer(), sa.ForeignKey('matches.id', ondelete='CASCADE'), nullable=False),
        sa.Column('team_id', sa.Integer(), sa.ForeignKey('teams.id', ondelete='CASCADE'), nullable=False),
        sa.Column('player_id', sa.Integer(), sa.ForeignKey('players.id', ondelete='CASCADE'), nullable=False),
        sa.Column('result', sa.String(), nullable=False),
        *_timestamps(with_updated=False),
        sa.CheckConstraint("result IN ('win', 'loss')", name='ck_match_participants_result'),
    )
    op.create_index('idx_match_participants_match', 'match_participants', ['match_id'])
    op.create_index('idx_match_participants_player', 'match_participants', ['player_id'])
    op.create_index('idx_match_participants_team', 'match_participants', ['team_id'])


def downgrade() -> None:
    """Drop all tables."""
    for table in (
        'match_participants',
        'matches',
        'scorer_users',
        'scoreboard_teams',
        'scoreboards',
        'team_players',
        'teams',
        'players',
        'users',
    ):
        op.drop_table(table)
