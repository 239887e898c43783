"""
SQLAlchemy ORM models for the league scoreboard system.
"""

import enum
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Boolean,
    DateTime,
    ForeignKey,
    UniqueConstraint,
    CheckConstraint,
    Index,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from scoreboard.database.db import Base


class UserRole(str, enum.Enum):
    """Account role."""

    ADMIN = "admin"
    SCORER = "scorer"


class ScoreboardStatus(str, enum.Enum):
    """Scoreboard visibility status."""

    ACTIVE = "active"
    INACTIVE = "inactive"


class MatchStatus(str, enum.Enum):
    """Match lifecycle status."""

    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class MatchResult(str, enum.Enum):
    """Per-participant match outcome."""

    WIN = "win"
    LOSS = "loss"


class User(Base):
    """Admin and scorer accounts."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String, nullable=False, unique=True)
    password_hash = Column(String, nullable=False)
    name = Column(String, nullable=True)
    role = Column(String, nullable=False, default=UserRole.SCORER.value)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    scorer_assignments = relationship("ScorerAssignment", back_populates="user")

    __table_args__ = (
        CheckConstraint("role IN ('admin', 'scorer')", name="ck_users_role"),
        Index("idx_users_email", "email"),
    )


class Player(Base):
    """Player profiles."""

    __tablename__ = "players"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    photo = Column(String, nullable=True)  # Public URL returned by the storage backend
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    memberships = relationship("TeamMembership", back_populates="player")
    participations = relationship("MatchParticipant", back_populates="player")

    __table_args__ = (Index("idx_players_name", "name"),)


class Team(Base):
    """Teams (a player can belong to several)."""

    __tablename__ = "teams"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    logo = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    memberships = relationship("TeamMembership", back_populates="team")
    scoreboard_links = relationship("ScoreboardTeam", back_populates="team")

    __table_args__ = (Index("idx_teams_name", "name"),)


class TeamMembership(Base):
    """Join table (Player ↔ Team) with the pending-removal flag."""

    __tablename__ = "team_players"

    id = Column(Integer, primary_key=True, autoincrement=True)
    team_id = Column(Integer, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False)
    player_id = Column(Integer, ForeignKey("players.id", ondelete="CASCADE"), nullable=False)
    removal_requested = Column(Boolean, default=False, nullable=False, server_default="false")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    team = relationship("Team", back_populates="memberships")
    player = relationship("Player", back_populates="memberships")

    __table_args__ = (
        UniqueConstraint("team_id", "player_id", name="uq_team_players_team_player"),
        Index("idx_team_players_team", "team_id"),
        Index("idx_team_players_player", "player_id"),
    )


class Scoreboard(Base):
    """Tournament / league instance with a public slug."""

    __tablename__ = "scoreboards"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    public_slug = Column(String(100), nullable=False, unique=True)
    status = Column(String, nullable=False, default=ScoreboardStatus.ACTIVE.value)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    creator = relationship("User", foreign_keys=[created_by])
    team_links = relationship("ScoreboardTeam", back_populates="scoreboard")
    scorers = relationship("ScorerAssignment", back_populates="scoreboard")
    matches = relationship("Match", back_populates="scoreboard")

    __table_args__ = (
        CheckConstraint("status IN ('active', 'inactive')", name="ck_scoreboards_status"),
        Index("idx_scoreboards_slug", "public_slug"),
    )


class ScoreboardTeam(Base):
    """Join table (Scoreboard ↔ Team)."""

    __tablename__ = "scoreboard_teams"

    id = Column(Integer, primary_key=True, autoincrement=True)
    scoreboard_id = Column(
        Integer, ForeignKey("scoreboards.id", ondelete="CASCADE"), nullable=False
    )
    team_id = Column(Integer, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    scoreboard = relationship("Scoreboard", back_populates="team_links")
    team = relationship("Team", back_populates="scoreboard_links")

    __table_args__ = (
        UniqueConstraint("scoreboard_id", "team_id", name="uq_scoreboard_teams_scoreboard_team"),
        Index("idx_scoreboard_teams_scoreboard", "scoreboard_id"),
    )


class ScorerAssignment(Base):
    """Grants a user write access scoped to one scoreboard."""

    __tablename__ = "scorer_users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    scoreboard_id = Column(
        Integer, ForeignKey("scoreboards.id", ondelete="CASCADE"), nullable=False
    )
    role = Column(String, nullable=False, default=UserRole.SCORER.value)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    user = relationship("User", back_populates="scorer_assignments")
    scoreboard = relationship("Scoreboard", back_populates="scorers")

    __table_args__ = (
        UniqueConstraint("user_id", "scoreboard_id", name="uq_scorer_users_user_scoreboard"),
        Index("idx_scorer_users_user", "user_id"),
    )


class Match(Base):
    """Recorded match results."""

    __tablename__ = "matches"

    id = Column(Integer, primary_key=True, autoincrement=True)
    scoreboard_id = Column(
        Integer, ForeignKey("scoreboards.id", ondelete="CASCADE"), nullable=False
    )
    location = Column(String, nullable=True)
    date = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    status = Column(String, nullable=False, default=MatchStatus.SCHEDULED.value)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    is_edited = Column(Boolean, default=False, nullable=False, server_default="false")
    remarks = Column(Text, nullable=True)  # Only set by admin edits
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    scoreboard = relationship("Scoreboard", back_populates="matches")
    creator = relationship("User", foreign_keys=[created_by])
    participants = relationship(
        "MatchParticipant", back_populates="match", order_by="MatchParticipant.id"
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('scheduled', 'completed', 'cancelled')", name="ck_matches_status"
        ),
        Index("idx_matches_scoreboard_status", "scoreboard_id", "status"),
        Index("idx_matches_created_by", "created_by"),
        Index("idx_matches_date", "date"),
    )


class MatchParticipant(Base):
    """One player's result in a match."""

    __tablename__ = "match_participants"

    id = Column(Integer, primary_key=True, autoincrement=True)
    match_id = Column(Integer, ForeignKey("matches.id", ondelete="CASCADE"), nullable=False)
    team_id = Column(Integer, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False)
    player_id = Column(Integer, ForeignKey("players.id", ondelete="CASCADE"), nullable=False)
    result = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    match = relationship("Match", back_populates="participants")
    team = relationship("Team")
    player = relationship("Player", back_populates="participations")

    __table_args__ = (
        CheckConstraint("result IN ('win', 'loss')", name="ck_match_participants_result"),
        Index("idx_match_participants_match", "match_id"),
        Index("idx_match_participants_player", "player_id"),
        Index("idx_match_participants_team", "team_id"),
    )
