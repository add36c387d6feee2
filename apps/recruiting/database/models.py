"""
SQLAlchemy ORM models for the recruiting platform.
"""

import enum
from sqlalchemy import (
    JSON,
    Column,
    Integer,
    String,
    Boolean,
    Float,
    Text,
    DateTime,
    ForeignKey,
    UniqueConstraint,
    CheckConstraint,
    Index,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declared_attr
from sqlalchemy.sql import func
from recruiting.database.db import Base

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


class UserRole(str, enum.Enum):
    """User role enum."""

    SUPER_ADMIN = "superAdmin"
    SCOUT = "scout"
    COACH = "coach"
    PLAYER = "player"
    JUCO_COACH = "jucocoach"
    MEDIA = "media"


class RegistrationStatus(str, enum.Enum):
    """Account approval status."""

    IN_PROGRESS = "inProgress"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class CommitmentStatus(str, enum.Enum):
    """Player commitment status."""

    UNCOMMITTED = "uncommitted"
    COMMITTED = "committed"


class PendingRegistrationStatus(str, enum.Enum):
    """Pending registration lifecycle. Transitions pending -> completed exactly once."""

    PENDING = "pending"
    COMPLETED = "completed"


class SubscriptionStatus(str, enum.Enum):
    """Subscription status enum."""

    NONE = "none"
    ACTIVE = "active"
    CANCELED = "canceled"
    PAST_DUE = "past_due"
    TRIALING = "trialing"


class PaymentProvider(str, enum.Enum):
    """Billing provider enum."""

    STRIPE = "stripe"
    OUTSETA = "outseta"


class StatCategory(str, enum.Enum):
    """Stat category enum."""

    BATTING = "batting"
    PITCHING = "pitching"
    FIELDING = "fielding"


class Team(Base):
    """College or junior-college team."""

    __tablename__ = "teams"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    logo = Column(String(500), nullable=True)
    location = Column(String(200), nullable=True)
    division = Column(String(100), nullable=True)
    conference = Column(String(100), nullable=True)
    region = Column(String(100), nullable=True)
    coach_name = Column(String(200), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("idx_teams_name", "name"),
        Index("idx_teams_division", "division"),
    )


class User(Base):
    """Account for every role. Player, coach and scout fields live on the same row."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    email = Column(String(255), unique=True, nullable=True)
    password_hash = Column(String(255), nullable=True)
    role = Column(String(20), nullable=False)  # UserRole
    phone_number = Column(String(30), nullable=True)
    profile_image = Column(String(500), nullable=True)
    registration_status = Column(
        String(20), default=RegistrationStatus.PENDING.value, nullable=False
    )
    is_active = Column(Boolean, default=True, nullable=False)

    # Player profile
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=True)
    title = Column(String(200), nullable=True)
    description = Column(Text, nullable=True)
    position = Column(String(50), nullable=True)
    jersey_number = Column(String(10), nullable=True)
    height = Column(String(20), nullable=True)
    weight = Column(String(20), nullable=True)
    bats_throws = Column(String(10), nullable=True)
    hometown = Column(String(200), nullable=True)
    high_school = Column(String(200), nullable=True)
    previous_school = Column(String(200), nullable=True)
    player_class = Column(String(50), nullable=True)
    transfer_status = Column(String(50), nullable=True)
    gpa = Column(Float, nullable=True)
    sat = Column(Integer, nullable=True)
    act = Column(Integer, nullable=True)
    instagram_url = Column(String(500), nullable=True)
    x_url = Column(String(500), nullable=True)
    region = Column(String(100), nullable=True)
    profile_completeness = Column(Integer, default=0, nullable=False)
    commitment_status = Column(
        String(20), default=CommitmentStatus.UNCOMMITTED.value, nullable=False
    )
    committed_to = Column(String(200), nullable=True)
    coach_recommendation = Column(JSONType, nullable=True)  # {url, filename, uploadedAt, fileSize}
    academic_info = Column(JSONType, nullable=True)
    photo_id_document = Column(JSONType, nullable=True)
    awards = Column(JSONType, nullable=True)
    strengths = Column(JSONType, nullable=True)
    csv_imported = Column(Boolean, default=False, nullable=False)
    last_csv_import = Column(DateTime(timezone=True), nullable=True)

    # Coach / scout profile
    job_title = Column(String(100), nullable=True)
    school = Column(String(200), nullable=True)
    school_type = Column(String(50), nullable=True)
    organization = Column(String(200), nullable=True)
    division = Column(String(100), nullable=True)
    conference = Column(String(100), nullable=True)
    state = Column(String(50), nullable=True)

    # Subscription mirror (authoritative rows live in subscriptions)
    payment_provider = Column(String(20), nullable=True)
    stripe_customer_id = Column(String(100), nullable=True)
    subscription_status = Column(
        String(20), default=SubscriptionStatus.NONE.value, nullable=False
    )
    subscription_plan = Column(String(50), nullable=True)
    subscription_end_date = Column(DateTime(timezone=True), nullable=True)
    outseta_person_uid = Column(String(100), nullable=True)
    outseta_account_uid = Column(String(100), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("idx_users_role_status", "role", "registration_status"),
        Index("idx_users_team_id", "team_id"),
        Index("idx_users_name", "first_name", "last_name"),
    )


class PlayerVideo(Base):
    """Highlight video attached to a player profile."""

    __tablename__ = "player_videos"

    id = Column(Integer, primary_key=True, autoincrement=True)
    player_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    url = Column(String(500), nullable=False)
    title = Column(String(200), nullable=True)
    file_size = Column(Integer, nullable=True)
    duration = Column(Float, nullable=True)
    uploaded_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (Index("idx_player_videos_player", "player_id"),)


class SeasonStatMixin:
    """Columns shared by every per-season stat table.

    One row per (player, season_year). ``season_start`` holds the normalized
    four-digit year so "2024" and "2024-25" compare equal. Exactly one row per
    player carries ``is_latest``; it is maintained by stats_service.
    """

    id = Column(Integer, primary_key=True, autoincrement=True)
    season_year = Column(String(20), nullable=False)
    season_start = Column(String(20), nullable=True)
    is_latest = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @declared_attr
    def player_id(cls):
        return Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)


class BattingStat(SeasonStatMixin, Base):
    """Batting line for one season."""

    __tablename__ = "batting_stats"

    games_played = Column(Integer, nullable=True)
    games_started = Column(Integer, nullable=True)
    at_bats = Column(Integer, nullable=True)
    runs = Column(Integer, nullable=True)
    hits = Column(Integer, nullable=True)
    doubles = Column(Integer, nullable=True)
    triples = Column(Integer, nullable=True)
    home_runs = Column(Integer, nullable=True)
    rbi = Column(Integer, nullable=True)
    total_bases = Column(Integer, nullable=True)
    walks = Column(Integer, nullable=True)
    hit_by_pitch = Column(Integer, nullable=True)
    strikeouts = Column(Integer, nullable=True)
    stolen_bases = Column(Integer, nullable=True)
    caught_stealing = Column(Integer, nullable=True)
    sacrifice_flies = Column(Integer, nullable=True)
    sacrifice_hits = Column(Integer, nullable=True)
    batting_average = Column(Float, nullable=True)
    on_base_percentage = Column(Float, nullable=True)
    slugging_percentage = Column(Float, nullable=True)
    on_base_plus_slugging = Column(Float, nullable=True)
    walk_percentage = Column(Float, nullable=True)
    strikeout_percentage = Column(Float, nullable=True)

    __table_args__ = (
        UniqueConstraint("player_id", "season_year", name="uq_batting_stats_player_season"),
        Index("idx_batting_stats_player_latest", "player_id", "is_latest"),
        Index("idx_batting_stats_season_start", "season_start"),
    )


class PitchingStat(SeasonStatMixin, Base):
    """Pitching line for one season."""

    __tablename__ = "pitching_stats"

    wins = Column(Integer, nullable=True)
    losses = Column(Integer, nullable=True)
    era = Column(Float, nullable=True)
    appearances = Column(Integer, nullable=True)
    games_started = Column(Integer, nullable=True)
    complete_games = Column(Integer, nullable=True)
    shutouts = Column(Integer, nullable=True)
    saves = Column(Integer, nullable=True)
    innings_pitched = Column(Float, nullable=True)
    hits_allowed = Column(Integer, nullable=True)
    runs_allowed = Column(Integer, nullable=True)
    earned_runs = Column(Integer, nullable=True)
    walks_allowed = Column(Integer, nullable=True)
    strikeouts_pitched = Column(Integer, nullable=True)
    doubles_allowed = Column(Integer, nullable=True)
    triples_allowed = Column(Integer, nullable=True)
    home_runs_allowed = Column(Integer, nullable=True)
    at_bats_against = Column(Integer, nullable=True)
    batting_average_against = Column(Float, nullable=True)
    walks_per_nine = Column(Float, nullable=True)
    strikeouts_per_nine = Column(Float, nullable=True)
    home_runs_per_nine = Column(Float, nullable=True)

    __table_args__ = (
        UniqueConstraint("player_id", "season_year", name="uq_pitching_stats_player_season"),
        Index("idx_pitching_stats_player_latest", "player_id", "is_latest"),
        Index("idx_pitching_stats_season_start", "season_start"),
    )


class FieldingStat(SeasonStatMixin, Base):
    """Fielding line for one season."""

    __tablename__ = "fielding_stats"

    games = Column(Integer, nullable=True)
    games_started = Column(Integer, nullable=True)
    total_chances = Column(Integer, nullable=True)
    putouts = Column(Integer, nullable=True)
    assists = Column(Integer, nullable=True)
    errors = Column(Integer, nullable=True)
    fielding_percentage = Column(Float, nullable=True)
    double_plays = Column(Integer, nullable=True)
    stolen_bases_against = Column(Integer, nullable=True)
    runners_caught_stealing = Column(Integer, nullable=True)

    __table_args__ = (
        UniqueConstraint("player_id", "season_year", name="uq_fielding_stats_player_season"),
        Index("idx_fielding_stats_player_latest", "player_id", "is_latest"),
        Index("idx_fielding_stats_season_start", "season_start"),
    )


STAT_MODELS = {
    StatCategory.BATTING.value: BattingStat,
    StatCategory.PITCHING.value: PitchingStat,
    StatCategory.FIELDING.value: FieldingStat,
}


class Follow(Base):
    """Directed follow edge (User -> User)."""

    __tablename__ = "follows"

    id = Column(Integer, primary_key=True, autoincrement=True)
    follower_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    following_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint("follower_id", "following_id", name="uq_follows_pair"),
        CheckConstraint("follower_id != following_id", name="ck_follows_not_self"),
        Index("idx_follows_follower", "follower_id"),
        Index("idx_follows_following", "following_id"),
    )


class TeamFollow(Base):
    """Directed follow edge (User -> Team)."""

    __tablename__ = "team_follows"

    id = Column(Integer, primary_key=True, autoincrement=True)
    follower_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    team_id = Column(Integer, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint("follower_id", "team_id", name="uq_team_follows_pair"),
        Index("idx_team_follows_team", "team_id"),
    )


class PendingRegistration(Base):
    """Sign-up held until the billing provider confirms payment."""

    __tablename__ = "pending_registrations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=True)
    email = Column(String(255), nullable=False)
    password_hash = Column(String(255), nullable=False)  # already bcrypt-hashed
    role = Column(String(20), nullable=False)
    plan = Column(String(50), nullable=True)
    state = Column(String(50), nullable=True)
    profile_image = Column(String(500), nullable=True)

    # Role specific
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=True)  # scout
    job_title = Column(String(100), nullable=True)  # scout
    school = Column(String(200), nullable=True)  # coach
    division = Column(String(100), nullable=True)  # coach
    conference = Column(String(100), nullable=True)  # coach

    # Provider correlation ids
    payment_provider = Column(String(20), nullable=True)
    stripe_session_id = Column(String(255), nullable=True)
    outseta_account_uid = Column(String(100), nullable=True)
    outseta_person_uid = Column(String(100), nullable=True)
    outseta_subscription_uid = Column(String(100), nullable=True)

    status = Column(
        String(20), default=PendingRegistrationStatus.PENDING.value, nullable=False
    )
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("idx_pending_registrations_email", "email"),
        Index("idx_pending_registrations_outseta_account", "outseta_account_uid"),
    )


class Subscription(Base):
    """Billing subscription for a user."""

    __tablename__ = "subscriptions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    payment_provider = Column(String(20), nullable=False)
    stripe_customer_id = Column(String(100), nullable=True)
    stripe_subscription_id = Column(String(100), nullable=True, unique=True)
    stripe_price_id = Column(String(100), nullable=True)
    outseta_subscription_uid = Column(String(100), nullable=True)
    outseta_account_uid = Column(String(100), nullable=True)
    plan = Column(String(50), nullable=True)
    status = Column(String(20), default=SubscriptionStatus.NONE.value, nullable=False)
    current_period_start = Column(DateTime(timezone=True), nullable=True)
    current_period_end = Column(DateTime(timezone=True), nullable=True)
    trial_start = Column(DateTime(timezone=True), nullable=True)
    trial_end = Column(DateTime(timezone=True), nullable=True)
    cancel_at_period_end = Column(Boolean, default=False, nullable=False)
    canceled_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("idx_subscriptions_user", "user_id"),
        Index("idx_subscriptions_outseta", "outseta_subscription_uid"),
    )


class SavedFilter(Base):
    """Named player-search filter saved by a coach or scout."""

    __tablename__ = "saved_filters"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(200), nullable=False)
    query_params = Column(JSONType, nullable=True)
    hitting_stats = Column(JSONType, nullable=True)
    pitching_stats = Column(JSONType, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (Index("idx_saved_filters_user", "user_id"),)
