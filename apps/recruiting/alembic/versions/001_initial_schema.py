"""001_initial_schema

Revision ID: 001
Revises:
Create Date: 2026-02-09 10:30:00.000000

Initial recruiting schema:
- teams, users (player / coach / scout profiles + subscription mirror), player_videos
- per-season stats: batting_stats, pitching_stats, fielding_stats
- follow graph: follows, team_follows
- billing: pending_registrations, subscriptions
- saved_filters
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

STAT_TABLES = ("batting_stats", "pitching_stats", "fielding_stats")


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    ]


def _ints(*names):
    return [sa.Column(name, sa.Integer(), nullable=True) for name in names]


def _floats(*names):
    return [sa.Column(name, sa.Float(), nullable=True) for name in names]


def _create_stat_table(name, columns):
    op.create_table(
        name,
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('player_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('season_year', sa.String(20), nullable=False),
        sa.Column('season_start', sa.String(20), nullable=True),
        sa.Column('is_latest', sa.Boolean(), nullable=False, server_default=sa.false()),
        *columns,
        *_timestamps(),
        sa.UniqueConstraint('player_id', 'season_year', name=f'uq_{name}_player_season'),
    )
    op.create_index(f'idx_{name}_player_latest', name, ['player_id', 'is_latest'])
    op.create_index(f'idx_{name}_season_start', name, ['season_start'])


def upgrade() -> None:
    """Create all tables."""
    json_type = postgresql.JSONB()

    op.create_table(
        'teams',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('logo', sa.String(500), nullable=True),
        sa.Column('location', sa.String(200), nullable=True),
        sa.Column('division', sa.String(100), nullable=True),
        sa.Column('conference', sa.String(100), nullable=True),
        sa.Column('region', sa.String(100), nullable=True),
        sa.Column('coach_name', sa.String(200), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index('idx_teams_name', 'teams', ['name'])
    op.create_index('idx_teams_division', 'teams', ['division'])

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('first_name', sa.String(100), nullable=True),
        sa.Column('last_name', sa.String(100), nullable=True),
        sa.Column('email', sa.String(255), nullable=True, unique=True),
        sa.Column('password_hash', sa.String(255), nullable=True),
        sa.Column('role', sa.String(20), nullable=False),
        sa.Column('phone_number', sa.String(30), nullable=True),
        sa.Column('profile_image', sa.String(500), nullable=True),
        sa.Column('registration_status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        # Player profile
        sa.Column('team_id', sa.Integer(), sa.ForeignKey('teams.id'), nullable=True),
        sa.Column('position', sa.String(50), nullable=True),
        sa.Column('jersey_number', sa.String(10), nullable=True),
        sa.Column('height', sa.String(20), nullable=True),
        sa.Column('weight', sa.String(20), nullable=True),
        sa.Column('bats_throws', sa.String(10), nullable=True),
        sa.Column('hometown', sa.String(200), nullable=True),
        sa.Column('high_school', sa.String(200), nullable=True),
        sa.Column('previous_school', sa.String(200), nullable=True),
        sa.Column('player_class', sa.String(50), nullable=True),
        sa.Column('transfer_status', sa.String(50), nullable=True),
        sa.Column('gpa', sa.Float(), nullable=True),
        sa.Column('region', sa.String(100), nullable=True),
        sa.Column('profile_completeness', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('commitment_status', sa.String(20), nullable=False, server_default='uncommitted'),
        sa.Column('committed_to', sa.String(200), nullable=True),
        sa.Column('coach_recommendation', json_type, nullable=True),
        sa.Column('academic_info', json_type, nullable=True),
        sa.Column('photo_id_document', json_type, nullable=True),
        sa.Column('awards', json_type, nullable=True),
        sa.Column('strengths', json_type, nullable=True),
        sa.Column('csv_imported', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('last_csv_import', sa.DateTime(timezone=True), nullable=True),
        # Coach / scout profile
        sa.Column('job_title', sa.String(100), nullable=True),
        sa.Column('school', sa.String(200), nullable=True),
        sa.Column('school_type', sa.String(50), nullable=True),
        sa.Column('division', sa.String(100), nullable=True),
        sa.Column('conference', sa.String(100), nullable=True),
        sa.Column('state', sa.String(50), nullable=True),
        # Subscription mirror
        sa.Column('payment_provider', sa.String(20), nullable=True),
        sa.Column('stripe_customer_id', sa.String(100), nullable=True),
        sa.Column('subscription_status', sa.String(20), nullable=False, server_default='none'),
        sa.Column('subscription_plan', sa.String(50), nullable=True),
        sa.Column('subscription_end_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('outseta_person_uid', sa.String(100), nullable=True),
        sa.Column('outseta_account_uid', sa.String(100), nullable=True),
        *_timestamps(),
    )
    op.create_index('idx_users_role_status', 'users', ['role', 'registration_status'])
    op.create_index('idx_users_team_id', 'users', ['team_id'])
    op.create_index('idx_users_name', 'users', ['first_name', 'last_name'])

    op.create_table(
        'player_videos',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('player_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('url', sa.String(500), nullable=False),
        sa.Column('title', sa.String(200), nullable=True),
        sa.Column('file_size', sa.Integer(), nullable=True),
        sa.Column('duration', sa.Float(), nullable=True),
        sa.Column('uploaded_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('idx_player_videos_player', 'player_videos', ['player_id'])

    _create_stat_table(
        'batting_stats',
        _ints(
            'games_played', 'games_started', 'at_bats', 'runs', 'hits', 'doubles', 'triples',
            'home_runs', 'rbi', 'total_bases', 'walks', 'hit_by_pitch', 'strikeouts',
            'stolen_bases', 'caught_stealing', 'sacrifice_flies', 'sacrifice_hits',
        )
        + _floats(
            'batting_average', 'on_base_percentage', 'slugging_percentage',
            'on_base_plus_slugging', 'walk_percentage', 'strikeout_percentage',
        ),
    )
    _create_stat_table(
        'pitching_stats',
        _ints('wins', 'losses')
        + _floats('era')
        + _ints('appearances', 'games_started', 'complete_games', 'shutouts', 'saves')
        + _floats('innings_pitched')
        + _ints(
            'hits_allowed', 'runs_allowed', 'earned_runs', 'walks_allowed', 'strikeouts_pitched',
            'doubles_allowed', 'triples_allowed', 'home_runs_allowed', 'at_bats_against',
        )
        + _floats(
            'batting_average_against', 'walks_per_nine', 'strikeouts_per_nine', 'home_runs_per_nine',
        ),
    )
    _create_stat_table(
        'fielding_stats',
        _ints('games', 'games_started', 'total_chances', 'putouts', 'assists', 'errors')
        + _floats('fielding_percentage')
        + _ints('double_plays', 'stolen_bases_against', 'runners_caught_stealing'),
    )

    op.create_table(
        'follows',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('follower_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('following_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('follower_id', 'following_id', name='uq_follows_pair'),
        sa.CheckConstraint('follower_id != following_id', name='ck_follows_not_self'),
    )
    op.create_index('idx_follows_follower', 'follows', ['follower_id'])
    op.create_index('idx_follows_following', 'follows', ['following_id'])

    op.create_table(
        'team_follows',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('follower_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('team_id', sa.Integer(), sa.ForeignKey('teams.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('follower_id', 'team_id', name='uq_team_follows_pair'),
    )
    op.create_index('idx_team_follows_team', 'team_follows', ['team_id'])

    op.create_table(
        'pending_registrations',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('first_name', sa.String(100), nullable=False),
        sa.Column('last_name', sa.String(100), nullable=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('role', sa.String(20), nullable=False),
        sa.Column('plan', sa.String(50), nullable=True),
        sa.Column('state', sa.String(50), nullable=True),
        sa.Column('profile_image', sa.String(500), nullable=True),
        sa.Column('team_id', sa.Integer(), sa.ForeignKey('teams.id'), nullable=True),
        sa.Column('job_title', sa.String(100), nullable=True),
        sa.Column('school', sa.String(200), nullable=True),
        sa.Column('division', sa.String(100), nullable=True),
        sa.Column('conference', sa.String(100), nullable=True),
        sa.Column('payment_provider', sa.String(20), nullable=True),
        sa.Column('stripe_session_id', sa.String(255), nullable=True),
        sa.Column('outseta_account_uid', sa.String(100), nullable=True),
        sa.Column('outseta_person_uid', sa.String(100), nullable=True),
        sa.Column('outseta_subscription_uid', sa.String(100), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('idx_pending_registrations_email', 'pending_registrations', ['email'])
    op.create_index(
        'idx_pending_registrations_outseta_account', 'pending_registrations', ['outseta_account_uid']
    )

    op.create_table(
        'subscriptions',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('payment_provider', sa.String(20), nullable=False),
        sa.Column('stripe_customer_id', sa.String(100), nullable=True),
        sa.Column('stripe_subscription_id', sa.String(100), nullable=True, unique=True),
        sa.Column('stripe_price_id', sa.String(100), nullable=True),
        sa.Column('outseta_subscription_uid', sa.String(100), nullable=True),
        sa.Column('outseta_account_uid', sa.String(100), nullable=True),
        sa.Column('plan', sa.String(50), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='none'),
        sa.Column('current_period_start', sa.DateTime(timezone=True), nullable=True),
        sa.Column('current_period_end', sa.DateTime(timezone=True), nullable=True),
        sa.Column('trial_start', sa.DateTime(timezone=True), nullable=True),
        sa.Column('trial_end', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancel_at_period_end', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('canceled_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index('idx_subscriptions_user', 'subscriptions', ['user_id'])
    op.create_index('idx_subscriptions_outseta', 'subscriptions', ['outseta_subscription_uid'])

    op.create_table(
        'saved_filters',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(200), nullable=False),
        sa.Column('query_params', json_type, nullable=True),
        sa.Column('hitting_stats', json_type, nullable=True),
        sa.Column('pitching_stats', json_type, nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('idx_saved_filters_user', 'saved_filters', ['user_id'])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table('saved_filters')
    op.drop_table('subscriptions')
    op.drop_table('pending_registrations')
    op.drop_table('team_follows')
    op.drop_table('follows')
    for name in reversed(STAT_TABLES):
        op.drop_table(name)
    op.drop_table('player_videos')
    op.drop_table('users')
    op.drop_table('teams')
