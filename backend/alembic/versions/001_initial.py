"""Initial migration - create all tables

Revision ID: 001_initial
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create users table
    op.create_table(
        'users',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('username', sa.String(30), nullable=True),
        sa.Column('full_name', sa.String(100), nullable=True),
        sa.Column('avatar_url', sa.String(500), nullable=True),
        sa.Column('is_public', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('is_location_public', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('last_location_update', sa.DateTime(), nullable=True),
        sa.Column('is_currently_running', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('current_run_id', sa.String(36), nullable=True),
        sa.Column('total_distance_m', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_runs', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('total_time', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('xp', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('level', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_users_username', 'users', ['username'], unique=True)
    op.create_index('ix_users_latitude', 'users', ['latitude'])
    op.create_index('ix_users_longitude', 'users', ['longitude'])

    # Create runs table
    op.create_table(
        'runs',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('route_id', sa.String(36), nullable=True),
        sa.Column('state', sa.String(20), nullable=False, server_default='ACTIVE'),
        sa.Column('is_paused', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('started_at', sa.DateTime(), nullable=False),
        sa.Column('ended_at', sa.DateTime(), nullable=True),
        sa.Column('distance_m', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('duration', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('avg_pace', sa.Float(), nullable=False, server_default='0'),
        sa.Column('max_pace', sa.Float(), nullable=False, server_default='0'),
        sa.Column('min_pace', sa.Float(), nullable=False, server_default='0'),
        sa.Column('calories', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('elevation', sa.Float(), nullable=False, server_default='0'),
        sa.Column('elevation_gain', sa.Float(), nullable=False, server_default='0'),
        sa.Column('elevation_loss', sa.Float(), nullable=False, server_default='0'),
        sa.Column('weather', sa.String(100), nullable=True),
        sa.Column('map_snapshot_url', sa.String(500), nullable=True),
        sa.Column('xp_earned', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_runs_user_id', 'runs', ['user_id'])
    op.create_index('ix_runs_state', 'runs', ['state'])
    op.create_index('ix_runs_created_at', 'runs', ['created_at'])

    # Create run_coordinates table
    op.create_table(
        'run_coordinates',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('run_id', sa.String(36), sa.ForeignKey('runs.id'), nullable=False),
        sa.Column('latitude', sa.Float(), nullable=False),
        sa.Column('longitude', sa.Float(), nullable=False),
        sa.Column('altitude', sa.Float(), nullable=True),
        sa.Column('speed', sa.Float(), nullable=True),
        sa.Column('accuracy', sa.Float(), nullable=True),
        sa.Column('heading', sa.Float(), nullable=True),
        sa.Column('heart_rate', sa.Integer(), nullable=True),
        sa.Column('timestamp', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_run_coordinates_run_id', 'run_coordinates', ['run_id'])
    op.create_index('ix_run_coordinates_timestamp', 'run_coordinates', ['timestamp'])

    # Create run_splits table
    op.create_table(
        'run_splits',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('run_id', sa.String(36), sa.ForeignKey('runs.id'), nullable=False),
        sa.Column('km', sa.Integer(), nullable=False),
        sa.Column('time', sa.Float(), nullable=False),
        sa.Column('pace', sa.Float(), nullable=False),
        sa.Column('elevation', sa.Float(), nullable=False, server_default='0'),
        sa.Column('avg_heart_rate', sa.Integer(), nullable=True),
    )
    op.create_index('ix_run_splits_run_id', 'run_splits', ['run_id'])

    # Create run_photos table
    op.create_table(
        'run_photos',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('run_id', sa.String(36), sa.ForeignKey('runs.id'), nullable=False),
        sa.Column('image_url', sa.String(500), nullable=False),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('caption', sa.String(500), nullable=True),
        sa.Column('taken_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_run_photos_run_id', 'run_photos', ['run_id'])

    # Create achievements table
    op.create_table(
        'achievements',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(100), nullable=False, unique=True),
        sa.Column('description', sa.String(500), nullable=False, server_default=''),
        sa.Column('icon', sa.String(20), nullable=True),
        sa.Column('type', sa.String(30), nullable=False),
        sa.Column('threshold', sa.Float(), nullable=False),
        sa.Column('xp_reward', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_achievements_type', 'achievements', ['type'])

    # Create user_achievements table
    op.create_table(
        'user_achievements',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('achievement_id', sa.String(36), sa.ForeignKey('achievements.id'), nullable=False),
        sa.Column('progress', sa.Float(), nullable=False, server_default='0'),
        sa.Column('unlocked_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.UniqueConstraint('user_id', 'achievement_id', name='uq_user_achievement'),
    )
    op.create_index('ix_user_achievements_user_id', 'user_achievements', ['user_id'])

    # Create notifications table
    op.create_table(
        'notifications',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.String(36), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('from_user_id', sa.String(36), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('type', sa.String(50), nullable=False),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('body', sa.String(500), nullable=False),
        sa.Column('data', sa.JSON(), nullable=True),
        sa.Column('read', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'])
    op.create_index('ix_notifications_created_at', 'notifications', ['created_at'])


def downgrade() -> None:
    op.drop_table('notifications')
    op.drop_table('user_achievements')
    op.drop_table('achievements')
    op.drop_table('run_photos')
    op.drop_table('run_splits')
    op.drop_table('run_coordinates')
    op.drop_table('runs')
    op.drop_table('users')
