"""Create weather sync tables

Revision ID: 3b7c1e9a4d20
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3b7c1e9a4d20'
down_revision = None
branch_labels = None
depends_on = None


def _daily_weather_columns():
    return [
        sa.Column('temp_c_min', sa.Float(), nullable=True),
        sa.Column('temp_c_max', sa.Float(), nullable=True),
        sa.Column('temp_c_mean', sa.Float(), nullable=True),
        sa.Column('pressure_hpa_min', sa.Float(), nullable=True),
        sa.Column('pressure_hpa_max', sa.Float(), nullable=True),
        sa.Column('pressure_hpa_mean', sa.Float(), nullable=True),
        sa.Column('humidity_pct_min', sa.Float(), nullable=True),
        sa.Column('humidity_pct_max', sa.Float(), nullable=True),
        sa.Column('humidity_pct_mean', sa.Float(), nullable=True),
        sa.Column('wind_speed_mps_mean', sa.Float(), nullable=True),
        sa.Column('wind_speed_mps_max', sa.Float(), nullable=True),
        sa.Column('uv_index_max', sa.Float(), nullable=True),
        sa.Column('weather_code', sa.Integer(), nullable=True),
        sa.Column('is_thunderstorm_day', sa.Boolean(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade():
    op.create_table(
        'tracked_users',
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('weather_enabled', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('user_id'),
    )
    op.create_index('ix_tracked_users_weather_enabled', 'tracked_users', ['weather_enabled'], unique=False)

    op.create_table(
        'user_location_daily',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('latitude', sa.Float(), nullable=True),
        sa.Column('longitude', sa.Float(), nullable=True),
        sa.Column('timezone', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_user_location_daily_user_date', 'user_location_daily', ['user_id', 'date'], unique=False)

    op.create_table(
        'cities',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('lat', sa.Float(), nullable=False),
        sa.Column('lon', sa.Float(), nullable=False),
        sa.Column('timezone', sa.String(length=64), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_cities_lat_lon', 'cities', ['lat', 'lon'], unique=False)

    op.create_table(
        'city_weather_daily',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('city_id', sa.Integer(), nullable=False),
        sa.Column('day', sa.Date(), nullable=False),
        *_daily_weather_columns(),
        sa.ForeignKeyConstraint(['city_id'], ['cities.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('city_id', 'day', name='uq_city_weather_city_day'),
    )

    op.create_table(
        'user_weather_daily',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('city_id', sa.Integer(), nullable=True),
        sa.Column('timezone', sa.String(length=64), nullable=True),
        *_daily_weather_columns(),
        sa.ForeignKeyConstraint(['city_id'], ['cities.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'date', name='uq_user_weather_user_date'),
    )

    op.create_table(
        'weather_sync_jobs',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('user_id', sa.String(length=64), nullable=False),
        sa.Column('local_date', sa.Date(), nullable=False),
        sa.Column('job_type', sa.String(length=32), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('timezone', sa.String(length=64), nullable=True),
        sa.Column('attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('locked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_error', sa.Text(), nullable=True),
        sa.Column('created_by', sa.String(length=32), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'local_date', name='uq_weather_sync_jobs_user_date'),
    )
    op.create_index('ix_weather_sync_jobs_status_created', 'weather_sync_jobs', ['status', 'created_at'], unique=False)


def downgrade():
    op.drop_index('ix_weather_sync_jobs_status_created', table_name='weather_sync_jobs')
    op.drop_table('weather_sync_jobs')
    op.drop_table('user_weather_daily')
    op.drop_table('city_weather_daily')
    op.drop_index('ix_cities_lat_lon', table_name='cities')
    op.drop_table('cities')
    op.drop_index('ix_user_location_daily_user_date', table_name='user_location_daily')
    op.drop_table('user_location_daily')
    op.drop_index('ix_tracked_users_weather_enabled', table_name='tracked_users')
    op.drop_table('tracked_users')
