"""create_journey_tables

Revision ID: 3f2a9c1d7e40
Revises:
Create Date: 2025-03-03 09:00:00

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3f2a9c1d7e40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """
    Create workers, journeys and journey_samples.

    - journeys.version backs SQLAlchemy's optimistic version counter
    - uq_journeys_open_worker allows at most one non-finalized journey
      per worker (partial unique index)
    - journey_samples.seq keeps arrival order inside a journey
    """
    print("[MIGRATION] Creating workers table...")
    op.create_table(
        'workers',
        sa.Column('worker_id', sa.String(length=100), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.Column('transport', sa.String(length=20), nullable=False),
        sa.Column('region', sa.String(length=50), nullable=False),
        sa.Column('push_token', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint("role IN ('ingeniero', 'inspector', 'admin')", name='check_worker_role'),
        sa.CheckConstraint("transport IN ('moto', 'carro')", name='check_worker_transport'),
        sa.PrimaryKeyConstraint('worker_id'),
        sa.UniqueConstraint('email'),
    )
    op.create_index('idx_workers_role', 'workers', ['role'])
    op.create_index(op.f('ix_workers_region'), 'workers', ['region'])

    print("[MIGRATION] Creating journeys table...")
    op.create_table(
        'journeys',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('worker_id', sa.String(length=100), nullable=False),
        sa.Column('state', sa.String(length=20), server_default='active', nullable=False),
        sa.Column('started_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('ended_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('distance_km', sa.Float(), server_default='0.0', nullable=False),
        sa.Column('average_speed', sa.Float(), server_default='0.0', nullable=False),
        sa.Column('max_speed', sa.Float(), server_default='0.0', nullable=False),
        sa.Column('sample_count', sa.Integer(), server_default='0', nullable=False),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("state IN ('active', 'in_progress', 'finalized')", name='check_journey_state'),
        sa.CheckConstraint("(state = 'finalized') = (ended_at IS NOT NULL)", name='check_ended_at_iff_finalized'),
        sa.CheckConstraint("ended_at IS NULL OR ended_at >= started_at", name='check_journey_time_order'),
        sa.CheckConstraint('distance_km >= 0', name='check_distance_non_negative'),
        sa.CheckConstraint('max_speed >= 0', name='check_max_speed_non_negative'),
        sa.ForeignKeyConstraint(['worker_id'], ['workers.worker_id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_journeys_worker_id'), 'journeys', ['worker_id'])
    op.create_index('idx_journeys_worker_state', 'journeys', ['worker_id', 'state'])
    op.create_index('idx_journeys_worker_started_at', 'journeys', ['worker_id', 'started_at'])
    op.create_index('idx_journeys_started_at', 'journeys', ['started_at'])
    op.create_index(
        'uq_journeys_open_worker',
        'journeys',
        ['worker_id'],
        unique=True,
        postgresql_where=sa.text("state <> 'finalized'"),
        sqlite_where=sa.text("state <> 'finalized'"),
    )

    print("[MIGRATION] Creating journey_samples table...")
    op.create_table(
        'journey_samples',
        sa.Column('id', sa.BigInteger().with_variant(sa.Integer(), 'sqlite'), autoincrement=True, nullable=False),
        sa.Column('journey_id', sa.Integer(), nullable=False),
        sa.Column('seq', sa.Integer(), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.Column('speed', sa.Float(), nullable=False),
        sa.Column('lat', sa.Float(), nullable=False),
        sa.Column('lng', sa.Float(), nullable=False),
        sa.CheckConstraint('speed >= 0', name='check_sample_speed'),
        sa.CheckConstraint('lat >= -90 AND lat <= 90', name='check_sample_lat_range'),
        sa.CheckConstraint('lng >= -180 AND lng <= 180', name='check_sample_lng_range'),
        sa.ForeignKeyConstraint(['journey_id'], ['journeys.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('journey_id', 'seq', name='uq_journey_sample_seq'),
    )
    op.create_index('idx_journey_samples_journey_timestamp', 'journey_samples', ['journey_id', 'timestamp'])

    print("[MIGRATION] ✅ Journey tables created")


def downgrade() -> None:
    op.drop_index('idx_journey_samples_journey_timestamp', table_name='journey_samples')
    op.drop_table('journey_samples')

    op.drop_index('uq_journeys_open_worker', table_name='journeys')
    op.drop_index('idx_journeys_started_at', table_name='journeys')
    op.drop_index('idx_journeys_worker_started_at', table_name='journeys')
    op.drop_index('idx_journeys_worker_state', table_name='journeys')
    op.drop_index(op.f('ix_journeys_worker_id'), table_name='journeys')
    op.drop_table('journeys')

    op.drop_index(op.f('ix_workers_region'), table_name='workers')
    op.drop_index('idx_workers_role', table_name='workers')
    op.drop_table('workers')
