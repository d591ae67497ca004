"""create_tracking_links

Revision ID: 3f2a9c1d7e44
Revises:
Create Date: 2025-07-16 09:12:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from driver_tracker.db.models import GUID, UTCDateTime


# revision identifiers, used by Alembic.
revision: str = '3f2a9c1d7e44'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the tracking_links table and its indexes."""
    op.create_table('tracking_links',
        sa.Column('id', GUID(), nullable=False),
        sa.Column('driver_name', sa.String(length=255), nullable=False),
        sa.Column('created_at', UTCDateTime(), nullable=False),
        sa.Column('expires_at', UTCDateTime(), nullable=False),
        sa.Column('created_by', sa.String(length=100), nullable=False),
        sa.Column('active', sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )

    # At most one active link per driver
    op.create_index(
        'uq_tracking_links_active_driver',
        'tracking_links',
        ['driver_name'],
        unique=True,
        sqlite_where=sa.text('active = 1'),
        postgresql_where=sa.text('active'),
    )
    op.create_index(
        'ix_tracking_links_active_expires', 'tracking_links', ['active', 'expires_at'], unique=False
    )
    op.create_index(
        'ix_tracking_links_driver_name', 'tracking_links', ['driver_name'], unique=False
    )


def downgrade() -> None:
    """Drop the tracking_links table."""
    op.drop_index('ix_tracking_links_driver_name', table_name='tracking_links')
    op.drop_index('ix_tracking_links_active_expires', table_name='tracking_links')
    op.drop_index('uq_tracking_links_active_driver', table_name='tracking_links')
    op.drop_table('tracking_links')
