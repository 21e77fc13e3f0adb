"""Security events for unlock and admin login throttling

Revision ID: 20261018_security_events
Revises: 20261017_initial
Create Date: 2026-10-18

This migration adds:
1. security_events (failed/successful unlock and admin login attempts)
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261018_security_events'
down_revision = '20261017_initial'
branch_labels = None
depends_on = None


def upgrade():
    op.create_table('security_events',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('event_type', sa.String(length=32), nullable=False),
        sa.Column('identifier', sa.String(length=128), nullable=False),
        sa.Column('reason', sa.String(length=255), nullable=True),
        sa.Column('ip_address', sa.String(length=64), nullable=True),
        sa.Column('user_agent', sa.String(length=255), nullable=True),
        sa.Column('occurred_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('security_events', schema=None) as batch_op:
        batch_op.create_index('ix_security_events_lookup', ['event_type', 'identifier', 'occurred_at'], unique=False)


def downgrade():
    with op.batch_alter_table('security_events', schema=None) as batch_op:
        batch_op.drop_index('ix_security_events_lookup')

    op.drop_table('security_events')
