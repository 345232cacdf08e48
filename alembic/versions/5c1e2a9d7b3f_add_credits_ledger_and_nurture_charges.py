"""add_credits_ledger_and_nurture_charges

Revision ID: 5c1e2a9d7b3f
Revises:
Create Date: 2026-10-19 10:12:31.402118

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '5c1e2a9d7b3f'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    # Per-account JSON documents (credits ledger, applied top-up sessions)
    op.create_table('portal_service_setups',
        sa.Column('id', sa.BigInteger().with_variant(sa.Integer(), 'sqlite'), autoincrement=True, nullable=False),
        sa.Column('owner_id', sa.String(length=255), nullable=False),
        sa.Column('service_slug', sa.String(length=100), nullable=False),
        sa.Column('status', sa.String(length=50), server_default='COMPLETE', nullable=False),
        sa.Column('data_json', sa.JSON(), server_default='{}', nullable=False),
        sa.Column('version', sa.Integer(), server_default='0', nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('owner_id', 'service_slug', name='uq_service_setup_owner_slug')
    )
    op.create_index(op.f('ix_portal_service_setups_id'), 'portal_service_setups', ['id'], unique=False)
    op.create_index(op.f('ix_portal_service_setups_owner_id'), 'portal_service_setups', ['owner_id'], unique=False)
    op.create_index('idx_service_setup_slug', 'portal_service_setups', ['service_slug'], unique=False)

    # One monthly charge claim per (campaign, period)
    op.create_table('nurture_campaign_monthly_charges',
        sa.Column('id', sa.BigInteger().with_variant(sa.Integer(), 'sqlite'), autoincrement=True, nullable=False),
        sa.Column('owner_id', sa.String(length=255), nullable=False),
        sa.Column('campaign_id', sa.String(length=255), nullable=False),
        sa.Column('period_key', sa.String(length=7), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('credits', sa.Integer(), nullable=False),
        sa.Column('charged_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_error', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('campaign_id', 'period_key', name='uq_nurture_charge_campaign_period')
    )
    op.create_index(op.f('ix_nurture_campaign_monthly_charges_id'), 'nurture_campaign_monthly_charges', ['id'], unique=False)
    op.create_index(op.f('ix_nurture_campaign_monthly_charges_owner_id'), 'nurture_campaign_monthly_charges', ['owner_id'], unique=False)
    op.create_index('idx_nurture_charge_period_status', 'nurture_campaign_monthly_charges', ['period_key', 'status'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('idx_nurture_charge_period_status', table_name='nurture_campaign_monthly_charges')
    op.drop_index(op.f('ix_nurture_campaign_monthly_charges_owner_id'), table_name='nurture_campaign_monthly_charges')
    op.drop_index(op.f('ix_nurture_campaign_monthly_charges_id'), table_name='nurture_campaign_monthly_charges')
    op.drop_table('nurture_campaign_monthly_charges')
    op.drop_index('idx_service_setup_slug', table_name='portal_service_setups')
    op.drop_index(op.f('ix_portal_service_setups_owner_id'), table_name='portal_service_setups')
    op.drop_index(op.f('ix_portal_service_setups_id'), table_name='portal_service_setups')
    op.drop_table('portal_service_setups')
