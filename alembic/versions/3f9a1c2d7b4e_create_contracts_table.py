"""create_contracts_table

Revision ID: 3f9a1c2d7b4e
Revises:
Create Date: 2026-10-19 09:12:31.418207

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '3f9a1c2d7b4e'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'contracts',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('template_id', sa.String(length=100), nullable=False),
        sa.Column('influencer_id', sa.String(length=255), nullable=False),
        sa.Column('brand_id', sa.String(length=255), nullable=False),
        sa.Column(
            'status',
            sa.Enum('DRAFT', 'PENDING_SIGNATURE', 'SIGNED', 'REJECTED',
                    name='contract_status', native_enum=False, length=32),
            nullable=False,
        ),
        sa.Column('contract_data', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('contract_url', sa.Text(), nullable=False),
        sa.Column('signed_by', sa.String(length=255), nullable=True),
        sa.Column('signed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('signature_url', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_contracts_brand_id'), 'contracts', ['brand_id'], unique=False)
    op.create_index(op.f('ix_contracts_influencer_id'), 'contracts', ['influencer_id'], unique=False)


def downgrade() -> None:
    op.drop_index(op.f('ix_contracts_influencer_id'), table_name='contracts')
    op.drop_index(op.f('ix_contracts_brand_id'), table_name='contracts')
    op.drop_table('contracts')
