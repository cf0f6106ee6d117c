"""Create API token, resource assignment and resource note tables

Revision ID: 8a4e61d05c9f
Revises: 3f1c9a2b7d40
Create Date: 2026-10-19 09:20:07.551362

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '8a4e61d05c9f'
down_revision: Union[str, None] = '3f1c9a2b7d40'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'hetzner_api_tokens',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('owner_id', sa.String(length=255), nullable=False),
        sa.Column('token_value', postgresql.BYTEA(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_hetzner_api_tokens_owner', 'hetzner_api_tokens', ['owner_id'], unique=True)

    op.create_table(
        'hetzner_resource_assignments',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('owner_id', sa.String(length=255), nullable=False),
        sa.Column('resource_type', sa.String(length=50), nullable=False),
        sa.Column('resource_id', sa.String(length=100), nullable=False),
        sa.Column('resource_name', sa.String(length=255), nullable=True),
        sa.Column('tenant_project_id', sa.String(length=255), nullable=True),
        sa.Column('tenant_customer_id', sa.String(length=255), nullable=True),
        sa.Column(
            'tags',
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'ix_resource_assignment_lookup',
        'hetzner_resource_assignments',
        ['owner_id', 'resource_type', 'resource_id'],
        unique=True,
    )
    op.create_index(
        'ix_resource_assignment_project',
        'hetzner_resource_assignments',
        ['owner_id', 'tenant_project_id'],
        unique=False,
    )

    op.create_table(
        'hetzner_resource_notes',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('owner_id', sa.String(length=255), nullable=False),
        sa.Column('resource_type', sa.String(length=50), nullable=False),
        sa.Column('resource_id', sa.String(length=100), nullable=False),
        sa.Column('note', sa.Text(), nullable=False),
        sa.Column('created_by', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'ix_resource_note_lookup',
        'hetzner_resource_notes',
        ['owner_id', 'resource_type', 'resource_id'],
        unique=False,
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_resource_note_lookup', table_name='hetzner_resource_notes')
    op.drop_table('hetzner_resource_notes')
    op.drop_index('ix_resource_assignment_project', table_name='hetzner_resource_assignments')
    op.drop_index('ix_resource_assignment_lookup', table_name='hetzner_resource_assignments')
    op.drop_table('hetzner_resource_assignments')
    op.drop_index('ix_hetzner_api_tokens_owner', table_name='hetzner_api_tokens')
    op.drop_table('hetzner_api_tokens')
