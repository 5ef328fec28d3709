"""create_index_collection_table

Revision ID: 3f1c2a9d7b45
Revises:
Create Date: 2026-10-19 10:12:41.208113

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = '3f1c2a9d7b45'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'index_collection',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('entity', sa.String(), nullable=False),
        sa.Column('index_id', sa.String(), nullable=False),
        sa.Column('field_schema', postgresql.JSONB(), nullable=False),
        sa.Column('searchable_attributes', postgresql.JSONB(), nullable=False),
        sa.Column('included_relations', postgresql.JSONB(), nullable=False),
        sa.Column('include_drafts', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('update_hook', sa.String(length=16), nullable=True),
        sa.Column('update_cron', sa.String(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='outdated'),
        sa.Column('deployed_at', sa.DateTime(), nullable=True),
        sa.Column('documents_count', sa.Integer(), nullable=True),
        sa.Column('last_error', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('modified_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint(
            "status IN ('outdated', 'updating', 'updated')", name='ck_index_collection_status'
        ),
        sa.CheckConstraint(
            'documents_count IS NULL OR documents_count >= 0',
            name='ck_index_collection_documents_count',
        ),
    )

    # Trigger and orchestrator lookups by remote index
    op.create_index('ix_index_collection_index_id', 'index_collection', ['index_id'])


def downgrade():
    op.drop_index('ix_index_collection_index_id', table_name='index_collection')
    op.drop_table('index_collection')
