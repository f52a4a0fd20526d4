"""Create document, section and version history tables

Revision ID: 001
Revises:
Create Date: 2026-10-19 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '001_create_version_history_tables'
down_revision = None
branch_labels = None
depends_on = None

change_type = sa.Enum('CREATE', 'UPDATE', 'DELETE', 'RESTORE', 'GENERATE', name='changetype')


def upgrade() -> None:
    """Create live document tables and the append-only version log."""

    op.create_table(
        'documents',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('owner_id', sa.Uuid(), nullable=False),
        sa.Column('filename', sa.String(255), nullable=False),
        sa.Column('status', sa.Enum('DRAFT', 'GENERATING', 'COMPLETED', name='documentstatus')),
        sa.Column('metadata', postgresql.JSONB()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_documents_owner_id', 'documents', ['owner_id'])
    op.create_index('ix_documents_status', 'documents', ['status'])

    op.create_table(
        'document_sections',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('document_id', sa.Uuid(), sa.ForeignKey('documents.id', ondelete='CASCADE'), nullable=False),
        sa.Column('section_type', sa.String(100), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('order', sa.Integer(), nullable=False),
        sa.Column('is_generated', sa.Boolean(), nullable=False),
        sa.Column('metadata', postgresql.JSONB()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_document_sections_document_id', 'document_sections', ['document_id'])

    op.create_table(
        'document_versions',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('document_id', sa.Uuid(), sa.ForeignKey('documents.id', ondelete='CASCADE'), nullable=False),
        sa.Column('version_number', sa.Integer(), nullable=False),
        sa.Column('author_id', sa.Uuid(), nullable=False),
        sa.Column('change_type', change_type, nullable=False),
        sa.Column('change_summary', sa.Text()),
        sa.Column('section_id', sa.Uuid()),
        sa.Column('snapshot', postgresql.JSONB(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('document_id', 'version_number', name='uq_document_version'),
        sa.CheckConstraint('version_number >= 1', name='ck_document_version_positive'),
    )
    op.create_index('ix_document_versions_document_id', 'document_versions', ['document_id'])

    op.create_table(
        'document_pointer_states',
        sa.Column('document_id', sa.Uuid(), sa.ForeignKey('documents.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('head_version', sa.Integer(), nullable=False),
        sa.Column('current_version', sa.Integer(), nullable=False),
        sa.Column('max_reachable_version', sa.Integer(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint(
            '1 <= current_version AND current_version <= max_reachable_version '
            'AND max_reachable_version <= head_version',
            name='ck_pointer_state_ordering'
        ),
    )

    op.create_table(
        'section_versions',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('document_id', sa.Uuid(), sa.ForeignKey('documents.id', ondelete='CASCADE'), nullable=False),
        sa.Column('section_id', sa.Uuid(), nullable=False),
        sa.Column('version_number', sa.Integer(), nullable=False),
        sa.Column('author_id', sa.Uuid(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('change_type', change_type, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('section_id', 'version_number', name='uq_section_version'),
    )
    op.create_index('ix_section_versions_document_id', 'section_versions', ['document_id'])
    op.create_index('ix_section_versions_section_id', 'section_versions', ['section_id'])


def downgrade() -> None:
    """Drop version history and document tables."""
    op.drop_table('section_versions')
    op.drop_table('document_pointer_states')
    op.drop_table('document_versions')
    op.drop_table('document_sections')
    op.drop_table('documents')
    change_type.drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='documentstatus').drop(op.get_bind(), checkfirst=True)
