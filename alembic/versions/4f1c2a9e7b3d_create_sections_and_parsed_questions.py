"""create sections and parsed_questions tables

Revision ID: 4f1c2a9e7b3d
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '4f1c2a9e7b3d'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'sections',
        sa.Column('id', sa.UUID(), nullable=False, server_default=sa.text('gen_random_uuid()')),
        sa.Column('exam_id', sa.UUID(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('time_minutes', sa.Integer(), nullable=False),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('pdf_url', sa.Text(), nullable=True),
        sa.Column('pdf_name', sa.String(), nullable=True),
        sa.Column('is_finalized', sa.Boolean(), nullable=True, server_default=sa.text('false')),
        sa.Column('parsing_status', sa.String(), nullable=True, server_default='pending',
                  comment='pending | in-progress | completed | failed'),
        sa.Column('parsing_started_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('parsing_completed_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('total_questions', sa.Integer(), nullable=True,
                  comment='Set only when parsing completes'),
        sa.Column('questions_requiring_review', sa.Integer(), nullable=True,
                  comment='Questions with confidence < 0.9; set only when parsing completes'),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_sections_exam_id', 'sections', ['exam_id'])

    op.create_table(
        'parsed_questions',
        sa.Column('id', sa.UUID(), nullable=False, server_default=sa.text('gen_random_uuid()')),
        sa.Column('section_id', sa.UUID(), nullable=False),
        sa.Column('q_no', sa.Integer(), nullable=False),
        sa.Column('section_label', sa.String(), nullable=True),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('options', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('answer_type', sa.String(), nullable=False,
                  comment='single | multi | true_false | short_answer | essay'),
        sa.Column('answer_hint', sa.Text(), nullable=True),
        sa.Column('confidence', sa.Float(), nullable=True),
        sa.Column('requires_review', sa.Boolean(), nullable=True),
        sa.Column('correct_answer', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('image_url', sa.Text(), nullable=True),
        sa.Column('final_order', sa.Integer(), nullable=True),
        sa.Column('is_excluded', sa.Boolean(), nullable=True, server_default=sa.text('false')),
        sa.Column('is_finalized', sa.Boolean(), nullable=True, server_default=sa.text('false')),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('NOW()'), nullable=False),
        sa.ForeignKeyConstraint(['section_id'], ['sections.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_parsed_questions_section_id', 'parsed_questions', ['section_id'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_parsed_questions_section_id', table_name='parsed_questions')
    op.drop_table('parsed_questions')
    op.drop_index('ix_sections_exam_id', table_name='sections')
    op.drop_table('sections')
