"""Create message, feed, reference and score tables

Revision ID: 5c1e0a7d2b94
Revises: 
Create Date: 2025-03-22 09:12:44.218305

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from pgvector.sqlalchemy import Vector

from app.core.config import settings

# revision identifiers, used by Alembic.
revision: str = '5c1e0a7d2b94'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

EMBEDDING_DIMENSION = settings.EMBEDDING_DIMENSION


def upgrade() -> None:
    op.execute("CREATE EXTENSION IF NOT EXISTS vector")

    op.create_table(
        'unique_messages',
        sa.Column('id', sa.Integer(), sa.Identity(always=True), primary_key=True),
        sa.Column('content', sa.Text(), nullable=False, unique=True),
        sa.Column('embedding', Vector(EMBEDDING_DIMENSION), nullable=True),
    )

    op.create_table(
        'message_feed',
        sa.Column('id', sa.Integer(), sa.Identity(always=True), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('message_id', sa.Integer(), nullable=False),
        sa.Column('platform_name', sa.Text(), nullable=False),
        sa.Column('platform_message_id', sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint('id', 'timestamp'),
        sa.ForeignKeyConstraint(['message_id'], ['unique_messages.id'], name='fk_message_id'),
        sa.UniqueConstraint('timestamp', 'platform_name', 'platform_message_id'),
    )

    op.create_table(
        'message_scores',
        sa.Column('id', sa.Integer(), sa.Identity(always=True), primary_key=True),
        sa.Column('topic', sa.Text(), nullable=False),
        sa.Column('industry', sa.Text(), nullable=False),
        sa.Column('main', sa.REAL(), nullable=True),
        sa.Column('similarity', sa.REAL(), nullable=True),
        sa.Column('message_id', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['message_id'], ['unique_messages.id'], name='fk_message_id'),
        sa.UniqueConstraint('message_id', 'topic', 'industry', name='message_scores_message_id_topic_industry_key'),
    )

    op.create_table(
        'synth_data_prod',
        sa.Column('id', sa.Integer(), sa.Identity(always=True), primary_key=True),
        sa.Column('topic', sa.Text(), nullable=False),
        sa.Column('industry', sa.Text(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('embedding', Vector(EMBEDDING_DIMENSION), nullable=False),
    )

    #Create Index
    op.execute("CREATE INDEX IF NOT EXISTS message_feed_message_id_timestamp_idx ON message_feed (message_id, timestamp DESC)")
    op.execute("CREATE INDEX IF NOT EXISTS synth_data_prod_topic_industry_idx ON synth_data_prod (topic, industry)")
    op.execute("CREATE INDEX IF NOT EXISTS synth_data_prod_embedding_idx ON synth_data_prod USING hnsw (embedding vector_cosine_ops)")


def downgrade() -> None:
    #Drop Index
    op.execute("DROP INDEX IF EXISTS synth_data_prod_embedding_idx")
    op.execute("DROP INDEX IF EXISTS synth_data_prod_topic_industry_idx")
    op.execute("DROP INDEX IF EXISTS message_feed_message_id_timestamp_idx")

    op.drop_table('synth_data_prod')
    op.drop_table('message_scores')
    op.drop_table('message_feed')
    op.drop_table('unique_messages')
