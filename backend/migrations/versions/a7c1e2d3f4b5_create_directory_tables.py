"""create directory tables

Revision ID: a7c1e2d3f4b5
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = 'a7c1e2d3f4b5'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'user',
        sa.Column('id', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('name', sa.String(255), nullable=True),
        sa.Column('image', sa.String(1000), nullable=True),
        sa.Column('email_verified', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('role', sa.Enum('user', 'admin', name='user_role'), nullable=False, server_default='user'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_user_email', 'user', ['email'], unique=True)

    op.create_table(
        'channels',
        sa.Column('id', postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column('channel_link', sa.Text(), nullable=False),
        sa.Column('channel_name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('subscription_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_by', sa.String(255), sa.ForeignKey('user.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_channels_created_by', 'channels', ['created_by'])

    op.create_table(
        'channel_clicks',
        sa.Column('id', postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column('channel_id', postgresql.UUID(as_uuid=False), sa.ForeignKey('channels.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.String(255), sa.ForeignKey('user.id', ondelete='CASCADE'), nullable=False),
        sa.Column('clicked_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('channel_id', 'user_id', name='uix_channel_clicks_channel_user'),
    )
    op.create_index('ix_channel_clicks_channel_id', 'channel_clicks', ['channel_id'])
    op.create_index('ix_channel_clicks_user_id', 'channel_clicks', ['user_id'])
    op.create_index('ix_channel_clicks_clicked_at', 'channel_clicks', ['clicked_at'])

    op.create_table(
        'channel_history',
        sa.Column('id', postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column('channel_id', postgresql.UUID(as_uuid=False), sa.ForeignKey('channels.id', ondelete='CASCADE'), nullable=False),
        sa.Column('period', sa.Enum('weekly', 'monthly', name='stats_period'), nullable=False),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('subscription_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('click_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('subscription_growth', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('click_growth', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('channel_id', 'period', 'start_date', name='uix_channel_history_key'),
    )
    op.create_index('ix_channel_history_channel_id', 'channel_history', ['channel_id'])

    op.create_table(
        'bookmarks',
        sa.Column('id', postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column('url', sa.Text(), nullable=False),
        sa.Column('title', sa.String(500), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('status', sa.Enum('private', 'public', name='bookmark_status'), nullable=False, server_default='private'),
        sa.Column('user_id', sa.String(255), sa.ForeignKey('user.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'url', name='uix_bookmarks_user_url'),
    )
    op.create_index('ix_bookmarks_user_id', 'bookmarks', ['user_id'])

    op.create_table(
        'bookmark_likes',
        sa.Column('id', postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column('bookmark_id', postgresql.UUID(as_uuid=False), sa.ForeignKey('bookmarks.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.String(255), sa.ForeignKey('user.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('bookmark_id', 'user_id', name='uix_bookmark_likes_bookmark_user'),
    )
    op.create_index('ix_bookmark_likes_bookmark_id', 'bookmark_likes', ['bookmark_id'])
    op.create_index('ix_bookmark_likes_user_id', 'bookmark_likes', ['user_id'])

    # YouTube channel lookup cache
    op.create_table(
        'youtube_channel_cache',
        sa.Column('id', postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column('channel_id', sa.String(255), nullable=False),
        sa.Column('channel_title', sa.String(255), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('thumbnail_url', sa.String(1000), nullable=True),
        sa.Column('subscriber_count', sa.Integer(), nullable=True, server_default='0'),
        sa.Column('last_synced_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('channel_id'),
    )


def downgrade() -> None:
    op.drop_table('youtube_channel_cache')
    op.drop_table('bookmark_likes')
    op.drop_table('bookmarks')
    op.drop_table('channel_history')
    op.drop_table('channel_clicks')
    op.drop_table('channels')
    op.drop_table('user')
    op.execute("DROP TYPE IF EXISTS bookmark_status")
    op.execute("DROP TYPE IF EXISTS stats_period")
    op.execute("DROP TYPE IF EXISTS user_role")
