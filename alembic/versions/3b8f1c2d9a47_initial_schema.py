"""initial schema

Revision ID: 3b8f1c2d9a47
Revises:
Create Date: 2026-10-19 10:12:31.204518

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3b8f1c2d9a47'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('hashed_password', sa.String(), nullable=False),
        sa.Column('provider', sa.String(), nullable=False),
        sa.Column('provider_id', sa.String(), nullable=True),
        sa.Column('avatar_url', sa.String(), nullable=True),
        sa.Column('locale', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('provider', 'provider_id', name='uq_users_provider'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'box_items',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('user_id', sa.String(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('recipient', sa.Text(), nullable=True),
        sa.Column('category', sa.String(), nullable=True),
        sa.Column('is_important', sa.Boolean(), nullable=True),
        sa.Column('is_shared', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_box_items_user_id', 'box_items', ['user_id'])
    op.create_index('ix_box_items_category', 'box_items', ['category'])

    op.create_table(
        'guardians',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('user_id', sa.String(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=True),
        sa.Column('phone', sa.String(), nullable=True),
        sa.Column('relationship', sa.String(), nullable=True),
        sa.Column('role', sa.String(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('access_type', sa.String(), nullable=False),
        sa.Column('access_token', sa.String(64), nullable=False),
        sa.Column('access_pin_hash', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_guardians_user_id', 'guardians', ['user_id'])
    op.create_index('ix_guardians_access_token', 'guardians', ['access_token'], unique=True)

    op.create_table(
        'user_settings',
        sa.Column('user_id', sa.String(), sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('emergency_protocol_enabled', sa.Boolean(), nullable=True),
        sa.Column('notifications_enabled', sa.Boolean(), nullable=True),
        sa.Column('theme', sa.String(), nullable=True),
    )

    op.create_table(
        'share_links',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('user_id', sa.String(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('guardian_id', sa.String(), nullable=True),
        sa.Column('guardian_ids', sa.JSON(), nullable=False),
        sa.Column('token', sa.String(64), nullable=False),
        sa.Column('type', sa.String(), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('categories', sa.JSON(), nullable=False),
        sa.Column('pin_hash', sa.String(), nullable=True),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('max_uses', sa.Integer(), nullable=False),
        sa.Column('usage_count', sa.Integer(), nullable=False),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_share_links_token', 'share_links', ['token'], unique=True)
    op.create_index('ix_share_links_user_id', 'share_links', ['user_id'])

    op.create_table(
        'share_link_accesses',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('share_link_id', sa.String(), sa.ForeignKey('share_links.id', ondelete='CASCADE'), nullable=False),
        sa.Column('ip_address', sa.String(), nullable=True),
        sa.Column('user_agent', sa.String(), nullable=True),
        sa.Column('accessed_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_share_link_accesses_share_link_id', 'share_link_accesses', ['share_link_id'])

    op.create_table(
        'analytics_events',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('user_id', sa.String(), nullable=True),
        sa.Column('event_type', sa.String(), nullable=False),
        sa.Column('page', sa.String(), nullable=True),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_analytics_events_user_id', 'analytics_events', ['user_id'])
    op.create_index('ix_analytics_events_event_type', 'analytics_events', ['event_type'])
    op.create_index('ix_analytics_events_created_at', 'analytics_events', ['created_at'])

    op.create_table(
        'crypto_meta',
        sa.Column('key', sa.String(), primary_key=True),
        sa.Column('value', sa.Text(), nullable=False),
    )


def downgrade() -> None:
    # 테이블 삭제 (역순)
    op.drop_table('crypto_meta')
    op.drop_table('analytics_events')
    op.drop_table('share_link_accesses')
    op.drop_table('share_links')
    op.drop_table('user_settings')
    op.drop_table('guardians')
    op.drop_table('box_items')
    op.drop_table('users')
