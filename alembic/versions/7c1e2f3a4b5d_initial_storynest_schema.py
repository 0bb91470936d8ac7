"""initial_storynest_schema

Revision ID: 7c1e2f3a4b5d
Revises:
Create Date: 2026-09-28 18:42:10.512093

"""
import uuid
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from app.models.types import JSONBCompat


# revision identifiers, used by Alembic.
revision: str = '7c1e2f3a4b5d'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

THEMES = [
    ('default', 'Enchanted', 0),
    ('forest', 'Forest', 100),
    ('lava', 'Lava', 250),
    ('ocean', 'Ocean', 500),
    ('twilight', 'Twilight', 750),
    ('sunset', 'Sunset', 1000),
    ('midnight', 'Midnight', 2500),
]


def _uuid_pk() -> sa.Column:
    return sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True)


def _user_fk(name: str = 'user_id', **kwargs) -> sa.Column:
    return sa.Column(
        name,
        postgresql.UUID(as_uuid=True),
        sa.ForeignKey('users.id', ondelete='CASCADE'),
        nullable=False,
        **kwargs,
    )


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'users',
        _uuid_pk(),
        sa.Column('email', sa.String(length=255), nullable=False, unique=True),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('tier', sa.String(length=20), nullable=False, server_default='FREE'),
        sa.Column('premium_until', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        'stories',
        _uuid_pk(),
        _user_fk(),
        sa.Column('prompt', sa.Text(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=True),
        sa.Column('genre', sa.String(length=50), nullable=True),
        sa.Column('tone', sa.String(length=50), nullable=True),
        sa.Column('archetype', sa.String(length=50), nullable=True),
        sa.Column(
            'continued_from_id',
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey('stories.id', ondelete='SET NULL'),
            nullable=True,
        ),
        sa.Column('word_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('share_id', sa.String(length=64), nullable=True, unique=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_stories_user_id_created_at', 'stories', ['user_id', 'created_at'])

    op.create_table(
        'story_usage',
        _uuid_pk(),
        _user_fk(),
        sa.Column('usage_date', sa.Date(), nullable=False),
        sa.Column('count', sa.Integer(), nullable=False, server_default='0'),
        sa.UniqueConstraint('user_id', 'usage_date', name='uq_story_usage_user_date'),
    )

    op.create_table(
        'story_favorites',
        _uuid_pk(),
        _user_fk(),
        sa.Column(
            'story_id',
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey('stories.id', ondelete='CASCADE'),
            nullable=False,
        ),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('user_id', 'story_id', name='uq_story_favorites_user_story'),
    )

    op.create_table(
        'user_follows',
        _uuid_pk(),
        _user_fk('follower_id'),
        _user_fk('following_id'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('follower_id', 'following_id', name='uq_user_follows_pair'),
        sa.CheckConstraint('follower_id <> following_id', name='ck_user_follows_not_self'),
    )
    op.create_index('ix_user_follows_following_id', 'user_follows', ['following_id'])

    op.create_table(
        'user_stats',
        _user_fk(primary_key=True),
        sa.Column('total_stories', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('current_streak', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('longest_streak', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_story_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('total_xp', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        'user_achievements',
        _uuid_pk(),
        _user_fk(),
        sa.Column('achievement_type', sa.String(length=50), nullable=False),
        sa.Column('title', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('xp_reward', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('earned_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('user_id', 'achievement_type', name='uq_user_achievements_user_type'),
    )

    op.create_table(
        'login_streaks',
        _user_fk(primary_key=True),
        sa.Column('current_streak', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('longest_streak', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_login', sa.Date(), nullable=True),
    )

    op.create_table(
        'public_stories',
        _uuid_pk(),
        sa.Column(
            'story_id',
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey('stories.id', ondelete='CASCADE'),
            nullable=False,
            unique=True,
        ),
        _user_fk(),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('excerpt', sa.Text(), nullable=False),
        sa.Column('like_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('comment_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('shared_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_public_stories_shared_at', 'public_stories', ['shared_at'])

    op.create_table(
        'public_story_likes',
        _uuid_pk(),
        sa.Column(
            'public_story_id',
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey('public_stories.id', ondelete='CASCADE'),
            nullable=False,
        ),
        _user_fk(),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint('public_story_id', 'user_id', name='uq_public_story_likes_story_user'),
    )

    op.create_table(
        'public_story_comments',
        _uuid_pk(),
        sa.Column(
            'public_story_id',
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey('public_stories.id', ondelete='CASCADE'),
            nullable=False,
        ),
        _user_fk(),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_public_story_comments_story_id', 'public_story_comments', ['public_story_id'])

    op.create_table(
        'daily_share_limit',
        _user_fk(primary_key=True),
        sa.Column('shared_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_reset', sa.DateTime(timezone=True), nullable=False),
    )

    theme_unlocks = op.create_table(
        'theme_unlocks',
        _uuid_pk(),
        sa.Column('theme_id', sa.String(length=50), nullable=False, unique=True),
        sa.Column('theme_name', sa.String(length=100), nullable=False),
        sa.Column('xp_threshold', sa.Integer(), nullable=False, server_default='0'),
    )

    op.create_table(
        'push_notifications',
        _uuid_pk(),
        _user_fk(),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('body', sa.Text(), nullable=False),
        sa.Column('data', JSONBCompat(), nullable=True),
        sa.Column('read', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_push_notifications_user_id_read', 'push_notifications', ['user_id', 'read'])

    op.create_table(
        'push_subscriptions',
        _uuid_pk(),
        _user_fk(),
        sa.Column('endpoint', sa.Text(), nullable=False, unique=True),
        sa.Column('auth_key', sa.String(length=255), nullable=False),
        sa.Column('p256dh_key', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
    )

    op.bulk_insert(
        theme_unlocks,
        [
            {'id': uuid.uuid4(), 'theme_id': theme_id, 'theme_name': name, 'xp_threshold': threshold}
            for theme_id, name, threshold in THEMES
        ],
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('push_subscriptions')
    op.drop_index('ix_push_notifications_user_id_read', table_name='push_notifications')
    op.drop_table('push_notifications')
    op.drop_table('theme_unlocks')
    op.drop_table('daily_share_limit')
    op.drop_index('ix_public_story_comments_story_id', table_name='public_story_comments')
    op.drop_table('public_story_comments')
    op.drop_table('public_story_likes')
    op.drop_index('ix_public_stories_shared_at', table_name='public_stories')
    op.drop_table('public_stories')
    op.drop_table('login_streaks')
    op.drop_table('user_achievements')
    op.drop_table('user_stats')
    op.drop_index('ix_user_follows_following_id', table_name='user_follows')
    op.drop_table('user_follows')
    op.drop_table('story_favorites')
    op.drop_table('story_usage')
    op.drop_index('ix_stories_user_id_created_at', table_name='stories')
    op.drop_table('stories')
    op.drop_table('users')
