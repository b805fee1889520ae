"""Initial migration

Revision ID: 001
Revises:
Create Date: 2024-01-01

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Users table
    op.create_table(
        'users',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('username', sa.String(50), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('display_name', sa.String(100), nullable=True),
        sa.Column('bio', sa.Text(), nullable=True),
        sa.Column('avatar_url', sa.String(500), nullable=True),
        sa.Column('is_active', sa.Boolean(), default=True),
        sa.Column('is_verified', sa.Boolean(), default=False),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_users_username', 'users', ['username'], unique=True)
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    # Follows table: follower_id may be a remote actor URI, so only the
    # followed side references users
    op.create_table(
        'follows',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('follower_id', sa.String(255), nullable=False),
        sa.Column('followed_id', sa.String(36), nullable=False),
        sa.Column('actor_id', sa.String(2048), nullable=True),
        sa.Column('is_accepted', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['followed_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_follower', 'follows', ['follower_id'])
    op.create_index('idx_followed', 'follows', ['followed_id'])
    op.create_index('idx_actor', 'follows', ['actor_id'])
    op.create_index('idx_follow_pair', 'follows', ['follower_id', 'followed_id'], unique=True)


def downgrade() -> None:
    op.drop_table('follows')
    op.drop_table('users')
