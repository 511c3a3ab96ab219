"""create user, game, participant, map and token tables

Revision ID: 5c2d9a1e7b40
Revises:
Create Date: 2026-10-19 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c2d9a1e7b40'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'user',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('external_uid', sa.String(length=128), nullable=False),
        sa.Column('username', sa.String(length=64), nullable=False),
    )
    op.create_index('ix_user_external_uid', 'user', ['external_uid'], unique=True)

    op.create_table(
        'game',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('creator_id', sa.Integer(), sa.ForeignKey('user.id'), nullable=False),
    )

    op.create_table(
        'game_participant',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('game_id', sa.Integer(), sa.ForeignKey('game.id'), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id'), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False),
        sa.Column('is_accepted', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.UniqueConstraint('game_id', 'user_id', name='uq_participant_game_user'),
    )
    op.create_index('ix_game_participant_game_id', 'game_participant', ['game_id'])

    # One map per game: the unique index is what makes concurrent creation safe
    op.create_table(
        'game_map',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('game_id', sa.Integer(), sa.ForeignKey('game.id'), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False, server_default='Map Name'),
        sa.Column('background_image_url', sa.String(length=512), nullable=True),
        sa.Column('drawn_elements', sa.JSON(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
    )
    op.create_index('ix_game_map_game_id', 'game_map', ['game_id'], unique=True)

    op.create_table(
        'token',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('image_url', sa.String(length=512), nullable=True),
        sa.Column('is_custom', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('game_id', sa.Integer(), sa.ForeignKey('game.id'), nullable=True),
    )
    op.create_index('ix_token_game_id', 'token', ['game_id'])


def downgrade():
    op.drop_index('ix_token_game_id', table_name='token')
    op.drop_table('token')
    op.drop_index('ix_game_map_game_id', table_name='game_map')
    op.drop_table('game_map')
    op.drop_index('ix_game_participant_game_id', table_name='game_participant')
    op.drop_table('game_participant')
    op.drop_table('game')
    op.drop_index('ix_user_external_uid', table_name='user')
    op.drop_table('user')
