"""create game, user and score_record tables

Revision ID: 3c9a1f2e7b40
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3c9a1f2e7b40'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'game',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('game_code', sa.String(length=10), nullable=False),
        sa.Column('room_url', sa.String(length=255), nullable=True),
        sa.Column('state', sa.String(length=9), nullable=False, server_default='_________'),
        sa.Column('current_player', sa.String(length=1), nullable=True),
        sa.Column('winner', sa.String(length=4), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_game_game_code', 'game', ['game_code'], unique=True)

    op.create_table(
        'user',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.Column('game_id', sa.String(length=36), nullable=True),
        sa.Column('symbol', sa.String(length=1), nullable=False),
        sa.Column('seat', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('score', sa.Integer(), nullable=False, server_default='0'),
        sa.ForeignKeyConstraint(['game_id'], ['game.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_user_name', 'user', ['name'], unique=False)

    op.create_table(
        'score_record',
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.Column('score', sa.Integer(), nullable=False, server_default='0'),
        sa.PrimaryKeyConstraint('name'),
    )


def downgrade():
    op.drop_table('score_record')
    op.drop_index('ix_user_name', table_name='user')
    op.drop_table('user')
    op.drop_index('ix_game_game_code', table_name='game')
    op.drop_table('game')
