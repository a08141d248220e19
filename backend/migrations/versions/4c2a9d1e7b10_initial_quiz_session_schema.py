"""initial quiz, question, game_session, player and player_answer tables

Revision ID: 4c2a9d1e7b10
Revises:
Create Date: 2026-10-19 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '4c2a9d1e7b10'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'user',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('password_hash', sa.String(length=256), nullable=False),
    )
    op.create_index('ix_user_username', 'user', ['username'], unique=True)

    op.create_table(
        'quiz',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('owner_id', sa.String(length=64), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('gamification', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.Float(), nullable=False),
    )
    op.create_index('ix_quiz_owner_id', 'quiz', ['owner_id'])

    op.create_table(
        'question',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('quiz_id', sa.Integer(), sa.ForeignKey('quiz.id', ondelete='CASCADE'), nullable=False),
        sa.Column('order_index', sa.Integer(), nullable=False),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('question_type', sa.String(length=32), nullable=False),
        sa.Column('answers', sa.Text(), nullable=False),
        sa.Column('correct_index', sa.Integer(), nullable=True),
        sa.UniqueConstraint('quiz_id', 'order_index', name='uq_question_quiz_order'),
    )
    op.create_index('ix_question_quiz_id', 'question', ['quiz_id'])

    op.create_table(
        'game_session',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('quiz_id', sa.Integer(), sa.ForeignKey('quiz.id', ondelete='CASCADE'), nullable=False),
        sa.Column('host_id', sa.String(length=64), nullable=False),
        sa.Column('join_code', sa.String(length=6), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('current_question_index', sa.Integer(), nullable=False),
        sa.Column('question_start_time', sa.Float(), nullable=True),
        sa.Column('answer_revealed', sa.Boolean(), nullable=False),
        sa.Column('revealed_at', sa.Float(), nullable=True),
        sa.Column('created_at', sa.Float(), nullable=False),
        sa.Column('finished_at', sa.Float(), nullable=True),
    )
    op.create_index('ix_game_session_join_code', 'game_session', ['join_code'], unique=True)
    op.create_index('ix_game_session_quiz_id', 'game_session', ['quiz_id'])
    op.create_index('ix_game_session_host_id', 'game_session', ['host_id'])

    op.create_table(
        'player',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('session_id', sa.Integer(), sa.ForeignKey('game_session.id', ondelete='CASCADE'), nullable=False),
        sa.Column('nickname', sa.String(length=20), nullable=False),
        sa.Column('score', sa.Integer(), nullable=False),
        sa.Column('joined_at', sa.Float(), nullable=False),
    )
    op.create_index('ix_player_session_id', 'player', ['session_id'])

    op.create_table(
        'player_answer',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('player_id', sa.Integer(), sa.ForeignKey('player.id', ondelete='CASCADE'), nullable=False),
        sa.Column('question_id', sa.Integer(), sa.ForeignKey('question.id', ondelete='CASCADE'), nullable=False),
        sa.Column('answer_index', sa.Integer(), nullable=True),
        sa.Column('estimate_value', sa.Float(), nullable=True),
        sa.Column('response_time_ms', sa.Integer(), nullable=False),
        sa.Column('points_earned', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.Float(), nullable=False),
        sa.UniqueConstraint('player_id', 'question_id', name='uq_player_answer_player_question'),
    )
    op.create_index('ix_player_answer_player_id', 'player_answer', ['player_id'])
    op.create_index('ix_player_answer_question_id', 'player_answer', ['question_id'])


def downgrade():
    op.drop_table('player_answer')
    op.drop_table('player')
    op.drop_table('game_session')
    op.drop_table('question')
    op.drop_table('quiz')
    op.drop_table('user')
