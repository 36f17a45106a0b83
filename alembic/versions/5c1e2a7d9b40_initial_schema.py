"""initial schema: instructors, groups config, sessions, notifications

Revision ID: 5c1e2a7d9b40
Revises:
Create Date: 2026-10-17 09:12:31.480213

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5c1e2a7d9b40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade():
    op.create_table(
        'instructors_auth',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=50), nullable=False),
        sa.Column('password', sa.String(length=255), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('role', sa.Enum('owner', 'reception', 'instructor', name='user_role'), nullable=False),
        sa.Column('status', sa.Enum('pending', 'active', 'inactive', name='user_status'), nullable=False),
        sa.Column('reset_token_hash', sa.String(length=64), nullable=True),
        sa.Column('reset_token_expires', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
    )
    op.create_index(op.f('ix_instructors_auth_id'), 'instructors_auth', ['id'], unique=False)
    op.create_index(op.f('ix_instructors_auth_username'), 'instructors_auth', ['username'], unique=True)
    op.create_index(op.f('ix_instructors_auth_reset_token_hash'), 'instructors_auth', ['reset_token_hash'], unique=False)

    op.create_table(
        'instructor_group_assignments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('instructor_id', sa.Integer(), nullable=False),
        sa.Column('group_id', sa.String(length=50), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.ForeignKeyConstraint(['instructor_id'], ['instructors_auth.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_instructor_group_assignments_id'), 'instructor_group_assignments', ['id'], unique=False)
    op.create_index(op.f('ix_instructor_group_assignments_instructor_id'), 'instructor_group_assignments',
                    ['instructor_id'], unique=False)

    op.create_table(
        'groups_config',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('group_id', sa.String(length=50), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('spreadsheet_id', sa.String(length=200), nullable=False),
        sa.Column('sheet_group_id', sa.String(length=50), nullable=True),
        sa.Column('active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_groups_config_id'), 'groups_config', ['id'], unique=False)
    op.create_index(op.f('ix_groups_config_group_id'), 'groups_config', ['group_id'], unique=True)

    op.create_table(
        'sessions',
        sa.Column('sid', sa.String(), nullable=False),
        sa.Column('sess', sa.JSON(), nullable=False),
        sa.Column('expire', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('sid'),
    )
    op.create_index('IDX_session_expire', 'sessions', ['expire'], unique=False)

    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('recipient_id', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(length=50), nullable=False),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('metadata', sa.JSON(), nullable=True),
        sa.Column('read', sa.Boolean(), nullable=False),
        sa.Column('created_by', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.ForeignKeyConstraint(['recipient_id'], ['instructors_auth.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['created_by'], ['instructors_auth.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_notifications_id'), 'notifications', ['id'], unique=False)
    op.create_index(op.f('ix_notifications_recipient_id'), 'notifications', ['recipient_id'], unique=False)


def downgrade():
    op.drop_table('notifications')
    op.drop_index('IDX_session_expire', table_name='sessions')
    op.drop_table('sessions')
    op.drop_table('groups_config')
    op.drop_table('instructor_group_assignments')
    op.drop_table('instructors_auth')
    sa.Enum(name='user_status').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='user_role').drop(op.get_bind(), checkfirst=True)
