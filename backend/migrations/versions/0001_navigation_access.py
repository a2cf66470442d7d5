"""navigation, groups and access junction tables

Revision ID: 0001_navigation_access
Revises:
Create Date: 2026-10-18
"""
from __future__ import annotations
from alembic import op
import sqlalchemy as sa

revision = '0001_navigation_access'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table('navigation',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('type', sa.String(length=50), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default=sa.text('0')),
        sa.Column('status', sa.Integer(), nullable=False, server_default=sa.text('1')),
        sa.Column('path', sa.String(length=255), nullable=True),
        sa.Column('parent_nav_id', sa.Integer(), nullable=True),
        sa.Column('section_id', sa.Integer(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'))
    )
    op.create_index('ix_navigation_parent_nav_id', 'navigation', ['parent_nav_id'])

    op.create_table('groups',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=64), nullable=False, unique=True),
        sa.Column('description', sa.String(length=255), nullable=True),
        sa.Column('status', sa.Integer(), nullable=False, server_default=sa.text('1')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'))
    )

    op.create_table('users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('email', sa.String(length=128), nullable=False, unique=True),
        sa.Column('status', sa.Integer(), nullable=False, server_default=sa.text('1')),
        sa.Column('last_nav', sa.String(length=255), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'))
    )
    op.create_index('ix_users_email', 'users', ['email'])

    # grants carry no foreign keys; navigation delete removes them explicitly
    op.create_table('group_nav',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('nav_id', sa.Integer(), nullable=False),
        sa.Column('group_id', sa.Integer(), nullable=False)
    )
    op.create_index('ix_group_nav_nav_id', 'group_nav', ['nav_id'])
    op.create_index('ix_group_nav_group_id', 'group_nav', ['group_id'])
    # unique constraint handled via batch for sqlite
    with op.batch_alter_table('group_nav') as batch_op:
        batch_op.create_unique_constraint('uq_group_nav', ['nav_id', 'group_id'])

    op.create_table('user_groups',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('group_id', sa.Integer(), sa.ForeignKey('groups.id', ondelete='CASCADE'), nullable=False)
    )
    with op.batch_alter_table('user_groups') as batch_op:
        batch_op.create_unique_constraint('uq_user_group', ['user_id', 'group_id'])

    op.create_table('audit_logs',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('actor_user_id', sa.Integer(), nullable=False),
        sa.Column('action', sa.String(length=64), nullable=False),
        sa.Column('entity', sa.String(length=64)),
        sa.Column('entity_id', sa.String(length=64)),
        sa.Column('meta', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'))
    )
    op.create_index('ix_audit_actor', 'audit_logs', ['actor_user_id'])
    op.create_index('ix_audit_action', 'audit_logs', ['action'])
    op.create_index('ix_audit_entity', 'audit_logs', ['entity', 'entity_id'])


def downgrade():
    for tbl in ['audit_logs', 'user_groups', 'group_nav', 'users', 'groups', 'navigation']:
        op.drop_table(tbl)
