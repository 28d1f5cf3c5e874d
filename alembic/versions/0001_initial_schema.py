"""initial schema

Creates users, otps, complaints, timeline and attachments.

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '0001_initial_schema'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

user_role = sa.Enum('citizen', 'official', 'admin', name='user_role')
user_status = sa.Enum('active', 'inactive', name='user_status')
otp_purpose = sa.Enum('registration', 'login', name='otp_purpose')
complaint_status = sa.Enum('Pending', 'In Progress', 'Resolved', 'Escalated', name='complaint_status')
escalation_level = sa.Enum('None', 'Level 1', 'Level 2', 'Level 3', name='escalation_level')


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('mobile', sa.String(length=30), nullable=True),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('role', user_role, nullable=False),
        sa.Column('department', sa.String(length=120), nullable=True),
        sa.Column('status', user_status, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('last_login', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_users_name', 'users', ['name'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_mobile', 'users', ['mobile'], unique=True)
    op.create_index('ix_users_role', 'users', ['role'])
    op.create_index('ix_users_created_at', 'users', ['created_at'])

    op.create_table(
        'otps',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('mobile', sa.String(length=30), nullable=False),
        sa.Column('otp', sa.String(length=6), nullable=False),
        sa.Column('purpose', otp_purpose, nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_otps_expires_at', 'otps', ['expires_at'])
    op.create_index('ix_otps_mobile_otp', 'otps', ['mobile', 'otp'])

    op.create_table(
        'complaints',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('title', sa.String(length=200), nullable=False),
        sa.Column('category', sa.String(length=120), nullable=False),
        sa.Column('subcategory', sa.String(length=120), nullable=True),
        sa.Column('description', sa.String(length=4000), nullable=False),
        sa.Column('address', sa.String(length=300), nullable=False),
        sa.Column('latitude', sa.Float(), nullable=False),
        sa.Column('longitude', sa.Float(), nullable=False),
        sa.Column('status', complaint_status, nullable=False),
        sa.Column('escalation', escalation_level, nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('assigned_to_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_complaints_title', 'complaints', ['title'])
    op.create_index('ix_complaints_category', 'complaints', ['category'])
    op.create_index('ix_complaints_status', 'complaints', ['status'])
    op.create_index('ix_complaints_user_id', 'complaints', ['user_id'])
    op.create_index('ix_complaints_assigned_to_id', 'complaints', ['assigned_to_id'])
    op.create_index('ix_complaints_created_at', 'complaints', ['created_at'])
    op.create_index('ix_complaints_lat_lng', 'complaints', ['latitude', 'longitude'])

    op.create_table(
        'timeline',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('complaint_id', sa.Integer(), sa.ForeignKey('complaints.id', ondelete='CASCADE'), nullable=False),
        sa.Column('action', sa.String(length=80), nullable=False),
        sa.Column('description', sa.String(length=4000), nullable=False),
        sa.Column('by', sa.String(length=200), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_timeline_complaint_id', 'timeline', ['complaint_id'])
    op.create_index('ix_timeline_created_at', 'timeline', ['created_at'])

    op.create_table(
        'attachments',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('complaint_id', sa.Integer(), sa.ForeignKey('complaints.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('type', sa.String(length=100), nullable=False),
        sa.Column('size', sa.Integer(), nullable=False),
        sa.Column('url', sa.String(length=500), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index('ix_attachments_complaint_id', 'attachments', ['complaint_id'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('attachments')
    op.drop_table('timeline')
    op.drop_table('complaints')
    op.drop_table('otps')
    op.drop_table('users')
    bind = op.get_bind()
    for enum_type in (escalation_level, complaint_status, otp_purpose, user_status, user_role):
        enum_type.drop(bind, checkfirst=True)
