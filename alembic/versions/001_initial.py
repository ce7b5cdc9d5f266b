"""Initial migration - create all tables

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Create users table
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('role', sa.Enum('STUDENT', 'STAFF', 'ADMIN', name='userrole'), nullable=False),
        sa.Column('student_id', sa.String(length=50), nullable=True),
        sa.Column('department', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_role', 'users', ['role'], unique=False)

    # Create issues table
    op.create_table(
        'issues',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('title', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('location', sa.String(length=255), nullable=False),
        sa.Column('category', sa.Enum('ELECTRICAL', 'PLUMBING', 'STRUCTURAL', 'FURNITURE',
                                       'EQUIPMENT', 'NETWORK', 'SECURITY', 'CLEANLINESS',
                                       'OTHER', name='issuecategory'), nullable=False),
        sa.Column('priority', sa.Enum('LOW', 'MEDIUM', 'HIGH', 'CRITICAL', name='priority'), nullable=False),
        sa.Column('status', sa.Enum('PENDING', 'UNDER_REVIEW', 'ASSIGNED', 'IN_PROGRESS',
                                     'RESOLVED', 'CLOSED', 'REJECTED', name='issuestatus'), nullable=False),
        sa.Column('media', sa.JSON(), nullable=False),
        sa.Column('reporter_id', sa.Integer(), nullable=False),
        sa.Column('assigned_to_id', sa.Integer(), nullable=True),
        sa.Column('resolution_description', sa.Text(), nullable=True),
        sa.Column('resolved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('resolved_by_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['reporter_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['assigned_to_id'], ['users.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['resolved_by_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_issues_category', 'issues', ['category'], unique=False)
    op.create_index('ix_issues_status', 'issues', ['status'], unique=False)
    op.create_index('ix_issues_reporter_id', 'issues', ['reporter_id'], unique=False)
    op.create_index('ix_issues_created_at', 'issues', ['created_at'], unique=False)

    # Create issue_comments table
    op.create_table(
        'issue_comments',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('issue_id', sa.Integer(), nullable=False),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('author_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['issue_id'], ['issues.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['author_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_issue_comments_issue_id', 'issue_comments', ['issue_id'], unique=False)

    # Create events table
    op.create_table(
        'events',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('title', sa.String(length=100), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('time_start', sa.String(length=20), nullable=False),
        sa.Column('time_end', sa.String(length=20), nullable=False),
        sa.Column('location', sa.String(length=255), nullable=False),
        sa.Column('category', sa.Enum('ACADEMIC', 'CULTURAL', 'SPORTS', 'WORKSHOP', 'SEMINAR',
                                       'COMPETITION', 'OTHER', name='eventcategory'), nullable=False),
        sa.Column('organizer_name', sa.String(length=255), nullable=False),
        sa.Column('organizer_contact', sa.String(length=255), nullable=False),
        sa.Column('organizer_department', sa.String(length=255), nullable=True),
        sa.Column('registration_link', sa.String(length=500), nullable=False),
        sa.Column('image', sa.String(length=500), nullable=False),
        sa.Column('capacity', sa.Integer(), nullable=False),
        sa.Column('registered_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_by_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['created_by_id'], ['users.id'], ondelete='CASCADE'),
        sa.CheckConstraint('capacity > 0', name='ck_events_capacity_positive'),
        sa.CheckConstraint('registered_count <= capacity', name='ck_events_within_capacity'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_events_date', 'events', ['date'], unique=False)
    op.create_index('ix_events_category', 'events', ['category'], unique=False)
    op.create_index('ix_events_created_at', 'events', ['created_at'], unique=False)

    # Create event_registrations table
    op.create_table(
        'event_registrations',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('event_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['event_id'], ['events.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.UniqueConstraint('event_id', 'user_id', name='uq_event_registrations_event_user'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_event_registrations_event_id', 'event_registrations', ['event_id'], unique=False)
    op.create_index('ix_event_registrations_user_id', 'event_registrations', ['user_id'], unique=False)


def downgrade() -> None:
    op.drop_table('event_registrations')
    op.drop_table('events')
    op.drop_table('issue_comments')
    op.drop_table('issues')
    op.drop_table('users')

    # Drop enums
    op.execute('DROP TYPE IF EXISTS eventcategory')
    op.execute('DROP TYPE IF EXISTS issuestatus')
    op.execute('DROP TYPE IF EXISTS priority')
    op.execute('DROP TYPE IF EXISTS issuecategory')
    op.execute('DROP TYPE IF EXISTS userrole')
