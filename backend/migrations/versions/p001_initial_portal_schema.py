"""initial portal schema

Revision ID: p001_initial_portal
Revises:
Create Date: 2026-10-18 00:00:00.000000

Creates the payroll portal schema from scratch:
- permissions / roles / role_permissions / users: RBAC
- folder_groups / folders / folder_permissions: path-addressed folder tree
- blobs / pdf_documents: stored file content and PDF metadata
- submissions / submission_history / submission_attachments: review workflow
- system_events: administrative audit log
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'p001_initial_portal'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps(updated: bool = True):
    cols = [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
    ]
    if updated:
        cols.append(sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True))
    return cols


def upgrade():
    # ============================================================================
    # RBAC
    # ============================================================================
    op.create_table(
        'permissions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('key', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category', sa.String(length=64), nullable=True),
        *_timestamps(updated=False),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_permissions_key', 'permissions', ['key'], unique=True)
    op.create_index('ix_permissions_category', 'permissions', ['category'])

    op.create_table(
        'roles',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_roles_name', 'roles', ['name'], unique=True)

    op.create_table(
        'role_permissions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('role_id', sa.Integer(), nullable=False),
        sa.Column('permission_id', sa.Integer(), nullable=False),
        sa.Column('granted_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['role_id'], ['roles.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['permission_id'], ['permissions.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('role_id', 'permission_id', name='uq_role_permissions'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_role_permissions_role_id', 'role_permissions', ['role_id'])
    op.create_index('ix_role_permissions_permission_id', 'role_permissions', ['permission_id'])

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('first_name', sa.String(length=100), nullable=False),
        sa.Column('last_name', sa.String(length=100), nullable=False),
        sa.Column('ministry', sa.String(length=200), nullable=True),
        sa.Column('role_id', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        *_timestamps(),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['role_id'], ['roles.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_users_username', 'users', ['username'], unique=True)
    op.create_index('ix_users_role_active', 'users', ['role_id', 'is_active'])

    # ============================================================================
    # Folder tree
    # ============================================================================
    op.create_table(
        'folder_groups',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('code', sa.String(length=128), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('icon', sa.String(length=64), nullable=False, server_default='folder'),
        sa.Column('default_theme', sa.String(length=16), nullable=False, server_default='blue'),
        sa.Column('default_permissions', sa.JSON(), nullable=False),
        sa.Column('parent_group', sa.String(length=128), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('auto_generation_enabled', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('auto_generation_frequency', sa.String(length=16), nullable=False, server_default='monthly'),
        sa.Column('auto_generation_name_template', sa.String(length=128), nullable=False,
                  server_default='{month} {year}'),
        sa.Column('created_by_user_id', sa.Integer(), nullable=True),
        sa.Column('updated_by_user_id', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['updated_by_user_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_folder_groups_code', 'folder_groups', ['code'], unique=True)
    op.create_index('ix_folder_groups_parent_group', 'folder_groups', ['parent_group'])

    op.create_table(
        'folders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('page', sa.String(length=512), nullable=False),
        sa.Column('parent_path', sa.String(length=512), nullable=False, server_default='/'),
        sa.Column('parent_folder_id', sa.Integer(), nullable=True),
        sa.Column('group_code', sa.String(length=128), nullable=False),
        sa.Column('child_group', sa.String(length=128), nullable=True),
        sa.Column('subtitle', sa.String(length=500), nullable=True),
        sa.Column('label', sa.String(length=100), nullable=True),
        sa.Column('ministry_filter', sa.String(length=200), nullable=True),
        sa.Column('theme', sa.String(length=16), nullable=False, server_default='gray'),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        sa.Column('created_by_user_id', sa.Integer(), nullable=True),
        sa.Column('updated_by_user_id', sa.Integer(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['parent_folder_id'], ['folders.id'], ),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['updated_by_user_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        # Sibling names are unique under one parent
        sa.UniqueConstraint('name', 'parent_folder_id', name='uq_folders_name_parent'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_folders_page', 'folders', ['page'], unique=True)
    op.create_index('ix_folders_group_code', 'folders', ['group_code'])
    op.create_index('ix_folders_parent_path_group', 'folders', ['parent_path', 'group_code'])
    op.create_index('ix_folders_parent_active', 'folders', ['parent_folder_id', 'is_active'])
    op.create_index('ix_folders_group_active', 'folders', ['group_code', 'is_active'])

    op.create_table(
        'folder_permissions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('folder_id', sa.Integer(), nullable=False),
        sa.Column('permission_key', sa.String(length=64), nullable=False),
        sa.ForeignKeyConstraint(['folder_id'], ['folders.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('folder_id', 'permission_key', name='uq_folder_permissions'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_folder_permissions_folder_id', 'folder_permissions', ['folder_id'])
    op.create_index('ix_folder_permissions_key', 'folder_permissions', ['permission_key'])

    # ============================================================================
    # Stored files
    # ============================================================================
    op.create_table(
        'blobs',
        sa.Column('id', sa.String(length=32), nullable=False),
        sa.Column('content_type', sa.String(length=128), nullable=False),
        sa.Column('size_bytes', sa.Integer(), nullable=False),
        sa.Column('content', sa.LargeBinary(), nullable=False),
        *_timestamps(updated=False),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table(
        'pdf_documents',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('blob_id', sa.String(length=32), nullable=False),
        sa.Column('filename', sa.String(length=255), nullable=False),
        sa.Column('original_name', sa.String(length=255), nullable=False),
        sa.Column('content_type', sa.String(length=128), nullable=False),
        sa.Column('size_bytes', sa.Integer(), nullable=False),
        sa.Column('uploaded_by_id', sa.Integer(), nullable=True),
        sa.Column('uploaded_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['uploaded_by_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('blob_id'),
        sa.UniqueConstraint('filename'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_pdf_documents_uploaded_at', 'pdf_documents', ['uploaded_at'])

    # ============================================================================
    # Submission workflow
    # ============================================================================
    op.create_table(
        'submissions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('submission_number', sa.String(length=32), nullable=False),
        sa.Column('form_type', sa.String(length=32), nullable=False),
        sa.Column('form_data', sa.JSON(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='Submitted'),
        sa.Column('target_folder_id', sa.Integer(), nullable=False),
        sa.Column('current_folder_id', sa.Integer(), nullable=False),
        sa.Column('submitted_by_id', sa.Integer(), nullable=False),
        sa.Column('submitted_by_name', sa.String(length=200), nullable=False),
        sa.Column('ministry', sa.String(length=200), nullable=True),
        sa.Column('reviewed_by_id', sa.Integer(), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('review_notes', sa.Text(), nullable=True),
        sa.Column('processed_by_id', sa.Integer(), nullable=True),
        sa.Column('processed_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['target_folder_id'], ['folders.id'], ),
        sa.ForeignKeyConstraint(['current_folder_id'], ['folders.id'], ),
        sa.ForeignKeyConstraint(['submitted_by_id'], ['users.id'], ),
        sa.ForeignKeyConstraint(['reviewed_by_id'], ['users.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['processed_by_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_submissions_submission_number', 'submissions', ['submission_number'], unique=True)
    op.create_index('ix_submissions_form_type', 'submissions', ['form_type'])
    op.create_index('ix_submissions_status', 'submissions', ['status'])
    op.create_index('ix_submissions_submitter_created', 'submissions', ['submitted_by_id', 'created_at'])
    op.create_index('ix_submissions_status_created', 'submissions', ['status', 'created_at'])
    op.create_index('ix_submissions_current_folder', 'submissions', ['current_folder_id'])

    op.create_table(
        'submission_history',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('submission_id', sa.Integer(), nullable=False),
        sa.Column('action', sa.String(length=16), nullable=False),
        sa.Column('from_status', sa.String(length=16), nullable=True),
        sa.Column('to_status', sa.String(length=16), nullable=False),
        sa.Column('from_folder_id', sa.Integer(), nullable=True),
        sa.Column('to_folder_id', sa.Integer(), nullable=False),
        sa.Column('performed_by_id', sa.Integer(), nullable=True),
        sa.Column('performed_by_name', sa.String(length=200), nullable=False),
        sa.Column('comments', sa.Text(), nullable=True),
        sa.Column('occurred_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['submission_id'], ['submissions.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['performed_by_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_submission_history_submission_id', 'submission_history', ['submission_id'])

    op.create_table(
        'submission_attachments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('submission_id', sa.Integer(), nullable=False),
        sa.Column('blob_id', sa.String(length=32), nullable=False),
        sa.Column('filename', sa.String(length=255), nullable=False),
        sa.Column('original_name', sa.String(length=255), nullable=False),
        sa.Column('mimetype', sa.String(length=128), nullable=False),
        sa.Column('size_bytes', sa.Integer(), nullable=False),
        sa.Column('uploaded_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['submission_id'], ['submissions.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_submission_attachments_submission_id', 'submission_attachments', ['submission_id'])
    op.create_index('ix_submission_attachments_blob_id', 'submission_attachments', ['blob_id'])

    # ============================================================================
    # Audit log
    # ============================================================================
    op.create_table(
        'system_events',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('performed_by_id', sa.Integer(), nullable=True),
        sa.Column('performed_by_name', sa.String(length=200), nullable=False),
        sa.Column('action', sa.Text(), nullable=False),
        sa.Column('occurred_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_system_events_performed_by_id', 'system_events', ['performed_by_id'])
    op.create_index('ix_system_events_occurred_at', 'system_events', ['occurred_at'])


def downgrade():
    """Drop all tables (destructive operation)."""
    op.drop_table('system_events')
    op.drop_table('submission_attachments')
    op.drop_table('submission_history')
    op.drop_table('submissions')
    op.drop_table('pdf_documents')
    op.drop_table('blobs')
    op.drop_table('folder_permissions')
    op.drop_table('folders')
    op.drop_table('folder_groups')
    op.drop_table('users')
    op.drop_table('role_permissions')
    op.drop_table('roles')
    op.drop_table('permissions')
