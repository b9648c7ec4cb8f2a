"""
Alembic migration: initial CRM schema

Creates organizations, users/profiles/roles, memberships, clients, projects,
tasks, invoices with line items, and attachments.
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None

app_role = postgresql.ENUM('superadmin', 'owner', 'admin', 'member', 'client', name='app_role', create_type=False)
client_status = postgresql.ENUM('active', 'inactive', 'prospect', name='client_status', create_type=False)
project_status = postgresql.ENUM(
    'planning', 'active', 'on_hold', 'completed', 'cancelled', name='project_status', create_type=False
)
project_priority = postgresql.ENUM('low', 'medium', 'high', 'urgent', name='project_priority', create_type=False)
task_status = postgresql.ENUM('backlog', 'todo', 'in_progress', 'review', 'done', name='task_status', create_type=False)
task_priority = postgresql.ENUM('low', 'medium', 'high', 'urgent', name='task_priority', create_type=False)
invoice_status = postgresql.ENUM('pending', 'sent', 'paid', name='invoice_status', create_type=False)

ENUMS = [app_role, client_status, project_status, project_priority, task_status, task_priority, invoice_status]


def _timestamps(updated: bool = True):
    columns = [sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False)]
    if updated:
        columns.append(
            sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('NOW()'), nullable=False)
        )
    return columns


def upgrade() -> None:
    bind = op.get_bind()
    for enum_type in ENUMS:
        enum_type.create(bind, checkfirst=True)

    op.create_table(
        'organizations',
        sa.Column('id', sa.String(), primary_key=True, index=True),
        *_timestamps(),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('slug', sa.String(length=255), nullable=False),
        sa.Column('logo_url', sa.Text()),
        sa.Column('plan', sa.String(length=50), server_default='free'),
        sa.Column('legal_name', sa.Text()),
        sa.Column('tax_id', sa.String(length=100)),
        sa.Column('website', sa.Text()),
        sa.Column('industry', sa.Text()),
    )
    op.create_index('ix_organizations_slug', 'organizations', ['slug'], unique=True)

    op.create_table(
        'users',
        sa.Column('id', sa.String(), primary_key=True, index=True),
        *_timestamps(),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('hashed_password', sa.String(length=255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'profiles',
        sa.Column('id', sa.String(), sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
        *_timestamps(),
        sa.Column('first_name', sa.Text()),
        sa.Column('last_name', sa.Text()),
        sa.Column('avatar_url', sa.Text()),
        sa.Column('biography', sa.Text()),
    )

    op.create_table(
        'user_roles',
        sa.Column('id', sa.String(), primary_key=True, index=True),
        *_timestamps(updated=False),
        sa.Column('user_id', sa.String(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('role', app_role, nullable=False),
        sa.UniqueConstraint('user_id', 'role', name='uq_user_roles_user_role'),
    )

    op.create_table(
        'organization_members',
        sa.Column('id', sa.String(), primary_key=True, index=True),
        *_timestamps(updated=False),
        sa.Column('organization_id', sa.String(), sa.ForeignKey('organizations.id', ondelete='CASCADE'),
                  nullable=False, index=True),
        sa.Column('user_id', sa.String(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('role', app_role, nullable=False, server_default='member'),
        sa.UniqueConstraint('organization_id', 'user_id', name='uq_organization_members_org_user'),
    )

    op.create_table(
        'clients',
        sa.Column('id', sa.String(), primary_key=True, index=True),
        *_timestamps(),
        sa.Column('organization_id', sa.String(), sa.ForeignKey('organizations.id', ondelete='CASCADE'),
                  nullable=False, index=True),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('email', sa.Text()),
        sa.Column('phone', sa.Text()),
        sa.Column('vat_number', sa.Text()),
        sa.Column('address', sa.Text()),
        sa.Column('notes', sa.Text()),
        sa.Column('status', client_status, nullable=False, server_default='active'),
    )

    op.create_table(
        'projects',
        sa.Column('id', sa.String(), primary_key=True, index=True),
        *_timestamps(),
        sa.Column('organization_id', sa.String(), sa.ForeignKey('organizations.id', ondelete='CASCADE'),
                  nullable=False, index=True),
        sa.Column('client_id', sa.String(), sa.ForeignKey('clients.id', ondelete='SET NULL'), index=True),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('status', project_status, nullable=False, server_default='planning'),
        sa.Column('priority', project_priority, nullable=False, server_default='medium'),
        sa.Column('budget', sa.Numeric(12, 2)),
        sa.Column('start_date', sa.Date()),
        sa.Column('due_date', sa.Date()),
    )

    op.create_table(
        'tasks',
        sa.Column('id', sa.String(), primary_key=True, index=True),
        *_timestamps(),
        sa.Column('organization_id', sa.String(), sa.ForeignKey('organizations.id', ondelete='CASCADE'),
                  nullable=False, index=True),
        sa.Column('project_id', sa.String(), sa.ForeignKey('projects.id', ondelete='CASCADE'), index=True),
        sa.Column('assignee_id', sa.String(), sa.ForeignKey('users.id', ondelete='SET NULL'), index=True),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('status', task_status, nullable=False, server_default='backlog'),
        sa.Column('priority', task_priority, nullable=False, server_default='medium'),
        sa.Column('position', sa.Integer(), server_default='0'),
        sa.Column('due_date', sa.Date()),
    )

    op.create_table(
        'invoices',
        sa.Column('id', sa.String(), primary_key=True, index=True),
        *_timestamps(),
        sa.Column('organization_id', sa.String(), sa.ForeignKey('organizations.id', ondelete='CASCADE'),
                  nullable=False, index=True),
        sa.Column('client_id', sa.String(), sa.ForeignKey('clients.id', ondelete='SET NULL'), index=True),
        sa.Column('invoice_number', sa.Text(), nullable=False),
        sa.Column('total_amount', sa.Numeric(12, 2), server_default='0'),
        sa.Column('status', invoice_status, nullable=False, server_default='pending'),
        sa.Column('issue_date', sa.Date(), server_default=sa.text('CURRENT_DATE')),
        sa.Column('due_date', sa.Date()),
        sa.Column('notes', sa.Text()),
        sa.UniqueConstraint('organization_id', 'invoice_number', name='uq_invoices_org_number'),
    )

    op.create_table(
        'invoice_line_items',
        sa.Column('id', sa.String(), primary_key=True, index=True),
        *_timestamps(updated=False),
        sa.Column('invoice_id', sa.String(), sa.ForeignKey('invoices.id', ondelete='CASCADE'),
                  nullable=False, index=True),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('quantity', sa.Numeric(12, 2), server_default='1'),
        sa.Column('unit_price', sa.Numeric(12, 2), nullable=False),
        sa.Column('position', sa.Integer(), server_default='0'),
    )

    op.create_table(
        'attachments',
        sa.Column('id', sa.String(), primary_key=True, index=True),
        *_timestamps(updated=False),
        sa.Column('organization_id', sa.String(), sa.ForeignKey('organizations.id', ondelete='CASCADE'),
                  nullable=False, index=True),
        sa.Column('project_id', sa.String(), sa.ForeignKey('projects.id', ondelete='CASCADE'), index=True),
        sa.Column('task_id', sa.String(), sa.ForeignKey('tasks.id', ondelete='CASCADE'), index=True),
        sa.Column('file_name', sa.Text(), nullable=False),
        sa.Column('file_url', sa.Text(), nullable=False),
        sa.Column('file_type', sa.String(length=255)),
        sa.Column('file_size', sa.Integer()),
        sa.Column('uploaded_by', sa.String(), sa.ForeignKey('users.id', ondelete='SET NULL')),
    )


def downgrade() -> None:
    for table in (
        'attachments', 'invoice_line_items', 'invoices', 'tasks', 'projects', 'clients',
        'organization_members', 'user_roles', 'profiles', 'users', 'organizations',
    ):
        op.drop_table(table)
    bind = op.get_bind()
    for enum_type in reversed(ENUMS):
        enum_type.drop(bind, checkfirst=True)
