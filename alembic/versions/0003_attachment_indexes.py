"""
Alembic migration: per-organization indexes for attachment lookups
"""
from alembic import op

# revision identifiers, used by Alembic.
revision = '0003_attachment_indexes'
down_revision = '0002_tenant_query_indexes'
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_index('idx_attachments_org_project', 'attachments', ['organization_id', 'project_id'])
    op.create_index('idx_attachments_org_task', 'attachments', ['organization_id', 'task_id'])


def downgrade() -> None:
    op.drop_index('idx_attachments_org_task', table_name='attachments')
    op.drop_index('idx_attachments_org_project', table_name='attachments')
