"""
Alembic migration: composite indexes for tenant-scoped list and revenue queries
"""
from alembic import op

# revision identifiers, used by Alembic.
revision = '0002_tenant_query_indexes'
down_revision = '0001_initial_schema'
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_index('idx_clients_org_id_id', 'clients', ['organization_id', 'id'])
    op.create_index('idx_projects_org_client', 'projects', ['organization_id', 'client_id'])
    op.create_index(
        'idx_projects_org_status_priority_created', 'projects',
        ['organization_id', 'status', 'priority', 'created_at'],
    )
    op.create_index('idx_tasks_org_project_status', 'tasks', ['organization_id', 'project_id', 'status'])
    op.create_index('idx_invoices_revenue_query', 'invoices', ['organization_id', 'status', 'issue_date'])


def downgrade() -> None:
    op.drop_index('idx_invoices_revenue_query', table_name='invoices')
    op.drop_index('idx_tasks_org_project_status', table_name='tasks')
    op.drop_index('idx_projects_org_status_priority_created', table_name='projects')
    op.drop_index('idx_projects_org_client', table_name='projects')
    op.drop_index('idx_clients_org_id_id', table_name='clients')
