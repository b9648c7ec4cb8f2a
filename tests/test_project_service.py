from datetime import date, datetime, timedelta, timezone

import pytest

from vibecrm.models.client import Client
from vibecrm.models.project import Project, ProjectStatus, Priority
from vibecrm.services import project_service
from vibecrm.services.access_service import AccessScope

from .conftest import make_org, scope_for


@pytest.fixture
async def portfolio(db, tenant):
    """Five Acme projects with staggered creation times, plus one in another org"""
    org = tenant["org"]
    wayne = Client(organization_id=org.id, name="Wayne")
    stark = Client(organization_id=org.id, name="Stark")
    db.add_all([wayne, stark])
    await db.flush()

    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    specs = [
        ("Website", "Marketing site", wayne.id, ProjectStatus.ACTIVE, Priority.HIGH, date(2024, 1, 10), date(2024, 3, 1)),
        ("Mobile app", "iOS and Android", wayne.id, ProjectStatus.PLANNING, Priority.MEDIUM, date(2024, 2, 1), date(2024, 6, 30)),
        ("Brand refresh", "New logo for the website", stark.id, ProjectStatus.ACTIVE, Priority.LOW, date(2023, 12, 1), date(2024, 2, 1)),
        ("Audit", None, stark.id, ProjectStatus.COMPLETED, Priority.HIGH, None, None),
        ("Internal", "Housekeeping", None, ProjectStatus.ON_HOLD, Priority.MEDIUM, date(2024, 4, 1), date(2024, 4, 30)),
    ]
    projects = {}
    for i, (name, description, client_id, status, priority, start, due) in enumerate(specs):
        project = Project(
            organization_id=org.id,
            name=name,
            description=description,
            client_id=client_id,
            status=status,
            priority=priority,
            start_date=start,
            due_date=due,
            created_at=base + timedelta(days=i),
        )
        db.add(project)
        projects[name] = project

    other = await make_org(db, "Globex")
    db.add(Project(organization_id=other.id, name="Website for Globex"))
    await db.commit()
    return {"projects": projects, "wayne": wayne, "stark": stark, "scope": scope_for(tenant["owner"], org)}


def _names(result):
    return [p.name for p in result["data"]]


async def test_list_is_newest_first_and_scoped(db, portfolio):
    result = await project_service.list_projects(db, portfolio["scope"])
    assert result["total"] == 5
    assert _names(result) == ["Internal", "Audit", "Brand refresh", "Mobile app", "Website"]
    assert result["data"][-1].client.name == "Wayne"


async def test_search_matches_name_or_description(db, portfolio):
    result = await project_service.list_projects(db, portfolio["scope"], search="WEBSITE")
    assert _names(result) == ["Brand refresh", "Website"]
    assert result["total"] == 2


async def test_client_status_and_priority_filters(db, portfolio):
    scope = portfolio["scope"]
    by_client = await project_service.list_projects(db, scope, client_id=portfolio["stark"].id)
    assert _names(by_client) == ["Audit", "Brand refresh"]

    active = await project_service.list_projects(db, scope, status=ProjectStatus.ACTIVE)
    assert _names(active) == ["Brand refresh", "Website"]

    high = await project_service.list_projects(db, scope, priority=Priority.HIGH)
    assert _names(high) == ["Audit", "Website"]


async def test_date_window_filters(db, portfolio):
    scope = portfolio["scope"]
    started = await project_service.list_projects(db, scope, start_date=date(2024, 1, 10))
    assert _names(started) == ["Internal", "Mobile app", "Website"]

    due = await project_service.list_projects(db, scope, due_date=date(2024, 3, 1))
    assert _names(due) == ["Brand refresh", "Website"]

    both = await project_service.list_projects(db, scope, start_date=date(2024, 1, 1), due_date=date(2024, 6, 30))
    assert _names(both) == ["Internal", "Mobile app", "Website"]


async def test_pagination_keeps_full_total(db, portfolio):
    scope = portfolio["scope"]
    first = await project_service.list_projects(db, scope, page=1, page_size=2)
    second = await project_service.list_projects(db, scope, page=2, page_size=2)
    last = await project_service.list_projects(db, scope, page=3, page_size=2)

    assert _names(first) == ["Internal", "Audit"]
    assert _names(second) == ["Brand refresh", "Mobile app"]
    assert _names(last) == ["Website"]
    assert first["total"] == second["total"] == last["total"] == 5


async def test_filtered_total_counts_before_paging(db, portfolio):
    result = await project_service.list_projects(
        db, portfolio["scope"], client_id=portfolio["wayne"].id, page=1, page_size=1
    )
    assert _names(result) == ["Mobile app"]
    assert result["total"] == 2


async def test_empty_scope_lists_nothing(db, tenant, portfolio):
    result = await project_service.list_projects(db, AccessScope(user_id=tenant["owner"].id))
    assert result == {"data": [], "total": 0}
