import pytest

from vibecrm.models.client import Client, ClientStatus
from vibecrm.services import client_service

from .conftest import make_org, scope_for


@pytest.fixture
async def clients(db, tenant):
    org = tenant["org"]
    db.add_all([
        Client(organization_id=org.id, name="Wayne Enterprises", email="billing@wayne.example.com"),
        Client(organization_id=org.id, name="Acme Corp", email="ap@acme.example.com", status=ClientStatus.PROSPECT),
        Client(organization_id=org.id, name="Stark Industries", email="pepper@stark.example.com"),
        Client(organization_id=org.id, name="Cyberdyne", status=ClientStatus.INACTIVE),
    ])
    other = await make_org(db, "Globex")
    db.add(Client(organization_id=other.id, name="Aardvark Ltd"))
    await db.commit()
    return scope_for(tenant["owner"], org)


async def test_list_is_ordered_by_name_within_the_organization(db, clients):
    result = await client_service.list_clients(db, clients)
    assert [c.name for c in result] == ["Acme Corp", "Cyberdyne", "Stark Industries", "Wayne Enterprises"]


async def test_search_matches_name_or_email(db, clients):
    by_name = await client_service.list_clients(db, clients, search="stark")
    assert [c.name for c in by_name] == ["Stark Industries"]

    by_email = await client_service.list_clients(db, clients, search="BILLING@")
    assert [c.name for c in by_email] == ["Wayne Enterprises"]

    assert await client_service.list_clients(db, clients, search="aardvark") == []


async def test_status_filter(db, clients):
    prospects = await client_service.list_clients(db, clients, status=ClientStatus.PROSPECT)
    assert [c.name for c in prospects] == ["Acme Corp"]

    active = await client_service.list_clients(db, clients, status=ClientStatus.ACTIVE)
    assert [c.name for c in active] == ["Stark Industries", "Wayne Enterprises"]


async def test_search_and_status_combine(db, clients):
    result = await client_service.list_clients(db, clients, search="e", status=ClientStatus.INACTIVE)
    assert [c.name for c in result] == ["Cyberdyne"]


async def test_superadmin_without_organization_sees_all(db, tenant, clients):
    result = await client_service.list_clients(db, scope_for(tenant["owner"], superadmin=True))
    assert [c.name for c in result][0] == "Aardvark Ltd"
    assert len(result) == 5
