import pytest
from sqlalchemy import func, select

from vibecrm.core.errors import ConflictError, PermissionDeniedError, ValidationFailedError
from vibecrm.models.client import Client
from vibecrm.models.invoice import Invoice, InvoiceLineItem
from vibecrm.models.project import Project
from vibecrm.models.task import Task
from vibecrm.models.user import AppRole, OrganizationMember
from vibecrm.schemas.organization import OrganizationCreate, OrganizationUpdate
from vibecrm.services import organization_service

from .conftest import make_org, make_superadmin, make_user, scope_for


@pytest.mark.parametrize(
    "name, slug",
    [
        ("Acme Corp", "acme-corp"),
        ("  Stark   Industries ", "stark-industries"),
        ("Café & Co.", "caf-co"),
        ("under_score", "under_score"),
    ],
)
def test_slugify(name, slug):
    assert organization_service.slugify(name) == slug


async def test_create_organization_makes_caller_owner(db):
    user = await make_user(db, "founder@example.com")
    org = await organization_service.create_organization(db, user.id, OrganizationCreate(name="Initech"))
    await db.commit()

    assert org.slug == "initech"
    assert org.plan == "free"
    membership = await organization_service.get_membership(db, user.id)
    assert membership.organization_id == org.id
    assert membership.role == AppRole.OWNER


async def test_duplicate_organization_name(db):
    user = await make_user(db, "founder@example.com")
    await organization_service.create_organization(db, user.id, OrganizationCreate(name="Initech"))
    await db.commit()
    with pytest.raises(ConflictError, match="already exists"):
        await organization_service.create_organization(db, user.id, OrganizationCreate(name="initech"))


async def test_organization_name_needs_letters(db):
    user = await make_user(db, "founder@example.com")
    with pytest.raises(ValidationFailedError):
        await organization_service.create_organization(db, user.id, OrganizationCreate(name="!!!"))


def test_website_must_be_a_url():
    with pytest.raises(ValueError, match="Enter a valid URL"):
        OrganizationUpdate(website="not a url")
    assert OrganizationUpdate(website="").website is None
    assert OrganizationUpdate(website="https://acme.test").website == "https://acme.test"


def test_legal_name_length():
    with pytest.raises(ValueError, match="255 characters"):
        OrganizationUpdate(legal_name="x" * 256)


async def test_list_organizations_is_superadmin_only(db, tenant):
    root = await make_superadmin(db)
    await make_org(db, "Globex")

    assert await organization_service.list_organizations(db, scope_for(tenant["owner"], tenant["org"])) == []

    orgs = await organization_service.list_organizations(db, scope_for(root, superadmin=True))
    counts = {org["name"]: org["member_count"] for org in orgs}
    assert counts == {"Acme": 3, "Globex": 0}


async def test_update_organization(db, tenant):
    root = await make_superadmin(db)
    other = await make_org(db, "Globex")

    with pytest.raises(PermissionDeniedError):
        await organization_service.update_organization(
            db, tenant["owner"].id, tenant["org"].id, OrganizationUpdate(industry="Anvils")
        )
    with pytest.raises(ConflictError):
        await organization_service.update_organization(
            db, root.id, tenant["org"].id, OrganizationUpdate(name="GLOBEX")
        )
    with pytest.raises(ValidationFailedError):
        await organization_service.update_organization(db, root.id, other.id, OrganizationUpdate(name="  "))

    org = await organization_service.update_organization(
        db, root.id, tenant["org"].id, OrganizationUpdate(name="Acme Inc", tax_id="DE123")
    )
    assert (org.name, org.tax_id) == ("Acme Inc", "DE123")


async def test_delete_organization_removes_tenant_data(db, tenant):
    root = await make_superadmin(db)
    org = tenant["org"]
    client = Client(organization_id=org.id, name="Wayne")
    db.add(client)
    await db.flush()
    project = Project(organization_id=org.id, name="Site", client_id=client.id)
    invoice = Invoice(organization_id=org.id, client_id=client.id, invoice_number="INV-1")
    db.add_all([project, invoice])
    await db.flush()
    db.add_all([
        Task(organization_id=org.id, project_id=project.id, title="Build"),
        InvoiceLineItem(invoice_id=invoice.id, description="Work", unit_price=10),
    ])
    await db.commit()

    await organization_service.delete_organization(db, root.id, org.id)
    await db.commit()

    for model in (Client, Project, Task, Invoice, InvoiceLineItem, OrganizationMember):
        assert (await db.execute(select(func.count(model.id)))).scalar() == 0


async def test_member_role_management(db, tenant):
    members = await organization_service.list_members(db, tenant["org"].id)
    member_row = next(m for m in members if m["user_id"] == tenant["member"].id)

    with pytest.raises(PermissionDeniedError):
        await organization_service.update_member_role(db, tenant["member"].id, member_row["id"], AppRole.ADMIN)
    with pytest.raises(ValidationFailedError):
        await organization_service.update_member_role(
            db, tenant["owner"].id, member_row["id"], AppRole.SUPERADMIN
        )

    member = await organization_service.update_member_role(db, tenant["owner"].id, member_row["id"], AppRole.ADMIN)
    assert member.role == AppRole.ADMIN

    await organization_service.remove_member(db, tenant["owner"].id, member_row["id"])
    await db.commit()
    assert len(await organization_service.list_members(db, tenant["org"].id)) == 2
