import pytest
from sqlalchemy import select

from vibecrm.core.errors import PermissionDeniedError, ValidationFailedError
from vibecrm.models.user import AppRole
from vibecrm.services import access_service
from vibecrm.services.access_service import AccessScope
from vibecrm.models.client import Client

from .conftest import add_member, make_org, make_superadmin, make_user


async def test_superadmin_overlay(db, tenant):
    root = await make_superadmin(db)
    assert await access_service.is_superadmin(db, root.id) is True
    assert await access_service.is_superadmin(db, tenant["owner"].id) is False
    assert await access_service.is_superadmin(db, None) is False
    # superadmin needs no membership
    assert await access_service.has_org_access(db, root.id, tenant["org"].id) is True
    assert await access_service.can_manage_invoices(db, root.id, tenant["org"].id) is True


async def test_role_matrix(db, tenant):
    org_id = tenant["org"].id
    client_user = await make_user(db, "viewer@acme.example.com")
    await add_member(db, tenant["org"], client_user, AppRole.CLIENT)

    assert await access_service.can_manage_records(db, tenant["member"].id, org_id) is True
    assert await access_service.can_manage_invoices(db, tenant["member"].id, org_id) is False
    assert await access_service.can_manage_invoices(db, tenant["admin"].id, org_id) is True
    assert await access_service.can_manage_members(db, tenant["owner"].id, org_id) is True

    assert await access_service.has_org_access(db, client_user.id, org_id) is True
    assert await access_service.can_manage_records(db, client_user.id, org_id) is False


async def test_outsider_has_no_access(db, tenant):
    outsider = await make_user(db, "stranger@other.example.com")
    assert await access_service.has_org_access(db, outsider.id, tenant["org"].id) is False
    with pytest.raises(PermissionDeniedError):
        await access_service.require_org_access(db, outsider.id, tenant["org"].id)
    with pytest.raises(PermissionDeniedError):
        await access_service.require_manage_records(db, outsider.id, None)


async def test_resolve_scope_defaults_to_membership(db, tenant):
    scope = await access_service.resolve_scope(db, tenant["member"].id)
    assert scope.organization_id == tenant["org"].id
    assert scope.is_superadmin is False
    assert scope.is_empty is False


async def test_resolve_scope_rejects_foreign_org(db, tenant):
    other = await make_org(db, "Globex")
    with pytest.raises(PermissionDeniedError):
        await access_service.resolve_scope(db, tenant["member"].id, other.id)


async def test_resolve_scope_for_superadmin_is_global(db, tenant):
    root = await make_superadmin(db)
    scope = await access_service.resolve_scope(db, root.id)
    assert scope.is_global is True
    assert scope.allows(tenant["org"].id) is True

    narrowed = await access_service.resolve_scope(db, root.id, tenant["org"].id)
    assert narrowed.is_global is False
    assert narrowed.organization_id == tenant["org"].id


async def test_user_without_org_gets_empty_scope(db):
    loner = await make_user(db, "loner@example.com")
    scope = await access_service.resolve_scope(db, loner.id)
    assert scope.is_empty is True
    assert scope.allows("anything") is False
    with pytest.raises(ValidationFailedError, match="Organization is required"):
        access_service.resolve_target_org(scope)


async def test_scope_apply_filters_by_org(db, tenant):
    other = await make_org(db, "Globex")
    db.add_all([
        Client(organization_id=tenant["org"].id, name="Mine"),
        Client(organization_id=other.id, name="Theirs"),
    ])
    await db.commit()

    scoped = AccessScope(user_id=tenant["owner"].id, organization_id=tenant["org"].id)
    result = await db.execute(scoped.apply(select(Client.name), Client.organization_id))
    assert result.scalars().all() == ["Mine"]

    global_scope = AccessScope(user_id="root", is_superadmin=True)
    result = await db.execute(global_scope.apply(select(Client.name), Client.organization_id))
    assert sorted(result.scalars().all()) == ["Mine", "Theirs"]
