from datetime import date
from decimal import Decimal

import pytest

from vibecrm.core.errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationFailedError
from vibecrm.models.client import Client
from vibecrm.models.invoice import Invoice, InvoiceStatus
from vibecrm.schemas.invoice import InvoiceCreate, InvoiceLineItemIn, InvoiceUpdate
from vibecrm.services import invoice_service

from .conftest import make_org, scope_for


@pytest.fixture
async def acme_client(db, tenant):
    client = Client(organization_id=tenant["org"].id, name="Wayne Enterprises", email="billing@wayne.example.com")
    db.add(client)
    await db.commit()
    return client


def _create(client_id, **overrides):
    data = {
        "client_id": client_id,
        "issue_date": date.today(),
        "items": [
            {"description": "Design", "quantity": "2", "unit_price": "100"},
            {"description": "Hosting", "quantity": "1", "unit_price": "25.50"},
        ],
    }
    data.update(overrides)
    return InvoiceCreate(**data)


def test_calculate_total():
    items = [
        InvoiceLineItemIn(description="a", quantity="1.5", unit_price="10"),
        InvoiceLineItemIn(description="b", quantity="3", unit_price="0.99"),
    ]
    assert invoice_service.calculate_total(items) == Decimal("17.97")


async def test_invoice_numbers_follow_yearly_sequence(db, tenant):
    org = tenant["org"]
    today = date(2024, 8, 1)
    assert await invoice_service.generate_invoice_number(db, org.id, today=today) == "INV-2024-0001"

    db.add_all([
        Invoice(organization_id=org.id, invoice_number="INV-2024-0007"),
        Invoice(organization_id=org.id, invoice_number="INV-2023-0042"),
        Invoice(organization_id=org.id, invoice_number="CUSTOM-1"),
    ])
    await db.commit()
    assert await invoice_service.generate_invoice_number(db, org.id, today=today) == "INV-2024-0008"
    assert await invoice_service.generate_invoice_number(db, org.id, today=date(2025, 1, 2)) == "INV-2025-0001"


async def test_invoice_numbers_are_per_organization(db, tenant):
    other = await make_org(db, "Globex")
    db.add(Invoice(organization_id=other.id, invoice_number="INV-2024-0003"))
    await db.commit()
    number = await invoice_service.generate_invoice_number(db, tenant["org"].id, today=date(2024, 1, 1))
    assert number == "INV-2024-0001"


async def test_create_invoice(db, tenant, acme_client):
    scope = scope_for(tenant["admin"], tenant["org"])
    invoice = await invoice_service.create_invoice(db, scope, _create(acme_client.id))
    await db.commit()

    assert invoice.invoice_number == f"INV-{date.today().year}-0001"
    assert invoice.total_amount == Decimal("225.50")
    assert invoice.status == InvoiceStatus.PENDING
    assert [item.description for item in invoice.line_items] == ["Design", "Hosting"]
    assert invoice.client.name == "Wayne Enterprises"
    assert invoice.organization.id == tenant["org"].id


async def test_member_cannot_create_invoice(db, tenant, acme_client):
    scope = scope_for(tenant["member"], tenant["org"])
    with pytest.raises(PermissionDeniedError):
        await invoice_service.create_invoice(db, scope, _create(acme_client.id))


async def test_duplicate_number_conflicts(db, tenant, acme_client):
    scope = scope_for(tenant["owner"], tenant["org"])
    await invoice_service.create_invoice(db, scope, _create(acme_client.id, invoice_number="INV-X"))
    await db.commit()
    with pytest.raises(ConflictError):
        await invoice_service.create_invoice(db, scope, _create(acme_client.id, invoice_number="INV-X"))


async def test_client_from_another_org_is_rejected(db, tenant):
    other = await make_org(db, "Globex")
    foreign = Client(organization_id=other.id, name="Not yours")
    db.add(foreign)
    await db.commit()
    scope = scope_for(tenant["owner"], tenant["org"])
    with pytest.raises(ValidationFailedError):
        await invoice_service.create_invoice(db, scope, _create(foreign.id))


async def test_update_line_items_diff(db, tenant, acme_client):
    scope = scope_for(tenant["owner"], tenant["org"])
    invoice = await invoice_service.create_invoice(db, scope, _create(acme_client.id))
    await db.commit()
    design, hosting = invoice.line_items

    updated = await invoice_service.update_invoice(
        db,
        scope,
        invoice.id,
        InvoiceUpdate(items=[
            {"id": design.id, "description": "Design (revised)", "quantity": "3", "unit_price": "100"},
            {"description": "Support", "quantity": "2", "unit_price": "10"},
        ]),
    )
    await db.commit()

    descriptions = [item.description for item in updated.line_items]
    assert descriptions == ["Design (revised)", "Support"]
    assert design.id in {item.id for item in updated.line_items}
    assert hosting.id not in {item.id for item in updated.line_items}
    assert updated.total_amount == Decimal("320")


async def test_update_rejects_due_date_before_stored_issue_date(db, tenant, acme_client):
    scope = scope_for(tenant["owner"], tenant["org"])
    invoice = await invoice_service.create_invoice(
        db, scope, _create(acme_client.id, issue_date=date(2024, 5, 10))
    )
    await db.commit()
    with pytest.raises(ValidationFailedError):
        await invoice_service.update_invoice(db, scope, invoice.id, InvoiceUpdate(due_date=date(2024, 5, 1)))


async def test_invoice_is_invisible_to_other_tenants(db, tenant, acme_client):
    owner_scope = scope_for(tenant["owner"], tenant["org"])
    invoice = await invoice_service.create_invoice(db, owner_scope, _create(acme_client.id))
    await db.commit()

    other = await make_org(db, "Globex")
    stranger_scope = scope_for(tenant["owner"], other)
    assert await invoice_service.find_invoice(db, stranger_scope, invoice.id) is None
    with pytest.raises(NotFoundError):
        await invoice_service.get_invoice(db, stranger_scope, invoice.id)


async def test_mark_paid_and_delete(db, tenant, acme_client):
    scope = scope_for(tenant["owner"], tenant["org"])
    invoice = await invoice_service.create_invoice(db, scope, _create(acme_client.id))
    await db.commit()

    paid = await invoice_service.mark_status(db, scope, invoice.id, InvoiceStatus.PAID)
    assert paid.status == InvoiceStatus.PAID

    await invoice_service.delete_invoice(db, scope, invoice.id)
    await db.commit()
    listing = await invoice_service.list_invoices(db, scope)
    assert listing == {"data": [], "total": 0}


async def test_list_invoices_filters(db, tenant, acme_client):
    scope = scope_for(tenant["owner"], tenant["org"])
    await invoice_service.create_invoice(db, scope, _create(acme_client.id, invoice_number="INV-A"))
    await invoice_service.create_invoice(
        db, scope, _create(acme_client.id, invoice_number="INV-B", status="paid")
    )
    await db.commit()

    paid = await invoice_service.list_invoices(db, scope, status=InvoiceStatus.PAID)
    assert [i.invoice_number for i in paid["data"]] == ["INV-B"]
    assert paid["total"] == 1

    searched = await invoice_service.list_invoices(db, scope, search="inv-a")
    assert searched["total"] == 1
