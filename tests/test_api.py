from datetime import date

import pytest

from vibecrm.core.errors import add_error_listener, clear_error_listeners
from vibecrm.services import dashboard_service

from .conftest import auth_headers, make_superadmin

API = "/api/v1"


async def _signup(client, email="founder@example.com", password="password123"):
    response = await client.post(f"{API}/auth/signup", json={"email": email, "password": password})
    assert response.status_code == 201, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
async def owner_headers(client):
    headers = await _signup(client)
    response = await client.post(f"{API}/organizations/", json={"name": "Initech"}, headers=headers)
    assert response.status_code == 201, response.text
    return headers


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert "x-process-time" in response.headers


async def test_login_and_me(client):
    await _signup(client, "jane@example.com")
    response = await client.post(f"{API}/auth/login", json={"email": "jane@example.com", "password": "password123"})
    assert response.status_code == 200
    tokens = response.json()

    me = await client.get(f"{API}/auth/me", headers={"Authorization": f"Bearer {tokens['access_token']}"})
    assert me.status_code == 200
    assert me.json()["email"] == "jane@example.com"
    assert me.json()["is_superadmin"] is False
    assert me.json()["membership"] is None

    refreshed = await client.post(f"{API}/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert refreshed.status_code == 200

    bad = await client.post(f"{API}/auth/login", json={"email": "jane@example.com", "password": "nope-nope"})
    assert bad.status_code == 401


async def test_requires_authentication(client):
    response = await client.get(f"{API}/clients/")
    assert response.status_code in (401, 403)


async def test_current_organization(client, owner_headers):
    response = await client.get(f"{API}/organizations/current", headers=owner_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["role"] == "owner"
    assert body["organization"]["slug"] == "initech"


async def test_crm_flow(client, owner_headers):
    response = await client.post(
        f"{API}/clients/", json={"name": "Wayne Enterprises", "email": "billing@wayne.example.com"}, headers=owner_headers
    )
    assert response.status_code == 201, response.text
    client_id = response.json()["id"]

    response = await client.post(
        f"{API}/projects/",
        json={"name": "Website", "client_id": client_id, "budget": "5000", "priority": "high"},
        headers=owner_headers,
    )
    assert response.status_code == 201, response.text
    project = response.json()
    assert project["client"]["name"] == "Wayne Enterprises"
    assert project["budget"] == 5000.0

    response = await client.post(
        f"{API}/tasks/", json={"title": "Wireframes", "project_id": project["id"]}, headers=owner_headers
    )
    assert response.status_code == 201, response.text
    task_id = response.json()["id"]

    response = await client.patch(f"{API}/tasks/{task_id}/status", json={"status": "in_progress"}, headers=owner_headers)
    assert response.status_code == 200
    board = (await client.get(f"{API}/tasks/board", headers=owner_headers)).json()["columns"]
    assert [t["id"] for t in board["in_progress"]] == [task_id]
    assert board["backlog"] == []

    number = (await client.get(f"{API}/invoices/next-number", headers=owner_headers)).json()["invoice_number"]
    assert number == f"INV-{date.today().year}-0001"

    response = await client.post(
        f"{API}/invoices/",
        json={
            "client_id": client_id,
            "issue_date": date.today().isoformat(),
            "status": "paid",
            "items": [{"description": "Build", "quantity": 2, "unit_price": 1500}],
        },
        headers=owner_headers,
    )
    assert response.status_code == 201, response.text
    invoice = response.json()
    assert invoice["invoice_number"] == number
    assert invoice["total_amount"] == 3000.0
    assert invoice["line_items"][0]["total"] == 3000.0

    stats = (await client.get(f"{API}/dashboard/stats", headers=owner_headers)).json()
    assert (stats["clients"], stats["projects"], stats["tasks"], stats["invoices"]) == (1, 1, 1, 1)

    revenue = (await client.get(f"{API}/dashboard/revenue", headers=owner_headers)).json()
    assert revenue == [{"month": date.today().strftime("%Y-%m"), "revenue": 3000.0, "invoice_count": 1}]

    pdf = await client.get(f"{API}/invoices/{invoice['id']}/pdf", headers=owner_headers)
    assert pdf.status_code == 200
    assert pdf.headers["content-type"] == "application/pdf"
    assert pdf.content.startswith(b"%PDF")

    sent = await client.post(f"{API}/invoices/{invoice['id']}/send", headers=owner_headers)
    assert sent.status_code == 200, sent.text
    assert sent.json()["emailSkipped"] is True
    assert "Email delivery skipped" in sent.json()["message"]
    refreshed = (await client.get(f"{API}/invoices/{invoice['id']}", headers=owner_headers)).json()
    assert refreshed["status"] == "sent"

    response = await client.delete(f"{API}/clients/{client_id}", headers=owner_headers)
    assert response.status_code == 204
    project_after = (await client.get(f"{API}/projects/{project['id']}", headers=owner_headers)).json()
    assert project_after["client_id"] is None


async def test_invoice_validation_errors(client, owner_headers):
    response = await client.post(
        f"{API}/invoices/",
        json={
            "client_id": "c-1",
            "issue_date": "2024-03-10",
            "due_date": "2024-03-01",
            "items": [{"description": "x", "unit_price": 1}],
        },
        headers=owner_headers,
    )
    assert response.status_code == 422
    errors = response.json()["detail"]
    assert errors[0]["loc"][-1] == "due_date"


async def test_tenant_isolation(client, owner_headers):
    created = await client.post(f"{API}/clients/", json={"name": "Private"}, headers=owner_headers)
    client_id = created.json()["id"]

    other_headers = await _signup(client, "rival@example.com")
    await client.post(f"{API}/organizations/", json={"name": "Rival"}, headers=other_headers)

    assert (await client.get(f"{API}/clients/", headers=other_headers)).json() == []
    assert (await client.get(f"{API}/clients/{client_id}", headers=other_headers)).status_code == 404

    own_org = (await client.get(f"{API}/organizations/current", headers=owner_headers)).json()["organization_id"]
    response = await client.get(f"{API}/clients/", params={"organization_id": own_org}, headers=other_headers)
    assert response.status_code == 403


async def test_superadmin_sees_everything(client, db, owner_headers):
    await client.post(f"{API}/clients/", json={"name": "Wayne"}, headers=owner_headers)
    root = await make_superadmin(db)

    orgs = (await client.get(f"{API}/organizations/", headers=auth_headers(root))).json()
    assert [o["name"] for o in orgs] == ["Initech"]
    assert orgs[0]["member_count"] == 1

    stats = (await client.get(f"{API}/dashboard/stats", headers=auth_headers(root))).json()
    assert stats["organization_id"] == "all"
    assert stats["clients"] == 1

    me = (await client.get(f"{API}/auth/me", headers=auth_headers(root))).json()
    assert me["is_superadmin"] is True


async def test_user_without_organization_sees_nothing(client):
    headers = await _signup(client, "loner@example.com")
    assert (await client.get(f"{API}/clients/", headers=headers)).json() == []
    assert (await client.get(f"{API}/dashboard/stats", headers=headers)).json() is None
    response = await client.post(f"{API}/clients/", json={"name": "Nope"}, headers=headers)
    assert response.status_code == 422
    assert response.json() == {"detail": "Organization is required"}


async def test_error_boundary_hides_details(client, owner_headers, monkeypatch):
    seen = []
    add_error_listener(lambda exc, request: seen.append((type(exc), request.url.path)))

    async def broken(*args, **kwargs):
        raise RuntimeError("database exploded")

    monkeypatch.setattr(dashboard_service, "get_organization_stats", broken)
    try:
        response = await client.get(f"{API}/dashboard/stats", headers=owner_headers)
    finally:
        clear_error_listeners()

    assert response.status_code == 500
    assert response.json() == {"detail": "Something went wrong"}
    assert seen == [(RuntimeError, f"{API}/dashboard/stats")]


async def test_functions_send_invoice(client, owner_headers):
    client_id = (await client.post(f"{API}/clients/", json={"name": "Acme"}, headers=owner_headers)).json()["id"]
    invoice = (await client.post(
        f"{API}/invoices/",
        json={
            "client_id": client_id,
            "issue_date": date.today().isoformat(),
            "items": [{"description": "Work", "quantity": 1, "unit_price": 10}],
        },
        headers=owner_headers,
    )).json()

    response = await client.post(
        "/functions/v1/send-invoice",
        json={"invoice_id": invoice["id"], "recipient_email": "ap@acme.example.com", "pdf_base64": "cGRm"},
        headers=owner_headers,
    )
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["emailSkipped"] is True
    assert body["message"].startswith(f"Invoice {invoice['invoice_number']} processed successfully.")

    # Invoice without a client e-mail cannot be sent from the REST endpoint
    response = await client.post(f"{API}/invoices/{invoice['id']}/send", headers=owner_headers)
    assert response.status_code == 422
    assert response.json()["detail"] == "Client has no email address"


async def test_functions_send_invoice_reports_delivery_errors(client, owner_headers, monkeypatch):
    from vibecrm.core.errors import EmailDeliveryError
    from vibecrm.services import invoice_delivery_service

    async def failing(*args, **kwargs):
        raise EmailDeliveryError("Failed to send email: quota exceeded")

    monkeypatch.setattr(invoice_delivery_service, "send_invoice", failing)
    response = await client.post(
        "/functions/v1/send-invoice",
        json={"invoice_id": "missing", "recipient_email": "ap@acme.example.com"},
        headers=owner_headers,
    )
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to send email: quota exceeded"}


async def test_updates_reject_null_for_required_fields(client, owner_headers):
    client_id = (await client.post(f"{API}/clients/", json={"name": "Acme"}, headers=owner_headers)).json()["id"]
    project_id = (await client.post(f"{API}/projects/", json={"name": "Site"}, headers=owner_headers)).json()["id"]
    task_id = (await client.post(f"{API}/tasks/", json={"title": "Copy"}, headers=owner_headers)).json()["id"]
    invoice_id = (await client.post(
        f"{API}/invoices/",
        json={
            "client_id": client_id,
            "issue_date": date.today().isoformat(),
            "items": [{"description": "Work", "quantity": 1, "unit_price": 10}],
        },
        headers=owner_headers,
    )).json()["id"]

    cases = [
        (f"{API}/tasks/{task_id}", {"title": None}, "Title is required"),
        (f"{API}/tasks/{task_id}", {"status": None}, "Status is required"),
        (f"{API}/tasks/{task_id}", {"priority": None}, "Priority is required"),
        (f"{API}/projects/{project_id}", {"name": None}, "Name is required"),
        (f"{API}/projects/{project_id}", {"status": None}, "Status is required"),
        (f"{API}/clients/{client_id}", {"name": None}, "Name is required"),
        (f"{API}/clients/{client_id}", {"status": None}, "Status is required"),
        (f"{API}/invoices/{invoice_id}", {"status": None}, "Status is required"),
        (f"{API}/invoices/{invoice_id}", {"invoice_number": None}, "Invoice number is required"),
        (f"{API}/invoices/{invoice_id}", {"issue_date": None}, "Issue date is required"),
    ]
    for url, payload, message in cases:
        response = await client.put(url, json=payload, headers=owner_headers)
        assert response.status_code == 422, (url, payload, response.text)
        assert message in response.json()["detail"][0]["msg"]

    # Omitted fields are left alone
    response = await client.put(f"{API}/tasks/{task_id}", json={"description": "Hero text"}, headers=owner_headers)
    assert response.status_code == 200, response.text
    assert response.json()["title"] == "Copy"


async def test_failing_error_listener_keeps_the_original_response(client, owner_headers, monkeypatch):
    seen = []

    def broken_listener(exc, request):
        raise ValueError("listener blew up")

    async def broken(*args, **kwargs):
        raise RuntimeError("database exploded")

    add_error_listener(broken_listener)
    add_error_listener(lambda exc, request: seen.append(str(exc)))
    monkeypatch.setattr(dashboard_service, "get_organization_stats", broken)
    try:
        response = await client.get(f"{API}/dashboard/stats", headers=owner_headers)
    finally:
        clear_error_listeners()

    assert response.status_code == 500
    assert response.json() == {"detail": "Something went wrong"}
    assert seen == ["database exploded"]
