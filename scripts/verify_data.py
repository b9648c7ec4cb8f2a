#!/usr/bin/env python3
"""
Read-only sanity check of the CRM data: superadmin accounts, organizations and
per-organization record counts.
"""
import asyncio
import json
import os
import sys

from sqlalchemy import select, func

# Ensure backend modules are importable
THIS_DIR = os.path.dirname(__file__)
BACKEND_DIR = os.path.abspath(os.path.join(THIS_DIR, '..'))
sys.path.insert(0, BACKEND_DIR)

from vibecrm.db.database import AsyncSessionLocal  # noqa: E402
from vibecrm.models.client import Client  # noqa: E402
from vibecrm.models.invoice import Invoice, InvoiceStatus  # noqa: E402
from vibecrm.models.organization import Organization  # noqa: E402
from vibecrm.models.project import Project  # noqa: E402
from vibecrm.models.task import Task  # noqa: E402
from vibecrm.models.user import AppRole, Profile, User, UserRole  # noqa: E402


def _count(model, org_id, *criteria):
    return (
        select(func.count(model.id))
        .where(model.organization_id == org_id, *criteria)
        .scalar_subquery()
    )


async def main():
    output = {"superadmins": [], "organizations": []}
    async with AsyncSessionLocal() as session:
        admins = await session.execute(
            select(User.id, User.email, Profile.first_name, Profile.last_name)
            .join(UserRole, UserRole.user_id == User.id)
            .outerjoin(Profile, Profile.id == User.id)
            .where(UserRole.role == AppRole.SUPERADMIN)
        )
        for user_id, email, first_name, last_name in admins.all():
            output["superadmins"].append({
                "id": user_id,
                "email": email,
                "name": " ".join(p for p in (first_name, last_name) if p) or None,
            })

        org_id = Organization.id
        rows = await session.execute(
            select(
                Organization.id,
                Organization.name,
                Organization.slug,
                Organization.plan,
                _count(Client, org_id).label("clients"),
                _count(Project, org_id).label("projects"),
                _count(Task, org_id).label("tasks"),
                _count(Invoice, org_id).label("invoices"),
                _count(Invoice, org_id, Invoice.status == InvoiceStatus.PAID).label("paid_count"),
            ).order_by(Organization.name)
        )
        for row in rows.mappings().all():
            output["organizations"].append(dict(row))

    output["organization_count"] = len(output["organizations"])
    print(json.dumps(output, indent=2, default=str))


if __name__ == "__main__":
    asyncio.run(main())
