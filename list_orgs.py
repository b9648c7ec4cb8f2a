#!/usr/bin/env python3
"""
List all organizations in the database with their member counts
"""
import asyncio

from vibecrm.db.database import AsyncSessionLocal
from vibecrm.services.access_service import AccessScope
from vibecrm.services.organization_service import list_organizations


async def main():
    async with AsyncSessionLocal() as session:
        # The listing is a superadmin view; the script runs with that overlay
        orgs = await list_organizations(session, AccessScope(user_id="cli", is_superadmin=True))

    print("\nOrganizations in the database:")
    print("=" * 50)
    for org in orgs:
        print(f"ID: {org['id']}")
        print(f"Name: {org['name']}")
        print(f"Slug: {org['slug']}")
        print(f"Plan: {org['plan']}")
        print(f"Members: {org['member_count']}")
        print("-" * 50)
    print(f"Total: {len(orgs)}")


if __name__ == "__main__":
    asyncio.run(main())
