#!/usr/bin/env python3
"""
Create an API key, bootstrapping the organization and project if needed.

Usage:
    python scripts/create_api_key.py --organization "Acme" --project "Chatbot"
    python scripts/create_api_key.py --organization "Acme" --org-level
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add the backend directory to the Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

from sqlalchemy import select

from app.core.database import AsyncSessionLocal, create_tables
from app.models.project import Organization, Project
from app.services.api_key_service import api_key_service


async def create_api_key(organization_name: str, project_name: str = None, note: str = None) -> None:
    await create_tables()

    async with AsyncSessionLocal() as db:
        organization = await db.scalar(
            select(Organization).where(Organization.name == organization_name)
        )
        if organization is None:
            organization = Organization(name=organization_name)
            db.add(organization)
            await db.flush()
            print(f"Created organization '{organization_name}' ({organization.id})")

        project = None
        if project_name:
            project = await db.scalar(
                select(Project).where(
                    Project.organization_id == organization.id,
                    Project.name == project_name,
                )
            )
            if project is None:
                project = Project(name=project_name, organization_id=organization.id)
                db.add(project)
                await db.flush()
                print(f"Created project '{project_name}' ({project.id})")
        await db.commit()

        api_key, plain_key = await api_key_service.create_api_key(
            db,
            organization_id=organization.id,
            project_id=project.id if project else None,
            note=note,
        )

    print(f"\n{api_key.access_level.capitalize()}-level API key created.")
    print(f"   Key: {plain_key}")
    print("   Store this key securely. It will not be shown again!")


def main() -> None:
    parser = argparse.ArgumentParser(description="Create a public API key")
    parser.add_argument("--organization", required=True, help="Organization name")
    parser.add_argument("--project", help="Project name (required unless --org-level)")
    parser.add_argument("--org-level", action="store_true", help="Create an organization-level key")
    parser.add_argument("--note", help="Optional note stored with the key")
    args = parser.parse_args()

    if not args.org_level and not args.project:
        parser.error("--project is required for project-level keys")

    asyncio.run(
        create_api_key(
            args.organization,
            project_name=None if args.org_level else args.project,
            note=args.note,
        )
    )


if __name__ == "__main__":
    main()
