# scripts/seed_zones.py

import asyncio
import argparse
from sqlalchemy.future import select
from dispatch.db import async_session
from dispatch.models.tenant import Tenant
from dispatch.models.zone import Zone
import uuid

# 🎯 ZONES TO SEED (one per direction)
ZONES_TO_SEED = [
    {"name": "Zone A", "direction": "north", "base_address": "Milwaukee, WI"},
    {"name": "Zone B", "direction": "south", "base_address": "Atlanta, GA"},
    {"name": "Zone C", "direction": "east", "base_address": "Philadelphia, PA"},
    {"name": "Zone D", "direction": "west", "base_address": "Denver, CO"},
]

DEFAULT_TENANT_NAME = "Default Tenant"


async def seed_zones(tenant_name=DEFAULT_TENANT_NAME):
    async with async_session() as session:
        # 🔁 Step 1: Ensure the Tenant exists
        result = await session.execute(select(Tenant).where(Tenant.name == tenant_name))
        tenant = result.scalar_one_or_none()
        if not tenant:
            tenant = Tenant(name=tenant_name)
            session.add(tenant)
            await session.commit()  # Commit once so tenant.id gets populated
            print(f"🏢 Created tenant: {tenant.name}")

        # 🔁 Step 2: Seed zones linked to Tenant
        for zone_data in ZONES_TO_SEED:
            result = await session.execute(
                select(Zone).where(Zone.tenant_id == tenant.id, Zone.name == zone_data["name"])
            )
            if result.scalar_one_or_none():
                print(f"⚠️  Zone '{zone_data['name']}' already exists. Skipping.")
                continue
            session.add(Zone(id=str(uuid.uuid4()), tenant_id=tenant.id, **zone_data))
            print(f"✅ Created: {zone_data['name']} ({zone_data['direction']}) - tenant: {tenant.name}")

        await session.commit()
        print("✅ Done seeding zones.\n")


async def deactivate_zone(name, tenant_name=DEFAULT_TENANT_NAME):
    async with async_session() as session:
        result = await session.execute(
            select(Zone).join(Tenant, Tenant.id == Zone.tenant_id).where(
                Tenant.name == tenant_name,
                Zone.name == name
            )
        )
        zone = result.scalar_one_or_none()
        if not zone:
            print(f"⚠️  No zone found with name: {name}")
            return
        zone.is_active = False
        await session.commit()
        print(f"🚫 Deactivated zone: {name}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Manage delivery zones")
    parser.add_argument("--seed", action="store_true", help="Seed zones A-D")
    parser.add_argument("--deactivate", type=str, metavar="NAME", help="Deactivate a zone by name")
    parser.add_argument("--tenant", type=str, default=DEFAULT_TENANT_NAME, help="Tenant name")

    args = parser.parse_args()

    if args.seed:
        asyncio.run(seed_zones(args.tenant))
    elif args.deactivate:
        asyncio.run(deactivate_zone(args.deactivate, args.tenant))
    else:
        print("❗ Usage:")
        print("  python -m scripts.seed_zones --seed")
        print("  python -m scripts.seed_zones --deactivate 'Zone D'")
