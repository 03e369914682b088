import asyncio
import uuid
from datetime import date
from pathlib import Path

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

from dispatch.db import enable_sqlite_savepoints
from dispatch.models import Base, Tenant, User, Zone
from dispatch.schemas.order import OrderCreate

TENANT_ID = 1
ADMIN_ID = "admin-1"

ZONE_LAYOUT = (
    ("A", "north", "Milwaukee, WI"),
    ("B", "south", "Atlanta, GA"),
    ("C", "east", "Philadelphia, PA"),
    ("D", "west", "Denver, CO"),
)


@pytest.fixture
def session_factory(tmp_path: Path):
    # NullPool: every asyncio.run (and the TestClient loop) opens its own connection
    engine = enable_sqlite_savepoints(
        create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'dispatch.db'}", poolclass=NullPool)
    )
    factory = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def _setup():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        async with factory() as db:
            db.add(Tenant(id=TENANT_ID, name="Test Tenant"))
            db.add(Tenant(id=2, name="Other Tenant"))
            db.add(User(id=ADMIN_ID, name="Admin", pin_code="1234", role="super_admin", tenant_id=TENANT_ID))
            await db.commit()

    asyncio.run(_setup())
    yield factory
    asyncio.run(engine.dispose())


@pytest.fixture
def run(session_factory):
    """Run ``fn(db)`` in a fresh session and return its result"""

    def _run(fn):
        async def _go():
            async with session_factory() as db:
                return await fn(db)

        return asyncio.run(_go())

    return _run


@pytest.fixture
def zones(run):
    """Seed zones A-D for the test tenant; returns {direction: zone_id}"""

    async def _seed(db):
        ids = {}
        for name, direction, base_address in ZONE_LAYOUT:
            zone = Zone(
                id=str(uuid.uuid4()),
                name=name,
                direction=direction,
                base_address=base_address,
                tenant_id=TENANT_ID,
            )
            db.add(zone)
            ids[direction] = zone.id
        await db.commit()
        return ids

    return run(_seed)


@pytest.fixture
def draft():
    def _draft(state: str, pickup_date: date, **overrides) -> OrderCreate:
        fields = {
            "customer_name": "Test Customer",
            "delivery_line1": "1 Main St",
            "delivery_city": "Springfield",
            "delivery_state": state,
            "delivery_zip": "62701",
            "pickup_date": pickup_date,
        }
        fields.update(overrides)
        return OrderCreate(**fields)

    return _draft
