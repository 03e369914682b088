# scripts/init_db.py
import asyncio
from dispatch.db import engine
from dispatch.models.base import Base
import dispatch.models  # noqa: F401  registers every table on Base


async def create_tables():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    print("✅ All missing tables created.")

if __name__ == "__main__":
    asyncio.run(create_tables())
