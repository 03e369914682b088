from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from dispatch.core.config import settings
from dispatch.models.base import Base

DATABASE_URL = settings.database_url
if not DATABASE_URL:
    raise ValueError("❌ DATABASE_URL is not set!")


def enable_sqlite_savepoints(async_engine):
    # pysqlite/aiosqlite defer BEGIN on their own, which breaks SAVEPOINT;
    # let SQLAlchemy emit BEGIN instead
    @event.listens_for(async_engine.sync_engine, "connect")
    def _connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(async_engine.sync_engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN")

    return async_engine


# Create engine
engine = create_async_engine(DATABASE_URL, echo=settings.sql_echo)
if engine.dialect.name == "sqlite":
    enable_sqlite_savepoints(engine)

# Async session maker
async_session = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)

# Dependency
async def get_db():
    async with async_session() as session:
        yield session

async def create_db_and_tables():
    import dispatch.models  # triggers __init__.py

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
