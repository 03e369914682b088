import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.future import select
from starlette.middleware.sessions import SessionMiddleware

import dispatch.models  # registers all models via models/__init__.py
from dispatch.api import activity_routes, batch_routes, driver_routes, order_routes, route_routes, zone_routes
from dispatch.auth import routes as auth_routes
from dispatch.core.config import settings
from dispatch.db import async_session, create_db_and_tables
from dispatch.middleware.tenant_middleware import TenantMiddleware
from dispatch.models.tenant import Tenant
from dispatch.models.user import User

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
log = logging.getLogger(__name__)

DEFAULT_TENANT_NAME = "Default Tenant"

app = FastAPI(
    title="Dispatch API",
    version="1.0.0",
    description="Order batching, zone classification and route optimization.",
)

# Tenant middleware reads the session, so it is added first (runs inside SessionMiddleware)
app.add_middleware(TenantMiddleware)
app.add_middleware(SessionMiddleware, secret_key=settings.session_secret)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # restrict in prod
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
async def on_startup():
    log.info("starting DB setup")
    await create_db_and_tables()

    # Seed default tenant and admin if missing
    async with async_session() as db:
        result = await db.execute(select(Tenant).where(Tenant.name == DEFAULT_TENANT_NAME))
        tenant = result.scalar_one_or_none()
        if not tenant:
            tenant = Tenant(name=DEFAULT_TENANT_NAME, slug="default")
            db.add(tenant)
            await db.commit()
            log.info("created tenant %s", tenant.name)

        result = await db.execute(select(User).where(User.role == "super_admin"))
        if not result.scalars().first():
            db.add(User(name="Admin", pin_code="1234", role="super_admin", is_active=True, tenant_id=tenant.id))
            await db.commit()
            log.warning("created default super_admin with PIN 1234; change it")


@app.get("/health")
async def health():
    return {"status": "ok"}


app.include_router(auth_routes.router)
app.include_router(order_routes.router)
app.include_router(batch_routes.router)
app.include_router(zone_routes.router)
app.include_router(driver_routes.router)
app.include_router(route_routes.router)
app.include_router(activity_routes.router)
