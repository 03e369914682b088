from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request


class TenantMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        # Session carries the tenant once logged in; fall back to the default tenant
        tenant_id = None
        if "session" in request.scope:
            tenant_id = request.session.get("tenant_id")
        request.state.tenant_id = tenant_id or 1
        return await call_next(request)
