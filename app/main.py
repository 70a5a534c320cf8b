### tableside-backend/app/main.py
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from starlette.middleware.sessions import SessionMiddleware
from sqlalchemy.orm import configure_mappers

from app.core.config import settings
from app.middleware.tenant_middleware import TenantMiddleware
from app.auth.routes import auth_router
from app.db import create_db_and_tables
from app.api import auth_routes, guest_routes, super_admin_routes
from app.api.admin import (
    admin_menu_routes,
    admin_order_routes,
    admin_table_routes,
    admin_user_routes,
    admin_venue_routes,
)
import app.models  # registers all models via models/__init__.py
configure_mappers()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
log = logging.getLogger(__name__)

# Create the FastAPI app
app = FastAPI()

# ✅ Tenant middleware (copies session tenant selection into request.state)
app.add_middleware(TenantMiddleware)

# ✅ Session middleware wraps the tenant middleware; holds impersonation state
app.add_middleware(SessionMiddleware, secret_key=settings.session_secret, same_site="lax")

# ✅ Swagger Bearer token support for "Authorize" button
def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title="Tableside API",
        version="1.0.0",
        description="Table-side ordering for venues: guest orders, staff queue and tenant administration.",
        routes=app.routes,
    )
    openapi_schema.setdefault("components", {})["securitySchemes"] = {
        "BearerAuth": {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT"
        }
    }
    for path in openapi_schema["paths"].values():
        for operation in path.values():
            operation["security"] = [{"BearerAuth": []}]
    app.openapi_schema = openapi_schema
    return app.openapi_schema

app.openapi = custom_openapi

# ✅ Auth routes
app.include_router(
    auth_router,
    prefix="/auth/jwt",
    tags=["auth"]
)

# ✅ Allow frontend (CORS)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/health")
async def health():
    return {"status": "ok"}

@app.on_event("startup")
async def on_startup():
    log.info("starting DB setup")
    await create_db_and_tables()
    log.info("DB schema ready")


# ✅ Core app routers
app.include_router(auth_routes.router)
app.include_router(guest_routes.router)
app.include_router(admin_order_routes.router)
app.include_router(admin_menu_routes.router)
app.include_router(admin_table_routes.router)
app.include_router(admin_venue_routes.router)
app.include_router(admin_user_routes.router)
app.include_router(super_admin_routes.router)
