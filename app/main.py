import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api_routers.v1 import api_router
from app.features.auth.services.auth_service import AuthService
from app.features.commissions.routes.webhooks import router as webhooks_router
from app.features.health.routes.health import router as health_router
from app.platform.config import settings
from app.platform.db.session import SessionLocal, init_models
from app.platform.exceptions import add_exception_handlers
from app.platform.logger import LOG_FORMAT

logging.basicConfig(level=settings.LOG_LEVEL.upper(), format=LOG_FORMAT)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Alembic owns the schema on staging/production
    if settings.ENVIRONMENT == "local":
        await init_models()
    if settings.OWNER_EMAIL and settings.OWNER_PASSWORD:
        async with SessionLocal() as db:
            await AuthService(db).ensure_owner(
                settings.OWNER_EMAIL, settings.OWNER_USERNAME, settings.OWNER_PASSWORD
            )
    yield


app = FastAPI(
    title="Commission Pro API",
    description="Click tracking, commission attribution and withdrawals for affiliate marketers",
    version="1.0.0",
    lifespan=lifespan,
)


@app.get("/", tags=["Info"])
def root():
    return {
        "app_name": "Commission Pro API",
        "description": "Affiliate click-to-commission tracking.",
        "version": "1.0.0",
        "docs_url": "/docs",
        "api_base": "/api",
    }


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

add_exception_handlers(app)

app.include_router(health_router)
app.include_router(webhooks_router)
app.include_router(api_router, prefix="/api")
