from fastapi import APIRouter

from app.features.auth.routes.auth import router as auth_router
from app.features.clicks.routes.clicks import router as clicks_router
from app.features.commissions.routes.analytics import router as analytics_router
from app.features.links.routes.links import router as links_router
from app.features.wallet.routes.withdrawals import router as wallet_router

api_router = APIRouter()

# Register all feature routes
api_router.include_router(auth_router)
api_router.include_router(clicks_router)
api_router.include_router(links_router)
api_router.include_router(wallet_router)
api_router.include_router(analytics_router)
