from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.auth.models.user import User
from app.features.auth.routes.auth import require_owner
from app.features.commissions.services.analytics import AnalyticsService
from app.platform.db.session import get_db
from app.platform.response import api_response

router = APIRouter(prefix="/owner", tags=["Owner"])


@router.get(
    "/analytics",
    response_model=dict,
    status_code=status.HTTP_200_OK,
    summary="Click and commission totals",
)
async def get_owner_analytics(
    owner: User = Depends(require_owner),
    db: AsyncSession = Depends(get_db),
):
    summary = await AnalyticsService(db).get_summary()
    return api_response(
        data=summary,
        message="Analytics retrieved successfully",
        status_code=status.HTTP_200_OK,
    )
