from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.auth.models.user import User
from app.features.auth.routes.auth import get_optional_user
from app.features.clicks.schemas.click import TrackClickRequest
from app.features.clicks.services.click_ledger import ClickLedger
from app.platform.db.session import get_db
from app.platform.response import api_response

router = APIRouter(tags=["Tracking"])


@router.post(
    "/track-click",
    response_model=dict,
    status_code=status.HTTP_200_OK,
    summary="Track an outbound product click",
)
async def track_click(
    request_body: TrackClickRequest,
    request: Request,
    current_user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Record a click before the visitor is sent to the platform.

    Returns the click id to embed in the affiliate link.
    """
    user_id = str(current_user.id) if current_user else None
    user_agent = request.headers.get("user-agent")
    ip_address = request.client.host if request.client else None

    click_id = await ClickLedger(db).record_click(
        product_id=request_body.productId,
        platform=request_body.platform,
        user_id=user_id,
        ip=ip_address,
        user_agent=user_agent,
        metadata=request_body.meta,
    )

    return api_response(
        data={"clickId": click_id},
        message="Click tracked successfully",
        status_code=status.HTTP_200_OK,
    )
