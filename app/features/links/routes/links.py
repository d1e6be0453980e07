from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.auth.models.user import User
from app.features.auth.routes.auth import get_current_user
from app.features.links.schemas.link import GenerateAffiliateLinkRequest
from app.features.links.services.link_issuer import AffiliateLinkIssuer
from app.platform.db.session import get_db
from app.platform.response import api_response

router = APIRouter(tags=["Affiliate Links"])


@router.post(
    "/generate-affiliate-link",
    response_model=dict,
    status_code=status.HTTP_200_OK,
    summary="Generate a tracked affiliate link",
)
async def generate_affiliate_link(
    request_body: GenerateAffiliateLinkRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    user_id = str(current_user.id)
    link = await AffiliateLinkIssuer(db).issue_link(
        product_id=request_body.productId,
        platform=request_body.platform,
        user_id=user_id,
        click_id=request_body.clickId,
    )

    return api_response(
        data={"affiliateUrl": link["destination_url"], "linkId": link["link_id"]},
        message="Affiliate link generated successfully",
        status_code=status.HTTP_200_OK,
    )
