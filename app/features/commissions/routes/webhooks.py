from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import PlainTextResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.commissions.services.attributor import CommissionAttributor
from app.features.links.utils.platforms import PLATFORMS
from app.platform.config import settings
from app.platform.db.session import get_db
from app.platform.exceptions import StorageFailure
from app.platform.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/webhooks", tags=["Webhooks"])


def _signature_for(platform: str, request: Request):
    config = PLATFORMS.get(platform.lower())
    if config and config.signature_header:
        signature = request.headers.get(config.signature_header)
        if signature:
            return signature
    return request.headers.get(settings.WEBHOOK_SIGNATURE_HEADER)


@router.post(
    "/affiliate/{platform}",
    response_class=PlainTextResponse,
    summary="Receive a conversion webhook from an affiliate platform",
)
async def affiliate_webhook(
    platform: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    """
    Conversion callback. The body is read raw: the signature covers the
    exact bytes sent, so it must not be parsed first.

    Replies `ok` for new and replayed orders alike, 401 on a bad signature,
    400 on an unusable payload and 503 when storage fails so the sender
    redelivers.
    """
    raw_payload = await request.body()
    signature = _signature_for(platform, request)

    try:
        await CommissionAttributor(db).handle_webhook(platform, raw_payload, signature)
    except StorageFailure:
        logger.error(f"Storage failure on {platform} webhook; asking sender to retry")
        return PlainTextResponse("retry", status_code=status.HTTP_503_SERVICE_UNAVAILABLE)

    return PlainTextResponse("ok", status_code=status.HTTP_200_OK)
