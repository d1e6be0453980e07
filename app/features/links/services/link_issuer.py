from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.links.models.affiliate_link import AffiliateLink
from app.features.links.services.platform_client import PlatformLinkBuilder, StaticLinkBuilder
from app.features.links.utils.platforms import get_platform
from app.platform.exceptions import StorageFailure
from app.platform.logger import get_logger
from app.platform.utils.ids import new_link_id

logger = get_logger(__name__)


class AffiliateLinkIssuer:
    def __init__(self, db: AsyncSession, link_builder: Optional[PlatformLinkBuilder] = None):
        self.db = db
        self.link_builder = link_builder or StaticLinkBuilder()

    async def issue_link(
        self,
        product_id: str,
        platform: str,
        user_id: Optional[str] = None,
        click_id: Optional[str] = None,
    ) -> dict:
        """
        Mint a tracked outbound URL and persist the link/click association.

        The click id is embedded as the correlation token when present;
        otherwise the link id is, so a webhook can still be joined back.
        """
        platform_config = get_platform(platform)
        link_id = new_link_id()
        correlation_token = click_id or link_id

        destination_url = await self.link_builder.build_tracked_url(
            platform_config, product_id, correlation_token
        )

        link = AffiliateLink(
            id=link_id,
            product_id=product_id,
            platform=platform_config.key,
            user_id=user_id,
            click_id=click_id,
            destination_url=destination_url,
        )
        self.db.add(link)
        try:
            await self.db.commit()
        except SQLAlchemyError as exc:
            logger.exception(f"Failed to persist affiliate link for product {product_id}", exc_info=exc)
            await self.db.rollback()
            raise StorageFailure("Could not generate affiliate link at this time.")

        logger.info(f"Issued link {link_id} for {platform_config.key}/{product_id} (click={click_id})")
        return {"link_id": link_id, "destination_url": destination_url}

    async def get_link(self, link_id: str) -> Optional[AffiliateLink]:
        result = await self.db.execute(select(AffiliateLink).where(AffiliateLink.id == link_id))
        return result.scalar_one_or_none()
