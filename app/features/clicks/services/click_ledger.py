from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.clicks.models.click import Click, ClickStatus
from app.features.links.utils.platforms import get_platform
from app.platform.exceptions import StorageFailure
from app.platform.logger import get_logger

logger = get_logger(__name__)


class ClickLedger:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def record_click(
        self,
        product_id: str,
        platform: str,
        user_id: Optional[str] = None,
        ip: Optional[str] = None,
        user_agent: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> str:
        """
        Record a click with status=pending and return its id.

        Committed immediately; nothing downstream is awaited.
        """
        platform_config = get_platform(platform)

        click = Click(
            product_id=product_id,
            platform=platform_config.key,
            user_id=user_id,
            client_ip=ip,
            user_agent=user_agent[:500] if user_agent else None,
            meta=metadata or {},
            status=ClickStatus.PENDING,
        )
        self.db.add(click)
        try:
            await self.db.commit()
        except SQLAlchemyError as exc:
            logger.exception(f"Failed to record click for product {product_id}", exc_info=exc)
            await self.db.rollback()
            raise StorageFailure("Could not track click at this time.")

        logger.info(f"Tracked click {click.id} on {click.platform}/{product_id} (user={user_id})")
        return click.id

    async def lookup_click(self, click_id: str) -> Optional[Click]:
        result = await self.db.execute(select(Click).where(Click.id == click_id))
        return result.scalar_one_or_none()

    async def mark_converted(
        self,
        click_id: str,
        order_id: str,
        timestamp: Optional[datetime] = None,
    ) -> Optional[Click]:
        """
        Move a click to converted for `order_id`.

        Idempotent for the same order. A click already converted by another
        order is left untouched and the conflict is logged. Changes are
        flushed, not committed: the caller owns the unit of work.
        """
        click = await self.lookup_click(click_id)
        if click is None:
            logger.warning(f"Cannot mark unknown click {click_id} converted (order {order_id})")
            return None

        if click.status == ClickStatus.CONVERTED:
            if click.order_id != order_id:
                logger.warning(
                    f"Click {click_id} already converted by order {click.order_id}; "
                    f"ignoring conversion by order {order_id}"
                )
            return click

        click.status = ClickStatus.CONVERTED
        click.order_id = order_id
        click.converted_at = timestamp or datetime.now(timezone.utc)
        await self.db.flush()

        logger.info(f"Click {click_id} converted by order {order_id}")
        return click
