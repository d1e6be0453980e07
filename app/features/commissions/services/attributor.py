import enum
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.clicks.models.click import Click
from app.features.clicks.services.click_ledger import ClickLedger
from app.features.commissions.models.transaction import Transaction, TransactionStatus
from app.features.commissions.utils.correlation import ConversionEvent, parse_conversion
from app.features.commissions.utils.signature import verify_signature
from app.features.links.models.affiliate_link import AffiliateLink
from app.features.links.utils.platforms import calculate_commission, get_platform
from app.platform.config import settings
from app.platform.db.session import begin_serialized
from app.platform.exceptions import InvalidSignature, StorageFailure
from app.platform.logger import get_logger
from app.platform.utils.ids import LINK_PREFIX

logger = get_logger(__name__)

CENTS = Decimal("0.01")


class WebhookOutcome(str, enum.Enum):
    CREATED = "created"
    DUPLICATE = "duplicate"


@dataclass
class WebhookResult:
    outcome: WebhookOutcome
    transaction_id: Optional[str]
    user_id: Optional[str] = None
    click_id: Optional[str] = None

    @property
    def attributed(self) -> bool:
        return self.user_id is not None


class CommissionAttributor:
    """
    Turns a platform conversion webhook into exactly one confirmed transaction.

    Per (platform, order id) the only inbound transition is unseen -> confirmed.
    Replays, including concurrent ones that race past the existence check,
    resolve to a DUPLICATE result rather than an error.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.clicks = ClickLedger(db)

    async def handle_webhook(
        self,
        platform: str,
        raw_payload: bytes,
        signature_header: Optional[str],
    ) -> WebhookResult:
        platform_key = (platform or "").strip().lower()
        secret = settings.webhook_secret_for(platform_key)
        if not verify_signature(signature_header, raw_payload, secret):
            logger.warning(f"Rejected {platform_key} webhook: invalid signature")
            raise InvalidSignature()

        platform_config = get_platform(platform_key)
        event = parse_conversion(raw_payload)

        try:
            await begin_serialized(self.db)
            existing = await self._find_transaction(platform_config.key, event.order_id)
            if existing is not None:
                logger.info(
                    f"Duplicate {platform_config.key} webhook for order {event.order_id}; "
                    f"already recorded as {existing.id}"
                )
                result = self._duplicate(existing)
                await self.db.commit()
                return result

            token, click, user_id = await self._resolve(event.correlation_candidates)
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.exception(f"Storage failure reading ledger for order {event.order_id}", exc_info=exc)
            raise StorageFailure()

        if event.reported_status and event.reported_status != TransactionStatus.CONFIRMED.value:
            logger.warning(
                f"{platform_config.key} order {event.order_id} reported status "
                f"{event.reported_status!r}; recording it as confirmed"
            )

        return await self._record(platform_config.key, event, token, click, user_id)

    async def _record(
        self,
        platform: str,
        event: ConversionEvent,
        token: Optional[str],
        click: Optional[Click],
        user_id: Optional[str],
    ) -> WebhookResult:
        if event.commission is not None:
            amount = event.commission.quantize(CENTS, rounding=ROUND_HALF_UP)
        else:
            amount = calculate_commission(event.sale_amount, platform)

        transaction = Transaction(
            user_id=user_id,
            platform=platform,
            product_id=event.product_id or (click.product_id if click else None),
            amount=amount,
            order_id=event.order_id,
            click_id=click.id if click else None,
            status=TransactionStatus.CONFIRMED,
            raw_payload=event.payload,
        )
        click_id = click.id if click else None

        try:
            self.db.add(transaction)
            if click_id:
                await self.clicks.mark_converted(click_id, event.order_id, datetime.now(timezone.utc))
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            return await self._concurrent_duplicate(platform, event.order_id)
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.exception(f"Failed to record {platform} order {event.order_id}", exc_info=exc)
            raise StorageFailure()

        if user_id is None:
            logger.warning(
                f"Unattributed commission {amount} for {platform} order {event.order_id} "
                f"(tokens={event.correlation_candidates!r}); recorded without a user"
            )
        else:
            logger.info(
                f"Credited {amount} to user {user_id} for {platform} order {event.order_id} "
                f"(click={click_id}, token={token!r})"
            )

        return WebhookResult(
            outcome=WebhookOutcome.CREATED,
            transaction_id=transaction.id,
            user_id=user_id,
            click_id=click_id,
        )

    async def _find_transaction(self, platform: str, order_id: str) -> Optional[Transaction]:
        result = await self.db.execute(
            select(Transaction).where(
                Transaction.platform == platform,
                Transaction.order_id == order_id,
            )
        )
        return result.scalar_one_or_none()

    async def _concurrent_duplicate(self, platform: str, order_id: str) -> WebhookResult:
        """
        Settle an IntegrityError raised while recording an order.

        Only a row already holding (platform, order id) makes it a duplicate;
        any other constraint failure is a storage error the sender should retry.
        """
        try:
            existing = await self._find_transaction(platform, order_id)
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self.db.rollback()
            raise StorageFailure() from exc

        if existing is None:
            logger.error(f"Integrity error recording {platform} order {order_id} with no prior row")
            raise StorageFailure()

        logger.info(f"Concurrent duplicate {platform} webhook for order {order_id}")
        return self._duplicate(existing)

    async def _resolve(
        self, candidates: List[str]
    ) -> Tuple[Optional[str], Optional[Click], Optional[str]]:
        """(token, click, user id) for the first candidate naming a known click or link."""
        for token in candidates:
            resolved = await self._resolve_token(token)
            if resolved is not None:
                click, user_id = resolved
                return token, click, user_id
        return None, None, None

    async def _resolve_token(self, token: str) -> Optional[Tuple[Optional[Click], Optional[str]]]:
        """None when the token matches nothing; link ids go through the link table."""
        if token.startswith(LINK_PREFIX):
            result = await self.db.execute(select(AffiliateLink).where(AffiliateLink.id == token))
            link = result.scalar_one_or_none()
            if link is None:
                return None
            if link.click_id:
                click = await self.clicks.lookup_click(link.click_id)
                if click is not None:
                    return click, click.user_id or link.user_id
            return None, link.user_id

        click = await self.clicks.lookup_click(token)
        if click is None:
            return None
        return click, click.user_id

    @staticmethod
    def _duplicate(existing: Transaction) -> WebhookResult:
        return WebhookResult(
            outcome=WebhookOutcome.DUPLICATE,
            transaction_id=existing.id,
            user_id=existing.user_id,
            click_id=existing.click_id,
        )
