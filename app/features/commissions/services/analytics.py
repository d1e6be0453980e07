from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.clicks.models.click import Click, ClickStatus
from app.features.commissions.models.transaction import Transaction, TransactionStatus


class AnalyticsService:
    """Programme-wide counters for the owner dashboard."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_summary(self) -> dict:
        total_clicks = await self.db.scalar(select(func.count(Click.id)))
        converted_clicks = await self.db.scalar(
            select(func.count(Click.id)).where(Click.status == ClickStatus.CONVERTED)
        )

        confirmed = Transaction.status == TransactionStatus.CONFIRMED
        transactions = await self.db.scalar(select(func.count(Transaction.id)).where(confirmed))
        revenue = await self.db.scalar(
            select(func.coalesce(func.sum(Transaction.amount), 0)).where(confirmed)
        )
        unattributed = await self.db.scalar(
            select(func.count(Transaction.id)).where(confirmed, Transaction.user_id.is_(None))
        )

        return {
            "totalClicks": total_clicks or 0,
            "convertedClicks": converted_clicks or 0,
            "totalTransactions": transactions or 0,
            "totalRevenue": str(Decimal(str(revenue or 0)).quantize(Decimal("0.01"))),
            "unattributedTransactions": unattributed or 0,
        }
