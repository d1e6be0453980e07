from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.auth.models.user import User
from app.features.commissions.models.transaction import Transaction, TransactionStatus
from app.features.wallet.models.withdrawal import RESERVED_STATUSES, Withdrawal, WithdrawalStatus
from app.platform.config import settings
from app.platform.db.session import begin_serialized
from app.platform.exceptions import (
    InsufficientFunds,
    InvalidAmount,
    InvalidWithdrawalTransition,
    StorageFailure,
    WithdrawalNotFound,
)
from app.platform.logger import get_logger

logger = get_logger(__name__)

CENTS = Decimal("0.01")

ALLOWED_TRANSITIONS = {
    WithdrawalStatus.PENDING: (WithdrawalStatus.APPROVED, WithdrawalStatus.REJECTED),
    WithdrawalStatus.APPROVED: (WithdrawalStatus.COMPLETED, WithdrawalStatus.REJECTED),
}


def _to_decimal(value) -> Decimal:
    if value is None:
        return Decimal("0")
    return value if isinstance(value, Decimal) else Decimal(str(value))


class BalanceLedger:
    """
    Balance = confirmed commissions - withdrawals that are pending, approved
    or completed. Withdrawals are the only debit source; transactions are
    never touched here.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_balance(self, user_id: str) -> Decimal:
        earned = await self.db.scalar(
            select(func.coalesce(func.sum(Transaction.amount), 0)).where(
                Transaction.user_id == user_id,
                Transaction.status == TransactionStatus.CONFIRMED,
            )
        )
        reserved = await self.db.scalar(
            select(func.coalesce(func.sum(Withdrawal.amount), 0)).where(
                Withdrawal.user_id == user_id,
                Withdrawal.status.in_(RESERVED_STATUSES),
            )
        )
        return (_to_decimal(earned) - _to_decimal(reserved)).quantize(CENTS)

    async def request_withdrawal(
        self,
        user_id: str,
        amount: Any,
        method: str,
        details: Optional[Any] = None,
    ) -> Withdrawal:
        amount = self._validate_amount(amount)

        try:
            await begin_serialized(self.db)
            await self.db.execute(select(User.id).where(User.id == user_id).with_for_update())

            balance = await self.get_balance(user_id)
            if amount > balance:
                # Nothing written; end the transaction and release the lock
                await self.db.commit()
                logger.info(f"Withdrawal of {amount} rejected for user {user_id}: balance {balance}")
                raise InsufficientFunds()

            withdrawal = Withdrawal(
                user_id=user_id,
                amount=amount,
                method=method,
                details=details,
                status=WithdrawalStatus.PENDING,
            )
            self.db.add(withdrawal)
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.exception(f"Failed to record withdrawal for user {user_id}", exc_info=exc)
            raise StorageFailure("Could not process withdrawal at this time.")

        logger.info(f"Withdrawal {withdrawal.id} of {amount} requested by user {user_id} via {method}")
        return withdrawal

    async def list_withdrawals(self, user_id: str) -> List[Withdrawal]:
        result = await self.db.execute(
            select(Withdrawal)
            .where(Withdrawal.user_id == user_id)
            .order_by(Withdrawal.created_at.desc())
        )
        return list(result.scalars().all())

    async def approve_withdrawal(self, withdrawal_id: str) -> Withdrawal:
        return await self._transition(withdrawal_id, WithdrawalStatus.APPROVED)

    async def complete_withdrawal(self, withdrawal_id: str) -> Withdrawal:
        return await self._transition(withdrawal_id, WithdrawalStatus.COMPLETED)

    async def reject_withdrawal(self, withdrawal_id: str) -> Withdrawal:
        return await self._transition(withdrawal_id, WithdrawalStatus.REJECTED)

    async def _transition(self, withdrawal_id: str, target: WithdrawalStatus) -> Withdrawal:
        try:
            result = await self.db.execute(
                select(Withdrawal).where(Withdrawal.id == withdrawal_id).with_for_update()
            )
            withdrawal = result.scalar_one_or_none()
        except SQLAlchemyError as exc:
            await self.db.rollback()
            raise StorageFailure() from exc

        if withdrawal is None:
            await self.db.commit()
            raise WithdrawalNotFound()

        current = WithdrawalStatus(withdrawal.status)
        if target not in ALLOWED_TRANSITIONS.get(current, ()):
            await self.db.commit()
            raise InvalidWithdrawalTransition(
                f"Withdrawal {withdrawal_id} cannot move from {current.value} to {target.value}"
            )

        now = datetime.now(timezone.utc)
        withdrawal.status = target
        if target == WithdrawalStatus.APPROVED:
            withdrawal.approved_at = now
        elif target == WithdrawalStatus.COMPLETED:
            withdrawal.completed_at = now
        else:
            withdrawal.rejected_at = now

        try:
            await self.db.commit()
        except SQLAlchemyError as exc:
            await self.db.rollback()
            logger.exception(f"Failed to update withdrawal {withdrawal_id}", exc_info=exc)
            raise StorageFailure()

        logger.info(f"Withdrawal {withdrawal_id} moved {current.value} -> {target.value}")
        return withdrawal

    @staticmethod
    def _validate_amount(amount: Any) -> Decimal:
        try:
            value = _to_decimal(amount)
        except (InvalidOperation, ValueError, TypeError):
            raise InvalidAmount()
        if isinstance(amount, bool) or not value.is_finite() or value <= 0:
            raise InvalidAmount()
        if value != value.quantize(CENTS):
            raise InvalidAmount("Withdrawal amount has more than two decimal places")
        if value < settings.MIN_WITHDRAWAL:
            raise InvalidAmount(f"Minimum withdrawal is {settings.MIN_WITHDRAWAL}")
        return value
