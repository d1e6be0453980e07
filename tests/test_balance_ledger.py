import asyncio
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from app.features.commissions.models.transaction import Transaction, TransactionStatus
from app.features.wallet.models.withdrawal import Withdrawal, WithdrawalStatus
from app.features.wallet.services.balance_ledger import BalanceLedger
from app.platform.config import settings
from app.platform.exceptions import (
    InsufficientFunds,
    InvalidAmount,
    InvalidWithdrawalTransition,
    WithdrawalNotFound,
)


async def _credit(db_session, user_id, amount, order_id, status=TransactionStatus.CONFIRMED):
    db_session.add(
        Transaction(
            user_id=user_id,
            platform="amazon",
            amount=Decimal(amount),
            order_id=order_id,
            status=status,
        )
    )
    await db_session.commit()


@pytest.fixture
async def funded_user(db_session, user):
    """User with 100.00 of confirmed commission."""
    await _credit(db_session, user.id, "60.00", "ORD-F1")
    await _credit(db_session, user.id, "40.00", "ORD-F2")
    return user


@pytest.mark.asyncio
async def test_new_user_has_zero_balance(db_session, user):
    assert await BalanceLedger(db_session).get_balance(user.id) == Decimal("0.00")


@pytest.mark.asyncio
async def test_balance_only_counts_confirmed_commission(db_session, funded_user):
    await _credit(db_session, funded_user.id, "25.00", "ORD-PENDING", TransactionStatus.PENDING)
    await _credit(db_session, funded_user.id, "15.00", "ORD-REVERSED", TransactionStatus.REVERSED)
    await _credit(db_session, None, "99.00", "ORD-NOBODY")

    assert await BalanceLedger(db_session).get_balance(funded_user.id) == Decimal("100.00")


@pytest.mark.asyncio
async def test_withdrawals_reserve_balance(db_session, funded_user):
    ledger = BalanceLedger(db_session)

    withdrawal = await ledger.request_withdrawal(funded_user.id, Decimal("30.00"), "paypal")
    await ledger.approve_withdrawal(withdrawal.id)
    await ledger.complete_withdrawal(withdrawal.id)

    assert await ledger.get_balance(funded_user.id) == Decimal("70.00")

    with pytest.raises(InsufficientFunds):
        await ledger.request_withdrawal(funded_user.id, Decimal("75.00"), "paypal")

    second = await ledger.request_withdrawal(funded_user.id, Decimal("70.00"), "bank", {"iban": "DE00"})
    assert second.id.startswith("wd_")
    assert second.status == WithdrawalStatus.PENDING
    assert second.details == {"iban": "DE00"}
    assert await ledger.get_balance(funded_user.id) == Decimal("0.00")


@pytest.mark.asyncio
async def test_pending_withdrawal_counts_against_balance(db_session, funded_user):
    ledger = BalanceLedger(db_session)
    await ledger.request_withdrawal(funded_user.id, "80", "paypal")

    with pytest.raises(InsufficientFunds):
        await ledger.request_withdrawal(funded_user.id, "20.01", "paypal")
    assert await ledger.get_balance(funded_user.id) == Decimal("20.00")


@pytest.mark.asyncio
async def test_insufficient_funds_writes_nothing(db_session, user):
    ledger = BalanceLedger(db_session)
    with pytest.raises(InsufficientFunds):
        await ledger.request_withdrawal(user.id, Decimal("1.00"), "paypal")
    assert await ledger.list_withdrawals(user.id) == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "amount",
    [Decimal("0"), Decimal("-5"), "NaN", "Infinity", "abc", Decimal("1.005"), True, None],
)
async def test_invalid_amounts_rejected(db_session, funded_user, amount):
    with pytest.raises(InvalidAmount):
        await BalanceLedger(db_session).request_withdrawal(funded_user.id, amount, "paypal")


@pytest.mark.asyncio
async def test_minimum_withdrawal_floor(db_session, funded_user, monkeypatch):
    monkeypatch.setattr(settings, "MIN_WITHDRAWAL", Decimal("10.00"))
    ledger = BalanceLedger(db_session)

    with pytest.raises(InvalidAmount):
        await ledger.request_withdrawal(funded_user.id, Decimal("9.99"), "paypal")
    withdrawal = await ledger.request_withdrawal(funded_user.id, Decimal("10.00"), "paypal")
    assert withdrawal.amount == Decimal("10.00")


@pytest.mark.asyncio
async def test_concurrent_withdrawals_cannot_overdraw(db_session, funded_user, session_factory):
    user_id = funded_user.id

    async def withdraw():
        async with session_factory() as session:
            try:
                return await BalanceLedger(session).request_withdrawal(user_id, Decimal("60.00"), "paypal")
            except InsufficientFunds as exc:
                return exc

    results = await asyncio.gather(withdraw(), withdraw())

    assert sum(isinstance(r, Withdrawal) for r in results) == 1
    assert sum(isinstance(r, InsufficientFunds) for r in results) == 1
    async with session_factory() as session:
        count = await session.scalar(
            select(func.count(Withdrawal.id)).where(Withdrawal.user_id == user_id)
        )
        assert count == 1
        assert await BalanceLedger(session).get_balance(user_id) == Decimal("40.00")


@pytest.mark.asyncio
async def test_list_withdrawals_is_per_user(db_session, funded_user, make_user):
    other = await make_user()
    ledger = BalanceLedger(db_session)
    await ledger.request_withdrawal(funded_user.id, Decimal("5.00"), "paypal")
    await ledger.request_withdrawal(funded_user.id, Decimal("6.00"), "paypal")

    assert len(await ledger.list_withdrawals(funded_user.id)) == 2
    assert await ledger.list_withdrawals(other.id) == []


@pytest.mark.asyncio
async def test_transition_timestamps(db_session, funded_user):
    ledger = BalanceLedger(db_session)
    withdrawal = await ledger.request_withdrawal(funded_user.id, Decimal("10.00"), "paypal")

    approved = await ledger.approve_withdrawal(withdrawal.id)
    assert approved.status == WithdrawalStatus.APPROVED
    assert approved.approved_at is not None

    completed = await ledger.complete_withdrawal(withdrawal.id)
    assert completed.status == WithdrawalStatus.COMPLETED
    assert completed.completed_at is not None


@pytest.mark.asyncio
async def test_rejection_releases_reservation(db_session, funded_user):
    ledger = BalanceLedger(db_session)
    withdrawal = await ledger.request_withdrawal(funded_user.id, Decimal("100.00"), "paypal")
    assert await ledger.get_balance(funded_user.id) == Decimal("0.00")

    rejected = await ledger.reject_withdrawal(withdrawal.id)

    assert rejected.status == WithdrawalStatus.REJECTED
    assert rejected.rejected_at is not None
    assert await ledger.get_balance(funded_user.id) == Decimal("100.00")


@pytest.mark.asyncio
async def test_approved_withdrawal_can_be_rejected(db_session, funded_user):
    ledger = BalanceLedger(db_session)
    withdrawal = await ledger.request_withdrawal(funded_user.id, Decimal("10.00"), "paypal")
    await ledger.approve_withdrawal(withdrawal.id)

    rejected = await ledger.reject_withdrawal(withdrawal.id)
    assert rejected.status == WithdrawalStatus.REJECTED


@pytest.mark.asyncio
async def test_invalid_transitions(db_session, funded_user):
    ledger = BalanceLedger(db_session)
    withdrawal = await ledger.request_withdrawal(funded_user.id, Decimal("10.00"), "paypal")

    with pytest.raises(InvalidWithdrawalTransition):
        await ledger.complete_withdrawal(withdrawal.id)

    await ledger.approve_withdrawal(withdrawal.id)
    with pytest.raises(InvalidWithdrawalTransition):
        await ledger.approve_withdrawal(withdrawal.id)

    await ledger.complete_withdrawal(withdrawal.id)
    with pytest.raises(InvalidWithdrawalTransition):
        await ledger.reject_withdrawal(withdrawal.id)


@pytest.mark.asyncio
async def test_transition_unknown_withdrawal(db_session):
    with pytest.raises(WithdrawalNotFound):
        await BalanceLedger(db_session).approve_withdrawal("wd_missing")
