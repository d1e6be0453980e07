from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.auth.models.user import User
from app.features.auth.routes.auth import get_current_user, require_owner
from app.features.wallet.schemas.withdrawal import WithdrawalAction, WithdrawalResponse, WithdrawRequest
from app.features.wallet.services.balance_ledger import BalanceLedger
from app.platform.db.session import get_db
from app.platform.response import api_response

router = APIRouter(tags=["Wallet"])


@router.post(
    "/withdraw",
    response_model=dict,
    status_code=status.HTTP_200_OK,
    summary="Request a withdrawal of the available balance",
)
async def request_withdrawal(
    request_body: WithdrawRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Reserve `amount` against the user's balance as a pending withdrawal.

    Rejections answer 400 with {"error": "invalid_amount"} or
    {"error": "insufficient"}.
    """
    user_id = str(current_user.id)
    withdrawal = await BalanceLedger(db).request_withdrawal(
        user_id=user_id,
        amount=request_body.amount,
        method=request_body.method,
        details=request_body.details,
    )

    return api_response(
        data={"ok": True, "id": withdrawal.id},
        message="Withdrawal requested successfully",
        status_code=status.HTTP_200_OK,
    )


@router.get(
    "/balance",
    response_model=dict,
    status_code=status.HTTP_200_OK,
    summary="Get the available balance",
)
async def get_balance(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    balance = await BalanceLedger(db).get_balance(str(current_user.id))
    return api_response(
        data={"balance": str(balance)},
        message="Balance retrieved successfully",
    )


@router.get(
    "/withdrawals",
    response_model=dict,
    status_code=status.HTTP_200_OK,
    summary="List the user's withdrawals",
)
async def list_withdrawals(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    withdrawals = await BalanceLedger(db).list_withdrawals(str(current_user.id))
    return api_response(
        data={
            "withdrawals": [
                WithdrawalResponse.model_validate(w).model_dump(mode="json") for w in withdrawals
            ]
        },
        message="Withdrawals retrieved successfully",
    )


@router.patch(
    "/owner/withdrawals/{withdrawal_id}",
    response_model=dict,
    status_code=status.HTTP_200_OK,
    summary="Approve, complete or reject a withdrawal",
)
async def update_withdrawal_status(
    withdrawal_id: str,
    request_body: WithdrawalAction,
    owner: User = Depends(require_owner),
    db: AsyncSession = Depends(get_db),
):
    ledger = BalanceLedger(db)
    if request_body.action == "approve":
        withdrawal = await ledger.approve_withdrawal(withdrawal_id)
    elif request_body.action == "complete":
        withdrawal = await ledger.complete_withdrawal(withdrawal_id)
    else:
        withdrawal = await ledger.reject_withdrawal(withdrawal_id)

    return api_response(
        data={"withdrawal": WithdrawalResponse.model_validate(withdrawal).model_dump(mode="json")},
        message=f"Withdrawal {withdrawal.status.value}",
    )
