from datetime import datetime
from decimal import Decimal
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.features.wallet.models.withdrawal import WithdrawalStatus


class WithdrawRequest(BaseModel):
    # Range checks live in the ledger so they answer with `invalid_amount`
    amount: Decimal
    method: str = Field(..., min_length=1, max_length=50)
    details: Optional[Any] = None


class WithdrawalResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    amount: Decimal
    method: str
    details: Optional[Any] = None
    status: WithdrawalStatus
    created_at: datetime
    approved_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None


class WithdrawalAction(BaseModel):
    action: Literal["approve", "complete", "reject"]
