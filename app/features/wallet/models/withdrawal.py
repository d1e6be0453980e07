import enum

from sqlalchemy import JSON, Column, DateTime, Enum, ForeignKey, Numeric, String

from app.platform.db.base import BaseModel
from app.platform.utils.ids import new_withdrawal_id


class WithdrawalStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    COMPLETED = "completed"
    REJECTED = "rejected"


# Statuses whose amount is held against the user's balance
RESERVED_STATUSES = (
    WithdrawalStatus.PENDING,
    WithdrawalStatus.APPROVED,
    WithdrawalStatus.COMPLETED,
)


class Withdrawal(BaseModel):
    __tablename__ = "withdrawals"

    id = Column(String(40), primary_key=True, default=new_withdrawal_id)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)  # always positive
    method = Column(String(50), nullable=False)
    details = Column(JSON, nullable=True)
    status = Column(
        Enum(WithdrawalStatus, values_callable=lambda e: [m.value for m in e], name="withdrawal_status"),
        default=WithdrawalStatus.PENDING,
        nullable=False,
        index=True,
    )
    approved_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    rejected_at = Column(DateTime(timezone=True), nullable=True)

