import enum

from sqlalchemy import JSON, Column, Enum, ForeignKey, Numeric, String, UniqueConstraint

from app.platform.db.base import BaseModel
from app.platform.utils.ids import new_transaction_id


class TransactionStatus(str, enum.Enum):
    CONFIRMED = "confirmed"
    PENDING = "pending"
    REVERSED = "reversed"


class Transaction(BaseModel):
    """
    A commission reported by a platform webhook.

    (platform, order_id) is the idempotency key: the unique constraint is
    what stops a redelivered or concurrently delivered webhook from
    crediting the same order twice.
    """
    __tablename__ = "transactions"

    id = Column(String(40), primary_key=True, default=new_transaction_id)
    # Null when the webhook could not be attributed to a click
    user_id = Column(String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    platform = Column(String(50), nullable=False)
    product_id = Column(String(255), nullable=True)
    amount = Column(Numeric(12, 2), nullable=False)
    order_id = Column(String(255), nullable=False)
    click_id = Column(String(40), nullable=True, index=True)
    status = Column(
        Enum(TransactionStatus, values_callable=lambda e: [m.value for m in e], name="transaction_status"),
        default=TransactionStatus.CONFIRMED,
        nullable=False,
    )
    raw_payload = Column(JSON, nullable=True)

    __table_args__ = (
        UniqueConstraint("platform", "order_id", name="uq_transactions_platform_order"),
    )
