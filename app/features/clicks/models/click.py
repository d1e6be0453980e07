import enum

from sqlalchemy import JSON, Column, DateTime, Enum, ForeignKey, Index, String

from app.platform.db.base import BaseModel
from app.platform.utils.ids import new_click_id


class ClickStatus(str, enum.Enum):
    PENDING = "pending"
    CONVERTED = "converted"


class Click(BaseModel):
    """
    One outbound interaction with a product.

    The id is the correlation token carried through the affiliate URL and
    echoed back by the platform's conversion webhook.
    """
    __tablename__ = "clicks"

    id = Column(String(40), primary_key=True, default=new_click_id)
    product_id = Column(String(255), nullable=False, index=True)
    platform = Column(String(50), nullable=False, index=True)
    # Nullable: anonymous visitors can click too
    user_id = Column(String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    client_ip = Column(String(45), nullable=True)  # IPv4 or IPv6
    user_agent = Column(String(500), nullable=True)
    meta = Column("metadata", JSON, nullable=True)

    status = Column(
        Enum(ClickStatus, values_callable=lambda e: [m.value for m in e], name="click_status"),
        default=ClickStatus.PENDING,
        nullable=False,
    )
    order_id = Column(String(255), nullable=True)
    converted_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("idx_clicks_platform_status", "platform", "status"),
    )
