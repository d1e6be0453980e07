from sqlalchemy import Column, ForeignKey, String, Text

from app.platform.db.base import BaseModel
from app.platform.utils.ids import new_link_id


class AffiliateLink(BaseModel):
    __tablename__ = "affiliate_links"

    id = Column(String(40), primary_key=True, default=new_link_id)
    product_id = Column(String(255), nullable=False)
    platform = Column(String(50), nullable=False, index=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    # Weak reference: the link never owns the click's lifecycle
    click_id = Column(String(40), nullable=True, index=True)
    destination_url = Column(Text, nullable=False)
