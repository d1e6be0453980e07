from typing import Optional

from pydantic import BaseModel, Field


class GenerateAffiliateLinkRequest(BaseModel):
    productId: str = Field(..., min_length=1, max_length=255)
    platform: str = Field(..., min_length=1, max_length=50)
    clickId: Optional[str] = Field(default=None, max_length=40)
