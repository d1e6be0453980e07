from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class TrackClickRequest(BaseModel):
    productId: str = Field(..., min_length=1, max_length=255)
    platform: str = Field(..., min_length=1, max_length=50)
    meta: Optional[Dict[str, Any]] = None
