from typing import Protocol
from urllib.parse import quote, urlencode, urlsplit, urlunsplit

from app.features.links.utils.platforms import PlatformConfig
from app.platform.config import settings


class PlatformLinkBuilder(Protocol):
    """Anything that can turn a product into a tracked outbound URL."""

    async def build_tracked_url(
        self, platform: PlatformConfig, product_id: str, correlation_token: str
    ) -> str: ...


class StaticLinkBuilder:
    """
    Builds tracked URLs from the platform registry without a network call.

    The platform's own tracking parameter carries our affiliate id and the
    sub-id parameter carries the correlation token.
    """

    def __init__(self, tracking_id: str | None = None):
        self.tracking_id = tracking_id or settings.AFFILIATE_TRACKING_ID

    async def build_tracked_url(
        self, platform: PlatformConfig, product_id: str, correlation_token: str
    ) -> str:
        base = platform.product_url.format(product_id=quote(product_id, safe=""))
        scheme, netloc, path, query, fragment = urlsplit(base)
        params = urlencode({
            platform.tracking_param: self.tracking_id,
            platform.subid_param: correlation_token,
        })
        query = f"{query}&{params}" if query else params
        return urlunsplit((scheme, netloc, path, query, fragment))
