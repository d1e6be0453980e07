from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Optional

from app.platform.exceptions import UnsupportedPlatform

DEFAULT_COMMISSION_RATE = Decimal("0.05")
CENTS = Decimal("0.01")


@dataclass(frozen=True)
class PlatformConfig:
    key: str
    name: str
    product_url: str  # formatted with product_id
    tracking_param: str
    subid_param: str
    commission_rate: Decimal = DEFAULT_COMMISSION_RATE
    signature_header: Optional[str] = None


PLATFORMS: Dict[str, PlatformConfig] = {
    "amazon": PlatformConfig(
        key="amazon",
        name="Amazon",
        product_url="https://www.amazon.com/dp/{product_id}",
        tracking_param="tag",
        subid_param="ascsubtag",
        commission_rate=Decimal("0.04"),
    ),
    "aliexpress": PlatformConfig(
        key="aliexpress",
        name="AliExpress",
        product_url="https://www.aliexpress.com/item/{product_id}.html",
        tracking_param="aff_fcid",
        subid_param="aff_trace_key",
        commission_rate=Decimal("0.07"),
    ),
    "ebay": PlatformConfig(
        key="ebay",
        name="eBay",
        product_url="https://www.ebay.com/itm/{product_id}",
        tracking_param="campid",
        subid_param="customid",
        commission_rate=Decimal("0.06"),
    ),
    "walmart": PlatformConfig(
        key="walmart",
        name="Walmart",
        product_url="https://www.walmart.com/ip/{product_id}",
        tracking_param="affiliates_ad_id",
        subid_param="subid",
    ),
    "bestbuy": PlatformConfig(
        key="bestbuy",
        name="Best Buy",
        product_url="https://www.bestbuy.com/site/{product_id}.p",
        tracking_param="irclickid",
        subid_param="subid1",
    ),
    "newegg": PlatformConfig(
        key="newegg",
        name="Newegg",
        product_url="https://www.newegg.com/p/{product_id}",
        tracking_param="cm_mmc",
        subid_param="subid",
    ),
    "shein": PlatformConfig(
        key="shein",
        name="SHEIN",
        product_url="https://us.shein.com/product-p-{product_id}.html",
        tracking_param="url_from",
        subid_param="aff_sub",
        commission_rate=Decimal("0.05"),
    ),
    "temu": PlatformConfig(
        key="temu",
        name="Temu",
        product_url="https://www.temu.com/goods.html?goods_id={product_id}",
        tracking_param="_x_ads_channel",
        subid_param="_x_sub_id",
        commission_rate=Decimal("0.08"),
    ),
}


def get_platform(platform: str) -> PlatformConfig:
    config = PLATFORMS.get((platform or "").strip().lower())
    if config is None:
        raise UnsupportedPlatform(f"Platform '{platform}' is not supported")
    return config


def calculate_commission(sale_amount: Decimal, platform: str) -> Decimal:
    """Platform default rate applied to a sale amount, rounded to cents."""
    config = PLATFORMS.get((platform or "").lower())
    rate = config.commission_rate if config else DEFAULT_COMMISSION_RATE
    return (Decimal(sale_amount) * rate).quantize(CENTS, rounding=ROUND_HALF_UP)
