"""
Pure extraction of attribution data from webhook payloads.

Platforms name their fields differently, so each value is read through an
ordered list of rules; the first rule that yields something wins.
"""
import json
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, List, Optional, Tuple

from fastapi.encoders import jsonable_encoder

from app.platform.exceptions import InvalidPayload
from app.platform.utils.ids import CLICK_PREFIX, LINK_PREFIX

TRACKING_ID_FIELDS = ("tracking_id", "trackingId", "subid", "sub_id")
CLICK_ID_FIELDS = ("click_id", "clickId")
LINK_ID_FIELDS = ("link_id", "linkId")
ORDER_ID_FIELDS = ("order_id", "orderId", "order_number")
COMMISSION_FIELDS = ("commission", "commission_amount", "commissionAmount", "amount")
SALE_AMOUNT_FIELDS = ("sale_amount", "saleAmount", "price")
PRODUCT_ID_FIELDS = ("product_id", "productId")
STATUS_FIELDS = ("status", "commission_status")

_EMBEDDED_TOKEN = re.compile(rf"(?:{CLICK_PREFIX}|{LINK_PREFIX})[A-Za-z0-9]+")


def _first_str(payload: Dict[str, Any], fields: Tuple[str, ...]) -> Optional[str]:
    for name in fields:
        value = payload.get(name)
        if value is None or isinstance(value, (dict, list, bool)):
            continue
        text = str(value).strip()
        if text:
            return text
    return None


def _from_order_id(payload: Dict[str, Any]) -> Optional[str]:
    order_id = _first_str(payload, ORDER_ID_FIELDS)
    if not order_id:
        return None
    match = _EMBEDDED_TOKEN.search(order_id)
    return match.group(0) if match else None


CorrelationRule = Callable[[Dict[str, Any]], Optional[str]]

CORRELATION_RULES: List[Tuple[str, CorrelationRule]] = [
    ("tracking_id", lambda p: _first_str(p, TRACKING_ID_FIELDS)),
    ("click_id", lambda p: _first_str(p, CLICK_ID_FIELDS)),
    ("link_id", lambda p: _first_str(p, LINK_ID_FIELDS)),
    ("order_id_embedded", _from_order_id),
]


def extract_correlation_candidates(payload: Dict[str, Any]) -> List[str]:
    """Every distinct token the rules yield, in rule order."""
    candidates: List[str] = []
    for _name, rule in CORRELATION_RULES:
        token = rule(payload)
        if token and token not in candidates:
            candidates.append(token)
    return candidates


def extract_correlation_token(payload: Dict[str, Any]) -> Optional[str]:
    candidates = extract_correlation_candidates(payload)
    return candidates[0] if candidates else None


def _decimal(value: Any, field_name: str) -> Decimal:
    if isinstance(value, bool):
        raise InvalidPayload(f"Field '{field_name}' is not a number")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidPayload(f"Field '{field_name}' is not a number")
    if not amount.is_finite():
        raise InvalidPayload(f"Field '{field_name}' is not a finite number")
    return amount


def _first_decimal(payload: Dict[str, Any], fields: Tuple[str, ...]) -> Optional[Decimal]:
    for name in fields:
        value = payload.get(name)
        if value is None or value == "":
            continue
        return _decimal(value, name)
    return None


@dataclass
class ConversionEvent:
    order_id: str
    correlation_token: Optional[str]
    commission: Optional[Decimal]
    sale_amount: Optional[Decimal]
    product_id: Optional[str]
    # Every token found, in rule order; correlation_token is the first
    correlation_candidates: List[str] = field(default_factory=list)
    reported_status: Optional[str] = None
    payload: Dict[str, Any] = field(default_factory=dict)


def parse_conversion(raw_payload: bytes) -> ConversionEvent:
    """Decode a webhook body into a ConversionEvent; InvalidPayload if unusable."""
    try:
        payload = json.loads(raw_payload, parse_float=Decimal)
    except (UnicodeDecodeError, ValueError):
        raise InvalidPayload("Webhook body is not valid JSON")
    if not isinstance(payload, dict):
        raise InvalidPayload("Webhook body must be a JSON object")

    order_id = _first_str(payload, ORDER_ID_FIELDS)
    if not order_id:
        raise InvalidPayload("Webhook payload has no order id")

    commission = _first_decimal(payload, COMMISSION_FIELDS)
    sale_amount = _first_decimal(payload, SALE_AMOUNT_FIELDS)
    if commission is None and sale_amount is None:
        raise InvalidPayload("Webhook payload has no commission or sale amount")

    candidates = extract_correlation_candidates(payload)
    status = _first_str(payload, STATUS_FIELDS)

    return ConversionEvent(
        order_id=order_id,
        correlation_token=candidates[0] if candidates else None,
        commission=commission,
        sale_amount=sale_amount,
        product_id=_first_str(payload, PRODUCT_ID_FIELDS),
        correlation_candidates=candidates,
        reported_status=status.lower() if status else None,
        # JSON-column safe: Decimals become plain numbers
        payload=jsonable_encoder(payload),
    )
