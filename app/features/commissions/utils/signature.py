import hashlib
import hmac
import re
from typing import Optional

_HEX_DIGEST = re.compile(r"^[0-9a-f]{64}$")


def compute_signature(raw_payload: bytes, secret: str) -> str:
    """Hex HMAC-SHA256 of the raw request body."""
    return hmac.new(secret.encode("utf-8"), raw_payload, hashlib.sha256).hexdigest()


def verify_signature(
    signature_header: Optional[str],
    raw_payload: bytes,
    secret: Optional[str],
) -> bool:
    """
    Check a webhook signature against the exact bytes that were received.

    Missing signature or secret never verifies. A leading "sha256=" is
    tolerated; anything that is not a 64-char hex digest is rejected before
    comparing. The comparison itself is constant-time.
    """
    if not signature_header or not secret:
        return False

    signature = signature_header.strip()
    if signature.lower().startswith("sha256="):
        signature = signature[len("sha256="):]
    signature = signature.lower()

    if not _HEX_DIGEST.match(signature):
        return False

    expected = compute_signature(raw_payload, secret)
    return hmac.compare_digest(expected.encode("ascii"), signature.encode("ascii"))
