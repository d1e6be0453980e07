import secrets

CLICK_PREFIX = "clk_"
LINK_PREFIX = "lnk_"
TRANSACTION_PREFIX = "txn_"
WITHDRAWAL_PREFIX = "wd_"

# 12 random bytes -> 96 bits of entropy, 24 hex chars
TOKEN_BYTES = 12


def generate_id(prefix: str = "") -> str:
    """Prefixed, cryptographically random identifier, e.g. clk_3f9a..."""
    return prefix + secrets.token_hex(TOKEN_BYTES)


def new_click_id() -> str:
    return generate_id(CLICK_PREFIX)


def new_link_id() -> str:
    return generate_id(LINK_PREFIX)


def new_transaction_id() -> str:
    return generate_id(TRANSACTION_PREFIX)


def new_withdrawal_id() -> str:
    return generate_id(WITHDRAWAL_PREFIX)
