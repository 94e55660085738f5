"""Parsing utilities for hex quantities, token amounts and addresses."""

import re

from eth_utils import is_0x_prefixed, is_hex_address

from tipjar.errors import InvalidAmount
from tipjar.helpers.constants import NATIVE_DECIMALS


AMOUNT_PATTERN = re.compile(r"^(\d+(\.\d+)?|\.\d+)$")


def parse_hex_int(hex_value: str | None, default: int = 0) -> int:
    """Parse hex string to integer.

    Args:
        hex_value: Hex-encoded string or None
        default: Default value if hex_value is None

    Returns:
        int: Parsed integer value

    Example:
        >>> parse_hex_int("0xff")
        255
        >>> parse_hex_int(None, 0)
        0
    """
    if hex_value is None:
        return default
    return int(hex_value, 16)


def to_hex(value: int) -> str:
    """Encode a non-negative integer as a 0x-prefixed JSON-RPC quantity.

    Example:
        >>> to_hex(8083)
        '0x1f93'
    """
    if value < 0:
        msg = f"Cannot hex-encode negative quantity {value}"
        raise ValueError(msg)
    return hex(value)


def normalize_chain_id(chain_id: object) -> str:
    """Lowercase 0x-prefixed hex form of a provider-reported chain id.

    Some providers report the id as a number instead of a hex string.

    Example:
        >>> normalize_chain_id("0x1F93")
        '0x1f93'
        >>> normalize_chain_id(8083)
        '0x1f93'
    """
    if isinstance(chain_id, int) and not isinstance(chain_id, bool):
        return to_hex(chain_id)
    return str(chain_id).lower()


def to_base_units(amount: str, decimals: int = NATIVE_DECIMALS) -> int:
    """Convert a decimal token amount string to integer base units.

    The conversion is pure integer arithmetic, amounts with more fractional
    digits than ``decimals`` are rejected rather than rounded.

    Args:
        amount: Decimal amount such as "1", "0.05" or ".5"
        decimals: Number of decimals of the token

    Returns:
        int: Amount in base units

    Raises:
        InvalidAmount: If the string is empty, not a plain decimal, or too precise

    Example:
        >>> to_base_units("0.05")
        50000000000000000
    """
    text = amount.strip() if isinstance(amount, str) else ""
    if not text or not AMOUNT_PATTERN.match(text):
        msg = f"Invalid amount: {amount!r}"
        raise InvalidAmount(msg)

    whole, _, fraction = text.partition(".")
    if len(fraction) > decimals:
        msg = f"Amount {amount!r} has more than {decimals} decimal places"
        raise InvalidAmount(msg)

    return int(whole or "0") * 10**decimals + int(fraction.ljust(decimals, "0") or "0")


def from_base_units(value: int, decimals: int = NATIVE_DECIMALS) -> str:
    """Convert integer base units to a normalized decimal amount string.

    Example:
        >>> from_base_units(50000000000000000)
        '0.05'
        >>> from_base_units(10**18)
        '1'
    """
    sign = "-" if value < 0 else ""
    whole, fraction = divmod(abs(value), 10**decimals)
    fraction_text = str(fraction).rjust(decimals, "0").rstrip("0") if decimals else ""
    if fraction_text:
        return f"{sign}{whole}.{fraction_text}"
    return f"{sign}{whole}"


def is_valid_address(address: object) -> bool:
    """Check that a value is a 0x-prefixed 20-byte hex address.

    Letter case is ignored, mixed-case checksums are not enforced.

    Example:
        >>> is_valid_address("0x26d6a3805cbae5d5a510443a15129bec456cacff")
        True
        >>> is_valid_address("26d6a3805cbae5d5a510443a15129bec456cacff")
        False
    """
    if not isinstance(address, str):
        return False
    return is_0x_prefixed(address) and is_hex_address(address)


def format_address(address: str | None) -> str:
    """Shorten an address for display.

    Example:
        >>> format_address("0x26d6a3805cbae5d5a510443a15129bec456cacff")
        '0x26d6...acff'
    """
    if not address:
        return ""
    return f"{address[:6]}...{address[-4:]}"


__all__ = [
    "AMOUNT_PATTERN",
    "format_address",
    "from_base_units",
    "is_valid_address",
    "normalize_chain_id",
    "parse_hex_int",
    "to_base_units",
    "to_hex",
]
