from datetime import datetime, timezone
from typing import Optional

from eth_utils import is_address
from eth_utils import to_checksum_address as eth_to_checksum_address

from utils.logger_utils import get_logger

logger = get_logger("Formatter Utils")


def to_checksum_address(address: Optional[str]) -> Optional[str]:
    """
    Converts an address to its EIP-55 checksummed form.
    Returns None for None, non-string or malformed input.
    """
    if address is None or not isinstance(address, str):
        return None

    if not is_address(address):
        logger.debug(f"Not a valid address: {address}")
        return None
    return eth_to_checksum_address(address)


def timestamp_to_datetime(timestamp: int) -> datetime:
    """
    Converts a unix timestamp in seconds to an aware UTC datetime.
    """
    return datetime.fromtimestamp(timestamp, tz=timezone.utc)


def format_timestamp(timestamp: int) -> str:
    try:
        return timestamp_to_datetime(timestamp).strftime("%Y-%m-%d %H:%M:%S UTC")
    except (OverflowError, OSError, ValueError):
        # Out of datetime range; show the raw value rather than fail the whole feed
        return str(timestamp)


def shorten_address(address: Optional[str], length: int = 6) -> str:
    """
    0x5FbDB2315678afecb367f032d93F642f64180aa3 -> 0x5FbD...0aa3
    """
    if not address:
        return "-"
    if len(address) <= 2 + length * 2:
        return address
    return f"{address[:length]}...{address[-4:]}"
