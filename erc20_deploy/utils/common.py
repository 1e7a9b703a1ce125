import time
from datetime import datetime
from typing import Any, Optional


def hex_to_int(value: Any) -> int:
    """Convert hexadecimal string (or plain int) to integer"""
    if isinstance(value, bool):
        raise ValueError(f"Not a quantity: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value[:2].lower() == "0x":
        return int(value, 16)
    return int(value)


def int_to_hex(value: int) -> str:
    """Convert integer to hexadecimal string"""
    return hex(value)


def strip_hex_prefix(value: str) -> str:
    """Remove a leading 0x/0X marker if present"""
    if value[:2].lower() == "0x":
        return value[2:]
    return value


def add_hex_prefix(value: str) -> str:
    """Ensure a value carries the 0x marker"""
    return "0x" + strip_hex_prefix(value)


def format_timestamp(ts: Optional[float] = None) -> str:
    """Format timestamp to ISO format"""
    if ts is None:
        ts = time.time()
    return datetime.fromtimestamp(ts).isoformat()
