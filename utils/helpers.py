"""
Utility Helper Functions for Alpha Finders Bot
Address handling, timing, numeric coercion and text utilities shared by the pipeline
"""

import asyncio
import logging
import math
import time
from datetime import datetime, timezone
from functools import wraps
from typing import Any, Optional, Union

from eth_utils import is_address
from web3 import Web3

logger = logging.getLogger(__name__)

# ============= Decorators =============

def measure_time(func):
    """Measure execution time decorator"""
    @wraps(func)
    async def async_wrapper(*args, **kwargs):
        start = time.perf_counter()
        try:
            return await func(*args, **kwargs)
        finally:
            elapsed = time.perf_counter() - start
            logger.debug(f"{func.__name__} took {elapsed:.4f} seconds")

    @wraps(func)
    def sync_wrapper(*args, **kwargs):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed = time.perf_counter() - start
            logger.debug(f"{func.__name__} took {elapsed:.4f} seconds")

    return async_wrapper if asyncio.iscoroutinefunction(func) else sync_wrapper

# ============= Web3 Utilities =============

def is_valid_address(address: Any) -> bool:
    """Validate an EVM address (lower-case, upper-case or valid checksum)"""
    if not isinstance(address, str):
        return False
    try:
        return is_address(address)
    except (TypeError, ValueError):
        return False

def normalize_address(address: str) -> str:
    """Normalize EVM address to checksum format"""
    try:
        return Web3.to_checksum_address(address.lower())
    except (TypeError, ValueError):
        return address

def same_address(left: Optional[str], right: Optional[str]) -> bool:
    """Case-insensitive address comparison"""
    if not left or not right:
        return False
    return left.lower() == right.lower()

# ============= Time Utilities =============

def get_timestamp_ms() -> int:
    """Get current Unix timestamp in milliseconds"""
    return int(time.time() * 1000)

def utc_now() -> datetime:
    return datetime.now(timezone.utc)

def timestamp_to_datetime(value: Union[int, float, str, None]) -> Optional[datetime]:
    """
    Convert an epoch timestamp to an aware UTC datetime.

    Values above 1e11 are treated as milliseconds, anything smaller as
    seconds; the market-data APIs disagree on units.
    """
    if value in (None, "", 0):
        return None
    try:
        numeric = float(value)
    except (TypeError, ValueError):
        return None
    if numeric > 1e11:
        numeric /= 1000
    try:
        return datetime.fromtimestamp(numeric, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None

def hours_since(moment: Optional[datetime], now: Optional[datetime] = None) -> Optional[float]:
    if moment is None:
        return None
    now = now or utc_now()
    return (now - moment).total_seconds() / 3600

# ============= Data Formatting =============

def to_float(value: Any, default: float = 0.0) -> float:
    """Coerce API numbers (often strings or null) to float"""
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default

def to_int(value: Any, default: int = 0) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default

def truncate_string(text: str, max_length: int = 50, suffix: str = "...") -> str:
    """Truncate string to maximum length"""
    if len(text) <= max_length:
        return text
    return text[:max_length - len(suffix)] + suffix

def mask_sensitive_data(data: Optional[str], visible_chars: int = 4) -> str:
    """Mask sensitive data showing only first and last few characters"""
    if not data:
        return ""
    if len(data) <= visible_chars * 2:
        return '*' * len(data)

    return f"{data[:visible_chars]}{'*' * (len(data) - visible_chars * 2)}{data[-visible_chars:]}"

def round_half_up(value: float, digits: int = 0) -> float:
    """Round with .5 going up, unlike the built-in banker's rounding"""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor
