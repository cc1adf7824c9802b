# tests/conftest.py
"""
Global pytest configuration and fixtures
"""
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable
from unittest.mock import AsyncMock, Mock

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))
# Tests dir, so the fixtures helpers are importable
sys.path.insert(0, str(Path(__file__).parent))

from config.tuning import BotConfig
from core.session import CancellationToken, SessionStore
from data.collectors.honeypot_checker import HoneypotStatus
from data.models import Liquidity, PriceChange, TokenRecord, Transactions, TxnCount, Volume
from data.storage.watchlist import WatchlistStore
from utils.results import CallResult

# Fixed clock shared by every age-dependent test
NOW = datetime(2025, 1, 15, 12, 0, 0, tzinfo=timezone.utc)

VALID_ADDRESS = "0x4200000000000000000000000000000000000042"


def create_mock_token(address: str = VALID_ADDRESS, **kwargs) -> TokenRecord:
    """Create a healthy-looking token; any field can be overridden"""
    age_hours = kwargs.pop("age_hours", 2.0)
    liquidity_usd = kwargs.pop("liquidity_usd", 50_000.0)
    volume_24h = kwargs.pop("volume_24h", 25_000.0)
    price_change_24h = kwargs.pop("price_change_24h", 10.0)
    buys = kwargs.pop("buys", 60)
    sells = kwargs.pop("sells", 40)

    defaults = dict(
        contract_address=address,
        symbol="TEA",
        name="Tea Token",
        dex_id="velodrome",
        pair_address="0x" + "ab" * 20,
        price_usd="0.0123",
        liquidity=Liquidity(usd=liquidity_usd),
        volume=Volume(h24=volume_24h),
        price_change=PriceChange(h24=price_change_24h),
        txns=Transactions(h24=TxnCount(buys=buys, sells=sells)),
        market_cap=500_000.0,
        pair_created_at=None if age_hours is None else NOW - timedelta(hours=age_hours),
        source="dexscreener",
    )
    defaults.update(kwargs)
    return TokenRecord(**defaults)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def make_token() -> Callable[..., TokenRecord]:
    """Token factory fixture"""
    return create_mock_token


@pytest.fixture
def sessions() -> SessionStore:
    return SessionStore()


@pytest.fixture
def watchlist() -> WatchlistStore:
    return WatchlistStore()


@pytest.fixture
def bot_config() -> BotConfig:
    config = BotConfig()
    config.pacing.message_delay_seconds = 0
    return config


@pytest.fixture
def cancel_token() -> CancellationToken:
    return CancellationToken()


@pytest.fixture
def mock_honeypot_checker():
    """Honeypot checker that reports every token as tradable"""
    checker = Mock()
    clean = HoneypotStatus(is_honeypot=False, can_buy=True, can_sell=True)
    checker.quick_check = AsyncMock(return_value=clean)
    checker.detailed_check = AsyncMock(return_value=clean)
    return checker


@pytest.fixture
def mock_dexscreener():
    collector = Mock()
    collector.get_chain_pairs = AsyncMock(return_value=CallResult.success([]))
    collector.get_token_pairs = AsyncMock(return_value=CallResult.success([]))
    collector.get_token_details = AsyncMock(return_value=CallResult.success(None))
    return collector


@pytest.fixture
def mock_velodrome():
    collector = Mock()
    collector.get_recent_pairs = AsyncMock(return_value=CallResult.success([]))
    return collector


@pytest.fixture
def mock_chain():
    """Chain reader returning non-empty bytecode and a live owner"""
    chain = Mock()
    chain.get_code = AsyncMock(return_value=CallResult.success(b"\x60\x80\x60\x40"))
    chain.get_owner = AsyncMock(return_value=CallResult.success("0x" + "11" * 20))
    return chain


@pytest.fixture
def mock_explorer():
    explorer = Mock()
    explorer.is_source_verified = AsyncMock(return_value=CallResult.success(False))
    return explorer
