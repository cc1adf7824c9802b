# tests/unit/test_collectors.py
"""
Unit tests for the external-service wrappers: DexScreener, Velodrome, chain
reads, honeypot checks and the block explorer
"""
import asyncio
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from data.collectors.block_explorer import PUBLIC_API_KEY, BlockExplorerClient
from data.collectors.chain_data import ChainDataCollector
from data.collectors.dexscreener import DexScreenerCollector
from data.collectors.honeypot_checker import HoneypotChecker
from data.collectors.velodrome import VelodromeCollector
from utils.results import CallResult

from fixtures.mock_data import MockDataGenerator
from fixtures.test_helpers import MockResponse, TestHelpers

ADDRESS = "0x4200000000000000000000000000000000000042"


@pytest.mark.unit
class TestDexScreenerCollector:

    @pytest.mark.asyncio
    async def test_chain_pairs_filters_age_and_liquidity(self, now):
        pairs = [
            MockDataGenerator.dexscreener_pair(symbol="NEW", created_at=now - timedelta(hours=3)),
            MockDataGenerator.dexscreener_pair(symbol="OLD", created_at=now - timedelta(hours=30)),
            MockDataGenerator.dexscreener_pair(symbol="DRY", created_at=now - timedelta(hours=1), liquidity_usd=50),
            MockDataGenerator.dexscreener_pair(symbol="NOAGE", created_at=None),
            {"baseToken": {}},
        ]
        collector = DexScreenerCollector(session=MagicMock())

        with patch.object(collector, "_make_request", AsyncMock(return_value=CallResult.success({"pairs": pairs}))):
            result = await collector.get_chain_pairs(now)

        assert result.ok
        assert [t.symbol for t in result.value] == ["NEW"]
        assert collector.stats["pairs_filtered"] == 3

    @pytest.mark.asyncio
    async def test_parse_pair_fields(self, now):
        created = now - timedelta(hours=2)
        raw = MockDataGenerator.dexscreener_pair(address=ADDRESS, created_at=created, buys=40, sells=20)
        token = DexScreenerCollector()._parse_pair(raw)

        assert token.contract_address == ADDRESS
        assert token.chain_id == "optimism"
        assert token.source == "dexscreener"
        assert token.price == pytest.approx(0.0042)
        assert token.liquidity.usd == 25000
        assert token.volume.h24 == 12000
        assert token.price_change.h24 == pytest.approx(18.7)
        assert token.txns.h24.buys == 40 and token.txns.h24.sells == 20
        assert token.market_cap == 420000
        assert token.pair_created_at == created.replace(microsecond=0)

    @pytest.mark.asyncio
    async def test_failure_propagates_as_result(self):
        collector = DexScreenerCollector(session=MagicMock())
        with patch.object(collector, "_make_request", AsyncMock(return_value=CallResult.failure("HTTP 429"))):
            result = await collector.get_chain_pairs()
        assert not result.ok
        assert result.error == "HTTP 429"

    @pytest.mark.asyncio
    async def test_token_details_first_pair_or_none(self):
        collector = DexScreenerCollector(session=MagicMock())
        first = MockDataGenerator.dexscreener_pair(address=ADDRESS, symbol="ONE")
        second = MockDataGenerator.dexscreener_pair(address=ADDRESS, symbol="TWO")

        with patch.object(collector, "_make_request",
                          AsyncMock(return_value=CallResult.success({"pairs": [first, second]}))) as request:
            details = await collector.get_token_details(ADDRESS)
        assert details.value.symbol == "ONE"
        assert request.call_args[0][0] == f"latest/dex/tokens/{ADDRESS}"

        with patch.object(collector, "_make_request", AsyncMock(return_value=CallResult.success({"pairs": None}))):
            details = await collector.get_token_details(ADDRESS)
        assert details.ok and details.value is None

    @pytest.mark.asyncio
    async def test_make_request_statuses(self):
        ok_session = TestHelpers.create_mock_session(MockResponse(200, {"pairs": []}))
        result = await DexScreenerCollector(session=ok_session)._make_request("latest/dex/tokens/optimism")
        assert result.ok and result.value == {"pairs": []}

        bad_session = TestHelpers.create_mock_session(MockResponse(503))
        result = await DexScreenerCollector(session=bad_session)._make_request("x")
        assert not result.ok and result.error == "HTTP 503"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [asyncio.TimeoutError(), aiohttp.ClientConnectionError("reset")])
    async def test_make_request_network_errors(self, error):
        collector = DexScreenerCollector(session=TestHelpers.create_mock_session(error=error))
        result = await collector._make_request("x")
        assert not result.ok
        assert collector.stats["failed_requests"] == 1


@pytest.mark.unit
class TestVelodromeCollector:

    @pytest.mark.asyncio
    async def test_recent_pairs_seconds_timestamps(self, now):
        pools = [
            MockDataGenerator.velodrome_pair(address=ADDRESS, symbol="VNEW", created_at=now - timedelta(hours=5)),
            MockDataGenerator.velodrome_pair(symbol="VOLD", created_at=now - timedelta(days=3)),
            MockDataGenerator.velodrome_pair(symbol="VDRY", created_at=now - timedelta(hours=1), tvl=10),
        ]
        session = TestHelpers.create_mock_session(MockResponse(200, {"data": pools}))

        result = await VelodromeCollector(session=session).get_recent_pairs(now)

        assert result.ok
        assert [t.symbol for t in result.value] == ["VNEW"]
        token = result.value[0]
        assert token.source == "velodrome"
        assert token.liquidity.usd == 8000
        assert token.volume.h24 == 2300
        assert token.age_hours(now) == pytest.approx(5.0)
        assert token.url.startswith("https://velodrome.finance/liquidity/")
        assert token.info["stable"] is False

    @pytest.mark.asyncio
    async def test_http_error_is_failure(self):
        session = TestHelpers.create_mock_session(MockResponse(500))
        result = await VelodromeCollector(session=session).get_recent_pairs()
        assert not result.ok

    @pytest.mark.asyncio
    async def test_missing_data_key_is_empty(self, now):
        session = TestHelpers.create_mock_session(MockResponse(200, {"success": True}))
        result = await VelodromeCollector(session=session).get_recent_pairs(now)
        assert result.ok and result.value == []


@pytest.mark.unit
class TestChainDataCollector:

    @pytest.fixture
    def w3(self):
        w3 = MagicMock()
        w3.eth.get_code = AsyncMock(return_value=b"\x60\x80\x60\x40")
        contract = MagicMock()
        contract.functions.owner.return_value.call = AsyncMock(return_value="0x" + "11" * 20)
        w3.eth.contract = MagicMock(return_value=contract)
        return w3

    @pytest.mark.asyncio
    async def test_get_code(self, w3):
        result = await ChainDataCollector(w3=w3).get_code(ADDRESS)
        assert result.ok and result.value == b"\x60\x80\x60\x40"

    @pytest.mark.asyncio
    async def test_get_code_failure(self, w3):
        w3.eth.get_code = AsyncMock(side_effect=ConnectionError("rpc down"))
        result = await ChainDataCollector(w3=w3).get_code(ADDRESS)
        assert not result.ok
        assert "rpc down" in result.error

    @pytest.mark.asyncio
    async def test_get_owner(self, w3):
        result = await ChainDataCollector(w3=w3).get_owner(ADDRESS)
        assert result.ok and result.value == "0x" + "11" * 20

    @pytest.mark.asyncio
    async def test_get_owner_reverts(self, w3):
        w3.eth.contract.return_value.functions.owner.return_value.call = AsyncMock(
            side_effect=ValueError("execution reverted")
        )
        result = await ChainDataCollector(w3=w3).get_owner(ADDRESS)
        assert not result.ok

    def test_has_code(self):
        assert ChainDataCollector.has_code(b"\x60")
        assert not ChainDataCollector.has_code(b"")
        assert not ChainDataCollector.has_code(None)

    def test_bytecode_text_includes_embedded_strings(self):
        text = ChainDataCollector.bytecode_text(b"\x60\x80Blacklist")
        assert text.startswith("0x6080")
        assert "blacklist" in text
        assert ChainDataCollector.bytecode_text(b"") == ""


@pytest.mark.unit
class TestHoneypotChecker:

    @pytest.mark.asyncio
    async def test_quick_check_flags_patterns(self, mock_chain):
        mock_chain.get_code = AsyncMock(return_value=CallResult.success(b"\x60\x80selfdestruct"))
        status = await HoneypotChecker(mock_chain, session=MagicMock()).quick_check(ADDRESS)
        assert status.is_honeypot
        assert not status.can_sell

    @pytest.mark.asyncio
    async def test_quick_check_clean(self, mock_chain):
        status = await HoneypotChecker(mock_chain, session=MagicMock()).quick_check(ADDRESS)
        assert not status.is_honeypot and status.can_buy and status.can_sell

    @pytest.mark.asyncio
    async def test_quick_check_fails_open(self, mock_chain):
        mock_chain.get_code = AsyncMock(return_value=CallResult.failure("timeout"))
        status = await HoneypotChecker(mock_chain, session=MagicMock()).quick_check(ADDRESS)
        assert not status.is_honeypot

    @pytest.mark.asyncio
    async def test_detailed_check_uses_simulation(self, mock_chain):
        session = TestHelpers.create_mock_session(
            MockResponse(200, MockDataGenerator.honeypot_is_response(is_honeypot=True, buy_tax=3, sell_tax=100))
        )
        status = await HoneypotChecker(mock_chain, session=session).detailed_check(ADDRESS)

        assert status.source == "honeypot.is"
        assert status.is_honeypot
        assert status.buy_tax == 3 and status.sell_tax == 100
        assert session.get.call_args.kwargs["params"] == {"address": ADDRESS, "chainID": 10}
        mock_chain.get_code.assert_not_called()

    @pytest.mark.asyncio
    async def test_detailed_check_falls_back_to_bytecode(self, mock_chain):
        session = TestHelpers.create_mock_session(MockResponse(404))
        status = await HoneypotChecker(mock_chain, session=session).detailed_check(ADDRESS)

        assert status.source == "bytecode"
        mock_chain.get_code.assert_awaited_once()

    def test_parse_top_level_fields(self):
        status = HoneypotChecker._parse_response({"isHoneypot": False, "buyTax": "4.5", "sellTax": None})
        assert not status.is_honeypot
        assert status.buy_tax == 4.5
        assert status.sell_tax == 0.0


@pytest.mark.unit
class TestBlockExplorerClient:

    @pytest.mark.asyncio
    async def test_verified(self):
        session = TestHelpers.create_mock_session(
            MockResponse(200, MockDataGenerator.etherscan_source_response())
        )
        result = await BlockExplorerClient("KEY", session=session).is_source_verified(ADDRESS)
        assert result.ok and result.value is True
        assert session.get.call_args.kwargs["params"]["apikey"] == "KEY"

    @pytest.mark.asyncio
    async def test_unverified_uses_public_key(self):
        session = TestHelpers.create_mock_session(
            MockResponse(200, MockDataGenerator.etherscan_source_response(source_code=""))
        )
        result = await BlockExplorerClient(session=session).is_source_verified(ADDRESS)
        assert result.ok and result.value is False
        assert session.get.call_args.kwargs["params"]["apikey"] == PUBLIC_API_KEY

    @pytest.mark.asyncio
    async def test_error_string_result_is_failure(self):
        session = TestHelpers.create_mock_session(
            MockResponse(200, {"status": "0", "message": "NOTOK", "result": "Max rate limit reached"})
        )
        result = await BlockExplorerClient(session=session).is_source_verified(ADDRESS)
        assert not result.ok
        assert result.error == "Max rate limit reached"
