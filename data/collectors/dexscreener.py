"""
DexScreener API Integration
Pair listings for the Optimism chain and single-address lookups
"""

import asyncio
import logging
from datetime import datetime
from typing import Dict, List, Optional, Any

import aiohttp

from config.tuning import FetchConfig
from data.models import (
    Liquidity, PriceChange, TokenRecord, Transactions, TxnCount, Volume,
)
from utils.constants import (
    CHAIN_TAG, DEXSCREENER_BASE_URL, DEXSCREENER_CHAIN_ENDPOINT, DEXSCREENER_TOKEN_ENDPOINT,
)
from utils.helpers import timestamp_to_datetime, to_float, to_int, utc_now
from utils.results import CallResult

logger = logging.getLogger(__name__)


class DexScreenerCollector:
    """DexScreener data collector"""

    SOURCE = "dexscreener"

    def __init__(self, config: Optional[FetchConfig] = None,
                 session: Optional[aiohttp.ClientSession] = None):
        """
        Initialize DexScreener collector

        Args:
            config: Fetch tuning (timeouts, freshness window, minimum liquidity)
            session: Optional shared HTTP session; one is created on initialize() otherwise
        """
        self.config = config or FetchConfig()
        self.base_url = DEXSCREENER_BASE_URL
        self.session = session
        self._owns_session = session is None

        # Statistics
        self.stats = {
            'total_requests': 0,
            'successful_requests': 0,
            'failed_requests': 0,
            'pairs_found': 0,
            'pairs_filtered': 0
        }

    async def initialize(self):
        """Initialize the collector"""
        if not self.session:
            timeout = aiohttp.ClientTimeout(total=self.config.dexscreener_timeout)
            self.session = aiohttp.ClientSession(
                timeout=timeout,
                headers={'User-Agent': self.config.user_agent}
            )
            self._owns_session = True

    async def close(self):
        """Close the collector"""
        if self.session and self._owns_session:
            await self.session.close()
        self.session = None

    async def _make_request(self, endpoint: str, params: Dict = None,
                            timeout: Optional[float] = None) -> CallResult[Dict]:
        """
        Make API request with error handling

        Args:
            endpoint: API endpoint (without base URL)
            params: Query parameters
            timeout: Per-request timeout override in seconds

        Returns:
            CallResult carrying the decoded JSON body
        """
        await self.initialize()

        endpoint = endpoint.lstrip('/')
        url = f"{self.base_url}/{endpoint}"
        request_timeout = aiohttp.ClientTimeout(total=timeout or self.config.dexscreener_timeout)

        try:
            self.stats['total_requests'] += 1

            async with self.session.get(url, params=params, timeout=request_timeout,
                                        headers={'User-Agent': self.config.user_agent}) as response:
                if response.status == 200:
                    self.stats['successful_requests'] += 1
                    data = await response.json()
                    return CallResult.success(data or {})

                self.stats['failed_requests'] += 1
                logger.warning(f"DexScreener request failed: {response.status} - URL: {url}")
                return CallResult.failure(f"HTTP {response.status}")

        except asyncio.TimeoutError:
            self.stats['failed_requests'] += 1
            logger.warning(f"DexScreener request timeout: {url}")
            return CallResult.failure("timeout")
        except (aiohttp.ClientError, ValueError) as e:
            self.stats['failed_requests'] += 1
            logger.error(f"DexScreener request error: {e}")
            return CallResult.failure(str(e))

    async def get_chain_pairs(self, now: Optional[datetime] = None) -> CallResult[List[TokenRecord]]:
        """
        Recent pairs on the chain with at least the source minimum liquidity.

        Returns:
            CallResult with normalized TokenRecords, in API order
        """
        result = await self._make_request(DEXSCREENER_CHAIN_ENDPOINT)
        if not result.ok:
            return CallResult.failure(result.error)

        now = now or utc_now()
        tokens: List[TokenRecord] = []
        for pair_data in result.value.get('pairs') or []:
            token = self._parse_pair(pair_data)
            if token is None:
                continue
            self.stats['pairs_found'] += 1

            fresh = token.age_hours(now) <= self.config.fresh_window_hours
            liquid = (token.liquidity.usd or 0) >= self.config.source_min_liquidity_usd
            if fresh and liquid:
                tokens.append(token)
            else:
                self.stats['pairs_filtered'] += 1

        logger.info(f"✅ DexScreener: Found {len(tokens)} tokens")
        return CallResult.success(tokens)

    async def get_token_pairs(self, token_address: str) -> CallResult[List[TokenRecord]]:
        """
        Get all pairs for a token

        Args:
            token_address: Token contract address

        Returns:
            CallResult with one TokenRecord per pair
        """
        endpoint = DEXSCREENER_TOKEN_ENDPOINT.format(address=token_address)
        result = await self._make_request(endpoint, timeout=self.config.lookup_timeout)
        if not result.ok:
            return CallResult.failure(result.error)

        pairs = []
        for pair_data in result.value.get('pairs') or []:
            token = self._parse_pair(pair_data)
            if token:
                pairs.append(token)
        return CallResult.success(pairs)

    async def get_token_details(self, token_address: str) -> CallResult[Optional[TokenRecord]]:
        """Market data for an address taken from its first listed pair"""
        result = await self.get_token_pairs(token_address)
        if not result.ok:
            return result
        return CallResult.success(result.value[0] if result.value else None)

    def _parse_pair(self, data: Dict[str, Any]) -> Optional[TokenRecord]:
        """
        Parse raw pair data into a TokenRecord

        Args:
            data: Raw pair data from API

        Returns:
            TokenRecord or None when the pair has no base token address
        """
        base_token = data.get('baseToken') or {}
        address = base_token.get('address')
        if not address:
            return None

        liquidity = data.get('liquidity') or {}
        volume = data.get('volume') or {}
        price_change = data.get('priceChange') or {}
        txns = data.get('txns') or {}

        return TokenRecord(
            contract_address=address,
            symbol=base_token.get('symbol', ''),
            name=base_token.get('name', ''),
            chain_id=CHAIN_TAG,
            dex_id=data.get('dexId', ''),
            pair_address=data.get('pairAddress', ''),
            price_usd=data.get('priceUsd'),
            liquidity=Liquidity(
                usd=to_float(liquidity.get('usd')),
                base=to_float(liquidity.get('base')),
                quote=to_float(liquidity.get('quote')),
            ),
            volume=Volume(
                h1=to_float(volume.get('h1')),
                h6=to_float(volume.get('h6')),
                h24=to_float(volume.get('h24')),
            ),
            price_change=PriceChange(
                h1=to_float(price_change.get('h1')),
                h6=to_float(price_change.get('h6')),
                h24=to_float(price_change.get('h24')),
            ),
            txns=Transactions(
                h1=self._parse_txn_window(txns.get('h1')),
                h6=self._parse_txn_window(txns.get('h6')),
                h24=self._parse_txn_window(txns.get('h24')),
            ),
            market_cap=to_float(data.get('fdv')),
            pair_created_at=timestamp_to_datetime(data.get('pairCreatedAt')),
            source=self.SOURCE,
            url=data.get('url') or '',
            info=data.get('info') or {},
        )

    @staticmethod
    def _parse_txn_window(window: Optional[Dict]) -> TxnCount:
        window = window or {}
        return TxnCount(buys=to_int(window.get('buys')), sells=to_int(window.get('sells')))
