"""
Velodrome Finance API Integration
Pool listings straight from the chain-native DEX (reserves and TVL, no trade counts)
"""

import asyncio
import logging
from datetime import datetime
from typing import Dict, List, Optional, Any

import aiohttp

from config.tuning import FetchConfig
from data.models import Liquidity, TokenRecord, Volume
from utils.constants import CHAIN_TAG, VELODROME_LIQUIDITY_URL, VELODROME_PAIRS_URL
from utils.helpers import timestamp_to_datetime, to_float, utc_now
from utils.results import CallResult

logger = logging.getLogger(__name__)


class VelodromeCollector:
    """Velodrome pair collector"""

    SOURCE = "velodrome"

    def __init__(self, config: Optional[FetchConfig] = None,
                 session: Optional[aiohttp.ClientSession] = None):
        self.config = config or FetchConfig()
        self.url = VELODROME_PAIRS_URL
        self.session = session
        self._owns_session = session is None

        self.stats = {
            'total_requests': 0,
            'failed_requests': 0,
            'pairs_found': 0,
            'pairs_filtered': 0
        }

    async def initialize(self):
        if not self.session:
            timeout = aiohttp.ClientTimeout(total=self.config.velodrome_timeout)
            self.session = aiohttp.ClientSession(
                timeout=timeout,
                headers={'User-Agent': self.config.user_agent}
            )
            self._owns_session = True

    async def close(self):
        if self.session and self._owns_session:
            await self.session.close()
        self.session = None

    async def _fetch_pairs(self) -> CallResult[List[Dict]]:
        await self.initialize()
        self.stats['total_requests'] += 1

        try:
            async with self.session.get(
                self.url,
                timeout=aiohttp.ClientTimeout(total=self.config.velodrome_timeout),
                headers={'User-Agent': self.config.user_agent}
            ) as response:
                if response.status != 200:
                    self.stats['failed_requests'] += 1
                    logger.warning(f"Velodrome request failed: {response.status}")
                    return CallResult.failure(f"HTTP {response.status}")

                payload = await response.json()
                return CallResult.success((payload or {}).get('data') or [])

        except asyncio.TimeoutError:
            self.stats['failed_requests'] += 1
            logger.warning("Velodrome request timeout")
            return CallResult.failure("timeout")
        except (aiohttp.ClientError, ValueError) as e:
            self.stats['failed_requests'] += 1
            logger.error(f"❌ Velodrome fetch error: {e}")
            return CallResult.failure(str(e))

    async def get_recent_pairs(self, now: Optional[datetime] = None) -> CallResult[List[TokenRecord]]:
        """
        Pools created inside the freshness window with TVL at or above the source minimum.

        Velodrome reports ``created`` in epoch seconds; it is normalized to an
        aware datetime like every other source.
        """
        result = await self._fetch_pairs()
        if not result.ok:
            return CallResult.failure(result.error)

        now = now or utc_now()
        tokens: List[TokenRecord] = []
        for pair in result.value:
            token = self._parse_pair(pair)
            if token is None:
                continue
            self.stats['pairs_found'] += 1

            fresh = token.age_hours(now) <= self.config.fresh_window_hours
            liquid = (token.liquidity.usd or 0) >= self.config.source_min_liquidity_usd
            if fresh and liquid:
                tokens.append(token)
            else:
                self.stats['pairs_filtered'] += 1

        logger.info(f"✅ Velodrome: Found {len(tokens)} tokens")
        return CallResult.success(tokens)

    def _parse_pair(self, pair: Dict[str, Any]) -> Optional[TokenRecord]:
        token0 = pair.get('token0') or {}
        address = token0.get('address')
        if not address:
            return None

        pair_address = pair.get('address', '')
        return TokenRecord(
            contract_address=address,
            symbol=token0.get('symbol', ''),
            name=token0.get('name', ''),
            chain_id=CHAIN_TAG,
            dex_id=self.SOURCE,
            pair_address=pair_address,
            price_usd=token0.get('price') or 0,
            liquidity=Liquidity(
                usd=to_float(pair.get('tvl')),
                base=to_float(pair.get('reserve0')),
                quote=to_float(pair.get('reserve1')),
            ),
            volume=Volume(h24=to_float(pair.get('volumeUSD'))),
            market_cap=0.0,
            pair_created_at=timestamp_to_datetime(pair.get('created')),
            source=self.SOURCE,
            url=VELODROME_LIQUIDITY_URL.format(address=pair_address),
            info={'pool': pair_address, 'stable': pair.get('stable')},
        )
