"""
Data Aggregator - Market Data Fetcher for Alpha Finders Bot
Combines DexScreener and Velodrome listings into one deduplicated, fresh token batch
"""

import logging
from datetime import datetime
from typing import Awaitable, List, Optional

from config.tuning import FetchConfig
from core.session import CancellationToken
from data.collectors.dexscreener import DexScreenerCollector
from data.collectors.velodrome import VelodromeCollector
from data.models import TokenRecord
from utils.errors import OperationCancelled
from utils.helpers import measure_time, utc_now
from utils.results import CallResult

logger = logging.getLogger(__name__)


class TokenAggregator:
    """
    Fetches fresh tokens from both market-data sources.

    A failing source contributes an empty list; the aggregate call itself
    never raises except to propagate a user cancellation.
    """

    def __init__(self, dexscreener: DexScreenerCollector, velodrome: VelodromeCollector,
                 config: Optional[FetchConfig] = None):
        self.dexscreener = dexscreener
        self.velodrome = velodrome
        self.config = config or FetchConfig()

    @measure_time
    async def fetch_fresh_tokens(self, cancel: Optional[CancellationToken] = None,
                                 now: Optional[datetime] = None) -> List[TokenRecord]:
        """
        Tokens from both sources, deduplicated by lower-cased contract
        address (first occurrence wins) and limited to pairs created inside
        the freshness window.
        """
        logger.info("🫖 Fetching fresh TEA Protocol tokens...")
        now = now or utc_now()

        try:
            tokens: List[TokenRecord] = []
            tokens.extend(await self._collect("DexScreener", self.dexscreener.get_chain_pairs(now), cancel))
            tokens.extend(await self._collect("Velodrome", self.velodrome.get_recent_pairs(now), cancel))

            unique = self.remove_duplicates(tokens)
            fresh = self.filter_by_age(unique, self.config.fresh_window_hours, now)
        except OperationCancelled:
            raise
        except Exception as e:
            logger.error(f"❌ Error fetching TEA tokens: {e}", exc_info=True)
            return []

        logger.info(f"✅ Found {len(fresh)} fresh TEA Protocol tokens")
        return fresh

    @staticmethod
    async def _collect(name: str, call: Awaitable[CallResult[List[TokenRecord]]],
                       cancel: Optional[CancellationToken]) -> List[TokenRecord]:
        result = await call
        if cancel:
            cancel.raise_if_cancelled()
        if not result.ok:
            logger.warning(f"❌ {name} contributed nothing: {result.error}")
            return []
        return result.value

    @staticmethod
    def remove_duplicates(tokens: List[TokenRecord]) -> List[TokenRecord]:
        seen = set()
        unique = []
        for token in tokens:
            key = token.address_key
            if not key or key in seen:
                continue
            seen.add(key)
            unique.append(token)
        return unique

    @staticmethod
    def filter_by_age(tokens: List[TokenRecord], max_age_hours: float,
                      now: Optional[datetime] = None) -> List[TokenRecord]:
        now = now or utc_now()
        return [token for token in tokens if token.age_hours(now) <= max_age_hours]
