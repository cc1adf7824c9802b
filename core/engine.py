"""
Alpha Finders Engine - orchestrates the discovery and deep-analysis pipelines

Discovery: fetch -> safety filter -> scoring, one list pass per stage.
Deep analysis: a single-address pipeline, optionally followed by a market
snapshot of the same token.
"""

import logging
from typing import Awaitable, Callable, List, Optional

from analysis.rug_detector import RugDetector
from analysis.safety_filter import Rejection, SafetyFilter
from analysis.token_scorer import TokenScorer
from core.session import CancellationToken
from data.collectors.dexscreener import DexScreenerCollector
from data.models import ContractAnalysis, TokenInsight, TokenRecord
from data.processors.aggregator import TokenAggregator
from utils.helpers import measure_time

logger = logging.getLogger(__name__)

# Awaited with the number of completed discovery steps (1-3)
ProgressCallback = Callable[[int], Awaitable[None]]

DISCOVERY_STEPS = 4


class AlphaFindersEngine:
    """Wires the pipeline stages together; holds no per-user state"""

    def __init__(self, aggregator: TokenAggregator, safety_filter: SafetyFilter,
                 scorer: TokenScorer, rug_detector: RugDetector,
                 dexscreener: DexScreenerCollector):
        self.aggregator = aggregator
        self.safety_filter = safety_filter
        self.scorer = scorer
        self.rug_detector = rug_detector
        self.dexscreener = dexscreener

    @measure_time
    async def discover_tokens(self, cancel: CancellationToken,
                              on_progress: Optional[ProgressCallback] = None,
                              rejections: Optional[List[Rejection]] = None) -> List[TokenRecord]:
        """
        Fresh, safe, scored tokens sorted by degen score.

        ``cancel`` is checked after every stage and before each progress
        report; a stop raises OperationCancelled out of this call. Tokens the
        safety filter drops are appended to ``rejections`` when given.
        """
        await self._report(cancel, on_progress, 1)
        tokens = await self.aggregator.fetch_fresh_tokens(cancel)
        await self._report(cancel, on_progress, 2)

        tokens = await self.safety_filter.filter_safe(tokens, cancel, rejections)
        await self._report(cancel, on_progress, 3)

        tokens = await self.scorer.score_tokens(tokens, cancel)
        cancel.raise_if_cancelled()

        logger.info(f"🎉 Discovery finished with {len(tokens)} tokens")
        return tokens

    async def analyze_contract(self, address: str, cancel: CancellationToken) -> ContractAnalysis:
        analysis = await self.rug_detector.analyze_contract(address, cancel)
        cancel.raise_if_cancelled()
        return analysis

    async def token_insight(self, address: str, cancel: CancellationToken) -> Optional[TokenInsight]:
        """Market snapshot for an address, or None when no market data exists"""
        token = await self.find_token(address)
        cancel.raise_if_cancelled()
        if token is None:
            return None

        insight = await self.scorer.analyze_single_token(token)
        cancel.raise_if_cancelled()
        return insight

    async def find_token(self, address: str) -> Optional[TokenRecord]:
        details = await self.dexscreener.get_token_details(address)
        if not details.ok:
            logger.warning(f"Token lookup failed for {address}: {details.error}")
            return None
        return details.value

    @staticmethod
    async def _report(cancel: CancellationToken, on_progress: Optional[ProgressCallback], step: int):
        cancel.raise_if_cancelled()
        if on_progress is not None:
            await on_progress(step)
            cancel.raise_if_cancelled()
