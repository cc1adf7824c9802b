"""
Token Scorer - safety score, degen score and investment potential

All weights below are tuned constants kept exactly as the bot has always
used them. Threshold chains are evaluated top-down with first match only,
which leaves a few lower tiers (price change < -50, safety < 20) unreachable;
that ordering is intentional and preserved.
"""

import logging
from datetime import datetime
from typing import List, Optional

from config.tuning import ScoringConfig
from core.session import CancellationToken
from data.collectors.honeypot_checker import HoneypotStatus
from data.models import TokenInsight, TokenMetrics, TokenRecord
from utils.errors import OperationCancelled
from utils.helpers import measure_time, round_half_up

logger = logging.getLogger(__name__)


def calculate_safety_score(token: TokenRecord, honeypot: HoneypotStatus) -> int:
    """Composite 0-100 safety heuristic used by the filter stage"""
    score = 100

    if honeypot.is_honeypot:
        score -= 50
    if not honeypot.can_sell:
        score -= 30

    liquidity_usd = token.liquidity.usd or 0
    if liquidity_usd < 500:
        score -= 20
    if liquidity_usd < 1000:
        score -= 10

    volume_24h = token.volume.h24
    if volume_24h < 100:
        score -= 15
    if volume_24h < 1000:
        score -= 10

    if token.total_txns_24h < 10:
        score -= 15

    if token.buy_tax > 10:
        score -= 10
    if token.sell_tax > 10:
        score -= 10

    return max(0, min(100, score))


def calculate_degen_score(token: TokenRecord, now: Optional[datetime] = None) -> float:
    """Speculative-opportunity score in [1, 10], rounded to one decimal"""
    score = 5.0

    age = token.age_hours(now)
    if age < 1:
        score += 3
    elif age < 6:
        score += 2
    elif age < 12:
        score += 1

    liquidity_usd = token.liquidity.usd or 0
    if liquidity_usd > 10000:
        score += 1.5
    elif liquidity_usd > 5000:
        score += 1
    elif liquidity_usd > 1000:
        score += 0.5
    elif liquidity_usd < 500:
        score -= 1

    volume_24h = token.volume.h24
    if volume_24h > 50000:
        score += 1.5
    elif volume_24h > 10000:
        score += 1
    elif volume_24h > 1000:
        score += 0.5
    elif volume_24h < 100:
        score -= 1

    price_change_24h = token.price_change.h24
    if price_change_24h > 50:
        score += 1
    elif price_change_24h > 20:
        score += 0.5
    elif price_change_24h < -20:
        score -= 0.5
    elif price_change_24h < -50:
        score -= 1

    txns_24h = token.total_txns_24h
    if txns_24h > 100:
        score += 1
    elif txns_24h > 50:
        score += 0.5
    elif txns_24h < 10:
        score -= 1

    buys = token.txns.h24.buys
    sells = token.txns.h24.sells
    if buys > sells * 1.5:
        score += 1
    elif buys < sells * 0.5:
        score -= 1

    # A missing or zero safety score contributes nothing
    if token.safety_score:
        if token.safety_score > 80:
            score += 1
        elif token.safety_score > 60:
            score += 0.5
        elif token.safety_score < 40:
            score -= 1
        elif token.safety_score < 20:
            score -= 2

    if liquidity_usd > 0:
        ratio = volume_24h / liquidity_usd
        if ratio > 1:
            score += 0.5
        elif ratio > 0.5:
            score += 0.25

    if token.market_cap:
        if token.market_cap < 100000:
            score += 0.5
        elif token.market_cap > 10000000:
            score -= 0.5

    return max(1.0, min(10.0, round_half_up(score, 1)))


def calculate_buy_pressure(token: TokenRecord) -> int:
    """Share of 24h trades that were buys, 0-100 (50 when there were none)"""
    buys = token.txns.h24.buys
    total = buys + token.txns.h24.sells
    if total == 0:
        return 50
    return int(round_half_up(buys / total * 100))


def calculate_momentum(token: TokenRecord) -> int:
    momentum = 50 + token.price_change.h24 * 0.5

    volume_24h = token.volume.h24
    if volume_24h > 10000:
        momentum += 10
    elif volume_24h > 1000:
        momentum += 5

    txns = token.total_txns_24h
    if txns > 100:
        momentum += 10
    elif txns > 50:
        momentum += 5

    buy_pressure = calculate_buy_pressure(token)
    if buy_pressure > 60:
        momentum += 10
    elif buy_pressure < 40:
        momentum -= 10

    return max(0, min(100, int(round_half_up(momentum))))


class TokenScorer:
    """Scores a filtered token batch and optionally attaches AI narratives"""

    def __init__(self, config: Optional[ScoringConfig] = None, ai_analyst=None):
        """
        Args:
            config: Potential-label thresholds
            ai_analyst: Optional AIAnalyst; None disables narratives
        """
        self.config = config or ScoringConfig()
        self.ai_analyst = ai_analyst

    def get_investment_potential(self, score: float) -> str:
        if score >= self.config.very_high_threshold:
            return "🔥 VERY HIGH"
        if score >= self.config.high_threshold:
            return "🚀 HIGH"
        if score >= self.config.moderate_threshold:
            return "⚡ MODERATE"
        if score >= self.config.low_threshold:
            return "⚠️ LOW"
        return "🛑 VERY LOW"

    @measure_time
    async def score_tokens(self, tokens: List[TokenRecord],
                           cancel: Optional[CancellationToken] = None,
                           now: Optional[datetime] = None) -> List[TokenRecord]:
        """
        Attach degen score, potential label and narrative to every token.

        Tokens whose narrative lookup fails are still included with their
        locally computed score. Returns a new list sorted by degen score,
        highest first; ties keep input order.
        """
        logger.info(f"🤖 AI analyzing {len(tokens)} tokens...")

        for token in tokens:
            try:
                token.degen_score = calculate_degen_score(token, now)
                token.investment_potential = self.get_investment_potential(token.degen_score)
                token.ai_recommendation = None

                if self.ai_analyst is not None and self.ai_analyst.enabled:
                    token.ai_recommendation = await self.ai_analyst.get_recommendation(token, now)
                    if cancel:
                        cancel.raise_if_cancelled()

            except OperationCancelled:
                raise
            except Exception as e:
                logger.error(f"❌ Error analyzing {token.symbol}: {e}")
                token.degen_score = calculate_degen_score(token, now)
                token.investment_potential = self.get_investment_potential(token.degen_score)

        # sorted() is stable, so equal scores keep their relative order
        ranked = sorted(tokens, key=lambda t: t.degen_score, reverse=True)
        logger.info("✅ AI analysis complete")
        return ranked

    async def analyze_single_token(self, token: TokenRecord,
                                   now: Optional[datetime] = None) -> TokenInsight:
        """Degen score, potential, derived metrics and a detailed narrative for one token"""
        logger.info(f"🤖 Deep analyzing {token.symbol}...")

        degen_score = calculate_degen_score(token, now)
        liquidity_usd = token.liquidity.usd or 0

        ai_insights = None
        if self.ai_analyst is not None and self.ai_analyst.enabled:
            ai_insights = await self.ai_analyst.get_detailed_analysis(token, now)

        return TokenInsight(
            token=token,
            degen_score=degen_score,
            investment_potential=self.get_investment_potential(degen_score),
            ai_insights=ai_insights,
            metrics=TokenMetrics(
                age_hours=token.age_hours(now),
                volume_to_liquidity=token.volume.h24 / liquidity_usd if liquidity_usd > 0 else 0.0,
                buy_pressure=calculate_buy_pressure(token),
                momentum=calculate_momentum(token),
            ),
        )
