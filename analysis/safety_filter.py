"""
Safety Filter - drops obvious scams before scoring

Rules run in order and the first failing rule excludes the token:
missing data, low liquidity, suspicious patterns, quick honeypot check.
Survivors get a 0-100 safety score.
"""

import logging
from typing import List, Optional, Tuple

from config.tuning import FilterConfig
from core.session import CancellationToken
from data.collectors.honeypot_checker import HoneypotChecker, HoneypotStatus
from data.models import TokenRecord
from analysis.token_scorer import calculate_safety_score
from utils.constants import NON_ALPHANUMERIC
from utils.errors import OperationCancelled
from utils.helpers import measure_time

logger = logging.getLogger(__name__)

REASON_MISSING_DATA = "missing data"
REASON_LOW_LIQUIDITY = "low liquidity"
REASON_SUSPICIOUS = "suspicious patterns"
REASON_HONEYPOT = "honeypot detected"

# (contract address, reason)
Rejection = Tuple[str, str]


class SafetyFilter:
    """Heuristic scam filter for freshly fetched tokens"""

    def __init__(self, honeypot_checker: HoneypotChecker, config: Optional[FilterConfig] = None):
        self.honeypot_checker = honeypot_checker
        self.config = config or FilterConfig()

    def count_suspicious_flags(self, token: TokenRecord) -> int:
        flags = 0

        if NON_ALPHANUMERIC.search(token.symbol or ""):
            flags += 1

        if token.buy_tax > self.config.suspicious_tax_pct or token.sell_tax > self.config.suspicious_tax_pct:
            flags += 1

        liquidity_usd = token.liquidity.usd or 0
        if token.market_cap and liquidity_usd:
            if liquidity_usd / token.market_cap < self.config.min_liquidity_to_mcap_ratio:
                flags += 1

        if token.volume.h24 == 0 and token.txns.h24.buys == 0:
            flags += 1

        return flags

    def is_suspicious(self, token: TokenRecord) -> bool:
        return self.count_suspicious_flags(token) > self.config.suspicious_flag_limit

    def check_static_rules(self, token: TokenRecord) -> Optional[str]:
        """Rejection reason from the rules that need no network call, else None"""
        if not token.contract_address or not token.liquidity.usd:
            return REASON_MISSING_DATA
        if token.liquidity.usd < self.config.min_liquidity_usd:
            return REASON_LOW_LIQUIDITY
        if self.is_suspicious(token):
            return REASON_SUSPICIOUS
        return None

    async def evaluate(self, token: TokenRecord) -> Tuple[Optional[str], Optional[HoneypotStatus]]:
        """
        Run every rule for one token.

        Returns:
            (rejection reason or None, honeypot status when the check ran)
        """
        reason = self.check_static_rules(token)
        if reason:
            return reason, None

        honeypot = await self.honeypot_checker.quick_check(token.contract_address)
        if honeypot.is_honeypot:
            return REASON_HONEYPOT, honeypot
        return None, honeypot

    @measure_time
    async def filter_safe(self, tokens: List[TokenRecord],
                          cancel: Optional[CancellationToken] = None,
                          rejections: Optional[List[Rejection]] = None) -> List[TokenRecord]:
        """
        Survivors in input order, each with ``safety_score`` attached.

        When ``rejections`` is given, every excluded token is appended to it
        as (contract address, reason). The filter keeps no per-run state.
        """
        logger.info(f"🛡️ Filtering {len(tokens)} tokens for safety...")
        safe_tokens: List[TokenRecord] = []

        for token in tokens:
            try:
                reason, honeypot = await self.evaluate(token)
                if cancel:
                    cancel.raise_if_cancelled()

                if reason:
                    if rejections is not None:
                        rejections.append((token.contract_address, reason))
                    logger.info(f"⚠️ {token.symbol}: excluded ({reason}, liquidity ${token.liquidity.usd})")
                    continue

                token.safety_score = calculate_safety_score(token, honeypot)
                safe_tokens.append(token)

            except OperationCancelled:
                raise
            except Exception as e:
                logger.error(f"❌ Error checking {token.symbol}: {e}")

        logger.info(f"✅ {len(safe_tokens)} safe tokens found")
        return safe_tokens
