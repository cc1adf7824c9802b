"""
Rug Detector - deep analysis of a single contract address

Runs address validation, bytecode fetch, honeypot simulation, bytecode
feature scan, ownership check, liquidity lookup and a verified-source lookup,
then folds the findings into a 0-10 risk score and a risk level.
"""

import logging
from typing import Optional

from config.tuning import AnalysisConfig
from core.session import CancellationToken
from data.collectors.block_explorer import BlockExplorerClient
from data.collectors.chain_data import ChainDataCollector
from data.collectors.dexscreener import DexScreenerCollector
from data.collectors.honeypot_checker import HoneypotChecker
from data.models import ContractAnalysis, RiskLevel
from utils.constants import BLACKLIST_PATTERNS, MINT_PATTERNS, OWNER_PATTERNS, ZERO_ADDRESS
from utils.errors import OperationCancelled, RPCError
from utils.helpers import is_valid_address, measure_time, same_address

logger = logging.getLogger(__name__)

WARN_INVALID_ADDRESS = "Invalid contract address"
WARN_NO_CODE = "No contract code found - not a valid token"
WARN_MINT = "Contract has mint function - supply can increase"
WARN_BLACKLIST = "Contract may have blacklist functionality"
WARN_ANALYSIS_FAILED = "Failed to analyze contract"

REASON_VERIFIED = "Contract is verified - potentially eligible for teaRank"
REASON_UNVERIFIED = "Contract not verified - unlikely to be teaRank eligible"
REASON_UNKNOWN = "Could not verify teaRank eligibility"

REC_NO_RED_FLAGS = "No major red flags detected"
REC_LIQUIDITY_LOCKED = "Liquidity is locked - positive sign"
REC_ELIGIBLE = "Potentially eligible for teaRank rewards"


def calculate_risk_score(analysis: ContractAnalysis, config: Optional[AnalysisConfig] = None) -> int:
    """Fixed-weight 0-10 risk score derived only from the analysis flags"""
    config = config or AnalysisConfig()
    score = 0

    if analysis.is_honeypot:
        score += 10
    if not analysis.can_sell:
        score += 8
    if analysis.has_mint_function and not analysis.ownership_renounced:
        score += 3
    if analysis.has_blacklist:
        score += 3
    if not analysis.liquidity_locked:
        score += 2
    if analysis.buy_tax > config.tax_warning_pct:
        score += 2
    if analysis.sell_tax > config.tax_warning_pct:
        score += 2
    if not analysis.has_liquidity:
        score += 4

    if analysis.ownership_renounced:
        score -= 2
    if analysis.liquidity_locked:
        score -= 2
    if analysis.registry_eligible:
        score -= 1

    return max(0, min(10, score))


def get_risk_level(score: int, config: Optional[AnalysisConfig] = None) -> RiskLevel:
    config = config or AnalysisConfig()
    if score <= config.safe_max_score:
        return RiskLevel.SAFE
    if score <= config.caution_max_score:
        return RiskLevel.CAUTION
    return RiskLevel.RISKY


class RugDetector:
    """Deep Contract Analyzer"""

    def __init__(self, chain: ChainDataCollector, honeypot_checker: HoneypotChecker,
                 dexscreener: DexScreenerCollector, explorer: BlockExplorerClient,
                 config: Optional[AnalysisConfig] = None):
        self.chain = chain
        self.honeypot_checker = honeypot_checker
        self.dexscreener = dexscreener
        self.explorer = explorer
        self.config = config or AnalysisConfig()

    @measure_time
    async def analyze_contract(self, address: str,
                               cancel: Optional[CancellationToken] = None) -> ContractAnalysis:
        """
        Analyze one contract. Never raises except to propagate a user
        cancellation; unexpected failures come back as an UNKNOWN-level
        result with a single warning.
        """
        logger.info(f"🔍 Analyzing contract: {address}")
        try:
            analysis = await self._analyze(address, cancel)
        except OperationCancelled:
            raise
        except Exception as e:
            logger.error(f"❌ Analysis error for {address}: {e}")
            return ContractAnalysis(
                contract_address=address,
                is_valid=False,
                error=str(e),
                risk_level=RiskLevel.UNKNOWN,
                warnings=[WARN_ANALYSIS_FAILED],
            )

        logger.info(f"✅ Analysis complete. Risk: {analysis.risk_level.value}")
        return analysis

    async def _analyze(self, address: str, cancel: Optional[CancellationToken]) -> ContractAnalysis:
        analysis = ContractAnalysis(contract_address=address)

        if not is_valid_address(address):
            analysis.warnings.append(WARN_INVALID_ADDRESS)
            return analysis

        code_result = await self.chain.get_code(address)
        self._checkpoint(cancel)
        if not code_result.ok:
            raise RPCError(f"Could not fetch bytecode: {code_result.error}")

        code = code_result.value
        if not ChainDataCollector.has_code(code):
            analysis.warnings.append(WARN_NO_CODE)
            return analysis

        analysis.is_valid = True

        honeypot = await self.honeypot_checker.detailed_check(address)
        self._checkpoint(cancel)
        analysis.is_honeypot = honeypot.is_honeypot
        analysis.can_buy = honeypot.can_buy
        analysis.can_sell = honeypot.can_sell
        analysis.buy_tax = honeypot.buy_tax
        analysis.sell_tax = honeypot.sell_tax

        await self._scan_contract_code(analysis, code, cancel)
        await self._check_liquidity(analysis, cancel)
        await self._check_registry_eligibility(analysis, cancel)

        analysis.risk_score = calculate_risk_score(analysis, self.config)
        analysis.risk_level = get_risk_level(analysis.risk_score, self.config)

        if not analysis.warnings:
            analysis.recommendations.append(REC_NO_RED_FLAGS)
        if analysis.liquidity_locked:
            analysis.recommendations.append(REC_LIQUIDITY_LOCKED)
        if analysis.registry_eligible:
            analysis.recommendations.append(REC_ELIGIBLE)

        return analysis

    async def _scan_contract_code(self, analysis: ContractAnalysis, code: bytes,
                                  cancel: Optional[CancellationToken]):
        """Mint, blacklist and owner identifiers in bytecode, then a live owner() read"""
        code_text = ChainDataCollector.bytecode_text(code)

        if any(pattern in code_text for pattern in MINT_PATTERNS):
            analysis.has_mint_function = True
            analysis.warnings.append(WARN_MINT)

        if any(pattern in code_text for pattern in BLACKLIST_PATTERNS):
            analysis.has_blacklist = True
            analysis.warnings.append(WARN_BLACKLIST)

        analysis.has_owner = any(pattern in code_text for pattern in OWNER_PATTERNS)

        owner = await self.chain.get_owner(analysis.contract_address)
        self._checkpoint(cancel)
        if owner.ok:
            analysis.ownership_renounced = same_address(owner.value, ZERO_ADDRESS)

        if analysis.ownership_renounced:
            # No owner left to call mint
            analysis.warnings = [w for w in analysis.warnings if "mint function" not in w]

    async def _check_liquidity(self, analysis: ContractAnalysis, cancel: Optional[CancellationToken]):
        """Liquidity from the first market pair; lock status is never determinable"""
        pairs = await self.dexscreener.get_token_pairs(analysis.contract_address)
        self._checkpoint(cancel)
        analysis.liquidity_locked = False

        if not pairs.ok:
            logger.warning(f"Liquidity lookup failed for {analysis.contract_address}: {pairs.error}")
            return
        if not pairs.value:
            return

        first = pairs.value[0]
        analysis.liquidity_usd = first.liquidity.usd or 0.0
        analysis.has_liquidity = analysis.liquidity_usd > 0
        analysis.pair_address = first.pair_address or None

    async def _check_registry_eligibility(self, analysis: ContractAnalysis,
                                          cancel: Optional[CancellationToken]):
        """Verified source code stands in for teaRank eligibility"""
        verified = await self.explorer.is_source_verified(analysis.contract_address)
        self._checkpoint(cancel)

        if not verified.ok:
            analysis.recommendations.append(REASON_UNKNOWN)
        elif verified.value:
            analysis.registry_eligible = True
            analysis.recommendations.append(REASON_VERIFIED)
        else:
            analysis.recommendations.append(REASON_UNVERIFIED)

    @staticmethod
    def _checkpoint(cancel: Optional[CancellationToken]):
        if cancel:
            cancel.raise_if_cancelled()
