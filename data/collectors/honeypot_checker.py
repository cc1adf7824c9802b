"""
Honeypot Detection
honeypot.is simulation with a bytecode-pattern fallback
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, Optional

import aiohttp

from config.tuning import AnalysisConfig
from data.collectors.chain_data import ChainDataCollector
from utils.constants import Chain, HONEYPOT_IS_URL, HONEYPOT_PATTERNS
from utils.helpers import to_float
from utils.results import CallResult

logger = logging.getLogger(__name__)


@dataclass
class HoneypotStatus:
    is_honeypot: bool = False
    can_buy: bool = True
    can_sell: bool = True
    buy_tax: float = 0.0
    sell_tax: float = 0.0
    source: str = "bytecode"


class HoneypotChecker:
    """
    Two honeypot checks with different cost profiles.

    ``quick_check`` only reads bytecode and is used on every token during
    filtering; it fails open. ``detailed_check`` asks honeypot.is for a buy/sell
    simulation and falls back to the quick check when that service fails.
    """

    def __init__(self, chain: ChainDataCollector, config: Optional[AnalysisConfig] = None,
                 session: Optional[aiohttp.ClientSession] = None):
        self.chain = chain
        self.config = config or AnalysisConfig()
        self.session = session
        self._owns_session = session is None
        self.chain_id = int(Chain.OPTIMISM)

    async def initialize(self):
        if not self.session:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.config.honeypot_timeout)
            )
            self._owns_session = True

    async def close(self):
        if self.session and self._owns_session:
            await self.session.close()
        self.session = None

    @staticmethod
    def scan_bytecode(code_text: str) -> bool:
        """True if lower-cased bytecode text contains a honeypot pattern"""
        return any(pattern in code_text for pattern in HONEYPOT_PATTERNS)

    def status_from_code(self, code: Optional[bytes]) -> HoneypotStatus:
        flagged = self.scan_bytecode(ChainDataCollector.bytecode_text(code))
        return HoneypotStatus(is_honeypot=flagged, can_buy=not flagged, can_sell=not flagged)

    async def quick_check(self, address: str) -> HoneypotStatus:
        """Bytecode pattern check; any RPC failure counts as not a honeypot"""
        code = await self.chain.get_code(address)
        if not code.ok:
            return HoneypotStatus()
        return self.status_from_code(code.value)

    async def detailed_check(self, address: str) -> HoneypotStatus:
        result = await self._check_honeypot_is(address)
        if result.ok:
            return result.value

        logger.info(f"⚠️ Honeypot API unavailable ({result.error}), using local check")
        return await self.quick_check(address)

    async def _check_honeypot_is(self, address: str) -> CallResult[HoneypotStatus]:
        """Check token using Honeypot.is API"""
        await self.initialize()
        params = {
            "address": address,
            "chainID": self.chain_id
        }

        try:
            async with self.session.get(
                HONEYPOT_IS_URL,
                params=params,
                timeout=aiohttp.ClientTimeout(total=self.config.honeypot_timeout)
            ) as response:
                if response.status != 200:
                    return CallResult.failure(f"HTTP {response.status}")
                data = await response.json()

        except asyncio.TimeoutError:
            return CallResult.failure("timeout")
        except (aiohttp.ClientError, ValueError) as e:
            logger.error(f"Honeypot.is check failed: {e}")
            return CallResult.failure(str(e))

        if not data:
            return CallResult.failure("empty response")
        return CallResult.success(self._parse_response(data))

    @staticmethod
    def _parse_response(data: Dict) -> HoneypotStatus:
        # v2 nests the verdict; older payloads put the fields at the top level
        verdict = data.get("honeypotResult") or {}
        simulation = data.get("simulationResult") or {}

        is_honeypot = bool(verdict.get("isHoneypot", data.get("isHoneypot", False)))
        return HoneypotStatus(
            is_honeypot=is_honeypot,
            can_buy=not is_honeypot,
            can_sell=not is_honeypot,
            buy_tax=to_float(simulation.get("buyTax", data.get("buyTax"))),
            sell_tax=to_float(simulation.get("sellTax", data.get("sellTax"))),
            source="honeypot.is",
        )
