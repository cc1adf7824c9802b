"""
Block explorer client (Optimistic Etherscan)
Verified-source lookup used to approximate teaRank registry eligibility
"""

import asyncio
import logging
from typing import Optional

import aiohttp

from config.tuning import AnalysisConfig
from utils.constants import ETHERSCAN_API_URL
from utils.results import CallResult

logger = logging.getLogger(__name__)

# Etherscan's documented placeholder; requests still succeed at the keyless rate limit
PUBLIC_API_KEY = "YourApiKeyToken"


class BlockExplorerClient:
    """Etherscan-compatible ``contract/getsourcecode`` lookups"""

    def __init__(self, api_key: str = "", config: Optional[AnalysisConfig] = None,
                 session: Optional[aiohttp.ClientSession] = None):
        self.api_key = api_key or PUBLIC_API_KEY
        self.config = config or AnalysisConfig()
        self.session = session
        self._owns_session = session is None

    async def initialize(self):
        if not self.session:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.config.explorer_timeout)
            )
            self._owns_session = True

    async def close(self):
        if self.session and self._owns_session:
            await self.session.close()
        self.session = None

    async def is_source_verified(self, address: str) -> CallResult[bool]:
        """Whether the explorer holds verified source code for ``address``"""
        await self.initialize()
        params = {
            'module': 'contract',
            'action': 'getsourcecode',
            'address': address,
            'apikey': self.api_key
        }

        try:
            async with self.session.get(
                ETHERSCAN_API_URL,
                params=params,
                timeout=aiohttp.ClientTimeout(total=self.config.explorer_timeout)
            ) as response:
                if response.status != 200:
                    return CallResult.failure(f"HTTP {response.status}")
                data = await response.json()

        except asyncio.TimeoutError:
            return CallResult.failure("timeout")
        except (aiohttp.ClientError, ValueError) as e:
            logger.warning(f"Source verification lookup failed for {address}: {e}")
            return CallResult.failure(str(e))

        result = (data or {}).get('result')
        if not isinstance(result, list):
            # Rate-limit and error responses put a message string in 'result'
            return CallResult.failure(str(result))

        source_code = result[0].get('SourceCode') if result else None
        return CallResult.success(bool(source_code))
