"""
AI Analyst - narrative recommendations from a chat-completions endpoint (Groq)

Narratives are decoration: every failure path returns None and the token
keeps its locally computed scores.
"""

import asyncio
import logging
from datetime import datetime
from typing import Dict, List, Optional

import aiohttp

from config.tuning import AIConfig
from data.models import TokenRecord
from utils.constants import GROQ_API_URL
from utils.helpers import mask_sensitive_data
from utils.results import CallResult

logger = logging.getLogger(__name__)

RECOMMENDATION_SYSTEM_PROMPT = (
    "You are a cryptocurrency investment analyst specializing in TEA Protocol tokens. "
    "Provide brief, actionable insights."
)

INSIGHT_SYSTEM_PROMPT = (
    "You are an expert cryptocurrency analyst for TEA Protocol. "
    "Provide structured, concise analysis."
)


def _safety_text(token: TokenRecord) -> str:
    return str(token.safety_score) if token.safety_score else "N/A"


def build_recommendation_prompt(token: TokenRecord, now: Optional[datetime] = None) -> str:
    return (
        "Analyze this TEA Protocol token and provide a brief investment recommendation (max 2 sentences):\n\n"
        f"Token: {token.symbol} ({token.name})\n"
        "Chain: Optimism (TEA Protocol)\n"
        f"Age: {token.age_hours(now):.1f} hours\n"
        f"Price: ${token.price_usd or 0}\n"
        f"Liquidity: ${token.liquidity.usd or 0}\n"
        f"Volume 24h: ${token.volume.h24}\n"
        f"Price Change 24h: {token.price_change.h24}%\n"
        f"Transactions 24h: {token.total_txns_24h}\n"
        f"Safety Score: {_safety_text(token)}\n\n"
        "Provide a concise recommendation focusing on risk/reward."
    )


def build_insight_prompt(token: TokenRecord, now: Optional[datetime] = None) -> str:
    return (
        "Provide a detailed analysis of this TEA Protocol token:\n\n"
        f"Token: {token.symbol} ({token.name})\n"
        f"Contract: {token.contract_address}\n"
        "Chain: Optimism (TEA Protocol)\n"
        f"Age: {token.age_hours(now):.1f} hours\n"
        f"Current Price: ${token.price_usd or 0}\n"
        f"Liquidity: ${token.liquidity.usd or 0}\n"
        f"Volume 24h: ${token.volume.h24}\n"
        f"Market Cap: ${token.market_cap or 'N/A'}\n"
        f"Price Change 24h: {token.price_change.h24}%\n"
        f"Buy/Sell Ratio: {token.txns.h24.buys}/{token.txns.h24.sells}\n"
        f"Safety Score: {_safety_text(token)}\n\n"
        "Analyze:\n"
        "1. Risk factors (2-3 points)\n"
        "2. Opportunity factors (2-3 points)\n"
        "3. Final recommendation (1 sentence)\n\n"
        "Be concise and actionable."
    )


class AIAnalyst:
    """Groq chat-completions client; disabled when no API key is configured"""

    def __init__(self, api_key: str = "", config: Optional[AIConfig] = None,
                 session: Optional[aiohttp.ClientSession] = None):
        self.api_key = api_key
        self.config = config or AIConfig()
        self._session = session
        self._owns_session = session is None

        if not self.enabled:
            logger.warning("⚠️ GROQ_API_KEY not set - AI narratives disabled")
        else:
            logger.info(f"✅ Groq provider configured ({self.config.model}, key {mask_sensitive_data(api_key)})")

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    async def initialize(self):
        if not self._session:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.config.insight_timeout)
            )
            self._owns_session = True

    async def close(self):
        if self._session and self._owns_session:
            await self._session.close()
        self._session = None

    async def get_recommendation(self, token: TokenRecord,
                                 now: Optional[datetime] = None) -> Optional[str]:
        """Two-sentence risk/reward narrative, or None"""
        if not self.enabled:
            return None

        result = await self._complete(
            messages=[
                {"role": "system", "content": RECOMMENDATION_SYSTEM_PROMPT},
                {"role": "user", "content": build_recommendation_prompt(token, now)},
            ],
            max_tokens=self.config.recommendation_max_tokens,
            timeout=self.config.recommendation_timeout,
        )
        if not result.ok:
            logger.error(f"❌ AI recommendation error for {token.symbol}: {result.error}")
        return result.unwrap_or(None)

    async def get_detailed_analysis(self, token: TokenRecord,
                                    now: Optional[datetime] = None) -> Optional[str]:
        """Risk factors, opportunity factors and a verdict for one token, or None"""
        if not self.enabled:
            return None

        result = await self._complete(
            messages=[
                {"role": "system", "content": INSIGHT_SYSTEM_PROMPT},
                {"role": "user", "content": build_insight_prompt(token, now)},
            ],
            max_tokens=self.config.insight_max_tokens,
            timeout=self.config.insight_timeout,
        )
        if not result.ok:
            logger.error(f"❌ Detailed AI analysis error for {token.symbol}: {result.error}")
        return result.unwrap_or(None)

    async def _complete(self, messages: List[Dict[str, str]], max_tokens: int,
                        timeout: float) -> CallResult[str]:
        """Call the chat-completions API and return the first choice's text"""
        await self.initialize()
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }
        payload = {
            "model": self.config.model,
            "messages": messages,
            "temperature": self.config.temperature,
            "max_tokens": max_tokens
        }

        try:
            async with self._session.post(
                GROQ_API_URL,
                headers=headers,
                json=payload,
                timeout=aiohttp.ClientTimeout(total=timeout)
            ) as response:
                if response.status != 200:
                    error_text = await response.text()
                    logger.debug(f"Groq error body: {error_text}")
                    return CallResult.failure(f"API error: {response.status}")

                data = await response.json()

        except asyncio.TimeoutError:
            return CallResult.failure("timeout")
        except (aiohttp.ClientError, ValueError) as e:
            return CallResult.failure(str(e))

        try:
            content = data['choices'][0]['message']['content']
        except (KeyError, IndexError, TypeError):
            return CallResult.failure("malformed completion payload")

        return CallResult.success((content or "").strip() or None)
