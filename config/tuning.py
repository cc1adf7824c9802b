"""
Tuning parameters for the discovery and analysis pipeline.

Every default is the literal constant the bot has always shipped with. The
thresholds have no documented derivation, so they are exposed here as knobs
instead of being hard-coded in the scoring code.
"""

import os
from typing import ClassVar, Dict, Mapping, Optional, Tuple

from pydantic import BaseModel, Field, ValidationError

from utils.constants import USER_AGENT
from utils.errors import ConfigurationError


class FetchConfig(BaseModel):
    fresh_window_hours: float = Field(24.0, gt=0)
    source_min_liquidity_usd: float = Field(100.0, ge=0)
    dexscreener_timeout: float = Field(15.0, gt=0)
    velodrome_timeout: float = Field(15.0, gt=0)
    lookup_timeout: float = Field(10.0, gt=0)
    user_agent: str = USER_AGENT


class FilterConfig(BaseModel):
    min_liquidity_usd: float = Field(100.0, ge=0)
    suspicious_flag_limit: int = Field(3, ge=0)
    suspicious_tax_pct: float = 20.0
    min_liquidity_to_mcap_ratio: float = 0.01


class ScoringConfig(BaseModel):
    very_high_threshold: float = 8.0
    high_threshold: float = 6.5
    moderate_threshold: float = 5.0
    low_threshold: float = 3.0


class AnalysisConfig(BaseModel):
    safe_max_score: int = Field(3, ge=0, le=10)
    caution_max_score: int = Field(6, ge=0, le=10)
    tax_warning_pct: float = 10.0
    honeypot_timeout: float = Field(10.0, gt=0)
    explorer_timeout: float = Field(10.0, gt=0)


class AIConfig(BaseModel):
    model: str = "llama-3.3-70b-versatile"
    temperature: float = Field(0.7, ge=0, le=2)
    recommendation_max_tokens: int = Field(150, gt=0)
    insight_max_tokens: int = Field(300, gt=0)
    recommendation_timeout: float = Field(10.0, gt=0)
    insight_timeout: float = Field(15.0, gt=0)


class PacingConfig(BaseModel):
    message_delay_seconds: float = Field(0.5, ge=0)
    max_message_length: int = Field(4000, gt=100)
    poll_timeout: int = Field(30, ge=0)


class BotConfig(BaseModel):
    """All tuning sections grouped together"""
    fetch: FetchConfig = Field(default_factory=FetchConfig)
    filter: FilterConfig = Field(default_factory=FilterConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)
    ai: AIConfig = Field(default_factory=AIConfig)
    pacing: PacingConfig = Field(default_factory=PacingConfig)

    # env var -> (section, field)
    ENV_OVERRIDES: ClassVar[Dict[str, Tuple[str, str]]] = {
        'ALPHA_MIN_LIQUIDITY_USD': ('filter', 'min_liquidity_usd'),
        'ALPHA_FRESH_WINDOW_HOURS': ('fetch', 'fresh_window_hours'),
        'ALPHA_SUSPICIOUS_FLAG_LIMIT': ('filter', 'suspicious_flag_limit'),
        'ALPHA_MESSAGE_DELAY': ('pacing', 'message_delay_seconds'),
    }

    @classmethod
    def from_env_overrides(cls, environ: Optional[Mapping[str, str]] = None) -> "BotConfig":
        """Build defaults, then apply ``ALPHA_*`` overrides from the environment"""
        env = os.environ if environ is None else environ
        sections: Dict[str, Dict[str, str]] = {}
        for var, (section, field) in cls.ENV_OVERRIDES.items():
            raw = env.get(var)
            if raw not in (None, ''):
                sections.setdefault(section, {})[field] = raw

        try:
            return cls(**sections)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid tuning override: {e}") from e
