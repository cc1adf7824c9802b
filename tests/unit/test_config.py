# tests/unit/test_config.py
"""
Unit tests for environment settings and tuning overrides
"""
import pytest

from config.settings import Environment, Settings
from config.tuning import BotConfig
from utils.errors import ConfigurationError


@pytest.mark.unit
class TestSettings:

    def test_defaults(self):
        settings = Settings({"TELEGRAM_BOT_TOKEN": "123456:ABCDEFGHIJ"})

        assert settings.environment == Environment.DEVELOPMENT
        assert settings.rpc_url == "https://mainnet.optimism.io"
        assert settings.chain.chain_id == 10
        assert not settings.ai_enabled
        assert not settings.explorer_key_present
        assert settings.log_level == "INFO"
        assert settings.validate()

    def test_missing_bot_token(self):
        settings = Settings({})
        assert settings.missing_variables() == ["TELEGRAM_BOT_TOKEN"]
        with pytest.raises(ConfigurationError):
            settings.validate()

    def test_optional_keys(self):
        settings = Settings({
            "TELEGRAM_BOT_TOKEN": "t",
            "GROQ_API_KEY": "gsk_abc",
            "ETHERSCAN_API_KEY": "ETHKEY",
            "OPTIMISM_RPC_URL": "https://opt.example",
            "LOG_LEVEL": "debug",
        })
        assert settings.ai_enabled
        assert settings.explorer_key_present
        assert settings.rpc_url == "https://opt.example"
        assert settings.log_level == "DEBUG"

    def test_unknown_environment(self):
        with pytest.raises(ConfigurationError):
            Settings({"ENVIRONMENT": "staging"})

    def test_describe_masks_credentials(self):
        token = "123456789:ABCDEFGHIJKLMNOP"
        snapshot = Settings({"TELEGRAM_BOT_TOKEN": token}).describe()

        assert snapshot["telegram_bot_token"] != token
        assert snapshot["telegram_bot_token"].startswith("1234")
        assert snapshot["telegram_bot_token"].endswith("MNOP")
        assert snapshot["groq_api_key"] == ""
        assert snapshot["chain"] == "optimism"


@pytest.mark.unit
class TestBotConfig:

    def test_defaults(self):
        config = BotConfig.from_env_overrides({})

        assert config.fetch.fresh_window_hours == 24
        assert config.filter.min_liquidity_usd == 100
        assert config.filter.suspicious_flag_limit == 3
        assert config.scoring.very_high_threshold == 8.0
        assert config.analysis.safe_max_score == 3
        assert config.pacing.message_delay_seconds == 0.5

    def test_overrides_are_coerced(self):
        config = BotConfig.from_env_overrides({
            "ALPHA_MIN_LIQUIDITY_USD": "2500",
            "ALPHA_FRESH_WINDOW_HOURS": "6",
            "ALPHA_SUSPICIOUS_FLAG_LIMIT": "1",
            "ALPHA_MESSAGE_DELAY": "0",
        })

        assert config.filter.min_liquidity_usd == 2500.0
        assert config.fetch.fresh_window_hours == 6.0
        assert config.filter.suspicious_flag_limit == 1
        assert config.pacing.message_delay_seconds == 0.0
        # Untouched fields in an overridden section keep their defaults
        assert config.filter.suspicious_tax_pct == 20.0

    def test_blank_override_ignored(self):
        assert BotConfig.from_env_overrides({"ALPHA_MIN_LIQUIDITY_USD": ""}).filter.min_liquidity_usd == 100

    @pytest.mark.parametrize("var,value", [
        ("ALPHA_MIN_LIQUIDITY_USD", "lots"),
        ("ALPHA_FRESH_WINDOW_HOURS", "0"),
        ("ALPHA_MESSAGE_DELAY", "-1"),
    ])
    def test_invalid_override(self, var, value):
        with pytest.raises(ConfigurationError):
            BotConfig.from_env_overrides({var: value})
