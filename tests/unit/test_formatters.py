# tests/unit/test_formatters.py
"""
Unit tests for chat message formatting
"""
import pytest

from config.tuning import BotConfig
from data.models import ContractAnalysis, RiskLevel, TokenInsight, TokenMetrics, WatchlistEntry, WatchlistStats
from monitoring.formatters import (
    SEPARATOR,
    discovery_header,
    discovery_status,
    escape_markdown,
    format_age,
    format_analysis_message,
    format_insight_message,
    format_number,
    format_price_change,
    format_token_message,
    format_watchlist_message,
    risk_color,
    risk_emoji,
    settings_message,
    strip_markdown,
    welcome_message,
)


@pytest.mark.unit
class TestNumberFormatting:

    @pytest.mark.parametrize("value,expected", [
        (0, "0"),
        (None, "0"),
        (0.0000123, "1.23e-5"),
        (0.5, "0.5000"),
        (12.5, "12.50"),
        (1500, "1.50K"),
        (2_500_000, "2.50M"),
        (3_000_000_000, "3.00B"),
        ("0.0123", "0.0123"),
    ])
    def test_format_number(self, value, expected):
        assert format_number(value) == expected

    @pytest.mark.parametrize("change,expected", [
        (12.5, "📈 +12.50%"),
        (-4.5, "📉 -4.50%"),
        (0, "0%"),
        (None, "0%"),
    ])
    def test_format_price_change(self, change, expected):
        assert format_price_change(change) == expected

    @pytest.mark.parametrize("age_hours,expected", [
        (0.25, "15m"),
        (2.5, "2h 30m"),
        (50, "2d 2h"),
        (None, "Unknown"),
    ])
    def test_format_age(self, make_token, now, age_hours, expected):
        assert format_age(make_token(age_hours=age_hours), now) == expected

    @pytest.mark.parametrize("score,emoji", [
        (95, "🟢"), (80, "🟢"), (60, "🟡"), (45, "🟠"), (10, "🔴"), (None, "🟠"),
    ])
    def test_risk_emoji(self, score, emoji):
        assert risk_emoji(score) == emoji

    def test_risk_color(self):
        assert risk_color(RiskLevel.SAFE) == "🟢"
        assert risk_color(RiskLevel.RISKY) == "🔴"
        assert risk_color(RiskLevel.UNKNOWN) == "⚪"

    def test_escape_markdown(self):
        assert escape_markdown("MY_TOKEN*[x]`") == "MY\\_TOKEN\\*\\[x]\\`"
        assert escape_markdown(None) == ""

    def test_strip_markdown(self):
        assert strip_markdown("MY_TOKEN*[x]`\\") == "MYTOKENx]"
        assert strip_markdown(None) == ""


@pytest.mark.unit
class TestTokenMessage:

    def test_layout(self, make_token, now):
        token = make_token(safety_score=90, degen_score=8.4, investment_potential="🔥 VERY HIGH")
        text = format_token_message(token, 0, now)

        assert text.startswith(SEPARATOR)
        assert "🟢 *Token #1* 🟢" in text
        assert "🫖 *TEA* | Tea Token" in text
        assert "`0x4200000000000000000000000000000000000042`" in text
        assert "⏰ *Age:* 2h 0m" in text
        assert "🌐 *Chain:* TEA Protocol (Optimism)" in text
        assert "💰 *Price:* $0.0123" in text
        assert "💧 *Liquidity:* $50.00K" in text
        assert "📉 *Price Change 24h:* 📈 +10.00%" in text
        assert "   • Total: 100" in text
        assert "🎯 *Degen Score:* 8.4/10" in text
        assert "🛡️ *Safety:* 90/100" in text
        assert "AI Analysis" not in text

    def test_defaults_and_ai_text(self, make_token, now):
        token = make_token(symbol="A_B", dex_id="", ai_recommendation="Buy *small*")
        text = format_token_message(token, 4, now)

        assert "*Token #5*" in text
        assert "🫖 *AB* |" in text
        assert "💱 *DEX:* Velodrome" in text
        assert "🚀 *Potential:* ⚡ MODERATE" in text
        assert "🛡️ *Safety:* N/A/100" in text
        assert "🤖 *AI Analysis:*\nBuy \\*small\\*\n" in text

    def test_markup_in_symbol_and_ai_text(self, make_token, now):
        token = make_token(symbol="*PEPE_2*", ai_recommendation="Watch token_supply and **risk** closely.")
        text = format_token_message(token, 0, now)

        assert "🫖 *PEPE2* |" in text
        assert "\nWatch token\\_supply and \\*\\*risk\\*\\* closely.\n" in text
        assert "_Watch" not in text


@pytest.mark.unit
class TestAnalysisMessage:

    def test_risky_contract(self):
        analysis = ContractAnalysis(
            "0x" + "ab" * 20, is_valid=True, is_honeypot=True, can_buy=False, can_sell=False,
            has_mint_function=True, sell_tax=99.5, risk_level=RiskLevel.RISKY, risk_score=10,
            warnings=["🚨 HONEYPOT DETECTED - Cannot sell tokens!"],
        )
        text = format_analysis_message(analysis)

        assert "🔴 *Risk Level:* RISKY" in text
        assert "📊 *Risk Score:* 10/10" in text
        assert "🚨 *Honeypot:* YES - AVOID!" in text
        assert "❌ *Can Sell:* No" in text
        assert "💵 *Sell Tax:* 99.5%" in text
        assert "💵 *Buy Tax:* 0%" in text
        assert "⚠️ *Mint Function:* Yes" in text
        assert "⚠️ *Ownership:* Active" in text
        assert "❌ *teaRank Eligible:* No" in text
        assert "⚠️ *WARNINGS:*\n   • 🚨 HONEYPOT DETECTED" in text
        assert "RECOMMENDATIONS" not in text
        assert "*Amount:*" not in text

    def test_safe_contract(self):
        analysis = ContractAnalysis(
            "0x" + "ab" * 20, is_valid=True, has_liquidity=True, liquidity_usd=20000,
            ownership_renounced=True, registry_eligible=True, risk_level=RiskLevel.SAFE,
            recommendations=["Contract source code is verified"],
        )
        text = format_analysis_message(analysis)

        assert "🟢 *Risk Level:* SAFE" in text
        assert "✅ *Honeypot:* No" in text
        assert "✅ *Ownership:* Renounced" in text
        assert "⚠️ *Liquidity Locked:* Unknown" in text
        assert "💰 *Amount:* $20.00K" in text
        assert "✅ *teaRank Eligible:* Potentially Yes" in text
        assert "💡 *RECOMMENDATIONS:*\n   • Contract source code is verified" in text


@pytest.mark.unit
class TestOtherMessages:

    def test_insight(self, make_token, now):
        insight = TokenInsight(make_token(), 7.5, "🚀 HIGH", TokenMetrics(2.0, 0.5, 60, 70), "Risky but hot")
        text = format_insight_message(insight, now)

        assert text.startswith("📊 *MARKET SNAPSHOT* | TEA")
        assert "🔄 *Volume/Liquidity:* 0.50" in text
        assert "🟢 *Buy Pressure:* 60%" in text
        assert "⚡ *Momentum:* 70/100" in text
        assert "🤖 *AI Insights:*\nRisky but hot" in text

    def test_watchlist_empty_and_filled(self):
        assert "no tokens in your watchlist" in format_watchlist_message(WatchlistStats(0, []))

        entry = WatchlistEntry("0x" + "ab" * 20, "TEA", "Tea", "optimism", 1)
        text = format_watchlist_message(WatchlistStats(1, [entry], entry, entry))
        assert "(1 tokens)" in text
        assert "1. TEA" in text
        assert f"`{entry.contract_address}`" in text

    def test_discovery_status_steps(self):
        initial = discovery_status(0)
        assert initial.count("⏳") == 4
        assert "This may take 30-60 seconds..." in initial

        partial = discovery_status(2)
        assert "✅ Step 1: TEA blockchain scanned" in partial
        assert "✅ Step 2: Data fetched successfully" in partial
        assert "⏳ Step 3: Running security analysis..." in partial
        assert "30-60 seconds" not in partial

        assert discovery_status(3).count("✅") == 3

    def test_discovery_header(self):
        assert "Found 3 promising tokens on TEA Protocol:" in discovery_header(3)

    def test_welcome_uses_name(self):
        assert "Hello Ada\\_L! 👋" in welcome_message("Ada_L")
        assert "Hello Trader! 👋" in welcome_message("")

    def test_settings_reflect_config(self):
        config = BotConfig()
        config.filter.min_liquidity_usd = 2500
        text = settings_message(config, ai_enabled=False)

        assert "Age limit: Last 24 hours" in text
        assert "Liquidity: Minimum $2500" in text
        assert "Suspicious flags allowed: 3" in text
        assert "AI analysis: Disabled" in text
