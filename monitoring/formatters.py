"""
Presentation Formatter - fixed-layout Telegram Markdown reports

Numbers use K/M/B suffixes and exponential notation below one cent; risk is
shown with colored emoji.
"""

from datetime import datetime
from typing import Optional, Union

from config.tuning import BotConfig
from data.models import ContractAnalysis, RiskLevel, TokenInsight, TokenRecord, WatchlistStats
from utils.constants import CHAIN_DISPLAY_NAME
from utils.helpers import to_float, utc_now

SEPARATOR = "━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━"

Number = Union[int, float, str, None]


def escape_markdown(text: Optional[str]) -> str:
    """Escape the characters legacy Telegram Markdown treats as markup"""
    if not text:
        return ""
    for char in ("\\", "_", "*", "`", "["):
        text = text.replace(char, f"\\{char}")
    return text


def strip_markdown(text: Optional[str]) -> str:
    """Drop markup characters from text rendered inside a bold or italic entity"""
    # legacy Markdown has no escapes inside an entity
    if not text:
        return ""
    for char in ("\\", "_", "*", "`", "["):
        text = text.replace(char, "")
    return text


def _exponential(value: float, digits: int = 2) -> str:
    # 1.23e-5 rather than Python's zero-padded 1.23e-05
    mantissa, exponent = f"{value:.{digits}e}".split("e")
    exp = int(exponent)
    sign = "+" if exp >= 0 else "-"
    return f"{mantissa}e{sign}{abs(exp)}"


def format_number(num: Number) -> str:
    value = to_float(num)
    if value == 0:
        return "0"
    if value < 0.01:
        return _exponential(value)
    if value < 1:
        return f"{value:.4f}"
    if value < 1000:
        return f"{value:.2f}"
    if value < 1_000_000:
        return f"{value / 1000:.2f}K"
    if value < 1_000_000_000:
        return f"{value / 1_000_000:.2f}M"
    return f"{value / 1_000_000_000:.2f}B"


def format_price_change(change: Number) -> str:
    value = to_float(change)
    if value == 0:
        return "0%"
    emoji = "📈" if value > 0 else "📉"
    sign = "+" if value > 0 else ""
    return f"{emoji} {sign}{value:.2f}%"


def format_age(token: TokenRecord, now: Optional[datetime] = None) -> str:
    if token.pair_created_at is None:
        return "Unknown"

    now = now or utc_now()
    total_minutes = int((now - token.pair_created_at).total_seconds() // 60)
    hours, minutes = divmod(total_minutes, 60)

    if hours == 0:
        return f"{minutes}m"
    if hours < 24:
        return f"{hours}h {minutes}m"
    days, remaining_hours = divmod(hours, 24)
    return f"{days}d {remaining_hours}h"


def risk_emoji(safety_score: Optional[int]) -> str:
    score = safety_score or 50
    if score >= 80:
        return "🟢"
    if score >= 60:
        return "🟡"
    if score >= 40:
        return "🟠"
    return "🔴"


def risk_color(level: RiskLevel) -> str:
    return {
        RiskLevel.SAFE: "🟢",
        RiskLevel.CAUTION: "🟡",
        RiskLevel.RISKY: "🔴",
    }.get(level, "⚪")


def _yes_no(flag: bool, good: str, bad: str) -> str:
    return good if flag else bad


def format_token_message(token: TokenRecord, index: int, now: Optional[datetime] = None) -> str:
    emoji = risk_emoji(token.safety_score)
    potential = token.investment_potential or "⚡ MODERATE"
    buys = token.txns.h24.buys
    sells = token.txns.h24.sells

    lines = [
        SEPARATOR,
        f"{emoji} *Token #{index + 1}* {emoji}",
        SEPARATOR,
        "",
        f"🫖 *{strip_markdown(token.symbol)}* | {escape_markdown(token.name) or 'N/A'}",
        f"🔗 `{token.contract_address}`",
        "",
        f"⏰ *Age:* {format_age(token, now)}",
        f"🌐 *Chain:* {CHAIN_DISPLAY_NAME}",
        f"💱 *DEX:* {escape_markdown(token.dex_id) or 'Velodrome'}",
        "",
        f"💰 *Price:* ${format_number(token.price)}",
        f"📊 *Market Cap:* ${format_number(token.market_cap)}",
        f"💧 *Liquidity:* ${format_number(token.liquidity.usd)}",
        "",
        f"📈 *Volume 24h:* ${format_number(token.volume.h24)}",
        f"📉 *Price Change 24h:* {format_price_change(token.price_change.h24)}",
        "",
        "🔄 *Transactions 24h:*",
        f"   • Buys: {buys}",
        f"   • Sells: {sells}",
        f"   • Total: {buys + sells}",
        "",
        f"🎯 *Degen Score:* {token.degen_score if token.degen_score is not None else 'N/A'}/10",
        f"🚀 *Potential:* {potential}",
        f"🛡️ *Safety:* {token.safety_score if token.safety_score else 'N/A'}/100",
    ]

    if token.ai_recommendation:
        lines += ["", "🤖 *AI Analysis:*", escape_markdown(token.ai_recommendation)]

    lines += ["", SEPARATOR]
    return "\n".join(lines)


def format_analysis_message(analysis: ContractAnalysis) -> str:
    a = analysis
    lines = [
        SEPARATOR,
        "🔍 *DEEP CONTRACT ANALYSIS* 🔍",
        SEPARATOR,
        "",
        f"🔗 *Contract:* `{a.contract_address}`",
        f"🌐 *Chain:* {CHAIN_DISPLAY_NAME}",
        "",
        f"{risk_color(a.risk_level)} *Risk Level:* {a.risk_level.value}",
        f"📊 *Risk Score:* {a.risk_score}/10",
        "",
        SEPARATOR,
        "🛡️ *SECURITY ANALYSIS*",
        SEPARATOR,
        "",
        f"{_yes_no(a.is_honeypot, '🚨', '✅')} *Honeypot:* {_yes_no(a.is_honeypot, 'YES - AVOID!', 'No')}",
        f"{_yes_no(a.can_buy, '✅', '❌')} *Can Buy:* {_yes_no(a.can_buy, 'Yes', 'No')}",
        f"{_yes_no(a.can_sell, '✅', '❌')} *Can Sell:* {_yes_no(a.can_sell, 'Yes', 'No')}",
        "",
        f"💵 *Buy Tax:* {a.buy_tax:g}%",
        f"💵 *Sell Tax:* {a.sell_tax:g}%",
        "",
        SEPARATOR,
        "📋 *CONTRACT FEATURES*",
        SEPARATOR,
        "",
        f"{_yes_no(a.has_mint_function, '⚠️', '✅')} *Mint Function:* {_yes_no(a.has_mint_function, 'Yes', 'No')}",
        f"{_yes_no(a.has_blacklist, '⚠️', '✅')} *Blacklist:* {_yes_no(a.has_blacklist, 'Yes', 'No')}",
        f"{_yes_no(a.ownership_renounced, '✅', '⚠️')} *Ownership:* {_yes_no(a.ownership_renounced, 'Renounced', 'Active')}",
        "",
        SEPARATOR,
        "💧 *LIQUIDITY*",
        SEPARATOR,
        "",
        f"{_yes_no(a.has_liquidity, '✅', '❌')} *Has Liquidity:* {_yes_no(a.has_liquidity, 'Yes', 'No')}",
        f"{_yes_no(a.liquidity_locked, '✅', '⚠️')} *Liquidity Locked:* {_yes_no(a.liquidity_locked, 'Yes', 'Unknown')}",
    ]
    if a.liquidity_usd:
        lines.append(f"💰 *Amount:* ${format_number(a.liquidity_usd)}")

    lines += [
        "",
        SEPARATOR,
        "🫖 *TEA PROTOCOL*",
        SEPARATOR,
        "",
        f"{_yes_no(a.registry_eligible, '✅', '❌')} *teaRank Eligible:* "
        f"{_yes_no(a.registry_eligible, 'Potentially Yes', 'No')}",
    ]

    if a.warnings:
        lines += ["", "⚠️ *WARNINGS:*"]
        lines += [f"   • {warning}" for warning in a.warnings]

    if a.recommendations:
        lines += ["", "💡 *RECOMMENDATIONS:*"]
        lines += [f"   • {rec}" for rec in a.recommendations]

    lines += ["", SEPARATOR]
    return "\n".join(lines)


def format_insight_message(insight: TokenInsight, now: Optional[datetime] = None) -> str:
    token = insight.token
    metrics = insight.metrics
    lines = [
        f"📊 *MARKET SNAPSHOT* | {escape_markdown(token.symbol)}",
        SEPARATOR,
        f"💰 *Price:* ${format_number(token.price)}",
        f"💧 *Liquidity:* ${format_number(token.liquidity.usd)}",
        f"📈 *Volume 24h:* ${format_number(token.volume.h24)}",
        f"⏰ *Age:* {format_age(token, now)}",
        "",
        f"🎯 *Degen Score:* {insight.degen_score}/10",
        f"🚀 *Potential:* {insight.investment_potential}",
        f"🔄 *Volume/Liquidity:* {metrics.volume_to_liquidity:.2f}",
        f"🟢 *Buy Pressure:* {metrics.buy_pressure}%",
        f"⚡ *Momentum:* {metrics.momentum}/100",
    ]
    if insight.ai_insights:
        lines += ["", "🤖 *AI Insights:*", escape_markdown(insight.ai_insights)]
    lines += [SEPARATOR]
    return "\n".join(lines)


def format_watchlist_message(stats: WatchlistStats) -> str:
    if stats.count == 0:
        return (
            "⭐ *Your Watchlist*\n\n"
            "📋 You have no tokens in your watchlist.\n\n"
            "Use the \"Add to Watchlist\" button on any token to start tracking!"
        )

    lines = [f"⭐ *Your TEA Watchlist* ({stats.count} tokens)", ""]
    for index, entry in enumerate(stats.tokens):
        lines.append(f"{index + 1}. {escape_markdown(entry.symbol)}")
        lines.append(f"   `{entry.contract_address}`")
        lines.append("")
    lines.append("💡 Send any contract address for detailed analysis.")
    return "\n".join(lines)


# ============= Static screens =============

def _step_line(done: bool, done_text: str, pending_text: str) -> str:
    return f"✅ {done_text}" if done else f"⏳ {pending_text}"


def discovery_status(completed_steps: int) -> str:
    """Progress card for the discovery pipeline; ``completed_steps`` is 0-3"""
    steps = [
        ("Step 1: TEA blockchain scanned", "Step 1: Scanning TEA blockchain..."),
        ("Step 2: Data fetched successfully", "Step 2: Fetching from Velodrome & DexScreener..."),
        ("Step 3: Security analysis complete", "Step 3: Running security analysis..."),
        ("Step 4: AI risk assessment complete", "Step 4: AI risk assessment..."),
    ]
    lines = ["🔄 *Fetching Fresh TEA Protocol Tokens...*", "", SEPARATOR]
    lines += [_step_line(i < completed_steps, done, pending) for i, (done, pending) in enumerate(steps)]
    lines.append(SEPARATOR)
    if completed_steps == 0:
        lines += ["", "This may take 30-60 seconds..."]
    return "\n".join(lines)


def analysis_status(address: str) -> str:
    return "\n".join([
        "🔍 *Analyzing TEA Protocol Contract...*",
        "",
        SEPARATOR,
        f"🔗 Contract: `{address}`",
        SEPARATOR,
        "",
        "⏳ Checking honeypot status...",
        "⏳ Analyzing contract code...",
        "⏳ Verifying teaRank eligibility...",
        "⏳ Calculating risk score...",
        "",
        "This may take 15-30 seconds...",
    ])


def discovery_header(count: int) -> str:
    return (
        "🎉 *Fresh TEA Token Analysis Complete!*\n\n"
        f"Found {count} promising tokens on TEA Protocol:\n"
        f"{SEPARATOR}"
    )


def welcome_message(user_name: str) -> str:
    return f"""🫖 *Welcome to Alpha Finders* 🫖

Hello {escape_markdown(user_name) or 'Trader'}! 👋

I'm your TEA Protocol token discovery bot - finding alpha on TEA's network!

🚀 *Fresh Token Discovery*
- Real-time new token detection on TEA Protocol
- Built on Optimism Superchain
- Velodrome DEX integration
- Advanced scam filtering
- AI-powered risk assessment

🛡️ *Security Analysis*
- Smart contract verification
- Honeypot detection
- Liquidity analysis
- Trading activity verification
- teaRank eligibility check

⭐ *Personal Features*
- Token watchlist management
- Deep analysis reports
- Professional risk scoring

Choose an option below to start finding alpha on TEA Protocol:"""


def help_message() -> str:
    return """🆘 *Alpha Finders Help*

*Main Features:*
- Fresh TEA token discovery (last 24h)
- Deep contract analysis
- Personal watchlist tracking
- AI-powered risk assessment

*How to Use:*
1. Click "🫖 Fresh TEA Tokens" to discover new tokens
2. Use "🛡️ Deep Analysis" for detailed security reports
3. Add tokens to "⭐ My Watchlist" for tracking
4. Check "📈 TEA Market Overview" for insights

*Risk Levels:*
🟢 SAFE - Low risk, good fundamentals
🟡 CAUTION - Medium risk, be careful
🔴 RISKY - High risk, avoid

*Commands:*
- /start - Show main menu
- /stop - Stop current operation
- /watchlist - Show your watchlist
- /help - Show this help
- Send contract address to analyze

Need more help? Visit tea.xyz"""


def overview_message() -> str:
    return """📊 *TEA Protocol Market Overview*

🫖 *About TEA Protocol:*
- Layer 2 blockchain built on Optimism Superchain
- Focus on open-source developer rewards
- Proof of Contribution algorithm
- teaRank-based reward distribution

🔄 *Primary DEX:*
- Velodrome Finance (Leading Optimism DEX)
- Deep liquidity pools

📈 *Data Sources:*
- Velodrome DEX data
- DexScreener market data
- On-chain bytecode checks
- AI risk scoring

💡 *Tip:* Use "🫖 Fresh TEA Tokens" to discover new opportunities on TEA Protocol!"""


def settings_message(config: BotConfig, ai_enabled: bool) -> str:
    return f"""⚙️ *Alpha Finders Settings*

🔧 *Current Configuration:*
- Network: {CHAIN_DISPLAY_NAME}
- Primary DEX: Velodrome Finance
- AI analysis: {'Enabled' if ai_enabled else 'Disabled'}
- Data sources: DexScreener + Velodrome

📊 *Filtering Options:*
- Age limit: Last {config.fetch.fresh_window_hours:g} hours
- Liquidity: Minimum ${config.filter.min_liquidity_usd:g}
- Suspicious flags allowed: {config.filter.suspicious_flag_limit}

💡 *Tip:* The bot is optimized for TEA Protocol alpha discovery!"""


def fallback_message() -> str:
    return """👋 *Welcome to Alpha Finders!*

Finding alpha on TEA Protocol 🫖

🚀 Use the buttons below for all features
🛑 Use /stop to halt operations
❓ Use /start for the main menu

Or send me a TEA Protocol contract address!"""
