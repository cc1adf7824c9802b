"""
System-wide Constants for Alpha Finders Bot
Centralized endpoints, chain identifiers, heuristics patterns and chat callback tags
"""

import re
from enum import IntEnum

# ============= Version Info =============
VERSION = "1.0.0"
BOT_NAME = "Alpha Finders"
PROJECT_NAME = "Alpha Finders TEA Protocol Bot"
USER_AGENT = "AlphaFinders/1.0"

# ============= Chain Configuration =============

class Chain(IntEnum):
    """Blockchain chain IDs"""
    OPTIMISM = 10

CHAIN_TAG = "optimism"
CHAIN_DISPLAY_NAME = "TEA Protocol (Optimism)"
DEFAULT_RPC_URL = "https://mainnet.optimism.io"

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Minimal ABI for the ownership accessor
OWNER_ABI = [
    {
        "constant": True,
        "inputs": [],
        "name": "owner",
        "outputs": [{"name": "", "type": "address"}],
        "type": "function",
    }
]

# ============= External Endpoints =============

DEXSCREENER_BASE_URL = "https://api.dexscreener.com"
DEXSCREENER_CHAIN_ENDPOINT = f"latest/dex/tokens/{CHAIN_TAG}"
DEXSCREENER_TOKEN_ENDPOINT = "latest/dex/tokens/{address}"

VELODROME_PAIRS_URL = "https://api.velodrome.finance/api/v1/pairs"

HONEYPOT_IS_URL = "https://api.honeypot.is/v2/IsHoneypot"

ETHERSCAN_API_URL = "https://api-optimistic.etherscan.io/api"

GROQ_API_URL = "https://api.groq.com/openai/v1/chat/completions"

TELEGRAM_API_URL = "https://api.telegram.org/bot{token}/{method}"

# Links rendered on token keyboards
VELODROME_SWAP_URL = "https://velodrome.finance/swap?from=eth&to={address}"
VELODROME_LIQUIDITY_URL = "https://velodrome.finance/liquidity/{address}"
DEXSCREENER_PAIR_URL = f"https://dexscreener.com/{CHAIN_TAG}/{{address}}"
EXPLORER_ADDRESS_URL = "https://optimistic.etherscan.io/address/{address}"

# ============= Heuristics =============

# Substrings searched in lower-cased contract bytecode
HONEYPOT_PATTERNS = ("selfdestruct", "delegatecall", "suicide")
MINT_PATTERNS = ("mint(", "_mint")
BLACKLIST_PATTERNS = ("blacklist", "blocked")
OWNER_PATTERNS = ("owner", "onlyowner")

# Age reported for pairs without a creation timestamp
UNKNOWN_AGE_HOURS = 999.0

# ============= Chat Surface =============

ADDRESS_PATTERN = re.compile(r"^0x[a-fA-F0-9]{40}$")
NON_ALPHANUMERIC = re.compile(r"[^a-zA-Z0-9]")

CB_FRESH_TOKENS = "fresh_tokens"
CB_ANALYZE_PROMPT = "analyze_prompt"
CB_VIEW_WATCHLIST = "view_watchlist"
CB_OVERVIEW = "overview"
CB_SETTINGS = "settings"
CB_STOP_OPERATION = "stop_operation"
CB_HELP = "help"
CB_CLEAR_WATCHLIST = "clear_watchlist"

CB_DEEP_ANALYZE_PREFIX = "deep_analyze_"
CB_WATCHLIST_PREFIX = "watchlist_"
CB_UNWATCH_PREFIX = "unwatch_"

OP_FETCH_TOKENS = "fetching_tokens"
OP_ANALYZE_CONTRACT = "analyzing_contract"

# ============= Logging =============

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024  # 10MB
LOG_FILE_BACKUP_COUNT = 5
