"""
Domain records shared by collectors, analyzers, storage and formatting.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from utils.constants import CHAIN_TAG, UNKNOWN_AGE_HOURS
from utils.helpers import hours_since, to_float


class RiskLevel(Enum):
    """Categorical outcome of a deep contract analysis"""
    SAFE = "SAFE"
    CAUTION = "CAUTION"
    RISKY = "RISKY"
    UNKNOWN = "UNKNOWN"


@dataclass
class Liquidity:
    usd: Optional[float] = None
    base: float = 0.0
    quote: float = 0.0


@dataclass
class Volume:
    h1: float = 0.0
    h6: float = 0.0
    h24: float = 0.0


@dataclass
class PriceChange:
    h1: float = 0.0
    h6: float = 0.0
    h24: float = 0.0


@dataclass
class TxnCount:
    buys: int = 0
    sells: int = 0

    @property
    def total(self) -> int:
        return self.buys + self.sells


@dataclass
class Transactions:
    h1: TxnCount = field(default_factory=TxnCount)
    h6: TxnCount = field(default_factory=TxnCount)
    h24: TxnCount = field(default_factory=TxnCount)


@dataclass
class TokenRecord:
    """One discovered token/pair, enriched in place as it moves through the pipeline"""
    contract_address: str
    symbol: str = ""
    name: str = ""
    chain_id: str = CHAIN_TAG
    dex_id: str = ""
    pair_address: str = ""
    price_usd: Union[str, float, None] = None
    liquidity: Liquidity = field(default_factory=Liquidity)
    volume: Volume = field(default_factory=Volume)
    price_change: PriceChange = field(default_factory=PriceChange)
    txns: Transactions = field(default_factory=Transactions)
    market_cap: float = 0.0
    pair_created_at: Optional[datetime] = None
    source: str = ""
    url: str = ""
    info: Dict[str, Any] = field(default_factory=dict)
    buy_tax: float = 0.0
    sell_tax: float = 0.0

    # Derived by the filter and scoring stages
    safety_score: Optional[int] = None
    degen_score: Optional[float] = None
    investment_potential: Optional[str] = None
    ai_recommendation: Optional[str] = None

    @property
    def address_key(self) -> str:
        return (self.contract_address or "").lower()

    @property
    def price(self) -> float:
        return to_float(self.price_usd)

    @property
    def total_txns_24h(self) -> int:
        return self.txns.h24.total

    def age_hours(self, now: Optional[datetime] = None) -> float:
        """Pair age in hours; unknown creation time counts as very old"""
        age = hours_since(self.pair_created_at, now)
        return UNKNOWN_AGE_HOURS if age is None else age


@dataclass
class ContractAnalysis:
    """Deep analysis of one contract address"""
    contract_address: str
    is_valid: bool = False
    is_honeypot: bool = False
    can_buy: bool = True
    can_sell: bool = True
    has_liquidity: bool = False
    liquidity_usd: float = 0.0
    liquidity_locked: bool = False
    pair_address: Optional[str] = None
    ownership_renounced: bool = False
    has_owner: bool = False
    has_mint_function: bool = False
    has_blacklist: bool = False
    buy_tax: float = 0.0
    sell_tax: float = 0.0
    risk_level: RiskLevel = RiskLevel.UNKNOWN
    risk_score: int = 0
    warnings: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    registry_eligible: bool = False
    error: Optional[str] = None


@dataclass
class WatchlistEntry:
    contract_address: str
    symbol: str
    name: str
    chain_id: str
    added_at: int  # epoch milliseconds
    price_at_add: float = 0.0


@dataclass
class WatchlistResult:
    success: bool
    message: str
    entry: Optional[WatchlistEntry] = None


@dataclass
class WatchlistStats:
    count: int
    tokens: List[WatchlistEntry]
    oldest_token: Optional[WatchlistEntry] = None
    newest_token: Optional[WatchlistEntry] = None


@dataclass
class TokenMetrics:
    age_hours: float
    volume_to_liquidity: float
    buy_pressure: int
    momentum: int


@dataclass
class TokenInsight:
    """Single-token scoring snapshot used alongside a deep analysis"""
    token: TokenRecord
    degen_score: float
    investment_potential: str
    metrics: TokenMetrics
    ai_insights: Optional[str] = None
