"""
Watchlist Store - per-user saved tokens, held in memory for the process lifetime
"""

import logging
from typing import Dict, List, Optional, Union

from data.models import TokenRecord, WatchlistEntry, WatchlistResult, WatchlistStats
from utils.constants import CHAIN_TAG
from utils.helpers import get_timestamp_ms, same_address

logger = logging.getLogger(__name__)

UserId = Union[int, str]


class WatchlistStore:
    """
    Insertion-ordered watchlists keyed by user id.

    Contract addresses compare case-insensitively, so adding the same token
    twice with different casing is still a duplicate.
    """

    def __init__(self):
        self._watchlists: Dict[str, List[WatchlistEntry]] = {}

    def add(self, user_id: Optional[UserId], token: Optional[TokenRecord]) -> WatchlistResult:
        if user_id in (None, "") or token is None or not token.contract_address:
            return WatchlistResult(False, "Invalid token or user ID")

        key = str(user_id)
        entries = self._watchlists.setdefault(key, [])

        if any(same_address(entry.contract_address, token.contract_address) for entry in entries):
            return WatchlistResult(False, f"{token.symbol} is already in your watchlist!")

        entry = WatchlistEntry(
            contract_address=token.contract_address,
            symbol=token.symbol,
            name=token.name,
            chain_id=token.chain_id or CHAIN_TAG,
            added_at=get_timestamp_ms(),
            price_at_add=token.price,
        )
        entries.append(entry)
        logger.info(f"⭐ User {key} added {token.symbol} to watchlist")
        return WatchlistResult(True, f"{token.symbol} added to your watchlist!", entry)

    def remove(self, user_id: UserId, address: str) -> WatchlistResult:
        entries = self._watchlists.get(str(user_id))
        if not entries:
            return WatchlistResult(False, "You don't have any tokens in your watchlist")

        for index, entry in enumerate(entries):
            if same_address(entry.contract_address, address):
                del entries[index]
                return WatchlistResult(True, "Token removed from your watchlist", entry)

        return WatchlistResult(False, "Token not found in your watchlist")

    def list(self, user_id: UserId) -> List[WatchlistEntry]:
        return list(self._watchlists.get(str(user_id), []))

    def is_in_watchlist(self, user_id: UserId, address: str) -> bool:
        return any(same_address(entry.contract_address, address) for entry in self.list(user_id))

    def stats(self, user_id: UserId) -> WatchlistStats:
        entries = self.list(user_id)
        if not entries:
            return WatchlistStats(count=0, tokens=[])

        return WatchlistStats(
            count=len(entries),
            tokens=entries,
            oldest_token=min(entries, key=lambda entry: entry.added_at),
            newest_token=max(entries, key=lambda entry: entry.added_at),
        )

    def clear(self, user_id: UserId) -> int:
        """Drop every entry for the user and return how many were removed"""
        removed = len(self._watchlists.pop(str(user_id), []))
        if removed:
            logger.info(f"User {user_id} cleared {removed} watchlist tokens")
        return removed
