"""
Per-user session state: busy flag, current operation and last fetched tokens.

Each user is either IDLE or BUSY(operation). Starting work hands out a fresh
CancellationToken; /stop cancels it and returns the session to IDLE. Pipeline
stages poll the token after every external call, so cancellation is
cooperative: an in-flight request still completes but nothing after it runs.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Union

from data.models import TokenRecord
from utils.errors import OperationCancelled, OperationInProgress
from utils.helpers import same_address

logger = logging.getLogger(__name__)

UserId = Union[int, str]


class SessionState(Enum):
    IDLE = "idle"
    BUSY = "busy"


class CancellationToken:
    """Cooperative cancellation flag handed to every pipeline stage"""

    def __init__(self):
        self._cancelled = False

    def cancel(self):
        self._cancelled = True

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    def raise_if_cancelled(self):
        if self._cancelled:
            raise OperationCancelled()


@dataclass
class UserSession:
    user_id: str
    state: SessionState = SessionState.IDLE
    current_operation: Optional[str] = None
    current_tokens: List[TokenRecord] = field(default_factory=list)
    cancel_token: Optional[CancellationToken] = None

    @property
    def is_busy(self) -> bool:
        return self.state == SessionState.BUSY

    def find_token(self, address: str) -> Optional[TokenRecord]:
        """Token from the last fetched batch matching ``address`` case-insensitively"""
        for token in self.current_tokens:
            if same_address(token.contract_address, address):
                return token
        return None


class SessionStore:
    """In-memory sessions keyed by user id, created lazily on first access"""

    def __init__(self):
        self._sessions: Dict[str, UserSession] = {}

    def get(self, user_id: UserId) -> UserSession:
        key = str(user_id)
        session = self._sessions.get(key)
        if session is None:
            session = UserSession(user_id=key)
            self._sessions[key] = session
        return session

    def begin(self, user_id: UserId, operation: str) -> CancellationToken:
        """
        Move IDLE -> BUSY(operation).

        Raises:
            OperationInProgress: the user already has an operation running
        """
        session = self.get(user_id)
        if session.is_busy:
            raise OperationInProgress(session.current_operation or "unknown")

        token = CancellationToken()
        session.state = SessionState.BUSY
        session.current_operation = operation
        session.cancel_token = token
        logger.debug(f"Session {session.user_id} started {operation}")
        return token

    def finish(self, user_id: UserId, token: CancellationToken):
        """
        Return to IDLE once an operation ends, however it ends.

        Only the operation that owns ``token`` may clear the session, so a
        stopped operation unwinding late cannot release a newer one.
        """
        session = self.get(user_id)
        if session.cancel_token is token:
            self._reset(session)

    def stop(self, user_id: UserId) -> bool:
        """Cancel the running operation; False when nothing was running"""
        session = self.get(user_id)
        if not session.is_busy:
            return False

        if session.cancel_token is not None:
            session.cancel_token.cancel()
        logger.info(f"🛑 Session {session.user_id} stopped {session.current_operation}")
        self._reset(session)
        return True

    def remember_tokens(self, user_id: UserId, tokens: List[TokenRecord]):
        self.get(user_id).current_tokens = list(tokens)

    @staticmethod
    def _reset(session: UserSession):
        session.state = SessionState.IDLE
        session.current_operation = None
        session.cancel_token = None

    def __len__(self) -> int:
        return len(self._sessions)
