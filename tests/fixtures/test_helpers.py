# tests/fixtures/test_helpers.py
"""
Test helper functions
"""
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

from utils.results import CallResult


class MockResponse:
    """Minimal stand-in for an aiohttp response used as an async context manager"""

    def __init__(self, status: int = 200, payload: Any = None, text: str = ""):
        self.status = status
        self._payload = payload
        self._text = text

    async def json(self, content_type: Optional[str] = "application/json"):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload

    async def text(self):
        return self._text

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class TestHelpers:
    """Helper functions for testing"""
    __test__ = False

    @staticmethod
    def create_mock_session(response: MockResponse = None, error: Exception = None) -> MagicMock:
        """
        Mock aiohttp.ClientSession whose get()/post() return ``response``
        or raise ``error`` when called.
        """
        session = MagicMock()
        if error is not None:
            session.get = MagicMock(side_effect=error)
            session.post = MagicMock(side_effect=error)
        else:
            session.get = MagicMock(return_value=response)
            session.post = MagicMock(return_value=response)
        session.close = AsyncMock()
        return session


class RecordingTelegramApi:
    """
    Replacement for TelegramBotController._api_call that records every call
    and answers like the Bot API.
    """

    def __init__(self, failures: Optional[Dict[str, str]] = None):
        self.calls: List[Dict[str, Any]] = []
        self.failures = failures or {}
        self._next_message_id = 100

    async def __call__(self, method: str, data: Dict = None):
        self.calls.append({"method": method, "data": data or {}})
        if method in self.failures:
            return CallResult.failure(self.failures[method])
        if method == "sendMessage":
            self._next_message_id += 1
            return CallResult.success({"message_id": self._next_message_id})
        if method == "getMe":
            return CallResult.success({"id": 1, "is_bot": True, "username": "alpha_finders_bot"})
        return CallResult.success(True)

    def methods(self) -> List[str]:
        return [call["method"] for call in self.calls]

    def sent_texts(self) -> List[str]:
        return [call["data"]["text"] for call in self.calls if call["method"] == "sendMessage"]
