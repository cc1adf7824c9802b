"""
Telegram Bot Controller - chat surface for Alpha Finders

Commands:
    /start - Welcome message and main menu
    /stop - Cancel the running operation
    /help - Show help
    /watchlist - Show saved tokens

Any message matching a contract address starts a deep analysis; other text
gets a short help prompt. Inline buttons drive everything else.

Long-running operations (discovery, deep analysis) run as background tasks
so the polling loop keeps reading updates, which is what lets /stop reach a
busy session.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set, Tuple

import aiohttp

from config.tuning import BotConfig
from core.engine import AlphaFindersEngine
from core.session import CancellationToken, SessionStore
from data.models import TokenRecord, WatchlistEntry, WatchlistResult
from data.storage.watchlist import WatchlistStore
from monitoring.formatters import (
    analysis_status,
    discovery_header,
    discovery_status,
    escape_markdown,
    fallback_message,
    format_analysis_message,
    format_insight_message,
    format_token_message,
    format_watchlist_message,
    help_message,
    overview_message,
    settings_message,
    welcome_message,
)
from utils.constants import (
    ADDRESS_PATTERN,
    CB_ANALYZE_PROMPT,
    CB_CLEAR_WATCHLIST,
    CB_DEEP_ANALYZE_PREFIX,
    CB_FRESH_TOKENS,
    CB_HELP,
    CB_OVERVIEW,
    CB_SETTINGS,
    CB_STOP_OPERATION,
    CB_UNWATCH_PREFIX,
    CB_VIEW_WATCHLIST,
    CB_WATCHLIST_PREFIX,
    DEXSCREENER_PAIR_URL,
    EXPLORER_ADDRESS_URL,
    OP_ANALYZE_CONTRACT,
    OP_FETCH_TOKENS,
    TELEGRAM_API_URL,
    VELODROME_SWAP_URL,
)
from utils.errors import OperationCancelled, OperationInProgress
from utils.helpers import mask_sensitive_data
from utils.results import CallResult

logger = logging.getLogger("TelegramBot")

MSG_OPERATION_STOPPED = "🛑 *Operation Stopped*\n\nYour current operation has been cancelled."
MSG_NOTHING_RUNNING = "ℹ️ No operations are currently running."
MSG_BUSY = "⚠️ You have another operation in progress. Use /stop to cancel it first."
MSG_NO_SAFE_TOKENS = "❌ No safe tokens found on TEA Protocol in the last 24h."
MSG_DISCOVERY_DONE = "✅ *Analysis Complete!*\n\nUse the buttons above to interact with tokens."
MSG_DISCOVERY_FAILED = "⚠️ Error fetching tokens. Try again later."
MSG_ANALYSIS_FAILED = "⚠️ Failed to analyze contract. Make sure the address is correct."
MSG_NO_ADDRESS = "❌ Please provide a valid contract address."
MSG_BUTTON_EXPIRED = "⏰ *Button Expired*\n\nThis button has expired. Please use /start to get a fresh menu."
MSG_CALLBACK_FAILED = "⚠️ An error occurred. Please try again."
MSG_TOKEN_UNAVAILABLE = "Token data is no longer available. Fetch fresh tokens and try again."
MSG_ANALYZE_PROMPT = (
    "🔍 *Token Analysis*\n\n"
    "Please send me a TEA Protocol contract address to analyze:\n\n"
    "Example: `0x1234...5678`"
)

EXPIRED_QUERY_MARKER = "query is too old"
POLL_ERROR_BACKOFF = 5
TRUNCATION_SUFFIX = "\n...(truncated)"

Keyboard = Dict[str, List[List[Dict[str, str]]]]


# ============= Messages =============

def truncate_message(text: str, limit: int) -> str:
    """
    Cut ``text`` to at most ``limit`` characters including the suffix.

    The cut lands on a line break when there is one. Markdown entities in
    these messages never span lines.
    """
    if len(text) <= limit:
        return text
    head = text[:max(limit - len(TRUNCATION_SUFFIX), 0)]
    line_end = head.rfind("\n")
    if line_end > 0:
        head = head[:line_end]
    return head + TRUNCATION_SUFFIX


# ============= Keyboards =============

def main_menu_keyboard() -> Keyboard:
    return {
        "inline_keyboard": [
            [
                {"text": "🫖 Fresh TEA Tokens", "callback_data": CB_FRESH_TOKENS},
                {"text": "🔍 Analyze Token", "callback_data": CB_ANALYZE_PROMPT},
            ],
            [
                {"text": "📈 TEA Market Overview", "callback_data": CB_OVERVIEW},
                {"text": "⭐ My Watchlist", "callback_data": CB_VIEW_WATCHLIST},
            ],
            [
                {"text": "⚙️ Settings", "callback_data": CB_SETTINGS},
                {"text": "❓ Help", "callback_data": CB_HELP},
            ],
            [
                {"text": "🛑 Stop Operations", "callback_data": CB_STOP_OPERATION},
            ],
        ]
    }


def token_keyboard(address: str) -> Keyboard:
    return {
        "inline_keyboard": [
            [
                {"text": "🔄 Trade on Velodrome", "url": VELODROME_SWAP_URL.format(address=address)},
                {"text": "📈 DexScreener", "url": DEXSCREENER_PAIR_URL.format(address=address)},
            ],
            [
                {"text": "🔍 Explorer", "url": EXPLORER_ADDRESS_URL.format(address=address)},
                {"text": "⭐ Add to Watchlist", "callback_data": f"{CB_WATCHLIST_PREFIX}{address}"},
            ],
            [
                {"text": "🛡️ Deep Analysis", "callback_data": f"{CB_DEEP_ANALYZE_PREFIX}{address}"},
            ],
        ]
    }


def watchlist_keyboard(entries: List[WatchlistEntry]) -> Keyboard:
    """Remove buttons per entry, then the main menu"""
    rows = [
        [{"text": f"❌ Remove {entry.symbol}", "callback_data": f"{CB_UNWATCH_PREFIX}{entry.contract_address}"}]
        for entry in entries
    ]
    if entries:
        rows.append([{"text": "🗑️ Clear Watchlist", "callback_data": CB_CLEAR_WATCHLIST}])
    rows.extend(main_menu_keyboard()["inline_keyboard"])
    return {"inline_keyboard": rows}


def watchlist_result_message(result: WatchlistResult) -> str:
    return f"⭐ *Watchlist*\n\n{'✅' if result.success else '⚠️'} {escape_markdown(result.message)}"


class MessagePacer:
    """Fixed delay between consecutive messages of one batch; zero disables it"""

    def __init__(self, delay_seconds: float = 0.5):
        self.delay_seconds = max(0.0, delay_seconds)

    @property
    def enabled(self) -> bool:
        return self.delay_seconds > 0

    async def wait(self):
        if self.enabled:
            await asyncio.sleep(self.delay_seconds)


class TelegramBotController:
    """
    Long-polling Telegram controller.

    Sessions, watchlists and the pipeline engine are injected, so one process
    can run several controllers (or tests) without shared global state.
    """

    def __init__(self, bot_token: str, engine: AlphaFindersEngine, sessions: SessionStore,
                 watchlist: WatchlistStore, config: Optional[BotConfig] = None,
                 pacer: Optional[MessagePacer] = None, ai_enabled: bool = False,
                 session: Optional[aiohttp.ClientSession] = None):
        self.bot_token = bot_token
        self.engine = engine
        self.sessions = sessions
        self.watchlist = watchlist
        self.config = config or BotConfig()
        self.pacer = pacer or MessagePacer(self.config.pacing.message_delay_seconds)
        self.ai_enabled = ai_enabled
        self.session = session
        self._owns_session = session is None

        self.is_running = False
        self._polling_task: Optional[asyncio.Task] = None
        self._last_update_id = 0

        # Background operations (discovery, deep analysis)
        self._operations: Set[asyncio.Task] = set()

        self._commands: Dict[str, Callable[[Any, Any, Dict], Awaitable[None]]] = {
            'start': self._cmd_start,
            'stop': self._cmd_stop,
            'help': self._cmd_help,
            'watchlist': self._cmd_watchlist,
        }

        self._callbacks: Dict[str, Callable[[Any, Any], Awaitable[None]]] = {
            CB_FRESH_TOKENS: self._start_discovery,
            CB_ANALYZE_PROMPT: self._cb_analyze_prompt,
            CB_VIEW_WATCHLIST: self._show_watchlist,
            CB_OVERVIEW: self._cb_overview,
            CB_SETTINGS: self._cb_settings,
            CB_STOP_OPERATION: self._stop_operation,
            CB_HELP: self._cb_help,
            CB_CLEAR_WATCHLIST: self._cb_clear_watchlist,
        }

        self._prefix_callbacks: List[Tuple[str, Callable[[Any, Any, str], Awaitable[None]]]] = [
            (CB_DEEP_ANALYZE_PREFIX, self._start_analysis),
            (CB_WATCHLIST_PREFIX, self._cb_add_to_watchlist),
            (CB_UNWATCH_PREFIX, self._cb_remove_from_watchlist),
        ]

    async def initialize(self) -> bool:
        """Check the bot token against getMe"""
        if not self.bot_token:
            logger.warning("TELEGRAM_BOT_TOKEN not set - bot disabled")
            return False

        me = await self._api_call('getMe')
        if not me.ok:
            logger.error(f"Failed to connect to Telegram ({mask_sensitive_data(self.bot_token)}): {me.error}")
            return False

        logger.info(f"Telegram bot connected: @{(me.value or {}).get('username', 'unknown')}")
        return True

    async def start_polling(self):
        """Start polling for Telegram updates"""
        if not self.bot_token:
            return

        self.is_running = True
        self._polling_task = asyncio.create_task(self._poll_updates())
        logger.info("Telegram polling started")

    async def stop_polling(self):
        """Stop polling for updates"""
        self.is_running = False
        if self._polling_task:
            self._polling_task.cancel()
            try:
                await self._polling_task
            except asyncio.CancelledError:
                pass
            self._polling_task = None
        logger.info("Telegram polling stopped")

    async def close(self):
        """Stop polling, abandon running operations and release the HTTP session"""
        await self.stop_polling()

        for task in list(self._operations):
            task.cancel()
        if self._operations:
            await asyncio.gather(*self._operations, return_exceptions=True)

        if self.session and self._owns_session:
            await self.session.close()
            self.session = None

    async def wait_for_operations(self):
        """Wait until every background operation has finished"""
        while self._operations:
            await asyncio.gather(*list(self._operations), return_exceptions=True)

    def _spawn(self, coro: Awaitable[None]) -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        self._operations.add(task)
        task.add_done_callback(self._operations.discard)
        return task

    async def _poll_updates(self):
        """Poll Telegram for updates"""
        while self.is_running:
            try:
                updates = await self._api_call(
                    'getUpdates',
                    {
                        'offset': self._last_update_id + 1,
                        'timeout': self.config.pacing.poll_timeout,
                        'allowed_updates': ['message', 'callback_query'],
                    }
                )

                if not updates.ok:
                    await asyncio.sleep(POLL_ERROR_BACKOFF)
                    continue

                for update in updates.value or []:
                    self._last_update_id = update.get('update_id', self._last_update_id)
                    await self._handle_update(update)

            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Polling error: {e}")
                await asyncio.sleep(POLL_ERROR_BACKOFF)

    async def _handle_update(self, update: Dict):
        """Route one Telegram update"""
        if 'callback_query' in update:
            await self._handle_callback(update['callback_query'])
        elif 'message' in update:
            await self._handle_message(update['message'])

    async def _handle_message(self, message: Dict):
        text = (message.get('text') or '').strip()
        chat_id = message.get('chat', {}).get('id')
        user = message.get('from', {})
        user_id = user.get('id', chat_id)

        if not text or chat_id is None:
            return

        if text.startswith('/'):
            command = text.split()[0][1:].lower().split('@')[0]  # Remove / and @botname
            handler = self._commands.get(command)
            if handler:
                try:
                    await handler(chat_id, user_id, message)
                except Exception as e:
                    logger.error(f"Command error: {e}", exc_info=True)
                    await self._send_message(chat_id, MSG_CALLBACK_FAILED, reply_markup=main_menu_keyboard())
                return

        elif ADDRESS_PATTERN.match(text):
            await self._start_analysis(chat_id, user_id, text)
            return

        await self._send_message(chat_id, fallback_message(), reply_markup=main_menu_keyboard())

    async def _handle_callback(self, query: Dict):
        data = query.get('data') or ''
        chat_id = query.get('message', {}).get('chat', {}).get('id')
        user_id = query.get('from', {}).get('id', chat_id)

        ack = await self._api_call('answerCallbackQuery', {'callback_query_id': query.get('id')})
        if not ack.ok:
            logger.warning(f"⚠️ Failed to answer callback query: {ack.error}")
            if chat_id is not None and EXPIRED_QUERY_MARKER in (ack.error or ''):
                await self._send_message(chat_id, MSG_BUTTON_EXPIRED, reply_markup=main_menu_keyboard())
            return

        if chat_id is None:
            return

        try:
            handler = self._callbacks.get(data)
            if handler:
                await handler(chat_id, user_id)
                return

            for prefix, prefixed_handler in self._prefix_callbacks:
                if data.startswith(prefix):
                    await prefixed_handler(chat_id, user_id, data[len(prefix):])
                    return

            logger.warning(f"Unknown callback data: {data}")

        except Exception as e:
            logger.error(f"Callback error: {e}", exc_info=True)
            await self._send_message(chat_id, MSG_CALLBACK_FAILED, reply_markup=main_menu_keyboard())

    # ========== TELEGRAM API ==========

    async def _get_session(self) -> aiohttp.ClientSession:
        if self.session is None:
            self.session = aiohttp.ClientSession()
            self._owns_session = True
        return self.session

    async def _api_call(self, method: str, data: Dict = None) -> CallResult[Any]:
        """Make a Telegram API call; failures carry Telegram's description"""
        url = TELEGRAM_API_URL.format(token=self.bot_token, method=method)
        timeout = aiohttp.ClientTimeout(total=self.config.pacing.poll_timeout + 5)

        try:
            session = await self._get_session()
            async with session.post(url, json=data or {}, timeout=timeout) as resp:
                result = await resp.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            logger.error(f"Telegram API call {method} failed: {e}")
            return CallResult.failure(str(e))

        if result.get('ok'):
            return CallResult.success(result.get('result'))

        description = result.get('description', 'unknown error')
        logger.error(f"Telegram API error on {method}: {description}")
        return CallResult.failure(description)

    async def _send_message(self, chat_id: Any, text: str, reply_markup: Optional[Keyboard] = None,
                            disable_preview: bool = False) -> CallResult[Any]:
        """Send a Markdown message, truncated to the configured length"""
        text = truncate_message(text, self.config.pacing.max_message_length)

        payload: Dict[str, Any] = {
            'chat_id': chat_id,
            'text': text,
            'parse_mode': 'Markdown',
        }
        if disable_preview:
            payload['disable_web_page_preview'] = True
        if reply_markup:
            payload['reply_markup'] = reply_markup

        return await self._api_call('sendMessage', payload)

    async def _edit_message(self, chat_id: Any, message_id: Optional[int], text: str):
        if message_id is None:
            return
        await self._api_call('editMessageText', {
            'chat_id': chat_id,
            'message_id': message_id,
            'text': text,
            'parse_mode': 'Markdown',
        })

    async def _delete_message(self, chat_id: Any, message_id: Optional[int]):
        if message_id is None:
            return
        await self._api_call('deleteMessage', {'chat_id': chat_id, 'message_id': message_id})

    @staticmethod
    def _message_id(result: CallResult[Any]) -> Optional[int]:
        if result.ok and isinstance(result.value, dict):
            return result.value.get('message_id')
        return None

    # ========== COMMAND HANDLERS ==========

    async def _cmd_start(self, chat_id: Any, user_id: Any, message: Dict):
        self.sessions.get(user_id)
        first_name = message.get('from', {}).get('first_name') or 'Trader'
        await self._send_message(chat_id, welcome_message(first_name), reply_markup=main_menu_keyboard())

    async def _cmd_stop(self, chat_id: Any, user_id: Any, message: Dict):
        await self._stop_operation(chat_id, user_id)

    async def _cmd_help(self, chat_id: Any, user_id: Any, message: Dict):
        await self._cb_help(chat_id, user_id)

    async def _cmd_watchlist(self, chat_id: Any, user_id: Any, message: Dict):
        await self._show_watchlist(chat_id, user_id)

    # ========== CALLBACK HANDLERS ==========

    async def _stop_operation(self, chat_id: Any, user_id: Any):
        if self.sessions.stop(user_id):
            await self._send_message(chat_id, MSG_OPERATION_STOPPED, reply_markup=main_menu_keyboard())
        else:
            await self._send_message(chat_id, MSG_NOTHING_RUNNING, reply_markup=main_menu_keyboard())

    async def _cb_analyze_prompt(self, chat_id: Any, user_id: Any):
        await self._send_message(chat_id, MSG_ANALYZE_PROMPT, reply_markup=main_menu_keyboard())

    async def _show_watchlist(self, chat_id: Any, user_id: Any):
        stats = self.watchlist.stats(user_id)
        await self._send_message(chat_id, format_watchlist_message(stats),
                                 reply_markup=watchlist_keyboard(stats.tokens))

    async def _cb_overview(self, chat_id: Any, user_id: Any):
        await self._send_message(chat_id, overview_message(), reply_markup=main_menu_keyboard())

    async def _cb_settings(self, chat_id: Any, user_id: Any):
        await self._send_message(chat_id, settings_message(self.config, self.ai_enabled),
                                 reply_markup=main_menu_keyboard())

    async def _cb_help(self, chat_id: Any, user_id: Any):
        await self._send_message(chat_id, help_message(), reply_markup=main_menu_keyboard())

    async def _cb_clear_watchlist(self, chat_id: Any, user_id: Any):
        removed = self.watchlist.clear(user_id)
        if removed:
            result = WatchlistResult(True, f"Removed {removed} tokens from your watchlist")
        else:
            result = WatchlistResult(False, "You don't have any tokens in your watchlist")
        await self._send_message(chat_id, watchlist_result_message(result), reply_markup=main_menu_keyboard())

    async def _cb_add_to_watchlist(self, chat_id: Any, user_id: Any, address: str):
        token = self.sessions.get(user_id).find_token(address)
        if token is None:
            # market lookup runs off the polling loop
            self._spawn(self._add_looked_up_token(chat_id, user_id, address))
            return
        await self._send_watchlist_add(chat_id, user_id, token)

    async def _add_looked_up_token(self, chat_id: Any, user_id: Any, address: str):
        try:
            token = await self.engine.find_token(address)
        except Exception as e:
            logger.error(f"❌ Token lookup for {address} failed: {e}", exc_info=True)
            await self._send_message(chat_id, MSG_CALLBACK_FAILED, reply_markup=main_menu_keyboard())
            return
        await self._send_watchlist_add(chat_id, user_id, token)

    async def _send_watchlist_add(self, chat_id: Any, user_id: Any, token: Optional[TokenRecord]):
        if token is None:
            result = WatchlistResult(False, MSG_TOKEN_UNAVAILABLE)
        else:
            result = self.watchlist.add(user_id, token)
        await self._send_message(chat_id, watchlist_result_message(result), reply_markup=main_menu_keyboard())

    async def _cb_remove_from_watchlist(self, chat_id: Any, user_id: Any, address: str):
        result = self.watchlist.remove(user_id, address)
        await self._send_message(chat_id, watchlist_result_message(result), reply_markup=main_menu_keyboard())

    # ========== OPERATIONS ==========

    async def _begin(self, chat_id: Any, user_id: Any, operation: str) -> Optional[CancellationToken]:
        try:
            return self.sessions.begin(user_id, operation)
        except OperationInProgress as e:
            logger.info(f"User {user_id} is busy with {e.operation}")
            await self._send_message(chat_id, MSG_BUSY, reply_markup=main_menu_keyboard())
            return None

    async def _start_discovery(self, chat_id: Any, user_id: Any):
        cancel = await self._begin(chat_id, user_id, OP_FETCH_TOKENS)
        if cancel is not None:
            self._spawn(self._run_discovery(chat_id, user_id, cancel))

    async def _start_analysis(self, chat_id: Any, user_id: Any, address: str):
        address = (address or '').strip()
        if not address:
            await self._send_message(chat_id, MSG_NO_ADDRESS, reply_markup=main_menu_keyboard())
            return

        cancel = await self._begin(chat_id, user_id, OP_ANALYZE_CONTRACT)
        if cancel is not None:
            self._spawn(self._run_analysis(chat_id, user_id, address, cancel))

    async def _run_discovery(self, chat_id: Any, user_id: Any, cancel: CancellationToken):
        """Fresh token discovery with a live progress card"""
        status_id = None
        try:
            status_id = self._message_id(await self._send_message(chat_id, discovery_status(0)))

            async def report(step: int):
                await self._edit_message(chat_id, status_id, discovery_status(step))

            tokens = await self.engine.discover_tokens(cancel, report)

            await self._delete_message(chat_id, status_id)
            status_id = None
            cancel.raise_if_cancelled()

            if not tokens:
                await self._send_message(chat_id, MSG_NO_SAFE_TOKENS, reply_markup=main_menu_keyboard())
                return

            await self._send_message(chat_id, discovery_header(len(tokens)))
            self.sessions.remember_tokens(user_id, tokens)

            for index, token in enumerate(tokens):
                cancel.raise_if_cancelled()
                try:
                    await self._send_message(
                        chat_id,
                        format_token_message(token, index),
                        reply_markup=token_keyboard(token.contract_address),
                        disable_preview=True,
                    )
                except Exception as e:
                    logger.error(f"Format error for {token.symbol}: {e}")
                await self.pacer.wait()

            cancel.raise_if_cancelled()
            await self._send_message(chat_id, MSG_DISCOVERY_DONE, reply_markup=main_menu_keyboard())

        except OperationCancelled:
            logger.info(f"🛑 Discovery for user {user_id} cancelled")
        except Exception as e:
            logger.error(f"❌ Discovery failed for user {user_id}: {e}", exc_info=True)
            await self._delete_message(chat_id, status_id)
            await self._send_message(chat_id, MSG_DISCOVERY_FAILED, reply_markup=main_menu_keyboard())
        finally:
            self.sessions.finish(user_id, cancel)

    async def _run_analysis(self, chat_id: Any, user_id: Any, address: str, cancel: CancellationToken):
        """Deep contract analysis followed by a market snapshot when one exists"""
        status_id = None
        try:
            status_id = self._message_id(await self._send_message(chat_id, analysis_status(address)))

            analysis = await self.engine.analyze_contract(address, cancel)

            await self._delete_message(chat_id, status_id)
            status_id = None
            cancel.raise_if_cancelled()

            await self._send_message(
                chat_id,
                format_analysis_message(analysis),
                reply_markup=token_keyboard(address),
                disable_preview=True,
            )

            if analysis.is_valid:
                await self._send_insight(chat_id, address, cancel)

        except OperationCancelled:
            logger.info(f"🛑 Analysis of {address} for user {user_id} cancelled")
        except Exception as e:
            logger.error(f"❌ Analysis failed for {address}: {e}", exc_info=True)
            await self._delete_message(chat_id, status_id)
            await self._send_message(chat_id, MSG_ANALYSIS_FAILED, reply_markup=main_menu_keyboard())
        finally:
            self.sessions.finish(user_id, cancel)

    async def _send_insight(self, chat_id: Any, address: str, cancel: CancellationToken):
        try:
            insight = await self.engine.token_insight(address, cancel)
        except OperationCancelled:
            raise
        except Exception as e:
            logger.warning(f"Market snapshot failed for {address}: {e}")
            return

        if insight is not None:
            cancel.raise_if_cancelled()
            await self._send_message(chat_id, format_insight_message(insight), disable_preview=True)
