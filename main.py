#!/usr/bin/env python3
"""
Alpha Finders - TEA Protocol token discovery bot

Loads configuration from the environment, wires collectors, analyzers and
stores into the Telegram controller, and long-polls until SIGINT/SIGTERM.
"""

import asyncio
import logging
import signal
import sys

from dotenv import load_dotenv

from analysis.ai_analyst import AIAnalyst
from analysis.rug_detector import RugDetector
from analysis.safety_filter import SafetyFilter
from analysis.token_scorer import TokenScorer
from config.settings import Settings
from config.tuning import BotConfig
from core.engine import AlphaFindersEngine
from core.session import SessionStore
from data.collectors.block_explorer import BlockExplorerClient
from data.collectors.chain_data import ChainDataCollector
from data.collectors.dexscreener import DexScreenerCollector
from data.collectors.honeypot_checker import HoneypotChecker
from data.collectors.velodrome import VelodromeCollector
from data.processors.aggregator import TokenAggregator
from data.storage.watchlist import WatchlistStore
from monitoring.logger import setup_logging
from monitoring.telegram_bot import MessagePacer, TelegramBotController
from utils.constants import BOT_NAME, VERSION
from utils.errors import ConfigurationError

logger = logging.getLogger("AlphaFinders")


class AlphaFindersApp:
    """Owns every long-lived component and their shutdown order"""

    def __init__(self, settings: Settings, config: BotConfig):
        self.settings = settings
        self.config = config
        self.shutdown_event = asyncio.Event()

        self.dexscreener = DexScreenerCollector(config.fetch)
        self.velodrome = VelodromeCollector(config.fetch)
        self.chain = ChainDataCollector(settings.rpc_url)
        self.honeypot_checker = HoneypotChecker(self.chain, config.analysis)
        self.explorer = BlockExplorerClient(settings.etherscan_api_key, config.analysis)
        self.ai_analyst = AIAnalyst(settings.groq_api_key, config.ai)

        self.engine = AlphaFindersEngine(
            aggregator=TokenAggregator(self.dexscreener, self.velodrome, config.fetch),
            safety_filter=SafetyFilter(self.honeypot_checker, config.filter),
            scorer=TokenScorer(config.scoring, self.ai_analyst),
            rug_detector=RugDetector(self.chain, self.honeypot_checker, self.dexscreener,
                                     self.explorer, config.analysis),
            dexscreener=self.dexscreener,
        )

        self.bot = TelegramBotController(
            bot_token=settings.telegram_bot_token,
            engine=self.engine,
            sessions=SessionStore(),
            watchlist=WatchlistStore(),
            config=config,
            pacer=MessagePacer(config.pacing.message_delay_seconds),
            ai_enabled=self.ai_analyst.enabled,
        )

    def install_signal_handlers(self):
        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

    def _signal_handler(self, signum, frame):
        """Handle shutdown signals"""
        logger.warning(f"Received signal {signum}, initiating shutdown...")
        self.shutdown_event.set()

    async def run(self):
        logger.info("=" * 60)
        logger.info(f"🫖 {BOT_NAME} v{VERSION} starting")
        logger.info(f"Settings: {self.settings.describe()}")
        if not self.settings.ai_enabled:
            logger.warning("GROQ_API_KEY not set - AI narratives disabled")
        if not self.settings.explorer_key_present:
            logger.warning("ETHERSCAN_API_KEY not set - explorer lookups use the public rate limit")
        logger.info("=" * 60)

        try:
            await self.dexscreener.initialize()
            await self.velodrome.initialize()
            await self.honeypot_checker.initialize()
            await self.explorer.initialize()
            await self.ai_analyst.initialize()

            if not await self.bot.initialize():
                logger.error("❌ Telegram bot could not start")
                return

            await self.bot.start_polling()
            logger.info(f"✅ {BOT_NAME} is running")
            await self.shutdown_event.wait()

        finally:
            await self.shutdown()

    async def shutdown(self):
        logger.info("🛑 Shutting down...")
        await self.bot.close()
        await self.dexscreener.close()
        await self.velodrome.close()
        await self.honeypot_checker.close()
        await self.explorer.close()
        await self.ai_analyst.close()
        await self.chain.close()
        logger.info("✅ Shutdown complete")


async def run_bot():
    load_dotenv()

    settings = Settings()
    settings.validate()
    config = BotConfig.from_env_overrides()

    setup_logging(settings.log_level, settings.log_dir)

    app = AlphaFindersApp(settings, config)
    app.install_signal_handlers()
    await app.run()


def main():
    """Console entry point"""
    try:
        asyncio.run(run_bot())
    except ConfigurationError as e:
        print(f"❌ Configuration error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("👋 Goodbye!")
    except Exception as e:
        logger.error(f"❌ Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    if sys.version_info < (3, 9):
        print("Python 3.9+ required")
        sys.exit(1)

    main()
