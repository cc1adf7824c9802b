"""
Global Settings for Alpha Finders Bot
Environment-driven credentials and chain configuration
"""

import os
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Any

from utils.constants import Chain, DEFAULT_RPC_URL
from utils.errors import ConfigurationError
from utils.helpers import mask_sensitive_data


class Environment(Enum):
    """Runtime environments"""
    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"


class ChainConfig:
    """Blockchain configuration"""
    def __init__(self, name: str, chain_id: int, rpc_url: str,
                 explorer_url: str, native_token: str, dex: str):
        self.name = name
        self.chain_id = chain_id
        self.rpc_url = rpc_url
        self.explorer_url = explorer_url
        self.native_token = native_token
        self.dex = dex


class Settings:
    """
    Application settings read from the environment.

    Values are captured when the object is built, so call ``load_dotenv()``
    before constructing it. Only the bot token is required; a missing Groq key
    disables AI narratives and a missing Etherscan key degrades the
    verified-source lookup to the public rate limit.
    """

    APP_NAME = "Alpha Finders"
    APP_VERSION = "1.0.0"

    BASE_DIR = Path(__file__).parent.parent

    REQUIRED_VARS = ['TELEGRAM_BOT_TOKEN']

    def __init__(self, environ: Optional[Dict[str, str]] = None):
        env = os.environ if environ is None else environ

        try:
            self.environment = Environment(env.get('ENVIRONMENT', 'development').lower())
        except ValueError as e:
            raise ConfigurationError(f"Unknown ENVIRONMENT value: {env.get('ENVIRONMENT')}") from e
        self.telegram_bot_token = env.get('TELEGRAM_BOT_TOKEN', '')
        self.rpc_url = env.get('OPTIMISM_RPC_URL') or DEFAULT_RPC_URL
        self.groq_api_key = env.get('GROQ_API_KEY', '')
        self.etherscan_api_key = env.get('ETHERSCAN_API_KEY', '')

        # Logging
        self.log_level = env.get('LOG_LEVEL', 'INFO').upper()
        self.log_dir = Path(env.get('LOG_DIR', str(self.BASE_DIR / 'logs')))

        self.chain = ChainConfig(
            name='optimism',
            chain_id=int(Chain.OPTIMISM),
            rpc_url=self.rpc_url,
            explorer_url='https://optimistic.etherscan.io',
            native_token='ETH',
            dex='velodrome',
        )

        self._env = env

    @property
    def ai_enabled(self) -> bool:
        return bool(self.groq_api_key)

    @property
    def explorer_key_present(self) -> bool:
        return bool(self.etherscan_api_key)

    def missing_variables(self) -> List[str]:
        return [var for var in self.REQUIRED_VARS if not self._env.get(var)]

    def validate(self) -> bool:
        """Validate required configuration, raising ConfigurationError if incomplete"""
        missing_vars = self.missing_variables()
        if missing_vars:
            raise ConfigurationError(f"Missing required environment variables: {missing_vars}")
        return True

    def describe(self) -> Dict[str, Any]:
        """Loggable snapshot with credentials masked"""
        return {
            'environment': self.environment.value,
            'app_version': self.APP_VERSION,
            'chain': self.chain.name,
            'chain_id': self.chain.chain_id,
            'rpc_url': self.rpc_url,
            'telegram_bot_token': mask_sensitive_data(self.telegram_bot_token),
            'groq_api_key': mask_sensitive_data(self.groq_api_key),
            'etherscan_api_key': mask_sensitive_data(self.etherscan_api_key),
            'ai_enabled': self.ai_enabled,
        }
