"""
Blockchain Data Collector
On-chain reads against the Optimism RPC: deployed bytecode and the owner() accessor
"""

import logging
from typing import Optional

from web3 import AsyncWeb3, Web3

from utils.constants import DEFAULT_RPC_URL, OWNER_ABI
from utils.results import CallResult

logger = logging.getLogger(__name__)


class ChainDataCollector:
    """Thin async wrapper over web3 that never raises to its callers"""

    def __init__(self, rpc_url: str = DEFAULT_RPC_URL, w3: Optional[AsyncWeb3] = None):
        """
        Args:
            rpc_url: JSON-RPC endpoint for the chain
            w3: Pre-built AsyncWeb3 instance (tests inject a mock here)
        """
        self.rpc_url = rpc_url
        self.w3 = w3 or AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(rpc_url))

    async def get_code(self, address: str) -> CallResult[bytes]:
        """Deployed bytecode at ``address``; empty bytes for an EOA"""
        try:
            checksum = Web3.to_checksum_address(address)
            code = await self.w3.eth.get_code(checksum)
            return CallResult.success(bytes(code or b""))
        except Exception as e:
            logger.warning(f"get_code failed for {address}: {e}")
            return CallResult.failure(str(e))

    async def get_owner(self, address: str) -> CallResult[str]:
        """Result of the zero-argument owner() accessor"""
        try:
            checksum = Web3.to_checksum_address(address)
            contract = self.w3.eth.contract(address=checksum, abi=OWNER_ABI)
            owner = await contract.functions.owner().call()
            return CallResult.success(str(owner))
        except Exception as e:
            # Most tokens without Ownable land here
            logger.debug(f"owner() call failed for {address}: {e}")
            return CallResult.failure(str(e))

    @staticmethod
    def has_code(code: Optional[bytes]) -> bool:
        return bool(code) and code not in (b"\x00",)

    @staticmethod
    def bytecode_text(code: Optional[bytes]) -> str:
        """
        Lower-cased searchable text for a contract's bytecode.

        Joins the 0x-prefixed hex form with the raw bytes decoded as latin-1 so
        substring heuristics also see identifiers and revert strings embedded
        in the code.
        """
        if not code:
            return ""
        return f"0x{code.hex()}\n{code.decode('latin-1')}".lower()

    async def close(self):
        provider = getattr(self.w3, "provider", None)
        disconnect = getattr(provider, "disconnect", None)
        if disconnect is not None:
            try:
                await disconnect()
            except Exception as e:
                logger.debug(f"RPC provider disconnect failed: {e}")
