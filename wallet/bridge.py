import itertools
from typing import Any

from web3.providers.async_base import AsyncBaseProvider
from web3.types import RPCEndpoint, RPCResponse

from utils.logger_utils import get_logger
from wallet.provider import ProviderRpcError, WalletProvider

logger = get_logger("Wallet Async Provider")


class WalletAsyncProvider(AsyncBaseProvider):
    """
    A Web3 AsyncProvider that routes every JSON-RPC call through an injected
    wallet provider, so reads and writes go wherever the wallet sends them.
    Wallet errors are returned as JSON-RPC error responses and web3 raises them
    as its own exceptions.
    """

    def __init__(self, wallet: WalletProvider):
        super().__init__()
        self._wallet = wallet
        self._ids = itertools.count(1)

    async def make_request(self, method: RPCEndpoint, params: Any) -> RPCResponse:
        request_id = next(self._ids)
        try:
            result = await self._wallet.request(method, list(params or []))
        except ProviderRpcError as e:
            logger.debug(f"Wallet rejected {method}: {e}")
            error = {"code": e.code, "message": e.message}
            if e.data is not None:
                error["data"] = e.data
            return {"jsonrpc": "2.0", "id": request_id, "error": error}
        return {"jsonrpc": "2.0", "id": request_id, "result": result}

    async def is_connected(self, show_traceback: bool = False) -> bool:
        try:
            await self._wallet.request("eth_chainId", [])
        except (ProviderRpcError, OSError) as e:
            if show_traceback:
                raise ConnectionError(f"Wallet provider is not reachable: {e}") from e
            return False
        return True
