from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence

from eth_utils import is_same_address

from utils.logger_utils import get_logger
from utils.rpc_provider_utils import get_async_provider_from_uri

logger = get_logger("Wallet Provider")

ACCOUNTS_CHANGED = "accountsChanged"

# EIP-1193 provider error codes
USER_REJECTED_REQUEST = 4001
UNAUTHORIZED = 4100
UNSUPPORTED_METHOD = 4200
DISCONNECTED = 4900


class ProviderRpcError(Exception):
    def __init__(self, code: int, message: str, data: Any = None):
        super().__init__(f"[{code}] {message}")
        self.code = code
        self.message = message
        self.data = data


class WalletProvider(Protocol):
    """
    The injected wallet capability (EIP-1193 shape): one request entry point
    plus event subscriptions.
    """

    async def request(self, method: str, params: Optional[Sequence[Any]] = None) -> Any:
        ...

    def on(self, event: str, handler: Callable[..., None]) -> None:
        ...


class NodeWalletProvider(object):
    """
    Wallet provider backed by a JSON-RPC node that manages unlocked accounts
    (Hardhat, Anvil, Ganache). The node signs eth_sendTransaction itself, so no
    key material is handled here.
    """

    def __init__(self, provider_uri: str, timeout: int = 60, preferred_account: Optional[str] = None):
        self._provider = get_async_provider_from_uri(provider_uri, timeout=timeout)
        self._preferred_account = preferred_account
        self._listeners: Dict[str, List[Callable[..., None]]] = defaultdict(list)
        self._request_id = 0

    async def request(self, method: str, params: Optional[Sequence[Any]] = None) -> Any:
        if method == "eth_requestAccounts":
            accounts = await self._call("eth_accounts", [])
            return self._order_accounts(accounts or [])
        return await self._call(method, list(params or []))

    def on(self, event: str, handler: Callable[..., None]) -> None:
        self._listeners[event].append(handler)

    def remove_listener(self, event: str, handler: Callable[..., None]) -> None:
        if handler in self._listeners.get(event, []):
            self._listeners[event].remove(handler)

    def set_accounts(self, accounts: Sequence[str]) -> None:
        """
        Switches the active account list and notifies listeners, the way a
        browser wallet fires accountsChanged when the user picks another account.
        """
        self._preferred_account = accounts[0] if accounts else None
        self._emit(ACCOUNTS_CHANGED, list(accounts))

    async def disconnect(self) -> None:
        self._emit(ACCOUNTS_CHANGED, [])
        disconnect = getattr(self._provider, "disconnect", None)
        if disconnect is not None:
            await disconnect()

    async def _call(self, method: str, params: List[Any]) -> Any:
        self._request_id += 1
        logger.debug(f"-> {method} #{self._request_id}")
        response = await self._provider.make_request(method, params)
        if "error" in response and response["error"]:
            error = response["error"]
            if isinstance(error, dict):
                raise ProviderRpcError(error.get("code", -32603), error.get("message", "Unknown error"), error.get("data"))
            raise ProviderRpcError(-32603, str(error))
        return response.get("result")

    def _order_accounts(self, accounts: List[str]) -> List[str]:
        if not self._preferred_account:
            return accounts
        preferred = [a for a in accounts if is_same_address(a, self._preferred_account)]
        if not preferred:
            raise ProviderRpcError(UNAUTHORIZED, f"Account {self._preferred_account} is not managed by the node")
        return preferred + [a for a in accounts if not is_same_address(a, self._preferred_account)]

    def _emit(self, event: str, *args: Any) -> None:
        for handler in list(self._listeners.get(event, [])):
            handler(*args)
