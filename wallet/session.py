from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from web3 import AsyncWeb3

from governance.exceptions import NoProviderFound, NoSigner, UserRejected, WalletRequestFailed
from utils.formatter_utils import to_checksum_address
from utils.logger_utils import get_logger
from wallet.bridge import WalletAsyncProvider
from wallet.generation import GenerationCounter, GenerationToken
from wallet.models.session import Session
from wallet.provider import ACCOUNTS_CHANGED, USER_REJECTED_REQUEST, ProviderRpcError, WalletProvider

logger = get_logger("Wallet Session")

AccountsChangedHandler = Callable[[Session], None]
Web3Factory = Callable[[WalletProvider], AsyncWeb3]


def default_web3_factory(provider: WalletProvider) -> AsyncWeb3:
    return AsyncWeb3(WalletAsyncProvider(provider))


@dataclass(frozen=True)
class Signer:
    """A signing caller: the web3 instance writes go through and the account that pays for them."""
    web3: AsyncWeb3
    account: str


class WalletSession(object):
    """
    Owns the connection to the injected wallet provider.

    The provider is handed in explicitly (None when no wallet is present) and
    the session only changes through connect() or an accountsChanged event.
    Each change advances the generation so suspended work can tell that its
    context is gone.
    """

    def __init__(self, provider: Optional[WalletProvider], web3_factory: Web3Factory = default_web3_factory):
        self._provider = provider
        self._web3_factory = web3_factory
        self._session = Session.disconnected()
        self._generation = GenerationCounter()
        self._handlers: List[AccountsChangedHandler] = []
        self._session_handlers: List[AccountsChangedHandler] = []
        self._viewer: Optional[AsyncWeb3] = None
        self._signer: Optional[Signer] = None

        if provider is not None:
            provider.on(ACCOUNTS_CHANGED, self._on_accounts_changed)

    @property
    def session(self) -> Session:
        return self._session

    @property
    def account(self) -> Optional[str]:
        return self._session.account

    @property
    def connected(self) -> bool:
        return self._session.connected

    @property
    def has_provider(self) -> bool:
        return self._provider is not None

    @property
    def generation(self) -> int:
        return self._generation.value

    def capture(self) -> GenerationToken:
        return self._generation.capture()

    def is_current(self, token: GenerationToken) -> bool:
        return token.is_current()

    async def connect(self) -> Session:
        if self._provider is None:
            raise NoProviderFound()

        try:
            accounts = await self._provider.request("eth_requestAccounts", [])
        except ProviderRpcError as e:
            if e.code == USER_REJECTED_REQUEST:
                raise UserRejected(f"The wallet declined the account request: {e.message}") from e
            raise WalletRequestFailed(f"Account request failed: {e}") from e

        if not accounts:
            raise UserRejected("The wallet did not authorize any account")

        self._apply_accounts(accounts)
        logger.info(f"Connected as {self._session.account}")
        self._notify(self._session_handlers)
        return self._session

    def on_accounts_changed(self, handler: AccountsChangedHandler) -> Callable[[], None]:
        """
        Registers a handler called once per accountsChanged event with the new Session.
        Returns a function that unregisters it.
        """
        return self._subscribe(self._handlers, handler)

    def on_session_changed(self, handler: AccountsChangedHandler) -> Callable[[], None]:
        """
        Registers a handler called whenever the generation advances, i.e. after
        connect() and after every accountsChanged event.
        Returns a function that unregisters it.
        """
        return self._subscribe(self._session_handlers, handler)

    @staticmethod
    def _subscribe(handlers: List[AccountsChangedHandler], handler: AccountsChangedHandler) -> Callable[[], None]:
        handlers.append(handler)

        def unsubscribe() -> None:
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    def _notify(self, handlers: List[AccountsChangedHandler]) -> None:
        for handler in list(handlers):
            handler(self._session)

    def viewer(self) -> AsyncWeb3:
        """Read-only caller routed through the wallet provider."""
        if self._provider is None:
            raise NoProviderFound()
        if self._viewer is None:
            self._viewer = self._web3_factory(self._provider)
        return self._viewer

    def signer(self) -> Signer:
        """Signing caller for the current account. Rebuilt after every account change."""
        if self._provider is None:
            raise NoProviderFound()
        if not self._session.connected:
            raise NoSigner()
        if self._signer is None:
            web3 = self._web3_factory(self._provider)
            web3.eth.default_account = self._session.account
            self._signer = Signer(web3=web3, account=self._session.account)
        return self._signer

    def _on_accounts_changed(self, accounts: Sequence[str]) -> None:
        previous = self._session.account
        self._apply_accounts(accounts)
        logger.info(f"Wallet accounts changed: {previous} -> {self._session.account}")

        # Internal state (stores, dashboards) first, then external listeners
        self._notify(self._session_handlers)
        self._notify(self._handlers)

    def _apply_accounts(self, accounts: Sequence[str]) -> None:
        account = to_checksum_address(accounts[0]) if accounts else None
        if accounts and account is None:
            raise WalletRequestFailed(f"Wallet returned an invalid account: {accounts[0]!r}")

        self._session = Session(account=account, connected=account is not None)
        self._signer = None
        self._generation.advance()
