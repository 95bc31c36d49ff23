import inspect
from typing import Any, Awaitable, Callable, List

from governance.exceptions import TransactionFailed
from governance.gateway import ContractGateway
from governance.models.transaction import TransactionHandle
from utils.logger_utils import get_logger
from wallet.generation import GenerationToken
from wallet.session import WalletSession

logger = get_logger("Transaction Lifecycle")

ConfirmedHandler = Callable[[TransactionHandle], Any]

DEFAULT_CONFIRMATION_TIMEOUT = 120
DEFAULT_POLL_LATENCY = 0.5


class TransactionLifecycle(object):
    """
    Drives one write from submission to a terminal state.

    Every call submits exactly once and returns its own handle. Confirmation
    handlers are how a caller learns it should reload the proposal store; the
    lifecycle never reloads anything itself. If the wallet session changes while
    a handle is waiting, the handle still records what happened on chain but is
    marked superseded and no handler fires.
    """

    def __init__(
        self,
        session: WalletSession,
        gateway: ContractGateway,
        confirmation_timeout: float = DEFAULT_CONFIRMATION_TIMEOUT,
        poll_latency: float = DEFAULT_POLL_LATENCY,
    ):
        self._session = session
        self._gateway = gateway
        self._confirmation_timeout = confirmation_timeout
        self._poll_latency = poll_latency
        self._handlers: List[ConfirmedHandler] = []

    def on_confirmed(self, handler: ConfirmedHandler) -> None:
        self._handlers.append(handler)

    async def create_proposal(self, metadata_uri: str) -> TransactionHandle:
        return await self._execute(lambda: self._gateway.create_proposal(metadata_uri))

    async def vote(self, proposal_id: int, choice: Any) -> TransactionHandle:
        return await self._execute(lambda: self._gateway.vote(proposal_id, choice))

    async def _execute(self, submit: Callable[[], Awaitable[TransactionHandle]]) -> TransactionHandle:
        token = self._session.capture()

        # NoSigner, InvalidChoice, InvalidProposalId and SubmissionRejected surface here, before any handle exists
        handle = await submit()

        try:
            receipt = await self._gateway.wait_for_inclusion(
                handle, timeout=self._confirmation_timeout, poll_latency=self._poll_latency
            )
        except TransactionFailed as e:
            handle.fail(str(e))
        else:
            handle.confirm(receipt.get("blockNumber"))

        if not self._still_current(token, handle):
            return handle

        if handle.error:
            logger.error(f"{handle.action.value} {handle.tx_hash} failed: {handle.error}")
            return handle

        logger.info(f"{handle.action.value} {handle.tx_hash} confirmed in block {handle.block_number}")
        for handler in list(self._handlers):
            result = handler(handle)
            if inspect.isawaitable(result):
                await result
        return handle

    def _still_current(self, token: GenerationToken, handle: TransactionHandle) -> bool:
        if self._session.is_current(token):
            return True
        handle.superseded = True
        logger.info(
            f"{handle.action.value} {handle.tx_hash} finished as {handle.state.value} after the wallet session changed; "
            "not reporting it to the current session"
        )
        return False
