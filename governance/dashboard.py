from typing import Any, Optional

from governance.exceptions import InvalidAddress, NoSigner, ReadFailed
from governance.gateway import ContractGateway
from governance.lifecycle import DEFAULT_CONFIRMATION_TIMEOUT, DEFAULT_POLL_LATENCY, TransactionLifecycle
from governance.models.proposal import ProposalSnapshot
from governance.models.transaction import TransactionHandle
from governance.store import DEFAULT_MAX_CONCURRENT_READS, ProposalStore
from utils.logger_utils import get_logger
from utils.validation_utils import validate_contract_address, validate_vote_choice
from wallet.models.session import Session
from wallet.session import WalletSession

logger = get_logger("Governance Dashboard")


class GovernanceDashboard(object):
    """
    Wires the wallet session, the contract gateway, the proposal store and the
    transaction lifecycle together for one operator.

    Gateways are rebuilt whenever the DAO address or the wallet account changes,
    so every in-flight call keeps the caller it started with.
    """

    def __init__(
        self,
        session: WalletSession,
        max_concurrent_reads: int = DEFAULT_MAX_CONCURRENT_READS,
        confirmation_timeout: float = DEFAULT_CONFIRMATION_TIMEOUT,
        poll_latency: float = DEFAULT_POLL_LATENCY,
        refresh_on_confirm: bool = True,
    ):
        self.session = session
        self.dao_address: Optional[str] = None
        self.store = ProposalStore(session=session, max_concurrent_reads=max_concurrent_reads)
        self._confirmation_timeout = confirmation_timeout
        self._poll_latency = poll_latency
        self._refresh_on_confirm = refresh_on_confirm
        self._gateway: Optional[ContractGateway] = None
        self._lifecycle: Optional[TransactionLifecycle] = None

        session.on_session_changed(self._on_session_changed)

    @property
    def can_write(self) -> bool:
        """Whether signer-dependent actions (create proposal, vote) are available."""
        return self._lifecycle is not None

    @property
    def gateway(self) -> Optional[ContractGateway]:
        return self._gateway

    async def connect(self) -> Session:
        # Gateways are rebuilt by the session-changed notification
        return await self.session.connect()

    def set_dao_address(self, address: Optional[str]) -> None:
        self.dao_address = validate_contract_address(address) if address else None
        logger.info(f"Governance contract set to {self.dao_address}")
        self._rebuild()

    async def refresh(self) -> Optional[ProposalSnapshot]:
        return await self.store.load()

    async def create_proposal(self, metadata_uri: str) -> TransactionHandle:
        return await self._require_lifecycle().create_proposal(metadata_uri)

    async def vote(self, proposal_id: int, choice: Any) -> TransactionHandle:
        choice = validate_vote_choice(choice)
        return await self._require_lifecycle().vote(proposal_id, choice)

    def _require_lifecycle(self) -> TransactionLifecycle:
        if self.dao_address is None:
            raise InvalidAddress("No governance contract address set")
        if self._lifecycle is None:
            raise NoSigner()
        return self._lifecycle

    def _on_session_changed(self, session: Session) -> None:
        self._rebuild()

    def _rebuild(self) -> None:
        if self.dao_address is None or not self.session.has_provider:
            self._gateway = None
            self._lifecycle = None
            self.store.bind(None)
            return

        signer = self.session.signer() if self.session.connected else None
        self._gateway = ContractGateway(self.dao_address, self.session.viewer(), signer)
        self.store.bind(self._gateway)

        self._lifecycle = None
        if signer is not None:
            self._lifecycle = TransactionLifecycle(
                self.session,
                self._gateway,
                confirmation_timeout=self._confirmation_timeout,
                poll_latency=self._poll_latency,
            )
            if self._refresh_on_confirm:
                self._lifecycle.on_confirmed(self._refresh_after_confirmation)

    async def _refresh_after_confirmation(self, handle: TransactionHandle) -> None:
        try:
            await self.store.load()
        except ReadFailed as e:
            # Recorded on the store as LOAD_FAILED; the write itself did go through
            logger.warning(f"Refreshing proposals after {handle.tx_hash} failed: {e}")
