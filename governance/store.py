import asyncio
from typing import Optional

from governance.enums import LoadState
from governance.exceptions import ReadFailed
from governance.gateway import ContractGateway
from governance.models.proposal import Proposal, ProposalSnapshot
from utils.async_utils import gather_with_concurrency
from utils.logger_utils import get_logger
from wallet.generation import CompositeToken, GenerationCounter
from wallet.session import WalletSession

logger = get_logger("Proposal Store")

DEFAULT_MAX_CONCURRENT_READS = 10


class ProposalStore(object):
    """
    Holds the last synchronized snapshot of every proposal on one governance contract.

    State machine: IDLE -> LOADING -> LOADED | LOAD_FAILED. A snapshot is only
    ever replaced whole, and only by a load whose context (bound gateway and
    wallet session generation) is still current when it resumes.
    """

    def __init__(
        self,
        gateway: Optional[ContractGateway] = None,
        session: Optional[WalletSession] = None,
        max_concurrent_reads: int = DEFAULT_MAX_CONCURRENT_READS,
    ):
        self._gateway = gateway
        self._session = session
        self._max_concurrent_reads = max_concurrent_reads
        self._generation = GenerationCounter()

        self.state = LoadState.IDLE
        self.snapshot: Optional[ProposalSnapshot] = None
        self.last_error: Optional[ReadFailed] = None

        self._inflight: Optional[asyncio.Future] = None
        self._inflight_token: Optional[CompositeToken] = None

        if session is not None:
            session.on_session_changed(lambda _session: self.invalidate())

    @property
    def gateway(self) -> Optional[ContractGateway]:
        return self._gateway

    @property
    def dao_address(self) -> Optional[str]:
        return self._gateway.address if self._gateway else None

    @property
    def proposals(self) -> tuple:
        return self.snapshot.proposals if self.snapshot else ()

    def get(self, proposal_id: int) -> Optional[Proposal]:
        return self.snapshot.get(proposal_id) if self.snapshot else None

    def bind(self, gateway: Optional[ContractGateway]) -> None:
        """Points the store at another gateway (new DAO address or new caller)."""
        self._gateway = gateway
        self.invalidate()

    def invalidate(self) -> None:
        """
        Drops the current snapshot and makes any in-flight load stale.
        The stale load keeps running; its result is discarded when it resumes.
        """
        self._generation.advance()
        self._inflight = None
        self._inflight_token = None
        self.state = LoadState.IDLE
        self.snapshot = None
        self.last_error = None

    async def load(self) -> Optional[ProposalSnapshot]:
        """
        Fetches the full proposal list and publishes it as the new snapshot.

        Returns:
            The published snapshot, or None if the context changed while the
            fetch was suspended and its result was discarded.

        Raises:
            ReadFailed: If the id list or any single proposal could not be read.
                The previous snapshot is left as it was.
        """
        if self._gateway is None:
            raise ReadFailed("No governance contract address set")

        if self._inflight is not None and not self._inflight.done() and self._inflight_token.is_current():
            logger.debug(f"Load already in flight for {self.dao_address}, joining it")
            return await asyncio.shield(self._inflight)

        token = self._capture()
        task = asyncio.ensure_future(self._load(self._gateway, token))
        self._inflight = task
        self._inflight_token = token
        self.state = LoadState.LOADING
        return await asyncio.shield(task)

    def _capture(self) -> CompositeToken:
        parts = [self._generation.capture()]
        if self._session is not None:
            parts.append(self._session.capture())
        return CompositeToken(tuple(parts))

    def _current_account(self, gateway: ContractGateway) -> Optional[str]:
        if self._session is not None:
            return self._session.account
        return gateway.account

    async def _load(self, gateway: ContractGateway, token: CompositeToken) -> Optional[ProposalSnapshot]:
        account = self._current_account(gateway)
        logger.info(f"Loading proposals from {gateway.address}")

        try:
            snapshot = await self._fetch(gateway, account)
        except ReadFailed as e:
            if not token.is_current():
                logger.info(f"Discarding failed load from {gateway.address}: context changed while it was in flight")
                self._drop_unnoticed_change(token)
                return None
            logger.error(f"Loading proposals from {gateway.address} failed: {e}")
            self.state = LoadState.LOAD_FAILED
            self.last_error = e
            raise

        if not token.is_current():
            logger.info(f"Discarding {len(snapshot.proposals)} proposals from {gateway.address}: context changed while loading")
            self._drop_unnoticed_change(token)
            return None

        self._warn_on_regressions(snapshot)
        self.snapshot = snapshot
        self.state = LoadState.LOADED
        self.last_error = None
        logger.info(f"Loaded {len(snapshot.proposals)} proposals from {gateway.address}")
        return snapshot

    def _drop_unnoticed_change(self, token: CompositeToken) -> None:
        # Still the current load, so nothing invalidated the store; the session moved on without telling it
        if self._inflight_token is token:
            self.invalidate()

    async def _fetch(self, gateway: ContractGateway, account: Optional[str]) -> ProposalSnapshot:
        ids = await gateway.list_proposal_ids()

        # Descending order up front; duplicates in the id list are read once
        unique_ids = sorted(set(ids), reverse=True)
        if len(unique_ids) != len(ids):
            logger.warning(f"{gateway.address} returned duplicate proposal ids, reading {len(unique_ids)} of {len(ids)}")

        proposals = await gather_with_concurrency(
            self._max_concurrent_reads, *(gateway.get_proposal(pid) for pid in unique_ids)
        )

        for requested, proposal in zip(unique_ids, proposals):
            if proposal.id != requested:
                raise ReadFailed(f"Asked {gateway.address} for proposal {requested}, got {proposal.id}")

        ordered = tuple(sorted(proposals, key=lambda p: p.id, reverse=True))
        return ProposalSnapshot(dao_address=gateway.address, account=account, proposals=ordered)

    def _warn_on_regressions(self, snapshot: ProposalSnapshot) -> None:
        # Tallies only grow and execution never reverts; anything else points at a reorg or a misbehaving node
        if self.snapshot is None or self.snapshot.dao_address != snapshot.dao_address:
            return
        for proposal in snapshot.proposals:
            previous = self.snapshot.get(proposal.id)
            if previous is None:
                continue
            if (
                proposal.yes < previous.yes
                or proposal.no < previous.no
                or proposal.abstain < previous.abstain
                or (previous.executed and not proposal.executed)
            ):
                logger.warning(f"Proposal {proposal.id} on {snapshot.dao_address} went backwards since the last load")
