import asyncio
from typing import Any, Awaitable, Callable, List, Optional

import aiohttp
from web3 import AsyncWeb3, Web3
from web3.exceptions import TimeExhausted, Web3Exception

from abi.simple_dao_abi import SIMPLE_DAO_ABI
from governance.enums import TransactionAction, VoteChoice
from governance.exceptions import NoSigner, ReadFailed, SubmissionRejected, TransactionFailed
from governance.mappers.proposal_mapper import ProposalMapper
from governance.models.proposal import Proposal
from governance.models.transaction import TransactionHandle
from utils.logger_utils import get_logger
from utils.validation_utils import validate_contract_address, validate_proposal_id, validate_vote_choice
from wallet.session import Signer

logger = get_logger("Contract Gateway")

# Everything a JSON-RPC round trip can throw at us once the request left the client
NETWORK_ERRORS = (Web3Exception, ValueError, ConnectionError, aiohttp.ClientError, asyncio.TimeoutError)


class ContractGateway(object):
    """
    Typed read/write façade over the governance contract.

    Reads go through the viewing caller; writes need a Signer and fail with
    NoSigner without one. A gateway is bound to one caller for its whole life:
    when the account changes a new gateway is built instead of re-pointing this one.
    """

    def __init__(self, address: str, viewer: AsyncWeb3, signer: Optional[Signer] = None):
        self.address = validate_contract_address(address)
        self.signer = signer
        self._reader = viewer.eth.contract(address=self.address, abi=SIMPLE_DAO_ABI)
        self._writer = None
        if signer is not None:
            self._writer = signer.web3.eth.contract(address=self.address, abi=SIMPLE_DAO_ABI)

    @property
    def account(self) -> Optional[str]:
        return self.signer.account if self.signer else None

    @property
    def can_write(self) -> bool:
        return self._writer is not None

    async def list_proposal_ids(self) -> List[int]:
        raw_ids = await self._read("getProposalIds", self._reader.functions.getProposalIds().call)
        try:
            return [self._to_uint(raw) for raw in raw_ids]
        except (TypeError, ValueError) as e:
            raise ReadFailed(f"Could not decode proposal ids from {self.address}: {e}") from e

    async def get_proposal(self, proposal_id: int) -> Proposal:
        proposal_id = validate_proposal_id(proposal_id)
        raw = await self._read(f"getProposal({proposal_id})", self._reader.functions.getProposal(proposal_id).call)
        try:
            return ProposalMapper.raw_to_proposal(raw)
        except (TypeError, ValueError) as e:
            raise ReadFailed(f"Could not decode proposal {proposal_id} from {self.address}: {e}") from e

    async def create_proposal(self, metadata_uri: str) -> TransactionHandle:
        writer = self._require_writer()
        return await self._submit(
            TransactionAction.CREATE_PROPOSAL,
            writer.functions.createProposal(metadata_uri).transact,
            {"metadata_uri": metadata_uri},
        )

    async def vote(self, proposal_id: int, choice: Any) -> TransactionHandle:
        # Validation happens before the signer check so a bad choice never costs a round trip
        choice = validate_vote_choice(choice)
        proposal_id = validate_proposal_id(proposal_id)
        writer = self._require_writer()
        return await self._submit(
            TransactionAction.VOTE,
            writer.functions.vote(proposal_id, int(choice)).transact,
            {"proposal_id": proposal_id, "choice": choice.name.lower()},
        )

    async def wait_for_inclusion(
        self, handle: TransactionHandle, timeout: float = 120, poll_latency: float = 0.5
    ) -> Any:
        """
        Suspends until the transaction behind `handle` is included.
        Uses the signer's web3, i.e. the same caller the write was submitted with.

        Raises:
            TransactionFailed: If the transaction reverted or was not included within `timeout`.
        """
        if self.signer is None:
            raise NoSigner()

        try:
            receipt = await self.signer.web3.eth.wait_for_transaction_receipt(
                handle.tx_hash, timeout=timeout, poll_latency=poll_latency
            )
        except TimeExhausted as e:
            raise TransactionFailed(f"Transaction {handle.tx_hash} was not included after {timeout}s") from e
        except NETWORK_ERRORS as e:
            raise TransactionFailed(f"Lost track of transaction {handle.tx_hash}: {e}") from e

        if receipt.get("status") == 0:
            raise TransactionFailed(f"Transaction {handle.tx_hash} reverted in block {receipt.get('blockNumber')}")
        return receipt

    def _require_writer(self):
        if self._writer is None:
            raise NoSigner()
        return self._writer

    async def _read(self, label: str, call: Callable[[], Awaitable[Any]]) -> Any:
        try:
            return await call()
        except NETWORK_ERRORS as e:
            logger.warning(f"Read {label} on {self.address} failed: {e}")
            raise ReadFailed(f"{label} failed on {self.address}: {e}") from e

    async def _submit(
        self, action: TransactionAction, transact: Callable[..., Awaitable[Any]], params: dict
    ) -> TransactionHandle:
        try:
            tx_hash = await transact({"from": self.signer.account})
        except NETWORK_ERRORS as e:
            logger.warning(f"{action.value} rejected before inclusion: {e}")
            raise SubmissionRejected(f"{action.value} was rejected: {e}") from e

        tx_hash = tx_hash if isinstance(tx_hash, str) else Web3.to_hex(tx_hash)
        handle = TransactionHandle(action=action, tx_hash=tx_hash, params=params)
        logger.info(f"Submitted {action.value} {params} as {handle.tx_hash}")
        return handle

    @staticmethod
    def _to_uint(raw: Any) -> int:
        if isinstance(raw, bool) or not isinstance(raw, int) or raw < 0:
            raise ValueError(f"Expected a uint, got {raw!r}")
        return raw
