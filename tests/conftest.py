import asyncio
from collections import defaultdict
from types import SimpleNamespace
from typing import Dict, List, Optional

import pytest
from eth_utils import to_checksum_address
from web3.exceptions import TimeExhausted, Web3Exception

from governance.gateway import ContractGateway
from wallet.provider import ACCOUNTS_CHANGED, ProviderRpcError
from wallet.session import Signer, WalletSession

# Well-known Hardhat dev accounts / first deployment addresses
ALICE = to_checksum_address("0x70997970c51812dc3a010c7d01b50e0d17dc79c8")
BOB = to_checksum_address("0x3c44cdddb6a900fa2b585dd299e03d12fa4293bc")
DAO_ADDRESS = to_checksum_address("0x5fbdb2315678afecb367f032d93f642f64180aa3")
OTHER_DAO_ADDRESS = to_checksum_address("0xe7f1725e7734ce288f8367e1bb143e90bb3f0512")

GENESIS_TIME = 1_700_000_000
VOTING_PERIOD = 3 * 24 * 3600


class FakeWallet:
    """EIP-1193 shaped wallet: answers eth_requestAccounts and fires accountsChanged on demand."""

    def __init__(self, accounts: Optional[List[str]] = None):
        self.accounts = list(accounts or [])
        self.request_error: Optional[Exception] = None
        self.listeners = defaultdict(list)
        self.requests: List[tuple] = []

    async def request(self, method, params=None):
        self.requests.append((method, list(params or [])))
        if method == "eth_requestAccounts":
            if self.request_error is not None:
                raise self.request_error
            return list(self.accounts)
        if method == "eth_chainId":
            return "0x7a69"
        raise ProviderRpcError(4200, f"Unsupported method {method}")

    def on(self, event, handler):
        self.listeners[event].append(handler)

    def emit_accounts_changed(self, accounts: List[str]) -> None:
        self.accounts = list(accounts)
        for handler in list(self.listeners[ACCOUNTS_CHANGED]):
            handler(list(accounts))


class FakeGovernanceChain:
    """
    In-memory stand-in for the governance contract plus the node behind it.
    Writes are mined immediately; gates let a test hold reads or receipt waits open.
    """

    def __init__(self):
        self.proposals: Dict[int, dict] = {}
        self.id_order: Optional[List[int]] = None
        self.calls: List[tuple] = []
        self.failing_reads = set()
        self.read_gate: Optional[asyncio.Event] = None
        self.receipt_gate: Optional[asyncio.Event] = None
        self.write_error: Optional[Exception] = None
        self.revert_writes = False
        self.receipt_timeout = False
        self.block_number = 100
        self.receipts: Dict[str, dict] = {}

    def add_proposal(self, proposal_id: int, proposer: str = ALICE, uri: Optional[str] = None, **fields) -> None:
        start = fields.pop("start", GENESIS_TIME + proposal_id)
        self.proposals[proposal_id] = {
            "id": proposal_id,
            "proposer": proposer,
            "start": start,
            "end": fields.pop("end", start + VOTING_PERIOD),
            "metadataURI": uri if uri is not None else f"ipfs://proposal-{proposal_id}",
            "yes": fields.pop("yes", 0),
            "no": fields.pop("no", 0),
            "abstain": fields.pop("abstain", 0),
            "executed": fields.pop("executed", False),
        }

    def read_calls(self) -> List[tuple]:
        return [c for c in self.calls if c[0] in ("getProposalIds", "getProposal")]

    def write_calls(self) -> List[tuple]:
        return [c for c in self.calls if c[0] in ("createProposal", "vote")]

    async def read(self, name, args):
        self.calls.append((name, args))
        if self.read_gate is not None:
            await self.read_gate.wait()

        if name == "getProposalIds":
            return list(self.id_order) if self.id_order is not None else sorted(self.proposals)

        proposal_id = args[0]
        if proposal_id in self.failing_reads or proposal_id not in self.proposals:
            raise Web3Exception(f"execution reverted: cannot read proposal {proposal_id}")
        p = self.proposals[proposal_id]
        return [p["id"], p["proposer"], p["start"], p["end"], p["metadataURI"], p["yes"], p["no"], p["abstain"], p["executed"]]

    async def transact(self, name, args, tx):
        self.calls.append((name, args, tx))
        if self.write_error is not None:
            raise self.write_error

        self.block_number += 1
        tx_hash = "0x" + f"{len(self.receipts) + 1:064x}"
        status = 0 if self.revert_writes else 1
        if status:
            self._apply(name, args, tx["from"])
        self.receipts[tx_hash] = {"transactionHash": tx_hash, "blockNumber": self.block_number, "status": status}
        return bytes.fromhex(tx_hash[2:])

    async def wait_for_transaction_receipt(self, tx_hash, timeout=120, poll_latency=0.1):
        if self.receipt_gate is not None:
            await self.receipt_gate.wait()
        if self.receipt_timeout:
            raise TimeExhausted(f"Transaction {tx_hash} is not in the chain after {timeout} seconds")
        return self.receipts[tx_hash]

    def _apply(self, name, args, sender):
        if name == "createProposal":
            new_id = max(self.proposals, default=0) + 1
            self.add_proposal(new_id, proposer=sender, uri=args[0])
        elif name == "vote":
            proposal_id, choice = args
            key = {1: "yes", 2: "no", 3: "abstain"}[choice]
            self.proposals[proposal_id][key] += 1


class _FakeCall:
    def __init__(self, chain: FakeGovernanceChain, name: str, args: tuple):
        self._chain = chain
        self._name = name
        self._args = args

    async def call(self):
        return await self._chain.read(self._name, self._args)

    async def transact(self, tx=None):
        return await self._chain.transact(self._name, self._args, tx or {})


class _FakeFunctions:
    def __init__(self, chain: FakeGovernanceChain):
        self._chain = chain

    def getProposalIds(self):
        return _FakeCall(self._chain, "getProposalIds", ())

    def getProposal(self, proposal_id):
        return _FakeCall(self._chain, "getProposal", (proposal_id,))

    def createProposal(self, metadata_uri):
        return _FakeCall(self._chain, "createProposal", (metadata_uri,))

    def vote(self, proposal_id, choice):
        return _FakeCall(self._chain, "vote", (proposal_id, choice))


class FakeWeb3:
    """Just enough of AsyncWeb3 for the gateway: eth.contract(...) and eth.wait_for_transaction_receipt(...)."""

    def __init__(self, chain: FakeGovernanceChain):
        self.chain = chain
        self.eth = SimpleNamespace(
            contract=self._contract,
            wait_for_transaction_receipt=chain.wait_for_transaction_receipt,
            default_account=None,
        )

    def _contract(self, address, abi):
        return SimpleNamespace(address=address, abi=abi, functions=_FakeFunctions(self.chain))


@pytest.fixture
def chain():
    return FakeGovernanceChain()


@pytest.fixture
def wallet():
    return FakeWallet([ALICE, BOB])


@pytest.fixture
def session(wallet, chain):
    return WalletSession(wallet, web3_factory=lambda provider: FakeWeb3(chain))


@pytest.fixture
def read_only_gateway(chain):
    return ContractGateway(DAO_ADDRESS, FakeWeb3(chain))


@pytest.fixture
def signer(chain):
    return Signer(web3=FakeWeb3(chain), account=ALICE)


@pytest.fixture
def gateway(chain, signer):
    return ContractGateway(DAO_ADDRESS, FakeWeb3(chain), signer)
