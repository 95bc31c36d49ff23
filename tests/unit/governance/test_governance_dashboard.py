import pytest

from conftest import ALICE, BOB, DAO_ADDRESS, FakeWeb3
from governance.dashboard import GovernanceDashboard
from governance.enums import LoadState, TransactionState, VoteChoice
from governance.exceptions import GovernanceError, InvalidAddress, InvalidChoice, NoProviderFound, NoSigner, ReadFailed
from wallet.session import WalletSession


@pytest.fixture
def dashboard(session):
    return GovernanceDashboard(session, confirmation_timeout=5, poll_latency=0.01)


@pytest.mark.asyncio
async def test_without_wallet_provider_connect_fails_and_writes_stay_disabled(chain):
    dashboard = GovernanceDashboard(WalletSession(None, web3_factory=lambda provider: FakeWeb3(chain)))

    with pytest.raises(NoProviderFound):
        await dashboard.connect()

    assert dashboard.can_write is False
    dashboard.set_dao_address(DAO_ADDRESS)
    assert dashboard.gateway is None
    with pytest.raises(NoSigner):
        await dashboard.create_proposal("ipfs://new")
    assert chain.calls == []


def test_set_dao_address_rejects_invalid_address(dashboard):
    with pytest.raises(InvalidAddress):
        dashboard.set_dao_address("0xnot-an-address")

    assert dashboard.dao_address is None


def test_set_dao_address_checksums(dashboard):
    dashboard.set_dao_address(DAO_ADDRESS.lower())

    assert dashboard.dao_address == DAO_ADDRESS
    assert dashboard.gateway.address == DAO_ADDRESS


@pytest.mark.asyncio
async def test_reads_work_before_connecting(chain, dashboard):
    chain.add_proposal(1)
    dashboard.set_dao_address(DAO_ADDRESS)

    snapshot = await dashboard.refresh()

    assert snapshot.ids == [1]
    assert snapshot.account is None
    assert dashboard.can_write is False


@pytest.mark.asyncio
async def test_write_before_connecting_raises_no_signer(chain, dashboard):
    dashboard.set_dao_address(DAO_ADDRESS)

    with pytest.raises(NoSigner):
        await dashboard.vote(1, VoteChoice.YES)

    assert chain.calls == []


@pytest.mark.asyncio
async def test_write_without_dao_address_raises_invalid_address(dashboard):
    await dashboard.connect()

    with pytest.raises(InvalidAddress):
        await dashboard.create_proposal("ipfs://new")


@pytest.mark.asyncio
async def test_refresh_without_dao_address_raises_read_failed(dashboard):
    with pytest.raises(ReadFailed):
        await dashboard.refresh()


@pytest.mark.asyncio
async def test_choice_is_validated_before_signer_check(chain, dashboard):
    dashboard.set_dao_address(DAO_ADDRESS)

    with pytest.raises(InvalidChoice):
        await dashboard.vote(1, 0)

    assert chain.calls == []


@pytest.mark.asyncio
async def test_connect_enables_writes(dashboard):
    dashboard.set_dao_address(DAO_ADDRESS)

    session = await dashboard.connect()

    assert session.account == ALICE
    assert dashboard.can_write is True
    assert dashboard.gateway.account == ALICE


@pytest.mark.asyncio
async def test_confirmed_vote_reloads_proposals(chain, dashboard):
    chain.add_proposal(1)
    chain.add_proposal(2, yes=2, no=1)
    dashboard.set_dao_address(DAO_ADDRESS)
    await dashboard.connect()
    await dashboard.refresh()

    handle = await dashboard.vote(2, VoteChoice.NO)

    assert handle.state == TransactionState.CONFIRMED
    assert dashboard.store.state == LoadState.LOADED
    assert dashboard.store.get(2).no == 2
    assert dashboard.store.get(2).yes == 2


@pytest.mark.asyncio
async def test_failed_write_does_not_reload(chain, dashboard):
    chain.add_proposal(1)
    chain.revert_writes = True
    dashboard.set_dao_address(DAO_ADDRESS)
    await dashboard.connect()

    handle = await dashboard.create_proposal("ipfs://reverts")

    assert handle.state == TransactionState.FAILED
    assert chain.read_calls() == []
    assert dashboard.store.state == LoadState.IDLE


@pytest.mark.asyncio
async def test_reload_failure_after_confirmation_is_recorded_on_store(chain, dashboard):
    chain.add_proposal(1)
    chain.failing_reads.add(1)
    dashboard.set_dao_address(DAO_ADDRESS)
    await dashboard.connect()

    handle = await dashboard.create_proposal("ipfs://second")

    assert handle.state == TransactionState.CONFIRMED
    assert dashboard.store.state == LoadState.LOAD_FAILED
    assert isinstance(dashboard.store.last_error, ReadFailed)


@pytest.mark.asyncio
async def test_refresh_can_be_turned_off(chain, session):
    dashboard = GovernanceDashboard(session, confirmation_timeout=5, poll_latency=0.01, refresh_on_confirm=False)
    chain.add_proposal(1)
    dashboard.set_dao_address(DAO_ADDRESS)
    await dashboard.connect()

    await dashboard.vote(1, VoteChoice.YES)

    assert chain.read_calls() == []


@pytest.mark.asyncio
async def test_account_change_rebuilds_signer_and_clears_store(chain, wallet, dashboard):
    chain.add_proposal(1)
    dashboard.set_dao_address(DAO_ADDRESS)
    await dashboard.connect()
    await dashboard.refresh()

    wallet.emit_accounts_changed([BOB])

    assert dashboard.gateway.account == BOB
    assert dashboard.store.state == LoadState.IDLE
    assert dashboard.store.snapshot is None

    await dashboard.vote(1, VoteChoice.ABSTAIN)
    assert chain.write_calls()[-1][2] == {"from": BOB}
    assert dashboard.store.snapshot.account == BOB


@pytest.mark.asyncio
async def test_wallet_disconnect_disables_writes(wallet, dashboard):
    dashboard.set_dao_address(DAO_ADDRESS)
    await dashboard.connect()

    wallet.emit_accounts_changed([])

    assert dashboard.can_write is False
    assert dashboard.gateway is not None
    assert dashboard.gateway.can_write is False


@pytest.mark.asyncio
async def test_invalid_proposal_id_is_a_governance_error(chain, dashboard):
    dashboard.set_dao_address(DAO_ADDRESS)
    await dashboard.connect()

    with pytest.raises(GovernanceError):
        await dashboard.vote(-1, VoteChoice.YES)

    assert chain.calls == []


@pytest.mark.asyncio
async def test_connect_after_loading_rebinds_feed_to_new_account(chain, dashboard):
    chain.add_proposal(1)
    dashboard.set_dao_address(DAO_ADDRESS)
    assert (await dashboard.refresh()).account is None

    await dashboard.connect()

    assert dashboard.store.snapshot is None
    assert (await dashboard.refresh()).account == ALICE
